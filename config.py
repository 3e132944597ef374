from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()


def _get_bool(key: str, default: bool) -> bool:
    val = os.getenv(key)
    if val is None:
        return default
    return val.lower() in {"1", "true", "yes", "on"}


def _parse_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


LEETCODE_GRAPHQL_URL = os.getenv("LEETCODE_GRAPHQL_URL", "https://leetcode.com/graphql")
REQUEST_TIMEOUT_SECONDS = float(os.getenv("REQUEST_TIMEOUT_SECONDS", "20"))

BATCH_SIZE = int(os.getenv("BATCH_SIZE", "10"))
BATCH_DELAY_SECONDS = float(os.getenv("BATCH_DELAY_SECONDS", "0.05"))
MAX_RETRIES = int(os.getenv("MAX_RETRIES", "2"))
RETRY_DELAY_SECONDS = float(os.getenv("RETRY_DELAY_SECONDS", "0.2"))
MAX_BATCH_USERNAMES = int(os.getenv("MAX_BATCH_USERNAMES", "5000"))

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "3001"))
CORS_ORIGINS = _parse_csv(
    os.getenv(
        "CORS_ORIGINS",
        "https://leetcode-dashboard-zeta.vercel.app,http://localhost:5173,https://leetcode-server-seven.vercel.app",
    )
)
CORS_ALLOW_CREDENTIALS = _get_bool("CORS_ALLOW_CREDENTIALS", True)
RATE_LIMIT_PER_MIN = int(os.getenv("RATE_LIMIT_PER_MIN", "1000"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", "logs/leetscore.log")
LOG_MAX_BYTES = int(os.getenv("LOG_MAX_BYTES", "1048576"))
LOG_BACKUP_COUNT = int(os.getenv("LOG_BACKUP_COUNT", "5"))


@dataclass(frozen=True)
class BatchSettings:
    """Limits for one bulk scoring run.

    Everything is static: the scheduler never adapts these to observed
    upstream latency or error rate.
    """

    batch_size: int = BATCH_SIZE
    batch_delay_seconds: float = BATCH_DELAY_SECONDS
    max_retries: int = MAX_RETRIES
    retry_delay_seconds: float = RETRY_DELAY_SECONDS
    max_usernames: int = MAX_BATCH_USERNAMES

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        if self.batch_delay_seconds < 0 or self.retry_delay_seconds < 0:
            raise ValueError("delays must not be negative")
        if self.max_retries < 0:
            raise ValueError("max_retries must not be negative")
        if self.max_usernames < 1:
            raise ValueError("max_usernames must be at least 1")


@dataclass(frozen=True)
class ServerSettings:
    graphql_url: str = LEETCODE_GRAPHQL_URL
    request_timeout_seconds: float = REQUEST_TIMEOUT_SECONDS
    cors_origins: tuple[str, ...] = field(default_factory=lambda: tuple(CORS_ORIGINS))
    cors_allow_credentials: bool = CORS_ALLOW_CREDENTIALS
    rate_limit_per_min: int = RATE_LIMIT_PER_MIN
