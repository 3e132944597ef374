from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Iterator, Sequence

import aiohttp

from config import BatchSettings, MAX_RETRIES, RETRY_DELAY_SECONDS
from errors import InputError, TransientError
from leetcode_api import UserData, UserNotFound
from results import BatchResult, FailedUser, MissingUser, ScoredUser, UserResult
from scoring import custom_score
from utils import classify_activity


logger = logging.getLogger(__name__)

FetchUser = Callable[[str], Awaitable[UserData | UserNotFound]]
Resolver = Callable[[str], Awaitable[UserResult]]
Sleep = Callable[[float], Awaitable[Any]]

RETRYABLE_ERRORS = (TransientError, aiohttp.ClientError, asyncio.TimeoutError)


async def resolve_user(fetch_user: FetchUser, username: str, *, now: datetime | None = None) -> UserResult:
    """Turn one upstream fetch into a result record.

    Upstream failures are encoded into the record instead of raised, so a
    batch keeps going when some users cannot be scored.
    """
    try:
        outcome = await fetch_user(username)
    except TransientError as exc:
        logger.warning("fetch failed for %s: %s", username, exc)
        return FailedUser(username, str(exc) or "Failed to fetch user data")
    if isinstance(outcome, UserNotFound):
        logger.info("user not found: %s", username)
        return MissingUser(username)
    recent_active_date, is_active = classify_activity(outcome.last_accepted_epoch, now)
    return ScoredUser(
        username=username,
        custom_score=custom_score(outcome.rating, outcome.solved),
        recent_active_date=recent_active_date,
        is_active=is_active,
    )


async def with_retry(
    username: str,
    resolve: Resolver,
    *,
    max_retries: int = MAX_RETRIES,
    delay: float = RETRY_DELAY_SECONDS,
    sleep: Sleep = asyncio.sleep,
) -> UserResult:
    last_error: BaseException | None = None
    for attempt in range(max_retries + 1):
        try:
            return await resolve(username)
        except RETRYABLE_ERRORS as exc:
            last_error = exc
            if attempt < max_retries:
                logger.warning(
                    "resolve failed for %s (attempt %d/%d): %s; retrying in %.2fs",
                    username,
                    attempt + 1,
                    max_retries + 1,
                    exc,
                    delay,
                )
                await sleep(delay)
    logger.error("giving up on %s after %d attempts: %s", username, max_retries + 1, last_error)
    message = str(last_error) if last_error is not None else ""
    return FailedUser(username, message or "Failed after retries")


def validate_usernames(usernames: Any, limit: int) -> list[str]:
    if not isinstance(usernames, (list, tuple)):
        raise InputError("Usernames must be provided as an array")
    if len(usernames) > limit:
        raise InputError(f"At most {limit} usernames can be scored in one request")
    for name in usernames:
        if not isinstance(name, str) or not name.strip():
            raise InputError("Usernames must be non-empty strings")
    return list(usernames)


def chunked(items: Sequence[str], size: int) -> Iterator[Sequence[str]]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


class BatchScheduler:
    """Scores many users in fixed-size groups.

    Members of a group are resolved concurrently; the next group is only
    admitted once the whole group has finished, after a fixed pause.
    Results keep the order of the input list.
    """

    def __init__(
        self,
        resolve: Resolver,
        settings: BatchSettings | None = None,
        *,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.resolve = resolve
        self.settings = settings or BatchSettings()
        self._sleep = sleep

    async def _resolve_with_retry(self, username: str) -> UserResult:
        return await with_retry(
            username,
            self.resolve,
            max_retries=self.settings.max_retries,
            delay=self.settings.retry_delay_seconds,
            sleep=self._sleep,
        )

    async def run(self, usernames: Any) -> BatchResult:
        names = validate_usernames(usernames, self.settings.max_usernames)
        logger.info("batch started: %d usernames", len(names))
        scores: list[UserResult] = []
        for index, group in enumerate(chunked(names, self.settings.batch_size)):
            if index:
                await self._sleep(self.settings.batch_delay_seconds)
            logger.debug("group %d admitted: %d usernames", index + 1, len(group))
            scores.extend(await asyncio.gather(*(self._resolve_with_retry(name) for name in group)))
        result = BatchResult(tuple(scores))
        logger.info(
            "batch finished: total=%d active=%d failed=%d",
            result.total,
            result.active,
            result.failed,
        )
        return result
