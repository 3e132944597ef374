from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Union

from utils import NOT_AVAILABLE

USER_NOT_FOUND = "User Not Found"


@dataclass(frozen=True)
class ScoredUser:
    username: str
    custom_score: int
    recent_active_date: str
    is_active: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "username": self.username,
            "customScore": self.custom_score,
            "recentActiveDate": self.recent_active_date,
            "isActive": self.is_active,
            "userNotFound": False,
        }


@dataclass(frozen=True)
class MissingUser:
    username: str
    error: str = "User does not exist"

    is_active: ClassVar[bool] = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "username": self.username,
            "customScore": USER_NOT_FOUND,
            "recentActiveDate": USER_NOT_FOUND,
            "isActive": False,
            "userNotFound": True,
            "error": self.error,
        }


@dataclass(frozen=True)
class FailedUser:
    """Placeholder for a user whose data could not be fetched."""

    username: str
    error: str

    is_active: ClassVar[bool] = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "username": self.username,
            "customScore": 0,
            "recentActiveDate": NOT_AVAILABLE,
            "isActive": False,
            "userNotFound": False,
            "error": self.error,
        }


UserResult = Union[ScoredUser, MissingUser, FailedUser]


@dataclass(frozen=True)
class BatchResult:
    scores: tuple[UserResult, ...]

    @property
    def total(self) -> int:
        return len(self.scores)

    @property
    def active(self) -> int:
        return sum(1 for result in self.scores if result.is_active)

    @property
    def failed(self) -> int:
        return sum(1 for result in self.scores if isinstance(result, FailedUser))

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "active": self.active,
            "scores": [result.to_dict() for result in self.scores],
        }
