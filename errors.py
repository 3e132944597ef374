from __future__ import annotations

from typing import Any


class ScoreServiceError(Exception):
    pass


class InputError(ScoreServiceError):
    """The request is malformed; rejected before any upstream call."""


class TransientError(ScoreServiceError):
    """The upstream could not answer right now. Worth another attempt."""


class TransportError(TransientError):
    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class GraphQLError(TransientError):
    def __init__(self, message: str, errors: list[Any] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class UpstreamTimeout(TransientError):
    pass


class MalformedResponseError(TransientError):
    pass
