from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass
from typing import Any

import aiohttp

from config import LEETCODE_GRAPHQL_URL, REQUEST_TIMEOUT_SECONDS
from errors import GraphQLError, MalformedResponseError, TransportError, UpstreamTimeout
from utils import epoch_to_utc


logger = logging.getLogger(__name__)

HEADERS = {
    "Content-Type": "application/json",
    "Referer": "https://leetcode.com",
}

DIFFICULTIES = ("Easy", "Medium", "Hard")
MAX_SOLVED_COUNT = 1_000_000

PROFILE_QUERY = """
query getUserProfile($username: String!) {
  matchedUser(username: $username) {
    submitStats {
      acSubmissionNum {
        difficulty
        count
      }
    }
  }
}
"""

CONTEST_QUERY = """
query getUserContestRanking($username: String!) {
  userContestRanking(username: $username) {
    rating
  }
}
"""

RECENT_AC_QUERY = """
query getACSubmissions($username: String!) {
  recentAcSubmissionList(username: $username, limit: 1) {
    id
    title
    timestamp
  }
}
"""

PROBLEMS_QUERY = """
query getUserProblemsSolved($username: String!) {
  allQuestionsCount {
    difficulty
    count
  }
  matchedUser(username: $username) {
    submitStatsGlobal {
      acSubmissionNum {
        difficulty
        count
      }
    }
  }
}
"""


@dataclass(frozen=True)
class UserData:
    username: str
    solved: dict[str, int]
    rating: float | None
    last_accepted_epoch: int | None


@dataclass(frozen=True)
class UserNotFound:
    username: str


async def post_graphql_payload(
    session: aiohttp.ClientSession,
    query: str,
    variables: dict[str, Any],
    *,
    endpoint: str = LEETCODE_GRAPHQL_URL,
    timeout: float = REQUEST_TIMEOUT_SECONDS,
) -> dict[str, Any]:
    """POST one GraphQL query and return the decoded response body as-is.

    Transport problems are normalized into ``TransientError`` subclasses; the
    body is not inspected beyond checking that it is a JSON object.
    """
    try:
        async with session.post(
            endpoint,
            json={"query": query, "variables": variables},
            headers=HEADERS,
            timeout=aiohttp.ClientTimeout(total=timeout),
        ) as resp:
            if resp.status != 200:
                raise TransportError(f"Request failed with status code {resp.status}", status=resp.status)
            try:
                body = await resp.json(content_type=None)
            except ValueError as exc:
                raise MalformedResponseError("Upstream returned invalid JSON") from exc
    except asyncio.TimeoutError as exc:
        raise UpstreamTimeout(f"Upstream did not answer within {timeout:g}s") from exc
    except aiohttp.ClientError as exc:
        raise TransportError(str(exc) or exc.__class__.__name__) from exc
    if not isinstance(body, dict):
        raise MalformedResponseError("Upstream response is not a JSON object")
    return body


async def post_graphql(
    session: aiohttp.ClientSession,
    query: str,
    variables: dict[str, Any],
    *,
    endpoint: str = LEETCODE_GRAPHQL_URL,
    timeout: float = REQUEST_TIMEOUT_SECONDS,
) -> dict[str, Any]:
    body = await post_graphql_payload(session, query, variables, endpoint=endpoint, timeout=timeout)
    data = body.get("data")
    errors = body.get("errors")
    if data is None:
        if errors:
            raise GraphQLError(_first_error_message(errors), errors if isinstance(errors, list) else [errors])
        raise MalformedResponseError("Upstream response has no data")
    if not isinstance(data, dict):
        raise MalformedResponseError("Upstream data is not an object")
    if errors:
        # LeetCode reports unknown users as an error next to a null field.
        logger.debug("graphql errors alongside data for %s: %s", variables, errors)
    return data


def _first_error_message(errors: Any) -> str:
    if isinstance(errors, list) and errors and isinstance(errors[0], dict):
        message = errors[0].get("message")
        if message:
            return str(message)
    return "Upstream returned GraphQL errors"


def difficulty_counts(rows: Any) -> dict[str, int]:
    counts = dict.fromkeys(DIFFICULTIES, 0)
    if not isinstance(rows, list):
        return counts
    for row in rows:
        if not isinstance(row, dict):
            continue
        difficulty = row.get("difficulty")
        if difficulty not in counts:
            continue
        try:
            count = int(row.get("count") or 0)
        except (TypeError, ValueError, OverflowError) as exc:
            raise MalformedResponseError(f"Invalid {difficulty} count: {row.get('count')!r}") from exc
        if count > MAX_SOLVED_COUNT:
            raise MalformedResponseError(f"Implausible {difficulty} count: {count}")
        counts[difficulty] = max(0, count)
    return counts


def _parse_rating(ranking: Any) -> float | None:
    if not isinstance(ranking, dict):
        return None
    rating = ranking.get("rating")
    if rating is None:
        return None
    try:
        value = float(rating)
    except (TypeError, ValueError, OverflowError) as exc:
        raise MalformedResponseError(f"Invalid contest rating: {rating!r}") from exc
    if not math.isfinite(value) or value < 0:
        raise MalformedResponseError(f"Invalid contest rating: {rating!r}")
    return value


def _parse_last_accepted(submissions: Any) -> int | None:
    if not isinstance(submissions, list) or not submissions:
        return None
    latest = submissions[0]
    if not isinstance(latest, dict) or not latest.get("timestamp"):
        return None
    try:
        epoch = int(latest["timestamp"])
    except (TypeError, ValueError):
        logger.debug("ignoring unparseable submission timestamp: %r", latest["timestamp"])
        return None
    except OverflowError as exc:
        raise MalformedResponseError(f"Submission timestamp out of range: {latest['timestamp']!r}") from exc
    try:
        epoch_to_utc(epoch)
    except (OverflowError, OSError, ValueError) as exc:
        raise MalformedResponseError(f"Submission timestamp out of range: {epoch}") from exc
    return epoch


async def fetch_user_data(
    session: aiohttp.ClientSession,
    username: str,
    *,
    endpoint: str = LEETCODE_GRAPHQL_URL,
    timeout: float = REQUEST_TIMEOUT_SECONDS,
) -> UserData | UserNotFound:
    """Fetch solved counts, contest rating and latest AC for one user.

    The three queries run concurrently and the fetch fails as a whole if any
    of them does. A null ``matchedUser`` means the account does not exist.
    """
    variables = {"username": username}
    responses = await asyncio.gather(
        post_graphql(session, PROFILE_QUERY, variables, endpoint=endpoint, timeout=timeout),
        post_graphql(session, CONTEST_QUERY, variables, endpoint=endpoint, timeout=timeout),
        post_graphql(session, RECENT_AC_QUERY, variables, endpoint=endpoint, timeout=timeout),
        return_exceptions=True,
    )
    for response in responses:
        if isinstance(response, BaseException):
            raise response
    profile, contest, recent = responses
    matched = profile.get("matchedUser")
    if not matched:
        return UserNotFound(username)
    if not isinstance(matched, dict):
        raise MalformedResponseError("matchedUser is not an object")
    stats = matched.get("submitStats") or {}
    if not isinstance(stats, dict):
        raise MalformedResponseError("submitStats is not an object")
    return UserData(
        username=username,
        solved=difficulty_counts(stats.get("acSubmissionNum")),
        rating=_parse_rating(contest.get("userContestRanking")),
        last_accepted_epoch=_parse_last_accepted(recent.get("recentAcSubmissionList")),
    )


async def fetch_contest_payload(
    session: aiohttp.ClientSession,
    username: str,
    *,
    endpoint: str = LEETCODE_GRAPHQL_URL,
    timeout: float = REQUEST_TIMEOUT_SECONDS,
) -> dict[str, Any]:
    return await post_graphql_payload(
        session, CONTEST_QUERY, {"username": username}, endpoint=endpoint, timeout=timeout
    )


async def fetch_problem_payload(
    session: aiohttp.ClientSession,
    username: str,
    *,
    endpoint: str = LEETCODE_GRAPHQL_URL,
    timeout: float = REQUEST_TIMEOUT_SECONDS,
) -> dict[str, Any]:
    return await post_graphql_payload(
        session, PROBLEMS_QUERY, {"username": username}, endpoint=endpoint, timeout=timeout
    )
