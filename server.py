from __future__ import annotations

import functools
import logging
import time
from datetime import datetime
from typing import Any, AsyncIterator, Callable, Optional

import aiohttp
import aiohttp_cors
from aiohttp import web

import leetcode_api
from aggregator import BatchScheduler, FetchUser, resolve_user
from config import BatchSettings, ServerSettings
from errors import InputError, TransientError
from results import FailedUser, MissingUser
from utils import NOT_AVAILABLE, now_utc


logger = logging.getLogger(__name__)

SETTINGS_KEY = web.AppKey("settings", ServerSettings)
BATCH_SETTINGS_KEY = web.AppKey("batch_settings", BatchSettings)
SESSION_KEY = web.AppKey("session", aiohttp.ClientSession)
STARTED_AT_KEY = web.AppKey("started_at", datetime)

CORS_METHODS = ("GET", "POST", "DELETE")
CORS_HEADERS = ("Content-Type", "Authorization", "X-Requested-With")

routes = web.RouteTableDef()


class RateLimiter:
    """Fixed-window request counter keyed by client address."""

    def __init__(self, limit: int, window_seconds: float = 60.0, clock: Callable[[], float] = time.monotonic) -> None:
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: dict[str, tuple[float, int]] = {}
        self._pruned_at = clock()

    def allow(self, key: str) -> bool:
        now = self._clock()
        if now - self._pruned_at >= self.window_seconds:
            self._prune(now)
        start, count = self._hits.get(key, (now, 0))
        if now - start >= self.window_seconds:
            start, count = now, 0
        if count >= self.limit:
            return False
        self._hits[key] = (start, count + 1)
        return True

    def _prune(self, now: float) -> None:
        expired = [key for key, (start, _) in self._hits.items() if now - start >= self.window_seconds]
        for key in expired:
            del self._hits[key]
        self._pruned_at = now


RATE_LIMITER_KEY = web.AppKey("rate_limiter", Optional[RateLimiter])


def _error(status: int, message: str) -> web.Response:
    return web.json_response({"error": message}, status=status)


@web.middleware
async def rate_limit_middleware(request: web.Request, handler):
    limiter = request.app[RATE_LIMITER_KEY]
    if limiter is not None and not limiter.allow(request.remote or "unknown"):
        logger.warning("rate limit exceeded for %s", request.remote)
        return _error(429, "Too many requests")
    return await handler(request)


async def client_session_ctx(app: web.Application) -> AsyncIterator[None]:
    session = aiohttp.ClientSession()
    app[SESSION_KEY] = session
    yield
    await session.close()


def _fetch_user(request: web.Request) -> FetchUser:
    settings = request.app[SETTINGS_KEY]
    return functools.partial(
        leetcode_api.fetch_user_data,
        request.app[SESSION_KEY],
        endpoint=settings.graphql_url,
        timeout=settings.request_timeout_seconds,
    )


def _upstream_kwargs(request: web.Request) -> dict[str, Any]:
    settings = request.app[SETTINGS_KEY]
    return {"endpoint": settings.graphql_url, "timeout": settings.request_timeout_seconds}


@routes.get("/")
async def index(request: web.Request) -> web.Response:
    return web.Response(text="Welcome to the LeetCode Backend!")


@routes.get("/health")
async def health(request: web.Request) -> web.Response:
    return web.json_response({"status": "healthy", "started_at": request.app[STARTED_AT_KEY].isoformat()})


@routes.get("/api/user/{username}")
async def user_score(request: web.Request) -> web.Response:
    username = request.match_info["username"]
    try:
        result = await resolve_user(_fetch_user(request), username)
    except Exception:
        logger.exception("Error in /api/user/%s", username)
        return _error(500, "Error fetching user data")
    if isinstance(result, FailedUser):
        return _error(500, "Error fetching user data")
    if isinstance(result, MissingUser):
        # this path does not tell unknown users apart from users with no data
        return web.json_response({"username": username, "customScore": 0, "recentActiveDate": NOT_AVAILABLE})
    return web.json_response(
        {
            "username": username,
            "customScore": result.custom_score,
            "recentActiveDate": result.recent_active_date,
        }
    )


@routes.post("/api/users/scores")
async def users_scores(request: web.Request) -> web.Response:
    try:
        body = await request.json()
    except ValueError:
        return _error(400, "Request body must be valid JSON")
    usernames = body.get("usernames") if isinstance(body, dict) else None
    resolve = functools.partial(resolve_user, _fetch_user(request), now=now_utc())
    scheduler = BatchScheduler(resolve, request.app[BATCH_SETTINGS_KEY])
    try:
        batch = await scheduler.run(usernames)
    except InputError as exc:
        return _error(400, str(exc))
    except Exception:
        logger.exception("Error in /api/users/scores")
        return _error(500, "Error fetching user data")
    return web.json_response(batch.to_dict())


@routes.get("/api/contest/{username}")
async def contest(request: web.Request) -> web.Response:
    username = request.match_info["username"]
    try:
        payload = await leetcode_api.fetch_contest_payload(
            request.app[SESSION_KEY], username, **_upstream_kwargs(request)
        )
    except TransientError:
        logger.exception("Error in /api/contest/%s", username)
        return _error(500, "Failed to fetch contest data")
    if payload.get("errors"):
        return web.json_response(payload, status=400)
    ranking = (payload.get("data") or {}).get("userContestRanking") or {}
    return web.json_response({"contestRating": ranking.get("rating") or "N/A"})


@routes.get("/api/problems/{username}")
async def problems(request: web.Request) -> web.Response:
    username = request.match_info["username"]
    try:
        payload = await leetcode_api.fetch_problem_payload(
            request.app[SESSION_KEY], username, **_upstream_kwargs(request)
        )
    except TransientError:
        logger.exception("Error in /api/problems/%s", username)
        return _error(500, "Error fetching problem statistics")
    return web.json_response(payload)


def setup_cors(app: web.Application, settings: ServerSettings) -> None:
    options = aiohttp_cors.ResourceOptions(
        allow_credentials=settings.cors_allow_credentials,
        allow_headers=CORS_HEADERS,
        allow_methods=CORS_METHODS,
    )
    cors = aiohttp_cors.setup(app, defaults={origin: options for origin in settings.cors_origins})
    for route in list(app.router.routes()):
        cors.add(route)


def create_app(
    settings: ServerSettings | None = None,
    batch_settings: BatchSettings | None = None,
) -> web.Application:
    settings = settings or ServerSettings()
    app = web.Application(middlewares=[rate_limit_middleware])
    app[SETTINGS_KEY] = settings
    app[BATCH_SETTINGS_KEY] = batch_settings or BatchSettings()
    app[STARTED_AT_KEY] = now_utc()
    app[RATE_LIMITER_KEY] = RateLimiter(settings.rate_limit_per_min) if settings.rate_limit_per_min > 0 else None
    app.cleanup_ctx.append(client_session_ctx)
    app.add_routes(routes)
    setup_cors(app, settings)
    return app
