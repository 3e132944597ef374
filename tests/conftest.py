import asyncio
from typing import Any

import pytest
from aiohttp import web


OPERATIONS = ("getUserProfile", "getUserContestRanking", "getACSubmissions", "getUserProblemsSolved")


class FakeLeetCode:
    """In-process stand-in for the LeetCode GraphQL endpoint."""

    def __init__(self) -> None:
        self.users: dict[str, dict[str, Any]] = {}
        self.raw: dict[tuple[str, str], tuple[int, str]] = {}
        self.calls: list[tuple[str, str]] = []
        self.referers: list[str | None] = []
        self.delay = 0.0

    def add_user(self, username, easy=0, medium=0, hard=0, rating=None, last_ac=None) -> None:
        self.users[username] = {
            "counts": {"Easy": easy, "Medium": medium, "Hard": hard},
            "rating": rating,
            "last_ac": last_ac,
        }

    def respond_raw(self, operation: str, username: str, status: int, text: str) -> None:
        self.raw[(operation, username)] = (status, text)

    def app(self) -> web.Application:
        app = web.Application()
        app.router.add_post("/graphql", self.graphql)
        return app

    async def graphql(self, request: web.Request) -> web.Response:
        body = await request.json()
        query = body["query"]
        username = body["variables"]["username"]
        operation = next(op for op in OPERATIONS if op in query)
        self.calls.append((operation, username))
        self.referers.append(request.headers.get("Referer"))
        if self.delay:
            await asyncio.sleep(self.delay)
        if (operation, username) in self.raw:
            status, text = self.raw[(operation, username)]
            return web.Response(status=status, text=text, content_type="application/json")
        user = self.users.get(username)
        return web.json_response(getattr(self, "_" + operation)(user))

    def _getUserProfile(self, user):
        if user is None:
            return {"errors": [{"message": "That user does not exist."}], "data": {"matchedUser": None}}
        counts = user["counts"]
        rows = [{"difficulty": "All", "count": sum(counts.values())}]
        rows += [{"difficulty": name, "count": count} for name, count in counts.items()]
        return {"data": {"matchedUser": {"submitStats": {"acSubmissionNum": rows}}}}

    def _getUserContestRanking(self, user):
        if user is None:
            return {"errors": [{"message": "That user does not exist."}], "data": {"userContestRanking": None}}
        if user["rating"] is None:
            return {"data": {"userContestRanking": None}}
        return {"data": {"userContestRanking": {"rating": user["rating"]}}}

    def _getACSubmissions(self, user):
        if user is None or user["last_ac"] is None:
            return {"data": {"recentAcSubmissionList": []}}
        return {
            "data": {
                "recentAcSubmissionList": [
                    {"id": "1", "title": "Two Sum", "timestamp": str(user["last_ac"])}
                ]
            }
        }

    def _getUserProblemsSolved(self, user):
        totals = [
            {"difficulty": "All", "count": 3000},
            {"difficulty": "Easy", "count": 800},
            {"difficulty": "Medium", "count": 1600},
            {"difficulty": "Hard", "count": 600},
        ]
        if user is None:
            return {"data": {"allQuestionsCount": totals, "matchedUser": None}}
        rows = [{"difficulty": name, "count": count} for name, count in user["counts"].items()]
        return {
            "data": {
                "allQuestionsCount": totals,
                "matchedUser": {"submitStatsGlobal": {"acSubmissionNum": rows}},
            }
        }


@pytest.fixture
def fake_leetcode():
    return FakeLeetCode()
