"""Test doubles for the upstream data source and the cache clock."""

import asyncio
from typing import Any

from pulse.errors import FetchError


class FakeFetcher:
    """Fetcher serving canned items per resource id.

    A value that is an exception instance is raised instead of returned.
    Unknown resources fail like an upstream 404.
    """

    def __init__(self, responses: dict[str, Any] | None = None, delay: float = 0.0):
        self.responses = dict(responses or {})
        self.delay = delay
        self.calls: list[str] = []

    async def fetch(self, resource_id: str, field: str) -> list[Any]:
        self.calls.append(resource_id)
        if self.delay:
            await asyncio.sleep(self.delay)
        if resource_id not in self.responses:
            raise FetchError(resource_id, "HTTP 404")
        result = self.responses[resource_id]
        if isinstance(result, BaseException):
            raise result
        return list(result)


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def social_responses(
    users: dict[str, str],
    posts: dict[str, list[dict[str, Any]]],
    comment_counts: dict[int, int] | None = None,
) -> dict[str, Any]:
    """Build FakeFetcher responses for a users/posts/comments upstream."""
    responses: dict[str, Any] = {"users": list(users.items())}
    for user_id, user_posts in posts.items():
        responses[f"users/{user_id}/posts"] = user_posts
    for post_id, count in (comment_counts or {}).items():
        responses[f"posts/{post_id}/comments"] = [
            {"id": post_id * 1000 + i, "postid": post_id, "content": "nice"} for i in range(count)
        ]
    return responses


def make_post(post_id: int, user_id: int) -> dict[str, Any]:
    return {"id": post_id, "userid": user_id, "content": f"post {post_id}"}
