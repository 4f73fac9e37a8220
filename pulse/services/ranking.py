"""Ranking service for social analytics.

Top users:
1. Fetch all users (id -> name, upstream order)
2. Fetch each user's posts and count them
3. Sort by post count DESC; ties keep fetch order
4. Return the first 5

Posts:
- popular: every post whose comment count equals the maximum, in
  encounter order, truncated to 5 (never backfilled with lower counts)
- latest: posts sorted by id DESC (ids are assumed monotonic), first 5

Results are cached per query for the cache TTL. Any upstream failure aborts
the whole computation with DataSourceError and leaves the cache untouched.
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from collections.abc import Awaitable, Callable, Iterable
from datetime import datetime, timezone
from enum import Enum
import logging
from typing import Any, TypeVar

from pydantic import ValidationError

from pulse.errors import DataSourceError, FetchError, InvalidQueryType
from pulse.schemas import Post, PostsResponse, TopUsersResponse, UserPostCount
from pulse.services.fetcher import Fetcher
from pulse.stores.cache import KEY_TOP_USERS, CacheEntry, RankCache, posts_cache_key

logger = logging.getLogger("uvicorn.error")

T = TypeVar("T")

TOP_LIMIT = 5


class PostQueryType(str, Enum):
    """Post ranking modes."""

    POPULAR = "popular"
    LATEST = "latest"

    @classmethod
    def parse(cls, value: object) -> PostQueryType:
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except (TypeError, ValueError):
            raise InvalidQueryType(value) from None


def rank_users_by_post_count(counts: list[UserPostCount], limit: int = TOP_LIMIT) -> list[UserPostCount]:
    """Highest post counts first; equal counts keep their input order."""
    return sorted(counts, key=lambda u: u.post_count, reverse=True)[:limit]


def select_most_commented(posts: list[Post], limit: int = TOP_LIMIT) -> list[Post]:
    """All posts tied for the maximum comment count, in input order, capped at limit."""
    if not posts:
        return []
    max_comments = max(p.comment_count or 0 for p in posts)
    return [p for p in posts if (p.comment_count or 0) == max_comments][:limit]


def select_latest(posts: list[Post], limit: int = TOP_LIMIT) -> list[Post]:
    """Posts with the highest ids first."""
    return sorted(posts, key=lambda p: p.id, reverse=True)[:limit]


class RankEngine:
    """Computes and caches user/post rankings from upstream data."""

    def __init__(self, fetcher: Fetcher, cache: RankCache, max_concurrency: int = 16):
        self.fetcher = fetcher
        self.cache = cache
        self.max_concurrency = max_concurrency
        # One lock per cache key: concurrent misses recompute once.
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def top_users(self) -> TopUsersResponse:
        """Top 5 users by number of posts."""
        entry = await self._cached(KEY_TOP_USERS, self._compute_top_users)
        return TopUsersResponse(
            cache_key=entry.key,
            expires_at=self._expiry(entry),
            items=entry.value,
        )

    async def posts(self, query_type: PostQueryType | str) -> PostsResponse:
        """Popular or latest posts.

        Raises:
            InvalidQueryType: If query_type is not popular/latest (checked before any fetch).
            DataSourceError: If any upstream fetch fails.
        """
        query_type = PostQueryType.parse(query_type)
        if query_type is PostQueryType.POPULAR:
            compute = self._compute_popular_posts
        else:
            compute = self._compute_latest_posts

        entry = await self._cached(posts_cache_key(query_type.value), compute)
        return PostsResponse(
            cache_key=entry.key,
            expires_at=self._expiry(entry),
            items=entry.value,
        )

    # ------------------------------------------------------------------
    # Cache discipline
    # ------------------------------------------------------------------

    async def _cached(self, key: str, compute: Callable[[], Awaitable[list[Any]]]) -> CacheEntry:
        entry = self.cache.entry(key)
        if entry is not None:
            logger.info(f"Rank cache HIT for {key}")
            return entry

        async with self._locks[key]:
            # Another request may have refreshed the key while we waited.
            entry = self.cache.entry(key)
            if entry is not None:
                logger.info(f"Rank cache HIT for {key} after wait")
                return entry

            logger.info(f"Rank cache MISS for {key}, computing from upstream")
            try:
                value = await compute()
            except FetchError as e:
                logger.error(f"Ranking {key} aborted, fetch of {e.resource_id} failed: {e.cause}")
                raise DataSourceError(f"Failed to compute {key}", resource_id=e.resource_id) from e
            except ValidationError as e:
                logger.error(f"Ranking {key} aborted, unexpected upstream payload: {e.error_count()} errors")
                raise DataSourceError(f"Failed to compute {key}: unexpected upstream payload") from e

            return self.cache.set(key, value)

    def _expiry(self, entry: CacheEntry) -> datetime:
        return datetime.fromtimestamp(entry.inserted_at + self.cache.ttl, tz=timezone.utc)

    # ------------------------------------------------------------------
    # Upstream fan-out
    # ------------------------------------------------------------------

    async def _gather(self, coros: Iterable[Awaitable[T]]) -> list[T]:
        """Run sub-fetches concurrently (bounded) and wait for all of them.

        The first failure is raised only after every sub-fetch has settled, so
        no partial fan-out is ever ranked and no task is left running.
        """
        sem = asyncio.Semaphore(self.max_concurrency)

        async def _run(coro: Awaitable[T]) -> T:
            async with sem:
                return await coro

        results = await asyncio.gather(*(_run(c) for c in coros), return_exceptions=True)
        for res in results:
            if isinstance(res, BaseException):
                raise res
        return results

    async def _fetch_users(self) -> list[tuple[str, str]]:
        users: list[tuple[str, str]] = []
        for item in await self.fetcher.fetch("users", "users"):
            try:
                if isinstance(item, dict):
                    users.append((str(item["id"]), str(item.get("name", ""))))
                else:
                    user_id, user_name = item
                    users.append((str(user_id), str(user_name)))
            except (KeyError, TypeError, ValueError) as e:
                raise FetchError("users", f"malformed user entry {item!r}") from e
        return users

    async def _fetch_user_posts(self, user_id: str) -> list[Post]:
        raw = await self.fetcher.fetch(f"users/{user_id}/posts", "posts")
        return [Post.model_validate(p) for p in raw]

    async def _fetch_user_post_count(self, user_id: str) -> int:
        # Posts are only counted here, never parsed.
        return len(await self.fetcher.fetch(f"users/{user_id}/posts", "posts"))

    async def _fetch_comment_count(self, post: Post) -> int:
        comments = await self.fetcher.fetch(f"posts/{post.id}/comments", "comments")
        return len(comments)

    async def _fetch_all_posts(self) -> list[Post]:
        users = await self._fetch_users()
        per_user = await self._gather(self._fetch_user_posts(user_id) for user_id, _ in users)
        return [post for posts in per_user for post in posts]

    # ------------------------------------------------------------------
    # Computations
    # ------------------------------------------------------------------

    async def _compute_top_users(self) -> list[UserPostCount]:
        users = await self._fetch_users()
        post_counts = await self._gather(self._fetch_user_post_count(user_id) for user_id, _ in users)
        counts = [
            UserPostCount(user_id=user_id, user_name=user_name, post_count=post_count)
            for (user_id, user_name), post_count in zip(users, post_counts)
        ]
        logger.info(f"Counted posts for {len(counts)} users")
        return rank_users_by_post_count(counts)

    async def _compute_popular_posts(self) -> list[Post]:
        posts = await self._fetch_all_posts()
        comment_counts = await self._gather(self._fetch_comment_count(p) for p in posts)
        annotated = [
            p.model_copy(update={"comment_count": count})
            for p, count in zip(posts, comment_counts)
        ]
        logger.info(f"Counted comments for {len(annotated)} posts")
        return select_most_commented(annotated)

    async def _compute_latest_posts(self) -> list[Post]:
        return select_latest(await self._fetch_all_posts())
