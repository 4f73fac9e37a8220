"""In-memory stores for window state and cached rankings.

Stores handle:
- WindowStore: bounded per-category number windows
- RankCache: TTL cache for ranking results

No fetching or ranking logic in stores - that belongs in services.
"""

from pulse.stores.cache import KEY_TOP_USERS, PREFIX_POSTS, RankCache, posts_cache_key
from pulse.stores.window import Category, WindowSnapshot, WindowStore

__all__ = [
    "KEY_TOP_USERS",
    "PREFIX_POSTS",
    "Category",
    "RankCache",
    "WindowSnapshot",
    "WindowStore",
    "posts_cache_key",
]
