"""Number window aggregation.

Per request:
1. Validate the category (before any fetch)
2. Fetch fresh numbers for it, bounded by a short timeout
3. Merge them into the category window
4. Report previous window, current window, fetched numbers and average

Upstream failures never fail the request: a failed or slow fetch counts as
"no new numbers".
"""

import asyncio
import logging
from typing import Any

from pulse.errors import FetchError
from pulse.schemas import NumbersResponse
from pulse.services.fetcher import Fetcher
from pulse.stores.window import Category, Number, WindowStore, is_finite_number

logger = logging.getLogger("uvicorn.error")


class NumberAggregator:
    """Wires fetched numbers into the window store."""

    def __init__(self, store: WindowStore, fetcher: Fetcher, timeout: float = 0.5):
        self.store = store
        self.fetcher = fetcher
        self.timeout = timeout

    async def handle(self, category: Category | str) -> NumbersResponse:
        """Serve one /numbers/{category} request.

        Raises:
            InvalidCategory: If category is not one of p, f, e, r.
        """
        category = Category.parse(category)
        numbers = await self.fetch_numbers(category)
        snapshot = await self.store.merge_and_read(category, numbers)

        return NumbersResponse(
            window_prev_state=snapshot.previous,
            window_curr_state=snapshot.current,
            numbers=numbers,
            avg=snapshot.average,
        )

    async def fetch_numbers(self, category: Category) -> list[Number]:
        """Fetch new numbers, degrading to [] on failure or timeout."""
        resource = category.resource
        try:
            raw = await asyncio.wait_for(
                self.fetcher.fetch(resource, "numbers"),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Fetching {resource} numbers exceeded {self.timeout}s, using no new numbers")
            return []
        except FetchError as e:
            logger.warning(f"Error fetching {resource} numbers: {e.cause}")
            return []

        return _only_numbers(resource, raw)


def _only_numbers(resource: str, raw: list[Any]) -> list[Number]:
    numbers: list[Number] = []
    for value in raw:
        # JSON allows Infinity, NaN and ints beyond the float range
        if is_finite_number(value):
            numbers.append(value)
        else:
            logger.warning(f"Discarding non-numeric or non-finite value from {resource}: {value!r}")
    return numbers
