"""In-memory sliding windows of numbers, one per category.

Each window is an ordered set:
- insertion order is kept
- a value appears at most once
- length never exceeds window_size; the oldest values are evicted first

State lives for the process lifetime and is never persisted.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, localcontext
from enum import Enum
import logging
import math

from pulse.errors import InvalidCategory

logger = logging.getLogger("uvicorn.error")

Number = int | float


class Category(str, Enum):
    """Number categories accepted by the window store."""

    PRIME = "p"
    FIBONACCI = "f"
    EVEN = "e"
    RANDOM = "r"

    @property
    def resource(self) -> str:
        """Upstream resource that serves this category."""
        return _CATEGORY_RESOURCES[self]

    @classmethod
    def parse(cls, value: object) -> Category:
        """Coerce a raw path value into a Category or raise InvalidCategory."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except (TypeError, ValueError):
            raise InvalidCategory(value) from None


_CATEGORY_RESOURCES = {
    Category.PRIME: "primes",
    Category.FIBONACCI: "fibo",
    Category.EVEN: "even",
    Category.RANDOM: "rand",
}


@dataclass(frozen=True)
class WindowSnapshot:
    """Before/after view of one merge."""

    previous: list[Number]
    current: list[Number]
    average: float


def is_finite_number(value: object) -> bool:
    """True for int/float values representable as a finite float (bool excluded)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


def mean_2dp(values: list[Number]) -> float:
    """Arithmetic mean rounded half-up to 2 decimals; 0 for no values.

    Raises:
        ValueError: If any value is not a finite number.
    """
    if not values:
        return 0
    if not all(is_finite_number(v) for v in values):
        raise ValueError("mean_2dp needs finite numbers")
    with localcontext() as ctx:
        # enough digits to quantize anything up to the float range
        ctx.prec = 400
        total = sum((Decimal(str(v)) for v in values), Decimal(0))
        mean = total / Decimal(len(values))
        return float(mean.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


class WindowStore:
    """Fixed-capacity ordered sets of numbers keyed by Category."""

    def __init__(self, window_size: int):
        if not isinstance(window_size, int) or window_size < 1:
            raise ValueError(f"window_size must be a positive integer, got {window_size!r}")
        self.window_size = window_size
        self._windows: dict[Category, list[Number]] = {c: [] for c in Category}
        self._locks: dict[Category, asyncio.Lock] = {c: asyncio.Lock() for c in Category}

    def merge(self, category: Category | str, new_values: list[Number]) -> list[Number]:
        """Fold new values into a category window.

        Args:
            category: Target category.
            new_values: Values in arrival order; may repeat each other or the window.
                Values that are not finite numbers are skipped.

        Returns:
            Copy of the window as it was before this merge.

        Raises:
            InvalidCategory: If category is not one of p, f, e, r.
        """
        category = Category.parse(category)
        window = self._windows[category]
        previous = list(window)

        for value in new_values:
            if not is_finite_number(value):
                logger.warning(f"Window {category.value}: skipping non-finite value {value!r}")
                continue
            if value not in window:
                window.append(value)

        overflow = len(window) - self.window_size
        if overflow > 0:
            del window[:overflow]

        return previous

    def current_state(self, category: Category | str) -> list[Number]:
        """Copy of the live window for a category."""
        return list(self._windows[Category.parse(category)])

    def average(self, category: Category | str) -> float:
        """Mean of the live window, rounded to 2 decimals (0 when empty)."""
        return mean_2dp(self._windows[Category.parse(category)])

    async def merge_and_read(self, category: Category | str, new_values: list[Number]) -> WindowSnapshot:
        """Merge and read back under the category lock.

        Concurrent requests for the same category see consistent before/after pairs.
        """
        category = Category.parse(category)
        async with self._locks[category]:
            previous = self.merge(category, new_values)
            snapshot = WindowSnapshot(
                previous=previous,
                current=self.current_state(category),
                average=self.average(category),
            )
        logger.debug(
            f"Window {category.value}: {len(previous)} -> {len(snapshot.current)} values "
            f"(capacity {self.window_size})"
        )
        return snapshot
