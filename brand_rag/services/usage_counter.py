"""Atomic fixed-window quota counters.

Each embedding reserves one unit in four windows (user hour, user day,
global hour, global day). Increments are atomic in the cache backend, so
concurrent requests cannot both slip under a ceiling the way a
count-then-write check can.
"""

import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from brand_rag.core.logging import get_logger
from brand_rag.models.vectors import RateLimitDecision
from brand_rag.services.cache.base import ICacheBackend

logger = get_logger(__name__)

HOUR_SECONDS = 3600
DAY_SECONDS = 86400


@dataclass
class WindowLimits:
    """Effective ceilings for one reservation."""

    user_per_hour: int
    user_per_day: int
    global_per_hour: int
    global_per_day: int


@dataclass
class _Window:
    key: str
    ceiling: int
    ttl: int
    reason: str


class UsageWindowCounter:
    """Reserves quota in fixed hour and day windows.

    Usage:
        counter = UsageWindowCounter(backend)
        decision = await counter.reserve("user-1", limits)
    """

    def __init__(
        self,
        backend: ICacheBackend,
        prefix: str = "rag_quota",
        clock: Callable[[], float] = time.time,
    ):
        self.backend = backend
        self.prefix = prefix
        self._clock = clock

    def now(self) -> float:
        return self._clock()

    def _windows(self, user_id: str, limits: WindowLimits, now: Optional[float] = None) -> List[_Window]:
        if now is None:
            now = self._clock()
        hour = int(now // HOUR_SECONDS)
        day = int(now // DAY_SECONDS)
        return [
            _Window(
                key=f"{self.prefix}:user:{user_id}:hour:{hour}",
                ceiling=limits.user_per_hour,
                ttl=HOUR_SECONDS,
                reason="Rate limit exceeded: {used}/{ceiling} embeddings used in the last hour",
            ),
            _Window(
                key=f"{self.prefix}:user:{user_id}:day:{day}",
                ceiling=limits.user_per_day,
                ttl=DAY_SECONDS,
                reason="Daily rate limit exceeded: {used}/{ceiling} embeddings used in the last 24 hours",
            ),
            _Window(
                key=f"{self.prefix}:global:hour:{hour}",
                ceiling=limits.global_per_hour,
                ttl=HOUR_SECONDS,
                reason="Global rate limit exceeded: {used}/{ceiling} embeddings used in the last hour",
            ),
            _Window(
                key=f"{self.prefix}:global:day:{day}",
                ceiling=limits.global_per_day,
                ttl=DAY_SECONDS,
                reason="Global daily rate limit exceeded: {used}/{ceiling} embeddings used in the last 24 hours",
            ),
        ]

    async def reserve(
        self, user_id: str, limits: WindowLimits, now: Optional[float] = None
    ) -> RateLimitDecision:
        """Take one unit from every window, or none of them.

        Args:
            now: Time the windows are computed for; pass the same value to
                release() to undo this reservation.

        Raises:
            Exception: Whatever the backend raised. Increments made before
                the failure are rolled back first.
        """
        taken: List[_Window] = []
        try:
            for window in self._windows(user_id, limits, now):
                count = await self.backend.increment(window.key, 1, ttl=window.ttl)
                taken.append(window)
                if count > window.ceiling:
                    await self._rollback(taken)
                    reason = window.reason.format(used=count - 1, ceiling=window.ceiling)
                    logger.info(f"[RAG RateLimit] Quota denied for user {user_id}: {reason}")
                    return RateLimitDecision(allowed=False, reason=reason)
        except Exception:
            await self._rollback(taken)
            raise

        return RateLimitDecision(allowed=True)

    async def release(self, user_id: str, now: Optional[float] = None) -> None:
        """Give back a granted reservation, e.g. when the write it paid for failed."""
        await self._rollback(self._windows(user_id, WindowLimits(0, 0, 0, 0), now))

    async def _rollback(self, windows: List[_Window]) -> None:
        for window in windows:
            try:
                # A key that expired meanwhile is recreated with an expiry
                await self.backend.increment(window.key, -1, ttl=window.ttl)
            except Exception as e:
                logger.warning(f"[RAG RateLimit] Failed to roll back quota counter {window.key}: {e}")

    async def usage(self, user_id: str) -> Tuple[int, int]:
        """Current (hour, day) counts for a user."""
        windows = self._windows(user_id, WindowLimits(0, 0, 0, 0))
        hour = await self.backend.get(windows[0].key)
        day = await self.backend.get(windows[1].key)
        return int(hour or 0), int(day or 0)
