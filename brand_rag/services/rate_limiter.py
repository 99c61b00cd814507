"""Per-user embedding quotas.

The check counts the user's recently created vectors against hourly and
daily ceilings. Any failure while deciding fails open: a broken limiter
must never block content generation.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Tuple

from brand_rag.core.interfaces import IDocumentStore
from brand_rag.core.logging import get_logger
from brand_rag.models.system_config import (
    SystemConfig,
    UserRateLimitOverride,
    user_rate_limit_path,
)
from brand_rag.models.vectors import RateLimitDecision, user_vectors_path
from brand_rag.services.config_cache import ConfigCache
from brand_rag.services.usage_counter import UsageWindowCounter, WindowLimits

logger = get_logger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class QuotaReservation:
    """Outcome of RateLimiter.acquire().

    Holds the counter windows it took, if any, so a failed write can give
    them back.
    """

    user_id: str
    decision: RateLimitDecision
    counter: Optional[UsageWindowCounter] = None
    reserved_at: Optional[float] = None

    @property
    def allowed(self) -> bool:
        return self.decision.allowed

    @property
    def reason(self) -> Optional[str]:
        return self.decision.reason

    async def release(self) -> None:
        """Undo the counter reservation. Never raises; safe to call twice."""
        counter, self.counter = self.counter, None
        if counter is None:
            return
        try:
            await counter.release(self.user_id, now=self.reserved_at)
            logger.info(f"[RAG RateLimit] Released quota reservation for user {self.user_id}")
        except Exception as e:
            logger.warning(f"[RAG RateLimit] Failed to release quota for user {self.user_id}: {e}")


class RateLimiter:
    """Decides whether a user may generate another embedding right now."""

    def __init__(
        self,
        store: IDocumentStore,
        config_cache: ConfigCache,
        counter: Optional[UsageWindowCounter] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        """
        Args:
            store: Document store holding vectors and per-user overrides.
            config_cache: Shared runtime config.
            counter: Optional atomic window counter used by acquire().
            clock: Source of the current UTC time.
        """
        self._store = store
        self._config_cache = config_cache
        self._counter = counter
        self._clock = clock

    async def _effective_ceilings(self, user_id: str, config: SystemConfig) -> Tuple[int, int]:
        limits = config.rate_limiting
        record = await self._store.get(user_rate_limit_path(user_id))
        if record is not None:
            override = UserRateLimitOverride.model_validate(record)
            if override.enabled:
                hourly = override.max_embeddings_per_hour
                daily = override.max_embeddings_per_day
                return (
                    hourly if hourly is not None else limits.user_max_per_hour,
                    daily if daily is not None else limits.user_max_per_day,
                )
        return limits.user_max_per_hour, limits.user_max_per_day

    async def _count_since(self, user_id: str, since: datetime) -> int:
        docs = await self._store.query(
            user_vectors_path(user_id), "metadata.createdAt", ">=", since
        )
        return len(docs)

    async def _evaluate(
        self, user_id: str
    ) -> Tuple[RateLimitDecision, Optional[SystemConfig], Optional[Tuple[int, int]]]:
        config = await self._config_cache.load()
        if not config.rate_limiting.enabled:
            return RateLimitDecision(allowed=True), config, None

        hourly, daily = await self._effective_ceilings(user_id, config)
        now = self._clock()

        hour_count = await self._count_since(user_id, now - timedelta(hours=1))
        if hour_count >= hourly:
            return RateLimitDecision(
                allowed=False,
                reason=f"Rate limit exceeded: {hour_count}/{hourly} embeddings used in the last hour",
            ), config, (hourly, daily)

        day_count = await self._count_since(user_id, now - timedelta(hours=24))
        if day_count >= daily:
            return RateLimitDecision(
                allowed=False,
                reason=f"Daily rate limit exceeded: {day_count}/{daily} embeddings used in the last 24 hours",
            ), config, (hourly, daily)

        return RateLimitDecision(allowed=True), config, (hourly, daily)

    async def check_rate_limit(self, user_id: str) -> RateLimitDecision:
        """Pre-flight quota check. Never raises; errors allow the request."""
        try:
            decision, _, _ = await self._evaluate(user_id)
        except Exception as e:
            logger.error(f"[RAG RateLimit] Error checking rate limit for user {user_id}: {e}")
            return RateLimitDecision(allowed=True)

        if not decision.allowed:
            logger.info(f"[RAG RateLimit] User {user_id} denied: {decision.reason}")
        return decision

    async def acquire(self, user_id: str) -> QuotaReservation:
        """Check and, when a counter is configured, reserve one unit of quota.

        The reservation closes the window between the count query and the
        vector write. Counter failures fail open like the check itself.
        Call release() on the result if the write does not happen.
        """
        try:
            decision, config, ceilings = await self._evaluate(user_id)
        except Exception as e:
            logger.error(f"[RAG RateLimit] Error checking rate limit for user {user_id}: {e}")
            return QuotaReservation(user_id, RateLimitDecision(allowed=True))

        if not decision.allowed:
            logger.info(f"[RAG RateLimit] User {user_id} denied: {decision.reason}")
            return QuotaReservation(user_id, decision)
        if self._counter is None or ceilings is None:
            return QuotaReservation(user_id, decision)

        hourly, daily = ceilings
        limits = WindowLimits(
            user_per_hour=hourly,
            user_per_day=daily,
            global_per_hour=config.rate_limiting.global_max_per_hour,
            global_per_day=config.rate_limiting.global_max_per_day,
        )
        reserved_at = self._counter.now()
        try:
            decision = await self._counter.reserve(user_id, limits, now=reserved_at)
        except Exception as e:
            logger.warning(f"[RAG RateLimit] Quota counter unavailable, allowing user {user_id}: {e}")
            return QuotaReservation(user_id, RateLimitDecision(allowed=True))

        if not decision.allowed:
            return QuotaReservation(user_id, decision)
        return QuotaReservation(user_id, decision, counter=self._counter, reserved_at=reserved_at)
