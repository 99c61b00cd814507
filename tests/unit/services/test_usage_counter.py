"""Tests for the atomic fixed-window quota counters."""

import pytest
from unittest.mock import AsyncMock, MagicMock

from brand_rag.services.cache.memory_backend import MemoryBackend
from brand_rag.services.usage_counter import UsageWindowCounter, WindowLimits


def limits(user_hour=10, user_day=100, global_hour=1000, global_day=10000):
    return WindowLimits(user_hour, user_day, global_hour, global_day)


class TestReserve:
    """Tests for UsageWindowCounter.reserve."""

    @pytest.mark.asyncio
    async def test_reserves_every_window(self, connected_memory_backend):
        counter = UsageWindowCounter(connected_memory_backend, clock=lambda: 7200.0)

        decision = await counter.reserve("u1", limits())

        assert decision.allowed is True
        assert sorted(connected_memory_backend.get_all_keys()) == [
            "rag_quota:global:day:0",
            "rag_quota:global:hour:2",
            "rag_quota:user:u1:day:0",
            "rag_quota:user:u1:hour:2",
        ]
        assert await counter.usage("u1") == (1, 1)

    @pytest.mark.asyncio
    async def test_denial_rolls_back_all_windows(self, connected_memory_backend):
        counter = UsageWindowCounter(connected_memory_backend)
        await counter.reserve("u1", limits(user_hour=1))

        decision = await counter.reserve("u1", limits(user_hour=1))

        assert decision.allowed is False
        assert decision.reason == "Rate limit exceeded: 1/1 embeddings used in the last hour"
        assert await counter.usage("u1") == (1, 1)

    @pytest.mark.asyncio
    async def test_global_ceiling_applies_across_users(self, connected_memory_backend):
        counter = UsageWindowCounter(connected_memory_backend)
        await counter.reserve("u1", limits(global_hour=2))
        await counter.reserve("u2", limits(global_hour=2))

        decision = await counter.reserve("u3", limits(global_hour=2))

        assert decision.allowed is False
        assert decision.reason.startswith("Global rate limit exceeded: 2/2")
        # u3's own windows were rolled back
        assert await counter.usage("u3") == (0, 0)

    @pytest.mark.asyncio
    async def test_daily_window(self, connected_memory_backend):
        counter = UsageWindowCounter(connected_memory_backend)
        await counter.reserve("u1", limits(user_day=1))

        decision = await counter.reserve("u1", limits(user_day=1))

        assert decision.reason == "Daily rate limit exceeded: 1/1 embeddings used in the last 24 hours"

    @pytest.mark.asyncio
    async def test_hour_window_expires(self):
        now = [100.0]
        backend = MemoryBackend(clock=lambda: now[0])
        await backend.connect()
        counter = UsageWindowCounter(backend, clock=lambda: now[0])
        await counter.reserve("u1", limits(user_hour=1))

        now[0] += 3600
        decision = await counter.reserve("u1", limits(user_hour=1))

        assert decision.allowed is True

    @pytest.mark.asyncio
    async def test_backend_error_rolls_back_and_raises(self):
        backend = MagicMock()
        backend.increment = AsyncMock(side_effect=[1, RuntimeError("redis down"), 0])
        counter = UsageWindowCounter(backend)

        with pytest.raises(RuntimeError):
            await counter.reserve("u1", limits())

        rollback = backend.increment.await_args_list[-1]
        assert rollback.args[1] == -1

    @pytest.mark.asyncio
    async def test_rollback_keeps_window_expiry(self):
        backend = MagicMock()
        backend.increment = AsyncMock(side_effect=[1, RuntimeError("redis down"), 0])
        counter = UsageWindowCounter(backend)

        with pytest.raises(RuntimeError):
            await counter.reserve("u1", limits())

        rollback = backend.increment.await_args_list[-1]
        assert rollback.kwargs["ttl"] == 3600


class TestRelease:
    """Tests for giving back a granted reservation."""

    @pytest.mark.asyncio
    async def test_release_restores_every_window(self, connected_memory_backend):
        counter = UsageWindowCounter(connected_memory_backend)
        await counter.reserve("u1", limits(user_hour=1))
        reserved_at = counter.now()
        await counter.reserve("u2", limits(user_hour=1), now=reserved_at)

        await counter.release("u2", now=reserved_at)

        assert await counter.usage("u2") == (0, 0)
        assert await counter.usage("u1") == (1, 1)
        assert (await counter.reserve("u2", limits(user_hour=1, global_hour=2))).allowed is True

    @pytest.mark.asyncio
    async def test_release_targets_the_reserved_windows(self):
        now = [3500.0]
        backend = MemoryBackend(clock=lambda: now[0])
        await backend.connect()
        counter = UsageWindowCounter(backend, clock=lambda: now[0])
        reserved_at = counter.now()
        await counter.reserve("u1", limits(), now=reserved_at)

        # The hour rolls over before the failed write is released
        now[0] = 3700.0
        await counter.release("u1", now=reserved_at)

        assert await backend.get("rag_quota:user:u1:hour:0") == 0
        assert await backend.get("rag_quota:user:u1:hour:1") is None

    @pytest.mark.asyncio
    async def test_release_after_expiry_sets_ttl(self):
        now = [0.0]
        backend = MemoryBackend(clock=lambda: now[0])
        await backend.connect()
        counter = UsageWindowCounter(backend, clock=lambda: now[0])
        await counter.reserve("u1", limits(), now=0.0)

        now[0] = 3600.0 + 1
        await counter.release("u1", now=0.0)

        entry = backend.get_raw_entry("rag_quota:user:u1:hour:0")
        assert entry.value == -1
        assert entry.expires_at == now[0] + 3600
