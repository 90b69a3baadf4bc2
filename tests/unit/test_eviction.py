"""Tests for idle session eviction."""
import asyncio

import pytest

from chunkpy.core.config import ChunkUploadConfig
from chunkpy.core.upload import ChunkUploadCoordinator, ChunkSubmission
from chunkpy.core.upload.services import EvictionSweeper, SessionStore


@pytest.fixture
def store(tmp_path, clock):
    return SessionStore(tmp_path, clock=clock)


class TestEvictionSweeper:

    @pytest.mark.asyncio
    async def test_sweep_removes_idle(self, store, clock):
        await store.open("idle")
        clock.advance(30)
        await store.open("recent")
        clock.advance(40)

        evicted = await EvictionSweeper(store, session_ttl=60).sweep()

        assert evicted == ["idle"]
        assert "recent" in store
        assert "idle" not in store

    @pytest.mark.asyncio
    async def test_disabled_ttl(self, store, clock):
        await store.open("forever")
        clock.advance(10 ** 6)

        assert await EvictionSweeper(store, session_ttl=0).sweep() == []
        assert "forever" in store

    @pytest.mark.asyncio
    async def test_sweep_leaves_busy_session(self, store, clock):
        """A session with a write in flight is skipped without waiting."""
        busy = await store.open("busy")
        await store.open("idle")
        release = asyncio.Event()

        async def write():
            async with busy.guard.writer():
                await release.wait()

        writer = asyncio.create_task(write())
        await asyncio.sleep(0)
        clock.advance(120)

        evicted = await asyncio.wait_for(EvictionSweeper(store, session_ttl=60).sweep(), timeout=1)

        assert evicted == ["idle"]
        assert "busy" in store
        release.set()
        await writer

    @pytest.mark.asyncio
    async def test_start_without_interval_is_noop(self, store):
        sweeper = EvictionSweeper(store, session_ttl=60)

        sweeper.start()

        assert not sweeper.running

    @pytest.mark.asyncio
    async def test_background_sweep(self, store, clock):
        await store.open("stale")
        clock.advance(120)
        sweeper = EvictionSweeper(store, session_ttl=60, interval=0.01)

        sweeper.start()
        assert sweeper.running
        for _ in range(100):
            if "stale" not in store:
                break
            await asyncio.sleep(0.01)
        await sweeper.stop()

        assert "stale" not in store
        assert not sweeper.running

    @pytest.mark.asyncio
    async def test_coordinator_lifecycle(self, tmp_path, clock):
        config = ChunkUploadConfig(temp_path=tmp_path, session_ttl=60, sweep_interval=0.01)

        async with ChunkUploadCoordinator(config, clock=clock) as coordinator:
            await coordinator.append_chunk(ChunkSubmission("background", 1, b"x"))
            clock.advance(61)
            for _ in range(100):
                if coordinator.active_sessions == 0:
                    break
                await asyncio.sleep(0.01)

            assert coordinator.active_sessions == 0
