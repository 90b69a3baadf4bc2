"""Tests for the per-session writer/closer guard."""
import asyncio

import pytest

from chunkpy.core.upload.models import SessionGuard


class TestSessionGuard:

    @pytest.mark.asyncio
    async def test_writers_run_concurrently(self):
        guard = SessionGuard()
        both_inside = asyncio.Event()
        inside = 0

        async def write():
            nonlocal inside
            async with guard.writer() as admitted:
                assert admitted
                inside += 1
                if inside == 2:
                    both_inside.set()
                await asyncio.wait_for(both_inside.wait(), timeout=1)

        await asyncio.gather(write(), write())
        assert guard.writers == 0

    @pytest.mark.asyncio
    async def test_exclusive_waits_for_writers(self):
        guard = SessionGuard()
        order = []
        release = asyncio.Event()

        async def write():
            async with guard.writer():
                await release.wait()
                order.append("writer done")

        async def close():
            async with guard.exclusive() as admitted:
                order.append("exclusive")
                assert admitted

        writer = asyncio.create_task(write())
        await asyncio.sleep(0)
        closer = asyncio.create_task(close())
        await asyncio.sleep(0)
        assert order == []

        release.set()
        await asyncio.gather(writer, closer)

        assert order == ["writer done", "exclusive"]

    @pytest.mark.asyncio
    async def test_writer_blocked_during_exclusive(self):
        guard = SessionGuard()
        order = []

        async def write():
            async with guard.writer() as admitted:
                order.append(("writer", admitted))

        async with guard.exclusive():
            writer = asyncio.create_task(write())
            await asyncio.sleep(0)
            order.append("exclusive")

        await writer
        assert order == ["exclusive", ("writer", True)]

    @pytest.mark.asyncio
    async def test_close_refuses_pending_writer(self):
        guard = SessionGuard()

        async def write():
            async with guard.writer() as admitted:
                return admitted

        async with guard.exclusive():
            writer = asyncio.create_task(write())
            await asyncio.sleep(0)
            await guard.close()

        assert await writer is False
        assert guard.closed

    @pytest.mark.asyncio
    async def test_closed_refuses_everyone(self):
        guard = SessionGuard()
        await guard.close()

        async with guard.writer() as writer_admitted:
            pass
        async with guard.exclusive() as exclusive_admitted:
            pass

        assert writer_admitted is False
        assert exclusive_admitted is False

    @pytest.mark.asyncio
    async def test_second_exclusive_refused_after_close(self):
        guard = SessionGuard()
        results = []

        async def finish():
            async with guard.exclusive() as admitted:
                results.append(admitted)
                if admitted:
                    await guard.close()

        await asyncio.gather(finish(), finish())

        assert sorted(results) == [False, True]

    @pytest.mark.asyncio
    async def test_cancelled_exclusive_readmits_writers(self):
        guard = SessionGuard()
        release = asyncio.Event()

        async def hold():
            async with guard.writer():
                await release.wait()

        async def write():
            async with guard.writer() as admitted:
                return admitted

        async def finish():
            async with guard.exclusive():
                pass

        holder = asyncio.create_task(hold())
        await asyncio.sleep(0)
        closer = asyncio.create_task(finish())
        await asyncio.sleep(0)
        late = asyncio.create_task(write())
        await asyncio.sleep(0)
        assert not late.done()

        closer.cancel()
        with pytest.raises(asyncio.CancelledError):
            await closer

        # admitted while the first writer is still inside
        assert await asyncio.wait_for(late, timeout=1) is True
        release.set()
        await holder
        assert not guard.busy
        assert not guard.closed

    @pytest.mark.asyncio
    async def test_busy(self):
        guard = SessionGuard()
        assert not guard.busy

        async with guard.writer():
            assert guard.busy
        async with guard.exclusive():
            assert guard.busy

        assert not guard.busy
