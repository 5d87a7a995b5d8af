"""
Unit tests for KeyedLock.

Tests per-key exclusion and that idle keys are forgotten.
"""

import asyncio
import contextlib

import pytest

from arbdesk.utils.locks import KeyedLock


class TestKeyedLock:
    """Tests for KeyedLock."""

    @pytest.mark.asyncio
    async def test_same_key_is_exclusive(self) -> None:
        """Test holders of one key run one at a time."""
        locks = KeyedLock()
        active = 0
        peak = 0

        async def worker() -> None:
            nonlocal active, peak
            async with locks.hold("alice"):
                active += 1
                peak = max(peak, active)
                await asyncio.sleep(0.001)
                active -= 1

        await asyncio.gather(*(worker() for _ in range(5)))

        assert peak == 1

    @pytest.mark.asyncio
    async def test_different_keys_do_not_wait(self) -> None:
        """Test another key can be held while one is taken."""
        locks = KeyedLock()

        async with locks.hold("alice"):
            async with asyncio.timeout(0.5):
                async with locks.hold("bob"):
                    assert len(locks) == 2

    @pytest.mark.asyncio
    async def test_released_key_is_dropped(self) -> None:
        """Test no lock is kept once nobody uses a key."""
        locks = KeyedLock()

        async with locks.hold("alice"):
            assert "alice" in locks

        assert "alice" not in locks
        assert len(locks) == 0

    @pytest.mark.asyncio
    async def test_kept_while_waiters_remain(self) -> None:
        """Test the lock survives its holder while another task waits."""
        locks = KeyedLock()
        order: list[str] = []

        async def second() -> None:
            async with locks.hold("alice"):
                order.append("second")

        async with locks.hold("alice"):
            waiter = asyncio.create_task(second())
            await asyncio.sleep(0)
            order.append("first")

        await waiter

        assert order == ["first", "second"]
        assert len(locks) == 0

    @pytest.mark.asyncio
    async def test_cancelled_waiter_is_dropped(self) -> None:
        """Test a waiter cancelled before acquiring leaves nothing behind."""
        locks = KeyedLock()

        async def wait_forever() -> None:
            async with locks.hold("alice"):
                pass

        async with locks.hold("alice"):
            waiter = asyncio.create_task(wait_forever())
            await asyncio.sleep(0)
            waiter.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await waiter

        assert len(locks) == 0

