import asyncio

import pytest

from core.exceptions import AgentTimeout
from utils.timeout_utils import first_settled, soft_timeout_for, with_soft_timeout


async def finish_after(delay, value):
    await asyncio.sleep(delay)
    return value


async def fail_after(delay, exc):
    await asyncio.sleep(delay)
    raise exc


class TestFirstSettled:
    @pytest.mark.asyncio
    async def test_fastest_result_wins(self):
        index, result = await first_settled(finish_after(0.2, "slow"), finish_after(0.01, "fast"))
        assert (index, result) == (1, "fast")

    @pytest.mark.asyncio
    async def test_first_failure_propagates(self):
        with pytest.raises(ValueError):
            await first_settled(fail_after(0.01, ValueError("boom")), finish_after(0.2, "late"))

    @pytest.mark.asyncio
    async def test_losers_are_cancelled(self):
        slow = asyncio.ensure_future(finish_after(10, "never"))
        await first_settled(slow, finish_after(0.01, "fast"))
        await asyncio.sleep(0)
        assert slow.cancelled()

    @pytest.mark.asyncio
    async def test_requires_an_awaitable(self):
        with pytest.raises(ValueError):
            await first_settled()


class TestWithSoftTimeout:
    @pytest.mark.asyncio
    async def test_returns_result_within_timeout(self):
        assert await with_soft_timeout(finish_after(0.01, "done"), 1) == "done"

    @pytest.mark.asyncio
    async def test_timer_wins_with_custom_error(self):
        with pytest.raises(AgentTimeout) as exc_info:
            await with_soft_timeout(finish_after(10, "hung"), 0.05, lambda: AgentTimeout(0.05))
        assert exc_info.value.timeout == 0.05

    @pytest.mark.asyncio
    async def test_timer_wins_with_default_error(self):
        with pytest.raises(asyncio.TimeoutError):
            await with_soft_timeout(finish_after(10, "hung"), 0.05)

    def test_soft_timeout_is_strictly_longer(self):
        assert soft_timeout_for(120, 5) == 125
        assert soft_timeout_for(120, 0) > 120
