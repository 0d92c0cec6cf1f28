import asyncio

import pytest

from azbclient.infrastructure.resilience.errors import NetworkFailureError, RequestTimeoutError
from azbclient.infrastructure.resilience.timeout_race import with_timeout

@pytest.mark.asyncio
async def test_returns_result_within_deadline():
    async def quick():
        return "done"
    assert await with_timeout(quick, 1) == "done"

@pytest.mark.asyncio
async def test_timeout_raises_and_cancels_call():
    cancelled = asyncio.Event()

    async def hang():
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            cancelled.set()
            raise

    with pytest.raises(RequestTimeoutError) as exc_info:
        await with_timeout(hang, 0.01)

    assert cancelled.is_set()
    assert exc_info.value.message == "Request timeout after 0.01s"
    assert isinstance(exc_info.value, NetworkFailureError)
    assert exc_info.value.timeout_seconds == 0.01

@pytest.mark.asyncio
async def test_timeout_message_formats_whole_seconds():
    async def hang():
        await asyncio.sleep(10)

    with pytest.raises(RequestTimeoutError) as exc_info:
        await with_timeout(hang, 0)
    assert exc_info.value.message == "Request timeout after 0s"

@pytest.mark.asyncio
async def test_errors_from_call_propagate_unchanged():
    async def broken():
        raise ValueError("bad")

    with pytest.raises(ValueError, match="bad"):
        await with_timeout(broken, 1)
