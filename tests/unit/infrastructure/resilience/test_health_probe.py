import httpx
import pytest

from azbclient.domain.models.common import HealthState
from azbclient.infrastructure.resilience.health_probe import HealthProbe

from conftest import HEALTH_PATH, json_response

HEALTH_URL = "http://backend.test/health"

@pytest.fixture
def probe(http_client, clock):
    return HealthProbe(http_client, HEALTH_URL, HealthState(), ttl_seconds=30, timeout_seconds=5, clock=clock.monotonic)

@pytest.mark.asyncio
async def test_healthy_backend(probe, backend, clock):
    assert await probe.check() is True
    assert probe.state.is_awake is True
    assert probe.state.last_checked_at == clock.now
    request = backend.calls(HEALTH_PATH)[0]
    assert request.method == "GET"
    assert request.headers["Content-Type"] == "application/json"

@pytest.mark.asyncio
async def test_non_2xx_means_asleep(probe, backend):
    backend.queue(HEALTH_PATH, json_response(503, {"error": "starting"}))
    assert await probe.check() is False
    assert probe.state.is_awake is False
    assert probe.state.last_checked_at is not None

@pytest.mark.asyncio
async def test_network_error_means_asleep(probe, backend):
    backend.queue(HEALTH_PATH, httpx.ConnectError("connection refused"))
    assert await probe.check() is False

@pytest.mark.asyncio
async def test_result_is_cached_within_ttl(probe, backend, clock):
    await probe.check()
    clock.advance(29)
    assert await probe.check() is True
    assert len(backend.calls(HEALTH_PATH)) == 1

@pytest.mark.asyncio
async def test_cached_asleep_result_is_reused(probe, backend, clock):
    backend.queue(HEALTH_PATH, json_response(503, {}), json_response(200, {}))
    assert await probe.check() is False
    clock.advance(10)
    assert await probe.check() is False
    assert len(backend.calls(HEALTH_PATH)) == 1

@pytest.mark.asyncio
async def test_probe_repeats_after_ttl(probe, backend, clock):
    backend.queue(HEALTH_PATH, json_response(503, {}), json_response(200, {}))
    assert await probe.check() is False
    clock.advance(30)
    assert await probe.check() is True
    assert len(backend.calls(HEALTH_PATH)) == 2

def test_never_probed_is_not_fresh(probe):
    assert probe.is_fresh() is False
