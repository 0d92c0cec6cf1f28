import base64
import json
from typing import Any, Callable, Dict, List, Union

import httpx
import pytest
from typer.testing import CliRunner

from azbclient.domain.models.common import HealthState
from azbclient.infrastructure.auth.invalidation import SignalBus, AuthInvalidator
from azbclient.infrastructure.auth.token_store import TokenStore
from azbclient.infrastructure.config.settings import ClientSettings, clear_test_config
from azbclient.infrastructure.resilience.request_orchestrator import RequestOrchestrator
from azbclient.infrastructure.storage.memory_storage import InMemoryStorage

BASE_URL = "http://backend.test/api"
HEALTH_PATH = "/health"

Outcome = Union[Callable[[httpx.Request], httpx.Response], Exception]


def json_response(status: int, body: Any) -> Callable[[httpx.Request], httpx.Response]:
    return lambda request: httpx.Response(status, json=body)


def text_response(status: int, body: str) -> Callable[[httpx.Request], httpx.Response]:
    return lambda request: httpx.Response(status, text=body)


class FakeClock:
    """Monotonic clock, wall clock and sleep that only move when told to."""

    def __init__(self, monotonic_start: float = 1_000.0, wall_start: float = 1_700_000_000.0):
        self.now = monotonic_start
        self.wall = wall_start
        self.sleeps: List[float] = []

    def monotonic(self) -> float:
        return self.now

    def time(self) -> float:
        return self.wall

    def advance(self, seconds: float) -> None:
        self.now += seconds
        self.wall += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.advance(seconds)


class FakeBackend:
    """httpx.MockTransport handler with queued outcomes per URL path.

    The last queued outcome for a path repeats. /health answers 200 unless
    something else was queued; unknown paths answer 404.
    """

    def __init__(self):
        self.routes: Dict[str, List[Outcome]] = {}
        self.requests: List[httpx.Request] = []

    def queue(self, path: str, *outcomes: Outcome) -> None:
        self.routes.setdefault(path, []).extend(outcomes)

    def calls(self, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        outcomes = self.routes.get(request.url.path)
        if not outcomes:
            if request.url.path == HEALTH_PATH:
                return httpx.Response(200, json={"status": "ok"})
            return httpx.Response(404, json={"error": "Not found"})
        outcome = outcomes.pop(0) if len(outcomes) > 1 else outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome(request)


@pytest.fixture
def make_token() -> Callable[..., str]:
    """Builds an unsigned JWT whose payload holds the given claims."""
    def _encode(part: Dict[str, Any]) -> str:
        raw = json.dumps(part).encode()
        return base64.urlsafe_b64encode(raw).rstrip(b"=").decode()

    def _make(**claims: Any) -> str:
        return f"{_encode({'alg': 'HS256', 'typ': 'JWT'})}.{_encode(claims)}.signature"
    return _make


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def http_client(backend: FakeBackend) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(backend))


@pytest.fixture
def settings() -> ClientSettings:
    return ClientSettings(api_base_url=BASE_URL)


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def token_store(storage: InMemoryStorage) -> TokenStore:
    return TokenStore(storage)


@pytest.fixture
def signals() -> SignalBus:
    return SignalBus()


@pytest.fixture
def invalidator(token_store: TokenStore, signals: SignalBus) -> AuthInvalidator:
    return AuthInvalidator(token_store, signals)


@pytest.fixture
def events() -> list:
    return []


@pytest.fixture
def orchestrator(
    settings: ClientSettings,
    token_store: TokenStore,
    invalidator: AuthInvalidator,
    http_client: httpx.AsyncClient,
    clock: FakeClock,
    events: list,
) -> RequestOrchestrator:
    """Orchestrator wired to the fake backend and the fake clock."""
    return RequestOrchestrator(
        settings=settings,
        token_store=token_store,
        invalidator=invalidator,
        http_client=http_client,
        health_state=HealthState(),
        sleep=clock.sleep,
        clock=clock.monotonic,
        wall_clock=clock.time,
        event_listener=events.append,
    )


@pytest.fixture(scope="session")
def runner():
    """Provides a Typer CliRunner instance."""
    return CliRunner()


@pytest.fixture(autouse=True)
def reset_test_config():
    yield
    clear_test_config()
