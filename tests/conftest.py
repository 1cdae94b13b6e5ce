"""Global test fixtures and utilities for loadgen tests"""
import random
from urllib.parse import parse_qs

import httpx
import pytest

from loadgen.client import SocialNetworkClient
from loadgen.metrics import RecordingSink
from loadgen.models import SeedContext

BASE_URL = "http://socialnet.test"


# ============================================================================
# Stub HTTP server
# ============================================================================

class StubServer:
    """
    Stands in for the social network application.

    `statuses` maps a request path to the status it answers with; everything
    else gets `default_status`. Every request is kept for assertions.
    """

    def __init__(self, default_status: int = 200, statuses: dict = None):
        self.default_status = default_status
        self.statuses = statuses or {}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status = self.statuses.get(request.url.path, self.default_status)
        body = "Success" if status == 200 else f"Error {status}"
        return httpx.Response(status, text=body)

    @property
    def paths(self) -> list[str]:
        return [request.url.path for request in self.requests]

    def form(self, index: int) -> dict:
        """Decoded form body of the index-th request"""
        body = self.requests[index].content.decode()
        return {key: values[0] for key, values in parse_qs(body, keep_blank_values=True).items()}


@pytest.fixture
def stub_server():
    """Stub that answers 200 to everything"""
    return StubServer()


@pytest.fixture
def server_factory():
    """StubServer class, for tests that need custom statuses"""
    return StubServer


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def make_client(sink):
    """Factory for clients wired to a stub server"""
    clients = []

    def _make(server, timeout: float = 10.0):
        client = SocialNetworkClient(
            BASE_URL,
            sink,
            timeout=timeout,
            transport=httpx.MockTransport(server),
        )
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.close()


# ============================================================================
# Workload Fixtures
# ============================================================================

class SleepRecorder:
    """Replacement for time.sleep that records requested pauses"""

    def __init__(self):
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def sleeper():
    return SleepRecorder()


@pytest.fixture
def seed_context():
    """Seed user registered during setup"""
    return SeedContext(seed_user_id=1, seed_ready=True)


@pytest.fixture
def rng():
    """Deterministic random source"""
    return random.Random(1234)
