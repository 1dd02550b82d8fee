import os

os.environ["GALLERY_USERNAME"] = "owner"
os.environ["GALLERY_PASSWORD"] = "P@ssword123"
os.environ["SECRET_KEY"] = "test-secret-key-with-enough-entropy"
os.environ["REDIS_HOST"] = ""
os.environ["STORAGE_BACKEND"] = "memory"
os.environ["AUTH_MODE"] = "token"
os.environ["GUEST_MODE"] = "true"
os.environ["RATE_LIMIT_ENABLED"] = "true"

from typing import Generator  # noqa: E402

import pytest  # noqa: E402
from faker import Faker  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from gallery.core.config import settings  # noqa: E402
from gallery.core.tokens import issue_token  # noqa: E402
from gallery.main import app  # noqa: E402
from gallery.services.cache.rate_limiter import RateLimiter, get_rate_limiter  # noqa: E402
from gallery.services.storage import MemoryObjectStore, get_object_store  # noqa: E402

OWNER_USERNAME = "owner"
OWNER_PASSWORD = "P@ssword123"
START_TIME = 1_700_000_000.0


class FakeClock:
    """Settable clock returning epoch seconds"""

    def __init__(self, now: float = START_TIME):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def faker() -> Faker:
    """Create a Faker instance for generating test data."""
    return Faker()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def limiter(clock: FakeClock) -> RateLimiter:
    """Rate limiter without a shared store, driven by the fake clock."""
    return RateLimiter(clock=clock)


@pytest.fixture
def object_store() -> MemoryObjectStore:
    return MemoryObjectStore()


@pytest.fixture
def test_app(
    limiter: RateLimiter, object_store: MemoryObjectStore
) -> Generator[FastAPI, None, None]:
    """Application with a fresh limiter and an empty object store."""
    app.dependency_overrides[get_rate_limiter] = lambda: limiter
    app.dependency_overrides[get_object_store] = lambda: object_store

    yield app

    app.dependency_overrides.clear()


@pytest.fixture
def client(test_app: FastAPI) -> AsyncClient:
    """Async HTTP client bound to the test application, no network involved."""
    return AsyncClient(transport=ASGITransport(app=test_app), base_url="http://test")


@pytest.fixture
def access_token() -> str:
    return issue_token(
        {"username": OWNER_USERNAME, "sub": OWNER_USERNAME},
        settings.secret_key.get_secret_value(),
        ttl_seconds=3600,
    )


@pytest.fixture
def auth_headers(access_token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {access_token}"}
