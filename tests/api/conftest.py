"""Shared fixtures for API tests."""

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from catalog_service.catalog.memory import reset_memory_stores
from catalog_service.infrastructure.event_publisher import (
    InMemoryEventPublisher,
    set_event_publisher,
)
from catalog_service.main import app


@pytest.fixture(autouse=True)
def fresh_state(publisher: InMemoryEventPublisher) -> Iterator[None]:
    """Give every test empty stores and a recording publisher."""
    reset_memory_stores()
    set_event_publisher(publisher)
    yield
    set_event_publisher(None)
    reset_memory_stores()


@pytest.fixture
def client() -> TestClient:
    """Create test client without identity headers."""
    return TestClient(app)


def _identity(tenant: str, user: str, roles: str) -> dict[str, str]:
    return {"X-Tenant-ID": tenant, "X-User-ID": user, "X-Roles": roles}


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return _identity("tenant-a", "admin-1", "ROLE_ADMIN")


@pytest.fixture
def seller_headers() -> dict[str, str]:
    return _identity("tenant-a", "seller-1", "ROLE_SELLER")


@pytest.fixture
def other_seller_headers() -> dict[str, str]:
    return _identity("tenant-a", "seller-2", "SELLER")


@pytest.fixture
def buyer_headers() -> dict[str, str]:
    """Authenticated caller without catalog roles."""
    return _identity("tenant-a", "buyer-1", "")


@pytest.fixture
def tenant_b_headers() -> dict[str, str]:
    return _identity("tenant-b", "seller-9", "SELLER")
