"""Shared fixtures for catalog tests."""

from collections.abc import Callable
from typing import Any

import pytest

from catalog_service.application.category_manager import CategoryManager
from catalog_service.application.product_manager import ProductManager
from catalog_service.catalog.memory import InMemoryCategoryStore, InMemoryProductStore
from catalog_service.domain.value_objects import AuthContext, ProductFields, Role
from catalog_service.infrastructure.event_publisher import InMemoryEventPublisher

TENANT_A = "tenant-a"
TENANT_B = "tenant-b"


@pytest.fixture
def product_store() -> InMemoryProductStore:
    return InMemoryProductStore()


@pytest.fixture
def category_store(product_store: InMemoryProductStore) -> InMemoryCategoryStore:
    return InMemoryCategoryStore(products=product_store)


@pytest.fixture
def publisher() -> InMemoryEventPublisher:
    """Create a publisher that records messages."""
    return InMemoryEventPublisher(topic="product-created")


@pytest.fixture
def category_manager(
    category_store: InMemoryCategoryStore,
    product_store: InMemoryProductStore,
) -> CategoryManager:
    return CategoryManager(category_store, product_store)


@pytest.fixture
def product_manager(
    product_store: InMemoryProductStore,
    category_store: InMemoryCategoryStore,
    publisher: InMemoryEventPublisher,
) -> ProductManager:
    return ProductManager(product_store, category_store, publisher, max_page_size=100)


# ============================================================================
# Caller contexts
# ============================================================================


@pytest.fixture
def seller_ctx() -> AuthContext:
    """Seller in tenant A."""
    return AuthContext.of(TENANT_A, "seller-1", [Role.SELLER])


@pytest.fixture
def other_seller_ctx() -> AuthContext:
    """A different seller in tenant A."""
    return AuthContext.of(TENANT_A, "seller-2", [Role.SELLER])


@pytest.fixture
def admin_ctx() -> AuthContext:
    """Admin in tenant A."""
    return AuthContext.of(TENANT_A, "admin-1", [Role.ADMIN])


@pytest.fixture
def buyer_ctx() -> AuthContext:
    """Authenticated caller without catalog roles in tenant A."""
    return AuthContext.of(TENANT_A, "buyer-1", [])


@pytest.fixture
def tenant_b_seller_ctx() -> AuthContext:
    """Seller in tenant B."""
    return AuthContext.of(TENANT_B, "seller-9", [Role.SELLER])


@pytest.fixture
def make_fields() -> Callable[..., ProductFields]:
    """Build product fields with sensible defaults."""

    def _make(**overrides: Any) -> ProductFields:
        values: dict[str, Any] = {
            "name": "Ceramic Mug",
            "sku": "MUG-001",
            "price": "12.50",
            "currency": "usd",
            "description": "A sturdy stoneware mug",
        }
        values.update(overrides)
        return ProductFields(**values)

    return _make
