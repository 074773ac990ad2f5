"""Persistence interfaces for categories and products.

Managers depend only on these interfaces. Every adapter must enforce the
per-tenant uniqueness of category names and product SKUs itself and
report a violation as ``StoreConflictError``; the managers' pre-checks
alone are racy under concurrent writers.
"""

from abc import ABC, abstractmethod

from catalog_service.domain.entities import Category, Product
from catalog_service.domain.value_objects import SearchCriteria

CATEGORY_NAME_CONSTRAINT = "uq_categories_name_tenant"
PRODUCT_SKU_CONSTRAINT = "uq_products_sku_tenant"


class StoreConflictError(Exception):
    """Raised when a write violates a uniqueness constraint.

    Attributes:
        constraint: Name of the violated constraint.
    """

    def __init__(self, constraint: str, message: str | None = None) -> None:
        super().__init__(message or f"Unique constraint violated: {constraint}")
        self.constraint = constraint


class CategoryStore(ABC):
    """Category persistence scoped by tenant."""

    @abstractmethod
    async def get(self, category_id: str, tenant_id: str) -> Category | None:
        """Get a category by id within a tenant."""

    @abstractmethod
    async def find_by_name(self, name: str, tenant_id: str) -> Category | None:
        """Get a category by exact name within a tenant."""

    @abstractmethod
    async def list_by_tenant(self, tenant_id: str) -> list[Category]:
        """All categories of a tenant."""

    @abstractmethod
    async def list_by_parent(self, parent_id: str, tenant_id: str) -> list[Category]:
        """Direct children of a category."""

    @abstractmethod
    async def add(self, category: Category) -> Category:
        """Insert a new category.

        Raises:
            StoreConflictError: If the name is taken in the tenant.
        """

    @abstractmethod
    async def update(self, category: Category) -> Category:
        """Persist changes to an existing category.

        Raises:
            StoreConflictError: If the new name is taken in the tenant.
        """

    @abstractmethod
    async def delete(self, category: Category) -> None:
        """Remove a category row."""

    @abstractmethod
    async def commit(self) -> None:
        """Commit pending writes.

        Raises:
            StoreConflictError: If a deferred constraint check fails.
        """

    @abstractmethod
    async def rollback(self) -> None:
        """Discard pending writes."""


class ProductStore(ABC):
    """Product persistence scoped by tenant."""

    @abstractmethod
    async def get(
        self,
        product_id: str,
        tenant_id: str,
        include_deleted: bool = False,
    ) -> Product | None:
        """Get a product by id; deleted rows only when asked for."""

    @abstractmethod
    async def find_by_sku(self, sku: str, tenant_id: str) -> Product | None:
        """Get a product by SKU, deleted or not."""

    @abstractmethod
    async def list_by_seller(self, seller_id: str, tenant_id: str) -> list[Product]:
        """Live products of a seller."""

    @abstractmethod
    async def search(
        self,
        criteria: SearchCriteria,
        offset: int,
        limit: int,
    ) -> tuple[list[Product], int]:
        """Live products matching all given filters.

        Returns:
            The requested slice and the total number of matches.
        """

    @abstractmethod
    async def count_by_category(self, tenant_id: str, category_id: str) -> int:
        """Number of live products referencing a category."""

    @abstractmethod
    async def add(self, product: Product) -> Product:
        """Insert a new product.

        Raises:
            StoreConflictError: If the SKU is taken in the tenant.
        """

    @abstractmethod
    async def update(self, product: Product) -> Product:
        """Persist changes to an existing product.

        Raises:
            StoreConflictError: If the new SKU is taken in the tenant.
        """

    @abstractmethod
    async def commit(self) -> None:
        """Commit pending writes."""

    @abstractmethod
    async def rollback(self) -> None:
        """Discard pending writes."""
