"""In-memory store adapters.

Used by tests and by the ``memory`` store backend. Rows are copied on the
way in and out so callers never share state with the store, and the
unique constraints are checked under a lock exactly like a database
index would.
"""

import asyncio
import copy

from catalog_service.catalog.stores import (
    CATEGORY_NAME_CONSTRAINT,
    PRODUCT_SKU_CONSTRAINT,
    CategoryStore,
    ProductStore,
    StoreConflictError,
)
from catalog_service.domain.entities import Category, Product
from catalog_service.domain.value_objects import SearchCriteria


class InMemoryProductStore(ProductStore):
    """In-memory repository for products."""

    def __init__(self) -> None:
        self._products: dict[str, Product] = {}
        self._by_sku: dict[tuple[str, str], str] = {}
        self._lock = asyncio.Lock()

    async def get(
        self,
        product_id: str,
        tenant_id: str,
        include_deleted: bool = False,
    ) -> Product | None:
        product = self._products.get(product_id)
        if product is None or product.tenant_id != tenant_id:
            return None
        if product.deleted and not include_deleted:
            return None
        return copy.deepcopy(product)

    async def find_by_sku(self, sku: str, tenant_id: str) -> Product | None:
        product_id = self._by_sku.get((tenant_id, sku))
        if product_id is None:
            return None
        return copy.deepcopy(self._products[product_id])

    async def list_by_seller(self, seller_id: str, tenant_id: str) -> list[Product]:
        return [
            copy.deepcopy(p)
            for p in self._sorted()
            if p.tenant_id == tenant_id and p.seller_id == seller_id and not p.deleted
        ]

    async def search(
        self,
        criteria: SearchCriteria,
        offset: int,
        limit: int,
    ) -> tuple[list[Product], int]:
        matches = [p for p in self._sorted() if self._matches(p, criteria)]
        return [copy.deepcopy(p) for p in matches[offset : offset + limit]], len(matches)

    async def count_by_category(self, tenant_id: str, category_id: str) -> int:
        return sum(
            1
            for p in self._products.values()
            if p.tenant_id == tenant_id and p.category_id == category_id and not p.deleted
        )

    async def add(self, product: Product) -> Product:
        async with self._lock:
            key = (product.tenant_id, product.sku)
            if key in self._by_sku:
                raise StoreConflictError(PRODUCT_SKU_CONSTRAINT)
            self._products[product.id] = copy.deepcopy(product)
            self._by_sku[key] = product.id
        return product

    async def update(self, product: Product) -> Product:
        async with self._lock:
            current = self._products[product.id]
            key = (product.tenant_id, product.sku)
            owner = self._by_sku.get(key)
            if owner is not None and owner != product.id:
                raise StoreConflictError(PRODUCT_SKU_CONSTRAINT)
            self._by_sku.pop((current.tenant_id, current.sku), None)
            self._by_sku[key] = product.id
            self._products[product.id] = copy.deepcopy(product)
        return product

    async def commit(self) -> None:
        pass

    async def rollback(self) -> None:
        pass

    def clear_category(self, tenant_id: str, category_id: str) -> None:
        """Null out references to a removed category (ON DELETE SET NULL)."""
        for product in self._products.values():
            if product.tenant_id == tenant_id and product.category_id == category_id:
                product.category_id = None

    def _sorted(self) -> list[Product]:
        return sorted(self._products.values(), key=lambda p: (p.created_at, p.id))

    @staticmethod
    def _matches(product: Product, criteria: SearchCriteria) -> bool:
        if product.tenant_id != criteria.tenant_id or product.deleted:
            return False
        if criteria.category_id is not None and product.category_id != criteria.category_id:
            return False
        if criteria.min_price is not None and product.price.amount < criteria.min_price:
            return False
        if criteria.max_price is not None and product.price.amount > criteria.max_price:
            return False
        if criteria.query is not None:
            needle = criteria.query.lower()
            in_name = needle in product.name.lower()
            in_description = product.description is not None and needle in product.description.lower()
            if not (in_name or in_description):
                return False
        return True


class InMemoryCategoryStore(CategoryStore):
    """In-memory repository for categories."""

    def __init__(self, products: InMemoryProductStore | None = None) -> None:
        self._categories: dict[str, Category] = {}
        self._by_name: dict[tuple[str, str], str] = {}
        self._products = products
        self._lock = asyncio.Lock()

    async def get(self, category_id: str, tenant_id: str) -> Category | None:
        category = self._categories.get(category_id)
        if category is None or category.tenant_id != tenant_id:
            return None
        return copy.deepcopy(category)

    async def find_by_name(self, name: str, tenant_id: str) -> Category | None:
        category_id = self._by_name.get((tenant_id, name))
        if category_id is None:
            return None
        return copy.deepcopy(self._categories[category_id])

    async def list_by_tenant(self, tenant_id: str) -> list[Category]:
        return [
            copy.deepcopy(c) for c in self._categories.values() if c.tenant_id == tenant_id
        ]

    async def list_by_parent(self, parent_id: str, tenant_id: str) -> list[Category]:
        return [
            copy.deepcopy(c)
            for c in self._categories.values()
            if c.tenant_id == tenant_id and c.parent_id == parent_id
        ]

    async def add(self, category: Category) -> Category:
        async with self._lock:
            key = (category.tenant_id, category.name)
            if key in self._by_name:
                raise StoreConflictError(CATEGORY_NAME_CONSTRAINT)
            self._categories[category.id] = copy.deepcopy(category)
            self._by_name[key] = category.id
        return category

    async def update(self, category: Category) -> Category:
        async with self._lock:
            current = self._categories[category.id]
            key = (category.tenant_id, category.name)
            owner = self._by_name.get(key)
            if owner is not None and owner != category.id:
                raise StoreConflictError(CATEGORY_NAME_CONSTRAINT)
            self._by_name.pop((current.tenant_id, current.name), None)
            self._by_name[key] = category.id
            self._categories[category.id] = copy.deepcopy(category)
        return category

    async def delete(self, category: Category) -> None:
        async with self._lock:
            removed = self._categories.pop(category.id, None)
            if removed is None:
                return
            self._by_name.pop((removed.tenant_id, removed.name), None)
            for other in self._categories.values():
                if other.parent_id == removed.id:
                    other.parent_id = None
            if self._products is not None:
                self._products.clear_category(removed.tenant_id, removed.id)

    async def commit(self) -> None:
        pass

    async def rollback(self) -> None:
        pass


# ============================================================================
# Singletons
# ============================================================================


_product_store: InMemoryProductStore | None = None
_category_store: InMemoryCategoryStore | None = None


def get_memory_stores() -> tuple[InMemoryCategoryStore, InMemoryProductStore]:
    """Get the process-wide in-memory stores."""
    global _product_store, _category_store
    if _product_store is None or _category_store is None:
        _product_store = InMemoryProductStore()
        _category_store = InMemoryCategoryStore(products=_product_store)
    return _category_store, _product_store


def reset_memory_stores() -> None:
    """Drop all in-memory data (for testing)."""
    global _product_store, _category_store
    _product_store = None
    _category_store = None
