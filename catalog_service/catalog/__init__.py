"""Catalog persistence module.

Store interfaces plus their in-memory and SQL adapters.
"""

from catalog_service.catalog.memory import (
    InMemoryCategoryStore,
    InMemoryProductStore,
    get_memory_stores,
    reset_memory_stores,
)
from catalog_service.catalog.stores import (
    CATEGORY_NAME_CONSTRAINT,
    PRODUCT_SKU_CONSTRAINT,
    CategoryStore,
    ProductStore,
    StoreConflictError,
)

__all__ = [
    "CATEGORY_NAME_CONSTRAINT",
    "PRODUCT_SKU_CONSTRAINT",
    "CategoryStore",
    "ProductStore",
    "StoreConflictError",
    "InMemoryCategoryStore",
    "InMemoryProductStore",
    "get_memory_stores",
    "reset_memory_stores",
]
