"""Application layer module.

Contains the managers (use cases) that orchestrate domain logic
and persistence.
"""

from catalog_service.application.category_manager import CategoryManager
from catalog_service.application.product_manager import ProductManager

__all__ = [
    "CategoryManager",
    "ProductManager",
]
