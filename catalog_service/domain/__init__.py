"""Domain layer - Entities, value objects, state machines, domain events.

This module exports the core catalog building blocks:

- **Entities**: Category, Product (aggregate roots with identity)
- **Value Objects**: AuthContext, Price, CurrencyCode, ImageList, field inputs
- **State Machines**: ProductStatus, RecordState
- **Domain Events**: ProductCreated
- **Exceptions**: the typed error taxonomy surfaced to callers

Example usage:
    from catalog_service.domain import AuthContext, ProductFields, Product

    ctx = AuthContext.of("tenant-1", "seller-1", ["SELLER"])
    product = Product.create(
        seller_id=ctx.user_id,
        tenant_id=ctx.tenant_id,
        fields=ProductFields(name="Mug", sku="MUG-1", price="9.99", currency="USD"),
    )
"""

# Base classes
from catalog_service.domain.base import AggregateRoot, DomainEvent, Entity, ValueObject

# Entities
from catalog_service.domain.entities import Category, CategoryNode, Product

# Domain Events
from catalog_service.domain.events import EVENT_REGISTRY, ProductCreated, get_event_class

# Exceptions
from catalog_service.domain.exceptions import (
    BadRequestError,
    CategoryHasChildrenError,
    CategoryHasProductsError,
    CategoryNameConflictError,
    CategoryNotFoundError,
    DomainError,
    InvalidInputError,
    InvalidParentCategoryError,
    InvalidStateTransitionError,
    NotFoundError,
    ProductNotFoundError,
    SkuConflictError,
    TenantRequiredError,
    UnauthorizedError,
)

# State Machines
from catalog_service.domain.state_machines import (
    ProductStatus,
    RecordState,
    validate_record_transition,
)

# Value Objects
from catalog_service.domain.value_objects import (
    AuthContext,
    CategoryFields,
    CurrencyCode,
    ImageList,
    Page,
    Price,
    ProductFields,
    Role,
    SearchCriteria,
)

__all__ = [
    # Base classes
    "AggregateRoot",
    "DomainEvent",
    "Entity",
    "ValueObject",
    # Entities
    "Category",
    "CategoryNode",
    "Product",
    # Value Objects
    "AuthContext",
    "CategoryFields",
    "CurrencyCode",
    "ImageList",
    "Page",
    "Price",
    "ProductFields",
    "Role",
    "SearchCriteria",
    # State Machines
    "ProductStatus",
    "RecordState",
    "validate_record_transition",
    # Events
    "EVENT_REGISTRY",
    "ProductCreated",
    "get_event_class",
    # Exceptions
    "BadRequestError",
    "CategoryHasChildrenError",
    "CategoryHasProductsError",
    "CategoryNameConflictError",
    "CategoryNotFoundError",
    "DomainError",
    "InvalidInputError",
    "InvalidParentCategoryError",
    "InvalidStateTransitionError",
    "NotFoundError",
    "ProductNotFoundError",
    "SkuConflictError",
    "TenantRequiredError",
    "UnauthorizedError",
]
