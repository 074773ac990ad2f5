"""Domain entities for the catalog.

Category and Product are aggregate roots scoped to a tenant. Identity,
tenant and (for products) seller are fixed at creation; every mutation
refreshes ``updated_at``.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime
from uuid import uuid4

from catalog_service.domain.base import AggregateRoot, utc_now
from catalog_service.domain.events import ProductCreated
from catalog_service.domain.exceptions import InvalidStateTransitionError
from catalog_service.domain.state_machines import (
    ProductStatus,
    RecordState,
    validate_record_transition,
)
from catalog_service.domain.value_objects import (
    CategoryFields,
    CurrencyCode,
    ImageList,
    Price,
    ProductFields,
)


def new_id() -> str:
    """Generate an opaque entity identifier."""
    return str(uuid4())


# ============================================================================
# Category
# ============================================================================


@dataclass(kw_only=True, eq=False)
class Category(AggregateRoot[str]):
    """A node in a tenant's category hierarchy.

    Attributes:
        name: Display name, unique within the tenant.
        description: Optional free text.
        parent_id: Parent category in the same tenant, None for top level.
        tenant_id: Owning tenant.
    """

    name: str
    tenant_id: str
    description: str | None = None
    parent_id: str | None = None

    @classmethod
    def create(cls, tenant_id: str, fields: CategoryFields) -> "Category":
        """Create a new category with a generated id."""
        now = utc_now()
        return cls(
            id=new_id(),
            name=fields.name,
            description=fields.description,
            parent_id=fields.parent_id,
            tenant_id=tenant_id,
            created_at=now,
            updated_at=now,
        )

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    def apply(self, fields: CategoryFields) -> None:
        """Overwrite name, description and parent from an update request."""
        self.name = fields.name
        self.description = fields.description
        self.parent_id = fields.parent_id
        self._touch()


@dataclass
class CategoryNode:
    """A category with its nested children, as rendered in the tree view."""

    category: Category
    children: list["CategoryNode"] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.category.id

    def walk(self) -> Iterator["CategoryNode"]:
        """Yield this node and its descendants depth-first (pre-order)."""
        pending = [self]
        while pending:
            node = pending.pop()
            yield node
            pending.extend(reversed(node.children))


# ============================================================================
# Product
# ============================================================================


@dataclass(kw_only=True, eq=False)
class Product(AggregateRoot[str]):
    """A seller's product listing within a tenant.

    Soft deletion is a one-way move of ``state`` into
    ``RecordState.DELETED``; there is no way to clear it.

    Attributes:
        name: Display name.
        sku: Stock keeping unit, unique within the tenant.
        price: Positive price with two decimal places.
        currency: ISO 4217 shaped code.
        seller_id: Owner; fixed at creation.
        tenant_id: Owning tenant; fixed at creation.
        description: Optional free text.
        category_id: Optional category in the same tenant.
        images: Ordered image URLs.
        status: Merchandising status.
        state: Record lifecycle state.
        deleted_at: When the product was soft-deleted.
    """

    name: str
    sku: str
    price: Price
    currency: CurrencyCode
    seller_id: str
    tenant_id: str
    description: str | None = None
    category_id: str | None = None
    images: ImageList = field(default_factory=ImageList)
    status: ProductStatus = ProductStatus.ACTIVE
    state: RecordState = RecordState.LIVE
    deleted_at: datetime | None = None

    @classmethod
    def create(cls, seller_id: str, tenant_id: str, fields: ProductFields) -> "Product":
        """Create a new live product and record ``ProductCreated``.

        The event is collected and published by the caller once the
        product has been committed.
        """
        now = utc_now()
        product = cls(
            id=new_id(),
            name=fields.name,
            sku=fields.sku,
            price=fields.price,
            currency=fields.currency,
            seller_id=seller_id,
            tenant_id=tenant_id,
            description=fields.description,
            category_id=fields.category_id,
            images=fields.images,
            status=fields.status or ProductStatus.default(),
            created_at=now,
            updated_at=now,
        )
        product._record_event(
            ProductCreated(
                aggregate_id=product.id,
                aggregate_type="Product",
                product_id=product.id,
                sku=product.sku,
                tenant_id=tenant_id,
                seller_id=seller_id,
            )
        )
        return product

    @property
    def deleted(self) -> bool:
        return self.state is RecordState.DELETED

    def _ensure_mutable(self) -> None:
        if not self.state.is_mutable():
            raise InvalidStateTransitionError(
                entity_type="Product",
                entity_id=self.id,
                current_state=self.state.value,
                target_state=RecordState.LIVE.value,
            )

    def apply(self, fields: ProductFields) -> None:
        """Apply an update request.

        ``name``, ``sku``, ``price`` and ``currency`` are always overwritten.
        ``description``, ``category_id`` and ``status`` only when provided;
        images only when a non-empty list is provided.

        Raises:
            InvalidStateTransitionError: If the product has been deleted.
        """
        self._ensure_mutable()
        self.name = fields.name
        self.sku = fields.sku
        self.price = fields.price
        self.currency = fields.currency
        if fields.description is not None:
            self.description = fields.description
        if fields.category_id is not None:
            self.category_id = fields.category_id
        if fields.status is not None:
            self.status = fields.status
        if len(fields.images) > 0:
            self.images = fields.images
        self._touch()

    def soft_delete(self) -> None:
        """Move the product into its terminal deleted state.

        Raises:
            InvalidStateTransitionError: If already deleted.
        """
        validate_record_transition("Product", self.id, self.state, RecordState.DELETED)
        now = utc_now()
        self.state = RecordState.DELETED
        self.deleted_at = now
        self.updated_at = now
