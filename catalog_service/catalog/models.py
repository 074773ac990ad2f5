"""SQLAlchemy models for the catalog tables.

Uniqueness of category names and product SKUs per tenant is enforced by
composite unique constraints; the stores translate violations into
``StoreConflictError``.
"""

from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from catalog_service.catalog.stores import CATEGORY_NAME_CONSTRAINT, PRODUCT_SKU_CONSTRAINT
from catalog_service.infrastructure.database import Base


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CategoryModel(Base):
    """Category row.

    Attributes:
        id: Category identifier (UUID string).
        name: Name, unique per tenant.
        description: Optional description.
        parent_id: Parent category; set to NULL when the parent is removed.
        tenant_id: Owning tenant.
        created_at: Creation timestamp.
        updated_at: Last update timestamp.
    """

    __tablename__ = "categories"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    parent_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True,
    )
    tenant_id: Mapped[str] = mapped_column(String(36), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utc_now,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utc_now,
        onupdate=_utc_now,
    )

    __table_args__ = (
        UniqueConstraint("name", "tenant_id", name=CATEGORY_NAME_CONSTRAINT),
        Index("idx_categories_tenant", "tenant_id"),
        Index("idx_categories_parent", "parent_id"),
    )

    def __repr__(self) -> str:
        return f"<CategoryModel(id={self.id}, name={self.name}, tenant_id={self.tenant_id})>"


class ProductModel(Base):
    """Product row.

    Attributes:
        id: Product identifier (UUID string).
        name: Product name.
        sku: Stock Keeping Unit (unique per tenant, deleted rows included).
        description: Optional description.
        price: Price with two decimal places.
        currency: ISO 4217 code.
        category_id: Optional category; set to NULL when the category is removed.
        seller_id: Owning seller.
        tenant_id: Owning tenant.
        images: JSON array of image URLs.
        status: ACTIVE, INACTIVE or DRAFT.
        deleted: Soft-delete flag.
        deleted_at: Soft-delete timestamp.
        created_at: Creation timestamp.
        updated_at: Last update timestamp.
    """

    __tablename__ = "products"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    sku: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    price: Mapped[Decimal] = mapped_column(Numeric(17, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    category_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True,
    )
    seller_id: Mapped[str] = mapped_column(String(36), nullable=False)
    tenant_id: Mapped[str] = mapped_column(String(36), nullable=False)
    images: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="ACTIVE")
    deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utc_now,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utc_now,
        onupdate=_utc_now,
    )

    __table_args__ = (
        UniqueConstraint("sku", "tenant_id", name=PRODUCT_SKU_CONSTRAINT),
        Index("idx_products_seller_tenant", "seller_id", "tenant_id"),
        Index("idx_products_category", "category_id"),
        Index("idx_products_deleted", "deleted"),
    )

    def __repr__(self) -> str:
        return f"<ProductModel(id={self.id}, sku={self.sku}, tenant_id={self.tenant_id})>"
