"""API schemas for the catalog service.

Pydantic models for request/response validation and serialization.
JSON field names are camelCase; Python attributes stay snake_case.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from catalog_service.domain.entities import Category, CategoryNode, Product
from catalog_service.domain.value_objects import (
    CATEGORY_DESCRIPTION_MAX,
    CATEGORY_NAME_MAX,
    PRODUCT_DESCRIPTION_MAX,
    PRODUCT_NAME_MAX,
    PRODUCT_SKU_MAX,
    CategoryFields,
    Page,
    ProductFields,
)


class CamelModel(BaseModel):
    """Base model serializing to camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# Common Schemas
# ============================================================================


T = TypeVar("T")


class ApiResponse(CamelModel, Generic[T]):
    """Envelope for successful responses."""

    success: bool = Field(default=True, description="Always true for successes")
    message: str | None = Field(default=None, description="Human-readable summary")
    data: T | None = Field(default=None, description="Response payload")


class ErrorResponse(BaseModel):
    """Standard error response.

    All API errors follow this format for consistency.
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] | list[Any] = Field(
        default_factory=dict, description="Additional error details"
    )
    request_id: str | None = Field(
        default=None, description="Request ID for correlation"
    )


# ============================================================================
# Category Schemas
# ============================================================================


class CategoryRequest(CamelModel):
    """Request to create or update a category."""

    name: str = Field(..., min_length=1, max_length=CATEGORY_NAME_MAX)
    description: str | None = Field(default=None, max_length=CATEGORY_DESCRIPTION_MAX)
    parent_id: str | None = Field(default=None, description="Parent category id")

    def to_fields(self) -> CategoryFields:
        return CategoryFields(
            name=self.name,
            description=self.description,
            parent_id=self.parent_id,
        )


class CategoryResponse(CamelModel):
    """Category representation."""

    id: str
    name: str
    description: str | None = None
    parent_id: str | None = None
    tenant_id: str
    child_ids: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(
        cls, category: Category, child_ids: list[str] | None = None
    ) -> "CategoryResponse":
        return cls(
            id=category.id,
            name=category.name,
            description=category.description,
            parent_id=category.parent_id,
            tenant_id=category.tenant_id,
            child_ids=child_ids or [],
            created_at=category.created_at,
            updated_at=category.updated_at,
        )


class CategoryTreeResponse(CamelModel):
    """A category with its nested children."""

    id: str
    name: str
    description: str | None = None
    parent_id: str | None = None
    children: list["CategoryTreeResponse"] = Field(default_factory=list)

    @classmethod
    def from_category(cls, category: Category) -> "CategoryTreeResponse":
        """A tree entry without children."""
        return cls(
            id=category.id,
            name=category.name,
            description=category.description,
            parent_id=category.parent_id,
        )

    @classmethod
    def from_node(cls, node: CategoryNode) -> "CategoryTreeResponse":
        """Convert a tree without recursing, however deep it is."""
        root = cls.from_category(node.category)
        pending = [(node, root)]
        while pending:
            current, response = pending.pop()
            for child in current.children:
                child_response = cls.from_category(child.category)
                response.children.append(child_response)
                pending.append((child, child_response))
        return root


# ============================================================================
# Product Schemas
# ============================================================================


class ProductRequest(CamelModel):
    """Request to create or update a product."""

    name: str = Field(..., min_length=1, max_length=PRODUCT_NAME_MAX)
    sku: str = Field(..., min_length=1, max_length=PRODUCT_SKU_MAX)
    description: str | None = Field(default=None, max_length=PRODUCT_DESCRIPTION_MAX)
    price: Decimal = Field(..., description="Positive price with two decimal places")
    currency: str = Field(..., min_length=3, max_length=3, description="ISO 4217 code")
    category_id: str | None = None
    images: list[str] | None = Field(default=None, description="Ordered image URLs")
    status: str | None = Field(default=None, description="ACTIVE, INACTIVE or DRAFT")

    def to_fields(self) -> ProductFields:
        return ProductFields(
            name=self.name,
            sku=self.sku,
            description=self.description,
            price=self.price,
            currency=self.currency,
            category_id=self.category_id,
            images=self.images or [],
            status=self.status,
        )


class ProductResponse(CamelModel):
    """Product representation."""

    id: str
    name: str
    sku: str
    description: str | None = None
    price: Decimal
    currency: str
    category_id: str | None = None
    seller_id: str
    tenant_id: str
    images: list[str] = Field(default_factory=list)
    status: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, product: Product) -> "ProductResponse":
        return cls(
            id=product.id,
            name=product.name,
            sku=product.sku,
            description=product.description,
            price=product.price.amount,
            currency=str(product.currency),
            category_id=product.category_id,
            seller_id=product.seller_id,
            tenant_id=product.tenant_id,
            images=product.images.as_list(),
            status=product.status.value,
            created_at=product.created_at,
            updated_at=product.updated_at,
        )


class ProductSearchResponse(CamelModel):
    """One page of search results."""

    content: list[ProductResponse]
    page: int = Field(..., description="Page number (0-based)")
    size: int
    total_elements: int
    total_pages: int
    first: bool
    last: bool

    @classmethod
    def from_page(cls, page: Page[Product]) -> "ProductSearchResponse":
        return cls(
            content=[ProductResponse.from_entity(p) for p in page.items],
            page=page.page,
            size=page.size,
            total_elements=page.total_elements,
            total_pages=page.total_pages,
            first=page.first,
            last=page.last,
        )
