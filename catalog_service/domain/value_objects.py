"""Value Objects for the domain layer.

Value objects are immutable objects that are defined by their attributes
rather than identity. Each validates its own constraints on construction
and raises ``InvalidInputError`` when they are violated.
"""

import json
import math
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Generic, Iterable, Self, TypeVar

from catalog_service.domain.base import ValueObject
from catalog_service.domain.exceptions import InvalidInputError, TenantRequiredError
from catalog_service.domain.state_machines import ProductStatus

CATEGORY_NAME_MAX = 255
CATEGORY_DESCRIPTION_MAX = 1000
PRODUCT_NAME_MAX = 255
PRODUCT_SKU_MAX = 100
PRODUCT_DESCRIPTION_MAX = 5000
PRICE_INTEGER_DIGITS = 15
PRICE_FRACTION_DIGITS = 2

_CENT = Decimal("0.01")


# ============================================================================
# Authorization Context
# ============================================================================


class Role(str, Enum):
    """Roles recognised by the catalog."""

    SELLER = "SELLER"
    ADMIN = "ADMIN"


@dataclass(frozen=True)
class AuthContext(ValueObject):
    """Caller identity threaded explicitly through every manager call.

    Produced by the authentication boundary; the catalog never reads
    identity from global state.

    Attributes:
        tenant_id: Tenant the request is scoped to.
        user_id: Authenticated user, or None for anonymous callers.
        roles: Role strings granted to the caller.
    """

    tenant_id: str
    user_id: str | None = None
    roles: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        if not self.tenant_id or not str(self.tenant_id).strip():
            raise TenantRequiredError()
        if not isinstance(self.roles, frozenset):
            object.__setattr__(self, "roles", frozenset(self.roles))

    @classmethod
    def of(
        cls,
        tenant_id: str,
        user_id: str | None = None,
        roles: Iterable[str | Role] = (),
    ) -> Self:
        """Build a context from loose role values."""
        return cls(
            tenant_id=tenant_id,
            user_id=user_id,
            roles=frozenset(r.value if isinstance(r, Role) else str(r) for r in roles),
        )

    def has_role(self, role: Role) -> bool:
        return role.value in self.roles

    @property
    def is_admin(self) -> bool:
        return self.has_role(Role.ADMIN)


# ============================================================================
# Money
# ============================================================================


@dataclass(frozen=True)
class Price(ValueObject):
    """Positive decimal price with two fractional digits.

    Attributes:
        amount: Price in major currency units, quantized to cents.
    """

    amount: Decimal

    def __post_init__(self) -> None:
        amount = self.amount
        if not isinstance(amount, Decimal):
            try:
                amount = Decimal(str(amount))
            except (InvalidOperation, ValueError):
                raise InvalidInputError("price", f"'{self.amount}' is not a number") from None
        if not amount.is_finite():
            raise InvalidInputError("price", "Price must be a finite number")
        if amount <= 0:
            raise InvalidInputError("price", "Price must be greater than 0")
        if amount.adjusted() >= PRICE_INTEGER_DIGITS or amount != amount.quantize(_CENT):
            raise InvalidInputError(
                "price",
                f"Price must have at most {PRICE_INTEGER_DIGITS} integer digits "
                f"and {PRICE_FRACTION_DIGITS} decimal places",
            )
        object.__setattr__(self, "amount", amount.quantize(_CENT))

    def __str__(self) -> str:
        return f"{self.amount:.2f}"


@dataclass(frozen=True)
class CurrencyCode(ValueObject):
    """Three-letter ISO 4217 shaped currency code."""

    value: str

    def __post_init__(self) -> None:
        code = (self.value or "").strip()
        if len(code) != 3 or not code.isalpha():
            raise InvalidInputError(
                "currency", "Currency must be a 3-character ISO 4217 code"
            )
        object.__setattr__(self, "value", code.upper())

    def __str__(self) -> str:
        return self.value


# ============================================================================
# Images
# ============================================================================


@dataclass(frozen=True)
class ImageList(ValueObject):
    """Ordered list of product image URLs.

    Stored as a JSON array in a single text column.
    """

    urls: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        urls = tuple(self.urls)
        for index, url in enumerate(urls):
            if not isinstance(url, str) or not url.strip():
                raise InvalidInputError(
                    f"images[{index}]", "Image URL cannot be blank"
                )
        object.__setattr__(self, "urls", urls)

    @classmethod
    def of(cls, urls: Iterable[str] | None) -> Self:
        return cls(urls=tuple(urls or ()))

    @classmethod
    def parse(cls, stored: str | None) -> Self:
        """Rebuild an image list from its stored form.

        Anything that does not decode to a list of non-blank strings
        yields an empty list.
        """
        if stored is None or not stored.strip():
            return cls()
        try:
            decoded = json.loads(stored)
            if not isinstance(decoded, list):
                return cls()
            return cls(urls=tuple(decoded))
        except (ValueError, TypeError, InvalidInputError):
            return cls()

    def serialize(self) -> str | None:
        """Encode for storage; an empty list is stored as NULL."""
        if not self.urls:
            return None
        try:
            return json.dumps(list(self.urls))
        except (TypeError, ValueError) as e:
            raise InvalidInputError("images", "Invalid images format") from e

    def as_list(self) -> list[str]:
        return list(self.urls)

    def __len__(self) -> int:
        return len(self.urls)


# ============================================================================
# Command Inputs
# ============================================================================


def _require_text(field_name: str, value: str | None, max_length: int) -> str:
    if value is None or not str(value).strip():
        raise InvalidInputError(field_name, f"{field_name} is required")
    if len(value) > max_length:
        raise InvalidInputError(
            field_name, f"{field_name} must not exceed {max_length} characters"
        )
    return value


def _optional_text(field_name: str, value: str | None, max_length: int) -> str | None:
    if value is not None and len(value) > max_length:
        raise InvalidInputError(
            field_name, f"{field_name} must not exceed {max_length} characters"
        )
    return value


@dataclass(frozen=True)
class CategoryFields(ValueObject):
    """Requested category attributes for create and update."""

    name: str
    description: str | None = None
    parent_id: str | None = None

    def __post_init__(self) -> None:
        _require_text("name", self.name, CATEGORY_NAME_MAX)
        _optional_text("description", self.description, CATEGORY_DESCRIPTION_MAX)


@dataclass(frozen=True)
class ProductFields(ValueObject):
    """Requested product attributes for create and update.

    ``description``, ``category_id`` and ``status`` are optional; on update
    a None value leaves the stored value untouched.
    """

    name: str
    sku: str
    price: Price
    currency: CurrencyCode
    description: str | None = None
    category_id: str | None = None
    images: ImageList = field(default_factory=ImageList)
    status: ProductStatus | None = None

    def __post_init__(self) -> None:
        _require_text("name", self.name, PRODUCT_NAME_MAX)
        _require_text("sku", self.sku, PRODUCT_SKU_MAX)
        _optional_text("description", self.description, PRODUCT_DESCRIPTION_MAX)
        if not isinstance(self.price, Price):
            object.__setattr__(self, "price", Price(self.price))
        if not isinstance(self.currency, CurrencyCode):
            object.__setattr__(self, "currency", CurrencyCode(self.currency))
        if not isinstance(self.images, ImageList):
            object.__setattr__(self, "images", ImageList.of(self.images))
        if self.status is not None and not isinstance(self.status, ProductStatus):
            object.__setattr__(self, "status", ProductStatus.parse(self.status))


# ============================================================================
# Search
# ============================================================================


@dataclass(frozen=True)
class SearchCriteria(ValueObject):
    """AND-combined product search filters; None means unfiltered."""

    tenant_id: str
    query: str | None = None
    category_id: str | None = None
    min_price: Decimal | None = None
    max_price: Decimal | None = None

    def __post_init__(self) -> None:
        if self.query is not None and not self.query.strip():
            object.__setattr__(self, "query", None)


T = TypeVar("T")


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of results with 0-based page numbering.

    Attributes:
        items: Items on this page.
        page: Page number (0-based).
        size: Requested page size.
        total_elements: Number of matching items across all pages.
    """

    items: list[T]
    page: int
    size: int
    total_elements: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_elements / self.size) if self.size else 0

    @property
    def first(self) -> bool:
        return self.page == 0

    @property
    def last(self) -> bool:
        return self.page + 1 >= self.total_pages
