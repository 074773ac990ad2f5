"""Domain exceptions.

All domain-level errors that represent business rule violations.
These exceptions are raised by entities and managers when invariants
are violated or an operation is not permitted, and are mapped to
stable response codes by the API layer.
"""

from typing import Any


class DomainError(Exception):
    """Base class for all domain exceptions.

    Attributes:
        error_code: Stable machine-readable code for the error kind.
        message: Human-readable error message.
        details: Additional error context.
    """

    error_code: str = "DOMAIN_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize domain error.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


# ============================================================================
# State Machine Errors
# ============================================================================


class InvalidStateTransitionError(DomainError):
    """Raised when an invalid state transition is attempted."""

    error_code = "INVALID_STATE_TRANSITION"

    def __init__(
        self,
        entity_type: str,
        entity_id: str,
        current_state: str,
        target_state: str,
        allowed_transitions: list[str] | None = None,
    ) -> None:
        """Initialize invalid state transition error.

        Args:
            entity_type: Type of entity (e.g., "Product").
            entity_id: ID of the entity.
            current_state: Current state of the entity.
            target_state: Attempted target state.
            allowed_transitions: List of allowed target states from current state.
        """
        allowed = allowed_transitions or []
        message = (
            f"Cannot transition {entity_type}({entity_id}) "
            f"from '{current_state}' to '{target_state}'. "
            f"Allowed transitions: {allowed}"
        )
        super().__init__(
            message,
            details={
                "entity_type": entity_type,
                "entity_id": entity_id,
                "current_state": current_state,
                "target_state": target_state,
                "allowed_transitions": allowed,
            },
        )


# ============================================================================
# Request Errors
# ============================================================================


class UnauthorizedError(DomainError):
    """Raised when the caller lacks the role or ownership an operation needs."""

    error_code = "UNAUTHORIZED"

    def __init__(self, message: str, actor_id: str | None = None) -> None:
        """Initialize unauthorized error.

        Args:
            message: Explanation of the missing permission.
            actor_id: Identity of the caller, if known.
        """
        super().__init__(message, details={"actor_id": actor_id})


class BadRequestError(DomainError):
    """Raised when required request context is missing."""

    error_code = "BAD_REQUEST"


class TenantRequiredError(BadRequestError):
    """Raised when no tenant could be resolved for a request."""

    def __init__(self) -> None:
        super().__init__(
            "Tenant ID is required. Provide 'tenantId' as a query parameter or authenticate."
        )


class InvalidInputError(DomainError):
    """Raised when a field value violates its constraints."""

    error_code = "INVALID_INPUT"

    def __init__(self, field: str, reason: str) -> None:
        """Initialize invalid input error.

        Args:
            field: Name of the offending field.
            reason: Why the value was rejected.
        """
        super().__init__(
            f"Invalid {field}: {reason}",
            details={"field": field, "reason": reason},
        )


# ============================================================================
# Not Found Errors
# ============================================================================


class NotFoundError(DomainError):
    """Base class for lookups that did not resolve within the tenant."""

    error_code = "NOT_FOUND"


class CategoryNotFoundError(NotFoundError):
    """Raised when a category (or parent category) does not exist in the tenant."""

    error_code = "CATEGORY_NOT_FOUND"

    def __init__(self, category_id: str, tenant_id: str, role: str = "Category") -> None:
        """Initialize category not found error.

        Args:
            category_id: ID that failed to resolve.
            tenant_id: Tenant the lookup was scoped to.
            role: What the category was looked up as ("Category" or "Parent category").
        """
        super().__init__(
            f"{role} not found: {category_id}",
            details={"category_id": category_id, "tenant_id": tenant_id},
        )


class ProductNotFoundError(NotFoundError):
    """Raised when a live product does not exist in the tenant."""

    error_code = "PRODUCT_NOT_FOUND"

    def __init__(self, product_id: str, tenant_id: str) -> None:
        super().__init__(
            f"Product not found: {product_id}",
            details={"product_id": product_id, "tenant_id": tenant_id},
        )


# ============================================================================
# Conflict Errors
# ============================================================================


class CategoryNameConflictError(DomainError):
    """Raised when a category name is already taken within the tenant."""

    error_code = "CATEGORY_NAME_ALREADY_EXISTS"

    def __init__(self, name: str, tenant_id: str) -> None:
        super().__init__(
            "Category name already exists for this tenant",
            details={"name": name, "tenant_id": tenant_id},
        )


class SkuConflictError(DomainError):
    """Raised when a SKU is already taken within the tenant."""

    error_code = "SKU_ALREADY_EXISTS"

    def __init__(self, sku: str, tenant_id: str) -> None:
        super().__init__(
            f"SKU already exists: {sku}",
            details={"sku": sku, "tenant_id": tenant_id},
        )


# ============================================================================
# Category Hierarchy Errors
# ============================================================================


class InvalidParentCategoryError(DomainError):
    """Raised when a category is made its own parent."""

    error_code = "INVALID_PARENT_CATEGORY"

    def __init__(self, category_id: str) -> None:
        super().__init__(
            "Category cannot be its own parent",
            details={"category_id": category_id},
        )


class CategoryHasProductsError(DomainError):
    """Raised when deleting a category that live products still reference."""

    error_code = "CATEGORY_HAS_PRODUCTS"

    def __init__(self, category_id: str, product_count: int) -> None:
        super().__init__(
            "Cannot delete category with associated products",
            details={"category_id": category_id, "product_count": product_count},
        )


class CategoryHasChildrenError(DomainError):
    """Raised when deleting a category that other categories use as parent."""

    error_code = "CATEGORY_HAS_CHILDREN"

    def __init__(self, category_id: str, child_count: int) -> None:
        super().__init__(
            "Cannot delete category with child categories. "
            "Please delete or reassign child categories first.",
            details={"category_id": category_id, "child_count": child_count},
        )
