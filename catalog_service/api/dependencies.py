"""FastAPI dependencies.

Resolves the store backend, the managers and the caller's
``AuthContext`` for each request.
"""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, HTTPException, Query, Request, status

from catalog_service.api.middleware import RequestIdentity
from catalog_service.application.category_manager import CategoryManager
from catalog_service.application.product_manager import ProductManager
from catalog_service.catalog.memory import get_memory_stores
from catalog_service.catalog.stores import CategoryStore, ProductStore
from catalog_service.domain.exceptions import TenantRequiredError
from catalog_service.domain.value_objects import AuthContext
from catalog_service.infrastructure.config import settings
from catalog_service.infrastructure.event_publisher import (
    EventPublisher,
    get_event_publisher,
)

Stores = tuple[CategoryStore, ProductStore]


async def get_stores() -> AsyncGenerator[Stores, None]:
    """Yield the stores for one request.

    SQL stores share one session so a request is a single transaction.
    """
    if settings.store_backend == "sql":
        from catalog_service.catalog.repository import SqlCategoryStore, SqlProductStore
        from catalog_service.infrastructure.database import get_session

        async for session in get_session():
            yield SqlCategoryStore(session), SqlProductStore(session)
    else:
        yield get_memory_stores()


def get_category_manager(stores: Annotated[Stores, Depends(get_stores)]) -> CategoryManager:
    categories, products = stores
    return CategoryManager(categories, products)


def get_product_manager(
    stores: Annotated[Stores, Depends(get_stores)],
    publisher: Annotated[EventPublisher, Depends(get_event_publisher)],
) -> ProductManager:
    categories, products = stores
    return ProductManager(products, categories, publisher)


# ============================================================================
# Caller Identity
# ============================================================================


def get_identity(request: Request) -> RequestIdentity:
    return getattr(request.state, "identity", None) or RequestIdentity()


def get_auth_context(
    identity: Annotated[RequestIdentity, Depends(get_identity)],
) -> AuthContext:
    """Identity for mutating endpoints.

    Raises:
        HTTPException: 401 when no user or tenant was asserted.
    """
    if not identity.user_id or not identity.tenant_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error_code": "UNAUTHORIZED",
                "message": "Authentication required",
                "details": {},
            },
        )
    return AuthContext(
        tenant_id=identity.tenant_id,
        user_id=identity.user_id,
        roles=identity.roles,
    )


def get_read_tenant(
    identity: Annotated[RequestIdentity, Depends(get_identity)],
    tenant_id: Annotated[
        str | None, Query(alias="tenantId", description="Tenant for public access")
    ] = None,
) -> str:
    """Tenant for read endpoints.

    Resolution order: ``tenantId`` query parameter, the caller's tenant,
    then the configured default tenant.

    Raises:
        TenantRequiredError: If none of them is available.
    """
    resolved = tenant_id or identity.tenant_id or settings.default_tenant_id
    if not resolved:
        raise TenantRequiredError()
    return resolved


CategoryManagerDep = Annotated[CategoryManager, Depends(get_category_manager)]
ProductManagerDep = Annotated[ProductManager, Depends(get_product_manager)]
AuthContextDep = Annotated[AuthContext, Depends(get_auth_context)]
ReadTenantDep = Annotated[str, Depends(get_read_tenant)]
