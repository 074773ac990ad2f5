"""Product API endpoints.

Provides endpoints for creating, searching and maintaining products.
The creating user becomes the product's seller.
"""

from decimal import Decimal
from typing import Annotated

from fastapi import APIRouter, Query, Response, status

from catalog_service.api.dependencies import (
    AuthContextDep,
    ProductManagerDep,
    ReadTenantDep,
)
from catalog_service.api.schemas import (
    ApiResponse,
    ErrorResponse,
    ProductRequest,
    ProductResponse,
    ProductSearchResponse,
)

router = APIRouter(prefix="/api/v1/product", tags=["Products"])


@router.post(
    "",
    response_model=ApiResponse[ProductResponse],
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input"},
        403: {"model": ErrorResponse, "description": "Seller or admin role required"},
        409: {"model": ErrorResponse, "description": "SKU already exists"},
    },
)
async def create_product(
    body: ProductRequest,
    ctx: AuthContextDep,
    manager: ProductManagerDep,
) -> ApiResponse[ProductResponse]:
    """Create a product owned by the calling user."""
    product = await manager.create(ctx.user_id, ctx, body.to_fields())
    return ApiResponse(
        message="Product created successfully",
        data=ProductResponse.from_entity(product),
    )


@router.get(
    "/search",
    response_model=ApiResponse[ProductSearchResponse],
    responses={400: {"model": ErrorResponse, "description": "Invalid paging"}},
)
async def search_products(
    tenant_id: ReadTenantDep,
    manager: ProductManagerDep,
    query: Annotated[str | None, Query(description="Text in name or description")] = None,
    category_id: Annotated[str | None, Query(alias="categoryId")] = None,
    min_price: Annotated[Decimal | None, Query(alias="minPrice")] = None,
    max_price: Annotated[Decimal | None, Query(alias="maxPrice")] = None,
    in_stock: Annotated[
        bool | None, Query(alias="inStock", description="Accepted and ignored")
    ] = None,
    page: Annotated[int, Query(description="Page number (0-based)")] = 0,
    size: Annotated[int, Query(description="Page size")] = 20,
) -> ApiResponse[ProductSearchResponse]:
    """Search live products of a tenant."""
    result = await manager.search(
        tenant_id,
        query=query,
        category_id=category_id,
        min_price=min_price,
        max_price=max_price,
        page=page,
        size=size,
    )
    return ApiResponse(
        message="Products retrieved successfully",
        data=ProductSearchResponse.from_page(result),
    )


@router.get(
    "/{product_id}",
    response_model=ApiResponse[ProductResponse],
    responses={404: {"model": ErrorResponse, "description": "Product not found"}},
)
async def get_product(
    product_id: str,
    tenant_id: ReadTenantDep,
    manager: ProductManagerDep,
) -> ApiResponse[ProductResponse]:
    """Get a live product by id."""
    product = await manager.get_by_id(product_id, tenant_id)
    return ApiResponse(
        message="Product retrieved successfully",
        data=ProductResponse.from_entity(product),
    )


@router.put(
    "/{product_id}",
    response_model=ApiResponse[ProductResponse],
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input"},
        403: {"model": ErrorResponse, "description": "Not the owner"},
        404: {"model": ErrorResponse, "description": "Product not found"},
        409: {"model": ErrorResponse, "description": "SKU already exists"},
    },
)
async def update_product(
    product_id: str,
    body: ProductRequest,
    ctx: AuthContextDep,
    manager: ProductManagerDep,
) -> ApiResponse[ProductResponse]:
    """Update a product owned by the caller (or any product for admins)."""
    product = await manager.update(product_id, ctx, body.to_fields())
    return ApiResponse(
        message="Product updated successfully",
        data=ProductResponse.from_entity(product),
    )


@router.delete(
    "/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        403: {"model": ErrorResponse, "description": "Not the owner"},
        404: {"model": ErrorResponse, "description": "Product not found"},
    },
)
async def delete_product(
    product_id: str,
    ctx: AuthContextDep,
    manager: ProductManagerDep,
) -> Response:
    """Soft-delete a product."""
    await manager.delete(product_id, ctx)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
