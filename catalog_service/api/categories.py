"""Category API endpoints.

Provides endpoints for managing a tenant's category hierarchy.
"""

from fastapi import APIRouter, Response, status

from catalog_service.api.dependencies import (
    AuthContextDep,
    CategoryManagerDep,
    ReadTenantDep,
)
from catalog_service.api.schemas import (
    ApiResponse,
    CategoryRequest,
    CategoryResponse,
    CategoryTreeResponse,
    ErrorResponse,
)

router = APIRouter(prefix="/api/v1/category", tags=["Categories"])


@router.post(
    "",
    response_model=ApiResponse[CategoryResponse],
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input"},
        403: {"model": ErrorResponse, "description": "Seller or admin role required"},
        404: {"model": ErrorResponse, "description": "Parent category not found"},
        409: {"model": ErrorResponse, "description": "Name already exists"},
    },
)
async def create_category(
    body: CategoryRequest,
    ctx: AuthContextDep,
    manager: CategoryManagerDep,
) -> ApiResponse[CategoryResponse]:
    """Create a category in the caller's tenant."""
    category = await manager.create(ctx, body.to_fields())
    return ApiResponse(
        message="Category created successfully",
        data=CategoryResponse.from_entity(category),
    )


@router.get("", response_model=ApiResponse[list[CategoryResponse]])
async def list_categories(
    tenant_id: ReadTenantDep,
    manager: CategoryManagerDep,
) -> ApiResponse[list[CategoryResponse]]:
    """List all categories of a tenant."""
    categories = await manager.list_all(tenant_id)
    children = await manager.child_ids(tenant_id)
    return ApiResponse(
        message="Categories retrieved successfully",
        data=[CategoryResponse.from_entity(c, children.get(c.id)) for c in categories],
    )


@router.get("/tree", response_model=ApiResponse[list[CategoryTreeResponse]])
async def get_category_tree(
    tenant_id: ReadTenantDep,
    manager: CategoryManagerDep,
) -> ApiResponse[list[CategoryTreeResponse]]:
    """Get the tenant's category hierarchy."""
    tree = await manager.get_tree(tenant_id)
    return ApiResponse(
        message="Category tree retrieved successfully",
        data=[CategoryTreeResponse.from_node(node) for node in tree],
    )


@router.get(
    "/{category_id}",
    response_model=ApiResponse[CategoryResponse],
    responses={404: {"model": ErrorResponse, "description": "Category not found"}},
)
async def get_category(
    category_id: str,
    tenant_id: ReadTenantDep,
    manager: CategoryManagerDep,
) -> ApiResponse[CategoryResponse]:
    """Get a category by id."""
    category = await manager.get_by_id(category_id, tenant_id)
    children = await manager.child_ids(tenant_id)
    return ApiResponse(
        message="Category retrieved successfully",
        data=CategoryResponse.from_entity(category, children.get(category.id)),
    )


@router.get(
    "/{parent_id}/children",
    response_model=ApiResponse[list[CategoryResponse]],
    responses={404: {"model": ErrorResponse, "description": "Parent category not found"}},
)
async def get_child_categories(
    parent_id: str,
    tenant_id: ReadTenantDep,
    manager: CategoryManagerDep,
) -> ApiResponse[list[CategoryResponse]]:
    """Get the direct children of a category."""
    children = await manager.get_children(parent_id, tenant_id)
    grandchildren = await manager.child_ids(tenant_id)
    return ApiResponse(
        message="Child categories retrieved successfully",
        data=[CategoryResponse.from_entity(c, grandchildren.get(c.id)) for c in children],
    )


@router.put(
    "/{category_id}",
    response_model=ApiResponse[CategoryResponse],
    responses={
        400: {"model": ErrorResponse, "description": "Invalid parent"},
        403: {"model": ErrorResponse, "description": "Seller or admin role required"},
        404: {"model": ErrorResponse, "description": "Category not found"},
        409: {"model": ErrorResponse, "description": "Name already exists"},
    },
)
async def update_category(
    category_id: str,
    body: CategoryRequest,
    ctx: AuthContextDep,
    manager: CategoryManagerDep,
) -> ApiResponse[CategoryResponse]:
    """Update a category."""
    category = await manager.update(category_id, ctx, body.to_fields())
    return ApiResponse(
        message="Category updated successfully",
        data=CategoryResponse.from_entity(category),
    )


@router.delete(
    "/{category_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        403: {"model": ErrorResponse, "description": "Seller or admin role required"},
        404: {"model": ErrorResponse, "description": "Category not found"},
        409: {"model": ErrorResponse, "description": "Category still referenced"},
    },
)
async def delete_category(
    category_id: str,
    ctx: AuthContextDep,
    manager: CategoryManagerDep,
) -> Response:
    """Delete an unreferenced category."""
    await manager.delete(category_id, ctx)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
