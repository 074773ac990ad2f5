"""Category application service.

Orchestrates the tenant's category hierarchy:
- Creating, renaming and re-parenting categories
- Guarding deletes against referencing products and child categories
- Projecting the hierarchy as a tree from a single per-tenant fetch
"""

from collections import defaultdict
from collections.abc import Iterable

import structlog

from catalog_service.catalog.stores import CategoryStore, ProductStore, StoreConflictError
from catalog_service.domain.entities import Category, CategoryNode
from catalog_service.domain.exceptions import (
    CategoryHasChildrenError,
    CategoryHasProductsError,
    CategoryNameConflictError,
    CategoryNotFoundError,
    InvalidParentCategoryError,
    UnauthorizedError,
)
from catalog_service.domain.value_objects import AuthContext, CategoryFields, Role

logger = structlog.get_logger()

MANAGING_ROLES = frozenset({Role.SELLER.value, Role.ADMIN.value})


class CategoryManager:
    """Application service for category management.

    Every mutating operation runs as one store transaction: reads, a
    single write, then ``commit()``. Any failure rolls the transaction
    back before the error propagates.
    """

    def __init__(self, categories: CategoryStore, products: ProductStore) -> None:
        """Initialize category manager.

        Args:
            categories: Category persistence.
            products: Product persistence, consulted by the delete guard.
        """
        self._categories = categories
        self._products = products

    # ========================================================================
    # Authorization
    # ========================================================================

    @staticmethod
    def can_manage(roles: Iterable[str]) -> bool:
        """True iff the roles include SELLER or ADMIN."""
        return not MANAGING_ROLES.isdisjoint(
            r.value if isinstance(r, Role) else r for r in roles
        )

    def _require_manager(self, ctx: AuthContext) -> None:
        if not self.can_manage(ctx.roles):
            logger.warning(
                "Category change rejected",
                tenant_id=ctx.tenant_id,
                user_id=ctx.user_id,
                roles=sorted(ctx.roles),
            )
            raise UnauthorizedError(
                "Only sellers and admins can manage categories", actor_id=ctx.user_id
            )

    # ========================================================================
    # Queries
    # ========================================================================

    async def get_by_id(self, category_id: str, tenant_id: str) -> Category:
        """Get a category within a tenant.

        Raises:
            CategoryNotFoundError: If absent or owned by another tenant.
        """
        category = await self._categories.get(category_id, tenant_id)
        if category is None:
            raise CategoryNotFoundError(category_id, tenant_id)
        return category

    async def list_all(self, tenant_id: str) -> list[Category]:
        return await self._categories.list_by_tenant(tenant_id)

    async def get_children(self, parent_id: str, tenant_id: str) -> list[Category]:
        """Direct children of a category.

        Raises:
            CategoryNotFoundError: If the parent does not resolve.
        """
        await self.get_by_id(parent_id, tenant_id)
        return await self._categories.list_by_parent(parent_id, tenant_id)

    async def child_ids(self, tenant_id: str) -> dict[str, list[str]]:
        """Map each category id to the ids of its direct children."""
        index: dict[str, list[str]] = defaultdict(list)
        for category in await self._categories.list_by_tenant(tenant_id):
            if category.parent_id is not None:
                index[category.parent_id].append(category.id)
        return dict(index)

    async def get_tree(self, tenant_id: str) -> list[CategoryNode]:
        """Build the tenant's category forest.

        The tenant's categories are fetched once and grouped by parent in
        memory. Each category appears at most once; members of a parent
        cycle are unreachable from any root and are left out.

        Returns:
            Root nodes (categories without a parent) with nested children.
        """
        categories = await self._categories.list_by_tenant(tenant_id)

        by_parent: dict[str, list[Category]] = defaultdict(list)
        roots: list[Category] = []
        for category in categories:
            if category.parent_id is None:
                roots.append(category)
            else:
                by_parent[category.parent_id].append(category)

        visited: set[str] = set()
        tree: list[CategoryNode] = []
        for root in roots:
            root_node = CategoryNode(category=root)
            visited.add(root.id)
            tree.append(root_node)

            # Iterative: hierarchies can be deeper than the recursion limit
            pending = [root_node]
            while pending:
                node = pending.pop()
                for child in by_parent.get(node.id, []):
                    if child.id in visited:
                        continue
                    visited.add(child.id)
                    child_node = CategoryNode(category=child)
                    node.children.append(child_node)
                    pending.append(child_node)

        skipped = len(categories) - len(visited)
        if skipped:
            logger.warning(
                "Categories unreachable from any root",
                tenant_id=tenant_id,
                count=skipped,
            )
        return tree

    # ========================================================================
    # Commands
    # ========================================================================

    async def create(self, ctx: AuthContext, fields: CategoryFields) -> Category:
        """Create a category in the caller's tenant.

        Args:
            ctx: Caller identity.
            fields: Requested name, description and parent.

        Returns:
            The persisted category.

        Raises:
            UnauthorizedError: If the caller is neither seller nor admin.
            CategoryNameConflictError: If the name is taken in the tenant.
            CategoryNotFoundError: If the parent does not resolve.
        """
        self._require_manager(ctx)
        tenant_id = ctx.tenant_id

        try:
            if await self._categories.find_by_name(fields.name, tenant_id) is not None:
                raise CategoryNameConflictError(fields.name, tenant_id)

            if fields.parent_id is not None:
                await self._require_parent(fields.parent_id, tenant_id)

            category = Category.create(tenant_id, fields)
            await self._categories.add(category)
            await self._categories.commit()
        except StoreConflictError as e:
            await self._categories.rollback()
            raise CategoryNameConflictError(fields.name, tenant_id) from e
        except Exception:
            await self._categories.rollback()
            raise

        logger.info(
            "Category created",
            category_id=category.id,
            tenant_id=tenant_id,
            parent_id=category.parent_id,
        )
        return category

    async def update(
        self,
        category_id: str,
        ctx: AuthContext,
        fields: CategoryFields,
    ) -> Category:
        """Rename, describe or re-parent a category.

        ``name``, ``description`` and ``parent_id`` are all overwritten;
        a None parent moves the category to the top level.

        Raises:
            UnauthorizedError: If the caller is neither seller nor admin.
            CategoryNotFoundError: If the category or new parent does not resolve.
            CategoryNameConflictError: If the new name is taken in the tenant.
            InvalidParentCategoryError: If the category is made its own parent.
        """
        self._require_manager(ctx)
        tenant_id = ctx.tenant_id

        try:
            category = await self.get_by_id(category_id, tenant_id)

            if fields.name != category.name:
                existing = await self._categories.find_by_name(fields.name, tenant_id)
                if existing is not None and existing.id != category.id:
                    raise CategoryNameConflictError(fields.name, tenant_id)

            if fields.parent_id is not None and fields.parent_id != category.parent_id:
                if fields.parent_id == category.id:
                    raise InvalidParentCategoryError(category.id)
                await self._require_parent(fields.parent_id, tenant_id)

            category.apply(fields)
            await self._categories.update(category)
            await self._categories.commit()
        except StoreConflictError as e:
            await self._categories.rollback()
            raise CategoryNameConflictError(fields.name, tenant_id) from e
        except Exception:
            await self._categories.rollback()
            raise

        logger.info("Category updated", category_id=category.id, tenant_id=tenant_id)
        return category

    async def delete(self, category_id: str, ctx: AuthContext) -> None:
        """Hard-delete an unreferenced category.

        Raises:
            UnauthorizedError: If the caller is neither seller nor admin.
            CategoryNotFoundError: If the category does not resolve.
            CategoryHasProductsError: If live products reference it.
            CategoryHasChildrenError: If other categories use it as parent.
        """
        self._require_manager(ctx)
        tenant_id = ctx.tenant_id

        try:
            category = await self.get_by_id(category_id, tenant_id)

            product_count = await self._products.count_by_category(tenant_id, category.id)
            if product_count > 0:
                raise CategoryHasProductsError(category.id, product_count)

            children = await self._categories.list_by_parent(category.id, tenant_id)
            if children:
                raise CategoryHasChildrenError(category.id, len(children))

            await self._categories.delete(category)
            await self._categories.commit()
        except Exception:
            await self._categories.rollback()
            raise

        logger.info("Category deleted", category_id=category_id, tenant_id=tenant_id)

    async def _require_parent(self, parent_id: str, tenant_id: str) -> Category:
        parent = await self._categories.get(parent_id, tenant_id)
        if parent is None:
            raise CategoryNotFoundError(parent_id, tenant_id, role="Parent category")
        return parent
