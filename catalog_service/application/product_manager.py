"""Product application service.

Orchestrates the product lifecycle:
- Creating products and announcing them with ``ProductCreated``
- Ownership-checked updates and soft deletes
- Filtered, paginated search over live products
"""

from collections.abc import Iterable
from decimal import Decimal

import structlog

from catalog_service.catalog.stores import CategoryStore, ProductStore, StoreConflictError
from catalog_service.domain.entities import Product
from catalog_service.domain.events import ProductCreated
from catalog_service.domain.exceptions import (
    CategoryNotFoundError,
    InvalidInputError,
    ProductNotFoundError,
    SkuConflictError,
    UnauthorizedError,
)
from catalog_service.domain.value_objects import (
    AuthContext,
    Page,
    ProductFields,
    Role,
    SearchCriteria,
)
from catalog_service.infrastructure.config import settings
from catalog_service.infrastructure.event_publisher import EventPublisher

logger = structlog.get_logger()

CREATING_ROLES = frozenset({Role.SELLER.value, Role.ADMIN.value})


def _role_values(roles: Iterable[str | Role]) -> set[str]:
    return {r.value if isinstance(r, Role) else r for r in roles}


class ProductManager:
    """Application service for product management.

    Mutations commit before anything is published. Publication is one
    best-effort attempt whose failure is logged and never reaches the
    caller.
    """

    def __init__(
        self,
        products: ProductStore,
        categories: CategoryStore,
        publisher: EventPublisher,
        max_page_size: int | None = None,
    ) -> None:
        """Initialize product manager.

        Args:
            products: Product persistence.
            categories: Category lookups; only read, never written.
            publisher: Receives ``ProductCreated`` after each committed create.
            max_page_size: Upper bound for search page size.
        """
        self._products = products
        self._categories = categories
        self._publisher = publisher
        self._max_page_size = max_page_size or settings.search_max_page_size

    # ========================================================================
    # Authorization
    # ========================================================================

    @staticmethod
    def can_access(
        actor_id: str | None,
        seller_id: str,
        roles: Iterable[str | Role],
    ) -> bool:
        """True if the actor owns the product or holds ADMIN."""
        if actor_id is not None and actor_id == seller_id:
            return True
        return Role.ADMIN.value in _role_values(roles)

    def _require_access(self, product: Product, ctx: AuthContext) -> None:
        if not self.can_access(ctx.user_id, product.seller_id, ctx.roles):
            logger.warning(
                "Product access denied",
                product_id=product.id,
                seller_id=product.seller_id,
                user_id=ctx.user_id,
            )
            raise UnauthorizedError(
                "Not authorized to modify this product", actor_id=ctx.user_id
            )

    async def _require_category(self, category_id: str | None, tenant_id: str) -> None:
        if category_id is None:
            return
        if await self._categories.get(category_id, tenant_id) is None:
            raise CategoryNotFoundError(category_id, tenant_id)

    # ========================================================================
    # Queries
    # ========================================================================

    async def get_by_id(self, product_id: str, tenant_id: str) -> Product:
        """Get a live product within a tenant.

        Raises:
            ProductNotFoundError: If absent, soft-deleted or owned by another tenant.
        """
        product = await self._products.get(product_id, tenant_id)
        if product is None:
            raise ProductNotFoundError(product_id, tenant_id)
        return product

    async def get_any_by_id(self, product_id: str, tenant_id: str) -> Product:
        """Get a product including soft-deleted ones (audit path).

        Raises:
            ProductNotFoundError: If no row exists for the tenant.
        """
        product = await self._products.get(product_id, tenant_id, include_deleted=True)
        if product is None:
            raise ProductNotFoundError(product_id, tenant_id)
        return product

    async def list_by_seller(self, seller_id: str, tenant_id: str) -> list[Product]:
        return await self._products.list_by_seller(seller_id, tenant_id)

    async def search(
        self,
        tenant_id: str,
        query: str | None = None,
        category_id: str | None = None,
        min_price: Decimal | None = None,
        max_price: Decimal | None = None,
        page: int = 0,
        size: int = 20,
    ) -> Page[Product]:
        """Search live products of a tenant.

        All filters are optional and AND-combined; ``query`` matches
        name or description case-insensitively. Results are ordered by
        creation time, then id.

        Args:
            tenant_id: Tenant to search in.
            query: Substring to look for.
            category_id: Restrict to one category.
            min_price: Inclusive lower price bound.
            max_price: Inclusive upper price bound.
            page: Page number (0-based).
            size: Page size.

        Returns:
            The requested page with totals.

        Raises:
            InvalidInputError: If paging parameters are out of range.
        """
        if page < 0:
            raise InvalidInputError("page", "Page must not be negative")
        if size < 1 or size > self._max_page_size:
            raise InvalidInputError(
                "size", f"Size must be between 1 and {self._max_page_size}"
            )

        criteria = SearchCriteria(
            tenant_id=tenant_id,
            query=query,
            category_id=category_id,
            min_price=min_price,
            max_price=max_price,
        )
        items, total = await self._products.search(criteria, offset=page * size, limit=size)

        logger.debug(
            "Product search",
            tenant_id=tenant_id,
            query=criteria.query,
            category_id=category_id,
            total=total,
        )
        return Page(items=items, page=page, size=size, total_elements=total)

    # ========================================================================
    # Commands
    # ========================================================================

    async def create(
        self,
        seller_id: str,
        ctx: AuthContext,
        fields: ProductFields,
    ) -> Product:
        """Create a product and announce it.

        Args:
            seller_id: Owner of the new product.
            ctx: Caller identity.
            fields: Requested product attributes.

        Returns:
            The committed product.

        Raises:
            UnauthorizedError: If the caller is neither seller nor admin.
            SkuConflictError: If the SKU exists in the tenant, deleted or not.
            CategoryNotFoundError: If ``category_id`` is not a category of the tenant.
        """
        if CREATING_ROLES.isdisjoint(_role_values(ctx.roles)):
            raise UnauthorizedError(
                "Only sellers and admins can create products", actor_id=ctx.user_id
            )
        tenant_id = ctx.tenant_id

        try:
            if await self._products.find_by_sku(fields.sku, tenant_id) is not None:
                raise SkuConflictError(fields.sku, tenant_id)
            await self._require_category(fields.category_id, tenant_id)

            product = Product.create(seller_id, tenant_id, fields)
            await self._products.add(product)
            await self._products.commit()
        except StoreConflictError as e:
            await self._products.rollback()
            raise SkuConflictError(fields.sku, tenant_id) from e
        except Exception:
            await self._products.rollback()
            raise

        logger.info(
            "Product created",
            product_id=product.id,
            sku=product.sku,
            tenant_id=tenant_id,
            seller_id=seller_id,
        )

        await self._publish(product)
        return product

    async def update(
        self,
        product_id: str,
        ctx: AuthContext,
        fields: ProductFields,
    ) -> Product:
        """Update a live product.

        ``name``, ``sku``, ``price`` and ``currency`` are always
        overwritten; ``description``, ``category_id`` and ``status`` only
        when given; images only when a non-empty list is given.

        Raises:
            ProductNotFoundError: If no live product exists for the tenant.
            UnauthorizedError: If the caller is neither owner nor admin.
            SkuConflictError: If the new SKU exists in the tenant.
            CategoryNotFoundError: If ``category_id`` is not a category of the tenant.
        """
        tenant_id = ctx.tenant_id

        try:
            product = await self.get_by_id(product_id, tenant_id)
            self._require_access(product, ctx)

            if fields.sku != product.sku:
                if await self._products.find_by_sku(fields.sku, tenant_id) is not None:
                    raise SkuConflictError(fields.sku, tenant_id)
            await self._require_category(fields.category_id, tenant_id)

            product.apply(fields)
            await self._products.update(product)
            await self._products.commit()
        except StoreConflictError as e:
            await self._products.rollback()
            raise SkuConflictError(fields.sku, tenant_id) from e
        except Exception:
            await self._products.rollback()
            raise

        logger.info("Product updated", product_id=product.id, tenant_id=tenant_id)
        return product

    async def delete(self, product_id: str, ctx: AuthContext) -> None:
        """Soft-delete a live product.

        Raises:
            ProductNotFoundError: If no live product exists for the tenant.
            UnauthorizedError: If the caller is neither owner nor admin.
        """
        tenant_id = ctx.tenant_id

        try:
            product = await self.get_by_id(product_id, tenant_id)
            self._require_access(product, ctx)

            product.soft_delete()
            await self._products.update(product)
            await self._products.commit()
        except Exception:
            await self._products.rollback()
            raise

        logger.info("Product deleted", product_id=product_id, tenant_id=tenant_id)

    # ========================================================================
    # Events
    # ========================================================================

    async def _publish(self, product: Product) -> None:
        for event in product.collect_events():
            if not isinstance(event, ProductCreated):
                continue
            try:
                await self._publisher.publish(event)
            except Exception:
                logger.exception(
                    "Failed to publish product event",
                    event_type=event.event_type,
                    product_id=product.id,
                )
