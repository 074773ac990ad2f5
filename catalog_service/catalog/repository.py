"""SQL store adapters for database operations.

Async SQLAlchemy implementations of ``CategoryStore`` and ``ProductStore``.
Rows are mapped to domain entities at the boundary; unique-constraint
violations raised by the database on flush or commit are reported as
``StoreConflictError``.
"""

from collections.abc import Sequence

import structlog
from sqlalchemy import Select, and_, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_service.catalog.models import CategoryModel, ProductModel
from catalog_service.catalog.stores import (
    CATEGORY_NAME_CONSTRAINT,
    PRODUCT_SKU_CONSTRAINT,
    CategoryStore,
    ProductStore,
    StoreConflictError,
)
from catalog_service.domain.entities import Category, Product
from catalog_service.domain.state_machines import ProductStatus, RecordState
from catalog_service.domain.value_objects import (
    CurrencyCode,
    ImageList,
    Price,
    SearchCriteria,
)

logger = structlog.get_logger()


def _is_unique_violation(error: IntegrityError) -> bool:
    text = str(error.orig).lower()
    return "unique" in text or "duplicate key" in text


class _SessionStore:
    """Shared flush/commit handling for the SQL stores."""

    constraint: str = ""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self.session = session

    async def _translate(self, error: IntegrityError) -> None:
        await self.session.rollback()
        if _is_unique_violation(error):
            logger.info("Unique constraint violated", constraint=self.constraint)
            raise StoreConflictError(self.constraint, str(error.orig)) from error
        raise error

    async def _flush(self) -> None:
        try:
            await self.session.flush()
        except IntegrityError as e:
            await self._translate(e)

    async def commit(self) -> None:
        try:
            await self.session.commit()
        except IntegrityError as e:
            await self._translate(e)

    async def rollback(self) -> None:
        await self.session.rollback()


# ============================================================================
# Categories
# ============================================================================


def category_from_row(row: CategoryModel) -> Category:
    return Category(
        id=row.id,
        name=row.name,
        description=row.description,
        parent_id=row.parent_id,
        tenant_id=row.tenant_id,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class SqlCategoryStore(_SessionStore, CategoryStore):
    """Repository for Category database operations.

    Example usage:
        async with get_session_factory()() as session:
            store = SqlCategoryStore(session)
            roots = [c for c in await store.list_by_tenant(tenant_id) if c.is_root]
    """

    constraint = CATEGORY_NAME_CONSTRAINT

    async def _row(self, category_id: str, tenant_id: str) -> CategoryModel | None:
        query = select(CategoryModel).where(
            and_(CategoryModel.id == category_id, CategoryModel.tenant_id == tenant_id)
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get(self, category_id: str, tenant_id: str) -> Category | None:
        row = await self._row(category_id, tenant_id)
        return category_from_row(row) if row else None

    async def find_by_name(self, name: str, tenant_id: str) -> Category | None:
        query = select(CategoryModel).where(
            and_(CategoryModel.name == name, CategoryModel.tenant_id == tenant_id)
        )
        result = await self.session.execute(query)
        row = result.scalar_one_or_none()
        return category_from_row(row) if row else None

    async def list_by_tenant(self, tenant_id: str) -> list[Category]:
        query = (
            select(CategoryModel)
            .where(CategoryModel.tenant_id == tenant_id)
            .order_by(CategoryModel.created_at, CategoryModel.id)
        )
        result = await self.session.execute(query)
        return [category_from_row(row) for row in result.scalars().all()]

    async def list_by_parent(self, parent_id: str, tenant_id: str) -> list[Category]:
        query = (
            select(CategoryModel)
            .where(
                and_(
                    CategoryModel.parent_id == parent_id,
                    CategoryModel.tenant_id == tenant_id,
                )
            )
            .order_by(CategoryModel.created_at, CategoryModel.id)
        )
        result = await self.session.execute(query)
        return [category_from_row(row) for row in result.scalars().all()]

    async def add(self, category: Category) -> Category:
        self.session.add(
            CategoryModel(
                id=category.id,
                name=category.name,
                description=category.description,
                parent_id=category.parent_id,
                tenant_id=category.tenant_id,
                created_at=category.created_at,
                updated_at=category.updated_at,
            )
        )
        await self._flush()
        return category

    async def update(self, category: Category) -> Category:
        row = await self._row(category.id, category.tenant_id)
        if row is None:
            raise LookupError(f"Category row {category.id} vanished during update")
        row.name = category.name
        row.description = category.description
        row.parent_id = category.parent_id
        row.updated_at = category.updated_at
        await self._flush()
        return category

    async def delete(self, category: Category) -> None:
        row = await self._row(category.id, category.tenant_id)
        if row is None:
            return
        await self.session.delete(row)
        await self._flush()


# ============================================================================
# Products
# ============================================================================


def product_from_row(row: ProductModel) -> Product:
    return Product(
        id=row.id,
        name=row.name,
        sku=row.sku,
        description=row.description,
        price=Price(row.price),
        currency=CurrencyCode(row.currency),
        category_id=row.category_id,
        seller_id=row.seller_id,
        tenant_id=row.tenant_id,
        images=ImageList.parse(row.images),
        status=ProductStatus(row.status),
        state=RecordState.DELETED if row.deleted else RecordState.LIVE,
        deleted_at=row.deleted_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _copy_to_row(product: Product, row: ProductModel) -> None:
    row.name = product.name
    row.sku = product.sku
    row.description = product.description
    row.price = product.price.amount
    row.currency = str(product.currency)
    row.category_id = product.category_id
    row.images = product.images.serialize()
    row.status = product.status.value
    row.deleted = product.deleted
    row.deleted_at = product.deleted_at
    row.updated_at = product.updated_at


def _contains_pattern(text: str) -> str:
    """LIKE pattern matching ``text`` literally anywhere; escape character is a backslash."""
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class SqlProductStore(_SessionStore, ProductStore):
    """Repository for Product database operations.

    Handles tenant-scoped lookups, filtering and pagination.
    """

    constraint = PRODUCT_SKU_CONSTRAINT

    async def _row(
        self,
        product_id: str,
        tenant_id: str,
        include_deleted: bool = False,
    ) -> ProductModel | None:
        conditions = [ProductModel.id == product_id, ProductModel.tenant_id == tenant_id]
        if not include_deleted:
            conditions.append(ProductModel.deleted.is_(False))
        result = await self.session.execute(select(ProductModel).where(and_(*conditions)))
        return result.scalar_one_or_none()

    async def get(
        self,
        product_id: str,
        tenant_id: str,
        include_deleted: bool = False,
    ) -> Product | None:
        row = await self._row(product_id, tenant_id, include_deleted)
        return product_from_row(row) if row else None

    async def find_by_sku(self, sku: str, tenant_id: str) -> Product | None:
        query = select(ProductModel).where(
            and_(ProductModel.sku == sku, ProductModel.tenant_id == tenant_id)
        )
        result = await self.session.execute(query)
        row = result.scalar_one_or_none()
        return product_from_row(row) if row else None

    async def list_by_seller(self, seller_id: str, tenant_id: str) -> list[Product]:
        query = (
            select(ProductModel)
            .where(
                and_(
                    ProductModel.seller_id == seller_id,
                    ProductModel.tenant_id == tenant_id,
                    ProductModel.deleted.is_(False),
                )
            )
            .order_by(ProductModel.created_at, ProductModel.id)
        )
        result = await self.session.execute(query)
        return [product_from_row(row) for row in result.scalars().all()]

    def _search_conditions(self, criteria: SearchCriteria) -> list:
        conditions = [
            ProductModel.tenant_id == criteria.tenant_id,
            ProductModel.deleted.is_(False),
        ]

        if criteria.category_id is not None:
            conditions.append(ProductModel.category_id == criteria.category_id)

        if criteria.min_price is not None:
            conditions.append(ProductModel.price >= criteria.min_price)

        if criteria.max_price is not None:
            conditions.append(ProductModel.price <= criteria.max_price)

        if criteria.query:
            search_pattern = _contains_pattern(criteria.query)
            conditions.append(
                or_(
                    ProductModel.name.ilike(search_pattern, escape="\\"),
                    ProductModel.description.ilike(search_pattern, escape="\\"),
                )
            )

        return conditions

    async def search(
        self,
        criteria: SearchCriteria,
        offset: int,
        limit: int,
    ) -> tuple[list[Product], int]:
        conditions = self._search_conditions(criteria)

        count_query = select(func.count(ProductModel.id)).where(and_(*conditions))
        total = (await self.session.execute(count_query)).scalar_one()

        query: Select = (
            select(ProductModel)
            .where(and_(*conditions))
            .order_by(ProductModel.created_at, ProductModel.id)
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(query)
        rows: Sequence[ProductModel] = result.scalars().all()
        return [product_from_row(row) for row in rows], total

    async def count_by_category(self, tenant_id: str, category_id: str) -> int:
        query = select(func.count(ProductModel.id)).where(
            and_(
                ProductModel.tenant_id == tenant_id,
                ProductModel.category_id == category_id,
                ProductModel.deleted.is_(False),
            )
        )
        result = await self.session.execute(query)
        return result.scalar_one()

    async def add(self, product: Product) -> Product:
        row = ProductModel(
            id=product.id,
            seller_id=product.seller_id,
            tenant_id=product.tenant_id,
            created_at=product.created_at,
        )
        _copy_to_row(product, row)
        self.session.add(row)
        await self._flush()
        return product

    async def update(self, product: Product) -> Product:
        row = await self._row(product.id, product.tenant_id, include_deleted=True)
        if row is None:
            raise LookupError(f"Product row {product.id} vanished during update")
        _copy_to_row(product, row)
        await self._flush()
        return product
