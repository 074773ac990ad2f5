"""Tests for ProductManager."""

from collections.abc import Callable
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from catalog_service.application.product_manager import ProductManager
from catalog_service.catalog.memory import InMemoryCategoryStore, InMemoryProductStore
from catalog_service.catalog.stores import PRODUCT_SKU_CONSTRAINT, StoreConflictError
from catalog_service.domain.entities import Category
from catalog_service.domain.exceptions import (
    CategoryNotFoundError,
    InvalidInputError,
    ProductNotFoundError,
    SkuConflictError,
    UnauthorizedError,
)
from catalog_service.domain.state_machines import ProductStatus
from catalog_service.domain.value_objects import AuthContext, Price, ProductFields, Role
from catalog_service.infrastructure.event_publisher import (
    EventPublishError,
    InMemoryEventPublisher,
)

TENANT_A = "tenant-a"
TENANT_B = "tenant-b"


class TestCanAccess:
    """Tests for the ownership check."""

    def test_owner_has_access(self) -> None:
        assert ProductManager.can_access("s1", "s1", [])

    def test_admin_has_access(self) -> None:
        assert ProductManager.can_access("a1", "s1", [Role.ADMIN])
        assert ProductManager.can_access("a1", "s1", {"ADMIN"})

    def test_other_seller_has_no_access(self) -> None:
        assert not ProductManager.can_access("s2", "s1", {"SELLER"})

    def test_anonymous_has_no_access(self) -> None:
        assert not ProductManager.can_access(None, "s1", set())


class TestCreateProduct:
    """Tests for creating products."""

    @pytest.mark.asyncio
    async def test_create_and_read_back(
        self,
        product_manager: ProductManager,
        seller_ctx: AuthContext,
        make_fields: Callable[..., ProductFields],
    ) -> None:
        product = await product_manager.create(
            "seller-1",
            seller_ctx,
            make_fields(images=["http://x/1.png", "http://x/2.png"]),
        )

        stored = await product_manager.get_by_id(product.id, TENANT_A)
        assert stored.name == "Ceramic Mug"
        assert stored.price == Price("12.50")
        assert str(stored.currency) == "USD"
        assert stored.seller_id == "seller-1"
        assert stored.status is ProductStatus.ACTIVE
        assert stored.images.as_list() == ["http://x/1.png", "http://x/2.png"]
        assert not stored.deleted

    @pytest.mark.asyncio
    async def test_no_images_reads_back_empty(
        self,
        product_manager: ProductManager,
        seller_ctx: AuthContext,
        make_fields: Callable[..., ProductFields],
    ) -> None:
        product = await product_manager.create("seller-1", seller_ctx, make_fields())

        stored = await product_manager.get_by_id(product.id, TENANT_A)
        assert stored.images.as_list() == []

    @pytest.mark.asyncio
    async def test_requires_seller_or_admin(
        self,
        product_manager: ProductManager,
        buyer_ctx: AuthContext,
        publisher: InMemoryEventPublisher,
        make_fields: Callable[..., ProductFields],
    ) -> None:
        with pytest.raises(UnauthorizedError):
            await product_manager.create("buyer-1", buyer_ctx, make_fields())

        assert publisher.messages == []

    @pytest.mark.asyncio
    async def test_duplicate_sku(
        self,
        product_manager: ProductManager,
        seller_ctx: AuthContext,
        other_seller_ctx: AuthContext,
        make_fields: Callable[..., ProductFields],
    ) -> None:
        """SKUs are unique per tenant, whoever owns the first product."""
        await product_manager.create("seller-1", seller_ctx, make_fields())

        with pytest.raises(SkuConflictError):
            await product_manager.create("seller-2", other_seller_ctx, make_fields())

    @pytest.mark.asyncio
    async def test_sku_of_deleted_product_stays_taken(
        self,
        product_manager: ProductManager,
        seller_ctx: AuthContext,
        make_fields: Callable[..., ProductFields],
    ) -> None:
        product = await product_manager.create("seller-1", seller_ctx, make_fields())
        await product_manager.delete(product.id, seller_ctx)

        with pytest.raises(SkuConflictError):
            await product_manager.create("seller-1", seller_ctx, make_fields())

    @pytest.mark.asyncio
    async def test_same_sku_in_other_tenant(
        self,
        product_manager: ProductManager,
        seller_ctx: AuthContext,
        tenant_b_seller_ctx: AuthContext,
        make_fields: Callable[..., ProductFields],
    ) -> None:
        a = await product_manager.create("seller-1", seller_ctx, make_fields())
        b = await product_manager.create("seller-9", tenant_b_seller_ctx, make_fields())

        assert a.tenant_id == TENANT_A
        assert b.tenant_id == TENANT_B

    @pytest.mark.asyncio
    async def test_publishes_event_after_commit(
        self,
        product_manager: ProductManager,
        seller_ctx: AuthContext,
        publisher: InMemoryEventPublisher,
        make_fields: Callable[..., ProductFields],
    ) -> None:
        product = await product_manager.create("seller-1", seller_ctx, make_fields())

        assert len(publisher.messages) == 1
        message = publisher.messages[0]
        assert message.topic == "product-created"
        assert message.key == product.id
        assert message.value["event_type"] == "ProductCreated"
        assert message.value["product_id"] == product.id
        assert message.value["sku"] == "MUG-001"
        assert message.value["tenant_id"] == TENANT_A
        assert message.value["seller_id"] == "seller-1"
        assert "timestamp" in message.value

    @pytest.mark.asyncio
    async def test_publish_failure_is_swallowed(
        self,
        product_store: InMemoryProductStore,
        category_store: InMemoryCategoryStore,
        seller_ctx: AuthContext,
        make_fields: Callable[..., ProductFields],
    ) -> None:
        """A failing publisher never fails or reverts the create."""
        publisher = AsyncMock()
        publisher.publish.side_effect = EventPublishError("down", "product-created", "k")
        manager = ProductManager(product_store, category_store, publisher)

        product = await manager.create("seller-1", seller_ctx, make_fields())

        publisher.publish.assert_awaited_once()
        assert (await manager.get_by_id(product.id, TENANT_A)).id == product.id

    @pytest.mark.asyncio
    async def test_nothing_published_on_conflict(
        self,
        product_manager: ProductManager,
        seller_ctx: AuthContext,
        publisher: InMemoryEventPublisher,
        make_fields: Callable[..., ProductFields],
    ) -> None:
        await product_manager.create("seller-1", seller_ctx, make_fields())
        publisher.clear()

        with pytest.raises(SkuConflictError):
            await product_manager.create("seller-1", seller_ctx, make_fields())

        assert publisher.messages == []

    @pytest.mark.asyncio
    async def test_store_conflict_maps_to_sku_conflict(
        self,
        seller_ctx: AuthContext,
        make_fields: Callable[..., ProductFields],
    ) -> None:
        """A unique violation raised at commit is a SKU conflict and publishes nothing."""
        products = AsyncMock()
        products.find_by_sku.return_value = None
        products.commit.side_effect = StoreConflictError(PRODUCT_SKU_CONSTRAINT)
        publisher = AsyncMock()
        manager = ProductManager(products, AsyncMock(), publisher)

        with pytest.raises(SkuConflictError):
            await manager.create("seller-1", seller_ctx, make_fields())

        products.rollback.assert_awaited_once()
        publisher.publish.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_category_of_same_tenant(
        self,
        product_manager: ProductManager,
        category_store: InMemoryCategoryStore,
        seller_ctx: AuthContext,
        make_fields: Callable[..., ProductFields],
    ) -> None:
        await category_store.add(Category(id="cat-a", name="Mugs", tenant_id=TENANT_A))

        product = await product_manager.create(
            "seller-1", seller_ctx, make_fields(category_id="cat-a")
        )

        assert product.category_id == "cat-a"

    @pytest.mark.asyncio
    async def test_category_of_other_tenant_rejected(
        self,
        product_manager: ProductManager,
        category_store: InMemoryCategoryStore,
        seller_ctx: AuthContext,
        publisher: InMemoryEventPublisher,
        make_fields: Callable[..., ProductFields],
    ) -> None:
        """A category id from another tenant does not resolve."""
        await category_store.add(Category(id="cat-b", name="Mugs", tenant_id=TENANT_B))

        with pytest.raises(CategoryNotFoundError):
            await product_manager.create(
                "seller-1", seller_ctx, make_fields(category_id="cat-b")
            )

        assert await product_manager.list_by_seller("seller-1", TENANT_A) == []
        assert publisher.messages == []

    @pytest.mark.asyncio
    async def test_unknown_category_rejected(
        self,
        product_manager: ProductManager,
        seller_ctx: AuthContext,
        make_fields: Callable[..., ProductFields],
    ) -> None:
        with pytest.raises(CategoryNotFoundError):
            await product_manager.create(
                "seller-1", seller_ctx, make_fields(category_id="does-not-exist")
            )


class TestReadProducts:
    """Tests for product lookups."""

    @pytest.mark.asyncio
    async def test_other_tenant_is_not_found(
        self,
        product_manager: ProductManager,
        seller_ctx: AuthContext,
        make_fields: Callable[..., ProductFields],
    ) -> None:
        product = await product_manager.create("seller-1", seller_ctx, make_fields())

        with pytest.raises(ProductNotFoundError):
            await product_manager.get_by_id(product.id, TENANT_B)

    @pytest.mark.asyncio
    async def test_deleted_product_hidden_but_kept(
        self,
        product_manager: ProductManager,
        seller_ctx: AuthContext,
        make_fields: Callable[..., ProductFields],
    ) -> None:
        """Soft-deleted products disappear from reads but keep their row and id."""
        product = await product_manager.create(
            "seller-1", seller_ctx, make_fields(description="blue mug")
        )
        await product_manager.delete(product.id, seller_ctx)

        with pytest.raises(ProductNotFoundError):
            await product_manager.get_by_id(product.id, TENANT_A)

        page = await product_manager.search(TENANT_A, query="blue")
        assert page.total_elements == 0

        assert await product_manager.list_by_seller("seller-1", TENANT_A) == []

        for _ in range(2):
            row = await product_manager.get_any_by_id(product.id, TENANT_A)
            assert row.id == product.id
            assert row.deleted
            assert row.deleted_at is not None

    @pytest.mark.asyncio
    async def test_list_by_seller(
        self,
        product_manager: ProductManager,
        seller_ctx: AuthContext,
        other_seller_ctx: AuthContext,
        make_fields: Callable[..., ProductFields],
    ) -> None:
        mine = await product_manager.create("seller-1", seller_ctx, make_fields(sku="A"))
        await product_manager.create("seller-2", other_seller_ctx, make_fields(sku="B"))

        listed = await product_manager.list_by_seller("seller-1", TENANT_A)
        assert [p.id for p in listed] == [mine.id]


@pytest_asyncio.fixture
async def catalog(
    product_manager: ProductManager,
    category_store: InMemoryCategoryStore,
    seller_ctx: AuthContext,
    tenant_b_seller_ctx: AuthContext,
    make_fields: Callable[..., ProductFields],
) -> dict[str, str]:
    """Four products in tenant A and one in tenant B."""
    for category_id, name in [("cat-mugs", "Mugs"), ("cat-pans", "Pans")]:
        await category_store.add(Category(id=category_id, name=name, tenant_id=TENANT_A))
    ids = {}
    for sku, name, description, price, category in [
        ("MUG-1", "Ceramic Mug", "Stoneware", "10.00", "cat-mugs"),
        ("MUG-2", "Travel mug", "Insulated steel", "25.00", "cat-mugs"),
        ("PAN-1", "Frying Pan", "Non-stick, fits any MUG rack", "40.00", "cat-pans"),
        ("PAN-2", "Saucepan", None, "55.50", "cat-pans"),
    ]:
        product = await product_manager.create(
            "seller-1",
            seller_ctx,
            make_fields(
                sku=sku,
                name=name,
                description=description,
                price=price,
                category_id=category,
            ),
        )
        ids[sku] = product.id
    await product_manager.create(
        "seller-9", tenant_b_seller_ctx, make_fields(sku="MUG-X", name="Foreign Mug")
    )
    return ids


class TestSearchProducts:
    """Tests for product search."""

    @pytest.mark.asyncio
    async def test_no_filters_returns_tenant_products(
        self, product_manager: ProductManager, catalog: dict[str, str]
    ) -> None:
        page = await product_manager.search(TENANT_A)

        assert page.total_elements == 4
        assert {p.id for p in page.items} == set(catalog.values())

    @pytest.mark.asyncio
    async def test_text_matches_name_or_description_case_insensitive(
        self, product_manager: ProductManager, catalog: dict[str, str]
    ) -> None:
        page = await product_manager.search(TENANT_A, query="mug")

        assert {p.sku for p in page.items} == {"MUG-1", "MUG-2", "PAN-1"}

    @pytest.mark.asyncio
    async def test_filters_are_and_combined(
        self, product_manager: ProductManager, catalog: dict[str, str]
    ) -> None:
        page = await product_manager.search(
            TENANT_A,
            query="mug",
            category_id="cat-mugs",
            min_price=Decimal("20"),
            max_price=Decimal("30"),
        )

        assert [p.sku for p in page.items] == ["MUG-2"]

    @pytest.mark.asyncio
    async def test_price_bounds_are_inclusive(
        self, product_manager: ProductManager, catalog: dict[str, str]
    ) -> None:
        page = await product_manager.search(
            TENANT_A, min_price=Decimal("10.00"), max_price=Decimal("40.00")
        )

        assert {p.sku for p in page.items} == {"MUG-1", "MUG-2", "PAN-1"}

    @pytest.mark.asyncio
    async def test_pagination(
        self, product_manager: ProductManager, catalog: dict[str, str]
    ) -> None:
        first = await product_manager.search(TENANT_A, page=0, size=3)
        second = await product_manager.search(TENANT_A, page=1, size=3)

        assert len(first.items) == 3
        assert len(second.items) == 1
        assert first.total_pages == second.total_pages == 2
        assert first.first and not first.last
        assert second.last and not second.first
        seen = [p.id for p in first.items + second.items]
        assert sorted(seen) == sorted(catalog.values())

    @pytest.mark.asyncio
    async def test_page_past_end_is_empty(
        self, product_manager: ProductManager, catalog: dict[str, str]
    ) -> None:
        page = await product_manager.search(TENANT_A, page=5, size=10)

        assert page.items == []
        assert page.total_elements == 4

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("page", "size"), [(-1, 10), (0, 0), (0, 101)])
    async def test_invalid_paging(
        self, product_manager: ProductManager, page: int, size: int
    ) -> None:
        with pytest.raises(InvalidInputError):
            await product_manager.search(TENANT_A, page=page, size=size)


class TestUpdateProduct:
    """Tests for updating products."""

    @pytest.mark.asyncio
    async def test_partial_update(
        self,
        product_manager: ProductManager,
        category_store: InMemoryCategoryStore,
        seller_ctx: AuthContext,
        make_fields: Callable[..., ProductFields],
    ) -> None:
        """Omitted optional fields keep stored values; required ones overwrite."""
        await category_store.add(Category(id="cat-1", name="Cups", tenant_id=TENANT_A))
        product = await product_manager.create(
            "seller-1",
            seller_ctx,
            make_fields(category_id="cat-1", status="DRAFT", images=["http://x/1.png"]),
        )

        await product_manager.update(
            product.id,
            seller_ctx,
            ProductFields(name="Big Mug", sku="MUG-009", price="15", currency="gbp"),
        )

        stored = await product_manager.get_by_id(product.id, TENANT_A)
        assert stored.name == "Big Mug"
        assert stored.sku == "MUG-009"
        assert stored.price == Price("15.00")
        assert str(stored.currency) == "GBP"
        assert stored.description == "A sturdy stoneware mug"
        assert stored.category_id == "cat-1"
        assert stored.status is ProductStatus.DRAFT
        assert stored.images.as_list() == ["http://x/1.png"]

    @pytest.mark.asyncio
    async def test_status_change(
        self,
        product_manager: ProductManager,
        seller_ctx: AuthContext,
        make_fields: Callable[..., ProductFields],
    ) -> None:
        product = await product_manager.create("seller-1", seller_ctx, make_fields())

        updated = await product_manager.update(
            product.id, seller_ctx, make_fields(status="INACTIVE")
        )

        assert updated.status is ProductStatus.INACTIVE

    @pytest.mark.asyncio
    async def test_sku_change_to_taken_sku(
        self,
        product_manager: ProductManager,
        seller_ctx: AuthContext,
        make_fields: Callable[..., ProductFields],
    ) -> None:
        await product_manager.create("seller-1", seller_ctx, make_fields(sku="A"))
        b = await product_manager.create("seller-1", seller_ctx, make_fields(sku="B"))

        with pytest.raises(SkuConflictError):
            await product_manager.update(b.id, seller_ctx, make_fields(sku="A"))

        assert (await product_manager.get_by_id(b.id, TENANT_A)).sku == "B"

    @pytest.mark.asyncio
    async def test_keeping_sku_is_allowed(
        self,
        product_manager: ProductManager,
        seller_ctx: AuthContext,
        make_fields: Callable[..., ProductFields],
    ) -> None:
        product = await product_manager.create("seller-1", seller_ctx, make_fields())

        updated = await product_manager.update(
            product.id, seller_ctx, make_fields(name="Renamed")
        )
        assert updated.name == "Renamed"

    @pytest.mark.asyncio
    async def test_other_seller_is_unauthorized(
        self,
        product_manager: ProductManager,
        seller_ctx: AuthContext,
        other_seller_ctx: AuthContext,
        make_fields: Callable[..., ProductFields],
    ) -> None:
        product = await product_manager.create("seller-1", seller_ctx, make_fields())

        with pytest.raises(UnauthorizedError):
            await product_manager.update(product.id, other_seller_ctx, make_fields(name="Mine"))

        assert (await product_manager.get_by_id(product.id, TENANT_A)).name == "Ceramic Mug"

    @pytest.mark.asyncio
    async def test_admin_can_update_any(
        self,
        product_manager: ProductManager,
        seller_ctx: AuthContext,
        admin_ctx: AuthContext,
        make_fields: Callable[..., ProductFields],
    ) -> None:
        product = await product_manager.create("seller-1", seller_ctx, make_fields())

        updated = await product_manager.update(
            product.id, admin_ctx, make_fields(name="Moderated")
        )

        assert updated.name == "Moderated"
        assert updated.seller_id == "seller-1"

    @pytest.mark.asyncio
    async def test_deleted_product_cannot_be_updated(
        self,
        product_manager: ProductManager,
        seller_ctx: AuthContext,
        make_fields: Callable[..., ProductFields],
    ) -> None:
        product = await product_manager.create("seller-1", seller_ctx, make_fields())
        await product_manager.delete(product.id, seller_ctx)

        with pytest.raises(ProductNotFoundError):
            await product_manager.update(product.id, seller_ctx, make_fields(name="Back"))

        assert (await product_manager.get_any_by_id(product.id, TENANT_A)).deleted

    @pytest.mark.asyncio
    async def test_other_tenant_is_not_found(
        self,
        product_manager: ProductManager,
        seller_ctx: AuthContext,
        make_fields: Callable[..., ProductFields],
    ) -> None:
        product = await product_manager.create("seller-1", seller_ctx, make_fields())
        intruder = AuthContext.of(TENANT_B, "seller-1", [Role.ADMIN])

        with pytest.raises(ProductNotFoundError):
            await product_manager.update(product.id, intruder, make_fields())

    @pytest.mark.asyncio
    async def test_move_to_unknown_or_foreign_category(
        self,
        product_manager: ProductManager,
        category_store: InMemoryCategoryStore,
        seller_ctx: AuthContext,
        make_fields: Callable[..., ProductFields],
    ) -> None:
        """Updates resolve the category within the caller's tenant."""
        await category_store.add(Category(id="cat-b", name="Mugs", tenant_id=TENANT_B))
        product = await product_manager.create("seller-1", seller_ctx, make_fields())

        for category_id in ("cat-b", "does-not-exist"):
            with pytest.raises(CategoryNotFoundError):
                await product_manager.update(
                    product.id, seller_ctx, make_fields(category_id=category_id)
                )

        assert (await product_manager.get_by_id(product.id, TENANT_A)).category_id is None


class TestDeleteProduct:
    """Tests for soft-deleting products."""

    @pytest.mark.asyncio
    async def test_owner_can_delete(
        self,
        product_manager: ProductManager,
        seller_ctx: AuthContext,
        make_fields: Callable[..., ProductFields],
    ) -> None:
        product = await product_manager.create("seller-1", seller_ctx, make_fields())

        await product_manager.delete(product.id, seller_ctx)

        with pytest.raises(ProductNotFoundError):
            await product_manager.get_by_id(product.id, TENANT_A)

    @pytest.mark.asyncio
    async def test_admin_can_delete_any(
        self,
        product_manager: ProductManager,
        seller_ctx: AuthContext,
        admin_ctx: AuthContext,
        make_fields: Callable[..., ProductFields],
    ) -> None:
        product = await product_manager.create("seller-1", seller_ctx, make_fields())

        await product_manager.delete(product.id, admin_ctx)

        assert (await product_manager.get_any_by_id(product.id, TENANT_A)).deleted

    @pytest.mark.asyncio
    async def test_other_seller_is_unauthorized(
        self,
        product_manager: ProductManager,
        seller_ctx: AuthContext,
        other_seller_ctx: AuthContext,
        make_fields: Callable[..., ProductFields],
    ) -> None:
        product = await product_manager.create("seller-1", seller_ctx, make_fields())

        with pytest.raises(UnauthorizedError):
            await product_manager.delete(product.id, other_seller_ctx)

        assert not (await product_manager.get_by_id(product.id, TENANT_A)).deleted

    @pytest.mark.asyncio
    async def test_delete_twice_is_not_found(
        self,
        product_manager: ProductManager,
        seller_ctx: AuthContext,
        make_fields: Callable[..., ProductFields],
    ) -> None:
        product = await product_manager.create("seller-1", seller_ctx, make_fields())
        await product_manager.delete(product.id, seller_ctx)

        with pytest.raises(ProductNotFoundError):
            await product_manager.delete(product.id, seller_ctx)
