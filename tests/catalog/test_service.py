"""Tests for the catalog service."""

import base64
import json

import httpx
import pytest
from sqlalchemy.exc import OperationalError

from catalog_api.catalog.categories import Category
from catalog_api.catalog.filters import ProductFilter, build_list_filter
from catalog_api.catalog.repository import ReviewRepository
from catalog_api.catalog.service import CatalogService
from catalog_api.domain.exceptions import (
    InvalidCategory,
    InvalidPrice,
    MissingImage,
    NotFoundError,
    PersistenceFailure,
    UploadFailure,
)
from catalog_api.infrastructure.blob_storage import BlobStorageClient


def _db_error() -> OperationalError:
    return OperationalError("DELETE FROM reviews", {}, Exception("database is locked"))


@pytest.fixture
def service(session, blob_storage) -> CatalogService:
    """Catalog service on the test database."""
    return CatalogService(session, blob_storage=blob_storage)


class TestCreateProduct:
    """Tests for product creation."""

    @pytest.mark.asyncio
    async def test_creates_product(self, service, author) -> None:
        """A valid payload is stored and returned with its author."""
        product = await service.create_product(
            {
                "name": "Clear Cover",
                "category": Category.COVERS.value,
                "description": "Transparent",
                "price": "12.5",
                "image": "https://cdn.test/cover.jpg",
                "author": author.id,
            }
        )

        stored = await service.get_product(product.id)
        assert stored.name == "Clear Cover"
        assert stored.price == 12.5
        assert stored.images == ["https://cdn.test/cover.jpg"]
        assert stored.author.email == author.email

    @pytest.mark.asyncio
    async def test_invalid_payload_writes_nothing(self, service, author) -> None:
        """Validation failures leave the store untouched."""
        with pytest.raises(InvalidPrice):
            await service.create_product(
                {
                    "name": "Clear Cover",
                    "category": Category.COVERS.value,
                    "description": "Transparent",
                    "price": "-1",
                    "image": "https://cdn.test/cover.jpg",
                    "author": author.id,
                }
            )

        page = await service.list_products(ProductFilter())
        assert page.pagination.total == 0


class TestListProducts:
    """Tests for product listing."""

    @pytest.mark.asyncio
    async def test_paginates_newest_first(self, service, make_product) -> None:
        """Pages follow creation order, newest first."""
        created = [await make_product() for _ in range(25)]

        page = await service.list_products(ProductFilter(), page="3", limit="10")

        assert page.pagination.total == 25
        assert page.pagination.total_pages == 3
        assert [p.id for p in page.products] == [p.id for p in reversed(created[:5])]

    @pytest.mark.asyncio
    async def test_all_category_lists_everything(self, service, make_product) -> None:
        """category=all lists every product."""
        await make_product(category=Category.BAGS.value)
        await make_product(category=Category.COVERS.value)

        page = await service.list_products(build_list_filter(category="all"))

        assert page.pagination.total == 2

    @pytest.mark.asyncio
    async def test_page_past_end_is_empty(self, service, make_product) -> None:
        """Pages past the end are empty but keep totals."""
        await make_product()

        page = await service.list_products(ProductFilter(), page="5", limit="10")

        assert page.products == []
        assert page.pagination.total_pages == 1


class TestGetProduct:
    """Tests for product lookup."""

    @pytest.mark.asyncio
    async def test_missing_product(self, service) -> None:
        """Unknown products raise NotFoundError."""
        with pytest.raises(NotFoundError):
            await service.get_product("missing")

    @pytest.mark.asyncio
    async def test_detail_includes_reviews(self, service, make_product, make_review) -> None:
        """Detail carries the product's reviews only."""
        product = await make_product()
        other = await make_product()
        review = await make_review(product.id)
        await make_review(other.id)

        detail = await service.get_product_detail(product.id)

        assert detail.product.id == product.id
        assert [r.id for r in detail.reviews] == [review.id]

    @pytest.mark.asyncio
    async def test_related_for_missing_anchor(self, service) -> None:
        """Related products of an unknown anchor raise NotFoundError."""
        with pytest.raises(NotFoundError):
            await service.find_related("missing")


class TestUpdateProduct:
    """Tests for product updates."""

    def payload(self, **overrides) -> dict:
        data = {
            "name": "Renamed",
            "category": Category.ACCESSORIES.value,
            "description": "Updated",
            "price": "15",
        }
        data.update(overrides)
        return data

    @pytest.mark.asyncio
    async def test_update_keeps_images_and_clears_old_price(self, service, make_product) -> None:
        """Images and author are kept; oldPrice is cleared when absent."""
        product = await make_product(old_price=20.0, images=["https://cdn.test/a.jpg"])

        updated = await service.update_product(product.id, self.payload())

        assert updated.name == "Renamed"
        assert updated.price == 15.0
        assert updated.old_price is None
        assert updated.images == ["https://cdn.test/a.jpg"]
        assert updated.author_id == product.author_id

    @pytest.mark.asyncio
    async def test_update_replaces_images_from_json(self, service, make_product) -> None:
        """A JSON image list replaces all images."""
        product = await make_product(images=["https://cdn.test/a.jpg", "https://cdn.test/b.jpg"])

        updated = await service.update_product(
            product.id,
            self.payload(image=json.dumps(["https://cdn.test/c.jpg"])),
        )

        assert updated.images == ["https://cdn.test/c.jpg"]

    @pytest.mark.asyncio
    async def test_uploaded_files_replace_images(self, service, make_product, blob_store) -> None:
        """Uploaded files are stored and replace all images."""
        product = await make_product(images=["https://cdn.test/a.jpg"])

        updated = await service.update_product(
            product.id,
            self.payload(),
            files=[b"first", b"second"],
        )

        assert len(blob_store.uploads) == 2
        assert updated.images == [
            f"https://cdn.test/blobs/{base64.b64encode(b'first').decode()}",
            f"https://cdn.test/blobs/{base64.b64encode(b'second').decode()}",
        ]

    @pytest.mark.asyncio
    async def test_invalid_update_uploads_nothing(self, service, make_product, blob_store) -> None:
        """A rejected payload is reported before any file is uploaded."""
        product = await make_product()

        with pytest.raises(InvalidCategory):
            await service.update_product(
                product.id,
                self.payload(category="nope"),
                files=[b"img"],
            )

        assert blob_store.uploads == []

    @pytest.mark.asyncio
    async def test_empty_image_list_rejected(self, service, make_product) -> None:
        """An empty image list is not mistaken for an absent image field."""
        product = await make_product(images=["https://cdn.test/a.jpg"])

        with pytest.raises(MissingImage):
            await service.update_product(product.id, self.payload(image=[]))

        stored = await service.get_product(product.id)
        assert stored.images == ["https://cdn.test/a.jpg"]

    @pytest.mark.asyncio
    async def test_old_price_stays_absent(self, service, make_product) -> None:
        """A product that never had oldPrice still has none after update."""
        product = await make_product()

        await service.update_product(product.id, self.payload())

        stored = await service.get_product(product.id)
        assert stored.old_price is None

    @pytest.mark.asyncio
    async def test_missing_product(self, service) -> None:
        """Updating an unknown product raises NotFoundError."""
        with pytest.raises(NotFoundError):
            await service.update_product("missing", self.payload())

    @pytest.mark.asyncio
    async def test_product_vanishes_before_write(self, service, make_product, monkeypatch) -> None:
        """A product deleted between lookup and write raises NotFoundError."""
        product = await make_product()

        async def vanished(product_id, fields):
            return None

        monkeypatch.setattr(service.products, "update_by_id", vanished)

        with pytest.raises(NotFoundError):
            await service.update_product(product.id, self.payload())

    @pytest.mark.asyncio
    async def test_invalid_update_writes_nothing(self, service, make_product) -> None:
        """A failed validation leaves the product unchanged."""
        product = await make_product(images=["https://cdn.test/a.jpg"])

        with pytest.raises(MissingImage):
            await service.update_product(product.id, self.payload(image="[]"))

        stored = await service.get_product(product.id)
        assert stored.name == product.name
        assert stored.images == ["https://cdn.test/a.jpg"]

    @pytest.mark.asyncio
    async def test_upload_failure(self, session, make_product) -> None:
        """Blob storage errors surface as UploadFailure."""
        product = await make_product()
        failing = BlobStorageClient(
            base_url="http://blob.test",
            token="t",
            transport=httpx.MockTransport(lambda request: httpx.Response(503, text="down")),
        )
        service = CatalogService(session, blob_storage=failing)

        with pytest.raises(UploadFailure):
            await service.update_product(product.id, self.payload(), files=[b"img"])

        await failing.close()


class TestDeleteProduct:
    """Tests for product deletion with review cascade."""

    @pytest.mark.asyncio
    async def test_deletes_product_and_its_reviews(
        self, service, session, make_product, make_review
    ) -> None:
        """Only the deleted product's reviews are removed."""
        product = await make_product()
        other = await make_product()
        await make_review(product.id)
        await make_review(product.id)
        kept = await make_review(other.id)

        reviews_deleted = await service.delete_product(product.id)

        assert reviews_deleted == 2
        with pytest.raises(NotFoundError):
            await service.get_product(product.id)
        reviews = await ReviewRepository(session).find_by_product(other.id)
        assert [r.id for r in reviews] == [kept.id]

    @pytest.mark.asyncio
    async def test_missing_product_leaves_reviews(
        self, service, session, make_review
    ) -> None:
        """Deleting an unknown product does not touch reviews."""
        await make_review("missing")

        with pytest.raises(NotFoundError):
            await service.delete_product("missing")

        assert len(await ReviewRepository(session).find_by_product("missing")) == 1

    @pytest.mark.asyncio
    async def test_review_cleanup_failure(
        self, service, session, make_product, make_review, monkeypatch
    ) -> None:
        """If review cleanup fails the product stays deleted."""
        product = await make_product()
        await make_review(product.id)

        async def failing_delete(product_id):
            raise _db_error()

        monkeypatch.setattr(service.reviews, "delete_by_product", failing_delete)

        with pytest.raises(PersistenceFailure) as exc_info:
            await service.delete_product(product.id)

        assert exc_info.value.message == "Failed to delete product reviews"
        assert isinstance(exc_info.value.__cause__, OperationalError)
        with pytest.raises(NotFoundError):
            await service.get_product(product.id)
        assert await service.purge_orphaned_reviews(dry_run=True) == 1

    @pytest.mark.asyncio
    async def test_product_delete_failure(self, service, make_product, monkeypatch) -> None:
        """Database errors while deleting the product are wrapped."""
        product = await make_product()

        async def failing_delete(product_id):
            raise _db_error()

        monkeypatch.setattr(service.products, "delete_by_id", failing_delete)

        with pytest.raises(PersistenceFailure) as exc_info:
            await service.delete_product(product.id)

        assert exc_info.value.message == "Failed to delete the product"


class TestPurgeOrphanedReviews:
    """Tests for orphaned review cleanup."""

    @pytest.mark.asyncio
    async def test_dry_run_counts_only(self, service, session, make_product, make_review) -> None:
        """A dry run reports orphans without deleting them."""
        product = await make_product()
        await make_review(product.id)
        await make_review("gone")

        assert await service.purge_orphaned_reviews(dry_run=True) == 1
        assert await ReviewRepository(session).count_orphans() == 1

    @pytest.mark.asyncio
    async def test_purge(self, service, session, make_product, make_review) -> None:
        """Orphaned reviews are deleted; others are kept."""
        product = await make_product()
        await make_review(product.id)
        await make_review("gone")
        await make_review("gone")

        assert await service.purge_orphaned_reviews() == 2
        assert await ReviewRepository(session).count_orphans() == 0
        assert len(await ReviewRepository(session).find_by_product(product.id)) == 1
