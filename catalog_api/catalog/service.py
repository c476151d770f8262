"""Catalog service for product operations.

High-level service that combines validation, repository operations and
the blob storage collaborator. Every write validates its input before
touching the database; persistence errors are logged and surfaced as
PersistenceFailure.
"""

from collections.abc import AsyncIterator, Mapping, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_api.catalog.filters import DEFAULT_LIMIT, Pagination, ProductFilter, paginate
from catalog_api.catalog.models import Product, Review
from catalog_api.catalog.repository import ProductRepository, ReviewRepository
from catalog_api.catalog.validation import (
    check_update_payload,
    prepare_product_for_create,
    prepare_product_for_update,
)
from catalog_api.domain.exceptions import NotFoundError, PersistenceFailure
from catalog_api.infrastructure.blob_storage import BlobStorageClient

logger = structlog.get_logger()


@dataclass
class ProductPage:
    """One page of a product listing.

    Attributes:
        products: Products on this page, newest first.
        pagination: Paging metadata.
    """

    products: list[Product]
    pagination: Pagination


@dataclass
class ProductDetail:
    """A product together with its reviews."""

    product: Product
    reviews: list[Review]


class CatalogService:
    """Service for catalog operations.

    Example usage:
        async with async_session_factory() as session:
            service = CatalogService(session)

            product = await service.create_product({
                "name": "Leather Sleeve",
                "category": "حقائب",
                "description": "Slim sleeve",
                "price": "25",
                "image": "https://cdn.example.com/sleeve.jpg",
                "author": user_id,
            })
            related = await service.find_related(product.id)
    """

    def __init__(
        self,
        session: AsyncSession,
        blob_storage: BlobStorageClient | None = None,
    ) -> None:
        """Initialize service with database session.

        Args:
            session: Async SQLAlchemy session.
            blob_storage: Client used to store uploaded image files.
        """
        self.session = session
        self.blob_storage = blob_storage
        self.products = ProductRepository(session)
        self.reviews = ReviewRepository(session)

    @asynccontextmanager
    async def _persisting(self, operation: str, **context: Any) -> AsyncIterator[None]:
        """Translate database errors into PersistenceFailure.

        Args:
            operation: Operation name used in logs and the error message.
            context: Extra log fields.
        """
        try:
            yield
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.exception("Persistence operation failed", operation=operation, **context)
            raise PersistenceFailure(operation) from e

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_products(
        self,
        product_filter: ProductFilter,
        page: Any = 1,
        limit: Any = DEFAULT_LIMIT,
        default_limit: int = DEFAULT_LIMIT,
    ) -> ProductPage:
        """List products matching a filter, newest first.

        Args:
            product_filter: Listing filter.
            page: Raw requested page.
            limit: Raw requested page size.
            default_limit: Page size used when limit is unusable.

        Returns:
            Requested page with paging metadata.
        """
        async with self._persisting("fetch products"):
            total = await self.products.count(product_filter)
            pagination = paginate(total, page, limit, default_limit=default_limit)
            products = await self.products.find(
                product_filter,
                skip=pagination.skip,
                limit=pagination.limit,
            )

        return ProductPage(products=list(products), pagination=pagination)

    async def get_product(self, product_id: str) -> Product:
        """Get product by ID.

        Args:
            product_id: Product ID.

        Returns:
            Product with author loaded.

        Raises:
            NotFoundError: If the product does not exist.
        """
        async with self._persisting("fetch the product", product_id=product_id):
            product = await self.products.get_by_id(product_id)
        if product is None:
            raise NotFoundError("Product", product_id)
        return product

    async def get_product_detail(self, product_id: str) -> ProductDetail:
        """Get a product and its reviews.

        Args:
            product_id: Product ID.

        Returns:
            Product with its reviews.

        Raises:
            NotFoundError: If the product does not exist.
        """
        product = await self.get_product(product_id)
        async with self._persisting("fetch the product", product_id=product_id):
            reviews = await self.reviews.find_by_product(product_id)
        return ProductDetail(product=product, reviews=list(reviews))

    async def find_related(self, product_id: str) -> list[Product]:
        """Find products related to a product.

        Args:
            product_id: Anchor product ID.

        Returns:
            Products sharing a name token or the category.

        Raises:
            NotFoundError: If the anchor does not exist.
        """
        anchor = await self.get_product(product_id)
        async with self._persisting("fetch related products", product_id=product_id):
            related = await self.products.find_related(anchor)
        return list(related)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def upload_images(self, images: Sequence[str | bytes]) -> list[str]:
        """Store images in blob storage.

        Args:
            images: Base64 strings or raw bytes.

        Returns:
            Stable image references.

        Raises:
            RuntimeError: If the service has no blob storage client.
            UploadFailure: If blob storage fails.
        """
        if self.blob_storage is None:
            raise RuntimeError("CatalogService was created without blob storage")
        return await self.blob_storage.upload_many(images)

    async def create_product(self, data: Mapping[str, Any]) -> Product:
        """Validate and store a new product.

        Args:
            data: Raw create payload.

        Returns:
            Stored product.

        Raises:
            ValidationError: If the payload is invalid; nothing is written.
        """
        canonical = prepare_product_for_create(data)

        async with self._persisting("create new product"):
            product = await self.products.insert(canonical.to_record())
            await self.session.commit()

        logger.info(
            "Product created",
            product_id=product.id,
            category=product.category,
            image_count=len(product.images),
        )
        return product

    async def update_product(
        self,
        product_id: str,
        data: Mapping[str, Any],
        files: Sequence[bytes] = (),
    ) -> Product:
        """Validate and apply an update to an existing product.

        The payload fields are checked before uploaded files are stored;
        the stored files' references then replace all images of the product.

        Args:
            product_id: Product ID.
            data: Raw update payload.
            files: Raw image files uploaded with the request.

        Returns:
            Updated product.

        Raises:
            NotFoundError: If the product does not exist, or vanished
                before the write.
            ValidationError: If the payload is invalid; nothing is written.
            UploadFailure: If uploaded files could not be stored.
        """
        existing = await self.get_product(product_id)
        check_update_payload(data)

        uploaded = await self.upload_images(files) if files else None
        canonical = prepare_product_for_update(existing, data, uploaded)

        async with self._persisting("update product", product_id=product_id):
            product = await self.products.update_by_id(product_id, canonical.to_fields())
            if product is None:
                raise NotFoundError("Product", product_id)
            await self.session.commit()

        logger.info(
            "Product updated",
            product_id=product_id,
            images_replaced=uploaded is not None or bool(data.get("image")),
        )
        return product

    async def delete_product(self, product_id: str) -> int:
        """Delete a product and then all of its reviews.

        The two deletions are committed separately. If removing the
        reviews fails, the product stays deleted and the reviews are left
        for purge_orphaned_reviews.

        Args:
            product_id: Product ID.

        Returns:
            Number of reviews deleted.

        Raises:
            NotFoundError: If the product does not exist; reviews are
                left untouched.
            PersistenceFailure: If either deletion fails.
        """
        async with self._persisting("delete the product", product_id=product_id):
            deleted = await self.products.delete_by_id(product_id)
            if not deleted:
                raise NotFoundError("Product", product_id)
            await self.session.commit()

        async with self._persisting("delete product reviews", product_id=product_id):
            reviews_deleted = await self.reviews.delete_by_product(product_id)
            await self.session.commit()

        logger.info(
            "Product deleted",
            product_id=product_id,
            reviews_deleted=reviews_deleted,
        )
        return reviews_deleted

    async def purge_orphaned_reviews(self, dry_run: bool = False) -> int:
        """Remove reviews whose product no longer exists.

        Args:
            dry_run: Only count orphans, delete nothing.

        Returns:
            Number of orphaned reviews found (and deleted unless dry_run).
        """
        async with self._persisting("purge orphaned reviews"):
            if dry_run:
                return await self.reviews.count_orphans()
            purged = await self.reviews.delete_orphans()
            await self.session.commit()

        logger.info("Orphaned reviews purged", count=purged)
        return purged
