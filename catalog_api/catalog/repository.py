"""Product and review repositories for database operations.

Provides the persistence operations the catalog service builds on:
insert, lookup, filtered listing, count, update and delete.
"""

from collections.abc import Sequence
from typing import Any

from sqlalchemy import and_, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from catalog_api.catalog.filters import ProductFilter
from catalog_api.catalog.matching import related_condition
from catalog_api.catalog.models import UPDATABLE_FIELDS, Product, Review


class ProductRepository:
    """Repository for Product database operations.

    Every product returned carries its author loaded, so callers can
    expose the author's public fields without further queries.

    Example usage:
        async with async_session_factory() as session:
            repo = ProductRepository(session)
            products = await repo.find(
                ProductFilter(category="حقائب"),
                skip=0,
                limit=10,
            )
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self.session = session

    async def insert(self, record: dict[str, Any]) -> Product:
        """Insert a new product.

        Args:
            record: Column values.

        Returns:
            Stored product with author loaded.
        """
        product = Product(**record)
        self.session.add(product)
        await self.session.flush()
        stored = await self.get_by_id(product.id)
        if stored is None:
            raise RuntimeError(f"Inserted product {product.id} could not be reloaded")
        return stored

    async def get_by_id(self, product_id: str) -> Product | None:
        """Get product by ID.

        Args:
            product_id: Product ID.

        Returns:
            Product if found, None otherwise.
        """
        query = (
            select(Product)
            .where(Product.id == product_id)
            .options(selectinload(Product.author))
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def find(
        self,
        product_filter: ProductFilter,
        skip: int = 0,
        limit: int = 10,
    ) -> Sequence[Product]:
        """Find products matching a filter, newest first.

        Args:
            product_filter: Listing filter.
            skip: Items to skip; negative values are treated as 0.
            limit: Maximum results.

        Returns:
            Sequence of matching products.
        """
        query = select(Product).options(selectinload(Product.author))

        conditions = product_filter.conditions()
        if conditions:
            query = query.where(and_(*conditions))

        query = (
            query.order_by(Product.created_at.desc(), Product.id)
            .offset(max(skip, 0))
            .limit(limit)
        )

        result = await self.session.execute(query)
        return result.scalars().all()

    async def count(self, product_filter: ProductFilter) -> int:
        """Count products matching a filter.

        Args:
            product_filter: Listing filter.

        Returns:
            Count of matching products.
        """
        query = select(func.count(Product.id))

        conditions = product_filter.conditions()
        if conditions:
            query = query.where(and_(*conditions))

        result = await self.session.execute(query)
        return result.scalar_one()

    async def update_by_id(self, product_id: str, fields: dict[str, Any]) -> Product | None:
        """Overwrite fields of a product.

        Args:
            product_id: Product ID.
            fields: Column values to set.

        Returns:
            Updated product, or None if it no longer exists.

        Raises:
            ValueError: If fields name a column that cannot be updated.
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update product fields: {sorted(unknown)}")

        result = await self.session.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(**fields)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            return None

        await self.session.flush()
        return await self.get_by_id(product_id)

    async def delete_by_id(self, product_id: str) -> bool:
        """Delete a product.

        Args:
            product_id: Product ID.

        Returns:
            True if a product was deleted.
        """
        result = await self.session.execute(
            delete(Product)
            .where(Product.id == product_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    async def find_related(self, anchor: Product) -> Sequence[Product]:
        """Find products related to an anchor by name token or category.

        Args:
            anchor: Product to find relatives of.

        Returns:
            All related products, anchor excluded, in no particular order.
        """
        query = (
            select(Product)
            .where(related_condition(anchor))
            .options(selectinload(Product.author))
        )
        result = await self.session.execute(query)
        return result.scalars().all()


class ReviewRepository:
    """Repository for Review database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self.session = session

    async def find_by_product(self, product_id: str) -> Sequence[Review]:
        """Get all reviews of a product with reviewer loaded.

        Args:
            product_id: Product ID.

        Returns:
            Reviews, oldest first.
        """
        query = (
            select(Review)
            .where(Review.product_id == product_id)
            .options(selectinload(Review.user))
            .order_by(Review.created_at)
        )
        result = await self.session.execute(query)
        return result.scalars().all()

    async def delete_by_product(self, product_id: str) -> int:
        """Delete all reviews of a product.

        Args:
            product_id: Product ID.

        Returns:
            Number of deleted reviews.
        """
        result = await self.session.execute(
            delete(Review)
            .where(Review.product_id == product_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def count_orphans(self) -> int:
        """Count reviews whose product no longer exists.

        Returns:
            Number of orphaned reviews.
        """
        query = select(func.count(Review.id)).where(
            Review.product_id.not_in(select(Product.id))
        )
        result = await self.session.execute(query)
        return result.scalar_one()

    async def delete_orphans(self) -> int:
        """Delete reviews whose product no longer exists.

        Returns:
            Number of deleted reviews.
        """
        result = await self.session.execute(
            delete(Review)
            .where(Review.product_id.not_in(select(Product.id)))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
