"""SQLAlchemy models for the product catalog.

Defines User, Product and Review tables. References between them are
enforced by the application, not by the database: there are no foreign
key constraints, and relationships are view-only joins used to populate
author and reviewer public fields.
"""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import JSON, DateTime, Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from catalog_api.infrastructure.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """Account that can own products and write reviews.

    Accounts are managed by the authentication service; the catalog only
    reads their public fields.
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    username: Mapped[str] = mapped_column(String(100), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )


class Product(Base):
    """Product entity in the catalog.

    Attributes:
        id: Unique product identifier (UUID string).
        name: Trimmed, non-empty product name.
        category: One of the Category wire values.
        description: Trimmed, non-empty description.
        price: Current price (>= 0).
        old_price: Previous price shown struck through, optional.
        images: Ordered list of image references (at least one).
        author_id: Owning account.
        size: Free-form size, used only as a listing filter.
        color: Free-form color, used only as a listing filter.
        created_at: Creation timestamp, default listing order.
        updated_at: Last update timestamp.
    """

    __tablename__ = "products"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    name: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    category: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    price: Mapped[float] = mapped_column(Float, nullable=False, index=True)
    old_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    images: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    author_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    size: Mapped[str | None] = mapped_column(String(50), nullable=True)
    color: Mapped[str | None] = mapped_column(String(50), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    author: Mapped[User | None] = relationship(
        User,
        primaryjoin="foreign(Product.author_id) == User.id",
        viewonly=True,
        lazy="raise",
    )

    def __repr__(self) -> str:
        return f"<Product {self.id} {self.name!r}>"


class Review(Base):
    """Customer review of a product.

    Reviews are created elsewhere; the catalog reads them on the product
    detail page and deletes them when their product is deleted.
    """

    __tablename__ = "reviews"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    product_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    comment: Mapped[str] = mapped_column(Text, nullable=False, default="")
    rating: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    user: Mapped[User | None] = relationship(
        User,
        primaryjoin="foreign(Review.user_id) == User.id",
        viewonly=True,
        lazy="raise",
    )


# Column names accepted by ProductRepository.update_by_id
UPDATABLE_FIELDS: frozenset[str] = frozenset(
    {"name", "category", "description", "price", "old_price", "images", "author_id", "size", "color"}
)
