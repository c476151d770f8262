"""API schemas for the catalog API.

Pydantic models for request bodies and response serialization. Field
names on the wire are camelCase; product images are exposed as "image".
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from catalog_api.catalog.models import Product, Review, User


# ============================================================================
# Common Schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Standard error response.

    All API errors follow this format for consistency.
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: dict | list = Field(default_factory=list, description="Additional error details")
    request_id: str | None = Field(default=None, description="Request ID for correlation")


class AccountSchema(BaseModel):
    """Public fields of an account."""

    id: str
    email: str | None = None
    username: str | None = None


# ============================================================================
# Request Schemas
# ============================================================================


class UploadImagesRequest(BaseModel):
    """Request to store images in blob storage."""

    images: list[str] = Field(..., description="Base64-encoded images (data URLs accepted)")


class ProductCreateRequest(BaseModel):
    """Request to create a product.

    Fields are loosely typed: numbers may arrive as strings and the image
    field as a single reference or a list. Checks and coercion happen in
    catalog validation, which reports them as catalog errors.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: Any = Field(default=None, description="Product name")
    category: Any = Field(default=None, description="One of the allowed categories")
    description: Any = Field(default=None, description="Product description")
    price: Any = Field(default=None, description="Non-negative price")
    old_price: Any = Field(default=None, alias="oldPrice", description="Previous price")
    image: Any = Field(default=None, description="Image reference or list of references")
    author: Any = Field(default=None, description="Owning account ID")
    size: Any = Field(default=None, description="Free-form size")
    color: Any = Field(default=None, description="Free-form color")

    def to_payload(self) -> dict[str, Any]:
        """Get the supplied fields keyed by wire name."""
        return self.model_dump(by_alias=True, exclude_none=True)


# ============================================================================
# Product Schemas
# ============================================================================


class ProductSchema(BaseModel):
    """Product representation."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    category: str
    description: str
    price: float
    old_price: float | None = Field(default=None, alias="oldPrice")
    images: list[str] = Field(..., alias="image")
    author: AccountSchema
    size: str | None = None
    color: str | None = None
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: datetime = Field(..., alias="updatedAt")


class ReviewSchema(BaseModel):
    """Review representation."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    product_id: str = Field(..., alias="productId")
    user: AccountSchema = Field(..., alias="userId")
    comment: str
    rating: int
    created_at: datetime = Field(..., alias="createdAt")


class ProductListResponse(BaseModel):
    """Paginated product listing."""

    model_config = ConfigDict(populate_by_name=True)

    products: list[ProductSchema]
    total_pages: int = Field(..., alias="totalPages")
    total_products: int = Field(..., alias="totalProducts")


class ProductDetailResponse(BaseModel):
    """Single product with its reviews."""

    product: ProductSchema
    reviews: list[ReviewSchema]


class ProductUpdateResponse(BaseModel):
    """Result of a product update."""

    message: str
    product: ProductSchema


class ProductDeleteResponse(BaseModel):
    """Result of a product deletion."""

    model_config = ConfigDict(populate_by_name=True)

    message: str
    reviews_deleted: int = Field(..., alias="reviewsDeleted")


# ============================================================================
# Converters
# ============================================================================


def account_to_schema(account_id: str, account: User | None, fields: tuple[str, ...]) -> AccountSchema:
    """Expose only the requested public fields of an account."""
    if account is None:
        return AccountSchema(id=account_id)
    return AccountSchema(
        id=account.id,
        email=account.email if "email" in fields else None,
        username=account.username if "username" in fields else None,
    )


def product_to_schema(
    product: Product,
    author_fields: tuple[str, ...] = ("email",),
) -> ProductSchema:
    """Convert Product model to response schema."""
    return ProductSchema(
        id=product.id,
        name=product.name,
        category=product.category,
        description=product.description,
        price=product.price,
        old_price=product.old_price,
        images=list(product.images or []),
        author=account_to_schema(product.author_id, product.author, author_fields),
        size=product.size,
        color=product.color,
        created_at=product.created_at,
        updated_at=product.updated_at,
    )


def review_to_schema(review: Review) -> ReviewSchema:
    """Convert Review model to response schema."""
    return ReviewSchema(
        id=review.id,
        product_id=review.product_id,
        user=account_to_schema(review.user_id, review.user, ("username", "email")),
        comment=review.comment,
        rating=review.rating,
        created_at=review.created_at,
    )
