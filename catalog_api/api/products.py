"""Product API endpoints.

Provides listing, detail, related products and the product write
endpoints. Catalog errors raised by the service are turned into HTTP
responses by the exception handlers registered in main.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_api.api.payloads import read_product_payload
from catalog_api.api.schemas import (
    ErrorResponse,
    ProductCreateRequest,
    ProductDeleteResponse,
    ProductDetailResponse,
    ProductListResponse,
    ProductSchema,
    ProductUpdateResponse,
    UploadImagesRequest,
    product_to_schema,
    review_to_schema,
)
from catalog_api.catalog.filters import build_list_filter
from catalog_api.catalog.service import CatalogService
from catalog_api.infrastructure.blob_storage import BlobStorageClient, get_blob_storage_client
from catalog_api.infrastructure.config import settings
from catalog_api.infrastructure.database import get_session

router = APIRouter(prefix="/api/products", tags=["Products"])


# ============================================================================
# Dependencies
# ============================================================================


def get_catalog_service(
    session: Annotated[AsyncSession, Depends(get_session)],
    blob_storage: Annotated[BlobStorageClient, Depends(get_blob_storage_client)],
) -> CatalogService:
    """Get catalog service bound to the request session."""
    return CatalogService(session, blob_storage=blob_storage)


ServiceDep = Annotated[CatalogService, Depends(get_catalog_service)]


# ============================================================================
# Writes
# ============================================================================


@router.post(
    "/uploadImages",
    response_model=list[str],
    responses={502: {"model": ErrorResponse}},
    summary="Upload images",
    description="Store base64 images in blob storage and return their URLs.",
)
async def upload_images(
    body: UploadImagesRequest,
    service: ServiceDep,
) -> list[str]:
    """Upload images to blob storage.

    Args:
        body: Base64 images to store.
        service: Catalog service.

    Returns:
        Image URLs in input order.
    """
    return await service.upload_images(body.images)


@router.post(
    "/create-product",
    response_model=ProductSchema,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
    summary="Create product",
)
async def create_product(
    body: ProductCreateRequest,
    service: ServiceDep,
) -> ProductSchema:
    """Create a new product.

    Args:
        body: Product fields.
        service: Catalog service.

    Returns:
        Stored product.
    """
    product = await service.create_product(body.to_payload())
    return product_to_schema(product)


@router.patch(
    "/update-product/{product_id}",
    response_model=ProductUpdateResponse,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
    summary="Update product",
    description="Replace product fields. Uploaded image files replace all images.",
)
async def update_product(
    product_id: str,
    request: Request,
    service: ServiceDep,
) -> ProductUpdateResponse:
    """Update an existing product.

    Args:
        product_id: Product identifier.
        request: Incoming JSON or multipart request.
        service: Catalog service.

    Returns:
        Confirmation with the updated product.
    """
    payload, files = await read_product_payload(request, max_files=settings.max_upload_files)
    product = await service.update_product(product_id, payload, files)
    return ProductUpdateResponse(
        message="Product updated successfully",
        product=product_to_schema(product),
    )


@router.delete(
    "/{product_id}",
    response_model=ProductDeleteResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Delete product",
    description="Delete a product and all of its reviews.",
)
async def delete_product(product_id: str, service: ServiceDep) -> ProductDeleteResponse:
    """Delete a product and its reviews.

    Args:
        product_id: Product identifier.
        service: Catalog service.

    Returns:
        Confirmation with the number of reviews removed.
    """
    reviews_deleted = await service.delete_product(product_id)
    return ProductDeleteResponse(
        message="Product deleted successfully",
        reviews_deleted=reviews_deleted,
    )


# ============================================================================
# Reads
# ============================================================================


@router.get(
    "",
    response_model=ProductListResponse,
    summary="List products",
    description="List products newest first with optional filters.",
)
async def list_products(
    service: ServiceDep,
    category: str | None = Query(default=None, description="Category or 'all'"),
    size: str | None = Query(default=None, description="Size (powder henna only)"),
    color: str | None = Query(default=None, description="Color or 'all'"),
    min_price: str | None = Query(default=None, alias="minPrice"),
    max_price: str | None = Query(default=None, alias="maxPrice"),
    page: str | None = Query(default=None, description="Page number (1-based)"),
    limit: str | None = Query(default=None, description="Items per page"),
) -> ProductListResponse:
    """List products.

    Returns:
        Page of products with totals.
    """
    product_filter = build_list_filter(
        category=category,
        size=size,
        color=color,
        min_price=min_price,
        max_price=max_price,
    )
    result = await service.list_products(
        product_filter,
        page=page,
        limit=limit,
        default_limit=settings.default_page_limit,
    )
    return ProductListResponse(
        products=[product_to_schema(p) for p in result.products],
        total_pages=result.pagination.total_pages,
        total_products=result.pagination.total,
    )


@router.get(
    "/related/{product_id}",
    response_model=list[ProductSchema],
    responses={404: {"model": ErrorResponse}},
    summary="Related products",
    description="Products sharing a name word or the category with the given product.",
)
async def related_products(product_id: str, service: ServiceDep) -> list[ProductSchema]:
    """Get products related to a product.

    Args:
        product_id: Anchor product identifier.
        service: Catalog service.

    Returns:
        Related products.
    """
    related = await service.find_related(product_id)
    return [product_to_schema(p) for p in related]


@router.get(
    "/product/{product_id}",
    response_model=ProductDetailResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get product",
)
@router.get(
    "/{product_id}",
    response_model=ProductDetailResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get product",
)
async def get_product(product_id: str, service: ServiceDep) -> ProductDetailResponse:
    """Get a product with its reviews.

    Args:
        product_id: Product identifier.
        service: Catalog service.

    Returns:
        Product and reviews.
    """
    detail = await service.get_product_detail(product_id)
    return ProductDetailResponse(
        product=product_to_schema(detail.product, author_fields=("email", "username")),
        reviews=[review_to_schema(r) for r in detail.reviews],
    )
