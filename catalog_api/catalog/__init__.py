"""Product Catalog.

Validation, listing filters, pagination, related-product matching and
the service that coordinates product writes with the review collection.
"""

from catalog_api.catalog.categories import Category
from catalog_api.catalog.filters import Pagination, ProductFilter, build_list_filter, paginate
from catalog_api.catalog.matching import build_name_pattern
from catalog_api.catalog.models import Product, Review, User
from catalog_api.catalog.repository import ProductRepository, ReviewRepository
from catalog_api.catalog.service import CatalogService, ProductDetail, ProductPage
from catalog_api.catalog.validation import (
    CanonicalProduct,
    CanonicalUpdate,
    check_update_payload,
    normalize_images,
    prepare_product_for_create,
    prepare_product_for_update,
)

__all__ = [
    # Categories
    "Category",
    # Models
    "Product",
    "Review",
    "User",
    # Validation
    "CanonicalProduct",
    "CanonicalUpdate",
    "check_update_payload",
    "normalize_images",
    "prepare_product_for_create",
    "prepare_product_for_update",
    # Filters
    "Pagination",
    "ProductFilter",
    "build_list_filter",
    "paginate",
    # Matching
    "build_name_pattern",
    # Repository
    "ProductRepository",
    "ReviewRepository",
    # Service
    "CatalogService",
    "ProductDetail",
    "ProductPage",
]
