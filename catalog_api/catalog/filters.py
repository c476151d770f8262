"""Listing filters and pagination.

Builds a precise filter from loose, string-typed listing query parameters
and derives paging metadata. Listings are always ordered newest first.
"""

import math
import re
from dataclasses import dataclass
from typing import Any

from sqlalchemy import ColumnElement

from catalog_api.catalog.categories import ALL_CATEGORIES, POWDER_HENNA_CATEGORY
from catalog_api.catalog.models import Product

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10

_LEADING_FLOAT = re.compile(r"^\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")
_LEADING_INT = re.compile(r"^\s*[+-]?\d+")


def parse_leading_float(value: Any) -> float | None:
    """Parse the numeric prefix of a value ("10abc" -> 10.0).

    Args:
        value: Raw query value.

    Returns:
        Parsed number, or None if the value has no numeric prefix.
    """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    match = _LEADING_FLOAT.match(str(value)) if value is not None else None
    return float(match.group(0)) if match else None


def parse_leading_int(value: Any) -> int | None:
    """Parse the integer prefix of a value ("3.7" -> 3).

    Args:
        value: Raw query value.

    Returns:
        Parsed integer, or None if the value has no integer prefix.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    match = _LEADING_INT.match(str(value)) if value is not None else None
    return int(match.group(0)) if match else None


# ============================================================================
# Filter
# ============================================================================


@dataclass
class ProductFilter:
    """Filter predicate for product listing.

    All set fields are combined with AND.

    Attributes:
        category: Exact category.
        size: Exact size (only ever set for the powder henna line).
        color: Exact color.
        min_price: Inclusive lower price bound.
        max_price: Inclusive upper price bound.
    """

    category: str | None = None
    size: str | None = None
    color: str | None = None
    min_price: float | None = None
    max_price: float | None = None

    @property
    def has_price_range(self) -> bool:
        """Check if a closed price range is set."""
        return self.min_price is not None and self.max_price is not None

    def conditions(self) -> list[ColumnElement[bool]]:
        """Translate the filter into SQLAlchemy conditions.

        Returns:
            List of conditions to AND together.
        """
        conditions: list[ColumnElement[bool]] = []

        if self.category is not None:
            conditions.append(Product.category == self.category)

        if self.size is not None:
            conditions.append(Product.size == self.size)

        if self.color is not None:
            conditions.append(Product.color == self.color)

        if self.has_price_range:
            conditions.append(Product.price >= self.min_price)
            conditions.append(Product.price <= self.max_price)

        return conditions


def build_list_filter(
    category: str | None = None,
    size: str | None = None,
    color: str | None = None,
    min_price: Any = None,
    max_price: Any = None,
) -> ProductFilter:
    """Build a listing filter from raw query parameters.

    Rules:
        - category is matched exactly unless empty or "all"
        - size is matched only for the powder henna category
        - color is matched exactly unless empty or "all"
        - the price range applies only when both bounds are given and
          both parse; an inverted range is kept as is

    Args:
        category: Raw category parameter.
        size: Raw size parameter.
        color: Raw color parameter.
        min_price: Raw lower price bound.
        max_price: Raw upper price bound.

    Returns:
        ProductFilter for the listing query.
    """
    product_filter = ProductFilter()

    if category and category != ALL_CATEGORIES:
        product_filter.category = category
        if category == POWDER_HENNA_CATEGORY and size:
            product_filter.size = size

    if color and color != ALL_CATEGORIES:
        product_filter.color = color

    if min_price not in (None, "") and max_price not in (None, ""):
        low = parse_leading_float(min_price)
        high = parse_leading_float(max_price)
        if low is not None and high is not None:
            product_filter.min_price = low
            product_filter.max_price = high

    return product_filter


# ============================================================================
# Pagination
# ============================================================================


@dataclass
class Pagination:
    """Paging metadata for one listing request.

    Attributes:
        page: Requested page (1-indexed, not clamped).
        limit: Items per page.
        total: Total matching items.
    """

    page: int
    limit: int
    total: int

    @property
    def skip(self) -> int:
        """Items to skip; zero or negative when page < 2."""
        return (self.page - 1) * self.limit

    @property
    def total_pages(self) -> int:
        """Calculate total pages."""
        return math.ceil(self.total / self.limit)


def paginate(
    total: int,
    page: Any = DEFAULT_PAGE,
    limit: Any = DEFAULT_LIMIT,
    default_limit: int = DEFAULT_LIMIT,
) -> Pagination:
    """Derive paging metadata.

    page and limit are coerced to integers. A missing or unparseable page
    becomes 1; a missing, unparseable or non-positive limit becomes the
    default. page is not clamped, so page <= 0 yields a non-positive skip.

    Args:
        total: Total number of matching items.
        page: Raw requested page.
        limit: Raw requested page size.
        default_limit: Page size used when limit is unusable.

    Returns:
        Pagination with skip and total_pages.
    """
    page_number = parse_leading_int(page)
    if page_number is None:
        page_number = DEFAULT_PAGE

    page_size = parse_leading_int(limit)
    if page_size is None or page_size < 1:
        page_size = default_limit

    return Pagination(page=page_number, limit=page_size, total=total)
