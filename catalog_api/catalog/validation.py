"""Validation and normalization of product write payloads.

Turns loose request payloads (JSON bodies or form fields, where every
value may arrive as a string) into canonical records ready to be stored.
All checks run before anything is written; the first violation raises a
ValidationError subclass.
"""

import json
import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from catalog_api.catalog.categories import Category
from catalog_api.catalog.models import Product
from catalog_api.domain.exceptions import (
    InvalidCategory,
    InvalidPrice,
    MissingField,
    MissingImage,
)


# ============================================================================
# Canonical Records
# ============================================================================


@dataclass
class CanonicalProduct:
    """Validated product ready for insertion.

    Attributes:
        name: Trimmed product name.
        category: Allowed category.
        description: Trimmed description.
        price: Non-negative price.
        images: Ordered, non-empty list of image references.
        author_id: Owning account.
        old_price: Previous price; omitted from the record when None.
        size: Optional free-form size.
        color: Optional free-form color.
    """

    name: str
    category: Category
    description: str
    price: float
    images: list[str]
    author_id: str
    old_price: float | None = None
    size: str | None = None
    color: str | None = None

    def to_record(self) -> dict[str, Any]:
        """Convert to column values for a new product.

        Returns:
            Column values; old_price is left out when not supplied.
        """
        record: dict[str, Any] = {
            "name": self.name,
            "category": self.category.value,
            "description": self.description,
            "price": self.price,
            "images": list(self.images),
            "author_id": self.author_id,
        }
        if self.old_price is not None:
            record["old_price"] = self.old_price
        if self.size is not None:
            record["size"] = self.size
        if self.color is not None:
            record["color"] = self.color
        return record


@dataclass
class CanonicalUpdate:
    """Validated replacement values for an existing product.

    Unlike CanonicalProduct, old_price is always part of the update:
    None clears any previously stored value.
    """

    name: str
    category: Category
    description: str
    price: float
    images: list[str]
    author_id: str
    old_price: float | None = None
    extra: dict[str, str | None] = field(default_factory=dict)

    def to_fields(self) -> dict[str, Any]:
        """Convert to column values for an update.

        Returns:
            Column values to overwrite, including old_price.
        """
        return {
            "name": self.name,
            "category": self.category.value,
            "description": self.description,
            "price": self.price,
            "images": list(self.images),
            "author_id": self.author_id,
            "old_price": self.old_price,
            **self.extra,
        }


# ============================================================================
# Field Coercion
# ============================================================================


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _require(data: Mapping[str, Any], name: str) -> Any:
    value = data.get(name)
    if _is_missing(value):
        raise MissingField(name)
    return value


def _trimmed_text(value: Any, name: str) -> str:
    text = str(value).strip()
    if not text:
        raise MissingField(name)
    return text


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def check_category(value: Any) -> Category:
    """Validate a category against the allowed set.

    Args:
        value: Raw category value.

    Returns:
        The matching Category.

    Raises:
        InvalidCategory: If the value is not an allowed category.
    """
    category = Category.parse(value)
    if category is None:
        raise InvalidCategory(value, Category.values())
    return category


def coerce_price(value: Any, name: str = "price") -> float:
    """Coerce a raw price to a non-negative finite number.

    Args:
        value: Raw value (number or numeric string).
        name: Field name used in the error.

    Returns:
        Price as float.

    Raises:
        InvalidPrice: If the value is blank, not a number or negative.
    """
    if isinstance(value, bool):
        raise InvalidPrice(name, value)
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            raise InvalidPrice(name, value) from None
    else:
        raise InvalidPrice(name, value)

    if not math.isfinite(number) or number < 0:
        raise InvalidPrice(name, value)
    return number


def coerce_old_price(data: Mapping[str, Any]) -> float | None:
    """Coerce the optional previous price.

    Args:
        data: Request payload.

    Returns:
        Previous price, or None when absent or empty.

    Raises:
        InvalidPrice: If supplied but not a non-negative number.
    """
    value = data.get("oldPrice")
    if _is_missing(value):
        return None
    return coerce_price(value, "oldPrice")


def normalize_images(value: Any, decode_json: bool = False) -> list[str]:
    """Normalize the image field into an ordered list of references.

    Accepted shapes:
        - a list of references: empty entries are dropped
        - a single non-empty string: wrapped as a one-element list
        - with decode_json, a JSON-encoded list given as a string

    A string that is not a JSON list is treated as a single reference.

    Args:
        value: Raw image field.
        decode_json: Whether strings may carry a JSON-encoded list.

    Returns:
        List of non-empty references, possibly empty.
    """
    if isinstance(value, (list, tuple)):
        return [item.strip() for item in value if isinstance(item, str) and item.strip()]

    if isinstance(value, str):
        if decode_json:
            try:
                decoded = json.loads(value)
            except ValueError:
                decoded = None
            if isinstance(decoded, list):
                return normalize_images(decoded)
        reference = value.strip()
        return [reference] if reference else []

    return []


def _check_category_first(data: Mapping[str, Any]) -> None:
    # A supplied but unknown category wins over every other error
    category = data.get("category")
    if not _is_missing(category):
        check_category(category)


# ============================================================================
# Write Paths
# ============================================================================


def prepare_product_for_create(data: Mapping[str, Any]) -> CanonicalProduct:
    """Validate and normalize a create payload.

    Args:
        data: Raw payload with name, category, description, price,
            image, author and optionally oldPrice, size, color.

    Returns:
        Canonical product record.

    Raises:
        InvalidCategory: Category outside the allowed set.
        MissingField: A required field is absent or empty.
        InvalidPrice: price or oldPrice is not a non-negative number.
        MissingImage: No usable image reference was supplied.
    """
    _check_category_first(data)

    for name in ("name", "category", "description", "price", "image", "author"):
        _require(data, name)

    category = check_category(data["category"])
    product_name = _trimmed_text(data["name"], "name")
    description = _trimmed_text(data["description"], "description")
    price = coerce_price(data["price"])
    old_price = coerce_old_price(data)

    images = normalize_images(data["image"])
    if not images:
        raise MissingImage()

    return CanonicalProduct(
        name=product_name,
        category=category,
        description=description,
        price=price,
        images=images,
        author_id=str(data["author"]),
        old_price=old_price,
        size=_optional_text(data.get("size")),
        color=_optional_text(data.get("color")),
    )


@dataclass
class UpdateFields:
    """Checked non-image fields of an update payload."""

    name: str
    category: Category
    description: str
    price: float
    old_price: float | None


def check_update_payload(data: Mapping[str, Any]) -> UpdateFields:
    """Run every update check that does not depend on images.

    Callers that store uploaded files run this first, so a rejected
    payload never reaches blob storage.

    Args:
        data: Raw update payload.

    Returns:
        Checked name, category, description and prices.

    Raises:
        InvalidCategory: Category outside the allowed set.
        MissingField: A required field is absent or empty.
        InvalidPrice: price or oldPrice is not a non-negative number.
    """
    _check_category_first(data)

    for name in ("name", "category", "description", "price"):
        _require(data, name)

    return UpdateFields(
        name=_trimmed_text(data["name"], "name"),
        category=check_category(data["category"]),
        description=_trimmed_text(data["description"], "description"),
        price=coerce_price(data["price"]),
        old_price=coerce_old_price(data),
    )


def prepare_product_for_update(
    existing: Product,
    data: Mapping[str, Any],
    uploaded_images: Sequence[str] | None = None,
) -> CanonicalUpdate:
    """Validate and normalize an update payload against the stored product.

    Image resolution order: freshly uploaded references replace all
    images; otherwise an image field in the payload replaces them (an
    empty list too, which is rejected); otherwise the stored images are
    kept. None or a blank string counts as no image field. The author is kept unless a new
    one is supplied. A missing oldPrice clears the stored one.

    Args:
        existing: Currently stored product.
        data: Raw payload.
        uploaded_images: References returned by blob storage for files
            uploaded with this request.

    Returns:
        Canonical update.

    Raises:
        InvalidCategory: Category outside the allowed set.
        MissingField: A required field is absent or empty.
        InvalidPrice: price or oldPrice is not a non-negative number.
        MissingImage: The product would end up with no images.
    """
    fields = check_update_payload(data)

    if uploaded_images:
        images = normalize_images(list(uploaded_images))
    elif "image" in data and not _is_missing(data["image"]):
        images = normalize_images(data["image"], decode_json=True)
    else:
        images = list(existing.images or [])

    if not images:
        raise MissingImage()

    author = data.get("author")
    author_id = str(author) if author else existing.author_id

    extra = {key: _optional_text(data[key]) for key in ("size", "color") if key in data}

    return CanonicalUpdate(
        name=fields.name,
        category=fields.category,
        description=fields.description,
        price=fields.price,
        images=images,
        author_id=author_id,
        old_price=fields.old_price,
        extra=extra,
    )
