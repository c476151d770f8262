"""Related product matching.

A product is related to an anchor product when it shares a name token
with it or belongs to the same category. Name tokens are whitespace
separated words longer than one character, matched case-insensitively
anywhere in the other product's name.
"""

import re

from sqlalchemy import ColumnElement, and_, or_

from catalog_api.catalog.models import Product

# Inline flag understood by both Python's re (SQLite REGEXP) and PostgreSQL
CASE_INSENSITIVE = "(?i)"


def name_tokens(name: str) -> list[str]:
    """Split a product name into matchable tokens.

    Args:
        name: Product name.

    Returns:
        Tokens longer than one character, in name order.
    """
    return [token for token in name.split() if len(token) > 1]


def build_name_pattern(name: str) -> str | None:
    """Build a case-insensitive alternation of the name's tokens.

    Tokens are escaped, so punctuation in names matches literally.

    Args:
        name: Anchor product name.

    Returns:
        Regular expression, or None when no token survives. None means
        nothing matches by name.
    """
    tokens = name_tokens(name)
    if not tokens:
        return None
    return CASE_INSENSITIVE + "|".join(re.escape(token) for token in tokens)


def related_condition(anchor: Product) -> ColumnElement[bool]:
    """Build the related-products condition for an anchor.

    Args:
        anchor: Product to find relatives of.

    Returns:
        Condition excluding the anchor and matching by name or category.
    """
    pattern = build_name_pattern(anchor.name)

    alternatives: list[ColumnElement[bool]] = [Product.category == anchor.category]
    if pattern is not None:
        alternatives.insert(0, Product.name.regexp_match(pattern))

    return and_(Product.id != anchor.id, or_(*alternatives))
