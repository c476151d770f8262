"""Product category enumeration.

The storefront sells phone accessories in four fixed categories. The set
is closed: adding a category is a code change and a deployment, never a
runtime setting. Wire values are the storefront's Arabic labels.
"""

from enum import Enum


class Category(str, Enum):
    """Allowed product categories."""

    BAGS = "حقائب"
    COVERS = "كڤرات"
    SCREEN_PROTECTORS = "حماية الشاشة"
    ACCESSORIES = "إكسسوارات"

    @classmethod
    def values(cls) -> list[str]:
        """Get allowed wire values in declaration order.

        Returns:
            List of category labels.
        """
        return [member.value for member in cls]

    @classmethod
    def parse(cls, value: object) -> "Category | None":
        """Look up a category by its wire value.

        Args:
            value: Raw category value from a request.

        Returns:
            Matching Category, or None if the value is not allowed.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value)
        except ValueError:
            return None


# Sentinel meaning "no category filter" in listing queries
ALL_CATEGORIES = "all"

# Legacy product line whose listings can additionally be filtered by size.
# Not a member of Category; it only ever appears as a listing filter value.
POWDER_HENNA_CATEGORY = "حناء بودر"
