"""Category taxonomy, merchant classification and group resolution."""

from lifeledger.categories.classifier import classify_merchant, normalize_merchant_text
from lifeledger.categories.groups import resolve_group
from lifeledger.categories.taxonomy import (
    APP_CATEGORIES,
    CATEGORY_GROUP_LABELS,
    CATEGORY_MAP,
    DEFAULT_CATEGORY,
    CategorySpec,
    category_color,
    category_emoji,
    get_category_spec,
    review_categories,
)

__all__ = [
    "APP_CATEGORIES",
    "CATEGORY_GROUP_LABELS",
    "CATEGORY_MAP",
    "DEFAULT_CATEGORY",
    "CategorySpec",
    "category_color",
    "category_emoji",
    "classify_merchant",
    "get_category_spec",
    "normalize_merchant_text",
    "resolve_group",
    "review_categories",
]
