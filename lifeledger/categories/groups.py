"""
Category-Group Resolver

Maps any category string to one of the four taxonomy groups so that
aggregation never drops a record for lack of a group.
"""

from typing import Optional

from lifeledger.categories.taxonomy import get_category_spec
from lifeledger.models.event import CategoryGroup


# Checked in this order after the exact taxonomy lookup
GROUP_KEYWORDS: tuple[tuple[CategoryGroup, tuple[str, ...]], ...] = (
    (CategoryGroup.INCOME, ("수입", "용돈", "급여")),
    (CategoryGroup.ASSET_TRANSFER, ("이체", "저축", "투자")),
    (CategoryGroup.FIXED_EXPENSE, ("고정", "공과금", "월세")),
)


def resolve_group(category: Optional[str], type_hint: Optional[str] = None) -> CategoryGroup:
    """
    Resolve a category to its group.

    1. Empty -> variable_expense
    2. Exact taxonomy key -> declared group
    3. Keyword fallback on the category text, else variable_expense

    `type_hint` is accepted so callers can pass transaction context, but the
    result depends on `category` alone.
    """
    if not category:
        return CategoryGroup.VARIABLE_EXPENSE

    spec = get_category_spec(category)
    if spec is not None:
        return spec.group

    for group, keywords in GROUP_KEYWORDS:
        if any(keyword in category for keyword in keywords):
            return group

    return CategoryGroup.VARIABLE_EXPENSE
