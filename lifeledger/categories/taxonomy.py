"""
Category Taxonomy

Static ledger taxonomy: four groups, each holding named categories with
sub-categories. Category names are the Korean labels users see and the
values stored in the ledger's `category` column.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from lifeledger.models.event import CategoryGroup


# Category returned when nothing else applies
DEFAULT_CATEGORY = "기타"

NEUTRAL_COLOR = "#6B7280"
DEFAULT_EMOJI = "📦"


class CategorySpec(BaseModel):
    """One taxonomy entry."""
    model_config = ConfigDict(frozen=True)

    group: CategoryGroup
    category: str
    sub_categories: tuple[str, ...] = Field(default_factory=tuple)


def _spec(group: CategoryGroup, category: str, *subs: str) -> tuple[str, CategorySpec]:
    return category, CategorySpec(group=group, category=category, sub_categories=subs)


CATEGORY_MAP: dict[str, CategorySpec] = dict([
    # === Fixed Expense ===
    _spec(CategoryGroup.FIXED_EXPENSE, "주거/통신/광열", "주거/관리비", "통신비", "전기/가스/수도"),
    _spec(CategoryGroup.FIXED_EXPENSE, "비소비지출/금융", "이자/세금", "보험", "경조사", "기부"),

    # === Variable Expense ===
    _spec(CategoryGroup.VARIABLE_EXPENSE, "식비", "식료품", "외식/배달", "카페/베이커리"),
    _spec(CategoryGroup.VARIABLE_EXPENSE, "교통/차량", "대중교통", "자차/유지", "주유", "택시"),
    _spec(CategoryGroup.VARIABLE_EXPENSE, "문화/여가", "OTT/구독", "여행", "문화생활", "게임"),
    _spec(CategoryGroup.VARIABLE_EXPENSE, "쇼핑/생활", "온라인", "오프라인", "생활용품"),
    _spec(CategoryGroup.VARIABLE_EXPENSE, "의료/건강", "병원", "약국", "건강식품"),
    _spec(CategoryGroup.VARIABLE_EXPENSE, "교육", "학원/과외", "서적", "온라인강의"),
    _spec(CategoryGroup.VARIABLE_EXPENSE, "인맥", "경조사", "선물", "모임"),
    _spec(CategoryGroup.VARIABLE_EXPENSE, "기타", "기타", "미분류"),

    # === Income ===
    _spec(CategoryGroup.INCOME, "수입", "월급", "용돈", "금융수입", "기타"),

    # === Asset Transfer ===
    _spec(CategoryGroup.ASSET_TRANSFER, "이체", "자산인출", "저축", "투자"),
])

# Labels shown when a user picks a group
CATEGORY_GROUP_LABELS: dict[CategoryGroup, str] = {
    CategoryGroup.FIXED_EXPENSE: "고정지출 (매월 발생)",
    CategoryGroup.VARIABLE_EXPENSE: "변동지출 (생활비)",
    CategoryGroup.INCOME: "수입",
    CategoryGroup.ASSET_TRANSFER: "이체/자산",
}

# Category -> sub-categories, in taxonomy order
APP_CATEGORIES: dict[str, list[str]] = {
    spec.category: list(spec.sub_categories) for spec in CATEGORY_MAP.values()
}

_CATEGORY_EMOJIS = {
    "식비": "🍽️",
    "주거/통신/광열": "🏠",
    "교통/차량": "🚗",
    "문화/여가": "🎬",
    "쇼핑/생활": "🛍️",
    "의료/건강": "🏥",
    "교육": "📚",
    "비소비지출/금융": "💸",
    "인맥": "🤝",
    "기타": "📦",
}

_CATEGORY_COLORS = {
    "식비": "#FF6B6B",
    "주거/통신/광열": "#4ECDC4",
    "교통/차량": "#3B82F6",
    "문화/여가": "#A855F7",
    "쇼핑/생활": "#F59E0B",
    "의료/건강": "#EF4444",
    "교육": "#6366F1",
    "비소비지출/금융": "#059669",
    "인맥": "#F472B6",
    "기타": "#6B7280",
}


def get_category_spec(category: Optional[str]) -> Optional[CategorySpec]:
    """Look up a taxonomy entry; None for unknown categories."""
    if not category:
        return None
    return CATEGORY_MAP.get(category)


def review_categories(group: Optional[CategoryGroup] = None) -> list[CategorySpec]:
    """Categories offered for review, optionally limited to one group."""
    return [spec for spec in CATEGORY_MAP.values() if group is None or spec.group == group]


def category_emoji(category: Optional[str]) -> str:
    return _CATEGORY_EMOJIS.get(category or "", DEFAULT_EMOJI)


def category_color(category: Optional[str]) -> str:
    return _CATEGORY_COLORS.get(category or "", NEUTRAL_COLOR)
