"""
Merchant Classifier

Keyword-based mapping from a free-text merchant or payee name to a
taxonomy category. No API calls, no state.
"""

import re
from typing import Optional

from lifeledger.categories.taxonomy import DEFAULT_CATEGORY


# Checked top to bottom; the first matching keyword wins.
CATEGORY_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("식비", (
        # Cafes
        "스타벅스", "메가커피", "투썸", "이디야", "카페", "커피", "배스킨", "던킨",
        # Restaurants / delivery
        "맥도날드", "버거킹", "식당", "김밥", "치킨", "피자", "배달", "요기요", "쿠팡이츠",
        # Groceries / marts
        "이마트", "홈플러스", "롯데마트", "하나로마트", "편의점", "GS25", "CU", "마트",
    )),
    ("주거/통신/광열", (
        "관리비", "도시가스", "한전", "수도", "SKT", "KT", "LGU", "인터넷", "가스",
    )),
    ("교통/차량", (
        "택시", "카카오T", "버스", "지하철", "코레일", "주유", "GS칼텍스", "S-OIL", "주차",
    )),
    ("문화/여가", (
        "CGV", "롯데시네마", "넷플릭스", "유튜브", "티빙", "멜론", "여행", "숙소", "야놀자",
        "골프", "PC방",
    )),
    ("쇼핑/생활", (
        "쿠팡", "네이버페이", "다이소", "올리브영", "백화점", "아울렛", "컬리", "무신사", "지그재그",
    )),
    ("의료/건강", (
        "병원", "약국", "의원", "치과", "한의원", "헬스",
    )),
    ("교육", (
        "학원", "강의", "서적", "교보문고", "알라딘",
    )),
    ("비소비지출/금융", (
        "이자", "세금", "보험", "기부", "은행", "카드",
    )),
    ("인맥", (
        "축의금", "조의금", "선물", "모임",
    )),
)

_WHITESPACE = re.compile(r"\s+")


def normalize_merchant_text(text: Optional[str]) -> str:
    """Lowercase and drop every whitespace character."""
    if not text:
        return ""
    return _WHITESPACE.sub("", str(text).lower())


_NORMALIZED_KEYWORDS: tuple[tuple[str, str], ...] = tuple(
    (normalize_merchant_text(keyword), category)
    for category, keywords in CATEGORY_KEYWORDS
    for keyword in keywords
)


def classify_merchant(merchant_name: Optional[str]) -> str:
    """
    Classify a merchant name into a taxonomy category.

    Args:
        merchant_name: Raw merchant/payee text (may be empty or None)

    Returns:
        The category of the first keyword found in the name,
        or "기타" when nothing matches.
    """
    normalized = normalize_merchant_text(merchant_name)
    if not normalized:
        return DEFAULT_CATEGORY

    for keyword, category in _NORMALIZED_KEYWORDS:
        if keyword and keyword in normalized:
            return category

    return DEFAULT_CATEGORY
