"""
Rule-based store classifier.

Maps a store name to a spending category. Categories are tested in a fixed
priority order and the first one with a keyword hit wins.
"""
from __future__ import annotations

from app.schemas import Category

# Priority order matters: a "hotel restaurant" is dining, not lodging.
CATEGORY_KEYWORDS: tuple[tuple[Category, tuple[str, ...]], ...] = (
    (
        Category.DINING,
        (
            "restaurant", "cafe", "coffee", "レストラン", "カフェ", "食堂",
            "居酒屋", "ダイニング", "喫茶", "珈琲", "寿司", "ラーメン", "焼肉",
        ),
    ),
    (
        Category.GROCERIES,
        ("market", "super", "grocery", "コンビニ", "マート", "スーパー", "ストア"),
    ),
    (
        Category.TRANSPORTATION,
        (
            "gas", "petrol", "taxi", "parking", "ガソリン", "スタンド", "石油",
            "タクシー", "駐車場",
        ),
    ),
    (
        Category.LODGING,
        ("hotel", "hostel", "inn", "ホテル", "旅館", "民宿"),
    ),
    (
        Category.STATIONERY,
        ("stationery", "book", "文房具", "文具", "本屋", "書店"),
    ),
    (
        Category.HEALTHCARE,
        (
            "pharma", "drug", "clinic", "医薬", "薬局", "ドラッグ", "クリニック",
            "病院", "医院",
        ),
    ),
)


def categorize_store(store_name: str) -> Category:
    """Return the category for *store_name*; never fails, defaults to OTHER."""
    lowered = (store_name or "").lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(kw in lowered for kw in keywords):
            return category
    return Category.OTHER
