"""
Category -> ledger account lookup used by the accounting export.
"""
from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from app.schemas import Category

DEFAULT_ACCOUNT = "雑費"

ACCOUNT_MAP: Mapping[str, str] = MappingProxyType(
    {
        Category.DINING.value: "会議費",
        Category.GROCERIES.value: "消耗品費",
        Category.TRANSPORTATION.value: "旅費交通費",
        Category.LODGING.value: "旅費交通費",
        Category.STATIONERY.value: "消耗品費",
        Category.HEALTHCARE.value: "福利厚生費",
        Category.OTHER.value: DEFAULT_ACCOUNT,
    }
)


def map_category_to_account(category: str | Category) -> str:
    if isinstance(category, Category):
        category = category.value
    return ACCOUNT_MAP.get(category, DEFAULT_ACCOUNT)
