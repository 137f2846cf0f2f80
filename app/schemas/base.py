"""
Canonical receipt schemas for the extraction pipeline.

All pipeline stages produce and consume these Pydantic v2 models. Field
names are snake_case in Python and camelCase on the wire.
"""
from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

UNKNOWN_STORE = "不明な店舗"
UNKNOWN_DATE = "日付不明"


class Category(str, Enum):
    """Spending categories assigned from the store name."""
    DINING = "飲食"
    GROCERIES = "食料品"
    TRANSPORTATION = "交通費"
    LODGING = "宿泊"
    STATIONERY = "文具・書籍"
    HEALTHCARE = "医療・健康"
    OTHER = "その他"


class _Record(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        use_enum_values=True,
        validate_default=True,
    )


# ---------------------------------------------------------------------------
# Receipt
# ---------------------------------------------------------------------------

class ReceiptItem(_Record):
    """One itemised purchase line. Prices are not reconciled with quantity."""
    name: str
    quantity: int = Field(..., ge=1)
    unit_price: int = Field(..., ge=0)
    total_price: int = Field(..., ge=0)


class Receipt(_Record):
    id: str = Field(..., description="Source image filename stem")
    store_name: str = UNKNOWN_STORE
    date: str = Field(UNKNOWN_DATE, description="YYYY-MM-DD or the unknown-date sentinel")
    amount: int = Field(0, ge=0)
    items: list[ReceiptItem] = Field(default_factory=list)
    tax_amount: Optional[int] = Field(None, ge=0)
    payment_method: Optional[str] = None
    raw_text: str = ""
    category: Category = Category.OTHER


# ---------------------------------------------------------------------------
# API request / response envelopes
# ---------------------------------------------------------------------------

class ParseRequest(BaseModel):
    raw_text: str
    source_id: str = "receipt"


class ParseResponse(BaseModel):
    record_id: str
    created_at: str
    receipt: Receipt


class AccountMapping(BaseModel):
    category: str
    account: str
