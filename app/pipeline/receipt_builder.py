"""
Receipt builder: resolves extracted fields into the final record.
"""
from __future__ import annotations

from typing import Any

from app.pipeline.classifier import categorize_store
from app.schemas import UNKNOWN_DATE, UNKNOWN_STORE, Receipt, ReceiptItem


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _as_text(value: Any, fallback: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return fallback


def _as_amount(value: Any) -> int | None:
    if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
        return value
    return None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def build_receipt(
    source_id: str,
    text: str,
    fields: dict[str, Any],
    items: list[ReceiptItem],
) -> Receipt:
    """Assemble a :class:`Receipt`, substituting sentinels for absent fields."""
    store_name = _as_text(fields.get("store_name"), UNKNOWN_STORE)
    payment_method = fields.get("payment_method")

    return Receipt(
        id=source_id,
        store_name=store_name,
        date=_as_text(fields.get("date"), UNKNOWN_DATE),
        amount=_as_amount(fields.get("amount")) or 0,
        items=items,
        tax_amount=_as_amount(fields.get("tax_amount")),
        payment_method=payment_method.strip() if payment_method else None,
        raw_text=text,
        category=categorize_store(store_name),
    )
