"""
Receipt exports: JSON, tabular CSV, accounting CSV and raw-text CSV.

Every ``receipts_to_*`` function renders to a string so the same code backs
both the CLI (files) and the HTTP export endpoint.
"""
from __future__ import annotations

import csv
import io
import json
import logging
import re
from pathlib import Path
from typing import Iterable, Sequence

from app.config import settings
from app.pipeline.accounts import map_category_to_account
from app.schemas import Receipt

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("json", "csv", "accounting", "raw")

# (title, attribute) in column order
CSV_COLUMNS: tuple[tuple[str, str], ...] = (
    ("ID", "id"),
    ("日付", "date"),
    ("店舗名", "store_name"),
    ("金額", "amount"),
    ("消費税", "tax_amount"),
    ("カテゴリ", "category"),
    ("支払方法", "payment_method"),
)

ACCOUNTING_COLUMNS: tuple[str, ...] = (
    "日付", "内容", "勘定科目", "金額", "備考", "税区分", "税額",
)
TAX_CLASSIFICATION = "課税"

RAW_COLUMNS: tuple[str, ...] = ("id", "text")

_WHITESPACE = re.compile(r"\s+")


def _render(header: Sequence[str], rows: Iterable[Sequence]) -> str:
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(header)
    writer.writerows(rows)
    return output.getvalue()


# ---------------------------------------------------------------------------
# JSON
# ---------------------------------------------------------------------------

def receipts_to_json(receipts: Sequence[Receipt]) -> str:
    """camelCase keys; absent optional fields are omitted."""
    payload = [r.model_dump(mode="json", by_alias=True, exclude_none=True) for r in receipts]
    return json.dumps(payload, ensure_ascii=False, indent=2)


# ---------------------------------------------------------------------------
# Default tabular CSV
# ---------------------------------------------------------------------------

def receipts_to_csv(receipts: Sequence[Receipt]) -> str:
    """One row per receipt; line items are not flattened."""
    rows = (
        ["" if getattr(r, attr) is None else getattr(r, attr) for _, attr in CSV_COLUMNS]
        for r in receipts
    )
    return _render([title for title, _ in CSV_COLUMNS], rows)


# ---------------------------------------------------------------------------
# Accounting CSV
# ---------------------------------------------------------------------------

def estimate_tax(amount: int, rate_percent: int | None = None) -> int:
    """Tax estimated as ``floor(amount * rate)``, in integer arithmetic."""
    if rate_percent is None:
        rate_percent = settings.DEFAULT_TAX_RATE_PERCENT
    return amount * rate_percent // 100


def accounting_row(receipt: Receipt) -> dict[str, str | int]:
    tax = receipt.tax_amount
    if tax is None:
        tax = estimate_tax(receipt.amount)
    return {
        "日付": receipt.date,
        "内容": receipt.store_name,
        "勘定科目": map_category_to_account(receipt.category),
        "金額": receipt.amount,
        "備考": f"領収書ID: {receipt.id}",
        "税区分": TAX_CLASSIFICATION,
        "税額": tax,
    }


def receipts_to_accounting_csv(receipts: Sequence[Receipt]) -> str:
    rows = ([accounting_row(r)[col] for col in ACCOUNTING_COLUMNS] for r in receipts)
    return _render(ACCOUNTING_COLUMNS, rows)


# ---------------------------------------------------------------------------
# Raw text CSV
# ---------------------------------------------------------------------------

def collapse_raw_text(text: str) -> str:
    """Fold the OCR text onto one line: newlines become single spaces."""
    text = text.replace("\r", "").replace("\n", " ")
    return _WHITESPACE.sub(" ", text).strip()


def receipts_to_raw_csv(receipts: Sequence[Receipt]) -> str:
    """``id,text`` rows; quotes in the text are doubled by the CSV writer."""
    rows = ([r.id, collapse_raw_text(r.raw_text)] for r in receipts)
    return _render(RAW_COLUMNS, rows)


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

_RENDERERS = {
    "json": receipts_to_json,
    "csv": receipts_to_csv,
    "accounting": receipts_to_accounting_csv,
    "raw": receipts_to_raw_csv,
}


def render(receipts: Sequence[Receipt], fmt: str) -> str:
    if fmt not in _RENDERERS:
        raise ValueError(f"Unknown export format: {fmt}")
    return _RENDERERS[fmt](receipts)


def save_receipts(receipts: Sequence[Receipt], output_base: str | Path, fmt: str) -> Path:
    """Write *receipts* to ``output_base`` + ``.json``/``.csv``; return the path."""
    suffix = ".json" if fmt == "json" else ".csv"
    path = Path(f"{output_base}{suffix}")
    content = render(receipts, fmt)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding=settings.OUTPUT_ENCODING)
    logger.info("Wrote %d receipts (%s) to %s", len(receipts), fmt, path)
    return path
