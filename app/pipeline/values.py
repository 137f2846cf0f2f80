"""
Value processors and whole-text fallbacks used by the field rule tables.

Processors take the trimmed capture of a matching rule and return a typed
value, or ``None`` when the capture cannot be interpreted. They never raise.
"""
from __future__ import annotations

import re
from datetime import datetime

from app.schemas import UNKNOWN_STORE

# Yen sign, full-width yen sign, and the backslash some encodings show instead
CURRENCY_MARK = r"[¥￥\\]"
# Starts at the first digit of a run so a failed suffix is not retried mid-run
NUMBER = r"(?<![\d,])\d(?:[\d,]*\d)?"

_DATE_SEPARATORS = re.compile(r"[年月日/.\-]")
_CURRENCY_TOKEN = re.compile(
    rf"{CURRENCY_MARK}\s*({NUMBER})|({NUMBER})\s*円"
)


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------

def normalize_date(value: str, year: int | None = None) -> str | None:
    """Turn a matched date substring into ``YYYY-MM-DD``.

    Two-digit years are read as 20xx. A month/day pair gets *year*, or the
    current year when not given. Calendar validity is not checked.
    """
    parts = [p for p in _DATE_SEPARATORS.split(value) if p.strip()]
    if len(parts) >= 3:
        y = parts[0]
        if len(y) == 2:
            y = f"20{y}"
        return f"{y}-{parts[1].zfill(2)}-{parts[2].zfill(2)}"
    if len(parts) == 2:
        current = year if year is not None else datetime.now().year
        return f"{current}-{parts[0].zfill(2)}-{parts[1].zfill(2)}"
    return None


# ---------------------------------------------------------------------------
# Amounts
# ---------------------------------------------------------------------------

def parse_amount(value: str) -> int | None:
    """``"1,200"`` -> ``1200``; ``None`` if no integer remains."""
    digits = value.replace(",", "").strip()
    try:
        return int(digits)
    except ValueError:
        return None


def currency_amounts(text: str) -> list[int]:
    """Every currency-marked number in *text*, in order of appearance."""
    amounts: list[int] = []
    for match in _CURRENCY_TOKEN.finditer(text):
        amount = parse_amount(match.group(1) or match.group(2))
        if amount is not None:
            amounts.append(amount)
    return amounts


def max_currency_amount(text: str) -> int:
    """Largest currency-marked number in *text*, or 0 when there is none."""
    return max(currency_amounts(text), default=0)


# ---------------------------------------------------------------------------
# Store name
# ---------------------------------------------------------------------------

def first_line_store_name(text: str) -> str:
    for line in text.split("\n"):
        if line.strip():
            return line.strip()
    return UNKNOWN_STORE
