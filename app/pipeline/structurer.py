"""
Rule-based field extractor (structurer).

Each receipt field owns an ordered list of regex rules. Rules are tried in
list order and the first one that matches wins; there is no scoring across
rules. A field may also carry one whole-text fallback, which only runs when
no rule matched at all.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Optional

from app.pipeline.values import (
    CURRENCY_MARK,
    NUMBER,
    first_line_store_name,
    max_currency_amount,
    normalize_date,
    parse_amount,
)

logger = logging.getLogger(__name__)

Processor = Callable[[str], Any]
Fallback = Callable[[str], Any]


@dataclass(frozen=True)
class FieldRule:
    """A pattern with exactly one capture group and an optional processor."""
    pattern: re.Pattern[str]
    processor: Optional[Processor] = None


@dataclass(frozen=True)
class FieldSpec:
    name: str
    rules: tuple[FieldRule, ...]
    fallback: Optional[Fallback] = None


def _rules(
    patterns: list[str], processor: Processor | None = None, flags: int = 0
) -> tuple[FieldRule, ...]:
    return tuple(
        FieldRule(re.compile(p, flags | re.IGNORECASE), processor) for p in patterns
    )


# ---------------------------------------------------------------------------
# Per-field rule tables
# ---------------------------------------------------------------------------

_YEN = rf"{CURRENCY_MARK}?\s*"
# A number directly followed by "%" is a tax rate, not an amount
_AMOUNT = rf"({NUMBER})(?!\d|[ \t]*[%％])"
# Optional rate printed between a tax label and its amount, e.g. "(10%)"
_RATE = r"(?:[ \t]*[(（]?\d{1,2}[%％][)）]?)?"

STORE_NAME = FieldSpec(
    name="store_name",
    rules=_rules(
        [
            r"(?:店名|店舗名|store\s*name)[ \t]*[:：|][ \t]*([^\n]+)",
            r"^([^\n]+)\n[^\n]*(?:領収|receipt)",
            r"^([^\n]{2,20})\n[^\n]*\d{3}-\d{4}",
            r"商号(?:名称)?[:：\s]*([^\s]+)",
            r"屋号[ \t]*[:：][ \t]*([^\s]+)",
        ],
        flags=re.MULTILINE,
    ),
    fallback=first_line_store_name,
)

DATE = FieldSpec(
    name="date",
    rules=_rules(
        [
            r"(?:日付|date)[ \t]*[:：][ \t]*(\d{4}[/\-.年]\d{1,2}[/\-.月]\d{1,2})",
            r"(?<!\d)(\d{4}[/\-.年]\d{1,2}[/\-.月]\d{1,2})",
            r"(?<!\d)(\d{2}[/.]\d{1,2}[/.]\d{1,2})(?!\d)",
            r"(?<!\d)(\d{1,2}月\d{1,2}日)",
        ],
        processor=normalize_date,
    ),
)

AMOUNT = FieldSpec(
    name="amount",
    rules=_rules(
        [
            rf"合計[金額]*[\s:：]*{_YEN}{_AMOUNT}",
            rf"(?:小計|お買上げ|お買い上げ|計)[^¥￥\\\d\n]*{_YEN}{_AMOUNT}",
            rf"(?:total|金額)[^¥￥\\\d\n]*{_YEN}{_AMOUNT}",
            rf"(?:お会計|ご請求額|請求金額)[\s:：]*{_YEN}{_AMOUNT}",
            rf"{CURRENCY_MARK}[ \t]*({NUMBER})(?:[ \t]*$|[ \t]*円)",
        ],
        processor=parse_amount,
        flags=re.MULTILINE,
    ),
    fallback=max_currency_amount,
)

TAX_AMOUNT = FieldSpec(
    name="tax_amount",
    rules=_rules(
        [
            rf"消費税[額等]*{_RATE}[\s:：]*{_YEN}{_AMOUNT}",
            rf"内税{_RATE}[\s:：]*{_YEN}{_AMOUNT}",
            rf"外税{_RATE}[\s:：]*{_YEN}{_AMOUNT}",
            rf"税額[\s:：]*{_YEN}{_AMOUNT}",
            rf"(?:税|tax)[ \t:：]*{_YEN}({NUMBER})(?:[ \t]*$|[ \t]*円)",
        ],
        processor=parse_amount,
        flags=re.MULTILINE,
    ),
)

PAYMENT_METHODS = [
    "クレジット", "カード", "デビット", "現金", "電子マネー", "QRコード",
    "PayPay", "メルペイ", "楽天ペイ", "d払い", "au PAY", "交通系",
    "Suica", "PASMO", "ICOCA", "nanaco", "WAON",
    "credit", "debit", "cash", "card",
]


def _keyword_pattern(words: list[str]) -> str:
    # Latin keywords must not be part of a longer word ("Cashier")
    alternatives = []
    for word in words:
        escaped = re.escape(word)
        if word.isascii():
            escaped = rf"(?<![A-Za-z]){escaped}(?![A-Za-z])"
        alternatives.append(escaped)
    return "(" + "|".join(alternatives) + ")"


PAYMENT_METHOD = FieldSpec(
    name="payment_method",
    rules=_rules(
        [
            r"(?:お?支払い?方法|payment\s*method)[ \t]*[:：]?[ \t]*([^\n]+)",
            _keyword_pattern(PAYMENT_METHODS),
        ]
    ),
)

FIELD_SPECS: dict[str, FieldSpec] = {
    spec.name: spec
    for spec in (STORE_NAME, DATE, AMOUNT, TAX_AMOUNT, PAYMENT_METHOD)
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract_field(text: str, spec: FieldSpec) -> Any:
    """Return the value of one field, or ``None`` when it is absent.

    The first matching rule decides the outcome, including when its
    processor rejects the capture; the fallback is for unmatched text only.
    """
    for idx, rule in enumerate(spec.rules):
        match = rule.pattern.search(text)
        if not match:
            continue
        value = (match.group(1) or "").strip()
        if not value:
            continue
        logger.debug("%s: rule %d matched %r", spec.name, idx, value)
        return rule.processor(value) if rule.processor else value

    if spec.fallback is not None:
        logger.debug("%s: no rule matched, using fallback", spec.name)
        return spec.fallback(text)
    return None


def extract_fields(
    text: str, specs: dict[str, FieldSpec] = FIELD_SPECS
) -> dict[str, Any]:
    """Extract every configured field from normalised *text*."""
    return {name: extract_field(text, spec) for name, spec in specs.items()}
