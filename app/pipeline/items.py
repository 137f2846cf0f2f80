"""
Line-item parser.

A line is an item when it reads ``<name> <qty> <unit price> <total price>``;
anything else contributes nothing. Quantities and prices are taken as
printed and not reconciled with each other.
"""
from __future__ import annotations

import re

from app.pipeline.values import CURRENCY_MARK, NUMBER, parse_amount
from app.schemas import ReceiptItem

ITEM_LINE = re.compile(
    rf"(.+?)\s+(\d+)\s+{CURRENCY_MARK}?({NUMBER})\s+{CURRENCY_MARK}?({NUMBER})"
)


def parse_item_line(line: str) -> ReceiptItem | None:
    match = ITEM_LINE.match(line)
    if not match:
        return None
    quantity = parse_amount(match.group(2))
    unit_price = parse_amount(match.group(3))
    total_price = parse_amount(match.group(4))
    # Digit runs too long for int() leave the line unparsed
    if quantity is None or unit_price is None or total_price is None:
        return None
    if quantity < 1:
        return None
    return ReceiptItem(
        name=match.group(1).strip(),
        quantity=quantity,
        unit_price=unit_price,
        total_price=total_price,
    )


def extract_items(text: str) -> list[ReceiptItem]:
    """Return one item per matching line, in line order."""
    items: list[ReceiptItem] = []
    for line in text.split("\n"):
        item = parse_item_line(line)
        if item is not None:
            items.append(item)
    return items
