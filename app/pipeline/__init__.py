"""
Receipt extraction core pipeline.

Orchestrates: normalise → extract fields → parse items → build receipt.
Pure string processing with no shared state, so calls for different
receipts are independent.
"""
import logging

from app.errors import EmptyOcrResult
from app.schemas import Receipt
from app.pipeline.normalizer import normalize_text
from app.pipeline.structurer import extract_fields
from app.pipeline.items import extract_items
from app.pipeline.receipt_builder import build_receipt

logger = logging.getLogger(__name__)


def process_text(raw_text: str | None, source_id: str) -> Receipt:
    """Run the full extraction pipeline on one OCR text.

    Field-level failures degrade to sentinel or absent values. Raises
    :class:`EmptyOcrResult` only when there is no text at all.
    """
    if raw_text is None or not raw_text.strip():
        raise EmptyOcrResult(source_id)

    logger.debug("Pipeline start: normalise %s", source_id)
    text = normalize_text(raw_text)

    fields = extract_fields(text)
    logger.debug("Extracted fields for %s: %s", source_id, fields)

    items = extract_items(text)
    logger.debug("Parsed %d line items", len(items))

    receipt = build_receipt(source_id, text, fields, items)
    logger.info(
        "Receipt built: %s (%s, %d, %s)",
        receipt.id, receipt.store_name, receipt.amount, receipt.date,
    )
    return receipt
