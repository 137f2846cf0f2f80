"""
Receipt API endpoints.

POST   /api/parse                - OCR text → structured receipt (stored)
GET    /api/receipts             - list stored receipts
GET    /api/receipts/{id}        - get one receipt
DELETE /api/receipts/{id}        - delete one receipt
GET    /api/export/{fmt}         - all receipts as json / csv / accounting / raw
GET    /api/accounts             - category → ledger account table
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.database import get_db
from app.errors import EmptyOcrResult
from app.exporters import EXPORT_FORMATS, render
from app.models.receipt import ReceiptModel
from app.pipeline import process_text
from app.pipeline.accounts import ACCOUNT_MAP
from app.schemas import AccountMapping, ParseRequest, ParseResponse, Receipt

logger = logging.getLogger(__name__)
router = APIRouter()


def _to_receipt(row: ReceiptModel) -> Receipt:
    return Receipt.model_validate(row.receipt_json)


# ── POST /api/parse ──────────────────────────────────────────────────────
@router.post("/parse", response_model=ParseResponse)
def parse(req: ParseRequest, db: Session = Depends(get_db)):
    logger.info("Parse: source_id=%s  len=%d", req.source_id, len(req.raw_text))
    try:
        receipt = process_text(req.raw_text, req.source_id)
    except EmptyOcrResult as e:
        raise HTTPException(status_code=400, detail=e.message)

    record = ReceiptModel(
        id=str(uuid.uuid4()),
        source_id=receipt.id,
        created_at=datetime.now(timezone.utc).isoformat(),
        store_name=receipt.store_name,
        date=receipt.date,
        amount=receipt.amount,
        tax_amount=receipt.tax_amount,
        payment_method=receipt.payment_method,
        category=receipt.category,
        raw_text=receipt.raw_text,
        receipt_json=receipt.model_dump(mode="json", by_alias=True),
    )
    db.add(record)
    db.commit()
    logger.info("Stored receipt %s (source %s)", record.id, receipt.id)

    return ParseResponse(record_id=record.id, created_at=record.created_at, receipt=receipt)


# ── GET /api/receipts ────────────────────────────────────────────────────
@router.get("/receipts")
def list_receipts(db: Session = Depends(get_db)):
    rows = db.query(ReceiptModel).order_by(ReceiptModel.created_at.desc()).all()
    logger.info("Found %d receipts in database", len(rows))
    return [
        {"record_id": r.id, "created_at": r.created_at, "receipt": r.receipt_json}
        for r in rows
    ]


# ── GET /api/receipts/{record_id} ────────────────────────────────────────
@router.get("/receipts/{record_id}")
def get_receipt(record_id: str, db: Session = Depends(get_db)):
    row = db.query(ReceiptModel).filter(ReceiptModel.id == record_id).first()
    if not row:
        logger.warning("Receipt not found: %s", record_id)
        raise HTTPException(status_code=404, detail="Receipt not found")
    return row.receipt_json


# ── DELETE /api/receipts/{record_id} ─────────────────────────────────────
@router.delete("/receipts/{record_id}")
def delete_receipt(record_id: str, db: Session = Depends(get_db)):
    row = db.query(ReceiptModel).filter(ReceiptModel.id == record_id).first()
    if not row:
        raise HTTPException(status_code=404, detail="Receipt not found")
    db.delete(row)
    db.commit()
    logger.info("Deleted receipt %s", record_id)
    return {"message": "Receipt deleted successfully", "record_id": record_id}


# ── GET /api/export/{fmt} ────────────────────────────────────────────────
@router.get("/export/{fmt}")
def export(fmt: str, db: Session = Depends(get_db)):
    if fmt not in EXPORT_FORMATS:
        raise HTTPException(status_code=400, detail=f"Unknown export format: {fmt}")
    rows = db.query(ReceiptModel).order_by(ReceiptModel.created_at.asc()).all()
    content = render([_to_receipt(r) for r in rows], fmt)
    media_type = "application/json" if fmt == "json" else "text/csv"
    filename = f"receipts_{fmt}.{'json' if fmt == 'json' else 'csv'}"
    return Response(
        content=content,
        media_type=f"{media_type}; charset=utf-8",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


# ── GET /api/accounts ────────────────────────────────────────────────────
@router.get("/accounts", response_model=list[AccountMapping])
def list_accounts():
    return [AccountMapping(category=c, account=a) for c, a in ACCOUNT_MAP.items()]
