"""
SQLAlchemy model for parsed receipt persistence.
"""
from sqlalchemy import Column, String, Text, JSON, Integer

from app.database import Base


class ReceiptModel(Base):
    __tablename__ = "receipts"

    id = Column(String, primary_key=True)
    source_id = Column(String, nullable=False, index=True)  # Receipt.id, not unique
    created_at = Column(String, nullable=False)
    store_name = Column(String, nullable=False)
    date = Column(String, nullable=False)
    amount = Column(Integer, nullable=False, default=0)
    tax_amount = Column(Integer)
    payment_method = Column(String)
    category = Column(String, nullable=False)
    raw_text = Column(Text, nullable=False)
    receipt_json = Column(JSON, nullable=False)
