"""
Transaction: completed sale. Append-only.
items holds a snapshot of every cart line, so later product edits never
change a past sale. Only removed in bulk by a history reset.
"""
import uuid

from sqlalchemy import Column, String, ForeignKey, Numeric, DateTime, BigInteger, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from sqlalchemy.types import JSON
from app.db.base import Base


class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    vendor_id = Column(String(255), ForeignKey("vendors.id", ondelete="CASCADE"), nullable=False, index=True)
    timestamp = Column(BigInteger, nullable=False)  # epoch millis
    items = Column(JSON, nullable=False)
    subtotal = Column(Numeric(12, 2), nullable=False)
    discount = Column(Numeric(12, 2), nullable=False, default=0)
    total = Column(Numeric(12, 2), nullable=False)  # subtotal - discount
    payment_method = Column(String(16), nullable=False, default="cash")  # cash | card | upi
    remark = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    vendor = relationship("Vendor", backref="transactions")
