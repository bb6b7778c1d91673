import uuid

from sqlalchemy import Column, Integer, String, ForeignKey, Numeric, DateTime, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db.base import Base

DEFAULT_LOW_STOCK_THRESHOLD = 2


def _new_id() -> str:
    return str(uuid.uuid4())


class Product(Base):
    """
    Pharmacy shelf item.

    Name uniqueness is advisory only: bill ingestion matches names
    case-insensitively, nothing in the schema enforces it.
    """
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=_new_id)
    vendor_id = Column(String(255), ForeignKey("vendors.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    price = Column(Numeric(10, 2), nullable=False, default=0)  # ₹ per unit
    stock = Column(Integer, nullable=False, default=0)
    location = Column(String(255), nullable=True, default="")  # shelf / rack
    usage = Column(String(512), nullable=True, default="")  # what the medicine treats
    low_stock_threshold = Column(
        Integer,
        default=DEFAULT_LOW_STOCK_THRESHOLD,
        server_default=text(str(DEFAULT_LOW_STOCK_THRESHOLD)),
    )
    category = Column(String(128), nullable=True)  # legacy
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    vendor = relationship("Vendor", backref="products")

    @property
    def is_low_stock(self) -> bool:
        threshold = self.low_stock_threshold
        if threshold is None:
            threshold = DEFAULT_LOW_STOCK_THRESHOLD
        return (self.stock or 0) <= threshold
