from enum import Enum
from pydantic import BaseModel, Field
from typing import Optional

from app.schemas.product import ProductResponse


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    UPI = "upi"


class CartItemSnapshot(BaseModel):
    """A product as it was at checkout, plus the quantity sold."""
    id: str
    name: str
    price: float
    stock: int
    location: str = ""
    usage: str = ""
    low_stock_threshold: int = 2
    category: Optional[str] = None
    quantity: int = Field(ge=1)


class TransactionResponse(BaseModel):
    id: str
    timestamp: int  # epoch millis
    items: list[CartItemSnapshot]
    subtotal: float
    discount: float
    total: float
    payment_method: PaymentMethod
    remark: str

    class Config:
        from_attributes = True


class ResetResult(BaseModel):
    """On failure, transactions is the last known-good history."""
    success: bool
    transactions: list[TransactionResponse]
    error: Optional[str] = None


class PopularItem(BaseModel):
    name: str
    count: int


class SalesReport(BaseModel):
    total_revenue: float
    total_items_sold: int
    transaction_count: int
    popular_items: list[PopularItem]
    low_stock_alerts: list[ProductResponse]
