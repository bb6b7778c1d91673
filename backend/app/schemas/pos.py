from enum import Enum
from pydantic import BaseModel, Field
from typing import Optional

from app.schemas.transaction import PaymentMethod, TransactionResponse


class DiscountMode(str, Enum):
    AMOUNT = "amount"
    PERCENT = "percent"


class AddToCart(BaseModel):
    product_id: str


class QuantityChange(BaseModel):
    delta: int


class CartUpdate(BaseModel):
    discount_mode: Optional[DiscountMode] = None
    discount_value: Optional[float] = None
    remark: Optional[str] = None
    payment_method: Optional[PaymentMethod] = None


class CheckoutRequest(BaseModel):
    remark: Optional[str] = None
    payment_method: Optional[PaymentMethod] = None


class CartLineResponse(BaseModel):
    product_id: str
    name: str
    price: float
    stock: int
    quantity: int = Field(ge=1)
    line_total: float


class CartResponse(BaseModel):
    lines: list[CartLineResponse]
    item_count: int
    subtotal: float
    discount: float
    total: float
    discount_mode: DiscountMode
    discount_value: float
    remark: str
    payment_method: PaymentMethod


class CheckoutResponse(BaseModel):
    transaction: TransactionResponse
    cart: CartResponse
