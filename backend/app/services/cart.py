"""
POS cart: in-memory state of the sale being rung up.

One cart per vendor lives in cart_registry for the length of the session;
it is never persisted and is discarded on logout. Money is Decimal,
rounded half-up to paise.
"""
import logging
import threading
from dataclasses import dataclass, asdict
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from app.core.exceptions import NotFound
from app.schemas.pos import DiscountMode
from app.schemas.transaction import PaymentMethod

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value) -> Decimal:
    return Decimal(str(value)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def compute_discount(subtotal, mode: DiscountMode, value) -> Decimal:
    """Discount for a subtotal.

    amount:  value as-is
    percent: subtotal * value / 100
    Missing or negative values give 0; the result never exceeds the subtotal.
    """
    subtotal = to_money(subtotal)
    if value is None:
        return ZERO
    value = Decimal(str(value))
    if value <= 0:
        return ZERO

    if mode == DiscountMode.PERCENT:
        raw = subtotal * value / Decimal(100)
    else:
        raw = value

    return max(ZERO, min(to_money(raw), subtotal))


@dataclass
class CartLine:
    """Product fields as they were when added, plus the quantity."""
    product_id: str
    name: str
    price: Decimal
    stock: int
    location: str = ""
    usage: str = ""
    low_stock_threshold: int = 2
    category: Optional[str] = None
    quantity: int = 1

    @property
    def line_total(self) -> Decimal:
        return to_money(self.price * self.quantity)

    def snapshot(self) -> dict:
        """JSON-ready copy stored on the transaction."""
        data = asdict(self)
        data["id"] = data.pop("product_id")
        data["price"] = float(self.price)
        return data


class Cart:
    def __init__(self):
        self.lines: dict[str, CartLine] = {}
        self.discount_mode = DiscountMode.AMOUNT
        self.discount_value = Decimal("0")
        self.remark = ""
        self.payment_method = PaymentMethod.CASH

    def __len__(self):
        return len(self.lines)

    @property
    def is_empty(self) -> bool:
        return not self.lines

    def add_item(self, product) -> bool:
        """Add one unit of product. Returns False when nothing changed.

        Out-of-stock products are ignored; an existing line grows by one but
        never past the product's current stock.
        """
        stock = product.stock or 0
        if stock <= 0:
            return False

        line = self.lines.get(product.id)
        if line:
            line.stock = stock
            if line.quantity >= stock:
                return False
            line.quantity += 1
            return True

        self.lines[product.id] = CartLine(
            product_id=product.id,
            name=product.name,
            price=to_money(product.price),
            stock=stock,
            location=product.location or "",
            usage=product.usage or "",
            low_stock_threshold=product.low_stock_threshold or 2,
            category=product.category,
        )
        return True

    def update_quantity(self, product_id: str, delta: int) -> CartLine:
        """Change a line by delta, clamped to [1, stock]. Use remove_item to drop it."""
        line = self.lines.get(product_id)
        if not line:
            raise NotFound("Item is not in the cart")
        line.quantity = max(1, min(line.stock, line.quantity + delta))
        return line

    def remove_item(self, product_id: str) -> None:
        self.lines.pop(product_id, None)

    def set_discount(self, mode: Optional[DiscountMode] = None, value=None) -> None:
        if mode is not None:
            self.discount_mode = mode
        if value is not None:
            self.discount_value = Decimal(str(value))

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines.values())

    @property
    def subtotal(self) -> Decimal:
        return to_money(sum((line.line_total for line in self.lines.values()), ZERO))

    @property
    def discount(self) -> Decimal:
        return compute_discount(self.subtotal, self.discount_mode, self.discount_value)

    @property
    def total(self) -> Decimal:
        return self.subtotal - self.discount

    def clear(self) -> None:
        """Empty the cart and reset discount, remark and payment method."""
        self.lines.clear()
        self.discount_mode = DiscountMode.AMOUNT
        self.discount_value = Decimal("0")
        self.remark = ""
        self.payment_method = PaymentMethod.CASH


class CartRegistry:
    """Active carts keyed by vendor id."""

    def __init__(self):
        self._carts: dict[str, Cart] = {}
        self._lock = threading.Lock()

    def get(self, vendor_id: str) -> Cart:
        with self._lock:
            cart = self._carts.get(vendor_id)
            if cart is None:
                cart = self._carts[vendor_id] = Cart()
            return cart

    def discard(self, vendor_id: str) -> None:
        with self._lock:
            self._carts.pop(vendor_id, None)

    def clear(self) -> None:
        with self._lock:
            self._carts.clear()


cart_registry = CartRegistry()
