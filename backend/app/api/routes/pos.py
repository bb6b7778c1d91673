"""POS: the vendor's cart and checkout."""
from fastapi import APIRouter, Depends

from app.api.deps import get_cart, get_vendor_session
from app.core.exceptions import BusinessError, PharmacyError
from app.schemas.pos import (
    AddToCart,
    CartLineResponse,
    CartResponse,
    CartUpdate,
    CheckoutRequest,
    CheckoutResponse,
    QuantityChange,
)
from app.schemas.transaction import TransactionResponse
from app.services import inventory_service, transaction_service
from app.services.cart import Cart
from app.services.session import VendorSession

router = APIRouter()


def cart_response(cart: Cart) -> CartResponse:
    return CartResponse(
        lines=[
            CartLineResponse(
                product_id=line.product_id,
                name=line.name,
                price=float(line.price),
                stock=line.stock,
                quantity=line.quantity,
                line_total=float(line.line_total),
            )
            for line in cart.lines.values()
        ],
        item_count=cart.item_count,
        subtotal=float(cart.subtotal),
        discount=float(cart.discount),
        total=float(cart.total),
        discount_mode=cart.discount_mode,
        discount_value=float(cart.discount_value),
        remark=cart.remark,
        payment_method=cart.payment_method,
    )


@router.get("/cart", response_model=CartResponse)
def get_cart_state(cart: Cart = Depends(get_cart)):
    return cart_response(cart)


@router.delete("/cart", response_model=CartResponse)
def clear_cart(cart: Cart = Depends(get_cart)):
    cart.clear()
    return cart_response(cart)


@router.post("/cart/items", response_model=CartResponse)
def add_to_cart(
    data: AddToCart,
    session: VendorSession = Depends(get_vendor_session),
    cart: Cart = Depends(get_cart),
):
    """Add one unit. Out-of-stock products and lines already at stock are left as they are."""
    try:
        product = inventory_service.get_product(session, data.product_id)
    except PharmacyError as e:
        raise BusinessError.from_domain(e)

    cart.add_item(product)
    return cart_response(cart)


@router.patch("/cart/items/{product_id}", response_model=CartResponse)
def change_quantity(product_id: str, data: QuantityChange, cart: Cart = Depends(get_cart)):
    try:
        cart.update_quantity(product_id, data.delta)
    except PharmacyError as e:
        raise BusinessError.from_domain(e)
    return cart_response(cart)


@router.delete("/cart/items/{product_id}", response_model=CartResponse)
def remove_from_cart(product_id: str, cart: Cart = Depends(get_cart)):
    cart.remove_item(product_id)
    return cart_response(cart)


@router.patch("/cart", response_model=CartResponse)
def update_cart(data: CartUpdate, cart: Cart = Depends(get_cart)):
    """Discount, remark and payment method."""
    cart.set_discount(data.discount_mode, data.discount_value)
    if data.remark is not None:
        cart.remark = data.remark
    if data.payment_method is not None:
        cart.payment_method = data.payment_method
    return cart_response(cart)


@router.post("/checkout", response_model=CheckoutResponse, status_code=201)
def checkout(
    data: CheckoutRequest,
    session: VendorSession = Depends(get_vendor_session),
    cart: Cart = Depends(get_cart),
):
    """Record the sale and decrement stock in one commit; the cart is cleared on success."""
    remark = data.remark if data.remark is not None else cart.remark
    if not (remark or "").strip():
        raise BusinessError.bad_request("Remark is required")
    previous = (cart.remark, cart.payment_method)
    cart.remark = remark
    if data.payment_method is not None:
        cart.payment_method = data.payment_method

    try:
        tx = transaction_service.checkout(session, cart)
    except PharmacyError as e:
        # a refused sale leaves the cart as the cashier left it
        cart.remark, cart.payment_method = previous
        raise BusinessError.from_domain(e)

    return CheckoutResponse(
        transaction=TransactionResponse.model_validate(tx),
        cart=cart_response(cart),
    )
