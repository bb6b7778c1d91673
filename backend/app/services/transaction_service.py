"""Sales: checkout, history, reset and the sales summary."""
import csv
import io
import logging
import time
from collections import Counter

from sqlalchemy.exc import SQLAlchemyError

from app.core.audit import AuditLog
from app.core.exceptions import NotFound, PersistenceError, ValidationError
from app.models.transaction import Transaction
from app.schemas.transaction import ResetResult, TransactionResponse
from app.services.cart import Cart
from app.services.inventory_service import decrement_stock, list_products
from app.services.session import VendorSession

logger = logging.getLogger(__name__)


def list_transactions(session: VendorSession) -> list[Transaction]:
    """Sales history, newest first."""
    try:
        return (
            session.db.query(Transaction)
            .filter(Transaction.vendor_id == session.vendor_id)
            .order_by(Transaction.timestamp.desc())
            .all()
        )
    except SQLAlchemyError as e:
        logger.error(f"Get transactions failed for {session.vendor_id}: {e}")
        raise PersistenceError("Could not load sales history") from e


def get_transaction(session: VendorSession, transaction_id: str) -> Transaction:
    tx = session.db.query(Transaction).filter(
        Transaction.id == transaction_id,
        Transaction.vendor_id == session.vendor_id,
    ).first()
    if not tx:
        raise NotFound("Transaction not found")
    return tx


def checkout(session: VendorSession, cart: Cart) -> Transaction:
    """Record the sale in the cart and take the sold units out of stock.

    The transaction row and the stock changes are committed together; if
    either write fails both are rolled back and the cart is left as it was.

    Raises:
        ValidationError: empty cart or empty remark (cart unchanged)
        PersistenceError: the database rejected the writes
    """
    if cart.is_empty:
        raise ValidationError("The cart is empty")
    remark = (cart.remark or "").strip()
    if not remark:
        raise ValidationError("Remark is required")

    subtotal = cart.subtotal
    discount = cart.discount
    tx = Transaction(
        vendor_id=session.vendor_id,
        timestamp=int(time.time() * 1000),
        items=[line.snapshot() for line in cart.lines.values()],
        subtotal=subtotal,
        discount=discount,
        total=subtotal - discount,
        payment_method=cart.payment_method.value,
        remark=remark,
    )

    try:
        session.db.add(tx)
        session.db.flush()
        decrement_stock(
            session,
            [(line.product_id, line.quantity) for line in cart.lines.values()],
            auto_commit=False,
        )
        session.db.commit()
        session.db.refresh(tx)
    except SQLAlchemyError as e:
        session.db.rollback()
        logger.error(f"Checkout failed for {session.vendor_id}: {e}")
        raise PersistenceError("Checkout failed. Nothing was recorded, please try again.") from e

    logger.info(f"Checkout {tx.id} for {session.vendor_id}: total={tx.total}")
    AuditLog.log_action(
        "checkout", "transaction", tx.id, session.vendor_id,
        changes={"total": str(tx.total), "lines": len(tx.items)},
    )
    cart.clear()
    return tx


def reset_transactions(session: VendorSession) -> ResetResult:
    """Delete the vendor's whole sales history.

    On failure nothing is deleted and the current history comes back with
    the error so the caller can keep showing it.
    """
    try:
        deleted = session.db.query(Transaction).filter(
            Transaction.vendor_id == session.vendor_id
        ).delete(synchronize_session=False)
        session.db.commit()
    except SQLAlchemyError as e:
        session.db.rollback()
        logger.error(f"Reset transactions failed for {session.vendor_id}: {e}")
        current = list_transactions(session)
        return ResetResult(
            success=False,
            transactions=[TransactionResponse.model_validate(t) for t in current],
            error=str(getattr(e, "orig", None) or e),
        )

    AuditLog.log_action("reset", "transaction", None, session.vendor_id, changes={"deleted": deleted})
    return ResetResult(success=True, transactions=[])


def sales_summary(session: VendorSession) -> dict:
    """Revenue, units sold, best sellers and low-stock alerts."""
    transactions = list_transactions(session)

    sold = Counter()
    for t in transactions:
        for item in t.items:
            sold[item.get("name", "Unknown")] += int(item.get("quantity", 0))

    popular = sorted(sold.items(), key=lambda kv: (-kv[1], kv[0]))

    return {
        "total_revenue": float(sum(t.total for t in transactions)),
        "total_items_sold": sum(sold.values()),
        "transaction_count": len(transactions),
        "popular_items": [{"name": name, "count": count} for name, count in popular],
        "low_stock_alerts": [p for p in list_products(session) if p.is_low_stock],
    }


def export_transactions_csv(session: VendorSession) -> str:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(["Date", "Transaction ID", "Items", "Subtotal", "Discount", "Total", "Payment", "Remark"])

    for t in list_transactions(session):
        writer.writerow([
            time.strftime("%Y-%m-%d %H:%M", time.localtime(t.timestamp / 1000)),
            t.id,
            "; ".join(f"{i.get('name')} x{i.get('quantity')}" for i in t.items),
            f"{float(t.subtotal):.2f}",
            f"{float(t.discount):.2f}",
            f"{float(t.total):.2f}",
            t.payment_method,
            t.remark,
        ])

    return output.getvalue()
