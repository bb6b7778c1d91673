"""Inventory reads and writes, always scoped to one vendor.

Every write returns the vendor's refreshed product list, so callers get
read-after-write consistency from a fresh query rather than the mutated row.
"""
import csv
import io
import logging
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError

from ai.reply_schema import BillItem
from app.core.audit import AuditLog
from app.core.exceptions import NotFound, PersistenceError, ValidationError
from app.models.product import DEFAULT_LOW_STOCK_THRESHOLD, Product
from app.schemas.product import ProductSave
from app.services.session import VendorSession

logger = logging.getLogger(__name__)

STOCK_FILTERS = ("all", "zero-stock", "low-stock")


def _commit(session: VendorSession, what: str) -> None:
    try:
        session.db.commit()
    except SQLAlchemyError as e:
        session.db.rollback()
        logger.error(f"{what} failed for vendor {session.vendor_id}: {e}")
        raise PersistenceError(f"{what} failed. Please try again.") from e


def list_products(
    session: VendorSession,
    search: Optional[str] = None,
    stock_filter: str = "all",
) -> list[Product]:
    """All products of the vendor, optionally searched and filtered.

    stock_filter:
        all        every product
        zero-stock stock == 0
        low-stock  0 < stock <= low_stock_threshold
    """
    if stock_filter not in STOCK_FILTERS:
        raise ValidationError(f"Unknown filter '{stock_filter}'. Use one of: {', '.join(STOCK_FILTERS)}")

    try:
        q = session.db.query(Product).filter(Product.vendor_id == session.vendor_id)
        if search:
            pattern = f"%{search.strip()}%"
            q = q.filter(or_(
                Product.name.ilike(pattern),
                Product.usage.ilike(pattern),
                Product.location.ilike(pattern),
            ))
        if stock_filter == "zero-stock":
            q = q.filter(Product.stock == 0)
        elif stock_filter == "low-stock":
            q = q.filter(Product.stock > 0, Product.stock <= Product.low_stock_threshold)
        return q.order_by(Product.name).all()
    except SQLAlchemyError as e:
        logger.error(f"Error fetching products for {session.vendor_id}: {e}")
        raise PersistenceError("Could not load products") from e


def get_product(session: VendorSession, product_id: str) -> Product:
    product = session.db.query(Product).filter(
        Product.id == product_id,
        Product.vendor_id == session.vendor_id,
    ).first()
    if not product:
        raise NotFound("Product not found")
    return product


def save_product(session: VendorSession, data: ProductSave) -> list[Product]:
    """Insert when data.id is empty, otherwise update that product in place."""
    if data.id:
        product = get_product(session, data.id)
        action = "update"
    else:
        product = Product(vendor_id=session.vendor_id)
        session.db.add(product)
        action = "create"

    product.name = data.name
    product.price = Decimal(str(data.price))
    product.stock = data.stock
    product.location = data.location
    product.usage = data.usage
    product.low_stock_threshold = data.low_stock_threshold
    product.category = data.category

    _commit(session, "Saving product")
    AuditLog.log_action(action, "product", product.id, session.vendor_id, changes={"name": product.name})
    return list_products(session)


def delete_product(session: VendorSession, product_id: str) -> list[Product]:
    """Delete by id. Deleting an id that does not exist is not an error."""
    deleted = session.db.query(Product).filter(
        Product.id == product_id,
        Product.vendor_id == session.vendor_id,
    ).delete(synchronize_session=False)
    _commit(session, "Deleting product")

    if deleted:
        AuditLog.log_action("delete", "product", product_id, session.vendor_id)
    return list_products(session)


def bulk_upsert(session: VendorSession, items: Iterable[BillItem]) -> list[Product]:
    """Merge incoming bill lines into the inventory.

    Names match case-insensitively. A match gets its stock increased by the
    incoming quantity and its price replaced when one is given; anything else
    becomes a new product. Existing stock is added to, never replaced.
    """
    by_name = {p.name.lower(): p for p in list_products(session)}
    updated, inserted = 0, 0

    for item in items:
        name = (item.name or "").strip()
        if not name:
            continue

        existing = by_name.get(name.lower())
        if existing:
            existing.stock = (existing.stock or 0) + (item.stock or 0)
            if item.price:
                existing.price = Decimal(str(item.price))
            updated += 1
            continue

        product = Product(
            vendor_id=session.vendor_id,
            name=name,
            price=Decimal(str(item.price or 0)),
            stock=item.stock or 0,
            location=item.location or "Unsorted",
            usage=item.usage or "General",
            low_stock_threshold=item.low_stock_threshold or DEFAULT_LOW_STOCK_THRESHOLD,
            category="General",
        )
        session.db.add(product)
        by_name[name.lower()] = product
        inserted += 1

    _commit(session, "Updating inventory from bill")
    logger.info(f"Bulk upsert for {session.vendor_id}: {updated} updated, {inserted} inserted")
    AuditLog.log_action(
        "bulk_upsert", "product", None, session.vendor_id,
        changes={"updated": updated, "inserted": inserted},
    )
    return list_products(session)


def decrement_stock(session: VendorSession, lines: Iterable[tuple[str, int]], auto_commit: bool = True) -> None:
    """Subtract sold quantities, never going below zero.

    Args:
        lines: (product_id, quantity) pairs
        auto_commit: If False, caller must commit (used by checkout so the
            sale and the stock change land together)
    """
    for product_id, quantity in lines:
        product = session.db.query(Product).filter(
            Product.id == product_id,
            Product.vendor_id == session.vendor_id,
        ).first()
        if not product:
            # Deleted after it went into the cart; the sale snapshot still records it
            logger.warning(f"Stock update skipped for missing product {product_id}")
            continue
        product.stock = max(0, (product.stock or 0) - quantity)

    if auto_commit:
        _commit(session, "Updating stock")
    else:
        session.db.flush()


def low_stock_products(session: VendorSession) -> list[Product]:
    """Products at or under their own threshold, zero stock included."""
    return [p for p in list_products(session) if p.is_low_stock]


def export_inventory_csv(session: VendorSession) -> str:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(["Medicine Name", "Price", "Stock", "Location", "Usage", "Low Stock Limit"])

    for p in list_products(session):
        writer.writerow([
            p.name,
            f"{float(p.price):.2f}",
            p.stock,
            p.location or "",
            p.usage or "",
            p.low_stock_threshold,
        ])

    return output.getvalue()
