"""Vendor registration and login. A vendor is one isolated store partition."""
import logging
import re

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import (
    AlreadyExists,
    NotFound,
    PersistenceError,
    ValidationError,
    WrongPassword,
)
from app.core.security import get_password_hash, verify_password
from app.models.vendor import Vendor

logger = logging.getLogger(__name__)


def normalize_vendor_id(name: str) -> str:
    """Trim, lowercase, whitespace to underscore: " Main  Store " becomes "main_store"."""
    vendor_id = re.sub(r"\s+", "_", (name or "").strip().lower())
    if not vendor_id:
        raise ValidationError("Please enter a store name.")
    return vendor_id


def _find_vendor(db: Session, vendor_id: str) -> Vendor | None:
    try:
        return db.query(Vendor).filter(Vendor.id == vendor_id).first()
    except SQLAlchemyError as e:
        logger.error(f"Vendor lookup failed for {vendor_id}: {e}")
        raise PersistenceError() from e


def register(db: Session, name: str, password: str) -> str:
    """Create a vendor and return its id.

    Raises:
        AlreadyExists: the normalized id is taken
        ValidationError: blank name or short password
        PersistenceError: the insert failed
    """
    vendor_id = normalize_vendor_id(name)

    if len(password or "") < settings.MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters")

    if _find_vendor(db, vendor_id):
        raise AlreadyExists("This Store Name is already taken. Please switch to Login.")

    try:
        db.add(Vendor(id=vendor_id, password=get_password_hash(password)))
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Vendor registration failed for {vendor_id}: {e}")
        raise PersistenceError(str(getattr(e, "orig", None) or "Unknown Database Error")) from e

    logger.info(f"Registered vendor {vendor_id}")
    return vendor_id


def login(db: Session, name: str, password: str) -> tuple[str, bool]:
    """Check credentials and return (vendor_id, legacy).

    legacy is True when the vendor has no stored password; such vendors
    are admitted whatever was typed.
    """
    vendor_id = normalize_vendor_id(name)
    vendor = _find_vendor(db, vendor_id)
    if not vendor:
        raise NotFound("Store Name not found. Please Register.")

    if not vendor.password:
        return vendor_id, True

    if not verify_password(password or "", vendor.password):
        raise WrongPassword()

    return vendor_id, False


def get_vendor(db: Session, vendor_id: str) -> Vendor:
    vendor = _find_vendor(db, vendor_id)
    if not vendor:
        raise NotFound("Store not found")
    return vendor
