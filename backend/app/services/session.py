"""Per-request vendor context and logout teardown."""
import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VendorSession:
    """Explicit context handed to every service call instead of a global vendor id."""
    vendor_id: str
    db: Session


def end_session(session: VendorSession) -> None:
    """Drop everything held for this vendor outside the product/transaction tables."""
    from app.services.cart import cart_registry
    from app.agent.bill_assistant import reset_conversation

    cart_registry.discard(session.vendor_id)
    reset_conversation(session)
    logger.info(f"Session state cleared for vendor {session.vendor_id}")
