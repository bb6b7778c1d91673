from app.models.vendor import Vendor
from app.models.product import Product
from app.models.transaction import Transaction
from app.models.conversation_state import ConversationState

__all__ = ["Vendor", "Product", "Transaction", "ConversationState"]
