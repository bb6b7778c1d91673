"""
Assistant conversation storage, one row per vendor.

The bill protocol (photo -> pricing question -> structured update) is kept
as an explicit phase column rather than read back out of earlier chat turns.
"""
from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.types import JSON
from app.db.base import Base


class ConversationState(Base):
    """
    phase values: app.agent.conversation_state.AssistantPhase

    payload:
        history      [{"role": "user" | "model", "text": str}, ...], newest last
        pending_bill {"image", "mime_type", "text", "question"} while a bill
                     waits for its pricing answer

    Deleted on reset and on logout.
    """
    __tablename__ = "conversation_states"

    vendor_id = Column(String(255), ForeignKey("vendors.id", ondelete="CASCADE"), primary_key=True)
    state = Column(String(64), nullable=False, default="awaiting_bill_or_question")
    payload = Column(JSON, nullable=False, default=dict)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<ConversationState {self.vendor_id}: {self.state}>"
