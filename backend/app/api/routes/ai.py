"""AI Manager insights and the floating assistant."""
from fastapi import APIRouter, Depends

from ai.insights import analyze_business
from app.agent import bill_assistant
from app.api.deps import get_vendor_session
from app.core.exceptions import BusinessError, PharmacyError
from app.schemas.assistant import (
    AssistantMessageRequest,
    AssistantTurnResponse,
    ChatMessage,
    ConversationResponse,
    InsightsResponse,
)
from app.services import inventory_service, transaction_service
from app.services.session import VendorSession

router = APIRouter()


@router.post("/insights", response_model=InsightsResponse)
def insights(session: VendorSession = Depends(get_vendor_session)):
    """
    Markdown summary of sales trends, restock advice and one tip.
    Falls back to a fixed message when the AI is unavailable.
    """
    try:
        products = inventory_service.list_products(session)
        transactions = transaction_service.list_transactions(session)
    except PharmacyError as e:
        raise BusinessError.from_domain(e)

    markdown, generated = analyze_business(products, transactions)
    return InsightsResponse(markdown=markdown, generated=generated)


@router.get("/assistant", response_model=ConversationResponse)
def get_conversation(session: VendorSession = Depends(get_vendor_session)):
    phase, history = bill_assistant.get_conversation(session)
    return ConversationResponse(phase=phase, messages=[ChatMessage(**m) for m in history])


@router.post("/assistant/messages", response_model=AssistantTurnResponse)
def send_message(data: AssistantMessageRequest, session: VendorSession = Depends(get_vendor_session)):
    """
    One assistant turn: a question, a bill photo, or the answer to the
    pricing question. Bill items confirmed by the model go straight into
    the inventory.
    """
    try:
        result = bill_assistant.send_message(
            session,
            text=data.text,
            image_base64=data.image_base64,
            image_mime_type=data.image_mime_type,
        )
    except PharmacyError as e:
        raise BusinessError.from_domain(e)

    return AssistantTurnResponse(
        reply=result.reply,
        kind=result.kind,
        phase=result.phase,
        items_applied=result.items_applied,
        sources=result.sources,
    )


@router.delete("/assistant", response_model=ConversationResponse)
def reset_conversation(session: VendorSession = Depends(get_vendor_session)):
    try:
        bill_assistant.reset_conversation(session)
    except PharmacyError as e:
        raise BusinessError.from_domain(e)
    return get_conversation(session)
