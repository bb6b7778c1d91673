"""
Assistant orchestration: one chat exchange at a time per vendor.

Each turn loads the vendor's ConversationState row, picks the model call
for the current phase (see conversation_state.AssistantPhase), reads the
reply with the reply parser and, when the reply carries bill items, hands
them to inventory_service.bulk_upsert.

Failures never escape as errors from send_message: a failed model call
becomes an apology in the chat, a malformed block becomes an inline note.
Only bad input (ValidationError) and a second concurrent message
(ExchangeInFlight) are raised.
"""
import base64
import binascii
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from ai.groq_client import GroqClient, ModelReply, get_groq_client, image_part, text_part
from ai.prompts import (
    APOLOGY,
    ASSISTANT_SYSTEM_PROMPT,
    BILL_EMIT_INSTRUCTION,
    BILL_QUESTION_INSTRUCTION,
    GREETING,
    PARSE_FAILURE_NOTE,
)
from ai.reply_parser import parse_model_reply, strip_json_block
from ai.reply_schema import AssistantReply, ReplyKind
from app.agent.conversation_state import IDLE, AssistantPhase, is_cancel
from app.core.config import settings
from app.core.exceptions import (
    ExchangeInFlight,
    ExternalServiceError,
    ParseError,
    PersistenceError,
    ValidationError,
)
from app.models.conversation_state import ConversationState
from app.services import inventory_service
from app.services.session import VendorSession

logger = logging.getLogger(__name__)

DEFAULT_BILL_TEXT = "Here is a bill. Please analyze it."

_in_flight: set[str] = set()
_in_flight_lock = threading.Lock()


@dataclass
class TurnResult:
    reply: str
    kind: str
    phase: str
    items_applied: int = 0
    sources: list[dict] = field(default_factory=list)


@contextmanager
def _exchange(vendor_id: str):
    """Allow one outstanding exchange per vendor."""
    with _in_flight_lock:
        if vendor_id in _in_flight:
            raise ExchangeInFlight()
        _in_flight.add(vendor_id)
    try:
        yield
    finally:
        with _in_flight_lock:
            _in_flight.discard(vendor_id)


def _decode_image(image_base64: Optional[str], mime_type: str) -> tuple[Optional[str], str]:
    """Accept raw base64 or a data URL; return (base64 data, mime type)."""
    if not image_base64:
        return None, mime_type

    data = image_base64.strip()
    if data.startswith("data:"):
        header, _, data = data.partition(",")
        mime_type = header[5:].split(";")[0] or mime_type

    try:
        base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError("The attached image could not be read") from e

    if not mime_type.startswith("image/"):
        raise ValidationError("Only image attachments are supported")
    return data, mime_type


def _load_state(session: VendorSession) -> ConversationState:
    record = session.db.query(ConversationState).filter(
        ConversationState.vendor_id == session.vendor_id
    ).first()
    if record is None:
        record = ConversationState(
            vendor_id=session.vendor_id,
            state=IDLE,
            payload={"history": [{"role": "model", "text": GREETING}]},
        )
        session.db.add(record)
    return record


def _save_state(session: VendorSession, record: ConversationState, phase: str, payload: dict) -> None:
    max_entries = settings.ASSISTANT_HISTORY_TURNS * 2
    history = payload.get("history", [])
    record.state = phase
    record.payload = {**payload, "history": history[-max_entries:]}
    try:
        session.db.commit()
    except SQLAlchemyError as e:
        session.db.rollback()
        logger.error(f"Could not save assistant state for {session.vendor_id}: {e}")
        raise PersistenceError("Could not save the conversation") from e


def _history_messages(history: list[dict]) -> list[dict]:
    return [
        {"role": "assistant" if h["role"] == "model" else "user", "content": h["text"]}
        for h in history[-settings.ASSISTANT_HISTORY_TURNS * 2:]
    ]


def _with_sources(text: str, reply: ModelReply) -> tuple[str, list[dict]]:
    sources = [{"url": c.url, "title": c.title} for c in reply.citations]
    if not sources:
        return text, []
    links = "\n".join(f"- [{s['title']}]({s['url']})" for s in sources)
    return f"{text}\n\n**Sources:**\n{links}", sources


def _apply_update(session: VendorSession, parsed: AssistantReply) -> str:
    inventory_service.bulk_upsert(session, parsed.items)
    return (
        f"✅ **Success!** I have added/updated {len(parsed.items)} items from the bill to your inventory.\n\n"
        + parsed.text
    ).strip()


def get_conversation(session: VendorSession) -> tuple[str, list[dict]]:
    """Current phase and the stored chat history."""
    record = session.db.query(ConversationState).filter(
        ConversationState.vendor_id == session.vendor_id
    ).first()
    if record is None:
        return IDLE, [{"role": "model", "text": GREETING}]
    return record.state, list((record.payload or {}).get("history", []))


def reset_conversation(session: VendorSession) -> None:
    """Forget the chat, any pending bill, and return to the idle phase."""
    try:
        record = session.db.query(ConversationState).filter(
            ConversationState.vendor_id == session.vendor_id
        ).first()
        if record is not None:
            session.db.delete(record)
            session.db.commit()
    except SQLAlchemyError as e:
        session.db.rollback()
        logger.error(f"Could not reset assistant for {session.vendor_id}: {e}")
        raise PersistenceError("Could not reset the conversation") from e


def send_message(
    session: VendorSession,
    text: str = "",
    image_base64: Optional[str] = None,
    image_mime_type: str = "image/jpeg",
    client: Optional[GroqClient] = None,
) -> TurnResult:
    """Run one user turn and return what the assistant says back.

    Raises:
        ValidationError: neither text nor a readable image
        ExchangeInFlight: the previous message for this vendor is unanswered
    """
    text = (text or "").strip()
    image, mime_type = _decode_image(image_base64, image_mime_type)
    if not text and not image:
        raise ValidationError("Type a message or attach a bill photo")

    client = client or get_groq_client()

    with _exchange(session.vendor_id):
        record = _load_state(session)
        phase_before = record.state if record.state in AssistantPhase.ALL else IDLE
        payload = dict(record.payload or {})
        prior = list(payload.get("history", []))
        history = prior + [{"role": "user", "text": (text + (" [Sent an Image]" if image else "")).strip()}]

        if image:
            handler = _start_bill
        elif phase_before == AssistantPhase.AWAITING_PRICING_ANSWER:
            handler = _cancel_bill if is_cancel(text) else _finish_bill
        else:
            handler = _answer

        try:
            result, payload = handler(session, record, client, payload, prior, text, image, mime_type)
        except ExternalServiceError as e:
            logger.warning(f"Assistant call failed for {session.vendor_id}: {e}")
            history.append({"role": "model", "text": APOLOGY})
            _save_state(session, record, phase_before, {**payload, "history": history})
            return TurnResult(reply=APOLOGY, kind=ReplyKind.TEXT.value, phase=phase_before)

        history.append({"role": "model", "text": result.reply})
        _save_state(session, record, result.phase, {**payload, "history": history})
        return result


def _start_bill(session, record, client, payload, prior, text, image, mime_type):
    """Bill photo: ask the pricing question, keep the photo for the next turn."""
    messages = [
        {"role": "system", "content": f"{ASSISTANT_SYSTEM_PROMPT}\n\n{BILL_QUESTION_INSTRUCTION}"},
        *_history_messages(prior),
        {"role": "user", "content": [text_part(text or DEFAULT_BILL_TEXT), image_part(image, mime_type)]},
    ]
    reply = client.complete(messages, model=settings.GROQ_VISION_MODEL)

    # Items are only accepted after the pricing answer
    question = strip_json_block(reply.text) or "Which column should I use as the Selling Price?"
    payload = {
        **payload,
        "pending_bill": {
            "image": image,
            "mime_type": mime_type,
            "text": text or DEFAULT_BILL_TEXT,
            "question": question,
        },
    }
    logger.info(f"Bill received for {session.vendor_id}, waiting for pricing answer")
    return TurnResult(
        reply=question,
        kind=ReplyKind.TEXT.value,
        phase=AssistantPhase.AWAITING_PRICING_ANSWER,
    ), payload


def _cancel_bill(session, record, client, payload, prior, text, image, mime_type):
    payload = {k: v for k, v in payload.items() if k != "pending_bill"}
    return TurnResult(
        reply="Okay, I have discarded that bill. Nothing was added to your inventory.",
        kind=ReplyKind.TEXT.value,
        phase=IDLE,
    ), payload


def _finish_bill(session, record, client, payload, prior, text, image, mime_type):
    """Pricing answer: ask for the structured block and apply it."""
    pending = payload.get("pending_bill")
    if not pending:
        # State row says we are waiting but the bill is gone; treat as a question
        return _answer(session, record, client, payload, prior, text, image, mime_type)

    # Visible to readers of the conversation while the model works
    _save_state(session, record, AssistantPhase.READY_TO_EMIT_UPDATE, payload)

    messages = [
        {"role": "system", "content": f"{ASSISTANT_SYSTEM_PROMPT}\n\n{BILL_EMIT_INSTRUCTION}"},
        {"role": "user", "content": [text_part(pending["text"]), image_part(pending["image"], pending["mime_type"])]},
        {"role": "assistant", "content": pending["question"]},
        {"role": "user", "content": text},
    ]
    reply = client.complete(messages, model=settings.GROQ_VISION_MODEL)

    try:
        parsed = parse_model_reply(reply.text)
    except ParseError as e:
        logger.warning(f"Bill update unreadable for {session.vendor_id}: {e}")
        return TurnResult(
            reply=f"{reply.text.strip()}\n\n{PARSE_FAILURE_NOTE}",
            kind=ReplyKind.TEXT.value,
            phase=AssistantPhase.AWAITING_PRICING_ANSWER,
        ), payload

    if not parsed.has_update:
        # Model asked a follow-up instead; keep the bill
        return TurnResult(
            reply=parsed.text,
            kind=ReplyKind.TEXT.value,
            phase=AssistantPhase.AWAITING_PRICING_ANSWER,
        ), payload

    try:
        reply_text = _apply_update(session, parsed)
    except PersistenceError as e:
        return TurnResult(
            reply=f"{parsed.text}\n\n(Error: the inventory could not be updated: {e.message})",
            kind=ReplyKind.TEXT.value,
            phase=AssistantPhase.AWAITING_PRICING_ANSWER,
        ), payload

    payload = {k: v for k, v in payload.items() if k != "pending_bill"}
    return TurnResult(
        reply=reply_text,
        kind=ReplyKind.TEXT_WITH_UPDATE.value,
        phase=IDLE,
        items_applied=len(parsed.items),
    ), payload


def _answer(session, record, client, payload, prior, text, image, mime_type):
    """Ordinary question, answered with web search available."""
    messages = [
        {"role": "system", "content": ASSISTANT_SYSTEM_PROMPT},
        *_history_messages(prior),
        {"role": "user", "content": text},
    ]
    reply = client.complete(messages, model=settings.GROQ_SEARCH_MODEL)
    phase = record.state if record.state in AssistantPhase.ALL else IDLE
    if phase == AssistantPhase.READY_TO_EMIT_UPDATE:
        phase = IDLE

    try:
        parsed = parse_model_reply(reply.text)
    except ParseError:
        reply_text, sources = _with_sources(f"{reply.text.strip()}\n\n{PARSE_FAILURE_NOTE}", reply)
        return TurnResult(reply=reply_text, kind=ReplyKind.TEXT.value, phase=phase, sources=sources), payload

    items_applied = 0
    kind = ReplyKind.TEXT.value
    body = parsed.text
    if parsed.has_update:
        try:
            body = _apply_update(session, parsed)
            items_applied = len(parsed.items)
            kind = ReplyKind.TEXT_WITH_UPDATE.value
        except PersistenceError as e:
            body = f"{parsed.text}\n\n(Error: the inventory could not be updated: {e.message})"

    reply_text, sources = _with_sources(body, reply)
    return TurnResult(
        reply=reply_text,
        kind=kind,
        phase=phase,
        items_applied=items_applied,
        sources=sources,
    ), payload
