"""
Reply Parser: turns free-form model text into a tagged AssistantReply.

The model answers in Markdown. When it confirms inventory updates it adds
one fenced ```json block. This module finds that block, validates it
against the BillItem schema, and reports malformed output as ParseError
instead of guessing.
"""

import json
import logging
import re

from pydantic import TypeAdapter, ValidationError as SchemaError

from app.core.exceptions import ParseError
from .reply_schema import AssistantReply, BillItem, ReplyKind

logger = logging.getLogger(__name__)

JSON_BLOCK = re.compile(r"```json\s*(.*?)\s*```", re.DOTALL | re.IGNORECASE)

_bill_items = TypeAdapter(list[BillItem])


def find_json_block(text: str) -> str | None:
    match = JSON_BLOCK.search(text or "")
    return match.group(1) if match else None


def strip_json_block(text: str) -> str:
    return JSON_BLOCK.sub("", text or "").strip()


def parse_model_reply(text: str) -> AssistantReply:
    """Classify a model reply.

    Returns:
        AssistantReply(kind=TEXT) when there is no structured block,
        AssistantReply(kind=TEXT_WITH_UPDATE, items=[...]) when there is one.

    Raises:
        ParseError: a block is present but is not a valid item array
    """
    block = find_json_block(text)
    if block is None:
        return AssistantReply(kind=ReplyKind.TEXT, text=(text or "").strip())

    try:
        data = json.loads(block)
    except json.JSONDecodeError as e:
        logger.warning(f"Invalid JSON block from model: {e}")
        raise ParseError("The bill data was not valid JSON") from e

    if isinstance(data, dict):
        # Tolerate {"items": [...]} wrappers
        data = data.get("items", data)
    if not isinstance(data, list):
        raise ParseError("The bill data must be a list of items")

    try:
        items = _bill_items.validate_python(data)
    except SchemaError as e:
        logger.warning(f"Bill items failed validation: {e.error_count()} errors")
        raise ParseError("The bill data had missing or invalid fields") from e

    return AssistantReply(
        kind=ReplyKind.TEXT_WITH_UPDATE,
        text=strip_json_block(text),
        items=items,
    )
