"""AI Manager: one-shot business summary over stock and recent sales."""

import logging
from typing import Optional

from app.core.config import settings
from app.core.exceptions import ExternalServiceError
from .groq_client import GroqClient, get_groq_client
from .prompts import INSIGHTS_UNAVAILABLE, build_insights_prompt

logger = logging.getLogger(__name__)


def analyze_business(products: list, transactions: list, client: Optional[GroqClient] = None) -> tuple[str, bool]:
    """Ask the model for Markdown insights.

    Returns:
        (markdown, generated). On any failure the static
        "unable to generate" message is returned with generated=False;
        this never raises.
    """
    client = client or get_groq_client()
    prompt = build_insights_prompt(products, transactions, recent=settings.INSIGHTS_RECENT_TRANSACTIONS)

    try:
        reply = client.complete([{"role": "user", "content": prompt}], model=settings.GROQ_TEXT_MODEL)
    except ExternalServiceError as e:
        logger.warning(f"Insights unavailable: {e}")
        return INSIGHTS_UNAVAILABLE, False

    text = reply.text.strip()
    return (text or "No analysis generated."), bool(text)
