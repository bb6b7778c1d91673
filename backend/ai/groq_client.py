"""
Groq API Client: thin wrapper for the assistant and the insights panel.

================================================================================
LLM ROLE: ADVISOR AND BILL READER ONLY
================================================================================

The model is used for:
- Reading wholesale bill photos (vision model)
- Answering questions, with web search when useful (compound model)
- Summarizing sales and stock for the AI Manager screen (text model)

THIS CLIENT DOES NOT:
- Touch the database (bill items go through the reply parser and
  inventory_service.bulk_upsert)
- Retry. A failed call is reported once and the action is abandoned.

================================================================================
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from groq import Groq, APIError, APITimeoutError, RateLimitError

from app.core.config import settings
from app.core.exceptions import ExternalServiceError

# Configure logging (NEVER log API keys)
logger = logging.getLogger(__name__)


@dataclass
class Citation:
    url: str
    title: str = "Source"


@dataclass
class ModelReply:
    text: str
    citations: list[Citation] = field(default_factory=list)


def text_part(text: str) -> dict:
    return {"type": "text", "text": text}


def image_part(image_base64: str, mime_type: str = "image/jpeg") -> dict:
    return {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{image_base64}"}}


def extract_citations(message: Any) -> list[Citation]:
    """Collect web sources reported by server-side search tools.

    Compound models list the tools they ran in message.executed_tools;
    search tools carry search_results.results[*].url/title. Duplicated
    URLs are reported once, in first-seen order.
    """
    seen: set[str] = set()
    citations: list[Citation] = []

    for tool in getattr(message, "executed_tools", None) or []:
        search_results = getattr(tool, "search_results", None)
        for result in getattr(search_results, "results", None) or []:
            url = getattr(result, "url", None)
            if not url or url in seen:
                continue
            seen.add(url)
            citations.append(Citation(url=url, title=getattr(result, "title", None) or "Source"))

    return citations


class GroqClient:
    """
    Minimal wrapper for the Groq chat completions API.

    - Temperature: 0.2 (bill reading must be repeatable, answers may vary a little)
    - Max tokens: 2048 (a long bill produces a long item list)
    - Raises ExternalServiceError on missing key or any API failure
    """

    TEMPERATURE = 0.2
    MAX_TOKENS = 2048

    def __init__(self, api_key: Optional[str] = None):
        """Initialize Groq client with API key from environment."""
        api_key = api_key if api_key is not None else settings.GROQ_API_KEY

        if not api_key:
            logger.warning(
                "GROQ_API_KEY not found in environment. "
                "AI insights and the assistant will be DISABLED. "
                "Add your key to backend/.env file."
            )
            self.client = None
        else:
            self.client = Groq(api_key=api_key, timeout=settings.GROQ_TIMEOUT_SECONDS, max_retries=0)
            logger.info("Groq client initialized successfully")

    def is_available(self) -> bool:
        """Check if Groq client is ready to use."""
        return self.client is not None

    def complete(
        self,
        messages: list[dict],
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
    ) -> ModelReply:
        """
        Run one chat completion.

        Args:
            messages: OpenAI-style messages; user content may be a list of
                text/image parts
            model: Model id, defaults to the text model

        Returns:
            ModelReply with the reply text and any search citations

        Raises:
            ExternalServiceError: no API key, timeout, rate limit, API error,
                or an empty reply
        """
        if not self.is_available():
            raise ExternalServiceError("AI is not configured. Set GROQ_API_KEY.")

        model = model or settings.GROQ_TEXT_MODEL
        try:
            response = self.client.chat.completions.create(
                model=model,
                messages=messages,
                temperature=self.TEMPERATURE,
                max_tokens=max_tokens or self.MAX_TOKENS,
                stream=False,
            )
        except APITimeoutError as e:
            logger.warning(f"Groq timeout on {model}")
            raise ExternalServiceError("The AI service timed out") from e
        except RateLimitError as e:
            logger.warning(f"Groq rate limit on {model}")
            raise ExternalServiceError("The AI service is busy, please try again later") from e
        except APIError as e:
            logger.error(f"Groq API error on {model}: {e}")
            raise ExternalServiceError() from e

        if not response.choices:
            logger.warning("LLM returned empty response")
            raise ExternalServiceError("The AI service returned no answer")

        message = response.choices[0].message
        content = message.content or ""
        logger.debug(f"LLM response received from {model}: {len(content)} chars")
        return ModelReply(text=content, citations=extract_citations(message))


# Singleton instance
_groq_client: Optional[GroqClient] = None


def get_groq_client() -> GroqClient:
    """Get or create singleton Groq client instance."""
    global _groq_client
    if _groq_client is None:
        _groq_client = GroqClient()
    return _groq_client


def set_groq_client(client: Optional[GroqClient]) -> None:
    """Replace the shared client (tests inject a fake, None resets)."""
    global _groq_client
    _groq_client = client
