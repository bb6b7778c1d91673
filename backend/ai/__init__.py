"""AI Module for Groq LLM Integration.

The model reads bills and answers questions; it never writes to the
database. Structured replies are validated by the reply parser before the
inventory service sees them.
"""

from .reply_parser import parse_model_reply
from .insights import analyze_business

__all__ = ["parse_model_reply", "analyze_business"]
