"""
Prompt texts for the assistant and the AI Manager screen.

The bill protocol is enforced by the conversation state machine
(app.agent.bill_assistant); each phase adds its own instruction below on
top of the shared system prompt, so the model is never asked to remember
which step it is on.
"""

from datetime import datetime, timezone
from typing import Iterable

from app.core.config import settings


ASSISTANT_SYSTEM_PROMPT = f"""
You are an intelligent assistant for the "{settings.STORE_NAME}" pharmacy app.

General capabilities:
- Explain app features: Inventory, Point of Sale, Sales & Orders, AI Manager, Help.
- Medicine questions: search the web when asked about side effects, dosage
  or generic information, and keep answers short and factual.
- Never invent stock levels or prices; the app owns that data.

Bill scanning:
The user can upload a photo of a wholesale bill. Inventory updates are only
ever written as one fenced block in exactly this format:
```json
[
  {{"name": "Exact Item Name", "stock": 50, "price": 10.5, "usage": "Fever", "lowStockThreshold": 2}}
]
```
'stock' is the quantity bought. Infer 'usage' from medical knowledge of the
drug name. Only emit that block when you are told to.
""".strip()


BILL_QUESTION_INSTRUCTION = """
The user has uploaded a wholesale bill.
1. Identify the columns on the bill (Item Name, Quantity, Free Qty, Rate, MRP, etc.).
2. Ask which column to use as the Selling Price, or whether to apply a margin
   (e.g. +20%) to the cost price. Name the columns you found.
Do NOT output any JSON block in this reply.
""".strip()


BILL_EMIT_INSTRUCTION = """
The user has now answered your pricing question for the bill attached above.
Apply their answer to every line and output the JSON block of inventory
updates, followed by a one-line summary. If the answer is unclear, ask again
instead and do not output JSON.
""".strip()


GREETING = (
    "Hello! I am your Pharma Assistant. You can upload a photo of a wholesale bill "
    "to automatically update your inventory, or ask me any questions!"
)

APOLOGY = "Sorry, I encountered an error. Please try again."

PARSE_FAILURE_NOTE = "(Error: I tried to update the inventory but the data format was incorrect.)"

INSIGHTS_UNAVAILABLE = (
    "Unable to generate insights at this time. "
    "Please ensure your API key is configured correctly."
)


def _format_day(timestamp_ms: int) -> str:
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc).strftime("%d %b %Y")


def build_insights_prompt(products: Iterable, transactions: list, recent: int = 20) -> str:
    """Build the AI Manager prompt.

    Args:
        products: current inventory (name, stock)
        transactions: sales history, newest first
        recent: how many of the newest transactions to include
    """
    inventory_summary = ", ".join(f"{p.name} (Stock: {p.stock})" for p in products) or "No products yet"

    total_revenue = sum(float(t.total) for t in transactions)
    sales_summary = "; ".join(
        f"Date: {_format_day(t.timestamp)}, "
        f"Items: {', '.join(item.get('name', '?') for item in t.items)}, "
        f"Total: {float(t.total):.2f}"
        for t in transactions[:recent]
    ) or "No sales yet"

    return f"""
You are an expert pharmacy business consultant. Analyze the following data for a small pharmacy.

Current Inventory:
{inventory_summary}

Recent Sales History (Last {recent} transactions):
{sales_summary}

Total Historical Revenue: {total_revenue:.2f}

Please provide a response in Markdown format with the following sections:
1. **Sales Trends**: What is selling well?
2. **Restock Recommendations**: Which items are critically low or selling fast?
3. **Business Tip**: A specific piece of advice to improve sales or management based on this data.

Keep it concise, professional, and actionable.
""".strip()
