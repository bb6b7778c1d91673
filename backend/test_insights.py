"""AI Manager prompt and fallbacks."""
from types import SimpleNamespace

from ai.groq_client import GroqClient
from ai.insights import analyze_business
from ai.prompts import INSIGHTS_UNAVAILABLE, build_insights_prompt
from app.core.exceptions import ExternalServiceError


def _tx(total, timestamp, *names):
    return SimpleNamespace(total=total, timestamp=timestamp, items=[{"name": n, "quantity": 1} for n in names])


PRODUCTS = [SimpleNamespace(name="Dolo 650", stock=4), SimpleNamespace(name="ORS", stock=0)]


def test_prompt_contains_inventory_sales_and_sections():
    transactions = [_tx(30, 1_700_000_000_000, "Dolo 650"), _tx(12.5, 1_699_000_000_000, "ORS", "Dolo 650")]

    prompt = build_insights_prompt(PRODUCTS, transactions)

    assert "Dolo 650 (Stock: 4), ORS (Stock: 0)" in prompt
    assert "Items: ORS, Dolo 650, Total: 12.50" in prompt
    assert "Total Historical Revenue: 42.50" in prompt
    for section in ("Sales Trends", "Restock Recommendations", "Business Tip"):
        assert section in prompt


def test_prompt_keeps_only_recent_transactions():
    transactions = [_tx(1, 1_700_000_000_000 - i * 1000, f"item{i}") for i in range(25)]

    prompt = build_insights_prompt(PRODUCTS, transactions, recent=20)

    assert "item19" in prompt
    assert "item20" not in prompt
    assert "Total Historical Revenue: 25.00" in prompt


def test_analyze_returns_model_markdown(fake_groq):
    fake_groq.queue("## Sales Trends\nDolo sells well.")

    markdown, generated = analyze_business(PRODUCTS, [])

    assert generated is True
    assert markdown == "## Sales Trends\nDolo sells well."


def test_analyze_falls_back_on_failure(fake_groq):
    fake_groq.queue(ExternalServiceError("rate limited"))

    markdown, generated = analyze_business(PRODUCTS, [])

    assert generated is False
    assert markdown == INSIGHTS_UNAVAILABLE


def test_analyze_without_api_key():
    markdown, generated = analyze_business(PRODUCTS, [], client=GroqClient(api_key=""))

    assert generated is False
    assert markdown == INSIGHTS_UNAVAILABLE
