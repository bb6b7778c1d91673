"""Help screen: feature overview and the PostgreSQL setup script."""
from fastapi import APIRouter
from fastapi.responses import PlainTextResponse
from sqlalchemy.dialects import postgresql
from sqlalchemy.schema import CreateTable

from app.core.config import settings
from app.models.product import Product
from app.models.transaction import Transaction
from app.models.vendor import Vendor

router = APIRouter()

# Vendor scoping happens in the application; database row security must allow it
RLS_TABLES = ("vendors", "products", "transactions")

FEATURES = {
    "inventory": "Add, edit, search and delete medicines. Filter by zero or low stock.",
    "pos": "Ring up a sale, apply a discount, add a remark and print the receipt.",
    "sales": "Sales history, best sellers, low-stock alerts and history reset.",
    "ai_manager": "AI summary of sales trends and restock advice.",
    "assistant": "Ask questions, or send a wholesale bill photo to add its items to stock.",
}


def setup_sql() -> str:
    statements = ["-- 1. Create tables"]
    for model in (Vendor, Product, Transaction):
        ddl = str(CreateTable(model.__table__).compile(dialect=postgresql.dialect())).strip()
        statements.append(ddl.replace("CREATE TABLE", "CREATE TABLE IF NOT EXISTS", 1) + ";")

    statements.append("-- 2. Disable row level security")
    statements.extend(f"ALTER TABLE {name} DISABLE ROW LEVEL SECURITY;" for name in RLS_TABLES)
    return "\n\n".join(statements) + "\n"


@router.get("")
def overview():
    return {"store": settings.STORE_NAME, "features": FEATURES}


@router.get("/schema", response_class=PlainTextResponse)
def schema():
    """SQL to prepare a hosted PostgreSQL database for the app."""
    return setup_sql()
