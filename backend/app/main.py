"""
New Kallu Medical Store backend.

ARCHITECTURE:
- FastAPI: inventory, point of sale, sales history, AI manager, assistant
- SQLAlchemy: SQLite by default, PostgreSQL via DATABASE_URL
- Groq: bill reading, question answering and business insights

Every request is scoped to the signed-in vendor. The AI never writes to the
database directly; validated bill items go through the inventory service.
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware

from app.api.routes import ai, auth, help, inventory, pos, sales
from app.core.config import settings
from app.core.rate_limiter import RateLimitMiddleware
from app.db.init_db import init_db


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup: create database tables.
    Shutdown: nothing to release; carts and engines go with the process.
    """
    print("[*] Initializing database...")
    init_db()
    print("[OK] Database initialized")

    if not settings.GROQ_API_KEY:
        print("[WARN] AI features disabled (no GROQ_API_KEY)")

    yield

    print("[*] Shutting down")


app = FastAPI(
    title="Kallu Pharmacy API",
    description="Inventory, point of sale and AI assistant for a neighbourhood medical store.",
    version="0.1.0",
    lifespan=lifespan,
)

# SECURITY: Trust only specific hosts
app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.ALLOWED_HOSTS)

# SECURITY: Restrict CORS to specific methods and headers (not wildcards)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=[
        "Content-Type",
        "Authorization",
        "Accept",
        "Origin",
    ],
    max_age=600,
    expose_headers=["Content-Type", "Content-Disposition"],
)

# SECURITY: Rate limiting to prevent brute force and DoS attacks
app.add_middleware(RateLimitMiddleware)


@app.middleware("http")
async def add_security_headers(request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response


app.include_router(auth.router, prefix="/auth", tags=["auth"])
app.include_router(inventory.router, prefix="/inventory", tags=["inventory"])
app.include_router(pos.router, prefix="/pos", tags=["pos"])
app.include_router(sales.router, prefix="/sales", tags=["sales"])
app.include_router(ai.router, prefix="/ai", tags=["ai"])
app.include_router(help.router, prefix="/help", tags=["help"])


@app.get("/health")
def health():
    return {"status": "ok", "ai": bool(settings.GROQ_API_KEY)}
