"""
Shared pytest fixtures.

Each test gets a fresh in-memory SQLite database and a fake Groq client,
so nothing touches pharmacy.db or the network.
"""
from collections import deque

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ai.groq_client import ModelReply, set_groq_client
from app.api.deps import get_db
from app.core.rate_limiter import rate_limiter
from app.db.base import Base
from app.db.init_db import init_db
from app.db.session import make_engine
from app.main import app
from app.services.cart import cart_registry
from app.services.session import VendorSession
from app.services import vendor_service


class FakeGroqClient:
    """Stands in for GroqClient: returns queued replies and records every call.

    Queue strings, ModelReply objects, or exceptions (which are raised).
    """

    def __init__(self, *replies):
        self.replies = deque(replies)
        self.calls = []

    def queue(self, *replies):
        self.replies.extend(replies)

    def is_available(self) -> bool:
        return True

    def complete(self, messages, model=None, max_tokens=None) -> ModelReply:
        self.calls.append({"messages": messages, "model": model})
        if not self.replies:
            return ModelReply(text="OK")
        reply = self.replies.popleft()
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, ModelReply):
            return reply
        return ModelReply(text=reply)


@pytest.fixture
def engine():
    engine = make_engine("sqlite://", poolclass=StaticPool)
    init_db(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def fake_groq():
    client = FakeGroqClient()
    set_groq_client(client)
    yield client
    set_groq_client(None)


@pytest.fixture(autouse=True)
def clean_state():
    rate_limiter.enabled = False
    rate_limiter.reset()
    cart_registry.clear()
    yield
    cart_registry.clear()
    rate_limiter.reset()
    rate_limiter.enabled = True


@pytest.fixture
def vendor(db) -> VendorSession:
    vendor_id = vendor_service.register(db, "Main Store", "secret1")
    return VendorSession(vendor_id=vendor_id, db=db)


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    # No context manager: the lifespan would create tables in the configured database
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(client):
    response = client.post("/auth/register", json={"name": "Main Store", "password": "secret1"})
    assert response.status_code == 201, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}

