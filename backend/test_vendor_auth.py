"""
Vendor registration, login and session teardown.

Covers:
1. Store name normalization into the vendor id
2. Duplicate registration
3. Login outcomes (unknown store, wrong password, legacy rows)
4. Logout clears the cart and the assistant conversation
"""
import pytest

from app.agent import bill_assistant
from app.agent.conversation_state import AssistantPhase
from app.core.exceptions import AlreadyExists, NotFound, ValidationError, WrongPassword
from app.core.security import decode_access_token, verify_password
from app.models.vendor import Vendor
from app.services import vendor_service
from app.services.cart import cart_registry
from app.services.session import VendorSession, end_session


# ==============================================================================
# NORMALIZATION
# ==============================================================================

@pytest.mark.parametrize("name, expected", [
    ("Main Store", "main_store"),
    ("  Main   Store ", "main_store"),
    ("KALLU", "kallu"),
    ("New\tKallu Medical", "new_kallu_medical"),
])
def test_normalize_vendor_id(name, expected):
    assert vendor_service.normalize_vendor_id(name) == expected


def test_normalize_rejects_blank_name():
    with pytest.raises(ValidationError):
        vendor_service.normalize_vendor_id("   ")


# ==============================================================================
# REGISTER
# ==============================================================================

def test_register_stores_hashed_password(db):
    vendor_id = vendor_service.register(db, "Main Store", "secret1")

    assert vendor_id == "main_store"
    row = db.query(Vendor).filter(Vendor.id == "main_store").one()
    assert row.password != "secret1", "Password must not be stored in plain text"
    assert verify_password("secret1", row.password)


def test_register_duplicate_after_normalization(db):
    vendor_service.register(db, "Main Store", "secret1")

    with pytest.raises(AlreadyExists):
        vendor_service.register(db, "main store", "other1")

    assert db.query(Vendor).count() == 1


def test_register_short_password(db):
    with pytest.raises(ValidationError):
        vendor_service.register(db, "Main Store", "ab")


# ==============================================================================
# LOGIN
# ==============================================================================

def test_login_success(db):
    vendor_service.register(db, "Main Store", "secret1")

    vendor_id, legacy = vendor_service.login(db, "MAIN store", "secret1")

    assert vendor_id == "main_store"
    assert legacy is False


def test_login_unknown_store(db):
    with pytest.raises(NotFound):
        vendor_service.login(db, "Nowhere", "secret1")


def test_login_wrong_password(db):
    vendor_service.register(db, "Main Store", "secret1")

    with pytest.raises(WrongPassword) as exc:
        vendor_service.login(db, "Main Store", "wrong")
    assert exc.value.message == "Incorrect Password"


def test_login_legacy_vendor_without_password(db):
    db.add(Vendor(id="old_shop", password=None))
    db.commit()

    vendor_id, legacy = vendor_service.login(db, "Old Shop", "anything at all")

    assert vendor_id == "old_shop"
    assert legacy is True


def test_login_legacy_plaintext_password(db):
    db.add(Vendor(id="old_shop", password="1234"))
    db.commit()

    assert vendor_service.login(db, "old shop", "1234") == ("old_shop", False)
    with pytest.raises(WrongPassword):
        vendor_service.login(db, "old shop", "4321")


# ==============================================================================
# SESSION TEARDOWN
# ==============================================================================

def test_end_session_discards_cart_and_conversation(vendor, fake_groq):
    cart = cart_registry.get(vendor.vendor_id)
    cart.remark = "walk-in"
    fake_groq.queue("Which column is the selling price: MRP or Rate?")
    bill_assistant.send_message(vendor, image_base64="aGVsbG8=")

    end_session(vendor)

    assert cart_registry.get(vendor.vendor_id) is not cart
    phase, history = bill_assistant.get_conversation(vendor)
    assert phase == AssistantPhase.AWAITING_BILL_OR_QUESTION
    assert len(history) == 1


def test_sessions_are_isolated(db):
    a = VendorSession(vendor_service.register(db, "Store A", "secret1"), db)
    b = VendorSession(vendor_service.register(db, "Store B", "secret1"), db)
    cart_registry.get(a.vendor_id).remark = "a"

    end_session(b)

    assert cart_registry.get(a.vendor_id).remark == "a"


# ==============================================================================
# HTTP
# ==============================================================================

def test_register_and_me(client):
    response = client.post("/auth/register", json={"name": "Main Store", "password": "secret1"})
    assert response.status_code == 201
    body = response.json()
    assert body["vendor_id"] == "main_store"
    assert decode_access_token(body["access_token"]) == "main_store"

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert me.json() == {"id": "main_store"}


def test_register_duplicate_is_conflict(client, auth_headers):
    response = client.post("/auth/register", json={"name": "main store", "password": "secret1"})
    assert response.status_code == 409


def test_login_errors(client, auth_headers):
    missing = client.post("/auth/login", json={"name": "Other", "password": "secret1"})
    wrong = client.post("/auth/login", json={"name": "Main Store", "password": "nope"})

    assert missing.status_code == 404
    assert wrong.status_code == 401
    assert wrong.json()["detail"] == "Incorrect Password"


def test_protected_route_requires_token(client):
    assert client.get("/inventory").status_code == 401
    assert client.get("/inventory", headers={"Authorization": "Bearer junk"}).status_code == 401


def test_logout_clears_cookie_and_cart(client, auth_headers):
    cart_registry.get("main_store").remark = "pending sale"

    response = client.post("/auth/logout", headers=auth_headers)

    assert response.status_code == 200
    assert cart_registry.get("main_store").remark == ""
