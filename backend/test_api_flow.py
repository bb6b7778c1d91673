"""
End-to-end HTTP flow: stock a store, sell from it, print and reset.
"""
from ai.prompts import INSIGHTS_UNAVAILABLE
from app.core.exceptions import ExternalServiceError
from app.core.rate_limiter import rate_limiter


def _create(client, headers, **fields):
    body = {"name": "Paracetamol", "price": 10, "stock": 5, **fields}
    response = client.post("/inventory", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return next(p for p in response.json()["products"] if p["name"] == body["name"])


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.headers["X-Frame-Options"] == "DENY"


def test_inventory_crud(client, auth_headers):
    product = _create(client, auth_headers)

    updated = client.put(
        f"/inventory/{product['id']}",
        json={"name": "Paracetamol 500", "price": 12, "stock": 9},
        headers=auth_headers,
    ).json()
    assert updated["count"] == 1
    assert updated["products"][0]["name"] == "Paracetamol 500"
    assert updated["products"][0]["low_stock_threshold"] == 2

    missing = client.put("/inventory/nope", json={"name": "X", "price": 1, "stock": 1}, headers=auth_headers)
    assert missing.status_code == 404

    first = client.delete(f"/inventory/{product['id']}", headers=auth_headers)
    second = client.delete(f"/inventory/{product['id']}", headers=auth_headers)
    assert first.status_code == second.status_code == 200
    assert first.json() == second.json() == {"products": [], "count": 0}


def test_inventory_validation(client, auth_headers):
    response = client.post("/inventory", json={"name": "", "price": 1, "stock": 1}, headers=auth_headers)
    assert response.status_code == 422

    response = client.get("/inventory", params={"filter": "expired"}, headers=auth_headers)
    assert response.status_code == 400


def test_bulk_upsert_and_filters(client, auth_headers):
    _create(client, auth_headers, name="Paracetamol", stock=10, price=2.5)

    response = client.post(
        "/inventory/bulk-upsert",
        json=[
            {"name": "paracetamol", "stock": 5},
            {"name": "Digene", "stock": 0, "price": 145, "lowStockThreshold": 3},
        ],
        headers=auth_headers,
    )

    products = {p["name"]: p for p in response.json()["products"]}
    assert products["Paracetamol"]["stock"] == 15
    assert products["Paracetamol"]["price"] == 2.5
    assert products["Digene"]["location"] == "Unsorted"

    zero = client.get("/inventory", params={"filter": "zero-stock"}, headers=auth_headers).json()
    assert [p["name"] for p in zero["products"]] == ["Digene"]

    low = client.get("/inventory/low-stock", headers=auth_headers).json()
    assert [p["name"] for p in low] == ["Digene"]

    csv_response = client.get("/inventory/export.csv", headers=auth_headers)
    assert csv_response.headers["content-type"].startswith("text/csv")
    assert "Paracetamol,2.50,15" in csv_response.text


def test_pos_sale_end_to_end(client, auth_headers):
    tablet = _create(client, auth_headers, name="Paracetamol", price=10, stock=5)
    ors = _create(client, auth_headers, name="ORS", price=5, stock=3)

    client.post("/pos/cart/items", json={"product_id": tablet["id"]}, headers=auth_headers)
    client.post("/pos/cart/items", json={"product_id": tablet["id"]}, headers=auth_headers)
    client.post("/pos/cart/items", json={"product_id": ors["id"]}, headers=auth_headers)
    cart = client.patch(
        "/pos/cart",
        json={"discount_mode": "percent", "discount_value": 10, "payment_method": "card"},
        headers=auth_headers,
    ).json()
    assert cart["subtotal"] == 25.0
    assert cart["discount"] == 2.5
    assert cart["total"] == 22.5

    # Empty remark is refused and the cart stays as it was
    refused = client.post("/pos/checkout", json={"remark": "  "}, headers=auth_headers)
    assert refused.status_code == 400
    assert client.get("/pos/cart", headers=auth_headers).json() == cart

    done = client.post("/pos/checkout", json={"remark": "Walk-in"}, headers=auth_headers)
    assert done.status_code == 201, done.text
    body = done.json()
    assert body["transaction"]["total"] == 22.5
    assert body["transaction"]["payment_method"] == "card"
    assert body["cart"]["lines"] == []

    stock = {p["name"]: p["stock"] for p in client.get("/inventory", headers=auth_headers).json()["products"]}
    assert stock == {"ORS": 2, "Paracetamol": 3}

    tx_id = body["transaction"]["id"]
    history = client.get("/sales/transactions", headers=auth_headers).json()
    assert [t["id"] for t in history] == [tx_id]

    receipt = client.get(f"/sales/transactions/{tx_id}/receipt", headers=auth_headers)
    assert f"ID: #{tx_id[-6:]}" in receipt.text
    assert "Remark: Walk-in" in receipt.text

    pdf = client.get(f"/sales/transactions/{tx_id}/receipt.pdf", headers=auth_headers)
    assert pdf.headers["content-type"] == "application/pdf"
    assert pdf.content.startswith(b"%PDF")

    summary = client.get("/sales/summary", headers=auth_headers).json()
    assert summary["transaction_count"] == 1
    assert summary["total_items_sold"] == 3
    assert summary["popular_items"][0] == {"name": "Paracetamol", "count": 2}

    reset = client.delete("/sales/transactions", headers=auth_headers)
    assert reset.json() == {"success": True, "transactions": [], "error": None}
    assert client.get("/sales/transactions", headers=auth_headers).json() == []


def test_refused_checkout_leaves_cart_alone(client, auth_headers):
    product = _create(client, auth_headers)
    client.post("/pos/cart/items", json={"product_id": product["id"]}, headers=auth_headers)
    before = client.get("/pos/cart", headers=auth_headers).json()

    # No remark anywhere: the payment method in the request must not stick
    refused = client.post("/pos/checkout", json={"payment_method": "card"}, headers=auth_headers)
    assert refused.status_code == 400
    assert client.get("/pos/cart", headers=auth_headers).json() == before

    client.delete("/pos/cart/items/" + product["id"], headers=auth_headers)
    emptied = client.get("/pos/cart", headers=auth_headers).json()
    refused = client.post(
        "/pos/checkout", json={"remark": "Walk-in", "payment_method": "upi"}, headers=auth_headers
    )
    assert refused.status_code == 400
    assert client.get("/pos/cart", headers=auth_headers).json() == emptied


def test_cart_quantity_bounds(client, auth_headers):
    product = _create(client, auth_headers, stock=2)
    empty = _create(client, auth_headers, name="Empty", stock=0)

    client.post("/pos/cart/items", json={"product_id": empty["id"]}, headers=auth_headers)
    client.post("/pos/cart/items", json={"product_id": product["id"]}, headers=auth_headers)
    cart = client.patch(f"/pos/cart/items/{product['id']}", json={"delta": 10}, headers=auth_headers).json()

    assert [line["product_id"] for line in cart["lines"]] == [product["id"]]
    assert cart["lines"][0]["quantity"] == 2

    missing = client.patch("/pos/cart/items/nope", json={"delta": 1}, headers=auth_headers)
    assert missing.status_code == 404

    cart = client.delete(f"/pos/cart/items/{product['id']}", headers=auth_headers).json()
    assert cart["lines"] == []


def test_vendors_do_not_see_each_other(client, auth_headers):
    _create(client, auth_headers)
    other = client.post("/auth/register", json={"name": "Other Store", "password": "secret1"}).json()
    other_headers = {"Authorization": f"Bearer {other['access_token']}"}

    assert client.get("/inventory", headers=other_headers).json()["count"] == 0


def test_assistant_endpoints(client, auth_headers, fake_groq):
    start = client.get("/ai/assistant", headers=auth_headers).json()
    assert start["phase"] == "awaiting_bill_or_question"
    assert len(start["messages"]) == 1

    fake_groq.queue("Which column is the selling price?")
    turn = client.post(
        "/ai/assistant/messages",
        json={"text": "", "image_base64": "aGVsbG8="},
        headers=auth_headers,
    ).json()
    assert turn["phase"] == "awaiting_pricing_answer"

    fake_groq.queue('Done.\n```json\n[{"name": "Dolo 650", "stock": 12, "price": 3}]\n```')
    turn = client.post("/ai/assistant/messages", json={"text": "MRP"}, headers=auth_headers).json()
    assert turn["kind"] == "text_with_update"
    assert turn["items_applied"] == 1

    products = client.get("/inventory", headers=auth_headers).json()["products"]
    assert [(p["name"], p["stock"]) for p in products] == [("Dolo 650", 12)]

    bad = client.post("/ai/assistant/messages", json={"text": "  "}, headers=auth_headers)
    assert bad.status_code == 400

    cleared = client.delete("/ai/assistant", headers=auth_headers).json()
    assert cleared["phase"] == "awaiting_bill_or_question"
    assert len(cleared["messages"]) == 1


def test_insights_endpoint(client, auth_headers, fake_groq):
    fake_groq.queue("## Sales Trends\nQuiet week.")
    ok = client.post("/ai/insights", headers=auth_headers).json()
    assert ok == {"markdown": "## Sales Trends\nQuiet week.", "generated": True}

    fake_groq.queue(ExternalServiceError("down"))
    fallback = client.post("/ai/insights", headers=auth_headers).json()
    assert fallback == {"markdown": INSIGHTS_UNAVAILABLE, "generated": False}


def test_help_schema(client):
    sql = client.get("/help/schema").text

    assert "CREATE TABLE IF NOT EXISTS vendors" in sql
    assert "CREATE TABLE IF NOT EXISTS products" in sql
    assert "CREATE TABLE IF NOT EXISTS transactions" in sql
    threshold = next(line for line in sql.splitlines() if "low_stock_threshold" in line)
    assert "DEFAULT 2" in threshold.upper()
    assert "ALTER TABLE products DISABLE ROW LEVEL SECURITY;" in sql
    assert client.get("/help").json()["features"]["pos"]


def test_rate_limit_throttles_per_token(client, auth_headers, monkeypatch):
    monkeypatch.setattr(rate_limiter, "enabled", True)
    monkeypatch.setattr(rate_limiter, "requests", 2)

    assert client.get("/inventory", headers=auth_headers).status_code == 200
    assert client.get("/inventory", headers=auth_headers).status_code == 200
    throttled = client.get("/inventory", headers=auth_headers)
    assert throttled.status_code == 429
    assert "Too many requests" in throttled.json()["detail"]

    # health checks are never counted
    assert client.get("/health").status_code == 200
