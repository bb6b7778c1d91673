"""Receipt rendering: plain text layout and PDF output."""
from datetime import datetime
from types import SimpleNamespace

from app.services.receipt_service import format_receipt_text, generate_receipt_pdf, short_id, total_items

TIMESTAMP = int(datetime(2024, 3, 5, 14, 30).timestamp() * 1000)


def _tx(discount=2.5):
    return SimpleNamespace(
        id="7f3c2a1e-0000-4000-8000-00000a1b2c3d",
        timestamp=TIMESTAMP,
        items=[
            {"id": "p1", "name": "Paracetamol", "price": 10.0, "quantity": 2},
            {"id": "p2", "name": "ORS", "price": 5.0, "quantity": 1},
        ],
        subtotal=25.0,
        discount=discount,
        total=25.0 - discount,
        payment_method="upi",
        remark="Dr. Sharma",
    )


def test_short_id_is_last_six_characters():
    assert short_id(_tx()) == "1b2c3d"


def test_total_items():
    assert total_items(_tx()) == 3


def test_text_receipt_layout():
    text = format_receipt_text(_tx(), store_name="New Kallu Medical Store")
    lines = text.splitlines()

    assert lines[0].strip() == "New Kallu Medical Store"
    assert "Date: 05 Mar 2024" in lines
    assert "Time: 02:30 PM" in lines
    assert "ID: #1b2c3d" in lines
    assert any(line.startswith("Paracetamol x2") and line.endswith("₹20.00") for line in lines)
    assert any(line.startswith("Discount") and line.endswith("-₹2.50") for line in lines)
    assert any(line.startswith("TOTAL") and line.endswith("₹22.50") for line in lines)
    assert "Total Items: 3" in lines
    assert "Payment: UPI" in lines
    assert "Remark: Dr. Sharma" in lines
    assert "Thank you" in lines[-1]


def test_text_receipt_hides_zero_discount():
    text = format_receipt_text(_tx(discount=0))

    assert "Discount" not in text


def test_pdf_receipt():
    buffer = generate_receipt_pdf(_tx())

    data = buffer.getvalue()
    assert data.startswith(b"%PDF")
    assert len(data) > 1000
