#!/usr/bin/env python3
"""
Seed script to load demo medicine stock for one store.
Usage: python seed_medicines_inventory.py [store name] [password]

Existing medicines are merged by name (stock is added, price replaced),
exactly as a scanned wholesale bill would be.
"""

import json
import sys
from pathlib import Path

# Add backend directory to path
backend_dir = Path(__file__).parent / "backend"
sys.path.insert(0, str(backend_dir))

from ai.reply_schema import BillItem
from app.core.exceptions import NotFound, PharmacyError
from app.db.init_db import init_db
from app.db.session import SessionLocal
from app.services import inventory_service, vendor_service
from app.services.session import VendorSession

DEFAULT_STORE = "Demo Store"
DEFAULT_PASSWORD = "demo1234"


def load_items(json_file: Path) -> list[BillItem]:
    with open(json_file, "r", encoding="utf-8") as f:
        data = json.load(f)
    return [BillItem.model_validate(med) for med in data.get("medicines", [])]


def seed_medicines(store_name: str = DEFAULT_STORE, password: str = DEFAULT_PASSWORD) -> bool:
    """Load medicines from JSON file into the given store, registering it if needed."""

    json_file = Path(__file__).parent / "medicines_inventory.json"
    if not json_file.exists():
        print(f"Error: {json_file} not found!")
        return False

    items = load_items(json_file)

    # Ensure tables exist
    init_db()
    db = SessionLocal()

    try:
        try:
            vendor_id, _ = vendor_service.login(db, store_name, password)
        except NotFound:
            vendor_id = vendor_service.register(db, store_name, password)
            print(f"✓ Registered store: {vendor_id} (password: {password})")

        products = inventory_service.bulk_upsert(VendorSession(vendor_id=vendor_id, db=db), items)
        for item in items:
            print(f"✓ {item.name} (+{item.stock}, Price: ₹{item.price})")

        print(f"\n✅ Seeded {len(items)} medicines, {len(products)} products in store '{vendor_id}'")
        return True

    except PharmacyError as e:
        print(f"\n❌ Error seeding data: {e.message}")
        return False
    finally:
        db.close()


if __name__ == "__main__":
    print("🏥 Kallu Pharmacy - Medicine Inventory Seeding\n")
    ok = seed_medicines(*sys.argv[1:3])
    sys.exit(0 if ok else 1)
