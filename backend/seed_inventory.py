"""Seed categories and medicines, with a spread of stock and expiry states for the alert checks."""
from datetime import date, timedelta
from decimal import Decimal

from app.db.init_db import init_db
from app.db.session import SessionLocal
from app.models.category import Category
from app.models.medicine import Medicine

CATEGORIES = {
    "Analgesics": "Pain and fever relief",
    "Antibiotics": "Bacterial infections",
    "Antihistamines": "Allergies",
    "Antacids": "Acidity and GERD",
}

# name, category, quantity, unit, selling, cost, days until expiry
MEDICINES = [
    ("Paracetamol 500mg", "Analgesics", 200, "strip", 2.50, 1.60, 400),
    ("Dolo 650", "Analgesics", 8, "strip", 3.00, 2.10, 250),
    ("Crocin Advance", "Analgesics", 0, "strip", 4.50, 3.20, 180),
    ("Azithromycin 500mg", "Antibiotics", 80, "strip", 15.00, 11.00, 20),
    ("Amoxicillin 500mg", "Antibiotics", 3, "strip", 8.00, 5.50, 5),
    ("Cetirizine 10mg", "Antihistamines", 250, "strip", 1.50, 0.90, -3),
    ("Pan 40 (Pantoprazole)", "Antacids", 120, "strip", 6.00, 4.10, 365),
    ("Digene Syrup", "Antacids", 15, "bottle", 95.00, 70.00, None),
]


def seed_inventory():
    init_db()
    db = SessionLocal()
    today = date.today()
    try:
        categories = {}
        for name, description in CATEGORIES.items():
            category = db.query(Category).filter(Category.name == name).first()
            if not category:
                category = Category(name=name, description=description)
                db.add(category)
                db.flush()
            categories[name] = category

        added = 0
        for name, category, quantity, unit, selling, cost, days in MEDICINES:
            if db.query(Medicine).filter(Medicine.name == name).first():
                continue
            db.add(Medicine(
                name=name,
                category_id=categories[category].id,
                quantity=quantity,
                unit=unit,
                selling_price=Decimal(str(selling)),
                cost_price=Decimal(str(cost)),
                expiry_date=today + timedelta(days=days) if days is not None else None,
            ))
            added += 1
        db.commit()
        print(f"✅ Added {added} medicines ({len(MEDICINES) - added} already present)")
    finally:
        db.close()


if __name__ == "__main__":
    seed_inventory()
