"""
REST CRUD for categories, medicines, customers, suppliers and costs.

Tests:
1. Create / read / update / delete round trip
2. Duplicate names -> 400, unknown ids -> 404
3. Request validation -> 400 with field errors
4. Medicine search, pagination, barcode lookup
5. Costs: filters, total amount, soft delete
"""
from datetime import date
from decimal import Decimal

from app.models import Medicine


def test_category_crud(client):
    created = client.post("/categories", json={"name": "Antibiotics", "description": "Infections"})
    assert created.status_code == 201
    category_id = created.json()["id"]

    assert client.get(f"/categories/{category_id}").json()["name"] == "Antibiotics"

    updated = client.patch(f"/categories/{category_id}", json={"description": "Bacterial infections"})
    assert updated.status_code == 200
    assert updated.json()["description"] == "Bacterial infections"

    assert client.delete(f"/categories/{category_id}").status_code == 200
    assert client.get(f"/categories/{category_id}").status_code == 404


def test_duplicate_category_is_rejected(client):
    client.post("/categories", json={"name": "Antacids"})
    response = client.post("/categories", json={"name": "antacids"})
    assert response.status_code == 400
    assert "already exists" in response.json()["detail"]


def test_deleting_category_keeps_its_medicines(client, db_session, category, make_medicine):
    medicine = make_medicine(category_id=category.id)
    assert client.delete(f"/categories/{category.id}").status_code == 200
    db_session.expire_all()
    assert db_session.get(Medicine, medicine.id).category_id is None


def test_medicine_crud(client, category):
    payload = {
        "name": "Paracetamol 500mg",
        "category_id": category.id,
        "barcode": "8901234567890",
        "quantity": 40,
        "unit": "strip",
        "selling_price": "2.50",
        "cost_price": "1.60",
        "expiry_date": "2027-01-31",
    }
    created = client.post("/medicines", json=payload)
    assert created.status_code == 201
    body = created.json()
    assert body["quantity"] == 40
    assert Decimal(body["selling_price"]) == Decimal("2.50")

    medicine_id = body["id"]
    updated = client.patch(f"/medicines/{medicine_id}", json={"quantity": 35})
    assert updated.json()["quantity"] == 35

    by_barcode = client.get("/medicines/barcode/8901234567890")
    assert by_barcode.status_code == 200
    assert by_barcode.json()["id"] == medicine_id

    assert client.delete(f"/medicines/{medicine_id}").status_code == 200
    assert client.get(f"/medicines/{medicine_id}").status_code == 404


def test_medicine_unknown_ids(client):
    assert client.get("/medicines/999").status_code == 404
    assert client.get("/medicines/barcode/nope").status_code == 404
    assert client.patch("/medicines/999", json={"quantity": 1}).status_code == 404


def test_medicine_validation_errors_are_400(client):
    response = client.post("/medicines", json={"name": "X", "quantity": -1})
    assert response.status_code == 400
    body = response.json()
    assert body["detail"] == "Validation failed"
    fields = {error["field"] for error in body["errors"]}
    assert {"name", "quantity"} <= fields


def test_medicine_null_quantity_rejected(client, make_medicine):
    medicine = make_medicine()
    response = client.patch(f"/medicines/{medicine.id}", json={"quantity": None})
    assert response.status_code == 400


def test_medicine_duplicate_name(client, make_medicine):
    make_medicine(name="Dolo 650")
    response = client.post("/medicines", json={"name": "dolo 650"})
    assert response.status_code == 400


def test_medicine_unknown_category(client):
    response = client.post("/medicines", json={"name": "Crocin", "category_id": 42})
    assert response.status_code == 400


def test_medicine_search_and_pagination(client, make_medicine):
    for i in range(5):
        make_medicine(name=f"Cetirizine {i}")
    make_medicine(name="Azithromycin")

    page = client.get("/medicines", params={"search": "cetirizine", "page": 2, "limit": 2}).json()
    assert page["total"] == 5
    assert page["page"] == 2
    assert len(page["medicines"]) == 2

    inactive = make_medicine(name="Old Syrup", is_active=False)
    active_only = client.get("/medicines", params={"is_active": True, "limit": 100}).json()
    assert inactive.id not in {m["id"] for m in active_only["medicines"]}


def test_customer_crud(client):
    created = client.post("/customers", json={"name": "Rahul Sharma", "phone": "9811111111"})
    assert created.status_code == 201
    customer_id = created.json()["id"]

    assert client.post("/customers", json={"name": "rahul sharma"}).status_code == 400
    found = client.get("/customers", params={"search": "rahul"}).json()
    assert [c["id"] for c in found] == [customer_id]

    assert client.patch(f"/customers/{customer_id}", json={"address": "Pune"}).json()["address"] == "Pune"
    assert client.delete(f"/customers/{customer_id}").status_code == 200
    assert client.get(f"/customers/{customer_id}").status_code == 404


def test_supplier_with_orders_cannot_be_deleted(client, supplier, make_medicine):
    medicine = make_medicine()
    client.post("/purchase-orders", json={
        "supplier_id": supplier.id,
        "order_date": "2025-03-01",
        "items": [{"medicine_id": medicine.id, "quantity": 5, "unit_price": "4.00"}],
    })
    response = client.delete(f"/suppliers/{supplier.id}")
    assert response.status_code == 400


def test_supplier_crud(client):
    created = client.post("/suppliers", json={"name": "Zenith Pharma", "payment_terms": "Net 30"})
    assert created.status_code == 201
    supplier_id = created.json()["id"]
    assert client.patch(f"/suppliers/{supplier_id}", json={"is_active": False}).json()["is_active"] is False
    assert client.delete(f"/suppliers/{supplier_id}").status_code == 200
    assert client.get("/suppliers/12345").status_code == 404


def test_costs_list_filters_and_total(client):
    for description, category, amount, day in [
        ("March rent", "Rent", "15000.00", "2025-03-01"),
        ("Electricity", "Utilities", "2300.50", "2025-03-05"),
        ("Water", "Utilities", "400.00", "2025-04-02"),
    ]:
        response = client.post("/costs", json={
            "description": description, "category": category, "amount": amount, "cost_date": day,
        })
        assert response.status_code == 201

    march = client.get("/costs", params={"start_date": "2025-03-01", "end_date": "2025-03-31"}).json()
    assert march["total"] == 2
    assert Decimal(march["total_amount"]) == Decimal("17300.50")

    utilities = client.get("/costs", params={"category": "Utilities"}).json()
    assert utilities["total"] == 2

    assert client.get("/costs/categories").json() == ["Rent", "Utilities"]


def test_cost_soft_delete(client):
    cost_id = client.post("/costs", json={
        "description": "Printer paper", "category": "Supplies", "amount": "250", "cost_date": str(date.today()),
    }).json()["id"]

    assert client.delete(f"/costs/{cost_id}").status_code == 200
    assert client.get(f"/costs/{cost_id}").status_code == 404
    assert client.get("/costs").json()["total"] == 0
    assert client.get("/costs/categories").json() == []


def test_health(client):
    assert client.get("/health").json()["status"] == "ok"
