"""Purchase orders. Receiving an order adds the received quantities to medicine stock."""
from decimal import Decimal

from fastapi import HTTPException
from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from app.core.audit import AuditLog
from app.core.exceptions import BusinessError
from app.models.medicine import Medicine
from app.models.purchase_order import PurchaseOrder, PurchaseOrderItem
from app.models.supplier import Supplier
from app.schemas.purchase_order import PurchaseOrderCreate, PurchaseOrderReceive
from app.services.medicine_service import adjust_quantity
from app.services.numbering import generate_number

CENTS = Decimal("0.01")

# status -> statuses it may move to through the status endpoint
ALLOWED_TRANSITIONS = {
    "draft": {"draft", "ordered", "cancelled"},
    "ordered": {"ordered", "draft", "cancelled"},
    "cancelled": {"cancelled", "draft"},
    "received": {"received"},
}


def create_purchase_order(db: Session, data: PurchaseOrderCreate) -> PurchaseOrder:
    if not db.query(Supplier).filter(Supplier.id == data.supplier_id).first():
        raise BusinessError.bad_request(f"Supplier {data.supplier_id} does not exist")

    po = PurchaseOrder(
        order_number=generate_number(db, "PO", PurchaseOrder.order_number, on=data.order_date),
        supplier_id=data.supplier_id,
        status=data.status,
        order_date=data.order_date,
        expected_delivery_date=data.expected_delivery_date,
        notes=data.notes,
    )
    total = Decimal("0")
    for line in data.items:
        if not db.query(Medicine).filter(Medicine.id == line.medicine_id).first():
            raise BusinessError.bad_request(f"Medicine {line.medicine_id} does not exist")
        line_total = (line.unit_price * line.quantity).quantize(CENTS)
        po.items.append(PurchaseOrderItem(
            medicine_id=line.medicine_id,
            quantity=line.quantity,
            unit_price=line.unit_price,
            total_price=line_total,
        ))
        total += line_total
    po.total_amount = total

    db.add(po)
    db.commit()
    db.refresh(po)
    AuditLog.log_action("create", "purchase_order", po.id, changes={"order_number": po.order_number, "total": po.total_amount})
    return po


def list_purchase_orders(
    db: Session,
    page: int = 1,
    limit: int = 10,
    status: str | None = None,
    search: str | None = None,
) -> tuple[list[PurchaseOrder], int]:
    q = db.query(PurchaseOrder).join(Supplier, PurchaseOrder.supplier_id == Supplier.id)
    if status:
        q = q.filter(PurchaseOrder.status == status)
    if search:
        like = f"%{search.strip()}%"
        q = q.filter(or_(PurchaseOrder.order_number.ilike(like), Supplier.name.ilike(like)))
    total = q.count()
    rows = (
        q.options(selectinload(PurchaseOrder.items))
        .order_by(PurchaseOrder.created_at.desc(), PurchaseOrder.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return rows, total


def get_purchase_order(db: Session, po_id: int) -> PurchaseOrder:
    po = db.query(PurchaseOrder).filter(PurchaseOrder.id == po_id).first()
    if not po:
        raise BusinessError.not_found("Purchase order", po_id)
    return po


def update_status(db: Session, po_id: int, status: str) -> PurchaseOrder:
    po = get_purchase_order(db, po_id)
    if po.status == "received" and status != "received":
        raise BusinessError.bad_request("Cannot change status of a received purchase order")
    if status == "received" and po.status != "received":
        raise BusinessError.bad_request("Use the receive endpoint to mark an order as received")
    if status not in ALLOWED_TRANSITIONS[po.status]:
        raise BusinessError.bad_request(f"Cannot move purchase order from {po.status} to {status}")
    previous = po.status
    po.status = status
    db.commit()
    db.refresh(po)
    AuditLog.log_action("status", "purchase_order", po.id, changes={"from": previous, "to": status})
    return po


def receive_purchase_order(db: Session, po_id: int, data: PurchaseOrderReceive) -> PurchaseOrder:
    """
    Book received goods into stock and mark the order received.

    Each received line may also carry a new expiry date and prices for the
    medicine. All lines are applied or none are.
    """
    po = get_purchase_order(db, po_id)
    if po.status == "received":
        raise BusinessError.bad_request("Already received")
    if po.status == "cancelled":
        raise BusinessError.bad_request("Cannot receive a cancelled purchase order")

    items = {item.id: item for item in po.items}
    try:
        for line in data.items:
            item = items.get(line.purchase_order_item_id)
            if not item:
                raise BusinessError.bad_request(f"Invalid item id {line.purchase_order_item_id}")
            remaining = item.quantity - (item.quantity_received or 0)
            if line.quantity_received > remaining:
                raise BusinessError.bad_request(
                    f"Invalid quantity for item {item.id}: {line.quantity_received} > {remaining} outstanding"
                )

            medicine = item.medicine
            adjust_quantity(db, medicine, line.quantity_received, "purchase_order", po.order_number)
            item.quantity_received = (item.quantity_received or 0) + line.quantity_received
            if line.expiry_date is not None:
                medicine.expiry_date = line.expiry_date
            if line.cost_price is not None:
                medicine.cost_price = line.cost_price
            if line.selling_price is not None:
                medicine.selling_price = line.selling_price

        po.status = "received"
        po.received_date = data.received_date
        db.commit()
    except HTTPException:
        db.rollback()
        raise

    db.refresh(po)
    AuditLog.log_action("receive", "purchase_order", po.id, changes={"lines": len(data.items)})
    return po
