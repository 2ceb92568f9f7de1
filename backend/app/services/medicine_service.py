"""Medicine CRUD and stock adjustment. Sales and purchase-order receipts go through adjust_quantity."""
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.core.audit import AuditLog
from app.core.exceptions import BusinessError
from app.models.category import Category
from app.models.medicine import Medicine
from app.models.purchase_order import PurchaseOrderItem
from app.models.sale import SaleItem
from app.schemas.medicine import MedicineCreate, MedicineUpdate


def list_medicines(
    db: Session,
    page: int = 1,
    limit: int = 10,
    search: str | None = None,
    category_id: int | None = None,
    is_active: bool | None = None,
) -> tuple[list[Medicine], int]:
    """Paginated medicine list, newest first. Returns (rows, total)."""
    q = db.query(Medicine)
    if search and search.strip():
        like = f"%{search.strip()}%"
        q = q.filter(or_(Medicine.name.ilike(like), Medicine.barcode.ilike(like)))
    if category_id is not None:
        q = q.filter(Medicine.category_id == category_id)
    if is_active is not None:
        q = q.filter(Medicine.is_active.is_(is_active))

    total = q.count()
    rows = (
        q.order_by(Medicine.created_at.desc(), Medicine.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return rows, total


def list_active_medicines(db: Session) -> list[Medicine]:
    """Full snapshot used by the alert checks."""
    return db.query(Medicine).filter(Medicine.is_active.is_(True)).order_by(Medicine.id).all()


def get_medicine(db: Session, medicine_id: int) -> Medicine:
    medicine = db.query(Medicine).filter(Medicine.id == medicine_id).first()
    if not medicine:
        raise BusinessError.not_found("Medicine", medicine_id)
    return medicine


def get_by_barcode(db: Session, barcode: str) -> Medicine:
    medicine = db.query(Medicine).filter(Medicine.barcode == barcode).first()
    if not medicine:
        raise BusinessError.not_found(f"Medicine with barcode {barcode}")
    return medicine


def _ensure_unique_name(db: Session, name: str, exclude_id: int | None = None):
    q = db.query(Medicine).filter(Medicine.name.ilike(name))
    if exclude_id is not None:
        q = q.filter(Medicine.id != exclude_id)
    if q.first():
        raise BusinessError.conflict("Medicine with this name already exists")


def _ensure_category(db: Session, category_id: int | None):
    if category_id is not None and not db.query(Category).filter(Category.id == category_id).first():
        raise BusinessError.bad_request(f"Category {category_id} does not exist")


def create_medicine(db: Session, data: MedicineCreate) -> Medicine:
    name = data.name.strip()
    _ensure_unique_name(db, name)
    _ensure_category(db, data.category_id)

    values = data.model_dump()
    values["name"] = name
    medicine = Medicine(**values)
    db.add(medicine)
    db.commit()
    db.refresh(medicine)
    AuditLog.log_action("create", "medicine", medicine.id, changes={"name": medicine.name, "quantity": medicine.quantity})
    return medicine


def update_medicine(db: Session, medicine_id: int, data: MedicineUpdate) -> Medicine:
    medicine = get_medicine(db, medicine_id)
    changes = data.model_dump(exclude_unset=True)

    if changes.get("name") is not None:
        changes["name"] = changes["name"].strip()
        if changes["name"].lower() != medicine.name.lower():
            _ensure_unique_name(db, changes["name"], exclude_id=medicine.id)
    if "category_id" in changes:
        _ensure_category(db, changes["category_id"])
    for required in ("name", "quantity", "selling_price", "cost_price"):
        if required in changes and changes[required] is None:
            raise BusinessError.bad_request(f"{required} cannot be null")

    for key, value in changes.items():
        setattr(medicine, key, value)
    db.commit()
    db.refresh(medicine)
    AuditLog.log_action("update", "medicine", medicine.id, changes=changes)
    return medicine


def delete_medicine(db: Session, medicine_id: int) -> None:
    medicine = get_medicine(db, medicine_id)
    if (
        db.query(SaleItem).filter(SaleItem.medicine_id == medicine_id).first()
        or db.query(PurchaseOrderItem).filter(PurchaseOrderItem.medicine_id == medicine_id).first()
    ):
        raise BusinessError.conflict(f"{medicine.name} is referenced by sales or purchase orders and cannot be deleted")
    db.delete(medicine)
    db.commit()
    AuditLog.log_action("delete", "medicine", medicine_id)


def adjust_quantity(db: Session, medicine: Medicine, delta: int, reason: str, reference: str) -> Medicine:
    """Apply a stock delta inside the caller's transaction. Does not commit."""
    new_quantity = (medicine.quantity or 0) + delta
    if new_quantity < 0:
        raise BusinessError.bad_request(f"Insufficient stock for {medicine.name}")
    medicine.quantity = new_quantity
    AuditLog.log_stock_movement(medicine.id, delta, new_quantity, reason, reference)
    return medicine
