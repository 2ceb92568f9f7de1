"""Supplier CRUD. Suppliers referenced by purchase orders cannot be deleted."""
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.core.audit import AuditLog
from app.core.exceptions import BusinessError
from app.models.purchase_order import PurchaseOrder
from app.models.supplier import Supplier
from app.schemas.supplier import SupplierCreate, SupplierUpdate


def list_suppliers(db: Session, search: str | None = None) -> list[Supplier]:
    q = db.query(Supplier)
    if search:
        like = f"%{search.strip()}%"
        q = q.filter(or_(Supplier.name.ilike(like), Supplier.contact_person.ilike(like)))
    return q.order_by(Supplier.name).all()


def get_supplier(db: Session, supplier_id: int) -> Supplier:
    supplier = db.query(Supplier).filter(Supplier.id == supplier_id).first()
    if not supplier:
        raise BusinessError.not_found("Supplier", supplier_id)
    return supplier


def _ensure_unique_name(db: Session, name: str, exclude_id: int | None = None):
    q = db.query(Supplier).filter(Supplier.name.ilike(name))
    if exclude_id is not None:
        q = q.filter(Supplier.id != exclude_id)
    if q.first():
        raise BusinessError.conflict("Supplier with this name already exists")


def create_supplier(db: Session, data: SupplierCreate) -> Supplier:
    values = data.model_dump()
    values["name"] = values["name"].strip()
    _ensure_unique_name(db, values["name"])
    supplier = Supplier(**values)
    db.add(supplier)
    db.commit()
    db.refresh(supplier)
    AuditLog.log_action("create", "supplier", supplier.id, changes={"name": supplier.name})
    return supplier


def update_supplier(db: Session, supplier_id: int, data: SupplierUpdate) -> Supplier:
    supplier = get_supplier(db, supplier_id)
    changes = data.model_dump(exclude_unset=True)
    if changes.get("name") is not None:
        changes["name"] = changes["name"].strip()
        _ensure_unique_name(db, changes["name"], exclude_id=supplier.id)
    elif "name" in changes:
        raise BusinessError.bad_request("name cannot be null")
    for key, value in changes.items():
        setattr(supplier, key, value)
    db.commit()
    db.refresh(supplier)
    AuditLog.log_action("update", "supplier", supplier.id, changes=changes)
    return supplier


def delete_supplier(db: Session, supplier_id: int) -> None:
    supplier = get_supplier(db, supplier_id)
    if db.query(PurchaseOrder).filter(PurchaseOrder.supplier_id == supplier_id).first():
        raise BusinessError.conflict("Supplier has purchase orders and cannot be deleted")
    db.delete(supplier)
    db.commit()
    AuditLog.log_action("delete", "supplier", supplier_id)
