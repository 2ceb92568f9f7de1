"""Customer CRUD."""
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.core.audit import AuditLog
from app.core.exceptions import BusinessError
from app.models.customer import Customer
from app.schemas.customer import CustomerCreate, CustomerUpdate


def list_customers(db: Session, search: str | None = None) -> list[Customer]:
    q = db.query(Customer)
    if search:
        like = f"%{search.strip()}%"
        q = q.filter(or_(Customer.name.ilike(like), Customer.phone.ilike(like), Customer.email.ilike(like)))
    return q.order_by(Customer.name).all()


def get_customer(db: Session, customer_id: int) -> Customer:
    customer = db.query(Customer).filter(Customer.id == customer_id).first()
    if not customer:
        raise BusinessError.not_found("Customer", customer_id)
    return customer


def _ensure_unique_name(db: Session, name: str, exclude_id: int | None = None):
    q = db.query(Customer).filter(Customer.name.ilike(name))
    if exclude_id is not None:
        q = q.filter(Customer.id != exclude_id)
    if q.first():
        raise BusinessError.conflict("Customer with this name already exists")


def create_customer(db: Session, data: CustomerCreate) -> Customer:
    name = data.name.strip()
    _ensure_unique_name(db, name)
    customer = Customer(name=name, email=data.email, phone=data.phone, address=data.address)
    db.add(customer)
    db.commit()
    db.refresh(customer)
    AuditLog.log_action("create", "customer", customer.id, changes={"name": customer.name})
    return customer


def update_customer(db: Session, customer_id: int, data: CustomerUpdate) -> Customer:
    customer = get_customer(db, customer_id)
    changes = data.model_dump(exclude_unset=True)
    if changes.get("name") is not None:
        changes["name"] = changes["name"].strip()
        _ensure_unique_name(db, changes["name"], exclude_id=customer.id)
    elif "name" in changes:
        raise BusinessError.bad_request("name cannot be null")
    for key, value in changes.items():
        setattr(customer, key, value)
    db.commit()
    db.refresh(customer)
    AuditLog.log_action("update", "customer", customer.id, changes=changes)
    return customer


def delete_customer(db: Session, customer_id: int) -> None:
    customer = get_customer(db, customer_id)
    db.delete(customer)
    db.commit()
    AuditLog.log_action("delete", "customer", customer_id)
