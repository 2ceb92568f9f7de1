"""Operating costs. Delete is a soft delete (is_active = False)."""
from datetime import date
from decimal import Decimal

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.core.audit import AuditLog
from app.core.exceptions import BusinessError
from app.models.cost import Cost
from app.schemas.cost import CostCreate, CostUpdate


def _filtered(db: Session, search=None, category=None, start_date=None, end_date=None):
    q = db.query(Cost).filter(Cost.is_active.is_(True))
    if search:
        like = f"%{search.strip()}%"
        q = q.filter(or_(Cost.description.ilike(like), Cost.category.ilike(like)))
    if category:
        q = q.filter(Cost.category == category)
    if start_date:
        q = q.filter(Cost.cost_date >= start_date)
    if end_date:
        q = q.filter(Cost.cost_date <= end_date)
    return q


def list_costs(
    db: Session,
    search: str | None = None,
    category: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    page: int = 1,
    limit: int = 10,
) -> dict:
    q = _filtered(db, search, category, start_date, end_date)
    total = q.count()
    total_amount = q.with_entities(func.sum(Cost.amount)).scalar() or Decimal("0")
    costs = (
        q.order_by(Cost.cost_date.desc(), Cost.created_at.desc(), Cost.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "costs": costs,
        "total": total,
        "page": page,
        "limit": limit,
        "total_amount": Decimal(str(total_amount)),
    }


def get_cost(db: Session, cost_id: int) -> Cost:
    cost = db.query(Cost).filter(Cost.id == cost_id, Cost.is_active.is_(True)).first()
    if not cost:
        raise BusinessError.not_found("Cost", cost_id)
    return cost


def create_cost(db: Session, data: CostCreate) -> Cost:
    cost = Cost(**data.model_dump())
    db.add(cost)
    db.commit()
    db.refresh(cost)
    AuditLog.log_action("create", "cost", cost.id, changes={"category": cost.category, "amount": cost.amount})
    return cost


def update_cost(db: Session, cost_id: int, data: CostUpdate) -> Cost:
    cost = get_cost(db, cost_id)
    changes = data.model_dump(exclude_unset=True)
    for required in ("description", "category", "amount", "cost_date"):
        if required in changes and changes[required] is None:
            raise BusinessError.bad_request(f"{required} cannot be null")
    for key, value in changes.items():
        setattr(cost, key, value)
    db.commit()
    db.refresh(cost)
    AuditLog.log_action("update", "cost", cost.id, changes=changes)
    return cost


def delete_cost(db: Session, cost_id: int) -> None:
    cost = get_cost(db, cost_id)
    cost.is_active = False
    db.commit()
    AuditLog.log_action("delete", "cost", cost_id)


def list_categories(db: Session) -> list[str]:
    rows = (
        db.query(Cost.category)
        .filter(Cost.is_active.is_(True))
        .distinct()
        .order_by(Cost.category)
        .all()
    )
    return [row[0] for row in rows]
