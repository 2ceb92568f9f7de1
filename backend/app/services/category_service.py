"""Category CRUD."""
from sqlalchemy.orm import Session

from app.core.audit import AuditLog
from app.core.exceptions import BusinessError
from app.models.category import Category
from app.schemas.category import CategoryCreate, CategoryUpdate


def list_categories(db: Session, include_inactive: bool = False) -> list[Category]:
    q = db.query(Category)
    if not include_inactive:
        q = q.filter(Category.is_active.is_(True))
    return q.order_by(Category.name).all()


def get_category(db: Session, category_id: int) -> Category:
    category = db.query(Category).filter(Category.id == category_id).first()
    if not category:
        raise BusinessError.not_found("Category", category_id)
    return category


def _ensure_unique_name(db: Session, name: str, exclude_id: int | None = None):
    q = db.query(Category).filter(Category.name.ilike(name))
    if exclude_id is not None:
        q = q.filter(Category.id != exclude_id)
    if q.first():
        raise BusinessError.conflict("Category with this name already exists")


def create_category(db: Session, data: CategoryCreate) -> Category:
    name = data.name.strip()
    _ensure_unique_name(db, name)
    category = Category(name=name, description=data.description, is_active=data.is_active)
    db.add(category)
    db.commit()
    db.refresh(category)
    AuditLog.log_action("create", "category", category.id, changes={"name": category.name})
    return category


def update_category(db: Session, category_id: int, data: CategoryUpdate) -> Category:
    category = get_category(db, category_id)
    changes = data.model_dump(exclude_unset=True)
    if "name" in changes and changes["name"] is not None:
        changes["name"] = changes["name"].strip()
        _ensure_unique_name(db, changes["name"], exclude_id=category.id)
    for key, value in changes.items():
        setattr(category, key, value)
    db.commit()
    db.refresh(category)
    AuditLog.log_action("update", "category", category.id, changes=changes)
    return category


def delete_category(db: Session, category_id: int) -> None:
    category = get_category(db, category_id)
    db.delete(category)
    db.commit()
    AuditLog.log_action("delete", "category", category_id)
