"""Point-of-sale: sales decrement medicine stock in the same transaction as the sale rows."""
from collections import defaultdict
from datetime import date
from decimal import Decimal

from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from app.core.audit import AuditLog
from app.core.exceptions import BusinessError
from app.models.medicine import Medicine
from app.models.sale import Sale, SaleItem
from app.schemas.sale import SaleCreate
from app.services.medicine_service import adjust_quantity
from app.services.numbering import generate_number

CENTS = Decimal("0.01")


def _money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENTS)


def create_sale(db: Session, data: SaleCreate) -> Sale:
    """
    Record a sale and take the sold quantities out of stock.

    Raises 400 (nothing persisted) when a medicine is unknown or stock
    would go negative.
    """
    sale_number = generate_number(db, "S", Sale.sale_number, on=data.sale_date)
    sale = Sale(
        sale_number=sale_number,
        sale_date=data.sale_date,
        customer_name=data.customer_name,
        customer_phone=data.customer_phone,
        discount=_money(data.discount),
        tax=_money(data.tax),
    )

    try:
        subtotal = Decimal("0")
        for line in data.items:
            medicine = db.query(Medicine).filter(Medicine.id == line.medicine_id).first()
            if not medicine:
                raise BusinessError.bad_request(f"Medicine {line.medicine_id} does not exist")
            unit_price = _money(line.unit_price if line.unit_price is not None else medicine.selling_price)
            total_price = _money(unit_price * line.quantity)
            adjust_quantity(db, medicine, -line.quantity, "sale", sale_number)
            sale.items.append(SaleItem(
                medicine_id=medicine.id,
                quantity=line.quantity,
                unit_price=unit_price,
                total_price=total_price,
            ))
            subtotal += total_price

        total = subtotal - sale.discount + sale.tax
        if total < 0:
            raise BusinessError.bad_request("Discount exceeds sale total")
        sale.total_amount = _money(total)

        db.add(sale)
        db.commit()
    except HTTPException:
        db.rollback()
        raise

    db.refresh(sale)
    AuditLog.log_action("create", "sale", sale.id, changes={"sale_number": sale.sale_number, "total": sale.total_amount})
    return sale


def list_sales(db: Session) -> list[Sale]:
    return (
        db.query(Sale)
        .options(selectinload(Sale.items))
        .order_by(Sale.created_at.desc(), Sale.id.desc())
        .all()
    )


def get_sale(db: Session, sale_id: int) -> Sale:
    sale = db.query(Sale).filter(Sale.id == sale_id).first()
    if not sale:
        raise BusinessError.not_found("Sale", sale_id)
    return sale


def report_daily(db: Session, start: date | None = None, end: date | None = None) -> list[dict]:
    """Sales totals per day, oldest first."""
    q = db.query(
        Sale.sale_date.label("day"),
        func.sum(Sale.total_amount).label("total"),
        func.count(Sale.id).label("count"),
    )
    if start:
        q = q.filter(Sale.sale_date >= start)
    if end:
        q = q.filter(Sale.sale_date <= end)
    rows = q.group_by(Sale.sale_date).order_by(Sale.sale_date).all()
    return [
        {"period": row.day.isoformat(), "total": _money(row.total or 0), "count": row.count}
        for row in rows
    ]


def report_monthly(db: Session, year: int | None = None) -> list[dict]:
    """Sales totals per calendar month (YYYY-MM), oldest first."""
    q = db.query(Sale.sale_date, Sale.total_amount)
    if year:
        q = q.filter(Sale.sale_date >= date(year, 1, 1), Sale.sale_date <= date(year, 12, 31))

    totals: dict[str, Decimal] = defaultdict(Decimal)
    counts: dict[str, int] = defaultdict(int)
    for sale_date, amount in q.all():
        month = sale_date.strftime("%Y-%m")
        totals[month] += Decimal(str(amount or 0))
        counts[month] += 1

    return [
        {"period": month, "total": _money(totals[month]), "count": counts[month]}
        for month in sorted(totals)
    ]
