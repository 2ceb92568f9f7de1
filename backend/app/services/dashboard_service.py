"""Dashboard summary: stock alert counts, sales totals, profit and best sellers."""
from collections import defaultdict
from datetime import date
from decimal import Decimal

from sqlalchemy.orm import Session, selectinload

from app.core.config import settings
from app.models.medicine import Medicine
from app.models.sale import Sale
from app.services.stock_alerts import classify_medicines

RECENT_SALES = 10
TOP_SELLERS = 5
MONTHS_OF_HISTORY = 6


def _months_back(today: date, months: int) -> date:
    year, month = today.year, today.month - months
    while month <= 0:
        month += 12
        year -= 1
    return date(year, month, 1)


def get_stats(db: Session, today: date | None = None) -> dict:
    """
    Profit per line is (sold unit price - current cost price) x quantity.
    """
    today = today or date.today()
    medicines = db.query(Medicine).filter(Medicine.is_active.is_(True)).all()
    by_id = {m.id: m for m in medicines}
    sales = (
        db.query(Sale)
        .options(selectinload(Sale.items))
        .order_by(Sale.created_at.desc(), Sale.id.desc())
        .all()
    )

    buckets = classify_medicines(
        medicines,
        low_stock_threshold=settings.LOW_STOCK_THRESHOLD,
        expiry_warning_days=settings.EXPIRY_WARNING_DAYS,
    )

    def sale_profit(sale: Sale) -> Decimal:
        profit = Decimal("0")
        for item in sale.items:
            medicine = by_id.get(item.medicine_id)
            if medicine:
                profit += (Decimal(str(item.unit_price)) - Decimal(str(medicine.cost_price))) * item.quantity
        return profit

    in_month = [s for s in sales if s.sale_date.year == today.year and s.sale_date.month == today.month]

    sold: dict[int, dict] = {}
    for sale in sales:
        for item in sale.items:
            medicine = by_id.get(item.medicine_id)
            if not medicine:
                continue
            entry = sold.setdefault(medicine.id, {
                "medicine_id": medicine.id,
                "name": medicine.name,
                "total_quantity": 0,
                "total_revenue": Decimal("0"),
            })
            entry["total_quantity"] += item.quantity
            entry["total_revenue"] += Decimal(str(item.total_price))
    top_selling = sorted(sold.values(), key=lambda e: e["total_quantity"], reverse=True)[:TOP_SELLERS]

    since = _months_back(today, MONTHS_OF_HISTORY)
    monthly: dict[str, Decimal] = defaultdict(Decimal)
    for sale in sales:
        if sale.sale_date >= since:
            monthly[sale.sale_date.strftime("%Y-%m")] += Decimal(str(sale.total_amount))

    return {
        "overview": {
            "total_medicines": len(medicines),
            "low_stock_count": len(buckets.low_stock),
            "out_of_stock_count": len(buckets.out_of_stock),
            "expired_count": len(buckets.expired),
            "expiring_soon_count": len(buckets.expiring_soon),
            "total_sales": len(sales),
            "total_sales_amount": sum((Decimal(str(s.total_amount)) for s in sales), Decimal("0")),
            "current_month_sales": len(in_month),
            "current_month_sales_amount": sum((Decimal(str(s.total_amount)) for s in in_month), Decimal("0")),
            "total_profit": sum((sale_profit(s) for s in sales), Decimal("0")),
            "current_month_profit": sum((sale_profit(s) for s in in_month), Decimal("0")),
        },
        "recent_sales": [
            {
                "id": s.id,
                "sale_number": s.sale_number,
                "sale_date": s.sale_date.isoformat(),
                "total_amount": s.total_amount,
                "profit": sale_profit(s),
            }
            for s in sales[:RECENT_SALES]
        ],
        "top_selling_medicines": top_selling,
        "monthly_sales": [{"month": m, "total": monthly[m]} for m in sorted(monthly)],
    }
