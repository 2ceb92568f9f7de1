"""Point-of-sale and sales reports. A new sale pushes fresh stock counts to connected clients."""
from datetime import date

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.schemas.sale import SaleCreate, SaleResponse, SalesReportRow
from app.services import notification_service, sale_service

router = APIRouter()


@router.get("", response_model=list[SaleResponse])
def list_sales(db: Session = Depends(get_db)):
    return sale_service.list_sales(db)


@router.post("", response_model=SaleResponse, status_code=201)
def create_sale(data: SaleCreate, background_tasks: BackgroundTasks, db: Session = Depends(get_db)):
    sale = sale_service.create_sale(db, data)
    background_tasks.add_task(notification_service.publish, [], notification_service.get_notification_stats(db))
    return sale


@router.get("/reports/daily", response_model=list[SalesReportRow])
def report_daily(
    start: date | None = Query(None),
    end: date | None = Query(None),
    db: Session = Depends(get_db),
):
    return sale_service.report_daily(db, start, end)


@router.get("/reports/monthly", response_model=list[SalesReportRow])
def report_monthly(year: int | None = Query(None), db: Session = Depends(get_db)):
    return sale_service.report_monthly(db, year)


@router.get("/{sale_id}", response_model=SaleResponse)
def get_sale(sale_id: int, db: Session = Depends(get_db)):
    return sale_service.get_sale(db, sale_id)
