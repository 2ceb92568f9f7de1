"""Purchase orders: create, track status, receive goods into stock."""
from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.schemas.purchase_order import (
    PurchaseOrderCreate,
    PurchaseOrderPage,
    PurchaseOrderReceive,
    PurchaseOrderResponse,
    PurchaseOrderStatus,
    PurchaseOrderStatusUpdate,
)
from app.services import notification_service, purchase_order_service

router = APIRouter()


@router.get("", response_model=PurchaseOrderPage)
def list_purchase_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=500),
    status: PurchaseOrderStatus | None = Query(None),
    search: str | None = Query(None),
    db: Session = Depends(get_db),
):
    rows, total = purchase_order_service.list_purchase_orders(db, page, limit, status, search)
    return {"purchase_orders": rows, "total": total, "page": page, "limit": limit}


@router.post("", response_model=PurchaseOrderResponse, status_code=201)
def create_purchase_order(data: PurchaseOrderCreate, db: Session = Depends(get_db)):
    return purchase_order_service.create_purchase_order(db, data)


@router.get("/{po_id}", response_model=PurchaseOrderResponse)
def get_purchase_order(po_id: int, db: Session = Depends(get_db)):
    return purchase_order_service.get_purchase_order(db, po_id)


@router.patch("/{po_id}/status", response_model=PurchaseOrderResponse)
def update_status(po_id: int, data: PurchaseOrderStatusUpdate, db: Session = Depends(get_db)):
    return purchase_order_service.update_status(db, po_id, data.status)


@router.post("/{po_id}/receive", response_model=PurchaseOrderResponse)
def receive_purchase_order(
    po_id: int,
    data: PurchaseOrderReceive,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    po = purchase_order_service.receive_purchase_order(db, po_id, data)
    background_tasks.add_task(notification_service.publish, [], notification_service.get_notification_stats(db))
    return po
