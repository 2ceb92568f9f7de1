from pydantic import BaseModel, Field
from typing import Optional, List, Literal
from datetime import date, datetime
from decimal import Decimal

PurchaseOrderStatus = Literal["draft", "ordered", "received", "cancelled"]


class PurchaseOrderItemCreate(BaseModel):
    medicine_id: int
    quantity: int = Field(..., ge=1)
    unit_price: Decimal = Field(Decimal("0"), ge=0)


class PurchaseOrderCreate(BaseModel):
    supplier_id: int
    order_date: date
    expected_delivery_date: Optional[date] = None
    status: Literal["draft", "ordered"] = "draft"
    notes: Optional[str] = None
    items: List[PurchaseOrderItemCreate] = Field(..., min_length=1)


class PurchaseOrderStatusUpdate(BaseModel):
    status: PurchaseOrderStatus


class ReceiveItem(BaseModel):
    purchase_order_item_id: int
    quantity_received: int = Field(..., ge=1)
    expiry_date: Optional[date] = None
    cost_price: Optional[Decimal] = Field(None, ge=0)
    selling_price: Optional[Decimal] = Field(None, ge=0)


class PurchaseOrderReceive(BaseModel):
    received_date: date
    items: List[ReceiveItem] = Field(..., min_length=1)


class PurchaseOrderItemResponse(BaseModel):
    id: int
    medicine_id: int
    quantity: int
    quantity_received: int = 0
    unit_price: Decimal
    total_price: Decimal

    class Config:
        from_attributes = True


class PurchaseOrderResponse(BaseModel):
    id: int
    order_number: str
    supplier_id: int
    status: str
    order_date: date
    expected_delivery_date: Optional[date] = None
    received_date: Optional[date] = None
    notes: Optional[str] = None
    total_amount: Decimal
    items: List[PurchaseOrderItemResponse] = []
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PurchaseOrderPage(BaseModel):
    purchase_orders: List[PurchaseOrderResponse]
    total: int
    page: int
    limit: int
