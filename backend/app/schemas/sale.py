from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import date, datetime
from decimal import Decimal


class SaleItemCreate(BaseModel):
    medicine_id: int
    quantity: int = Field(..., ge=1)
    unit_price: Optional[Decimal] = Field(None, ge=0)  # defaults to the medicine's selling price


class SaleCreate(BaseModel):
    sale_date: date
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    discount: Decimal = Field(Decimal("0"), ge=0)
    tax: Decimal = Field(Decimal("0"), ge=0)
    items: List[SaleItemCreate] = Field(..., min_length=1)


class SaleItemResponse(BaseModel):
    id: int
    medicine_id: int
    quantity: int
    unit_price: Decimal
    total_price: Decimal

    class Config:
        from_attributes = True


class SaleResponse(BaseModel):
    id: int
    sale_number: str
    sale_date: date
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    discount: Decimal
    tax: Decimal
    total_amount: Decimal
    items: List[SaleItemResponse] = []
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SalesReportRow(BaseModel):
    period: str  # YYYY-MM-DD or YYYY-MM
    total: Decimal
    count: int
