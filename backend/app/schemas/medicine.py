from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import date, datetime
from decimal import Decimal


class MedicineCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    category_id: Optional[int] = None
    barcode: Optional[str] = None
    quantity: int = Field(0, ge=0)
    unit: Optional[str] = None
    selling_price: Decimal = Field(Decimal("0"), ge=0)
    cost_price: Decimal = Field(Decimal("0"), ge=0)
    expiry_date: Optional[date] = None
    manufacturing_date: Optional[date] = None
    is_active: bool = True
    is_public: bool = True


class MedicineUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    category_id: Optional[int] = None
    barcode: Optional[str] = None
    quantity: Optional[int] = Field(None, ge=0)
    unit: Optional[str] = None
    selling_price: Optional[Decimal] = Field(None, ge=0)
    cost_price: Optional[Decimal] = Field(None, ge=0)
    expiry_date: Optional[date] = None
    manufacturing_date: Optional[date] = None
    is_active: Optional[bool] = None
    is_public: Optional[bool] = None


class MedicineResponse(BaseModel):
    id: int
    name: str
    category_id: Optional[int] = None
    barcode: Optional[str] = None
    quantity: int
    unit: Optional[str] = None
    selling_price: Decimal
    cost_price: Decimal
    expiry_date: Optional[date] = None
    manufacturing_date: Optional[date] = None
    is_active: bool = True
    is_public: bool = True
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MedicinePage(BaseModel):
    medicines: List[MedicineResponse]
    total: int
    page: int
    limit: int
