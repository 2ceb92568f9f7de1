from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import date, datetime
from decimal import Decimal


class CostCreate(BaseModel):
    description: str = Field(..., min_length=1, max_length=255)
    category: str = Field(..., min_length=1, max_length=128)
    amount: Decimal = Field(..., ge=0)
    cost_date: date
    notes: Optional[str] = None


class CostUpdate(BaseModel):
    description: Optional[str] = Field(None, min_length=1, max_length=255)
    category: Optional[str] = Field(None, min_length=1, max_length=128)
    amount: Optional[Decimal] = Field(None, ge=0)
    cost_date: Optional[date] = None
    notes: Optional[str] = None


class CostResponse(BaseModel):
    id: int
    description: str
    category: str
    amount: Decimal
    cost_date: date
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CostPage(BaseModel):
    costs: List[CostResponse]
    total: int
    page: int
    limit: int
    total_amount: Decimal
