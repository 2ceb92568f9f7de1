"""Operating costs."""
from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.schemas.cost import CostCreate, CostUpdate, CostResponse, CostPage
from app.services import cost_service

router = APIRouter()


@router.get("", response_model=CostPage)
def list_costs(
    search: str | None = Query(None),
    category: str | None = Query(None),
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=500),
    db: Session = Depends(get_db),
):
    return cost_service.list_costs(db, search, category, start_date, end_date, page, limit)


@router.get("/categories", response_model=list[str])
def list_cost_categories(db: Session = Depends(get_db)):
    return cost_service.list_categories(db)


@router.post("", response_model=CostResponse, status_code=201)
def create_cost(data: CostCreate, db: Session = Depends(get_db)):
    return cost_service.create_cost(db, data)


@router.get("/{cost_id}", response_model=CostResponse)
def get_cost(cost_id: int, db: Session = Depends(get_db)):
    return cost_service.get_cost(db, cost_id)


@router.patch("/{cost_id}", response_model=CostResponse)
def update_cost(cost_id: int, data: CostUpdate, db: Session = Depends(get_db)):
    return cost_service.update_cost(db, cost_id, data)


@router.delete("/{cost_id}")
def delete_cost(cost_id: int, db: Session = Depends(get_db)):
    cost_service.delete_cost(db, cost_id)
    return {"message": "Cost deleted", "id": cost_id}
