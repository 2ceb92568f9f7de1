"""Medicines CRUD with search, pagination and barcode lookup."""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.schemas.medicine import MedicineCreate, MedicineUpdate, MedicineResponse, MedicinePage
from app.services import medicine_service

router = APIRouter()


@router.get("", response_model=MedicinePage)
def list_medicines(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=500),
    search: str | None = Query(None),
    category_id: int | None = Query(None),
    is_active: bool | None = Query(None),
    db: Session = Depends(get_db),
):
    medicines, total = medicine_service.list_medicines(db, page, limit, search, category_id, is_active)
    return {"medicines": medicines, "total": total, "page": page, "limit": limit}


@router.post("", response_model=MedicineResponse, status_code=201)
def create_medicine(data: MedicineCreate, db: Session = Depends(get_db)):
    return medicine_service.create_medicine(db, data)


@router.get("/barcode/{barcode}", response_model=MedicineResponse)
def get_by_barcode(barcode: str, db: Session = Depends(get_db)):
    return medicine_service.get_by_barcode(db, barcode)


@router.get("/{medicine_id}", response_model=MedicineResponse)
def get_medicine(medicine_id: int, db: Session = Depends(get_db)):
    return medicine_service.get_medicine(db, medicine_id)


@router.patch("/{medicine_id}", response_model=MedicineResponse)
def update_medicine(medicine_id: int, data: MedicineUpdate, db: Session = Depends(get_db)):
    return medicine_service.update_medicine(db, medicine_id, data)


@router.delete("/{medicine_id}")
def delete_medicine(medicine_id: int, db: Session = Depends(get_db)):
    medicine_service.delete_medicine(db, medicine_id)
    return {"message": "Medicine deleted", "id": medicine_id}
