from sqlalchemy import Column, Integer, String, ForeignKey, Numeric, Boolean, Date, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db.base import Base


class Medicine(Base):
    """
    Stocked medicine.

    quantity is only changed directly through the CRUD endpoints; sales
    decrement it and purchase-order receipts increment it.
    Stock/expiry alert buckets are derived from quantity and expiry_date,
    never stored (see app.services.stock_alerts).
    """
    __tablename__ = "medicines"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, unique=True)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True)
    barcode = Column(String(64), nullable=True, index=True)
    quantity = Column(Integer, nullable=False, default=0)
    unit = Column(String(32), nullable=True)  # tablet, bottle, strip...
    selling_price = Column(Numeric(10, 2), nullable=False, default=0)
    cost_price = Column(Numeric(10, 2), nullable=False, default=0)
    expiry_date = Column(Date, nullable=True)
    manufacturing_date = Column(Date, nullable=True)
    is_active = Column(Boolean, default=True)
    is_public = Column(Boolean, default=True)  # visible on the public catalogue
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    category = relationship("Category", backref="medicines")
