from sqlalchemy import Column, Integer, String, Numeric, Boolean, Date, DateTime, Text
from sqlalchemy.sql import func
from app.db.base import Base


class Cost(Base):
    """Operating expense. Deleting a cost only clears is_active."""
    __tablename__ = "costs"

    id = Column(Integer, primary_key=True, index=True)
    description = Column(String(255), nullable=False)
    category = Column(String(128), nullable=False)  # rent, salary, utilities...
    amount = Column(Numeric(10, 2), nullable=False)
    cost_date = Column(Date, nullable=False)
    notes = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
