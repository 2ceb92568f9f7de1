from pydantic import BaseModel, Field
from typing import Optional, Literal

NotificationType = Literal["expire_soon", "expired", "low_stock", "out_of_stock"]
NotificationPriority = Literal["low", "medium", "high", "urgent"]


class NotificationPayload(BaseModel):
    """Alert pushed over the realtime channel. Keys match the dashboard's wire format."""
    type: NotificationType
    title: str
    message: str
    medicineId: Optional[int] = None
    medicineName: Optional[str] = None
    quantity: Optional[int] = None
    expiryDate: Optional[str] = None
    priority: NotificationPriority
    timestamp: str


class NotificationStats(BaseModel):
    expired: int = 0
    expiringSoon: int = 0
    lowStock: int = 0
    outOfStock: int = 0
    connectedClients: int = Field(0, ge=0)
