from typing import Optional
from uuid import UUID
from datetime import datetime
from pydantic import BaseModel


class NotificationResponse(BaseModel):
    id: UUID
    budget_id: Optional[UUID] = None
    title: str
    message: str
    type: str  # "budget_alert", "reminder", "info"
    is_read: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
