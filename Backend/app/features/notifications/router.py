from typing import Annotated, List
from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException, status
from app.features.auth.deps import get_current_user
from app.features.auth.models import User
from app.features.notifications.schemas import NotificationResponse
from app.features.notifications.service import NotificationService

router = APIRouter()


@router.get("", response_model=List[NotificationResponse])
async def list_notifications(
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[NotificationService, Depends()],
    unread_only: bool = False
):
    return await service.list_notifications(current_user.id, unread_only=unread_only)


@router.post("/read-all")
async def mark_all_notifications_read(
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[NotificationService, Depends()]
):
    updated = await service.mark_all_read(current_user.id)
    return {"updated": updated}


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read(
    notification_id: UUID,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[NotificationService, Depends()]
):
    notification = await service.mark_read(current_user.id, notification_id)
    if not notification:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    return notification
