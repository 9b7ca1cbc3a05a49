"""Notifications router."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from propertyhub.core.database import get_db
from propertyhub.core.security import require_registered_user
from propertyhub.models.user import User
from propertyhub.schemas.base import MessageResponse
from propertyhub.schemas.notification import (
    NotificationListResponse,
    NotificationResponse,
    NotificationUpdate,
    UnreadCountResponse,
)
from propertyhub.services.notifications import NotificationService

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    unread_only: bool = False,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_registered_user),
):
    """List the current user's notifications, newest first."""
    service = NotificationService(db)
    notifications, total = await service.list_for(current_user.id, unread_only, limit, offset)
    return NotificationListResponse(
        notifications=[NotificationResponse.model_validate(n) for n in notifications],
        total=total,
        unread_count=await service.unread_count(current_user.id),
    )


@router.get("/unread-count", response_model=UnreadCountResponse)
async def get_unread_count(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_registered_user),
):
    return UnreadCountResponse(unread_count=await NotificationService(db).unread_count(current_user.id))


@router.post("/mark-all-read", response_model=MessageResponse)
async def mark_all_read(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_registered_user),
):
    count = await NotificationService(db).mark_all_read(current_user.id)
    await db.commit()
    return MessageResponse(message=f"Marked {count} notification(s) as read")


@router.patch("/{notification_id}", response_model=NotificationResponse)
async def update_notification(
    notification_id: UUID,
    data: NotificationUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_registered_user),
):
    """Mark a notification read or unread."""
    notification = await NotificationService(db).get(notification_id, current_user.id)
    if not notification:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")

    if data.is_read:
        NotificationService.mark_read(notification)
    else:
        notification.is_read = False
        notification.read_at = None
    await db.commit()
    await db.refresh(notification)
    return NotificationResponse.model_validate(notification)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notification(
    notification_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_registered_user),
):
    if not await NotificationService(db).delete(notification_id, current_user.id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    await db.commit()
