"""Notification schemas."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from propertyhub.models.enums import NotificationPriority, NotificationType
from propertyhub.schemas.base import BaseSchema, IDMixin


class NotificationResponse(BaseSchema, IDMixin):
    sender_id: Optional[UUID] = None
    type: NotificationType
    title: str
    message: str
    related_type: Optional[str] = None
    related_id: Optional[UUID] = None
    action_required: bool
    action_url: Optional[str] = None
    priority: NotificationPriority
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: datetime


class NotificationListResponse(BaseSchema):
    notifications: list[NotificationResponse]
    total: int
    unread_count: int


class NotificationUpdate(BaseSchema):
    is_read: bool = True


class UnreadCountResponse(BaseSchema):
    unread_count: int
