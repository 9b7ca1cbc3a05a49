"""In-app notification service."""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from propertyhub.models.enums import NotificationPriority, NotificationType
from propertyhub.models.notification import Notification

logger = logging.getLogger(__name__)


class NotificationService:
    """Creates and manages notifications for a user."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self,
        recipient_id: UUID,
        type: NotificationType,
        title: str,
        message: str,
        sender_id: Optional[UUID] = None,
        related_type: Optional[str] = None,
        related_id: Optional[UUID] = None,
        action_required: bool = False,
        action_url: Optional[str] = None,
        priority: NotificationPriority = NotificationPriority.MEDIUM,
    ) -> Notification:
        notification = Notification(
            recipient_id=recipient_id,
            sender_id=sender_id,
            type=type,
            title=title,
            message=message,
            related_type=related_type,
            related_id=related_id,
            action_required=action_required,
            action_url=action_url,
            priority=priority,
        )
        self.db.add(notification)
        await self.db.flush()
        return notification

    async def list_for(
        self,
        recipient_id: UUID,
        unread_only: bool = False,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Notification], int]:
        query = select(Notification).where(Notification.recipient_id == recipient_id)
        if unread_only:
            query = query.where(Notification.is_read.is_(False))
        total = (
            await self.db.execute(select(func.count()).select_from(query.subquery()))
        ).scalar() or 0
        result = await self.db.execute(
            query.order_by(Notification.created_at.desc()).offset(offset).limit(limit)
        )
        return list(result.scalars().all()), total

    async def unread_count(self, recipient_id: UUID) -> int:
        result = await self.db.execute(
            select(func.count(Notification.id)).where(
                Notification.recipient_id == recipient_id,
                Notification.is_read.is_(False),
            )
        )
        return result.scalar() or 0

    async def get(self, notification_id: UUID, recipient_id: UUID) -> Optional[Notification]:
        result = await self.db.execute(
            select(Notification).where(
                Notification.id == notification_id,
                Notification.recipient_id == recipient_id,
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    def mark_read(notification: Notification) -> None:
        if not notification.is_read:
            notification.is_read = True
            notification.read_at = datetime.utcnow()

    async def mark_all_read(self, recipient_id: UUID) -> int:
        result = await self.db.execute(
            update(Notification)
            .where(
                Notification.recipient_id == recipient_id,
                Notification.is_read.is_(False),
            )
            .values(is_read=True, read_at=datetime.utcnow())
        )
        return result.rowcount or 0

    async def delete(self, notification_id: UUID, recipient_id: UUID) -> bool:
        result = await self.db.execute(
            delete(Notification).where(
                Notification.id == notification_id,
                Notification.recipient_id == recipient_id,
            )
        )
        return bool(result.rowcount)

    # Convenience constructors for workflow events

    async def payment_recorded(self, payment, sender_id: Optional[UUID], amount_text: str):
        return await self.create(
            recipient_id=payment.tenant_id,
            sender_id=sender_id,
            type=NotificationType.PAYMENT_SUBMITTED,
            title="Payment Recorded",
            message=f"A payment of {amount_text} has been recorded for your account.",
            related_type="payment",
            related_id=payment.id,
        )

    async def payment_verified(self, payment, sender_id: UUID, message: str):
        return await self.create(
            recipient_id=payment.tenant_id,
            sender_id=sender_id,
            type=NotificationType.PAYMENT_VERIFIED,
            title="Payment Verified",
            message=message,
            related_type="payment",
            related_id=payment.id,
        )

    async def payment_disputed(self, payment, sender_id: UUID, notes: Optional[str]):
        return await self.create(
            recipient_id=payment.tenant_id,
            sender_id=sender_id,
            type=NotificationType.PAYMENT_DISPUTED,
            title="Payment Disputed",
            message=f"Payment {payment.receipt_number} has been disputed. {notes or ''}".strip(),
            related_type="payment",
            related_id=payment.id,
            action_required=True,
            priority=NotificationPriority.HIGH,
        )

    async def lease_event(
        self,
        lease,
        recipient_id: UUID,
        type: NotificationType,
        title: str,
        message: str,
        sender_id: Optional[UUID] = None,
        action_required: bool = False,
    ):
        return await self.create(
            recipient_id=recipient_id,
            sender_id=sender_id,
            type=type,
            title=title,
            message=message,
            related_type="lease",
            related_id=lease.id,
            action_required=action_required,
        )

    async def invoice_event(
        self,
        invoice,
        recipient_id: UUID,
        type: NotificationType,
        title: str,
        message: str,
        sender_id: Optional[UUID] = None,
        priority: NotificationPriority = NotificationPriority.MEDIUM,
    ):
        return await self.create(
            recipient_id=recipient_id,
            sender_id=sender_id,
            type=type,
            title=title,
            message=message,
            related_type="invoice",
            related_id=invoice.id,
            priority=priority,
        )

    async def maintenance_event(
        self,
        request,
        recipient_id: UUID,
        type: NotificationType,
        title: str,
        message: str,
        sender_id: Optional[UUID] = None,
    ):
        priority = NotificationPriority.HIGH if request.is_emergency else NotificationPriority.MEDIUM
        return await self.create(
            recipient_id=recipient_id,
            sender_id=sender_id,
            type=type,
            title=title,
            message=message,
            related_type="maintenance",
            related_id=request.id,
            priority=priority,
        )
