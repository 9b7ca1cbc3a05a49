"""Audit logging service."""

from typing import Any, Optional
from uuid import UUID

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from propertyhub.models.audit import AuditLog
from propertyhub.models.enums import AuditAction


def client_ip(request: Optional[Request]) -> Optional[str]:
    """Best-effort client IP (first X-Forwarded-For hop, else socket peer)."""
    if request is None:
        return None
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


class AuditService:
    """Service for creating audit log entries."""

    def __init__(self, db: AsyncSession, request: Optional[Request] = None):
        self.db = db
        self.request = request

    async def log(
        self,
        action: AuditAction,
        resource_type: str,
        resource_id: UUID,
        user_id: Optional[UUID] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> AuditLog:
        """Create an audit log entry."""
        entry = AuditLog(
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            user_id=user_id,
            details=details or {},
            ip_address=client_ip(self.request),
            user_agent=self.request.headers.get("user-agent") if self.request else None,
        )
        self.db.add(entry)
        await self.db.flush()
        return entry

    async def log_lease(
        self,
        action: AuditAction,
        lease_id: UUID,
        user_id: Optional[UUID],
        from_status: Optional[str] = None,
        to_status: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> AuditLog:
        """Log a lease status transition."""
        return await self.log(
            action=action,
            resource_type="lease",
            resource_id=lease_id,
            user_id=user_id,
            details={"from": from_status, "to": to_status, "reason": reason},
        )

    async def log_payment(
        self,
        action: AuditAction,
        payment_id: UUID,
        user_id: Optional[UUID],
        receipt_number: str,
        amount_cents: int,
        notes: Optional[str] = None,
    ) -> AuditLog:
        """Log a payment event."""
        return await self.log(
            action=action,
            resource_type="payment",
            resource_id=payment_id,
            user_id=user_id,
            details={
                "receipt_number": receipt_number,
                "amount_cents": amount_cents,
                "notes": notes,
            },
        )

    async def log_invoice(
        self,
        action: AuditAction,
        invoice_id: UUID,
        user_id: Optional[UUID],
        invoice_number: str,
        notes: Optional[str] = None,
    ) -> AuditLog:
        """Log an invoice event."""
        return await self.log(
            action=action,
            resource_type="invoice",
            resource_id=invoice_id,
            user_id=user_id,
            details={"invoice_number": invoice_number, "notes": notes},
        )

    async def log_maintenance_status(
        self,
        request_id: UUID,
        user_id: Optional[UUID],
        from_status: str,
        to_status: str,
    ) -> AuditLog:
        """Log a maintenance status change."""
        return await self.log(
            action=AuditAction.MAINTENANCE_STATUS_CHANGED,
            resource_type="maintenance",
            resource_id=request_id,
            user_id=user_id,
            details={"from": from_status, "to": to_status},
        )
