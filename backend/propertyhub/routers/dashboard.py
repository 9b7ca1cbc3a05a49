"""Dashboard router - role-aware headline numbers for the home screen."""

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from propertyhub.core.access import scope_properties, scope_query, scope_tenants
from propertyhub.core.database import get_db
from propertyhub.core.security import require_registered_user
from propertyhub.models.enums import (
    InvoiceStatus,
    LeaseStatus,
    PaymentStatus,
    UserRole,
)
from propertyhub.models.invoice import Invoice
from propertyhub.models.lease import Lease
from propertyhub.models.maintenance import MaintenanceRequest
from propertyhub.models.payment import Payment
from propertyhub.models.property import Property
from propertyhub.models.user import User
from propertyhub.schemas.report import DashboardStats, RecentPayment
from propertyhub.services import maintenance_workflow, payment_workflow
from propertyhub.services.notifications import NotificationService
from propertyhub.utils.formatting import format_currency

router = APIRouter(prefix="/dashboard", tags=["dashboard"])

UNPAID_INVOICE_STATUSES = (InvoiceStatus.SENT, InvoiceStatus.VIEWED, InvoiceStatus.OVERDUE)


async def count_rows(db: AsyncSession, query: Select) -> int:
    result = await db.execute(select(func.count()).select_from(query.subquery()))
    return result.scalar() or 0


async def settled_revenue(db: AsyncSession, user: User, start: date, end: date) -> int:
    """Sum of completed/verified payments dated in ``[start, end)``."""
    query = scope_query(
        select(func.coalesce(func.sum(Payment.amount_cents), 0)).where(
            Payment.status.in_(payment_workflow.SETTLED_STATUSES),
            Payment.payment_date >= start,
            Payment.payment_date < end,
        ),
        user,
        Payment.tenant_id,
        Payment.property_id,
    )
    return int((await db.execute(query)).scalar() or 0)


@router.get("/stats", response_model=DashboardStats)
async def get_dashboard_stats(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_registered_user),
):
    """Headline counts scoped to what the current user can see.

    Tenants additionally get their balance due and next rent date.
    """
    today = date.today()
    month_start = today.replace(day=1)
    next_month = date(today.year + 1, 1, 1) if today.month == 12 else date(today.year, today.month + 1, 1)

    properties = scope_properties(select(Property.id, Property.is_available), current_user)
    available = properties.where(Property.is_available.is_(True))
    leases = scope_query(select(Lease.id), current_user, Lease.tenant_id, Lease.property_id)
    payments = scope_query(select(Payment.id), current_user, Payment.tenant_id, Payment.property_id)
    maintenance = scope_query(
        select(MaintenanceRequest.id),
        current_user,
        MaintenanceRequest.tenant_id,
        MaintenanceRequest.property_id,
    ).where(MaintenanceRequest.status.not_in(maintenance_workflow.CLOSED_STATUSES))

    outstanding = scope_query(
        select(func.coalesce(func.sum(Invoice.total_cents - Invoice.paid_cents), 0)).where(
            Invoice.status.in_(UNPAID_INVOICE_STATUSES)
        ),
        current_user,
        Invoice.tenant_id,
        Invoice.property_id,
    )

    stats = DashboardStats(
        role=current_user.role.value,
        total_properties=await count_rows(db, properties),
        available_properties=await count_rows(db, available),
        active_leases=await count_rows(db, leases.where(Lease.status == LeaseStatus.ACTIVE)),
        pending_payments=await count_rows(db, payments.where(Payment.status == PaymentStatus.PENDING)),
        overdue_payments=await count_rows(db, payments.where(payment_workflow.overdue_clause(today))),
        open_maintenance=await count_rows(db, maintenance),
        emergency_maintenance=await count_rows(
            db, maintenance.where(MaintenanceRequest.is_emergency.is_(True))
        ),
        unread_notifications=await NotificationService(db).unread_count(current_user.id),
        revenue_this_month_cents=await settled_revenue(db, current_user, month_start, next_month),
        outstanding_invoices_cents=int((await db.execute(outstanding)).scalar() or 0),
    )

    if current_user.role == UserRole.TENANT:
        row = (
            await db.execute(
                select(
                    func.coalesce(func.sum(Lease.balance_due_cents), 0),
                    func.min(Lease.next_payment_due),
                ).where(Lease.tenant_id == current_user.id, Lease.status == LeaseStatus.ACTIVE)
            )
        ).one()
        stats.balance_due_cents = int(row[0] or 0)
        stats.next_payment_due = row[1]
    else:
        stats.total_tenants = await count_rows(db, scope_tenants(select(User.id), current_user))

    return stats


@router.get("/recent-payments", response_model=list[RecentPayment])
async def get_recent_payments(
    limit: int = Query(5, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_registered_user),
):
    """Most recent payments in scope."""
    query = scope_query(
        select(Payment, User, Property)
        .join(User, Payment.tenant_id == User.id)
        .join(Property, Payment.property_id == Property.id),
        current_user,
        Payment.tenant_id,
        Payment.property_id,
    ).order_by(Payment.payment_date.desc(), Payment.created_at.desc()).limit(limit)

    result = await db.execute(query)
    return [
        RecentPayment(
            id=payment.id,
            receipt_number=payment.receipt_number,
            tenant_name=tenant.name,
            property_name=prop.name,
            amount_cents=payment.amount_cents,
            amount_display=format_currency(payment.amount_cents),
            payment_date=payment.payment_date,
            status=payment.status.value,
        )
        for payment, tenant, prop in result.all()
    ]
