"""Lease lifecycle: draft -> pending_signature -> signed -> active -> terminated/expired.

All transitions live here so routers and the payment workflow share one
implementation. Functions mutate the ORM object in place; callers flush/commit.
"""

import calendar
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from propertyhub.core.config import get_settings
from propertyhub.models.enums import ActivationMethod, LeaseStatus
from propertyhub.models.lease import Lease
from propertyhub.services.errors import WorkflowError
from propertyhub.utils.formatting import format_currency

logger = logging.getLogger(__name__)

ACTIVATION_ELIGIBLE = (LeaseStatus.DRAFT, LeaseStatus.SIGNED)
CLOSED_STATUSES = (LeaseStatus.TERMINATED, LeaseStatus.EXPIRED)

BALANCE_ADD = "add"
BALANCE_SUBTRACT = "subtract"


@dataclass
class ActivationResult:
    """Outcome of trying to activate a lease after a verified payment."""

    activated: bool
    status: str
    message: str
    days_until_start: int = 0


def _set_status(
    lease: Lease,
    new_status: LeaseStatus,
    reason: Optional[str] = None,
    actor_id: Optional[UUID] = None,
) -> None:
    entry = {
        "from": lease.status.value if lease.status else None,
        "to": new_status.value,
        "changed_at": datetime.utcnow().isoformat(),
        "reason": reason,
        "changed_by": str(actor_id) if actor_id else None,
    }
    # Reassign so the JSON column is flagged dirty
    lease.status_history = [*(lease.status_history or []), entry]
    lease.status = new_status


def first_payment_amount(lease: Lease) -> int:
    """Security deposit + first month's rent."""
    return (lease.security_deposit_cents or 0) + lease.monthly_rent_cents


def due_date_in_month(year: int, month: int, day: int) -> date:
    """The payment due day in a month, clamped to the month's length."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day, last_day))


def add_months(value: date, months: int, day: Optional[int] = None) -> date:
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    return due_date_in_month(year, month, day or value.day)


def calculate_next_payment_due(start_date: date, payment_due_day: int, today: Optional[date] = None) -> date:
    """Next rent due date.

    Before the lease starts: the due day in the start month, or the month after
    if that day falls before the start. Once started: the due day this month,
    or next month when it has already passed.
    """
    today = today or date.today()
    due_day = payment_due_day or 1

    if start_date > today:
        due = due_date_in_month(start_date.year, start_date.month, due_day)
        if due < start_date:
            due = add_months(due, 1, due_day)
        return due

    due = due_date_in_month(today.year, today.month, due_day)
    if due <= today:
        due = add_months(due, 1, due_day)
    return due


def initialize_balances(lease: Lease) -> None:
    """Set first-payment requirement and opening balance on a new lease."""
    lease.first_payment_required_cents = first_payment_amount(lease)
    lease.balance_due_cents = lease.first_payment_required_cents
    lease.total_paid_cents = 0


def send_to_tenant(lease: Lease, actor_id: Optional[UUID] = None) -> None:
    if lease.status != LeaseStatus.DRAFT:
        raise WorkflowError("Only draft leases can be sent to the tenant")
    lease.sent_to_tenant_at = datetime.utcnow()
    _set_status(lease, LeaseStatus.PENDING_SIGNATURE, "Sent to tenant for signature", actor_id)


def sign_by_tenant(
    lease: Lease,
    signature_data: Optional[str] = None,
    ip_address: Optional[str] = None,
    actor_id: Optional[UUID] = None,
) -> None:
    if lease.status != LeaseStatus.PENDING_SIGNATURE:
        raise WorkflowError("Lease is not awaiting signature")
    lease.tenant_signed_at = datetime.utcnow()
    lease.tenant_signature_data = signature_data
    lease.tenant_signature_ip = ip_address
    lease.first_payment_required_cents = first_payment_amount(lease)
    _set_status(lease, LeaseStatus.SIGNED, "Signed by tenant", actor_id)


def apply_payment_to_balance(
    lease: Lease,
    amount_cents: int,
    operation: str = BALANCE_ADD,
    today: Optional[date] = None,
) -> None:
    """Apply (``add``) or reverse (``subtract``) a verified payment on the lease balance."""
    if operation == BALANCE_ADD:
        lease.total_paid_cents = (lease.total_paid_cents or 0) + amount_cents
        lease.balance_due_cents = max(0, (lease.balance_due_cents or 0) - amount_cents)
        lease.last_payment_date = today or date.today()
    elif operation == BALANCE_SUBTRACT:
        lease.balance_due_cents = (lease.balance_due_cents or 0) + amount_cents
        lease.total_paid_cents = max(0, (lease.total_paid_cents or 0) - amount_cents)
    else:
        raise WorkflowError(f"Unknown balance operation: {operation}")


def _activate(
    lease: Lease,
    method: ActivationMethod,
    reason: str,
    today: date,
    actor_id: Optional[UUID] = None,
) -> None:
    lease.activated_at = datetime.utcnow()
    lease.activation_method = method
    lease.activation_reason = reason
    lease.next_payment_due = calculate_next_payment_due(
        lease.start_date, lease.payment_due_day, today
    )
    _set_status(lease, LeaseStatus.ACTIVE, reason, actor_id)


def check_and_activate(
    lease: Lease,
    payment_date: Optional[date] = None,
    today: Optional[date] = None,
    actor_id: Optional[UUID] = None,
) -> Optional[ActivationResult]:
    """Activate a lease on its first verified payment.

    Returns ``None`` when the lease is not eligible (already active or closed).
    Leases starting more than the activation window away stay pending.
    """
    if lease.status not in ACTIVATION_ELIGIBLE:
        return None

    today = today or date.today()
    window = get_settings().lease_activation_window_days
    days_until_start = (lease.start_date - today).days

    if not lease.first_payment_made:
        lease.first_payment_made = True
        lease.first_payment_date = payment_date or today

    if days_until_start > window:
        logger.info(
            f"[LEASES] Lease {lease.id} paid but starts in {days_until_start} days; activation pending"
        )
        return ActivationResult(
            activated=False,
            status="pending",
            message=f"Lease will activate closer to the start date ({days_until_start} days away)",
            days_until_start=days_until_start,
        )

    _activate(lease, ActivationMethod.PAYMENT, "Activated by first verified payment", today, actor_id)
    logger.info(f"[LEASES] Lease {lease.id} activated by payment")
    return ActivationResult(
        activated=True,
        status="activated",
        message="Lease activated",
        days_until_start=max(0, days_until_start),
    )


def manual_activate(
    lease: Lease,
    reason: str,
    today: Optional[date] = None,
    actor_id: Optional[UUID] = None,
) -> None:
    if lease.status == LeaseStatus.ACTIVE:
        raise WorkflowError("Lease is already active")
    if lease.status in CLOSED_STATUSES:
        raise WorkflowError(f"Cannot activate a {lease.status.value} lease")
    _activate(lease, ActivationMethod.MANUAL, reason, today or date.today(), actor_id)


def manual_deactivate(lease: Lease, reason: str, actor_id: Optional[UUID] = None) -> None:
    if lease.status != LeaseStatus.ACTIVE:
        raise WorkflowError("Only active leases can be deactivated")
    lease.deactivated_at = datetime.utcnow()
    lease.deactivation_reason = reason
    lease.activated_at = None
    lease.activation_method = None
    lease.next_payment_due = None
    _set_status(lease, LeaseStatus.DRAFT, reason, actor_id)


def terminate(
    lease: Lease,
    reason: str,
    actor_id: Optional[UUID] = None,
) -> None:
    if lease.status in CLOSED_STATUSES:
        raise WorkflowError(f"Lease is already {lease.status.value}")
    lease.terminated_at = datetime.utcnow()
    lease.termination_reason = reason
    lease.next_payment_due = None
    _set_status(lease, LeaseStatus.TERMINATED, reason, actor_id)


def advance_next_payment_due(lease: Lease, today: Optional[date] = None) -> None:
    """Roll ``next_payment_due`` forward after a rent payment on an active lease."""
    if lease.status != LeaseStatus.ACTIVE:
        return
    today = today or date.today()
    if lease.next_payment_due and lease.next_payment_due > today:
        lease.next_payment_due = add_months(lease.next_payment_due, 1, lease.payment_due_day)
    else:
        lease.next_payment_due = calculate_next_payment_due(
            lease.start_date, lease.payment_due_day, today
        )


def next_action(lease: Lease, today: Optional[date] = None) -> dict[str, str]:
    """What should happen next on this lease, and who should do it."""
    today = today or date.today()
    upcoming_days = get_settings().upcoming_payment_days

    if lease.status == LeaseStatus.DRAFT:
        return {
            "action": "send_to_tenant",
            "message": "Send lease agreement to tenant for signature",
            "actor": "landlord",
        }
    if lease.status == LeaseStatus.PENDING_SIGNATURE:
        return {
            "action": "sign_lease",
            "message": "Review and sign the lease agreement",
            "actor": "tenant",
        }
    if lease.status == LeaseStatus.SIGNED:
        amount = format_currency(lease.first_payment_required_cents or first_payment_amount(lease))
        return {
            "action": "make_payment",
            "message": f"Make first payment of {amount} (Security deposit + First month rent)",
            "actor": "tenant",
        }
    if lease.status == LeaseStatus.ACTIVE:
        days_until_due = (lease.next_payment_due - today).days if lease.next_payment_due else 0
        if days_until_due <= upcoming_days:
            return {
                "action": "upcoming_payment",
                "message": f"Next rent payment due in {days_until_due} days",
                "actor": "tenant",
            }
        return {
            "action": "active_lease",
            "message": "Lease is active and in good standing",
            "actor": "both",
        }
    return {"action": "none", "message": "No action required", "actor": "none"}


def is_expiring(lease: Lease, today: Optional[date] = None, within_days: Optional[int] = None) -> bool:
    today = today or date.today()
    within_days = within_days if within_days is not None else get_settings().lease_expiring_days
    return lease.status == LeaseStatus.ACTIVE and today <= lease.end_date <= today + timedelta(days=within_days)


async def expire_ended_leases(db: AsyncSession, today: Optional[date] = None) -> list[Lease]:
    """Mark active leases whose end date has passed as expired."""
    today = today or date.today()
    result = await db.execute(
        select(Lease).where(Lease.status == LeaseStatus.ACTIVE, Lease.end_date < today)
    )
    leases = list(result.scalars().all())
    for lease in leases:
        lease.next_payment_due = None
        _set_status(lease, LeaseStatus.EXPIRED, "Lease end date passed")
    if leases:
        await db.flush()
        logger.info(f"[LEASES] Expired {len(leases)} lease(s)")
    return leases
