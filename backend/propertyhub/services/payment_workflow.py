"""Payment lifecycle: recording, verification, dispute, approval and cancellation.

Verification is the only step that moves money on the lease balance, and the
first verified payment is what activates a draft/signed lease.
"""

import logging
import random
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from propertyhub.core.config import get_settings
from propertyhub.models.enums import ApprovalStatus, LeaseStatus, PaymentStatus
from propertyhub.models.lease import Lease
from propertyhub.models.payment import Payment
from propertyhub.services import lease_workflow
from propertyhub.services.errors import WorkflowError

logger = logging.getLogger(__name__)

RECEIPT_ATTEMPTS = 5
INACTIVE_STATUSES = (PaymentStatus.CANCELLED, PaymentStatus.FAILED)
SETTLED_STATUSES = (PaymentStatus.COMPLETED, PaymentStatus.VERIFIED)
VERIFIABLE_STATUSES = (
    PaymentStatus.PENDING,
    PaymentStatus.COMPLETED,
    PaymentStatus.VERIFIED,
    PaymentStatus.DISPUTED,
)


@dataclass
class VerificationResult:
    """What happened to the payment's lease as a side effect of verify/dispute."""

    payment_status: str
    lease_status: Optional[str] = None
    activation: Optional[str] = None
    message: str = ""


def validate_amount(amount_cents: int) -> None:
    maximum = get_settings().payment_max_cents
    if amount_cents <= 0:
        raise WorkflowError("Payment amount must be greater than zero")
    if amount_cents > maximum:
        raise WorkflowError("Payment amount exceeds the allowed maximum")


def generate_receipt_number(today: Optional[date] = None) -> str:
    """``PAY-YYYYMMDD-NNNN``"""
    today = today or date.today()
    return f"PAY-{today:%Y%m%d}-{random.randint(0, 9999):04d}"


async def unique_receipt_number(db: AsyncSession, today: Optional[date] = None) -> str:
    for _ in range(RECEIPT_ATTEMPTS):
        candidate = generate_receipt_number(today)
        exists = await db.execute(
            select(Payment.id).where(Payment.receipt_number == candidate)
        )
        if exists.scalar_one_or_none() is None:
            return candidate
    raise WorkflowError("Could not allocate a unique receipt number")


async def find_duplicate(
    db: AsyncSession,
    tenant_id: UUID,
    amount_cents: int,
    payment_date: date,
    reference_number: Optional[str],
) -> Optional[Payment]:
    """Same tenant, amount, date and reference that is not cancelled/failed."""
    query = select(Payment).where(
        Payment.tenant_id == tenant_id,
        Payment.amount_cents == amount_cents,
        Payment.payment_date == payment_date,
        Payment.status.not_in(INACTIVE_STATUSES),
    )
    if reference_number:
        query = query.where(Payment.reference_number == reference_number)
    else:
        query = query.where(Payment.reference_number.is_(None))
    result = await db.execute(query.limit(1))
    return result.scalar_one_or_none()


async def count_other_verified(db: AsyncSession, lease_id: UUID, exclude_id: UUID) -> int:
    result = await db.execute(
        select(func.count(Payment.id)).where(
            Payment.lease_id == lease_id,
            Payment.status == PaymentStatus.VERIFIED,
            Payment.id != exclude_id,
        )
    )
    return result.scalar() or 0


def _ensure_modifiable(payment: Payment) -> None:
    if payment.status == PaymentStatus.CANCELLED:
        raise WorkflowError("Cannot modify a cancelled payment")


def verify(
    payment: Payment,
    lease: Optional[Lease],
    actor_id: UUID,
    notes: Optional[str] = None,
    today: Optional[date] = None,
) -> VerificationResult:
    """Mark a payment verified, credit the lease and try to activate it.

    A payment rolls the lease's next due date forward at most once, even if it
    is disputed and verified again.
    """
    if payment.status not in VERIFIABLE_STATUSES:
        raise WorkflowError(f"Cannot verify a {payment.status.value} payment")
    today = today or date.today()
    was_verified = payment.status == PaymentStatus.VERIFIED

    payment.status = PaymentStatus.VERIFIED
    payment.verified_by_id = actor_id
    payment.verified_at = datetime.utcnow()
    payment.verification_notes = notes

    result = VerificationResult(payment_status=payment.status.value, message="Payment verified")
    if lease is None:
        return result

    if not was_verified:
        lease_workflow.apply_payment_to_balance(
            lease, payment.amount_cents, lease_workflow.BALANCE_ADD, today
        )

    activation = lease_workflow.check_and_activate(lease, payment.payment_date, today, actor_id)
    if activation is not None:
        result.activation = activation.status
        result.message = f"Payment verified. {activation.message}"
        payment.schedule_applied = activation.activated
    elif not payment.schedule_applied and lease.status == LeaseStatus.ACTIVE:
        lease_workflow.advance_next_payment_due(lease, today)
        payment.schedule_applied = True

    result.lease_status = lease.status.value
    logger.info(
        f"[PAYMENTS] Payment {payment.receipt_number} verified"
        f" (lease {lease.id} -> {lease.status.value})"
    )
    return result


def dispute(
    payment: Payment,
    lease: Optional[Lease],
    actor_id: UUID,
    notes: Optional[str] = None,
    other_verified_count: int = 0,
) -> VerificationResult:
    """Dispute a payment. A previously verified amount is reversed on the lease.

    An active lease left with no verified payments is flagged for review,
    never deactivated automatically.
    """
    _ensure_modifiable(payment)
    was_verified = payment.status == PaymentStatus.VERIFIED

    payment.status = PaymentStatus.DISPUTED
    payment.verified_by_id = actor_id
    payment.verified_at = datetime.utcnow()
    payment.verification_notes = notes

    result = VerificationResult(payment_status=payment.status.value, message="Payment disputed")
    if lease is None:
        return result

    if was_verified:
        lease_workflow.apply_payment_to_balance(
            lease, payment.amount_cents, lease_workflow.BALANCE_SUBTRACT
        )

    if lease.status == LeaseStatus.ACTIVE and other_verified_count == 0:
        result.activation = "review_required"
        result.message = "Payment disputed. Lease has no verified payments and needs review"

    result.lease_status = lease.status.value
    logger.info(f"[PAYMENTS] Payment {payment.receipt_number} disputed")
    return result


def approve(payment: Payment, actor_id: UUID, notes: Optional[str] = None) -> None:
    _ensure_modifiable(payment)
    if payment.approval_status != ApprovalStatus.PENDING:
        raise WorkflowError(f"Payment is already {payment.approval_status.value}")
    payment.approval_status = ApprovalStatus.APPROVED
    payment.approved_by_id = actor_id
    payment.approved_at = datetime.utcnow()
    payment.approval_notes = notes
    if payment.status == PaymentStatus.PENDING:
        payment.status = PaymentStatus.COMPLETED


def reject(payment: Payment, actor_id: UUID, reason: str) -> None:
    _ensure_modifiable(payment)
    if not reason or not reason.strip():
        raise WorkflowError("A rejection reason is required")
    if payment.approval_status != ApprovalStatus.PENDING:
        raise WorkflowError(f"Payment is already {payment.approval_status.value}")
    payment.approval_status = ApprovalStatus.REJECTED
    payment.approved_by_id = actor_id
    payment.approved_at = datetime.utcnow()
    payment.rejection_reason = reason


def cancel(payment: Payment, actor_id: UUID, reason: str) -> None:
    if payment.status == PaymentStatus.CANCELLED:
        raise WorkflowError("Payment is already cancelled")
    if payment.status == PaymentStatus.VERIFIED:
        raise WorkflowError("Verified payments must be disputed, not cancelled")
    payment.status = PaymentStatus.CANCELLED
    payment.approval_status = ApprovalStatus.REJECTED
    payment.cancelled_by_id = actor_id
    payment.cancelled_at = datetime.utcnow()
    payment.cancellation_reason = reason


def ensure_editable(payment: Payment) -> None:
    if payment.status != PaymentStatus.PENDING:
        raise WorkflowError("Only pending payments can be edited")


def is_overdue(payment: Payment, today: Optional[date] = None) -> bool:
    today = today or date.today()
    return (
        payment.due_date is not None
        and payment.due_date < today
        and payment.status not in SETTLED_STATUSES
    )


def overdue_clause(today: Optional[date] = None):
    """SQL counterpart of :func:`is_overdue`."""
    today = today or date.today()
    return and_(
        Payment.due_date.is_not(None),
        Payment.due_date < today,
        Payment.status.not_in(SETTLED_STATUSES),
    )
