import re
import uuid
from datetime import date, timedelta

import pytest

from propertyhub.models.enums import (
    ApprovalStatus,
    LeaseStatus,
    PaymentMethod,
    PaymentStatus,
    PaymentType,
)
from propertyhub.models.lease import Lease
from propertyhub.models.payment import Payment
from propertyhub.services import payment_workflow
from propertyhub.services.errors import WorkflowError

TODAY = date(2024, 6, 10)
ACTOR = uuid.uuid4()


def make_lease(status=LeaseStatus.SIGNED, start=TODAY, balance=750_000) -> Lease:
    return Lease(
        id=uuid.uuid4(),
        status=status,
        start_date=start,
        end_date=start + timedelta(days=365),
        payment_due_day=1,
        monthly_rent_cents=500_000,
        security_deposit_cents=250_000,
        first_payment_required_cents=750_000,
        first_payment_made=False,
        total_paid_cents=0,
        balance_due_cents=balance,
        status_history=[],
    )


def make_payment(status=PaymentStatus.PENDING, amount=750_000, **overrides) -> Payment:
    values = dict(
        id=uuid.uuid4(),
        receipt_number="PAY-20240610-0001",
        amount_cents=amount,
        payment_date=TODAY,
        payment_method=PaymentMethod.MOBILE_MONEY,
        payment_type=PaymentType.RENT,
        status=status,
        approval_status=ApprovalStatus.PENDING,
    )
    values.update(overrides)
    return Payment(**values)


def test_validate_amount_bounds():
    payment_workflow.validate_amount(1)
    payment_workflow.validate_amount(100_000_000)
    with pytest.raises(WorkflowError):
        payment_workflow.validate_amount(0)
    with pytest.raises(WorkflowError):
        payment_workflow.validate_amount(100_000_001)


def test_receipt_number_format():
    number = payment_workflow.generate_receipt_number(TODAY)
    assert re.fullmatch(r"PAY-20240610-\d{4}", number)


def test_verify_credits_lease_and_activates():
    lease = make_lease()
    payment = make_payment()

    result = payment_workflow.verify(payment, lease, ACTOR, "Checked bank statement", TODAY)

    assert payment.status == PaymentStatus.VERIFIED
    assert payment.verified_by_id == ACTOR
    assert lease.balance_due_cents == 0
    assert lease.total_paid_cents == 750_000
    assert lease.status == LeaseStatus.ACTIVE
    assert result.activation == "activated"
    assert result.lease_status == "active"


def test_verifying_twice_does_not_double_credit():
    lease = make_lease()
    payment = make_payment()
    payment_workflow.verify(payment, lease, ACTOR, today=TODAY)
    payment_workflow.verify(payment, lease, ACTOR, today=TODAY)
    assert lease.total_paid_cents == 750_000


def test_verify_without_lease():
    payment = make_payment()
    result = payment_workflow.verify(payment, None, ACTOR, today=TODAY)
    assert result.payment_status == "verified"
    assert result.lease_status is None


def test_verify_keeps_distant_lease_pending():
    lease = make_lease(start=TODAY + timedelta(days=30))
    result = payment_workflow.verify(make_payment(), lease, ACTOR, today=TODAY)
    assert result.activation == "pending"
    assert lease.status == LeaseStatus.SIGNED
    assert lease.balance_due_cents == 0


def test_dispute_reverses_verified_amount_and_flags_review():
    lease = make_lease()
    payment = make_payment()
    payment_workflow.verify(payment, lease, ACTOR, today=TODAY)

    result = payment_workflow.dispute(payment, lease, ACTOR, "Bounced", other_verified_count=0)

    assert payment.status == PaymentStatus.DISPUTED
    assert lease.balance_due_cents == 750_000
    assert lease.total_paid_cents == 0
    assert result.activation == "review_required"
    # Never deactivated automatically
    assert lease.status == LeaseStatus.ACTIVE


def test_dispute_with_other_verified_payments_needs_no_review():
    lease = make_lease(status=LeaseStatus.ACTIVE, balance=0)
    payment = make_payment(status=PaymentStatus.COMPLETED)
    result = payment_workflow.dispute(payment, lease, ACTOR, other_verified_count=2)
    assert result.activation is None
    assert lease.balance_due_cents == 0


def test_cancelled_payments_cannot_be_verified():
    with pytest.raises(WorkflowError):
        payment_workflow.verify(make_payment(PaymentStatus.CANCELLED), None, ACTOR, today=TODAY)


def test_failed_payments_cannot_be_verified():
    lease = make_lease(status=LeaseStatus.ACTIVE, balance=500_000)
    with pytest.raises(WorkflowError, match="Cannot verify a failed payment"):
        payment_workflow.verify(make_payment(PaymentStatus.FAILED), lease, ACTOR, today=TODAY)
    assert lease.total_paid_cents == 0


def test_reverifying_after_dispute_advances_schedule_once():
    lease = make_lease(status=LeaseStatus.ACTIVE, balance=500_000)
    lease.next_payment_due = TODAY
    payment = make_payment(PaymentStatus.COMPLETED, amount=500_000)

    payment_workflow.verify(payment, lease, ACTOR, today=TODAY)
    advanced = lease.next_payment_due
    assert advanced > TODAY
    assert payment.schedule_applied

    payment_workflow.dispute(payment, lease, ACTOR, "Reversed by bank", other_verified_count=0)
    payment_workflow.verify(payment, lease, ACTOR, today=TODAY)

    assert lease.next_payment_due == advanced
    assert lease.total_paid_cents == 500_000


def test_approve_completes_pending_payment():
    payment = make_payment()
    payment_workflow.approve(payment, ACTOR, "ok")
    assert payment.approval_status == ApprovalStatus.APPROVED
    assert payment.status == PaymentStatus.COMPLETED
    with pytest.raises(WorkflowError):
        payment_workflow.approve(payment, ACTOR)


def test_reject_requires_reason():
    payment = make_payment()
    with pytest.raises(WorkflowError):
        payment_workflow.reject(payment, ACTOR, "  ")
    payment_workflow.reject(payment, ACTOR, "Wrong amount")
    assert payment.approval_status == ApprovalStatus.REJECTED
    assert payment.rejection_reason == "Wrong amount"


def test_cancel_rules():
    with pytest.raises(WorkflowError, match="disputed"):
        payment_workflow.cancel(make_payment(PaymentStatus.VERIFIED), ACTOR, "oops")

    payment = make_payment()
    payment_workflow.cancel(payment, ACTOR, "Duplicate entry")
    assert payment.status == PaymentStatus.CANCELLED
    assert payment.approval_status == ApprovalStatus.REJECTED
    with pytest.raises(WorkflowError):
        payment_workflow.cancel(payment, ACTOR, "again")


def test_only_pending_payments_are_editable():
    payment_workflow.ensure_editable(make_payment())
    with pytest.raises(WorkflowError):
        payment_workflow.ensure_editable(make_payment(PaymentStatus.COMPLETED))


def test_is_overdue():
    late = make_payment(due_date=TODAY - timedelta(days=1))
    assert payment_workflow.is_overdue(late, TODAY)
    settled = make_payment(PaymentStatus.VERIFIED, due_date=TODAY - timedelta(days=1))
    assert not payment_workflow.is_overdue(settled, TODAY)
    assert not payment_workflow.is_overdue(make_payment(), TODAY)
