import uuid
from datetime import date, timedelta

import pytest

from propertyhub.models.enums import ActivationMethod, LeaseStatus
from propertyhub.models.lease import Lease
from propertyhub.services import lease_workflow
from propertyhub.services.errors import WorkflowError

TODAY = date(2024, 6, 10)


def make_lease(status=LeaseStatus.DRAFT, start=TODAY, **overrides) -> Lease:
    values = dict(
        id=uuid.uuid4(),
        status=status,
        start_date=start,
        end_date=start + timedelta(days=365),
        payment_due_day=1,
        monthly_rent_cents=500_000,
        security_deposit_cents=250_000,
        first_payment_required_cents=0,
        first_payment_made=False,
        total_paid_cents=0,
        balance_due_cents=0,
        status_history=[],
    )
    values.update(overrides)
    return Lease(**values)


def test_initialize_balances_requires_deposit_plus_rent():
    lease = make_lease()
    lease_workflow.initialize_balances(lease)
    assert lease.first_payment_required_cents == 750_000
    assert lease.balance_due_cents == 750_000
    assert lease.total_paid_cents == 0


def test_signature_flow():
    lease = make_lease()
    lease_workflow.send_to_tenant(lease)
    assert lease.status == LeaseStatus.PENDING_SIGNATURE
    assert lease.sent_to_tenant_at is not None

    with pytest.raises(WorkflowError):
        lease_workflow.send_to_tenant(lease)

    lease_workflow.sign_by_tenant(lease, "signed-by-tandiwe", "10.0.0.1")
    assert lease.status == LeaseStatus.SIGNED
    assert lease.tenant_signature_ip == "10.0.0.1"
    assert [entry["to"] for entry in lease.status_history] == ["pending_signature", "signed"]


def test_sign_requires_pending_signature():
    with pytest.raises(WorkflowError):
        lease_workflow.sign_by_tenant(make_lease(LeaseStatus.DRAFT))


def test_payment_activates_lease_starting_within_window():
    lease = make_lease(LeaseStatus.SIGNED, start=TODAY + timedelta(days=5))
    result = lease_workflow.check_and_activate(lease, TODAY, TODAY)

    assert result.activated
    assert result.days_until_start == 5
    assert lease.status == LeaseStatus.ACTIVE
    assert lease.activation_method == ActivationMethod.PAYMENT
    assert lease.first_payment_made
    assert lease.first_payment_date == TODAY
    assert lease.next_payment_due == date(2024, 7, 1)


def test_payment_for_distant_start_stays_pending():
    lease = make_lease(LeaseStatus.DRAFT, start=TODAY + timedelta(days=20))
    result = lease_workflow.check_and_activate(lease, TODAY, TODAY)

    assert not result.activated
    assert result.status == "pending"
    assert lease.status == LeaseStatus.DRAFT
    assert lease.first_payment_made


@pytest.mark.parametrize(
    "status",
    [LeaseStatus.PENDING_SIGNATURE, LeaseStatus.ACTIVE, LeaseStatus.TERMINATED, LeaseStatus.EXPIRED],
)
def test_ineligible_leases_are_left_alone(status):
    lease = make_lease(status)
    assert lease_workflow.check_and_activate(lease, TODAY, TODAY) is None
    assert lease.status == status


def test_manual_activate_and_deactivate():
    lease = make_lease(LeaseStatus.PENDING_SIGNATURE)
    lease_workflow.manual_activate(lease, "Paid in cash", TODAY)
    assert lease.status == LeaseStatus.ACTIVE
    assert lease.activation_method == ActivationMethod.MANUAL

    with pytest.raises(WorkflowError):
        lease_workflow.manual_activate(lease, "again", TODAY)

    lease_workflow.manual_deactivate(lease, "Entered by mistake")
    assert lease.status == LeaseStatus.DRAFT
    assert lease.activated_at is None
    assert lease.next_payment_due is None

    with pytest.raises(WorkflowError):
        lease_workflow.manual_deactivate(lease, "not active")


def test_terminate_closes_lease_once():
    lease = make_lease(LeaseStatus.ACTIVE)
    lease_workflow.terminate(lease, "Tenant moved out")
    assert lease.status == LeaseStatus.TERMINATED
    assert lease.termination_reason == "Tenant moved out"

    with pytest.raises(WorkflowError):
        lease_workflow.terminate(lease, "twice")
    with pytest.raises(WorkflowError):
        lease_workflow.manual_activate(lease, "reopen", TODAY)


def test_apply_and_reverse_payment_on_balance():
    lease = make_lease(balance_due_cents=750_000)
    lease_workflow.apply_payment_to_balance(lease, 500_000, lease_workflow.BALANCE_ADD, TODAY)
    assert lease.balance_due_cents == 250_000
    assert lease.total_paid_cents == 500_000
    assert lease.last_payment_date == TODAY

    lease_workflow.apply_payment_to_balance(lease, 500_000, lease_workflow.BALANCE_SUBTRACT)
    assert lease.balance_due_cents == 750_000
    assert lease.total_paid_cents == 0


def test_overpayment_never_makes_balance_negative():
    lease = make_lease(balance_due_cents=100)
    lease_workflow.apply_payment_to_balance(lease, 1_000, lease_workflow.BALANCE_ADD, TODAY)
    assert lease.balance_due_cents == 0


def test_next_payment_due_dates():
    # Started lease: due day already passed this month
    assert lease_workflow.calculate_next_payment_due(date(2024, 1, 1), 5, TODAY) == date(2024, 7, 5)
    # Started lease: due day still ahead
    assert lease_workflow.calculate_next_payment_due(date(2024, 1, 1), 15, TODAY) == date(2024, 6, 15)
    # Future start after the due day rolls to the next month
    assert lease_workflow.calculate_next_payment_due(date(2024, 7, 20), 1, TODAY) == date(2024, 8, 1)
    # Due day clamped to month length
    assert lease_workflow.calculate_next_payment_due(date(2024, 1, 1), 31, date(2024, 2, 10)) == date(2024, 2, 29)


def test_add_months_handles_year_boundaries():
    assert lease_workflow.add_months(date(2024, 11, 30), 3) == date(2025, 2, 28)
    assert lease_workflow.add_months(date(2024, 1, 15), -2) == date(2023, 11, 15)


def test_next_action_by_status():
    assert lease_workflow.next_action(make_lease(LeaseStatus.DRAFT), TODAY)["action"] == "send_to_tenant"
    assert lease_workflow.next_action(make_lease(LeaseStatus.PENDING_SIGNATURE), TODAY)["actor"] == "tenant"

    signed = make_lease(LeaseStatus.SIGNED, first_payment_required_cents=750_000)
    action = lease_workflow.next_action(signed, TODAY)
    assert action["action"] == "make_payment"
    assert "K7,500.00" in action["message"]

    due_soon = make_lease(LeaseStatus.ACTIVE, next_payment_due=TODAY + timedelta(days=3))
    assert lease_workflow.next_action(due_soon, TODAY)["action"] == "upcoming_payment"

    settled = make_lease(LeaseStatus.ACTIVE, next_payment_due=TODAY + timedelta(days=20))
    assert lease_workflow.next_action(settled, TODAY)["action"] == "active_lease"

    assert lease_workflow.next_action(make_lease(LeaseStatus.EXPIRED), TODAY)["action"] == "none"


def test_is_expiring():
    lease = make_lease(LeaseStatus.ACTIVE, start=TODAY - timedelta(days=300), end_date=TODAY + timedelta(days=10))
    assert lease_workflow.is_expiring(lease, TODAY, within_days=30)
    assert not lease_workflow.is_expiring(lease, TODAY, within_days=5)
