import calendar
import re
import uuid
from datetime import date, timedelta
from decimal import Decimal

import pytest
from pydantic import ValidationError

from propertyhub.core.config import Settings, get_settings
from propertyhub.models.enums import ApprovalStatus, InvoiceStatus
from propertyhub.models.invoice import Invoice
from propertyhub.services import invoice_workflow
from propertyhub.services.errors import WorkflowError
from propertyhub.services.invoice_workflow import LineItem

TODAY = date(2024, 6, 10)
ACTOR = uuid.uuid4()


def make_invoice(status=InvoiceStatus.DRAFT, approval=ApprovalStatus.PENDING, paid=0, **overrides) -> Invoice:
    values = dict(
        id=uuid.uuid4(),
        invoice_number="INV-202406-0001",
        tenant_id=uuid.uuid4(),
        property_id=uuid.uuid4(),
        issue_date=TODAY,
        due_date=TODAY + timedelta(days=30),
        tax_cents=0,
        paid_cents=paid,
        status=status,
        approval_status=approval,
        payment_terms="Net 30",
        reminder_count=0,
        items=invoice_workflow.build_items(
            [
                LineItem(description="Monthly Rent - July 2024", unit_price_cents=500_000),
                LineItem(description="Water", unit_price_cents=12_345, quantity=Decimal("2")),
            ]
        ),
    )
    values.update(overrides)
    invoice = Invoice(**values)
    invoice_workflow.compute_totals(invoice)
    return invoice


def test_line_amount_rounds_half_up():
    assert invoice_workflow.line_amount(Decimal("1.5"), 333) == 500
    assert invoice_workflow.line_amount(Decimal("0.5"), 1) == 1
    assert invoice_workflow.line_amount(Decimal("2"), 12_345) == 24_690


def test_totals_include_tax():
    invoice = make_invoice(tax_cents=10_000)
    assert invoice.subtotal_cents == 524_690
    assert invoice.total_cents == 534_690
    assert [item.position for item in invoice.items] == [0, 1]


def test_build_items_rejects_empty_and_blank():
    with pytest.raises(WorkflowError):
        invoice_workflow.build_items([])
    with pytest.raises(WorkflowError):
        invoice_workflow.build_items([LineItem(description="  ", unit_price_cents=100)])


def test_validate_dates():
    invoice_workflow.validate_dates(TODAY, TODAY + timedelta(days=1))
    with pytest.raises(WorkflowError):
        invoice_workflow.validate_dates(TODAY, TODAY)


def test_invoice_number_format():
    assert re.fullmatch(r"INV-202406-\d{4}", invoice_workflow.generate_invoice_number(TODAY))


@pytest.mark.parametrize("status", [InvoiceStatus.DRAFT, InvoiceStatus.SENT])
def test_editable_statuses(status):
    invoice_workflow.ensure_editable(make_invoice(status))


@pytest.mark.parametrize(
    "status",
    [InvoiceStatus.VIEWED, InvoiceStatus.PAID, InvoiceStatus.OVERDUE, InvoiceStatus.CANCELLED],
)
def test_locked_statuses(status):
    with pytest.raises(WorkflowError, match="cannot be edited"):
        invoice_workflow.ensure_editable(make_invoice(status))


def test_send_marks_invoice_approved():
    invoice = make_invoice()
    invoice_workflow.send(invoice, ACTOR)
    assert invoice.status == InvoiceStatus.SENT
    assert invoice.approval_status == ApprovalStatus.APPROVED
    assert invoice.sent_at is not None
    with pytest.raises(WorkflowError):
        invoice_workflow.send(invoice, ACTOR)


def test_rejected_invoice_cannot_be_sent():
    invoice = make_invoice(approval=ApprovalStatus.REJECTED)
    with pytest.raises(WorkflowError):
        invoice_workflow.send(invoice, ACTOR)


def test_approve_issues_draft():
    invoice = make_invoice()
    invoice_workflow.approve(invoice, ACTOR)
    assert invoice.status == InvoiceStatus.SENT
    assert invoice.approval_notes == "Invoice approved"
    with pytest.raises(WorkflowError):
        invoice_workflow.approve(invoice, ACTOR)


def test_reject_needs_reason():
    invoice = make_invoice()
    with pytest.raises(WorkflowError):
        invoice_workflow.reject(invoice, ACTOR, "")
    invoice_workflow.reject(invoice, ACTOR, "Wrong tenant")
    assert invoice.approval_status == ApprovalStatus.REJECTED
    assert invoice.status == InvoiceStatus.DRAFT


def test_payment_amount_validation():
    invoice = make_invoice(InvoiceStatus.SENT, ApprovalStatus.APPROVED)
    with pytest.raises(WorkflowError, match="outstanding balance of K5,246.90"):
        invoice_workflow.validate_payment_amount(invoice, invoice.total_cents + 1)
    with pytest.raises(WorkflowError):
        invoice_workflow.validate_payment_amount(make_invoice(), 100)
    invoice_workflow.validate_payment_amount(invoice, invoice.total_cents)


def test_partial_then_full_payment():
    invoice = make_invoice(InvoiceStatus.SENT, ApprovalStatus.APPROVED)
    assert not invoice_workflow.add_payment(invoice, uuid.uuid4(), 200_000)
    assert invoice.status == InvoiceStatus.SENT
    assert invoice_workflow.outstanding(invoice) == 324_690

    assert invoice_workflow.add_payment(invoice, uuid.uuid4(), 324_690)
    assert invoice.status == InvoiceStatus.PAID
    assert invoice.paid_at is not None
    assert len(invoice.payments) == 2


def test_cancel_rules():
    with pytest.raises(WorkflowError):
        invoice_workflow.cancel(make_invoice(InvoiceStatus.PAID))
    invoice = make_invoice(InvoiceStatus.SENT)
    invoice_workflow.cancel(invoice, "Issued in error")
    assert invoice.status == InvoiceStatus.CANCELLED
    assert invoice.cancellation_reason == "Issued in error"
    with pytest.raises(WorkflowError):
        invoice_workflow.cancel(invoice)


def test_only_drafts_can_be_deleted():
    invoice_workflow.ensure_deletable(make_invoice())
    with pytest.raises(WorkflowError):
        invoice_workflow.ensure_deletable(make_invoice(InvoiceStatus.SENT))


def test_reminder_messages():
    upcoming = make_invoice(InvoiceStatus.SENT, due_date=date(2024, 6, 20))
    assert invoice_workflow.reminder_message(upcoming, TODAY) == (
        "PAYMENT REMINDER: Invoice INV-202406-0001 is due on 20 Jun 2024. "
        "Amount due: K5,246.90. Please make payment by the due date."
    )

    overdue = make_invoice(InvoiceStatus.OVERDUE, issue_date=date(2024, 5, 1), due_date=date(2024, 6, 1))
    assert "is 9 days overdue" in invoice_workflow.reminder_message(overdue, TODAY)

    with pytest.raises(WorkflowError):
        invoice_workflow.reminder_message(make_invoice(), TODAY)


def test_record_reminder_counts():
    invoice = make_invoice(InvoiceStatus.SENT)
    assert invoice_workflow.record_reminder(invoice) == 1
    assert invoice_workflow.record_reminder(invoice) == 2
    assert invoice.last_reminder_at is not None


def test_duplicate_creates_fresh_draft():
    original = make_invoice(InvoiceStatus.PAID, ApprovalStatus.APPROVED, paid=524_690)
    copy = invoice_workflow.duplicate(original, "INV-202406-0002", ACTOR, TODAY)

    assert copy.status == InvoiceStatus.DRAFT
    assert copy.approval_status == ApprovalStatus.PENDING
    assert copy.paid_cents == 0
    assert copy.due_date == TODAY + timedelta(days=30)
    assert copy.total_cents == original.total_cents
    assert [item.description for item in copy.items] == [item.description for item in original.items]


def test_is_overdue():
    invoice = make_invoice(InvoiceStatus.SENT, issue_date=date(2024, 5, 1), due_date=date(2024, 6, 1))
    assert invoice_workflow.is_overdue(invoice, TODAY)
    assert not invoice_workflow.is_overdue(make_invoice(InvoiceStatus.DRAFT), TODAY)


def test_next_period_wraps_year():
    assert invoice_workflow.next_period(date(2024, 12, 15)) == (date(2025, 1, 1), date(2025, 1, 31))
    assert invoice_workflow.next_period(date(2024, 1, 31)) == (date(2024, 2, 1), date(2024, 2, 29))


def test_invoice_due_day_is_bounded():
    with pytest.raises(ValidationError):
        Settings(invoice_due_day=32)
    with pytest.raises(ValidationError):
        Settings(invoice_due_day=0)


async def test_monthly_invoices_clamp_due_day_to_short_month(db, active_lease, monkeypatch):
    monkeypatch.setattr(get_settings(), "invoice_due_day", 31)
    today = date(date.today().year + 1, 1, 15)
    february_days = calendar.monthrange(today.year, 2)[1]

    [invoice] = await invoice_workflow.generate_monthly_invoices(db, today)
    assert invoice.due_date == date(today.year, 2, february_days)
    assert invoice.period_start == date(today.year, 2, 1)
    assert invoice.total_cents == active_lease.monthly_rent_cents

    # Same period again is skipped
    assert await invoice_workflow.generate_monthly_invoices(db, today) == []
