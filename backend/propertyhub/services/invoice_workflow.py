"""Invoice lifecycle, totals and recurring rent invoicing."""

import calendar
import logging
import random
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from propertyhub.core.config import get_settings
from propertyhub.models.enums import (
    ApprovalStatus,
    InvoiceStatus,
    LeaseStatus,
    NotificationPriority,
    NotificationType,
)
from propertyhub.models.invoice import Invoice, InvoiceItem, InvoicePayment
from propertyhub.models.lease import Lease
from propertyhub.models.property import Property
from propertyhub.services.errors import WorkflowError
from propertyhub.services.notifications import NotificationService
from propertyhub.utils.formatting import format_currency, format_date

logger = logging.getLogger(__name__)

EDITABLE_STATUSES = (InvoiceStatus.DRAFT, InvoiceStatus.SENT)
SENDABLE_STATUSES = (InvoiceStatus.DRAFT, InvoiceStatus.VIEWED)
PAYABLE_STATUSES = (InvoiceStatus.SENT, InvoiceStatus.VIEWED, InvoiceStatus.OVERDUE)
OPEN_STATUSES = (InvoiceStatus.SENT, InvoiceStatus.VIEWED)
NUMBER_ATTEMPTS = 5


@dataclass
class LineItem:
    description: str
    unit_price_cents: int
    quantity: Decimal = Decimal("1")
    amount_cents: Optional[int] = None


def line_amount(quantity: Decimal, unit_price_cents: int) -> int:
    """quantity x unit price, rounded half up to whole ngwee."""
    value = Decimal(str(quantity)) * Decimal(unit_price_cents)
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def build_items(items: Iterable[LineItem]) -> list[InvoiceItem]:
    built = []
    for position, item in enumerate(items):
        if not item.description or not item.description.strip():
            raise WorkflowError("Every invoice item needs a description")
        if item.unit_price_cents <= 0:
            raise WorkflowError("Invoice item unit price must be greater than zero")
        if item.quantity <= 0:
            raise WorkflowError("Invoice item quantity must be greater than zero")
        amount = item.amount_cents
        if amount is None:
            amount = line_amount(item.quantity, item.unit_price_cents)
        built.append(
            InvoiceItem(
                position=position,
                description=item.description.strip(),
                quantity=item.quantity,
                unit_price_cents=item.unit_price_cents,
                amount_cents=amount,
            )
        )
    if not built:
        raise WorkflowError("An invoice needs at least one item")
    return built


def compute_totals(invoice: Invoice) -> None:
    invoice.subtotal_cents = sum(item.amount_cents for item in invoice.items)
    invoice.total_cents = invoice.subtotal_cents + (invoice.tax_cents or 0)


def outstanding(invoice: Invoice) -> int:
    return max(0, (invoice.total_cents or 0) - (invoice.paid_cents or 0))


def is_overdue(invoice: Invoice, today: Optional[date] = None) -> bool:
    today = today or date.today()
    return (
        invoice.status in (*OPEN_STATUSES, InvoiceStatus.OVERDUE)
        and invoice.due_date < today
        and outstanding(invoice) > 0
    )


def validate_dates(issue_date: date, due_date: date) -> None:
    if due_date <= issue_date:
        raise WorkflowError("Due date must be after the issue date")


def generate_invoice_number(today: Optional[date] = None) -> str:
    """``INV-YYYYMM-NNNN``"""
    today = today or date.today()
    return f"INV-{today:%Y%m}-{random.randint(0, 9999):04d}"


async def unique_invoice_number(db: AsyncSession, today: Optional[date] = None) -> str:
    for _ in range(NUMBER_ATTEMPTS):
        candidate = generate_invoice_number(today)
        exists = await db.execute(select(Invoice.id).where(Invoice.invoice_number == candidate))
        if exists.scalar_one_or_none() is None:
            return candidate
    raise WorkflowError("Could not allocate a unique invoice number")


def ensure_editable(invoice: Invoice) -> None:
    if invoice.status not in EDITABLE_STATUSES:
        raise WorkflowError(
            f"Invoice cannot be edited in '{invoice.status.value}' status. "
            "Only draft and sent invoices can be edited"
        )


def replace_items(invoice: Invoice, items: Iterable[LineItem]) -> None:
    invoice.items = build_items(items)
    compute_totals(invoice)
    if invoice.paid_cents and invoice.paid_cents >= invoice.total_cents:
        invoice.status = InvoiceStatus.PAID
        invoice.paid_at = invoice.paid_at or datetime.utcnow()


def send(invoice: Invoice, actor_id: Optional[UUID] = None) -> None:
    if invoice.status not in SENDABLE_STATUSES:
        raise WorkflowError("Only draft invoices can be sent")
    if invoice.approval_status == ApprovalStatus.REJECTED:
        raise WorkflowError("Rejected invoices cannot be sent")
    invoice.status = InvoiceStatus.SENT
    invoice.approval_status = ApprovalStatus.APPROVED
    invoice.approved_by_id = invoice.approved_by_id or actor_id
    invoice.approved_at = invoice.approved_at or datetime.utcnow()
    invoice.sent_at = datetime.utcnow()


def approve(invoice: Invoice, actor_id: UUID, notes: Optional[str] = None) -> None:
    if invoice.approval_status != ApprovalStatus.PENDING:
        raise WorkflowError("Only pending invoices can be approved")
    invoice.approval_status = ApprovalStatus.APPROVED
    invoice.approved_by_id = actor_id
    invoice.approved_at = datetime.utcnow()
    invoice.approval_notes = notes or "Invoice approved"
    if invoice.status == InvoiceStatus.DRAFT:
        invoice.status = InvoiceStatus.SENT
        invoice.sent_at = datetime.utcnow()


def reject(invoice: Invoice, actor_id: UUID, reason: str) -> None:
    if invoice.approval_status != ApprovalStatus.PENDING:
        raise WorkflowError("Only pending invoices can be rejected")
    if not reason or not reason.strip():
        raise WorkflowError("A rejection reason is required")
    invoice.approval_status = ApprovalStatus.REJECTED
    invoice.approved_by_id = actor_id
    invoice.approved_at = datetime.utcnow()
    invoice.rejection_reason = reason


def validate_payment_amount(invoice: Invoice, amount_cents: int) -> None:
    if invoice.status not in PAYABLE_STATUSES:
        raise WorkflowError("Only sent, viewed, or overdue invoices can take payments")
    if amount_cents <= 0:
        raise WorkflowError("Payment amount must be greater than zero")
    remaining = outstanding(invoice)
    if amount_cents > remaining:
        raise WorkflowError(
            f"Payment amount cannot exceed outstanding balance of {format_currency(remaining)}"
        )


def add_payment(invoice: Invoice, payment_id: UUID, amount_cents: int) -> bool:
    """Apply a payment. Returns True when the invoice is now fully paid."""
    invoice.payments.append(InvoicePayment(payment_id=payment_id, amount_cents=amount_cents))
    invoice.paid_cents = (invoice.paid_cents or 0) + amount_cents
    if invoice.paid_cents >= invoice.total_cents:
        invoice.status = InvoiceStatus.PAID
        invoice.paid_at = datetime.utcnow()
        return True
    return False


def cancel(invoice: Invoice, reason: Optional[str] = None) -> None:
    if invoice.status == InvoiceStatus.PAID:
        raise WorkflowError("Paid invoices cannot be cancelled")
    if invoice.status == InvoiceStatus.CANCELLED:
        raise WorkflowError("Invoice is already cancelled")
    invoice.status = InvoiceStatus.CANCELLED
    invoice.approval_status = ApprovalStatus.REJECTED
    invoice.cancelled_at = datetime.utcnow()
    invoice.cancellation_reason = reason or "Invoice cancelled"


def ensure_deletable(invoice: Invoice) -> None:
    if invoice.status != InvoiceStatus.DRAFT:
        raise WorkflowError("Only draft invoices can be deleted")


def reminder_message(invoice: Invoice, today: Optional[date] = None) -> str:
    today = today or date.today()
    if invoice.status not in PAYABLE_STATUSES:
        raise WorkflowError("Reminders can only be sent for unpaid, issued invoices")
    amount = format_currency(outstanding(invoice))
    if invoice.status == InvoiceStatus.OVERDUE:
        days_overdue = max(0, (today - invoice.due_date).days)
        return (
            f"PAYMENT REMINDER: Invoice {invoice.invoice_number} is {days_overdue} days overdue. "
            f"Amount due: {amount}. Please make payment immediately to avoid late fees."
        )
    return (
        f"PAYMENT REMINDER: Invoice {invoice.invoice_number} is due on {format_date(invoice.due_date)}. "
        f"Amount due: {amount}. Please make payment by the due date."
    )


def record_reminder(invoice: Invoice) -> int:
    invoice.reminder_count = (invoice.reminder_count or 0) + 1
    invoice.last_reminder_at = datetime.utcnow()
    return invoice.reminder_count


def duplicate(invoice: Invoice, invoice_number: str, actor_id: UUID, today: Optional[date] = None) -> Invoice:
    """Copy an invoice into a new draft due in 30 days."""
    today = today or date.today()
    copy = Invoice(
        invoice_number=invoice_number,
        tenant_id=invoice.tenant_id,
        property_id=invoice.property_id,
        lease_id=invoice.lease_id,
        created_by_id=actor_id,
        issue_date=today,
        due_date=today + timedelta(days=30),
        tax_cents=invoice.tax_cents,
        paid_cents=0,
        status=InvoiceStatus.DRAFT,
        approval_status=ApprovalStatus.PENDING,
        payment_terms=invoice.payment_terms,
        notes=invoice.notes,
        items=build_items(
            LineItem(
                description=item.description,
                quantity=item.quantity,
                unit_price_cents=item.unit_price_cents,
                amount_cents=item.amount_cents,
            )
            for item in invoice.items
        ),
    )
    compute_totals(copy)
    return copy


async def refresh_overdue(db: AsyncSession, today: Optional[date] = None, query=None) -> int:
    """Flip sent/viewed invoices past their due date to overdue and notify the tenant once."""
    today = today or date.today()
    base = query if query is not None else select(Invoice)
    result = await db.execute(
        base.where(
            Invoice.status.in_(OPEN_STATUSES),
            Invoice.due_date < today,
        )
    )
    invoices = [inv for inv in result.scalars().all() if outstanding(inv) > 0]
    notifier = NotificationService(db)
    for invoice in invoices:
        invoice.status = InvoiceStatus.OVERDUE
        if invoice.overdue_notified_at is None:
            invoice.overdue_notified_at = datetime.utcnow()
            await notifier.invoice_event(
                invoice,
                recipient_id=invoice.tenant_id,
                type=NotificationType.INVOICE_OVERDUE,
                title="Invoice Overdue",
                message=(
                    f"Invoice {invoice.invoice_number} is overdue. "
                    f"Amount due: {format_currency(outstanding(invoice))}."
                ),
                priority=NotificationPriority.HIGH,
            )
    if invoices:
        await db.flush()
        logger.info(f"[INVOICES] Marked {len(invoices)} invoice(s) overdue")
    return len(invoices)


def next_period(today: date) -> tuple[date, date]:
    """First and last day of next month."""
    year, month = (today.year + 1, 1) if today.month == 12 else (today.year, today.month + 1)
    return date(year, month, 1), date(year, month, calendar.monthrange(year, month)[1])


async def generate_monthly_invoices(db: AsyncSession, today: Optional[date] = None) -> list[Invoice]:
    """Create next month's rent invoice for every active lease, once per period."""
    settings = get_settings()
    today = today or date.today()
    period_start, period_end = next_period(today)
    due_date = period_start.replace(day=min(settings.invoice_due_day, period_end.day))

    result = await db.execute(
        select(Lease, Property)
        .join(Property, Lease.property_id == Property.id)
        .where(
            Lease.status == LeaseStatus.ACTIVE,
            Lease.start_date <= period_start,
            Lease.end_date >= today,
        )
    )
    rows = result.all()
    notifier = NotificationService(db)
    created = []

    for lease, prop in rows:
        existing = await db.execute(
            select(Invoice.id).where(
                Invoice.lease_id == lease.id,
                Invoice.period_start == period_start,
                Invoice.status != InvoiceStatus.CANCELLED,
            )
        )
        if existing.first() is not None:
            continue

        invoice = Invoice(
            invoice_number=await unique_invoice_number(db, today),
            tenant_id=lease.tenant_id,
            property_id=lease.property_id,
            lease_id=lease.id,
            issue_date=today,
            due_date=due_date,
            period_start=period_start,
            period_end=period_end,
            tax_cents=0,
            paid_cents=0,
            status=InvoiceStatus.DRAFT,
            approval_status=ApprovalStatus.PENDING,
            payment_terms=settings.invoice_payment_terms,
            items=build_items(
                [
                    LineItem(
                        description=f"Monthly Rent - {period_start:%B %Y}",
                        unit_price_cents=lease.monthly_rent_cents,
                    )
                ]
            ),
        )
        compute_totals(invoice)
        db.add(invoice)
        await db.flush()

        await notifier.invoice_event(
            invoice,
            recipient_id=prop.landlord_id,
            type=NotificationType.INVOICE_CREATED,
            title="Rent Invoice Generated",
            message=f"New rent invoice {invoice.invoice_number} generated for {prop.name}",
        )
        created.append(invoice)

    logger.info(f"[INVOICES] Generated {len(created)} monthly invoice(s) for {period_start:%Y-%m}")
    return created
