"""Invoices router."""

import io
import logging
import math
from datetime import date, datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import StreamingResponse
from sqlalchemy import Select, case, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from propertyhub.core.access import (
    can_manage_property,
    get_property_or_404,
    get_scoped_or_404,
    scope_query,
)
from propertyhub.core.config import get_settings
from propertyhub.core.database import get_db
from propertyhub.core.security import require_manager, require_registered_user, require_staff
from propertyhub.models.enums import (
    ApprovalStatus,
    AuditAction,
    InvoiceStatus,
    LeaseStatus,
    MANAGEMENT_ROLES,
    NotificationPriority,
    NotificationType,
    PaymentMethod,
    PaymentStatus,
    PaymentType,
    UserRole,
)
from propertyhub.models.invoice import Invoice
from propertyhub.models.lease import Lease
from propertyhub.models.payment import Payment
from propertyhub.models.property import Property
from propertyhub.models.user import User
from propertyhub.schemas.base import Pagination
from propertyhub.schemas.invoice import (
    GenerateMonthlyResponse,
    InvoiceActionRequest,
    InvoiceActionResponse,
    InvoiceCreate,
    InvoiceListResponse,
    InvoicePaymentCreate,
    InvoiceResponse,
    InvoiceSummary,
    InvoiceUpdate,
)
from propertyhub.services import invoice_workflow, payment_workflow
from propertyhub.services.audit import AuditService
from propertyhub.services.email import Attachment, EmailService, OutgoingEmail, get_email_service
from propertyhub.services.invoice_workflow import LineItem
from propertyhub.services.notifications import NotificationService
from propertyhub.services.pdf_generator import PDFGenerator
from propertyhub.utils.formatting import format_currency, format_date, status_badge

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/invoices", tags=["invoices"])


class InvoiceAction(str, Enum):
    SEND = "send"
    APPROVE = "approve"
    REJECT = "reject"
    MARK_PAID = "mark-paid"
    CANCEL = "cancel"
    REMIND = "remind"
    DUPLICATE = "duplicate"


MANAGER_ACTIONS = (InvoiceAction.APPROVE, InvoiceAction.REJECT)


def _to_response(
    invoice: Invoice,
    tenant: Optional[User] = None,
    prop: Optional[Property] = None,
) -> InvoiceResponse:
    response = InvoiceResponse.model_validate(invoice)
    response.outstanding_cents = invoice_workflow.outstanding(invoice)
    response.status_badge = status_badge("invoice", invoice.status)
    if tenant is not None:
        response.tenant_name = tenant.name
    if prop is not None:
        response.property_name = prop.name
    return response


async def _respond(db: AsyncSession, invoice: Invoice) -> InvoiceResponse:
    tenant = await db.get(User, invoice.tenant_id)
    prop = await db.get(Property, invoice.property_id)
    return _to_response(invoice, tenant, prop)


async def _get_invoice(db: AsyncSession, invoice_id: UUID, user: User) -> Invoice:
    invoice = await get_scoped_or_404(db, Invoice, invoice_id, user, "Invoice not found")
    # Tenants never see drafts or invoices awaiting approval
    if user.role == UserRole.TENANT and invoice.status == InvoiceStatus.DRAFT:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invoice not found")
    return invoice


async def _ensure_can_manage(db: AsyncSession, user: User, invoice: Invoice) -> Property:
    prop = await db.get(Property, invoice.property_id)
    if prop is None or not can_manage_property(user, prop):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not manage this property",
        )
    return prop


def _line_items(items) -> list[LineItem]:
    return [
        LineItem(
            description=item.description,
            quantity=item.quantity,
            unit_price_cents=item.unit_price_cents,
        )
        for item in items
    ]


def _scoped(user: User) -> Select:
    query = scope_query(select(Invoice), user, Invoice.tenant_id, Invoice.property_id)
    if user.role == UserRole.TENANT:
        query = query.where(Invoice.status != InvoiceStatus.DRAFT)
    return query


async def _record_payment(
    db: AsyncSession,
    invoice: Invoice,
    amount_cents: int,
    actor: User,
    payment_method: PaymentMethod,
    reference_number: Optional[str] = None,
    payment_date: Optional[date] = None,
    notes: Optional[str] = None,
) -> tuple[Payment, bool]:
    """Create a completed payment for the invoice and apply it."""
    invoice_workflow.validate_payment_amount(invoice, amount_cents)
    payment = Payment(
        receipt_number=await payment_workflow.unique_receipt_number(db),
        tenant_id=invoice.tenant_id,
        property_id=invoice.property_id,
        lease_id=invoice.lease_id,
        invoice_id=invoice.id,
        amount_cents=amount_cents,
        payment_date=payment_date or date.today(),
        due_date=invoice.due_date,
        payment_method=payment_method,
        payment_type=PaymentType.RENT if invoice.period_start else PaymentType.OTHER,
        status=PaymentStatus.COMPLETED,
        approval_status=ApprovalStatus.APPROVED,
        approved_by_id=actor.id,
        approved_at=datetime.utcnow(),
        reference_number=reference_number,
        description=f"Payment for invoice {invoice.invoice_number}",
        notes=notes,
        recorded_by_id=actor.id,
    )
    db.add(payment)
    await db.flush()
    fully_paid = invoice_workflow.add_payment(invoice, payment.id, amount_cents)

    audit = AuditService(db)
    await audit.log_payment(
        AuditAction.PAYMENT_RECORDED, payment.id, actor.id, payment.receipt_number, amount_cents,
        f"Applied to invoice {invoice.invoice_number}",
    )
    if fully_paid:
        await audit.log_invoice(AuditAction.INVOICE_PAID, invoice.id, actor.id, invoice.invoice_number)
    return payment, fully_paid


@router.get("", response_model=InvoiceListResponse)
async def list_invoices(
    status_filter: Optional[InvoiceStatus] = Query(None, alias="status"),
    tenant_id: Optional[UUID] = None,
    property_id: Optional[UUID] = None,
    lease_id: Optional[UUID] = None,
    approval_status: Optional[ApprovalStatus] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    outstanding_only: bool = False,
    search: Optional[str] = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_registered_user),
):
    """List invoices in scope. Past-due invoices are flipped to overdue first."""
    scoped = _scoped(current_user)
    if await invoice_workflow.refresh_overdue(db, query=scoped):
        await db.commit()

    query = scoped
    if tenant_id:
        query = query.where(Invoice.tenant_id == tenant_id)
    if property_id:
        query = query.where(Invoice.property_id == property_id)
    if lease_id:
        query = query.where(Invoice.lease_id == lease_id)
    if approval_status:
        query = query.where(Invoice.approval_status == approval_status)
    if date_from:
        query = query.where(Invoice.issue_date >= date_from)
    if date_to:
        query = query.where(Invoice.issue_date <= date_to)
    if search:
        pattern = f"%{search}%"
        query = query.where(or_(Invoice.invoice_number.ilike(pattern), Invoice.notes.ilike(pattern)))

    # Summary covers every status so the UI can show totals per tab
    scoped_rows = query.subquery()
    outstanding = case(
        (scoped_rows.c.total_cents > scoped_rows.c.paid_cents, scoped_rows.c.total_cents - scoped_rows.c.paid_cents),
        else_=0,
    )
    status_counts = {s.value: 0 for s in InvoiceStatus}
    invoiced = paid = owed = 0
    grouped = await db.execute(
        select(
            scoped_rows.c.status,
            func.count(),
            func.coalesce(func.sum(scoped_rows.c.total_cents), 0),
            func.coalesce(func.sum(scoped_rows.c.paid_cents), 0),
            func.coalesce(func.sum(outstanding), 0),
        ).group_by(scoped_rows.c.status)
    )
    for row_status, count, total_cents, paid_cents, outstanding_cents in grouped.all():
        status_counts[row_status.value] = count
        if row_status != InvoiceStatus.CANCELLED:
            invoiced += int(total_cents)
            paid += int(paid_cents)
            owed += int(outstanding_cents)
    summary = InvoiceSummary(
        total_invoiced_cents=invoiced,
        total_paid_cents=paid,
        total_outstanding_cents=owed,
        overdue_count=status_counts[InvoiceStatus.OVERDUE.value],
        status_counts=status_counts,
    )

    if status_filter:
        query = query.where(Invoice.status == status_filter)
    if outstanding_only:
        query = query.where(
            Invoice.status != InvoiceStatus.CANCELLED,
            Invoice.total_cents > Invoice.paid_cents,
        )

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0
    rows = (
        await db.execute(
            query.add_columns(User, Property)
            .join(User, Invoice.tenant_id == User.id)
            .join(Property, Invoice.property_id == Property.id)
            .order_by(Invoice.issue_date.desc(), Invoice.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
    ).all()

    return InvoiceListResponse(
        invoices=[_to_response(invoice, tenant, prop) for invoice, tenant, prop in rows],
        pagination=Pagination(
            page=page,
            limit=limit,
            total=total,
            pages=math.ceil(total / limit) if total else 0,
        ),
        summary=summary,
    )


@router.post("", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED)
async def create_invoice(
    request: Request,
    data: InvoiceCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """Create an invoice.

    Without ``property_id``/``lease_id`` the tenant's active lease is used.
    Invoices created by managers/admins are approved (and issued) immediately.
    """
    tenant = await db.get(User, data.tenant_id)
    if not tenant or tenant.role != UserRole.TENANT:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Tenant not found")

    lease: Optional[Lease] = None
    if data.lease_id:
        lease = await get_scoped_or_404(db, Lease, data.lease_id, current_user, "Lease not found")
        if lease.tenant_id != tenant.id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Lease belongs to another tenant")
    elif not data.property_id:
        query = scope_query(
            select(Lease).where(Lease.tenant_id == tenant.id, Lease.status == LeaseStatus.ACTIVE),
            current_user,
            None,
            Lease.property_id,
        )
        lease = (await db.execute(query.order_by(Lease.start_date.desc()).limit(1))).scalar_one_or_none()
        if lease is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Tenant has no active lease. Specify property_id",
            )

    property_id = lease.property_id if lease else data.property_id
    prop = await get_property_or_404(db, property_id, current_user)
    if not can_manage_property(current_user, prop):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You do not manage this property")

    invoice = Invoice(
        invoice_number=await invoice_workflow.unique_invoice_number(db),
        tenant_id=tenant.id,
        property_id=prop.id,
        lease_id=lease.id if lease else None,
        created_by_id=current_user.id,
        issue_date=data.issue_date,
        due_date=data.due_date,
        tax_cents=data.tax_cents,
        paid_cents=0,
        status=InvoiceStatus.DRAFT,
        approval_status=ApprovalStatus.PENDING,
        payment_terms=data.payment_terms or get_settings().invoice_payment_terms,
        notes=data.notes,
        items=invoice_workflow.build_items(_line_items(data.items)),
    )
    invoice_workflow.compute_totals(invoice)
    db.add(invoice)
    await db.flush()

    audit = AuditService(db, request)
    await audit.log_invoice(AuditAction.INVOICE_CREATED, invoice.id, current_user.id, invoice.invoice_number)

    if current_user.role in MANAGEMENT_ROLES:
        invoice_workflow.approve(invoice, current_user.id, "Auto-approved on creation")
        await audit.log_invoice(AuditAction.INVOICE_APPROVED, invoice.id, current_user.id, invoice.invoice_number)
        await NotificationService(db).invoice_event(
            invoice,
            recipient_id=tenant.id,
            sender_id=current_user.id,
            type=NotificationType.INVOICE_SENT,
            title="New Invoice",
            message=(
                f"Invoice {invoice.invoice_number} for {format_currency(invoice.total_cents)} "
                f"is due on {format_date(invoice.due_date)}."
            ),
        )

    await db.commit()
    await db.refresh(invoice)
    logger.info(f"[INVOICES] {invoice.invoice_number} created by {current_user.email}")
    return _to_response(invoice, tenant, prop)


@router.post("/generate-monthly", response_model=GenerateMonthlyResponse)
async def generate_monthly(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    """Generate next month's rent invoices for all active leases."""
    created = await invoice_workflow.generate_monthly_invoices(db)
    audit = AuditService(db)
    for invoice in created:
        await audit.log_invoice(
            AuditAction.INVOICE_CREATED, invoice.id, current_user.id, invoice.invoice_number,
            "Generated monthly rent invoice",
        )
    await db.commit()
    return GenerateMonthlyResponse(created=len(created), invoice_ids=[i.id for i in created])


@router.get("/{invoice_id}", response_model=InvoiceResponse)
async def get_invoice(
    invoice_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_registered_user),
):
    """Get an invoice. A tenant opening a sent invoice marks it viewed."""
    invoice = await _get_invoice(db, invoice_id, current_user)
    if current_user.role == UserRole.TENANT and invoice.status == InvoiceStatus.SENT:
        invoice.status = InvoiceStatus.VIEWED
        await db.commit()
    return await _respond(db, invoice)


@router.put("/{invoice_id}", response_model=InvoiceResponse)
async def update_invoice(
    request: Request,
    invoice_id: UUID,
    data: InvoiceUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """Edit an invoice. Only draft and sent invoices can be edited."""
    invoice = await _get_invoice(db, invoice_id, current_user)
    await _ensure_can_manage(db, current_user, invoice)
    invoice_workflow.ensure_editable(invoice)

    updates = data.model_dump(exclude_unset=True, exclude={"items"})
    for field, value in updates.items():
        if value is not None:
            setattr(invoice, field, value)
    invoice_workflow.validate_dates(invoice.issue_date, invoice.due_date)

    if data.items is not None:
        invoice_workflow.replace_items(invoice, _line_items(data.items))
    else:
        invoice_workflow.compute_totals(invoice)

    await AuditService(db, request).log_invoice(
        AuditAction.INVOICE_UPDATED, invoice.id, current_user.id, invoice.invoice_number
    )
    await db.commit()
    await db.refresh(invoice)
    return await _respond(db, invoice)


@router.delete("/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_invoice(
    invoice_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """Delete a draft invoice."""
    invoice = await _get_invoice(db, invoice_id, current_user)
    await _ensure_can_manage(db, current_user, invoice)
    invoice_workflow.ensure_deletable(invoice)
    await db.delete(invoice)
    await db.commit()


@router.post("/{invoice_id}/payments", response_model=InvoiceActionResponse)
async def record_invoice_payment(
    invoice_id: UUID,
    data: InvoicePaymentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """Record a payment against an invoice."""
    invoice = await _get_invoice(db, invoice_id, current_user)
    await _ensure_can_manage(db, current_user, invoice)

    payment, fully_paid = await _record_payment(
        db, invoice, data.amount_cents, current_user, data.payment_method,
        data.reference_number, data.payment_date, data.notes,
    )
    await NotificationService(db).payment_recorded(
        payment, current_user.id, format_currency(payment.amount_cents)
    )
    await db.commit()
    await db.refresh(invoice)
    message = "Invoice fully paid" if fully_paid else (
        f"Payment recorded. Outstanding: {format_currency(invoice_workflow.outstanding(invoice))}"
    )
    return InvoiceActionResponse(invoice=await _respond(db, invoice), message=message)


@router.get("/{invoice_id}/pdf")
async def download_invoice_pdf(
    invoice_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_registered_user),
):
    """Invoice as PDF."""
    invoice = await _get_invoice(db, invoice_id, current_user)
    pdf = await _invoice_pdf(db, invoice)
    headers = {"Content-Disposition": f'inline; filename="{invoice.invoice_number}.pdf"'}
    return StreamingResponse(io.BytesIO(pdf), media_type="application/pdf", headers=headers)


async def _invoice_pdf(db: AsyncSession, invoice: Invoice) -> bytes:
    tenant = await db.get(User, invoice.tenant_id)
    prop = await db.get(Property, invoice.property_id)
    return PDFGenerator().generate_invoice({
        "invoice_number": invoice.invoice_number,
        "issue_date": invoice.issue_date,
        "due_date": invoice.due_date,
        "status": invoice.status.value,
        "tenant_name": tenant.name if tenant else None,
        "tenant_email": tenant.email if tenant else None,
        "property_name": prop.name if prop else None,
        "property_address": prop.address if prop else None,
        "items": [
            {
                "description": item.description,
                "quantity": item.quantity,
                "unit_price_cents": item.unit_price_cents,
                "amount_cents": item.amount_cents,
            }
            for item in invoice.items
        ],
        "subtotal_cents": invoice.subtotal_cents,
        "tax_cents": invoice.tax_cents,
        "total_cents": invoice.total_cents,
        "paid_cents": invoice.paid_cents,
        "payment_terms": invoice.payment_terms,
        "notes": invoice.notes,
    })


@router.post("/{invoice_id}/{action}", response_model=InvoiceActionResponse)
async def invoice_action(
    request: Request,
    invoice_id: UUID,
    action: InvoiceAction,
    data: Optional[InvoiceActionRequest] = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
    email_service: EmailService = Depends(get_email_service),
):
    """Invoice lifecycle actions: send, approve, reject, mark-paid, cancel, remind, duplicate."""
    data = data or InvoiceActionRequest()
    if action in MANAGER_ACTIONS and current_user.role not in MANAGEMENT_ROLES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only managers and admins can approve or reject invoices",
        )

    invoice = await _get_invoice(db, invoice_id, current_user)
    await _ensure_can_manage(db, current_user, invoice)
    tenant = await db.get(User, invoice.tenant_id)
    audit = AuditService(db, request)
    notifier = NotificationService(db)
    reminder = None

    if action == InvoiceAction.SEND:
        invoice_workflow.send(invoice, current_user.id)
        await audit.log_invoice(AuditAction.INVOICE_SENT, invoice.id, current_user.id, invoice.invoice_number)
        await notifier.invoice_event(
            invoice,
            recipient_id=invoice.tenant_id,
            sender_id=current_user.id,
            type=NotificationType.INVOICE_SENT,
            title="New Invoice",
            message=(
                f"Invoice {invoice.invoice_number} for {format_currency(invoice.total_cents)} "
                f"is due on {format_date(invoice.due_date)}."
            ),
        )
        await db.flush()
        await email_service.send(OutgoingEmail(
            to=tenant.email,
            subject=f"Invoice {invoice.invoice_number}",
            body=(
                f"Dear {tenant.name},\n\n"
                f"Please find attached invoice {invoice.invoice_number} for "
                f"{format_currency(invoice.total_cents)}, due on {format_date(invoice.due_date)}.\n\n"
                f"Regards,\n{current_user.name}"
            ),
            attachments=[Attachment(f"{invoice.invoice_number}.pdf", await _invoice_pdf(db, invoice))],
        ))
        message = "Invoice sent"

    elif action == InvoiceAction.APPROVE:
        invoice_workflow.approve(invoice, current_user.id, data.notes)
        await audit.log_invoice(
            AuditAction.INVOICE_APPROVED, invoice.id, current_user.id, invoice.invoice_number, data.notes
        )
        message = "Invoice approved"

    elif action == InvoiceAction.REJECT:
        invoice_workflow.reject(invoice, current_user.id, data.reason or "")
        await audit.log_invoice(
            AuditAction.INVOICE_REJECTED, invoice.id, current_user.id, invoice.invoice_number, data.reason
        )
        message = "Invoice rejected"

    elif action == InvoiceAction.MARK_PAID:
        if invoice.status in (InvoiceStatus.PAID, InvoiceStatus.CANCELLED):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invoice is already {invoice.status.value}",
            )
        amount = data.amount_cents or invoice_workflow.outstanding(invoice)
        _, fully_paid = await _record_payment(
            db, invoice, amount, current_user, data.payment_method, data.reference_number,
            notes=data.notes,
        )
        message = "Invoice marked as paid" if fully_paid else "Partial payment recorded"

    elif action == InvoiceAction.CANCEL:
        invoice_workflow.cancel(invoice, data.reason)
        await audit.log_invoice(
            AuditAction.INVOICE_CANCELLED, invoice.id, current_user.id, invoice.invoice_number, data.reason
        )
        message = "Invoice cancelled"

    elif action == InvoiceAction.REMIND:
        reminder = invoice_workflow.reminder_message(invoice)
        count = invoice_workflow.record_reminder(invoice)
        overdue = invoice.status == InvoiceStatus.OVERDUE
        await notifier.invoice_event(
            invoice,
            recipient_id=invoice.tenant_id,
            sender_id=current_user.id,
            type=NotificationType.PAYMENT_OVERDUE if overdue else NotificationType.PAYMENT_DUE,
            title="Payment Reminder",
            message=reminder,
            priority=NotificationPriority.HIGH if overdue else NotificationPriority.MEDIUM,
        )
        message = f"Reminder sent ({count} total)"

    else:
        copy = invoice_workflow.duplicate(
            invoice, await invoice_workflow.unique_invoice_number(db), current_user.id
        )
        db.add(copy)
        await db.flush()
        await audit.log_invoice(
            AuditAction.INVOICE_CREATED, copy.id, current_user.id, copy.invoice_number,
            f"Duplicated from {invoice.invoice_number}",
        )
        await db.commit()
        await db.refresh(copy)
        return InvoiceActionResponse(invoice=await _respond(db, copy), message="Invoice duplicated")

    await db.commit()
    await db.refresh(invoice)
    logger.info(f"[INVOICES] {invoice.invoice_number}: {action.value} by {current_user.email}")
    return InvoiceActionResponse(invoice=await _respond(db, invoice), message=message, reminder=reminder)
