"""Payments router - recording, verification, approval and mobile money."""

import io
import logging
import math
from datetime import date, datetime
from typing import Any, Literal, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request, status
from fastapi.responses import StreamingResponse
from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from propertyhub.core.config import get_settings
from propertyhub.core.access import can_manage_property, get_property_or_404, get_scoped_or_404, scope_query
from propertyhub.core.database import get_db
from propertyhub.core.rate_limit import limiter
from propertyhub.core.security import require_manager, require_registered_user, require_staff, require_tenant
from propertyhub.models.enums import (
    ApprovalStatus,
    AuditAction,
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
from propertyhub.schemas.base import Pagination, ReasonRequest, NotesRequest
from propertyhub.schemas.payment import (
    MomoInitiateRequest,
    MomoInitiateResponse,
    MomoStatusResponse,
    PaymentActionResponse,
    PaymentCreate,
    PaymentListResponse,
    PaymentResponse,
    PaymentUpdate,
    PaymentVerifyRequest,
)
from propertyhub.services import payment_workflow
from propertyhub.services.audit import AuditService
from propertyhub.services.email import Attachment, EmailService, OutgoingEmail, get_email_service
from propertyhub.services.momo import (
    STATUS_FAILED,
    STATUS_PENDING,
    STATUS_SUCCESSFUL,
    MomoClient,
    MomoError,
    get_momo_client,
    validate_phone_number,
)
from propertyhub.services.notifications import NotificationService
from propertyhub.services.pdf_generator import PDFGenerator
from propertyhub.utils.formatting import format_currency, from_cents, status_badge

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["payments"])
settings = get_settings()

OVERDUE_FILTER = "overdue"

SORT_COLUMNS = {
    "payment_date": Payment.payment_date,
    "amount": Payment.amount_cents,
    "created_at": Payment.created_at,
    "status": Payment.status,
    "due_date": Payment.due_date,
}


def _to_response(
    payment: Payment,
    tenant: Optional[User] = None,
    prop: Optional[Property] = None,
    today: Optional[date] = None,
) -> PaymentResponse:
    response = PaymentResponse.model_validate(payment)
    response.amount_display = format_currency(payment.amount_cents)
    response.is_overdue = payment_workflow.is_overdue(payment, today)
    response.status_badge = status_badge("payment", payment.status)
    if tenant is not None:
        response.tenant_name = tenant.name
    if prop is not None:
        response.property_name = prop.name
    return response


async def _respond(db: AsyncSession, payment: Payment) -> PaymentResponse:
    tenant = await db.get(User, payment.tenant_id)
    prop = await db.get(Property, payment.property_id)
    return _to_response(payment, tenant, prop)


async def _get_payment(db: AsyncSession, payment_id: UUID, user: User) -> Payment:
    return await get_scoped_or_404(db, Payment, payment_id, user, "Payment not found")


async def _get_lease(db: AsyncSession, payment: Payment) -> Optional[Lease]:
    if payment.lease_id is None:
        return None
    return await db.get(Lease, payment.lease_id)


def _ensure_can_manage(user: User, prop: Optional[Property]) -> None:
    if prop is None or not can_manage_property(user, prop):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not manage this property",
        )


# --- Mobile money ---

def _reconcile_momo(payment: Payment, momo_status: str, data: dict[str, Any]) -> bool:
    """Apply a MoMo status to a pending payment. Returns True if the payment changed."""
    if payment.status != PaymentStatus.PENDING:
        return False
    if momo_status == STATUS_SUCCESSFUL:
        payment.status = PaymentStatus.COMPLETED
        payment.reference_number = data.get("financialTransactionId") or payment.reference_number
        return True
    if momo_status == STATUS_FAILED:
        payment.status = PaymentStatus.FAILED
        payment.notes = f"Mobile money payment failed: {data.get('reason', 'unknown reason')}"
        return True
    return False


async def _notify_momo_result(db: AsyncSession, payment: Payment) -> None:
    notifier = NotificationService(db)
    lease = await _get_lease(db, payment)
    if payment.status == PaymentStatus.COMPLETED:
        if lease is not None:
            await notifier.create(
                recipient_id=lease.landlord_id,
                type=NotificationType.PAYMENT_SUBMITTED,
                title="Mobile Money Payment Received",
                message=(
                    f"Mobile money payment {payment.receipt_number} of "
                    f"{format_currency(payment.amount_cents)} completed and awaits verification."
                ),
                related_type="payment",
                related_id=payment.id,
                action_required=True,
            )
    elif payment.status == PaymentStatus.FAILED:
        await notifier.create(
            recipient_id=payment.tenant_id,
            type=NotificationType.GENERAL,
            title="Mobile Money Payment Failed",
            message=f"Your mobile money payment {payment.receipt_number} could not be completed.",
            related_type="payment",
            related_id=payment.id,
            priority=NotificationPriority.HIGH,
        )


@router.post("/momo/initiate", response_model=MomoInitiateResponse, status_code=status.HTTP_202_ACCEPTED)
@limiter.limit(settings.rate_limit_momo)
async def initiate_momo_payment(
    request: Request,
    data: MomoInitiateRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_tenant),
    momo: MomoClient = Depends(get_momo_client),
):
    """Start an MTN MoMo request-to-pay for the tenant's own lease."""
    if not momo.enabled:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Mobile money payments are not enabled",
        )
    if not validate_phone_number(data.phone_number):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid Zambian mobile number. Use 09XXXXXXXX, 07XXXXXXXX or +260XXXXXXXXX",
        )
    payment_workflow.validate_amount(data.amount_cents)
    lease = await get_scoped_or_404(db, Lease, data.lease_id, current_user, "Lease not found")

    receipt_number = await payment_workflow.unique_receipt_number(db)
    try:
        reference_id = await momo.request_to_pay(
            amount=str(from_cents(data.amount_cents)),
            phone_number=data.phone_number,
            external_id=receipt_number,
            payer_message=f"Rent payment {receipt_number}",
        )
    except MomoError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    payment = Payment(
        receipt_number=receipt_number,
        tenant_id=current_user.id,
        property_id=lease.property_id,
        lease_id=lease.id,
        invoice_id=data.invoice_id,
        amount_cents=data.amount_cents,
        payment_date=date.today(),
        payment_method=PaymentMethod.MOBILE_MONEY,
        payment_type=data.payment_type,
        status=PaymentStatus.PENDING,
        approval_status=ApprovalStatus.PENDING,
        description=data.description or "Mobile money payment",
        recorded_by_id=current_user.id,
        momo_reference_id=reference_id,
    )
    db.add(payment)
    await db.flush()
    await AuditService(db, request).log_payment(
        AuditAction.PAYMENT_RECORDED, payment.id, current_user.id,
        payment.receipt_number, payment.amount_cents, "Mobile money request to pay",
    )
    await db.commit()

    return MomoInitiateResponse(
        payment_id=payment.id,
        reference_id=reference_id,
        status=STATUS_PENDING,
        message="Approve the payment prompt on your phone to complete the payment",
    )


@router.get("/momo/status/{reference_id}", response_model=MomoStatusResponse)
async def get_momo_status(
    reference_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_registered_user),
    momo: MomoClient = Depends(get_momo_client),
):
    """Poll MoMo for a request-to-pay and reconcile the payment."""
    query = scope_query(
        select(Payment).where(Payment.momo_reference_id == reference_id),
        current_user,
        Payment.tenant_id,
        Payment.property_id,
    )
    payment = (await db.execute(query)).scalar_one_or_none()
    if not payment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Payment not found")

    try:
        data = await momo.get_payment_status(reference_id)
    except MomoError as e:
        code = status.HTTP_404_NOT_FOUND if e.status_code == 404 else status.HTTP_502_BAD_GATEWAY
        raise HTTPException(status_code=code, detail=str(e))

    momo_status = data.get("status", STATUS_PENDING)
    if _reconcile_momo(payment, momo_status, data):
        await _notify_momo_result(db, payment)
        await db.commit()
        logger.info(f"[MOMO] Payment {payment.receipt_number} -> {payment.status.value}")

    return MomoStatusResponse(
        reference_id=reference_id,
        momo_status=momo_status,
        payment=await _respond(db, payment),
    )


@router.post("/momo/webhook")
async def momo_webhook(
    payload: dict[str, Any] = Body(...),
    reference_id: Optional[str] = Query(None, alias="referenceId"),
    db: AsyncSession = Depends(get_db),
    momo: MomoClient = Depends(get_momo_client),
):
    """MoMo callback. The status is re-fetched from MoMo rather than trusted from the body."""
    if not momo.enabled:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")

    query = select(Payment)
    ref = reference_id or payload.get("referenceId")
    if ref:
        query = query.where(Payment.momo_reference_id == ref)
    elif payload.get("externalId"):
        query = query.where(Payment.receipt_number == payload["externalId"])
    else:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing payment reference")

    payment = (await db.execute(query)).scalar_one_or_none()
    if not payment or not payment.momo_reference_id:
        logger.warning(f"[MOMO] Webhook for unknown payment: {payload}")
        return {"received": True}

    try:
        data = await momo.get_payment_status(payment.momo_reference_id)
    except MomoError as e:
        logger.error(f"[MOMO] Webhook status check failed for {payment.receipt_number}: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    if _reconcile_momo(payment, data.get("status", STATUS_PENDING), data):
        await _notify_momo_result(db, payment)
        await db.commit()
        logger.info(f"[MOMO] Webhook reconciled {payment.receipt_number} -> {payment.status.value}")
    return {"received": True}


# --- Payments ---

@router.get("", response_model=PaymentListResponse)
async def list_payments(
    status_filter: Optional[str] = Query(None, alias="status"),
    tenant_id: Optional[UUID] = None,
    property_id: Optional[UUID] = None,
    lease_id: Optional[UUID] = None,
    payment_method: Optional[PaymentMethod] = None,
    payment_type: Optional[PaymentType] = None,
    approval_status: Optional[ApprovalStatus] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    min_amount_cents: Optional[int] = Query(None, ge=0),
    max_amount_cents: Optional[int] = Query(None, ge=0),
    search: Optional[str] = Query(None, max_length=100),
    sort: str = Query("payment_date"),
    order: Literal["asc", "desc"] = "desc",
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_registered_user),
):
    """List payments in scope.

    ``status`` accepts any payment status plus ``overdue`` (due date passed,
    not completed/verified).
    """
    if sort not in SORT_COLUMNS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid sort key. Use one of: {', '.join(SORT_COLUMNS)}",
        )
    today = date.today()

    base: Select = scope_query(select(Payment), current_user, Payment.tenant_id, Payment.property_id)
    if tenant_id:
        base = base.where(Payment.tenant_id == tenant_id)
    if property_id:
        base = base.where(Payment.property_id == property_id)
    if lease_id:
        base = base.where(Payment.lease_id == lease_id)
    if payment_method:
        base = base.where(Payment.payment_method == payment_method)
    if payment_type:
        base = base.where(Payment.payment_type == payment_type)
    if approval_status:
        base = base.where(Payment.approval_status == approval_status)
    if date_from:
        base = base.where(Payment.payment_date >= date_from)
    if date_to:
        base = base.where(Payment.payment_date <= date_to)
    if min_amount_cents is not None:
        base = base.where(Payment.amount_cents >= min_amount_cents)
    if max_amount_cents is not None:
        base = base.where(Payment.amount_cents <= max_amount_cents)
    if search:
        pattern = f"%{search}%"
        base = base.where(
            or_(
                Payment.receipt_number.ilike(pattern),
                Payment.reference_number.ilike(pattern),
                Payment.description.ilike(pattern),
            )
        )

    # Counts ignore the status filter so the UI can show every tab
    scoped = base.subquery()
    count_rows = await db.execute(
        select(scoped.c.status, func.count()).group_by(scoped.c.status)
    )
    status_counts = {s.value: 0 for s in PaymentStatus}
    for value, count in count_rows.all():
        status_counts[value.value] = count
    overdue_count = (
        await db.execute(
            select(func.count()).select_from(base.where(payment_workflow.overdue_clause(today)).subquery())
        )
    ).scalar() or 0
    status_counts[OVERDUE_FILTER] = overdue_count

    filtered = base
    if status_filter == OVERDUE_FILTER:
        filtered = filtered.where(payment_workflow.overdue_clause(today))
    elif status_filter:
        try:
            filtered = filtered.where(Payment.status == PaymentStatus(status_filter))
        except ValueError:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid status filter")

    matched = filtered.subquery()
    totals = (
        await db.execute(
            select(func.count(), func.coalesce(func.sum(matched.c.amount_cents), 0)).select_from(matched)
        )
    ).one()
    total = totals[0] or 0

    column = SORT_COLUMNS[sort]
    ordering = column.asc() if order == "asc" else column.desc()
    rows = (
        await db.execute(
            filtered.add_columns(User, Property)
            .join(User, Payment.tenant_id == User.id)
            .join(Property, Payment.property_id == Property.id)
            .order_by(ordering, Payment.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
    ).all()

    return PaymentListResponse(
        payments=[_to_response(p, t, prop, today) for p, t, prop in rows],
        pagination=Pagination(
            page=page,
            limit=limit,
            total=total,
            pages=math.ceil(total / limit) if total else 0,
        ),
        status_counts=status_counts,
        total_amount_cents=int(totals[1] or 0),
    )


@router.post("", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.rate_limit_payments)
async def create_payment(
    request: Request,
    data: PaymentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_registered_user),
):
    """Record a payment.

    Staff record payments for tenants on their properties. Tenants submit
    payments against their own lease; those always start pending.
    """
    payment_workflow.validate_amount(data.amount_cents)
    is_tenant = current_user.role == UserRole.TENANT

    lease: Optional[Lease] = None
    if data.lease_id:
        lease = await get_scoped_or_404(db, Lease, data.lease_id, current_user, "Lease not found")
    elif is_tenant:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="lease_id is required when submitting a payment",
        )

    if lease is not None:
        tenant_id = lease.tenant_id
        prop = await db.get(Property, lease.property_id)
    else:
        if not data.tenant_id or not data.property_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="tenant_id and property_id are required without a lease",
            )
        tenant_id = data.tenant_id
        prop = await get_property_or_404(db, data.property_id, current_user)

    if not is_tenant:
        _ensure_can_manage(current_user, prop)
    tenant = await db.get(User, tenant_id)
    if not tenant or tenant.role != UserRole.TENANT:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Tenant not found")

    if data.invoice_id:
        invoice = await db.get(Invoice, data.invoice_id)
        if not invoice or invoice.tenant_id != tenant_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invoice not found for this tenant")

    duplicate = await payment_workflow.find_duplicate(
        db, tenant_id, data.amount_cents, data.payment_date, data.reference_number
    )
    if duplicate:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"A matching payment already exists ({duplicate.receipt_number})",
        )

    initial_status = PaymentStatus.PENDING if is_tenant else (data.status or PaymentStatus.PENDING)
    payment = Payment(
        receipt_number=await payment_workflow.unique_receipt_number(db),
        tenant_id=tenant_id,
        property_id=prop.id,
        lease_id=lease.id if lease else None,
        invoice_id=data.invoice_id,
        amount_cents=data.amount_cents,
        late_fee_cents=data.late_fee_cents,
        payment_date=data.payment_date,
        due_date=data.due_date,
        payment_method=data.payment_method,
        payment_type=data.payment_type,
        status=initial_status,
        approval_status=ApprovalStatus.PENDING,
        reference_number=data.reference_number,
        description=data.description,
        notes=data.notes,
        recorded_by_id=current_user.id,
    )
    if initial_status == PaymentStatus.COMPLETED:
        # Staff recording a completed payment approves it in the same step
        payment.approval_status = ApprovalStatus.APPROVED
        payment.approved_by_id = current_user.id
        payment.approved_at = datetime.utcnow()
    db.add(payment)
    await db.flush()

    notifier = NotificationService(db)
    amount_text = format_currency(payment.amount_cents)
    if is_tenant:
        await notifier.create(
            recipient_id=prop.landlord_id,
            sender_id=current_user.id,
            type=NotificationType.PAYMENT_SUBMITTED,
            title="Payment Submitted",
            message=f"{current_user.name} submitted a payment of {amount_text} for {prop.name}.",
            related_type="payment",
            related_id=payment.id,
            action_required=True,
        )
    else:
        await notifier.payment_recorded(payment, current_user.id, amount_text)

    await AuditService(db, request).log_payment(
        AuditAction.PAYMENT_RECORDED, payment.id, current_user.id,
        payment.receipt_number, payment.amount_cents,
    )
    await db.commit()
    await db.refresh(payment)
    logger.info(f"[PAYMENTS] {payment.receipt_number} recorded ({amount_text}) by {current_user.email}")
    return _to_response(payment, tenant, prop)


@router.get("/{payment_id}", response_model=PaymentResponse)
async def get_payment(
    payment_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_registered_user),
):
    """Get a payment by ID."""
    return await _respond(db, await _get_payment(db, payment_id, current_user))


@router.patch("/{payment_id}", response_model=PaymentResponse)
async def update_payment(
    payment_id: UUID,
    data: PaymentUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_registered_user),
):
    """Edit a pending payment (staff, or the tenant who submitted it)."""
    payment = await _get_payment(db, payment_id, current_user)
    if current_user.role == UserRole.TENANT and payment.recorded_by_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only edit payments you submitted",
        )
    payment_workflow.ensure_editable(payment)

    updates = data.model_dump(exclude_unset=True)
    if "amount_cents" in updates:
        payment_workflow.validate_amount(updates["amount_cents"])
    for field, value in updates.items():
        setattr(payment, field, value)

    await db.commit()
    await db.refresh(payment)
    return await _respond(db, payment)


@router.post("/{payment_id}/verify", response_model=PaymentActionResponse)
async def verify_payment(
    request: Request,
    payment_id: UUID,
    data: PaymentVerifyRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """Verify or dispute a payment.

    Verifying credits the lease and activates it on the first verified payment.
    Disputing reverses a previous verification.
    """
    payment = await _get_payment(db, payment_id, current_user)
    _ensure_can_manage(current_user, await db.get(Property, payment.property_id))
    lease = await _get_lease(db, payment)
    notifier = NotificationService(db)
    audit = AuditService(db, request)

    if data.action == "verify":
        result = payment_workflow.verify(payment, lease, current_user.id, data.notes)
        await notifier.payment_verified(payment, current_user.id, result.message)
        if result.activation == "activated":
            await notifier.lease_event(
                lease,
                recipient_id=lease.tenant_id,
                sender_id=current_user.id,
                type=NotificationType.LEASE_ACTIVATED,
                title="Lease Activated",
                message="Your first payment was verified and your lease is now active.",
            )
            await audit.log_lease(
                AuditAction.LEASE_ACTIVATED, lease.id, current_user.id,
                to_status=lease.status.value, reason="First verified payment",
            )
        await audit.log_payment(
            AuditAction.PAYMENT_VERIFIED, payment.id, current_user.id,
            payment.receipt_number, payment.amount_cents, data.notes,
        )
    else:
        other_verified = 0
        if lease is not None:
            other_verified = await payment_workflow.count_other_verified(db, lease.id, payment.id)
        result = payment_workflow.dispute(payment, lease, current_user.id, data.notes, other_verified)
        await notifier.payment_disputed(payment, current_user.id, data.notes)
        if result.activation == "review_required":
            await notifier.lease_event(
                lease,
                recipient_id=lease.landlord_id,
                type=NotificationType.GENERAL,
                title="Lease Needs Review",
                message=(
                    f"Payment {payment.receipt_number} was disputed and the lease "
                    "has no remaining verified payments."
                ),
                action_required=True,
            )
        await audit.log_payment(
            AuditAction.PAYMENT_DISPUTED, payment.id, current_user.id,
            payment.receipt_number, payment.amount_cents, data.notes,
        )

    await db.commit()
    await db.refresh(payment)
    return PaymentActionResponse(
        payment=await _respond(db, payment),
        message=result.message,
        lease_status=result.lease_status,
        activation=result.activation,
    )


@router.post("/{payment_id}/approve", response_model=PaymentActionResponse)
async def approve_payment(
    request: Request,
    payment_id: UUID,
    data: NotesRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    """Approve a pending payment (manager/admin)."""
    payment = await _get_payment(db, payment_id, current_user)
    payment_workflow.approve(payment, current_user.id, data.notes)
    await AuditService(db, request).log_payment(
        AuditAction.PAYMENT_APPROVED, payment.id, current_user.id,
        payment.receipt_number, payment.amount_cents, data.notes,
    )
    await db.commit()
    await db.refresh(payment)
    return PaymentActionResponse(payment=await _respond(db, payment), message="Payment approved")


@router.post("/{payment_id}/reject", response_model=PaymentActionResponse)
async def reject_payment(
    request: Request,
    payment_id: UUID,
    data: ReasonRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    """Reject a pending payment (manager/admin)."""
    payment = await _get_payment(db, payment_id, current_user)
    payment_workflow.reject(payment, current_user.id, data.reason)
    await NotificationService(db).create(
        recipient_id=payment.tenant_id,
        sender_id=current_user.id,
        type=NotificationType.GENERAL,
        title="Payment Rejected",
        message=f"Payment {payment.receipt_number} was rejected: {data.reason}",
        related_type="payment",
        related_id=payment.id,
        priority=NotificationPriority.HIGH,
    )
    await AuditService(db, request).log_payment(
        AuditAction.PAYMENT_REJECTED, payment.id, current_user.id,
        payment.receipt_number, payment.amount_cents, data.reason,
    )
    await db.commit()
    await db.refresh(payment)
    return PaymentActionResponse(payment=await _respond(db, payment), message="Payment rejected")


@router.post("/{payment_id}/cancel", response_model=PaymentActionResponse)
async def cancel_payment(
    request: Request,
    payment_id: UUID,
    data: ReasonRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """Cancel a payment that has not been verified."""
    payment = await _get_payment(db, payment_id, current_user)
    _ensure_can_manage(current_user, await db.get(Property, payment.property_id))
    payment_workflow.cancel(payment, current_user.id, data.reason)
    await AuditService(db, request).log_payment(
        AuditAction.PAYMENT_CANCELLED, payment.id, current_user.id,
        payment.receipt_number, payment.amount_cents, data.reason,
    )
    await db.commit()
    await db.refresh(payment)
    return PaymentActionResponse(payment=await _respond(db, payment), message="Payment cancelled")


async def _receipt_pdf(db: AsyncSession, payment: Payment) -> bytes:
    tenant = await db.get(User, payment.tenant_id)
    prop = await db.get(Property, payment.property_id)
    return PDFGenerator().generate_receipt({
        "receipt_number": payment.receipt_number,
        "payment_date": payment.payment_date,
        "amount_cents": payment.amount_cents,
        "payment_method": payment.payment_method.value,
        "payment_type": payment.payment_type.value,
        "status": payment.status.value,
        "reference_number": payment.reference_number,
        "description": payment.description,
        "tenant_name": tenant.name if tenant else None,
        "property_name": prop.name if prop else None,
    })


@router.get("/{payment_id}/receipt")
async def download_receipt(
    payment_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_registered_user),
):
    """Payment receipt as PDF."""
    payment = await _get_payment(db, payment_id, current_user)
    pdf = await _receipt_pdf(db, payment)
    headers = {"Content-Disposition": f'inline; filename="receipt_{payment.receipt_number}.pdf"'}
    return StreamingResponse(io.BytesIO(pdf), media_type="application/pdf", headers=headers)


@router.post("/{payment_id}/send-receipt")
async def send_receipt(
    payment_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
    email_service: EmailService = Depends(get_email_service),
):
    """Email the receipt PDF to the tenant."""
    payment = await _get_payment(db, payment_id, current_user)
    if payment.status not in payment_workflow.SETTLED_STATUSES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Receipts can only be sent for completed or verified payments",
        )
    tenant = await db.get(User, payment.tenant_id)

    sent = await email_service.send(OutgoingEmail(
        to=tenant.email,
        subject=f"Payment Receipt {payment.receipt_number}",
        body=(
            f"Dear {tenant.name},\n\n"
            f"Thank you for your payment of {format_currency(payment.amount_cents)} "
            f"received on {payment.payment_date:%d %b %Y}.\n\n"
            f"Your receipt is attached.\n\n"
            f"Regards,\n{current_user.name}"
        ),
        attachments=[Attachment(f"receipt_{payment.receipt_number}.pdf", await _receipt_pdf(db, payment))],
    ))
    if sent:
        payment.receipt_sent_at = datetime.utcnow()
        await db.commit()

    return {
        "sent": sent,
        "message": f"Receipt sent to {tenant.email}" if sent else "Receipt could not be emailed",
    }
