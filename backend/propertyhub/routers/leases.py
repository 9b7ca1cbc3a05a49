"""Leases router."""

import io
import logging
from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import StreamingResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from propertyhub.core.access import can_manage_property, get_property_or_404, get_scoped_or_404, scope_query
from propertyhub.core.database import get_db
from propertyhub.core.security import require_manager, require_registered_user, require_staff, require_tenant
from propertyhub.models.enums import AuditAction, LeaseStatus, NotificationType, UserRole
from propertyhub.models.lease import Lease
from propertyhub.models.property import Property
from propertyhub.models.user import User
from propertyhub.schemas.lease import (
    ContactLinksResponse,
    ExpireLeasesResponse,
    LeaseActivationRequest,
    LeaseActivationResponse,
    LeaseCreate,
    LeaseListResponse,
    LeaseResponse,
    LeaseSignRequest,
    LeaseTerminateRequest,
    LeaseUpdate,
    NextAction,
)
from propertyhub.services import lease_workflow
from propertyhub.services.audit import AuditService, client_ip
from propertyhub.services.contact_links import LeaseContext, lease_contact_links
from propertyhub.services.notifications import NotificationService
from propertyhub.services.pdf_generator import PDFGenerator
from propertyhub.utils.formatting import status_badge

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/leases", tags=["leases"])


def _to_response(
    lease: Lease,
    prop: Optional[Property] = None,
    tenant: Optional[User] = None,
    include_next_action: bool = False,
) -> LeaseResponse:
    response = LeaseResponse.model_validate(lease)
    response.status_badge = status_badge("lease", lease.status)
    if prop is not None:
        response.property_name = prop.name
    if tenant is not None:
        response.tenant_name = tenant.name
        response.tenant_email = tenant.email
    if include_next_action:
        response.next_action = NextAction(**lease_workflow.next_action(lease))
    return response


async def _load(db: AsyncSession, lease_id: UUID, user: User) -> tuple[Lease, Property, User]:
    lease = await get_scoped_or_404(db, Lease, lease_id, user, "Lease not found")
    prop = await db.get(Property, lease.property_id)
    tenant = await db.get(User, lease.tenant_id)
    return lease, prop, tenant


def _ensure_can_manage(user: User, prop: Property) -> None:
    if not can_manage_property(user, prop):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not manage this property",
        )


@router.post("", response_model=LeaseResponse, status_code=status.HTTP_201_CREATED)
async def create_lease(
    request: Request,
    data: LeaseCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """Create a new lease (draft status)."""
    prop = await get_property_or_404(db, data.property_id, current_user)
    _ensure_can_manage(current_user, prop)

    tenant = await db.get(User, data.tenant_id)
    if not tenant or tenant.role != UserRole.TENANT:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Tenant not found")
    if not tenant.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Tenant account is inactive")

    lease = Lease(
        landlord_id=prop.landlord_id,
        status=LeaseStatus.DRAFT,
        status_history=[],
        **data.model_dump(),
    )
    lease_workflow.initialize_balances(lease)
    db.add(lease)
    await db.flush()

    await AuditService(db, request).log_lease(
        AuditAction.LEASE_CREATED, lease.id, current_user.id, to_status=LeaseStatus.DRAFT.value
    )
    await db.commit()
    await db.refresh(lease)
    logger.info(f"[LEASES] Lease {lease.id} created for {tenant.email} at {prop.name}")
    return _to_response(lease, prop, tenant, include_next_action=True)


@router.get("", response_model=LeaseListResponse)
async def list_leases(
    status: Optional[LeaseStatus] = None,
    property_id: Optional[UUID] = None,
    tenant_id: Optional[UUID] = None,
    expiring: bool = False,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_registered_user),
):
    """List leases in scope with denormalized property/tenant info."""
    query = (
        select(Lease, Property, User)
        .join(Property, Lease.property_id == Property.id)
        .join(User, Lease.tenant_id == User.id)
    )
    query = scope_query(query, current_user, Lease.tenant_id, Lease.property_id)
    if status:
        query = query.where(Lease.status == status)
    if property_id:
        query = query.where(Lease.property_id == property_id)
    if tenant_id:
        query = query.where(Lease.tenant_id == tenant_id)

    result = await db.execute(query.order_by(Lease.created_at.desc()))
    rows = result.all()
    if expiring:
        today = date.today()
        rows = [row for row in rows if lease_workflow.is_expiring(row[0], today)]

    leases = [_to_response(lease, prop, tenant) for lease, prop, tenant in rows]
    return LeaseListResponse(leases=leases, total=len(leases))


@router.post("/expire", response_model=ExpireLeasesResponse)
async def expire_leases(
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    """Mark active leases past their end date as expired."""
    expired = await lease_workflow.expire_ended_leases(db)
    audit = AuditService(db, request)
    for lease in expired:
        await audit.log_lease(
            AuditAction.LEASE_EXPIRED,
            lease.id,
            current_user.id,
            LeaseStatus.ACTIVE.value,
            LeaseStatus.EXPIRED.value,
        )
    await db.commit()
    return ExpireLeasesResponse(expired=len(expired), lease_ids=[lease.id for lease in expired])


@router.get("/{lease_id}", response_model=LeaseResponse)
async def get_lease(
    lease_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_registered_user),
):
    """Get a lease with its next action."""
    lease, prop, tenant = await _load(db, lease_id, current_user)
    return _to_response(lease, prop, tenant, include_next_action=True)


@router.patch("/{lease_id}", response_model=LeaseResponse)
async def update_lease(
    lease_id: UUID,
    data: LeaseUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """Update a draft lease."""
    lease, prop, tenant = await _load(db, lease_id, current_user)
    _ensure_can_manage(current_user, prop)
    if lease.status != LeaseStatus.DRAFT:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only draft leases can be edited",
        )

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(lease, field, value)
    if lease.end_date <= lease.start_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="end_date must be after start_date",
        )

    lease.first_payment_required_cents = lease_workflow.first_payment_amount(lease)
    lease.balance_due_cents = max(0, lease.first_payment_required_cents - (lease.total_paid_cents or 0))

    await db.commit()
    await db.refresh(lease)
    return _to_response(lease, prop, tenant, include_next_action=True)


@router.post("/{lease_id}/send", response_model=LeaseResponse)
async def send_lease(
    request: Request,
    lease_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """Send a draft lease to the tenant for signature."""
    lease, prop, tenant = await _load(db, lease_id, current_user)
    _ensure_can_manage(current_user, prop)

    lease_workflow.send_to_tenant(lease, current_user.id)
    await AuditService(db, request).log_lease(
        AuditAction.LEASE_SENT, lease.id, current_user.id,
        LeaseStatus.DRAFT.value, lease.status.value,
    )
    await NotificationService(db).lease_event(
        lease,
        recipient_id=lease.tenant_id,
        sender_id=current_user.id,
        type=NotificationType.LEASE_SENT,
        title="Lease Ready for Signature",
        message=f"Your lease for {prop.name} is ready to review and sign.",
        action_required=True,
    )
    await db.commit()
    await db.refresh(lease)
    return _to_response(lease, prop, tenant, include_next_action=True)


@router.post("/{lease_id}/sign", response_model=LeaseResponse)
async def sign_lease(
    request: Request,
    lease_id: UUID,
    data: LeaseSignRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_tenant),
):
    """Tenant signs a lease that is awaiting signature."""
    lease, prop, tenant = await _load(db, lease_id, current_user)

    lease_workflow.sign_by_tenant(lease, data.signature_data, client_ip(request), current_user.id)
    await AuditService(db, request).log_lease(
        AuditAction.LEASE_SIGNED, lease.id, current_user.id,
        LeaseStatus.PENDING_SIGNATURE.value, lease.status.value,
    )
    await NotificationService(db).lease_event(
        lease,
        recipient_id=lease.landlord_id,
        sender_id=current_user.id,
        type=NotificationType.LEASE_SIGNED,
        title="Lease Signed",
        message=f"{tenant.name} signed the lease for {prop.name}.",
    )
    await db.commit()
    await db.refresh(lease)
    return _to_response(lease, prop, tenant, include_next_action=True)


@router.post("/{lease_id}/activate", response_model=LeaseActivationResponse)
async def activate_lease(
    request: Request,
    lease_id: UUID,
    data: LeaseActivationRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """Manually activate or deactivate a lease."""
    lease, prop, tenant = await _load(db, lease_id, current_user)
    _ensure_can_manage(current_user, prop)
    from_status = lease.status.value

    if data.action == "activate":
        lease_workflow.manual_activate(lease, data.reason, actor_id=current_user.id)
        action = AuditAction.LEASE_ACTIVATED
        message = "Lease activated successfully"
        await NotificationService(db).lease_event(
            lease,
            recipient_id=lease.tenant_id,
            sender_id=current_user.id,
            type=NotificationType.LEASE_ACTIVATED,
            title="Lease Activated",
            message=f"Your lease for {prop.name} is now active.",
        )
    else:
        lease_workflow.manual_deactivate(lease, data.reason, current_user.id)
        action = AuditAction.LEASE_DEACTIVATED
        message = "Lease deactivated successfully"

    await AuditService(db, request).log_lease(
        action, lease.id, current_user.id, from_status, lease.status.value, data.reason
    )
    await db.commit()
    await db.refresh(lease)
    logger.info(f"[LEASES] Lease {lease.id} {data.action}d by {current_user.email}")
    return LeaseActivationResponse(
        lease=_to_response(lease, prop, tenant, include_next_action=True),
        message=message,
    )


@router.post("/{lease_id}/terminate", response_model=LeaseResponse)
async def terminate_lease(
    request: Request,
    lease_id: UUID,
    data: LeaseTerminateRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """Terminate a lease early."""
    lease, prop, tenant = await _load(db, lease_id, current_user)
    _ensure_can_manage(current_user, prop)
    from_status = lease.status.value

    lease_workflow.terminate(lease, data.reason, current_user.id)
    await AuditService(db, request).log_lease(
        AuditAction.LEASE_TERMINATED, lease.id, current_user.id,
        from_status, lease.status.value, data.reason,
    )
    await db.commit()
    await db.refresh(lease)
    return _to_response(lease, prop, tenant, include_next_action=True)


@router.get("/{lease_id}/pdf")
async def download_lease_pdf(
    lease_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_registered_user),
):
    """Lease agreement as PDF."""
    lease, prop, tenant = await _load(db, lease_id, current_user)
    landlord = await db.get(User, lease.landlord_id)

    pdf = PDFGenerator().generate_lease({
        "lease_id": str(lease.id),
        "landlord_name": landlord.name if landlord else None,
        "tenant_name": tenant.name,
        "tenant_email": tenant.email,
        "property_name": prop.name,
        "property_address": prop.address,
        "start_date": lease.start_date,
        "end_date": lease.end_date,
        "monthly_rent_cents": lease.monthly_rent_cents,
        "security_deposit_cents": lease.security_deposit_cents,
        "payment_due_day": lease.payment_due_day,
        "status": lease.status.value,
        "pet_policy": lease.pet_policy,
        "smoking_policy": lease.smoking_policy,
        "maintenance_responsibility": lease.maintenance_responsibility,
        "utilities_included": lease.utilities_included,
        "special_conditions": lease.special_conditions,
        "tenant_signed_at": lease.tenant_signed_at,
    })
    headers = {"Content-Disposition": f'inline; filename="lease_{lease.id}.pdf"'}
    return StreamingResponse(io.BytesIO(pdf), media_type="application/pdf", headers=headers)


@router.get("/{lease_id}/contact-links", response_model=ContactLinksResponse)
async def get_lease_contact_links(
    lease_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """WhatsApp message, Gmail compose and inspection calendar links for a lease."""
    lease, prop, tenant = await _load(db, lease_id, current_user)
    landlord = await db.get(User, lease.landlord_id)

    ctx = LeaseContext(
        tenant_name=tenant.name,
        landlord_name=landlord.name if landlord else current_user.name,
        property_name=prop.name,
        monthly_rent_cents=lease.monthly_rent_cents,
        balance_due_cents=lease.balance_due_cents or 0,
        start_date=lease.start_date,
        end_date=lease.end_date,
        status=status_badge("lease", lease.status)["label"],
        next_payment_due=lease.next_payment_due,
    )
    return ContactLinksResponse(**lease_contact_links(ctx, tenant.phone, tenant.email))
