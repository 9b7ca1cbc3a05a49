"""Tenants router - tenant accounts as seen by staff."""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import Select, case, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from propertyhub.core.access import owned_property_ids, scope_tenants
from propertyhub.core.database import get_db
from propertyhub.core.security import require_staff
from propertyhub.models.enums import (
    AuditAction,
    LeaseStatus,
    PaymentStatus,
    UserRole,
)
from propertyhub.models.lease import Lease
from propertyhub.models.payment import Payment
from propertyhub.models.property import Property
from propertyhub.models.user import User
from propertyhub.schemas.lease import ContactLinksResponse, LeaseResponse
from propertyhub.schemas.tenant import (
    TenantDetailResponse,
    TenantListResponse,
    TenantPaymentSummary,
    TenantSummary,
)
from propertyhub.schemas.user import ProfileUpdate, UserCreate, UserResponse
from propertyhub.services.audit import AuditService
from propertyhub.services.contact_links import tenant_contact_links

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tenants", tags=["tenants"])


async def _get_tenant_or_404(db: AsyncSession, tenant_id: UUID, user: User) -> User:
    result = await db.execute(scope_tenants(select(User).where(User.id == tenant_id), user))
    tenant = result.scalar_one_or_none()
    if not tenant:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tenant not found")
    return tenant


def _lease_scope(query: Select, user: User) -> Select:
    if user.role == UserRole.LANDLORD:
        return query.where(Lease.property_id.in_(owned_property_ids(user)))
    return query


@router.get("", response_model=TenantListResponse)
async def list_tenants(
    search: Optional[str] = Query(None, max_length=100),
    is_active: Optional[bool] = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """List tenants in scope with their active lease count and balance."""
    query = scope_tenants(select(User), current_user)
    if is_active is not None:
        query = query.where(User.is_active == is_active)
    if search:
        pattern = f"%{search.lower()}%"
        query = query.where(
            or_(
                func.lower(User.name).like(pattern),
                func.lower(User.email).like(pattern),
                User.phone.like(f"%{search}%"),
            )
        )
    result = await db.execute(query.order_by(User.name))
    tenants = result.scalars().all()

    stats_query = _lease_scope(
        select(
            Lease.tenant_id,
            func.sum(case((Lease.status == LeaseStatus.ACTIVE, 1), else_=0)).label("active"),
            func.coalesce(func.sum(Lease.balance_due_cents), 0).label("balance"),
        ).group_by(Lease.tenant_id),
        current_user,
    )
    stats = {row.tenant_id: row for row in (await db.execute(stats_query)).all()}

    rows = []
    for tenant in tenants:
        summary = TenantSummary.model_validate(tenant)
        if tenant.id in stats:
            summary.active_lease_count = int(stats[tenant.id].active or 0)
            summary.balance_due_cents = int(stats[tenant.id].balance or 0)
        rows.append(summary)
    return TenantListResponse(tenants=rows, total=len(rows))


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_tenant(
    request: Request,
    data: UserCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """Invite a tenant. The tenant claims the account by registering with this email."""
    existing = await db.execute(
        select(User.id).where(func.lower(User.email) == data.email.lower())
    )
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already in use")

    tenant = User(
        email=data.email.lower(),
        name=data.name,
        phone=data.phone,
        company=data.company,
        role=UserRole.TENANT,
    )
    db.add(tenant)
    await db.flush()
    await AuditService(db, request).log(
        action=AuditAction.USER_CREATED,
        resource_type="user",
        resource_id=tenant.id,
        user_id=current_user.id,
        details={"role": UserRole.TENANT.value, "invited": True},
    )
    await db.commit()
    await db.refresh(tenant)
    logger.info(f"[TENANTS] {current_user.email} invited tenant {tenant.email}")
    return UserResponse.model_validate(tenant)


@router.get("/{tenant_id}", response_model=TenantDetailResponse)
async def get_tenant(
    tenant_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """Tenant detail with leases, payment summary and contact links."""
    tenant = await _get_tenant_or_404(db, tenant_id, current_user)

    lease_rows = (
        await db.execute(
            _lease_scope(
                select(Lease, Property.name)
                .join(Property, Lease.property_id == Property.id)
                .where(Lease.tenant_id == tenant.id),
                current_user,
            ).order_by(Lease.start_date.desc())
        )
    ).all()
    leases = []
    for lease, property_name in lease_rows:
        item = LeaseResponse.model_validate(lease)
        item.property_name = property_name
        item.tenant_name = tenant.name
        item.tenant_email = tenant.email
        leases.append(item)

    payment_query = select(
        func.coalesce(
            func.sum(case((Payment.status == PaymentStatus.VERIFIED, Payment.amount_cents), else_=0)), 0
        ).label("paid"),
        func.sum(case((Payment.status == PaymentStatus.PENDING, 1), else_=0)).label("pending"),
        func.sum(case((Payment.status == PaymentStatus.VERIFIED, 1), else_=0)).label("verified"),
        func.max(Payment.payment_date).label("last_date"),
    ).where(Payment.tenant_id == tenant.id)
    if current_user.role == UserRole.LANDLORD:
        payment_query = payment_query.where(
            Payment.property_id.in_(owned_property_ids(current_user))
        )
    stats = (await db.execute(payment_query)).one()

    summary = TenantPaymentSummary(
        total_paid_cents=int(stats.paid or 0),
        balance_due_cents=sum(lease.balance_due_cents for lease, _ in lease_rows),
        pending_payments=int(stats.pending or 0),
        verified_payments=int(stats.verified or 0),
        last_payment_date=stats.last_date.isoformat() if stats.last_date else None,
    )
    links = tenant_contact_links(tenant.name, tenant.phone, tenant.email, current_user.name)

    return TenantDetailResponse(
        tenant=UserResponse.model_validate(tenant),
        leases=leases,
        payment_summary=summary,
        contact_links=ContactLinksResponse(**links),
    )


@router.patch("/{tenant_id}", response_model=UserResponse)
async def update_tenant(
    tenant_id: UUID,
    data: ProfileUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """Update a tenant's contact details."""
    tenant = await _get_tenant_or_404(db, tenant_id, current_user)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(tenant, field, value)
    await db.commit()
    await db.refresh(tenant)
    return UserResponse.model_validate(tenant)


@router.get("/{tenant_id}/contact-links", response_model=ContactLinksResponse)
async def get_tenant_contact_links(
    tenant_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """WhatsApp and Gmail compose links for a tenant."""
    tenant = await _get_tenant_or_404(db, tenant_id, current_user)
    links = tenant_contact_links(tenant.name, tenant.phone, tenant.email, current_user.name)
    return ContactLinksResponse(**links)
