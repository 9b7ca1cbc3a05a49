"""Maintenance router."""

import logging
from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from propertyhub.core.access import can_manage_property, get_property_or_404, get_scoped_or_404, scope_query
from propertyhub.core.database import get_db
from propertyhub.core.security import require_registered_user, require_staff, require_tenant
from propertyhub.models.enums import (
    AuditAction,
    MaintenanceCategory,
    MaintenancePriority,
    MaintenanceStatus,
    NotificationType,
    UserRole,
)
from propertyhub.models.lease import Lease
from propertyhub.models.maintenance import MaintenanceRequest
from propertyhub.models.property import Property
from propertyhub.models.user import User
from propertyhub.schemas.maintenance import (
    MaintenanceCreate,
    MaintenanceFeedback,
    MaintenanceListResponse,
    MaintenanceNoteCreate,
    MaintenanceResponse,
    MaintenanceUpdate,
)
from propertyhub.services import lease_workflow, maintenance_workflow
from propertyhub.services.audit import AuditService
from propertyhub.services.notifications import NotificationService
from propertyhub.utils.formatting import status_badge

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/maintenance", tags=["maintenance"])


def _to_response(
    request: MaintenanceRequest,
    viewer: User,
    prop: Optional[Property] = None,
) -> MaintenanceResponse:
    response = MaintenanceResponse.model_validate(request)
    if viewer.role == UserRole.TENANT:
        response.notes = [n for n in response.notes if not n.is_internal]
    response.is_overdue = maintenance_workflow.is_overdue(request)
    response.days_open = maintenance_workflow.days_open(request)
    response.status_badge = status_badge("maintenance", request.status)
    response.priority_badge = status_badge("priority", request.priority)
    if prop is not None:
        response.property_name = prop.name
    return response


async def _get_request(db: AsyncSession, request_id: UUID, user: User) -> MaintenanceRequest:
    return await get_scoped_or_404(
        db, MaintenanceRequest, request_id, user, "Maintenance request not found"
    )


async def _ensure_can_manage(db: AsyncSession, user: User, request: MaintenanceRequest) -> Property:
    prop = await db.get(Property, request.property_id)
    if prop is None or not can_manage_property(user, prop):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not manage this property",
        )
    return prop


@router.post("", response_model=MaintenanceResponse, status_code=status.HTTP_201_CREATED)
async def create_maintenance_request(
    http_request: Request,
    data: MaintenanceCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_registered_user),
):
    """Create a maintenance request.

    Tenants may only report issues on a property they hold a current lease for.
    The property's landlord is notified.
    """
    prop = await get_property_or_404(db, data.property_id, current_user)

    if current_user.role == UserRole.TENANT:
        lease = await db.execute(
            select(Lease.id).where(
                Lease.property_id == prop.id,
                Lease.tenant_id == current_user.id,
                Lease.status.not_in(lease_workflow.CLOSED_STATUSES),
            )
        )
        if lease.first() is None:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You do not have a lease for this property",
            )
        tenant_id = current_user.id
    else:
        if not can_manage_property(current_user, prop):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You do not manage this property")
        tenant_id = data.tenant_id

    request = MaintenanceRequest(
        property_id=prop.id,
        tenant_id=tenant_id,
        landlord_id=prop.landlord_id,
        created_by_id=current_user.id,
        title=data.title,
        description=data.description,
        priority=data.priority,
        category=data.category,
        urgency=data.urgency,
        due_date=data.due_date,
        estimated_cost_cents=data.estimated_cost_cents,
        status=MaintenanceStatus.PENDING,
        notes=[],
    )
    maintenance_workflow.refresh_emergency_flag(request)
    db.add(request)
    await db.flush()

    await AuditService(db, http_request).log(
        action=AuditAction.MAINTENANCE_CREATED,
        resource_type="maintenance",
        resource_id=request.id,
        user_id=current_user.id,
        details={"title": request.title, "priority": request.priority.value},
    )
    if prop.landlord_id != current_user.id:
        prefix = "EMERGENCY: " if request.is_emergency else ""
        await NotificationService(db).maintenance_event(
            request,
            recipient_id=prop.landlord_id,
            sender_id=current_user.id,
            type=NotificationType.MAINTENANCE_REQUEST,
            title=f"{prefix}New Maintenance Request",
            message=f"{request.title} reported at {prop.name}",
        )

    await db.commit()
    await db.refresh(request)
    logger.info(f"[MAINTENANCE] Request {request.id} created by {current_user.email}")
    return _to_response(request, current_user, prop)


@router.get("", response_model=MaintenanceListResponse)
async def list_maintenance_requests(
    property_id: Optional[UUID] = None,
    status_filter: Optional[MaintenanceStatus] = Query(None, alias="status"),
    priority: Optional[MaintenancePriority] = None,
    category: Optional[MaintenanceCategory] = None,
    emergency_only: bool = False,
    overdue_only: bool = False,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_registered_user),
):
    """List maintenance requests in scope, emergencies first."""
    base = scope_query(
        select(MaintenanceRequest), current_user, MaintenanceRequest.tenant_id, MaintenanceRequest.property_id
    )
    if property_id:
        base = base.where(MaintenanceRequest.property_id == property_id)

    counts_query = select(MaintenanceRequest.status, func.count()).where(
        MaintenanceRequest.id.in_(base.with_only_columns(MaintenanceRequest.id))
    ).group_by(MaintenanceRequest.status)
    status_counts = {s.value: 0 for s in MaintenanceStatus}
    for row_status, count in (await db.execute(counts_query)).all():
        status_counts[row_status.value] = count

    query = base
    if status_filter:
        query = query.where(MaintenanceRequest.status == status_filter)
    if priority:
        query = query.where(MaintenanceRequest.priority == priority)
    if category:
        query = query.where(MaintenanceRequest.category == category)
    if emergency_only:
        query = query.where(MaintenanceRequest.is_emergency.is_(True))
    if overdue_only:
        query = query.where(
            MaintenanceRequest.due_date < date.today(),
            MaintenanceRequest.status.not_in(maintenance_workflow.CLOSED_STATUSES),
        )

    query = query.order_by(
        MaintenanceRequest.is_emergency.desc(),
        MaintenanceRequest.date_reported.desc(),
    )
    requests = list((await db.execute(query)).scalars().all())

    properties = {}
    for request in requests:
        if request.property_id not in properties:
            properties[request.property_id] = await db.get(Property, request.property_id)

    return MaintenanceListResponse(
        requests=[_to_response(r, current_user, properties[r.property_id]) for r in requests],
        total=len(requests),
        status_counts=status_counts,
    )


@router.get("/{request_id}", response_model=MaintenanceResponse)
async def get_maintenance_request(
    request_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_registered_user),
):
    """Get a maintenance request. Internal notes are hidden from tenants."""
    request = await _get_request(db, request_id, current_user)
    prop = await db.get(Property, request.property_id)
    return _to_response(request, current_user, prop)


@router.patch("/{request_id}", response_model=MaintenanceResponse)
async def update_maintenance_request(
    http_request: Request,
    request_id: UUID,
    data: MaintenanceUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """Update a maintenance request (staff only)."""
    request = await _get_request(db, request_id, current_user)
    prop = await _ensure_can_manage(db, current_user, request)

    update_data = data.model_dump(exclude_unset=True)
    new_status = update_data.pop("status", None)
    for field, value in update_data.items():
        setattr(request, field, value)
    maintenance_workflow.refresh_emergency_flag(request)
    request.updated_by_id = current_user.id

    if new_status is not None:
        old_status = request.status
        if maintenance_workflow.apply_status(request, new_status, current_user.id):
            await AuditService(db, http_request).log_maintenance_status(
                request.id, current_user.id, old_status.value, new_status.value
            )
            if request.tenant_id:
                await NotificationService(db).maintenance_event(
                    request,
                    recipient_id=request.tenant_id,
                    sender_id=current_user.id,
                    type=NotificationType.MAINTENANCE_UPDATE,
                    title="Maintenance Update",
                    message=f"Your request '{request.title}' is now {new_status.value}",
                )

    await db.commit()
    await db.refresh(request)
    return _to_response(request, current_user, prop)


@router.post("/{request_id}/notes", response_model=MaintenanceResponse)
async def add_maintenance_note(
    request_id: UUID,
    data: MaintenanceNoteCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_registered_user),
):
    """Add a note. Tenants cannot add internal notes."""
    request = await _get_request(db, request_id, current_user)
    if current_user.role == UserRole.TENANT:
        if data.is_internal:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Tenants cannot add internal notes",
            )
    else:
        await _ensure_can_manage(db, current_user, request)

    maintenance_workflow.add_note(request, data.content, current_user.id, data.is_internal)
    await db.commit()
    await db.refresh(request)
    prop = await db.get(Property, request.property_id)
    return _to_response(request, current_user, prop)


@router.post("/{request_id}/feedback", response_model=MaintenanceResponse)
async def submit_feedback(
    request_id: UUID,
    data: MaintenanceFeedback,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_tenant),
):
    """Rate a completed request."""
    request = await _get_request(db, request_id, current_user)
    maintenance_workflow.set_feedback(request, data.rating, data.feedback)
    await db.commit()
    await db.refresh(request)
    prop = await db.get(Property, request.property_id)
    return _to_response(request, current_user, prop)


@router.delete("/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_maintenance_request(
    request_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """Delete a pending request."""
    request = await _get_request(db, request_id, current_user)
    await _ensure_can_manage(db, current_user, request)
    maintenance_workflow.ensure_deletable(request)
    await db.delete(request)
    await db.commit()
