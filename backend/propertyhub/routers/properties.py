"""Properties router."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from propertyhub.core.access import can_manage_property, get_property_or_404, scope_properties
from propertyhub.core.database import get_db
from propertyhub.core.security import require_registered_user, require_staff
from propertyhub.models.enums import LeaseStatus, PropertyType, UserRole
from propertyhub.models.lease import Lease
from propertyhub.models.property import Property
from propertyhub.models.user import User
from propertyhub.schemas.property import (
    PropertyCreate,
    PropertyListResponse,
    PropertyResponse,
    PropertyUpdate,
)
from propertyhub.utils.formatting import format_currency

router = APIRouter(prefix="/properties", tags=["properties"])


def _to_response(prop: Property) -> PropertyResponse:
    response = PropertyResponse.model_validate(prop)
    response.monthly_rent_display = format_currency(prop.monthly_rent_cents)
    return response


def _ensure_can_manage(user: User, prop: Property) -> None:
    if not can_manage_property(user, prop):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not manage this property",
        )


@router.post("", response_model=PropertyResponse, status_code=status.HTTP_201_CREATED)
async def create_property(
    data: PropertyCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """Create a property. Landlords own what they create."""
    landlord_id = current_user.id
    if data.landlord_id and data.landlord_id != current_user.id:
        if current_user.role == UserRole.LANDLORD:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Landlords can only create their own properties",
            )
        landlord = await db.get(User, data.landlord_id)
        if not landlord or landlord.role != UserRole.LANDLORD:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Landlord not found")
        landlord_id = landlord.id

    prop = Property(landlord_id=landlord_id, **data.model_dump(exclude={"landlord_id"}))
    db.add(prop)
    await db.commit()
    await db.refresh(prop)
    return _to_response(prop)


@router.get("", response_model=PropertyListResponse)
async def list_properties(
    property_type: Optional[PropertyType] = None,
    is_available: Optional[bool] = None,
    city: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_registered_user),
):
    """List properties in the caller's scope."""
    query = scope_properties(select(Property), current_user)
    if property_type:
        query = query.where(Property.property_type == property_type)
    if is_available is not None:
        query = query.where(Property.is_available == is_available)
    if city:
        query = query.where(func.lower(Property.city) == city.lower())

    result = await db.execute(query.order_by(Property.name))
    properties = result.scalars().all()
    return PropertyListResponse(
        properties=[_to_response(p) for p in properties],
        total=len(properties),
    )


@router.get("/search", response_model=PropertyListResponse)
async def search_properties(
    q: str = Query(..., min_length=1, max_length=100),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_registered_user),
):
    """Search available properties by name, address or city."""
    pattern = f"%{q.lower()}%"
    query = (
        scope_properties(select(Property), current_user)
        .where(Property.is_available.is_(True))
        .where(
            or_(
                func.lower(Property.name).like(pattern),
                func.lower(Property.address).like(pattern),
                func.lower(Property.city).like(pattern),
            )
        )
        .order_by(Property.name)
        .limit(50)
    )
    result = await db.execute(query)
    properties = result.scalars().all()
    return PropertyListResponse(
        properties=[_to_response(p) for p in properties],
        total=len(properties),
    )


@router.get("/{property_id}", response_model=PropertyResponse)
async def get_property(
    property_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_registered_user),
):
    """Get a property by ID."""
    return _to_response(await get_property_or_404(db, property_id, current_user))


@router.patch("/{property_id}", response_model=PropertyResponse)
async def update_property(
    property_id: UUID,
    data: PropertyUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """Update a property."""
    prop = await get_property_or_404(db, property_id, current_user)
    _ensure_can_manage(current_user, prop)

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(prop, field, value)
    await db.commit()
    await db.refresh(prop)
    return _to_response(prop)


@router.delete("/{property_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_property(
    property_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """Delete a property that has no active lease."""
    prop = await get_property_or_404(db, property_id, current_user)
    _ensure_can_manage(current_user, prop)

    active = await db.execute(
        select(func.count(Lease.id)).where(
            Lease.property_id == prop.id,
            Lease.status == LeaseStatus.ACTIVE,
        )
    )
    if active.scalar():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot delete a property with an active lease",
        )

    await db.delete(prop)
    await db.commit()
