"""Role-based record scoping.

Every router narrows its queries through these helpers:

- tenant: rows where ``tenant_id`` is the user
- landlord: rows on properties the landlord owns
- manager / admin: everything
"""

from typing import Any, Optional, TypeVar
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import Select, false, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from propertyhub.models.enums import UserRole, MANAGEMENT_ROLES
from propertyhub.models.lease import Lease
from propertyhub.models.property import Property
from propertyhub.models.user import User

T = TypeVar("T")


def owned_property_ids(user: User) -> Select:
    """Subquery of property ids owned by a landlord."""
    return select(Property.id).where(Property.landlord_id == user.id)


def scope_query(
    query: Select,
    user: User,
    tenant_column: Optional[Any],
    property_column: Any,
) -> Select:
    """Restrict ``query`` to the rows ``user`` may see."""
    if user.role in MANAGEMENT_ROLES:
        return query
    if user.role == UserRole.LANDLORD:
        return query.where(property_column.in_(owned_property_ids(user)))
    if tenant_column is None:
        # Tenants have no access to resources without a tenant column
        return query.where(false())
    return query.where(tenant_column == user.id)


def scope_tenants(query: Select, user: User) -> Select:
    """Restrict a User query to tenants.

    Landlords see tenants leasing their properties plus tenants not yet on any lease.
    """
    query = query.where(User.role == UserRole.TENANT)
    if user.role in MANAGEMENT_ROLES:
        return query
    if user.role == UserRole.LANDLORD:
        leased_here = select(Lease.tenant_id).where(Lease.property_id.in_(owned_property_ids(user)))
        return query.where(or_(User.id.in_(leased_here), User.id.not_in(select(Lease.tenant_id))))
    return query.where(User.id == user.id)


def scope_properties(query: Select, user: User) -> Select:
    """Restrict a Property query. Tenants see properties they lease."""
    if user.role in MANAGEMENT_ROLES:
        return query
    if user.role == UserRole.LANDLORD:
        return query.where(Property.landlord_id == user.id)
    return query.where(
        Property.id.in_(select(Lease.property_id).where(Lease.tenant_id == user.id))
    )


async def get_scoped_or_404(
    db: AsyncSession,
    model: type[T],
    object_id: UUID,
    user: User,
    detail: str,
) -> T:
    """Load a tenant/property-owned row by id, or 404 when missing or out of scope."""
    query = select(model).where(model.id == object_id)
    query = scope_query(query, user, getattr(model, "tenant_id", None), model.property_id)
    result = await db.execute(query)
    obj = result.scalar_one_or_none()
    if not obj:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)
    return obj


async def get_property_or_404(
    db: AsyncSession,
    property_id: UUID,
    user: User,
) -> Property:
    """Load a property in the user's scope, or 404."""
    query = scope_properties(select(Property).where(Property.id == property_id), user)
    result = await db.execute(query)
    prop = result.scalar_one_or_none()
    if not prop:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Property not found")
    return prop


def can_manage_property(user: User, prop: Property) -> bool:
    """Staff may manage a property they own; managers/admins may manage any."""
    if user.role in MANAGEMENT_ROLES:
        return True
    return user.role == UserRole.LANDLORD and prop.landlord_id == user.id
