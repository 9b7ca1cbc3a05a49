"""Users router - account administration for managers and admins."""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from propertyhub.core.database import get_db
from propertyhub.core.security import require_manager, require_registered_user
from propertyhub.models.enums import AuditAction, UserRole
from propertyhub.models.user import User
from propertyhub.schemas.user import (
    ProfileUpdate,
    UserCreate,
    UserListResponse,
    UserResponse,
    UserUpdate,
)
from propertyhub.services.audit import AuditService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


async def _get_user_or_404(db: AsyncSession, user_id: UUID) -> User:
    user = await db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.patch("/me", response_model=UserResponse)
async def update_profile(
    data: ProfileUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_registered_user),
):
    """Update own profile."""
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(user, field, value)
    await db.commit()
    await db.refresh(user)
    return UserResponse.model_validate(user)


@router.get("", response_model=UserListResponse)
async def list_users(
    role: Optional[UserRole] = None,
    is_active: Optional[bool] = None,
    search: Optional[str] = Query(None, max_length=100),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    """List all users (manager/admin)."""
    query = select(User)
    if role:
        query = query.where(User.role == role)
    if is_active is not None:
        query = query.where(User.is_active == is_active)
    if search:
        pattern = f"%{search.lower()}%"
        query = query.where(
            or_(func.lower(User.name).like(pattern), func.lower(User.email).like(pattern))
        )

    result = await db.execute(query.order_by(User.created_at.desc()))
    users = result.scalars().all()
    return UserListResponse(
        users=[UserResponse.model_validate(u) for u in users],
        total=len(users),
    )


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    request: Request,
    data: UserCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    """Create a user. They link their Firebase login on first registration."""
    if data.role == UserRole.ADMIN and current_user.role != UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only admins can create admin accounts",
        )

    existing = await db.execute(
        select(User.id).where(func.lower(User.email) == data.email.lower())
    )
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already in use")

    user = User(
        email=data.email.lower(),
        name=data.name,
        phone=data.phone,
        company=data.company,
        role=data.role,
    )
    db.add(user)
    await db.flush()

    await AuditService(db, request).log(
        action=AuditAction.USER_CREATED,
        resource_type="user",
        resource_id=user.id,
        user_id=current_user.id,
        details={"role": user.role.value},
    )
    await db.commit()
    await db.refresh(user)
    logger.info(f"[USERS] {current_user.email} created {user.role.value} {user.email}")
    return UserResponse.model_validate(user)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    """Get a user by ID."""
    return UserResponse.model_validate(await _get_user_or_404(db, user_id))


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: UUID,
    data: UserUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    """Update a user."""
    user = await _get_user_or_404(db, user_id)
    updates = data.model_dump(exclude_unset=True)

    if "role" in updates and current_user.role != UserRole.ADMIN:
        if UserRole.ADMIN in (updates["role"], user.role):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only admins can grant or revoke the admin role",
            )
    if user.id == current_user.id and updates.get("is_active") is False:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot deactivate your own account",
        )

    for field, value in updates.items():
        setattr(user, field, value)
    await db.commit()
    await db.refresh(user)
    return UserResponse.model_validate(user)


@router.post("/{user_id}/deactivate", response_model=UserResponse)
async def deactivate_user(
    request: Request,
    user_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    """Deactivate a user. Records are kept; the account can no longer sign in."""
    user = await _get_user_or_404(db, user_id)
    if user.id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot deactivate your own account",
        )
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User is already inactive")

    user.is_active = False
    await AuditService(db, request).log(
        action=AuditAction.USER_DEACTIVATED,
        resource_type="user",
        resource_id=user.id,
        user_id=current_user.id,
    )
    await db.commit()
    await db.refresh(user)
    return UserResponse.model_validate(user)
