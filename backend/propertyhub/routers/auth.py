"""Auth router - current user and self-registration."""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from propertyhub.core.config import get_settings
from propertyhub.core.database import get_db
from propertyhub.core.rate_limit import limiter
from propertyhub.core.security import AuthenticatedUser, get_current_user
from propertyhub.models.enums import AuditAction
from propertyhub.models.user import User
from propertyhub.schemas.user import CurrentUserResponse, RegisterRequest, UserResponse
from propertyhub.services.audit import AuditService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])
settings = get_settings()


@router.get("/me", response_model=CurrentUserResponse)
async def get_me(
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    """Get current authenticated user info (registered or not)."""
    user = current_user.user
    if user is not None:
        user.last_login_at = datetime.utcnow()
        await db.commit()

    return CurrentUserResponse(
        uid=current_user.uid,
        email=current_user.email,
        email_verified=current_user.email_verified,
        registered=user is not None,
        user=UserResponse.model_validate(user) if user else None,
    )


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.rate_limit_register)
async def register(
    request: Request,
    data: RegisterRequest,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    """Link a Firebase identity to a portal account.

    Tenants invited by staff already have a row keyed by email; signing up
    with that email claims it (keeping the role staff assigned) once the email is verified.
    Otherwise a new tenant or landlord account is created.
    """
    if current_user.user is not None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Already registered")
    if not current_user.email:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Firebase account has no email address",
        )

    result = await db.execute(
        select(User).where(func.lower(User.email) == current_user.email.lower())
    )
    user = result.scalar_one_or_none()

    if user is not None:
        if user.firebase_uid is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Email is already linked to another account",
            )
        if not current_user.email_verified:
            logger.warning(f"[AUTH] Refused claim of {user.email} by unverified login {current_user.uid}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Verify your email address before claiming an invited account",
            )
        user.firebase_uid = current_user.uid
        user.name = data.name or user.name
        user.phone = data.phone or user.phone
        user.company = data.company or user.company
        logger.info(f"[AUTH] Linked invited {user.role.value} {user.email}")
    else:
        user = User(
            firebase_uid=current_user.uid,
            email=current_user.email.lower(),
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
            user_id=user.id,
            details={"role": user.role.value, "self_registered": True},
        )
        logger.info(f"[AUTH] Registered new {user.role.value} {user.email}")

    user.last_login_at = datetime.utcnow()
    await db.commit()
    await db.refresh(user)
    return UserResponse.model_validate(user)
