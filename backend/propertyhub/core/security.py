"""Firebase JWT verification and role guards."""

import logging
from typing import Any, Callable, Optional

import firebase_admin
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from firebase_admin import auth, credentials
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from propertyhub.core.config import get_settings
from propertyhub.core.database import get_db
from propertyhub.models.enums import UserRole, STAFF_ROLES, MANAGEMENT_ROLES
from propertyhub.models.user import User

logger = logging.getLogger(__name__)

security = HTTPBearer()


def init_firebase() -> None:
    """Initialize the Firebase Admin SDK once per process."""
    if firebase_admin._apps:
        return
    settings = get_settings()
    options = {"projectId": settings.firebase_project_id} if settings.firebase_project_id else None
    if settings.google_application_credentials:
        cred = credentials.Certificate(settings.google_application_credentials)
        firebase_admin.initialize_app(cred, options)
    else:
        firebase_admin.initialize_app(options=options)
    logger.info("[AUTH] Firebase Admin initialized")


class AuthenticatedUser:
    """Represents an authenticated user from a Firebase JWT."""

    def __init__(
        self,
        uid: str,
        email: Optional[str] = None,
        email_verified: bool = False,
        claims: Optional[dict[str, Any]] = None,
    ):
        self.uid = uid
        self.email = email
        self.email_verified = email_verified
        self.claims = claims or {}
        self.user: Optional[User] = None


async def verify_firebase_token(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> AuthenticatedUser:
    """Verify Firebase JWT and return authenticated user.

    Never mints tokens; only verifies tokens issued by Firebase.
    """
    init_firebase()
    token = credentials.credentials

    try:
        decoded_token = auth.verify_id_token(token)
    except auth.ExpiredIdTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except auth.InvalidIdTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except (ValueError, auth.CertificateFetchError) as e:
        logger.warning(f"[AUTH] Token verification failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token verification failed",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return AuthenticatedUser(
        uid=decoded_token["uid"],
        email=decoded_token.get("email"),
        email_verified=decoded_token.get("email_verified", False),
        claims=decoded_token,
    )


async def get_current_user(
    auth_user: AuthenticatedUser = Depends(verify_firebase_token),
    db: AsyncSession = Depends(get_db),
) -> AuthenticatedUser:
    """Attach the database user (if registered) to the Firebase identity."""
    result = await db.execute(select(User).where(User.firebase_uid == auth_user.uid))
    auth_user.user = result.scalar_one_or_none()
    return auth_user


async def require_registered_user(
    current_user: AuthenticatedUser = Depends(get_current_user),
) -> User:
    """Require a registered, active portal user."""
    if current_user.user is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Registration required",
        )
    if not current_user.user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is deactivated",
        )
    return current_user.user


def require_roles(*roles: UserRole) -> Callable:
    """Build a dependency that only lets the given roles through."""

    async def dependency(user: User = Depends(require_registered_user)) -> User:
        if user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return user

    return dependency


require_staff = require_roles(*STAFF_ROLES)
require_manager = require_roles(*MANAGEMENT_ROLES)
require_tenant = require_roles(UserRole.TENANT)
