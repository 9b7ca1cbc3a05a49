"""User and auth schemas."""

from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field, field_validator

from propertyhub.models.enums import UserRole
from propertyhub.schemas.base import BaseSchema, IDMixin, TimestampMixin, UpdateSchema


class RegisterRequest(BaseSchema):
    """Complete registration after Firebase sign-up."""

    name: str = Field(..., min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    company: Optional[str] = Field(None, max_length=255)
    role: UserRole = UserRole.TENANT

    @field_validator("role")
    @classmethod
    def self_service_roles(cls, value: UserRole) -> UserRole:
        """Managers and admins are created by other managers/admins."""
        if value not in (UserRole.TENANT, UserRole.LANDLORD):
            raise ValueError("Only tenant or landlord accounts can self-register")
        return value


class UserCreate(BaseSchema):
    """Create a user (manager/admin) or invite a tenant (staff)."""

    email: EmailStr
    name: str = Field(..., min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    company: Optional[str] = Field(None, max_length=255)
    role: UserRole = UserRole.TENANT


class UserUpdate(UpdateSchema):
    """Update a user."""

    nullable_fields = frozenset({"phone", "company"})

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    company: Optional[str] = Field(None, max_length=255)
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None


class ProfileUpdate(UpdateSchema):
    """Fields a user may change on their own profile."""

    nullable_fields = frozenset({"phone", "company"})

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    company: Optional[str] = Field(None, max_length=255)


class UserResponse(BaseSchema, IDMixin, TimestampMixin):
    """User response."""

    email: str
    name: str
    phone: Optional[str] = None
    company: Optional[str] = None
    role: UserRole
    is_active: bool
    last_login_at: Optional[datetime] = None
    is_registered: bool = False


class CurrentUserResponse(BaseSchema):
    """Current authenticated user info."""

    uid: str
    email: Optional[str] = None
    email_verified: bool = False
    registered: bool = False
    user: Optional[UserResponse] = None


class UserListResponse(BaseSchema):
    users: list[UserResponse]
    total: int
