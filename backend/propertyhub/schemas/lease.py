"""Lease schemas."""

from datetime import date, datetime
from typing import Any, Literal, Optional
from uuid import UUID

from pydantic import Field, model_validator

from propertyhub.models.enums import ActivationMethod, LeaseStatus
from propertyhub.schemas.base import BaseSchema, IDMixin, StatusBadge, TimestampMixin, UpdateSchema


class LeaseTerms(BaseSchema):
    """Editable lease terms shared by create and update."""

    pet_policy: Optional[str] = Field(None, max_length=255)
    smoking_policy: Optional[str] = Field(None, max_length=255)
    maintenance_responsibility: Optional[str] = Field(None, max_length=255)
    utilities_included: Optional[list[str]] = None
    special_conditions: Optional[str] = None
    notes: Optional[str] = None


class LeaseCreate(LeaseTerms):
    """Create a new lease (draft status)."""

    property_id: UUID
    tenant_id: UUID

    start_date: date
    end_date: date
    payment_due_day: int = Field(default=1, ge=1, le=31)

    # Money in NGWEE (integers only)
    monthly_rent_cents: int = Field(..., gt=0)
    security_deposit_cents: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def validate_dates(self):
        """End date must be after start date."""
        if self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self


class LeaseUpdate(LeaseTerms, UpdateSchema):
    """Update a draft lease."""

    nullable_fields = frozenset(LeaseTerms.model_fields)

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    payment_due_day: Optional[int] = Field(None, ge=1, le=31)
    monthly_rent_cents: Optional[int] = Field(None, gt=0)
    security_deposit_cents: Optional[int] = Field(None, ge=0)


class LeaseSignRequest(BaseSchema):
    """Tenant signature."""

    signature_data: Optional[str] = None
    agree: bool = True

    @model_validator(mode="after")
    def must_agree(self):
        if not self.agree:
            raise ValueError("You must agree to the lease terms to sign")
        return self


class LeaseActivationRequest(BaseSchema):
    """Manual activation or deactivation."""

    action: Literal["activate", "deactivate"]
    reason: str = Field(..., min_length=1, max_length=1000)


class LeaseTerminateRequest(BaseSchema):
    reason: str = Field(..., min_length=1, max_length=1000)


class NextAction(BaseSchema):
    action: str
    message: str
    actor: str


class LeaseResponse(BaseSchema, IDMixin, TimestampMixin):
    """Lease response."""

    property_id: UUID
    tenant_id: UUID
    landlord_id: UUID
    status: LeaseStatus
    start_date: date
    end_date: date
    payment_due_day: int
    monthly_rent_cents: int
    security_deposit_cents: int

    pet_policy: Optional[str] = None
    smoking_policy: Optional[str] = None
    maintenance_responsibility: Optional[str] = None
    utilities_included: Optional[list[str]] = None
    special_conditions: Optional[str] = None
    notes: Optional[str] = None

    sent_to_tenant_at: Optional[datetime] = None
    tenant_signed_at: Optional[datetime] = None

    first_payment_required_cents: int = 0
    first_payment_made: bool = False
    first_payment_date: Optional[date] = None
    total_paid_cents: int = 0
    balance_due_cents: int = 0
    next_payment_due: Optional[date] = None
    last_payment_date: Optional[date] = None

    activated_at: Optional[datetime] = None
    activation_method: Optional[ActivationMethod] = None
    activation_reason: Optional[str] = None
    deactivated_at: Optional[datetime] = None
    terminated_at: Optional[datetime] = None
    termination_reason: Optional[str] = None
    status_history: list[dict[str, Any]] = []

    # Denormalized fields for list views
    property_name: Optional[str] = None
    tenant_name: Optional[str] = None
    tenant_email: Optional[str] = None
    status_badge: Optional[StatusBadge] = None
    next_action: Optional[NextAction] = None


class LeaseListResponse(BaseSchema):
    """Response for lease list endpoint."""

    leases: list[LeaseResponse]
    total: int


class LeaseActivationResponse(BaseSchema):
    lease: LeaseResponse
    message: str


class ContactLinksResponse(BaseSchema):
    """Deep links for contacting a tenant."""

    whatsapp: Optional[str] = None
    email: Optional[str] = None
    inspection_calendar: Optional[str] = None


class ExpireLeasesResponse(BaseSchema):
    expired: int
    lease_ids: list[UUID]
