"""Payment schemas."""

from datetime import date, datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import Field, field_validator

from propertyhub.models.enums import (
    ApprovalStatus,
    PaymentMethod,
    PaymentStatus,
    PaymentType,
)
from propertyhub.schemas.base import BaseSchema, IDMixin, Pagination, StatusBadge, TimestampMixin, UpdateSchema


class PaymentCreate(BaseSchema):
    """Record a payment.

    Staff record payments for any tenant in scope; tenants submit payments
    against their own lease (``tenant_id`` is ignored for them).
    """

    tenant_id: Optional[UUID] = None
    property_id: Optional[UUID] = None
    lease_id: Optional[UUID] = None
    invoice_id: Optional[UUID] = None

    # Money in NGWEE (integers only)
    amount_cents: int = Field(..., gt=0)
    late_fee_cents: int = Field(default=0, ge=0)

    payment_date: date
    due_date: Optional[date] = None
    payment_method: PaymentMethod = PaymentMethod.CASH
    payment_type: PaymentType = PaymentType.RENT
    status: Optional[PaymentStatus] = None
    reference_number: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    notes: Optional[str] = None

    @field_validator("status")
    @classmethod
    def initial_status(cls, value: Optional[PaymentStatus]) -> Optional[PaymentStatus]:
        if value not in (None, PaymentStatus.PENDING, PaymentStatus.COMPLETED):
            raise ValueError("New payments must be pending or completed")
        return value


class PaymentUpdate(UpdateSchema):
    """Edit a pending payment."""

    nullable_fields = frozenset({"due_date", "reference_number", "description", "notes"})

    amount_cents: Optional[int] = Field(None, gt=0)
    late_fee_cents: Optional[int] = Field(None, ge=0)
    payment_date: Optional[date] = None
    due_date: Optional[date] = None
    payment_method: Optional[PaymentMethod] = None
    payment_type: Optional[PaymentType] = None
    reference_number: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    notes: Optional[str] = None


class PaymentVerifyRequest(BaseSchema):
    """Verify or dispute a payment."""

    action: Literal["verify", "dispute"]
    notes: Optional[str] = Field(None, max_length=1000)


class PaymentResponse(BaseSchema, IDMixin, TimestampMixin):
    """Payment response."""

    receipt_number: str
    tenant_id: UUID
    property_id: UUID
    lease_id: Optional[UUID] = None
    invoice_id: Optional[UUID] = None
    amount_cents: int
    late_fee_cents: int = 0
    payment_date: date
    due_date: Optional[date] = None
    payment_method: PaymentMethod
    payment_type: PaymentType
    status: PaymentStatus
    approval_status: ApprovalStatus
    reference_number: Optional[str] = None
    description: Optional[str] = None
    notes: Optional[str] = None
    recorded_by_id: Optional[UUID] = None
    approved_by_id: Optional[UUID] = None
    approved_at: Optional[datetime] = None
    approval_notes: Optional[str] = None
    rejection_reason: Optional[str] = None
    verified_by_id: Optional[UUID] = None
    verified_at: Optional[datetime] = None
    verification_notes: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    receipt_sent_at: Optional[datetime] = None
    momo_reference_id: Optional[str] = None

    # Denormalized fields for list views
    tenant_name: Optional[str] = None
    property_name: Optional[str] = None
    amount_display: Optional[str] = None
    is_overdue: bool = False
    status_badge: Optional[StatusBadge] = None


class PaymentListResponse(BaseSchema):
    payments: list[PaymentResponse]
    pagination: Pagination
    status_counts: dict[str, int]
    total_amount_cents: int


class PaymentActionResponse(BaseSchema):
    """Payment plus the side effect on its lease."""

    payment: PaymentResponse
    message: str
    lease_status: Optional[str] = None
    activation: Optional[str] = None


class MomoInitiateRequest(BaseSchema):
    """Tenant-initiated mobile money payment."""

    lease_id: UUID
    amount_cents: int = Field(..., gt=0)
    phone_number: str = Field(..., min_length=9, max_length=20)
    payment_type: PaymentType = PaymentType.RENT
    invoice_id: Optional[UUID] = None
    description: Optional[str] = Field(None, max_length=500)


class MomoInitiateResponse(BaseSchema):
    payment_id: UUID
    reference_id: str
    status: str
    message: str


class MomoStatusResponse(BaseSchema):
    reference_id: str
    momo_status: str
    payment: PaymentResponse
