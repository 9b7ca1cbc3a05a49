"""Invoice schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import Field, model_validator

from propertyhub.models.enums import ApprovalStatus, InvoiceStatus, PaymentMethod
from propertyhub.schemas.base import BaseSchema, IDMixin, Pagination, StatusBadge, TimestampMixin


class InvoiceItemIn(BaseSchema):
    description: str = Field(..., min_length=1, max_length=500)
    quantity: Decimal = Field(default=Decimal("1"), gt=0)
    unit_price_cents: int = Field(..., gt=0)


class InvoiceItemResponse(BaseSchema, IDMixin):
    position: int
    description: str
    quantity: Decimal
    unit_price_cents: int
    amount_cents: int


class InvoicePaymentResponse(BaseSchema, IDMixin):
    payment_id: UUID
    amount_cents: int
    applied_at: datetime


class InvoiceCreate(BaseSchema):
    """Create an invoice. The tenant's active lease fills in the property when omitted."""

    tenant_id: UUID
    property_id: Optional[UUID] = None
    lease_id: Optional[UUID] = None
    issue_date: date
    due_date: date
    items: list[InvoiceItemIn] = Field(..., min_length=1)
    tax_cents: int = Field(default=0, ge=0)
    payment_terms: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = None

    @model_validator(mode="after")
    def validate_dates(self):
        if self.due_date <= self.issue_date:
            raise ValueError("due_date must be after issue_date")
        return self


class InvoiceUpdate(BaseSchema):
    """Replace editable invoice fields (draft/sent only)."""

    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    items: Optional[list[InvoiceItemIn]] = Field(None, min_length=1)
    tax_cents: Optional[int] = Field(None, ge=0)
    payment_terms: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = None


class InvoiceActionRequest(BaseSchema):
    """Body for ``POST /invoices/{id}/{action}``. Which fields matter depends on the action."""

    notes: Optional[str] = Field(None, max_length=1000)
    reason: Optional[str] = Field(None, max_length=1000)
    amount_cents: Optional[int] = Field(None, gt=0)
    payment_method: PaymentMethod = PaymentMethod.MANUAL
    reference_number: Optional[str] = Field(None, max_length=100)


class InvoicePaymentCreate(BaseSchema):
    amount_cents: int = Field(..., gt=0)
    payment_date: Optional[date] = None
    payment_method: PaymentMethod = PaymentMethod.CASH
    reference_number: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None


class InvoiceResponse(BaseSchema, IDMixin, TimestampMixin):
    """Invoice response."""

    invoice_number: str
    tenant_id: UUID
    property_id: UUID
    lease_id: Optional[UUID] = None
    created_by_id: Optional[UUID] = None
    issue_date: date
    due_date: date
    period_start: Optional[date] = None
    period_end: Optional[date] = None
    subtotal_cents: int
    tax_cents: int
    total_cents: int
    paid_cents: int
    status: InvoiceStatus
    approval_status: ApprovalStatus
    approved_by_id: Optional[UUID] = None
    approved_at: Optional[datetime] = None
    approval_notes: Optional[str] = None
    rejection_reason: Optional[str] = None
    payment_terms: str
    notes: Optional[str] = None
    sent_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    last_reminder_at: Optional[datetime] = None
    reminder_count: int = 0
    items: list[InvoiceItemResponse] = []
    payments: list[InvoicePaymentResponse] = []

    # Derived
    outstanding_cents: int = 0
    tenant_name: Optional[str] = None
    property_name: Optional[str] = None
    status_badge: Optional[StatusBadge] = None


class InvoiceSummary(BaseSchema):
    total_invoiced_cents: int
    total_paid_cents: int
    total_outstanding_cents: int
    overdue_count: int
    status_counts: dict[str, int]


class InvoiceListResponse(BaseSchema):
    invoices: list[InvoiceResponse]
    pagination: Pagination
    summary: InvoiceSummary


class InvoiceActionResponse(BaseSchema):
    invoice: InvoiceResponse
    message: str
    reminder: Optional[str] = None


class GenerateMonthlyResponse(BaseSchema):
    created: int
    invoice_ids: list[UUID]
