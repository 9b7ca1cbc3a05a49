"""Tenant schemas."""

from typing import Optional

from propertyhub.schemas.base import BaseSchema
from propertyhub.schemas.lease import ContactLinksResponse, LeaseResponse
from propertyhub.schemas.user import UserResponse


class TenantPaymentSummary(BaseSchema):
    total_paid_cents: int
    balance_due_cents: int
    pending_payments: int
    verified_payments: int
    last_payment_date: Optional[str] = None


class TenantSummary(UserResponse):
    """Tenant row for list views."""

    active_lease_count: int = 0
    balance_due_cents: int = 0


class TenantListResponse(BaseSchema):
    tenants: list[TenantSummary]
    total: int


class TenantDetailResponse(BaseSchema):
    tenant: UserResponse
    leases: list[LeaseResponse]
    payment_summary: TenantPaymentSummary
    contact_links: ContactLinksResponse
