"""Dashboard and report schemas."""

from datetime import date
from typing import Optional
from uuid import UUID

from propertyhub.schemas.base import BaseSchema


class DashboardStats(BaseSchema):
    """Role-aware headline numbers."""

    role: str
    total_properties: int = 0
    available_properties: int = 0
    total_tenants: int = 0
    active_leases: int = 0
    pending_payments: int = 0
    overdue_payments: int = 0
    open_maintenance: int = 0
    emergency_maintenance: int = 0
    unread_notifications: int = 0
    revenue_this_month_cents: int = 0
    outstanding_invoices_cents: int = 0
    # Tenant view
    balance_due_cents: Optional[int] = None
    next_payment_due: Optional[date] = None


class RecentPayment(BaseSchema):
    id: UUID
    receipt_number: str
    tenant_name: Optional[str] = None
    property_name: Optional[str] = None
    amount_cents: int
    amount_display: str
    payment_date: date
    status: str


class RevenuePoint(BaseSchema):
    month: str
    revenue_cents: int


class RevenueSummary(BaseSchema):
    this_month_cents: int
    last_month_cents: int
    this_year_cents: int
    growth_pct: float


class LeaseSummary(BaseSchema):
    total: int
    active: int
    pending: int
    expiring_soon: int
    status_counts: dict[str, int]


class MaintenanceSummary(BaseSchema):
    total: int
    open: int
    completed: int
    emergency: int
    average_rating: Optional[float] = None


class ReportOverview(BaseSchema):
    """Portfolio overview report."""

    total_properties: int
    occupied_properties: int
    occupancy_rate: float
    total_tenants: int
    leases: LeaseSummary
    revenue: RevenueSummary
    maintenance: MaintenanceSummary
    revenue_trend: list[RevenuePoint]
    outstanding_balance_cents: int


class RentRollRow(BaseSchema):
    lease_id: UUID
    property_name: str
    tenant_name: str
    status: str
    start_date: date
    end_date: date
    monthly_rent_cents: int
    total_paid_cents: int
    balance_due_cents: int
    next_payment_due: Optional[date] = None
    days_until_expiry: int


class RentRollResponse(BaseSchema):
    rows: list[RentRollRow]
    total_monthly_rent_cents: int
    total_balance_due_cents: int
