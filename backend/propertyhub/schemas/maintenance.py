"""Maintenance schemas."""

from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import Field

from propertyhub.models.enums import (
    MaintenanceCategory,
    MaintenancePriority,
    MaintenanceStatus,
    MaintenanceUrgency,
)
from propertyhub.schemas.base import BaseSchema, IDMixin, StatusBadge, TimestampMixin, UpdateSchema


class MaintenanceCreate(BaseSchema):
    """Create a maintenance request."""

    property_id: UUID
    tenant_id: Optional[UUID] = None
    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=1000)
    priority: MaintenancePriority = MaintenancePriority.MEDIUM
    category: MaintenanceCategory = MaintenanceCategory.OTHER
    urgency: MaintenanceUrgency = MaintenanceUrgency.NORMAL
    due_date: Optional[date] = None
    estimated_cost_cents: Optional[int] = Field(None, ge=0)


class MaintenanceUpdate(UpdateSchema):
    """Update maintenance request (staff)."""

    nullable_fields = frozenset({"due_date", "assigned_to", "estimated_cost_cents", "actual_cost_cents"})

    title: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, min_length=1, max_length=1000)
    priority: Optional[MaintenancePriority] = None
    status: Optional[MaintenanceStatus] = None
    category: Optional[MaintenanceCategory] = None
    urgency: Optional[MaintenanceUrgency] = None
    due_date: Optional[date] = None
    assigned_to: Optional[str] = Field(None, max_length=255)
    estimated_cost_cents: Optional[int] = Field(None, ge=0)
    actual_cost_cents: Optional[int] = Field(None, ge=0)


class MaintenanceNoteCreate(BaseSchema):
    content: str = Field(..., min_length=1, max_length=500)
    is_internal: bool = False


class MaintenanceFeedback(BaseSchema):
    rating: int = Field(..., ge=1, le=5)
    feedback: Optional[str] = Field(None, max_length=1000)


class MaintenanceNoteResponse(BaseSchema, IDMixin):
    author_id: Optional[UUID] = None
    content: str
    is_internal: bool
    created_at: datetime


class MaintenanceResponse(BaseSchema, IDMixin, TimestampMixin):
    """Maintenance request response."""

    property_id: UUID
    tenant_id: Optional[UUID] = None
    landlord_id: UUID
    created_by_id: Optional[UUID] = None
    updated_by_id: Optional[UUID] = None
    title: str
    description: str
    priority: MaintenancePriority
    status: MaintenanceStatus
    category: MaintenanceCategory
    urgency: MaintenanceUrgency
    is_emergency: bool
    estimated_cost_cents: Optional[int] = None
    actual_cost_cents: Optional[int] = None
    assigned_to: Optional[str] = None
    date_reported: datetime
    date_started: Optional[datetime] = None
    date_completed: Optional[datetime] = None
    due_date: Optional[date] = None
    satisfaction_rating: Optional[int] = None
    satisfaction_feedback: Optional[str] = None
    satisfaction_submitted_at: Optional[datetime] = None
    notes: list[MaintenanceNoteResponse] = []

    # Derived
    property_name: Optional[str] = None
    is_overdue: bool = False
    days_open: int = 0
    status_badge: Optional[StatusBadge] = None
    priority_badge: Optional[StatusBadge] = None


class MaintenanceListResponse(BaseSchema):
    requests: list[MaintenanceResponse]
    total: int
    status_counts: dict[str, int]
