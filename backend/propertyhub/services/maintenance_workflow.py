"""Maintenance request status handling."""

from datetime import date, datetime
from typing import Optional
from uuid import UUID

from propertyhub.models.enums import (
    MaintenancePriority,
    MaintenanceStatus,
    MaintenanceUrgency,
)
from propertyhub.models.maintenance import MaintenanceNote, MaintenanceRequest
from propertyhub.services.errors import WorkflowError

CLOSED_STATUSES = (MaintenanceStatus.COMPLETED, MaintenanceStatus.CANCELLED)


def refresh_emergency_flag(request: MaintenanceRequest) -> None:
    request.is_emergency = (
        request.priority == MaintenancePriority.HIGH
        or request.urgency == MaintenanceUrgency.EMERGENCY
    )


def add_note(
    request: MaintenanceRequest,
    content: str,
    author_id: Optional[UUID],
    is_internal: bool = False,
) -> MaintenanceNote:
    note = MaintenanceNote(
        content=content,
        author_id=author_id,
        is_internal=is_internal,
        created_at=datetime.utcnow(),
    )
    request.notes.append(note)
    return note


def apply_status(
    request: MaintenanceRequest,
    new_status: MaintenanceStatus,
    actor_id: Optional[UUID] = None,
) -> bool:
    """Change status and stamp start/completion dates. Returns False if unchanged."""
    old_status = request.status
    if new_status == old_status:
        return False

    now = datetime.utcnow()
    if new_status == MaintenanceStatus.IN_PROGRESS and request.date_started is None:
        request.date_started = now
    if new_status == MaintenanceStatus.COMPLETED:
        request.date_completed = now
        if request.date_started is None:
            request.date_started = now
    elif old_status == MaintenanceStatus.COMPLETED:
        request.date_completed = None

    request.status = new_status
    request.updated_by_id = actor_id
    add_note(
        request,
        f"Status changed from {old_status.value} to {new_status.value}",
        actor_id,
        is_internal=True,
    )
    return True


def is_overdue(request: MaintenanceRequest, today: Optional[date] = None) -> bool:
    today = today or date.today()
    return (
        request.due_date is not None
        and request.due_date < today
        and request.status not in CLOSED_STATUSES
    )


def days_open(request: MaintenanceRequest, now: Optional[datetime] = None) -> int:
    end = request.date_completed or now or datetime.utcnow()
    return max(0, (end - request.date_reported).days)


def set_feedback(request: MaintenanceRequest, rating: int, feedback: Optional[str]) -> None:
    if request.status != MaintenanceStatus.COMPLETED:
        raise WorkflowError("Feedback can only be left on completed requests")
    if not 1 <= rating <= 5:
        raise WorkflowError("Rating must be between 1 and 5")
    request.satisfaction_rating = rating
    request.satisfaction_feedback = feedback
    request.satisfaction_submitted_at = datetime.utcnow()


def ensure_deletable(request: MaintenanceRequest) -> None:
    if request.status != MaintenanceStatus.PENDING:
        raise WorkflowError("Only pending requests can be deleted")
