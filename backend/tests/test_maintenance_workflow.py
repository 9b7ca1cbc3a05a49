import uuid
from datetime import date, datetime, timedelta

import pytest

from propertyhub.models.enums import (
    MaintenanceCategory,
    MaintenancePriority,
    MaintenanceStatus,
    MaintenanceUrgency,
)
from propertyhub.models.maintenance import MaintenanceRequest
from propertyhub.services import maintenance_workflow
from propertyhub.services.errors import WorkflowError

ACTOR = uuid.uuid4()


def make_request(
    status=MaintenanceStatus.PENDING,
    priority=MaintenancePriority.MEDIUM,
    urgency=MaintenanceUrgency.NORMAL,
    **overrides,
) -> MaintenanceRequest:
    values = dict(
        id=uuid.uuid4(),
        property_id=uuid.uuid4(),
        landlord_id=uuid.uuid4(),
        title="Leaking tap",
        description="Kitchen tap drips all night",
        priority=priority,
        status=status,
        category=MaintenanceCategory.PLUMBING,
        urgency=urgency,
        is_emergency=False,
        date_reported=datetime(2024, 6, 1, 8, 0),
    )
    values.update(overrides)
    return MaintenanceRequest(**values)


@pytest.mark.parametrize(
    "priority, urgency, expected",
    [
        (MaintenancePriority.HIGH, MaintenanceUrgency.NORMAL, True),
        (MaintenancePriority.LOW, MaintenanceUrgency.EMERGENCY, True),
        (MaintenancePriority.MEDIUM, MaintenanceUrgency.URGENT, False),
    ],
)
def test_emergency_flag(priority, urgency, expected):
    request = make_request(priority=priority, urgency=urgency)
    maintenance_workflow.refresh_emergency_flag(request)
    assert request.is_emergency is expected


def test_status_changes_stamp_dates_and_add_internal_note():
    request = make_request()

    assert maintenance_workflow.apply_status(request, MaintenanceStatus.IN_PROGRESS, ACTOR)
    assert request.date_started is not None
    assert request.updated_by_id == ACTOR

    assert maintenance_workflow.apply_status(request, MaintenanceStatus.COMPLETED, ACTOR)
    assert request.date_completed is not None

    notes = [(note.content, note.is_internal) for note in request.notes]
    assert notes == [
        ("Status changed from Pending to In Progress", True),
        ("Status changed from In Progress to Completed", True),
    ]


def test_unchanged_status_is_a_no_op():
    request = make_request()
    assert not maintenance_workflow.apply_status(request, MaintenanceStatus.PENDING, ACTOR)
    assert request.notes == []


def test_reopening_clears_completion_date():
    request = make_request(MaintenanceStatus.COMPLETED, date_completed=datetime(2024, 6, 3))
    maintenance_workflow.apply_status(request, MaintenanceStatus.IN_PROGRESS, ACTOR)
    assert request.date_completed is None


def test_feedback_only_on_completed_requests():
    with pytest.raises(WorkflowError):
        maintenance_workflow.set_feedback(make_request(), 5, "Great")

    request = make_request(MaintenanceStatus.COMPLETED)
    with pytest.raises(WorkflowError):
        maintenance_workflow.set_feedback(request, 6, None)

    maintenance_workflow.set_feedback(request, 4, "Quick fix")
    assert request.satisfaction_rating == 4
    assert request.satisfaction_submitted_at is not None


def test_only_pending_requests_can_be_deleted():
    maintenance_workflow.ensure_deletable(make_request())
    with pytest.raises(WorkflowError):
        maintenance_workflow.ensure_deletable(make_request(MaintenanceStatus.IN_PROGRESS))


def test_overdue_and_days_open():
    today = date(2024, 6, 10)
    late = make_request(due_date=today - timedelta(days=1))
    assert maintenance_workflow.is_overdue(late, today)

    done = make_request(MaintenanceStatus.COMPLETED, due_date=today - timedelta(days=1))
    assert not maintenance_workflow.is_overdue(done, today)

    assert maintenance_workflow.days_open(late, now=datetime(2024, 6, 4, 9, 0)) == 3
