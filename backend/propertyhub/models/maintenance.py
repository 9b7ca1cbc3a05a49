"""MaintenanceRequest and MaintenanceNote models."""

import uuid
from datetime import datetime, date
from typing import Optional

from sqlalchemy import (
    String, DateTime, Date, ForeignKey, Enum as SQLEnum, Text, BigInteger, Integer,
    Boolean, CheckConstraint, Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from propertyhub.core.database import Base
from propertyhub.models.enums import (
    MaintenanceCategory,
    MaintenancePriority,
    MaintenanceStatus,
    MaintenanceUrgency,
)


class MaintenanceRequest(Base):
    """A maintenance request raised against a property."""

    __tablename__ = "maintenance_requests"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    tenant_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    landlord_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    updated_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(String(1000), nullable=False)

    priority: Mapped[MaintenancePriority] = mapped_column(
        SQLEnum(MaintenancePriority),
        default=MaintenancePriority.MEDIUM,
        nullable=False,
        index=True,
    )
    status: Mapped[MaintenanceStatus] = mapped_column(
        SQLEnum(MaintenanceStatus),
        default=MaintenanceStatus.PENDING,
        nullable=False,
        index=True,
    )
    category: Mapped[MaintenanceCategory] = mapped_column(
        SQLEnum(MaintenanceCategory),
        default=MaintenanceCategory.OTHER,
        nullable=False,
    )
    urgency: Mapped[MaintenanceUrgency] = mapped_column(
        SQLEnum(MaintenanceUrgency),
        default=MaintenanceUrgency.NORMAL,
        nullable=False,
    )
    is_emergency: Mapped[bool] = mapped_column(Boolean, default=False, index=True)

    # Cost (INTEGER NGWEE)
    estimated_cost_cents: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    actual_cost_cents: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)

    assigned_to: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    date_reported: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    date_started: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    date_completed: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    due_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    # Tenant feedback after completion
    satisfaction_rating: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    satisfaction_feedback: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    satisfaction_submitted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    notes: Mapped[list["MaintenanceNote"]] = relationship(
        "MaintenanceNote",
        back_populates="request",
        cascade="all, delete-orphan",
        order_by="MaintenanceNote.created_at",
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint(
            "(satisfaction_rating IS NULL) OR (satisfaction_rating >= 1 AND satisfaction_rating <= 5)",
            name="ck_maintenance_rating_range",
        ),
    )


class MaintenanceNote(Base):
    """A note on a maintenance request. Internal notes are hidden from tenants."""

    __tablename__ = "maintenance_notes"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    request_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("maintenance_requests.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    author_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    content: Mapped[str] = mapped_column(String(500), nullable=False)
    is_internal: Mapped[bool] = mapped_column(Boolean, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    request: Mapped["MaintenanceRequest"] = relationship(
        "MaintenanceRequest", back_populates="notes"
    )
