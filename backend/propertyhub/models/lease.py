"""Lease model."""

import uuid
from datetime import datetime, date
from typing import Optional, Any

from sqlalchemy import (
    String, DateTime, Date, ForeignKey, Enum as SQLEnum, Text, BigInteger, Integer,
    Boolean, CheckConstraint, Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from propertyhub.core.database import Base, JSONType
from propertyhub.models.enums import LeaseStatus, ActivationMethod


class Lease(Base):
    """A lease agreement between a landlord and a tenant for a property."""

    __tablename__ = "leases"

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
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    landlord_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    status: Mapped[LeaseStatus] = mapped_column(
        SQLEnum(LeaseStatus),
        default=LeaseStatus.DRAFT,
        nullable=False,
        index=True,
    )

    # Dates
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    payment_due_day: Mapped[int] = mapped_column(Integer, default=1)

    # Money (ALL INTEGER NGWEE - BIGINT)
    monthly_rent_cents: Mapped[int] = mapped_column(BigInteger, nullable=False)
    security_deposit_cents: Mapped[int] = mapped_column(BigInteger, default=0)

    # Terms
    pet_policy: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    smoking_policy: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    maintenance_responsibility: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    utilities_included: Mapped[Optional[list[str]]] = mapped_column(JSONType, nullable=True)
    special_conditions: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Signatures
    tenant_signed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    tenant_signature_data: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    tenant_signature_ip: Mapped[Optional[str]] = mapped_column(String(45), nullable=True)
    landlord_signed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    sent_to_tenant_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # First payment tracking
    first_payment_required_cents: Mapped[int] = mapped_column(BigInteger, default=0)
    first_payment_made: Mapped[bool] = mapped_column(Boolean, default=False)
    first_payment_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    # Running balance
    total_paid_cents: Mapped[int] = mapped_column(BigInteger, default=0)
    balance_due_cents: Mapped[int] = mapped_column(BigInteger, default=0)
    next_payment_due: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    last_payment_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    # Activation
    activated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    activation_method: Mapped[Optional[ActivationMethod]] = mapped_column(
        SQLEnum(ActivationMethod), nullable=True
    )
    activation_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    deactivated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    deactivation_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Termination
    terminated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    termination_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # [{"status": ..., "changed_at": ..., "reason": ...}]
    status_history: Mapped[list[dict[str, Any]]] = mapped_column(JSONType, default=list)

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    __table_args__ = (
        CheckConstraint("end_date > start_date", name="ck_lease_dates"),
        CheckConstraint("monthly_rent_cents > 0", name="ck_lease_rent_positive"),
        CheckConstraint(
            "payment_due_day >= 1 AND payment_due_day <= 31",
            name="ck_lease_payment_due_day_range",
        ),
    )
