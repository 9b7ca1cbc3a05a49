"""Property model."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    String, DateTime, ForeignKey, Enum as SQLEnum, Text, BigInteger, Integer,
    Numeric, Boolean, Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from propertyhub.core.database import Base
from propertyhub.models.enums import PropertyType


class Property(Base):
    """A rentable property owned by a landlord."""

    __tablename__ = "properties"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    landlord_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[str] = mapped_column(String(500), nullable=False)
    city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    property_type: Mapped[PropertyType] = mapped_column(
        SQLEnum(PropertyType),
        default=PropertyType.APARTMENT,
        nullable=False,
    )

    # Money (INTEGER NGWEE - BIGINT)
    monthly_rent_cents: Mapped[int] = mapped_column(BigInteger, nullable=False)

    bedrooms: Mapped[int] = mapped_column(Integer, default=0)
    bathrooms: Mapped[Decimal] = mapped_column(Numeric(3, 1), default=0)
    is_available: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )
