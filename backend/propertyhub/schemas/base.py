"""Base schema utilities."""

from datetime import datetime
from typing import Any, ClassVar, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator


class BaseSchema(BaseModel):
    """Base schema with common configuration."""

    model_config = ConfigDict(
        from_attributes=True,
        str_strip_whitespace=True,
        validate_assignment=True,
    )


class UpdateSchema(BaseSchema):
    """Partial update body.

    Omitted fields are left alone. Only fields listed in ``nullable_fields``
    may be sent as ``null`` to clear them.
    """

    nullable_fields: ClassVar[frozenset[str]] = frozenset()

    @model_validator(mode="before")
    @classmethod
    def reject_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            nulls = sorted(
                key for key, value in data.items()
                if value is None and key in cls.model_fields and key not in cls.nullable_fields
            )
            if nulls:
                raise ValueError(f"{', '.join(nulls)} cannot be null")
        return data


class TimestampMixin(BaseModel):
    """Mixin for created_at/updated_at timestamps."""

    created_at: datetime
    updated_at: Optional[datetime] = None


class IDMixin(BaseModel):
    """Mixin for UUID id field."""

    id: UUID


class StatusBadge(BaseSchema):
    """Display label and colour for a status value."""

    value: str
    label: str
    color: str


class Pagination(BaseSchema):
    """Page metadata for list endpoints."""

    page: int
    limit: int
    total: int
    pages: int


class ReasonRequest(BaseSchema):
    """Body for actions that require a reason (reject, cancel, terminate)."""

    reason: str = Field(..., min_length=1, max_length=1000)


class NotesRequest(BaseSchema):
    """Body for actions with optional notes (approve)."""

    notes: Optional[str] = Field(None, max_length=1000)


class MessageResponse(BaseSchema):
    """Generic acknowledgement."""

    message: str
