"""Property schemas."""

from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import Field

from propertyhub.models.enums import PropertyType
from propertyhub.schemas.base import BaseSchema, IDMixin, TimestampMixin, UpdateSchema


class PropertyCreate(BaseSchema):
    """Create a property. Managers/admins may assign it to a landlord."""

    name: str = Field(..., min_length=1, max_length=255)
    address: str = Field(..., min_length=1, max_length=500)
    city: Optional[str] = Field(None, max_length=100)
    property_type: PropertyType = PropertyType.APARTMENT
    # Money in NGWEE (integers only)
    monthly_rent_cents: int = Field(..., gt=0)
    bedrooms: int = Field(default=0, ge=0)
    bathrooms: Decimal = Field(default=Decimal("0"), ge=0)
    is_available: bool = True
    description: Optional[str] = None
    landlord_id: Optional[UUID] = None


class PropertyUpdate(UpdateSchema):
    """Update property."""

    nullable_fields = frozenset({"city", "description"})

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    address: Optional[str] = Field(None, min_length=1, max_length=500)
    city: Optional[str] = Field(None, max_length=100)
    property_type: Optional[PropertyType] = None
    monthly_rent_cents: Optional[int] = Field(None, gt=0)
    bedrooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[Decimal] = Field(None, ge=0)
    is_available: Optional[bool] = None
    description: Optional[str] = None


class PropertyResponse(BaseSchema, IDMixin, TimestampMixin):
    """Property response."""

    landlord_id: UUID
    name: str
    address: str
    city: Optional[str] = None
    property_type: PropertyType
    monthly_rent_cents: int
    bedrooms: int
    bathrooms: Decimal
    is_available: bool
    description: Optional[str] = None
    monthly_rent_display: Optional[str] = None


class PropertyListResponse(BaseSchema):
    properties: list[PropertyResponse]
    total: int
