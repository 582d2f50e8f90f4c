"""
Pydantic schemas for Booking.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from garage_api.models.booking import (
    DEFAULT_DURATION_MINUTES,
    MAX_NOTES_LENGTH,
    MIN_DURATION_MINUTES,
    BookingSource,
    BookingStatus,
    ServiceType,
)
from garage_api.parties import Client, EmbeddedClient, EmbeddedVehicle, VehicleRef
from garage_api.schemas.base import APIModel


class BookingBase(APIModel):
    """Base booking schema with common fields."""
    service_type: ServiceType
    scheduled_date: datetime
    duration: int = Field(default=DEFAULT_DURATION_MINUTES, ge=MIN_DURATION_MINUTES)
    notes: Optional[str] = Field(default=None, max_length=MAX_NOTES_LENGTH)


class BookingCreate(BookingBase):
    """Schema for bookings made by signed-in users and garage staff."""
    client: Optional[Client] = None
    vehicle: Optional[VehicleRef] = None
    garage_id: Optional[int] = None
    garage_notes: Optional[str] = Field(default=None, max_length=MAX_NOTES_LENGTH)
    source: BookingSource = BookingSource.APP
    quotation_id: Optional[str] = None
    analysis_id: Optional[str] = None
    calendar_event_id: Optional[str] = None

    @field_validator("source")
    @classmethod
    def _not_public(cls, value: BookingSource) -> BookingSource:
        if value == BookingSource.PUBLIC_BOOKING:
            raise ValueError("public bookings must use the public booking endpoint")
        return value


class PublicBookingCreate(BookingBase):
    """Schema for bookings made from a garage's public booking page."""
    client: EmbeddedClient
    vehicle: Optional[EmbeddedVehicle] = None


class BookingUpdate(APIModel):
    """Schema for rescheduling and note edits."""
    scheduled_date: Optional[datetime] = None
    duration: Optional[int] = Field(default=None, ge=MIN_DURATION_MINUTES)
    notes: Optional[str] = Field(default=None, max_length=MAX_NOTES_LENGTH)
    garage_notes: Optional[str] = Field(default=None, max_length=MAX_NOTES_LENGTH)
    calendar_event_id: Optional[str] = None


class BookingCancel(APIModel):
    reason: Optional[str] = Field(default=None, max_length=MAX_NOTES_LENGTH)


class Booking(BookingBase):
    """Schema for booking responses."""
    id: int
    client: Optional[Client] = None
    vehicle: Optional[VehicleRef] = None
    garage_id: int
    status: BookingStatus
    source: BookingSource
    garage_notes: Optional[str] = None
    calendar_event_id: Optional[str] = None
    quotation_id: Optional[str] = None
    analysis_id: Optional[str] = None
    created_by: Optional[int] = None
    confirmed_by: Optional[int] = None
    confirmed_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    cancelled_by: Optional[int] = None
    cancelled_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    is_active: bool = True
    is_upcoming: bool
    is_past: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class BookingResponse(APIModel):
    success: bool = True
    data: Booking


class BookingListResponse(APIModel):
    success: bool = True
    data: List[Booking]
    total: int
