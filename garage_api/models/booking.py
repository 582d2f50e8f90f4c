"""
Booking model for database.
"""
import enum
from datetime import datetime, timezone
from typing import Optional, Union

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import validates
from sqlalchemy.sql import func

from garage_api.database import Base
from garage_api.parties import EmbeddedClient, EmbeddedVehicle, RegisteredClient, RegisteredVehicle

MIN_DURATION_MINUTES = 15
DEFAULT_DURATION_MINUTES = 60
MAX_NOTES_LENGTH = 1000


class BookingStatus(str, enum.Enum):
    """Booking status enumeration."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class BookingSource(str, enum.Enum):
    """Which flow created the booking."""
    APP = "app"
    PUBLIC_BOOKING = "public_booking"
    WALK_IN = "walk_in"


class ServiceType(str, enum.Enum):
    INSPECTION = "inspection"
    REPAIR = "repair"
    MAINTENANCE = "maintenance"
    DIAGNOSTIC = "diagnostic"


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Booking(Base):
    """
    One scheduled service visit at a garage.

    The client is either a registered user (``client_id``) or inline
    contact details (``client_name``/``client_email``/``client_phone``).
    The vehicle works the same way. Status is stored as given; the
    lifecycle rules live in ``garage_api.services.bookings``.
    """

    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)

    # Who the booking is for
    client_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    client_name = Column(String, nullable=True)
    client_email = Column(String, nullable=True)
    client_phone = Column(String, nullable=True)

    garage_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)

    # What is being serviced
    vehicle_id = Column(Integer, ForeignKey("vehicles.id", ondelete="SET NULL"), nullable=True)
    vehicle_make = Column(String, nullable=True)
    vehicle_model = Column(String, nullable=True)
    vehicle_year = Column(Integer, nullable=True)
    vehicle_plate = Column(String, nullable=True)

    service_type = Column(SQLEnum(ServiceType), nullable=False)
    scheduled_date = Column(DateTime(timezone=True), nullable=False)
    duration = Column(Integer, nullable=False, default=DEFAULT_DURATION_MINUTES)
    status = Column(SQLEnum(BookingStatus), default=BookingStatus.PENDING, nullable=False)

    notes = Column(String(MAX_NOTES_LENGTH), nullable=True)
    garage_notes = Column(String(MAX_NOTES_LENGTH), nullable=True)
    calendar_event_id = Column(String, nullable=True)

    # Lifecycle
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    source = Column(SQLEnum(BookingSource), default=BookingSource.APP, nullable=False)
    confirmed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    cancellation_reason = Column(String, nullable=True)
    cancelled_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    # Cross references to records owned by other services
    quotation_id = Column(String, nullable=True)
    analysis_id = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        CheckConstraint(f"duration >= {MIN_DURATION_MINUTES}", name="ck_bookings_min_duration"),
        CheckConstraint("client_id IS NULL OR client_name IS NULL", name="ck_bookings_single_client"),
        CheckConstraint("vehicle_id IS NULL OR vehicle_make IS NULL", name="ck_bookings_single_vehicle"),
        Index("idx_bookings_client_date", "client_id", "scheduled_date"),
        Index("idx_bookings_garage_date", "garage_id", "scheduled_date"),
        Index("idx_bookings_status_date", "status", "scheduled_date"),
        Index("idx_bookings_vehicle", "vehicle_id"),
        Index("idx_bookings_calendar_event", "calendar_event_id"),
    )

    def __init__(self, **kwargs):
        for required in ("garage_id", "scheduled_date"):
            if kwargs.get(required) is None:
                raise ValueError(f"{required} is required")
        kwargs.setdefault("duration", DEFAULT_DURATION_MINUTES)
        kwargs.setdefault("status", BookingStatus.PENDING)
        kwargs.setdefault("source", BookingSource.APP)
        kwargs.setdefault("is_active", True)
        super().__init__(**kwargs)

    @validates("duration")
    def _validate_duration(self, key, value):
        if value is None or int(value) < MIN_DURATION_MINUTES:
            raise ValueError(f"duration must be at least {MIN_DURATION_MINUTES} minutes")
        return int(value)

    @validates("notes", "garage_notes", "cancellation_reason", "calendar_event_id")
    def _validate_text(self, key, value):
        if value is None:
            return None
        value = value.strip()
        if key in ("notes", "garage_notes") and len(value) > MAX_NOTES_LENGTH:
            raise ValueError(f"{key} must be at most {MAX_NOTES_LENGTH} characters")
        return value

    @validates("garage_id")
    def _validate_garage(self, key, value):
        if value is None:
            raise ValueError("garage_id is required")
        return value

    @property
    def client(self) -> Optional[Union[RegisteredClient, EmbeddedClient]]:
        if self.client_id is not None:
            return RegisteredClient(user_id=self.client_id)
        if self.client_name:
            return EmbeddedClient(name=self.client_name, email=self.client_email, phone=self.client_phone)
        return None

    @client.setter
    def client(self, value: Optional[Union[RegisteredClient, EmbeddedClient]]) -> None:
        self.client_id = None
        self.client_name = self.client_email = self.client_phone = None
        if isinstance(value, RegisteredClient):
            self.client_id = value.user_id
        elif isinstance(value, EmbeddedClient):
            self.client_name = value.name
            self.client_email = value.email
            self.client_phone = value.phone
        elif value is not None:
            raise TypeError(f"Unsupported client type: {type(value).__name__}")

    @property
    def vehicle(self) -> Optional[Union[RegisteredVehicle, EmbeddedVehicle]]:
        if self.vehicle_id is not None:
            return RegisteredVehicle(vehicle_id=self.vehicle_id)
        if any((self.vehicle_make, self.vehicle_model, self.vehicle_year, self.vehicle_plate)):
            return EmbeddedVehicle(
                make=self.vehicle_make,
                model=self.vehicle_model,
                year=self.vehicle_year,
                plate=self.vehicle_plate,
            )
        return None

    @vehicle.setter
    def vehicle(self, value: Optional[Union[RegisteredVehicle, EmbeddedVehicle]]) -> None:
        self.vehicle_id = None
        self.vehicle_make = self.vehicle_model = self.vehicle_plate = None
        self.vehicle_year = None
        if isinstance(value, RegisteredVehicle):
            self.vehicle_id = value.vehicle_id
        elif isinstance(value, EmbeddedVehicle):
            self.vehicle_make = value.make
            self.vehicle_model = value.model
            self.vehicle_year = value.year
            self.vehicle_plate = value.plate
        elif value is not None:
            raise TypeError(f"Unsupported vehicle type: {type(value).__name__}")

    @property
    def is_upcoming(self) -> bool:
        return (
            as_utc(self.scheduled_date) > datetime.now(timezone.utc)
            and self.status != BookingStatus.CANCELLED
        )

    @property
    def is_past(self) -> bool:
        return as_utc(self.scheduled_date) < datetime.now(timezone.utc)
