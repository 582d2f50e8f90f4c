"""
Booking lifecycle: create, list, confirm, start, complete, cancel.

The Booking model accepts any status. The allowed moves between
statuses are enforced here, and every move stamps who did it and when.
"""
from datetime import datetime, timezone
from typing import Dict, FrozenSet, List, Optional

import structlog
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from garage_api.auth import Principal
from garage_api.errors import (
    BadRequestProblem,
    ConflictProblem,
    NotFoundProblem,
    ValidationProblem,
    booking_not_found,
    vehicle_not_found,
)
from garage_api.models.booking import Booking, BookingSource, BookingStatus
from garage_api.models.organization import Organization
from garage_api.models.user import User
from garage_api.parties import RegisteredClient, RegisteredVehicle
from garage_api.schemas.booking import BookingCancel, BookingCreate, BookingUpdate, PublicBookingCreate
from garage_api.services.vehicle_access import get_accessible_vehicle

logger = structlog.get_logger(__name__)

TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.PENDING: frozenset(
        {BookingStatus.CONFIRMED, BookingStatus.IN_PROGRESS, BookingStatus.CANCELLED}
    ),
    BookingStatus.CONFIRMED: frozenset(
        {BookingStatus.IN_PROGRESS, BookingStatus.COMPLETED, BookingStatus.CANCELLED}
    ),
    BookingStatus.IN_PROGRESS: frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}


def to_utc(value: datetime) -> datetime:
    """Store every schedule in UTC; naive input is taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def booking_access_filter(principal: Principal) -> ColumnElement:
    """Garage staff see their garage's bookings, clients see their own."""
    clauses = [Booking.client_id == principal.user_id, Booking.created_by == principal.user_id]
    if principal.org_id is not None:
        clauses.append(Booking.garage_id == principal.org_id)
    return or_(*clauses)


def is_garage_staff(principal: Principal, booking: Booking) -> bool:
    return principal.org_id is not None and principal.org_id == booking.garage_id


def can_transition(current, target: BookingStatus) -> bool:
    return target in TRANSITIONS[BookingStatus(current)]


def _apply_transition(booking: Booking, target: BookingStatus) -> None:
    current = BookingStatus(booking.status)
    if not can_transition(current, target):
        raise ConflictProblem(
            f"Cannot change booking status from {current.value} to {target.value}",
            type="invalid_status_transition",
            title="Invalid Status Transition",
        )
    booking.status = target


async def _get_active_garage(db: AsyncSession, garage_id: int) -> Organization:
    garage = await db.scalar(
        select(Organization).where(Organization.id == garage_id, Organization.is_active.is_(True))
    )
    if garage is None:
        raise NotFoundProblem("Garage not found", type="garage_not_found", title="Garage Not Found")
    return garage


async def create_booking(db: AsyncSession, principal: Principal, payload: BookingCreate) -> Booking:
    garage_id = payload.garage_id if payload.garage_id is not None else principal.org_id
    if garage_id is None:
        raise BadRequestProblem("Garage ID required")
    await _get_active_garage(db, garage_id)
    staff = principal.org_id == garage_id

    client = payload.client
    if client is None and not staff:
        client = RegisteredClient(user_id=principal.user_id)
    if isinstance(client, RegisteredClient) and client.user_id != principal.user_id:
        if not staff:
            raise ValidationProblem("Only garage staff can book on behalf of another client")
        if await db.scalar(select(User.id).where(User.id == client.user_id)) is None:
            raise ValidationProblem(f"Client user {client.user_id} does not exist")

    if isinstance(payload.vehicle, RegisteredVehicle):
        if await get_accessible_vehicle(db, principal, payload.vehicle.vehicle_id) is None:
            raise vehicle_not_found()

    if payload.source == BookingSource.WALK_IN and not staff:
        raise ValidationProblem("Walk-in bookings are created by garage staff")

    booking = Booking(
        client=client,
        vehicle=payload.vehicle,
        garage_id=garage_id,
        service_type=payload.service_type,
        scheduled_date=to_utc(payload.scheduled_date),
        duration=payload.duration,
        notes=payload.notes,
        garage_notes=payload.garage_notes if staff else None,
        calendar_event_id=payload.calendar_event_id,
        quotation_id=payload.quotation_id,
        analysis_id=payload.analysis_id,
        created_by=principal.user_id,
        source=payload.source,
    )
    db.add(booking)
    await db.commit()
    await db.refresh(booking)
    logger.info("booking_created", booking_id=booking.id, garage_id=garage_id, source=booking.source.value)
    return booking


async def create_public_booking(db: AsyncSession, garage_id: int, payload: PublicBookingCreate) -> Booking:
    await _get_active_garage(db, garage_id)
    booking = Booking(
        client=payload.client,
        vehicle=payload.vehicle,
        garage_id=garage_id,
        service_type=payload.service_type,
        scheduled_date=to_utc(payload.scheduled_date),
        duration=payload.duration,
        notes=payload.notes,
        source=BookingSource.PUBLIC_BOOKING,
    )
    db.add(booking)
    await db.commit()
    await db.refresh(booking)
    logger.info("public_booking_created", booking_id=booking.id, garage_id=garage_id)
    return booking


async def list_bookings(
    db: AsyncSession,
    principal: Principal,
    status: Optional[BookingStatus] = None,
    upcoming: Optional[bool] = None,
) -> List[Booking]:
    query = select(Booking).where(booking_access_filter(principal), Booking.is_active.is_(True))
    if status is not None:
        query = query.where(Booking.status == status)
    if upcoming is True:
        query = query.where(Booking.scheduled_date > _now(), Booking.status != BookingStatus.CANCELLED)
    elif upcoming is False:
        query = query.where(Booking.scheduled_date < _now())
    result = await db.execute(query.order_by(Booking.scheduled_date, Booking.id))
    return list(result.scalars().all())


async def get_booking(db: AsyncSession, principal: Principal, booking_id: int) -> Booking:
    booking = await db.scalar(
        select(Booking).where(
            Booking.id == booking_id,
            Booking.is_active.is_(True),
            booking_access_filter(principal),
        )
    )
    if booking is None:
        raise booking_not_found()
    return booking


async def _get_for_staff(db: AsyncSession, principal: Principal, booking_id: int) -> Booking:
    booking = await get_booking(db, principal, booking_id)
    if not is_garage_staff(principal, booking):
        raise booking_not_found()
    return booking


async def _save(db: AsyncSession, booking: Booking, event: str, principal: Principal) -> Booking:
    await db.commit()
    await db.refresh(booking)
    logger.info(event, booking_id=booking.id, actor_id=principal.user_id, status=booking.status.value)
    return booking


async def update_booking(db: AsyncSession, principal: Principal, booking_id: int, payload: BookingUpdate) -> Booking:
    booking = await _get_for_staff(db, principal, booking_id)
    current = BookingStatus(booking.status)
    if not TRANSITIONS[current]:
        raise ConflictProblem(
            f"Cannot edit a booking that is {current.value}",
            type="invalid_status_transition",
            title="Invalid Status Transition",
        )
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("scheduled_date") is not None:
        changes["scheduled_date"] = to_utc(changes["scheduled_date"])
    for field, value in changes.items():
        if value is None and field in ("scheduled_date", "duration"):
            raise ValidationProblem(f"{field} cannot be empty")
        setattr(booking, field, value)
    return await _save(db, booking, "booking_updated", principal)


async def confirm_booking(db: AsyncSession, principal: Principal, booking_id: int) -> Booking:
    booking = await _get_for_staff(db, principal, booking_id)
    _apply_transition(booking, BookingStatus.CONFIRMED)
    booking.confirmed_by = principal.user_id
    booking.confirmed_at = _now()
    return await _save(db, booking, "booking_confirmed", principal)


async def start_booking(db: AsyncSession, principal: Principal, booking_id: int) -> Booking:
    booking = await _get_for_staff(db, principal, booking_id)
    _apply_transition(booking, BookingStatus.IN_PROGRESS)
    return await _save(db, booking, "booking_started", principal)


async def complete_booking(db: AsyncSession, principal: Principal, booking_id: int) -> Booking:
    booking = await _get_for_staff(db, principal, booking_id)
    _apply_transition(booking, BookingStatus.COMPLETED)
    booking.completed_at = _now()
    return await _save(db, booking, "booking_completed", principal)


async def cancel_booking(
    db: AsyncSession,
    principal: Principal,
    booking_id: int,
    payload: Optional[BookingCancel] = None,
) -> Booking:
    # Clients may cancel their own bookings as well as garage staff
    booking = await get_booking(db, principal, booking_id)
    _apply_transition(booking, BookingStatus.CANCELLED)
    booking.cancellation_reason = payload.reason if payload else None
    booking.cancelled_by = principal.user_id
    booking.cancelled_at = _now()
    return await _save(db, booking, "booking_cancelled", principal)


async def deactivate_booking(db: AsyncSession, principal: Principal, booking_id: int) -> None:
    booking = await _get_for_staff(db, principal, booking_id)
    booking.is_active = False
    await db.commit()
    logger.info("booking_deactivated", booking_id=booking.id, actor_id=principal.user_id)
