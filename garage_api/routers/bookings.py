"""
Booking routes.
"""
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from garage_api.auth import Principal, get_current_principal
from garage_api.database import get_db
from garage_api.errors import problem_boundary
from garage_api.models.booking import BookingStatus
from garage_api.schemas.booking import (
    Booking as BookingSchema,
    BookingCancel,
    BookingCreate,
    BookingListResponse,
    BookingResponse,
    BookingUpdate,
    PublicBookingCreate,
)
from garage_api.services import bookings

router = APIRouter(prefix="/bookings", tags=["bookings"])
public_router = APIRouter(prefix="/public", tags=["public"])


def _single(booking) -> BookingResponse:
    return BookingResponse(data=BookingSchema.model_validate(booking))


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    payload: BookingCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """
    Book a service visit from the app, or record a walk-in.
    """
    with problem_boundary("Failed to create booking"):
        booking = await bookings.create_booking(db, principal, payload)
        return _single(booking)


@router.get("", response_model=BookingListResponse)
async def list_bookings(
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    upcoming: Optional[bool] = None,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    with problem_boundary("Failed to retrieve bookings"):
        items = await bookings.list_bookings(db, principal, status=status_filter, upcoming=upcoming)
        return BookingListResponse(data=[BookingSchema.model_validate(b) for b in items], total=len(items))


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: int,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    with problem_boundary("Failed to retrieve booking"):
        booking = await bookings.get_booking(db, principal, booking_id)
        return _single(booking)


@router.put("/{booking_id}", response_model=BookingResponse)
async def update_booking(
    booking_id: int,
    payload: BookingUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """
    Reschedule a booking or edit its notes. Garage staff only.
    """
    with problem_boundary("Failed to update booking"):
        booking = await bookings.update_booking(db, principal, booking_id, payload)
        return _single(booking)


@router.post("/{booking_id}/confirm", response_model=BookingResponse)
async def confirm_booking(
    booking_id: int,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    with problem_boundary("Failed to confirm booking"):
        booking = await bookings.confirm_booking(db, principal, booking_id)
        return _single(booking)


@router.post("/{booking_id}/start", response_model=BookingResponse)
async def start_booking(
    booking_id: int,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    with problem_boundary("Failed to start booking"):
        booking = await bookings.start_booking(db, principal, booking_id)
        return _single(booking)


@router.post("/{booking_id}/complete", response_model=BookingResponse)
async def complete_booking(
    booking_id: int,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    with problem_boundary("Failed to complete booking"):
        booking = await bookings.complete_booking(db, principal, booking_id)
        return _single(booking)


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking(
    booking_id: int,
    payload: Optional[BookingCancel] = Body(None),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """
    Cancel a booking. The client who made it may cancel too.
    """
    with problem_boundary("Failed to cancel booking"):
        booking = await bookings.cancel_booking(db, principal, booking_id, payload)
        return _single(booking)


@router.delete("/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_booking(
    booking_id: int,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """
    Deactivate a booking. Records are never removed.
    """
    with problem_boundary("Failed to delete booking"):
        await bookings.deactivate_booking(db, principal, booking_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@public_router.post(
    "/garages/{garage_id}/bookings",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_public_booking(
    garage_id: int,
    payload: PublicBookingCreate,
    db: AsyncSession = Depends(get_db),
):
    """
    Book from a garage's public page. No account required.
    """
    with problem_boundary("Failed to create booking"):
        booking = await bookings.create_public_booking(db, garage_id, payload)
        return _single(booking)
