"""
Which vehicles a principal may see, and the listing built on top of it.

A vehicle is visible when the caller owns it or when it belongs to the
caller's organization. Every vehicle query in the application goes
through :func:`access_filter` or :func:`listing_filter`.
"""
import math
from typing import List, Optional, Union

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.sql.elements import ColumnElement

from garage_api.auth import Principal
from garage_api.models.vehicle import Vehicle
from garage_api.schemas.vehicle import BookingFormVehicle, VehicleListItem

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
NOT_AVAILABLE = "N/A"


def access_filter(principal: Principal) -> ColumnElement:
    """owner_user_id == user OR org_id == org."""
    clauses = [Vehicle.owner_user_id == principal.user_id]
    # A caller without an organization must not match org-less vehicles
    if principal.org_id is not None:
        clauses.append(Vehicle.org_id == principal.org_id)
    return or_(*clauses)


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def search_filter(search: str) -> ColumnElement:
    pattern = f"%{_escape_like(search)}%"
    return or_(
        Vehicle.plate.ilike(pattern, escape="\\"),
        Vehicle.make.ilike(pattern, escape="\\"),
        Vehicle.model.ilike(pattern, escape="\\"),
        Vehicle.owner_name.ilike(pattern, escape="\\"),
    )


def listing_filter(
    principal: Principal,
    owner_id: Optional[int] = None,
    search: Optional[str] = None,
) -> ColumnElement:
    """
    Filter for the vehicles list.

    When ``owner_id`` is given the identity-or-organization rule is
    replaced by an exact owner match, still pinned to the caller's
    organization when there is one.
    """
    if owner_id is not None:
        clauses = [Vehicle.owner_user_id == owner_id]
        if principal.org_id is not None:
            clauses.append(Vehicle.org_id == principal.org_id)
    else:
        clauses = [access_filter(principal)]
    clauses.append(Vehicle.is_active.is_(True))
    if search:
        clauses.append(search_filter(search))
    return and_(*clauses)


async def get_accessible_vehicle(db: AsyncSession, principal: Principal, vehicle_id: int) -> Optional[Vehicle]:
    """Return the vehicle, or None when it is missing or not visible to the caller."""
    result = await db.execute(
        select(Vehicle).where(Vehicle.id == vehicle_id, access_filter(principal))
    )
    return result.scalar_one_or_none()


def to_booking_form_item(vehicle: Vehicle) -> BookingFormVehicle:
    return BookingFormVehicle(
        id=vehicle.id,
        make=vehicle.make,
        model=vehicle.model,
        year=vehicle.year,
        plate=vehicle.plate,
    )


def to_list_item(vehicle: Vehicle) -> VehicleListItem:
    owner = vehicle.owner_user
    car_type = f"{vehicle.make or ''} {vehicle.model or ''}".strip()
    active = bool(vehicle.is_active and owner is not None and owner.is_active)
    return VehicleListItem(
        id=vehicle.id,
        name=vehicle.owner_name or (owner.name if owner else None) or NOT_AVAILABLE,
        registration_no=vehicle.plate or NOT_AVAILABLE,
        car_type=car_type or NOT_AVAILABLE,
        email=(owner.email if owner else None) or NOT_AVAILABLE,
        status="Active" if active else "Inactive",
        vehicle_id=vehicle.id,
        owner_id=owner.id if owner else None,
    )


class VehiclePage:
    """One page of the vehicles list."""

    def __init__(self, items: List[Union[BookingFormVehicle, VehicleListItem]], total: int, page: int, limit: int):
        self.items = items
        self.total = total
        self.page = page
        self.limit = limit

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


async def list_vehicles(
    db: AsyncSession,
    principal: Principal,
    page: int = DEFAULT_PAGE,
    limit: int = DEFAULT_LIMIT,
    search: Optional[str] = None,
    owner_id: Optional[int] = None,
) -> VehiclePage:
    criteria = listing_filter(principal, owner_id=owner_id, search=search)
    offset = (page - 1) * limit

    result = await db.execute(
        select(Vehicle)
        .where(criteria)
        .options(selectinload(Vehicle.owner_user))
        .order_by(Vehicle.created_at.desc(), Vehicle.id.desc())
        .offset(offset)
        .limit(limit)
    )
    vehicles = result.scalars().all()
    total = await db.scalar(select(func.count()).select_from(Vehicle).where(criteria))

    # The booking form only needs enough to pick a car
    project = to_booking_form_item if owner_id is not None else to_list_item
    return VehiclePage([project(v) for v in vehicles], total or 0, page, limit)
