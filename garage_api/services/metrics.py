"""
Vehicle overview numbers and the garage's client roster.
"""
from typing import Dict, List

from sqlalchemy import distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from garage_api.auth import Principal
from garage_api.errors import BadRequestProblem
from garage_api.models.user import User
from garage_api.models.vehicle import Vehicle
from garage_api.schemas.vehicle import RosterClient, VehicleMetrics
from garage_api.services.vehicle_access import access_filter

# Not derived from history; the dashboard shows it as-is
CHANGE_PERCENTAGE_PLACEHOLDER = 4.6

EMBEDDED_KEY_PREFIX = "info_"


async def get_vehicle_metrics(db: AsyncSession, principal: Principal) -> VehicleMetrics:
    criteria = access_filter(principal)

    total_cars = await db.scalar(select(func.count()).select_from(Vehicle).where(criteria))
    active_cars = await db.scalar(
        select(func.count()).select_from(Vehicle).where(criteria, Vehicle.is_active.is_(True))
    )

    result = await db.execute(
        select(distinct(Vehicle.owner_user_id)).where(criteria, Vehicle.owner_user_id.is_not(None))
    )
    owner_ids = [owner_id for owner_id in result.scalars().all() if owner_id is not None]

    active_users = 0
    if owner_ids:
        active_users = await db.scalar(
            select(func.count()).select_from(User).where(User.id.in_(owner_ids), User.is_active.is_(True))
        )

    return VehicleMetrics(
        total_users=len(owner_ids),
        total_cars=total_cars or 0,
        active_cars=active_cars or 0,
        active_users=active_users or 0,
        change_percentage=CHANGE_PERCENTAGE_PLACEHOLDER,
    )


def build_roster(vehicles: List[Vehicle]) -> List[RosterClient]:
    """
    One entry per distinct client across the given vehicles.

    Registered owners are keyed by user id, embedded owners by phone
    (or email) behind a prefix so the two key spaces cannot collide.
    The first vehicle seen for a key decides the entry.
    """
    clients: Dict[str, RosterClient] = {}
    for vehicle in vehicles:
        owner = vehicle.owner_user
        if vehicle.owner_user_id is not None and owner is not None:
            key = str(owner.id)
            if key not in clients:
                clients[key] = RosterClient(
                    id=key,
                    name=owner.name or "Unknown",
                    email=owner.email or "",
                    phone=owner.phone or "",
                    type="registered",
                )
        elif vehicle.owner_name:
            key = f"{EMBEDDED_KEY_PREFIX}{vehicle.owner_phone or vehicle.owner_email or ''}"
            if key not in clients:
                clients[key] = RosterClient(
                    id=key,
                    name=vehicle.owner_name,
                    email=vehicle.owner_email or "",
                    phone=vehicle.owner_phone or "",
                    type="embedded",
                )
    return list(clients.values())


async def get_client_roster(db: AsyncSession, principal: Principal) -> List[RosterClient]:
    if principal.org_id is None:
        raise BadRequestProblem("Organization ID required")

    result = await db.execute(
        select(Vehicle)
        .where(Vehicle.org_id == principal.org_id, Vehicle.is_active.is_(True))
        .options(selectinload(Vehicle.owner_user))
        .order_by(Vehicle.created_at, Vehicle.id)
    )
    return build_roster(list(result.scalars().all()))
