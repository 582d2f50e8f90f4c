"""
Create, update and soft-delete vehicles.
"""
import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from garage_api.auth import Principal
from garage_api.errors import ValidationProblem, vehicle_not_found
from garage_api.models.user import User
from garage_api.models.vehicle import Vehicle
from garage_api.parties import RegisteredOwner
from garage_api.schemas.vehicle import VehicleCreate, VehicleUpdate
from garage_api.services.vehicle_access import get_accessible_vehicle

logger = structlog.get_logger(__name__)


async def _ensure_user_exists(db: AsyncSession, owner) -> None:
    if isinstance(owner, RegisteredOwner):
        found = await db.scalar(select(User.id).where(User.id == owner.user_id))
        if found is None:
            raise ValidationProblem(f"Owner user {owner.user_id} does not exist")


async def create_vehicle(db: AsyncSession, principal: Principal, payload: VehicleCreate) -> Vehicle:
    owner = payload.owner
    if owner is None and principal.org_id is None:
        # Private users register their own cars
        owner = RegisteredOwner(user_id=principal.user_id)
    await _ensure_user_exists(db, owner)

    org_id = payload.org_id if payload.org_id is not None else principal.org_id
    if payload.org_id is not None and payload.org_id != principal.org_id:
        raise ValidationProblem("Vehicles can only be added to your own organization")

    vehicle = Vehicle(**payload.model_dump(exclude={"owner", "org_id"}), org_id=org_id, owner=owner)
    db.add(vehicle)
    await db.commit()
    await db.refresh(vehicle)
    logger.info("vehicle_created", vehicle_id=vehicle.id, actor_id=principal.user_id)
    return vehicle


async def get_vehicle(db: AsyncSession, principal: Principal, vehicle_id: int, instance: str = None) -> Vehicle:
    vehicle = await get_accessible_vehicle(db, principal, vehicle_id)
    if vehicle is None:
        raise vehicle_not_found(instance)
    return vehicle


async def update_vehicle(
    db: AsyncSession,
    principal: Principal,
    vehicle_id: int,
    payload: VehicleUpdate,
    instance: str = None,
) -> Vehicle:
    vehicle = await get_vehicle(db, principal, vehicle_id, instance)

    # Update only provided fields
    update_data = payload.model_dump(exclude_unset=True, exclude={"owner"})
    for field, value in update_data.items():
        if field in ("make", "model", "is_active") and (value is None or str(value).strip() == ""):
            raise ValidationProblem(f"{field} cannot be empty", instance=instance)
        setattr(vehicle, field, value)
    if "owner" in payload.model_fields_set:
        await _ensure_user_exists(db, payload.owner)
        vehicle.owner = payload.owner

    await db.commit()
    await db.refresh(vehicle)
    return vehicle


async def deactivate_vehicle(db: AsyncSession, principal: Principal, vehicle_id: int, instance: str = None) -> None:
    vehicle = await get_vehicle(db, principal, vehicle_id, instance)
    vehicle.is_active = False
    await db.commit()
    logger.info("vehicle_deactivated", vehicle_id=vehicle.id, actor_id=principal.user_id)
