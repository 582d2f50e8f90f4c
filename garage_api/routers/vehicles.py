"""
Vehicle routes.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from garage_api.auth import Principal, get_current_principal
from garage_api.database import get_db
from garage_api.errors import problem_boundary
from garage_api.schemas.vehicle import (
    Vehicle as VehicleSchema,
    VehicleCreate,
    VehicleImageRequest,
    VehicleImageResponse,
    VehicleListResponse,
    VehicleMetricsResponse,
    VehicleResponse,
    RosterResponse,
    VehicleUpdate,
)
from garage_api.services import metrics, vehicle_access, vehicle_images, vehicles
from garage_api.services.image_generator import VehicleImageGenerator, get_image_generator

router = APIRouter(prefix="/vehicles", tags=["vehicles"])


@router.post("/generate-image", response_model=VehicleImageResponse)
async def generate_image(
    payload: VehicleImageRequest,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    generator: VehicleImageGenerator = Depends(get_image_generator),
):
    """
    Generate an AI picture of a vehicle and store it on the record.
    """
    with problem_boundary("Failed to generate vehicle image"):
        result = await vehicle_images.generate_vehicle_image(db, principal, payload, generator)
    return VehicleImageResponse(data=result)


@router.get("/metrics", response_model=VehicleMetricsResponse)
async def get_metrics(
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """
    Get vehicle metrics for the overview page.
    """
    with problem_boundary("Failed to retrieve vehicle metrics"):
        data = await metrics.get_vehicle_metrics(db, principal)
    return VehicleMetricsResponse(data=data)


@router.get("/clients", response_model=RosterResponse)
async def get_clients(
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """
    Get the distinct clients who have vehicles at the caller's garage.
    """
    with problem_boundary("Failed to retrieve clients"):
        clients = await metrics.get_client_roster(db, principal)
    return RosterResponse(data=clients, total=len(clients))


@router.get("/{vehicle_id}", response_model=VehicleResponse)
async def get_vehicle(
    vehicle_id: int,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """
    Get a specific vehicle by ID.
    """
    with problem_boundary("Failed to retrieve vehicle"):
        vehicle = await vehicles.get_vehicle(db, principal, vehicle_id, instance="/api/v1/vehicles/:vehicleId")
        return VehicleResponse(data=VehicleSchema.model_validate(vehicle))


@router.get("", response_model=VehicleListResponse)
async def list_vehicles(
    page: int = Query(vehicle_access.DEFAULT_PAGE, ge=1),
    limit: int = Query(vehicle_access.DEFAULT_LIMIT, ge=1),
    search: Optional[str] = None,
    owner_id: Optional[int] = Query(None, alias="ownerId"),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """
    Get vehicles visible to the caller, newest first.

    With ``ownerId`` the result is the short shape used by the booking form.
    """
    with problem_boundary("Failed to retrieve vehicles"):
        result = await vehicle_access.list_vehicles(
            db, principal, page=page, limit=limit, search=search, owner_id=owner_id
        )
    return VehicleListResponse(
        data=result.items,
        total=result.total,
        page=result.page,
        limit=result.limit,
        pages=result.pages,
    )


@router.post("", response_model=VehicleResponse, status_code=status.HTTP_201_CREATED)
async def create_vehicle(
    payload: VehicleCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """
    Create a new vehicle.
    """
    with problem_boundary("Failed to create vehicle"):
        vehicle = await vehicles.create_vehicle(db, principal, payload)
        return VehicleResponse(data=VehicleSchema.model_validate(vehicle))


@router.put("/{vehicle_id}", response_model=VehicleResponse)
async def update_vehicle(
    vehicle_id: int,
    payload: VehicleUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """
    Update a vehicle.
    """
    with problem_boundary("Failed to update vehicle"):
        vehicle = await vehicles.update_vehicle(
            db, principal, vehicle_id, payload, instance="/api/v1/vehicles/:vehicleId"
        )
        return VehicleResponse(data=VehicleSchema.model_validate(vehicle))


@router.delete("/{vehicle_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_vehicle(
    vehicle_id: int,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """
    Deactivate a vehicle. Records are never removed.
    """
    with problem_boundary("Failed to delete vehicle"):
        await vehicles.deactivate_vehicle(db, principal, vehicle_id, instance="/api/v1/vehicles/:vehicleId")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
