"""
Pydantic schemas for Vehicle.
"""
from datetime import datetime
from typing import List, Optional, Union

from pydantic import Field

from garage_api.parties import Owner
from garage_api.schemas.base import APIModel


class VehicleBase(APIModel):
    """Base vehicle schema with common fields."""
    make: str = Field(min_length=1)
    model: str = Field(min_length=1)
    year: Optional[int] = None
    plate: Optional[str] = None
    vin: Optional[str] = None
    color: Optional[str] = None


class VehicleCreate(VehicleBase):
    """Schema for creating a vehicle."""
    owner: Optional[Owner] = None
    org_id: Optional[int] = None


class VehicleUpdate(APIModel):
    """Schema for updating a vehicle."""
    make: Optional[str] = Field(default=None, min_length=1)
    model: Optional[str] = Field(default=None, min_length=1)
    year: Optional[int] = None
    plate: Optional[str] = None
    vin: Optional[str] = None
    color: Optional[str] = None
    owner: Optional[Owner] = None
    is_active: Optional[bool] = None


class Vehicle(VehicleBase):
    """Schema for vehicle responses."""
    id: int
    owner: Optional[Owner] = None
    owner_user_id: Optional[int] = None
    org_id: Optional[int] = None
    image_url: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class BookingFormVehicle(APIModel):
    """Minimal shape used to prefill the booking form."""
    id: int
    make: str
    model: str
    year: Optional[int] = None
    plate: Optional[str] = None


class VehicleListItem(APIModel):
    """Row shape for the vehicles table."""
    id: int
    name: str
    registration_no: str
    car_type: str
    email: str
    status: str
    vehicle_id: int
    owner_id: Optional[int] = None


class VehicleResponse(APIModel):
    success: bool = True
    data: Vehicle


class VehicleListResponse(APIModel):
    success: bool = True
    data: List[Union[BookingFormVehicle, VehicleListItem]]
    total: int
    page: int
    limit: int
    pages: int


class VehicleImageRequest(APIModel):
    """
    Body of the image generation request.

    Fields are optional here so that missing values are reported with
    the same messages as the rest of the workflow's validation.
    """
    vehicle_id: Optional[Union[int, str]] = None
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[Union[int, float, str]] = None
    color: Optional[str] = None


class VehicleImageResult(APIModel):
    vehicle_id: int
    image_url: str


class VehicleImageResponse(APIModel):
    success: bool = True
    message: str = "Vehicle image generated successfully"
    data: VehicleImageResult


class VehicleMetrics(APIModel):
    total_users: int
    total_cars: int
    active_cars: int
    active_users: int
    change_percentage: float


class VehicleMetricsResponse(APIModel):
    success: bool = True
    data: VehicleMetrics


class RosterClient(APIModel):
    id: str
    name: str
    email: str
    phone: str
    type: str


class RosterResponse(APIModel):
    success: bool = True
    data: List[RosterClient]
    total: int
