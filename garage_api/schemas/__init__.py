"""
Pydantic schemas for request/response validation.
"""
from garage_api.schemas.vehicle import (
    VehicleBase, VehicleCreate, VehicleUpdate, Vehicle,
    BookingFormVehicle, VehicleListItem, VehicleResponse, VehicleListResponse,
    VehicleImageRequest, VehicleImageResult, VehicleImageResponse,
    VehicleMetrics, VehicleMetricsResponse, RosterClient, RosterResponse,
)
from garage_api.schemas.booking import (
    BookingBase, BookingCreate, PublicBookingCreate, BookingUpdate, BookingCancel,
    Booking, BookingResponse, BookingListResponse,
)

__all__ = [
    "VehicleBase", "VehicleCreate", "VehicleUpdate", "Vehicle",
    "BookingFormVehicle", "VehicleListItem", "VehicleResponse", "VehicleListResponse",
    "VehicleImageRequest", "VehicleImageResult", "VehicleImageResponse",
    "VehicleMetrics", "VehicleMetricsResponse", "RosterClient", "RosterResponse",
    "BookingBase", "BookingCreate", "PublicBookingCreate", "BookingUpdate", "BookingCancel",
    "Booking", "BookingResponse", "BookingListResponse",
]
