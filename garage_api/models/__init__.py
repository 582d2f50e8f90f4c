"""
SQLAlchemy database models.
"""
from garage_api.models.organization import Organization
from garage_api.models.user import User
from garage_api.models.vehicle import Vehicle
from garage_api.models.booking import Booking, BookingSource, BookingStatus, ServiceType
from garage_api.models.audit_log import AuditLog

__all__ = [
    "Organization", "User", "Vehicle",
    "Booking", "BookingSource", "BookingStatus", "ServiceType",
    "AuditLog",
]
