"""
Tagged variants for who owns a vehicle and who a booking is for.

A record references either a registered account or carries the contact
details inline, never both. Using a discriminated union makes the
"neither/both populated" states unrepresentable at the API edge.
"""
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel


class PartyModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class ContactInfo(PartyModel):
    """Inline contact details for someone without an account."""
    name: str = Field(min_length=1)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None


class RegisteredOwner(PartyModel):
    kind: Literal["registered"] = "registered"
    user_id: int


class EmbeddedOwner(ContactInfo):
    kind: Literal["embedded"] = "embedded"


Owner = Annotated[Union[RegisteredOwner, EmbeddedOwner], Field(discriminator="kind")]

# Booking clients share the owner shapes
RegisteredClient = RegisteredOwner
EmbeddedClient = EmbeddedOwner
Client = Owner


class RegisteredVehicle(PartyModel):
    kind: Literal["registered"] = "registered"
    vehicle_id: int


class EmbeddedVehicle(PartyModel):
    """Descriptive data for a vehicle that is not on file."""
    kind: Literal["embedded"] = "embedded"
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    plate: Optional[str] = None


VehicleRef = Annotated[Union[RegisteredVehicle, EmbeddedVehicle], Field(discriminator="kind")]
