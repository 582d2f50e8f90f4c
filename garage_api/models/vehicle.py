"""
Vehicle model for database.
"""
from typing import Optional, Union

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from garage_api.database import Base
from garage_api.parties import EmbeddedOwner, RegisteredOwner


class Vehicle(Base):
    """Vehicle database model."""

    __tablename__ = "vehicles"
    __table_args__ = (
        CheckConstraint(
            "owner_user_id IS NULL OR owner_name IS NULL",
            name="ck_vehicles_single_owner",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    owner_user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    org_id = Column(Integer, ForeignKey("organizations.id", ondelete="SET NULL"), nullable=True, index=True)

    # Inline owner details for owners without an account
    owner_name = Column(String, nullable=True)
    owner_email = Column(String, nullable=True)
    owner_phone = Column(String, nullable=True)

    make = Column(String, nullable=False)
    model = Column(String, nullable=False)
    year = Column(Integer, nullable=True)
    plate = Column(String, nullable=True, index=True)
    vin = Column(String, nullable=True)
    color = Column(String, nullable=True)
    image_url = Column(String, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    owner_user = relationship("User", lazy="raise")

    @property
    def owner(self) -> Optional[Union[RegisteredOwner, EmbeddedOwner]]:
        if self.owner_user_id is not None:
            return RegisteredOwner(user_id=self.owner_user_id)
        if self.owner_name:
            return EmbeddedOwner(name=self.owner_name, email=self.owner_email, phone=self.owner_phone)
        return None

    @owner.setter
    def owner(self, value: Optional[Union[RegisteredOwner, EmbeddedOwner]]) -> None:
        self.owner_user_id = None
        self.owner_name = self.owner_email = self.owner_phone = None
        if isinstance(value, RegisteredOwner):
            self.owner_user_id = value.user_id
        elif isinstance(value, EmbeddedOwner):
            self.owner_name = value.name
            self.owner_email = value.email
            self.owner_phone = value.phone
        elif value is not None:
            raise TypeError(f"Unsupported owner type: {type(value).__name__}")
