"""
Profile models for account and role management.
"""

from pydantic import BaseModel, Field
from typing import Optional
from enum import Enum


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Role":
        """Any unknown or missing stored value reads as USER."""
        return cls.ADMIN if value == cls.ADMIN.value else cls.USER


class ProfileUpdate(BaseModel):
    """Fields the owning user may edit when completing a profile."""
    role: Role = Role.USER
    name: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=20)
    avatar_url: Optional[str] = Field(None, max_length=500)
    organization_name: Optional[str] = Field(None, max_length=200)
    location_text: Optional[str] = Field(None, max_length=500)
    latitude: Optional[str] = Field(None, description="Latitude as typed in the form")
    longitude: Optional[str] = Field(None, description="Longitude as typed in the form")


class ProfileResponse(BaseModel):
    id: str
    email: Optional[str] = None
    role: Role = Role.USER
    name: Optional[str] = None
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    organization_name: Optional[str] = None
    location_text: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    is_complete: bool = False


class LocationAutofill(BaseModel):
    location_text: str
    latitude: float
    longitude: float
    source: str = Field(..., description="google | nominatim | coordinates")
