# eproc_portal/models/profile.py

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from eproc_portal.models.auth import Role


class ProfileBase(BaseModel):
    """Personal details editable by the profile owner."""
    full_name: Optional[str] = Field(None, description="User's full name.")
    phone: Optional[str] = Field(None, description="Contact phone number.")
    country: Optional[str] = Field(None, description="Country of residence.")


class Profile(ProfileBase):
    """One row per identity in the `profiles` table."""
    id: str = Field(..., description="Identity id (same as auth user id).")
    email: Optional[str] = None
    role: Optional[Role] = Field(None, description="Stored role; empty rows resolve to the default role.")
    supplier_id: Optional[str] = Field(None, description="Linked supplier record, if any.")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("role", mode="before")
    @classmethod
    def coerce_role(cls, v: Any) -> Optional[Role]:
        # Unknown or blank values are stored as "no role" rather than rejected.
        if isinstance(v, Role):
            return v
        return Role.parse(v)

    class Config:
        from_attributes = True


class ProfileCreate(ProfileBase):
    """Row inserted when signup completes."""
    id: str
    email: str
    role: Role = Role.SUPPLIER


class ProfileUpdate(ProfileBase):
    """Self-service update: the role is deliberately not part of this model."""
    pass


class ProfileAdminUpdate(ProfileBase):
    """Admin-only update, may change the role and supplier linkage."""
    role: Optional[Role] = None
    supplier_id: Optional[str] = None
