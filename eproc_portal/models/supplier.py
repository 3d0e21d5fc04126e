# eproc_portal/models/supplier.py

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field


class SupplierStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class SupplierOrderBy(str, Enum):
    CREATED_AT = "created_at"
    NAME = "name"
    EXPERIENCE = "experience_years"
    SUPPORT = "support_months"


class SupplierCreate(BaseModel):
    name: str = Field(..., min_length=1)
    rnc: Optional[str] = Field(None, description="Tax registration number (RNC).")
    status: SupplierStatus = SupplierStatus.ACTIVE
    certified: bool = False
    certifications: List[str] = Field(default_factory=list)
    experience_years: int = Field(0, ge=0)
    support_months: int = Field(0, ge=0)
    contact_email: Optional[EmailStr] = None


class SupplierUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    rnc: Optional[str] = None
    status: Optional[SupplierStatus] = None
    certified: Optional[bool] = None
    certifications: Optional[List[str]] = None
    experience_years: Optional[int] = Field(None, ge=0)
    support_months: Optional[int] = Field(None, ge=0)
    contact_email: Optional[EmailStr] = None


class Supplier(BaseModel):
    id: str
    name: str
    rnc: Optional[str] = None
    status: SupplierStatus = SupplierStatus.ACTIVE
    certified: bool = False
    certifications: List[str] = Field(default_factory=list)
    experience_years: int = 0
    support_months: int = 0
    contact_email: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
