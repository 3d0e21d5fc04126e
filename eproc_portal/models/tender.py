# eproc_portal/models/tender.py

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class TenderStatus(str, Enum):
    """Lifecycle of a tender. New tenders start as drafts until opened."""
    DRAFT = "draft"
    OPEN = "open"
    IN_EVALUATION = "in_evaluation"
    CLOSED = "closed"
    AWARDED = "awarded"
    CANCELLED = "cancelled"


class TenderOrderBy(str, Enum):
    CODE = "code"
    DEADLINE = "deadline"
    CREATED_AT = "created_at"


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def _future_deadline(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return value
    value = _as_utc(value)
    if value <= datetime.now(timezone.utc):
        raise ValueError("The closing date must be in the future.")
    return value


class TenderBase(BaseModel):
    code: str = Field(..., min_length=1, description="Unique public reference, e.g. LIC-2024-001.")
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    budget_rd: float = Field(..., gt=0, description="Budget in Dominican pesos.")
    delivery_max_months: int = Field(..., gt=0)
    deadline: datetime = Field(..., description="Closing date for proposals.")


class TenderCreate(TenderBase):
    @field_validator("code", "title", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("deadline")
    @classmethod
    def deadline_in_future(cls, v: datetime) -> datetime:
        return _future_deadline(v)


class TenderUpdate(BaseModel):
    """Partial update; only the fields sent are changed."""
    code: Optional[str] = Field(None, min_length=1)
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    budget_rd: Optional[float] = Field(None, gt=0)
    delivery_max_months: Optional[int] = Field(None, gt=0)
    deadline: Optional[datetime] = None
    status: Optional[TenderStatus] = None

    @field_validator("deadline")
    @classmethod
    def deadline_in_future(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _future_deadline(v)


class Tender(TenderBase):
    id: str
    status: TenderStatus = TenderStatus.DRAFT
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    def accepts_proposals(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return self.status == TenderStatus.OPEN and now <= _as_utc(self.deadline)


# --- RFP documents attached to a tender ---

class RfpDocCreate(BaseModel):
    tender_id: str
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    file_url: str = Field(..., min_length=1, description="Storage path of the RFP PDF.")
    required_fields: List[str] = Field(default_factory=list)
    is_mandatory: bool = True


class RfpDocUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    file_url: Optional[str] = Field(None, min_length=1)
    required_fields: Optional[List[str]] = None
    is_mandatory: Optional[bool] = None


class RfpDoc(RfpDocCreate):
    id: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
