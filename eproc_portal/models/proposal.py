# eproc_portal/models/proposal.py

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class ProposalStatus(str, Enum):
    RECEIVED = "received"
    IN_EVALUATION = "in_evaluation"
    REJECTED = "rejected"
    AWARDED = "awarded"


class ProposalOrderBy(str, Enum):
    CREATED_AT = "created_at"
    AMOUNT = "amount_rd"
    DELIVERY = "delivery_months"


class ProposalSubmission(BaseModel):
    """Form fields sent with the proposal PDF."""
    tender_id: str = Field(..., min_length=1)
    amount_rd: float = Field(..., gt=0)
    delivery_months: int = Field(..., gt=0)


class Proposal(BaseModel):
    id: str
    tender_id: str
    supplier_id: str
    amount_rd: float
    delivery_months: int
    status: ProposalStatus = ProposalStatus.RECEIVED
    doc_url: Optional[str] = Field(None, description="Storage path of the proposal PDF.")
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProposalStatusUpdate(BaseModel):
    status: ProposalStatus
