# eproc_portal/models/approval.py

from datetime import datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field, model_validator


class ApprovalScope(str, Enum):
    TENDER_OPENING = "tender_opening"
    RFP_COMMITTEE = "rfp_committee"
    EXECUTIVE_COMMITTEE = "executive_committee"
    IT_MANAGER = "it_manager"
    IT_DIRECTOR = "it_director"
    IT_VP = "it_vp"


class ApprovalDecision(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ApprovalCreate(BaseModel):
    proposal_id: Optional[str] = None
    tender_id: Optional[str] = None
    scope: ApprovalScope
    approver_email: EmailStr
    comment: Optional[str] = None

    @model_validator(mode="after")
    def check_target(self) -> "ApprovalCreate":
        if self.scope == ApprovalScope.TENDER_OPENING:
            if not self.tender_id:
                raise ValueError("A tender opening approval needs a tender_id.")
        elif not self.proposal_id:
            raise ValueError("This approval scope needs a proposal_id.")
        return self


class ApprovalDecisionRequest(BaseModel):
    token: str = Field(..., min_length=1, description="Token from the approval link.")
    decision: Literal["approved", "rejected"]
    comment: Optional[str] = None


class Approval(BaseModel):
    """Approval row as exposed by the API; the link token is never listed."""
    id: str
    proposal_id: Optional[str] = None
    tender_id: Optional[str] = None
    scope: ApprovalScope
    approver_email: str
    comment: Optional[str] = None
    decision: ApprovalDecision = ApprovalDecision.PENDING
    expires_at: Optional[datetime] = None
    decided_at: Optional[datetime] = None
    decided_by: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ApprovalCreated(Approval):
    token: str = Field(..., description="Secret for the approval link, returned once.")
