# /approvals endpoints

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from eproc_portal.api.deps import get_approval_service, get_caller
from eproc_portal.models.approval import (
    Approval,
    ApprovalCreate,
    ApprovalCreated,
    ApprovalDecision,
    ApprovalDecisionRequest,
    ApprovalScope,
)
from eproc_portal.models.auth import Caller
from eproc_portal.models.common import Page
from eproc_portal.services.approval_service import ApprovalService
from eproc_portal.services.procurement_service import ProcurementServiceError

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get(
    "",
    response_model=Page[Approval],
    summary="List Approvals",
    description="Admins see every approval; other users see the approvals addressed to their email.",
)
async def list_approvals(
    proposal_id: Optional[str] = Query(None),
    tender_id: Optional[str] = Query(None),
    scope: Optional[ApprovalScope] = Query(None),
    decision: Optional[ApprovalDecision] = Query(None),
    approver_email: Optional[str] = Query(None, description="Admin only."),
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    caller: Caller = Depends(get_caller),
    approval_service: ApprovalService = Depends(get_approval_service),
):
    try:
        return await approval_service.list_approvals(
            caller,
            proposal_id=proposal_id,
            tender_id=tender_id,
            scope=scope,
            decision=decision,
            approver_email=approver_email,
            limit=limit,
            offset=offset,
        )
    except ProcurementServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "",
    response_model=ApprovalCreated,
    status_code=status.HTTP_201_CREATED,
    summary="Request Approval",
    description="Admin only. The response carries the token for the approval link.",
)
async def request_approval(
    body: ApprovalCreate,
    caller: Caller = Depends(get_caller),
    approval_service: ApprovalService = Depends(get_approval_service),
):
    try:
        return await approval_service.request_approval(caller, body)
    except ProcurementServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch(
    "",
    response_model=Approval,
    summary="Decide Approval",
    description="Approves or rejects the pending approval identified by its link token.",
    responses={404: {"description": "Unknown or already decided token"}, 410: {"description": "Token expired"}},
)
async def decide_approval(
    body: ApprovalDecisionRequest,
    caller: Caller = Depends(get_caller),
    approval_service: ApprovalService = Depends(get_approval_service),
):
    try:
        return await approval_service.decide(caller, body)
    except ProcurementServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
