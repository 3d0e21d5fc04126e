# /proposals endpoints

# eproc_portal/api/endpoints/proposals.py

import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from pydantic import ValidationError

from eproc_portal.api.deps import get_caller, get_proposal_service
from eproc_portal.models.auth import Caller
from eproc_portal.models.common import Page
from eproc_portal.models.proposal import Proposal, ProposalOrderBy, ProposalStatus, ProposalStatusUpdate, ProposalSubmission
from eproc_portal.services.procurement_service import ProcurementServiceError
from eproc_portal.services.proposal_service import ProposalService

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get(
    "",
    response_model=Page[Proposal],
    summary="List Proposals",
    description="Admins see every proposal; suppliers see their own.",
)
async def list_proposals(
    tender_id: Optional[str] = Query(None),
    proposal_status: Optional[ProposalStatus] = Query(None, alias="status"),
    order_by: ProposalOrderBy = Query(ProposalOrderBy.CREATED_AT),
    order_dir: Literal["asc", "desc"] = Query("desc"),
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    caller: Caller = Depends(get_caller),
    proposal_service: ProposalService = Depends(get_proposal_service),
):
    try:
        return await proposal_service.list_proposals(
            caller,
            tender_id=tender_id,
            status=proposal_status,
            order_by=order_by,
            descending=order_dir == "desc",
            limit=limit,
            offset=offset,
        )
    except ProcurementServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/{proposal_id}", response_model=Proposal, summary="Get Proposal")
async def get_proposal(
    proposal_id: str,
    caller: Caller = Depends(get_caller),
    proposal_service: ProposalService = Depends(get_proposal_service),
):
    try:
        return await proposal_service.get_proposal(caller, proposal_id)
    except ProcurementServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "",
    response_model=Proposal,
    status_code=status.HTTP_201_CREATED,
    summary="Submit Proposal",
    description="Supplier users only. Multipart form with the proposal PDF.",
    responses={
        403: {"description": "Caller is not linked to a supplier"},
        409: {"description": "A proposal for this tender was already sent"},
        422: {"description": "Tender closed or past its deadline"},
    },
)
async def submit_proposal(
    tender_id: str = Form(...),
    amount_rd: float = Form(...),
    delivery_months: int = Form(...),
    file: UploadFile = File(...),
    caller: Caller = Depends(get_caller),
    proposal_service: ProposalService = Depends(get_proposal_service),
):
    try:
        submission = ProposalSubmission(tender_id=tender_id, amount_rd=amount_rd, delivery_months=delivery_months)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=e.errors(include_url=False))

    content = await file.read()
    try:
        return await proposal_service.submit_proposal(caller, submission, content, file.filename or "", file.content_type)
    except ProcurementServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch(
    "/{proposal_id}/status",
    response_model=Proposal,
    summary="Change Proposal Status",
    description="Admin only. The supplier's users are notified.",
)
async def update_proposal_status(
    proposal_id: str,
    body: ProposalStatusUpdate,
    caller: Caller = Depends(get_caller),
    proposal_service: ProposalService = Depends(get_proposal_service),
):
    try:
        return await proposal_service.update_status(caller, proposal_id, body.status)
    except ProcurementServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
