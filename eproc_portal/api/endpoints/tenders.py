# /tenders endpoints

# eproc_portal/api/endpoints/tenders.py

import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from eproc_portal.api.deps import get_caller, get_tender_service
from eproc_portal.models.auth import Caller
from eproc_portal.models.common import Page
from eproc_portal.models.tender import Tender, TenderCreate, TenderOrderBy, TenderStatus, TenderUpdate
from eproc_portal.services.procurement_service import ProcurementServiceError
from eproc_portal.services.tender_service import TenderService

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get(
    "",
    response_model=Page[Tender],
    summary="List Tenders",
    description="Lists tenders with optional status filter and search on code or title.",
)
async def list_tenders(
    tender_status: Optional[TenderStatus] = Query(None, alias="status"),
    q: Optional[str] = Query(None, description="Matches code or title, case-insensitive."),
    order_by: TenderOrderBy = Query(TenderOrderBy.CREATED_AT),
    order_dir: Literal["asc", "desc"] = Query("desc"),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    caller: Caller = Depends(get_caller),
    tender_service: TenderService = Depends(get_tender_service),
):
    try:
        return await tender_service.list_tenders(
            status=tender_status, q=q, order_by=order_by, descending=order_dir == "desc", limit=limit, offset=offset
        )
    except ProcurementServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/{tender_id}", response_model=Tender, summary="Get Tender")
async def get_tender(
    tender_id: str,
    caller: Caller = Depends(get_caller),
    tender_service: TenderService = Depends(get_tender_service),
):
    try:
        return await tender_service.get_tender(tender_id)
    except ProcurementServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "",
    response_model=Tender,
    status_code=status.HTTP_201_CREATED,
    summary="Create Tender",
    description="Admin only. The tender starts as a draft.",
    responses={403: {"description": "Caller is not an admin"}, 409: {"description": "Code already in use"}},
)
async def create_tender(
    body: TenderCreate,
    caller: Caller = Depends(get_caller),
    tender_service: TenderService = Depends(get_tender_service),
):
    try:
        return await tender_service.create_tender(caller, body)
    except ProcurementServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch("/{tender_id}", response_model=Tender, summary="Update Tender", description="Admin only.")
async def update_tender(
    tender_id: str,
    body: TenderUpdate,
    caller: Caller = Depends(get_caller),
    tender_service: TenderService = Depends(get_tender_service),
):
    try:
        return await tender_service.update_tender(caller, tender_id, body)
    except ProcurementServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{tender_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete Tender", description="Admin only.")
async def delete_tender(
    tender_id: str,
    caller: Caller = Depends(get_caller),
    tender_service: TenderService = Depends(get_tender_service),
):
    try:
        await tender_service.delete_tender(caller, tender_id)
    except ProcurementServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    logger.info(f"Tender {tender_id} deleted by {caller.user_id}")
