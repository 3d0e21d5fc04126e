# /rfp endpoints (RFP documents attached to tenders)

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from eproc_portal.api.deps import get_caller, get_tender_service
from eproc_portal.models.auth import Caller
from eproc_portal.models.common import Page
from eproc_portal.models.tender import RfpDoc, RfpDocCreate, RfpDocUpdate
from eproc_portal.services.procurement_service import ProcurementServiceError
from eproc_portal.services.tender_service import TenderService

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("", response_model=Page[RfpDoc], summary="List RFP Documents")
async def list_rfp_docs(
    tender_id: Optional[str] = Query(None),
    is_mandatory: Optional[bool] = Query(None),
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    caller: Caller = Depends(get_caller),
    tender_service: TenderService = Depends(get_tender_service),
):
    try:
        return await tender_service.list_rfp_docs(tender_id=tender_id, is_mandatory=is_mandatory, limit=limit, offset=offset)
    except ProcurementServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("", response_model=RfpDoc, status_code=status.HTTP_201_CREATED, summary="Create RFP Document", description="Admin only.")
async def create_rfp_doc(
    body: RfpDocCreate,
    caller: Caller = Depends(get_caller),
    tender_service: TenderService = Depends(get_tender_service),
):
    try:
        return await tender_service.create_rfp_doc(caller, body)
    except ProcurementServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch("/{doc_id}", response_model=RfpDoc, summary="Update RFP Document", description="Admin only.")
async def update_rfp_doc(
    doc_id: str,
    body: RfpDocUpdate,
    caller: Caller = Depends(get_caller),
    tender_service: TenderService = Depends(get_tender_service),
):
    try:
        return await tender_service.update_rfp_doc(caller, doc_id, body)
    except ProcurementServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{doc_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete RFP Document", description="Admin only.")
async def delete_rfp_doc(
    doc_id: str,
    caller: Caller = Depends(get_caller),
    tender_service: TenderService = Depends(get_tender_service),
):
    try:
        await tender_service.delete_rfp_doc(caller, doc_id)
    except ProcurementServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
