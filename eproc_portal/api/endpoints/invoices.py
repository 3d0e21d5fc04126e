# /invoices endpoints

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from eproc_portal.api.deps import get_caller, get_invoice_service
from eproc_portal.models.auth import Caller
from eproc_portal.models.common import Page
from eproc_portal.models.order import Invoice, InvoiceCreate, InvoiceStatus, InvoiceUpdate
from eproc_portal.services.invoice_service import InvoiceService
from eproc_portal.services.procurement_service import ProcurementServiceError

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get(
    "",
    response_model=Page[Invoice],
    summary="List Invoices",
    description="Admins may filter by supplier; suppliers only ever see their own invoices.",
)
async def list_invoices(
    proposal_id: Optional[str] = Query(None),
    service_order_id: Optional[str] = Query(None),
    invoice_status: Optional[InvoiceStatus] = Query(None, alias="status"),
    supplier_id: Optional[str] = Query(None),
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    caller: Caller = Depends(get_caller),
    invoice_service: InvoiceService = Depends(get_invoice_service),
):
    try:
        return await invoice_service.list_invoices(
            caller,
            proposal_id=proposal_id,
            service_order_id=service_order_id,
            status=invoice_status,
            supplier_id=supplier_id,
            limit=limit,
            offset=offset,
        )
    except ProcurementServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/{invoice_id}", response_model=Invoice, summary="Get Invoice")
async def get_invoice(
    invoice_id: str,
    caller: Caller = Depends(get_caller),
    invoice_service: InvoiceService = Depends(get_invoice_service),
):
    try:
        return await invoice_service.get_invoice(caller, invoice_id)
    except ProcurementServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("", response_model=Invoice, status_code=status.HTTP_201_CREATED, summary="Submit Invoice")
async def create_invoice(
    body: InvoiceCreate,
    caller: Caller = Depends(get_caller),
    invoice_service: InvoiceService = Depends(get_invoice_service),
):
    try:
        return await invoice_service.create_invoice(caller, body)
    except ProcurementServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch(
    "/{invoice_id}",
    response_model=Invoice,
    summary="Update Invoice",
    description="Suppliers may edit their own invoices; only admins change the status.",
)
async def update_invoice(
    invoice_id: str,
    body: InvoiceUpdate,
    caller: Caller = Depends(get_caller),
    invoice_service: InvoiceService = Depends(get_invoice_service),
):
    try:
        return await invoice_service.update_invoice(caller, invoice_id, body)
    except ProcurementServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete Invoice")
async def delete_invoice(
    invoice_id: str,
    caller: Caller = Depends(get_caller),
    invoice_service: InvoiceService = Depends(get_invoice_service),
):
    try:
        await invoice_service.delete_invoice(caller, invoice_id)
    except ProcurementServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
