# /suppliers endpoints

import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from eproc_portal.api.deps import get_caller, get_supplier_service
from eproc_portal.models.auth import Caller
from eproc_portal.models.common import Page
from eproc_portal.models.supplier import Supplier, SupplierCreate, SupplierOrderBy, SupplierStatus, SupplierUpdate
from eproc_portal.services.procurement_service import ProcurementServiceError
from eproc_portal.services.supplier_service import SupplierService

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("", response_model=Page[Supplier], summary="List Suppliers", description="Admin only.")
async def list_suppliers(
    supplier_status: Optional[SupplierStatus] = Query(None, alias="status"),
    certified: Optional[bool] = Query(None),
    search: Optional[str] = Query(None, description="Matches name, RNC or contact email."),
    order_by: SupplierOrderBy = Query(SupplierOrderBy.CREATED_AT),
    order_dir: Literal["asc", "desc"] = Query("desc"),
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    caller: Caller = Depends(get_caller),
    supplier_service: SupplierService = Depends(get_supplier_service),
):
    try:
        return await supplier_service.list_suppliers(
            caller,
            status=supplier_status,
            certified=certified,
            search=search,
            order_by=order_by,
            descending=order_dir == "desc",
            limit=limit,
            offset=offset,
        )
    except ProcurementServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/me", response_model=Supplier, summary="Get Own Supplier", description="The supplier linked to the caller.")
async def get_own_supplier(
    caller: Caller = Depends(get_caller),
    supplier_service: SupplierService = Depends(get_supplier_service),
):
    try:
        return await supplier_service.get_own_supplier(caller)
    except ProcurementServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/{supplier_id}", response_model=Supplier, summary="Get Supplier")
async def get_supplier(
    supplier_id: str,
    caller: Caller = Depends(get_caller),
    supplier_service: SupplierService = Depends(get_supplier_service),
):
    try:
        return await supplier_service.get_supplier(caller, supplier_id)
    except ProcurementServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("", response_model=Supplier, status_code=status.HTTP_201_CREATED, summary="Create Supplier", description="Admin only.")
async def create_supplier(
    body: SupplierCreate,
    caller: Caller = Depends(get_caller),
    supplier_service: SupplierService = Depends(get_supplier_service),
):
    try:
        return await supplier_service.create_supplier(caller, body)
    except ProcurementServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch("/{supplier_id}", response_model=Supplier, summary="Update Supplier", description="Admin only.")
async def update_supplier(
    supplier_id: str,
    body: SupplierUpdate,
    caller: Caller = Depends(get_caller),
    supplier_service: SupplierService = Depends(get_supplier_service),
):
    try:
        return await supplier_service.update_supplier(caller, supplier_id, body)
    except ProcurementServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{supplier_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete Supplier", description="Admin only.")
async def delete_supplier(
    supplier_id: str,
    caller: Caller = Depends(get_caller),
    supplier_service: SupplierService = Depends(get_supplier_service),
):
    try:
        await supplier_service.delete_supplier(caller, supplier_id)
    except ProcurementServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    logger.info(f"Supplier {supplier_id} deleted by {caller.user_id}")
