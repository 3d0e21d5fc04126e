# /service-orders endpoints

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from eproc_portal.api.deps import get_caller, get_service_order_service
from eproc_portal.models.auth import Caller
from eproc_portal.models.common import Page
from eproc_portal.models.order import ServiceOrder, ServiceOrderCreate, ServiceOrderStatus, ServiceOrderUpdate
from eproc_portal.services.procurement_service import ProcurementServiceError
from eproc_portal.services.service_order_service import ServiceOrderService

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get(
    "",
    response_model=Page[ServiceOrder],
    summary="List Service Orders",
    description="Admins see every order; suppliers see the orders issued to them.",
)
async def list_service_orders(
    proposal_id: Optional[str] = Query(None),
    order_status: Optional[ServiceOrderStatus] = Query(None, alias="status"),
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    caller: Caller = Depends(get_caller),
    order_service: ServiceOrderService = Depends(get_service_order_service),
):
    try:
        return await order_service.list_service_orders(caller, proposal_id=proposal_id, status=order_status, limit=limit, offset=offset)
    except ProcurementServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/{order_id}", response_model=ServiceOrder, summary="Get Service Order")
async def get_service_order(
    order_id: str,
    caller: Caller = Depends(get_caller),
    order_service: ServiceOrderService = Depends(get_service_order_service),
):
    try:
        return await order_service.get_service_order(caller, order_id)
    except ProcurementServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "",
    response_model=ServiceOrder,
    status_code=status.HTTP_201_CREATED,
    summary="Issue Service Order",
    description="Admin only. The proposal must be awarded.",
)
async def create_service_order(
    body: ServiceOrderCreate,
    caller: Caller = Depends(get_caller),
    order_service: ServiceOrderService = Depends(get_service_order_service),
):
    try:
        return await order_service.create_service_order(caller, body)
    except ProcurementServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch("/{order_id}", response_model=ServiceOrder, summary="Update Service Order", description="Admin only.")
async def update_service_order(
    order_id: str,
    body: ServiceOrderUpdate,
    caller: Caller = Depends(get_caller),
    order_service: ServiceOrderService = Depends(get_service_order_service),
):
    try:
        return await order_service.update_service_order(caller, order_id, body)
    except ProcurementServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
