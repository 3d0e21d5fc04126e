"""
API Router Module - Aggregates all endpoint routers
"""
from fastapi import APIRouter

from eproc_portal.api.endpoints import (
    approvals,
    auth,
    health,
    invoices,
    notifications,
    profiles,
    proposals,
    rfp,
    service_orders,
    storage,
    suppliers,
    tenders,
)

# JSON API, mounted under settings.API_PREFIX
api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["Health"])
api_router.include_router(auth.router, prefix="/auth", tags=["Auth"])
api_router.include_router(profiles.router, prefix="/profiles", tags=["Profiles"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])
api_router.include_router(storage.router, prefix="/storage", tags=["Storage"])
api_router.include_router(tenders.router, prefix="/tenders", tags=["Tenders"])
api_router.include_router(rfp.router, prefix="/rfp", tags=["RFP Documents"])
api_router.include_router(proposals.router, prefix="/proposals", tags=["Proposals"])
api_router.include_router(suppliers.router, prefix="/suppliers", tags=["Suppliers"])
api_router.include_router(service_orders.router, prefix="/service-orders", tags=["Service Orders"])
api_router.include_router(invoices.router, prefix="/invoices", tags=["Invoices"])
api_router.include_router(approvals.router, prefix="/approvals", tags=["Approvals"])
