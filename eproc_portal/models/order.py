# eproc_portal/models/order.py

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class ServiceOrderStatus(str, Enum):
    ISSUED = "issued"
    SIGNING = "signing"
    APPROVED = "approved"
    REJECTED = "rejected"


class ServiceOrderCreate(BaseModel):
    proposal_id: str
    po_number: str = Field(..., min_length=1, description="Purchase order number, unique.")
    pdf_url: Optional[str] = None


class ServiceOrderUpdate(BaseModel):
    po_number: Optional[str] = Field(None, min_length=1)
    status: Optional[ServiceOrderStatus] = None
    pdf_url: Optional[str] = None


class ServiceOrder(BaseModel):
    id: str
    proposal_id: str
    supplier_id: Optional[str] = Field(None, description="Supplier of the awarded proposal.")
    po_number: str
    status: ServiceOrderStatus = ServiceOrderStatus.ISSUED
    pdf_url: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# --- Invoices ---

class InvoiceStatus(str, Enum):
    RECEIVED = "received"
    VALIDATED = "validated"
    IN_PAYMENT = "in_payment"
    PAID = "paid"
    REJECTED = "rejected"


class InvoiceCreate(BaseModel):
    proposal_id: str
    service_order_id: Optional[str] = None
    invoice_url: str = Field(..., min_length=1, description="Storage path of the invoice PDF.")
    amount_rd: float = Field(..., gt=0)


class InvoiceUpdate(BaseModel):
    invoice_url: Optional[str] = Field(None, min_length=1)
    amount_rd: Optional[float] = Field(None, gt=0)
    status: Optional[InvoiceStatus] = None


class Invoice(BaseModel):
    id: str
    proposal_id: str
    service_order_id: Optional[str] = None
    supplier_id: Optional[str] = None
    invoice_url: str
    amount_rd: float
    status: InvoiceStatus = InvoiceStatus.RECEIVED
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
