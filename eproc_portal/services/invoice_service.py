# Supplier invoices against awarded proposals
# eproc_portal/services/invoice_service.py

import logging
from typing import Optional

from eproc_portal.data_access.procurement_repository import INVOICES_TABLE, PROPOSALS_TABLE, SERVICE_ORDERS_TABLE
from eproc_portal.models.auth import Caller
from eproc_portal.models.common import Page
from eproc_portal.models.order import Invoice, InvoiceCreate, InvoiceStatus, InvoiceUpdate, ServiceOrder, ServiceOrderStatus
from eproc_portal.models.proposal import Proposal, ProposalStatus
from eproc_portal.services import notification_templates
from eproc_portal.services.procurement_service import ProcurementService, ProcurementServiceError

logger = logging.getLogger(__name__)

# Statuses a supplier is told about
SETTLED_STATUSES = {InvoiceStatus.PAID, InvoiceStatus.REJECTED}


class InvoiceService(ProcurementService):
    """
    Suppliers submit and edit invoices for their own awarded proposals; only
    admins move an invoice through validation and payment.
    """

    def _load_invoice(self, caller: Caller, invoice_id: str, denied: str) -> Invoice:
        invoice = Invoice.model_validate(self._get_or_404(INVOICES_TABLE, invoice_id, "invoice"))
        if not caller.is_admin and not caller.owns(invoice.supplier_id):
            raise ProcurementServiceError(denied, 403)
        return invoice

    async def list_invoices(
        self,
        caller: Caller,
        proposal_id: Optional[str] = None,
        service_order_id: Optional[str] = None,
        status: Optional[InvoiceStatus] = None,
        supplier_id: Optional[str] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> Page[Invoice]:
        """
        Admins may filter by any supplier; suppliers always see only their own invoices.
        """
        if not caller.is_admin and not caller.supplier_id:
            raise ProcurementServiceError("Only administrators and suppliers can view invoices.", 403)
        filters = {
            "proposal_id": proposal_id,
            "service_order_id": service_order_id,
            "status": status,
            "supplier_id": supplier_id if caller.is_admin else caller.supplier_id,
        }
        result = self._store("listing invoices", self.repository.list, INVOICES_TABLE, filters=filters, limit=limit, offset=offset)
        return self._page(Invoice, result, limit, offset)

    async def get_invoice(self, caller: Caller, invoice_id: str) -> Invoice:
        return self._load_invoice(caller, invoice_id, "You can only view your own invoices.")

    async def create_invoice(self, caller: Caller, data: InvoiceCreate) -> Invoice:
        """
        Raises:
            ProcurementServiceError: 403 for another supplier's proposal, 404 for
                unknown proposals or orders, 422 when the proposal is not awarded,
                the amount exceeds it, or the order does not match or is not approved.
        """
        proposal = Proposal.model_validate(self._get_or_404(PROPOSALS_TABLE, data.proposal_id, "proposal"))
        if not caller.is_admin and not caller.owns(proposal.supplier_id):
            raise ProcurementServiceError("You can only invoice your own proposals.", 403)
        if proposal.status != ProposalStatus.AWARDED:
            raise ProcurementServiceError("Invoices can only be created for awarded proposals.", 422)
        if data.amount_rd > proposal.amount_rd:
            raise ProcurementServiceError("The invoice amount cannot exceed the awarded proposal amount.", 422)

        if data.service_order_id:
            order = ServiceOrder.model_validate(self._get_or_404(SERVICE_ORDERS_TABLE, data.service_order_id, "service order"))
            if order.proposal_id != proposal.id:
                raise ProcurementServiceError("The service order does not belong to this proposal.", 422)
            if order.status != ServiceOrderStatus.APPROVED:
                raise ProcurementServiceError("The service order must be approved.", 422)

        row = {**data.model_dump(mode="json"), "supplier_id": proposal.supplier_id, "status": InvoiceStatus.RECEIVED.value}
        invoice = Invoice.model_validate(self._store("creating the invoice", self.repository.insert, INVOICES_TABLE, row))
        self._record(
            "invoice",
            invoice.id,
            "created",
            {"proposal_id": proposal.id, "amount_rd": invoice.amount_rd, "supplier_id": proposal.supplier_id},
            caller,
        )
        notice = notification_templates.invoice_received(invoice.id, invoice.amount_rd)
        await self._notify(lambda n: n.notify_admins(notice))
        return invoice

    async def update_invoice(self, caller: Caller, invoice_id: str, changes: InvoiceUpdate) -> Invoice:
        current = self._load_invoice(caller, invoice_id, "You can only update your own invoices.")
        if not caller.is_admin and changes.status is not None:
            raise ProcurementServiceError("You are not allowed to change the invoice status.", 403)
        updates = changes.model_dump(mode="json", exclude_unset=True)
        if not updates:
            return current

        if changes.amount_rd is not None:
            proposal = Proposal.model_validate(self._get_or_404(PROPOSALS_TABLE, current.proposal_id, "proposal"))
            if changes.amount_rd > proposal.amount_rd:
                raise ProcurementServiceError("The invoice amount cannot exceed the awarded proposal amount.", 422)

        row = self._store("updating the invoice", self.repository.update, INVOICES_TABLE, invoice_id, updates)
        if row is None:
            raise ProcurementServiceError("Invoice not found.", 404)
        invoice = Invoice.model_validate(row)
        self._record("invoice", invoice_id, "updated", {**updates, "updated_by_role": caller.role.value}, caller)

        if invoice.status != current.status and invoice.status in SETTLED_STATUSES and invoice.supplier_id:
            notice = notification_templates.invoice_settled(invoice_id, invoice.status.value)
            await self._notify(lambda n: n.notify_supplier(invoice.supplier_id, notice))
        return invoice

    async def delete_invoice(self, caller: Caller, invoice_id: str) -> None:
        invoice = self._load_invoice(caller, invoice_id, "You can only delete your own invoices.")
        if invoice.status != InvoiceStatus.RECEIVED:
            raise ProcurementServiceError("Only invoices that are still 'received' can be deleted.", 422)
        self._store("deleting the invoice", self.repository.delete, INVOICES_TABLE, invoice_id)
        self._record("invoice", invoice_id, "deleted", {"proposal_id": invoice.proposal_id, "amount_rd": invoice.amount_rd}, caller)
