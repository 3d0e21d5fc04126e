# Service orders (purchase orders) issued for awarded proposals
# eproc_portal/services/service_order_service.py

import logging
from typing import Optional

from eproc_portal.data_access.procurement_repository import PROPOSALS_TABLE, SERVICE_ORDERS_TABLE
from eproc_portal.models.auth import Caller
from eproc_portal.models.common import Page
from eproc_portal.models.order import ServiceOrder, ServiceOrderCreate, ServiceOrderStatus, ServiceOrderUpdate
from eproc_portal.models.proposal import Proposal, ProposalStatus
from eproc_portal.services import notification_templates
from eproc_portal.services.procurement_service import ProcurementService, ProcurementServiceError

logger = logging.getLogger(__name__)


class ServiceOrderService(ProcurementService):

    def _check_po_number(self, po_number: str, order_id: Optional[str]) -> None:
        existing = self._store("checking the order number", self.repository.find_one, SERVICE_ORDERS_TABLE, po_number=po_number)
        if existing and existing["id"] != order_id:
            raise ProcurementServiceError("This order number is already in use.", 409)

    async def list_service_orders(
        self,
        caller: Caller,
        proposal_id: Optional[str] = None,
        status: Optional[ServiceOrderStatus] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> Page[ServiceOrder]:
        if not caller.is_admin and not caller.supplier_id:
            raise ProcurementServiceError("Only administrators and suppliers can view service orders.", 403)
        filters = {"proposal_id": proposal_id, "status": status}
        if not caller.is_admin:
            filters["supplier_id"] = caller.supplier_id
        result = self._store("listing service orders", self.repository.list, SERVICE_ORDERS_TABLE, filters=filters, limit=limit, offset=offset)
        return self._page(ServiceOrder, result, limit, offset)

    async def get_service_order(self, caller: Caller, order_id: str) -> ServiceOrder:
        row = self._get_or_404(SERVICE_ORDERS_TABLE, order_id, "service order")
        if not caller.is_admin and not caller.owns(row.get("supplier_id")):
            raise ProcurementServiceError("Service order not found.", 404)
        return ServiceOrder.model_validate(row)

    async def create_service_order(self, caller: Caller, data: ServiceOrderCreate) -> ServiceOrder:
        """
        Issues the order for an awarded proposal.

        Raises:
            ProcurementServiceError: 404 for an unknown proposal, 422 if it is
                not awarded, 409 if it already has an order or the number is taken.
        """
        self._require_admin(caller, "Only administrators can issue service orders.")
        proposal = Proposal.model_validate(self._get_or_404(PROPOSALS_TABLE, data.proposal_id, "proposal"))
        if proposal.status != ProposalStatus.AWARDED:
            raise ProcurementServiceError("Service orders can only be issued for awarded proposals.", 422)
        if self._store("checking existing orders", self.repository.find_one, SERVICE_ORDERS_TABLE, proposal_id=proposal.id):
            raise ProcurementServiceError("This proposal already has a service order.", 409)
        self._check_po_number(data.po_number, None)

        row = {
            **data.model_dump(mode="json"),
            "supplier_id": proposal.supplier_id,
            "status": ServiceOrderStatus.ISSUED.value,
        }
        order = ServiceOrder.model_validate(self._store("creating the service order", self.repository.insert, SERVICE_ORDERS_TABLE, row))
        self._record("service_order", order.id, "created", {"proposal_id": proposal.id, "po_number": order.po_number}, caller)
        notice = notification_templates.service_order_issued(order.id, order.po_number)
        await self._notify(lambda n: n.notify_supplier(proposal.supplier_id, notice))
        return order

    async def update_service_order(self, caller: Caller, order_id: str, changes: ServiceOrderUpdate) -> ServiceOrder:
        self._require_admin(caller, "Only administrators can update service orders.")
        current = ServiceOrder.model_validate(self._get_or_404(SERVICE_ORDERS_TABLE, order_id, "service order"))
        updates = changes.model_dump(mode="json", exclude_unset=True)
        if not updates:
            return current
        if changes.po_number and changes.po_number != current.po_number:
            self._check_po_number(changes.po_number, order_id)
        row = self._store("updating the service order", self.repository.update, SERVICE_ORDERS_TABLE, order_id, updates)
        if row is None:
            raise ProcurementServiceError("Service order not found.", 404)
        self._record("service_order", order_id, "updated", updates, caller)
        if changes.status is not None and changes.status != current.status:
            self._record(
                "service_order",
                order_id,
                "status_changed",
                {"old_status": current.status.value, "new_status": changes.status.value},
                caller,
            )
        return ServiceOrder.model_validate(row)
