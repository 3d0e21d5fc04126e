# Supplier proposals against open tenders
# eproc_portal/services/proposal_service.py

import logging
from typing import Optional

from eproc_portal.data_access.procurement_repository import PROPOSALS_TABLE, TENDERS_TABLE
from eproc_portal.models.auth import Caller
from eproc_portal.models.common import Page
from eproc_portal.models.proposal import Proposal, ProposalOrderBy, ProposalStatus, ProposalSubmission
from eproc_portal.models.tender import Tender, TenderStatus
from eproc_portal.services import notification_templates
from eproc_portal.services.notification_service import NotificationService
from eproc_portal.services.procurement_service import ProcurementService, ProcurementServiceError
from eproc_portal.services.storage_service import StorageService, StorageServiceError

logger = logging.getLogger(__name__)


class ProposalService(ProcurementService):
    """
    Suppliers submit one proposal per open tender and see only their own;
    admins see every proposal and move it through evaluation.
    """

    def __init__(self, repository, notifications: Optional[NotificationService] = None, storage: Optional[StorageService] = None):
        super().__init__(repository, notifications)
        self.storage = storage

    def _visible(self, caller: Caller, row: dict) -> bool:
        return caller.is_admin or caller.owns(row.get("supplier_id"))

    async def list_proposals(
        self,
        caller: Caller,
        tender_id: Optional[str] = None,
        status: Optional[ProposalStatus] = None,
        order_by: ProposalOrderBy = ProposalOrderBy.CREATED_AT,
        descending: bool = True,
        limit: int = 10,
        offset: int = 0,
    ) -> Page[Proposal]:
        """
        Raises:
            ProcurementServiceError: 403 for callers that are neither admins nor linked to a supplier.
        """
        if not caller.is_admin and not caller.supplier_id:
            raise ProcurementServiceError("Only administrators and suppliers can view proposals.", 403)
        filters = {"tender_id": tender_id, "status": status}
        if not caller.is_admin:
            filters["supplier_id"] = caller.supplier_id
        result = self._store(
            "listing proposals",
            self.repository.list,
            PROPOSALS_TABLE,
            filters=filters,
            order_by=order_by.value,
            descending=descending,
            limit=limit,
            offset=offset,
        )
        return self._page(Proposal, result, limit, offset)

    async def get_proposal(self, caller: Caller, proposal_id: str) -> Proposal:
        row = self._get_or_404(PROPOSALS_TABLE, proposal_id, "proposal")
        # Other suppliers' proposals are reported as missing.
        if not self._visible(caller, row):
            raise ProcurementServiceError("Proposal not found.", 404)
        return Proposal.model_validate(row)

    async def submit_proposal(
        self,
        caller: Caller,
        submission: ProposalSubmission,
        content: bytes,
        filename: str,
        content_type: Optional[str],
    ) -> Proposal:
        """
        Stores the proposal PDF and records the proposal as received.

        Raises:
            ProcurementServiceError: 403 without a linked supplier, 400 for a bad
                file, 404 for an unknown tender, 422 when the tender is not
                accepting proposals, 409 for a second proposal to the same tender.
        """
        if not caller.supplier_id:
            raise ProcurementServiceError("Only suppliers can submit proposals.", 403)
        try:
            self.storage.validate_pdf(content, content_type)
        except StorageServiceError as e:
            raise ProcurementServiceError(e.message, e.status_code)

        tender = Tender.model_validate(self._get_or_404(TENDERS_TABLE, submission.tender_id, "tender"))
        if tender.status != TenderStatus.OPEN:
            raise ProcurementServiceError("Proposals can only be sent to open tenders.", 422)
        if not tender.accepts_proposals():
            raise ProcurementServiceError("The deadline for this tender has passed.", 422)

        existing = self._store(
            "checking for an earlier proposal",
            self.repository.find_one,
            PROPOSALS_TABLE,
            tender_id=tender.id,
            supplier_id=caller.supplier_id,
        )
        if existing:
            raise ProcurementServiceError("You already sent a proposal for this tender.", 409)

        try:
            upload = await self.storage.upload_pdf(content, filename, content_type, f"proposals/{tender.id}")
        except StorageServiceError as e:
            raise ProcurementServiceError(e.message, e.status_code)

        row = {
            "tender_id": tender.id,
            "supplier_id": caller.supplier_id,
            "amount_rd": submission.amount_rd,
            "delivery_months": submission.delivery_months,
            "doc_url": upload.path,
            "status": ProposalStatus.RECEIVED.value,
        }
        try:
            proposal = Proposal.model_validate(self.repository.insert(PROPOSALS_TABLE, row))
        except Exception as e:
            logger.error(f"Error creating proposal for tender {tender.id}: {e}", exc_info=True)
            try:
                await self.storage.delete_file(upload.path)
            except StorageServiceError as cleanup_error:
                logger.warning(f"Could not remove orphaned upload {upload.path}: {cleanup_error.message}")
            raise ProcurementServiceError("Error while creating the proposal.")

        self._record(
            "proposal",
            proposal.id,
            "created",
            {
                "tender_id": tender.id,
                "tender_code": tender.code,
                "amount_rd": submission.amount_rd,
                "delivery_months": submission.delivery_months,
                "supplier_id": caller.supplier_id,
            },
            caller,
        )
        notice = notification_templates.proposal_received(proposal.id, tender.code)
        await self._notify(lambda n: n.notify_admins(notice))
        logger.info(f"Proposal {proposal.id} received from supplier {caller.supplier_id} for tender {tender.code}")
        return proposal

    async def update_status(self, caller: Caller, proposal_id: str, status: ProposalStatus) -> Proposal:
        self._require_admin(caller, "Only administrators can change a proposal's status.")
        current = Proposal.model_validate(self._get_or_404(PROPOSALS_TABLE, proposal_id, "proposal"))
        if status == current.status:
            return current
        row = self._store("updating the proposal", self.repository.update, PROPOSALS_TABLE, proposal_id, {"status": status.value})
        if row is None:
            raise ProcurementServiceError("Proposal not found.", 404)
        proposal = Proposal.model_validate(row)
        self._record("proposal", proposal_id, "status_changed", {"old_status": current.status.value, "new_status": status.value}, caller)
        notice = notification_templates.proposal_status_changed(proposal_id, status.value)
        await self._notify(lambda n: n.notify_supplier(proposal.supplier_id, notice))
        return proposal
