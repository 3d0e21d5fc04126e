# Tenders and their RFP documents
# eproc_portal/services/tender_service.py

import logging
from typing import Optional

from eproc_portal.data_access.procurement_repository import PROPOSALS_TABLE, RFP_DOCS_TABLE, TENDERS_TABLE
from eproc_portal.models.auth import Caller, Role
from eproc_portal.models.common import Page
from eproc_portal.models.tender import (
    RfpDoc,
    RfpDocCreate,
    RfpDocUpdate,
    Tender,
    TenderCreate,
    TenderOrderBy,
    TenderStatus,
    TenderUpdate,
)
from eproc_portal.services import notification_templates
from eproc_portal.services.procurement_service import ProcurementService, ProcurementServiceError

logger = logging.getLogger(__name__)


class TenderService(ProcurementService):
    """Everyone signed in can read tenders; only admins create, change or delete them."""

    async def list_tenders(
        self,
        status: Optional[TenderStatus] = None,
        q: Optional[str] = None,
        order_by: TenderOrderBy = TenderOrderBy.CREATED_AT,
        descending: bool = True,
        limit: int = 50,
        offset: int = 0,
    ) -> Page[Tender]:
        result = self._store(
            "listing tenders",
            self.repository.list,
            TENDERS_TABLE,
            filters={"status": status},
            search=q,
            search_columns=("code", "title"),
            order_by=order_by.value,
            descending=descending,
            limit=limit,
            offset=offset,
        )
        return self._page(Tender, result, limit, offset)

    async def get_tender(self, tender_id: str) -> Tender:
        return Tender.model_validate(self._get_or_404(TENDERS_TABLE, tender_id, "tender"))

    async def create_tender(self, caller: Caller, data: TenderCreate) -> Tender:
        """
        Creates a draft tender.

        Raises:
            ProcurementServiceError: 403 for non-admins, 409 on a duplicate code.
        """
        self._require_admin(caller, "Only administrators can create tenders.")
        if self._store("checking the tender code", self.repository.find_one, TENDERS_TABLE, code=data.code):
            raise ProcurementServiceError("A tender with this code already exists.", 409)

        row = {**data.model_dump(mode="json"), "status": TenderStatus.DRAFT.value, "created_by": caller.user_id}
        tender = Tender.model_validate(self._store("creating the tender", self.repository.insert, TENDERS_TABLE, row))
        self._record("tender", tender.id, "created", data.model_dump(mode="json"), caller)
        logger.info(f"Tender {tender.code} ({tender.id}) created by {caller.user_id}")
        return tender

    async def update_tender(self, caller: Caller, tender_id: str, changes: TenderUpdate) -> Tender:
        self._require_admin(caller, "Only administrators can update tenders.")
        current = Tender.model_validate(self._get_or_404(TENDERS_TABLE, tender_id, "tender"))
        updates = changes.model_dump(mode="json", exclude_unset=True)
        if not updates:
            return current

        new_code = updates.get("code")
        if new_code and new_code != current.code:
            existing = self._store("checking the tender code", self.repository.find_one, TENDERS_TABLE, code=new_code)
            if existing and existing["id"] != tender_id:
                raise ProcurementServiceError("Another tender already uses this code.", 409)

        row = self._store("updating the tender", self.repository.update, TENDERS_TABLE, tender_id, updates)
        if row is None:
            raise ProcurementServiceError("Tender not found.", 404)
        tender = Tender.model_validate(row)
        self._record("tender", tender_id, "updated", updates, caller)
        if changes.status is not None and changes.status != current.status:
            await self._status_changed(tender, current.status, caller)
        return tender

    async def set_status(self, tender_id: str, status: TenderStatus, caller: Optional[Caller] = None) -> Tender:
        """Moves a tender to `status` without the admin check; used by approval decisions."""
        current = Tender.model_validate(self._get_or_404(TENDERS_TABLE, tender_id, "tender"))
        row = self._store("updating the tender", self.repository.update, TENDERS_TABLE, tender_id, {"status": status.value})
        if row is None:
            raise ProcurementServiceError("Tender not found.", 404)
        tender = Tender.model_validate(row)
        if status != current.status:
            await self._status_changed(tender, current.status, caller)
        return tender

    async def _status_changed(self, tender: Tender, old_status: TenderStatus, caller: Optional[Caller]) -> None:
        self._record("tender", tender.id, "status_changed", {"old_status": old_status.value, "new_status": tender.status.value}, caller)
        if tender.status == TenderStatus.OPEN:
            content = notification_templates.tender_opened(tender.id, tender.code, tender.title)
            await self._notify(lambda n: n.notify_role(Role.SUPPLIER, content))

    async def delete_tender(self, caller: Caller, tender_id: str) -> None:
        self._require_admin(caller, "Only administrators can delete tenders.")
        tender = Tender.model_validate(self._get_or_404(TENDERS_TABLE, tender_id, "tender"))
        if self._store("counting proposals", self.repository.count, PROPOSALS_TABLE, tender_id=tender_id):
            raise ProcurementServiceError("A tender with proposals cannot be deleted.", 422)
        self._store("deleting the tender", self.repository.delete, TENDERS_TABLE, tender_id)
        self._record("tender", tender_id, "deleted", {"code": tender.code, "title": tender.title}, caller)

    # --- RFP documents ---

    async def list_rfp_docs(
        self,
        tender_id: Optional[str] = None,
        is_mandatory: Optional[bool] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> Page[RfpDoc]:
        result = self._store(
            "listing RFP documents",
            self.repository.list,
            RFP_DOCS_TABLE,
            filters={"tender_id": tender_id, "is_mandatory": is_mandatory},
            limit=limit,
            offset=offset,
        )
        return self._page(RfpDoc, result, limit, offset)

    async def create_rfp_doc(self, caller: Caller, data: RfpDocCreate) -> RfpDoc:
        self._require_admin(caller, "Only administrators can create RFP documents.")
        self._get_or_404(TENDERS_TABLE, data.tender_id, "tender")
        doc = RfpDoc.model_validate(self._store("creating the RFP document", self.repository.insert, RFP_DOCS_TABLE, data.model_dump(mode="json")))
        self._record(
            "rfp_doc",
            doc.id,
            "created",
            {"tender_id": doc.tender_id, "title": doc.title, "is_mandatory": doc.is_mandatory, "required_fields_count": len(doc.required_fields)},
            caller,
        )
        return doc

    async def update_rfp_doc(self, caller: Caller, doc_id: str, changes: RfpDocUpdate) -> RfpDoc:
        self._require_admin(caller, "Only administrators can update RFP documents.")
        current = self._get_or_404(RFP_DOCS_TABLE, doc_id, "RFP document")
        updates = changes.model_dump(mode="json", exclude_unset=True)
        if not updates:
            return RfpDoc.model_validate(current)
        row = self._store("updating the RFP document", self.repository.update, RFP_DOCS_TABLE, doc_id, updates)
        if row is None:
            raise ProcurementServiceError("RFP document not found.", 404)
        self._record("rfp_doc", doc_id, "updated", updates, caller)
        return RfpDoc.model_validate(row)

    async def delete_rfp_doc(self, caller: Caller, doc_id: str) -> None:
        self._require_admin(caller, "Only administrators can delete RFP documents.")
        doc = self._get_or_404(RFP_DOCS_TABLE, doc_id, "RFP document")
        self._store("deleting the RFP document", self.repository.delete, RFP_DOCS_TABLE, doc_id)
        self._record("rfp_doc", doc_id, "deleted", {"tender_id": doc.get("tender_id"), "title": doc.get("title")}, caller)
