# Token-based approvals (tender opening, committees, IT management)
# eproc_portal/services/approval_service.py

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from eproc_portal.core.config import settings
from eproc_portal.data_access.procurement_repository import APPROVALS_TABLE, PROPOSALS_TABLE, TENDERS_TABLE
from eproc_portal.models.approval import (
    Approval,
    ApprovalCreate,
    ApprovalCreated,
    ApprovalDecision,
    ApprovalDecisionRequest,
    ApprovalScope,
)
from eproc_portal.models.auth import Caller
from eproc_portal.models.common import Page
from eproc_portal.models.tender import TenderStatus
from eproc_portal.services import notification_templates
from eproc_portal.services.procurement_service import ProcurementService, ProcurementServiceError
from eproc_portal.services.tender_service import TenderService

logger = logging.getLogger(__name__)


class ApprovalService(ProcurementService):
    """
    Admins request approvals; the approver decides through the secret token
    sent in the approval link. A decided tender-opening approval opens or
    cancels its tender.
    """

    def __init__(self, repository, notifications=None, tenders: Optional[TenderService] = None):
        super().__init__(repository, notifications)
        self.tenders = tenders or TenderService(repository, notifications)

    async def list_approvals(
        self,
        caller: Caller,
        proposal_id: Optional[str] = None,
        tender_id: Optional[str] = None,
        scope: Optional[ApprovalScope] = None,
        decision: Optional[ApprovalDecision] = None,
        approver_email: Optional[str] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> Page[Approval]:
        """Admins see every approval; anyone else only the ones addressed to their email."""
        if not caller.is_admin:
            if not caller.email:
                return Page[Approval](items=[], total=0, limit=limit, offset=offset)
            approver_email = caller.email
        filters = {
            "proposal_id": proposal_id,
            "tender_id": tender_id,
            "scope": scope,
            "decision": decision,
            "approver_email": approver_email,
        }
        result = self._store("listing approvals", self.repository.list, APPROVALS_TABLE, filters=filters, limit=limit, offset=offset)
        return self._page(Approval, result, limit, offset)

    async def request_approval(self, caller: Caller, data: ApprovalCreate) -> ApprovalCreated:
        """
        Creates a pending approval with a fresh link token.

        Raises:
            ProcurementServiceError: 403 for non-admins, 404 for an unknown
                tender or proposal, 409 if the target already has an approval for the scope.
        """
        self._require_admin(caller, "Only administrators can request approvals.")
        if data.tender_id:
            self._get_or_404(TENDERS_TABLE, data.tender_id, "tender")
        if data.proposal_id:
            self._get_or_404(PROPOSALS_TABLE, data.proposal_id, "proposal")

        existing = self._store(
            "checking existing approvals",
            self.repository.find_one,
            APPROVALS_TABLE,
            proposal_id=data.proposal_id,
            tender_id=data.tender_id,
            scope=data.scope,
        )
        if existing:
            raise ProcurementServiceError("An approval for this scope already exists.", 409)

        expires_at = datetime.now(timezone.utc) + timedelta(days=settings.APPROVAL_TOKEN_TTL_DAYS)
        row = {
            **data.model_dump(mode="json"),
            "token": secrets.token_hex(32),
            "expires_at": expires_at.isoformat(),
            "decision": ApprovalDecision.PENDING.value,
        }
        approval = ApprovalCreated.model_validate(self._store("creating the approval", self.repository.insert, APPROVALS_TABLE, row))
        self._record(
            "approval",
            approval.id,
            "created",
            {"scope": approval.scope.value, "tender_id": approval.tender_id, "proposal_id": approval.proposal_id, "approver_email": approval.approver_email},
            caller,
        )
        logger.info(f"Approval {approval.id} ({approval.scope.value}) requested from {approval.approver_email}")
        return approval

    async def decide(self, caller: Caller, request: ApprovalDecisionRequest) -> Approval:
        """
        Records the approver's decision.

        Raises:
            ProcurementServiceError: 404 for an unknown or already decided token, 410 once it expired.
        """
        row = self._store(
            "loading the approval",
            self.repository.find_one,
            APPROVALS_TABLE,
            token=request.token,
            decision=ApprovalDecision.PENDING,
        )
        if row is None:
            raise ProcurementServiceError("Invalid or already processed approval token.", 404)
        pending = Approval.model_validate(row)
        expires_at = pending.expires_at
        if expires_at is not None and expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        if expires_at is not None and datetime.now(timezone.utc) > expires_at:
            raise ProcurementServiceError("The approval token has expired.", 410)

        updates = {
            "decision": request.decision,
            "decided_at": datetime.now(timezone.utc).isoformat(),
            "comment": request.comment or pending.comment,
            "decided_by": caller.user_id,
        }
        row = self._store("updating the approval", self.repository.update, APPROVALS_TABLE, pending.id, updates)
        if row is None:
            raise ProcurementServiceError("Invalid or already processed approval token.", 404)
        approval = Approval.model_validate(row)

        if approval.scope == ApprovalScope.TENDER_OPENING and approval.tender_id:
            status = TenderStatus.OPEN if request.decision == ApprovalDecision.APPROVED.value else TenderStatus.CANCELLED
            await self.tenders.set_status(approval.tender_id, status, caller)

        self._record(
            "approval",
            approval.id,
            request.decision,
            {"scope": approval.scope.value, "tender_id": approval.tender_id, "proposal_id": approval.proposal_id},
            caller,
        )
        notice = notification_templates.approval_decided(approval.id, approval.scope.value, request.decision)
        await self._notify(lambda n: n.notify_admins(notice))
        return approval
