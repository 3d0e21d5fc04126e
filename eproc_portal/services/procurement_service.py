# Shared plumbing for the procurement services
# eproc_portal/services/procurement_service.py

import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel

from eproc_portal.data_access.procurement_repository import ProcurementRepository
from eproc_portal.models.auth import Caller
from eproc_portal.models.common import Page
from eproc_portal.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class ProcurementServiceError(Exception):
    """Custom exception for procurement service errors."""
    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class ProcurementService:
    """
    Base for the tender, proposal, supplier, order, invoice and approval
    services: store access with error mapping, audit events, and
    notifications that never fail the operation that triggered them.
    """

    def __init__(self, repository: ProcurementRepository, notifications: Optional[NotificationService] = None):
        self.repository = repository
        self.notifications = notifications

    def _store(self, action: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        try:
            return fn(*args, **kwargs)
        except Exception as e:
            logger.error(f"Store error while {action}: {e}", exc_info=True)
            raise ProcurementServiceError(f"Error while {action}.")

    def _get_or_404(self, table: str, row_id: str, label: str) -> Dict[str, Any]:
        row = self._store(f"loading {label}", self.repository.get, table, row_id)
        if row is None:
            raise ProcurementServiceError(f"{label.capitalize()} not found.", 404)
        return row

    def _page(self, model: Type[M], result: Tuple[List[Dict[str, Any]], int], limit: int, offset: int) -> Page[M]:
        rows, total = result
        return Page[model](items=[model.model_validate(row) for row in rows], total=total, limit=limit, offset=offset)

    def _record(self, entity_type: str, entity_id: str, action: str, payload: Optional[Dict[str, Any]], caller: Optional[Caller]) -> None:
        self.repository.record_event(entity_type, entity_id, action, payload, caller.user_id if caller else None)

    async def _notify(self, send: Callable[[NotificationService], Awaitable[Any]]) -> None:
        if self.notifications is None:
            return
        try:
            await send(self.notifications)
        except Exception as e:
            logger.warning(f"Notification could not be delivered: {e}")

    @staticmethod
    def _require_admin(caller: Caller, message: str) -> None:
        if not caller.is_admin:
            logger.warning(f"User {caller.user_id} ({caller.role.value}) denied: {message}")
            raise ProcurementServiceError(message, 403)
