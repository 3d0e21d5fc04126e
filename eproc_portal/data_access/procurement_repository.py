# Procurement tables access (tenders, rfp_docs, proposals, suppliers, service_orders, invoices, approvals, events)
# eproc_portal/data_access/procurement_repository.py

import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from supabase import Client

from eproc_portal.data_access.supabase_client import get_service_client

logger = logging.getLogger(__name__)

TENDERS_TABLE = "tenders"
RFP_DOCS_TABLE = "rfp_docs"
PROPOSALS_TABLE = "proposals"
SUPPLIERS_TABLE = "suppliers"
SERVICE_ORDERS_TABLE = "service_orders"
INVOICES_TABLE = "invoices"
APPROVALS_TABLE = "approvals"
EVENTS_TABLE = "events"

# PostgREST filter syntax characters, stripped from free-text search terms
_SEARCH_UNSAFE_RE = re.compile(r"[,()%*\\]")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ProcurementRepository:
    """
    Row-level access to the procurement tables. Every method returns plain
    dicts; business rules live in the services. Errors propagate to callers,
    except for `record_event`, which only logs.
    """
    def __init__(self, client: Optional[Client] = None):
        # None means the shared service client, created on first use
        self._client = client

    @property
    def client(self) -> Client:
        return self._client if self._client is not None else get_service_client()

    def _apply_filters(self, query, filters: Optional[Dict[str, Any]]):
        for column, value in (filters or {}).items():
            if value is None:
                continue
            query = query.eq(column, value.value if hasattr(value, "value") else value)
        return query

    def get(self, table: str, row_id: str) -> Optional[Dict[str, Any]]:
        response = self.client.table(table).select("*").eq("id", row_id).maybe_single().execute()
        row = getattr(response, "data", None) if response is not None else None
        return row or None

    def find_one(self, table: str, **filters: Any) -> Optional[Dict[str, Any]]:
        """First row matching every filter, or None."""
        query = self._apply_filters(self.client.table(table).select("*"), filters)
        response = query.limit(1).execute()
        rows = response.data or []
        return rows[0] if rows else None

    def count(self, table: str, **filters: Any) -> int:
        query = self._apply_filters(self.client.table(table).select("id", count="exact"), filters)
        response = query.execute()
        return response.count or 0

    def list(
        self,
        table: str,
        filters: Optional[Dict[str, Any]] = None,
        search: Optional[str] = None,
        search_columns: Iterable[str] = (),
        order_by: str = "created_at",
        descending: bool = True,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[Dict[str, Any]], int]:
        """
        Lists one page of rows.

        Returns:
            The rows of the page and the total number of matching rows.
        """
        query = self._apply_filters(self.client.table(table).select("*", count="exact"), filters)
        term = _SEARCH_UNSAFE_RE.sub("", search or "").strip()
        columns = list(search_columns)
        if term and columns:
            query = query.or_(",".join(f"{column}.ilike.%{term}%" for column in columns))
        response = query.order(order_by, desc=descending).range(offset, offset + limit - 1).execute()
        return list(response.data or []), response.count or 0

    def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        row = {"created_at": _now(), **row}
        response = self.client.table(table).insert(row).execute()
        return response.data[0] if response.data else row

    def update(self, table: str, row_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Applies a partial update; returns None if the row does not exist."""
        changes = {**changes, "updated_at": _now()}
        response = self.client.table(table).update(changes).eq("id", row_id).execute()
        if not response.data:
            logger.warning(f"Update of {table}/{row_id} matched no rows.")
            return None
        return response.data[0]

    def delete(self, table: str, row_id: str) -> None:
        self.client.table(table).delete().eq("id", row_id).execute()

    def record_event(
        self,
        entity_type: str,
        entity_id: str,
        action: str,
        payload: Optional[Dict[str, Any]] = None,
        user_id: Optional[str] = None,
    ) -> None:
        """Appends an audit event. Failures are logged and never interrupt the caller."""
        try:
            self.client.table(EVENTS_TABLE).insert({
                "entity_type": entity_type,
                "entity_id": entity_id,
                "action": action,
                "payload": payload or {},
                "user_id": user_id,
                "created_at": _now(),
            }).execute()
        except Exception as e:
            logger.error(f"Error logging {entity_type}/{entity_id} {action} event: {e}", exc_info=True)
