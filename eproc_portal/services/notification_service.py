# eproc_portal/services/notification_service.py

import logging
from typing import Any, Dict, List, Optional

from supabase import Client

from eproc_portal.data_access.profile_repository import ProfileRepository
from eproc_portal.models.auth import Role
from eproc_portal.models.notification import (
    MarkReadResponse,
    NotificationContent,
    NotificationCreate,
    NotificationPage,
    NotificationRead,
)

logger = logging.getLogger(__name__)

NOTIFICATIONS_TABLE = "notifications"


class NotificationServiceError(Exception):
    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


def _to_read(row: Dict[str, Any]) -> NotificationRead:
    return NotificationRead.model_validate({**row, "metadata": row.get("metadata") or {}})


class NotificationService:
    def __init__(self, client: Client, profiles: ProfileRepository):
        """
        Args:
            client: Supabase client used for the `notifications` table.
            profiles: Profile store, used to find fan-out recipients.
        """
        self.client = client
        self.profiles = profiles

    def _table(self):
        return self.client.table(NOTIFICATIONS_TABLE)

    async def list_for_user(
        self,
        user_id: str,
        read: Optional[bool] = None,
        notification_type: Optional[str] = None,
        entity_type: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> NotificationPage:
        """
        Lists the user's notifications, newest first, with total and unread counts.

        Args:
            user_id: Recipient whose rows are listed.
            read: Filter on read state; None lists both.
            notification_type: Optional filter on the `type` column.
            entity_type: Optional filter on the `entity_type` column.
            limit: Page size.
            offset: Rows to skip.

        Raises:
            NotificationServiceError: If the query fails.
        """
        try:
            query = self._table().select("*", count="exact").eq("user_id", user_id)
            if read is not None:
                query = query.eq("read", read)
            if notification_type:
                query = query.eq("type", notification_type)
            if entity_type:
                query = query.eq("entity_type", entity_type)
            response = query.order("created_at", desc=True).range(offset, offset + limit - 1).execute()

            unread_response = (
                self._table()
                .select("id", count="exact")
                .eq("user_id", user_id)
                .eq("read", False)
                .execute()
            )
        except Exception as e:
            logger.error(f"Error listing notifications for user {user_id}: {e}", exc_info=True)
            raise NotificationServiceError("Could not load notifications.")

        items = [_to_read(row) for row in (response.data or [])]
        logger.info(f"Fetched {len(items)} notifications for user {user_id} (offset {offset}, limit {limit})")
        return NotificationPage(
            items=items,
            total=response.count or 0,
            unread=unread_response.count or 0,
            limit=limit,
            offset=offset,
        )

    async def mark_read(self, user_id: str, ids: List[str]) -> MarkReadResponse:
        """Marks the given notifications as read; rows owned by other users are untouched."""
        try:
            response = (
                self._table()
                .update({"read": True})
                .eq("user_id", user_id)
                .in_("id", ids)
                .execute()
            )
        except Exception as e:
            logger.error(f"Error marking notifications read for user {user_id}: {e}", exc_info=True)
            raise NotificationServiceError("Could not update notifications.")
        updated = [_to_read(row) for row in (response.data or [])]
        return MarkReadResponse(updated=len(updated), notifications=updated)

    async def create(self, notification: NotificationCreate) -> NotificationRead:
        try:
            response = self._table().insert(notification.model_dump(mode="json")).execute()
        except Exception as e:
            logger.error(f"Error creating notification for user {notification.user_id}: {e}", exc_info=True)
            raise NotificationServiceError("Could not create notification.")
        return _to_read(response.data[0])

    async def create_bulk(self, user_ids: List[str], content: NotificationContent) -> List[NotificationRead]:
        """Creates one row per recipient with the same content."""
        if not user_ids:
            return []
        rows = [
            NotificationCreate(user_id=uid, **content.model_dump()).model_dump(mode="json")
            for uid in user_ids
        ]
        try:
            response = self._table().insert(rows).execute()
        except Exception as e:
            logger.error(f"Error creating {len(rows)} notifications: {e}", exc_info=True)
            raise NotificationServiceError("Could not create notifications.")
        return [_to_read(row) for row in (response.data or [])]

    async def notify_role(self, role: Role, content: NotificationContent) -> List[NotificationRead]:
        """Fans a notification out to every profile holding the given role."""
        try:
            recipients = self.profiles.list_ids_by_role(role.value)
        except Exception as e:
            logger.error(f"Error fetching {role.value} recipients: {e}", exc_info=True)
            raise NotificationServiceError("Could not resolve notification recipients.")
        if not recipients:
            logger.warning(f"No {role.value} users found to notify.")
            return []
        return await self.create_bulk(recipients, content)

    async def notify_admins(self, content: NotificationContent) -> List[NotificationRead]:
        return await self.notify_role(Role.ADMIN, content)

    async def notify_supplier(self, supplier_id: str, content: NotificationContent) -> List[NotificationRead]:
        """Notifies every user linked to the supplier."""
        try:
            recipients = self.profiles.list_ids_by_supplier(supplier_id)
        except Exception as e:
            logger.error(f"Error fetching users of supplier {supplier_id}: {e}", exc_info=True)
            raise NotificationServiceError("Could not resolve notification recipients.")
        if not recipients:
            logger.warning(f"Supplier {supplier_id} has no users to notify.")
            return []
        return await self.create_bulk(recipients, content)
