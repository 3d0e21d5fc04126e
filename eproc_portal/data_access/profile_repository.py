# Profile store access (Supabase `profiles` table)
# eproc_portal/data_access/profile_repository.py

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from supabase import Client

from eproc_portal.data_access.supabase_client import get_service_client
from eproc_portal.models.profile import Profile, ProfileCreate

logger = logging.getLogger(__name__)

PROFILES_TABLE = "profiles"


class ProfileRepository:
    """
    Read/write access to the profile rows keyed by identity id.
    Profiles are never deleted from here.
    """
    def __init__(self, client: Optional[Client] = None):
        # None means the shared service client, created on first use
        self._client = client

    @property
    def client(self) -> Client:
        return self._client if self._client is not None else get_service_client()

    def _table(self):
        return self.client.table(PROFILES_TABLE)

    def get_role(self, user_id: str) -> Optional[str]:
        """
        Returns the raw role column for a user, or None when there is no row.

        Raises:
            Exception: Any PostgREST/network error is propagated to the caller.
        """
        response = self._table().select("role").eq("id", user_id).maybe_single().execute()
        row = getattr(response, "data", None) if response is not None else None
        if not row:
            logger.debug(f"No profile row for user {user_id}.")
            return None
        return row.get("role")

    def get_by_id(self, user_id: str) -> Optional[Profile]:
        response = self._table().select("*").eq("id", user_id).maybe_single().execute()
        row = getattr(response, "data", None) if response is not None else None
        if not row:
            return None
        return Profile.model_validate(row)

    def create(self, profile: ProfileCreate) -> Profile:
        """Inserts the signup-time row; an existing row for the same id is kept and updated."""
        now = datetime.now(timezone.utc).isoformat()
        doc = profile.model_dump(mode="json")
        doc["created_at"] = now
        doc["updated_at"] = now
        response = self._table().upsert(doc, on_conflict="id").execute()
        logger.info(f"Profile row written for user {profile.id} with role {profile.role.value}.")
        return Profile.model_validate(response.data[0] if response.data else doc)

    def update(self, user_id: str, changes: Dict[str, Any]) -> Optional[Profile]:
        """Applies a partial update; returns None if the row does not exist."""
        if not changes:
            return self.get_by_id(user_id)
        changes = {**changes, "updated_at": datetime.now(timezone.utc).isoformat()}
        response = self._table().update(changes).eq("id", user_id).execute()
        if not response.data:
            logger.warning(f"Profile update for user {user_id} matched no rows.")
            return None
        return Profile.model_validate(response.data[0])

    def list_ids_by_role(self, role: str) -> List[str]:
        response = self._table().select("id").eq("role", role).execute()
        return [row["id"] for row in (response.data or [])]

    def list_ids_by_supplier(self, supplier_id: str) -> List[str]:
        response = self._table().select("id").eq("supplier_id", supplier_id).execute()
        return [row["id"] for row in (response.data or [])]
