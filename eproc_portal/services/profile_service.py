# eproc_portal/services/profile_service.py

import logging

from eproc_portal.data_access.profile_repository import ProfileRepository
from eproc_portal.models.profile import Profile, ProfileAdminUpdate, ProfileUpdate

logger = logging.getLogger(__name__)


class ProfileServiceError(Exception):
    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class ProfileService:
    def __init__(self, profiles: ProfileRepository):
        self.profiles = profiles

    async def get_profile(self, user_id: str) -> Profile:
        """
        Raises:
            ProfileServiceError: 404 if the user has no profile row yet.
        """
        profile = self.profiles.get_by_id(user_id)
        if profile is None:
            raise ProfileServiceError("Profile not found.", 404)
        return profile

    async def update_own_profile(self, user_id: str, changes: ProfileUpdate) -> Profile:
        """Self-service update of personal details; the role cannot change here."""
        return await self._apply(user_id, changes.model_dump(exclude_unset=True))

    async def admin_update_profile(self, actor_id: str, user_id: str, changes: ProfileAdminUpdate) -> Profile:
        data = changes.model_dump(exclude_unset=True, mode="json")
        if "role" in data:
            logger.info(f"Admin {actor_id} set role of {user_id} to {data['role']}.")
        return await self._apply(user_id, data)

    async def _apply(self, user_id: str, data: dict) -> Profile:
        updated = self.profiles.update(user_id, data)
        if updated is None:
            raise ProfileServiceError("Profile not found.", 404)
        return updated
