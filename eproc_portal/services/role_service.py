# eproc_portal/services/role_service.py

import logging
from typing import Optional

from eproc_portal.core.config import settings
from eproc_portal.data_access.profile_repository import ProfileRepository
from eproc_portal.models.auth import Identity, Role

logger = logging.getLogger(__name__)


def resolve_role(claim: Optional[str], profile_role: Optional[str], default: Optional[str] = None) -> Role:
    """
    Applies the role precedence: embedded claim, then profile role, then the
    configured default. Unknown values count as absent.
    """
    role = Role.parse(claim) or Role.parse(profile_role)
    if role is not None:
        return role
    return Role(default or settings.DEFAULT_ROLE)


class RoleResolver:
    """Determines the authorization role of a resolved identity."""

    def __init__(self, profiles: ProfileRepository):
        self.profiles = profiles

    def resolve(self, identity: Identity) -> Role:
        """
        Resolves the role of an identity.

        The profile store is only consulted when the token carries no usable
        role claim. A missing row, an empty role column or a failed lookup all
        resolve to the default role, never to admin.

        Args:
            identity: The authenticated identity.

        Returns:
            The user's Role.
        """
        claimed = Role.parse(identity.role_claim)
        if claimed is not None:
            logger.debug(f"Role for user {identity.user_id} taken from token claim: {claimed.value}")
            return claimed

        if identity.role_claim:
            logger.warning(f"Ignoring unknown role claim {identity.role_claim!r} for user {identity.user_id}.")

        try:
            profile_role = self.profiles.get_role(identity.user_id)
        except Exception as e:
            logger.error(f"Profile role lookup failed for user {identity.user_id}: {e}", exc_info=True)
            profile_role = None

        role = resolve_role(None, profile_role)
        logger.debug(f"Role for user {identity.user_id} resolved from profile store: {role.value}")
        return role
