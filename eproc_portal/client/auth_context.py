# Client-side auth state (user, profile, role) kept in sync with auth events
# eproc_portal/client/auth_context.py

"""
An explicit, owned replacement for a process-wide auth cache.

`AuthContext` holds one subscription to the auth provider's state-change
stream, re-fetches identity and profile on every relevant event, and
publishes immutable `AuthSnapshot`s to its listeners. A role change made by
an admin is only reflected after the next event or an explicit `refresh()`.
"""

import logging
import threading
from typing import Any, Callable, List, Optional

from pydantic import BaseModel

from eproc_portal.data_access.profile_repository import ProfileRepository
from eproc_portal.models.auth import Identity, Role
from eproc_portal.models.profile import Profile
from eproc_portal.services.role_service import resolve_role

logger = logging.getLogger(__name__)

SIGNED_OUT = "SIGNED_OUT"
# Events after which identity and profile are fetched again
REFETCH_EVENTS = {"SIGNED_IN", "TOKEN_REFRESHED", "USER_UPDATED", "INITIAL_SESSION"}

Listener = Callable[["AuthSnapshot"], None]


class AuthSnapshot(BaseModel):
    user: Optional[Identity] = None
    profile: Optional[Profile] = None
    role: Optional[Role] = None
    loading: bool = False
    error: Optional[str] = None

    model_config = {"frozen": True}

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None


class AuthContext:
    def __init__(self, auth_client: Any, profiles: ProfileRepository):
        """
        Args:
            auth_client: A gotrue auth client (`supabase_client.auth`).
            profiles: Profile store used to read the signed-in user's row.
        """
        self.auth_client = auth_client
        self.profiles = profiles
        self._snapshot = AuthSnapshot(loading=True)
        self._listeners: List[Listener] = []
        self._subscription = None
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def snapshot(self) -> AuthSnapshot:
        return self._snapshot

    def start(self) -> AuthSnapshot:
        """Subscribes to auth events (once) and publishes the current state."""
        if self._subscription is None:
            self._subscription = self.auth_client.on_auth_state_change(self._on_auth_event)
        return self.refresh()

    def close(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        self._listeners.clear()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Registers a listener and returns the callable that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def refresh(self) -> AuthSnapshot:
        """Re-fetches identity, profile and role and publishes the result."""
        generation = self._begin()
        self._publish(AuthSnapshot(user=self._snapshot.user, profile=self._snapshot.profile, role=self._snapshot.role, loading=True), generation)
        try:
            snapshot = self._fetch()
        except Exception as e:
            logger.error(f"Failed to load auth state: {e}", exc_info=True)
            snapshot = AuthSnapshot(error="Could not load the session.")
        self._publish(snapshot, generation)
        return self._snapshot

    def sign_out(self) -> bool:
        generation = self._begin()
        try:
            self.auth_client.sign_out()
        except Exception as e:
            logger.error(f"Sign-out failed: {e}", exc_info=True)
            self._publish(AuthSnapshot(error="Could not sign out."), generation)
            return False
        self._publish(AuthSnapshot(), generation)
        return True

    def _on_auth_event(self, event: Any, session: Any = None) -> None:
        event = getattr(event, "value", event)
        logger.debug(f"Auth state changed: {event}")
        if event == SIGNED_OUT:
            self._publish(AuthSnapshot(), self._begin())
        elif event in REFETCH_EVENTS:
            self.refresh()

    def _fetch(self) -> AuthSnapshot:
        session = self.auth_client.get_session()
        user = getattr(session, "user", None) if session is not None else None
        if user is None:
            return AuthSnapshot()

        app_metadata = getattr(user, "app_metadata", None) or {}
        identity = Identity(user_id=str(user.id), email=user.email or "", role_claim=app_metadata.get("role"))
        try:
            profile = self.profiles.get_by_id(identity.user_id)
        except Exception as e:
            # Still signed in; the role falls back to the claim or the default.
            logger.error(f"Failed to load profile for user {identity.user_id}: {e}", exc_info=True)
            return AuthSnapshot(user=identity, role=resolve_role(identity.role_claim, None), error="Could not load the profile.")

        role = resolve_role(identity.role_claim, profile.role.value if profile and profile.role else None)
        return AuthSnapshot(user=identity, profile=profile, role=role)

    def _begin(self) -> int:
        with self._lock:
            self._generation += 1
            return self._generation

    def _publish(self, snapshot: AuthSnapshot, generation: int) -> None:
        with self._lock:
            # A newer refresh or sign-out has started; this result is stale.
            if generation != self._generation:
                return
            self._snapshot = snapshot
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(snapshot)
            except Exception as e:
                logger.error(f"Auth state listener failed: {e}", exc_info=True)
