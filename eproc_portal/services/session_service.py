# Session resolution from cookies (Supabase SSR cookie format)
# eproc_portal/services/session_service.py

"""
Reads and writes the session cookie in the format used by Supabase's SSR
helpers: a JSON document with the token pair, stored either raw or as
"base64-" + base64url(JSON), and split into `<name>.0`, `<name>.1`, ...
chunks when it does not fit in one cookie.
"""

import base64
import json
import logging
from typing import Any, Callable, Iterable, List, Mapping, Optional

from eproc_portal.core.config import settings
from eproc_portal.core.security import InvalidToken, TokenExpired, decode_access_token, identity_from_claims
from eproc_portal.data_access.supabase_client import create_request_client
from eproc_portal.models.auth import CookieUpdate, ResolvedSession, SessionResolution, SessionTokens

logger = logging.getLogger(__name__)

BASE64_PREFIX = "base64-"
MAX_CHUNK_SIZE = 3180

TokenRefresher = Callable[[str], Optional[SessionTokens]]


# --- Cookie codec ---

def _b64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def _b64url_decode(text: str) -> bytes:
    return base64.urlsafe_b64decode(text + "=" * (-len(text) % 4))


def encode_session_cookie(tokens: SessionTokens) -> str:
    payload = json.dumps(tokens.model_dump(exclude_none=True), separators=(",", ":"))
    return BASE64_PREFIX + _b64url_encode(payload.encode("utf-8"))


def decode_session_cookie(value: Optional[str]) -> Optional[SessionTokens]:
    """Parses a session cookie value; returns None for anything malformed."""
    if not value:
        return None
    try:
        if value.startswith(BASE64_PREFIX):
            value = _b64url_decode(value[len(BASE64_PREFIX):]).decode("utf-8")
        data = json.loads(value)
        if not isinstance(data, dict) or not data.get("access_token"):
            return None
        return SessionTokens.model_validate(data)
    except Exception as e:
        logger.debug(f"Discarding malformed session cookie: {type(e).__name__}")
        return None


def _chunk_names(cookie_names: Iterable[str], name: str) -> List[str]:
    prefix = f"{name}."
    return [n for n in cookie_names if n == name or (n.startswith(prefix) and n[len(prefix):].isdigit())]


def read_chunked_cookie(cookies: Mapping[str, str], name: str) -> Optional[str]:
    """Returns the cookie value, reassembling `<name>.N` chunks if needed."""
    if cookies.get(name):
        return cookies[name]
    chunks = []
    index = 0
    while f"{name}.{index}" in cookies:
        chunks.append(cookies[f"{name}.{index}"])
        index += 1
    return "".join(chunks) or None


def session_cookie_updates(tokens: SessionTokens, existing: Iterable[str] = ()) -> List[CookieUpdate]:
    """
    Cookies to write for a (new or rotated) session. Stale chunks from a
    previous, longer value are expired.
    """
    name = settings.SESSION_COOKIE_NAME
    value = encode_session_cookie(tokens)
    max_age = settings.SESSION_COOKIE_MAX_AGE

    if len(value) <= MAX_CHUNK_SIZE:
        updates = [CookieUpdate(name=name, value=value, max_age=max_age)]
    else:
        updates = [
            CookieUpdate(name=f"{name}.{i}", value=value[start:start + MAX_CHUNK_SIZE], max_age=max_age)
            for i, start in enumerate(range(0, len(value), MAX_CHUNK_SIZE))
        ]

    written = {u.name for u in updates}
    updates.extend(CookieUpdate(name=n) for n in _chunk_names(existing, name) if n not in written)
    return updates


def clear_session_cookies(existing: Iterable[str]) -> List[CookieUpdate]:
    """Expires every cookie (and chunk) holding the session."""
    names = _chunk_names(existing, settings.SESSION_COOKIE_NAME) or [settings.SESSION_COOKIE_NAME]
    return [CookieUpdate(name=n) for n in names]


def tokens_from_supabase_session(session: Any) -> SessionTokens:
    """Maps a gotrue Session object to the cookie payload."""
    return SessionTokens(
        access_token=session.access_token,
        refresh_token=session.refresh_token or None,
        expires_at=session.expires_at,
        expires_in=session.expires_in,
        token_type=session.token_type or "bearer",
    )


def refresh_with_supabase(refresh_token: str) -> Optional[SessionTokens]:
    """Exchanges a refresh token for a new session with the auth provider."""
    try:
        res = create_request_client().auth.refresh_session(refresh_token)
    except Exception as e:
        logger.warning(f"Session refresh failed: {e}")
        return None
    if res is None or res.session is None:
        logger.warning("Session refresh returned no session.")
        return None
    return tokens_from_supabase_session(res.session)


# --- Resolver ---

class SessionResolver:
    """
    Extracts the authenticated identity from an inbound request's cookies
    (or bearer token). Never raises: anything unreadable is "no session".
    """

    def __init__(self, refresher: Optional[TokenRefresher] = None):
        self.refresher = refresher or refresh_with_supabase

    def resolve(self, cookies: Mapping[str, str], authorization: Optional[str] = None) -> SessionResolution:
        """
        Resolves the session for one request.

        Args:
            cookies: Inbound request cookies.
            authorization: Optional Authorization header value ("Bearer <jwt>").

        Returns:
            SessionResolution with the session (or None) and any rotated
            cookies that must be written on the outbound response.
        """
        try:
            if authorization and authorization.lower().startswith("bearer "):
                return self._from_bearer(authorization[7:].strip())
            return self._from_cookies(cookies)
        except Exception as e:
            logger.error(f"Unexpected error resolving session: {e}", exc_info=True)
            return SessionResolution()

    def _from_bearer(self, token: str) -> SessionResolution:
        try:
            identity = identity_from_claims(decode_access_token(token))
        except (TokenExpired, InvalidToken) as e:
            logger.info(f"Rejected bearer token: {type(e).__name__}")
            return SessionResolution()
        return SessionResolution(session=ResolvedSession(identity=identity, tokens=SessionTokens(access_token=token)))

    def _from_cookies(self, cookies: Mapping[str, str]) -> SessionResolution:
        tokens = decode_session_cookie(read_chunked_cookie(cookies, settings.SESSION_COOKIE_NAME))
        if tokens is None:
            return SessionResolution()

        try:
            identity = identity_from_claims(decode_access_token(tokens.access_token))
            return SessionResolution(session=ResolvedSession(identity=identity, tokens=tokens))
        except TokenExpired:
            if not tokens.refresh_token:
                logger.info("Session expired and no refresh token is available.")
                return SessionResolution()
        except InvalidToken as e:
            logger.info(f"Rejected session cookie: {e}")
            return SessionResolution()

        rotated = self.refresher(tokens.refresh_token)
        if rotated is None:
            return SessionResolution()
        try:
            identity = identity_from_claims(decode_access_token(rotated.access_token))
        except (TokenExpired, InvalidToken) as e:
            logger.warning(f"Refreshed access token failed verification: {e}")
            return SessionResolution()

        logger.info(f"Session refreshed for user {identity.user_id}.")
        return SessionResolution(
            session=ResolvedSession(identity=identity, tokens=rotated),
            cookies=session_cookie_updates(rotated, cookies.keys()),
        )
