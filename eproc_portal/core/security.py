# JWT verification logic (Supabase)
# eproc_portal/core/security.py

import logging
from typing import Any, Dict, Optional

from fastapi import HTTPException, status
from jose import JWTError, jwt
from jose.exceptions import ExpiredSignatureError, JWTClaimsError

from eproc_portal.core.config import settings
from eproc_portal.models.auth import Identity

logger = logging.getLogger(__name__)


# --- Custom Exceptions ---
class CredentialsException(HTTPException):
    def __init__(self, detail: str = "Could not validate credentials", status_code: int = status.HTTP_401_UNAUTHORIZED):
        super().__init__(
            status_code=status_code,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )

class MissingTokenException(CredentialsException):
    def __init__(self, detail: str = "Authentication required"):
        super().__init__(detail=detail, status_code=status.HTTP_401_UNAUTHORIZED)

class InsufficientPermissionsException(HTTPException):
    def __init__(self, detail: str = "Insufficient permissions"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class TokenExpired(Exception):
    """The access token is well-formed and correctly signed but past its expiry."""


class InvalidToken(Exception):
    """The access token is malformed, wrongly signed or carries invalid claims."""


# --- Core Verification Logic ---

def decode_access_token(token: str, leeway: int = 0) -> Dict[str, Any]:
    """
    Verifies a Supabase access token and returns its claims.

    Args:
        token: The raw JWT string (from the session cookie or Authorization header).
        leeway: Seconds of clock skew tolerated on the expiry check.

    Returns:
        The decoded JWT payload.

    Raises:
        TokenExpired: If the token signature is valid but the token has expired.
        InvalidToken: For any other validation failure.
    """
    try:
        return jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET.get_secret_value(),
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            options={
                "verify_signature": True,
                "verify_aud": True,
                "verify_exp": True,
                "leeway": leeway,
            },
        )
    except ExpiredSignatureError:
        raise TokenExpired()
    except JWTClaimsError as e:
        raise InvalidToken(f"Invalid token claims: {e}")
    except JWTError as e:
        raise InvalidToken(f"Invalid token: {e}")
    except Exception as e:
        # jose can raise plain errors on garbage input (e.g. bad padding)
        raise InvalidToken(f"Unreadable token: {e}")


def identity_from_claims(payload: Dict[str, Any]) -> Identity:
    """
    Builds an Identity from verified claims.

    The role claim is read from app_metadata (set server-side only); the
    top-level 'role' claim is the database role ('authenticated') and is ignored.

    Raises:
        InvalidToken: If the 'sub' claim is missing or not a string.
    """
    user_id = payload.get("sub")
    if not user_id or not isinstance(user_id, str):
        raise InvalidToken("User identifier not found in token")

    app_metadata = payload.get("app_metadata") or {}
    role_claim: Optional[str] = None
    if isinstance(app_metadata, dict):
        raw = app_metadata.get("role")
        role_claim = raw if isinstance(raw, str) and raw else None

    return Identity(user_id=user_id, email=payload.get("email") or "", role_claim=role_claim)
