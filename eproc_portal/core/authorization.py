# Request-time authorization decision
# eproc_portal/core/authorization.py

"""
The single authorization decision table shared by the edge middleware and the
page render guard. Everything here is pure: no I/O, no request objects.
"""

import logging
from typing import Optional
from urllib.parse import quote, unquote

from eproc_portal.core.config import settings
from eproc_portal.models.auth import (
    AuthorizationDecision,
    AuthorizationInput,
    DecisionOutcome,
    DecisionReason,
    GuardResult,
    GuardView,
    Role,
    RouteClass,
)

logger = logging.getLogger(__name__)


def decide(inp: AuthorizationInput) -> AuthorizationDecision:
    """
    Combines session presence, role and route class into an allow/redirect decision.

    Transitions are evaluated in order:
      1. no session, non-public route   -> login
      2. no session, public route       -> allow
      3. session, public route          -> dashboard
      4. session, admin route, not admin       -> dashboard
      5. session, supplier route, not supplier -> dashboard
      6. otherwise                      -> allow

    A session whose role is unknown is evaluated as the default (least
    privileged) role.
    """
    if not inp.has_session:
        if inp.route_class != RouteClass.PUBLIC:
            return AuthorizationDecision(outcome=DecisionOutcome.REDIRECT_LOGIN, reason=DecisionReason.UNAUTHENTICATED)
        return AuthorizationDecision(outcome=DecisionOutcome.ALLOW, reason=DecisionReason.PUBLIC_ROUTE)

    if inp.route_class == RouteClass.PUBLIC:
        # Both roles share the same landing page.
        return AuthorizationDecision(outcome=DecisionOutcome.REDIRECT_DASHBOARD, reason=DecisionReason.ALREADY_AUTHENTICATED)

    role = inp.role or Role(settings.DEFAULT_ROLE)
    if inp.route_class == RouteClass.ADMIN and role != Role.ADMIN:
        return AuthorizationDecision(outcome=DecisionOutcome.REDIRECT_DASHBOARD, reason=DecisionReason.ROLE_MISMATCH)
    if inp.route_class == RouteClass.SUPPLIER and role != Role.SUPPLIER:
        return AuthorizationDecision(outcome=DecisionOutcome.REDIRECT_DASHBOARD, reason=DecisionReason.ROLE_MISMATCH)

    return AuthorizationDecision(outcome=DecisionOutcome.ALLOW, reason=DecisionReason.AUTHORIZED)


def path_with_query(path: str, query: Optional[str]) -> str:
    """Joins a path and a raw query string the way the browser showed them."""
    return f"{path}?{query}" if query else path


def login_redirect_url(original: str) -> str:
    """
    Builds the login URL carrying the original path and query as the redirect parameter.

    >>> login_redirect_url("/admin/users")
    '/login?redirect=%2Fadmin%2Fusers'
    """
    return f"{settings.LOGIN_PATH}?{settings.REDIRECT_PARAM}={quote(original, safe='')}"


def location_for(decision: AuthorizationDecision, original: str) -> Optional[str]:
    """Returns the redirect target for a decision, or None when access is allowed."""
    if decision.outcome == DecisionOutcome.REDIRECT_LOGIN:
        return login_redirect_url(original)
    if decision.outcome == DecisionOutcome.REDIRECT_DASHBOARD:
        return settings.DASHBOARD_PATH
    return None


def decode_redirect_param(encoded: Optional[str]) -> Optional[str]:
    """
    Percent-decodes a redirect parameter exactly once.

    Returns None if the value is not valid percent-encoded UTF-8.
    """
    if not encoded:
        return None
    try:
        return unquote(encoded, errors="strict")
    except UnicodeDecodeError:
        logger.warning("Ignoring redirect target that is not valid percent-encoded UTF-8.")
        return None


def sanitize_redirect_target(target: Optional[str]) -> Optional[str]:
    """
    Validates an already-decoded post-login redirect target.

    The target is honoured only if it is a local path: it must start with a
    single "/", and must not contain "..", a backslash, control characters or
    a scheme-relative "//" prefix.

    Args:
        target: The decoded redirect value (as read from parsed query params).

    Returns:
        The target unchanged, or None if it must not be honoured.
    """
    if not target:
        return None
    if not target.startswith("/") or target.startswith("//"):
        logger.warning(f"Ignoring non-local redirect target: {target!r}")
        return None
    if ".." in target or "\\" in target:
        logger.warning(f"Ignoring redirect target with traversal characters: {target!r}")
        return None
    if any(ord(ch) < 0x20 for ch in target):
        logger.warning("Ignoring redirect target with control characters.")
        return None
    return target


def redirect_target_from_query(query_string: str) -> Optional[str]:
    """
    Extracts and validates the redirect parameter from a raw (encoded) query string.

    Args:
        query_string: e.g. "redirect=%2Ftenders%3Fstatus%3Dopen".

    Returns:
        The decoded local path, or None when absent, undecodable or unsafe.
    """
    prefix = f"{settings.REDIRECT_PARAM}="
    for pair in (query_string or "").split("&"):
        if pair.startswith(prefix):
            return sanitize_redirect_target(decode_redirect_param(pair[len(prefix):]))
    return None


def guard_result(
    decision: AuthorizationDecision,
    original: str,
    current_role: Optional[Role] = None,
    required_role: Optional[Role] = None,
    fallback_path: Optional[str] = None,
) -> GuardResult:
    """
    Maps a decision onto what a render guard shows.

    Denials become an explicit access-denied view carrying the link to follow,
    so protected content is never painted before navigation happens. Only the
    "already signed in on a public page" case is a plain redirect.
    """
    fallback_path = fallback_path or settings.DASHBOARD_PATH
    if decision.allowed:
        return GuardResult(view=GuardView.RENDER, reason=decision.reason, current_role=current_role)

    if decision.reason == DecisionReason.UNAUTHENTICATED:
        return GuardResult(
            view=GuardView.ACCESS_DENIED,
            reason=decision.reason,
            navigate_to=login_redirect_url(original),
            message="You need to sign in to access this page.",
            required_role=required_role,
        )

    if decision.reason == DecisionReason.ROLE_MISMATCH:
        current = current_role or Role(settings.DEFAULT_ROLE)
        needed = required_role or (Role.SUPPLIER if current == Role.ADMIN else Role.ADMIN)
        return GuardResult(
            view=GuardView.ACCESS_DENIED,
            reason=decision.reason,
            navigate_to=fallback_path,
            message=f"Only {needed.value} users can access this page.",
            required_role=needed,
            current_role=current,
        )

    return GuardResult(view=GuardView.REDIRECT, reason=decision.reason, navigate_to=settings.DASHBOARD_PATH, current_role=current_role)
