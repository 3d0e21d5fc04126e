# Route classification for authorization
# eproc_portal/core/routes.py

from typing import Iterable, Optional

from eproc_portal.core.config import settings
from eproc_portal.models.auth import Role, RouteClass


def normalize_path(path: Optional[str]) -> str:
    """
    Normalizes a request path for matching: empty becomes "/", and a trailing
    slash is dropped (except for the root).
    """
    if not path:
        return "/"
    if not path.startswith("/"):
        path = "/" + path
    if len(path) > 1:
        path = path.rstrip("/") or "/"
    return path


def matches_prefix(path: str, prefix: str) -> bool:
    """True if path equals prefix or is a descendant (prefix followed by '/')."""
    prefix = normalize_path(prefix)
    if prefix == "/":
        return True
    return path == prefix or path.startswith(prefix + "/")


def starts_with_any(path: str, prefixes: Iterable[str]) -> bool:
    return any(matches_prefix(path, p) for p in prefixes)


def classify_route(
    path: Optional[str],
    public_routes: Optional[Iterable[str]] = None,
    admin_routes: Optional[Iterable[str]] = None,
    supplier_routes: Optional[Iterable[str]] = None,
) -> RouteClass:
    """
    Assigns a request path to exactly one route class.

    Public routes are checked first, then admin, then supplier; anything else
    is shared-protected (authentication required, no specific role).

    Args:
        path: The request path (no query string).
        public_routes, admin_routes, supplier_routes: Override the configured sets.

    Returns:
        The RouteClass of the path.
    """
    path = normalize_path(path)
    if starts_with_any(path, settings.PUBLIC_ROUTES if public_routes is None else public_routes):
        return RouteClass.PUBLIC
    if starts_with_any(path, settings.ADMIN_ROUTES if admin_routes is None else admin_routes):
        return RouteClass.ADMIN
    if starts_with_any(path, settings.SUPPLIER_ROUTES if supplier_routes is None else supplier_routes):
        return RouteClass.SUPPLIER
    return RouteClass.SHARED_PROTECTED


def is_auth_exempt(path: Optional[str]) -> bool:
    """Paths the page redirect layer skips (API, docs, static assets)."""
    return starts_with_any(normalize_path(path), settings.AUTH_EXEMPT_PREFIXES)


def required_role(route_class: RouteClass) -> Optional[Role]:
    """The role a route class is restricted to, or None when any session (or none) will do."""
    if route_class in (RouteClass.ADMIN, RouteClass.SUPPLIER):
        return Role(route_class.value)
    return None
