# Edge authorization layer
# eproc_portal/api/middleware.py

import logging
from typing import Optional

from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from eproc_portal.core.authorization import decide, location_for, path_with_query
from eproc_portal.core.routes import classify_route, is_auth_exempt, required_role
from eproc_portal.models.auth import AuthorizationInput, Role, SessionResolution
from eproc_portal.services.role_service import RoleResolver
from eproc_portal.services.session_service import SessionResolver
from eproc_portal.utils.helpers import apply_cookie_updates

logger = logging.getLogger(__name__)


class AuthorizationMiddleware(BaseHTTPMiddleware):
    """
    Runs session -> role -> route class -> decision for every page request
    before any handler executes. Redirects are 302s; rotated session cookies
    are copied onto whichever response leaves the middleware.

    The resolvers are read from `app.state` on each request so that the app
    factory (and tests) own their construction.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        if is_auth_exempt(path):
            return await call_next(request)

        original = path_with_query(path, request.url.query)
        route_class = classify_route(path)
        resolution = SessionResolution()

        try:
            session_resolver: SessionResolver = request.app.state.session_resolver
            role_resolver: RoleResolver = request.app.state.role_resolver

            resolution = await run_in_threadpool(session_resolver.resolve, dict(request.cookies))
            role: Optional[Role] = None
            # Only role-restricted routes read the role.
            if resolution.session is not None and required_role(route_class) is not None:
                role = await run_in_threadpool(role_resolver.resolve, resolution.session.identity)

            decision = decide(AuthorizationInput(has_session=resolution.has_session, role=role, route_class=route_class))
        except Exception as e:
            # Fail closed: treat the request as unauthenticated.
            logger.error(f"Authorization resolution failed for {path}: {e}", exc_info=True)
            resolution = SessionResolution()
            decision = decide(AuthorizationInput(has_session=False, route_class=route_class))

        # Page guards re-resolve against these so a refresh token is spent once.
        request.state.session_cookie_updates = resolution.cookies

        location = location_for(decision, original)
        if location is not None:
            logger.info(f"Edge redirect {path} -> {location} ({decision.reason.value})")
            response: Response = RedirectResponse(location, status_code=302)
        else:
            logger.debug(f"Edge allow {path} ({decision.reason.value})")
            response = await call_next(request)

        apply_cookie_updates(response, resolution.cookies)
        return response
