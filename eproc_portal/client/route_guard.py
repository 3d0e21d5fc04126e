# eproc_portal/client/route_guard.py

import logging
from typing import Optional

from eproc_portal.client.auth_context import AuthContext
from eproc_portal.core.authorization import decide, guard_result
from eproc_portal.core.config import settings
from eproc_portal.core.routes import classify_route, required_role
from eproc_portal.models.auth import AuthorizationInput, GuardResult, GuardView, Role, RouteClass

logger = logging.getLogger(__name__)


class RouteGuard:
    """
    Evaluates a page against the current auth snapshot, independently of the
    edge middleware.

    Args:
        context: The started AuthContext.
        required_role: Role the page needs; None means any signed-in user
            (or the route's own class, for /admin and /supplier paths).
        fallback_path: Where a role-mismatched user is sent.
    """

    def __init__(self, context: AuthContext, required_role: Optional[Role] = None, fallback_path: Optional[str] = None):
        self.context = context
        self.required_role = required_role
        self.fallback_path = fallback_path or settings.DASHBOARD_PATH

    def evaluate(self, path: str) -> GuardResult:
        snapshot = self.context.snapshot
        if snapshot.loading:
            return GuardResult(view=GuardView.LOADING)

        route_class = RouteClass(self.required_role.value) if self.required_role else classify_route(path)
        role = snapshot.role if snapshot.is_authenticated else None
        decision = decide(AuthorizationInput(has_session=snapshot.is_authenticated, role=role, route_class=route_class))
        required = self.required_role or required_role(route_class)

        result = guard_result(decision, path, current_role=role, required_role=required, fallback_path=self.fallback_path)
        if result.view == GuardView.ACCESS_DENIED:
            logger.info(f"Route guard denied {path}: {decision.reason.value}")
        return result


class AdminRouteGuard(RouteGuard):
    def __init__(self, context: AuthContext):
        super().__init__(context, required_role=Role.ADMIN)


class SupplierRouteGuard(RouteGuard):
    def __init__(self, context: AuthContext):
        super().__init__(context, required_role=Role.SUPPLIER)
