# Guarded page routes
# eproc_portal/api/endpoints/pages.py

"""
Page routes of the portal. Page rendering itself is done elsewhere; each
handler here only returns a small JSON placeholder naming the page and the
caller, behind the render guard.

The render guard re-runs session and role resolution for the page and
applies the same decision as the edge middleware. Denials are rendered as an
access-denied interstitial instead of a bare redirect.
"""

import html
import logging
from typing import Dict, Optional

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import HTMLResponse, RedirectResponse
from starlette.concurrency import run_in_threadpool

from eproc_portal.core.authorization import decide, guard_result, path_with_query, redirect_target_from_query
from eproc_portal.core.routes import classify_route, required_role
from eproc_portal.models.auth import AuthorizationInput, GuardResult, GuardView, Role
from eproc_portal.utils.helpers import apply_cookie_updates

logger = logging.getLogger(__name__)
router = APIRouter()


class PageAccessDenied(Exception):
    """Raised by the render guard when the page must not be shown."""
    def __init__(self, result: GuardResult):
        self.result = result
        super().__init__(result.message or result.view.value)


class PageContext:
    def __init__(self, path: str, user_id: Optional[str] = None, role: Optional[Role] = None):
        self.path = path
        self.user_id = user_id
        self.role = role

    def as_dict(self, page: str) -> Dict[str, Optional[str]]:
        return {
            "page": page,
            "path": self.path,
            "user_id": self.user_id,
            "role": self.role.value if self.role else None,
        }


def _effective_cookies(request: Request) -> Dict[str, str]:
    cookies = dict(request.cookies)
    for update in getattr(request.state, "session_cookie_updates", None) or []:
        if update.max_age <= 0:
            cookies.pop(update.name, None)
        else:
            cookies[update.name] = update.value
    return cookies


async def page_guard(request: Request, response: Response) -> PageContext:
    """
    Render guard dependency for page handlers.

    Raises:
        PageAccessDenied: When the decision is anything but "allow".
    """
    path = request.url.path
    route_class = classify_route(path)
    needed = required_role(route_class)
    original = path_with_query(path, request.url.query)

    try:
        resolution = await run_in_threadpool(request.app.state.session_resolver.resolve, _effective_cookies(request))
        role: Optional[Role] = None
        if resolution.session is not None and needed is not None:
            role = await run_in_threadpool(request.app.state.role_resolver.resolve, resolution.session.identity)
    except Exception as e:
        logger.error(f"Render guard resolution failed for {path}: {e}", exc_info=True)
        resolution, role = None, None

    has_session = resolution is not None and resolution.has_session
    decision = decide(AuthorizationInput(has_session=has_session, role=role, route_class=route_class))
    result = guard_result(decision, original, current_role=role, required_role=needed)

    if result.view != GuardView.RENDER:
        logger.info(f"Render guard blocked {path}: {decision.reason.value}")
        raise PageAccessDenied(result)

    if resolution is not None:
        apply_cookie_updates(response, resolution.cookies)
    user_id = resolution.session.identity.user_id if has_session else None
    return PageContext(path, user_id=user_id, role=role)


def render_access_denied(request: Request, exc: PageAccessDenied) -> Response:
    """Exception handler: interstitial for denials, 302 for signed-in users on public pages."""
    result = exc.result
    if result.view == GuardView.REDIRECT:
        return RedirectResponse(result.navigate_to, status_code=302)

    if result.current_role is not None:
        title = "Restricted Access"
        detail = f"<p>Your current role: <strong>{html.escape(result.current_role.value)}</strong></p>"
        link_text = "Back to the dashboard"
    else:
        title = "Access Denied"
        detail = ""
        link_text = "Go to login"

    body = (
        "<!DOCTYPE html><html><head><meta charset=\"utf-8\">"
        f"<title>{title}</title></head><body>"
        f"<h1>{title}</h1>"
        f"<p>{html.escape(result.message or '')}</p>"
        f"{detail}"
        f"<a href=\"{html.escape(result.navigate_to or '/', quote=True)}\">{link_text}</a>"
        "</body></html>"
    )
    return HTMLResponse(body, status_code=403)


# --- Public pages ---

@router.get("/login", include_in_schema=False)
async def login_page(request: Request, ctx: PageContext = Depends(page_guard)):
    # The sign-in form posts this back as `redirect` to /api/auth/login.
    data = ctx.as_dict("login")
    data["redirect"] = redirect_target_from_query(request.url.query)
    return data


@router.get("/signup", include_in_schema=False)
async def signup_page(ctx: PageContext = Depends(page_guard)):
    return ctx.as_dict("signup")


@router.get("/signup/wizard", include_in_schema=False)
async def signup_wizard_page(ctx: PageContext = Depends(page_guard)):
    return ctx.as_dict("signup_wizard")


@router.get("/forgot-password", include_in_schema=False)
async def forgot_password_page(ctx: PageContext = Depends(page_guard)):
    return ctx.as_dict("forgot_password")


@router.get("/reset-password", include_in_schema=False)
async def reset_password_page(ctx: PageContext = Depends(page_guard)):
    return ctx.as_dict("reset_password")


# --- Shared protected pages ---

@router.get("/", include_in_schema=False)
async def home_page(ctx: PageContext = Depends(page_guard)):
    return ctx.as_dict("home")


@router.get("/dashboard", include_in_schema=False)
async def dashboard_page(ctx: PageContext = Depends(page_guard)):
    return ctx.as_dict("dashboard")


def _shared_page(name: str):
    async def page(ctx: PageContext = Depends(page_guard)):
        return ctx.as_dict(name)
    page.__name__ = f"{name.replace('-', '_')}_page"
    return page


for _name in ("profile", "settings", "tenders", "rfp", "proposals", "approvals", "invoices", "service-orders", "notifications", "suppliers"):
    router.add_api_route(f"/{_name}", _shared_page(_name), methods=["GET"], include_in_schema=False)
    router.add_api_route(f"/{_name}/{{rest:path}}", _shared_page(_name), methods=["GET"], include_in_schema=False)


# --- Role-restricted pages ---

@router.get("/admin", include_in_schema=False)
@router.get("/admin/{rest:path}", include_in_schema=False)
async def admin_page(ctx: PageContext = Depends(page_guard)):
    return ctx.as_dict("admin")


@router.get("/supplier", include_in_schema=False)
@router.get("/supplier/{rest:path}", include_in_schema=False)
async def supplier_page(ctx: PageContext = Depends(page_guard)):
    return ctx.as_dict("supplier")
