"""Tests for the render guard behind page routes.

The guard is exercised on an app without the edge middleware, which is what
a request sees when the edge layer's view of the session is stale.
"""

from unittest.mock import MagicMock

import pytest
from conftest import ADMIN_ID, SUPPLIER_ID, make_cookie, make_token, sign_in
from fastapi import FastAPI
from fastapi.testclient import TestClient

from eproc_portal.api.endpoints import pages
from eproc_portal.core.config import settings
from eproc_portal.models.auth import SessionResolution
from eproc_portal.services.role_service import RoleResolver
from eproc_portal.services.session_service import SessionResolver


@pytest.fixture
def guarded_client(profiles, refresher) -> TestClient:
    app = FastAPI()
    app.state.session_resolver = SessionResolver(refresher=refresher)
    app.state.role_resolver = RoleResolver(profiles)
    app.add_exception_handler(pages.PageAccessDenied, pages.render_access_denied)
    app.include_router(pages.router)
    return TestClient(app, follow_redirects=False)


class TestRenderGuard:
    def test_signed_out_user_sees_interstitial_not_content(self, guarded_client) -> None:
        response = guarded_client.get("/tenders?status=open")
        assert response.status_code == 403
        assert response.headers["content-type"].startswith("text/html")
        assert "Access Denied" in response.text
        assert "/login?redirect=%2Ftenders%3Fstatus%3Dopen" in response.text

    def test_role_mismatch_shows_restricted_interstitial(self, guarded_client) -> None:
        sign_in(guarded_client, make_token(sub=SUPPLIER_ID))
        response = guarded_client.get("/admin/users")
        assert response.status_code == 403
        assert "Restricted Access" in response.text
        assert "Only admin users can access this page." in response.text
        assert "supplier" in response.text
        assert 'href="/dashboard"' in response.text

    def test_admin_on_supplier_page(self, guarded_client) -> None:
        sign_in(guarded_client, make_token(sub=ADMIN_ID))
        response = guarded_client.get("/supplier")
        assert response.status_code == 403
        assert "Only supplier users can access this page." in response.text

    def test_signed_in_user_on_public_page_is_redirected(self, guarded_client) -> None:
        sign_in(guarded_client, make_token())
        response = guarded_client.get("/signup")
        assert response.status_code == 302
        assert response.headers["location"] == "/dashboard"

    def test_authorized_page_renders(self, guarded_client) -> None:
        sign_in(guarded_client, make_token(sub=ADMIN_ID))
        response = guarded_client.get("/admin/users")
        assert response.status_code == 200
        assert response.json() == {"page": "admin", "path": "/admin/users", "user_id": ADMIN_ID, "role": "admin"}

    def test_login_page_exposes_sanitized_redirect(self, guarded_client) -> None:
        assert guarded_client.get("/login?redirect=%2Ftenders%2F5").json()["redirect"] == "/tenders/5"
        assert guarded_client.get("/login?redirect=https%3A%2F%2Fevil.example.com").json()["redirect"] is None

    def test_guard_resolves_independently_of_the_edge(self, app, client) -> None:
        # The edge sees a session, the render guard no longer does.
        resolver = MagicMock()
        resolver.resolve.side_effect = [_resolution_for(make_token()), SessionResolution()]
        app.state.session_resolver = resolver

        response = client.get("/dashboard")
        assert response.status_code == 403
        assert "Access Denied" in response.text
        assert resolver.resolve.call_count == 2


def _resolution_for(token: str) -> SessionResolution:
    resolution = SessionResolver(refresher=lambda _: None).resolve({settings.SESSION_COOKIE_NAME: make_cookie(token)})
    assert resolution.has_session
    return resolution
