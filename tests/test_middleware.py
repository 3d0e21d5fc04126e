"""End-to-end tests for the edge authorization layer."""

import time
from unittest.mock import MagicMock

import pytest
from conftest import ADMIN_ID, SUPPLIER_ID, make_token, sign_in

from eproc_portal.core.config import settings
from eproc_portal.models.auth import SessionTokens
from eproc_portal.services.session_service import decode_session_cookie


class TestUnauthenticated:
    def test_admin_path_redirects_to_login(self, client) -> None:
        response = client.get("/admin/users")
        assert response.status_code == 302
        assert response.headers["location"] == "/login?redirect=%2Fadmin%2Fusers"

    @pytest.mark.parametrize("path", ["/", "/dashboard", "/tenders", "/supplier", "/suppliers/7", "/notifications"])
    def test_every_protected_path_redirects(self, client, path) -> None:
        response = client.get(path)
        assert response.status_code == 302
        assert response.headers["location"].startswith("/login?redirect=")

    def test_query_string_is_preserved(self, client) -> None:
        response = client.get("/tenders?status=open&page=2")
        assert response.headers["location"] == "/login?redirect=%2Ftenders%3Fstatus%3Dopen%26page%3D2"

    @pytest.mark.parametrize("path", ["/login", "/signup", "/signup/wizard", "/forgot-password", "/reset-password"])
    def test_public_pages_render(self, client, path) -> None:
        response = client.get(path)
        assert response.status_code == 200

    def test_api_is_not_redirected(self, client) -> None:
        response = client.get("/api/profiles/me")
        assert response.status_code == 401

    def test_health_is_open(self, client) -> None:
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"


class TestAuthenticated:
    @pytest.mark.parametrize("role_claim", ["admin", "supplier", None])
    def test_public_page_redirects_to_dashboard(self, client, role_claim) -> None:
        sign_in(client, make_token(role_claim=role_claim))
        response = client.get("/login")
        assert response.status_code == 302
        assert response.headers["location"] == "/dashboard"

    def test_admin_claim_reaches_admin_without_profile_lookup(self, client, profiles) -> None:
        sign_in(client, make_token(sub="claim-admin", role_claim="admin"))
        response = client.get("/admin/users")
        assert response.status_code == 200
        assert response.json()["role"] == "admin"
        assert profiles.role_lookups == []

    @pytest.mark.parametrize("role_claim", ["ADMIN", " Admin"])
    def test_non_canonical_admin_claim_is_kept_out_of_admin(self, client, profiles, role_claim) -> None:
        sign_in(client, make_token(sub=SUPPLIER_ID, role_claim=role_claim))
        response = client.get("/admin/users")
        assert response.status_code == 302
        assert response.headers["location"] == "/dashboard"

    def test_shared_page_skips_role_lookup(self, client, profiles) -> None:
        sign_in(client, make_token(sub=SUPPLIER_ID))
        assert client.get("/tenders").status_code == 200
        assert profiles.role_lookups == []

    def test_supplier_profile_is_kept_out_of_admin(self, client) -> None:
        sign_in(client, make_token(sub=SUPPLIER_ID))
        response = client.get("/admin")
        assert response.status_code == 302
        assert response.headers["location"] == "/dashboard"

    def test_admin_profile_reaches_admin(self, client) -> None:
        sign_in(client, make_token(sub=ADMIN_ID))
        assert client.get("/admin/settings").status_code == 200

    def test_admin_is_kept_out_of_supplier_area(self, client) -> None:
        sign_in(client, make_token(role_claim="admin"))
        response = client.get("/supplier")
        assert response.status_code == 302
        assert response.headers["location"] == "/dashboard"

    def test_user_without_profile_is_a_supplier(self, client) -> None:
        sign_in(client, make_token(sub="no-profile-user"))
        assert client.get("/supplier/proposals").status_code == 200
        assert client.get("/admin").status_code == 302

    @pytest.mark.parametrize("role_claim", ["admin", "supplier", None])
    def test_shared_pages_allow_any_role(self, client, role_claim) -> None:
        sign_in(client, make_token(role_claim=role_claim))
        response = client.get("/tenders")
        assert response.status_code == 200
        assert response.json()["page"] == "tenders"

    def test_profile_store_outage_degrades_to_supplier(self, client, profiles) -> None:
        profiles.fail = True
        sign_in(client, make_token(sub=ADMIN_ID))
        assert client.get("/admin").status_code == 302
        assert client.get("/dashboard").status_code == 200

    def test_garbage_cookie_is_treated_as_signed_out(self, client) -> None:
        client.cookies.set(settings.SESSION_COOKIE_NAME, "base64-garbage")
        response = client.get("/dashboard")
        assert response.status_code == 302
        assert response.headers["location"] == "/login?redirect=%2Fdashboard"


class TestRefresh:
    def test_expired_session_is_refreshed_with_rotated_cookie(self, client, refresher) -> None:
        refresher.result = SessionTokens(access_token=make_token(), refresh_token="refresh-2")
        sign_in(client, make_token(exp=int(time.time()) - 60), refresh_token="refresh-1")

        response = client.get("/dashboard")

        assert response.status_code == 200
        # Spent once at the edge; the page guard reuses the rotated cookie.
        assert refresher.calls == ["refresh-1"]
        rotated = response.cookies.get(settings.SESSION_COOKIE_NAME)
        assert decode_session_cookie(rotated).refresh_token == "refresh-2"

    def test_failed_refresh_redirects_to_login(self, client, refresher) -> None:
        refresher.result = None
        sign_in(client, make_token(exp=int(time.time()) - 60))
        response = client.get("/dashboard")
        assert response.status_code == 302
        assert response.headers["location"].startswith("/login")


class TestFailClosed:
    def test_resolver_crash_is_treated_as_no_session(self, app, client) -> None:
        broken = MagicMock()
        broken.resolve.side_effect = RuntimeError("boom")
        app.state.session_resolver = broken

        sign_in(client, make_token(role_claim="admin"))
        response = client.get("/admin")
        assert response.status_code == 302
        assert response.headers["location"] == "/login?redirect=%2Fadmin"

    def test_resolver_crash_on_public_page_still_renders(self, app, client) -> None:
        broken = MagicMock()
        broken.resolve.side_effect = RuntimeError("boom")
        app.state.session_resolver = broken

        response = client.get("/login")
        assert response.status_code == 200
