"""Tests for role resolution."""

import pytest
from conftest import FakeProfileRepository

from eproc_portal.models.auth import Identity, Role
from eproc_portal.services.role_service import RoleResolver, resolve_role


class TestResolveRole:
    def test_claim_wins_over_profile(self) -> None:
        assert resolve_role("admin", "supplier") == Role.ADMIN

    def test_profile_used_without_claim(self) -> None:
        assert resolve_role(None, "admin") == Role.ADMIN

    @pytest.mark.parametrize("claim, profile_role", [(None, None), ("", ""), ("superuser", None), (None, "owner")])
    def test_falls_back_to_supplier(self, claim, profile_role) -> None:
        assert resolve_role(claim, profile_role) == Role.SUPPLIER

    @pytest.mark.parametrize("claim", ["ADMIN", " admin", "Admin ", "admin\n"])
    def test_non_canonical_claim_is_not_admin(self, claim) -> None:
        assert resolve_role(claim, None) == Role.SUPPLIER

    def test_non_canonical_profile_role_is_not_admin(self) -> None:
        assert resolve_role(None, "Admin") == Role.SUPPLIER


class TestRoleResolver:
    def test_admin_claim_skips_profile_lookup(self) -> None:
        profiles = FakeProfileRepository({"u1": "supplier"})
        role = RoleResolver(profiles).resolve(Identity(user_id="u1", role_claim="admin"))
        assert role == Role.ADMIN
        assert profiles.role_lookups == []

    def test_profile_role_without_claim(self) -> None:
        profiles = FakeProfileRepository({"u1": "admin"})
        assert RoleResolver(profiles).resolve(Identity(user_id="u1")) == Role.ADMIN
        assert profiles.role_lookups == ["u1"]

    def test_no_claim_and_supplier_row(self) -> None:
        profiles = FakeProfileRepository({"u1": "supplier"})
        assert RoleResolver(profiles).resolve(Identity(user_id="u1")) == Role.SUPPLIER

    def test_no_claim_and_no_row_is_supplier(self) -> None:
        assert RoleResolver(FakeProfileRepository()).resolve(Identity(user_id="ghost")) == Role.SUPPLIER

    def test_empty_role_column_is_supplier(self) -> None:
        profiles = FakeProfileRepository({"u1": ""})
        assert RoleResolver(profiles).resolve(Identity(user_id="u1")) == Role.SUPPLIER

    def test_lookup_failure_is_supplier(self) -> None:
        profiles = FakeProfileRepository({"u1": "admin"}, fail=True)
        assert RoleResolver(profiles).resolve(Identity(user_id="u1")) == Role.SUPPLIER

    def test_unknown_claim_falls_through_to_profile(self) -> None:
        profiles = FakeProfileRepository({"u1": "admin"})
        assert RoleResolver(profiles).resolve(Identity(user_id="u1", role_claim="root")) == Role.ADMIN
        assert profiles.role_lookups == ["u1"]

    def test_uppercase_claim_defers_to_profile(self) -> None:
        profiles = FakeProfileRepository({"u1": "supplier"})
        assert RoleResolver(profiles).resolve(Identity(user_id="u1", role_claim="ADMIN")) == Role.SUPPLIER
        assert profiles.role_lookups == ["u1"]


class TestDefaultRoleSetting:
    @pytest.mark.parametrize("value", ["admin", "Supplier", ""])
    def test_only_supplier_is_accepted(self, monkeypatch, value) -> None:
        from pydantic import ValidationError

        from eproc_portal.core.config import Settings

        monkeypatch.setenv("DEFAULT_ROLE", value)
        with pytest.raises(ValidationError):
            Settings()

    def test_supplier_is_accepted(self, monkeypatch) -> None:
        from eproc_portal.core.config import Settings

        monkeypatch.setenv("DEFAULT_ROLE", "supplier")
        assert Settings().DEFAULT_ROLE == "supplier"
