"""Tests for session cookie handling and session resolution."""

import base64
import json
import time

import pytest
from conftest import SUPPLIER_ID, FakeRefresher, make_cookie, make_token

from eproc_portal.core.config import settings
from eproc_portal.core.security import InvalidToken, TokenExpired, decode_access_token, identity_from_claims
from eproc_portal.models.auth import SessionTokens
from eproc_portal.services.session_service import (
    BASE64_PREFIX,
    MAX_CHUNK_SIZE,
    SessionResolver,
    clear_session_cookies,
    decode_session_cookie,
    encode_session_cookie,
    read_chunked_cookie,
    session_cookie_updates,
)

NAME = settings.SESSION_COOKIE_NAME


class TestTokenVerification:
    def test_valid_token(self) -> None:
        claims = decode_access_token(make_token(role_claim="admin"))
        identity = identity_from_claims(claims)
        assert identity.user_id == SUPPLIER_ID
        assert identity.email == "user@example.com"
        assert identity.role_claim == "admin"

    def test_top_level_role_is_not_the_role_claim(self) -> None:
        identity = identity_from_claims(decode_access_token(make_token()))
        assert identity.role_claim is None

    def test_expired_token(self) -> None:
        with pytest.raises(TokenExpired):
            decode_access_token(make_token(exp=int(time.time()) - 60))

    def test_wrong_signature(self) -> None:
        with pytest.raises(InvalidToken):
            decode_access_token(make_token(secret="wrong-secret"))

    def test_garbage(self) -> None:
        with pytest.raises(InvalidToken):
            decode_access_token("not.a.jwt")

    def test_missing_sub(self) -> None:
        with pytest.raises(InvalidToken):
            identity_from_claims(decode_access_token(make_token(sub=None)))


class TestCookieCodec:
    def test_base64_cookie(self) -> None:
        tokens = SessionTokens(access_token="a.b.c", refresh_token="r")
        value = encode_session_cookie(tokens)
        assert value.startswith(BASE64_PREFIX)
        assert decode_session_cookie(value) == tokens

    def test_plain_json_cookie(self) -> None:
        value = json.dumps({"access_token": "a.b.c", "refresh_token": "r", "user": {"id": "x"}})
        assert decode_session_cookie(value).access_token == "a.b.c"

    def test_padded_base64_cookie(self) -> None:
        raw = json.dumps({"access_token": "tok"}).encode()
        value = BASE64_PREFIX + base64.urlsafe_b64encode(raw).decode()
        assert decode_session_cookie(value).access_token == "tok"

    @pytest.mark.parametrize(
        "value",
        ["", None, "not-json", "base64-!!!!", "base64-" + base64.urlsafe_b64encode(b"[1,2]").decode(), '{"refresh_token": "r"}', '"just a string"'],
    )
    def test_malformed_cookie_is_no_session(self, value) -> None:
        assert decode_session_cookie(value) is None

    def test_chunked_cookie_is_reassembled(self) -> None:
        value = "x" * 10
        cookies = {f"{NAME}.0": value[:4], f"{NAME}.1": value[4:8], f"{NAME}.2": value[8:]}
        assert read_chunked_cookie(cookies, NAME) == value

    def test_unchunked_cookie_wins(self) -> None:
        assert read_chunked_cookie({NAME: "whole", f"{NAME}.0": "part"}, NAME) == "whole"

    def test_missing_cookie(self) -> None:
        assert read_chunked_cookie({"other": "x"}, NAME) is None


class TestCookieUpdates:
    def test_small_session_writes_one_cookie_and_expires_old_chunks(self) -> None:
        updates = session_cookie_updates(SessionTokens(access_token="a"), existing=[f"{NAME}.0", f"{NAME}.1", "other"])
        written = [u for u in updates if u.max_age > 0]
        expired = {u.name for u in updates if u.max_age == 0}
        assert [u.name for u in written] == [NAME]
        assert expired == {f"{NAME}.0", f"{NAME}.1"}

    def test_large_session_is_chunked(self) -> None:
        tokens = SessionTokens(access_token="a" * (MAX_CHUNK_SIZE * 2))
        updates = session_cookie_updates(tokens, existing=[NAME])
        written = [u for u in updates if u.max_age > 0]
        assert [u.name for u in written] == [f"{NAME}.0", f"{NAME}.1", f"{NAME}.2"]
        assert all(len(u.value) <= MAX_CHUNK_SIZE for u in written)
        assert {u.name for u in updates if u.max_age == 0} == {NAME}
        reassembled = read_chunked_cookie({u.name: u.value for u in written}, NAME)
        assert decode_session_cookie(reassembled) == tokens

    def test_clear_expires_every_chunk(self) -> None:
        updates = clear_session_cookies([f"{NAME}.0", f"{NAME}.1", "theme"])
        assert {u.name for u in updates} == {f"{NAME}.0", f"{NAME}.1"}
        assert all(u.max_age == 0 for u in updates)

    def test_clear_without_cookies_still_expires_the_base_name(self) -> None:
        assert [u.name for u in clear_session_cookies([])] == [NAME]


class TestSessionResolver:
    def test_valid_cookie(self) -> None:
        resolution = SessionResolver(refresher=FakeRefresher()).resolve({NAME: make_cookie(make_token())})
        assert resolution.has_session
        assert resolution.session.identity.user_id == SUPPLIER_ID
        assert resolution.cookies == []

    def test_no_cookie(self) -> None:
        assert not SessionResolver(refresher=FakeRefresher()).resolve({}).has_session

    def test_malformed_cookie_never_raises(self) -> None:
        resolution = SessionResolver(refresher=FakeRefresher()).resolve({NAME: "base64-%%%"})
        assert not resolution.has_session

    def test_bad_signature_is_no_session(self) -> None:
        cookie = make_cookie(make_token(secret="other-secret"))
        assert not SessionResolver(refresher=FakeRefresher()).resolve({NAME: cookie}).has_session

    def test_bearer_header_takes_precedence(self) -> None:
        token = make_token(sub="bearer-user")
        resolution = SessionResolver(refresher=FakeRefresher()).resolve(
            {NAME: make_cookie(make_token())}, authorization=f"Bearer {token}"
        )
        assert resolution.session.identity.user_id == "bearer-user"

    def test_expired_session_is_refreshed_and_cookies_rotated(self) -> None:
        rotated = SessionTokens(access_token=make_token(), refresh_token="refresh-2")
        refresher = FakeRefresher(rotated)
        expired = make_cookie(make_token(exp=int(time.time()) - 60), refresh_token="refresh-1")

        resolution = SessionResolver(refresher=refresher).resolve({NAME: expired})

        assert refresher.calls == ["refresh-1"]
        assert resolution.has_session
        assert resolution.session.tokens.refresh_token == "refresh-2"
        written = [u for u in resolution.cookies if u.max_age > 0]
        assert [u.name for u in written] == [NAME]
        assert decode_session_cookie(written[0].value) == rotated

    def test_failed_refresh_is_no_session(self) -> None:
        refresher = FakeRefresher(None)
        expired = make_cookie(make_token(exp=int(time.time()) - 60))
        resolution = SessionResolver(refresher=refresher).resolve({NAME: expired})
        assert refresher.calls == ["refresh-1"]
        assert not resolution.has_session

    def test_expired_without_refresh_token(self) -> None:
        refresher = FakeRefresher(SessionTokens(access_token=make_token()))
        expired = make_cookie(make_token(exp=int(time.time()) - 60), refresh_token=None)
        assert not SessionResolver(refresher=refresher).resolve({NAME: expired}).has_session
        assert refresher.calls == []

    def test_refresher_exception_is_contained(self) -> None:
        def boom(_):
            raise RuntimeError("network down")

        expired = make_cookie(make_token(exp=int(time.time()) - 60))
        assert not SessionResolver(refresher=boom).resolve({NAME: expired}).has_session
