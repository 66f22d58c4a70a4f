"""Tests for login, logout and cookie directives."""
from __future__ import annotations

import pytest

from filegate.errors import (
    AuthenticationError,
    CredentialMismatchError,
    IdentityNotFoundError,
)
from filegate.identity.credentials import sha256_hex
from filegate.identity.directory import IdentityDirectory
from filegate.identity.models import GUEST_NAME, Identity
from filegate.session.keys import KeyPair
from filegate.session.login import CookieDirective, SessionService
from filegate.session.middleware import RequestView
from filegate.session.token_codec import TokenCodec

ALICE_PASSWORD = "wonderland"


@pytest.fixture()
def codec(rsa_pair: KeyPair, clock) -> TokenCodec:
    return TokenCodec(rsa_pair, issuer="fm_session-jwt", clock=clock)


@pytest.fixture()
def service(codec: TokenCodec, directory: IdentityDirectory) -> SessionService:
    return SessionService(codec, directory, digest=sha256_hex, max_age=3600)


class TestCookieDirective:
    def test_session_cookie_header(self) -> None:
        cookie = CookieDirective(name="fm_session", value="tok", max_age=3600)
        assert cookie.to_header() == "fm_session=tok; Path=/; Max-Age=3600; HttpOnly"

    def test_secure_and_domain(self) -> None:
        cookie = CookieDirective(
            name="s", value="v", max_age=10, domain="example.org", secure=True
        )
        header = cookie.to_header()
        assert "Domain=example.org" in header
        assert header.endswith("HttpOnly; Secure")

    def test_expired_directive(self) -> None:
        cookie = CookieDirective.expired("fm_session")
        assert cookie.is_deletion
        assert cookie.value == ""
        assert cookie.to_header() == (
            "fm_session=; Path=/; Max-Age=0; "
            "Expires=Thu, 01 Jan 1970 00:00:00 GMT; HttpOnly"
        )


class TestIssue:
    def test_issue_registered(self, service: SessionService) -> None:
        token = service.issue("alice")
        assert service.verify(token).subject == "alice"

    def test_issue_round_trip_for_every_identity(
        self, service: SessionService, directory: IdentityDirectory
    ) -> None:
        for identity in directory:
            assert service.verify(service.issue(identity.name)).subject == identity.name

    def test_refuses_unknown(self, service: SessionService) -> None:
        with pytest.raises(IdentityNotFoundError):
            service.issue("mallory")

    def test_refuses_guest(self, service: SessionService) -> None:
        with pytest.raises(IdentityNotFoundError):
            service.issue(GUEST_NAME)


class TestLogin:
    def test_success(self, service: SessionService) -> None:
        result = service.login("alice", ALICE_PASSWORD)
        assert result.identity.name == "alice"
        assert service.verify(result.token).subject == "alice"
        assert result.cookie.name == "fm_session"
        assert result.cookie.value == result.token
        assert result.cookie.max_age == 3600
        assert result.cookie.path == "/"
        assert result.cookie.http_only
        assert not result.cookie.secure

    def test_unknown_user(self, service: SessionService) -> None:
        with pytest.raises(IdentityNotFoundError) as excinfo:
            service.login("mallory", "x")
        assert excinfo.value.username == "mallory"

    def test_wrong_password(self, service: SessionService) -> None:
        with pytest.raises(CredentialMismatchError):
            service.login("alice", "not-it")

    def test_errors_have_distinct_messages(self, service: SessionService) -> None:
        with pytest.raises(AuthenticationError) as unknown:
            service.login("mallory", "x")
        with pytest.raises(AuthenticationError) as wrong:
            service.login("alice", "x")
        assert str(unknown.value) != str(wrong.value)

    def test_guest_cannot_login(self, service: SessionService) -> None:
        with pytest.raises(IdentityNotFoundError):
            service.login(GUEST_NAME, "")

    def test_secure_cookie_option(self, codec: TokenCodec, directory: IdentityDirectory) -> None:
        service = SessionService(codec, directory, secure_cookie=True)
        assert service.login("alice", ALICE_PASSWORD).cookie.secure

    def test_non_hex_stored_digest_is_credential_mismatch(self, codec: TokenCodec) -> None:
        bob = Identity.build("bob", credential_digest="café", capabilities=["file:view"])
        service = SessionService(codec, IdentityDirectory([bob]))
        with pytest.raises(CredentialMismatchError):
            service.login("bob", "whatever")


class TestLogout:
    def test_logout_with_valid_token(self, service: SessionService) -> None:
        token = service.login("alice", ALICE_PASSWORD).token
        result = service.logout(RequestView(cookies={"fm_session": token}))
        assert result.username == "alice"
        assert result.cookie.is_deletion
        assert result.cookie.name == "fm_session"
        assert result.context.identity.name == GUEST_NAME
        assert result.context.token_status == "logged_out"

    def test_logout_without_token(self, service: SessionService) -> None:
        result = service.logout(RequestView())
        assert result.username is None
        assert result.cookie.is_deletion
        assert result.context.identity.name == GUEST_NAME

    def test_logout_with_expired_token(self, service: SessionService, clock) -> None:
        token = service.issue("alice")
        clock.advance(days=2)
        result = service.logout(RequestView(headers={"Authorization": f"Bearer {token}"}))
        assert result.username is None
        assert result.cookie.is_deletion
