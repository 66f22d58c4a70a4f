"""Tests for token extraction and request identity resolution."""
from __future__ import annotations

import pytest

from filegate.identity.directory import IdentityDirectory
from filegate.identity.models import GUEST_NAME, Identity
from filegate.session.keys import KeyPair
from filegate.session.middleware import (
    IdentityResolver,
    RequestView,
    extract_token,
)
from filegate.session.token_codec import TokenCodec

ISSUER = "fm_session-jwt"


@pytest.fixture()
def codec(rsa_pair: KeyPair, clock) -> TokenCodec:
    return TokenCodec(rsa_pair, issuer=ISSUER, clock=clock)


@pytest.fixture()
def resolver(codec: TokenCodec, directory: IdentityDirectory) -> IdentityResolver:
    return IdentityResolver(codec, directory, cookie_name="fm_session", query_param="token")


# ---------------------------------------------------------------------------
# RequestView
# ---------------------------------------------------------------------------


class TestRequestView:
    def test_header_lookup_case_insensitive(self) -> None:
        request = RequestView(headers={"Authorization": "Bearer x"})
        assert request.header("authorization") == "Bearer x"
        assert request.header("AUTHORIZATION") == "Bearer x"

    def test_target_path_prefers_form(self) -> None:
        request = RequestView(form={"path": "/a"}, query={"path": "/b"})
        assert request.target_path() == "/a"

    def test_target_path_falls_back_to_query(self) -> None:
        request = RequestView(form={"path": ""}, query={"path": "/b"})
        assert request.target_path() == "/b"

    def test_target_path_empty(self) -> None:
        assert RequestView().target_path() == ""

    def test_mappings_are_read_only(self) -> None:
        request = RequestView(cookies={"a": "1"})
        with pytest.raises(TypeError):
            request.cookies["a"] = "2"  # type: ignore[index]


# ---------------------------------------------------------------------------
# extract_token
# ---------------------------------------------------------------------------


class TestExtractToken:
    def test_bearer_header(self) -> None:
        request = RequestView(headers={"Authorization": "Bearer abc"})
        assert extract_token(request) == "abc"

    def test_bare_header_value(self) -> None:
        request = RequestView(headers={"Authorization": "abc"})
        assert extract_token(request) == "abc"

    def test_header_beats_cookie_and_query(self) -> None:
        request = RequestView(
            headers={"Authorization": "Bearer h"},
            cookies={"fm_session": "c"},
            query={"token": "q"},
        )
        assert extract_token(request) == "h"

    def test_cookie_beats_query(self) -> None:
        request = RequestView(cookies={"fm_session": "c"}, query={"token": "q"})
        assert extract_token(request) == "c"

    def test_query_last(self) -> None:
        assert extract_token(RequestView(query={"token": "q"})) == "q"

    def test_custom_names(self) -> None:
        request = RequestView(cookies={"sid": "c"}, query={"t": "q"})
        assert extract_token(request, cookie_name="sid", query_param="t") == "c"
        assert extract_token(RequestView(query={"t": "q"}), query_param="t") == "q"

    def test_empty_values_skipped(self) -> None:
        request = RequestView(
            headers={"Authorization": "Bearer "},
            cookies={"fm_session": ""},
            query={"token": "q"},
        )
        assert extract_token(request) == "q"

    @pytest.mark.parametrize("header", ["Bearer", "Bearer ", "Bearer    ", "   "])
    def test_empty_bearer_falls_through_to_cookie(self, header: str) -> None:
        request = RequestView(headers={"Authorization": header}, cookies={"fm_session": "c"})
        assert extract_token(request) == "c"

    def test_bearer_prefix_needs_separator(self) -> None:
        request = RequestView(headers={"Authorization": "Bearerabc"})
        assert extract_token(request) == "Bearerabc"

    def test_none_when_absent(self) -> None:
        assert extract_token(RequestView()) is None


# ---------------------------------------------------------------------------
# IdentityResolver
# ---------------------------------------------------------------------------


class TestIdentityResolver:
    def test_no_token_is_guest(self, resolver: IdentityResolver) -> None:
        context = resolver.resolve(RequestView())
        assert context.identity.name == GUEST_NAME
        assert context.token_status == "absent"
        assert not context.authenticated
        assert context.claims is None

    @pytest.mark.parametrize("token", ["", "   ", "garbage", "a.b.c"])
    def test_bad_tokens_are_guest(self, resolver: IdentityResolver, token: str) -> None:
        context = resolver.resolve(RequestView(cookies={"fm_session": token}))
        assert context.identity.name == GUEST_NAME
        assert not context.authenticated

    def test_garbage_status_is_malformed(self, resolver: IdentityResolver) -> None:
        context = resolver.resolve(RequestView(query={"token": "garbage"}))
        assert context.token_status == "malformed"

    def test_valid_header_token(
        self, resolver: IdentityResolver, codec: TokenCodec, alice: Identity
    ) -> None:
        request = RequestView(headers={"Authorization": f"Bearer {codec.issue('alice')}"})
        context = resolver.resolve(request)
        assert context.identity is alice
        assert context.token_status == "valid"
        assert context.authenticated
        assert context.acting_username == "alice"
        assert context.claims is not None
        assert context.claims.subject == "alice"

    def test_valid_cookie_token(self, resolver: IdentityResolver, codec: TokenCodec) -> None:
        request = RequestView(cookies={"fm_session": codec.issue("root")})
        assert resolver.resolve(request).identity.is_admin

    def test_empty_bearer_header_uses_cookie(
        self, resolver: IdentityResolver, codec: TokenCodec
    ) -> None:
        request = RequestView(
            headers={"Authorization": "Bearer "},
            cookies={"fm_session": codec.issue("alice")},
        )
        context = resolver.resolve(request)
        assert context.acting_username == "alice"
        assert context.token_status == "valid"

    def test_valid_query_token(self, resolver: IdentityResolver, codec: TokenCodec) -> None:
        request = RequestView(query={"token": codec.issue("alice")})
        assert resolver.resolve(request).identity.name == "alice"

    def test_header_precedence_even_when_invalid(
        self, resolver: IdentityResolver, codec: TokenCodec
    ) -> None:
        request = RequestView(
            headers={"Authorization": "Bearer garbage"},
            cookies={"fm_session": codec.issue("alice")},
        )
        context = resolver.resolve(request)
        assert context.identity.name == GUEST_NAME
        assert context.token_status == "malformed"

    def test_expired_token_is_guest(
        self, resolver: IdentityResolver, codec: TokenCodec, clock
    ) -> None:
        token = codec.issue("alice")
        clock.advance(hours=25)
        context = resolver.resolve(RequestView(cookies={"fm_session": token}))
        assert context.identity.name == GUEST_NAME
        assert context.token_status == "expired"

    def test_foreign_signature_is_guest(
        self, resolver: IdentityResolver, other_rsa_pair: KeyPair, clock
    ) -> None:
        forger = TokenCodec(other_rsa_pair, issuer=ISSUER, clock=clock)
        context = resolver.resolve(RequestView(cookies={"fm_session": forger.issue("root")}))
        assert context.identity.name == GUEST_NAME
        assert context.token_status == "invalid_signature"

    def test_unknown_subject_is_guest(
        self, resolver: IdentityResolver, codec: TokenCodec
    ) -> None:
        context = resolver.resolve(RequestView(cookies={"fm_session": codec.issue("ghost")}))
        assert context.identity.name == GUEST_NAME
        assert context.token_status == "unknown_identity"

    def test_guest_subject_is_not_authenticated(
        self, resolver: IdentityResolver, codec: TokenCodec
    ) -> None:
        context = resolver.resolve(RequestView(cookies={"fm_session": codec.issue(GUEST_NAME)}))
        assert context.identity.name == GUEST_NAME
        assert not context.authenticated

    def test_as_guest_resets_identity(
        self, resolver: IdentityResolver, codec: TokenCodec
    ) -> None:
        context = resolver.resolve(RequestView(cookies={"fm_session": codec.issue("alice")}))
        reset = context.as_guest()
        assert reset.identity.name == GUEST_NAME
        assert reset.token_status == "logged_out"
        assert reset.claims is None
        assert context.identity.name == "alice"
