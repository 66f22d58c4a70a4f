"""Tests for issuing and verifying session tokens."""
from __future__ import annotations

import base64
import json
from datetime import timedelta

import jwt
import pytest

from filegate.errors import (
    KeyGenerationError,
    TokenError,
    TokenExpiredError,
    TokenInvalidSignatureError,
    TokenMalformedError,
)
from filegate.session.keys import KeyPair
from filegate.session.token_codec import TokenCodec

ISSUER = "fm_session-jwt"


@pytest.fixture()
def codec(rsa_pair: KeyPair, clock) -> TokenCodec:
    return TokenCodec(rsa_pair, issuer=ISSUER, clock=clock)


def _b64(data: dict[str, object]) -> str:
    raw = json.dumps(data).encode("utf-8")
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


class TestIssueVerify:
    def test_round_trip(self, codec: TokenCodec, clock) -> None:
        token = codec.issue("alice")
        claims = codec.verify(token)
        assert claims.subject == "alice"
        assert claims.issuer == ISSUER
        assert claims.issued_at == clock.now
        assert claims.expires_at == clock.now + timedelta(hours=24)

    def test_claims_are_rs256_signed(self, codec: TokenCodec) -> None:
        token = codec.issue("alice")
        header = jwt.get_unverified_header(token)
        assert header["alg"] == "RS256"
        payload = jwt.decode(token, options={"verify_signature": False})
        assert set(payload) == {"sub", "iat", "exp", "iss"}

    def test_ec_round_trip(self, clock) -> None:
        codec = TokenCodec(KeyPair.generate("ES256"), issuer=ISSUER, clock=clock)
        assert codec.verify(codec.issue("bob")).subject == "bob"

    def test_verify_only_pair_verifies(self, rsa_pair: KeyPair, codec: TokenCodec, clock) -> None:
        verifier = TokenCodec(KeyPair.from_pem(rsa_pair.public_pem()), issuer=ISSUER, clock=clock)
        assert verifier.verify(codec.issue("alice")).subject == "alice"

    def test_verify_only_pair_cannot_issue(self, rsa_pair: KeyPair) -> None:
        verifier = TokenCodec(KeyPair.from_pem(rsa_pair.public_pem()), issuer=ISSUER)
        with pytest.raises(KeyGenerationError):
            verifier.issue("alice")

    def test_empty_subject_rejected(self, codec: TokenCodec) -> None:
        with pytest.raises(ValueError):
            codec.issue("")

    def test_custom_lifetime(self, rsa_pair: KeyPair, clock) -> None:
        codec = TokenCodec(rsa_pair, issuer=ISSUER, lifetime=timedelta(minutes=5), clock=clock)
        claims = codec.verify(codec.issue("alice"))
        assert claims.expires_at - claims.issued_at == timedelta(minutes=5)

    def test_invalid_construction(self, rsa_pair: KeyPair) -> None:
        with pytest.raises(ValueError):
            TokenCodec(rsa_pair, issuer=ISSUER, lifetime=timedelta(0))
        with pytest.raises(ValueError):
            TokenCodec(rsa_pair, issuer="")

    def test_sub_second_lifetime_rejected(self, rsa_pair: KeyPair) -> None:
        with pytest.raises(ValueError, match="at least one second"):
            TokenCodec(rsa_pair, issuer=ISSUER, lifetime=timedelta(seconds=0.36))

    def test_one_second_lifetime_verifies(self, rsa_pair: KeyPair, clock) -> None:
        codec = TokenCodec(rsa_pair, issuer=ISSUER, lifetime=timedelta(seconds=1), clock=clock)
        assert codec.verify(codec.issue("alice")).subject == "alice"


class TestExpiry:
    def test_valid_just_before_expiry(self, codec: TokenCodec, clock) -> None:
        token = codec.issue("alice")
        clock.advance(hours=24, seconds=-1)
        assert codec.verify(token).subject == "alice"

    def test_expired_at_exact_expiry(self, codec: TokenCodec, clock) -> None:
        token = codec.issue("alice")
        clock.advance(hours=24)
        with pytest.raises(TokenExpiredError):
            codec.verify(token)

    def test_expired_long_after(self, codec: TokenCodec, clock) -> None:
        token = codec.issue("alice")
        clock.advance(days=3)
        with pytest.raises(TokenExpiredError) as excinfo:
            codec.verify(token)
        assert excinfo.value.status == "expired"


class TestFailures:
    @pytest.mark.parametrize("token", ["", "garbage", "a.b.c", "x.y"])
    def test_malformed(self, codec: TokenCodec, token: str) -> None:
        with pytest.raises(TokenMalformedError):
            codec.verify(token)

    def test_signed_by_other_key(self, other_rsa_pair: KeyPair, codec: TokenCodec, clock) -> None:
        forger = TokenCodec(other_rsa_pair, issuer=ISSUER, clock=clock)
        with pytest.raises(TokenInvalidSignatureError):
            codec.verify(forger.issue("alice"))

    def test_tampered_payload(self, codec: TokenCodec) -> None:
        header, _, signature = codec.issue("alice").split(".")
        payload = jwt.decode(codec.issue("alice"), options={"verify_signature": False})
        payload["sub"] = "root"
        forged = ".".join([header, _b64(payload), signature])
        with pytest.raises(TokenInvalidSignatureError):
            codec.verify(forged)

    def test_hmac_token_rejected(self, codec: TokenCodec, clock) -> None:
        now = int(clock.now.timestamp())
        token = jwt.encode(
            {"sub": "alice", "iat": now, "exp": now + 60, "iss": ISSUER},
            "shared-secret-of-sufficient-length-32b",
            algorithm="HS256",
        )
        with pytest.raises(TokenInvalidSignatureError):
            codec.verify(token)

    def test_unsigned_token_rejected(self, codec: TokenCodec, clock) -> None:
        now = int(clock.now.timestamp())
        header = _b64({"alg": "none", "typ": "JWT"})
        payload = _b64({"sub": "root", "iat": now, "exp": now + 60, "iss": ISSUER})
        with pytest.raises((TokenInvalidSignatureError, TokenMalformedError)):
            codec.verify(f"{header}.{payload}.")

    def test_wrong_issuer(self, rsa_pair: KeyPair, codec: TokenCodec, clock) -> None:
        other = TokenCodec(rsa_pair, issuer="someone-else", clock=clock)
        with pytest.raises(TokenMalformedError):
            codec.verify(other.issue("alice"))

    def test_missing_claims(self, rsa_pair: KeyPair, codec: TokenCodec) -> None:
        token = jwt.encode({"sub": "alice", "iss": ISSUER}, rsa_pair.private_key, algorithm="RS256")
        with pytest.raises(TokenMalformedError):
            codec.verify(token)

    def test_non_numeric_expiry(self, rsa_pair: KeyPair, codec: TokenCodec) -> None:
        token = jwt.encode(
            {"sub": "alice", "iat": 1, "exp": "tomorrow", "iss": ISSUER},
            rsa_pair.private_key,
            algorithm="RS256",
        )
        with pytest.raises(TokenMalformedError):
            codec.verify(token)

    def test_all_failures_are_token_errors(self, codec: TokenCodec) -> None:
        with pytest.raises(TokenError):
            codec.verify("garbage")
