"""Issue and verify signed, time-bounded session tokens.

Tokens are JWTs signed with the private half of a :class:`KeyPair` and
verified with the public half only.  The claim set is::

    {"sub": <identity name>, "iat": <issued>, "exp": <expires>, "iss": <issuer>}

Expiry is checked against the codec's injected clock, so verification is
a pure function of the token, the public key and the current time.  There
is no server-side session table and no revocation list.

Example
-------
::

    codec = TokenCodec(KeyPair.generate(), issuer="fm_session-jwt")
    token = codec.issue("alice")
    assert codec.verify(token).subject == "alice"
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable

import jwt

from filegate.errors import (
    KeyGenerationError,
    TokenExpiredError,
    TokenInvalidSignatureError,
    TokenMalformedError,
)
from filegate.session.keys import KeyPair

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

DEFAULT_LIFETIME = timedelta(hours=24)
MIN_LIFETIME = timedelta(seconds=1)

_REQUIRED_CLAIMS = ["sub", "iat", "exp", "iss"]


def utcnow() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(tz=timezone.utc)


@dataclass(frozen=True)
class SessionClaims:
    """Verified claims carried by a session token.

    Attributes
    ----------
    subject:
        Name of the identity the token was issued for.
    issued_at:
        UTC issue time.
    expires_at:
        UTC expiry time.  The token is valid strictly before this instant.
    issuer:
        Issuer string the token was signed under.
    """

    subject: str
    issued_at: datetime
    expires_at: datetime
    issuer: str

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


class TokenCodec:
    """Signs and verifies session tokens with an owned key pair.

    Parameters
    ----------
    key_pair:
        The process-wide signing key pair.  A verify-only pair can verify
        but not issue.
    issuer:
        Value written to, and required in, the ``iss`` claim.
    lifetime:
        Validity window of issued tokens, at least one second.  Default 24
        hours.
    clock:
        Callable returning the current aware UTC datetime.  Injected for
        tests; defaults to :func:`utcnow`.
    """

    def __init__(
        self,
        key_pair: KeyPair,
        issuer: str,
        lifetime: timedelta = DEFAULT_LIFETIME,
        clock: Clock = utcnow,
    ) -> None:
        if lifetime < MIN_LIFETIME:
            raise ValueError("Token lifetime must be at least one second.")
        if not issuer:
            raise ValueError("Token issuer must not be empty.")
        self._key_pair = key_pair
        self._issuer = issuer
        self._lifetime = lifetime
        self._clock = clock

    @property
    def issuer(self) -> str:
        return self._issuer

    @property
    def lifetime(self) -> timedelta:
        return self._lifetime

    @property
    def algorithm(self) -> str:
        return self._key_pair.algorithm

    # ------------------------------------------------------------------
    # Issue
    # ------------------------------------------------------------------

    def issue(self, subject: str) -> str:
        """Return a signed token for ``subject``.

        This does not check that ``subject`` is a registered identity;
        callers go through :class:`~filegate.session.login.SessionService`
        for that.

        Raises
        ------
        ValueError
            If ``subject`` is empty.
        KeyGenerationError
            If the key pair has no private key.
        """
        if not subject:
            raise ValueError("Token subject must not be empty.")
        if self._key_pair.private_key is None:
            raise KeyGenerationError("Cannot issue tokens with a verify-only key pair.")

        now = self._clock()
        issued = int(now.timestamp())
        payload: dict[str, object] = {
            "sub": subject,
            "iat": issued,
            "exp": issued + int(self._lifetime.total_seconds()),
            "iss": self._issuer,
        }
        return jwt.encode(
            payload,
            self._key_pair.private_key,
            algorithm=self._key_pair.algorithm,
        )

    # ------------------------------------------------------------------
    # Verify
    # ------------------------------------------------------------------

    def verify(self, token: str) -> SessionClaims:
        """Verify ``token`` and return its claims.

        Raises
        ------
        TokenMalformedError
            The token is not a parseable JWT or its claims are missing,
            mistyped or carry a foreign issuer.
        TokenInvalidSignatureError
            The signature does not verify or the algorithm is not the
            codec's.
        TokenExpiredError
            The current time is at or past ``exp``.
        """
        if not token or not isinstance(token, str):
            raise TokenMalformedError("Empty token.")

        try:
            payload = jwt.decode(
                token,
                self._key_pair.public_key,
                algorithms=[self._key_pair.algorithm],
                issuer=self._issuer,
                options={
                    "require": _REQUIRED_CLAIMS,
                    "verify_exp": False,
                    "verify_iat": False,
                    "verify_nbf": False,
                },
            )
        except jwt.InvalidSignatureError as exc:
            raise TokenInvalidSignatureError(str(exc)) from exc
        except jwt.InvalidAlgorithmError as exc:
            raise TokenInvalidSignatureError(str(exc)) from exc
        except jwt.PyJWTError as exc:
            raise TokenMalformedError(str(exc)) from exc

        claims = self._claims_from_payload(payload)
        if claims.is_expired(self._clock()):
            raise TokenExpiredError(f"Token expired at {claims.expires_at.isoformat()}.")
        return claims

    def _claims_from_payload(self, payload: dict[str, object]) -> SessionClaims:
        subject = payload.get("sub")
        issued_at = payload.get("iat")
        expires_at = payload.get("exp")
        if not isinstance(subject, str) or not subject:
            raise TokenMalformedError("Claim 'sub' must be a non-empty string.")
        for claim, value in (("iat", issued_at), ("exp", expires_at)):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise TokenMalformedError(f"Claim {claim!r} must be a number.")
        try:
            issued = datetime.fromtimestamp(issued_at, tz=timezone.utc)  # type: ignore[arg-type]
            expires = datetime.fromtimestamp(expires_at, tz=timezone.utc)  # type: ignore[arg-type]
        except (OverflowError, OSError, ValueError) as exc:
            raise TokenMalformedError(f"Timestamp claim out of range: {exc}") from exc
        return SessionClaims(
            subject=subject,
            issued_at=issued,
            expires_at=expires,
            issuer=str(payload.get("iss", "")),
        )

    def __repr__(self) -> str:
        return (
            f"TokenCodec(issuer={self._issuer!r}, algorithm={self.algorithm!r}, "
            f"lifetime={self._lifetime!r})"
        )
