"""Resolve the acting identity of an inbound request.

The resolver runs once per request, before any capability check.  It
looks for a session token in the ``Authorization`` header, then the
session cookie, then the token query parameter, and takes the first one
present.  Any problem with the token (absent, malformed, bad signature,
expired, unknown subject) silently yields the guest identity; only the
downstream authorization checks can reject the request.

Example
-------
::

    resolver = IdentityResolver(codec, directory, cookie_name="fm_session")
    request = RequestView(headers={"Authorization": f"Bearer {token}"})
    context = resolver.resolve(request)
    context.identity.name      # "alice"
    context.acting_username    # for the access log
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Literal, Mapping

from filegate.errors import TokenError
from filegate.identity.directory import IdentityDirectory
from filegate.identity.models import Identity
from filegate.session.token_codec import SessionClaims, TokenCodec

logger = logging.getLogger(__name__)

TokenStatus = Literal[
    "valid",
    "absent",
    "malformed",
    "invalid_signature",
    "expired",
    "unknown_identity",
    "logged_out",
]

AUTHORIZATION_HEADER = "authorization"
BEARER_PREFIX = "Bearer "
DEFAULT_COOKIE_NAME = "fm_session"
DEFAULT_TOKEN_QUERY_PARAM = "token"


def _frozen(mapping: Mapping[str, str] | None) -> Mapping[str, str]:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class RequestView:
    """Normalized, read-only view of an inbound request.

    The host web layer builds one of these per request.  Header names are
    matched case-insensitively; cookies, query and form fields are exact.
    Multi-valued query or form fields should be reduced to their first
    value by the host layer.
    """

    method: str = "GET"
    path: str = "/"
    headers: Mapping[str, str] = field(default_factory=dict)
    cookies: Mapping[str, str] = field(default_factory=dict)
    query: Mapping[str, str] = field(default_factory=dict)
    form: Mapping[str, str] = field(default_factory=dict)
    client_ip: str = ""

    def __post_init__(self) -> None:
        lowered = {k.lower(): v for k, v in dict(self.headers).items()}
        object.__setattr__(self, "headers", _frozen(lowered))
        object.__setattr__(self, "cookies", _frozen(self.cookies))
        object.__setattr__(self, "query", _frozen(self.query))
        object.__setattr__(self, "form", _frozen(self.form))

    def header(self, name: str) -> str | None:
        return self.headers.get(name.lower())

    def target_path(self) -> str:
        """Return the ``path`` form field, or the ``path`` query parameter."""
        return self.form.get("path") or self.query.get("path") or ""


def extract_token(
    request: RequestView,
    cookie_name: str = DEFAULT_COOKIE_NAME,
    query_param: str = DEFAULT_TOKEN_QUERY_PARAM,
) -> str | None:
    """Return the first non-empty token candidate, or ``None``.

    Precedence is ``Authorization`` header, then ``cookie_name``, then
    ``query_param``.  A header with the ``Bearer`` scheme is stripped of
    it; any other header value is taken as the token itself.
    """
    header = (request.header(AUTHORIZATION_HEADER) or "").strip()
    scheme, _, credentials = header.partition(" ")
    if scheme == BEARER_PREFIX.strip():
        header = credentials.strip()
    if header:
        return header

    cookie = (request.cookies.get(cookie_name) or "").strip()
    if cookie:
        return cookie

    query = (request.query.get(query_param) or "").strip()
    return query or None


@dataclass(frozen=True)
class RequestContext:
    """The identity acting for one request, threaded through its handlers.

    Attributes
    ----------
    identity:
        The resolved identity.  The guest when no valid token was found.
    token_status:
        Why this identity was chosen; see :data:`TokenStatus`.
    claims:
        Verified token claims when ``token_status == "valid"``.
    guest:
        The guest identity, kept so the context can be reset on logout.
    """

    identity: Identity
    token_status: TokenStatus
    guest: Identity
    claims: SessionClaims | None = None

    @property
    def authenticated(self) -> bool:
        return self.token_status == "valid"

    @property
    def acting_username(self) -> str:
        """Name recorded as the request user by the access log."""
        return self.identity.name

    def as_guest(self, status: TokenStatus = "logged_out") -> RequestContext:
        """Return a copy of this context reset to the guest identity."""
        return replace(self, identity=self.guest, token_status=status, claims=None)


class IdentityResolver:
    """Turns an inbound request into a :class:`RequestContext`.

    Parameters
    ----------
    codec:
        Verifies session tokens.
    directory:
        Maps verified token subjects to identities.
    cookie_name:
        Name of the session cookie.
    query_param:
        Name of the query parameter that may carry a token.
    """

    def __init__(
        self,
        codec: TokenCodec,
        directory: IdentityDirectory,
        cookie_name: str = DEFAULT_COOKIE_NAME,
        query_param: str = DEFAULT_TOKEN_QUERY_PARAM,
    ) -> None:
        self._codec = codec
        self._directory = directory
        self._cookie_name = cookie_name
        self._query_param = query_param

    @property
    def cookie_name(self) -> str:
        return self._cookie_name

    def extract(self, request: RequestView) -> str | None:
        """Return the token carried by ``request``, if any."""
        return extract_token(request, self._cookie_name, self._query_param)

    def guest_context(self, status: TokenStatus = "absent") -> RequestContext:
        guest = self._directory.guest
        return RequestContext(identity=guest, token_status=status, guest=guest)

    def resolve(self, request: RequestView) -> RequestContext:
        """Resolve the acting identity for ``request``.  Never raises for
        token problems."""
        token = self.extract(request)
        if token is None:
            return self.guest_context("absent")

        try:
            claims = self._codec.verify(token)
        except TokenError as exc:
            logger.debug(
                "Session token rejected (%s) from %s: %s",
                exc.status,
                request.client_ip or "-",
                exc,
            )
            return self.guest_context(exc.status)  # type: ignore[arg-type]

        identity = self._directory.get(claims.subject)
        if identity is None:
            logger.info(
                "Session token for unknown identity %r; using guest", claims.subject
            )
            return self.guest_context("unknown_identity")

        return RequestContext(
            identity=identity,
            token_status="valid",
            guest=self._directory.guest,
            claims=claims,
        )
