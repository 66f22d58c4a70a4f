"""Login and logout against the identity directory.

Login compares the digest of the supplied secret with the stored digest,
then issues a session token and a cookie directive the host layer turns
into a ``Set-Cookie`` header.  Logout returns a deletion directive and a
guest context.  Unknown usernames and wrong secrets raise distinct errors
with distinct messages.

Example
-------
::

    service = SessionService(codec, directory, digest=sha256_hex)
    result = service.login("alice", "s3cret")
    response.headers["Set-Cookie"] = result.cookie.to_header()
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from filegate.errors import CredentialMismatchError, IdentityNotFoundError, TokenError
from filegate.identity.credentials import DigestFunction, sha256_hex, verify_secret
from filegate.identity.directory import IdentityDirectory
from filegate.identity.models import Identity
from filegate.session.middleware import (
    DEFAULT_COOKIE_NAME,
    IdentityResolver,
    RequestContext,
    RequestView,
)
from filegate.session.token_codec import SessionClaims, TokenCodec

logger = logging.getLogger(__name__)

DEFAULT_MAX_AGE = 36000

_EPOCH_EXPIRES = "Thu, 01 Jan 1970 00:00:00 GMT"


@dataclass(frozen=True)
class CookieDirective:
    """Instruction to set or clear the session cookie.

    A negative ``max_age`` means "delete now".
    """

    name: str
    value: str
    max_age: int
    path: str = "/"
    domain: str = ""
    secure: bool = False
    http_only: bool = True

    @classmethod
    def expired(
        cls,
        name: str,
        path: str = "/",
        domain: str = "",
        secure: bool = False,
    ) -> CookieDirective:
        """Return a directive that deletes cookie ``name``."""
        return cls(name=name, value="", max_age=-1, path=path, domain=domain, secure=secure)

    @property
    def is_deletion(self) -> bool:
        return self.max_age < 0

    def to_header(self) -> str:
        """Render the directive as a ``Set-Cookie`` header value."""
        parts = [f"{self.name}={self.value}"]
        if self.path:
            parts.append(f"Path={self.path}")
        if self.domain:
            parts.append(f"Domain={self.domain}")
        if self.is_deletion:
            parts.append("Max-Age=0")
            parts.append(f"Expires={_EPOCH_EXPIRES}")
        elif self.max_age > 0:
            parts.append(f"Max-Age={self.max_age}")
        if self.http_only:
            parts.append("HttpOnly")
        if self.secure:
            parts.append("Secure")
        return "; ".join(parts)


@dataclass(frozen=True)
class LoginResult:
    """Outcome of a successful login."""

    identity: Identity
    token: str
    cookie: CookieDirective


@dataclass(frozen=True)
class LogoutResult:
    """Outcome of a logout.

    Attributes
    ----------
    cookie:
        Deletion directive for the session cookie.
    context:
        Guest context to use for the rest of the response.
    username:
        Name from the presented token when it still verified, for logging.
    """

    cookie: CookieDirective
    context: RequestContext
    username: str | None = None


class SessionService:
    """Issues tokens for registered identities and runs login/logout.

    Parameters
    ----------
    codec:
        Token codec holding the process-wide key pair.
    directory:
        Registered identities.
    resolver:
        Identity resolver, used by logout to find the presented token.
        Built from ``codec`` and ``directory`` when omitted.
    digest:
        Digest function applied to login secrets.
    cookie_name:
        Name of the session cookie.
    max_age:
        Cookie lifetime in seconds.
    secure_cookie:
        Whether the session cookie is restricted to HTTPS.  Off by default.
    """

    def __init__(
        self,
        codec: TokenCodec,
        directory: IdentityDirectory,
        resolver: IdentityResolver | None = None,
        digest: DigestFunction = sha256_hex,
        cookie_name: str = DEFAULT_COOKIE_NAME,
        max_age: int = DEFAULT_MAX_AGE,
        secure_cookie: bool = False,
    ) -> None:
        self._codec = codec
        self._directory = directory
        self._resolver = resolver or IdentityResolver(
            codec, directory, cookie_name=cookie_name
        )
        self._digest = digest
        self._cookie_name = cookie_name
        self._max_age = max_age
        self._secure_cookie = secure_cookie

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    def issue(self, username: str) -> str:
        """Issue a token for a registered identity.

        Raises
        ------
        IdentityNotFoundError
            If ``username`` is unknown or names the guest.
        """
        if self._directory.get(username) is None:
            raise IdentityNotFoundError(username)
        return self._codec.issue(username)

    def verify(self, token: str) -> SessionClaims:
        """Verify ``token``; see :meth:`TokenCodec.verify`."""
        return self._codec.verify(token)

    # ------------------------------------------------------------------
    # Login / logout
    # ------------------------------------------------------------------

    def login(self, username: str, secret: str) -> LoginResult:
        """Authenticate ``username`` with ``secret`` and start a session.

        Raises
        ------
        IdentityNotFoundError
            If the username is not registered.
        CredentialMismatchError
            If the secret's digest does not match.
        """
        identity = self._directory.get(username)
        if identity is None:
            logger.warning("Login failed: unknown account %r", username)
            raise IdentityNotFoundError(username)
        if not verify_secret(self._digest, secret, identity.credential_digest):
            logger.warning("Login failed: wrong password for %r", username)
            raise CredentialMismatchError(username)

        token = self._codec.issue(identity.name)
        cookie = CookieDirective(
            name=self._cookie_name,
            value=token,
            max_age=self._max_age,
            secure=self._secure_cookie,
        )
        logger.info("%s login success with session token", identity.name)
        return LoginResult(identity=identity, token=token, cookie=cookie)

    def logout(self, request: RequestView) -> LogoutResult:
        """End the session carried by ``request``.

        The presented token is verified only to name the user in the log;
        the cookie is cleared and a guest context returned either way.
        """
        username: str | None = None
        token = self._resolver.extract(request)
        if token is not None:
            try:
                username = self._codec.verify(token).subject
            except TokenError:
                username = None
        if username is not None:
            logger.info("%s logout success", username)

        context = self._resolver.guest_context("logged_out")
        return LogoutResult(
            cookie=CookieDirective.expired(self._cookie_name, secure=self._secure_cookie),
            context=context,
            username=username,
        )
