"""FileGate: the access-control core wired together from configuration.

This is the object a host web layer holds for the life of the process.
It owns the key pair, the token codec, the identity directory, the
identity resolver and the session service, all built once at startup and
never mutated afterwards.

Example
-------
::

    gate = FileGate.from_config(ConfigLoader().load(Path("filegate.yaml")))

    context = gate.resolve_identity(request_view)
    gate.require(context, Capability.FILE_DOWNLOAD, request_view)
    # ... serve the file ...
"""
from __future__ import annotations

import logging
from datetime import timedelta
from typing import TYPE_CHECKING

from filegate.errors import PermissionDeniedError
from filegate.identity.credentials import DigestFunction, get_digest, sha256_hex
from filegate.identity.directory import IdentityDirectory
from filegate.identity.models import Identity
from filegate.permissions.authorizer import AuthorizationResult, authorize
from filegate.permissions.capability import Capability
from filegate.permissions.file_actions import FileAction, authorize_file_action
from filegate.session.keys import KeyPair
from filegate.session.login import (
    DEFAULT_MAX_AGE,
    LoginResult,
    LogoutResult,
    SessionService,
)
from filegate.session.middleware import (
    DEFAULT_COOKIE_NAME,
    DEFAULT_TOKEN_QUERY_PARAM,
    IdentityResolver,
    RequestContext,
    RequestView,
)
from filegate.session.token_codec import (
    DEFAULT_LIFETIME,
    Clock,
    SessionClaims,
    TokenCodec,
    utcnow,
)

if TYPE_CHECKING:
    from filegate.config import FileGateConfig

logger = logging.getLogger(__name__)


class FileGate:
    """Resolve identities, authorize operations and run login/logout.

    Parameters
    ----------
    key_pair:
        Process-wide signing key pair.
    directory:
        Registered identities plus the guest.
    digest:
        Digest function for login secrets.
    cookie_name:
        Session cookie name.  Also the default issuer prefix.
    max_age:
        Session cookie lifetime in seconds.
    token_lifetime:
        Validity of issued tokens.
    token_query_param:
        Query parameter that may carry a token.
    issuer:
        ``iss`` claim value; defaults to ``"<cookie_name>-jwt"``.
    secure_cookie:
        Restrict the session cookie to HTTPS.
    clock:
        Time source for token issuance and expiry checks.
    """

    def __init__(
        self,
        key_pair: KeyPair,
        directory: IdentityDirectory,
        digest: DigestFunction = sha256_hex,
        cookie_name: str = DEFAULT_COOKIE_NAME,
        max_age: int = DEFAULT_MAX_AGE,
        token_lifetime: timedelta = DEFAULT_LIFETIME,
        token_query_param: str = DEFAULT_TOKEN_QUERY_PARAM,
        issuer: str | None = None,
        secure_cookie: bool = False,
        clock: Clock = utcnow,
    ) -> None:
        self._directory = directory
        self._codec = TokenCodec(
            key_pair,
            issuer=issuer or f"{cookie_name}-jwt",
            lifetime=token_lifetime,
            clock=clock,
        )
        self._resolver = IdentityResolver(
            self._codec,
            directory,
            cookie_name=cookie_name,
            query_param=token_query_param,
        )
        self._sessions = SessionService(
            self._codec,
            directory,
            resolver=self._resolver,
            digest=digest,
            cookie_name=cookie_name,
            max_age=max_age,
            secure_cookie=secure_cookie,
        )

    @classmethod
    def from_config(
        cls,
        config: "FileGateConfig",
        key_pair: KeyPair | None = None,
        clock: Clock = utcnow,
    ) -> FileGate:
        """Build a FileGate from a validated configuration.

        Parameters
        ----------
        config:
            Loaded :class:`~filegate.config.FileGateConfig`.
        key_pair:
            Injected key pair.  When omitted the configured keys are loaded,
            or a fresh pair is generated.

        Raises
        ------
        KeyGenerationError
            If the key pair cannot be produced.  The process should not
            start.
        """
        pair = key_pair if key_pair is not None else config.signing_keys.build()
        gate = cls(
            key_pair=pair,
            directory=config.build_directory(),
            digest=get_digest(config.digest),
            cookie_name=config.cookie_name,
            max_age=config.max_age_seconds,
            token_lifetime=config.token_lifetime,
            token_query_param=config.token_query_param,
            issuer=config.effective_issuer,
            secure_cookie=config.secure_cookie,
            clock=clock,
        )
        logger.info(
            "FileGate ready: %d identities, issuer=%s, algorithm=%s",
            len(gate.directory),
            gate.codec.issuer,
            pair.algorithm,
        )
        return gate

    # ------------------------------------------------------------------
    # Components
    # ------------------------------------------------------------------

    @property
    def directory(self) -> IdentityDirectory:
        return self._directory

    @property
    def codec(self) -> TokenCodec:
        return self._codec

    @property
    def resolver(self) -> IdentityResolver:
        return self._resolver

    @property
    def sessions(self) -> SessionService:
        return self._sessions

    @property
    def guest(self) -> Identity:
        return self._directory.guest

    # ------------------------------------------------------------------
    # Identity resolution and authorization
    # ------------------------------------------------------------------

    def resolve_identity(self, request: RequestView) -> RequestContext:
        """Resolve the acting identity of ``request`` (guest on any failure)."""
        return self._resolver.resolve(request)

    def authorize(
        self,
        identity: Identity,
        capability: "str | Capability",
        path: str | None,
    ) -> AuthorizationResult:
        """Decide whether ``identity`` may use ``capability`` on ``path``."""
        return authorize(identity, capability, path)

    def require(
        self,
        context: RequestContext,
        capability: "str | Capability",
        request: RequestView,
    ) -> AuthorizationResult:
        """Guard a request: capability on the request's target path.

        The target path is the ``path`` form field, falling back to the
        ``path`` query parameter.

        Raises
        ------
        PermissionDeniedError
            With the denial reason, for the host layer to turn into a 403.
        """
        result = authorize(context.identity, capability, request.target_path())
        if not result.allowed:
            logger.info(
                "Request denied: user=%s method=%s uri=%s reason=%s",
                context.acting_username,
                request.method,
                request.path,
                result.reason,
            )
            raise PermissionDeniedError(result)
        return result

    def authorize_file_action(
        self,
        context: RequestContext,
        action: "str | FileAction",
        path: str | None,
        *,
        is_dir: bool,
        name: str | None = None,
        new_name: str | None = None,
    ) -> AuthorizationResult:
        """Authorize a file-browser action for the request's identity."""
        return authorize_file_action(
            context.identity,
            action,
            path,
            is_dir=is_dir,
            name=name,
            new_name=new_name,
        )

    # ------------------------------------------------------------------
    # Tokens and sessions
    # ------------------------------------------------------------------

    def issue(self, username: str) -> str:
        """Issue a token for a registered identity."""
        return self._sessions.issue(username)

    def verify(self, token: str) -> SessionClaims:
        """Verify a token and return its claims."""
        return self._codec.verify(token)

    def login(self, username: str, secret: str) -> LoginResult:
        return self._sessions.login(username, secret)

    def logout(self, request: RequestView) -> LogoutResult:
        return self._sessions.logout(request)

    def __repr__(self) -> str:
        return f"FileGate(identities={len(self._directory)}, codec={self._codec!r})"
