"""Exception hierarchy for filegate.

Token failures (``TokenError`` and subclasses) are handled inside the
identity resolver and collapse to the guest identity.  Only
``PermissionDeniedError``, ``IdentityNotFoundError`` and
``CredentialMismatchError`` are meant to reach an end user.
"""
from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from filegate.permissions.authorizer import AuthorizationResult


class FileGateError(Exception):
    """Base class for every error raised by filegate."""


# ---------------------------------------------------------------------------
# Session tokens
# ---------------------------------------------------------------------------


class TokenError(FileGateError):
    """Base class for session token verification failures.

    Attributes
    ----------
    status:
        Short machine-readable tag recorded on the request context.
    """

    status: str = "invalid"


class TokenMalformedError(TokenError):
    """The token cannot be parsed into a valid claim set."""

    status = "malformed"


class TokenInvalidSignatureError(TokenError):
    """The token signature does not verify against the public key."""

    status = "invalid_signature"


class TokenExpiredError(TokenError):
    """The token's ``exp`` claim is not in the future."""

    status = "expired"


class KeyGenerationError(FileGateError):
    """Raised when the signing key pair cannot be generated or loaded."""


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------


class AuthenticationError(FileGateError):
    """Base class for login failures.

    Attributes
    ----------
    username:
        The username supplied with the failed attempt.
    """

    def __init__(self, username: str, message: str) -> None:
        self.username = username
        super().__init__(message)


class IdentityNotFoundError(AuthenticationError):
    """Login or token issuance for a name that is not in the directory."""

    def __init__(self, username: str) -> None:
        super().__init__(username, "Account does not exist or the username is wrong.")


class CredentialMismatchError(AuthenticationError):
    """Login with a secret whose digest does not match the stored one."""

    def __init__(self, username: str) -> None:
        super().__init__(username, "Incorrect password.")


# ---------------------------------------------------------------------------
# Authorization
# ---------------------------------------------------------------------------


class PermissionDeniedError(FileGateError):
    """Raised when a capability or path check fails.

    Attributes
    ----------
    result:
        The denying :class:`~filegate.permissions.authorizer.AuthorizationResult`.
    status_code:
        HTTP status the host layer should reply with.
    """

    status_code: int = 403

    def __init__(self, result: "AuthorizationResult") -> None:
        self.result = result
        super().__init__(result.reason)


class UnsupportedActionError(FileGateError, ValueError):
    """Raised for an unknown file action or one invalid for the target kind."""

    status_code: int = 400


class ConfigError(FileGateError, ValueError):
    """Raised when a filegate configuration is malformed or invalid.

    Attributes
    ----------
    config_path:
        The path to the config file that caused the error, if known.
    """

    def __init__(self, message: str, config_path: str | None = None) -> None:
        self.config_path = config_path
        prefix = f"[{config_path}] " if config_path else ""
        super().__init__(f"{prefix}{message}")
