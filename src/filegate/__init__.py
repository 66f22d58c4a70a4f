"""filegate: access control and session authentication for a web file browser.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import filegate
>>> filegate.__version__
'0.1.0'
>>> alice = filegate.Identity.build(
...     "alice",
...     capabilities=["file:view"],
...     allow_paths=["/public"],
...     block_paths=["/public/secret"],
... )
>>> filegate.authorize(alice, "file:view", "/public/readme.txt").allowed
True
>>> filegate.authorize(alice, "file:view", "/public/secret/x").allowed
False
"""
from __future__ import annotations

__version__: str = "0.1.0"

# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------
from filegate.errors import (
    AuthenticationError,
    ConfigError,
    CredentialMismatchError,
    FileGateError,
    IdentityNotFoundError,
    KeyGenerationError,
    PermissionDeniedError,
    TokenError,
    TokenExpiredError,
    TokenInvalidSignatureError,
    TokenMalformedError,
    UnsupportedActionError,
)

# ---------------------------------------------------------------------------
# Permissions
# ---------------------------------------------------------------------------
from filegate.permissions import (
    AuthorizationResult,
    Capability,
    FileAction,
    PathScope,
    PermissionSet,
    Role,
    authorize,
    authorize_file_action,
    match_path_pattern,
    normalize_path,
    path_scope_allowed,
    require,
    required_capability,
)

# ---------------------------------------------------------------------------
# Identities
# ---------------------------------------------------------------------------
from filegate.identity import (
    GUEST_NAME,
    Identity,
    IdentityDirectory,
    get_digest,
    guest_identity,
)

# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------
from filegate.session import (
    CookieDirective,
    IdentityResolver,
    KeyPair,
    LoginResult,
    LogoutResult,
    RequestContext,
    RequestView,
    SessionClaims,
    SessionService,
    TokenCodec,
    extract_token,
)

# ---------------------------------------------------------------------------
# Configuration and facade
# ---------------------------------------------------------------------------
from filegate.config import ConfigLoader, FileGateConfig
from filegate.gate import FileGate

__all__ = [
    "__version__",
    "FileGate",
    # Errors
    "AuthenticationError",
    "ConfigError",
    "CredentialMismatchError",
    "FileGateError",
    "IdentityNotFoundError",
    "KeyGenerationError",
    "PermissionDeniedError",
    "TokenError",
    "TokenExpiredError",
    "TokenInvalidSignatureError",
    "TokenMalformedError",
    "UnsupportedActionError",
    # Permissions
    "AuthorizationResult",
    "Capability",
    "FileAction",
    "PathScope",
    "PermissionSet",
    "Role",
    "authorize",
    "authorize_file_action",
    "match_path_pattern",
    "normalize_path",
    "path_scope_allowed",
    "require",
    "required_capability",
    # Identities
    "GUEST_NAME",
    "Identity",
    "IdentityDirectory",
    "get_digest",
    "guest_identity",
    # Sessions
    "CookieDirective",
    "IdentityResolver",
    "KeyPair",
    "LoginResult",
    "LogoutResult",
    "RequestContext",
    "RequestView",
    "SessionClaims",
    "SessionService",
    "TokenCodec",
    "extract_token",
    # Configuration
    "ConfigLoader",
    "FileGateConfig",
]
