"""Session tokens, request identity resolution and login/logout."""
from __future__ import annotations

from filegate.session.keys import KeyPair, SUPPORTED_ALGORITHMS
from filegate.session.login import (
    CookieDirective,
    LoginResult,
    LogoutResult,
    SessionService,
)
from filegate.session.middleware import (
    IdentityResolver,
    RequestContext,
    RequestView,
    extract_token,
)
from filegate.session.token_codec import SessionClaims, TokenCodec, utcnow

__all__ = [
    # Keys and tokens
    "KeyPair",
    "SUPPORTED_ALGORITHMS",
    "SessionClaims",
    "TokenCodec",
    "utcnow",
    # Request resolution
    "IdentityResolver",
    "RequestContext",
    "RequestView",
    "extract_token",
    # Login
    "CookieDirective",
    "LoginResult",
    "LogoutResult",
    "SessionService",
]
