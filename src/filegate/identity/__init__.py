"""Identities, the guest fallback, credential digests and the directory."""
from __future__ import annotations

from filegate.identity.credentials import (
    DEFAULT_DIGEST,
    DigestFunction,
    available_digests,
    get_digest,
    sha256_hex,
    verify_secret,
)
from filegate.identity.directory import IdentityDirectory
from filegate.identity.models import GUEST_NAME, Identity, guest_identity

__all__ = [
    "DEFAULT_DIGEST",
    "DigestFunction",
    "GUEST_NAME",
    "Identity",
    "IdentityDirectory",
    "available_digests",
    "get_digest",
    "guest_identity",
    "sha256_hex",
    "verify_secret",
]
