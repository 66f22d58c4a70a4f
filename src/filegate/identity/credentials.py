"""Credential digest functions.

Stored identities carry a hex digest of their login secret.  The digest
function is chosen by name in configuration; ``sha256`` is the default.

Example
-------
>>> digest = get_digest("sha256")
>>> stored = digest("s3cret")
>>> verify_secret(digest, "s3cret", stored)
True
"""
from __future__ import annotations

import hashlib
import hmac
from typing import Callable

DigestFunction = Callable[[str], str]

DEFAULT_DIGEST = "sha256"


def sha256_hex(secret: str) -> str:
    """Hex SHA-256 of the UTF-8 secret."""
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()


def sha512_hex(secret: str) -> str:
    return hashlib.sha512(secret.encode("utf-8")).hexdigest()


def sha3_256_hex(secret: str) -> str:
    return hashlib.sha3_256(secret.encode("utf-8")).hexdigest()


def blake2b_hex(secret: str) -> str:
    return hashlib.blake2b(secret.encode("utf-8")).hexdigest()


_DIGESTS: dict[str, DigestFunction] = {
    "sha256": sha256_hex,
    "sha512": sha512_hex,
    "sha3_256": sha3_256_hex,
    "blake2b": blake2b_hex,
}


def available_digests() -> list[str]:
    """Return the names accepted by :func:`get_digest`."""
    return sorted(_DIGESTS)


def get_digest(name: str) -> DigestFunction:
    """Return the digest function registered under ``name``.

    Raises
    ------
    ValueError
        If ``name`` is not a known digest.
    """
    try:
        return _DIGESTS[name.strip().lower()]
    except KeyError:
        raise ValueError(
            f"Unknown digest {name!r}. Available: {available_digests()}."
        ) from None


def verify_secret(digest: DigestFunction, secret: str, stored_digest: str) -> bool:
    """Return True if ``digest(secret)`` equals ``stored_digest``.

    Comparison is constant-time and case-insensitive on the hex text.
    An empty stored digest never verifies.
    """
    if not stored_digest:
        return False
    candidate = digest(secret).lower().encode("utf-8")
    return hmac.compare_digest(candidate, stored_digest.strip().lower().encode("utf-8"))
