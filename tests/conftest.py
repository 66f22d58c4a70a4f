"""Shared fixtures for the filegate test suite."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from filegate.identity.credentials import sha256_hex
from filegate.identity.directory import IdentityDirectory
from filegate.identity.models import Identity
from filegate.session.keys import KeyPair

ALICE_PASSWORD = "wonderland"
ADMIN_PASSWORD = "root-pass"


class FixedClock:
    """Manually advanced clock for expiry tests."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture(scope="session")
def rsa_pair() -> KeyPair:
    return KeyPair.generate("RS256")


@pytest.fixture(scope="session")
def other_rsa_pair() -> KeyPair:
    return KeyPair.generate("RS256")


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture()
def alice() -> Identity:
    return Identity.build(
        "alice",
        credential_digest=sha256_hex(ALICE_PASSWORD),
        capabilities=["file:view"],
        allow_paths=["/public"],
        block_paths=["/public/secret"],
    )


@pytest.fixture()
def admin() -> Identity:
    return Identity.build(
        "root",
        credential_digest=sha256_hex(ADMIN_PASSWORD),
        role="admin",
    )


@pytest.fixture()
def directory(alice: Identity, admin: Identity) -> IdentityDirectory:
    return IdentityDirectory([alice, admin])
