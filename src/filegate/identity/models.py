"""Identity value type and the distinguished guest identity."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from filegate.permissions.capability import (
    GUEST_CAPABILITIES,
    Capability,
    PermissionSet,
    Role,
)
from filegate.permissions.path_scope import PathScope

GUEST_NAME = "guest"


@dataclass(frozen=True)
class Identity:
    """An immutable, fully resolved user.

    Attributes
    ----------
    name:
        Unique identifier, also the ``sub`` claim of its session tokens.
    credential_digest:
        Stored digest of the login secret.  Never the plaintext.
    permissions:
        Role and capability set.
    scope:
        Allow/block path patterns.
    """

    name: str
    credential_digest: str = ""
    permissions: PermissionSet = field(default_factory=PermissionSet)
    scope: PathScope = field(default_factory=PathScope)

    @classmethod
    def build(
        cls,
        name: str,
        *,
        credential_digest: str = "",
        role: "str | Role" = Role.USER,
        capabilities: Iterable["str | Capability"] = (),
        allow_paths: Iterable[str] = (),
        block_paths: Iterable[str] = (),
    ) -> Identity:
        """Build an identity from plain values, validating names and patterns."""
        if not name or not name.strip():
            raise ValueError("Identity name must not be empty.")
        return cls(
            name=name.strip(),
            credential_digest=credential_digest,
            permissions=PermissionSet.from_names(role, capabilities),
            scope=PathScope.from_patterns(allow_paths, block_paths),
        )

    @property
    def role(self) -> Role:
        return self.permissions.role

    @property
    def capabilities(self) -> frozenset[Capability]:
        return self.permissions.capabilities

    @property
    def is_admin(self) -> bool:
        return self.permissions.is_admin

    def can(self, capability: "str | Capability") -> bool:
        """Return True if the identity holds ``capability``."""
        return self.permissions.has(capability)

    def may_access(self, path: str) -> bool:
        """Return True if ``path`` is inside the identity's path scope."""
        if self.is_admin:
            return True
        return self.scope.is_allowed(path)

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return (
            f"Identity(name={self.name!r}, role={self.role.value!r}, "
            f"capabilities={self.permissions.names()!r})"
        )


def guest_identity(
    capabilities: Iterable["str | Capability"] | None = None,
    allow_paths: Iterable[str] = ("/",),
    block_paths: Iterable[str] = (),
) -> Identity:
    """Return the unauthenticated guest identity.

    The guest is view-only over the whole tree by default.  Callers may
    narrow or widen its capabilities and scope, but it can never be an
    admin and it has no credential.
    """
    caps = GUEST_CAPABILITIES if capabilities is None else capabilities
    return Identity.build(
        GUEST_NAME,
        role=Role.USER,
        capabilities=caps,
        allow_paths=allow_paths,
        block_paths=block_paths,
    )

