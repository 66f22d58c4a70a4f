"""Capabilities, roles and per-identity permission sets.

A capability is a named permission unit such as ``file:edit``.  The set
is closed: configuration naming any other string is rejected.  The
``admin`` role short-circuits every capability check.

Example
-------
::

    perms = PermissionSet.from_names("user", ["file:view", "dir:view"])
    assert perms.has(Capability.FILE_VIEW)
    assert not perms.has(Capability.DIR_UPLOAD)
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable


class Capability(str, Enum):
    """Closed enumeration of capabilities."""

    FILE_VIEW = "file:view"
    FILE_DOWNLOAD = "file:download"
    FILE_EDIT = "file:edit"
    FILE_DELETE = "file:delete"
    FILE_RENAME = "file:rename"
    DIR_VIEW = "dir:view"
    DIR_CREATE = "dir:create"
    DIR_UPLOAD = "dir:upload"
    DIR_DELETE = "dir:delete"
    DIR_RENAME = "dir:rename"

    @classmethod
    def parse(cls, value: "str | Capability") -> "Capability":
        """Return the capability named by ``value``.

        Raises
        ------
        ValueError
            If ``value`` is not one of the known capability strings.
        """
        if isinstance(value, Capability):
            return value
        try:
            return cls(str(value).strip())
        except ValueError:
            known = ", ".join(c.value for c in cls)
            raise ValueError(
                f"Unknown capability {value!r}. Known capabilities: {known}."
            ) from None

    def __str__(self) -> str:
        return self.value


class Role(str, Enum):
    """Identity role.  ``ADMIN`` bypasses all capability and path checks."""

    ADMIN = "admin"
    USER = "user"

    @classmethod
    def parse(cls, value: "str | Role") -> "Role":
        if isinstance(value, Role):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(
                f"Unknown role {value!r}. Valid roles: {[r.value for r in cls]}."
            ) from None

    def __str__(self) -> str:
        return self.value


ALL_CAPABILITIES: frozenset[Capability] = frozenset(Capability)

GUEST_CAPABILITIES: frozenset[Capability] = frozenset(
    [Capability.FILE_VIEW, Capability.DIR_VIEW]
)


@dataclass(frozen=True)
class PermissionSet:
    """Role plus the set of capabilities held by one identity.

    Attributes
    ----------
    role:
        The identity's role.
    capabilities:
        Unordered, unique capabilities.  Ignored for admins.
    """

    role: Role = Role.USER
    capabilities: frozenset[Capability] = field(default_factory=frozenset)

    @classmethod
    def from_names(
        cls,
        role: "str | Role",
        capabilities: Iterable["str | Capability"],
    ) -> PermissionSet:
        """Build a PermissionSet from plain strings, validating each one."""
        return cls(
            role=Role.parse(role),
            capabilities=frozenset(Capability.parse(c) for c in capabilities),
        )

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

    def has(self, capability: "str | Capability") -> bool:
        """Return True if this set grants ``capability``."""
        if self.is_admin:
            return True
        return Capability.parse(capability) in self.capabilities

    def names(self) -> list[str]:
        """Return the capability strings in sorted order."""
        return sorted(c.value for c in self.capabilities)
