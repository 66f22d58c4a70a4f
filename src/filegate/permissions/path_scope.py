"""Allow/block path-scope patterns for identities.

Patterns and candidate paths are normalized the same way and compared on
whole path segments: the pattern ``/docs`` matches ``/docs`` and
``/docs/a`` but never ``/documents``.  The root pattern ``/`` is a prefix
of every path and therefore matches the whole tree.

Block patterns are evaluated before allow patterns; a path that matches
no allow pattern is denied.

Example
-------
::

    scope = PathScope.from_patterns(allow=["/public"], block=["/public/secret"])
    assert scope.is_allowed("/public/readme.txt")
    assert not scope.is_allowed("/public/secret/x")
    assert not scope.is_allowed("/publication")
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from filegate.identity.models import Identity

logger = logging.getLogger(__name__)

ROOT = "/"


def normalize_path(path: str | None) -> str:
    """Return the canonical form of ``path``.

    Backslashes count as separators, repeated separators collapse, ``.``
    segments are dropped and ``..`` pops the previous segment without
    climbing above the root.  The result has exactly one leading slash and
    no trailing slash unless it is the root itself.

    Examples
    --------
    >>> normalize_path("docs//a/")
    '/docs/a'
    >>> normalize_path("/a/../../b")
    '/b'
    >>> normalize_path("")
    '/'
    """
    if not path:
        return ROOT
    segments: list[str] = []
    for part in path.replace("\\", "/").split("/"):
        if part in ("", "."):
            continue
        if part == "..":
            if segments:
                segments.pop()
            continue
        segments.append(part)
    return ROOT + "/".join(segments)


def join_path(parent: str, name: str) -> str:
    """Join ``name`` onto ``parent`` and normalize the result."""
    return normalize_path(f"{normalize_path(parent)}/{name}")


def parent_path(path: str) -> str:
    """Return the normalized parent of ``path``; the root is its own parent."""
    normalized = normalize_path(path)
    if normalized == ROOT:
        return ROOT
    head, _, _ = normalized.rpartition("/")
    return head or ROOT


def match_path_pattern(pattern: str, path: str) -> bool:
    """Return True if ``pattern`` covers ``path`` on segment boundaries."""
    normalized_pattern = normalize_path(pattern)
    normalized_path = normalize_path(path)
    if normalized_pattern == ROOT:
        return True
    if normalized_path == normalized_pattern:
        return True
    return normalized_path.startswith(normalized_pattern + "/")


@dataclass(frozen=True)
class PathScope:
    """Ordered allow and block pattern lists for one identity.

    Attributes
    ----------
    allow:
        Normalized patterns defining the subtrees the identity may use.
    block:
        Normalized patterns carved out of ``allow``.  Always wins.
    """

    allow: tuple[str, ...] = ()
    block: tuple[str, ...] = ()

    @classmethod
    def from_patterns(
        cls,
        allow: Iterable[str] = (),
        block: Iterable[str] = (),
    ) -> PathScope:
        """Build a scope, normalizing every pattern."""
        return cls(
            allow=tuple(normalize_path(p) for p in allow),
            block=tuple(normalize_path(p) for p in block),
        )

    def matching_block(self, path: str) -> str | None:
        """Return the first block pattern covering ``path``, if any."""
        for pattern in self.block:
            if match_path_pattern(pattern, path):
                return pattern
        return None

    def matching_allow(self, path: str) -> str | None:
        """Return the first allow pattern covering ``path``, if any."""
        for pattern in self.allow:
            if match_path_pattern(pattern, path):
                return pattern
        return None

    def is_blocked(self, path: str) -> bool:
        return self.matching_block(path) is not None

    def is_allowed(self, path: str) -> bool:
        """Return True if ``path`` is inside the scope and not blocked."""
        if self.is_blocked(path):
            return False
        return self.matching_allow(path) is not None


def path_scope_allowed(identity: "Identity", path: str) -> bool:
    """Return True if ``identity`` may operate on ``path``.

    Admins are always allowed.  Otherwise block patterns are checked
    first, then allow patterns, then the default is to deny.
    """
    if identity.is_admin:
        return True
    allowed = identity.scope.is_allowed(path)
    logger.debug(
        "Path scope %s: identity=%s path=%s",
        "ALLOW" if allowed else "DENY",
        identity.name,
        normalize_path(path),
    )
    return allowed
