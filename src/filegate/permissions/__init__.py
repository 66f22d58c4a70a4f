"""Capability and path-scope permission model.

Example
-------
::

    from filegate.identity import Identity
    from filegate.permissions import authorize

    bob = Identity.build("bob", capabilities=["file:view"], allow_paths=["/docs"])
    result = authorize(bob, "file:view", "/docs/a.txt")
    assert result.allowed
"""
from __future__ import annotations

from filegate.permissions.authorizer import AuthorizationResult, authorize, require
from filegate.permissions.capability import (
    ALL_CAPABILITIES,
    GUEST_CAPABILITIES,
    Capability,
    PermissionSet,
    Role,
)
from filegate.permissions.file_actions import (
    FileAction,
    authorize_file_action,
    required_capability,
)
from filegate.permissions.path_scope import (
    PathScope,
    match_path_pattern,
    normalize_path,
    path_scope_allowed,
)

__all__ = [
    # Core types
    "ALL_CAPABILITIES",
    "GUEST_CAPABILITIES",
    "Capability",
    "PermissionSet",
    "Role",
    # Path scope
    "PathScope",
    "match_path_pattern",
    "normalize_path",
    "path_scope_allowed",
    # Decisions
    "AuthorizationResult",
    "authorize",
    "require",
    # File actions
    "FileAction",
    "authorize_file_action",
    "required_capability",
]
