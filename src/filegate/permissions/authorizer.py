"""Authorization engine: capability plus path scope in one decision.

``authorize`` is the single decision function every protected operation
consults.  It is a pure function of the identity, capability and path, so
it can be called from any number of request threads without locking.

Decision order
--------------
1. ``role == admin`` → allow.
2. Capability not held → deny (``denial="capability"``).
3. Path blocked or outside every allow pattern → deny (``denial="path"``).
4. Otherwise → allow.

Example
-------
::

    alice = Identity.build(
        "alice",
        capabilities=["file:view"],
        allow_paths=["/public"],
        block_paths=["/public/secret"],
    )
    assert authorize(alice, "file:view", "/public/readme.txt")
    assert not authorize(alice, "file:view", "/public/secret/x")
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from filegate.errors import PermissionDeniedError
from filegate.permissions.capability import Capability
from filegate.permissions.path_scope import normalize_path

if TYPE_CHECKING:
    from filegate.identity.models import Identity

logger = logging.getLogger(__name__)

DenialKind = Literal["capability", "path"]


@dataclass(frozen=True)
class AuthorizationResult:
    """Immutable outcome of an authorization check.

    Attributes
    ----------
    allowed:
        Whether the operation may proceed.
    reason:
        Human-readable explanation, suitable for a rejection body.
    identity:
        Name of the identity that was checked.
    capability:
        The capability that was required.
    path:
        The normalized path that was checked.
    denial:
        ``"capability"`` or ``"path"`` for denials, ``None`` when allowed.
    matched_pattern:
        The allow or block pattern that decided a path check, if any.
    """

    allowed: bool
    reason: str
    identity: str
    capability: Capability
    path: str
    denial: DenialKind | None = None
    matched_pattern: str | None = None

    def __bool__(self) -> bool:
        """Return True if the operation is allowed."""
        return self.allowed


def authorize(
    identity: "Identity",
    capability: "str | Capability",
    path: str | None,
) -> AuthorizationResult:
    """Decide whether ``identity`` may use ``capability`` on ``path``.

    Parameters
    ----------
    identity:
        The acting identity, already resolved for the request.
    capability:
        Capability required by the operation.
    path:
        Target path in the virtual tree.  ``None`` or ``""`` means the root.

    Returns
    -------
    AuthorizationResult

    Raises
    ------
    ValueError
        If ``capability`` is not a known capability string.
    """
    required = Capability.parse(capability)
    normalized = normalize_path(path)

    if identity.is_admin:
        return AuthorizationResult(
            allowed=True,
            reason="Admin role bypasses all checks.",
            identity=identity.name,
            capability=required,
            path=normalized,
        )

    if required not in identity.capabilities:
        logger.debug(
            "Authorization DENY (capability): identity=%s capability=%s path=%s",
            identity.name,
            required.value,
            normalized,
        )
        return AuthorizationResult(
            allowed=False,
            reason=f"Insufficient permission: '{required.value}' is required.",
            identity=identity.name,
            capability=required,
            path=normalized,
            denial="capability",
        )

    blocked_by = identity.scope.matching_block(normalized)
    if blocked_by is not None:
        logger.debug(
            "Authorization DENY (blocked): identity=%s path=%s pattern=%s",
            identity.name,
            normalized,
            blocked_by,
        )
        return AuthorizationResult(
            allowed=False,
            reason=f"No permission to access path '{normalized}'.",
            identity=identity.name,
            capability=required,
            path=normalized,
            denial="path",
            matched_pattern=blocked_by,
        )

    allowed_by = identity.scope.matching_allow(normalized)
    if allowed_by is None:
        logger.debug(
            "Authorization DENY (out of scope): identity=%s path=%s",
            identity.name,
            normalized,
        )
        return AuthorizationResult(
            allowed=False,
            reason=f"No permission to access path '{normalized}'.",
            identity=identity.name,
            capability=required,
            path=normalized,
            denial="path",
        )

    logger.debug(
        "Authorization ALLOW: identity=%s capability=%s path=%s pattern=%s",
        identity.name,
        required.value,
        normalized,
        allowed_by,
    )
    return AuthorizationResult(
        allowed=True,
        reason="Allowed.",
        identity=identity.name,
        capability=required,
        path=normalized,
        matched_pattern=allowed_by,
    )


def require(
    identity: "Identity",
    capability: "str | Capability",
    path: str | None,
) -> AuthorizationResult:
    """Like :func:`authorize` but raise on denial.

    Raises
    ------
    PermissionDeniedError
        When the decision is a denial.
    """
    result = authorize(identity, capability, path)
    if not result.allowed:
        raise PermissionDeniedError(result)
    return result
