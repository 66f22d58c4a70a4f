"""Capability requirements for file-browser actions.

Maps a requested action and the kind of its target (file or directory)
to the capability it needs, and checks the destination path of actions
that create a new name (``create``, ``upload``, ``rename``).

============  ==================  ================
action        directory target    file target
============  ==================  ================
view          dir:view            file:view
download      (rejected)          file:download
edit          (rejected)          file:edit
create        dir:create          dir:upload
upload        dir:upload          (rejected)
delete        dir:delete          file:delete
rename        dir:rename          file:rename
============  ==================  ================

For ``create`` the "directory target" column applies when the new entry
is a directory (``is_dir=True``); creating a plain file needs the upload
capability on the containing directory.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

from filegate.errors import UnsupportedActionError
from filegate.permissions.authorizer import AuthorizationResult, authorize
from filegate.permissions.capability import Capability
from filegate.permissions.path_scope import join_path, parent_path

if TYPE_CHECKING:
    from filegate.identity.models import Identity

logger = logging.getLogger(__name__)


class FileAction(str, Enum):
    """Actions a file-browser client may request."""

    VIEW = "view"
    DOWNLOAD = "download"
    EDIT = "edit"
    CREATE = "create"
    UPLOAD = "upload"
    DELETE = "delete"
    RENAME = "rename"

    @classmethod
    def parse(cls, value: "str | FileAction") -> "FileAction":
        if isinstance(value, FileAction):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise UnsupportedActionError(f"Unknown action {value!r}.") from None


# (directory capability, file capability); None marks an invalid combination.
_CAPABILITY_TABLE: dict[FileAction, tuple[Capability | None, Capability | None]] = {
    FileAction.VIEW: (Capability.DIR_VIEW, Capability.FILE_VIEW),
    FileAction.DOWNLOAD: (None, Capability.FILE_DOWNLOAD),
    FileAction.EDIT: (None, Capability.FILE_EDIT),
    FileAction.CREATE: (Capability.DIR_CREATE, Capability.DIR_UPLOAD),
    FileAction.UPLOAD: (Capability.DIR_UPLOAD, None),
    FileAction.DELETE: (Capability.DIR_DELETE, Capability.FILE_DELETE),
    FileAction.RENAME: (Capability.DIR_RENAME, Capability.FILE_RENAME),
}


def required_capability(action: "str | FileAction", is_dir: bool) -> Capability:
    """Return the capability ``action`` needs on a file or directory target.

    Raises
    ------
    UnsupportedActionError
        For unknown actions and for combinations such as editing a
        directory or downloading one.
    """
    parsed = FileAction.parse(action)
    dir_capability, file_capability = _CAPABILITY_TABLE[parsed]
    capability = dir_capability if is_dir else file_capability
    if capability is None:
        kind = "a directory" if is_dir else "a file"
        raise UnsupportedActionError(f"Cannot {parsed.value} {kind}.")
    return capability


def validate_entry_name(name: str | None) -> str:
    """Return ``name`` if it is a single, non-empty path segment.

    Raises
    ------
    UnsupportedActionError
        If ``name`` is empty, ``.``/``..`` or contains a separator.
    """
    if name is None or not name.strip():
        raise UnsupportedActionError("Name must not be empty.")
    stripped = name.strip()
    if stripped in (".", "..") or "/" in stripped or "\\" in stripped:
        raise UnsupportedActionError(f"Invalid name {name!r}.")
    return stripped


def authorize_file_action(
    identity: "Identity",
    action: "str | FileAction",
    path: str | None,
    *,
    is_dir: bool,
    name: str | None = None,
    new_name: str | None = None,
) -> AuthorizationResult:
    """Authorize a file-browser action, including its destination path.

    Parameters
    ----------
    identity:
        The acting identity.
    action:
        The requested :class:`FileAction` (or its string value).
    path:
        The target path.  For ``create``/``upload`` this is the containing
        directory; for the others it is the entry itself.
    is_dir:
        Whether the target (or, for ``create``, the new entry) is a
        directory.
    name:
        Name of the entry being created or uploaded.  When given, the
        child path is also checked against the path scope.
    new_name:
        Required for ``rename``; the sibling path is checked as well.

    Returns
    -------
    AuthorizationResult
        The first denial encountered, or the allow result for ``path``.

    Raises
    ------
    UnsupportedActionError
        For invalid action/target combinations or invalid names.
    """
    parsed = FileAction.parse(action)
    capability = required_capability(parsed, is_dir)

    destination: str | None = None
    if parsed in (FileAction.CREATE, FileAction.UPLOAD):
        if parsed is FileAction.CREATE or name is not None:
            destination = join_path(path or "/", validate_entry_name(name))
    elif parsed is FileAction.RENAME:
        destination = join_path(parent_path(path or "/"), validate_entry_name(new_name))

    result = authorize(identity, capability, path)
    if not result.allowed or destination is None:
        return result

    destination_result = authorize(identity, capability, destination)
    if not destination_result.allowed:
        logger.debug(
            "File action %s denied at destination %s for %s",
            parsed.value,
            destination,
            identity.name,
        )
    return destination_result
