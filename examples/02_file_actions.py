#!/usr/bin/env python3
"""Example: File-browser actions with filegate

Maps browser actions (view, upload, rename, ...) onto capabilities and
checks both the source path and the destination path.

Usage:
    python examples/02_file_actions.py

Requirements:
    pip install filegate
"""
from __future__ import annotations

import filegate as fg


def main() -> None:
    editor = fg.Identity.build(
        "editor",
        capabilities=["dir:view", "dir:create", "dir:upload", "file:view", "file:rename"],
        allow_paths=["/team"],
        block_paths=["/team/archive"],
    )

    actions = [
        ("view", "/team", True, {}),
        ("create", "/team", True, {"name": "drafts"}),
        ("upload", "/team/drafts", True, {"name": "notes.md"}),
        ("rename", "/team/notes.md", False, {"new_name": "notes-v2.md"}),
        ("delete", "/team/notes.md", False, {}),
        ("create", "/team/archive", True, {"name": "old"}),
    ]

    print("File action checks:")
    for action, path, is_dir, extra in actions:
        try:
            result = fg.authorize_file_action(editor, action, path, is_dir=is_dir, **extra)
        except fg.UnsupportedActionError as exc:
            print(f"  [ERROR] {action} {path}: {exc}")
            continue
        icon = "ALLOW" if result.allowed else "DENY"
        print(f"  [{icon}] {action:<7} {path:<20} {result.reason}")

    print("\nCapability required to upload into a directory:")
    print(f"  {fg.required_capability('upload', is_dir=True)}")


if __name__ == "__main__":
    main()
