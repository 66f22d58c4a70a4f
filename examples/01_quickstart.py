#!/usr/bin/env python3
"""Example: Quickstart for filegate

Minimal working example: declare two users, log one in, and authorize
requests carrying the issued session cookie.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install filegate
"""
from __future__ import annotations

import filegate as fg


def main() -> None:
    print(f"filegate version: {fg.__version__}")

    # Step 1: Build the gate from an inline configuration
    config = fg.ConfigLoader().load_dict({
        "users": [
            {
                "name": "alice",
                "password_digest": fg.get_digest("sha256")("wonderland"),
                "capabilities": ["dir:view", "file:view", "file:download"],
                "allow_paths": ["/public"],
                "block_paths": ["/public/secret"],
            },
        ]
    })
    gate = fg.FileGate.from_config(config)
    print(f"Gate ready: {gate.directory.names()}")

    # Step 2: Log in and keep the cookie
    login = gate.login("alice", "wonderland")
    print(f"\nSet-Cookie: {login.cookie.to_header()[:60]}...")

    # Step 3: Authorize requests that carry the cookie
    paths = ["/public/readme.txt", "/public/secret/plan.txt", "/private/x"]
    print("\nDownload checks:")
    for path in paths:
        request = fg.RequestView(
            path="/api/download",
            cookies={login.cookie.name: login.cookie.value},
            query={"path": path},
        )
        context = gate.resolve_identity(request)
        try:
            gate.require(context, fg.Capability.FILE_DOWNLOAD, request)
            print(f"  [ALLOW] {context.acting_username} {path}")
        except fg.PermissionDeniedError as exc:
            print(f"  [DENY]  {context.acting_username} {path}: {exc}")

    # Step 4: Log out and fall back to guest
    logout = gate.logout(fg.RequestView(cookies={login.cookie.name: login.cookie.value}))
    print(f"\nLogged out {logout.username}; now acting as {logout.context.acting_username}")
    print(f"Set-Cookie: {logout.cookie.to_header()}")


if __name__ == "__main__":
    main()
