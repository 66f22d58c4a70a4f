"""CLI entry point for filegate.

Invoked as::

    filegate [OPTIONS] COMMAND [ARGS]...

or during development::

    python -m filegate.cli.main

Commands
--------
- version        Show version information
- hash-password  Print the credential digest of a password
- keygen         Write a PEM signing key pair
- check          Evaluate a capability/path decision for a configured user
- issue-token    Issue a session token for a configured user
- verify-token   Verify a session token and show its claims
"""
from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from filegate.errors import (
    ConfigError,
    FileGateError,
    IdentityNotFoundError,
    KeyGenerationError,
    TokenError,
)
from filegate.session.keys import DEFAULT_ALGORITHM, SUPPORTED_ALGORITHMS

if TYPE_CHECKING:
    from filegate.config import FileGateConfig
    from filegate.gate import FileGate

console = Console()
err_console = Console(stderr=True)

_DEFAULT_CONFIG = Path("filegate.yaml")


def _load_config(config_path: str) -> "FileGateConfig":
    from filegate.config import ConfigLoader

    try:
        return ConfigLoader().load(Path(config_path))
    except ConfigError as exc:
        err_console.print(f"[red]Invalid configuration:[/red] {escape(str(exc))}")
        sys.exit(2)


def _load_gate(config: "FileGateConfig") -> "FileGate":
    from filegate.gate import FileGate

    try:
        return FileGate.from_config(config)
    except KeyGenerationError as exc:
        err_console.print(f"[red]Signing key setup failed:[/red] {escape(str(exc))}")
        sys.exit(2)


# ---------------------------------------------------------------------------
# Root command group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="filegate")
def cli() -> None:
    """filegate CLI: credential digests, signing keys, tokens and permission checks."""


# ---------------------------------------------------------------------------
# version
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from filegate import __version__

    console.print(
        Panel(
            f"[bold]filegate[/bold]  v[cyan]{__version__}[/cyan]\n"
            "Access control and session authentication for a web file browser.",
            title="Version",
            border_style="blue",
        )
    )


# ---------------------------------------------------------------------------
# hash-password
# ---------------------------------------------------------------------------


@cli.command(name="hash-password")
@click.argument("password")
@click.option(
    "--digest",
    "-d",
    "digest_name",
    default="sha256",
    show_default=True,
    help="Digest function name (sha256, sha512, sha3_256, blake2b).",
)
def hash_password_command(password: str, digest_name: str) -> None:
    """Print the digest of PASSWORD for a user's password_digest entry."""
    from filegate.identity.credentials import get_digest

    try:
        digest = get_digest(digest_name)
    except ValueError as exc:
        err_console.print(f"[red]{escape(str(exc))}[/red]")
        sys.exit(2)
    click.echo(digest(password))


# ---------------------------------------------------------------------------
# keygen
# ---------------------------------------------------------------------------


@cli.command(name="keygen")
@click.option(
    "--out-dir",
    "-o",
    type=click.Path(file_okay=False),
    default="keys",
    show_default=True,
    help="Directory to write private.pem and public.pem into.",
)
@click.option(
    "--algorithm",
    "-a",
    type=click.Choice(sorted(SUPPORTED_ALGORITHMS)),
    default=DEFAULT_ALGORITHM,
    show_default=True,
    help="Signing algorithm the key pair is for.",
)
def keygen_command(out_dir: str, algorithm: str) -> None:
    """Generate a signing key pair and write it as PEM files."""
    from filegate.session.keys import KeyPair

    try:
        pair = KeyPair.generate(algorithm)
        private_path, public_path = pair.write_pem(Path(out_dir))
    except (KeyGenerationError, OSError) as exc:
        err_console.print(f"[red]Key generation failed:[/red] {escape(str(exc))}")
        sys.exit(1)

    console.print(f"[green]Generated[/green] {algorithm} key pair")
    console.print(f"  Private key: [bold]{escape(str(private_path))}[/bold]")
    console.print(f"  Public key:  [bold]{escape(str(public_path))}[/bold]")


# ---------------------------------------------------------------------------
# check
# ---------------------------------------------------------------------------


@cli.command(name="check")
@click.option(
    "--config",
    "-c",
    "config_path",
    default=str(_DEFAULT_CONFIG),
    show_default=True,
    type=click.Path(exists=True),
    help="Path to filegate.yaml.",
)
@click.option("--user", "-u", "username", required=True, help="User name, or 'guest'.")
@click.option("--capability", "-p", required=True, help="Capability, e.g. file:view.")
@click.option("--path", "target_path", default="/", show_default=True, help="Target path.")
def check_command(config_path: str, username: str, capability: str, target_path: str) -> None:
    """Evaluate whether a user may use a capability on a path."""
    from filegate.permissions.authorizer import authorize

    gate = _load_gate(_load_config(config_path))
    if username == gate.guest.name:
        identity = gate.guest
    else:
        identity = gate.directory.get(username)
        if identity is None:
            err_console.print(f"[red]Unknown user:[/red] {escape(username)}")
            sys.exit(2)

    try:
        result = authorize(identity, capability, target_path)
    except ValueError as exc:
        err_console.print(f"[red]{escape(str(exc))}[/red]")
        sys.exit(2)

    status_str = "[green]ALLOWED[/green]" if result.allowed else "[red]DENIED[/red]"
    console.print(Panel(status_str, title="Permission Check Result", border_style="blue"))

    table = Table(box=box.SIMPLE)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("User", escape(result.identity))
    table.add_row("Role", identity.role.value)
    table.add_row("Capability", result.capability.value)
    table.add_row("Path", escape(result.path))
    table.add_row("Reason", escape(result.reason))
    if result.matched_pattern:
        table.add_row("Pattern", escape(result.matched_pattern))
    console.print(table)

    sys.exit(0 if result.allowed else 1)


# ---------------------------------------------------------------------------
# issue-token / verify-token
# ---------------------------------------------------------------------------


@cli.command(name="issue-token")
@click.option(
    "--config",
    "-c",
    "config_path",
    default=str(_DEFAULT_CONFIG),
    show_default=True,
    type=click.Path(exists=True),
    help="Path to filegate.yaml.",
)
@click.option("--user", "-u", "username", required=True, help="Registered user name.")
def issue_token_command(config_path: str, username: str) -> None:
    """Issue a session token for a registered user."""
    config = _load_config(config_path)
    if config.signing_keys.public_key_path is None:
        err_console.print(
            "[yellow]Warning:[/yellow] no key files configured; the token is signed "
            "with a throwaway key and will not verify elsewhere."
        )
    gate = _load_gate(config)
    try:
        token = gate.issue(username)
    except IdentityNotFoundError as exc:
        err_console.print(f"[red]{escape(str(exc))}[/red]")
        sys.exit(1)
    click.echo(token)


@cli.command(name="verify-token")
@click.argument("token")
@click.option(
    "--config",
    "-c",
    "config_path",
    default=str(_DEFAULT_CONFIG),
    show_default=True,
    type=click.Path(exists=True),
    help="Path to filegate.yaml.",
)
def verify_token_command(token: str, config_path: str) -> None:
    """Verify TOKEN and show its claims."""
    gate = _load_gate(_load_config(config_path))
    try:
        claims = gate.verify(token)
    except TokenError as exc:
        console.print(
            Panel(
                f"[red]INVALID[/red] ({exc.status})\n{escape(str(exc))}",
                title="Token Verification",
                border_style="red",
            )
        )
        sys.exit(1)
    except FileGateError as exc:
        err_console.print(f"[red]{escape(str(exc))}[/red]")
        sys.exit(2)

    table = Table(title="Session Claims", box=box.SIMPLE)
    table.add_column("Claim", style="cyan")
    table.add_column("Value")
    table.add_row("sub", escape(claims.subject))
    table.add_row("iss", escape(claims.issuer))
    table.add_row("iat", claims.issued_at.isoformat())
    table.add_row("exp", claims.expires_at.isoformat())
    console.print(Panel("[green]VALID[/green]", title="Token Verification", border_style="green"))
    console.print(table)
    registered = gate.directory.is_registered(claims.subject)
    if not registered:
        console.print("[yellow]Subject is not a registered user; requests resolve to guest.[/yellow]")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    cli()
