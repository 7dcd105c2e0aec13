"""CLI entry point for twofa."""

from __future__ import annotations

import logging
import sys

import click
from rich.console import Console
from rich.table import Table

from twofa.errors import TwoFactorError

console = Console()

EXIT_INVALID_CODE = 1
EXIT_BAD_INPUT = 2


def _fail(exc: TwoFactorError | ValueError) -> None:
    console.print(f"[red]{exc}[/red]")
    sys.exit(EXIT_BAD_INPUT)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log verification details to stderr.")
def main(verbose: bool) -> None:
    """twofa: TOTP secrets, codes and backup codes."""
    if verbose:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
            datefmt="%H:%M:%S",
        )


@main.command()
@click.option("--bytes", "byte_length", type=int, default=None, help="Random bytes in the secret.")
def secret(byte_length: int | None) -> None:
    """Generate a new base32 secret."""
    from twofa.keygen import generate_secret

    try:
        click.echo(generate_secret(byte_length))
    except (TwoFactorError, ValueError) as e:
        _fail(e)


@main.command()
@click.argument("secret")
@click.option("--at", "at", type=float, default=None, help="Unix time (default: now).")
def code(secret: str, at: float | None) -> None:
    """Print the current code for SECRET."""
    from twofa.totp import now_token

    try:
        click.echo(now_token(secret, at))
    except (TwoFactorError, ValueError) as e:
        _fail(e)


@main.command()
@click.argument("secret")
@click.argument("submitted")
@click.option("--at", "at", type=float, default=None, help="Unix time (default: now).")
def verify(secret: str, submitted: str, at: float | None) -> None:
    """Check SUBMITTED against SECRET, allowing one step of clock skew."""
    from twofa.totp import verify as verify_code

    try:
        result = verify_code(secret, submitted, now=at)
    except (TwoFactorError, ValueError) as e:
        _fail(e)
        return

    if result:
        console.print(f"[green]valid[/green] (offset {result.matched_offset:+d})")
    else:
        console.print("[red]invalid[/red]")
        sys.exit(EXIT_INVALID_CODE)


@main.command()
@click.argument("secret")
@click.argument("label")
@click.option("--issuer", default=None, help="Issuer shown in the authenticator app.")
def uri(secret: str, label: str, issuer: str | None) -> None:
    """Print the otpauth:// provisioning URI."""
    from twofa.provisioning import build_uri

    try:
        click.echo(build_uri(secret, label, issuer))
    except (TwoFactorError, ValueError) as e:
        _fail(e)


@main.command("backup-codes")
@click.option("--count", type=int, default=None, help="Number of codes.")
def backup_codes(count: int | None) -> None:
    """Issue a fresh set of one-time backup codes."""
    from twofa.backup_codes import generate_codes

    try:
        code_set = generate_codes(count)
    except (TwoFactorError, ValueError) as e:
        _fail(e)
        return

    table = Table(title="Backup codes")
    table.add_column("#", justify="right")
    table.add_column("Code")
    for i, value in enumerate(code_set.values(), 1):
        table.add_row(str(i), value)
    console.print(table)


if __name__ == "__main__":
    main()
