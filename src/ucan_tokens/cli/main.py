"""CLI entry point for ucan-tokens.

Invoked as::

    ucan-tokens [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m ucan_tokens.cli.main

Commands
--------
version    Show version information
inspect    Decode a token and print its claims without trusting it
validate   Validate a token, its signature and its proof chain

TOKEN may be ``-`` to read the encoded token from standard input.

Exit codes: 0 valid, 1 validation failed, 2 input is not a token.
"""
from __future__ import annotations

import datetime
import json
import logging
import sys

import click
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from ucan_tokens import __version__
from ucan_tokens.crypto.verifier import CryptographyVerifier
from ucan_tokens.did.did_key import DIDKeyResolver
from ucan_tokens.errors import MalformedTokenError
from ucan_tokens.token.codec import parse_token
from ucan_tokens.token.types import Token
from ucan_tokens.validation.options import DEFAULT_MAX_CHAIN_DEPTH, ValidationOptions
from ucan_tokens.validation.validator import validate_token

console = Console()

EXIT_INVALID = 1
EXIT_NOT_A_TOKEN = 2

_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


# ------------------------------------------------------------------
# Root group
# ------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="ucan-tokens")
@click.option(
    "--log-level",
    type=click.Choice(_LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Logging level for validation diagnostics (written to stderr).",
)
def cli(log_level: str) -> None:
    """Inspect and validate UCAN capability tokens."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    console.print(f"[bold]ucan-tokens[/bold] v{__version__}")


# ------------------------------------------------------------------
# inspect
# ------------------------------------------------------------------


@cli.command(name="inspect")
@click.argument("token")
@click.option("--json", "as_json", is_flag=True, help="Print header and payload as JSON.")
def inspect_command(token: str, as_json: bool) -> None:
    """Decode TOKEN and show its claims. Nothing is verified."""
    decoded = _parse_or_exit(_read_token(token))

    if as_json:
        click.echo(
            json.dumps(
                {
                    "header": decoded.header.to_dict(),
                    "payload": decoded.payload.to_dict(),
                },
                indent=2,
                ensure_ascii=False,
            )
        )
        return

    payload = decoded.payload
    console.print("[yellow]Unverified[/yellow] token claims:")
    console.print(f"  Algorithm:   {decoded.header.algorithm.value}")
    console.print(f"  Version:     {escape(decoded.header.version or '(none)')}")
    console.print(f"  Issuer:      {escape(payload.issuer)}")
    console.print(f"  Audience:    {escape(payload.audience)}")
    console.print(f"  Expires:     {_format_timestamp(payload.expiration, 'never')}")
    console.print(f"  Not before:  {_format_timestamp(payload.not_before, '(immediately)')}")
    if payload.nonce is not None:
        console.print(f"  Nonce:       {escape(payload.nonce)}")
    console.print(f"  Facts:       {len(payload.facts)}")
    console.print(f"  Proofs:      {len(payload.proofs)}")

    table = Table(title="Capabilities", show_header=True)
    table.add_column("#", justify="right")
    table.add_column("Resource (with)", style="cyan")
    table.add_column("Action (can)", style="green")
    table.add_column("Caveats (nb)")
    for index, capability in enumerate(payload.capabilities):
        caveats = capability.caveat_map()
        # Claims are attacker-controlled; Text cells are never parsed as markup.
        table.add_row(
            str(index),
            Text(capability.resource),
            Text(capability.action),
            Text(json.dumps(caveats, ensure_ascii=False)) if caveats else "-",
        )
    console.print(table)


# ------------------------------------------------------------------
# validate
# ------------------------------------------------------------------


@cli.command(name="validate")
@click.argument("token")
@click.option("--now", type=float, default=None, help="Unix time to validate at (default: now).")
@click.option(
    "--drift",
    type=float,
    default=0.0,
    show_default=True,
    help="Clock drift tolerance in seconds.",
)
@click.option(
    "--max-depth",
    type=int,
    default=DEFAULT_MAX_CHAIN_DEPTH,
    show_default=True,
    help="Maximum proof chain depth.",
)
@click.option(
    "--no-verify-signature",
    is_flag=True,
    help="Skip signature verification (claims and chain are still checked).",
)
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON.")
def validate_command(
    token: str,
    now: float | None,
    drift: float,
    max_depth: int,
    no_verify_signature: bool,
    as_json: bool,
) -> None:
    """Validate TOKEN, resolving did:key issuers for signature checks."""
    decoded = _parse_or_exit(_read_token(token))

    try:
        if no_verify_signature:
            options = ValidationOptions(
                now=now,
                clock_drift_tolerance=drift,
                max_chain_depth=max_depth,
                verify_signature=False,
            )
        else:
            options = ValidationOptions(
                now=now,
                clock_drift_tolerance=drift,
                max_chain_depth=max_depth,
                key_resolver=DIDKeyResolver(),
                signature_verifier=CryptographyVerifier(),
            )
    except ValidationError as exc:
        raise click.BadParameter(_first_error(exc)) from exc

    result = validate_token(decoded, options)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2, ensure_ascii=False, default=str))
    elif result.valid:
        console.print(
            f"[green]VALID[/green]  issuer {escape(decoded.issuer)} "
            f"(chain depth {result.chain_depth})"
        )
        if no_verify_signature:
            console.print("[yellow]Warning:[/yellow] signatures were not verified.")
    else:
        reason = result.reason.value if result.reason else "Unknown"
        console.print(f"[red]INVALID[/red]  {reason} at chain depth {result.chain_depth}")
        if result.attenuation is not None:
            console.print(f"  Clause: {escape(result.attenuation.value)}")
        console.print(f"  {escape(result.detail)}")

    if not result.valid:
        sys.exit(EXIT_INVALID)


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _read_token(token: str) -> str:
    if token == "-":
        return click.get_text_stream("stdin").read().strip()
    return token.strip()


def _parse_or_exit(encoded: str) -> Token:
    try:
        return parse_token(encoded)
    except MalformedTokenError as exc:
        console.print(f"[red]Error:[/red] not a token: {escape(exc.detail)}")
        sys.exit(EXIT_NOT_A_TOKEN)


def _format_timestamp(timestamp: int | None, missing: str) -> str:
    if timestamp is None:
        return missing
    try:
        moment = datetime.datetime.fromtimestamp(timestamp, tz=datetime.timezone.utc)
    except (OverflowError, OSError, ValueError):
        return str(timestamp)
    return f"{timestamp} ({moment.isoformat()})"


def _first_error(exc: ValidationError) -> str:
    error = exc.errors()[0]
    location = ".".join(str(part) for part in error.get("loc", ()))
    return f"{location}: {error.get('msg', str(exc))}" if location else str(exc)


if __name__ == "__main__":
    cli()
