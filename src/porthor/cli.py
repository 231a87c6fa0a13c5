"""Administrative command-line interface."""

from __future__ import annotations

import secrets
import sys
from datetime import timedelta
from pathlib import Path

import click
import uvicorn
from pydantic import SecretStr
from safir.click import display_help

from .constants import NONCE_BYTES
from .issuer import TokenIssuer
from .main import create_openapi

__all__ = [
    "generate_secret",
    "generate_token",
    "help",
    "main",
    "openapi_schema",
    "run",
]


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(message="%(version)s")
def main() -> None:
    """Administrative command-line interface for porthor."""


@main.command()
@click.argument("topic", default=None, required=False, nargs=1)
@click.pass_context
def help(ctx: click.Context, topic: str | None) -> None:
    """Show help for any command."""
    display_help(main, ctx, topic)


@main.command()
def generate_secret() -> None:
    """Generate a new shared secret for an issuer.

    Add the output to the ``issuers`` configuration or the secrets file and
    give it to the client out of band.
    """
    sys.stdout.write(secrets.token_urlsafe(NONCE_BYTES) + "\n")


@main.command()
@click.option("--issuer", required=True, help="Issuer (iss claim).")
@click.option(
    "--secret",
    envvar="PORTHOR_SECRET",
    required=True,
    help="Shared secret for the issuer.",
)
@click.option(
    "--lifetime",
    default=None,
    type=click.IntRange(min=1),
    help="Lifetime of the token in seconds (no expiration if not given).",
)
@click.option("--nonce", default=None, help="Nonce obtained from the server.")
def generate_token(
    *, issuer: str, secret: str, lifetime: int | None, nonce: str | None
) -> None:
    """Generate a signed bearer token for an issuer."""
    token_issuer = TokenIssuer(issuer, SecretStr(secret))
    token = token_issuer.issue_token(
        lifetime=timedelta(seconds=lifetime) if lifetime else None,
        nonce=nonce,
    )
    sys.stdout.write(token + "\n")


@main.command()
@click.option(
    "--output",
    default=None,
    type=click.Path(path_type=Path),
    help="Output path (output to stdout if not given).",
)
def openapi_schema(*, output: Path | None) -> None:
    """Generate the OpenAPI schema."""
    schema = create_openapi()
    if output:
        output.parent.mkdir(exist_ok=True)
        output.write_text(schema)
    else:
        sys.stdout.write(schema)


@main.command()
@click.option(
    "--port", default=8080, type=int, help="Port to run the application on."
)
def run(*, port: int) -> None:
    """Run the application (for testing only)."""
    uvicorn.run(
        "porthor.main:create_app",
        factory=True,
        port=port,
        reload=True,
        reload_dirs=["src"],
    )
