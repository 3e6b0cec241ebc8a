"""Command-line interface for webauthz-token.

Provides commands to initialise the token database and to mint and check
tokens against it.
"""

import asyncio
import json
from typing import Any, NoReturn

import click
from sqlalchemy.exc import SQLAlchemyError

from webauthz_token.core.config import Settings, get_settings
from webauthz_token.core.logging import configure_logging, get_logger
from webauthz_token.infrastructure.auth import (
    TOKEN_SECRET_LENGTH,
    HashlibDigest,
    TokenError,
    TokenService,
    mask_token,
)
from webauthz_token.infrastructure.persistence.database import DatabaseManager, init_database
from webauthz_token.infrastructure.persistence.token_store import SQLTokenStore

logger = get_logger(__name__)


def _parse_meta(values: tuple[str, ...]) -> dict[str, Any]:
    """Parse ``key=value`` pairs; values that are valid JSON are decoded."""
    metadata: dict[str, Any] = {}
    for item in values:
        key, sep, raw = item.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected key=value, got {item!r}", param_hint="--meta")
        try:
            metadata[key] = json.loads(raw)
        except json.JSONDecodeError:
            metadata[key] = raw
    return metadata


def _token_service(settings: Settings, db: DatabaseManager) -> TokenService:
    return TokenService(
        SQLTokenStore(db),
        separator=settings.token_separator,
        digest=HashlibDigest(settings.token_hash_algorithm),
    )


@click.group()
@click.version_option(version="0.1.0", prog_name="webauthz-token")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    default=None,
    help="Set log level (overrides WEBAUTHZ_LOG_LEVEL)",
)
@click.pass_context
def cli(ctx: click.Context, log_level: str | None) -> None:
    """webauthz-token - mint and verify Webauthz bearer tokens."""
    settings = get_settings()
    if log_level:
        settings = settings.model_copy(update={"log_level": log_level})
    configure_logging(settings)
    ctx.obj = settings


@cli.command()
@click.pass_obj
def info(settings: Settings) -> None:
    """Display configuration."""
    click.echo(f"""
{settings.app_name} v{settings.app_version}
{'=' * 40}

Configuration:
  Environment:  {settings.environment}

Database:
  URL:          {settings.database_url}
  Echo:         {settings.db_echo}

Tokens:
  Separator:    {settings.token_separator}
  Secret bytes: {TOKEN_SECRET_LENGTH}
  Hash:         {settings.token_hash_algorithm}

Logging:
  Level:        {settings.log_level}
  Format:       {settings.log_format}
""")


@cli.command("init-db")
@click.option(
    "--force",
    is_flag=True,
    help="Allow running in production",
)
@click.pass_obj
def init_db(settings: Settings, force: bool) -> None:
    """Create the token tables.

    In production, use migrations instead.
    """
    if settings.is_production and not force:
        click.echo(
            "ERROR: Running in production mode. Use migrations instead of init-db.",
            err=True,
        )
        raise SystemExit(1)

    async def initialize() -> None:
        db = DatabaseManager(settings)
        try:
            await init_database(db)
        finally:
            await db.disconnect()

    asyncio.run(initialize())
    click.echo("Database initialized successfully.")


@cli.command()
@click.argument("token_type")
@click.argument("client_id")
@click.option(
    "--meta",
    "meta",
    multiple=True,
    metavar="KEY=VALUE",
    help="Metadata stored with the token (repeatable; JSON values are decoded)",
)
@click.pass_obj
def mint(settings: Settings, token_type: str, client_id: str, meta: tuple[str, ...]) -> None:
    """Mint a token of TOKEN_TYPE for CLIENT_ID and print it."""
    metadata = _parse_meta(meta)

    async def generate() -> str | None:
        db = DatabaseManager(settings)
        try:
            return await _token_service(settings, db).generate_token(token_type, client_id, metadata)
        finally:
            await db.disconnect()

    try:
        token = asyncio.run(generate())
    except ValueError as e:
        raise click.UsageError(str(e)) from e

    if token is None:
        click.echo("ERROR: token was not stored", err=True)
        raise SystemExit(1)
    click.echo(token)


@cli.command()
@click.argument("token")
@click.pass_obj
def check(settings: Settings, token: str) -> None:
    """Verify TOKEN and print its record as JSON."""

    async def verify() -> dict[str, Any]:
        db = DatabaseManager(settings)
        try:
            record = await _token_service(settings, db).check_token(token)
            return record.model_dump()
        finally:
            await db.disconnect()

    try:
        record = asyncio.run(verify())
    except TokenError as e:
        logger.info("Token rejected", token=mask_token(token, settings.token_separator), kind=e.kind.value)
        click.echo(f"ERROR: {e.kind.value}", err=True)
        raise SystemExit(1)
    except SQLAlchemyError as e:
        logger.error("Token lookup failed", error=str(e))
        click.echo("ERROR: database error (has init-db been run?)", err=True)
        raise SystemExit(1)
    click.echo(json.dumps(record, sort_keys=True))


def main() -> NoReturn:
    """Main entry point for the CLI.

    Called by the `webauthz-token` command and `python -m webauthz_token`.
    """
    cli()


if __name__ == "__main__":
    main()
