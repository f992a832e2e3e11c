from __future__ import annotations

import asyncio
import sys
from typing import Tuple

import psycopg
import typer
import uvicorn
from psycopg_pool import PoolTimeout

from domain_exists.api.app import create_app, normalize_domain
from domain_exists.checks.checker import ExistenceChecker
from domain_exists.checks.queries import build_statements, describe
from domain_exists.config import (
    LookupConfig,
    Settings,
    get_settings,
    load_lookup_config,
    parse_listen_address,
)
from domain_exists.domain.models import BatchOutcome, ExistenceStatement, OutcomeStatus
from domain_exists.errors import ConfigError, InvalidLookupError
from domain_exists.infrastructure.db_factory import ExistencePool, mask_conninfo
from domain_exists.utils.logging import configure_logging, get_logger

app = typer.Typer(help="Domain existence lookup service.")
log = get_logger(__name__)

EXIT_FOUND = 0
EXIT_NOT_FOUND = 1
EXIT_ERROR = 2


def _load(settings: Settings) -> Tuple[LookupConfig, Tuple[ExistenceStatement, ...]]:
    """Load the lookup document and compile its statements, or exit on misconfiguration."""
    try:
        lookup = load_lookup_config(settings)
        statements = build_statements(lookup.one_of)
    except ConfigError as exc:
        log.error("Invalid configuration: %s", exc.message)
        raise typer.Exit(code=1) from exc
    return lookup, statements


def _pool(settings: Settings, lookup: LookupConfig) -> ExistencePool:
    return ExistencePool(
        lookup.postgres_uri,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
        statement_timeout_ms=settings.statement_timeout_ms,
    )


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    lookup, statements = _load(settings)
    source = "CONFIG" if settings.config_blob else settings.config_path
    typer.echo(
        f"DB={mask_conninfo(lookup.postgres_uri)} | source={source} | listen={settings.host} "
        f"| pool=({settings.pool_min_size},{settings.pool_max_size})"
    )
    for index, statement in enumerate(statements, start=1):
        typer.echo(f"  {index}. {statement.table_name}.{statement.column}")


@app.command()
def serve() -> None:
    """
    Serve lookups over HTTP until interrupted.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    lookup, statements = _load(settings)
    try:
        host, port = parse_listen_address(settings.host)
    except ConfigError as exc:
        log.error("Invalid configuration: %s", exc.message)
        raise typer.Exit(code=1) from exc

    pool = _pool(settings, lookup)
    checker = ExistenceChecker(statements, pool)
    api = create_app(checker, lifespan=pool.lifespan)

    log.info(
        f"Listening on {host}:{port}",
        extra={"checks": describe(statements), "database": mask_conninfo(lookup.postgres_uri)},
    )
    uvicorn.run(api, host=host, port=port, log_config=None)


async def _check_once(pool: ExistencePool, checker: ExistenceChecker, key: str) -> BatchOutcome:
    async with pool.lifespan():
        return await checker.check(key)


@app.command()
def check(domain: str = typer.Argument(..., help="Domain to look up.")) -> None:
    """
    Run a single lookup against the database and report the outcome.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    lookup, statements = _load(settings)
    try:
        key = normalize_domain(domain)
    except InvalidLookupError as exc:
        typer.echo(exc.message, err=True)
        raise typer.Exit(code=EXIT_ERROR) from exc

    pool = _pool(settings, lookup)
    checker = ExistenceChecker(statements, pool)
    try:
        outcome = asyncio.run(_check_once(pool, checker, key))
    except (psycopg.OperationalError, PoolTimeout) as exc:
        log.error("Cannot connect to the database: %s", exc)
        raise typer.Exit(code=EXIT_ERROR) from exc

    if outcome.status is OutcomeStatus.FOUND:
        typer.echo(f"{key}: found")
        raise typer.Exit(code=EXIT_FOUND)
    if outcome.status is OutcomeStatus.NOT_FOUND:
        typer.echo(f"{key}: not found")
        raise typer.Exit(code=EXIT_NOT_FOUND)
    log.error("failed to execute query: %s", outcome.detail, extra={"domain": key})
    raise typer.Exit(code=EXIT_ERROR)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
