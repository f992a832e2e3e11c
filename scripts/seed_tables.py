"""
Create and seed lookup tables for local runs and integration tests.

Reads the same lookup document the service reads (CONFIG / CONFIG_PATH),
creates every configured table/column if missing, and loads domains with
Postgres COPY: explicit `--domain table=value` pairs plus optional
deterministic pseudo-random filler rows.
"""

from __future__ import annotations

import random
import sys
import time
from collections import defaultdict
from typing import Dict, Iterable, List, Sequence

import psycopg
import typer

from domain_exists.config import Settings, load_lookup_config
from domain_exists.domain.models import TableColumn
from domain_exists.errors import ConfigError

app = typer.Typer(help="Create configured lookup tables and load domains (COPY).")

_TLDS = ["com", "net", "org", "io", "dev"]


def _generate_domains(count: int, seed: int) -> List[str]:
    rng = random.Random(seed)
    alphabet = "abcdefghijklmnopqrstuvwxyz0123456789"
    return [
        "".join(rng.choice(alphabet) for _ in range(rng.randint(6, 14))) + "." + rng.choice(_TLDS)
        for _ in range(count)
    ]


def _columns_by_table(pairs: Iterable[TableColumn]) -> Dict[str, List[str]]:
    tables: Dict[str, List[str]] = defaultdict(list)
    for pair in pairs:
        if pair.column not in tables[pair.table_name]:
            tables[pair.table_name].append(pair.column)
    return tables


def _ensure_tables(conn: psycopg.Connection, pairs: Sequence[TableColumn]) -> None:
    """Create each configured table with a text column per configured column."""
    with conn.cursor() as cur:
        for table, columns in _columns_by_table(pairs).items():
            cur.execute(f"CREATE TABLE IF NOT EXISTS {table} (id BIGSERIAL PRIMARY KEY)")
            for column in columns:
                cur.execute(f"ALTER TABLE {table} ADD COLUMN IF NOT EXISTS {column} TEXT")
                index = f"{table.replace('.', '_')}_{column}_idx"
                cur.execute(f"CREATE INDEX IF NOT EXISTS {index} ON {table} ({column})")
    conn.commit()


def _copy_domains(conn: psycopg.Connection, table: str, column: str, domains: Iterable[str]) -> int:
    loaded = 0
    with conn.cursor() as cur:
        with cur.copy(f"COPY {table} ({column}) FROM STDIN") as copy:
            for domain in domains:
                copy.write_row((domain.lower(),))
                loaded += 1
    conn.commit()
    return loaded


def _truncate(conn: psycopg.Connection, pairs: Sequence[TableColumn]) -> None:
    with conn.cursor() as cur:
        for table in _columns_by_table(pairs):
            cur.execute(f"TRUNCATE TABLE {table} RESTART IDENTITY")
    conn.commit()


def _parse_pairs(pairs: Sequence[str]) -> Dict[str, List[str]]:
    parsed: Dict[str, List[str]] = defaultdict(list)
    for pair in pairs:
        table, sep, domain = pair.partition("=")
        if not sep or not table or not domain:
            raise typer.BadParameter(f"expected table=domain, got {pair!r}", param_hint="--domain")
        parsed[table].append(domain)
    return parsed


def seed(
    dsn: str,
    pairs: Sequence[TableColumn],
    domains: Dict[str, List[str]],
    filler: int = 0,
    seed_value: int = 42,
    truncate: bool = False,
) -> int:
    """
    Create the tables for `pairs` and load `domains` (keyed by table name).

    Filler rows go to every configured table/column. Returns rows loaded.
    """
    loaded = 0
    with psycopg.connect(dsn) as conn:
        _ensure_tables(conn, pairs)
        if truncate:
            _truncate(conn, pairs)
        for pair in pairs:
            explicit = domains.get(pair.table_name, [])
            generated = _generate_domains(filler, seed_value) if filler else []
            loaded += _copy_domains(conn, pair.table_name, pair.column, [*explicit, *generated])
    return loaded


@app.command()
def main(
    domain: List[str] = typer.Option(
        [],
        "--domain",
        "-d",
        help="Domain to insert, as table=domain. Repeatable.",
    ),
    filler: int = typer.Option(
        0,
        "--filler",
        "-f",
        help="Pseudo-random domains to add to every configured table.",
    ),
    seed_value: int = typer.Option(
        42,
        "--seed",
        help="Deterministic RNG seed for filler domains.",
    ),
    truncate: bool = typer.Option(
        False,
        "--truncate",
        help="Empty the configured tables before loading.",
    ),
    dsn: str | None = typer.Option(
        None,
        "--dsn",
        help="Optional DSN override (defaults to postgres_uri from the config).",
    ),
) -> None:
    """
    Create the configured lookup tables and load domains into them.
    """
    try:
        lookup = load_lookup_config(Settings())
    except ConfigError as exc:
        typer.echo(exc.message, err=True)
        raise typer.Exit(code=1) from exc

    start = time.perf_counter()
    loaded = seed(
        dsn or lookup.postgres_uri,
        lookup.one_of,
        _parse_pairs(domain),
        filler=filler,
        seed_value=seed_value,
        truncate=truncate,
    )
    typer.echo(f"Loaded {loaded:,} domains in {time.perf_counter() - start:.2f}s.")


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
