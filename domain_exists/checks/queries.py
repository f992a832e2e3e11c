"""
Statement construction for existence checks.

Runs once at startup: each configured table/column pair becomes one
`SELECT EXISTS (...)` statement taking the lookup key as its only parameter.
Identifiers are placed into the statement text as given; they are operator
configuration and are not escaped.
"""

from __future__ import annotations

from typing import Iterable, Sequence, Tuple

from domain_exists.domain.models import ExistenceStatement, TableColumn
from domain_exists.errors import ConfigError

EXISTS_SQL = "SELECT EXISTS (SELECT 1 FROM {table} WHERE {column} = %s)"


def build_statement(pair: TableColumn) -> ExistenceStatement:
    """Compile one table/column pair into its existence statement."""
    if not pair.table_name:
        raise ConfigError("table_name cannot be empty")
    if not pair.column:
        raise ConfigError("column cannot be empty")
    return ExistenceStatement(
        table_name=pair.table_name,
        column=pair.column,
        sql=EXISTS_SQL.format(table=pair.table_name, column=pair.column),
    )


def build_statements(pairs: Iterable[TableColumn]) -> Tuple[ExistenceStatement, ...]:
    """
    Compile every configured pair, preserving configuration order.

    Raises
    ------
    ConfigError
        If no pairs are configured or any pair has an empty identifier.
    """
    statements = tuple(build_statement(pair) for pair in pairs)
    if not statements:
        raise ConfigError("one_of must configure at least one table/column pair")
    return statements


def describe(statements: Sequence[ExistenceStatement]) -> str:
    """Short human summary, e.g. ``users.domain, blocked.domain``."""
    return ", ".join(f"{s.table_name}.{s.column}" for s in statements)


__all__ = ["EXISTS_SQL", "build_statement", "build_statements", "describe"]
