"""
Domain Exists - answer "is this domain in any of these tables?" over HTTP.

A configured list of PostgreSQL table/column pairs is compiled at startup into
`SELECT EXISTS` statements. Each lookup sends all of them to the database in a
single pipelined batch, reads the answers in configuration order and stops at
the first match:

- `GET /?domain=example.com` -> 204 when found, 404 when not found
- 400 for a missing/empty domain, 500 (details logged only) on database errors
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from domain_exists.checks.checker import BatchExecutor, ExistenceChecker
from domain_exists.checks.queries import build_statements
from domain_exists.config import LookupConfig, Settings, get_settings, load_lookup_config
from domain_exists.domain.models import BatchOutcome, ExistenceStatement, OutcomeStatus, TableColumn
from domain_exists.errors import ConfigError, DomainExistsError, InvalidLookupError
from domain_exists.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "LookupConfig",
    "Settings",
    "get_settings",
    "load_lookup_config",
    # Checks
    "BatchExecutor",
    "ExistenceChecker",
    "build_statements",
    # Domain models
    "BatchOutcome",
    "ExistenceStatement",
    "OutcomeStatus",
    "TableColumn",
    # Errors
    "ConfigError",
    "DomainExistsError",
    "InvalidLookupError",
    # Logging
    "configure_logging",
    "get_logger",
]
