"""
Domain package for the domain existence service.

Exports the configuration, statement and outcome models shared by the
checker, the database layer and the HTTP handler.
"""

from domain_exists.domain.models import (
    BatchOutcome,
    ExistenceStatement,
    OutcomeStatus,
    TableColumn,
)

__all__ = [
    "BatchOutcome",
    "ExistenceStatement",
    "OutcomeStatus",
    "TableColumn",
]
