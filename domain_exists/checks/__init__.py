"""
Checks package for the domain existence service.

Re-exports statement construction and the batch checker so callers can import
from `domain_exists.checks` directly.
"""

from domain_exists.checks.checker import BatchExecutor, ExistenceChecker
from domain_exists.checks.queries import EXISTS_SQL, build_statement, build_statements, describe

__all__ = [
    "BatchExecutor",
    "ExistenceChecker",
    "EXISTS_SQL",
    "build_statement",
    "build_statements",
    "describe",
]
