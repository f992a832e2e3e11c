"""
Domain models for the domain existence service.

A configured `TableColumn` compiles to one `ExistenceStatement`; every lookup
evaluates the statements in order and reduces them to one `BatchOutcome`.
"""
from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class TableColumn(BaseModel):
    """
    One table/column pair searched for the lookup key.

    Both identifiers are interpolated into SQL text, so they must come from
    operator configuration, never from a request.
    """

    table_name: str = Field(..., min_length=1, description="Table to search.")
    column: str = Field(..., min_length=1, description="Column compared to the key.")

    model_config = {
        "frozen": True,
        "str_strip_whitespace": True,
    }


class ExistenceStatement(BaseModel):
    """
    A parameterized `SELECT EXISTS (...)` bound to one table/column pair.

    Takes exactly one positional parameter (the lookup key) and yields a
    single boolean column.
    """

    table_name: str = Field(..., min_length=1)
    column: str = Field(..., min_length=1)
    sql: str = Field(..., description="Statement text with one %s placeholder.")

    model_config = {
        "frozen": True,
    }


class OutcomeStatus(str, Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    EXECUTION_ERROR = "execution_error"


class BatchOutcome(BaseModel):
    """
    Result of evaluating every statement for one lookup key.

    `detail` is only set for execution errors and is meant for logs, not for
    the HTTP caller.
    """

    status: OutcomeStatus
    detail: Optional[str] = None

    model_config = {
        "frozen": True,
    }

    @classmethod
    def found(cls) -> "BatchOutcome":
        return cls(status=OutcomeStatus.FOUND)

    @classmethod
    def not_found(cls) -> "BatchOutcome":
        return cls(status=OutcomeStatus.NOT_FOUND)

    @classmethod
    def execution_error(cls, detail: str) -> "BatchOutcome":
        return cls(status=OutcomeStatus.EXECUTION_ERROR, detail=detail)


__all__ = ["TableColumn", "ExistenceStatement", "OutcomeStatus", "BatchOutcome"]
