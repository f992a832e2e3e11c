"""
HTTP front end for the domain existence service.

`create_app` builds a FastAPI application around an already constructed
checker. Every GET request, whatever its path, is a lookup of its `domain`
query parameter:

- 204, empty body: the domain exists in at least one configured table
- 404 "domain not found": it exists in none of them
- 400 "domain query parameter cannot be empty": missing or empty parameter
- 500 "internal server error": the batch failed; details go to the log only
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse, Response

from domain_exists import __version__
from domain_exists.checks.checker import ExistenceChecker
from domain_exists.domain.models import OutcomeStatus
from domain_exists.errors import InvalidLookupError
from domain_exists.utils.logging import get_logger

log = get_logger(__name__)

EMPTY_DOMAIN_MESSAGE = "domain query parameter cannot be empty"
NOT_FOUND_MESSAGE = "domain not found"
INTERNAL_ERROR_MESSAGE = "internal server error"


def normalize_domain(raw: Optional[str]) -> str:
    """Lower-case a requested domain; missing or empty values are rejected."""
    if not raw:
        raise InvalidLookupError(EMPTY_DOMAIN_MESSAGE)
    return raw.lower()


def create_app(
    checker: ExistenceChecker,
    lifespan: Optional[Callable[[Any], Any]] = None,
) -> FastAPI:
    """
    Build the lookup application.

    Parameters
    ----------
    checker : ExistenceChecker
        Checker shared by every request. It is never mutated after startup.
    lifespan : callable | None
        Optional FastAPI lifespan, typically `ExistencePool.lifespan`, so the
        pool is open exactly while the application serves.
    """
    app = FastAPI(
        title="Domain Exists",
        version=__version__,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.checker = checker

    @app.exception_handler(InvalidLookupError)
    async def invalid_lookup_handler(request: Request, exc: InvalidLookupError) -> Response:
        return PlainTextResponse(exc.message, status_code=400)

    @app.get("/{path:path}")
    async def lookup(request: Request, domain: Optional[str] = None) -> Response:
        key = normalize_domain(domain)
        outcome = await request.app.state.checker.check(key)

        if outcome.status is OutcomeStatus.FOUND:
            return Response(status_code=204)
        if outcome.status is OutcomeStatus.NOT_FOUND:
            return PlainTextResponse(NOT_FOUND_MESSAGE, status_code=404)

        log.error("failed to execute query: %s", outcome.detail, extra={"domain": key})
        return PlainTextResponse(INTERNAL_ERROR_MESSAGE, status_code=500)

    return app


__all__ = [
    "EMPTY_DOMAIN_MESSAGE",
    "INTERNAL_ERROR_MESSAGE",
    "NOT_FOUND_MESSAGE",
    "create_app",
    "normalize_domain",
]
