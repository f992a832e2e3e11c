from __future__ import annotations

import logging

import psycopg
import pytest
from fastapi.testclient import TestClient

from domain_exists.api.app import create_app, normalize_domain
from domain_exists.checks.checker import ExistenceChecker
from domain_exists.checks.queries import build_statements
from domain_exists.domain.models import BatchOutcome, TableColumn
from domain_exists.errors import InvalidLookupError
from tests.unit.fakes import FakeExecutor, RecordingChecker

APP_LOGGER = "domain_exists.api.app"

STATEMENTS = build_statements(
    [
        TableColumn(table_name="users", column="domain"),
        TableColumn(table_name="blocked", column="domain"),
    ]
)


def _client(checker) -> TestClient:
    return TestClient(create_app(checker))


def test_normalize_domain_lowercases():
    assert normalize_domain("Example.COM") == "example.com"


@pytest.mark.parametrize("raw", [None, ""])
def test_normalize_domain_rejects_empty(raw):
    with pytest.raises(InvalidLookupError):
        normalize_domain(raw)


@pytest.mark.parametrize("url", ["/", "/?domain="])
def test_missing_or_empty_domain_is_rejected_without_lookup(url: str):
    checker = RecordingChecker(BatchOutcome.found())
    client = _client(checker)

    response = client.get(url)

    assert response.status_code == 400
    assert response.text == "domain query parameter cannot be empty"
    assert checker.keys == []


def test_found_returns_no_content():
    executor = FakeExecutor([False, True])
    client = _client(ExistenceChecker(STATEMENTS, executor))

    response = client.get("/", params={"domain": "Test.com"})

    assert response.status_code == 204
    assert response.content == b""
    assert executor.calls[0][1] == "test.com"


def test_not_found_returns_diagnostic():
    client = _client(ExistenceChecker(STATEMENTS, FakeExecutor([False, False])))

    response = client.get("/", params={"domain": "missing.io"})

    assert response.status_code == 404
    assert response.text == "domain not found"


def test_execution_error_is_opaque_and_logged_once(caplog):
    detail = 'relation "blocked" does not exist'
    executor = FakeExecutor([False, psycopg.errors.UndefinedTable(detail)])
    client = _client(ExistenceChecker(STATEMENTS, executor))

    with caplog.at_level(logging.ERROR, logger=APP_LOGGER):
        response = client.get("/", params={"domain": "example.com"})

    assert response.status_code == 500
    assert response.text == "internal server error"
    assert "blocked" not in response.text

    errors = [r for r in caplog.records if r.name == APP_LOGGER and r.levelno == logging.ERROR]
    assert len(errors) == 1
    assert detail in errors[0].getMessage()
    assert errors[0].domain == "example.com"


def test_unreachable_database_returns_server_error(caplog):
    executor = FakeExecutor(enter_error=psycopg.OperationalError("connection refused"))
    client = _client(ExistenceChecker(STATEMENTS, executor))

    with caplog.at_level(logging.ERROR, logger=APP_LOGGER):
        response = client.get("/", params={"domain": "example.com"})

    assert response.status_code == 500
    assert response.text == "internal server error"
    assert len([r for r in caplog.records if r.name == APP_LOGGER]) == 1


def test_lookup_is_case_insensitive():
    checker = RecordingChecker(BatchOutcome.not_found())
    client = _client(checker)

    client.get("/", params={"domain": "Example.COM"})
    client.get("/", params={"domain": "example.com"})

    assert checker.keys == ["example.com", "example.com"]


def test_any_path_serves_lookups():
    checker = RecordingChecker(BatchOutcome.found())
    client = _client(checker)

    response = client.get("/v1/exists", params={"domain": "example.com"})

    assert response.status_code == 204
    assert checker.keys == ["example.com"]


def test_repeated_requests_produce_identical_responses():
    client = _client(ExistenceChecker(STATEMENTS, FakeExecutor([False, True])))

    responses = [client.get("/", params={"domain": "test.com"}) for _ in range(3)]

    assert {r.status_code for r in responses} == {204}
