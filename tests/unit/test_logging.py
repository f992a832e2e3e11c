from __future__ import annotations

import json
import logging

from domain_exists.utils.logging import JsonFormatter, _json_formatter, configure_logging

EXPECTED_CHECKS = 2


def _record(msg: str = "hello") -> logging.LogRecord:
    return logging.LogRecord(
        name="test.logger",
        level=logging.ERROR,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )


def test_json_formatter_promotes_standard_extra_fields() -> None:
    record = _record()
    record.domain = "example.com"
    record.checks = EXPECTED_CHECKS

    payload = json.loads(_json_formatter(record))

    assert payload["level"] == "ERROR"
    assert payload["logger"] == "test.logger"
    assert payload["message"] == "hello"
    assert payload["domain"] == "example.com"
    assert payload["checks"] == EXPECTED_CHECKS


def test_json_formatter_supports_legacy_nested_extra_field() -> None:
    record = _record()
    record.extra = {"batch_size": EXPECTED_CHECKS}

    payload = json.loads(_json_formatter(record))

    assert payload["batch_size"] == EXPECTED_CHECKS


def test_json_formatter_omits_builtin_record_attributes() -> None:
    payload = json.loads(JsonFormatter().format(_record()))

    assert "pathname" not in payload
    assert "lineno" not in payload


def test_configure_logging_keeps_module_loggers_enabled() -> None:
    module_logger = logging.getLogger("domain_exists.api.app")

    configure_logging(level="DEBUG", json_logs=True)

    assert module_logger.disabled is False
    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert isinstance(root.handlers[0].formatter, JsonFormatter)
