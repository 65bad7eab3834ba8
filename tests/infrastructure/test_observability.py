"""Structured Logging: JSON formatter, setup_logging and the default error sink.

Tests cover:
    - JSONFormatter emits core fields plus known extras
    - setup_logging installs exactly one handler and honours Settings
    - log_error_sink picks the level from error severity and attaches the cause
"""

import json
import logging

import pytest

from msggate.core.errors import ConfigurationError, ErrorContext, HandlerError, ValidationError
from msggate.infrastructure import observability
from msggate.infrastructure.observability import JSONFormatter, log_error_sink, setup_logging


@pytest.fixture
def restore_root_logging():
    level = logging.root.level
    handlers = list(logging.root.handlers)
    yield
    if observability._installed_handler is not None:
        logging.root.removeHandler(observability._installed_handler)
        observability._installed_handler = None
    logging.root.handlers[:] = handlers
    logging.root.setLevel(level)


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("msggate.test", logging.INFO, __file__, 1, "hello %s", ("world",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_core_fields():
    payload = json.loads(JSONFormatter().format(_record()))
    assert payload["level"] == "INFO"
    assert payload["logger"] == "msggate.test"
    assert payload["message"] == "hello world"
    assert "timestamp" in payload


def test_json_formatter_surfaces_extras():
    payload = json.loads(JSONFormatter().format(
        _record(message_type="print", subtype="start", error_code="HANDLER_ERROR", unrelated="x"),
    ))
    assert payload["message_type"] == "print"
    assert payload["subtype"] == "start"
    assert payload["error_code"] == "HANDLER_ERROR"
    assert "unrelated" not in payload


def test_setup_logging_replaces_previous_handler(restore_root_logging):
    first = setup_logging("DEBUG", "json")
    second = setup_logging("INFO", "text")
    assert first not in logging.root.handlers
    assert second in logging.root.handlers
    assert logging.root.level == logging.INFO
    assert not isinstance(second.formatter, JSONFormatter)


def test_setup_logging_reads_settings(restore_root_logging, monkeypatch):
    monkeypatch.setenv("MSGGATE_LOG_LEVEL", "warning")
    monkeypatch.setenv("MSGGATE_LOG_FORMAT", "json")
    handler = setup_logging()
    assert logging.root.level == logging.WARNING
    assert isinstance(handler.formatter, JSONFormatter)


def test_error_sink_logs_validation_as_warning(caplog):
    err = ValidationError("payload.file: Field required",
                          context=ErrorContext(message_type="print", subtype="start"))
    with caplog.at_level(logging.DEBUG, logger="msggate.errors"):
        log_error_sink(err)
    record = caplog.records[-1]
    assert record.levelno == logging.WARNING
    assert record.error_code == "VALIDATION_ERROR"
    assert record.message_type == "print"
    assert record.exc_info is None


def test_error_sink_logs_handler_error_with_cause(caplog):
    try:
        raise KeyError("job_id")
    except KeyError as exc:
        err = HandlerError("on_start", exc)
    with caplog.at_level(logging.DEBUG, logger="msggate.errors"):
        log_error_sink(err)
    record = caplog.records[-1]
    assert record.levelno == logging.ERROR
    assert record.handler_name == "on_start"
    assert record.exc_info[1] is err.original


def test_error_sink_logs_configuration_error_as_error(caplog):
    with caplog.at_level(logging.DEBUG, logger="msggate.errors"):
        log_error_sink(ConfigurationError("dup", "DUPLICATE_HANDLER"))
    assert caplog.records[-1].levelno == logging.ERROR
