"""
Tests for logging configuration.
"""

import json
import logging
import sys

import pytest

from datalake_mediator.core.logging import JsonLogFormatter, object_uri_context, setup_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def _record(msg="hello", level=logging.INFO, exc_info=None, **extra):
    record = logging.LogRecord("datalake", level, __file__, 10, msg, None, exc_info)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_basic_fields():
    """Test that records become single-line JSON."""
    output = JsonLogFormatter().format(_record(bucket="b"))

    entry = json.loads(output)
    assert "\n" not in output
    assert entry["message"] == "hello"
    assert entry["severity"] == "INFO"
    assert entry["logger"] == "datalake"
    assert entry["bucket"] == "b"
    assert entry["timestamp"].endswith("Z")


def test_json_formatter_includes_object_uri():
    """Test that the dispatch context URI is attached."""
    token = object_uri_context.set("s3://b/a.json")
    try:
        entry = json.loads(JsonLogFormatter().format(_record()))
    finally:
        object_uri_context.reset(token)

    assert entry["object_uri"] == "s3://b/a.json"
    assert "object_uri" not in json.loads(JsonLogFormatter().format(_record()))


def test_json_formatter_exception():
    """Test that exceptions are serialized."""
    try:
        raise ValueError("bad value")
    except ValueError:
        record = _record(level=logging.ERROR, exc_info=sys.exc_info())

    entry = json.loads(JsonLogFormatter().format(record))

    assert entry["severity"] == "ERROR"
    assert entry["exception_type"] == "ValueError"
    assert entry["exception_message"] == "bad value"
    assert "Traceback" in entry["exception"]


def test_setup_logging_json_in_deployed_env(monkeypatch):
    """Test that non-local environments log JSON at LOG_LEVEL."""
    from datalake_mediator.core.config import settings

    monkeypatch.setattr(settings, "ENV", "production")
    monkeypatch.setattr(settings, "LOG_LEVEL", "warning")

    setup_logging()

    root = logging.getLogger()
    assert root.level == logging.WARNING
    assert isinstance(root.handlers[0].formatter, JsonLogFormatter)
    assert logging.getLogger("urllib3").level == logging.WARNING


def test_setup_logging_local(monkeypatch):
    """Test that local development logs plain text at DEBUG."""
    from datalake_mediator.core.config import settings

    monkeypatch.setattr(settings, "ENV", "local")

    setup_logging()

    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert not isinstance(root.handlers[0].formatter, JsonLogFormatter)
    assert logging.getLogger("urllib3").level == logging.INFO
