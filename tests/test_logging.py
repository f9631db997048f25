"""
Tests for the logging module.

Tests verify:
- JSON output carries service and ECS-style fields
- DEBUG logs are suppressed at INFO level
- Scoped context is bound and released
- The facades emit their lifecycle events without credentials
"""

import json
import logging
from unittest.mock import patch

import pytest
import structlog
from structlog.testing import capture_logs

from dbspine import Connection
from dbspine.errors import QueryError
from dbspine.logging import REDACTED, bind_context, configure_logging, get_logger, log_context, unbind_context


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()
    logging.getLogger("sqlalchemy.engine").setLevel(logging.NOTSET)


def _json_lines(capsys) -> list[dict]:
    return [json.loads(line) for line in capsys.readouterr().out.splitlines() if line.startswith("{")]


class TestConfigureLogging:
    def test_json_output(self, capsys):
        configure_logging(level="INFO", json_format=True)
        get_logger("tests").info("hello", table="users")

        (entry,) = _json_lines(capsys)
        assert entry["event"] == "hello"
        assert entry["table"] == "users"
        assert entry["service.name"] == "dbspine"
        assert entry["log.level"] == "info"
        assert "@timestamp" in entry

    def test_service_name_override(self, capsys):
        configure_logging(json_format=True, service="billing")
        get_logger("tests").info("hello")
        assert _json_lines(capsys)[0]["service.name"] == "billing"

    def test_debug_suppressed_at_info(self, capsys):
        configure_logging(level="INFO", json_format=True)
        logger = get_logger("tests")
        logger.debug("hidden")
        logger.info("shown")
        assert [e["event"] for e in _json_lines(capsys)] == ["shown"]

    def test_without_timestamp(self, capsys):
        configure_logging(json_format=True, add_timestamp=False)
        get_logger("tests").info("hello")
        assert "@timestamp" not in _json_lines(capsys)[0]

    def test_unknown_level(self):
        with pytest.raises(ValueError, match="VERBOSE"):
            configure_logging(level="verbose")

    def test_unknown_level_lowercase_input(self):
        with pytest.raises(ValueError, match="Unknown log level: .VERBOSE."):
            configure_logging(level="Verbose")

    def test_root_logger_untouched(self):
        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        configure_logging(level="DEBUG", json_format=True)
        assert root.handlers == handlers
        assert root.level == level

    def test_sqlalchemy_engine_level(self):
        configure_logging(level="WARNING", json_format=True)
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING

    def test_credentials_redacted(self, capsys):
        configure_logging(json_format=True)
        get_logger("tests").info("connecting", username="app", password="s3cret", token=None)

        (entry,) = _json_lines(capsys)
        assert entry["password"] == REDACTED
        assert entry["username"] == "app"
        assert entry["token"] is None


class TestContext:
    def test_log_context_scoped(self, capsys):
        configure_logging(json_format=True)
        logger = get_logger("tests")
        with log_context(table="users"):
            logger.info("inside")
        logger.info("outside")

        inside, outside = _json_lines(capsys)
        assert inside["table"] == "users"
        assert "table" not in outside

    def test_bind_and_unbind(self, capsys):
        configure_logging(json_format=True)
        logger = get_logger("tests")
        bind_context(request_id="r-1")
        logger.info("bound")
        unbind_context("request_id")
        logger.info("unbound")

        bound, unbound = _json_lines(capsys)
        assert bound["request_id"] == "r-1"
        assert "request_id" not in unbound


class TestFacadeEvents:
    def test_open_query_close(self):
        with capture_logs() as logs:
            with Connection("sqlite") as db:
                db.query("SELECT 1")

        events = [entry["event"] for entry in logs]
        assert events == ["connection_opened", "statement_executed", "connection_closed"]
        assert logs[0]["driver"] == "sqlite"
        assert logs[1]["intent"] == "rows"

    def test_credentials_never_logged(self, fake_backend):
        with capture_logs() as logs:
            with patch("dbspine.connection.create_backend", return_value=fake_backend):
                Connection("mysql", "shop", "app", "s3cret")

        assert logs[0]["event"] == "connection_opened"
        assert logs[0]["host"] == "localhost"
        assert "s3cret" not in str(logs)

    def test_native_adoption(self, native_handle):
        with capture_logs() as logs:
            Connection.from_native(native_handle).close()
        assert logs[0] == {"event": "native_handle_adopted", "backend": "sqlite", "log_level": "info"}

    def test_failed_statement_warns(self, db):
        with capture_logs() as logs:
            with pytest.raises(QueryError):
                db.query("SELECT * FROM ghost")

        (failure,) = [entry for entry in logs if entry["event"] == "statement_failed"]
        assert failure["log_level"] == "warning"
        assert failure["backend"] == "sqlite"
        assert "no such table" in failure["error"]
