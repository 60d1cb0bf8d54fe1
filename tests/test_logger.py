"""Tests for envstack.logger module.

Loader, resolver and watch sessions all log through the Logger interface,
so both implementations must behave the same way from the caller's side.
"""

import contextlib
import io
import json
import logging
import os
import tempfile
from unittest import mock

import pytest

from envstack.logger import (
    DefaultLogger,
    Logger,
    StructuredLogger,
    create_logger,
    get_component_logger,
    get_logger,
)
from envstack.logger import _get_env_prefix


class TestLoggerInterface:
    """Tests for the Logger abstract interface."""

    def test_logger_is_abstract(self):
        with pytest.raises(TypeError):
            Logger()  # type: ignore

    def test_logger_has_required_methods(self):
        for method in ("debug", "info", "warning", "error", "critical", "get_session_id"):
            assert hasattr(Logger, method)

    def test_partial_implementation_cannot_be_instantiated(self):
        class InfoOnly(Logger):
            def info(self, message, **kwargs):
                pass

        with pytest.raises(TypeError):
            InfoOnly()  # type: ignore


class TestDefaultLogger:
    """Tests for the DefaultLogger implementation."""

    def test_default_logger_creates_session_id(self):
        logger = DefaultLogger()
        assert len(logger.get_session_id()) == 36  # UUID format

    def test_different_instances_have_different_session_ids(self):
        assert DefaultLogger().get_session_id() != DefaultLogger().get_session_id()

    def test_writes_to_output(self):
        output = io.StringIO()
        logger = DefaultLogger(output=output)
        logger.info("Test message")

        output_str = output.getvalue()
        assert "INFO" in output_str
        assert "Test message" in output_str

    def test_includes_session_id_in_output(self):
        output = io.StringIO()
        logger = DefaultLogger(output=output)
        logger.info("Test message")

        assert f"session:{logger.get_session_id()[:8]}" in output.getvalue()

    def test_can_disable_timestamp(self):
        output = io.StringIO()
        logger = DefaultLogger(output=output, include_timestamp=False)
        logger.info("Test message")

        assert output.getvalue().startswith("[INFO]")

    def test_includes_timestamp_by_default(self):
        output = io.StringIO()
        DefaultLogger(output=output).info("Test message")

        # ISO format contains 'T' between date and time
        first = output.getvalue().split(" ")[0]
        assert "T" in first

    def test_all_levels(self):
        output = io.StringIO()
        logger = DefaultLogger(output=output)

        logger.debug("Debug message")
        logger.info("Info message")
        logger.warning("Warning message")
        logger.error("Error message")
        logger.critical("Critical message")

        lines = output.getvalue().splitlines()
        assert len(lines) == 5
        for level, line in zip(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], lines):
            assert f"[{level}]" in line

    def test_formats_kwargs(self):
        output = io.StringIO()
        logger = DefaultLogger(output=output, include_timestamp=False)
        logger.info("Loaded file", path="/srv/app/.env", keys=3)

        assert output.getvalue().strip().endswith("(path=/srv/app/.env keys=3)")

    def test_level_threshold(self):
        output = io.StringIO()
        logger = DefaultLogger(output=output, level=logging.ERROR)
        logger.warning("dropped")
        logger.error("kept")

        text = output.getvalue()
        assert "dropped" not in text
        assert "kept" in text

    def test_default_name_is_envstack(self):
        output = io.StringIO()
        DefaultLogger(output=output).info("x")
        assert "[envstack]" in output.getvalue()

    def test_includes_custom_name(self):
        output = io.StringIO()
        DefaultLogger(name="test-logger", output=output).info("x")
        assert "[test-logger]" in output.getvalue()


class TestStructuredLogger:
    """Tests for the StructuredLogger implementation."""

    def test_creates_short_session_id(self):
        logger = StructuredLogger(name="test-structured")
        assert len(logger.get_session_id()) == 8

    def test_writes_to_stderr_not_stdout(self, capsys):
        logger = StructuredLogger(name="test-stderr")
        logger.info("Goes to stderr")

        captured = capsys.readouterr()
        assert "Goes to stderr" in captured.err
        assert captured.out == ""

    def test_text_format(self, capsys):
        logger = StructuredLogger(name="test-text", json_format=False)
        logger.info("Test message")

        err = capsys.readouterr().err
        assert "[INFO]" in err
        assert "[test-text]" in err
        assert f"[session:{logger.get_session_id()}]" in err

    def test_text_includes_extras(self, capsys):
        logger = StructuredLogger(name="test-text-extras")
        logger.info("Test message", key="value")

        assert "key=value" in capsys.readouterr().err

    def test_json_format(self, capsys):
        logger = StructuredLogger(name="test-json", json_format=True)
        logger.info("Test message")

        log_entry = json.loads(capsys.readouterr().err.strip())
        assert log_entry["level"] == "INFO"
        assert log_entry["message"] == "Test message"
        assert log_entry["logger"] == "test-json"
        assert log_entry["session_id"] == logger.get_session_id()

    def test_json_includes_extras(self, capsys):
        logger = StructuredLogger(name="test-json-extras", json_format=True)
        logger.info("Loaded file", path="/srv/.env", keys=2)

        log_entry = json.loads(capsys.readouterr().err.strip())
        assert log_entry["path"] == "/srv/.env"
        assert log_entry["keys"] == 2

    def test_json_serializes_non_json_values(self, capsys, tmp_path):
        logger = StructuredLogger(name="test-json-path", json_format=True)
        logger.info("Resolved", path=tmp_path)

        log_entry = json.loads(capsys.readouterr().err.strip())
        assert log_entry["path"] == str(tmp_path)

    def test_reserved_kwargs_are_prefixed(self, capsys):
        logger = StructuredLogger(name="test-reserved", json_format=True)
        # "name" is a reserved LogRecord attribute
        logger.info("Test", name="should be prefixed")

        log_entry = json.loads(capsys.readouterr().err.strip())
        assert log_entry["_name"] == "should be prefixed"
        assert log_entry["logger"] == "test-reserved"

    def test_level_filters_messages(self, capsys):
        logger = StructuredLogger(name="test-filter", level=logging.WARNING)
        logger.info("Should not appear")
        logger.warning("Should appear")

        err = capsys.readouterr().err
        assert "Should not appear" not in err
        assert "Should appear" in err
        assert logger.level == logging.WARNING

    def test_reinitialising_does_not_duplicate_output(self, capsys):
        StructuredLogger(name="test-dup")
        logger = StructuredLogger(name="test-dup")
        logger.info("Once")

        assert capsys.readouterr().err.count("Once") == 1

    def test_file_output(self):
        with tempfile.NamedTemporaryFile(mode="w", delete=False, suffix=".log") as f:
            log_file = f.name

        try:
            logger = StructuredLogger(name="test-file", log_file=log_file)
            logger.info("File test message")

            for handler in logger._logger.handlers:
                handler.flush()

            with open(log_file, "r") as f:
                assert "File test message" in f.read()
        finally:
            os.unlink(log_file)

    def test_unwritable_log_file_is_reported_not_raised(self, capsys, tmp_path):
        missing = tmp_path / "no-such-dir" / "envstack.log"
        logger = StructuredLogger(name="test-bad-file", log_file=str(missing))
        logger.info("Still logs")

        err = capsys.readouterr().err
        assert "Failed to setup log file" in err
        assert "Still logs" in err


class TestLoggerFactoryFunctions:
    """Tests for create_logger and get_logger factory functions."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("envstack", "ENVSTACK"),
            ("envstack-watch", "ENVSTACK_WATCH"),
            ("envstack.cli", "ENVSTACK_CLI"),
        ],
    )
    def test_env_prefix(self, name, expected):
        assert _get_env_prefix(name) == expected

    def test_create_logger_returns_logger(self):
        assert isinstance(create_logger(name="test-factory"), Logger)

    def test_create_logger_respects_level(self, capsys):
        logger = create_logger(name="test-level-factory", level=logging.WARNING)
        logger.info("Should not appear")
        logger.warning("Should appear")

        err = capsys.readouterr().err
        assert "Should not appear" not in err
        assert "Should appear" in err

    def test_get_logger_reads_env_level(self, capsys):
        with mock.patch.dict(os.environ, {"TEST_PROJECT_LOG_LEVEL": "WARNING"}):
            logger = get_logger("test-project")
        logger.info("Should not appear")
        logger.warning("Should appear")

        err = capsys.readouterr().err
        assert "Should not appear" not in err
        assert "Should appear" in err

    def test_get_logger_reads_env_json(self, capsys):
        with mock.patch.dict(os.environ, {"TEST_JSON_ENV_LOG_JSON": "true"}):
            logger = get_logger("test-json-env")
        logger.info("JSON env test")

        log_entry = json.loads(capsys.readouterr().err.strip())
        assert log_entry["message"] == "JSON env test"

    def test_unknown_level_name_falls_back_to_info(self):
        with mock.patch.dict(os.environ, {"TEST_BOGUS_LOG_LEVEL": "LOUD"}):
            logger = get_logger("test-bogus")
        assert logger.level == logging.INFO

    def test_default_level_is_info(self, monkeypatch):
        monkeypatch.delenv("TEST_DEFAULT_LEVEL_LOG_LEVEL", raising=False)
        assert get_logger("test-default-level").level == logging.INFO

    def test_debug_flag_overrides_env_level(self):
        with mock.patch.dict(os.environ, {"TEST_FORCED_LOG_LEVEL": "ERROR"}):
            logger = get_logger("test-forced", debug=True)
        assert logger.level == logging.DEBUG


class TestLoggerConsistency:
    """Both implementations are interchangeable behind the interface."""

    @pytest.fixture(params=["default", "structured"])
    def logger(self, request):
        if request.param == "default":
            return DefaultLogger(output=io.StringIO())
        return StructuredLogger(name="test-consistency")

    def test_has_session_id(self, logger):
        session_id = logger.get_session_id()
        assert isinstance(session_id, str)
        assert session_id

    def test_accepts_kwargs(self, logger):
        logger.info("Test", key="value", number=42, flag=True)

    @pytest.mark.parametrize("level_method", ["debug", "info", "warning", "error", "critical"])
    def test_level_methods_callable(self, logger, level_method):
        getattr(logger, level_method)("message")


class TestComponentLoggers:
    """get_component_logger builds one logger per component and reuses it."""

    def test_same_instance_per_component(self):
        assert get_component_logger("test-reuse") is get_component_logger("test-reuse")

    def test_components_are_independent(self):
        first = get_component_logger("test-first", debug=True)
        second = get_component_logger("test-second")

        assert first is not second
        assert logging.getLogger("envstack.test-first").level == logging.DEBUG
        assert first.level == logging.DEBUG

    def test_reuse_keeps_level_and_handlers(self):
        get_component_logger("test-keep", debug=True)
        stdlib_logger = logging.getLogger("envstack.test-keep")
        host_handler = logging.NullHandler()
        stdlib_logger.addHandler(host_handler)
        try:
            get_component_logger("test-keep")
            assert stdlib_logger.level == logging.DEBUG
            assert host_handler in stdlib_logger.handlers
        finally:
            stdlib_logger.removeHandler(host_handler)

    def test_output_follows_current_stderr(self, capsys):
        with contextlib.redirect_stderr(io.StringIO()):
            logger = get_component_logger("test-stream")
        logger.warning("Reaches the current stream")

        assert "Reaches the current stream" in capsys.readouterr().err
