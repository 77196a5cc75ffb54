"""Tests for structured logging."""

import json
import logging
from pathlib import Path

import structlog

from asmscan.config.models import LoggingConfig, LogOutputConfig
from asmscan.core.console import suppress_console_logs
from asmscan.core.logging import (
    ConsoleSuppressingFilter,
    clear_run_id,
    configure_logging,
    current_log_file,
    get_logger,
    get_run_id,
    set_run_id,
)


class TestRunIdCorrelation:
    """Run ID context variable tests."""

    def setup_method(self) -> None:
        """Clear run ID before each test."""
        clear_run_id()

    def test_given_run_id_when_set_then_can_retrieve(self) -> None:
        """Run ID can be set and retrieved."""
        # Given
        run_id = "run-123"

        # When
        result = set_run_id(run_id)

        # Then
        assert result == run_id
        assert get_run_id() == run_id

    def test_given_no_id_when_set_then_generates_uuid(self) -> None:
        """Set generates UUID-based ID when none provided."""
        # When
        rid = set_run_id()

        # Then
        assert len(rid) == 12  # uuid4().hex[:12]

    def test_given_run_id_when_set_then_bound_in_structlog_context(self) -> None:
        set_run_id("ctx-1")

        assert structlog.contextvars.get_contextvars()["run_id"] == "ctx-1"

    def test_given_set_id_when_clear_then_removes_id(self) -> None:
        # Given
        set_run_id("to-clear")

        # When
        clear_run_id()

        # Then
        assert get_run_id() is None


class TestLoggingConfiguration:
    """Logging configuration tests."""

    def setup_method(self) -> None:
        """Reset structlog and stdlib logging before each test."""
        structlog.reset_defaults()
        logging.getLogger().handlers.clear()
        clear_run_id()

    def test_given_config_object_when_configure_then_takes_precedence(self, tmp_path: Path) -> None:
        """LoggingConfig object takes precedence over simple params."""
        # Given
        log_file = tmp_path / "test.log"
        config = LoggingConfig(
            level="DEBUG",
            outputs=[LogOutputConfig(format="json", destination=str(log_file))],
        )

        # When - config's DEBUG should override the level="ERROR" param
        configure_logging(config=config, level="ERROR")
        get_logger().debug("debug msg")

        # Then
        assert "debug msg" in log_file.read_text()
        assert current_log_file() == log_file

    def test_given_run_id_when_log_then_json_carries_it(self, tmp_path: Path) -> None:
        # Given
        log_file = tmp_path / "run.log"
        configure_logging(
            config=LoggingConfig(
                level="INFO",
                outputs=[LogOutputConfig(format="json", destination=str(log_file))],
            )
        )
        set_run_id("abc123")

        # When
        get_logger("diff").info("assembly_compared", types=3)

        # Then
        data = json.loads(log_file.read_text().strip().splitlines()[-1])
        assert data["event"] == "assembly_compared"
        assert data["types"] == 3
        assert data["run_id"] == "abc123"
        assert data["logger"] == "diff"
        assert data["level"] == "info"
        assert "timestamp" in data

    def test_given_multi_output_config_when_configure_then_logs_to_all(
        self, tmp_path: Path
    ) -> None:
        """Multiple outputs receive logs according to their levels."""
        # Given
        debug_file = tmp_path / "debug.log"
        info_file = tmp_path / "info.log"
        config = LoggingConfig(
            level="DEBUG",
            outputs=[
                LogOutputConfig(format="json", destination=str(info_file), level="INFO"),
                LogOutputConfig(format="json", destination=str(debug_file)),
            ],
        )

        # When
        configure_logging(config=config)
        logger = get_logger()
        logger.debug("debug only")
        logger.info("info msg")

        # Then
        info_content = info_file.read_text()
        assert "info msg" in info_content
        assert "debug only" not in info_content

        debug_content = debug_file.read_text()
        assert "debug only" in debug_content
        assert "info msg" in debug_content

    def test_given_reconfigure_when_called_twice_then_replaces_handlers(self) -> None:
        configure_logging(level="INFO")
        configure_logging(level="INFO")

        assert len(logging.getLogger().handlers) == 1

    def test_given_console_only_outputs_when_configured_then_no_log_file(self) -> None:
        configure_logging(level="INFO")

        assert current_log_file() is None

    def test_given_file_after_console_output_when_configured_then_file_reported(
        self, tmp_path: Path
    ) -> None:
        # Given
        log_file = tmp_path / "logs" / "asmscan.log"
        config = LoggingConfig(
            outputs=[
                LogOutputConfig(),
                LogOutputConfig(format="json", destination=str(log_file)),
            ],
        )

        # When
        configure_logging(config=config)

        # Then
        assert current_log_file() == log_file
        assert log_file.parent.is_dir()


class TestConsoleSuppressingFilter:
    """Console handlers go quiet while change records stream."""

    def _record(self) -> logging.LogRecord:
        return logging.LogRecord("x", logging.WARNING, __file__, 1, "msg", None, None)

    def test_passes_records_normally(self) -> None:
        assert ConsoleSuppressingFilter().filter(self._record()) is True

    def test_drops_records_while_suppressed(self) -> None:
        with suppress_console_logs():
            assert ConsoleSuppressingFilter().filter(self._record()) is False
        assert ConsoleSuppressingFilter().filter(self._record()) is True
