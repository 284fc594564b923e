"""
Tests for logging configuration and utilities.
"""

import logging
import logging.handlers

from drone_coordinates_generator.logging_config import LogLevel, ServiceLogger, log_exception


class TestLogLevel:
    """Test LogLevel enumeration."""

    def test_log_level_values(self):
        """Test that LogLevel enum has correct values."""
        assert LogLevel.DEBUG.value == logging.DEBUG
        assert LogLevel.INFO.value == logging.INFO
        assert LogLevel.WARNING.value == logging.WARNING
        assert LogLevel.ERROR.value == logging.ERROR
        assert LogLevel.CRITICAL.value == logging.CRITICAL


class TestServiceLogger:
    """Test ServiceLogger class."""

    def setup_method(self):
        """Reset logger state before each test."""
        ServiceLogger.reset()

    def test_setup_logging_basic(self):
        """Test basic logging setup."""
        ServiceLogger.setup_logging(level=LogLevel.INFO)

        assert logging.getLogger().level == logging.INFO
        assert ServiceLogger._initialized

    def test_setup_logging_verbose(self):
        """Test verbose logging setup."""
        ServiceLogger.setup_logging(verbose=True)

        assert logging.getLogger().level == logging.DEBUG

    def test_setup_logging_quiet(self):
        """Test quiet logging setup."""
        ServiceLogger.setup_logging(quiet=True)

        root_logger = logging.getLogger()
        assert root_logger.level == logging.ERROR
        assert all(handler.level == logging.ERROR for handler in root_logger.handlers)

    def test_setup_logging_with_file(self, tmp_path):
        """Test logging setup with file output."""
        log_file = tmp_path / "logs" / "service.log"

        ServiceLogger.setup_logging(level=LogLevel.INFO, log_file=log_file, console_output=False)

        logger = ServiceLogger.get_logger("test")
        logger.info("Broadcast coordinate: test message")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert log_file.exists()
        assert "Broadcast coordinate: test message" in log_file.read_text()

    def test_setup_logging_file_creation_error(self, tmp_path):
        """An unusable log path does not prevent logging setup."""
        blocker = tmp_path / "not_a_directory"
        blocker.write_text("")

        ServiceLogger.setup_logging(log_file=blocker / "service.log", console_output=False)

        assert ServiceLogger._initialized
        assert not any(
            isinstance(handler, logging.handlers.RotatingFileHandler)
            for handler in logging.getLogger().handlers
        )

    def test_third_party_loggers_quietened(self):
        ServiceLogger.setup_logging(verbose=True)

        assert logging.getLogger("paho.mqtt.client").level == logging.WARNING
        assert logging.getLogger("uvicorn.access").level == logging.WARNING

    def test_get_logger_caching(self):
        """Test that get_logger caches logger instances."""
        logger1 = ServiceLogger.get_logger("test")
        logger2 = ServiceLogger.get_logger("test")

        assert logger1 is logger2
        assert "test" in ServiceLogger._loggers

    def test_log_configuration(self, caplog):
        """Test configuration logging utility."""
        config = {
            "interval_ms": 3000,
            "regions": [{"name": "Medellín", "lat_range": [6.2, 6.35], "lon_range": [-75.65, -75.5]}],
            "mqtt_topic": "coordinates-broadcast"
        }

        with caplog.at_level(logging.INFO):
            ServiceLogger.log_configuration(config, "test_config")

        assert "Configuration loaded:" in caplog.text
        assert "interval_ms: 3000" in caplog.text
        assert "regions:" in caplog.text
        assert "'name': 'Medellín'" in caplog.text
        assert "mqtt_topic: coordinates-broadcast" in caplog.text

    def test_reset(self):
        """Test logger reset functionality."""
        ServiceLogger.setup_logging()
        ServiceLogger.get_logger("test")

        assert ServiceLogger._initialized
        assert len(ServiceLogger._loggers) > 0

        ServiceLogger.reset()

        assert not ServiceLogger._initialized
        assert len(ServiceLogger._loggers) == 0
        assert logging.getLogger().handlers == []

    def test_setup_logging_idempotent(self):
        """Test that setup_logging can be called multiple times safely."""
        ServiceLogger.setup_logging(level=LogLevel.INFO)
        ServiceLogger.setup_logging(level=LogLevel.DEBUG)

        # First call wins
        assert logging.getLogger().level == logging.INFO


class TestLogException:
    """Test log_exception utility function."""

    def test_log_exception_with_traceback(self, caplog):
        """Test exception logging with traceback."""
        logger = logging.getLogger("test")

        try:
            raise ValueError("test error")
        except ValueError as exception:
            with caplog.at_level(logging.ERROR):
                log_exception(logger, exception, "test context", include_traceback=True)

        assert "test context: ValueError: test error" in caplog.text
        assert "Traceback" in caplog.text

    def test_log_exception_without_traceback(self, caplog):
        """Test exception logging without traceback."""
        logger = logging.getLogger("test")

        with caplog.at_level(logging.ERROR):
            log_exception(logger, ValueError("test error"), "test context", include_traceback=False)

        assert "test context: ValueError: test error" in caplog.text
        assert "Traceback" not in caplog.text

    def test_log_exception_no_context(self, caplog):
        """Test exception logging without context."""
        logger = logging.getLogger("test")

        with caplog.at_level(logging.ERROR):
            log_exception(logger, ValueError("test error"), include_traceback=False)

        assert "ValueError: test error" in caplog.text
        assert "context:" not in caplog.text
