"""
Central logging setup for the coordinates generator.

Every module asks ServiceLogger for its logger, and the CLI configures the
root logger once at startup. The broadcaster, the query API and the MQTT
transport therefore share one format and one set of destinations.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional, Dict, Any
from enum import Enum


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5

# Libraries that log every packet or request at INFO/DEBUG
NOISY_LOGGERS = ('paho.mqtt.client', 'uvicorn.access')


class LogLevel(Enum):
    """Enumeration of available log levels."""
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL


class ServiceLogger:
    """Owns root logger configuration for the whole process."""

    _initialized = False
    _loggers: Dict[str, logging.Logger] = {}

    @classmethod
    def setup_logging(
        cls,
        level: LogLevel = LogLevel.INFO,
        log_file: Optional[Path] = None,
        console_output: bool = True,
        verbose: bool = False,
        quiet: bool = False
    ) -> None:
        """
        Configure the root logger. Only the first call has any effect.

        Args:
            level: Level used when neither verbose nor quiet is set
            log_file: Rotating log file that always records DEBUG
            console_output: Log to stdout
            verbose: Force DEBUG
            quiet: Only errors, sent to stderr
        """
        if cls._initialized:
            return

        if quiet:
            root_level = logging.ERROR
        elif verbose:
            root_level = logging.DEBUG
        else:
            root_level = level.value

        root_logger = logging.getLogger()
        root_logger.setLevel(root_level)
        root_logger.handlers.clear()
        formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

        if quiet:
            cls._add_handler(root_logger, logging.StreamHandler(sys.stderr), logging.ERROR, formatter)
        elif console_output:
            cls._add_handler(root_logger, logging.StreamHandler(sys.stdout), root_level, formatter)

        if log_file:
            try:
                log_file.parent.mkdir(parents=True, exist_ok=True)
                file_handler = logging.handlers.RotatingFileHandler(
                    log_file, maxBytes=LOG_FILE_MAX_BYTES, backupCount=LOG_FILE_BACKUPS
                )
            except OSError as e:
                logging.warning(f"Failed to create log file {log_file}: {e}")
            else:
                cls._add_handler(root_logger, file_handler, logging.DEBUG, formatter)

        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

        cls._initialized = True

    @staticmethod
    def _add_handler(root_logger: logging.Logger, handler: logging.Handler, level: int,
                     formatter: logging.Formatter) -> None:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """Return the (cached) logger for a module, usually ``__name__``."""
        return cls._loggers.setdefault(name, logging.getLogger(name))

    @classmethod
    def log_configuration(cls, config: Dict[str, Any], logger_name: str = "config") -> None:
        """Log the effective configuration, one region per line."""
        logger = cls.get_logger(logger_name)

        logger.info("Configuration loaded:")
        for key, value in config.items():
            if isinstance(value, list) and value and isinstance(value[0], dict):
                logger.info(f"  {key}:")
                for item in value:
                    logger.info(f"    - {item}")
            else:
                logger.info(f"  {key}: {value}")

    @classmethod
    def reset(cls) -> None:
        """Undo setup_logging (used by tests)."""
        cls._initialized = False
        cls._loggers.clear()

        root_logger = logging.getLogger()
        root_logger.handlers.clear()
        root_logger.setLevel(logging.WARNING)


def log_exception(
    logger: logging.Logger,
    exception: Exception,
    context: str = "",
    include_traceback: bool = True
) -> None:
    """
    Log ``exception`` at ERROR as ``context: Type: message``.

    The traceback is attached when ``include_traceback`` is set, which only
    makes sense when called from inside the ``except`` block.
    """
    message = f"{type(exception).__name__}: {exception}"
    if context:
        message = f"{context}: {message}"

    if include_traceback:
        logger.exception(message)
    else:
        logger.error(message)
