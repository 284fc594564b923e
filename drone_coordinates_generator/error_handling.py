"""
Exceptions raised by the coordinates generator and helpers around them.

Configuration problems are fatal at startup; publish problems are transient
and are counted per tick; validation problems reject a single record.
"""

import logging
import functools
import time
from typing import Optional, Callable, Any, Dict, List, Tuple, Type
from contextlib import contextmanager


class ServiceError(Exception):
    """Root of the service's exception hierarchy."""

    def __init__(self, message: str, error_code: Optional[str] = None, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}" if self.error_code else self.message


class ConfigurationError(ServiceError, ValueError):
    """Malformed settings or regions. The service refuses to start."""


class PublishError(ServiceError):
    """The broker connection could not be set up or a reading could not be handed over."""


class ValidationError(ServiceError):
    """A reading record received from outside is malformed."""


def retry_on_exception(
    max_attempts: int = 3,
    delay_seconds: float = 1.0,
    backoff_multiplier: float = 2.0,
    exceptions: Tuple[Type[BaseException], ...] = (Exception,),
    logger: Optional[logging.Logger] = None
) -> Callable:
    """
    Retry the decorated call with exponential backoff.

    Only ``exceptions`` are retried; anything else propagates immediately.
    The last failure is re-raised once ``max_attempts`` is exhausted.
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            delay = delay_seconds
            for attempt in range(1, max_attempts + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if attempt == max_attempts:
                        if logger:
                            logger.error(f"All {max_attempts} attempts failed for {func.__name__}")
                        raise
                    if logger:
                        logger.warning(
                            f"Attempt {attempt}/{max_attempts} failed for {func.__name__}: {e}. "
                            f"Retrying in {delay:.1f}s..."
                        )
                    time.sleep(delay)
                    delay *= backoff_multiplier

        return wrapper
    return decorator


@contextmanager
def error_context(operation: str, logger: Optional[logging.Logger] = None, reraise: bool = True):
    """
    Log the start, end or failure of ``operation``.

    With ``reraise=False`` a failure is logged and swallowed, which suits
    best-effort teardown such as disconnecting from the broker.
    """
    if logger:
        logger.debug(f"Starting operation: {operation}")
    try:
        yield
    except Exception as e:
        if logger:
            logger.error(f"Error in operation '{operation}': {e}")
        if reraise:
            raise
    else:
        if logger:
            logger.debug(f"Completed operation: {operation}")


def handle_configuration_error(
    error: Exception,
    config_source: str = "configuration",
    logger: Optional[logging.Logger] = None
) -> ConfigurationError:
    """Wrap a loading failure from ``config_source`` as a ConfigurationError."""
    if isinstance(error, ConfigurationError):
        return error

    message = f"Configuration error in {config_source}: {error}"
    if logger:
        logger.error(message)

    return ConfigurationError(
        message,
        error_code="CONFIG_ERROR",
        context={"source": config_source, "original_error": str(error)}
    )


def create_error_summary(errors: List[Any]) -> Dict[str, Any]:
    """
    Count errors collected during shutdown by type.

    Entries that are not exceptions are reported under ``Unknown``.
    """
    details = [
        {
            "type": type(error).__name__ if isinstance(error, Exception) else "Unknown",
            "message": str(error)
        }
        for error in errors
    ]

    counts: Dict[str, int] = {}
    for detail in details:
        counts[detail["type"]] = counts.get(detail["type"], 0) + 1

    return {
        "total_errors": len(errors),
        "error_counts": counts,
        "error_details": details
    }
