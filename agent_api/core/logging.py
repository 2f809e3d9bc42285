"""Logging setup and the one-line event helpers used across the service.

Every line has the shape ``KIND detail key=value ...`` so request, error and
external-call events can be grepped apart in the container logs.
"""

import logging
import sys
import time
from typing import Any

LOGGER_NAME = "agent_api"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Configure the package logger; safe to call more than once."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    if logger.handlers:
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(handler)
    return logger


# Module loggers under agent_api.* propagate here
logger = setup_logging()


def _fields(kwargs: dict[str, Any]) -> str:
    return " ".join(f"{k}={v}" for k, v in kwargs.items() if v is not None)


def elapsed_ms(start: float) -> float:
    """Milliseconds since a time.perf_counter() reading."""
    return (time.perf_counter() - start) * 1000


def log_request(method: str, path: str, **kwargs: Any) -> None:
    logger.info(f"REQUEST {method} {path} {_fields(kwargs)}".strip())


def log_response(method: str, path: str, status: int, duration_ms: float) -> None:
    """Log a response; 4xx at WARNING and 5xx at ERROR."""
    if status >= 500:
        level = logging.ERROR
    elif status >= 400:
        level = logging.WARNING
    else:
        level = logging.INFO
    logger.log(level, f"RESPONSE {method} {path} status={status} duration_ms={duration_ms:.2f}")


def log_error(message: str, exc: Exception | None = None, **kwargs: Any) -> None:
    logger.error(f"ERROR {message} {_fields(kwargs)}".strip(), exc_info=exc)


def log_external_call(
    service: str, operation: str, success: bool, duration_ms: float | None = None, **kwargs: Any
) -> None:
    """Log a call to the spreadsheet, Google Sheets, SMTP or WhatsApp."""
    status = "success" if success else "failed"
    if duration_ms is not None:
        kwargs = {"duration_ms": f"{duration_ms:.2f}", **kwargs}
    line = f"EXTERNAL {service} {operation} status={status} {_fields(kwargs)}"
    logger.log(logging.INFO if success else logging.WARNING, line.strip())
