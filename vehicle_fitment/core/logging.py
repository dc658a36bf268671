"""Structured logging for the selector, the matcher and the HTTP layer.

One "vehicle_fitment" logger writes `timestamp - level - name - message`
lines to stdout. Messages start with an upper-case tag (REQUEST, DB,
SELECTOR, ...) so they can be grepped per concern.
"""

import logging
import sys
from typing import Any

# Third-party loggers that log every Supabase round-trip at INFO
_NOISY_LOGGERS = ("httpx", "httpcore", "hpack")


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Configure the application logger; safe to call more than once."""
    logger = logging.getLogger("vehicle_fitment")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    if logger.handlers:
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(levelname)s - %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logger.addHandler(handler)
    logger.propagate = False

    return logger


logger = setup_logging()


def _fields(**kwargs: Any) -> str:
    return " ".join(f"{k}={v}" for k, v in kwargs.items() if v is not None)


def log_request(method: str, path: str, **kwargs: Any) -> None:
    logger.info(f"REQUEST {method} {path} {_fields(**kwargs)}".strip())


def log_response(method: str, path: str, status: int, duration_ms: float) -> None:
    logger.info(f"RESPONSE {method} {path} status={status} duration_ms={duration_ms:.2f}")


def log_error(message: str, exc: Exception | None = None, **kwargs: Any) -> None:
    """Log an error, with traceback when an exception is given."""
    text = f"ERROR {message} {_fields(**kwargs)}".strip()
    if exc:
        logger.error(text, exc_info=exc)
    else:
        logger.error(text)


def log_db_query(
    operation: str,
    table: str,
    duration_ms: float | None = None,
    rows: int | None = None,
) -> None:
    duration = f"{duration_ms:.2f}" if duration_ms else None
    logger.debug(
        f"DB {operation} {_fields(table=table, rows=rows, duration_ms=duration)}"
    )


def log_external_call(
    service: str, operation: str, success: bool, duration_ms: float | None = None
) -> None:
    """Log a call to something outside the process (Supabase, an options provider)."""
    status = "success" if success else "failed"
    duration = f"{duration_ms:.2f}" if duration_ms else None
    message = f"EXTERNAL {service} {operation} {_fields(status=status, duration_ms=duration)}"
    if success:
        logger.info(message)
    else:
        logger.warning(message)


def log_transition(event: str, level: str | None = None, **kwargs: Any) -> None:
    """Log a selector state transition (debug level; one per event)."""
    logger.debug(f"SELECTOR {event} {_fields(level=level, **kwargs)}".strip())
