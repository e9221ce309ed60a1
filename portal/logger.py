"""
Structured JSON Logging Module.

Every record is written as one JSON object so auth events (sign-in,
verification, inactivity logout, approval decisions) can be queried
from the log.  Sign-in and password flows pass credentials and codes
around, so a :class:`RedactingFilter` scrubs secret-bearing fields from
the structured ``extra`` payload before any handler formats it.

Usage::

    log = get_logger("auth")
    log.info("Code dispatched", extra={"event": "OTP_SENT", "email": "a@x.com"})
"""

import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional, TextIO

REDACTED: str = "***"

# Field names whose values never reach a handler.
SENSITIVE_KEYS: frozenset[str] = frozenset({
    "password",
    "current_password",
    "new_password",
    "confirm_password",
    "code",
    "otp",
    "otp_code",
    "access_token",
    "refresh_token",
    "token",
})

# Standard LogRecord attribute names; anything else came in via ``extra``.
_STANDARD_ATTRS: frozenset[str] = frozenset(
    logging.LogRecord(
        name="", level=0, pathname="", lineno=0, msg="", args=(), exc_info=None
    ).__dict__.keys()
) | {"message", "asctime"}


def redact(value: Any) -> Any:
    """Return *value* with every sensitive key masked, at any depth."""
    if isinstance(value, dict):
        return {
            key: REDACTED if str(key).lower() in SENSITIVE_KEYS else redact(item)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [redact(item) for item in value]
    return value


def _jsonable(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(key): _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    if value is None or isinstance(value, (bool, int, float)):
        return value
    return str(value)


class RedactingFilter(logging.Filter):
    """Mask secret-bearing ``extra`` fields on the record in place.

    Attached to handlers rather than loggers so records propagated from
    child loggers are scrubbed too.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        for key in list(record.__dict__):
            if key in _STANDARD_ATTRS:
                continue
            if key.lower() in SENSITIVE_KEYS:
                setattr(record, key, REDACTED)
            else:
                setattr(record, key, redact(record.__dict__[key]))
        return True


class JSONFormatter(logging.Formatter):
    """Render a record as a JSON object.

    Keys: ``timestamp`` (ISO-8601, UTC), ``level``, ``logger_name``,
    ``message``, then ``event`` when the caller tagged one, ``extra`` for
    the remaining structured fields and ``exception`` for tracebacks.
    Nested values (audit ``details``) stay structured.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger_name": record.name,
            "message": record.getMessage(),
        }

        extra_fields = {
            key: _jsonable(value)
            for key, value in record.__dict__.items()
            if key not in _STANDARD_ATTRS
        }
        event = extra_fields.pop("event", None)
        if event is not None:
            entry["event"] = event
        if extra_fields:
            entry["extra"] = extra_fields

        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            entry["exception"] = record.exc_text

        return json.dumps(entry, ensure_ascii=False)


def _build_handler(handler: logging.Handler, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler.addFilter(RedactingFilter())
    handler.setFormatter(JSONFormatter())
    return handler


class StructuredLogger:
    """Injectable logger wrapper.

    Services receive an instance through their constructor and call the
    usual ``debug``/``info``/``warning``/``error``/``critical`` methods.
    Handlers are attached once per logger name: JSON to *stream*
    (stdout by default) and to a rotating file, falling back to the
    stream alone when the file cannot be opened.

    Parameters
    ----------
    name:
        Logger name; also the ``logger_name`` key of each record.
    level:
        Minimum level.  Defaults to ``LOG_LEVEL`` from the configuration.
    stream:
        Console stream; tests pass a ``StringIO``.
    log_file:
        Path of the rotating log.  Defaults to ``LOG_FILE``; pass ``""``
        to log to the stream only.
    """

    def __init__(
        self,
        name: str = "portal",
        level: Optional[int] = None,
        stream: Optional[TextIO] = None,
        log_file: Optional[str] = None,
        max_bytes: Optional[int] = None,
        backup_count: Optional[int] = None,
    ) -> None:
        # Lazy import to avoid circular dependency at module level
        from portal.config import get_config
        cfg = get_config()

        resolved_level = (
            level if level is not None
            else logging.getLevelName(cfg.LOG_LEVEL.upper())
        )
        self._logger: logging.Logger = logging.getLogger(name)
        self._logger.setLevel(resolved_level)

        if self._logger.handlers:
            return

        self._logger.addHandler(
            _build_handler(logging.StreamHandler(stream or sys.stdout), resolved_level)
        )

        path = cfg.LOG_FILE if log_file is None else log_file
        if not path:
            return
        try:
            Path(path).parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                filename=path,
                maxBytes=max_bytes if max_bytes is not None else cfg.LOG_MAX_BYTES,
                backupCount=(
                    backup_count if backup_count is not None else cfg.LOG_BACKUP_COUNT
                ),
                encoding="utf-8",
            )
        except OSError as exc:
            self._logger.warning(
                "Could not open log file '%s': %s. Logging to console only.",
                path,
                exc,
            )
            return
        self._logger.addHandler(_build_handler(file_handler, resolved_level))

    @property
    def logger(self) -> logging.Logger:
        """The underlying ``logging.Logger``."""
        return self._logger

    def debug(self, msg: str, *args: object, **kwargs: Any) -> None:
        self._logger.debug(msg, *args, **kwargs)

    def info(self, msg: str, *args: object, **kwargs: Any) -> None:
        self._logger.info(msg, *args, **kwargs)

    def warning(self, msg: str, *args: object, **kwargs: Any) -> None:
        self._logger.warning(msg, *args, **kwargs)

    def error(self, msg: str, *args: object, **kwargs: Any) -> None:
        self._logger.error(msg, *args, **kwargs)

    def critical(self, msg: str, *args: object, **kwargs: Any) -> None:
        self._logger.critical(msg, *args, **kwargs)


def get_logger(name: str = "portal") -> StructuredLogger:
    """Return a ``StructuredLogger`` named *name* with configured defaults."""
    return StructuredLogger(name=name)
