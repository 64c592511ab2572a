"""Structured logging for the workbook editor.

Log calls take keyword arguments that are rendered as ``key=value`` pairs
after the message. The request id, the open document and any values pushed
with :class:`LogContext` live in context variables, and
:class:`StructuredLogFormatter` prefixes every record with them::

    logger = get_logger(__name__)

    with LogContext(document_id="releve.xlsx", sheet="Jan"):
        logger.info("Cell updated", row=3, column=2)
    # [document_id=releve.xlsx sheet=Jan] Cell updated | row=3, column=2
"""

import logging
from collections.abc import Generator
from contextlib import contextmanager
from contextvars import ContextVar, Token
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

DEFAULT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)
_document_id: ContextVar[str | None] = ContextVar("document_id", default=None)
_extra: ContextVar[dict[str, Any] | None] = ContextVar("log_extra", default=None)


def get_request_id() -> str | None:
    return _request_id.get()


def set_request_id(request_id: str | None) -> None:
    _request_id.set(request_id)


def get_document_id() -> str | None:
    """Name of the workbook the current operation works on, if any."""
    return _document_id.get()


def set_document_id(document_id: str | None) -> None:
    _document_id.set(document_id)


def get_extra_context() -> dict[str, Any]:
    return _extra.get() or {}


def set_extra_context(context: dict[str, Any]) -> None:
    _extra.set(context)


def clear_context() -> None:
    _request_id.set(None)
    _document_id.set(None)
    _extra.set(None)


def _render(message: str, fields: dict[str, Any]) -> str:
    if not fields:
        return message
    pairs = ", ".join(f"{key}={value}" for key, value in fields.items())
    return f"{message} | {pairs}"


@dataclass
class PerformanceMetrics:
    """Timing and volume of one decode, encode or transfer.

    Counters left at zero are omitted from the log line.
    """

    operation: str
    start_time: datetime = field(default_factory=lambda: datetime.now(UTC))
    end_time: datetime | None = None
    duration_seconds: float = 0.0
    sheets_processed: int = 0
    rows_processed: int = 0
    bytes_processed: int = 0
    custom_metrics: dict[str, Any] = field(default_factory=dict)

    _COUNTERS = ("sheets_processed", "rows_processed", "bytes_processed")

    def finish(self) -> None:
        self.end_time = datetime.now(UTC)
        self.duration_seconds = (self.end_time - self.start_time).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "operation": self.operation,
            "duration_seconds": self.duration_seconds,
        }
        data.update(
            (name, getattr(self, name))
            for name in self._COUNTERS
            if getattr(self, name)
        )
        if self.custom_metrics:
            data["custom_metrics"] = self.custom_metrics
        return data


class StructuredLogFormatter(logging.Formatter):
    """Formatter that prefixes messages with the logging context."""

    def format(self, record: logging.LogRecord) -> str:
        context = {
            "request_id": get_request_id(),
            "document_id": get_document_id(),
            **get_extra_context(),
        }
        prefix = " ".join(f"{k}={v}" for k, v in context.items() if v)
        if not prefix:
            return super().format(record)

        message = record.msg
        record.msg = f"[{prefix}] {message}"
        try:
            return super().format(record)
        finally:
            record.msg = message


class StructuredLogger:
    """Thin wrapper over :class:`logging.Logger` taking keyword fields."""

    def __init__(self, name: str) -> None:
        self._logger = logging.getLogger(name)

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def _build_message(self, message: str, **kwargs: Any) -> str:
        return _render(message, kwargs)

    def debug(self, message: str, **kwargs: Any) -> None:
        self._logger.debug(_render(message, kwargs))

    def info(self, message: str, **kwargs: Any) -> None:
        self._logger.info(_render(message, kwargs))

    def warning(self, message: str, **kwargs: Any) -> None:
        self._logger.warning(_render(message, kwargs))

    def error(self, message: str, exc_info: bool = False, **kwargs: Any) -> None:
        self._logger.error(_render(message, kwargs), exc_info=exc_info)

    def exception(self, message: str, **kwargs: Any) -> None:
        self._logger.exception(_render(message, kwargs))

    def log_performance(self, metrics: PerformanceMetrics) -> None:
        self.info(f"Performance: {metrics.operation}", **metrics.to_dict())

    def log_api_call(
        self,
        service: str,
        operation: str,
        duration_seconds: float,
        success: bool = True,
        status_code: int | None = None,
        error_message: str | None = None,
    ) -> None:
        """Record one call to a remote service.

        Failed calls are logged at ERROR, successful ones at INFO.
        """
        fields: dict[str, Any] = {
            "service": service,
            "operation": operation,
            "duration_seconds": round(duration_seconds, 3),
            "success": success,
        }
        if status_code is not None:
            fields["status_code"] = status_code
        if error_message:
            fields["error"] = error_message

        level = logging.INFO if success else logging.ERROR
        self._logger.log(level, _render("API call", fields))


class LogContext:
    """Push logging context for the duration of a ``with`` block.

    ``request_id`` and ``document_id`` replace the current values when
    given; any other keyword is merged into the extra context. Everything
    is restored on exit, and the same instance can be entered again.
    """

    def __init__(self, **kwargs: Any) -> None:
        self._fields = kwargs
        self._tokens: list[tuple[ContextVar[Any], Token[Any]]] = []

    def __enter__(self) -> "LogContext":
        extra = dict(self._fields)
        request_id = extra.pop("request_id", None)
        document_id = extra.pop("document_id", None)

        tokens = []
        if request_id is not None:
            tokens.append((_request_id, _request_id.set(request_id)))
        if document_id is not None:
            tokens.append((_document_id, _document_id.set(document_id)))
        tokens.append((_extra, _extra.set({**get_extra_context(), **extra})))
        self._tokens = tokens
        return self

    def __exit__(self, *exc: object) -> None:
        for var, token in reversed(self._tokens):
            var.reset(token)
        self._tokens = []


@contextmanager
def timed_operation(
    logger: StructuredLogger, operation: str
) -> Generator[PerformanceMetrics, None, None]:
    """Yield a :class:`PerformanceMetrics` and log it when the block ends.

    The metrics are logged even when the block raises.
    """
    metrics = PerformanceMetrics(operation=operation)
    try:
        yield metrics
    finally:
        metrics.finish()
        logger.log_performance(metrics)


def configure_logging(
    level: int | str = logging.INFO,
    format_string: str | None = None,
    use_structured_formatter: bool = True,
) -> None:
    """Replace the root handlers with a single stream handler."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    formatter_class = (
        StructuredLogFormatter if use_structured_formatter else logging.Formatter
    )
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(formatter_class(format_string or DEFAULT_FORMAT))

    root = logging.getLogger()
    root.setLevel(level)
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)


def get_logger(name: str) -> StructuredLogger:
    return StructuredLogger(name)
