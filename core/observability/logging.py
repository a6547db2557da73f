"""
Structured Logging with Correlation IDs

Provides logging utilities that automatically include:
- school_id: Links logs to the organization scope being worked on
- command: The doctor command that is running (diagnose, cleanup, ...)
- employee_id: Links logs to a specific roster entry
- salary_id: Links logs to a specific ledger record
- stage: Pipeline stage (reconcile, seed, cleanup)

Usage:
    from core.observability.logging import get_logger, with_correlation

    logger = get_logger(__name__)

    with with_correlation(school_id="64b7...", command="fix"):
        logger.info("Seeding ledger")  # Automatically includes correlation IDs
"""

import json
import logging
import sys
from contextvars import ContextVar
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import Optional, Dict, Any, TextIO
from contextlib import contextmanager


# =============================================================================
# Correlation Context
# =============================================================================

@dataclass
class CorrelationContext:
    """Context for correlating logs across one doctor run."""
    school_id: Optional[str] = None
    command: Optional[str] = None
    employee_id: Optional[str] = None
    salary_id: Optional[str] = None
    stage: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict, excluding None values."""
        return {k: v for k, v in asdict(self).items() if v is not None}

    def merge(self, **kwargs) -> "CorrelationContext":
        """Create a new context with merged values."""
        data = self.to_dict()
        data.update({k: v for k, v in kwargs.items() if v is not None})
        return CorrelationContext(**data)


_correlation_context: ContextVar[CorrelationContext] = ContextVar(
    "correlation_context",
    default=CorrelationContext()
)


def get_correlation_context() -> CorrelationContext:
    """Get the current correlation context."""
    return _correlation_context.get()


@contextmanager
def with_correlation(**kwargs):
    """
    Context manager to set correlation IDs for logging.

    Usage:
        with with_correlation(school_id="64b7...", stage="seed"):
            logger.info("Processing")  # Will include school_id and stage
    """
    new_ctx = get_correlation_context().merge(**kwargs)
    token = _correlation_context.set(new_ctx)
    try:
        yield new_ctx
    finally:
        _correlation_context.reset(token)


# =============================================================================
# Formatters
# =============================================================================

def _record_time(record: logging.LogRecord) -> datetime:
    return datetime.fromtimestamp(record.created, tz=timezone.utc)


def correlation_tag(ctx: CorrelationContext) -> str:
    """Short bracketed tag for terminal output, e.g. ``64b7f1f7/fix/seed/emp:507f1f77``."""
    parts = []
    if ctx.school_id:
        parts.append(ctx.school_id[:8])
    if ctx.command:
        parts.append(ctx.command)
    if ctx.stage:
        parts.append(ctx.stage)
    if ctx.employee_id:
        parts.append(f"emp:{ctx.employee_id[:8]}")
    if ctx.salary_id:
        parts.append(f"sal:{ctx.salary_id[:8]}")
    return "/".join(parts) or "-"


class StructuredFormatter(logging.Formatter):
    """
    One JSON object per line, correlation fields flattened in.

    {"timestamp": "2026-03-01T12:00:00.000000Z", "level": "INFO",
     "logger": "payroll.seeder", "message": "Created salary record",
     "school_id": "64b7f1f77bcf86cd79943901", "stage": "seed",
     "base_salary": "31250"}
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": _record_time(record).strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(get_correlation_context().to_dict())
        entry.update(getattr(record, "extra_fields", None) or {})

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class HumanReadableFormatter(logging.Formatter):
    """
    Terminal formatter.

    2026-03-01 12:00:00 [INFO ] payroll.seeder [64b7f1f7/fix/seed]: Created salary record
    """

    def format(self, record: logging.LogRecord) -> str:
        line = "{time} [{level:5}] {name} [{tag}]: {message}".format(
            time=_record_time(record).strftime("%Y-%m-%d %H:%M:%S"),
            level=record.levelname,
            name=record.name,
            tag=correlation_tag(get_correlation_context()),
            message=record.getMessage(),
        )
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


# =============================================================================
# Logger with Correlation Support
# =============================================================================

class CorrelatedLogger:
    """
    Thin wrapper over a stdlib logger.

    Correlation fields are read by the formatters at format time; per-call
    structured fields go in ``extra_fields``.
    """

    def __init__(self, logger: logging.Logger):
        self._logger = logger

    @property
    def name(self) -> str:
        return self._logger.name

    def log(self, level: int, msg: str, *args, extra_fields: Optional[Dict[str, Any]] = None,
            exc_info: Any = None):
        if not self._logger.isEnabledFor(level):
            return
        if exc_info is True:
            exc_info = sys.exc_info()

        record = self._logger.makeRecord(
            self._logger.name, level, "(unknown file)", 0, msg, args, exc_info or None,
        )
        record.extra_fields = dict(extra_fields or {})
        self._logger.handle(record)

    def debug(self, msg: str, *args, **kwargs):
        self.log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs):
        self.log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs):
        self.log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args, **kwargs):
        self.log(logging.ERROR, msg, *args, **kwargs)

    def exception(self, msg: str, *args, **kwargs):
        kwargs["exc_info"] = True
        self.log(logging.ERROR, msg, *args, **kwargs)

    def setLevel(self, level):
        self._logger.setLevel(level)

    def isEnabledFor(self, level):
        return self._logger.isEnabledFor(level)


# =============================================================================
# Logger Factory
# =============================================================================

APP_LOGGERS = ("payroll", "reconciliation", "core")

_loggers: Dict[str, CorrelatedLogger] = {}
_handler: Optional[logging.Handler] = None


def configure_logging(
    level: int = logging.INFO,
    json_format: bool = False,
    stream: Optional[TextIO] = None,
) -> logging.Handler:
    """
    Install the doctor's log handler on the root logger.

    Calling it again replaces the previous handler instead of stacking a
    second one, so each CLI invocation gets exactly one output stream.
    Logs go to stderr by default; stdout is reserved for the report.

    Args:
        level: Logging level for the app loggers and the handler
        json_format: JSON lines instead of human-readable text
        stream: Output stream (defaults to sys.stderr)

    Returns:
        The installed handler
    """
    global _handler

    root = logging.getLogger()
    if _handler is not None:
        root.removeHandler(_handler)

    _handler = logging.StreamHandler(stream or sys.stderr)
    _handler.setLevel(level)
    _handler.setFormatter(StructuredFormatter() if json_format else HumanReadableFormatter())
    root.addHandler(_handler)

    for logger_name in APP_LOGGERS:
        logging.getLogger(logger_name).setLevel(level)

    return _handler


def get_logger(name: str) -> CorrelatedLogger:
    """Correlated logger for ``name`` (typically __name__), cached per name."""
    if name not in _loggers:
        _loggers[name] = CorrelatedLogger(logging.getLogger(name))
    return _loggers[name]


# =============================================================================
# Convenience Functions for Pipeline Stages
# =============================================================================

def log_stage_start(stage: str, **fields):
    get_logger(f"reconciliation.{stage}").info(f"Stage started: {stage}", extra_fields=fields)


def log_stage_complete(stage: str, duration_ms: Optional[float] = None, **fields):
    if duration_ms is not None:
        fields["duration_ms"] = duration_ms
    get_logger(f"reconciliation.{stage}").info(f"Stage completed: {stage}", extra_fields=fields)
