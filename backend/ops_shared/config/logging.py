"""
Structured logging for the lifecycle engine.

Loggers take context as keyword arguments:

    logger = get_logger(__name__)
    logger.info("Vendor created", vendor_id=3, organization_id=1)

While a cascade runs, every record also carries the cascade it belongs to
(operation, root kind and root id), set through cascade_scope(). A reaper
run or a write service logs without that block.
"""

import json
import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Iterator

from ops_shared.config.settings import settings

_cascade_var: ContextVar[dict[str, Any] | None] = ContextVar("cascade", default=None)


@contextmanager
def cascade_scope(operation: str, kind: str, root_id: int) -> Iterator[dict[str, Any]]:
    """Tag every record logged inside the block with the running cascade."""
    scope = {"operation": operation, "kind": kind, "root_id": root_id}
    token = _cascade_var.set(scope)
    try:
        yield scope
    finally:
        _cascade_var.reset(token)


def current_cascade() -> dict[str, Any] | None:
    return _cascade_var.get()


class CascadeContextFilter(logging.Filter):
    """Copies the running cascade, if any, onto the record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.cascade = current_cascade()
        return True


class LifecycleFormatter(logging.Formatter):
    """
    One formatter, two renderings: a JSON document per line for log
    shippers, or a compact colored line for a terminal.
    """

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, as_json: bool):
        super().__init__()
        self.as_json = as_json

    def format(self, record: logging.LogRecord) -> str:
        context: dict[str, Any] = getattr(record, "context", None) or {}
        cascade: dict[str, Any] | None = getattr(record, "cascade", None)
        if self.as_json:
            return self._as_json(record, context, cascade)
        return self._as_text(record, context, cascade)

    def _as_json(self, record: logging.LogRecord, context: dict, cascade: dict | None) -> str:
        doc: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if context:
            doc["ctx"] = context
        if cascade:
            doc["cascade"] = cascade
        if record.exc_info:
            doc["exc"] = self.formatException(record.exc_info)
        if settings.debug:
            doc["at"] = f"{record.pathname}:{record.lineno}"
        return json.dumps(doc, default=str)

    def _as_text(self, record: logging.LogRecord, context: dict, cascade: dict | None) -> str:
        color = self.LEVEL_COLORS.get(record.levelname, "")
        stamp = datetime.now().strftime("%H:%M:%S")
        line = f"{color}{stamp} {record.levelname[0]}{self.RESET} {record.name} {record.getMessage()}"
        if cascade:
            line += f" [{cascade['operation']} {cascade['kind']}:{cascade['root_id']}]"
        if context:
            line += " " + " ".join(f"{key}={value}" for key, value in context.items())
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class StructuredLogger(logging.Logger):
    """Logger whose calls accept arbitrary keyword context."""

    def _log(  # type: ignore[override]
        self,
        level: int,
        msg: object,
        args: Any,
        exc_info: Any = None,
        extra: dict[str, Any] | None = None,
        stack_info: bool = False,
        stacklevel: int = 1,
        **context: Any,
    ) -> None:
        extra = dict(extra or {})
        extra["context"] = context
        super()._log(
            level, msg, args,
            exc_info=exc_info, extra=extra, stack_info=stack_info, stacklevel=stacklevel + 1,
        )


logging.setLoggerClass(StructuredLogger)


def setup_logging() -> None:
    """Install the stdout handler on the root logger. Safe to call twice."""
    level = logging.DEBUG if settings.debug else logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.addFilter(CascadeContextFilter())
    handler.setFormatter(LifecycleFormatter(as_json=settings.environment == "production"))

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)

    for noisy in ("sqlalchemy.engine", "uvicorn.access", "httpx"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> StructuredLogger:
    return logging.getLogger(name)  # type: ignore[return-value]


def mask_email(email: str | None) -> str:
    """"ana@acme.test" -> "an***@acme.test"."""
    if not email or "@" not in email:
        return "<no-email>"
    local, domain = email.split("@", 1)
    return f"{local[:2]}***@{domain}"


api_logger = get_logger("ops_api")
lifecycle_logger = get_logger("ops_api.lifecycle")
retention_logger = get_logger("ops_api.retention")
