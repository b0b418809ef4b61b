import logging
import sys
import time
import traceback
from datetime import datetime, UTC
from pathlib import Path
from typing import Any, Dict, Optional
from functools import wraps

import structlog

from .config import get_settings

SENSITIVE_FIELDS = {"password", "token", "secret", "apikey", "authorization"}

def configure_logging() -> None:
    """
    Wire structlog onto the stdlib logging tree.

    JSON lines in production, colourised console output everywhere else.
    When LOG_DIR is set, app/audit/error records are also written to files.
    """
    settings = get_settings()
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    renderer = (
        structlog.processors.JSONRenderer()
        if settings.is_production
        else structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(level=level, format="%(message)s", stream=sys.stdout)
    logging.getLogger().setLevel(level)

    if settings.LOG_DIR:
        log_dir = Path(settings.LOG_DIR)
        log_dir.mkdir(exist_ok=True)
        for name in ("app", "audit", "error"):
            handler = logging.FileHandler(log_dir / f"{name}.log")
            handler.setFormatter(logging.Formatter("%(message)s"))
            logging.getLogger(name).addHandler(handler)

# Create loggers
app_logger = structlog.get_logger("app")
audit_logger = structlog.get_logger("audit")
error_logger = structlog.get_logger("error")

def sanitize_body(body: Any) -> Any:
    """Redact credentials before a request body is logged."""
    if not isinstance(body, dict):
        return body
    return {
        key: "***REDACTED***" if key.lower() in SENSITIVE_FIELDS else value
        for key, value in body.items()
    }

def audit_log(action: str, user_id: Any = None, **kwargs):
    """
    Log audit events with user context
    """
    audit_logger.info(
        action,
        timestamp=datetime.now(UTC).isoformat(),
        user_id=str(user_id) if user_id is not None else None,
        **kwargs
    )

def error_log(error: Exception, context: Optional[Dict[str, Any]] = None):
    """
    Log errors with context
    """
    error_logger.error(
        "error",
        timestamp=datetime.now(UTC).isoformat(),
        error_type=type(error).__name__,
        error_message=str(error),
        context=context or {},
        stack_trace="".join(traceback.format_exception(type(error), error, error.__traceback__)),
    )

def log_business_operation(operation: str, **details):
    app_logger.info(operation, type="business", **details)

def log_db_operation(operation: str, table: str, **details):
    app_logger.debug(f"db {operation}: {table}", type="database", operation=operation, table=table, **details)

def log_search_request(func):
    """
    Decorator for search entry points: records query, flags and duration
    """
    @wraps(func)
    def wrapper(self, query, include_inactive: bool = False, *args, **kwargs):
        start_time = time.perf_counter()
        try:
            result = func(self, query, include_inactive, *args, **kwargs)
        except Exception as e:
            error_log(
                e,
                context={
                    "operation": "product_search",
                    "query": query if isinstance(query, str) else repr(query),
                    "include_inactive": include_inactive,
                }
            )
            raise

        log_business_operation(
            "Searching products",
            query=query,
            include_inactive=include_inactive,
            result_count=len(result),
            duration=round(time.perf_counter() - start_time, 4),
        )
        return result

    return wrapper
