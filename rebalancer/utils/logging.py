"""Structured JSON logging for the rebalancer."""

import json
import logging
import sys
import threading
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional

ROOT_LOGGER_NAME = "rebalancer"

_RESERVED_ATTRS = frozenset((
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "message", "taskName",
))


class JSONFormatter(logging.Formatter):
    """Format log records as JSON for structured logging."""

    def __init__(
        self,
        include_timestamp: bool = True,
        include_level: bool = True,
        include_logger: bool = True,
        include_location: bool = False,
        extra_fields: Optional[dict] = None,
    ):
        super().__init__()
        self.include_timestamp = include_timestamp
        self.include_level = include_level
        self.include_logger = include_logger
        self.include_location = include_location
        self.extra_fields = extra_fields or {}

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON string."""
        log_data: dict[str, Any] = {}

        if self.include_timestamp:
            created = datetime.fromtimestamp(record.created, tz=timezone.utc)
            log_data["timestamp"] = created.isoformat().replace("+00:00", "Z")

        if self.include_level:
            log_data["level"] = record.levelname

        if self.include_logger:
            log_data["logger"] = record.name

        if self.include_location:
            log_data["location"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            }

        log_data["message"] = record.getMessage()

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Fields passed through `extra=`
        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS:
                continue
            try:
                json.dumps(value)
                log_data[key] = value
            except (TypeError, ValueError):
                log_data[key] = str(value)

        for key, value in self.extra_fields.items():
            if key not in log_data:
                log_data[key] = value

        return json.dumps(log_data, default=str)


class RebalancerContextFilter(logging.Filter):
    """Add per-thread context (portfolio file, command...) to log records."""

    _context = threading.local()

    @classmethod
    def set_context(cls, **kwargs) -> None:
        if not hasattr(cls._context, "data"):
            cls._context.data = {}
        cls._context.data.update(kwargs)

    @classmethod
    def clear_context(cls) -> None:
        cls._context.data = {}

    @classmethod
    def get_context(cls) -> dict:
        if not hasattr(cls._context, "data"):
            cls._context.data = {}
        return cls._context.data.copy()

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in self.get_context().items():
            setattr(record, key, value)
        return True


class RebalancerLogger:
    """
    Configured logger for the rebalancer.

    Attaches console and optional rotating file handlers, in JSON or plain
    text, to a named logger.
    """

    def __init__(
        self,
        name: str = ROOT_LOGGER_NAME,
        level: str = "INFO",
        log_file: Optional[str] = None,
        json_format: bool = True,
        max_bytes: int = 5 * 1024 * 1024,  # 5 MB
        backup_count: int = 3,
        console_output: bool = True,
    ):
        self.name = name
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level.upper()))
        self.logger.handlers = []

        # On handlers so records from child loggers get the context too
        self.context_filter = RebalancerContextFilter()

        if json_format:
            formatter: logging.Formatter = JSONFormatter(include_location=True)
        else:
            formatter = logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            )

        if console_output:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setFormatter(formatter)
            console_handler.addFilter(self.context_filter)
            self.logger.addHandler(console_handler)

        if log_file:
            log_path = Path(log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)

            file_handler = RotatingFileHandler(
                log_file,
                maxBytes=max_bytes,
                backupCount=backup_count,
            )
            file_handler.setFormatter(formatter)
            file_handler.addFilter(self.context_filter)
            self.logger.addHandler(file_handler)

    def set_context(self, **kwargs) -> None:
        RebalancerContextFilter.set_context(**kwargs)

    def clear_context(self) -> None:
        RebalancerContextFilter.clear_context()

    def get_logger(self) -> logging.Logger:
        return self.logger


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    json_format: bool = False,
    console_output: bool = True,
) -> logging.Logger:
    """
    Set up logging for the rebalancer package.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        log_file: Path to log file (optional)
        json_format: Use JSON formatting
        console_output: Output to stderr

    Returns:
        Configured root package logger
    """
    return RebalancerLogger(
        name=ROOT_LOGGER_NAME,
        level=level,
        log_file=log_file,
        json_format=json_format,
        console_output=console_output,
    ).get_logger()


def setup_logging_from_settings(settings: dict, verbose: bool = False) -> logging.Logger:
    """Configure logging from the `logging` section of validated settings."""
    section = settings.get("logging", {})
    return setup_logging(
        level="DEBUG" if verbose else section.get("level", "INFO"),
        log_file=section.get("file"),
        json_format=section.get("json_format", False),
    )


def get_logger(name: str) -> logging.Logger:
    """Get a child logger under the rebalancer root."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


class LogContext:
    """Context manager for scoped logging context."""

    def __init__(self, **kwargs):
        self.context = kwargs
        self.previous_context: dict = {}

    def __enter__(self):
        self.previous_context = RebalancerContextFilter.get_context()
        RebalancerContextFilter.set_context(**self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        RebalancerContextFilter.clear_context()
        if self.previous_context:
            RebalancerContextFilter.set_context(**self.previous_context)
        return False


def log_portfolio_change(
    logger: logging.Logger,
    action: str,
    index: int,
    asset_count: int,
    **kwargs,
) -> None:
    """Log an add/edit/remove on the asset list."""
    logger.info(
        f"Portfolio {action} at row {index} ({asset_count} assets)",
        extra={
            "event_type": "portfolio_change",
            "action": action,
            "index": index,
            "asset_count": asset_count,
            **kwargs,
        },
    )


def log_rebalance_plan(
    logger: logging.Logger,
    asset_count: int,
    total_market_value: float,
    total_buy_only: float,
    allocation_complete: bool,
    **kwargs,
) -> None:
    """Log a computed rebalance plan summary."""
    logger.info(
        f"Rebalance plan for {asset_count} assets: value {total_market_value:,.2f}, "
        f"buy-only contribution {total_buy_only:,.2f}",
        extra={
            "event_type": "rebalance_plan",
            "asset_count": asset_count,
            "total_market_value": total_market_value,
            "total_buy_only": total_buy_only,
            "allocation_complete": allocation_complete,
            **kwargs,
        },
    )
    if not allocation_complete:
        logger.warning(
            "Target allocations do not add up to 100%",
            extra={"event_type": "allocation_warning"},
        )
