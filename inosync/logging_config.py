"""Structured logging configuration for InoSync."""

import json
import logging
import sys
import time
import uuid
from datetime import UTC, datetime
from typing import Any, TextIO

from .models import SyncLog

# Extra attributes copied from a log record into the JSON payload
CONTEXT_FIELDS = (
    "execution_id",
    "component",
    "tag",
    "feed_url",
    "folder",
    "item_title",
    "action",
    "status",
    "details",
    "error",
    "metrics",
    "duration_seconds",
)

# Loggers configured by setup_structured_logging
COMPONENT_LOGGERS = (
    "inosync",
    "inosync.sync",
    "inosync.feed_processor",
    "inosync.feed_parser",
    "inosync.vault_writer",
)

# Maximum number of entries kept in the activity log
MAX_ACTIVITY_ENTRIES = 100


class StructuredFormatter(logging.Formatter):
    """Renders each record as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(
            (name, getattr(record, name))
            for name in CONTEXT_FIELDS
            if hasattr(record, name)
        )
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


class ExecutionLogger:
    """Component logger that stamps every record with the run it belongs to."""

    def __init__(self, execution_id: str, component: str = "sync"):
        """
        Args:
            execution_id: Identifier shared by all components of one run
            component: Component name, also the logger suffix (e.g. 'vault_writer')
        """
        self.execution_id = execution_id
        self.component = component
        self.logger = logging.getLogger(f"inosync.{component}")
        self._started: float | None = None

    def _log_with_context(self, level: int, message: str, **context) -> None:
        context.update(execution_id=self.execution_id, component=self.component)
        self.logger.log(level, message, extra=context)

    def info(self, message: str, **context) -> None:
        self._log_with_context(logging.INFO, message, **context)

    def warning(self, message: str, **context) -> None:
        self._log_with_context(logging.WARNING, message, **context)

    def error(self, message: str, **context) -> None:
        self._log_with_context(logging.ERROR, message, **context)

    def debug(self, message: str, **context) -> None:
        self._log_with_context(logging.DEBUG, message, **context)

    def log_sync_start(self, force: bool, tag_count: int) -> None:
        self._started = time.monotonic()
        mode = "forced sync" if force else "sync"
        self.info(f"Starting {mode} of {tag_count} tag(s)", action="start")

    def log_sync_end(self, metrics: dict[str, Any], success: bool) -> None:
        """Log the run summary, with its duration when the start was logged."""
        duration = None
        if self._started is not None:
            duration = round(time.monotonic() - self._started, 3)

        self._log_with_context(
            logging.INFO if success else logging.ERROR,
            "Sync finished" if success else "Sync finished with errors",
            action="end",
            metrics=metrics,
            duration_seconds=duration,
        )

    def log_feed_processing(self, tag: str, feed_url: str, items_count: int) -> None:
        self.info(
            f"Processed feed for tag {tag}: {items_count} items found",
            tag=tag,
            feed_url=feed_url,
            metrics={"items_found": items_count},
        )

    def log_note_written(self, file_name_stem: str, action: str, folder: str) -> None:
        self.info(
            f"Note {action}: {file_name_stem}",
            item_title=file_name_stem,
            action=action,
            folder=folder,
        )


class ActivityLog:
    """User-facing sync history, newest entry first.

    Every entry is also forwarded to the structured logger so the history
    survives in the process logs after the in-memory list is trimmed.
    """

    _levels = {"success": logging.INFO, "info": logging.INFO, "error": logging.ERROR}

    def __init__(
        self,
        logger: ExecutionLogger | None = None,
        max_entries: int = MAX_ACTIVITY_ENTRIES,
    ):
        self.logger = logger
        self.max_entries = max_entries
        self.entries: list[SyncLog] = []

    def add(
        self, message: str, status: str = "info", details: str | None = None
    ) -> SyncLog:
        """Record a new entry and return it."""
        if status not in self._levels:
            raise ValueError(f"Unknown activity status: {status}")

        entry = SyncLog(
            id=uuid.uuid4().hex,
            timestamp=datetime.now(UTC).timestamp() * 1000,
            status=status,
            message=message,
            details=details,
        )
        self.entries = [entry, *self.entries[: self.max_entries - 1]]

        if self.logger:
            self.logger._log_with_context(
                self._levels[status], message, status=status, details=details
            )
        return entry

    def clear(self) -> None:
        self.entries = []

    def __len__(self) -> int:
        return len(self.entries)


def setup_structured_logging(
    log_level: str = "INFO", stream: TextIO | None = None
) -> None:
    """Route all InoSync loggers to a single JSON handler.

    Args:
        log_level: Level name (DEBUG, INFO, WARNING, ERROR)
        stream: Output stream, stdout by default

    Raises:
        ValueError: If log_level is not a known level name
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level}")

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(StructuredFormatter())

    root_logger = logging.getLogger()
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in COMPONENT_LOGGERS:
        logger = logging.getLogger(name)
        logger.setLevel(level)
        logger.propagate = True


def create_execution_logger(
    component: str, execution_id: str | None = None
) -> ExecutionLogger:
    """Create a component logger, generating an execution ID when none is given."""
    if not execution_id:
        execution_id = f"exec_{datetime.now(UTC).strftime('%Y%m%d_%H%M%S_%f')}"

    return ExecutionLogger(execution_id, component)
