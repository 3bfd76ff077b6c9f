"""
Audit sinks for Release Publisher.

An auditor receives exactly one event per request attempt. Recording must
neither raise nor hold up the request it describes.
"""

import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Protocol, runtime_checkable

from .models import AuditEvent, AuditRecord, RequestCompleted, RequestFailed

logger = logging.getLogger(__name__)


@runtime_checkable
class Auditor(Protocol):
    """Write-only observer of request attempts."""

    def record(self, event: AuditEvent) -> None:
        """Record one audit event."""
        ...


class RecordingAuditor:
    """Thread-safe in-memory auditor."""

    def __init__(self) -> None:
        self._events: list[AuditEvent] = []
        self._lock = threading.Lock()

    def record(self, event: AuditEvent) -> None:
        with self._lock:
            self._events.append(event)

    def audit_events(self) -> list[AuditEvent]:
        """Snapshot of the events recorded so far, oldest first."""
        with self._lock:
            return list(self._events)


class LoggingAuditor:
    """Forwards audit events to a standard library logger."""

    def __init__(self, audit_logger: logging.Logger | None = None):
        self._logger = audit_logger or logging.getLogger("release_publisher.audit")

    def record(self, event: AuditEvent) -> None:
        match event:
            case RequestCompleted():
                self._logger.info(
                    f"Request completed: {event.uri} -> {event.status_code} "
                    f"({len(event.response_body)} chars)"
                )
            case RequestFailed():
                self._logger.warning(
                    f"Request failed: {event.uri} ({type(event.cause).__name__}: {event.cause})"
                )


class WriteMode(str, Enum):
    """Write mode for JSONL audit logging."""

    SYNC = "sync"
    ASYNC = "async"


class JsonlAuditor:
    """
    Thread-safe audit log writer.

    Writes audit records to date-named JSONL files under ``audit_dir``.
    In ASYNC mode writes are handed to a single background worker, so
    ``record`` returns without touching the disk.
    """

    LOG_PREFIX = "release_audit_"
    LOG_SUFFIX = ".jsonl"

    def __init__(self, audit_dir: Path | str, write_mode: WriteMode = WriteMode.ASYNC):
        """
        Initialize the audit writer.

        Args:
            audit_dir: Directory for audit log files
            write_mode: Write synchronously or on a background worker
        """
        self._audit_dir = Path(audit_dir)
        self._audit_dir.mkdir(parents=True, exist_ok=True)
        self._write_mode = write_mode
        self._file_lock = threading.Lock()
        self._executor: ThreadPoolExecutor | None = None
        if write_mode == WriteMode.ASYNC:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="release_audit_writer")

    @property
    def audit_dir(self) -> Path:
        return self._audit_dir

    def log_file(self, date: datetime | None = None) -> Path:
        """Get the log file path for a specific date."""
        if date is None:
            date = datetime.now(timezone.utc)
        return self._audit_dir / f"{self.LOG_PREFIX}{date.strftime('%Y%m%d')}{self.LOG_SUFFIX}"

    def record(self, event: AuditEvent) -> None:
        record = AuditRecord.from_event(event)
        if self._executor is None:
            self._write(record)
            return
        try:
            self._executor.submit(self._write, record)
        except RuntimeError:
            logger.warning(f"Audit writer closed, dropping record {record.event_id} for {record.uri}")

    def _write(self, record: AuditRecord) -> None:
        log_file = self.log_file()
        try:
            line = record.to_log_line() + "\n"
            with self._file_lock:
                with open(log_file, "a", encoding="utf-8") as f:
                    f.write(line)
                    f.flush()
                    os.fsync(f.fileno())
        except OSError as e:
            logger.warning(f"Failed to write audit record {record.event_id} to {log_file}: {e}")

    def read_records(self, date: datetime | None = None) -> list[AuditRecord]:
        """Read back the records written for a date."""
        log_file = self.log_file(date)
        if not log_file.exists():
            return []
        with self._file_lock:
            lines = log_file.read_text(encoding="utf-8").splitlines()
        return [AuditRecord.model_validate_json(line) for line in lines if line.strip()]

    def close(self) -> None:
        """Wait for pending writes and stop the background worker."""
        if self._executor is not None:
            self._executor.shutdown(wait=True)

    def __enter__(self) -> "JsonlAuditor":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.close()
