"""
Audit data models for Release Publisher.

Defines the per-attempt audit events and their serialized record form.
"""

import hashlib
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


@dataclass(frozen=True)
class RequestCompleted:
    """
    A full HTTP response was received.

    Recorded regardless of status code or payload validity.
    """

    uri: str
    status_code: int
    headers: tuple[tuple[str, str], ...]
    response_body: str


@dataclass(frozen=True)
class RequestFailed:
    """No complete HTTP exchange took place."""

    uri: str
    cause: BaseException = field(compare=False)


AuditEvent = RequestCompleted | RequestFailed


class AuditEventType(str, Enum):
    """Serialized discriminator of an audit event."""

    REQUEST_COMPLETED = "request_completed"
    REQUEST_FAILED = "request_failed"


def _utc_now() -> str:
    """Return current UTC timestamp as ISO8601 string."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


class AuditRecord(BaseModel):
    """
    Serializable form of an audit event.

    Immutable record written by persistent auditors, one per request attempt.
    """

    event_id: str = Field(default_factory=lambda: f"evt_{datetime.now(timezone.utc).strftime('%Y%m%d%H%M%S%f')}")
    timestamp: str = Field(default_factory=_utc_now)
    event_type: AuditEventType = Field(description="Which kind of audit event this is")
    uri: str = Field(description="Request URI")

    status_code: int | None = Field(default=None, description="Response status, completed requests only")
    headers: list[tuple[str, str]] | None = Field(default=None, description="Response headers, completed requests only")
    response_body: str | None = Field(default=None, description="Response body, completed requests only")

    cause_type: str | None = Field(default=None, description="Exception class, failed requests only")
    cause_message: str | None = Field(default=None, description="Exception message, failed requests only")

    checksum: str | None = Field(default=None, description="SHA256 hash for integrity verification")

    model_config = {"frozen": True}

    @classmethod
    def from_event(cls, event: AuditEvent) -> "AuditRecord":
        """Build a record from an audit event."""
        match event:
            case RequestCompleted():
                return cls(
                    event_type=AuditEventType.REQUEST_COMPLETED,
                    uri=event.uri,
                    status_code=event.status_code,
                    headers=list(event.headers),
                    response_body=event.response_body,
                )
            case RequestFailed():
                return cls(
                    event_type=AuditEventType.REQUEST_FAILED,
                    uri=event.uri,
                    cause_type=type(event.cause).__name__,
                    cause_message=str(event.cause),
                )
        raise TypeError(f"Not an audit event: {event!r}")

    def compute_checksum(self) -> str:
        """Compute SHA256 checksum of record data for integrity verification."""
        data: dict[str, Any] = self.model_dump(mode="json", exclude={"checksum"})
        canonical = json.dumps(data, sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(canonical.encode()).hexdigest()

    def with_checksum(self) -> "AuditRecord":
        """Return a new record with checksum computed."""
        return self.model_copy(update={"checksum": self.compute_checksum()})

    def to_log_line(self) -> str:
        """Convert to JSONL string for file storage."""
        return self.with_checksum().model_dump_json(exclude_none=True)
