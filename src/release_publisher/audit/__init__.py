"""
Release Publisher Audit Module.

One audit event per request attempt, delivered to a pluggable auditor.

Usage:
    >>> from release_publisher.audit import RecordingAuditor, RequestCompleted
    >>>
    >>> auditor = RecordingAuditor()
    >>> github = GitHubHttp(ApiAuthority(), trust_store, auditor)
    >>> github.latest_release_version()
    >>> auditor.audit_events()

Persisting:
    >>> from release_publisher.audit import JsonlAuditor
    >>>
    >>> with JsonlAuditor("var/audit") as auditor:
    ...     GitHubHttp(ApiAuthority(), trust_store, auditor).latest_release_version()
"""

from .logger import (
    Auditor,
    JsonlAuditor,
    LoggingAuditor,
    RecordingAuditor,
    WriteMode,
)
from .models import (
    AuditEvent,
    AuditEventType,
    AuditRecord,
    RequestCompleted,
    RequestFailed,
)

__all__ = [
    # Models
    "AuditEvent",
    "AuditEventType",
    "AuditRecord",
    "RequestCompleted",
    "RequestFailed",
    # Auditors
    "Auditor",
    "JsonlAuditor",
    "LoggingAuditor",
    "RecordingAuditor",
    "WriteMode",
]
