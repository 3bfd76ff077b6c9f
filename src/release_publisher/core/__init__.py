"""
Release Publisher Core Module.

Provides the value types and exception hierarchy shared by every client.
"""

__all__ = [
    "ApiAuthority",
    "Authority",
    "GitHubToken",
    "ReleaseId",
    "UploadAuthority",
    "VersionNumber",
    # Exceptions
    "ReleasePublisherError",
    "ConfigurationError",
    "TrustStoreError",
    "ResponseShapeError",
    "AttemptTimeoutError",
    "FirstByteTimeoutError",
    "EndToEndTimeoutError",
]

from release_publisher.core.exceptions import (
    AttemptTimeoutError,
    ConfigurationError,
    EndToEndTimeoutError,
    FirstByteTimeoutError,
    ReleasePublisherError,
    ResponseShapeError,
    TrustStoreError,
)
from release_publisher.core.models import (
    ApiAuthority,
    Authority,
    GitHubToken,
    ReleaseId,
    UploadAuthority,
    VersionNumber,
)
