"""
Release Publisher GitHub Module.

Clients for the three release operations, their outcomes, and the
request executor they share.
"""

__all__ = [
    "GitHubHttp",
    "PrivilegedGitHub",
    "HttpTimeouts",
    "RequestExecutor",
    # Outcomes
    "Outcome",
    "Success",
    "Failure",
    "FailureDetail",
    "InvalidResponseCode",
    "ResponseHandlingException",
    "RequestSubmittingException",
    "ConnectTimeout",
    "FirstByteTimeout",
    "EndToEndTimeout",
    "describe_failure",
]

from release_publisher.github.client import GitHubHttp, PrivilegedGitHub
from release_publisher.github.config import HttpTimeouts
from release_publisher.github.executor import RequestExecutor
from release_publisher.github.outcomes import (
    ConnectTimeout,
    EndToEndTimeout,
    Failure,
    FailureDetail,
    FirstByteTimeout,
    InvalidResponseCode,
    Outcome,
    RequestSubmittingException,
    ResponseHandlingException,
    Success,
    describe_failure,
)
