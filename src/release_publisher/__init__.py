"""
Release Publisher - typed release automation against the GitHub REST API.

Publishes releases over TLS with a pinned trust store, reporting every
network outcome as a typed value and auditing every request attempt.
"""

__version__ = "0.1.0"

__all__ = []
