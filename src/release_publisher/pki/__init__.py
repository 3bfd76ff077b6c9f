"""
Release Publisher PKI Module.

Builds the TLS client context used for every release request.
"""

__all__ = ["ReleaseTrustStore"]

from release_publisher.pki.trust_store import ReleaseTrustStore
