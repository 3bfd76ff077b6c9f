"""
Trust store for release requests.

Only the configured certificates are trusted; system roots are never loaded.
"""

import ssl
from collections.abc import Iterable
from pathlib import Path

from release_publisher.core.exceptions import TrustStoreError


class ReleaseTrustStore:
    """
    Immutable set of trusted certificates and the TLS context derived from it.

    Certificates may be PEM text or DER bytes. An empty store trusts nothing,
    so every handshake fails.
    """

    def __init__(self, certificates: Iterable[str | bytes]):
        """
        Initialize the trust store.

        Args:
            certificates: Trusted certificates, PEM-encoded text or DER bytes

        Raises:
            TrustStoreError: If any certificate cannot be loaded
        """
        self._certificates: tuple[str | bytes, ...] = tuple(certificates)
        self._ssl_context = self._build_context(self._certificates)

    @classmethod
    def from_pem_files(cls, paths: Iterable[Path | str]) -> "ReleaseTrustStore":
        """Load trusted certificates from PEM files."""
        certificates = []
        for path in paths:
            try:
                certificates.append(Path(path).read_text(encoding="ascii"))
            except (OSError, UnicodeDecodeError) as e:
                raise TrustStoreError(f"Cannot read certificate file: {e}", source=str(path)) from e
        return cls(certificates)

    @staticmethod
    def _build_context(certificates: tuple[str | bytes, ...]) -> ssl.SSLContext:
        context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
        context.minimum_version = ssl.TLSVersion.TLSv1_2
        context.verify_mode = ssl.CERT_REQUIRED
        context.check_hostname = True
        for index, certificate in enumerate(certificates):
            try:
                context.load_verify_locations(cadata=certificate)
            except (ssl.SSLError, ValueError, TypeError) as e:
                raise TrustStoreError(
                    f"Invalid trusted certificate: {e}",
                    source=f"certificate[{index}]",
                ) from e
        return context

    @property
    def ssl_context(self) -> ssl.SSLContext:
        """TLS client context trusting only this store's certificates."""
        return self._ssl_context

    @property
    def certificates(self) -> tuple[str | bytes, ...]:
        """Certificates in the order they were supplied."""
        return self._certificates

    def __len__(self) -> int:
        return len(self._certificates)
