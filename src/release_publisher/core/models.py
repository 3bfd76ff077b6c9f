"""
Core value types for Release Publisher.

Authorities identify the two HTTPS origins, tokens and release ids are
opaque strings, and version numbers are ordered (major, minor) pairs.
"""

from dataclasses import dataclass
from functools import total_ordering


@dataclass(frozen=True)
class Authority:
    """Network identity of an HTTPS origin."""

    host: str
    port: int | None = None

    def __post_init__(self) -> None:
        if not self.host:
            raise ValueError("Authority host must not be empty")
        if self.port is not None and not 0 < self.port < 65536:
            raise ValueError(f"Authority port out of range: {self.port}")

    def __str__(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        if self.port is None:
            return host
        return f"{host}:{self.port}"


@dataclass(frozen=True)
class ApiAuthority(Authority):
    """Origin that lists and creates releases."""

    host: str = "api.github.com"


@dataclass(frozen=True)
class UploadAuthority(Authority):
    """Origin that receives release asset bytes."""

    host: str = "uploads.github.com"


@dataclass(frozen=True)
class GitHubToken:
    """Bearer credential for privileged requests."""

    token: str

    def __repr__(self) -> str:
        return "GitHubToken(token='***')"

    __str__ = __repr__

    def authorization_header(self) -> str:
        """Value for the Authorization request header."""
        return f"Bearer {self.token}"


@dataclass(frozen=True)
class ReleaseId:
    """Opaque identifier of a release created on the remote side."""

    value: str

    def __str__(self) -> str:
        return self.value


@total_ordering
@dataclass(frozen=True, eq=True)
class VersionNumber:
    """A release version with canonical form ``major.minor``."""

    major: int
    minor: int

    def __post_init__(self) -> None:
        if self.major < 0 or self.minor < 0:
            raise ValueError(f"Version components must be non-negative: {self.major}.{self.minor}")

    @classmethod
    def parse(cls, text: str) -> "VersionNumber":
        """
        Parse a tag name of the form ``major.minor``.

        Raises:
            ValueError: If the text is not two dot-separated non-negative integers
        """
        parts = text.split(".")
        if len(parts) != 2 or not all(part.isdigit() for part in parts):
            raise ValueError(f"Not a release version number: {text!r}")
        return cls(int(parts[0]), int(parts[1]))

    def increment(self) -> "VersionNumber":
        """Return the next minor version."""
        return VersionNumber(self.major, self.minor + 1)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, VersionNumber):
            return NotImplemented
        return (self.major, self.minor) < (other.major, other.minor)

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}"
