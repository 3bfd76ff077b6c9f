"""
GitHub release clients.

``GitHubHttp`` reads the latest release version. ``PrivilegedGitHub`` adds a
bearer token and the upload origin to create releases and upload artifacts.
"""

import asyncio
import json
import mimetypes
import os
from collections.abc import AsyncIterator, Callable, Coroutine, Mapping
from pathlib import Path
from typing import IO, Any, TypeVar

import httpx
from pydantic import BaseModel, StrictInt, StrictStr, TypeAdapter, ValidationError

from release_publisher.audit.logger import Auditor
from release_publisher.core.exceptions import ConfigurationError, ResponseShapeError
from release_publisher.core.models import (
    ApiAuthority,
    Authority,
    GitHubToken,
    ReleaseId,
    UploadAuthority,
    VersionNumber,
)
from release_publisher.github.config import HttpTimeouts
from release_publisher.github.executor import RequestContent, RequestExecutor
from release_publisher.github.outcomes import Outcome
from release_publisher.pki.trust_store import ReleaseTrustStore

T = TypeVar("T")

API_VERSION = "2022-11-28"
MEDIA_TYPE = "application/vnd.github+json"
USER_AGENT = "argo-build"
DEFAULT_REPOSITORY = "argo-json/argo"

UPLOAD_CHUNK_SIZE = 64 * 1024

ARTIFACT_MEDIA_TYPES = {
    ".jar": "application/java-archive",
}


class ReleaseSummary(BaseModel):
    """Fields used from an entry of the releases listing."""

    tag_name: StrictStr


class CreatedRelease(BaseModel):
    """Fields used from a create-release response."""

    id: StrictInt


_RELEASE_LISTING = TypeAdapter(list[ReleaseSummary])


def parse_latest_release_version(body: bytes) -> VersionNumber:
    """
    Interpret a releases listing requested with ``per_page=1``.

    The first element is taken as the latest release; the API lists
    releases newest first.

    Raises:
        ValueError: If the body is not JSON, not a list of releases, empty,
            or the tag name is not a version number
    """
    releases = _RELEASE_LISTING.validate_python(json.loads(body))
    if not releases:
        raise ResponseShapeError("Releases listing is empty", field="tag_name")
    return VersionNumber.parse(releases[0].tag_name)


def parse_release_id(body: bytes) -> ReleaseId:
    """
    Interpret a create-release response.

    Raises:
        ValueError: If the body is not JSON or has no numeric id
    """
    return ReleaseId(str(CreatedRelease.model_validate(json.loads(body)).id))


def ignore_body(body: bytes) -> None:
    return None


def artifact_media_type(target_name: str) -> str:
    """Media type for an artifact, chosen by file name suffix."""
    suffix = Path(target_name).suffix.lower()
    if suffix in ARTIFACT_MEDIA_TYPES:
        return ARTIFACT_MEDIA_TYPES[suffix]
    guessed, _ = mimetypes.guess_type(target_name)
    return guessed or "application/octet-stream"


async def _read_chunks(handle: IO[bytes]) -> AsyncIterator[bytes]:
    while chunk := await asyncio.to_thread(handle.read, UPLOAD_CHUNK_SIZE):
        yield chunk


def _run(coroutine: Coroutine[Any, Any, T]) -> T:
    return asyncio.run(coroutine)


class GitHubHttp:
    """
    Unprivileged GitHub client.

    Every operation performs exactly one attempt and returns an Outcome;
    retries are the caller's decision.
    """

    def __init__(
        self,
        api_authority: ApiAuthority,
        trust_store: ReleaseTrustStore,
        auditor: Auditor,
        *,
        connect_timeout: float | None = None,
        first_byte_timeout: float | None = None,
        end_to_end_timeout: float | None = None,
        timeouts: HttpTimeouts | None = None,
        repository: str = DEFAULT_REPOSITORY,
    ):
        """
        Initialize the client.

        Args:
            api_authority: Origin that lists and creates releases
            trust_store: Trust anchors for TLS
            auditor: Receives one audit event per request attempt
            connect_timeout: Overrides the connect phase bound, seconds
            first_byte_timeout: Overrides the first byte phase bound, seconds
            end_to_end_timeout: Overrides the end-to-end bound, seconds
            timeouts: Base timeouts the individual overrides apply to
            repository: Repository as ``owner/name``

        Raises:
            ConfigurationError: If a timeout is not positive or the repository is malformed
        """
        owner, _, name = repository.partition("/")
        if not owner or not name or "/" in name:
            raise ConfigurationError(
                f"Repository must be 'owner/name', got {repository!r}",
                config_key="repository",
            )
        try:
            resolved_timeouts = (timeouts or HttpTimeouts()).with_overrides(
                connect_timeout=connect_timeout,
                first_byte_timeout=first_byte_timeout,
                end_to_end_timeout=end_to_end_timeout,
            )
        except ValidationError as e:
            raise ConfigurationError(f"Invalid timeouts: {e}", config_key="timeouts") from e

        self._api_authority = api_authority
        self._repository_path = ("repos", owner, name)
        self._executor = RequestExecutor(trust_store, auditor, resolved_timeouts)

    @property
    def api_authority(self) -> ApiAuthority:
        return self._api_authority

    @property
    def timeouts(self) -> HttpTimeouts:
        return self._executor.timeouts

    def url(
        self,
        authority: Authority,
        *segments: str,
        params: Mapping[str, str] | None = None,
    ) -> httpx.URL:
        """HTTPS URL under the repository path on the given authority."""
        path = "/" + "/".join((*self._repository_path, *segments))
        return httpx.URL(
            scheme="https",
            host=authority.host,
            port=authority.port,
            path=path,
            params=params,
        )

    def request_headers(self, extra: Mapping[str, str] | None = None) -> dict[str, str]:
        """Fixed headers sent with every request, plus any extras."""
        headers = {
            "X-GitHub-Api-Version": API_VERSION,
            "Accept": MEDIA_TYPE,
            "User-Agent": USER_AGENT,
        }
        if extra:
            headers.update(extra)
        return headers

    async def execute(
        self,
        method: str,
        url: httpx.URL,
        *,
        expected_status: int,
        interpret: Callable[[bytes], T],
        extra_headers: Mapping[str, str] | None = None,
        content: RequestContent | None = None,
    ) -> Outcome[T]:
        """Run one attempt through the shared executor with the fixed headers applied."""
        return await self._executor.execute(
            method,
            url,
            expected_status=expected_status,
            interpret=interpret,
            headers=self.request_headers(extra_headers),
            content=content,
        )

    async def latest_release_version_async(self) -> Outcome[VersionNumber]:
        """Version number of the most recent release."""
        return await self.execute(
            "GET",
            self.url(self._api_authority, "releases", params={"per_page": "1"}),
            expected_status=200,
            interpret=parse_latest_release_version,
        )

    def latest_release_version(self) -> Outcome[VersionNumber]:
        """Version number of the most recent release; blocks until the attempt ends."""
        return _run(self.latest_release_version_async())

    def privileged(self, upload_authority: UploadAuthority, token: GitHubToken) -> "PrivilegedGitHub":
        """Derive a client that may create releases and upload artifacts."""
        return PrivilegedGitHub(self, upload_authority, token)


class PrivilegedGitHub:
    """
    GitHub client holding a bearer token.

    Decorates a GitHubHttp: URLs, fixed headers and the executor come from
    the wrapped client; this class adds Authorization and the upload origin.
    """

    def __init__(self, github: GitHubHttp, upload_authority: UploadAuthority, token: GitHubToken):
        self._github = github
        self._upload_authority = upload_authority
        self._token = token

    @property
    def upload_authority(self) -> UploadAuthority:
        return self._upload_authority

    def _authorization(self, extra: Mapping[str, str] | None = None) -> dict[str, str]:
        headers = {"Authorization": self._token.authorization_header()}
        if extra:
            headers.update(extra)
        return headers

    async def latest_release_version_async(self) -> Outcome[VersionNumber]:
        return await self._github.latest_release_version_async()

    def latest_release_version(self) -> Outcome[VersionNumber]:
        return self._github.latest_release_version()

    async def release_async(self, version_number: VersionNumber) -> Outcome[ReleaseId]:
        """Create a release tagged with the version number."""
        body = json.dumps({"tag_name": str(version_number)}).encode("utf-8")
        return await self._github.execute(
            "POST",
            self._github.url(self._github.api_authority, "releases"),
            expected_status=201,
            interpret=parse_release_id,
            extra_headers=self._authorization({"Content-Type": "application/json"}),
            content=body,
        )

    def release(self, version_number: VersionNumber) -> Outcome[ReleaseId]:
        """Create a release; blocks until the attempt ends."""
        return _run(self.release_async(version_number))

    async def upload_artifact_async(
        self,
        release_id: ReleaseId,
        target_name: str,
        label: str,
        file: Path | str,
        *,
        content_type: str | None = None,
    ) -> Outcome[None]:
        """
        Upload a file as an asset of a release.

        Args:
            release_id: Release from a successful create-release outcome
            target_name: Asset file name on the release
            label: Asset display label
            file: Local file to upload; streamed, and closed on every exit path
            content_type: Media type, derived from target_name when omitted

        Returns:
            Success(None) on 201, otherwise Failure
        """
        url = self._github.url(
            self._upload_authority,
            "releases",
            str(release_id),
            "assets",
            params={"name": target_name, "label": label},
        )
        with open(file, "rb") as handle:
            size = os.fstat(handle.fileno()).st_size
            return await self._github.execute(
                "POST",
                url,
                expected_status=201,
                interpret=ignore_body,
                extra_headers=self._authorization(
                    {
                        "Content-Type": content_type or artifact_media_type(target_name),
                        "Content-Length": str(size),
                    }
                ),
                content=_read_chunks(handle),
            )

    def upload_artifact(
        self,
        release_id: ReleaseId,
        target_name: str,
        label: str,
        file: Path | str,
        *,
        content_type: str | None = None,
    ) -> Outcome[None]:
        """Upload a release asset; blocks until the attempt ends."""
        return _run(
            self.upload_artifact_async(release_id, target_name, label, file, content_type=content_type)
        )
