"""
Request executor - one HTTP exchange under three timeout phases.

The connect phase is bounded by the transport itself. The first byte and
end-to-end phases are timers raced against the exchange task; whichever
finishes first decides the outcome and the rest are cancelled.
"""

import asyncio
import logging
from collections.abc import AsyncIterable, Callable, Mapping
from dataclasses import dataclass
from typing import Any, TypeVar

import httpx

from release_publisher.audit.logger import Auditor
from release_publisher.audit.models import AuditEvent, RequestCompleted, RequestFailed
from release_publisher.core.exceptions import EndToEndTimeoutError, FirstByteTimeoutError
from release_publisher.github.config import HttpTimeouts
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
)
from release_publisher.pki.trust_store import ReleaseTrustStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

RequestContent = bytes | AsyncIterable[bytes]

# httpcore trace events, suffixed after the "http11." or "http2." prefix
_REQUEST_SENT = "send_request_body.complete"
_RESPONSE_HEAD_RECEIVED = "receive_response_headers.complete"


@dataclass(frozen=True)
class CompletedExchange:
    """A full HTTP response."""

    status_code: int
    headers: tuple[tuple[str, str], ...]
    content: bytes
    text: str


class _FirstByteTimer:
    """Starts when the request body is sent and stops when the response head arrives."""

    def __init__(self, timeout: float):
        self._timeout = timeout
        self._loop = asyncio.get_running_loop()
        self._handle: asyncio.TimerHandle | None = None
        self.expired = asyncio.Event()

    async def trace(self, event_name: str, info: dict[str, Any]) -> None:
        if event_name.endswith(_REQUEST_SENT):
            self._handle = self._loop.call_later(self._timeout, self.expired.set)
        elif event_name.endswith(_RESPONSE_HEAD_RECEIVED):
            self.cancel()

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


class RequestExecutor:
    """
    Performs single HTTP attempts and classifies their results.

    Holds only immutable configuration, so one executor can serve
    concurrent callers. Each attempt opens its own connection.
    """

    def __init__(self, trust_store: ReleaseTrustStore, auditor: Auditor, timeouts: HttpTimeouts):
        """
        Initialize the executor.

        Args:
            trust_store: Trust anchors for every TLS connection
            auditor: Receives one event per attempt
            timeouts: Connect, first byte and end-to-end durations
        """
        self._trust_store = trust_store
        self._auditor = auditor
        self._timeouts = timeouts

    @property
    def timeouts(self) -> HttpTimeouts:
        return self._timeouts

    async def execute(
        self,
        method: str,
        url: httpx.URL,
        *,
        expected_status: int,
        interpret: Callable[[bytes], T],
        headers: Mapping[str, str] | None = None,
        content: RequestContent | None = None,
    ) -> Outcome[T]:
        """
        Perform one HTTP exchange.

        Args:
            method: HTTP method
            url: Absolute request URL
            expected_status: The only status code treated as success
            interpret: Converts the response body to the success value; signals
                an unusable body by raising ValueError
            headers: Request headers
            content: Request body, bytes or an async byte stream

        Returns:
            Success with the interpreted value, or Failure describing why not
        """
        uri = str(url)
        timeouts = self._timeouts
        logger.debug(f"{method} {uri}")

        try:
            exchange = await self._exchange(method, url, headers, content)
        except httpx.ConnectTimeout as e:
            return self._failed(uri, e, ConnectTimeout(uri, timeouts.connect_timeout, e))
        except FirstByteTimeoutError as e:
            return self._failed(uri, e, FirstByteTimeout(uri, timeouts.first_byte_timeout, e))
        except EndToEndTimeoutError as e:
            return self._failed(uri, e, EndToEndTimeout(uri, timeouts.end_to_end_timeout, e))
        except (httpx.RequestError, OSError) as e:
            return self._failed(uri, e, RequestSubmittingException(uri, e))

        self._record(
            RequestCompleted(
                uri=uri,
                status_code=exchange.status_code,
                headers=exchange.headers,
                response_body=exchange.text,
            )
        )
        logger.info(f"{method} {uri} -> {exchange.status_code}")

        if exchange.status_code != expected_status:
            logger.warning(f"{method} {uri} responded {exchange.status_code}, expected {expected_status}")
            return Failure(
                InvalidResponseCode(
                    uri=uri,
                    expected_response_code=expected_status,
                    response_code=exchange.status_code,
                    response_headers=exchange.headers,
                    response_body=exchange.text,
                )
            )

        try:
            value = interpret(exchange.content)
        except ValueError as e:
            logger.warning(f"{method} {uri} returned an unusable body: {e}")
            return Failure(
                ResponseHandlingException(
                    uri=uri,
                    response_code=exchange.status_code,
                    response_headers=exchange.headers,
                    response_body=exchange.text,
                    exception=e,
                )
            )
        return Success(value)

    async def _exchange(
        self,
        method: str,
        url: httpx.URL,
        headers: Mapping[str, str] | None,
        content: RequestContent | None,
    ) -> CompletedExchange:
        """Race the exchange against the first byte and end-to-end timers."""
        timeouts = self._timeouts
        first_byte_timer = _FirstByteTimer(timeouts.first_byte_timeout)

        async with httpx.AsyncClient(
            verify=self._trust_store.ssl_context,
            timeout=httpx.Timeout(None, connect=timeouts.connect_timeout),
            trust_env=False,
        ) as client:
            request = client.build_request(
                method,
                url,
                headers=headers,
                content=content,
                extensions={"trace": first_byte_timer.trace},
            )
            send = asyncio.create_task(self._send(client, request))
            first_byte_expired = asyncio.create_task(first_byte_timer.expired.wait())
            try:
                done, _ = await asyncio.wait(
                    {send, first_byte_expired},
                    timeout=timeouts.end_to_end_timeout,
                    return_when=asyncio.FIRST_COMPLETED,
                )
            finally:
                first_byte_timer.cancel()
                for task in (send, first_byte_expired):
                    task.cancel()
                await asyncio.gather(send, first_byte_expired, return_exceptions=True)

        if send in done:
            return send.result()
        if first_byte_expired in done:
            raise FirstByteTimeoutError(str(url), timeouts.first_byte_timeout)
        raise EndToEndTimeoutError(str(url), timeouts.end_to_end_timeout)

    @staticmethod
    async def _send(client: httpx.AsyncClient, request: httpx.Request) -> CompletedExchange:
        response = await client.send(request)
        return CompletedExchange(
            status_code=response.status_code,
            headers=tuple(response.headers.multi_items()),
            content=response.content,
            text=response.text,
        )

    def _failed(self, uri: str, cause: BaseException, failure: FailureDetail) -> Failure:
        self._record(RequestFailed(uri=uri, cause=cause))
        logger.warning(f"Request to {uri} failed: {type(cause).__name__}: {cause}")
        return Failure(failure)

    def _record(self, event: AuditEvent) -> None:
        try:
            self._auditor.record(event)
        except Exception:
            logger.exception(f"Auditor {type(self._auditor).__name__} failed to record event for {event.uri}")
