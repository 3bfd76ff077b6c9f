"""
Outcomes of release operations.

Every public operation returns ``Success`` or ``Failure`` instead of raising.
A ``Failure`` holds exactly one of six failure kinds.
"""

from dataclasses import dataclass, field
from typing import Generic, TypeVar, assert_never

T = TypeVar("T")

Headers = tuple[tuple[str, str], ...]


@dataclass(frozen=True)
class InvalidResponseCode:
    """The exchange completed but the status code was not the expected one."""

    uri: str
    expected_response_code: int
    response_code: int
    response_headers: Headers
    response_body: str


@dataclass(frozen=True)
class ResponseHandlingException:
    """The exchange completed with the expected status but the body could not be interpreted."""

    uri: str
    response_code: int
    response_headers: Headers
    response_body: str
    exception: BaseException = field(compare=False)


@dataclass(frozen=True)
class RequestSubmittingException:
    """No complete exchange: DNS, TCP, TLS or stream failure."""

    uri: str
    exception: BaseException = field(compare=False)


@dataclass(frozen=True)
class ConnectTimeout:
    """The connection, including the TLS handshake, was not established in time."""

    uri: str
    connect_timeout: float
    exception: BaseException = field(compare=False)


@dataclass(frozen=True)
class FirstByteTimeout:
    """The request was sent but no response arrived in time."""

    uri: str
    first_byte_timeout: float
    exception: BaseException = field(compare=False)


@dataclass(frozen=True)
class EndToEndTimeout:
    """The exchange as a whole, body transfers included, did not finish in time."""

    uri: str
    end_to_end_timeout: float
    exception: BaseException = field(compare=False)


FailureDetail = (
    InvalidResponseCode
    | ResponseHandlingException
    | RequestSubmittingException
    | ConnectTimeout
    | FirstByteTimeout
    | EndToEndTimeout
)


@dataclass(frozen=True)
class Success(Generic[T]):
    """Successful outcome carrying the decoded value."""

    value: T

    @property
    def is_success(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    """Failed outcome carrying the reason."""

    failure: FailureDetail

    @property
    def is_success(self) -> bool:
        return False


Outcome = Success[T] | Failure


def describe_failure(failure: FailureDetail) -> str:
    """Render a failure as a single human-readable line."""
    match failure:
        case InvalidResponseCode():
            return (
                f"{failure.uri} responded {failure.response_code}, "
                f"expected {failure.expected_response_code}"
            )
        case ResponseHandlingException():
            return (
                f"{failure.uri} responded {failure.response_code} with an unusable body: "
                f"{type(failure.exception).__name__}: {failure.exception}"
            )
        case RequestSubmittingException():
            return (
                f"Request to {failure.uri} could not be completed: "
                f"{type(failure.exception).__name__}: {failure.exception}"
            )
        case ConnectTimeout():
            return f"Connecting to {failure.uri} exceeded {failure.connect_timeout}s"
        case FirstByteTimeout():
            return f"No response from {failure.uri} within {failure.first_byte_timeout}s"
        case EndToEndTimeout():
            return f"Exchange with {failure.uri} exceeded {failure.end_to_end_timeout}s"
        case _:
            assert_never(failure)
