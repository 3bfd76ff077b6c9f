"""Pytest configuration and fixtures."""

import contextlib
import ipaddress
import socket
import ssl
import threading
from collections.abc import Callable, Generator, Iterator
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID

from release_publisher.core.models import ApiAuthority, UploadAuthority
from release_publisher.pki.trust_store import ReleaseTrustStore

LOCAL_HOST = "127.0.0.1"


@dataclass(frozen=True)
class PublicKeyInfrastructure:
    """A CA the client trusts and a server certificate it issued."""

    ca_certificate_pem: str
    server_ssl_context: ssl.SSLContext
    release_trust_store: ReleaseTrustStore


def _name(common_name: str) -> x509.Name:
    return x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])


def _pem(key: ec.EllipticCurvePrivateKey) -> bytes:
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


def a_public_key_infrastructure(directory: Path) -> PublicKeyInfrastructure:
    """Generate a CA and a server certificate for localhost."""
    now = datetime.now(timezone.utc)

    ca_key = ec.generate_private_key(ec.SECP256R1())
    ca_certificate = (
        x509.CertificateBuilder()
        .subject_name(_name("Release Publisher Test CA"))
        .issuer_name(_name("Release Publisher Test CA"))
        .public_key(ca_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(minutes=5))
        .not_valid_after(now + timedelta(days=1))
        .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
        .add_extension(
            x509.KeyUsage(
                digital_signature=True,
                content_commitment=False,
                key_encipherment=False,
                data_encipherment=False,
                key_agreement=False,
                key_cert_sign=True,
                crl_sign=True,
                encipher_only=False,
                decipher_only=False,
            ),
            critical=True,
        )
        .add_extension(x509.SubjectKeyIdentifier.from_public_key(ca_key.public_key()), critical=False)
        .sign(ca_key, hashes.SHA256())
    )

    server_key = ec.generate_private_key(ec.SECP256R1())
    server_certificate = (
        x509.CertificateBuilder()
        .subject_name(_name("localhost"))
        .issuer_name(ca_certificate.subject)
        .public_key(server_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(minutes=5))
        .not_valid_after(now + timedelta(days=1))
        .add_extension(
            x509.SubjectAlternativeName(
                [x509.DNSName("localhost"), x509.IPAddress(ipaddress.ip_address(LOCAL_HOST))]
            ),
            critical=False,
        )
        .add_extension(x509.BasicConstraints(ca=False, path_length=None), critical=True)
        .add_extension(x509.ExtendedKeyUsage([ExtendedKeyUsageOID.SERVER_AUTH]), critical=False)
        .add_extension(
            x509.AuthorityKeyIdentifier.from_issuer_public_key(ca_key.public_key()),
            critical=False,
        )
        .sign(ca_key, hashes.SHA256())
    )

    certificate_file = directory / "server.pem"
    key_file = directory / "server.key"
    certificate_file.write_bytes(server_certificate.public_bytes(serialization.Encoding.PEM))
    key_file.write_bytes(_pem(server_key))

    server_ssl_context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    server_ssl_context.load_cert_chain(certificate_file, key_file)

    ca_certificate_pem = ca_certificate.public_bytes(serialization.Encoding.PEM).decode("ascii")
    return PublicKeyInfrastructure(
        ca_certificate_pem=ca_certificate_pem,
        server_ssl_context=server_ssl_context,
        release_trust_store=ReleaseTrustStore([ca_certificate_pem]),
    )


@pytest.fixture(scope="session")
def pki(tmp_path_factory: pytest.TempPathFactory) -> PublicKeyInfrastructure:
    """Session-wide public key infrastructure."""
    return a_public_key_infrastructure(tmp_path_factory.mktemp("pki"))


# Fake servers

Exchange = BaseHTTPRequestHandler
ExchangeHandler = Callable[[Exchange], None]


class _ExchangeRequestHandler(BaseHTTPRequestHandler):
    protocol_version = "HTTP/1.1"

    def setup(self) -> None:
        self.request.do_handshake()
        super().setup()

    def _dispatch(self) -> None:
        self.server.exchange_handler(self)
        self.close_connection = True

    do_GET = _dispatch
    do_POST = _dispatch

    def log_message(self, format: str, *args) -> None:
        pass


class FakeHttpsServer(ThreadingHTTPServer):
    """HTTPS server handing each request to a test-supplied function."""

    daemon_threads = True

    def __init__(self, ssl_context: ssl.SSLContext, exchange_handler: ExchangeHandler):
        super().__init__((LOCAL_HOST, 0), _ExchangeRequestHandler)
        self.ssl_context = ssl_context
        self.exchange_handler = exchange_handler
        self._thread = threading.Thread(target=self.serve_forever, kwargs={"poll_interval": 0.05}, daemon=True)

    def get_request(self):
        connection, address = self.socket.accept()
        return (
            self.ssl_context.wrap_socket(connection, server_side=True, do_handshake_on_connect=False),
            address,
        )

    def handle_error(self, request, client_address) -> None:
        # TLS failures and client disconnects are expected in these tests
        pass

    @property
    def port(self) -> int:
        return self.server_address[1]

    def start(self) -> "FakeHttpsServer":
        self._thread.start()
        return self

    def stop(self) -> None:
        self.shutdown()
        self.server_close()


@dataclass(frozen=True)
class FakeServers:
    api_authority: ApiAuthority
    upload_authority: UploadAuthority


@contextlib.contextmanager
def fake_servers(
    pki: PublicKeyInfrastructure,
    api_handler: ExchangeHandler,
    upload_handler: ExchangeHandler | None = None,
) -> Iterator[FakeServers]:
    """Run fake API and upload servers for the duration of the block."""
    api_server = FakeHttpsServer(pki.server_ssl_context, api_handler).start()
    upload_server = FakeHttpsServer(pki.server_ssl_context, upload_handler or api_handler).start()
    try:
        yield FakeServers(
            api_authority=ApiAuthority(LOCAL_HOST, api_server.port),
            upload_authority=UploadAuthority(LOCAL_HOST, upload_server.port),
        )
    finally:
        upload_server.stop()
        api_server.stop()


def read_request_body(exchange: Exchange) -> bytes:
    """Read the request body the client declared."""
    length = int(exchange.headers.get("Content-Length", "0"))
    return exchange.rfile.read(length)


def respond(exchange: Exchange, status: int, body: bytes, *, content_length: int | None = None) -> None:
    """Send a response, optionally declaring a different Content-Length than sent."""
    exchange.send_response(status)
    exchange.send_header("Content-Length", str(len(body) if content_length is None else content_length))
    exchange.end_headers()
    exchange.wfile.write(body)


def responding(
    status: int,
    body: bytes,
    *,
    request_bodies: list[bytes] | None = None,
    request_headers: list[tuple[str, str]] | None = None,
) -> ExchangeHandler:
    """Handler that drains the request, captures it, and sends a fixed response."""

    def handle(exchange: Exchange) -> None:
        if request_headers is not None:
            request_headers.extend(exchange.headers.items())
        request_body = read_request_body(exchange)
        if request_bodies is not None:
            request_bodies.append(request_body)
        respond(exchange, status, body)

    return handle


@contextlib.contextmanager
def stalled_tls_server() -> Iterator[ApiAuthority]:
    """A port that accepts TCP connections but never answers the TLS handshake."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as listener:
        listener.bind((LOCAL_HOST, 0))
        listener.listen(8)
        yield ApiAuthority(LOCAL_HOST, listener.getsockname()[1])


def unused_port() -> int:
    """A local port with nothing listening on it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as probe:
        probe.bind((LOCAL_HOST, 0))
        return probe.getsockname()[1]


@pytest.fixture
def release_latch() -> Generator[threading.Event, None, None]:
    """Event that stalled server handlers wait on; released at teardown."""
    latch = threading.Event()
    yield latch
    latch.set()
