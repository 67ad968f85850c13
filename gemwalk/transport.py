"""
TLS transport for Gemini requests.

One Connection serves exactly one request/response cycle. Timeouts work in
two phases:
- header phase: connect, handshake, request write and header read share a
  single deadline, so a peer that accepts and then stalls cannot hang us;
- body phase (after begin_body): every read gets the full timeout on its own.
"""

import socket
import ssl
import time
from typing import Optional

from gemwalk.certificates import PeerCertificate
from gemwalk.core import DEFAULT_PORT, REQUEST_TIMEOUT, setup_logger
from gemwalk.errors import CertificateFileError, ConnectError, StreamError, Timeout, TlsError

logger = setup_logger("gemwalk.transport")


def build_context(cert_file: Optional[str] = None, key_file: Optional[str] = None) -> ssl.SSLContext:
    """
    TLS client context. Server certificates are not verified (trust is left to
    the caller via Connection.peer_certificate). Client certificate files are
    loaded here, before any network I/O.
    """
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
    context.minimum_version = ssl.TLSVersion.TLSv1_2
    context.check_hostname = False
    context.verify_mode = ssl.CERT_NONE

    if key_file and not cert_file:
        raise CertificateFileError(f"Client key {key_file} given without a certificate")
    if cert_file:
        try:
            context.load_cert_chain(cert_file, key_file)
        except OSError as exc:
            raise CertificateFileError(
                f"Key and/or cert files are either missing or malformed ({cert_file}, {key_file}): {exc}"
            ) from exc
    return context


class Connection:
    """
    Live TLS channel plus the peer certificate captured after the handshake.
    Use as a context manager; the socket is closed on every exit path.
    """

    def __init__(self, sock: ssl.SSLSocket, host: str, port: int, timeout: float, deadline: Optional[float]):
        self._sock = sock
        self.host = host
        self.port = port
        self.timeout = timeout
        self._deadline = deadline
        der = sock.getpeercert(binary_form=True)
        self.peer_certificate = PeerCertificate.from_der(der) if der else None

    @property
    def closed(self) -> bool:
        return self._sock.fileno() == -1

    def begin_body(self):
        """Leave the header phase: from now on each read has its own timeout."""
        self._deadline = None

    def _arm(self):
        if self._deadline is None:
            self._sock.settimeout(self.timeout)
            return
        remaining = self._deadline - time.monotonic()
        if remaining <= 0:
            raise Timeout(f"{self.host}:{self.port} did not answer within {self.timeout}s")
        self._sock.settimeout(remaining)

    def send(self, data: bytes):
        self._arm()
        try:
            self._sock.sendall(data)
        except socket.timeout as exc:
            raise Timeout(f"Writing to {self.host}:{self.port} timed out") from exc
        except OSError as exc:
            raise StreamError(f"Failed writing to {self.host}:{self.port}: {exc}") from exc

    def recv(self, size: int) -> bytes:
        """Read up to size bytes; b"" means the peer closed the connection."""
        self._arm()
        try:
            return self._sock.recv(size)
        except ssl.SSLEOFError:
            # Peer closed without close_notify, common among Gemini servers
            return b""
        except socket.timeout as exc:
            raise Timeout(f"Reading from {self.host}:{self.port} timed out after {self.timeout}s") from exc
        except OSError as exc:
            raise StreamError(f"Failed reading from {self.host}:{self.port}: {exc}") from exc

    def close(self):
        self._sock.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


def connect(
    host: str,
    port: int = DEFAULT_PORT,
    cert_file: Optional[str] = None,
    key_file: Optional[str] = None,
    timeout: float = REQUEST_TIMEOUT,
) -> Connection:
    """
    Open TCP, upgrade to TLS (with SNI) and return the Connection, still in
    its header phase.
    Raises CertificateFileError, ConnectError, TlsError or Timeout.
    """
    context = build_context(cert_file, key_file)
    deadline = time.monotonic() + timeout

    logger.debug(f"[CONNECT] {host}:{port} (timeout {timeout}s)")
    try:
        raw = socket.create_connection((host, port), timeout=timeout)
    except socket.timeout as exc:
        raise Timeout(f"Connecting to {host}:{port} timed out after {timeout}s") from exc
    except OSError as exc:
        raise ConnectError(f"Failed to establish tcp connection to {host}:{port}: {exc}") from exc

    try:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise Timeout(f"Connecting to {host}:{port} timed out after {timeout}s")
        raw.settimeout(remaining)
        try:
            sock = context.wrap_socket(raw, server_hostname=host)
        except socket.timeout as exc:
            raise Timeout(f"TLS handshake with {host}:{port} timed out after {timeout}s") from exc
        except OSError as exc:
            raise TlsError(f"TLS handshake with {host}:{port} failed: {exc}") from exc
    except Exception:
        raw.close()
        raise

    logger.debug(f"[TLS] {host}:{port} negotiated {sock.version()}")
    try:
        return Connection(sock, host, port, timeout, deadline)
    except Exception:
        sock.close()
        raise
