"""
Test fixtures: self-signed certificates and an in-process Gemini server.
"""

import os
import socket
import ssl
import tempfile
import threading
from datetime import datetime, timedelta, timezone

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from gemwalk import transport


def make_certificate(directory, name="localhost", prefix="server"):
    """Write a self-signed certificate and key for `name`; return (cert_path, key_path)."""
    key = ec.generate_private_key(ec.SECP256R1())
    subject = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, name)])
    now = datetime.now(timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(subject)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(days=1))
        .not_valid_after(now + timedelta(days=30))
        .add_extension(x509.SubjectAlternativeName([x509.DNSName(name)]), critical=False)
        .sign(key, hashes.SHA256())
    )

    cert_path = os.path.join(directory, f"{prefix}.crt")
    key_path = os.path.join(directory, f"{prefix}.key")
    with open(cert_path, "wb") as f:
        f.write(cert.public_bytes(serialization.Encoding.PEM))
    with open(key_path, "wb") as f:
        f.write(key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.TraditionalOpenSSL,
            serialization.NoEncryption(),
        ))
    return cert_path, key_path


class GeminiTestServer:
    """
    Minimal TLS server on 127.0.0.1 for end-to-end tests.

    routes maps a request path to either raw response bytes or a callable
    (request_line, ssl_socket) -> bytes. Unknown paths get "51 Not found".
    Every request line received is recorded in .requests.
    """

    def __init__(self, routes=None, client_ca=None):
        self.routes = routes or {}
        self.requests = []
        self._tmp = tempfile.TemporaryDirectory()
        self.cert_path, self.key_path = make_certificate(self._tmp.name)

        self.context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
        self.context.load_cert_chain(self.cert_path, self.key_path)
        if client_ca:
            self.context.verify_mode = ssl.CERT_OPTIONAL
            self.context.load_verify_locations(cafile=client_ca)

        self._listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._listener.bind(("127.0.0.1", 0))
        self._listener.listen(8)
        self._listener.settimeout(0.2)
        self.port = self._listener.getsockname()[1]

        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._serve, daemon=True)

    def url(self, path="/"):
        return f"gemini://localhost:{self.port}{path}"

    def __enter__(self):
        self._thread.start()
        return self

    def __exit__(self, *exc):
        self._stop.set()
        self._thread.join(timeout=5)
        self._listener.close()
        self._tmp.cleanup()
        return False

    def _serve(self):
        while not self._stop.is_set():
            try:
                raw, _ = self._listener.accept()
            except socket.timeout:
                continue
            except OSError:
                return
            try:
                self._handle(raw)
            except (OSError, ssl.SSLError):
                pass
            finally:
                raw.close()

    def _handle(self, raw):
        raw.settimeout(5)
        with self.context.wrap_socket(raw, server_side=True) as conn:
            data = b""
            while b"\r\n" not in data and len(data) < 4096:
                chunk = conn.recv(1024)
                if not chunk:
                    return
                data += chunk
            line = data.split(b"\r\n", 1)[0].decode("utf-8")
            self.requests.append(line)

            path = line.split("://", 1)[-1]
            path = "/" + path.split("/", 1)[1] if "/" in path else "/"
            path = path.split("?", 1)[0]

            handler = self.routes.get(path, b"51 Not found\r\n")
            response = handler(line, conn) if callable(handler) else handler
            if response:
                conn.sendall(response)


def free_port():
    """A localhost port with nothing listening on it."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port


class ConnectionSpy:
    """
    Stands in for gemwalk.transport.Connection and remembers every Connection
    built, so tests can check the TLS socket was closed afterwards.
    """

    def __init__(self):
        self._real = transport.Connection
        self.connections = []

    def __call__(self, *args, **kwargs):
        conn = self._real(*args, **kwargs)
        self.connections.append(conn)
        return conn
