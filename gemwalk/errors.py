"""
Error taxonomy for gemwalk.

Every failure a request can hit is a GeminiError subclass, so callers can
catch the base class or branch on the exact kind (retry on Timeout, re-issue
with a certificate, give up on RobotDenied, ...).
"""


class GeminiError(Exception):
    """Base gemwalk exception."""
    pass


# === URL STAGE (before any I/O) ===

class UrlError(GeminiError):
    """Base for URLs that cannot be turned into a request."""
    pass

class InvalidUrl(UrlError):
    """Raised when the URL cannot be parsed or uses a scheme other than gemini."""
    pass

class InvalidDomain(UrlError):
    """Raised when the host is neither a valid domain name nor an IP literal."""
    pass


# === TRANSPORT STAGE ===

class ConnectError(GeminiError):
    """DNS resolution or TCP connection failure."""
    pass

class TlsError(GeminiError):
    """TLS handshake failure."""
    pass

class CertificateFileError(TlsError):
    """Client certificate and/or key files are missing or malformed."""
    pass

class Timeout(GeminiError):
    """Raised when a phase of the request exceeds the configured deadline."""
    pass

class StreamError(GeminiError):
    """Read/write failure on an established connection."""
    pass


# === PROTOCOL STAGE ===

class ProtocolError(GeminiError):
    """Base for wire-format violations."""
    pass

class RequestTooLarge(ProtocolError):
    """The serialized request URL exceeds 1024 bytes."""
    pass

class HeaderTooLarge(ProtocolError):
    """More than 1024 bytes arrived without a CRLF terminator."""
    pass

class MalformedStatusLine(ProtocolError):
    """The header line is not `<2-digit status> <meta>` or the status is out of range."""
    pass


# === POLICY STAGE ===

class RobotDenied(GeminiError):
    """The host's robots.txt disallows the path for our user-agent."""

    def __init__(self, url, rule, agent):
        self.url = url
        self.rule = rule
        self.agent = agent
        super().__init__(f"Visiting {url} isn't allowed for user-agent '{agent}' (Disallow: {rule})")


# === RESPONSE CONVENIENCES ===

class ResponseError(GeminiError):
    """Base for misuse of a Response that was received fine."""
    pass

class UnexpectedStatus(ResponseError):
    """The response status is not the one the caller asked for."""

    def __init__(self, expected, status, meta):
        self.expected = expected
        self.status = status
        self.meta = meta
        super().__init__(f"Expected status {expected}, received {status}: {meta}")

class UnexpectedFiletype(ResponseError):
    """The response MIME type is not the one the caller asked for."""

    def __init__(self, expected, received):
        self.expected = expected
        self.received = received
        super().__init__(f"Expected filetype {expected}, received {received}")

class ContentDecodeError(ResponseError):
    """Body bytes could not be decoded with the declared charset."""
    pass
