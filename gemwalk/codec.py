"""
Wire format for Gemini requests and response headers.

Request:  <absolute-url>\\r\\n            (URL at most 1024 bytes)
Response: <2-digit-status> <meta>\\r\\n   (line at most 1024 bytes)
          followed by the body for 2x statuses only.
"""

import re
from dataclasses import dataclass
from typing import Callable, Tuple

from gemwalk.core import MAX_HEADER_BYTES, MAX_REQUEST_BYTES, READ_CHUNK
from gemwalk.errors import HeaderTooLarge, MalformedStatusLine, RequestTooLarge
from gemwalk.models import Url
from gemwalk.status import Status

CRLF = b"\r\n"

_STATUS_LINE_RE = re.compile(rb"\A([0-9]{2}) ([^\r\n]*)\Z")

Recv = Callable[[int], bytes]


@dataclass(frozen=True)
class Header:
    status: Status
    meta: str
    # Bytes that arrived in the same reads as the header; start of the body
    remainder: bytes = b""


def encode_request(url: Url) -> bytes:
    """
    Serialize the request line. The size is checked before anything is
    returned, so an oversize request is never partially written.
    """
    encoded = str(url).encode("utf-8")
    if len(encoded) > MAX_REQUEST_BYTES:
        raise RequestTooLarge(f"Request is {len(encoded)} bytes, limit is {MAX_REQUEST_BYTES}")
    return encoded + CRLF


def parse_status_line(line: bytes) -> Tuple[Status, str]:
    """Split a header line (terminator already removed) into Status and meta."""
    match = _STATUS_LINE_RE.match(line)
    if not match:
        raise MalformedStatusLine(f"The gemini header received was malformed: {line[:64]!r}")

    try:
        status = Status(int(match.group(1)))
    except ValueError as exc:
        raise MalformedStatusLine(f"Invalid status code: {match.group(1).decode('ascii')}") from exc

    try:
        meta = match.group(2).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise MalformedStatusLine("Header meta isn't utf-8") from exc
    return status, meta


def read_header(recv: Recv) -> Header:
    """
    Read until CRLF, never asking for more than MAX_HEADER_BYTES + 2 bytes in
    total, so malformed input is detected without consuming more than the cap.
    """
    limit = MAX_HEADER_BYTES + len(CRLF)
    buf = bytearray()
    while True:
        end = buf.find(CRLF)
        if end != -1:
            break
        if len(buf) >= limit:
            raise HeaderTooLarge(f"No header terminator within {MAX_HEADER_BYTES} bytes")
        chunk = recv(limit - len(buf))
        if not chunk:
            raise MalformedStatusLine("Connection closed before the header terminator")
        buf.extend(chunk)

    status, meta = parse_status_line(bytes(buf[:end]))
    return Header(status=status, meta=meta, remainder=bytes(buf[end + len(CRLF):]))


def read_body(recv: Recv, prefix: bytes = b"") -> bytes:
    """Read the remaining stream until the peer closes it."""
    chunks = [prefix]
    while True:
        chunk = recv(READ_CHUNK)
        if not chunk:
            break
        chunks.append(chunk)
    return b"".join(chunks)
