"""
Request/response framing.
"""

import unittest

from gemwalk.codec import encode_request, parse_status_line, read_body, read_header
from gemwalk.errors import HeaderTooLarge, MalformedStatusLine, RequestTooLarge
from gemwalk.models import Url
from gemwalk.status import StatusClass


class FakeStream:
    """recv() over a fixed byte string, optionally capped per call; tracks bytes handed out."""

    def __init__(self, data, max_chunk=None):
        self.data = data
        self.max_chunk = max_chunk
        self.consumed = 0
        self.requested = []

    def recv(self, size):
        self.requested.append(size)
        if self.max_chunk:
            size = min(size, self.max_chunk)
        chunk = self.data[self.consumed:self.consumed + size]
        self.consumed += len(chunk)
        return chunk


class TestEncodeRequest(unittest.TestCase):
    def test_exact_url_plus_crlf(self):
        url = Url(host="example.org", path="/docs/", query="q%20a")
        self.assertEqual(encode_request(url), b"gemini://example.org/docs/?q%20a\r\n")

    def test_port_and_ipv6_host(self):
        self.assertEqual(encode_request(Url(host="::1", port=1966)), b"gemini://[::1]:1966/\r\n")

    def test_exactly_1024_bytes_is_allowed(self):
        prefix = "gemini://example.org/"
        url = Url(host="example.org", path="/" + "a" * (1024 - len(prefix)))
        encoded = encode_request(url)
        self.assertEqual(len(encoded), 1026)
        self.assertTrue(encoded.endswith(b"\r\n"))

    def test_oversize_request_rejected(self):
        prefix = "gemini://example.org/"
        url = Url(host="example.org", path="/" + "a" * (1025 - len(prefix)))
        with self.assertRaises(RequestTooLarge):
            encode_request(url)

    def test_size_is_measured_in_utf8_bytes(self):
        """Scenario: 600 two-byte characters exceed the cap even though len(str) < 1024."""
        url = Url(host="example.org", path="/" + "é" * 600)
        with self.assertRaises(RequestTooLarge):
            encode_request(url)


class TestParseStatusLine(unittest.TestCase):
    def test_valid_line(self):
        status, meta = parse_status_line(b"20 text/gemini; charset=utf-8")
        self.assertEqual(status.code, 20)
        self.assertEqual(meta, "text/gemini; charset=utf-8")

    def test_empty_meta_after_space(self):
        status, meta = parse_status_line(b"20 ")
        self.assertIs(status.status_class, StatusClass.SUCCESS)
        self.assertEqual(meta, "")

    def test_utf8_meta(self):
        _, meta = parse_status_line("10 Quel est ton nom ?".encode("utf-8"))
        self.assertEqual(meta, "Quel est ton nom ?")

    def test_malformed_shapes(self):
        for line in (b"", b"20", b"2 text", b"200 text", b"ab text", b"20text", b" 20 text", b"20\ttext", b"20 a\nb"):
            with self.subTest(line=line):
                with self.assertRaises(MalformedStatusLine):
                    parse_status_line(line)

    def test_out_of_range_codes_rejected(self):
        for line in (b"00 x", b"09 x", b"70 x", b"99 x"):
            with self.subTest(line=line):
                with self.assertRaises(MalformedStatusLine):
                    parse_status_line(line)

    def test_non_utf8_meta(self):
        with self.assertRaises(MalformedStatusLine):
            parse_status_line(b"20 \xff\xfe")


class TestReadHeader(unittest.TestCase):
    def test_header_and_remainder(self):
        stream = FakeStream(b"20 text/gemini\r\n# Hello\r\n")
        header = read_header(stream.recv)
        self.assertEqual(header.status.code, 20)
        self.assertEqual(header.meta, "text/gemini")
        self.assertEqual(header.remainder, b"# Hello\r\n")

    def test_header_split_across_reads(self):
        stream = FakeStream(b"51 Not found\r\n", max_chunk=3)
        header = read_header(stream.recv)
        self.assertEqual(header.status.code, 51)
        self.assertEqual(header.meta, "Not found")

    def test_terminator_split_across_reads(self):
        stream = FakeStream(b"20 x\r\nbody", max_chunk=5)
        header = read_header(stream.recv)
        self.assertEqual(header.meta, "x")

    def test_1024_byte_header_is_accepted(self):
        line = b"20 " + b"m" * 1021
        stream = FakeStream(line + b"\r\n")
        header = read_header(stream.recv)
        self.assertEqual(len(header.meta), 1021)

    def test_oversize_header_fails_without_overreading(self):
        """Scenario: 5000 bytes with no CRLF; at most 1026 bytes may be consumed."""
        stream = FakeStream(b"20 " + b"x" * 5000 + b"\r\n")
        with self.assertRaises(HeaderTooLarge):
            read_header(stream.recv)
        self.assertLessEqual(stream.consumed, 1026)
        self.assertTrue(all(size <= 1026 for size in stream.requested))

    def test_oversize_header_detected_incrementally(self):
        stream = FakeStream(b"x" * 2000, max_chunk=100)
        with self.assertRaises(HeaderTooLarge):
            read_header(stream.recv)
        self.assertEqual(stream.consumed, 1026)

    def test_1025_bytes_before_terminator_is_too_large(self):
        stream = FakeStream(b"20 " + b"m" * 1022 + b"\r\n")
        with self.assertRaises(HeaderTooLarge):
            read_header(stream.recv)

    def test_closed_before_terminator(self):
        stream = FakeStream(b"20 text/gemini")
        with self.assertRaises(MalformedStatusLine):
            read_header(stream.recv)


class TestReadBody(unittest.TestCase):
    def test_reads_until_close_with_prefix(self):
        stream = FakeStream(b"world" * 2000, max_chunk=512)
        body = read_body(stream.recv, b"hello ")
        self.assertEqual(body, b"hello " + b"world" * 2000)

    def test_empty_body(self):
        self.assertEqual(read_body(FakeStream(b"").recv), b"")


if __name__ == "__main__":
    unittest.main()
