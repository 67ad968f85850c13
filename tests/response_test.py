"""
Response conveniences: MIME handling, body access, saving and redirects.
"""

import io
import os
import tempfile
import unittest

from gemwalk.errors import ContentDecodeError, ResponseError, UnexpectedFiletype, UnexpectedStatus
from gemwalk.normalizer import normalize_url
from gemwalk.response import Response
from gemwalk.status import Status, StatusClass

URL = normalize_url("example.org/docs/page.gmi")


def make_response(code=20, meta="text/gemini", body=b"# Title\n"):
    return Response(url=URL, status=Status(code), meta=meta, body=body if code // 10 == 2 else None)


class TestMime(unittest.TestCase):
    def test_type_and_charset(self):
        response = make_response(meta='Text/Gemini; charset="ISO-8859-1"; lang=fr')
        self.assertEqual(response.mime_type, "text/gemini")
        self.assertEqual(response.charset, "ISO-8859-1")
        self.assertEqual(response.mime_params["lang"], "fr")
        self.assertTrue(response.is_gemtext())

    def test_empty_success_meta_defaults_to_gemtext(self):
        response = make_response(meta="")
        self.assertEqual(response.mime_type, "text/gemini")
        self.assertEqual(response.charset, "utf-8")

    def test_non_success_has_no_mime(self):
        response = make_response(code=51, meta="Not found")
        self.assertIsNone(response.mime_type)
        self.assertFalse(response.is_gemtext())


class TestBodyAccess(unittest.TestCase):
    def test_text_uses_declared_charset(self):
        response = make_response(meta="text/plain; charset=latin-1", body="Café".encode("latin-1"))
        self.assertEqual(response.text(), "Café")

    def test_text_decode_failure(self):
        response = make_response(meta="text/plain", body=b"\xff\xfe")
        with self.assertRaises(ContentDecodeError):
            response.text()

    def test_non_success_refuses_body_access(self):
        response = make_response(code=44, meta="Slow down")
        with self.assertRaises(UnexpectedStatus) as cm:
            response.text()
        self.assertEqual(cm.exception.status.code, 44)
        self.assertEqual(cm.exception.meta, "Slow down")
        self.assertEqual(cm.exception.expected, "SUCCESS")

    def test_gemtext_requires_gemini_mime(self):
        response = make_response(meta="text/plain", body=b"plain")
        with self.assertRaises(UnexpectedFiletype) as cm:
            response.gemtext()
        self.assertEqual(cm.exception.received, "text/plain")

    def test_gemtext(self):
        self.assertEqual(make_response().gemtext().title(), "Title")

    def test_save(self):
        buf = io.BytesIO()
        make_response(body=b"\x00binary\x01").save(buf)
        self.assertEqual(buf.getvalue(), b"\x00binary\x01")

    def test_save_to_path(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "out.gmi")
            make_response().save_to_path(path)
            with open(path, "rb") as f:
                self.assertEqual(f.read(), b"# Title\n")

    def test_save_non_success(self):
        with self.assertRaises(UnexpectedStatus):
            make_response(code=59, meta="Bad request").save(io.BytesIO())


class TestRedirects(unittest.TestCase):
    def test_relative_redirect(self):
        response = make_response(code=31, meta="other.gmi")
        self.assertEqual(str(response.redirect_url()), "gemini://example.org/docs/other.gmi")

    def test_absolute_redirect(self):
        response = make_response(code=30, meta="gemini://elsewhere.net/")
        self.assertEqual(str(response.redirect_url()), "gemini://elsewhere.net/")

    def test_redirect_url_requires_redirect(self):
        with self.assertRaises(UnexpectedStatus) as cm:
            make_response().redirect_url()
        self.assertEqual(cm.exception.expected, StatusClass.REDIRECT.name)


class TestCertificateAccess(unittest.TestCase):
    def test_missing_certificate(self):
        response = make_response()
        with self.assertRaises(ResponseError):
            response.certificate_pem()
        with self.assertRaises(ResponseError):
            response.certificate_info()


if __name__ == "__main__":
    unittest.main()
