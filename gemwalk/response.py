from dataclasses import dataclass
from pathlib import Path
from typing import Any, BinaryIO, Dict, Optional, Union

from gemwalk.certificates import PeerCertificate
from gemwalk.errors import ContentDecodeError, ResponseError, UnexpectedFiletype, UnexpectedStatus
from gemwalk.gemtext import Gemtext
from gemwalk.models import Url
from gemwalk.normalizer import UrlNormalizer
from gemwalk.status import Status, StatusClass

GEMTEXT_MIME = "text/gemini"
DEFAULT_SUCCESS_META = "text/gemini; charset=utf-8"


@dataclass(frozen=True)
class Response:
    """
    One Gemini response, immutable once parsed.

    meta means different things per status class: prompt (1x), MIME type (2x),
    redirect target (3x), error text (4x/5x), certificate request text (6x).
    INVARIANT: body is bytes for 2x statuses and None for everything else.
    """
    url: Url
    status: Status
    meta: str
    body: Optional[bytes] = None
    certificate: Optional[PeerCertificate] = None

    # -------------------------------
    # MIME
    # -------------------------------
    def _media_type(self) -> str:
        if not self.status.is_success:
            return ""
        return self.meta.strip() or DEFAULT_SUCCESS_META

    @property
    def mime_type(self) -> Optional[str]:
        media = self._media_type()
        return media.split(";", 1)[0].strip().lower() or None

    @property
    def mime_params(self) -> Dict[str, str]:
        params = {}
        for part in self._media_type().split(";")[1:]:
            if "=" in part:
                key, value = part.split("=", 1)
                params[key.strip().lower()] = value.strip().strip('"')
        return params

    @property
    def charset(self) -> str:
        return self.mime_params.get("charset", "utf-8")

    def is_gemtext(self) -> bool:
        return self.status.is_success and self.mime_type == GEMTEXT_MIME

    # -------------------------------
    # BODY ACCESS
    # -------------------------------
    def require_status(self, expected: StatusClass = StatusClass.SUCCESS) -> None:
        if self.status.status_class is not expected:
            raise UnexpectedStatus(expected.name, self.status, self.meta)

    def text(self) -> str:
        """Body decoded with the declared charset (utf-8 by default), regardless of MIME type."""
        self.require_status()
        try:
            return self.body.decode(self.charset)
        except (UnicodeDecodeError, LookupError) as exc:
            raise ContentDecodeError(f"Content isn't {self.charset}: {exc}") from exc

    def gemtext(self) -> Gemtext:
        self.require_status()
        if not self.is_gemtext():
            raise UnexpectedFiletype(GEMTEXT_MIME, self.mime_type)
        return Gemtext(self.body, self.charset)

    def save(self, fileobj: BinaryIO) -> None:
        self.require_status()
        fileobj.write(self.body)

    def save_to_path(self, path: Union[str, Path]) -> None:
        self.require_status()
        Path(path).write_bytes(self.body)

    # -------------------------------
    # REDIRECTS
    # -------------------------------
    def redirect_url(self) -> Url:
        """Absolute target of a 3x response, resolved against the requested URL."""
        self.require_status(StatusClass.REDIRECT)
        return UrlNormalizer.resolve(self.url, self.meta)

    # -------------------------------
    # CERTIFICATE
    # -------------------------------
    def certificate_pem(self) -> str:
        if self.certificate is None:
            raise ResponseError("Server has no certificate")
        return self.certificate.pem

    def certificate_info(self) -> Dict[str, Any]:
        if self.certificate is None:
            raise ResponseError("Server has no certificate")
        return self.certificate.info()
