"""
FILE DESCRIPTION: URL sanitization for Gemini requests.
KEY FUNCTIONS/CLASSES: UrlNormalizer, normalize_url
"""

import ipaddress
import re
import urllib.parse
from typing import Optional
from urllib.parse import quote, urljoin, urlsplit

import tldextract

from gemwalk.errors import InvalidDomain, InvalidUrl
from gemwalk.models import Url

SCHEME = "gemini"

# Let urljoin resolve relative references against gemini:// bases
for _registry in (urllib.parse.uses_relative, urllib.parse.uses_netloc):
    if SCHEME not in _registry:
        _registry.append(SCHEME)

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://")
_LABEL_RE = re.compile(r"^(?!-)[a-z0-9-]{1,63}(?<!-)$")

# Characters left as-is when percent-encoding a path
_PATH_SAFE = "/%:@!$&'()*+,;=-._~"

# Bundled public suffix snapshot only; never fetch the list over the network
_extract = tldextract.TLDExtract(suffix_list_urls=())


class UrlNormalizer:

    # -------------------------------
    # REQUEST NORMALIZATION
    # -------------------------------
    @staticmethod
    def normalize(url: str, input_text: Optional[str] = None) -> Url:
        """
        Turn user input into a canonical absolute Gemini URL.
        - Adds gemini:// when no scheme is given, rejects any other scheme.
        - Validates the host (domain name or IP literal).
        - Defaults the path to "/", drops the fragment.
        - input_text, when given, replaces the query (percent-encoded).
        """
        if not url or not url.strip():
            raise InvalidUrl("empty URL")

        url = url.strip()
        if not _SCHEME_RE.match(url):
            url = f"{SCHEME}://{url.lstrip('/')}"

        parsed = urlsplit(url)
        if parsed.scheme.lower() != SCHEME:
            raise InvalidUrl(f"unsupported scheme '{parsed.scheme}' in {url}")
        if parsed.username is not None or parsed.password is not None:
            raise InvalidUrl(f"userinfo is not allowed in gemini URLs: {url}")

        try:
            port = parsed.port
        except ValueError as exc:
            raise InvalidUrl(f"invalid port in {url}") from exc

        host = UrlNormalizer.validate_host(parsed.hostname or "")

        path = UrlNormalizer.quote_path(parsed.path) or "/"
        if not path.startswith("/"):
            path = "/" + path

        query = parsed.query or None
        if input_text is not None:
            query = quote(input_text, safe="")

        return Url(host=host, port=port, path=path, query=query)

    @staticmethod
    def quote_path(path: str) -> str:
        """Percent-encode a path once; existing escapes are kept."""
        return quote(path, safe=_PATH_SAFE)

    @staticmethod
    def validate_host(host: str) -> str:
        """
        Return the canonical host (lower-case, IDNA-encoded) or raise InvalidDomain.
        IP literals are accepted as-is (IPv6 in compressed form).
        """
        if not host:
            raise InvalidDomain("URL has no host")

        try:
            return str(ipaddress.ip_address(host))
        except ValueError:
            pass

        name = host.lower().rstrip(".")
        try:
            ascii_name = name.encode("idna").decode("ascii")
        except UnicodeError as exc:
            raise InvalidDomain(f"malformed domain: {host}") from exc

        labels = ascii_name.split(".")
        if len(ascii_name) > 253 or not all(_LABEL_RE.match(label) for label in labels):
            raise InvalidDomain(f"malformed domain: {host}")
        return ascii_name

    # -------------------------------
    # REDIRECTS / LINKS
    # -------------------------------
    @staticmethod
    def resolve(base: Url, target: str) -> Url:
        """
        Resolve a redirect target or link (absolute or relative) against base.
        """
        target = (target or "").strip()
        if not target:
            raise InvalidUrl("empty redirect target")
        if _SCHEME_RE.match(target):
            return UrlNormalizer.normalize(target)
        return UrlNormalizer.normalize(urljoin(str(base), target))

    @staticmethod
    def site_of(url: Url) -> str:
        """
        Registered site for a host (e.g. capsule.example.co.uk -> example.co.uk).
        Hosts without a public suffix (IPs, localhost) are their own site.
        """
        ext = _extract(url.host)
        if ext.domain and ext.suffix:
            return f"{ext.domain}.{ext.suffix}"
        return url.host

    @staticmethod
    def same_site(a: Url, b: Url) -> bool:
        return UrlNormalizer.site_of(a) == UrlNormalizer.site_of(b)


normalize_url = UrlNormalizer.normalize
