"""
Actor: the identity and settings a request is made with, and the pipeline
that turns a URL string into a Response.

normalize -> robots check (optional) -> encode -> connect -> send
-> read header -> read body (2x only)

The first failing stage raises; a partial Response is never returned.
"""

from dataclasses import dataclass, field, replace
from typing import Optional

from gemwalk.codec import encode_request, read_body, read_header
from gemwalk.core import REQUEST_TIMEOUT, setup_logger
from gemwalk.models import Url, UserAgent
from gemwalk.normalizer import UrlNormalizer, normalize_url
from gemwalk.response import Response
from gemwalk.robots import WILDCARD, RobotsCache, RobotsPolicy
from gemwalk.transport import connect

logger = setup_logger("gemwalk.actor")


@dataclass(frozen=True)
class Actor:
    """
    Immutable request configuration. Every with_* step returns a new Actor and
    touches exactly one field, so one Actor can serve many concurrent requests.

    obey_robots=None means "obey robots.txt when a user-agent is set". Actors
    derived with with_* share the robots cache of the Actor they came from.
    """
    user_agent: Optional[UserAgent] = None
    cert_file: Optional[str] = None
    key_file: Optional[str] = None
    obey_robots: Optional[bool] = None
    timeout: float = REQUEST_TIMEOUT
    robots_cache: RobotsCache = field(default_factory=RobotsCache, compare=False, repr=False)

    # -------------------------------
    # BUILDER
    # -------------------------------
    def with_user_agent(self, user_agent: Optional[UserAgent]) -> "Actor":
        """
        *Please* set a user-agent when building anything that fetches other
        people's content indiscriminately, so capsule owners can opt out.
        """
        return replace(self, user_agent=user_agent)

    def with_cert_file(self, cert_file: Optional[str]) -> "Actor":
        return replace(self, cert_file=cert_file)

    def with_key_file(self, key_file: Optional[str]) -> "Actor":
        return replace(self, key_file=key_file)

    def with_robots(self, obey: Optional[bool]) -> "Actor":
        return replace(self, obey_robots=obey)

    def with_timeout(self, seconds: float) -> "Actor":
        return replace(self, timeout=seconds)

    def with_robots_cache(self, cache: RobotsCache) -> "Actor":
        return replace(self, robots_cache=cache)

    @property
    def robots_enabled(self) -> bool:
        if self.obey_robots is None:
            return self.user_agent is not None
        return self.obey_robots

    @property
    def agent_token(self) -> str:
        return self.user_agent.token if self.user_agent is not None else WILDCARD

    def robots_policy(self) -> RobotsPolicy:
        return RobotsPolicy(self.send, self.robots_cache)

    # -------------------------------
    # REQUESTS
    # -------------------------------
    def get(self, url: str) -> Response:
        """Request url. The gemini:// prefix may be left out."""
        return self.request(normalize_url(url))

    def input(self, url: str, text: str) -> Response:
        """Request url with text as its query, answering a 1x prompt."""
        return self.request(normalize_url(url, input_text=text))

    def request(self, url: Url) -> Response:
        """Request an already-built Url. The host is re-validated before any I/O."""
        url = replace(url, host=UrlNormalizer.validate_host(url.host))
        if self.robots_enabled:
            self.robots_policy().check_or_fail(url, self.agent_token)
        return self.send(url)

    def send(self, url: Url) -> Response:
        """One raw request/response cycle, without any robots check."""
        request = encode_request(url)

        with connect(url.host, url.effective_port, self.cert_file, self.key_file, self.timeout) as conn:
            conn.send(request)
            header = read_header(conn.recv)
            body = None
            if header.status.is_success:
                conn.begin_body()
                body = read_body(conn.recv, header.remainder)

            logger.info(f"[GET] {url} -> {header.status} {header.meta}")
            return Response(
                url=url,
                status=header.status,
                meta=header.meta,
                body=body,
                certificate=conn.peer_certificate,
            )


def get(url: str) -> Response:
    """One-shot request with a default Actor."""
    return Actor().get(url)


def send_input(url: str, text: str) -> Response:
    """One-shot input submission with a default Actor."""
    return Actor().input(url, text)
