from dataclasses import dataclass, replace
from typing import ClassVar, Optional

from gemwalk.core import DEFAULT_PORT, ROBOTS_PATH


@dataclass(frozen=True)
class Url:
    """
    Canonical absolute Gemini URL.
    Invariants: host already validated by the normalizer, path never empty.
    """
    host: str
    port: Optional[int] = None
    path: str = "/"
    query: Optional[str] = None
    scheme: str = "gemini"

    @property
    def netloc(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        return f"{host}:{self.port}" if self.port is not None else host

    @property
    def effective_port(self) -> int:
        return self.port if self.port is not None else DEFAULT_PORT

    def with_query(self, query: Optional[str]) -> "Url":
        return replace(self, query=query)

    def robots_url(self) -> "Url":
        """Same host and port, robots.txt path, no query."""
        return replace(self, path=ROBOTS_PATH, query=None)

    def __str__(self):
        query = f"?{self.query}" if self.query is not None else ""
        return f"{self.scheme}://{self.netloc}{self.path}{query}"


@dataclass(frozen=True)
class UserAgent:
    """
    Robots token identifying what kind of client is making requests.

    The four predefined agents are the virtual agents defined by robots.txt for Gemini:
    archiver, indexer, researcher and webproxy. Anything else can be declared
    with UserAgent.custom().
    """
    token: str

    ARCHIVER: ClassVar["UserAgent"]
    INDEXER: ClassVar["UserAgent"]
    RESEARCHER: ClassVar["UserAgent"]
    WEBPROXY: ClassVar["UserAgent"]

    def __post_init__(self):
        if not self.token or any(ch.isspace() for ch in self.token):
            raise ValueError(f"invalid user-agent token: {self.token!r}")

    @classmethod
    def custom(cls, token: str) -> "UserAgent":
        return cls(token.strip())

    @classmethod
    def predefined(cls):
        return (cls.ARCHIVER, cls.INDEXER, cls.RESEARCHER, cls.WEBPROXY)

    @classmethod
    def parse(cls, value: str) -> "UserAgent":
        """Map a CLI/config string to a predefined agent, or a custom one."""
        for agent in cls.predefined():
            if agent.token == value.strip().lower():
                return agent
        return cls.custom(value)

    def __str__(self):
        return self.token


UserAgent.ARCHIVER = UserAgent("archiver")
UserAgent.INDEXER = UserAgent("indexer")
UserAgent.RESEARCHER = UserAgent("researcher")
UserAgent.WEBPROXY = UserAgent("webproxy")
