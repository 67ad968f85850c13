"""
Robots policy for Gemini capsules (robots.txt for Gemini).

Rule sets are fetched lazily per host, cached, and evaluated against a
requested path for a user-agent token. A robots.txt that cannot be fetched
means "no restrictions": the checker must never be the thing that stops a
client from working.
"""

from dataclasses import dataclass, field
from threading import Lock
from typing import Callable, Dict, Optional, Tuple

from gemwalk.core import setup_logger
from gemwalk.errors import ContentDecodeError, GeminiError, RobotDenied
from gemwalk.models import Url
from gemwalk.normalizer import UrlNormalizer
from gemwalk.response import Response

logger = setup_logger("gemwalk.robots")

WILDCARD = "*"


@dataclass(frozen=True)
class RobotsRuleSet:
    """
    Immutable mapping of lower-cased user-agent token -> disallowed path prefixes.
    """
    rules: Dict[str, Tuple[str, ...]] = field(default_factory=dict)

    def __post_init__(self):
        normalized = {agent.strip().lower(): tuple(prefixes) for agent, prefixes in self.rules.items()}
        object.__setattr__(self, "rules", normalized)

    def group_for(self, token: str) -> Optional[Tuple[str, ...]]:
        """
        Exact token group if the file names it, else the wildcard group.
        When the exact token has a group the wildcard group is ignored entirely.
        """
        token = token.strip().lower()
        if token in self.rules:
            return self.rules[token]
        return self.rules.get(WILDCARD)

    def blocking_rule(self, path: str, token: str) -> Optional[str]:
        """The Disallow prefix that blocks path, or None. Empty prefixes match nothing."""
        for prefix in self.group_for(token) or ():
            if prefix and path.startswith(prefix):
                return prefix
        return None

    def allows(self, path: str, token: str) -> bool:
        return self.blocking_rule(path, token) is None


EMPTY_RULES = RobotsRuleSet()


def parse_robots(text: str) -> RobotsRuleSet:
    """
    Parse robots.txt into a RobotsRuleSet.
    - '#' starts a comment.
    - Consecutive User-agent lines form one group; a User-agent line after a
      Disallow starts a new group.
    - Each Disallow value applies to every agent of the current group.
    - Disallow values are percent-encoded like request paths so both sides
      of the prefix match have the same form.
    - Any other directive is ignored.
    """
    rules: Dict[str, list] = {}
    active_agents = []
    last_was_agent = False

    for raw in text.splitlines():
        line = raw.split("#", 1)[0].strip()
        if not line or ":" not in line:
            continue

        directive, value = line.split(":", 1)
        directive = directive.strip().lower()
        value = value.strip()

        if directive == "user-agent":
            if not last_was_agent:
                active_agents = []
            agent = value.lower()
            active_agents.append(agent)
            rules.setdefault(agent, [])
            last_was_agent = True
        elif directive == "disallow":
            for agent in active_agents:
                rules[agent].append(UrlNormalizer.quote_path(value))
            last_was_agent = False

    return RobotsRuleSet({agent: tuple(prefixes) for agent, prefixes in rules.items()})


class RobotsCache:
    """
    Host -> RobotsRuleSet.
    Rule sets are replaced wholesale, never mutated, so reads need no lock;
    writes are last-writer-wins.
    """

    def __init__(self):
        self._lock = Lock()
        self._entries: Dict[str, RobotsRuleSet] = {}

    def get(self, host: str) -> Optional[RobotsRuleSet]:
        return self._entries.get(host)

    def put(self, host: str, rules: RobotsRuleSet) -> None:
        with self._lock:
            self._entries[host] = rules

    def clear(self) -> None:
        with self._lock:
            self._entries = {}

    def __contains__(self, host: str) -> bool:
        return host in self._entries

    def __len__(self):
        return len(self._entries)


class RobotsPolicy:
    """
    Decides whether a URL may be requested by a user-agent.

    fetch performs a plain request (no robots check of its own) and returns a
    Response; it is normally the owning Actor's transport path.
    """

    def __init__(self, fetch: Callable[[Url], Response], cache: Optional[RobotsCache] = None):
        self._fetch = fetch
        self.cache = cache if cache is not None else RobotsCache()

    def rules_for(self, url: Url) -> RobotsRuleSet:
        key = url.netloc
        rules = self.cache.get(key)
        if rules is None:
            rules = self._fetch_rules(url)
            self.cache.put(key, rules)
        return rules

    def _fetch_rules(self, url: Url) -> RobotsRuleSet:
        robots_url = url.robots_url()
        try:
            response = self._fetch(robots_url)
        except GeminiError as exc:
            logger.warning(f"[ROBOTS] {robots_url} unavailable ({exc}); treating {url.netloc} as unrestricted")
            return EMPTY_RULES

        if not response.status.is_success:
            logger.info(f"[ROBOTS] {robots_url} answered {response.status}; no restrictions for {url.netloc}")
            return EMPTY_RULES

        try:
            text = response.text()
        except ContentDecodeError as exc:
            logger.warning(f"[ROBOTS] {robots_url} is not text ({exc}); treating {url.netloc} as unrestricted")
            return EMPTY_RULES

        rules = parse_robots(text)
        logger.info(f"[ROBOTS] {robots_url} loaded ({len(rules.rules)} agent groups)")
        return rules

    def evaluate(self, url: Url, token: str) -> Tuple[bool, Optional[str]]:
        """Return (allowed, blocking Disallow prefix or None)."""
        rule = self.rules_for(url).blocking_rule(url.path, token)
        return rule is None, rule

    def is_allowed(self, url: Url, token: str) -> bool:
        allowed, _ = self.evaluate(url, token)
        return allowed

    def check_or_fail(self, url: Url, token: str) -> None:
        allowed, rule = self.evaluate(url, token)
        if not allowed:
            logger.info(f"[ROBOTS] Denied {url} for '{token}' by Disallow: {rule}")
            raise RobotDenied(str(url), rule, token)
