"""
Structural parser for text/gemini bodies.

Turns a body into typed line records. Nothing is rendered here; the only
state carried between lines is whether we are inside a preformatted block.
"""

import io
from dataclasses import dataclass
from typing import Iterator, List, Optional, Union

from gemwalk.errors import ContentDecodeError

PREFORMAT_MARKER = "```"
LINK_MARKER = "=>"
HEADING_MARKER = "#"
LIST_MARKER = "* "
QUOTE_MARKER = ">"
MAX_HEADING_LEVEL = 3


@dataclass(frozen=True)
class PlainText:
    text: str

@dataclass(frozen=True)
class Link:
    """Link line. url may be relative to the document; label is None when absent."""
    url: str
    label: Optional[str] = None

@dataclass(frozen=True)
class Heading:
    level: int
    text: str

@dataclass(frozen=True)
class ListItem:
    text: str

@dataclass(frozen=True)
class Quote:
    text: str

@dataclass(frozen=True)
class PreformatToggle:
    """Opens (alt text possibly set) or closes (alt always None) a preformatted block."""
    alt: Optional[str] = None
    opening: bool = True

@dataclass(frozen=True)
class PreformatLine:
    text: str


GemtextLine = Union[PlainText, Link, Heading, ListItem, Quote, PreformatToggle, PreformatLine]


def parse_line(line: str) -> GemtextLine:
    """Classify one line found outside a preformatted block (toggles excluded)."""
    if line.startswith(LINK_MARKER):
        parts = line[len(LINK_MARKER):].strip().split(maxsplit=1)
        if parts:
            label = parts[1].strip() if len(parts) > 1 else None
            return Link(url=parts[0], label=label or None)
        return PlainText(line)

    if line.startswith(HEADING_MARKER):
        depth = len(line) - len(line.lstrip(HEADING_MARKER))
        return Heading(level=min(depth, MAX_HEADING_LEVEL), text=line[depth:].strip())

    if line.startswith(LIST_MARKER):
        return ListItem(line[len(LIST_MARKER):].strip())

    if line.startswith(QUOTE_MARKER):
        return Quote(line[len(QUOTE_MARKER):].strip())

    return PlainText(line)


class Gemtext:
    """
    Lazy, restartable sequence of GemtextLine.

    Bytes are decoded once up front; each iteration re-parses the text from the
    start, so iterating twice yields equal records and has no side effects.
    """

    def __init__(self, body: Union[bytes, str], encoding: str = "utf-8"):
        if isinstance(body, bytes):
            try:
                body = body.decode(encoding)
            except (UnicodeDecodeError, LookupError) as exc:
                raise ContentDecodeError(f"Gemtext isn't valid {encoding}: {exc}") from exc
        self.text = body

    def __iter__(self) -> Iterator[GemtextLine]:
        preformatted = False
        for raw in io.StringIO(self.text, newline="\n"):
            line = raw.rstrip("\r\n")
            if line.startswith(PREFORMAT_MARKER):
                if preformatted:
                    yield PreformatToggle(alt=None, opening=False)
                else:
                    alt = line[len(PREFORMAT_MARKER):].strip()
                    yield PreformatToggle(alt=alt or None, opening=True)
                preformatted = not preformatted
            elif preformatted:
                yield PreformatLine(line)
            else:
                yield parse_line(line)

    def lines(self) -> List[GemtextLine]:
        return list(self)

    def links(self) -> List[Link]:
        return [line for line in self if isinstance(line, Link)]

    def headings(self) -> List[Heading]:
        return [line for line in self if isinstance(line, Heading)]

    def title(self) -> Optional[str]:
        for line in self:
            if isinstance(line, Heading) and line.level == 1:
                return line.text
        return None


def parse_gemtext(body: Union[bytes, str], encoding: str = "utf-8") -> Gemtext:
    return Gemtext(body, encoding)
