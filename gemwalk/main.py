"""
Command-line Gemini client.

Exit codes: 0 on success, the status code for a non-success response (its
meta is printed), 1 on any request error, 2 on bad arguments.
"""

import argparse
import json
import sys
from typing import Optional, Sequence

from gemwalk.actor import Actor
from gemwalk.core import REQUEST_TIMEOUT, logger
from gemwalk.errors import GeminiError, UnexpectedStatus
from gemwalk.gemtext import Gemtext, Heading, Link, ListItem, PlainText, PreformatLine, PreformatToggle, Quote
from gemwalk.models import UserAgent
from gemwalk.normalizer import UrlNormalizer
from gemwalk.response import Response

RESET = "\x1b[0m"
HEADING_STYLES = {
    1: "\x1b[32;1m▍ ",
    2: "\x1b[36;1m▋ ",
    3: "\x1b[34;1m█ ",
}


def user_agent_arg(value: str) -> UserAgent:
    try:
        return UserAgent.parse(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gemwalk",
        description="A command-line gemini client. Non-success statuses are returned as the exit code.",
    )
    parser.add_argument("url", help="Target URL; gemini:// may be omitted")
    parser.add_argument("input", nargs="?", help="Input text sent as the query (answers a 1x prompt)")
    parser.add_argument("-c", "--cert", help="Client certificate file (PEM)")
    parser.add_argument("-k", "--key", help="Client private key file (PEM)")
    parser.add_argument("-u", "--user-agent", type=user_agent_arg, help="archiver, indexer, researcher, webproxy or a custom token; enables robots.txt")
    parser.add_argument("-t", "--timeout", type=float, default=REQUEST_TIMEOUT, help=f"Timeout in seconds (default {REQUEST_TIMEOUT:g})")
    parser.add_argument("-o", "--output", help="Write the body to this file")
    parser.add_argument("-g", "--gemtext-only", action="store_true", help="Only accept text/gemini responses. No effect with --output")
    parser.add_argument("-p", "--pretty-print", action="store_true", help="Pretty-print gemtext responses")
    parser.add_argument("--cert-pem", action="store_true", help="Print the server certificate as PEM instead of the body")
    parser.add_argument("--cert-info", action="store_true", help="Print parsed server certificate fields as JSON instead of the body")
    parser.add_argument("--follow", type=int, default=0, metavar="N", help="Follow up to N redirects")
    parser.add_argument("--cross-site", action="store_true", help="Allow --follow to leave the original site")
    return parser


def build_actor(args) -> Actor:
    actor = Actor().with_timeout(args.timeout).with_cert_file(args.cert).with_key_file(args.key)
    if args.user_agent is not None:
        actor = actor.with_user_agent(args.user_agent)
    return actor


def fetch(actor: Actor, args) -> Response:
    if args.input is not None:
        response = actor.input(args.url, args.input)
    else:
        response = actor.get(args.url)

    origin = response.url
    for _ in range(max(args.follow, 0)):
        if not response.status.is_redirect:
            break
        target = response.redirect_url()
        if not args.cross_site and not UrlNormalizer.same_site(origin, target):
            logger.warning(f"[REDIRECT] Not following {response.url} -> {target}: different site")
            break
        logger.info(f"[REDIRECT] {response.url} -> {target}")
        response = actor.request(target)
    return response


def pretty_print(gemtext: Gemtext, out=None):
    out = out or sys.stdout
    for line in gemtext:
        if isinstance(line, Heading):
            out.write(f"{HEADING_STYLES[line.level]}{line.text}")
        elif isinstance(line, Link):
            out.write(f"\x1b[0;4m{line.label or line.url}{RESET} \x1b[2m{line.url}")
        elif isinstance(line, ListItem):
            out.write(f"• {line.text}")
        elif isinstance(line, Quote):
            out.write(f"\x1b[33;3;1m« {line.text} »")
        elif isinstance(line, PreformatToggle):
            if not line.opening or line.alt is None:
                continue
            out.write(f"\x1b[35;2m{line.alt}")
        elif isinstance(line, PreformatLine):
            out.write(f"\x1b[35m{line.text}")
        elif isinstance(line, PlainText):
            out.write(line.text)
        out.write(f"{RESET}\n")


def run(args) -> int:
    response = fetch(build_actor(args), args)

    if args.cert_pem or args.cert_info:
        if args.cert_pem:
            print(response.certificate_pem(), end="")
        if args.cert_info:
            print(json.dumps(response.certificate_info(), indent=2))
        return 0

    try:
        if args.output:
            response.save_to_path(args.output)
            return 0

        if args.gemtext_only or (args.pretty_print and response.is_gemtext()):
            gemtext = response.gemtext()
            if args.pretty_print:
                pretty_print(gemtext)
            else:
                print(gemtext.text)
        else:
            print(response.text())
    except UnexpectedStatus as exc:
        print(exc.meta)
        return exc.status.code
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return run(args)
    except GeminiError as exc:
        print(f"gemwalk error :: {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"gemwalk error :: failed to write output: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
