"""Parse ``!search`` / ``!bansearch`` argument strings into a SearchQuery."""

from __future__ import annotations

import argparse
import shlex
from typing import NoReturn, Sequence

from .engine import SearchQuery, SearchType
from .errors import SearchArgumentError

__all__ = ["build_parser", "parse_search_args"]

# Flags whose value may itself start with "-" (e.g. ``-sort -id``).
_VALUE_FLAGS_WITH_DASH = frozenset({"-sort"})


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        raise SearchArgumentError(f"Invalid arguments: {message}")

    def exit(self, status: int = 0, message: str | None = None) -> NoReturn:
        raise SearchArgumentError(message or "Invalid arguments")


def build_parser(search_type: SearchType) -> argparse.ArgumentParser:
    prog = "bansearch" if search_type is SearchType.BAN else "search"
    parser = _ArgumentParser(prog=prog, add_help=False, allow_abbrev=False)
    parser.add_argument("query", nargs="*")
    parser.add_argument("-page", "-p", dest="page", type=int)
    parser.add_argument("-sort", dest="sort")
    parser.add_argument("-case-sensitive", "-cs", dest="case_sensitive", action="store_true")
    parser.add_argument("-export", "-e", dest="export", action="store_true")
    parser.add_argument("-ids", dest="ids", action="store_true")
    parser.add_argument("-regex", "-re", dest="regex", action="store_true")
    if search_type is SearchType.MEMBER:
        parser.add_argument("-role", "-r", dest="role")
        parser.add_argument("-voice", "-v", dest="voice", action="store_true")
        parser.add_argument("-bot", "-b", dest="bot", action="store_true")
        parser.add_argument(
            "-status-search", "-ss", dest="status_search", action="store_true"
        )
    return parser


def _join_dash_values(tokens: Sequence[str]) -> list[str]:
    joined: list[str] = []
    iterator = iter(tokens)
    for token in iterator:
        if token in _VALUE_FLAGS_WITH_DASH:
            value = next(iterator, None)
            if value is not None:
                joined.append(f"{token}={value}")
                continue
        joined.append(token)
    return joined


def parse_search_args(raw: str | None, search_type: SearchType) -> SearchQuery:
    """Turn the text after the command name into a :class:`SearchQuery`."""

    try:
        tokens = shlex.split(raw or "")
    except ValueError as exc:
        raise SearchArgumentError(f"Invalid arguments: {exc}") from exc

    namespace = build_parser(search_type).parse_intermixed_args(_join_dash_values(tokens))
    query = " ".join(namespace.query).strip() or None

    return SearchQuery(
        query=query,
        page=namespace.page,
        role=getattr(namespace, "role", None),
        voice=getattr(namespace, "voice", False),
        bot=getattr(namespace, "bot", False),
        sort=namespace.sort,
        case_sensitive=namespace.case_sensitive,
        export=namespace.export,
        ids=namespace.ids,
        regex=namespace.regex,
        status_search=getattr(namespace, "status_search", False),
    )
