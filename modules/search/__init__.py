"""Member and ban search with reaction pagination and archive export."""

from __future__ import annotations

from .engine import (
    SearchQuery,
    SearchResult,
    SearchType,
    perform_ban_search,
    perform_member_search,
    perform_search,
)
from .errors import SearchArgumentError, SearchError, UnsafePatternError
from .export import archive_search
from .session import SearchSession, display_search

__all__ = [
    "SearchArgumentError",
    "SearchError",
    "SearchQuery",
    "SearchResult",
    "SearchSession",
    "SearchType",
    "UnsafePatternError",
    "archive_search",
    "display_search",
    "perform_ban_search",
    "perform_member_search",
    "perform_search",
]
