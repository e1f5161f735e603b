"""Exceptions raised by the moderation search pipeline."""

from __future__ import annotations

__all__ = ["SearchError", "UnsafePatternError", "SearchArgumentError"]


class SearchError(Exception):
    """A user-facing search failure; the message is shown in the channel as-is."""


class UnsafePatternError(SearchError):
    """The query pattern failed to compile or was rejected by the safety gate."""


class SearchArgumentError(SearchError):
    """The command arguments could not be parsed."""
