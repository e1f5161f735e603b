"""Compile user-supplied search queries and reject catastrophic patterns.

Python's ``re`` engine backtracks, so a query such as ``(a+)+$`` can pin the
event loop on a long username. Every pattern is parsed and its *star height*
(nesting depth of repetition operators) is measured before it is used; anything
deeper than one level is refused. The total number of repetition operators is
capped as well.
"""

from __future__ import annotations

import re

# CPython internals (3.11+); checked against 3.11 through 3.13.
from re import _constants as sre_constants
from re import _parser as sre_parser
from typing import Any, Iterator

from .errors import UnsafePatternError

__all__ = [
    "MAX_STAR_HEIGHT",
    "MAX_REPETITIONS",
    "UNSAFE_PATTERN_MESSAGE",
    "compile_query",
    "is_safe_pattern",
    "star_height",
]

MAX_STAR_HEIGHT = 1
MAX_REPETITIONS = 25
UNSAFE_PATTERN_MESSAGE = "Unsafe/too complex regex (star depth is limited to 1)"

_REPEAT_OPCODES = frozenset(
    op
    for op in (
        sre_constants.MAX_REPEAT,
        sre_constants.MIN_REPEAT,
        getattr(sre_constants, "POSSESSIVE_REPEAT", None),
    )
    if op is not None
)


def _subpatterns(value: Any) -> Iterator[sre_parser.SubPattern]:
    if isinstance(value, sre_parser.SubPattern):
        yield value
    elif isinstance(value, (list, tuple)):
        for item in value:
            yield from _subpatterns(item)


def _measure(pattern: sre_parser.SubPattern, depth: int) -> tuple[int, int]:
    """Return ``(max star height, repetition count)`` below ``pattern``."""

    height = depth
    repetitions = 0
    for opcode, argument in pattern:
        child_depth = depth
        if opcode in _REPEAT_OPCODES:
            repetitions += 1
            child_depth = depth + 1
            height = max(height, child_depth)
        for child in _subpatterns(argument):
            child_height, child_reps = _measure(child, child_depth)
            height = max(height, child_height)
            repetitions += child_reps
    return height, repetitions


def star_height(pattern: re.Pattern[str] | str) -> tuple[int, int]:
    """Parse ``pattern`` and return its star height and repetition count."""

    source = pattern.pattern if isinstance(pattern, re.Pattern) else pattern
    flags = pattern.flags if isinstance(pattern, re.Pattern) else 0
    return _measure(sre_parser.parse(source, flags), 0)


def is_safe_pattern(pattern: re.Pattern[str] | str) -> bool:
    height, repetitions = star_height(pattern)
    return height <= MAX_STAR_HEIGHT and repetitions <= MAX_REPETITIONS


def compile_query(query: str, *, case_sensitive: bool = False, use_regex: bool = False) -> re.Pattern[str]:
    """Compile ``query`` into a pattern that is safe to run against roster text.

    Leading whitespace is dropped. Without ``use_regex`` the text is escaped so
    it matches literally. Raises :class:`UnsafePatternError` when the pattern
    does not compile or nests repetitions deeper than :data:`MAX_STAR_HEIGHT`.
    """

    source = (query or "").lstrip()
    if not use_regex:
        source = re.escape(source)
    flags = 0 if case_sensitive else re.IGNORECASE

    try:
        compiled = re.compile(source, flags)
    except re.error as exc:
        raise UnsafePatternError(f"Invalid regex: {exc}") from exc

    if not is_safe_pattern(compiled):
        raise UnsafePatternError(UNSAFE_PATTERN_MESSAGE)
    return compiled
