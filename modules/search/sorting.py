"""Composable comparators for ordering search candidates."""

from __future__ import annotations

import enum
import re
from functools import cmp_to_key
from typing import Any, Callable, Iterable, Sequence, TypeVar

__all__ = [
    "SortDirection",
    "DEFAULT_SORT_KEY",
    "Comparator",
    "sorter",
    "multi_sorter",
    "snowflake",
    "parse_sort_spec",
    "candidate_comparator",
    "sort_candidates",
]

T = TypeVar("T")
Comparator = Callable[[Any, Any], int]

DEFAULT_SORT_KEY = "name"
_SORT_SPEC_RE = re.compile(r"^(-?)(.*)$", re.DOTALL)


class SortDirection(enum.Enum):
    ASC = "ASC"
    DESC = "DESC"


def _compare(a: Any, b: Any) -> int:
    if a < b:
        return -1
    if a > b:
        return 1
    return 0


def sorter(
    extractor: Callable[[Any], Any], direction: SortDirection = SortDirection.ASC
) -> Comparator:
    """Build a comparator ordering items by ``extractor(item)``."""

    sign = -1 if direction is SortDirection.DESC else 1

    def comparator(a: Any, b: Any) -> int:
        return sign * _compare(extractor(a), extractor(b))

    return comparator


def multi_sorter(
    keys: Iterable[tuple[Callable[[Any], Any], SortDirection]]
) -> Comparator:
    """Chain comparators; later keys only break ties left by earlier ones."""

    comparators = [sorter(extractor, direction) for extractor, direction in keys]

    def comparator(a: Any, b: Any) -> int:
        for compare in comparators:
            result = compare(a, b)
            if result:
                return result
        return 0

    return comparator


def snowflake(candidate: Any) -> int:
    """Return the candidate id as an integer so ordering is numeric, not lexical."""

    return int(candidate.id)


def _username(candidate: Any) -> str:
    return str(getattr(candidate, "name", "") or "").lower()


def _discriminator(candidate: Any) -> str:
    return str(getattr(candidate, "discriminator", "") or "")


def parse_sort_spec(spec: str | None) -> tuple[str, SortDirection]:
    """Split ``"-id"`` into ``("id", DESC)``; empty specs sort by name ascending."""

    if not spec:
        return DEFAULT_SORT_KEY, SortDirection.ASC
    match = _SORT_SPEC_RE.match(spec.strip())
    sign, key = match.group(1), match.group(2).strip().lower()
    direction = SortDirection.DESC if sign == "-" else SortDirection.ASC
    return key or DEFAULT_SORT_KEY, direction


def candidate_comparator(spec: str | None) -> Comparator:
    key, direction = parse_sort_spec(spec)
    if key == "id":
        return sorter(snowflake, direction)
    return multi_sorter([(_username, direction), (_discriminator, direction)])


def sort_candidates(candidates: Sequence[T], spec: str | None) -> list[T]:
    """Return ``candidates`` ordered per ``spec``; ties keep their original order."""

    return sorted(candidates, key=cmp_to_key(candidate_comparator(spec)))
