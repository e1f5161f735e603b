"""Text rendering for search result pages and exports."""

from __future__ import annotations

from typing import Any, Sequence

from .engine import SearchResult, full_username

__all__ = [
    "format_result_list",
    "format_id_list",
    "format_results",
    "format_header",
    "format_page",
    "format_export",
]


def format_result_list(candidates: Sequence[Any]) -> str:
    """One ``<id> <user>#<tag> (<nick>)`` line per candidate, ids padded to align."""

    longest_id = max((len(str(candidate.id)) for candidate in candidates), default=0)
    lines = []
    for candidate in candidates:
        line = f"{str(candidate.id).ljust(longest_id)} {full_username(candidate)}"
        nick = getattr(candidate, "nick", None)
        if nick:
            line += f" ({nick})"
        lines.append(line)
    return "\n".join(lines)


def format_id_list(candidates: Sequence[Any]) -> str:
    return " ".join(str(candidate.id) for candidate in candidates)


def format_results(candidates: Sequence[Any], *, ids_only: bool) -> str:
    return format_id_list(candidates) if ids_only else format_result_list(candidates)


def format_header(result: SearchResult, per_page: int) -> str:
    if result.total_results > per_page:
        return (
            f"**Page {result.page}** ({result.from_}-{result.to}) "
            f"(total {result.total_results})"
        )
    word = "member" if result.total_results == 1 else "members"
    return f"Found {result.total_results} matching {word}"


def format_page(header: str, body: str) -> str:
    return f"{header}\n```js\n{body}\n```"


def format_export(result: SearchResult, body: str) -> str:
    return f"Search results (total {result.total_results}):\n\n{body}"
