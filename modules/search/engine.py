"""Member and ban search: filter, sort and slice one page of candidates."""

from __future__ import annotations

import enum
import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Iterable, Sequence

from .errors import SearchError
from .members_refresh import refresh_members_if_needed
from .regex_gate import compile_query
from .sorting import sort_candidates

__all__ = [
    "SearchType",
    "SearchQuery",
    "SearchResult",
    "SEARCH_RESULTS_PER_PAGE",
    "SEARCH_ID_RESULTS_PER_PAGE",
    "SEARCH_EXPORT_LIMIT",
    "full_username",
    "paginate",
    "parse_role_filter",
    "perform_member_search",
    "perform_ban_search",
    "perform_search",
]

log = logging.getLogger("modbot.search.engine")

SEARCH_RESULTS_PER_PAGE = 15
SEARCH_ID_RESULTS_PER_PAGE = 50
SEARCH_EXPORT_LIMIT = 1_000_000

_ROLE_TOKEN_RE = re.compile(r"^(?:<@&)?(\d+)>?$")


class SearchType(enum.Enum):
    MEMBER = "member"
    BAN = "ban"


@dataclass(frozen=True)
class SearchQuery:
    """Parsed command arguments for one search invocation."""

    query: str | None = None
    page: int | None = None
    role: str | None = None
    voice: bool = False
    bot: bool = False
    sort: str | None = None
    case_sensitive: bool = False
    export: bool = False
    ids: bool = False
    regex: bool = False
    status_search: bool = False

    @property
    def per_page(self) -> int:
        return SEARCH_ID_RESULTS_PER_PAGE if self.ids else SEARCH_RESULTS_PER_PAGE


@dataclass(frozen=True)
class SearchResult:
    results: list[Any]
    total_results: int
    page: int
    last_page: int
    from_: int
    to: int


def full_username(user: Any) -> str:
    """Return ``name#discriminator`` (just ``name`` for migrated ``#0`` accounts)."""

    name = str(getattr(user, "name", "") or "")
    discriminator = str(getattr(user, "discriminator", "") or "")
    if not discriminator or discriminator == "0":
        return name
    return f"{name}#{discriminator}"


def paginate(items: Sequence[Any], page: int | None, per_page: int) -> SearchResult:
    """Slice ``items`` to ``page`` after clamping it into ``[1, last_page]``."""

    total = len(items)
    last_page = max(1, math.ceil(total / per_page))
    page = min(last_page, max(1, page or 1))

    start = (page - 1) * per_page
    end = min(start + per_page, total)

    return SearchResult(
        results=list(items[start:end]),
        total_results=total,
        page=page,
        last_page=last_page,
        from_=start + 1,
        to=end,
    )


def parse_role_filter(raw: str) -> list[int]:
    role_ids: list[int] = []
    for token in raw.split(","):
        token = token.strip()
        if not token:
            continue
        match = _ROLE_TOKEN_RE.match(token)
        if match is None:
            raise SearchError(f"Invalid role id: {token}")
        role_ids.append(int(match.group(1)))
    return role_ids


def _has_roles(member: Any, role_ids: Iterable[int]) -> bool:
    held = {int(role.id) for role in getattr(member, "roles", []) or []}
    for role_id in role_ids:
        if role_id not in held:
            return False
    return True


def _in_voice(member: Any) -> bool:
    voice = getattr(member, "voice", None)
    return voice is not None and getattr(voice, "channel", None) is not None


def _activity_texts(activity: Any) -> Iterable[str | None]:
    yield getattr(activity, "name", None)
    yield getattr(activity, "state", None)
    yield getattr(activity, "details", None)
    assets = getattr(activity, "assets", None) or {}
    if isinstance(assets, dict):
        yield assets.get("small_text")
        yield assets.get("large_text")
    emoji = getattr(activity, "emoji", None)
    if emoji is not None:
        yield getattr(emoji, "name", None)


def _status_matches(member: Any, pattern: re.Pattern[str]) -> bool:
    for activity in getattr(member, "activities", None) or ():
        for text in _activity_texts(activity):
            if text and pattern.search(text):
                return True
    return False


def _name_matches(member: Any, pattern: re.Pattern[str]) -> bool:
    nick = getattr(member, "nick", None)
    if nick and pattern.search(nick):
        return True
    return bool(pattern.search(full_username(member)))


async def perform_member_search(
    guild: Any,
    args: SearchQuery,
    page: int = 1,
    per_page: int = SEARCH_RESULTS_PER_PAGE,
) -> SearchResult:
    refresh_members_if_needed(guild)

    matching = list(getattr(guild, "members", []) or [])

    if args.role:
        role_ids = parse_role_filter(args.role)
        matching = [member for member in matching if _has_roles(member, role_ids)]

    if args.voice:
        matching = [member for member in matching if _in_voice(member)]

    if args.bot:
        matching = [member for member in matching if getattr(member, "bot", False)]

    if args.query:
        pattern = compile_query(
            args.query, case_sensitive=args.case_sensitive, use_regex=args.regex
        )
        if args.status_search:
            matching = [member for member in matching if _status_matches(member, pattern)]
        else:
            matching = [member for member in matching if _name_matches(member, pattern)]

    result = paginate(sort_candidates(matching, args.sort), page, per_page)
    log.debug(
        "member search",
        extra={
            "guild_id": getattr(guild, "id", None),
            "total": result.total_results,
            "page": result.page,
        },
    )
    return result


async def perform_ban_search(
    guild: Any,
    args: SearchQuery,
    page: int = 1,
    per_page: int = SEARCH_RESULTS_PER_PAGE,
) -> SearchResult:
    matching = [entry.user async for entry in guild.bans(limit=None)]

    if args.query:
        pattern = compile_query(
            args.query, case_sensitive=args.case_sensitive, use_regex=args.regex
        )
        matching = [user for user in matching if pattern.search(full_username(user))]

    result = paginate(sort_candidates(matching, args.sort), page, per_page)
    log.debug(
        "ban search",
        extra={
            "guild_id": getattr(guild, "id", None),
            "total": result.total_results,
            "page": result.page,
        },
    )
    return result


async def perform_search(
    search_type: SearchType,
    guild: Any,
    args: SearchQuery,
    page: int = 1,
    per_page: int = SEARCH_RESULTS_PER_PAGE,
) -> SearchResult:
    if search_type is SearchType.BAN:
        return await perform_ban_search(guild, args, page, per_page)
    return await perform_member_search(guild, args, page, per_page)
