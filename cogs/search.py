"""Prefix command wiring for member and ban search."""

from __future__ import annotations

import logging
from typing import Any

from discord.ext import commands

from modules.archives.store import ArchiveStore
from modules.common.replies import send_error_message
from modules.search.arguments import parse_search_args
from modules.search.engine import SearchType
from modules.search.errors import SearchArgumentError
from modules.search.export import archive_search
from modules.search.session import display_search
from shared.config import get_admin_role_ids, get_archive_base_url, get_staff_role_ids
from shared.logging import set_trace_id

log = logging.getLogger("modbot.cogs.search")


def _has_search_access(author: Any, *, allow_ban_members: bool = False) -> bool:
    perms = getattr(author, "guild_permissions", None)
    if perms is not None:
        if perms.administrator or perms.manage_messages:
            return True
        if allow_ban_members and perms.ban_members:
            return True
    allowed = get_staff_role_ids() | get_admin_role_ids()
    if not allowed:
        return False
    held = {int(role.id) for role in getattr(author, "roles", []) or []}
    return bool(held & allowed)


def _can_search_members(ctx: commands.Context) -> bool:
    return _has_search_access(ctx.author)


def _can_search_bans(ctx: commands.Context) -> bool:
    return _has_search_access(ctx.author, allow_ban_members=True)


class SearchCog(commands.Cog):
    def __init__(self, bot: commands.Bot, *, archives: ArchiveStore) -> None:
        self.bot = bot
        self.archives = archives

    @commands.guild_only()
    @commands.check(_can_search_members)
    @commands.command(name="search", aliases=["s"])
    async def search(self, ctx: commands.Context, *, raw: str | None = None) -> None:
        """Search guild members by name, nickname, status, role or voice state."""

        await self._run(ctx, raw, SearchType.MEMBER)

    @commands.guild_only()
    @commands.check(_can_search_bans)
    @commands.command(name="bansearch", aliases=["bs"])
    async def bansearch(self, ctx: commands.Context, *, raw: str | None = None) -> None:
        """Search the guild's ban list by username."""

        await self._run(ctx, raw, SearchType.BAN)

    async def _run(self, ctx: commands.Context, raw: str | None, search_type: SearchType) -> None:
        trace = set_trace_id()
        try:
            args = parse_search_args(raw, search_type)
        except SearchArgumentError as exc:
            await send_error_message(ctx.channel, str(exc))
            return

        log.info(
            "search invoked",
            extra={
                "trace": trace,
                "search_type": search_type.value,
                "guild_id": getattr(ctx.guild, "id", None),
                "user_id": getattr(ctx.author, "id", None),
                "export": args.export,
                "regex": args.regex,
                "page": args.page,
            },
        )

        if args.export:
            await archive_search(
                ctx,
                args,
                search_type,
                archives=self.archives,
                base_url=get_archive_base_url(),
            )
            return

        await display_search(self.bot, ctx, args, search_type)


async def setup(bot: commands.Bot, *, archives: ArchiveStore | None = None) -> None:
    store = archives if archives is not None else ArchiveStore()
    await bot.add_cog(SearchCog(bot, archives=store))
