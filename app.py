from __future__ import annotations

import asyncio
import logging

import discord
from discord.ext import commands

from modules.common.replies import send_error_message
from modules.search.errors import SearchError
from shared.config import (
    get_bot_name,
    get_command_prefix,
    get_discord_token,
    get_env_name,
    get_log_level,
)
from shared.logging import setup_logging
from shared.redaction import sanitize_text
from shared.runtime import Runtime

setup_logging(
    level=get_log_level(),
    static_fields={"bot": get_bot_name(), "env": get_env_name()},
)
log = logging.getLogger("modbot.app")

INTENTS = discord.Intents.default()
INTENTS.message_content = True
INTENTS.members = True
INTENTS.presences = True

bot = commands.Bot(
    command_prefix=commands.when_mentioned_or(get_command_prefix()),
    intents=INTENTS,
)

runtime = Runtime(bot)


@bot.event
async def on_ready():
    log.info(
        'Bot ready as %s | env=%s | prefixes=["%s", "@mention"]',
        bot.user,
        get_env_name(),
        get_command_prefix(),
    )


@bot.event
async def on_command_error(ctx: commands.Context, error: Exception):
    if isinstance(error, (commands.CommandNotFound, commands.CheckFailure)):
        return
    original = getattr(error, "original", error)
    if isinstance(original, SearchError):
        await send_error_message(ctx.channel, str(original))
        return
    if isinstance(error, commands.UserInputError):
        await send_error_message(ctx.channel, str(error))
        return

    log.warning(
        "cmd error: cmd=%s user=%s err=%r",
        getattr(ctx.command, "name", None),
        getattr(ctx.author, "id", None),
        original,
        exc_info=(type(original), original, original.__traceback__),
    )
    try:
        await runtime.send_log_message(
            f"❌ command `{getattr(ctx.command, 'name', None) or '-'}` failed "
            f"for <@{getattr(ctx.author, 'id', 0)}>: {sanitize_text(str(original))}"
        )
    except Exception:
        log.exception("failed to send command error to log channel")


async def main() -> None:
    token = get_discord_token()
    if not token:
        raise RuntimeError("DISCORD_TOKEN not set")
    try:
        await runtime.start(token)
    finally:
        await runtime.close()


if __name__ == "__main__":
    asyncio.run(main())
