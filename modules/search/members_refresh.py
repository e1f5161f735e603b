"""Throttled, non-blocking refresh of a guild's member cache."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

log = logging.getLogger("modbot.search.members")

MEMBER_REFRESH_INTERVAL_SEC = 10 * 60


@dataclass
class _RefreshState:
    started_at: float
    task: asyncio.Task


_REFRESHES: Dict[int, _RefreshState] = {}


async def _chunk(guild: Any) -> None:
    started = time.monotonic()
    try:
        await guild.chunk(cache=True)
    except asyncio.CancelledError:
        raise
    except Exception:
        log.warning(
            "member cache refresh failed",
            exc_info=True,
            extra={"guild_id": getattr(guild, "id", None)},
        )
        return
    log.debug(
        "member cache refreshed",
        extra={
            "guild_id": getattr(guild, "id", None),
            "members": len(getattr(guild, "members", []) or []),
            "duration_ms": int((time.monotonic() - started) * 1000),
        },
    )


def refresh_members_if_needed(guild: Any) -> Optional[asyncio.Task]:
    """Start a member chunk request unless one ran for ``guild`` recently.

    Returns the refresh task (new or still running) without awaiting it;
    callers search the cache as it is right now.
    """

    guild_id = int(getattr(guild, "id", 0) or 0)
    now = time.monotonic()
    state = _REFRESHES.get(guild_id)
    if state is not None and now - state.started_at < MEMBER_REFRESH_INTERVAL_SEC:
        return state.task

    task = asyncio.create_task(_chunk(guild), name=f"member_refresh:{guild_id}")
    _REFRESHES[guild_id] = _RefreshState(started_at=now, task=task)
    return task


def reset_refresh_state() -> None:
    """Forget every refresh timestamp; the next search refreshes again."""

    for state in _REFRESHES.values():
        if not state.task.done():
            state.task.cancel()
    _REFRESHES.clear()
