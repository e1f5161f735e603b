"""Export a complete search result set to an archive link."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from modules.archives.store import ArchiveStore
from modules.common.replies import send_error_message

from .engine import SEARCH_EXPORT_LIMIT, SearchQuery, SearchType, perform_search
from .errors import SearchError
from .formatting import format_export, format_results
from .session import NO_RESULTS_TEXT

__all__ = ["ARCHIVE_EXPIRY", "archive_search"]

log = logging.getLogger("modbot.search.export")

ARCHIVE_EXPIRY = timedelta(hours=1)


async def archive_search(
    ctx: Any,
    args: SearchQuery,
    search_type: SearchType,
    *,
    archives: ArchiveStore,
    base_url: str,
) -> Optional[str]:
    """Store every match in ``archives`` and post the link; returns the URL."""

    try:
        result = await perform_search(search_type, ctx.guild, args, 1, SEARCH_EXPORT_LIMIT)
    except SearchError as exc:
        await send_error_message(ctx.channel, str(exc))
        return None

    if result.total_results == 0:
        await send_error_message(ctx.channel, NO_RESULTS_TEXT)
        return None

    body = format_export(result, format_results(result.results, ids_only=args.ids))
    expires_at = datetime.now(timezone.utc) + ARCHIVE_EXPIRY
    archive_id = await archives.create(body, expires_at)
    url = archives.get_url(base_url, archive_id)

    log.info(
        "search exported",
        extra={
            "search_type": search_type.value,
            "total": result.total_results,
            "archive_id": archive_id,
        },
    )
    await ctx.channel.send(f"Exported search results: {url}")
    return url
