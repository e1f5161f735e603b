"""Custom aiohttp web routes exposed by the bot runtime."""

from __future__ import annotations

import logging

from aiohttp import web

from modules.archives.store import ArchiveStore, render_archive

log = logging.getLogger("modbot.web.routes")

_ARCHIVES_KEY = web.AppKey("archives", ArchiveStore)


def mount_archives(app: web.Application, store: ArchiveStore) -> None:
    """Register ``GET /archives/{archive_id}`` serving ``store`` as plain text."""

    if _ARCHIVES_KEY in app:
        return
    app[_ARCHIVES_KEY] = store

    async def handle(request: web.Request) -> web.Response:
        archive_id = request.match_info["archive_id"]
        archive = request.app[_ARCHIVES_KEY].get(archive_id)
        if archive is None:
            raise web.HTTPNotFound(text="Archive not found")
        return web.Response(
            text=render_archive(archive),
            content_type="text/plain",
            charset="utf-8",
        )

    app.router.add_get("/archives/{archive_id}", handle)
    log.debug("archive route mounted")
