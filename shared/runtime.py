"""Application runtime scaffolding for the bot process."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

from aiohttp import web
from discord.ext import commands

from modules.archives.store import ARCHIVE_PURGE_INTERVAL_SEC, ArchiveStore
from modules.search import members_refresh
from shared.config import (
    get_bot_name,
    get_bot_version,
    get_env_name,
    get_log_channel_id,
    get_port,
)
from shared.logging import set_trace_id
from shared.web_routes import mount_archives

log = logging.getLogger("modbot.runtime")
access_log = logging.getLogger("aiohttp.access")


def _trim_message(message: str, *, limit: int = 1800) -> str:
    message = message.strip()
    if len(message) <= limit:
        return message
    return f"{message[: limit - 1]}…"


class Scheduler:
    """Very small asyncio task supervisor for background jobs."""

    def __init__(self) -> None:
        self._tasks: list[asyncio.Task] = []

    def spawn(self, coro: Awaitable, *, name: Optional[str] = None) -> asyncio.Task:
        if name is not None:
            task = asyncio.create_task(coro, name=name)
        else:
            task = asyncio.create_task(coro)
        self._tasks.append(task)
        return task

    def every(
        self,
        seconds: float,
        callback: Callable[[], Awaitable[object] | object],
        *,
        name: str,
    ) -> asyncio.Task:
        """Run ``callback`` every ``seconds``; failures are logged and the loop continues."""

        async def runner() -> None:
            while True:
                await asyncio.sleep(seconds)
                try:
                    outcome = callback()
                    if asyncio.iscoroutine(outcome):
                        await outcome
                except asyncio.CancelledError:
                    raise
                except Exception:
                    log.exception("recurring job error", extra={"job": name})

        return self.spawn(runner(), name=name)

    async def shutdown(self) -> None:
        for task in self._tasks:
            if task.done():
                continue
            task.cancel()
        for task in self._tasks:
            if task.done():
                continue
            try:
                await task
            except asyncio.CancelledError:
                pass
            except Exception:  # pragma: no cover - best-effort cleanup
                log.exception("scheduler task error during shutdown")
        self._tasks.clear()


class Runtime:
    """Container object that wires the bot, web server, archives and scheduler."""

    def __init__(self, bot: commands.Bot, *, archives: ArchiveStore | None = None) -> None:
        self.bot = bot
        self.scheduler = Scheduler()
        self.archives = archives if archives is not None else ArchiveStore()
        self._web_app: Optional[web.Application] = None
        self._web_runner: Optional[web.AppRunner] = None
        self._web_site: Optional[web.TCPSite] = None
        self._purge_task: Optional[asyncio.Task] = None

    def build_web_app(self) -> web.Application:
        async def root(_: web.Request) -> web.Response:
            payload = {
                "ok": True,
                "bot": get_bot_name(),
                "env": get_env_name(),
                "version": get_bot_version(),
            }
            return web.json_response(payload)

        async def health(_: web.Request) -> web.Response:
            payload, healthy = self._health_payload()
            return web.json_response(payload, status=200 if healthy else 503)

        @web.middleware
        async def tracing_middleware(
            request: web.Request,
            handler: Callable[[web.Request], Awaitable[web.StreamResponse]],
        ) -> web.StreamResponse:
            trace = set_trace_id()
            started = time.perf_counter()
            status = 500
            try:
                response = await handler(request)
                status = response.status
                response.headers["X-Trace-Id"] = trace
                return response
            except web.HTTPException as exc:
                status = exc.status
                raise
            finally:
                access_log.info(
                    "http_request",
                    extra={
                        "trace": trace,
                        "path": request.path,
                        "method": request.method,
                        "status": status,
                        "ms": int((time.perf_counter() - started) * 1000),
                    },
                )

        app = web.Application(middlewares=[tracing_middleware])
        app.router.add_get("/", root)
        app.router.add_get("/health", health)
        mount_archives(app, self.archives)
        return app

    def _health_payload(self) -> tuple[dict, bool]:
        is_ready = getattr(self.bot, "is_ready", None)
        ready = bool(is_ready()) if callable(is_ready) else False
        latency = getattr(self.bot, "latency", None)
        payload = {
            "ok": ready,
            "bot": get_bot_name(),
            "env": get_env_name(),
            "discord_ready": ready,
            "latency_ms": (
                None
                if not isinstance(latency, (int, float)) or latency != latency
                else round(latency * 1000, 1)
            ),
            "archives": len(self.archives),
        }
        return payload, ready

    async def start_webserver(self, *, port: Optional[int] = None) -> None:
        if self._web_site is not None:
            return
        port = port if port is not None else get_port()

        app = self.build_web_app()
        self._web_app = app
        self._web_runner = web.AppRunner(app)
        await self._web_runner.setup()
        self._web_site = web.TCPSite(self._web_runner, host="0.0.0.0", port=port)
        await self._web_site.start()
        log.info("web server listening", extra={"port": port})

    async def shutdown_webserver(self) -> None:
        site, runner = self._web_site, self._web_runner
        self._web_site = None
        self._web_runner = None
        self._web_app = None
        if site is not None:
            await site.stop()
        if runner is not None:
            await runner.cleanup()

    def start_archive_purge(self, *, interval: float = ARCHIVE_PURGE_INTERVAL_SEC) -> asyncio.Task:
        if self._purge_task is not None and not self._purge_task.done():
            return self._purge_task
        self._purge_task = self.scheduler.every(
            interval, self.archives.purge_expired, name="archive_purge"
        )
        return self._purge_task

    async def send_log_message(self, message: str) -> None:
        channel_id = get_log_channel_id()
        if not channel_id:
            return
        content = _trim_message(str(message))
        if not content:
            return
        await self.bot.wait_until_ready()
        channel = self.bot.get_channel(channel_id)
        if channel is None:
            try:
                channel = await self.bot.fetch_channel(channel_id)
            except Exception:
                log.exception("failed to fetch log channel", extra={"channel_id": channel_id})
                return
        try:
            await channel.send(content)
        except Exception:
            log.exception("failed to send log message", extra={"channel_id": channel_id})

    async def load_extensions(self) -> None:
        """Load all feature cogs into the shared bot instance."""

        from cogs import search as search_cog

        await search_cog.setup(self.bot, archives=self.archives)

    async def start(self, token: str) -> None:
        await self.start_webserver()
        self.start_archive_purge()
        await self.load_extensions()
        await self.bot.start(token)

    async def close(self) -> None:
        await self.shutdown_webserver()
        await self.scheduler.shutdown()
        members_refresh.reset_refresh_state()
        if not self.bot.is_closed():
            await self.bot.close()
