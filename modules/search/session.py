"""Interactive, reaction-paginated display of search results.

A :class:`SearchSession` owns one results message. Page loads are guarded by a
single busy flag (a request arriving mid-load is dropped, never queued). When
the results span more than one page the session adds ⬅ ➡ 🔄 reactions, listens
for the invoking user's clicks, and tears the controls down after
:data:`REACTION_TIMEOUT_SEC` without a page turn.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Coroutine, Optional

import discord

from modules.common.replies import send_error_message

from .engine import SearchQuery, SearchResult, SearchType, perform_search
from .errors import SearchError
from .formatting import format_header, format_page, format_results

__all__ = [
    "PREV_EMOJI",
    "NEXT_EMOJI",
    "REFRESH_EMOJI",
    "PAGINATION_EMOJI",
    "REACTION_TIMEOUT_SEC",
    "SEARCHING_TEXT",
    "NO_RESULTS_TEXT",
    "SearchSession",
    "display_search",
]

log = logging.getLogger("modbot.search.session")

PREV_EMOJI = "⬅"
NEXT_EMOJI = "➡"
REFRESH_EMOJI = "🔄"
PAGINATION_EMOJI = (PREV_EMOJI, NEXT_EMOJI, REFRESH_EMOJI)

REACTION_TIMEOUT_SEC = 5 * 60
SEARCHING_TEXT = "Searching..."
NO_RESULTS_TEXT = "No results found"

_VARIATION_SELECTOR = "\ufe0f"

Searcher = Callable[[int, int], Awaitable[SearchResult]]


def _normalize_emoji(emoji: Any) -> str:
    return str(emoji).replace(_VARIATION_SELECTOR, "")


class SearchSession:
    """Pagination state and reaction controls for one search results message."""

    def __init__(
        self,
        bot: Any,
        channel: Any,
        author_id: int,
        searcher: Searcher,
        *,
        per_page: int,
        ids_only: bool = False,
        timeout: float = REACTION_TIMEOUT_SEC,
    ) -> None:
        self.bot = bot
        self.channel = channel
        self.author_id = int(author_id)
        self.searcher = searcher
        self.per_page = per_page
        self.ids_only = ids_only
        self.timeout = timeout

        self.message: Optional[Any] = None
        self.current_page = 1
        self.last_page = 1

        self._busy = False
        self._closed = False
        self._has_reactions = False
        self._listener: Optional[Callable[..., Coroutine[Any, Any, None]]] = None
        self._teardown_task: Optional[asyncio.Task] = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def listening(self) -> bool:
        return self._listener is not None

    async def start(self, page: int | None = None) -> None:
        await self.load_page(page or 1)

    async def load_page(self, page: int) -> None:
        """Render ``page`` unless a load is already running or the session ended."""

        if self._busy or self._closed:
            return
        self._busy = True
        try:
            await self._render(page)
        finally:
            self._busy = False

    async def _render(self, page: int) -> None:
        if self.message is not None:
            status = self.message.edit(content=SEARCHING_TEXT)
        else:
            status = self.channel.send(SEARCHING_TEXT)

        status_outcome, search_outcome = await asyncio.gather(
            status,
            self.searcher(page, self.per_page),
            return_exceptions=True,
        )
        if isinstance(status_outcome, BaseException):
            raise status_outcome
        if self.message is None:
            self.message = status_outcome

        if isinstance(search_outcome, SearchError):
            await send_error_message(self.channel, str(search_outcome))
            return
        if isinstance(search_outcome, BaseException):
            raise search_outcome

        result: SearchResult = search_outcome
        if result.total_results == 0:
            await send_error_message(self.channel, NO_RESULTS_TEXT)
            return

        header = format_header(result, self.per_page)
        body = format_results(result.results, ids_only=self.ids_only)
        await self.message.edit(content=format_page(header, body))

        self.current_page = result.page
        self.last_page = result.last_page

        if self._closed or result.total_results <= self.per_page:
            return
        self._arm_teardown()
        await self._ensure_controls()

    async def _ensure_controls(self) -> None:
        if self._has_reactions:
            return
        self._has_reactions = True
        self._listener = self.on_raw_reaction_add
        self.bot.add_listener(self._listener, "on_raw_reaction_add")
        for emoji in PAGINATION_EMOJI:
            if self._closed:
                return
            try:
                await self.message.add_reaction(emoji)
            except Exception:
                log.debug("failed to add search reaction", exc_info=True)
        log.info(
            "search pagination armed",
            extra={
                "channel_id": getattr(self.channel, "id", None),
                "message_id": getattr(self.message, "id", None),
                "user_id": self.author_id,
                "last_page": self.last_page,
            },
        )

    def _arm_teardown(self) -> None:
        if self._teardown_task is not None:
            self._teardown_task.cancel()
        self._teardown_task = asyncio.create_task(
            self._teardown_after(self.timeout), name="search_session_teardown"
        )

    async def _teardown_after(self, delay: float) -> None:
        await asyncio.sleep(delay)
        await self.teardown()

    async def teardown(self) -> None:
        """Remove the listener and the reaction controls; later clicks do nothing."""

        if self._closed:
            return
        self._closed = True

        task, self._teardown_task = self._teardown_task, None
        if task is not None and task is not asyncio.current_task():
            task.cancel()

        listener, self._listener = self._listener, None
        if listener is not None:
            self.bot.remove_listener(listener, "on_raw_reaction_add")

        if self.message is not None and self._has_reactions:
            try:
                await self.message.clear_reactions()
            except Exception:
                log.debug("failed to clear search reactions", exc_info=True)

        log.info(
            "search pagination closed",
            extra={
                "message_id": getattr(self.message, "id", None),
                "page": self.current_page,
            },
        )

    async def on_raw_reaction_add(self, payload: Any) -> None:
        if self._closed or self.message is None:
            return
        if payload.message_id != self.message.id:
            return
        if payload.user_id != self.author_id:
            return
        emoji = _normalize_emoji(payload.emoji)
        if emoji not in PAGINATION_EMOJI:
            return

        target: Optional[int] = None
        if emoji == PREV_EMOJI and self.current_page > 1:
            target = self.current_page - 1
        elif emoji == NEXT_EMOJI and self.current_page < self.last_page:
            target = self.current_page + 1
        elif emoji == REFRESH_EMOJI:
            target = self.current_page

        if target is not None:
            self._spawn(self.load_page(target))

        try:
            await self.message.remove_reaction(payload.emoji, discord.Object(id=payload.user_id))
        except Exception:
            log.debug("failed to remove search reaction", exc_info=True)

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task:
        task = asyncio.create_task(coro, name="search_session_page")
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            log.error(
                "search page load failed",
                exc_info=(type(exc), exc, exc.__traceback__),
                extra={"message_id": getattr(self.message, "id", None)},
            )

    async def wait_idle(self) -> None:
        """Wait for page loads triggered by reactions to finish."""

        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


async def display_search(
    bot: Any,
    ctx: Any,
    args: SearchQuery,
    search_type: SearchType,
    *,
    timeout: float = REACTION_TIMEOUT_SEC,
) -> SearchSession:
    """Run ``args`` and show the requested page with reaction pagination."""

    guild = ctx.guild

    async def searcher(page: int, per_page: int) -> SearchResult:
        return await perform_search(search_type, guild, args, page, per_page)

    session = SearchSession(
        bot,
        ctx.channel,
        ctx.author.id,
        searcher,
        per_page=args.per_page,
        ids_only=args.ids,
        timeout=timeout,
    )
    await session.start(args.page)
    return session
