import asyncio
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

from modules.archives.store import ArchiveStore
from modules.search.engine import SearchQuery, SearchType
from modules.search.export import ARCHIVE_EXPIRY, archive_search

BASE_URL = "https://modbot.example"


def _ctx(guild, channel):
    return SimpleNamespace(guild=guild, channel=channel, author=SimpleNamespace(id=77))


def test_export_with_no_matches_sends_one_error(fake_channel, fake_guild_cls, member_factory):
    store = ArchiveStore()
    ctx = _ctx(fake_guild_cls([member_factory(1, "alice")]), fake_channel)

    url = asyncio.run(
        archive_search(
            ctx, SearchQuery(query="nobody", export=True), SearchType.MEMBER,
            archives=store, base_url=BASE_URL,
        )
    )

    assert url is None
    assert fake_channel.texts == ["⚠ No results found"]
    assert len(store) == 0


def test_export_stores_every_match_and_posts_link(fake_channel, fake_guild_cls, many_members):
    store = ArchiveStore()
    ctx = _ctx(fake_guild_cls(many_members), fake_channel)
    before = datetime.now(timezone.utc)

    url = asyncio.run(
        archive_search(
            ctx, SearchQuery(export=True, page=3), SearchType.MEMBER,
            archives=store, base_url=BASE_URL,
        )
    )

    assert url is not None and url.startswith(f"{BASE_URL}/archives/")
    assert fake_channel.texts == [f"Exported search results: {url}"]

    archive = store.get(url.rsplit("/", 1)[-1])
    lines = archive.body.splitlines()
    assert lines[0] == "Search results (total 37):"
    assert lines[1] == ""
    assert len(lines) == 2 + 37
    assert lines[2] == "100 user00#0001"
    assert before + ARCHIVE_EXPIRY <= archive.expires_at <= datetime.now(timezone.utc) + ARCHIVE_EXPIRY + timedelta(seconds=1)


def test_export_ids_only_for_bans(fake_channel, fake_guild_cls, user_factory):
    store = ArchiveStore()
    ctx = _ctx(fake_guild_cls(bans=[user_factory(9, "zed"), user_factory(3, "amy")]), fake_channel)

    url = asyncio.run(
        archive_search(
            ctx, SearchQuery(export=True, ids=True), SearchType.BAN,
            archives=store, base_url=BASE_URL,
        )
    )

    archive = store.get(url.rsplit("/", 1)[-1])
    assert archive.body == "Search results (total 2):\n\n3 9"


def test_export_reports_search_errors(fake_channel, fake_guild_cls, member_factory):
    store = ArchiveStore()
    ctx = _ctx(fake_guild_cls([member_factory(1, "aaaa")]), fake_channel)

    url = asyncio.run(
        archive_search(
            ctx, SearchQuery(query="(a*)*", regex=True, export=True), SearchType.MEMBER,
            archives=store, base_url=BASE_URL,
        )
    )

    assert url is None
    assert fake_channel.texts == ["⚠ Unsafe/too complex regex (star depth is limited to 1)"]
    assert len(store) == 0
