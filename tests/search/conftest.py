from __future__ import annotations

from types import SimpleNamespace
from typing import Any, Iterable

import pytest


class FakeMessage:
    def __init__(self, message_id: int, content: str) -> None:
        self.id = message_id
        self.content = content
        self.edits: list[str] = []
        self.reactions: list[str] = []
        self.removed: list[tuple[Any, int]] = []
        self.cleared = 0
        self.fail_remove = False
        self.fail_add = False

    async def edit(self, *, content: str) -> "FakeMessage":
        self.content = content
        self.edits.append(content)
        return self

    async def add_reaction(self, emoji: str) -> None:
        if self.fail_add:
            raise RuntimeError("403 Missing Permissions")
        self.reactions.append(emoji)

    async def remove_reaction(self, emoji: Any, member: Any) -> None:
        if self.fail_remove:
            raise RuntimeError("missing permissions")
        self.removed.append((emoji, member.id))

    async def clear_reactions(self) -> None:
        self.cleared += 1
        self.reactions.clear()


class FakeChannel:
    def __init__(self, channel_id: int = 4001) -> None:
        self.id = channel_id
        self.sent: list[FakeMessage] = []
        self.fail_add = False

    async def send(self, content: str) -> FakeMessage:
        message = FakeMessage(9000 + len(self.sent), content)
        message.fail_add = self.fail_add
        self.sent.append(message)
        return message

    @property
    def texts(self) -> list[str]:
        return [message.content for message in self.sent]


class FakeBot:
    def __init__(self) -> None:
        self.listeners: dict[str, list[Any]] = {}

    def add_listener(self, func: Any, name: str) -> None:
        self.listeners.setdefault(name, []).append(func)

    def remove_listener(self, func: Any, name: str) -> None:
        self.listeners.get(name, []).remove(func)

    async def dispatch_reaction(self, payload: Any) -> None:
        for listener in list(self.listeners.get("on_raw_reaction_add", [])):
            await listener(payload)


class FakeGuild:
    def __init__(self, members: Iterable[Any] = (), bans: Iterable[Any] = ()) -> None:
        self.id = 2001
        self.members = list(members)
        self._bans = list(bans)
        self.chunk_calls = 0

    async def chunk(self, *, cache: bool = True) -> list[Any]:
        self.chunk_calls += 1
        return self.members

    async def bans(self, *, limit: int | None = 1000):
        for user in self._bans:
            yield SimpleNamespace(user=user, reason=None)


def make_member(
    member_id: int,
    name: str,
    discriminator: str = "0001",
    *,
    nick: str | None = None,
    roles: Iterable[int] = (),
    voice: bool = False,
    bot: bool = False,
    activities: Iterable[Any] = (),
) -> SimpleNamespace:
    return SimpleNamespace(
        id=member_id,
        name=name,
        discriminator=discriminator,
        nick=nick,
        roles=[SimpleNamespace(id=role_id) for role_id in roles],
        voice=SimpleNamespace(channel=SimpleNamespace(id=1)) if voice else None,
        bot=bot,
        activities=tuple(activities),
    )


def make_user(user_id: int, name: str, discriminator: str = "0001") -> SimpleNamespace:
    return SimpleNamespace(id=user_id, name=name, discriminator=discriminator, bot=False)


@pytest.fixture
def fake_message_cls():
    return FakeMessage


@pytest.fixture
def fake_channel():
    return FakeChannel()


@pytest.fixture
def fake_bot():
    return FakeBot()


@pytest.fixture
def fake_guild_cls():
    return FakeGuild


@pytest.fixture
def member_factory():
    return make_member


@pytest.fixture
def user_factory():
    return make_user


@pytest.fixture
def many_members():
    """37 members named ``user00`` .. ``user36``."""

    return [make_member(100 + index, f"user{index:02d}") for index in range(37)]
