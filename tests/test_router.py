import asyncio

from conftest import FakeChat, FakeLookup

from gsrelay.chat import Post
from gsrelay.constants import COLOR_MAP_CHANGE, COLOR_OFFLINE, COLOR_ONLINE
from gsrelay.events import (
    ChatMessage,
    MapChange,
    PlayerConnected,
    PlayerConnecting,
    PlayerDisconnected,
    StatusQuery,
)
from gsrelay.router import EventRouter, render_connecting, render_connected


def test_chat_is_plain_text(chat: FakeChat, lookup: FakeLookup) -> None:
    router = EventRouter(chat, lookup)
    ended = asyncio.run(router.forward(5, ChatMessage(name="hi", content="yo")))
    assert ended is False
    assert chat.posts == [(5, Post(content="**hi**: yo"))]
    assert chat.posts[0][1].is_plain


def test_connecting_footer_counts_joining_player() -> None:
    post = render_connecting(
        PlayerConnecting(
            color=(0, 255, 0), occupied=3, capacity=10, name="Bob", steamid="765"
        )
    )
    assert post.footer == "Players: (3+1/10)"
    assert post.title == "**Bob** is connecting..."
    assert post.description == "765"
    assert post.color == (0, 255, 0)
    assert not post.is_plain


def test_connected_uses_avatar_and_map(chat: FakeChat, lookup: FakeLookup) -> None:
    event = PlayerConnected(
        color=(1, 2, 3),
        occupied=4,
        capacity=16,
        name="Bob",
        steamid="STEAM_0:1:2",
        steamid64="76561197960287930",
        map="de_nuke",
    )
    asyncio.run(EventRouter(chat, lookup).forward(5, event))

    assert lookup.calls == ["76561197960287930"]
    (_, post), = chat.posts
    assert post.title == "**Bob** has joined the server."
    assert post.url == "https://steamcommunity.com/profiles/76561197960287930"
    assert post.thumbnail == "https://avatars.example/76561197960287930_medium.jpg"
    assert post.footer == "Players: (4/16) | Map: de_nuke"


def test_connected_footer_without_map() -> None:
    event = PlayerConnected(
        color=(1, 2, 3),
        occupied=4,
        capacity=16,
        name="Bob",
        steamid="x",
        steamid64="7656",
    )
    assert render_connected(event, None).footer == "Players: (4/16)"


def test_connected_lookup_failure_drops_event(chat: FakeChat) -> None:
    lookup = FakeLookup(fail=True)
    event = PlayerConnected(
        color=(1, 2, 3),
        occupied=4,
        capacity=16,
        name="Bob",
        steamid="x",
        steamid64="7656",
    )
    ended = asyncio.run(EventRouter(chat, lookup).forward(5, event))
    assert ended is False
    assert chat.posts == []


def test_disconnected(chat: FakeChat, lookup: FakeLookup) -> None:
    event = PlayerDisconnected(
        color=(9, 9, 9),
        occupied=2,
        capacity=10,
        name="Bob",
        steamid="765",
        reason="Kicked",
    )
    asyncio.run(EventRouter(chat, lookup).forward(5, event))
    (_, post), = chat.posts
    assert post.title == "**Bob** has disconnected. (Kicked)"
    assert post.footer == "Players: (2/10)"


def test_map_change_ends_session(chat: FakeChat, lookup: FakeLookup) -> None:
    ended = asyncio.run(EventRouter(chat, lookup).forward(5, MapChange(map="de_dust")))
    assert ended is True
    (_, post), = chat.posts
    assert post.title == "Server is changing map to 'de_dust'"
    assert post.color == COLOR_MAP_CHANGE


def test_status_query_is_ignored(chat: FakeChat, lookup: FakeLookup) -> None:
    ended = asyncio.run(EventRouter(chat, lookup).forward(5, StatusQuery()))
    assert ended is False
    assert chat.posts == []


def test_announcements(chat: FakeChat, lookup: FakeLookup) -> None:
    router = EventRouter(chat, lookup)

    async def main() -> None:
        await router.announce_online(5)
        await router.announce_offline(5)

    asyncio.run(main())
    colors = [p.color for _, p in chat.posts]
    assert colors == [COLOR_ONLINE, COLOR_OFFLINE]
    assert "Server Online" in chat.titles()[0]
    assert "Server Offline" in chat.titles()[1]


def test_post_failures_are_swallowed(lookup: FakeLookup) -> None:
    chat = FakeChat(fail=True)
    router = EventRouter(chat, lookup)
    ended = asyncio.run(router.forward(5, MapChange(map="cs_office")))
    assert ended is True
    assert asyncio.run(router.post(5, Post(content="x"))) is False
