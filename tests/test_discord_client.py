import asyncio
from types import SimpleNamespace

from conftest import FakeLookup, FakeWriter

from gsrelay.chat import Post
from gsrelay.config import BridgeRuntimeConfig
from gsrelay.discord_client import DiscordChat, build_embed, build_intents


def _message(content: str = "hi", *, bot: bool = False, channel_id: int = 11):
    author = SimpleNamespace(bot=bot, global_name=None, name="alice", id=1)
    return SimpleNamespace(
        author=author,
        content=content,
        channel=SimpleNamespace(id=channel_id),
        guild=None,
    )


def test_intents() -> None:
    intents = build_intents()
    assert intents.members
    assert intents.message_content
    assert intents.guild_messages


def test_build_embed() -> None:
    embed = build_embed(
        Post(
            title="t",
            description="d",
            color=(1, 2, 3),
            url="https://example.com",
            thumbnail="https://example.com/a.png",
            footer="f",
        )
    )
    assert embed.title == "t"
    assert embed.description == "d"
    assert embed.colour.to_rgb() == (1, 2, 3)
    assert embed.thumbnail.url == "https://example.com/a.png"
    assert embed.footer.text == "f"


def test_on_message_writes_frame_to_game_server() -> None:
    async def main() -> None:
        cfg = BridgeRuntimeConfig(token="t", steam_key="k", relays={11: "a"})
        client = DiscordChat(cfg, lookup=FakeLookup())
        w = FakeWriter()
        await client.service.registry.install(11, w)

        await client.on_message(_message(bot=True))
        await client.on_message(_message(channel_id=99))
        assert bytes(w.data) == b""

        await client.on_message(_message("hello"))
        assert bytes(w.data) == b"\xff\xff\xffalice\x00hello\x00"

    asyncio.run(main())


def test_on_message_forwards_attachment_only_post() -> None:
    async def main() -> None:
        cfg = BridgeRuntimeConfig(token="t", steam_key="k", relays={11: "a"})
        client = DiscordChat(cfg, lookup=FakeLookup())
        w = FakeWriter()
        await client.service.registry.install(11, w)

        await client.on_message(_message(content=""))
        assert bytes(w.data) == b"\xff\xff\xffalice\x00\x00"

    asyncio.run(main())
