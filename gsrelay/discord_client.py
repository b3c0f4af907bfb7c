from __future__ import annotations

import logging

import discord

from .chat import Post, select_role_color
from .config import BridgeRuntimeConfig
from .constants import COLOR_WHITE
from .router import PlayerLookup
from .service import BridgeService
from .steam import SteamClient


def build_intents() -> discord.Intents:
    intents = discord.Intents.none()
    intents.guilds = True
    intents.members = True
    intents.guild_messages = True
    intents.message_content = True
    return intents


def build_embed(post: Post) -> discord.Embed:
    embed = discord.Embed(
        title=post.title,
        description=post.description,
        url=post.url,
        colour=discord.Colour.from_rgb(*post.color) if post.color else None,
    )
    if post.thumbnail:
        embed.set_thumbnail(url=post.thumbnail)
    if post.footer:
        embed.set_footer(text=post.footer)
    return embed


class DiscordChat(discord.Client):
    """Discord side of the bridge.

    Posts relay events to their channels and hands channel chat to the
    service, which writes it to the connected game server.
    """

    def __init__(
        self,
        config: BridgeRuntimeConfig,
        *,
        lookup: PlayerLookup | None = None,
    ) -> None:
        super().__init__(
            intents=build_intents(),
            allowed_mentions=discord.AllowedMentions.none(),
        )
        self.config = config
        self.log = logging.getLogger("gsrelay.discord")
        self.steam = lookup or SteamClient(
            config.steam_key, timeout_s=config.lookup_timeout_s
        )
        self.service = BridgeService(config, chat=self, lookup=self.steam)

    async def on_ready(self) -> None:
        self.log.info("Connected to Discord as %s", self.user)
        # on_ready fires again after gateway reconnects; relays only start once.
        self.service.start_relays()

    async def on_message(self, message: discord.Message) -> None:
        if message.author.bot:
            return

        channel_id = message.channel.id
        if not self.service.is_relay_channel(channel_id):
            return
        if channel_id not in self.service.registry:
            return

        color = await self.author_color(message)
        name = message.author.global_name or message.author.name
        await self.service.relay_chat(channel_id, name, message.content, color)

    async def author_color(self, message: discord.Message) -> tuple[int, int, int]:
        member = message.author if isinstance(message.author, discord.Member) else None
        if member is None and message.guild is not None:
            try:
                member = await message.guild.fetch_member(message.author.id)
            except discord.HTTPException as e:
                self.log.debug(
                    "Member lookup failed user=%s err=%s", message.author.id, e
                )
                member = None

        if member is None:
            return COLOR_WHITE
        return select_role_color((r.position, r.colour.value) for r in member.roles)

    async def send_post(self, channel_id: int, post: Post) -> None:
        channel = self.get_channel(channel_id) or self.get_partial_messageable(
            channel_id
        )
        if post.is_plain:
            await channel.send(
                post.content, allowed_mentions=discord.AllowedMentions.none()
            )
        else:
            await channel.send(
                embed=build_embed(post),
                allowed_mentions=discord.AllowedMentions.none(),
            )

    async def close(self) -> None:
        await self.service.close()
        if isinstance(self.steam, SteamClient):
            self.steam.close()
        await super().close()
