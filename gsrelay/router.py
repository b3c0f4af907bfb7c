from __future__ import annotations

import logging
from typing import Protocol

from .chat import ChatPlatform, Post
from .constants import (
    COLOR_MAP_CHANGE,
    COLOR_OFFLINE,
    COLOR_ONLINE,
    STEAM_PROFILE_URL,
    TITLE_OFFLINE,
    TITLE_ONLINE,
)
from .events import (
    ChatMessage,
    InboundEvent,
    MapChange,
    PlayerConnected,
    PlayerConnecting,
    PlayerDisconnected,
    StatusQuery,
)
from .steam import PlayerSummary, SteamAPIError


class PlayerLookup(Protocol):
    async def fetch_player_summary(self, steamid64: str) -> PlayerSummary: ...


def players_footer(occupied: int, capacity: int, *, connecting: bool = False) -> str:
    if connecting:
        return f"Players: ({occupied}+1/{capacity})"
    return f"Players: ({occupied}/{capacity})"


def render_chat(event: ChatMessage) -> Post:
    return Post(content=f"**{event.name}**: {event.content}")


def render_connecting(event: PlayerConnecting) -> Post:
    return Post(
        title=f"**{event.name}** is connecting...",
        description=event.steamid,
        color=event.color,
        footer=players_footer(event.occupied, event.capacity, connecting=True),
    )


def render_connected(event: PlayerConnected, avatar: str | None) -> Post:
    footer = players_footer(event.occupied, event.capacity)
    if event.map:
        footer = f"{footer} | Map: {event.map}"
    return Post(
        title=f"**{event.name}** has joined the server.",
        description=event.steamid,
        color=event.color,
        url=STEAM_PROFILE_URL.format(steamid64=event.steamid64),
        thumbnail=avatar or None,
        footer=footer,
    )


def render_disconnected(event: PlayerDisconnected) -> Post:
    return Post(
        title=f"**{event.name}** has disconnected. ({event.reason})",
        description=event.steamid,
        color=event.color,
        footer=players_footer(event.occupied, event.capacity),
    )


def render_map_change(event: MapChange) -> Post:
    return Post(
        title=f"Server is changing map to '{event.map}'",
        color=COLOR_MAP_CHANGE,
    )


class EventRouter:
    """
    Turns decoded relay events into channel posts.

    All chat platform failures are logged here and never reach the read
    loops; a relay keeps running when a post cannot be delivered.
    """

    def __init__(self, chat: ChatPlatform, lookup: PlayerLookup) -> None:
        self.chat = chat
        self.lookup = lookup
        self.log = logging.getLogger("gsrelay.router")

    async def post(self, channel_id: int, post: Post) -> bool:
        try:
            await self.chat.send_post(channel_id, post)
        except Exception as e:
            self.log.warning("Post failed channel=%s err=%s", channel_id, e)
            return False
        return True

    async def announce_online(self, channel_id: int) -> None:
        await self.post(channel_id, Post(title=TITLE_ONLINE, color=COLOR_ONLINE))

    async def announce_offline(self, channel_id: int) -> None:
        await self.post(channel_id, Post(title=TITLE_OFFLINE, color=COLOR_OFFLINE))

    async def forward(self, channel_id: int, event: InboundEvent) -> bool:
        """
        Post ``event`` to ``channel_id``.

        Returns True when the event ends the connection's session (map
        change); the caller stops reading after it.
        """
        if isinstance(event, ChatMessage):
            await self.post(channel_id, render_chat(event))
        elif isinstance(event, PlayerConnecting):
            await self.post(channel_id, render_connecting(event))
        elif isinstance(event, PlayerConnected):
            try:
                summary = await self.lookup.fetch_player_summary(event.steamid64)
            except SteamAPIError as e:
                self.log.warning(
                    "Dropping join event channel=%s steamid64=%s err=%s",
                    channel_id,
                    event.steamid64,
                    e,
                )
                return False
            await self.post(channel_id, render_connected(event, summary.avatarmedium))
        elif isinstance(event, PlayerDisconnected):
            await self.post(channel_id, render_disconnected(event))
        elif isinstance(event, MapChange):
            await self.post(channel_id, render_map_change(event))
            return True
        elif isinstance(event, StatusQuery):
            # Reserved: no response protocol exists for status queries yet.
            self.log.debug("Ignoring status query channel=%s", channel_id)
        return False
