from __future__ import annotations

import asyncio
import logging

from .chat import ChatPlatform
from .codec import encode_chat_frame
from .config import BridgeRuntimeConfig
from .paths import socket_path
from .registry import RelayRegistry
from .relay import RelayManager
from .router import EventRouter, PlayerLookup


class BridgeService:
    def __init__(
        self,
        config: BridgeRuntimeConfig,
        chat: ChatPlatform,
        lookup: PlayerLookup,
    ) -> None:
        self.config = config
        self.log = logging.getLogger("gsrelay.service")

        # Shared by every relay manager and the inbound chat path.
        self.registry = RelayRegistry()
        self.router = EventRouter(chat, lookup)

        self.managers: dict[int, RelayManager] = {}
        self._tasks: dict[int, asyncio.Task] = {}

    @property
    def started(self) -> bool:
        return bool(self._tasks)

    def is_relay_channel(self, channel_id: int) -> bool:
        return channel_id in self.config.relays

    def start_relays(self) -> None:
        """Spawn one listener task per configured relay channel.

        Must be called from a running event loop. Calling it again while the
        relays are running does nothing.
        """
        if self.started:
            return

        for channel_id, name in self.config.relays.items():
            manager = RelayManager(
                channel_id,
                socket_path(self.config.socket_dir, name),
                self.registry,
                self.router,
                socket_mode=self.config.socket_mode,
                buffer_size=self.config.read_buffer_size,
            )
            self.managers[channel_id] = manager
            self._tasks[channel_id] = asyncio.create_task(
                manager.run(), name=f"gsrelay-relay-{channel_id}"
            )

        self.log.info("Started %d relay(s)", len(self._tasks))

    async def relay_chat(
        self,
        channel_id: int,
        author: str,
        content: str,
        color: tuple[int, int, int],
    ) -> bool:
        """Forward one channel chat message to the connected game server.

        Returns False when the channel has no relay or no server is connected.
        """
        if not self.is_relay_channel(channel_id):
            return False

        frame = encode_chat_frame(color, author, content)
        sent = await self.registry.send(channel_id, frame)
        if self.log.isEnabledFor(logging.DEBUG):
            self.log.debug(
                "Chat to game server channel=%s author=%r bytes=%s sent=%s",
                channel_id,
                author,
                len(frame),
                sent,
            )
        return sent

    async def close(self) -> None:
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        for manager in self.managers.values():
            manager.cancel_read_tasks()

        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        self._tasks.clear()
        self.managers.clear()
        await self.registry.close_all()
