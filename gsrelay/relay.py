from __future__ import annotations

import asyncio
import logging
import os
import socket

from .constants import MIN_READ_LEN, READ_BUFFER_SIZE, SOCKET_MODE
from .events import ParseError, decode_packet
from .registry import RelayRegistry
from .router import EventRouter


class RelayManager:
    """
    Listener for one relay channel.

    Accepts game server connections one at a time. Each accepted connection
    gets its own read task; its writer goes into the shared registry,
    replacing whatever connection the channel had before.
    """

    def __init__(
        self,
        channel_id: int,
        socket_path: str,
        registry: RelayRegistry,
        router: EventRouter,
        *,
        socket_mode: int = SOCKET_MODE,
        buffer_size: int = READ_BUFFER_SIZE,
    ) -> None:
        self.channel_id = channel_id
        self.socket_path = socket_path
        self.registry = registry
        self.router = router
        self.socket_mode = socket_mode
        self.buffer_size = buffer_size
        self.log = logging.getLogger("gsrelay.relay")

        self._sock: socket.socket | None = None
        self._read_tasks: set[asyncio.Task] = set()

    def _remove_stale_socket(self) -> None:
        try:
            os.unlink(self.socket_path)
        except FileNotFoundError:
            pass
        except OSError as e:
            self.log.warning(
                "Could not remove stale socket path=%s err=%s", self.socket_path, e
            )

    def bind(self) -> socket.socket | None:
        """Create the listening socket, or return None if the relay can't run."""
        self._remove_stale_socket()

        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            sock.bind(self.socket_path)
            sock.listen()
            sock.setblocking(False)
        except OSError as e:
            sock.close()
            self.log.error(
                "Bind failed channel=%s path=%s err=%s; relay disabled",
                self.channel_id,
                self.socket_path,
                e,
            )
            return None

        # The game server plugin usually runs as a different user.
        try:
            os.chmod(self.socket_path, self.socket_mode)
        except OSError as e:
            sock.close()
            self._remove_stale_socket()
            self.log.error(
                "Could not set socket permissions channel=%s path=%s err=%s; relay disabled",
                self.channel_id,
                self.socket_path,
                e,
            )
            return None

        self._sock = sock
        return sock

    async def run(self) -> None:
        sock = self.bind()
        if sock is None:
            return

        loop = asyncio.get_running_loop()
        self.log.info(
            "Relay listening channel=%s path=%s", self.channel_id, self.socket_path
        )
        try:
            while True:
                try:
                    conn, _ = await loop.sock_accept(sock)
                except OSError as e:
                    self.log.error(
                        "Accept failed channel=%s err=%s; relay stopped",
                        self.channel_id,
                        e,
                    )
                    return
                await self._on_accept(conn)
        finally:
            self._close_listener()

    def _close_listener(self) -> None:
        if self._sock is None:
            return
        try:
            self._sock.close()
        except OSError:
            pass
        self._sock = None
        self._remove_stale_socket()

    async def _on_accept(self, conn: socket.socket) -> None:
        self.log.info("Accepted game server channel=%s", self.channel_id)

        await self.router.announce_online(self.channel_id)

        try:
            reader, writer = await asyncio.open_unix_connection(
                sock=conn, limit=max(self.buffer_size, 2**16)
            )
        except OSError as e:
            self.log.warning(
                "Could not open streams channel=%s err=%s", self.channel_id, e
            )
            conn.close()
            return

        await self.registry.install(self.channel_id, writer)

        task = asyncio.create_task(
            self.read_loop(reader, writer), name=f"gsrelay-read-{self.channel_id}"
        )
        self._read_tasks.add(task)
        task.add_done_callback(self._read_tasks.discard)

    async def read_loop(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        """Decode and forward packets from one connection, in arrival order."""
        while True:
            try:
                data = await reader.read(self.buffer_size)
            except OSError as e:
                self.log.warning("Read failed channel=%s err=%s", self.channel_id, e)
                data = b""

            if not data:
                self.log.info("Game server disconnected channel=%s", self.channel_id)
                await self.router.announce_offline(self.channel_id)
                await self._release(writer)
                return

            if len(data) < MIN_READ_LEN:
                self.log.debug(
                    "Short packet channel=%s bytes=%s", self.channel_id, len(data)
                )
                continue

            try:
                event = decode_packet(data)
            except ParseError as e:
                self.log.debug(
                    "Bad packet channel=%s opcode=%s bytes=%s err=%s",
                    self.channel_id,
                    data[0],
                    len(data),
                    e,
                )
                continue

            if event is None:
                continue

            if await self.router.forward(self.channel_id, event):
                # The plugin reconnects once the next map is loaded; keep the
                # writer installed so chat still reaches the server meanwhile.
                self.log.info(
                    "Map change ends relay session channel=%s", self.channel_id
                )
                await self.registry.detach_reader(self.channel_id, writer)
                return

    def cancel_read_tasks(self) -> None:
        for task in list(self._read_tasks):
            task.cancel()

    async def _release(self, writer: asyncio.StreamWriter) -> None:
        await self.registry.remove(self.channel_id, writer)
        try:
            writer.close()
        except Exception:
            pass
