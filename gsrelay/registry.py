from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


def _close_writer(writer: asyncio.StreamWriter) -> None:
    try:
        writer.close()
    except Exception:
        pass


def _shutdown_writer(writer: asyncio.StreamWriter) -> None:
    try:
        if writer.can_write_eof():
            writer.write_eof()
        else:
            writer.close()
    except Exception:
        pass


class RelayRegistry:
    """
    Active outbound connection per relay channel.

    Every accept loop, every read task and the inbound chat path share one
    instance. A single lock guards the whole mapping; operation bodies never
    block on I/O while holding it.
    """

    def __init__(self) -> None:
        self.log = logging.getLogger("gsrelay.registry")
        self._lock = asyncio.Lock()
        self._writers: dict[int, asyncio.StreamWriter] = {}
        # Installed writers whose read task has already ended.
        self._readerless: set[asyncio.StreamWriter] = set()

    def __contains__(self, channel_id: object) -> bool:
        return channel_id in self._writers

    def __len__(self) -> int:
        return len(self._writers)

    def get(self, channel_id: int) -> asyncio.StreamWriter | None:
        return self._writers.get(channel_id)

    async def install(self, channel_id: int, writer: asyncio.StreamWriter) -> None:
        """
        Make ``writer`` the active writer for ``channel_id``.

        A previously installed writer is shut down before the new one is
        stored, so once this returns the old one can no longer reach its peer.
        It is half-closed while its read task still runs, closed otherwise.
        """
        async with self._lock:
            old = self._writers.pop(channel_id, None)
            if old is not None and old is not writer:
                if old in self._readerless:
                    self._readerless.discard(old)
                    _close_writer(old)
                else:
                    _shutdown_writer(old)
                self.log.info("Replaced relay writer channel=%s", channel_id)
            self._writers[channel_id] = writer

    async def remove(
        self, channel_id: int, writer: asyncio.StreamWriter | None = None
    ) -> bool:
        """
        Drop the writer for ``channel_id`` without shutting it down.

        With ``writer`` given, only removes it if it is still the installed
        one. Returns True if something was removed.
        """
        async with self._lock:
            current = self._writers.get(channel_id)
            if current is None:
                return False
            if writer is not None and current is not writer:
                return False
            del self._writers[channel_id]
            self._readerless.discard(current)
            return True

    async def detach_reader(
        self, channel_id: int, writer: asyncio.StreamWriter
    ) -> None:
        """
        Note that the read task for ``writer`` has ended.

        The writer stays usable while installed and is closed outright when it
        is replaced. A writer that was already replaced is closed now.
        """
        async with self._lock:
            if self._writers.get(channel_id) is writer:
                self._readerless.add(writer)
                return
        _close_writer(writer)

    @asynccontextmanager
    async def lookup_for_write(
        self, channel_id: int
    ) -> AsyncIterator[asyncio.StreamWriter | None]:
        """Yield the active writer (or None) with the registry locked."""
        async with self._lock:
            yield self._writers.get(channel_id)

    async def send(self, channel_id: int, payload: bytes) -> bool:
        """
        Write ``payload`` to the active connection for ``channel_id``.

        Returns False when no game server is connected; the payload is
        dropped, not queued. Write failures are logged and swallowed.
        """
        async with self.lookup_for_write(channel_id) as writer:
            if writer is None:
                return False
            try:
                writer.write(payload)
            except Exception as e:
                self.log.debug("Write failed channel=%s err=%s", channel_id, e)
                return False

        # Drain outside the lock so one slow peer cannot stall other channels.
        try:
            await writer.drain()
        except Exception as e:
            self.log.debug("Drain failed channel=%s err=%s", channel_id, e)
            return False
        return True

    async def close_all(self) -> None:
        async with self._lock:
            writers = list(self._writers.values())
            self._writers.clear()
            self._readerless.clear()

        for w in writers:
            _close_writer(w)
