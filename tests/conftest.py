import asyncio

import pytest

from gsrelay.steam import PlayerSummary, SteamAPIError


class FakeChat:
    def __init__(self, *, fail: bool = False) -> None:
        self.posts = []
        self.fail = fail

    async def send_post(self, channel_id, post) -> None:
        if self.fail:
            raise RuntimeError("chat platform unavailable")
        self.posts.append((channel_id, post))

    def titles(self) -> list:
        return [p.title for _, p in self.posts]


class FakeWriter:
    def __init__(self, *, can_eof: bool = True) -> None:
        self.data = bytearray()
        self.eof = False
        self.closed = False
        self._can_eof = can_eof

    def can_write_eof(self) -> bool:
        return self._can_eof

    def write_eof(self) -> None:
        self.eof = True

    def write(self, data: bytes) -> None:
        if self.eof or self.closed:
            raise RuntimeError("writer is shut down")
        self.data += data

    async def drain(self) -> None:
        pass

    def close(self) -> None:
        self.closed = True


class FakeLookup:
    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.calls = []

    async def fetch_player_summary(self, steamid64: str) -> PlayerSummary:
        self.calls.append(steamid64)
        if self.fail:
            raise SteamAPIError("lookup failed")
        return PlayerSummary(
            steamid=steamid64,
            avatarmedium=f"https://avatars.example/{steamid64}_medium.jpg",
        )


async def wait_until(predicate, timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)


@pytest.fixture
def chat() -> FakeChat:
    return FakeChat()


@pytest.fixture
def lookup() -> FakeLookup:
    return FakeLookup()
