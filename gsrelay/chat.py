"""Chat platform interface used by the relay core."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol

from .constants import COLOR_WHITE


@dataclass(frozen=True)
class Post:
    """
    One post to a relay channel.

    A post with ``content`` is sent as plain text; otherwise the remaining
    fields describe a rich (embed) post.
    """

    title: str | None = None
    description: str | None = None
    color: tuple[int, int, int] | None = None
    url: str | None = None
    thumbnail: str | None = None
    footer: str | None = None
    content: str | None = None

    @property
    def is_plain(self) -> bool:
        return self.content is not None


class ChatPlatform(Protocol):
    async def send_post(self, channel_id: int, post: Post) -> None: ...


def split_rgb(value: int) -> tuple[int, int, int]:
    return (value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF


def select_role_color(roles: Iterable[tuple[int, int]]) -> tuple[int, int, int]:
    """Pick the chat color for a sender from ``(position, rgb)`` role pairs.

    The highest-positioned role with a non-zero color wins; white otherwise.
    """

    for _, value in sorted(roles, key=lambda r: r[0], reverse=True):
        if value:
            return split_rgb(int(value))
    return COLOR_WHITE
