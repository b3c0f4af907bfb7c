from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .codec import DecodeError, read_string
from .constants import (
    MIN_CHAT_LEN,
    MIN_PLAYER_LEN,
    OP_CHAT,
    OP_MAP_CHANGE,
    OP_PLAYER,
    OP_STATUS,
    PLAYER_CAPACITY_OFFSET,
    PLAYER_COLOR_OFFSET,
    PLAYER_CONNECTED,
    PLAYER_CONNECTING,
    PLAYER_DISCONNECTED,
    PLAYER_OCCUPIED_OFFSET,
    PLAYER_STRINGS_OFFSET,
)

Color = tuple[int, int, int]


class ParseError(ValueError):
    """An inbound packet was undersized or malformed."""


@dataclass(frozen=True)
class ChatMessage:
    name: str
    content: str


@dataclass(frozen=True)
class PlayerConnecting:
    color: Color
    occupied: int
    capacity: int
    name: str
    steamid: str


@dataclass(frozen=True)
class PlayerConnected:
    color: Color
    occupied: int
    capacity: int
    name: str
    steamid: str
    steamid64: str
    map: str | None = None


@dataclass(frozen=True)
class PlayerDisconnected:
    color: Color
    occupied: int
    capacity: int
    name: str
    steamid: str
    reason: str


@dataclass(frozen=True)
class MapChange:
    map: str


@dataclass(frozen=True)
class StatusQuery:
    pass


InboundEvent = Union[
    ChatMessage,
    PlayerConnecting,
    PlayerConnected,
    PlayerDisconnected,
    MapChange,
    StatusQuery,
]


def _read(buf: bytes, start: int, field: str) -> tuple[str, int]:
    try:
        return read_string(buf, start)
    except DecodeError as e:
        raise ParseError(f"bad {field} field: {e}") from e


def _decode_chat(buf: bytes) -> ChatMessage:
    if len(buf) < MIN_CHAT_LEN:
        raise ParseError(f"chat packet too short ({len(buf)} bytes)")

    boundary = buf.find(b"\x00", 1)
    if boundary < 0:
        raise ParseError("chat packet has no name terminator")

    try:
        name = bytes(buf[1:boundary]).decode("utf-8")
        content = bytes(buf[boundary + 1 :]).decode("utf-8")
    except UnicodeDecodeError as e:
        raise ParseError(f"chat packet is not valid UTF-8: {e}") from e

    # The content terminator is optional on the wire.
    content = content.rstrip("\x00")
    if not content:
        raise ParseError("chat packet has empty content")

    return ChatMessage(name=name, content=content)


def _decode_player(buf: bytes) -> PlayerConnecting | PlayerConnected | PlayerDisconnected:
    if len(buf) < MIN_PLAYER_LEN:
        raise ParseError(f"player packet too short ({len(buf)} bytes)")

    sub = buf[1]
    color = (
        buf[PLAYER_COLOR_OFFSET],
        buf[PLAYER_COLOR_OFFSET + 1],
        buf[PLAYER_COLOR_OFFSET + 2],
    )
    occupied = buf[PLAYER_OCCUPIED_OFFSET]
    capacity = buf[PLAYER_CAPACITY_OFFSET]

    pos = PLAYER_STRINGS_OFFSET
    name, n = _read(buf, pos, "name")
    pos += n
    steamid, n = _read(buf, pos, "steamid")
    pos += n

    if sub == PLAYER_CONNECTING:
        return PlayerConnecting(
            color=color,
            occupied=occupied,
            capacity=capacity,
            name=name,
            steamid=steamid,
        )

    if sub == PLAYER_CONNECTED:
        steamid64, n = _read(buf, pos, "steamid64")
        pos += n

        # Older plugins do not send the map; missing or broken is not fatal.
        try:
            map_name, _ = read_string(buf, pos)
        except DecodeError:
            map_name = None

        return PlayerConnected(
            color=color,
            occupied=occupied,
            capacity=capacity,
            name=name,
            steamid=steamid,
            steamid64=steamid64,
            map=map_name or None,
        )

    if sub == PLAYER_DISCONNECTED:
        reason, _ = _read(buf, pos, "reason")
        return PlayerDisconnected(
            color=color,
            occupied=occupied,
            capacity=capacity,
            name=name,
            steamid=steamid,
            reason=reason,
        )

    raise ParseError(f"unknown player sub-opcode {sub}")


def decode_packet(buf: bytes) -> InboundEvent | None:
    """Decode one inbound packet.

    Returns ``None`` for opcodes this relay does not know about. Raises
    ParseError for undersized or malformed packets of a known opcode.
    """

    if not buf:
        raise ParseError("empty packet")

    op = buf[0]

    if op == OP_CHAT:
        return _decode_chat(buf)
    if op == OP_PLAYER:
        return _decode_player(buf)
    if op == OP_MAP_CHANGE:
        map_name, _ = _read(buf, 1, "map")
        return MapChange(map=map_name)
    if op == OP_STATUS:
        return StatusQuery()

    return None
