from __future__ import annotations


class DecodeError(ValueError):
    """A null-terminated string could not be read from a buffer."""


def read_string(buf: bytes, start: int) -> tuple[str, int]:
    """Read one null-terminated UTF-8 string from ``buf`` at ``start``.

    Returns ``(text, consumed)`` where ``consumed`` counts the terminator when
    one was found. A string running to the end of the buffer is accepted as
    is, so the next read at ``start + consumed`` fails instead.
    """

    if start < 0 or start >= len(buf):
        raise DecodeError(f"no bytes at offset {start} (buffer is {len(buf)} bytes)")

    end = buf.find(b"\x00", start)
    if end < 0:
        raw = buf[start:]
        consumed = len(raw)
    else:
        raw = buf[start:end]
        consumed = end - start + 1

    try:
        return bytes(raw).decode("utf-8"), consumed
    except UnicodeDecodeError as e:
        raise DecodeError(f"invalid UTF-8 at offset {start}: {e}") from e


def encode_chat_frame(color: tuple[int, int, int], name: str, content: str) -> bytes:
    r, g, b = color
    for c in (r, g, b):
        if not 0 <= int(c) <= 255:
            raise ValueError(f"color channel out of range: {c!r}")

    return b"".join(
        (
            bytes((int(r), int(g), int(b))),
            name.encode("utf-8"),
            b"\x00",
            content.encode("utf-8"),
            b"\x00",
        )
    )
