from __future__ import annotations

import os


def expand_path(p: str) -> str:
    return os.path.expanduser(os.path.expandvars(p))


def normalize_socket_name(value) -> str | None:
    if not isinstance(value, str):
        return None

    s = value.strip()
    if not s:
        return None

    # The name becomes a single path component under the socket directory.
    if "/" in s or "\x00" in s or s in (".", ".."):
        return None

    return s
