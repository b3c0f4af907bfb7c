from __future__ import annotations

import os
from pathlib import Path

from .util import expand_path


def default_gsrelay_dir() -> Path:
    override = os.environ.get("GSRELAY_HOME")
    if override:
        return Path(override)
    return Path.home() / ".gsrelay"


def default_config_path() -> Path:
    return default_gsrelay_dir() / "gsrelay.toml"


def socket_path(socket_dir: str, name: str) -> str:
    return os.path.join(expand_path(socket_dir), name)


def ensure_private_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)
    try:
        # Best-effort tightening; may fail on some filesystems.
        os.chmod(path, 0o700)
    except Exception:
        pass
