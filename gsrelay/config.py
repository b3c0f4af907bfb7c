from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from typing import Any

from .constants import READ_BUFFER_SIZE, SOCKET_DIR, SOCKET_MODE
from .util import expand_path, normalize_socket_name


class ConfigError(Exception):
    """The configuration file is unreadable or invalid."""


@dataclass(frozen=True)
class BridgeRuntimeConfig:
    config_path: str | None = None
    token: str = ""
    steam_key: str = ""
    relays: dict[int, str] = field(default_factory=dict)
    socket_dir: str = SOCKET_DIR
    socket_mode: int = SOCKET_MODE
    read_buffer_size: int = READ_BUFFER_SIZE
    lookup_timeout_s: float = 0.0
    log_level: str = "INFO"
    log_discord_level: str = "WARNING"
    log_console: bool = True
    log_file: str | None = None
    log_format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    log_datefmt: str | None = None


def load_toml(path: str) -> dict:
    import tomllib

    try:
        with open(expand_path(path), "rb") as f:
            data = tomllib.load(f)
    except OSError as e:
        raise ConfigError(f"cannot read config {path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"cannot parse config {path}: {e}") from e
    return data if isinstance(data, dict) else {}


def _parse_relays(table: Any) -> dict[int, str]:
    if not isinstance(table, dict):
        raise ConfigError("[relays] must be a table of channel id = socket name")

    relays: dict[int, str] = {}
    seen: set[str] = set()
    for key, value in table.items():
        try:
            channel_id = int(str(key).strip())
        except ValueError:
            raise ConfigError(f"relay channel id is not a number: {key!r}") from None
        if channel_id <= 0:
            raise ConfigError(f"relay channel id must be positive: {key!r}")

        name = normalize_socket_name(value)
        if name is None:
            raise ConfigError(f"invalid socket name for channel {channel_id}: {value!r}")
        if name in seen:
            raise ConfigError(f"socket name {name!r} is used by more than one relay")
        seen.add(name)
        relays[channel_id] = name
    return relays


def _parse_mode(value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"invalid socket_mode {value!r}")
    if isinstance(value, int):
        mode = value
    else:
        try:
            mode = int(str(value).strip(), 8)
        except ValueError:
            raise ConfigError(f"invalid socket_mode {value!r}") from None
    if not 0 <= mode <= 0o7777:
        raise ConfigError(f"socket_mode out of range: {value!r}")
    return mode


def apply_config_data(base: BridgeRuntimeConfig, data: dict) -> BridgeRuntimeConfig:
    bridge = data.get("bridge") if isinstance(data, dict) else None
    if isinstance(bridge, dict):
        data = {**data, **bridge}

    log_table = data.get("logging") if isinstance(data, dict) else None
    if isinstance(log_table, dict):
        mapped: dict[str, object] = {}
        for src, dst in (
            ("level", "log_level"),
            ("discord_level", "log_discord_level"),
            ("console", "log_console"),
            ("file", "log_file"),
            ("format", "log_format"),
            ("datefmt", "log_datefmt"),
        ):
            if src in log_table:
                mapped[dst] = log_table.get(src)
        data = {**data, **mapped}

    allowed = set(asdict(base).keys())
    # This identifies where the config came from; do not let the file override it.
    allowed.discard("config_path")
    updates = {k: v for k, v in data.items() if k in allowed}

    if "relays" in updates:
        updates["relays"] = _parse_relays(updates["relays"])
    if "socket_mode" in updates:
        updates["socket_mode"] = _parse_mode(updates["socket_mode"])

    for key, conv in (("read_buffer_size", int), ("lookup_timeout_s", float)):
        if key in updates:
            try:
                updates[key] = conv(updates[key])
            except (TypeError, ValueError):
                raise ConfigError(f"invalid {key} {updates[key]!r}") from None

    if "read_buffer_size" in updates and updates["read_buffer_size"] < 16:
        raise ConfigError("read_buffer_size must be at least 16")

    for key in ("token", "steam_key", "socket_dir"):
        if key in updates:
            updates[key] = str(updates[key]).strip()
    if "log_file" in updates and updates["log_file"] == "":
        updates["log_file"] = None
    if "log_datefmt" in updates and updates["log_datefmt"] == "":
        updates["log_datefmt"] = None

    return replace(base, **updates) if updates else base


def validate_config(cfg: BridgeRuntimeConfig) -> None:
    if not cfg.token:
        raise ConfigError("token is not set")
    if not cfg.steam_key:
        raise ConfigError("steam_key is not set")
    if not cfg.socket_dir:
        raise ConfigError("socket_dir is not set")


def load_config(path: str, base: BridgeRuntimeConfig | None = None) -> BridgeRuntimeConfig:
    cfg = base or BridgeRuntimeConfig()
    cfg = replace(cfg, config_path=path)
    cfg = apply_config_data(cfg, load_toml(path))
    validate_config(cfg)
    return cfg
