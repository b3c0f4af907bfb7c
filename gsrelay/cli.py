from __future__ import annotations

import argparse
import logging
import os
import sys
from dataclasses import replace
from pathlib import Path

import discord

from .config import ConfigError, load_config
from .discord_client import DiscordChat
from .logging_config import configure_logging
from .paths import default_config_path, ensure_private_dir


def _write_default_config(config_path: str) -> None:
    cfg_dir = os.path.dirname(config_path)
    if cfg_dir:
        ensure_private_dir(Path(cfg_dir))

    content = """# gsrelay configuration (TOML)
#
# This file was created on first run.
# Edit it, then start gsrelay again.

[bridge]

# Discord bot token. The bot needs the Server Members and Message Content
# privileged intents enabled in the developer portal.
token = ""

# Steam Web API key, used to look up player avatars for join posts.
steam_key = ""

# Directory holding the relay sockets. Each relay listens on
# <socket_dir>/<socket name>. Stale sockets are removed on start.
socket_dir = "/tmp"

# Permissions applied to every relay socket (octal). The game server plugin
# usually runs as another user, so the default is world accessible.
socket_mode = "0777"

# Size of a single read from a game server connection. One read is decoded
# as one packet.
read_buffer_size = 4096

# Timeout for Steam Web API requests in seconds (0 disables).
lookup_timeout_s = 0.0

[relays]

# Discord channel id = socket name. One game server per channel.
# "123456789012345678" = "css_relay"

[logging]

# Log level for gsrelay itself.
level = "INFO"

# Log level for the discord.py library.
discord_level = "WARNING"

# Log to stderr (systemd/journald friendly).
console = true

# Optional file path for logs (leave empty to disable).
file = ""

# Log format and optional date format.
format = "%(asctime)s %(levelname)s %(name)s: %(message)s"
datefmt = ""
"""

    with open(config_path, "w", encoding="utf-8") as f:
        f.write(content)
    try:
        # The file holds credentials.
        os.chmod(config_path, 0o600)
    except Exception:
        pass


def _build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="gsrelay", description="Relay game server events to Discord channels"
    )

    p.add_argument(
        "--config",
        default=str(default_config_path()),
        help="Path to a TOML config file (created on first run)",
    )
    p.add_argument(
        "--socket-dir",
        default=None,
        help="Directory for relay sockets (default comes from config)",
    )
    p.add_argument(
        "--log-level",
        default=None,
        help="Logging level override (DEBUG, INFO, WARNING, ERROR). Default comes from config.",
    )
    p.add_argument(
        "--log-file",
        default=None,
        help="Log file path override (empty disables file logging). Default comes from config.",
    )

    return p


def main(argv: list[str] | None = None) -> None:
    args = _build_arg_parser().parse_args(sys.argv[1:] if argv is None else argv)

    config_path = str(args.config)
    if not os.path.exists(config_path):
        _write_default_config(config_path)
        print(
            "Created default gsrelay config. Edit it before starting:\n"
            f"- Config: {config_path}\n"
            "\nThen re-run gsrelay.",
            file=sys.stderr,
        )
        raise SystemExit(0)

    try:
        cfg = load_config(config_path)
    except ConfigError as e:
        print(f"gsrelay: {e}", file=sys.stderr)
        raise SystemExit(1) from None

    if args.socket_dir is not None:
        cfg = replace(cfg, socket_dir=str(args.socket_dir))
    if args.log_level is not None:
        cfg = replace(cfg, log_level=str(args.log_level))
    if args.log_file is not None:
        cfg = replace(cfg, log_file=str(args.log_file) if str(args.log_file) else None)

    configure_logging(cfg, override_level=args.log_level, override_file=args.log_file)
    log = logging.getLogger("gsrelay")

    if not cfg.relays:
        log.warning("No relays configured in %s", config_path)

    client = DiscordChat(cfg)
    try:
        client.run(cfg.token, log_handler=None)
    except discord.LoginFailure as e:
        log.error("Discord login failed: %s", e)
        raise SystemExit(1) from None


if __name__ == "__main__":
    main()
