"""Steam Web API player lookup."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

import requests

from .constants import STEAM_SUMMARIES_URL


class SteamAPIError(Exception):
    """Any failure talking to the Steam Web API."""


@dataclass(frozen=True)
class PlayerSummary:
    steamid: str
    personaname: str = ""
    profileurl: str = ""
    avatar: str = ""
    avatarmedium: str = ""
    avatarfull: str = ""

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> PlayerSummary:
        return cls(
            steamid=str(data.get("steamid", "")),
            personaname=str(data.get("personaname", "")),
            profileurl=str(data.get("profileurl", "")),
            avatar=str(data.get("avatar", "")),
            avatarmedium=str(data.get("avatarmedium", "")),
            avatarfull=str(data.get("avatarfull", "")),
        )


class SteamClient:
    def __init__(
        self,
        key: str,
        *,
        timeout_s: float = 0.0,
        session: requests.Session | None = None,
    ) -> None:
        self.log = logging.getLogger("gsrelay.steam")
        self._key = key
        self._timeout = float(timeout_s) if timeout_s and timeout_s > 0 else None
        self._session = session or requests.Session()

    def get_player_summaries(self, steamid64: str) -> list[PlayerSummary]:
        """Blocking GetPlayerSummaries call for a single 64-bit Steam id."""
        params = {"key": self._key, "steamids": steamid64}
        try:
            resp = self._session.get(
                STEAM_SUMMARIES_URL, params=params, timeout=self._timeout
            )
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            raise SteamAPIError(f"player summary request failed: {e}") from e

        try:
            players = data["response"]["players"]
        except (KeyError, TypeError) as e:
            raise SteamAPIError("unexpected player summary response") from e
        if not isinstance(players, list):
            raise SteamAPIError("unexpected player summary response")

        return [PlayerSummary.from_json(p) for p in players if isinstance(p, dict)]

    async def fetch_player_summary(self, steamid64: str) -> PlayerSummary:
        players = await asyncio.to_thread(self.get_player_summaries, steamid64)
        if not players:
            raise SteamAPIError(f"no player summary for {steamid64}")
        return players[0]

    def close(self) -> None:
        self._session.close()
