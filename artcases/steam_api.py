from __future__ import annotations

from typing import Dict, Optional

import requests

from .exceptions import ServiceError
from .rate_limit import RateLimiter


class SteamAPI:
    BASE = "https://api.steampowered.com"

    def __init__(
        self,
        key: str,
        rpm: int = 600,
        timeout: float = 25,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.key = key
        self.timeout = timeout
        self.session = session or requests.Session()
        self.rl = RateLimiter(rpm=rpm)

    def _get(self, path: str, params: Dict) -> Dict:
        self.rl.wait()
        p = dict(params)
        p["key"] = self.key
        try:
            r = self.session.get(self.BASE + path, params=p, timeout=self.timeout)
        except requests.RequestException as e:
            raise ServiceError(f"Steam API request failed: {e}", transient=True) from e
        if r.status_code != 200:
            raise ServiceError(
                f"Steam API returned status {r.status_code}.", status_code=r.status_code
            )
        try:
            data = r.json()
        except ValueError as e:
            raise ServiceError(
                "Steam API returned a non-JSON body.", status_code=r.status_code
            ) from e
        if not isinstance(data, dict):
            raise ServiceError("Steam API returned an unexpected payload.")
        return data

    def get_player_summary(self, steamid: str) -> Optional[Dict]:
        """Return the profile summary, or None when Steam knows no such player."""
        data = self._get("/ISteamUser/GetPlayerSummaries/v2/", {"steamids": steamid})
        response = data.get("response") or {}
        if not isinstance(response, dict):
            raise ServiceError("Malformed GetPlayerSummaries payload.")
        return _first_player(response)

    def get_player_bans(self, steamid: str) -> Optional[Dict]:
        data = self._get("/ISteamUser/GetPlayerBans/v1/", {"steamids": steamid})
        return _first_player(data)


def _first_player(container: Dict) -> Optional[Dict]:
    players = container.get("players") or []
    if not isinstance(players, list):
        raise ServiceError("Malformed players list in Steam API payload.")
    if not players:
        return None
    if not isinstance(players[0], dict):
        raise ServiceError("Malformed player entry in Steam API payload.")
    return players[0]
