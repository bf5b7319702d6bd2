from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence

from .exceptions import ServiceError
from .logs import BatchLog
from .models import Banned, IdentityFailed, IdentityOutcome, PricingEligible, ProfileSnapshot
from .steam_api import SteamAPI


def resolve_identity(api: SteamAPI, steamid: str, log: BatchLog) -> IdentityOutcome:
    """Name first, then bans. Any failure stops work on this id."""
    try:
        player = api.get_player_summary(steamid)
    except ServiceError as e:
        log.warn("Failed to fetch profile name.", steamid)
        return IdentityFailed(steamid, f"Error fetching name: {e.message}", e.transient)
    if not player:
        log.warn("Profile not found on Steam API.", steamid)
        return IdentityFailed(steamid, "Profile not found on Steam API.")

    name = player.get("personaname") or "N/A"
    log.info(f"Name found: {name}", steamid)

    try:
        bans = api.get_player_bans(steamid)
    except ServiceError as e:
        log.error(f"Failed to fetch ban status: {e.message}", steamid)
        return IdentityFailed(steamid, f"Error fetching bans: {e.message}", e.transient)
    if not bans:
        log.warn("Failed to fetch ban status (empty response).", steamid)
        return IdentityFailed(steamid, "Failed to fetch ban status (Steam API).")

    vac = bool(bans.get("VACBanned", False))
    try:
        game_bans = int(bans.get("NumberOfGameBans") or 0)
    except (TypeError, ValueError):
        log.warn("Malformed ban status payload.", steamid)
        return IdentityFailed(steamid, "Malformed ban status (Steam API).")

    if vac:
        log.error("Status: VAC BAN DETECTED. Inventory will be skipped.", steamid)
        snap = ProfileSnapshot(steamid, name, 0.0, vac_banned=True, game_bans=game_bans)
        return Banned(steamid, snap)
    if game_bans > 0:
        log.warn(f"Status: {game_bans} game ban(s).", steamid)
    else:
        log.success("Status: Clean (no bans). Proceeding to inventory.", steamid)
    return PricingEligible(steamid, name, vac, game_bans)


def resolve_identities(
    api: SteamAPI,
    steamids: Sequence[str],
    log: BatchLog,
    max_workers: Optional[int] = None,
) -> List[IdentityOutcome]:
    """Look up every id concurrently and wait for all of them.

    At most ``max_workers`` lookups are in flight at once (one per id when
    it is None); the rest queue behind them, so a large batch never opens
    more than that many Steam requests together. The result is in input
    order, one outcome per input id (duplicates included).
    """
    if not steamids:
        return []
    workers = max(1, min(max_workers or len(steamids), len(steamids)))
    with ThreadPoolExecutor(max_workers=workers) as pool:
        return list(pool.map(lambda sid: resolve_identity(api, sid, log), steamids))
