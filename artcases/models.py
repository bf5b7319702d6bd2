from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Union


@dataclass(frozen=True)
class ProfileSnapshot:
    steamid: str
    name: str
    total_value: float  # display currency, 2 decimals
    vac_banned: bool = False
    game_bans: int = 0
    cases_percent: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "steamId": self.steamid,
            "realName": self.name,
            "totalValueBRL": self.total_value,
            "vacBanned": self.vac_banned,
            "gameBans": self.game_bans,
            "casesPercentage": self.cases_percent,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ProfileSnapshot":
        return cls(
            steamid=str(d.get("steamId", "")),
            name=d.get("realName") or "N/A",
            total_value=float(d.get("totalValueBRL") or 0.0),
            vac_banned=bool(d.get("vacBanned", False)),
            game_bans=int(d.get("gameBans") or 0),
            cases_percent=float(d.get("casesPercentage") or 0.0),
        )


@dataclass(frozen=True)
class HistoryRecord:
    success: bool
    timestamp: int  # epoch ms
    date: str
    reason: str
    data: Optional[ProfileSnapshot] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "success": self.success,
            "date": self.date,
            "timestamp": self.timestamp,
            "reason": self.reason,
        }
        if self.data is not None:
            out["data"] = self.data.to_dict()
        return out

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "HistoryRecord":
        data = d.get("data")
        return cls(
            success=bool(d.get("success", False)),
            timestamp=int(d.get("timestamp") or 0),
            date=str(d.get("date", "")),
            reason=str(d.get("reason", "")),
            data=ProfileSnapshot.from_dict(data) if isinstance(data, dict) else None,
        )


# ────────────────────────────── Per-request batch items


@dataclass(frozen=True)
class Skipped:
    steamid: str


@dataclass(frozen=True)
class IdentityFailed:
    steamid: str
    reason: str
    transient: bool = False


@dataclass(frozen=True)
class Banned:
    steamid: str
    snapshot: ProfileSnapshot
    reason: str = "VAC ban detected."


@dataclass(frozen=True)
class PricingEligible:
    steamid: str
    name: str
    vac_banned: bool
    game_bans: int


@dataclass(frozen=True)
class PricingFailed:
    steamid: str
    reason: str
    transient: bool = False


@dataclass(frozen=True)
class Priced:
    steamid: str
    snapshot: ProfileSnapshot


IdentityOutcome = Union[IdentityFailed, Banned, PricingEligible]
PricingOutcome = Union[PricingFailed, Priced]
BatchItem = Union[Skipped, IdentityFailed, Banned, PricingFailed, Priced]
