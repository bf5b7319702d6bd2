"""Shared fakes: in-memory history, scripted Steam/pricing services, fake clock."""

from __future__ import annotations

import threading
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest

from artcases.exceptions import ServiceError
from artcases.history import MemoryHistoryStore
from artcases.orchestrator import BatchProcessor
from artcases.rate_limit import SpacedLimiter

NOW = datetime(2026, 10, 18, 12, 0, 0)

# 17-digit ids so the single-lookup path accepts them too.
ALICE = "76561198000000001"
BOB = "76561198000000002"
CAROL = "76561198000000003"
DAVE = "76561198000000004"


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.t = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.t

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.t += seconds


class FakeSteam:
    """Scripted account service.

    ``players`` maps id -> persona name, ``bans`` maps id -> (vac, game_bans).
    Ids missing from a map come back as "not found". A value that is an
    exception instance is raised instead.
    """

    def __init__(
        self,
        players: Optional[Dict[str, Any]] = None,
        bans: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.players = players or {}
        self.bans = bans or {}
        self.calls: List[Tuple[str, str]] = []
        self._lock = threading.Lock()

    def _record(self, kind: str, steamid: str) -> None:
        with self._lock:
            self.calls.append((kind, steamid))

    def get_player_summary(self, steamid: str) -> Optional[Dict]:
        self._record("summary", steamid)
        value = self.players.get(steamid)
        if isinstance(value, Exception):
            raise value
        if value is None:
            return None
        return {"steamid": steamid, "personaname": value}

    def get_player_bans(self, steamid: str) -> Optional[Dict]:
        self._record("bans", steamid)
        value = self.bans.get(steamid)
        if isinstance(value, Exception):
            raise value
        if value is None:
            return None
        vac, game_bans = value
        return {"SteamId": steamid, "VACBanned": vac, "NumberOfGameBans": game_bans}

    def ids_called(self) -> set:
        return {sid for _, sid in self.calls}


class FakePricing:
    def __init__(
        self,
        totals: Optional[Dict[str, Any]] = None,
        cases: Optional[Dict[str, Any]] = None,
        clock: Optional[FakeClock] = None,
    ) -> None:
        self.totals = totals or {}
        self.cases = cases or {}
        self.clock = clock
        self.calls: List[Tuple[str, str, Optional[float]]] = []

    def _answer(self, kind: str, table: Dict[str, Any], steamid: str) -> float:
        self.calls.append((kind, steamid, self.clock() if self.clock else None))
        value = table.get(steamid, 0.0)
        if isinstance(value, Exception):
            raise value
        return value

    def total_value(self, steamid: str) -> float:
        return self._answer("total", self.totals, steamid)

    def cases_value(self, steamid: str) -> float:
        return self._answer("cases", self.cases, steamid)

    def ids_called(self) -> set:
        return {sid for _, sid, _ in self.calls}


def network_error(msg: str = "connection reset") -> ServiceError:
    return ServiceError(msg, transient=True)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> MemoryHistoryStore:
    return MemoryHistoryStore()


@pytest.fixture
def make_processor(store: MemoryHistoryStore, clock: FakeClock) -> Callable[..., BatchProcessor]:
    def _build(steam: FakeSteam, pricing: FakePricing, **overrides: Any) -> BatchProcessor:
        if pricing.clock is None:
            pricing.clock = clock
        return BatchProcessor(
            store=overrides.pop("store", store),
            steam=steam,
            pricing=pricing,
            limiter=overrides.pop("limiter", SpacedLimiter(50, clock=clock, sleep=clock.sleep)),
            rate=overrides.pop("rate", 5.25),
            now=overrides.pop("now", lambda: NOW),
            **overrides,
        )

    return _build
