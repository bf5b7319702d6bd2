from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Tuple

from .exceptions import HistoryStoreError
from .models import HistoryRecord, ProfileSnapshot
from .utils import read_json, write_json

log = logging.getLogger("artcases.history")

History = Dict[str, HistoryRecord]


class JsonHistoryStore:
    """The whole history lives in one JSON file that is rewritten on save.

    There is no locking: two batches running at the same time against the
    same file will race, and whichever saves last wins.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def load(self) -> History:
        try:
            raw = read_json(self.path)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            log.error("Failed to load history from %s: %s", self.path, e)
            return {}
        if not isinstance(raw, dict):
            log.error("History file %s does not hold a mapping; ignoring it", self.path)
            return {}

        out: History = {}
        for steamid, rec in raw.items():
            if not isinstance(rec, dict):
                log.warning("Dropping malformed history entry for %s", steamid)
                continue
            try:
                out[steamid] = HistoryRecord.from_dict(rec)
            except (TypeError, ValueError) as e:
                log.warning("Dropping malformed history entry for %s: %s", steamid, e)
        return out

    def save(self, history: Mapping[str, HistoryRecord]) -> None:
        payload = {sid: rec.to_dict() for sid, rec in history.items()}
        try:
            write_json(self.path, payload)
        except (OSError, TypeError, ValueError) as e:
            raise HistoryStoreError(f"Failed to save history to {self.path}: {e}") from e


class MemoryHistoryStore:
    def __init__(self, initial: Mapping[str, HistoryRecord] = ()) -> None:
        self.records: History = dict(initial)
        self.loads = 0
        self.saves = 0

    def load(self) -> History:
        self.loads += 1
        return dict(self.records)

    def save(self, history: Mapping[str, HistoryRecord]) -> None:
        self.saves += 1
        self.records = dict(history)


def merge_history(old: Mapping[str, HistoryRecord], new: Mapping[str, HistoryRecord]) -> History:
    """New findings replace old ones wholesale; untouched ids are kept."""
    merged = dict(old)
    merged.update(new)
    return merged


def split_by_history(
    steamids: Iterable[str], history: Mapping[str, HistoryRecord]
) -> Tuple[List[str], List[str]]:
    """Return (to_skip, to_process), both in input order."""
    to_skip: List[str] = []
    to_process: List[str] = []
    for sid in steamids:
        if is_concluded(history, sid):
            to_skip.append(sid)
        else:
            to_process.append(sid)
    return to_skip, to_process


def recent_snapshots(
    history: Mapping[str, HistoryRecord], since_ms: int
) -> List[Tuple[ProfileSnapshot, HistoryRecord]]:
    """Concluded records newer than ``since_ms`` worth reporting: a positive
    value or a VAC ban.
    """
    out = []
    for rec in history.values():
        if not rec.success or rec.data is None:
            continue
        if not rec.timestamp or rec.timestamp < since_ms:
            continue
        if rec.data.total_value > 0 or rec.data.vac_banned:
            out.append((rec.data, rec))
    return out


def is_concluded(history: Mapping[str, HistoryRecord], steamid: str) -> bool:
    rec = history.get(steamid)
    return rec is not None and rec.success
