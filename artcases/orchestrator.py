from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from .config import Settings
from .exceptions import HistoryStoreError, NothingToReport, ValidationError
from .history import JsonHistoryStore, is_concluded, merge_history, recent_snapshots, split_by_history
from .identity import resolve_identities
from .logs import BatchLog, LogEntry
from .models import (
    BatchItem,
    Banned,
    HistoryRecord,
    IdentityFailed,
    PricingEligible,
    PricingFailed,
    Priced,
    Skipped,
)
from .pricing import price_inventories
from .pricing_api import PricingAPI
from .rate_limit import SpacedLimiter
from .report import ReportRow, render_info, render_report
from .steam_api import SteamAPI
from .utils import epoch_ms, human_date

STEAMID64 = re.compile(r"^\d{17}$")
SEPARATORS = re.compile(r"[\s,]+")

BATCH_TITLE = "Relatório Final Art Cases"
HISTORY_TITLE = "Relatório Histórico Art Cases (Últimas {hours} Horas)"
NOTHING_NEW = "Todas as IDs fornecidas já foram processadas ou banidas anteriormente."


def parse_steam_ids(raw: Union[str, Iterable[str], None]) -> List[str]:
    """Split whitespace/comma separated input into ids, dropping blanks."""
    if raw is None:
        raise ValidationError("No Steam IDs provided.")
    chunks = [raw] if isinstance(raw, str) else list(raw)
    ids = [tok for chunk in chunks for tok in SEPARATORS.split(str(chunk)) if tok]
    if not ids:
        raise ValidationError("No Steam IDs provided.")
    return ids


def validate_steamid(raw: str) -> str:
    sid = (raw or "").strip()
    if not STEAMID64.match(sid):
        raise ValidationError(f"Invalid SteamID64 (expected 17 digits): {raw!r}")
    return sid


@dataclass
class BatchResult:
    report_html: str
    logs: List[LogEntry]
    success_count: int
    concluded_count: int
    items: List[BatchItem] = field(default_factory=list)
    saved: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reportHtml": self.report_html,
            "logs": [
                {"message": e.message, "type": e.type, "id": e.id} for e in self.logs
            ],
            "successCount": self.success_count,
        }


@dataclass
class HistoryReport:
    filename: str
    html: str
    count: int


class BatchProcessor:
    """Runs one batch: history split, identity fan-out, paced pricing, write-back.

    The history store is read once and written at most once per batch.
    Batches are not coordinated with each other: two batches running at the
    same time against the same store race, and the last save wins.
    """

    def __init__(
        self,
        store,
        steam: SteamAPI,
        pricing: PricingAPI,
        limiter: Optional[SpacedLimiter] = None,
        rate: float = 5.25,
        identity_workers: int = 16,
        fetch_cases: bool = True,
        retry_transient_failures: bool = False,
        report_window_hours: int = 24,
        show_progress: bool = False,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.store = store
        self.steam = steam
        self.pricing = pricing
        self.limiter = limiter or SpacedLimiter(rpm=50)
        self.rate = rate
        self.identity_workers = identity_workers
        self.fetch_cases = fetch_cases
        self.retry_transient_failures = retry_transient_failures
        self.report_window_hours = report_window_hours
        self.show_progress = show_progress
        self.now = now

    @classmethod
    def from_settings(cls, settings: Settings) -> "BatchProcessor":
        return cls(
            store=JsonHistoryStore(settings.history_file),
            steam=SteamAPI(
                settings.steam_api_key,
                rpm=settings.steam_rate_limit_rpm,
                timeout=settings.request_timeout,
            ),
            pricing=PricingAPI(
                settings.montuga_api_key,
                app_id=settings.app_id,
                timeout=settings.request_timeout,
                cases_path=settings.cases_path,
            ),
            limiter=SpacedLimiter(rpm=settings.pricing_rpm),
            rate=settings.usd_to_brl_rate,
            identity_workers=settings.identity_workers,
            fetch_cases=settings.fetch_cases,
            retry_transient_failures=settings.retry_transient_failures,
            report_window_hours=settings.report_window_hours,
            show_progress=settings.show_progress,
        )

    # ────────────────────────────── Public operations

    def run(self, raw: Union[str, Iterable[str], None]) -> BatchResult:
        steamids = parse_steam_ids(raw)
        return self._process(steamids, force=False)

    def lookup(self, steamid: str) -> BatchResult:
        """Re-check a single account even if history already concluded it."""
        sid = validate_steamid(steamid)
        return self._process([sid], force=True)

    def history_report(self) -> HistoryReport:
        now = self.now()
        since = epoch_ms(now - timedelta(hours=self.report_window_hours))
        history = self.store.load()
        found = recent_snapshots(history, since)
        if not found:
            raise NothingToReport(
                f"No inventory with value or ban detected in the last "
                f"{self.report_window_hours} hours."
            )
        rows = [ReportRow(snap, rec.date) for snap, rec in found]
        html = render_report(
            rows,
            new_count=len(rows),
            total_count=len(history),
            title=HISTORY_TITLE.format(hours=self.report_window_hours),
            generated_at=human_date(now),
        )
        filename = f"relatorio_historico_{self.report_window_hours}h_{now.date().isoformat()}.html"
        return HistoryReport(filename, html, len(rows))

    # ────────────────────────────── Pipeline

    def _process(self, steamids: List[str], force: bool) -> BatchResult:
        log = BatchLog()
        log.info(f"Starting batch. {len(steamids)} IDs in total.")

        history = self.store.load()
        if force:
            to_skip, to_process = [], list(steamids)
        else:
            to_skip, to_process = split_by_history(steamids, history)

        if to_skip:
            log.warn(f"Skipping {len(to_skip)} IDs already concluded in history.")
        if not to_process:
            log.success("No new IDs to process.")
            return BatchResult(
                report_html=render_info(NOTHING_NEW),
                logs=log.entries,
                success_count=0,
                concluded_count=len(to_skip),
                items=[Skipped(sid) for sid in steamids],
            )

        log.info(f"Checking name and bans for {len(to_process)} IDs.")
        processed: List[BatchItem] = []
        eligible: List[PricingEligible] = []
        slots: List[int] = []
        for outcome in resolve_identities(self.steam, to_process, log, self.identity_workers):
            if isinstance(outcome, PricingEligible):
                slots.append(len(processed))
                eligible.append(outcome)
                processed.append(PricingFailed(outcome.steamid, "Not priced."))
            else:
                processed.append(outcome)

        dropped = len(to_process) - len(eligible)
        if dropped:
            log.warn(f"{dropped} IDs skipped for inventory (VAC ban or Steam API error).")
        if eligible:
            log.info(f"Fetching inventory value for {len(eligible)} IDs...")
            priced = price_inventories(
                self.pricing,
                eligible,
                self.rate,
                log,
                self.limiter,
                fetch_cases=self.fetch_cases,
                show_progress=self.show_progress,
            )
            for slot, outcome in zip(slots, priced):
                processed[slot] = outcome

        now = self.now()
        stamp_ms, date = epoch_ms(now), human_date(now)
        new_entries: Dict[str, HistoryRecord] = {}
        for item in processed:
            new_entries[item.steamid] = self._record(item, stamp_ms, date)

        saved = True
        try:
            self.store.save(merge_history(history, new_entries))
            log.info(f"History saved ({len(new_entries)} IDs updated).")
        except HistoryStoreError as e:
            saved = False
            log.error(f"Failed to save history: {e}")

        it = iter(processed)
        items: List[BatchItem] = [
            Skipped(sid) if not force and is_concluded(history, sid) else next(it)
            for sid in steamids
        ]
        successes = [i for i in processed if isinstance(i, Priced)]
        concluded = len(to_skip) + sum(1 for r in new_entries.values() if r.success)
        log.success(f"Batch finished. {len(successes)} new inventories priced.")

        rows = [ReportRow(p.snapshot, date) for p in successes]
        html = render_report(
            rows,
            new_count=len(successes),
            total_count=concluded,
            title=BATCH_TITLE,
            generated_at=date,
        )
        return BatchResult(
            report_html=html,
            logs=log.entries,
            success_count=len(successes),
            concluded_count=concluded,
            items=items,
            saved=saved,
        )

    def _record(self, item: BatchItem, stamp_ms: int, date: str) -> HistoryRecord:
        if isinstance(item, Priced):
            return HistoryRecord(True, stamp_ms, date, "Processed: inventory priced.", item.snapshot)
        if isinstance(item, Banned):
            return HistoryRecord(True, stamp_ms, date, "Processed: VAC ban detected.", item.snapshot)
        if isinstance(item, (IdentityFailed, PricingFailed)):
            # Every attempt concludes the id unless transient retries are switched on.
            success = not (item.transient and self.retry_transient_failures)
            prefix = "Processed" if success else "Failed"
            return HistoryRecord(success, stamp_ms, date, f"{prefix}: {item.reason}")
        raise TypeError(f"Unexpected batch item: {item!r}")
