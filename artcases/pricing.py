from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import List, Sequence

from tqdm import tqdm

from .exceptions import ServiceError
from .logs import BatchLog
from .models import PricingEligible, PricingFailed, PricingOutcome, Priced, ProfileSnapshot
from .pricing_api import PricingAPI
from .rate_limit import SpacedLimiter
from .report import format_brl

CENTS = Decimal("0.01")


def convert(usd: float, rate: float) -> float:
    """USD -> display currency, rounded half-up to cents."""
    value = Decimal(str(usd)) * Decimal(str(rate))
    return float(value.quantize(CENTS, rounding=ROUND_HALF_UP))


def cases_percent(cases_value: float, total_value: float) -> float:
    if total_value <= 0:
        return 0.0
    pct = 100.0 * cases_value / total_value
    return round(min(100.0, max(0.0, pct)), 2)


def price_one(
    api: PricingAPI,
    item: PricingEligible,
    rate: float,
    log: BatchLog,
    limiter: SpacedLimiter,
    fetch_cases: bool = True,
) -> PricingOutcome:
    sid = item.steamid
    limiter.acquire()
    try:
        usd = api.total_value(sid)
    except ServiceError as e:
        log.warn(f"Pricing failed: {e.message}", sid)
        return PricingFailed(sid, e.message, e.transient)

    if usd <= 0:
        log.warn("No inventory value (private profile or no items).", sid)
        return PricingFailed(sid, "No inventory value (private profile or no items).")

    pct = 0.0
    if fetch_cases:
        limiter.acquire()
        try:
            pct = cases_percent(api.cases_value(sid), usd)
        except ServiceError as e:
            log.warn(f"Cases value unavailable, using 0%: {e.message}", sid)

    total = convert(usd, rate)
    snap = ProfileSnapshot(
        steamid=sid,
        name=item.name,
        total_value=total,
        vac_banned=item.vac_banned,
        game_bans=item.game_bans,
        cases_percent=pct,
    )
    log.success(f"Value found: {format_brl(total)}.", sid)
    return Priced(sid, snap)


def price_inventories(
    api: PricingAPI,
    eligible: Sequence[PricingEligible],
    rate: float,
    log: BatchLog,
    limiter: SpacedLimiter,
    fetch_cases: bool = True,
    show_progress: bool = True,
) -> List[PricingOutcome]:
    """Price eligible ids one at a time, in the order given.

    Calls are strictly sequential; the limiter spaces every request to the
    pricing service, the first one included.
    """
    out: List[PricingOutcome] = []
    for item in tqdm(eligible, desc="pricing", unit="ids", disable=not show_progress):
        out.append(price_one(api, item, rate, log, limiter, fetch_cases))
    return out
