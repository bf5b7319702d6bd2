from __future__ import annotations

import pytest

from artcases.exceptions import ServiceError
from artcases.logs import BatchLog
from artcases.models import PricingEligible, PricingFailed, Priced
from artcases.pricing import cases_percent, convert, price_inventories
from artcases.rate_limit import SpacedLimiter

from conftest import FakeClock, FakePricing


def eligible(*ids, bans=0):
    return [PricingEligible(sid, f"name-{sid}", False, bans) for sid in ids]


def test_convert_uses_fixed_rate_and_rounds_to_cents():
    assert convert(12.00, 5.25) == 63.00
    assert convert(0.333, 5.25) == 1.75
    assert convert(1.0, 1.0) == 1.0


@pytest.mark.parametrize(
    "cases, total, expected",
    [(2.5, 10.0, 25.0), (10.0, 10.0, 100.0), (30.0, 10.0, 100.0), (1.0, 0.0, 0.0), (-1.0, 5.0, 0.0)],
)
def test_cases_percent(cases, total, expected):
    assert cases_percent(cases, total) == expected


def run(pricing, items, **kw):
    clock = FakeClock()
    pricing.clock = clock
    limiter = SpacedLimiter(50, clock=clock, sleep=clock.sleep)
    log = BatchLog()
    out = price_inventories(pricing, items, 5.25, log, limiter, show_progress=False, **kw)
    return out, log, clock


def test_price_inventories_keeps_order_and_carries_identity():
    pricing = FakePricing(totals={"a": 2.0, "b": 1.0}, cases={"a": 1.0, "b": 0.5})
    out, log, _ = run(pricing, eligible("a", "b", bans=1))
    assert [o.steamid for o in out] == ["a", "b"]
    snap = out[0].snapshot
    assert snap.name == "name-a"
    assert snap.game_bans == 1
    assert snap.total_value == 10.5
    assert snap.cases_percent == 50.0
    assert any("R$ 10,50" in e.message for e in log.entries)


def test_http_failure_becomes_pricing_failed():
    err = ServiceError("Status 429. Too many requests", status_code=429)
    pricing = FakePricing(totals={"a": err, "b": 3.0})
    out, _, _ = run(pricing, eligible("a", "b"), fetch_cases=False)
    assert out[0] == PricingFailed("a", "Status 429. Too many requests", False)
    assert isinstance(out[1], Priced)


def test_cases_are_not_fetched_when_disabled_or_value_is_zero():
    pricing = FakePricing(totals={"a": 0.0, "b": 1.0})
    run(pricing, eligible("a", "b"), fetch_cases=False)
    assert [k for k, _, _ in pricing.calls] == ["total", "total"]

    pricing = FakePricing(totals={"a": 0.0})
    run(pricing, eligible("a"))
    assert [k for k, _, _ in pricing.calls] == ["total"]


def test_every_pricing_request_is_paced():
    pricing = FakePricing(totals={"a": 1.0, "b": 1.0}, cases={"a": 0.1, "b": 0.1})
    _, _, clock = run(pricing, eligible("a", "b"))
    times = [t for _, _, t in pricing.calls]
    assert len(times) == 4
    assert all(b - a >= 1.2 - 1e-9 for a, b in zip(times, times[1:]))
