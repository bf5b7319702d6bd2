from __future__ import annotations

import pytest

from artcases.rate_limit import RateLimiter, SpacedLimiter

from conftest import FakeClock


def test_spaced_limiter_waits_before_first_call():
    clock = FakeClock()
    limiter = SpacedLimiter(50, clock=clock, sleep=clock.sleep)
    assert limiter.interval == pytest.approx(1.2)
    assert limiter.acquire() == pytest.approx(1.2)
    assert clock.sleeps == [pytest.approx(1.2)]


def test_spaced_limiter_floor_between_calls():
    clock = FakeClock()
    limiter = SpacedLimiter(50, clock=clock, sleep=clock.sleep)
    start = clock()
    stamps = []
    for _ in range(5):
        limiter.acquire()
        stamps.append(clock())
    assert stamps[-1] - start >= 5 * 1.2 - 1e-9
    assert all(b - a >= 1.2 - 1e-9 for a, b in zip(stamps, stamps[1:]))


def test_spaced_limiter_does_not_sleep_when_caller_was_slow():
    clock = FakeClock()
    limiter = SpacedLimiter(50, clock=clock, sleep=clock.sleep)
    limiter.acquire()
    clock.t += 5.0
    assert limiter.acquire() == 0.0
    assert len(clock.sleeps) == 1


def test_spaced_limiter_rpm_is_swappable():
    clock = FakeClock()
    limiter = SpacedLimiter(120, clock=clock, sleep=clock.sleep)
    limiter.acquire()
    limiter.acquire()
    assert clock.sleeps == [pytest.approx(0.5), pytest.approx(0.5)]


def test_window_limiter_blocks_after_budget():
    clock = FakeClock()
    limiter = RateLimiter(rpm=3, clock=clock, sleep=clock.sleep)
    for _ in range(3):
        limiter.wait()
    assert clock.sleeps == []
    limiter.wait()
    assert len(clock.sleeps) == 1
    assert clock.sleeps[0] == pytest.approx(60.01)


def test_window_limiter_forgets_old_calls():
    clock = FakeClock()
    limiter = RateLimiter(rpm=2, clock=clock, sleep=clock.sleep)
    limiter.wait()
    limiter.wait()
    clock.t += 61
    limiter.wait()
    assert clock.sleeps == []
