"""Unit tests for the request throttle"""

import asyncio

import pytest

from notion_finance.infrastructure.resilience.throttle import Throttle


class FakeClock:
    """Monotonic clock that only moves when the fake sleep is awaited"""

    def __init__(self):
        self.now = 100.0
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def test_rejects_non_positive_rate():
    with pytest.raises(ValueError):
        Throttle(requests_per_second=0)


async def test_first_acquire_is_immediate():
    clock = FakeClock()
    throttle = Throttle(requests_per_second=4, clock=clock, sleep=clock.sleep)

    assert await throttle.acquire() == 0
    assert clock.sleeps == []


async def test_back_to_back_acquires_are_spaced():
    clock = FakeClock()
    throttle = Throttle(requests_per_second=4, clock=clock, sleep=clock.sleep)

    for _ in range(4):
        await throttle.acquire()

    assert clock.sleeps == pytest.approx([0.25, 0.25, 0.25])


async def test_idle_time_does_not_allow_a_burst():
    clock = FakeClock()
    throttle = Throttle(requests_per_second=2, clock=clock, sleep=clock.sleep)

    await throttle.acquire()
    clock.now += 10  # long idle period
    await throttle.acquire()
    await throttle.acquire()

    assert clock.sleeps == pytest.approx([0.5])


async def test_partial_interval_waits_only_the_remainder():
    clock = FakeClock()
    throttle = Throttle(requests_per_second=2, clock=clock, sleep=clock.sleep)

    await throttle.acquire()
    clock.now += 0.2
    waited = await throttle.acquire()

    assert waited == pytest.approx(0.3)


async def test_concurrent_waiters_release_in_arrival_order():
    clock = FakeClock()
    throttle = Throttle(requests_per_second=10, clock=clock, sleep=clock.sleep)
    released = []

    async def worker(name: str) -> None:
        await throttle.acquire()
        released.append((name, clock.now))

    await asyncio.gather(*(worker(name) for name in "abcd"))

    assert [name for name, _ in released] == ["a", "b", "c", "d"]
    times = [t for _, t in released]
    gaps = [later - earlier for earlier, later in zip(times, times[1:])]
    assert gaps == pytest.approx([0.1, 0.1, 0.1])
