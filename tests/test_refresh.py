"""Tests for RefreshScheduler."""

import asyncio

import pytest
from core.log_store import LogStore
from core.refresh import RefreshScheduler
from models.log_entry import LogLevel


class SlowReader:
    def __init__(self, value, delay=0.02, fail=False):
        self.value = value
        self.delay = delay
        self.fail = fail
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        await asyncio.sleep(self.delay)
        if self.fail:
            raise ConnectionError("server unavailable")
        return self.value


@pytest.fixture
def log_store():
    return LogStore()


@pytest.mark.asyncio
async def test_refresh_publishes_all_reads(log_store):
    """Test that one refresh publishes every read by name."""
    published = []
    scheduler = RefreshScheduler(
        {"status": SlowReader({"running": True}), "dates": SlowReader([])},
        published.append,
        log_store
    )

    assert await scheduler.refresh() is True
    assert published == [{"status": {"running": True}, "dates": []}]
    assert scheduler.in_flight is False


@pytest.mark.asyncio
async def test_concurrent_refreshes_pull_once(log_store):
    """Test that overlapping refreshes perform a single pull."""
    published = []
    status = SlowReader({})
    dates = SlowReader([])
    scheduler = RefreshScheduler({"status": status, "dates": dates}, published.append, log_store)

    results = await asyncio.gather(*(scheduler.refresh() for _ in range(5)))

    assert results.count(True) == 1
    assert status.calls == 1
    assert dates.calls == 1
    assert len(published) == 1


@pytest.mark.asyncio
async def test_reads_run_concurrently(log_store):
    """Test that reads in one pull run at the same time."""
    readers = {name: SlowReader(name, delay=0.05) for name in ("a", "b", "c")}
    scheduler = RefreshScheduler(readers, lambda parts: None, log_store)

    loop = asyncio.get_running_loop()
    started = loop.time()
    await scheduler.refresh()
    assert loop.time() - started < 0.12


@pytest.mark.asyncio
async def test_failure_is_logged_and_flag_reset(log_store):
    """Test that a failed pull is logged and a later pull can run."""
    published = []
    scheduler = RefreshScheduler(
        {"status": SlowReader({}), "dates": SlowReader([], fail=True)},
        published.append,
        log_store
    )

    assert await scheduler.refresh() is False
    assert scheduler.in_flight is False
    assert published == []
    assert log_store.entries()[-1].level == LogLevel.ERROR

    scheduler.readers["dates"].fail = False
    assert await scheduler.refresh() is True


@pytest.mark.asyncio
async def test_periodic_refresh_runs_immediately_and_repeats(log_store):
    """Test that the periodic refresh starts at once and stops cleanly."""
    published = []
    reader = SlowReader({}, delay=0)
    scheduler = RefreshScheduler({"status": reader}, published.append, log_store, interval=0.02)

    scheduler.start()
    await asyncio.sleep(0.07)
    await scheduler.stop()

    count = len(published)
    assert count >= 3
    await asyncio.sleep(0.05)
    assert len(published) == count


@pytest.mark.asyncio
async def test_trigger_during_periodic_pull_is_dropped(log_store):
    """Test that a trigger during a running pull does nothing."""
    reader = SlowReader({}, delay=0.05)
    scheduler = RefreshScheduler({"status": reader}, lambda parts: None, log_store, interval=10)

    scheduler.start()
    await asyncio.sleep(0.01)
    assert scheduler.in_flight is True

    assert await scheduler.trigger() is False
    await asyncio.sleep(0.06)
    assert reader.calls == 1
    await scheduler.stop()


@pytest.mark.asyncio
async def test_periodic_cadence_ignores_pull_latency(log_store):
    """Test that slow pulls do not stretch the refresh period."""
    loop = asyncio.get_running_loop()
    starts = []

    async def slow_status():
        starts.append(loop.time())
        await asyncio.sleep(0.04)
        return {}

    scheduler = RefreshScheduler({"status": slow_status}, lambda parts: None, log_store, interval=0.1)
    scheduler.start()
    await asyncio.sleep(0.25)
    await scheduler.stop()

    assert len(starts) >= 3
    for earlier, later in zip(starts, starts[1:]):
        assert later - earlier == pytest.approx(0.1, abs=0.03)
