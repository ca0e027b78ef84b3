"""Unit tests for auth/sweeper.py -- the background session sweeper.

The sweeper is async; each test drives it with asyncio.run() so no async
pytest plugin is needed.
"""

import asyncio

import pytest

from auth.errors import StoreUnavailableError
from auth.lifecycle import SessionManager
from auth.sessions import SessionStore
from auth.sweeper import SessionSweeper
from tests.conftest import FakeClock


def test_run_once_sweeps_deterministically(manager: SessionManager, session_store: SessionStore, clock: FakeClock) -> None:
    manager.create_session(1, "old")
    clock.advance(days=31)
    manager.create_session(2, "new")

    sweeper = SessionSweeper(manager, interval_seconds=3600)
    assert asyncio.run(sweeper.run_once()) == 1
    assert asyncio.run(sweeper.run_once()) == 0
    assert session_store.count() == 1


def test_run_once_logs_and_swallows_store_failure(manager: SessionManager, monkeypatch, caplog) -> None:
    def unavailable(now=None):
        raise StoreUnavailableError()

    monkeypatch.setattr(manager, "sweep_expired", unavailable)
    sweeper = SessionSweeper(manager, interval_seconds=3600)

    with caplog.at_level("ERROR", logger="canary.sweeper"):
        assert asyncio.run(sweeper.run_once()) is None
    assert "Session sweep failed" in caplog.text


def test_start_and_stop(manager: SessionManager) -> None:
    async def scenario() -> tuple[bool, bool]:
        sweeper = SessionSweeper(manager, interval_seconds=3600)
        sweeper.start()
        sweeper.start()  # idempotent
        started = sweeper.running
        await sweeper.stop()
        return started, sweeper.running

    started, still_running = asyncio.run(scenario())
    assert started is True
    assert still_running is False


def test_stop_when_never_started(manager: SessionManager) -> None:
    asyncio.run(SessionSweeper(manager).stop())


def test_loop_sweeps_on_interval(
    manager: SessionManager, session_store: SessionStore, clock: FakeClock, monkeypatch
) -> None:
    manager.create_session(1, "old")
    clock.advance(days=31)
    results = []
    real_sweep = manager.sweep_expired

    def recording_sweep(now=None):
        results.append(real_sweep(now))
        return results[-1]

    monkeypatch.setattr(manager, "sweep_expired", recording_sweep)

    # Only the sweeper thread touches the store while the loop runs.
    async def scenario() -> None:
        sweeper = SessionSweeper(manager, interval_seconds=0.01)
        sweeper.start()
        for _ in range(200):
            if results:
                break
            await asyncio.sleep(0.01)
        await sweeper.stop()

    asyncio.run(scenario())
    assert results[0] == 1
    assert session_store.count() == 0


def test_loop_survives_failed_cycle(manager: SessionManager, monkeypatch) -> None:
    calls = []

    def flaky(now=None):
        calls.append(1)
        if len(calls) == 1:
            raise StoreUnavailableError()
        return 0

    monkeypatch.setattr(manager, "sweep_expired", flaky)

    async def scenario() -> bool:
        sweeper = SessionSweeper(manager, interval_seconds=0.01)
        sweeper.start()
        for _ in range(200):
            if len(calls) >= 2:
                break
            await asyncio.sleep(0.01)
        alive = sweeper.running
        await sweeper.stop()
        return alive

    assert asyncio.run(scenario()) is True
    assert len(calls) >= 2


def test_loop_survives_unexpected_error_and_stops_cleanly(manager: SessionManager, monkeypatch, caplog) -> None:
    calls = []

    def broken(now=None):
        calls.append(1)
        raise RuntimeError("boom")

    monkeypatch.setattr(manager, "sweep_expired", broken)

    async def scenario() -> bool:
        sweeper = SessionSweeper(manager, interval_seconds=0.01)
        sweeper.start()
        for _ in range(200):
            if len(calls) >= 2:
                break
            await asyncio.sleep(0.01)
        alive = sweeper.running
        await sweeper.stop()  # must not re-raise the sweep error
        return alive

    with caplog.at_level("ERROR", logger="canary.sweeper"):
        assert asyncio.run(scenario()) is True
    assert len(calls) >= 2
    assert "Unexpected error during session sweep" in caplog.text


def test_rejects_non_positive_interval(manager: SessionManager) -> None:
    with pytest.raises(ValueError):
        SessionSweeper(manager, interval_seconds=0)
