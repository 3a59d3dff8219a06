import asyncio
import logging

import pytest

from dashboard_engine.monitor import PerformanceMonitor


def test_end_returns_elapsed_milliseconds(clock):
    monitor = PerformanceMonitor(clock=clock)
    monitor.start("load")
    clock.advance(0.25)

    assert monitor.end("load") == pytest.approx(250.0)
    assert monitor.active_timers() == []


def test_end_without_start_returns_zero(clock):
    monitor = PerformanceMonitor(clock=clock)

    assert monitor.end("never-started") == 0.0
    monitor.start("once")
    monitor.end("once")
    assert monitor.end("once") == 0.0


def test_measure_returns_result_and_duration(clock):
    monitor = PerformanceMonitor(clock=clock)

    async def work():
        clock.advance(0.1)
        return {"rows": 3}

    measured = asyncio.run(monitor.measure("query", work))

    assert measured.result == {"rows": 3}
    assert measured.duration == pytest.approx(100.0)
    assert monitor.active_timers() == []


def test_measure_propagates_errors_and_clears_timer(clock, caplog):
    monitor = PerformanceMonitor(clock=clock)

    async def broken():
        clock.advance(0.05)
        raise RuntimeError("upstream down")

    caplog.set_level(logging.WARNING, logger="dashboard_engine.monitor")
    with pytest.raises(RuntimeError, match="upstream down"):
        asyncio.run(monitor.measure("fetch", broken))

    assert monitor.active_timers() == []
    assert "fetch failed after 50.00ms" in caplog.text


def test_track_times_synchronous_blocks(clock):
    monitor = PerformanceMonitor(clock=clock)

    with monitor.track("group"):
        assert monitor.active_timers() == ["group"]
        clock.advance(0.01)

    assert monitor.active_timers() == []


def test_slow_operations_log_a_warning(clock, caplog):
    monitor = PerformanceMonitor(slow_operation_ms=100, clock=clock)
    caplog.set_level(logging.DEBUG, logger="dashboard_engine.monitor")

    monitor.start("fast")
    clock.advance(0.05)
    monitor.end("fast")
    monitor.start("slow")
    clock.advance(0.25)
    monitor.end("slow")

    levels = {record.getMessage(): record.levelno for record in caplog.records}
    assert levels["fast: 50.00ms"] == logging.DEBUG
    assert levels["Slow operation: slow (250.00ms)"] == logging.WARNING


def test_measure_logs_expected_failures_quietly(clock, caplog):
    monitor = PerformanceMonitor(clock=clock)

    async def rejected():
        clock.advance(0.02)
        raise LookupError("unknown table")

    caplog.set_level(logging.DEBUG, logger="dashboard_engine.monitor")
    with pytest.raises(LookupError):
        asyncio.run(monitor.measure("load", rejected, expected=(LookupError,)))

    assert monitor.active_timers() == []
    assert not [record for record in caplog.records if record.levelno >= logging.WARNING]
    assert "load stopped after 20.00ms: unknown table" in caplog.text
