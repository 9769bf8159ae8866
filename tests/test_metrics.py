# tests/test_metrics.py
"""
Tests for performance counters and scenario metrics.
"""

import threading

import pytest

from mobileauto.metrics import CounterSnapshot, PerformanceCounters, ScenarioMetrics


class TestPerformanceCounters:
    def test_empty_hit_rate(self):
        counters = PerformanceCounters()
        assert counters.hit_rate == 0.0
        assert counters.summary() == "Lookups: 0, Cache Hit Rate: 0.0%, Total Wait: 0ms"

    def test_summary_formatting(self):
        snapshot = CounterSnapshot(lookups=3, cache_hits=1, total_wait=1.2344)
        assert snapshot.summary() == "Lookups: 3, Cache Hit Rate: 33.3%, Total Wait: 1234ms"

    def test_negative_wait_ignored(self):
        counters = PerformanceCounters()
        counters.record_wait(-1.0)
        assert counters.total_wait == 0.0

    def test_thread_safe_increments(self):
        counters = PerformanceCounters()

        def work():
            for _ in range(1000):
                counters.record_lookup()
                counters.record_hit()

        threads = [threading.Thread(target=work) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert counters.lookups == 4000
        assert counters.cache_hits == 4000

    def test_snapshot_is_frozen(self):
        counters = PerformanceCounters()
        snapshot = counters.snapshot()
        counters.record_lookup()
        assert snapshot.lookups == 0


class TestScenarioMetrics:
    def test_summary_lists_slowest_steps(self):
        metrics = ScenarioMetrics(name="Change language", started_at=100.0)
        metrics.record("I open the menu", 0.4)
        metrics.record("I tap settings", 2.5)
        metrics.record("I search for Deutsch", 1.1, status="failed", error="not found")
        metrics.record("I go back", 0.2)

        data = metrics.to_dict(now=110.0)
        assert data["status"] == "failed"
        assert data["total_s"] == 10.0
        assert data["failed_steps"] == 1
        assert data["average_step_s"] == pytest.approx(1.05)
        assert [s["step"] for s in data["slowest"]] == [
            "I tap settings", "I search for Deutsch", "I open the menu",
        ]

        text = metrics.summary(now=110.0)
        assert "Scenario 'Change language' failed in 10.0s" in text
        assert "Failed steps: 1/4" in text

    def test_empty_scenario_passes(self):
        metrics = ScenarioMetrics(started_at=0.0)
        assert metrics.final_status == "passed"
        assert metrics.average_duration() == 0.0
        assert metrics.summary(now=1.0).splitlines() == [
            "Scenario 'scenario' passed in 1.0s",
            "  Steps executed: 0",
        ]
