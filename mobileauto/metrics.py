# mobileauto/metrics.py
"""
@file metrics.py
@brief Resolver performance counters and per-scenario step metrics.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass(frozen=True)
class CounterSnapshot:
    """Read-only view of PerformanceCounters at one point in time."""
    lookups: int
    cache_hits: int
    total_wait: float

    @property
    def hit_rate(self) -> float:
        """Cache hit rate in percent (0.0 when nothing was looked up)."""
        if self.lookups == 0:
            return 0.0
        return self.cache_hits / self.lookups * 100.0

    def summary(self) -> str:
        return (
            f"Lookups: {self.lookups}, Cache Hit Rate: {self.hit_rate:.1f}%, "
            f"Total Wait: {int(round(self.total_wait * 1000))}ms"
        )


class PerformanceCounters:
    """Thread-safe lookup/hit/wait counters owned by one Resolver."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._lookups = 0
        self._cache_hits = 0
        self._total_wait = 0.0

    def record_lookup(self) -> None:
        with self._lock:
            self._lookups += 1

    def record_hit(self) -> None:
        with self._lock:
            self._cache_hits += 1

    def record_wait(self, seconds: float) -> None:
        with self._lock:
            self._total_wait += max(0.0, float(seconds))

    def snapshot(self) -> CounterSnapshot:
        with self._lock:
            return CounterSnapshot(
                lookups=self._lookups,
                cache_hits=self._cache_hits,
                total_wait=self._total_wait,
            )

    @property
    def lookups(self) -> int:
        return self.snapshot().lookups

    @property
    def cache_hits(self) -> int:
        return self.snapshot().cache_hits

    @property
    def total_wait(self) -> float:
        return self.snapshot().total_wait

    @property
    def hit_rate(self) -> float:
        return self.snapshot().hit_rate

    def summary(self) -> str:
        return self.snapshot().summary()


@dataclass
class StepRecord:
    """Outcome of a single scenario step."""
    step: str
    duration: float
    status: str = "passed"
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.status == "failed"


@dataclass
class ScenarioMetrics:
    """
    Collects step timings for one scenario and renders the end-of-scenario
    performance summary (total time, average, failures, slowest steps).
    """
    name: str = "scenario"
    started_at: float = field(default_factory=time.monotonic)
    steps: List[StepRecord] = field(default_factory=list)

    def record(self, step: str, duration: float, status: str = "passed", error: Optional[str] = None) -> StepRecord:
        record = StepRecord(step=step, duration=duration, status=status, error=error)
        self.steps.append(record)
        return record

    @property
    def failed(self) -> bool:
        return any(s.failed for s in self.steps)

    @property
    def final_status(self) -> str:
        return "failed" if self.failed else "passed"

    def average_duration(self) -> float:
        if not self.steps:
            return 0.0
        return sum(s.duration for s in self.steps) / len(self.steps)

    def slowest(self, count: int = 3) -> List[StepRecord]:
        return sorted(self.steps, key=lambda s: s.duration, reverse=True)[:count]

    def to_dict(self, now: Optional[float] = None) -> Dict[str, object]:
        total = (now if now is not None else time.monotonic()) - self.started_at
        return {
            "name": self.name,
            "status": self.final_status,
            "total_s": round(total, 3),
            "steps": len(self.steps),
            "failed_steps": sum(1 for s in self.steps if s.failed),
            "average_step_s": round(self.average_duration(), 3),
            "slowest": [{"step": s.step, "duration_s": round(s.duration, 3)} for s in self.slowest()],
        }

    def summary(self, now: Optional[float] = None) -> str:
        data = self.to_dict(now)
        lines = [
            f"Scenario '{self.name}' {data['status']} in {data['total_s']}s",
            f"  Steps executed: {data['steps']}",
        ]
        if self.steps:
            lines.append(f"  Average step time: {data['average_step_s']}s")
            lines.append(f"  Failed steps: {data['failed_steps']}/{data['steps']}")
            lines.append("  Slowest steps:")
            for s in self.slowest():
                lines.append(f"    - {s.step}: {s.duration:.3f}s")
        return "\n".join(lines)
