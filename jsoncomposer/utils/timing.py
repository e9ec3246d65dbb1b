"""Timing utilities for pipeline stages."""
import time
from typing import Dict, Any, Optional


class TimingContext:
    """Context manager for timing code blocks."""

    def __init__(self, name: str, parent: Optional['TimingStats'] = None):
        self.name = name
        self.parent = parent
        self.start_time = None
        self.duration = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration = time.perf_counter() - self.start_time
        if self.parent:
            self.parent.add_timing(self.name, self.duration)
        return False


class TimingStats:
    """Collects stage durations and counters for one pipeline run."""

    def __init__(self, name: str = "pipeline"):
        self.name = name
        self.start_time = time.perf_counter()
        self.timings: Dict[str, list] = {}
        self.counters: Dict[str, int] = {}

    def timer(self, name: str) -> TimingContext:
        """Create a timing context manager."""
        return TimingContext(name, parent=self)

    def add_timing(self, name: str, duration: float):
        self.timings.setdefault(name, []).append(duration)

    def add_counter(self, name: str, value: int = 1):
        self.counters[name] = self.counters.get(name, 0) + value

    def get_summary(self) -> Dict[str, Any]:
        """Per-stage totals plus counters."""
        summary = {
            "name": self.name,
            "total_duration_seconds": round(time.perf_counter() - self.start_time, 4),
            "timings": {},
            "counters": dict(self.counters),
        }

        for name, durations in self.timings.items():
            total_secs = sum(durations)
            summary["timings"][name] = {
                "count": len(durations),
                "total_seconds": round(total_secs, 4),
                "mean_seconds": round(total_secs / len(durations), 4),
                "max_seconds": round(max(durations), 4),
            }

        return summary
