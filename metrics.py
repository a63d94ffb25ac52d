"""
Metrics — in-process counters, timings and gauges.

Services record `operation.<service>.<op>.{started,success,error}` counters
and `.duration` timings through this collector. Nothing is exported; the
summary is surfaced by the health check and `wsa health`.
"""

import copy
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any

from logging_config import logger


# Timing samples kept per metric
MAX_TIMING_SAMPLES = 100


class MetricsCollector:
    """Counters, bounded timing samples and gauges."""

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled
        self._counters: dict[str, float] = defaultdict(float)
        self._gauges: dict[str, dict[str, Any]] = {}
        self._timings: dict[str, list[dict[str, Any]]] = defaultdict(list)

    def increment(self, name: str, value: float = 1) -> None:
        if not self.enabled:
            return
        self._counters[name] += value
        logger.debug(f"Metric incremented: {name} -> {self._counters[name]:g}")

    def timing(self, name: str, duration_ms: float) -> None:
        """Record a duration; only the last MAX_TIMING_SAMPLES are kept."""
        if not self.enabled:
            return
        samples = self._timings[name]
        samples.append({
            "duration": duration_ms,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        })
        if len(samples) > MAX_TIMING_SAMPLES:
            del samples[:-MAX_TIMING_SAMPLES]
        logger.debug(f"Timing metric: {name} - Duration: {duration_ms:.0f}ms")

    def gauge(self, name: str, value: float) -> None:
        """Set the current value of a gauge."""
        if not self.enabled:
            return
        self._gauges[name] = {
            "value": value,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    def get_metric(self, name: str) -> float:
        """Counter value, or 0 if never incremented."""
        return self._counters.get(name, 0)

    def get_gauge(self, name: str) -> float | None:
        gauge = self._gauges.get(name)
        return gauge["value"] if gauge else None

    def get_all_metrics(self) -> dict[str, Any]:
        return {
            "counters": dict(self._counters),
            "gauges": copy.deepcopy(self._gauges),
            "timings": copy.deepcopy(dict(self._timings)),
        }

    def get_timing_stats(self, name: str) -> dict[str, float] | None:
        """count/average/min/max/total for a timing metric, None if empty."""
        samples = self._timings.get(name)
        if not samples:
            return None
        durations = [s["duration"] for s in samples]
        total = sum(durations)
        return {
            "count": len(durations),
            "average": total / len(durations),
            "min": min(durations),
            "max": max(durations),
            "total": total,
        }

    def reset(self) -> None:
        self._counters.clear()
        self._gauges.clear()
        self._timings.clear()

    def reset_metric(self, name: str) -> None:
        self._counters.pop(name, None)
        self._gauges.pop(name, None)
        self._timings.pop(name, None)

    def summary(self) -> dict[str, Any]:
        """Top five counters by value plus stats for the first five timings."""
        top_counters = sorted(self._counters.items(), key=lambda kv: kv[1], reverse=True)[:5]
        top_timings = []
        for name in list(self._timings)[:5]:
            stats = self.get_timing_stats(name)
            if stats:
                top_timings.append({"name": name, "stats": stats})

        return {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "counters": len(self._counters),
            "timings": len(self._timings),
            "enabled": self.enabled,
            "top_counters": [{"name": n, "value": v} for n, v in top_counters],
            "top_timings": top_timings,
        }
