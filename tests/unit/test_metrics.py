"""
Tests for metrics.py — counters, bounded timings, gauges and summary.
"""

from metrics import MAX_TIMING_SAMPLES, MetricsCollector


class TestCounters:

    def test_increment(self) -> None:
        metrics = MetricsCollector()
        metrics.increment("operation.gmail.export_emails.started")
        metrics.increment("operation.gmail.export_emails.started", 2)
        assert metrics.get_metric("operation.gmail.export_emails.started") == 3

    def test_unknown_counter_is_zero(self) -> None:
        assert MetricsCollector().get_metric("nope") == 0

    def test_disabled_records_nothing(self) -> None:
        metrics = MetricsCollector(enabled=False)
        metrics.increment("a")
        metrics.timing("b", 10)
        metrics.gauge("c", 1)
        assert metrics.get_all_metrics() == {"counters": {}, "gauges": {}, "timings": {}}


class TestTimings:

    def test_stats(self) -> None:
        metrics = MetricsCollector()
        for duration in (10, 20, 60):
            metrics.timing("op.duration", duration)

        assert metrics.get_timing_stats("op.duration") == {
            "count": 3,
            "average": 30,
            "min": 10,
            "max": 60,
            "total": 90,
        }

    def test_stats_none_when_empty(self) -> None:
        assert MetricsCollector().get_timing_stats("op.duration") is None

    def test_keeps_last_samples_only(self) -> None:
        metrics = MetricsCollector()
        for i in range(MAX_TIMING_SAMPLES + 25):
            metrics.timing("op.duration", i)

        stats = metrics.get_timing_stats("op.duration")
        assert stats is not None
        assert stats["count"] == MAX_TIMING_SAMPLES
        assert stats["min"] == 25


class TestGauges:

    def test_gauge_overwrites(self) -> None:
        metrics = MetricsCollector()
        metrics.gauge("queue.depth", 5)
        metrics.gauge("queue.depth", 2)
        assert metrics.get_gauge("queue.depth") == 2

    def test_missing_gauge(self) -> None:
        assert MetricsCollector().get_gauge("queue.depth") is None


class TestResetAndSummary:

    def test_reset_metric(self) -> None:
        metrics = MetricsCollector()
        metrics.increment("a")
        metrics.increment("b")
        metrics.reset_metric("a")
        assert metrics.get_metric("a") == 0
        assert metrics.get_metric("b") == 1

    def test_reset(self) -> None:
        metrics = MetricsCollector()
        metrics.increment("a")
        metrics.timing("t", 1)
        metrics.reset()
        assert metrics.get_all_metrics()["counters"] == {}
        assert metrics.get_all_metrics()["timings"] == {}

    def test_summary_top_five_counters(self) -> None:
        metrics = MetricsCollector()
        for i in range(8):
            metrics.increment(f"counter.{i}", i)
        for i in range(7):
            metrics.timing(f"timing.{i}", 5)

        summary = metrics.summary()

        assert summary["counters"] == 8
        assert summary["timings"] == 7
        assert [c["name"] for c in summary["top_counters"]] == [
            "counter.7", "counter.6", "counter.5", "counter.4", "counter.3",
        ]
        assert len(summary["top_timings"]) == 5
        assert summary["top_timings"][0]["name"] == "timing.0"

    def test_all_metrics_is_a_copy(self) -> None:
        metrics = MetricsCollector()
        metrics.timing("t", 1)
        snapshot = metrics.get_all_metrics()
        snapshot["timings"]["t"].clear()
        assert metrics.get_timing_stats("t") is not None
