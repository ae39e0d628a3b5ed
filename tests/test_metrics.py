"""Tests for the operation metrics registry."""

from __future__ import annotations

import threading

import pytest

from bizcontext.metrics import MetricsRegistry


class TestMetricsRegistry:
    def test_empty_report(self):
        assert MetricsRegistry().report().operations == []

    def test_averages(self):
        registry = MetricsRegistry()
        registry.record("context_prioritization", 10.0, 20, 5)
        registry.record("context_prioritization", 30.0, 10, 5)

        op = registry.report().for_operation("context_prioritization")
        assert op.total_operations == 2
        assert op.average_duration_ms == pytest.approx(20.0)
        assert op.average_input_sections == pytest.approx(15.0)
        assert op.average_output_sections == pytest.approx(5.0)
        assert op.selection_ratio == pytest.approx(5.0 / 15.0)
        assert op.last_operation is not None

    def test_zero_input_ratio(self):
        registry = MetricsRegistry()
        registry.record("context_optimization", 1.0, 0, 0)
        assert registry.report().operations[0].selection_ratio == 0.0

    def test_filter_by_operation(self):
        registry = MetricsRegistry()
        registry.record("a", 1.0, 1, 1)
        registry.record("b", 1.0, 1, 1)
        report = registry.report("b")
        assert [op.operation for op in report.operations] == ["b"]
        assert report.for_operation("a") is None

    def test_reset(self):
        registry = MetricsRegistry()
        registry.record("a", 1.0, 1, 1)
        registry.reset()
        assert registry.report().operations == []

    def test_concurrent_records(self):
        registry = MetricsRegistry()

        def worker():
            for _ in range(500):
                registry.record("context_prioritization", 1.0, 4, 2)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        op = registry.report().for_operation("context_prioritization")
        assert op.total_operations == 4000
        assert op.average_input_sections == pytest.approx(4.0)
