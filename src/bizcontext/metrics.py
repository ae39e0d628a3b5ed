"""Per-operation timing and selection counters.

The registry is passed into the components that record into it rather than
living as module state, so tests and separate engines can keep their own.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone

from pydantic import BaseModel, Field


@dataclass
class OperationMetrics:
    """Running totals for one operation name."""

    total_operations: int = 0
    total_duration_ms: float = 0.0
    total_input_sections: int = 0
    total_output_sections: int = 0
    last_operation: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class OperationAnalytics(BaseModel):
    """Aggregated view of one operation."""

    operation: str
    total_operations: int = 0
    average_duration_ms: float = 0.0
    average_input_sections: float = 0.0
    average_output_sections: float = 0.0
    selection_ratio: float = 0.0
    last_operation: datetime | None = None


class PrioritizationReport(BaseModel):
    """Read-only analytics snapshot for operational tooling."""

    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    operations: list[OperationAnalytics] = Field(default_factory=list)

    def for_operation(self, operation: str) -> OperationAnalytics | None:
        for op in self.operations:
            if op.operation == operation:
                return op
        return None


class MetricsRegistry:
    """Mutex-guarded accumulator keyed by operation name."""

    def __init__(self) -> None:
        self._metrics: dict[str, OperationMetrics] = {}
        self._lock = threading.Lock()

    def record(
        self,
        operation: str,
        duration_ms: float,
        input_sections: int,
        output_sections: int,
    ) -> None:
        with self._lock:
            metrics = self._metrics.setdefault(operation, OperationMetrics())
            metrics.total_operations += 1
            metrics.total_duration_ms += duration_ms
            metrics.total_input_sections += input_sections
            metrics.total_output_sections += output_sections
            metrics.last_operation = datetime.now(timezone.utc)

    def report(self, operation: str | None = None) -> PrioritizationReport:
        """Aggregate the counters into averages, optionally for one operation."""
        analytics: list[OperationAnalytics] = []
        with self._lock:
            for name, m in sorted(self._metrics.items()):
                if operation is not None and name != operation:
                    continue
                n = m.total_operations
                avg_in = m.total_input_sections / n if n else 0.0
                avg_out = m.total_output_sections / n if n else 0.0
                analytics.append(
                    OperationAnalytics(
                        operation=name,
                        total_operations=n,
                        average_duration_ms=m.total_duration_ms / n if n else 0.0,
                        average_input_sections=avg_in,
                        average_output_sections=avg_out,
                        selection_ratio=avg_out / avg_in if avg_in > 0 else 0.0,
                        last_operation=m.last_operation,
                    )
                )
        return PrioritizationReport(operations=analytics)

    def reset(self) -> None:
        with self._lock:
            self._metrics.clear()
