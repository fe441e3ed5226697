"""Per-request pipeline tracing and summary metrics."""

from __future__ import annotations

import time
import uuid
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone

from restaurant_agent.types import AccessorTrace


@dataclass(slots=True)
class TraceRecord:
    trace_id: str
    timestamp_utc: str
    question: str
    stage: str
    intent: str | None
    classifier_source: str | None
    generator_source: str | None
    accessor_traces: list[AccessorTrace]
    error: str | None
    latency_ms: float
    upstream_errors: list[str] = field(default_factory=list)


class TraceStore:
    """In-memory trace storage for API-level observability.

    Keeps at most `max_records` entries, dropping the oldest first.
    """

    def __init__(self, *, max_records: int = 1000) -> None:
        self._records: dict[str, TraceRecord] = {}
        self.max_records = max_records

    def create_record(
        self,
        *,
        question: str,
        stage: str,
        intent: str | None,
        classifier_source: str | None,
        generator_source: str | None,
        accessor_traces: list[AccessorTrace],
        error: str | None,
        latency_ms: float,
        upstream_errors: list[str] | None = None,
    ) -> TraceRecord:
        record = TraceRecord(
            trace_id=str(uuid.uuid4()),
            timestamp_utc=datetime.now(timezone.utc).isoformat(),
            question=question,
            stage=stage,
            intent=intent,
            classifier_source=classifier_source,
            generator_source=generator_source,
            accessor_traces=accessor_traces,
            error=error,
            latency_ms=latency_ms,
            upstream_errors=list(upstream_errors or []),
        )
        self._records[record.trace_id] = record
        while len(self._records) > self.max_records:
            del self._records[next(iter(self._records))]
        return record

    def get(self, trace_id: str) -> TraceRecord:
        record = self._records.get(trace_id)
        if record is None:
            raise KeyError(f"Trace not found: {trace_id}")
        return record

    def list_recent(self, limit: int = 20) -> list[TraceRecord]:
        return list(self._records.values())[-limit:]

    def summary(self) -> dict[str, float | int | dict[str, int]]:
        """Aggregate pipeline metrics for dashboard display."""
        records = list(self._records.values())
        total = len(records)
        if total == 0:
            return {
                "total_requests": 0,
                "avg_latency_ms": 0.0,
                "p95_latency_ms": 0.0,
                "classifier_fallback_rate": 0.0,
                "generator_fallback_rate": 0.0,
                "stages": {},
                "intents": {},
            }

        latencies = sorted(record.latency_ms for record in records)
        p95_index = max(0, int((len(latencies) * 0.95) - 1))
        classified = [r for r in records if r.classifier_source is not None]
        generated = [r for r in records if r.generator_source is not None]

        return {
            "total_requests": total,
            "avg_latency_ms": sum(latencies) / total,
            "p95_latency_ms": latencies[p95_index],
            "classifier_fallback_rate": _rate(
                sum(1 for r in classified if r.classifier_source != "llm"), len(classified)
            ),
            "generator_fallback_rate": _rate(
                sum(1 for r in generated if r.generator_source != "llm"), len(generated)
            ),
            "stages": dict(Counter(record.stage for record in records)),
            "intents": dict(Counter(r.intent for r in records if r.intent is not None)),
        }


class Timer:
    """Simple context timer used by the dispatcher."""

    def __init__(self) -> None:
        self._start = 0.0
        self.elapsed_ms = 0.0

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.elapsed_ms = (time.perf_counter() - self._start) * 1000.0


def _rate(count: int, total: int) -> float:
    return count / total if total else 0.0
