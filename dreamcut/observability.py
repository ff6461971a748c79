"""
================================================================================
DREAMCUT v3.0 - OBSERVABILITY
================================================================================
Structured stage events, Prometheus metrics and OpenTelemetry spans for the
brief pipeline.

Stage events go through an injectable BriefEventSink so the pipeline never
depends on where (or whether) they are written. Every event carries the
stage name and the run id.

Author: Barrios A2I | DREAMCUT v3.0
================================================================================
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

import structlog
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode
from prometheus_client import Counter, Histogram

tracer = trace.get_tracer("dreamcut", "3.0.0")


# =============================================================================
# PROMETHEUS METRICS
# =============================================================================

STAGE_RUNS = Counter(
    'dreamcut_stage_runs_total',
    'Analysis stage invocations',
    ['stage', 'status']
)

STAGE_LATENCY = Histogram(
    'dreamcut_stage_latency_seconds',
    'Analysis stage latency',
    ['stage'],
    buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0]
)

BRIEFS = Counter(
    'dreamcut_briefs_total',
    'Brief requests by request shape and outcome',
    ['shape', 'status']
)

BRIEF_LATENCY = Histogram(
    'dreamcut_brief_latency_seconds',
    'End-to-end brief latency',
    buckets=[1, 5, 15, 30, 60, 120, 300]
)


# =============================================================================
# EVENT SINKS
# =============================================================================

class BriefEventSink(ABC):
    """Receives structured pipeline events keyed by stage and run id"""

    @abstractmethod
    def emit(self, event: str, run_id: str, stage: Optional[str] = None, **fields: Any) -> None:
        pass

    def stage_started(self, run_id: str, stage: str) -> None:
        self.emit("stage_started", run_id, stage)

    def stage_completed(self, run_id: str, stage: str, duration_ms: float) -> None:
        STAGE_RUNS.labels(stage=stage, status="ok").inc()
        STAGE_LATENCY.labels(stage=stage).observe(duration_ms / 1000)
        self.emit("stage_completed", run_id, stage, duration_ms=round(duration_ms, 1))

    def stage_degraded(self, run_id: str, stage: str, reason: str) -> None:
        STAGE_RUNS.labels(stage=stage, status="degraded").inc()
        self.emit("stage_degraded", run_id, stage, reason=reason)

    def stage_skipped(self, run_id: str, stage: str, reason: str) -> None:
        STAGE_RUNS.labels(stage=stage, status="skipped").inc()
        self.emit("stage_skipped", run_id, stage, reason=reason)

    def stage_failed(self, run_id: str, stage: str, error: str) -> None:
        STAGE_RUNS.labels(stage=stage, status="error").inc()
        self.emit("stage_failed", run_id, stage, error=error)


class StructlogEventSink(BriefEventSink):
    """Default sink: one structlog event per pipeline event"""

    def __init__(self, logger_name: str = "dreamcut.pipeline"):
        self.logger = structlog.get_logger(logger_name)

    def emit(self, event: str, run_id: str, stage: Optional[str] = None, **fields: Any) -> None:
        log = self.logger.warning if event in ("stage_degraded", "stage_failed") else self.logger.info
        log(event, run_id=run_id, stage=stage, **fields)


# =============================================================================
# TRACING
# =============================================================================

@contextmanager
def stage_span(stage: str, run_id: str, attributes: Optional[Dict[str, Any]] = None) -> Iterator[Any]:
    """Run a stage inside an OpenTelemetry span named dreamcut.<stage>"""
    span_attrs = {"dreamcut.run_id": run_id, "dreamcut.stage": stage}
    if attributes:
        span_attrs.update(attributes)

    with tracer.start_as_current_span(f"dreamcut.{stage}", attributes=span_attrs) as span:
        try:
            yield span
            span.set_status(Status(StatusCode.OK))
        except Exception as e:
            span.set_status(Status(StatusCode.ERROR, str(e)))
            span.record_exception(e)
            raise
