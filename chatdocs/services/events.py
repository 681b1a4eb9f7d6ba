# =============================================================================
# Pipeline Stage Events — Structured Observability Hooks
# =============================================================================
#
# Both orchestrators emit one StageEvent per stage boundary:
#   ingest: validate → parse → split → enrich → store
#   query:  retrieve → build_context → generate
#
# The orchestrators only know the EventSink protocol. What happens to the
# events (log lines, Prometheus histograms, both) is decided when the
# services are wired up in chatdocs/api/dependencies.py.
#
# ARCHITECTURE:
#   EventSink (Protocol)
#   ├── LoggingEventSink     — one structured log line per event
#   ├── PrometheusEventSink  — stage latency histogram + outcome counter
#   └── CompositeEventSink   — fan-out to several sinks
#   track_stage()            — context manager that times a block and emits
# =============================================================================

from __future__ import annotations

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Protocol

from prometheus_client import Counter, Histogram

logger = logging.getLogger(__name__)

OUTCOME_SUCCESS = "success"
OUTCOME_EMPTY = "empty"
OUTCOME_ERROR = "error"


# ---------------------------------------------------------------------------
# Data Structures
# ---------------------------------------------------------------------------


@dataclass
class StageEvent:
    """A single pipeline stage that finished, successfully or not."""

    pipeline: str  # "ingest" or "query"
    stage: str  # e.g. "parse", "retrieve"
    duration_ms: float
    outcome: str  # success | empty | error
    detail: dict = field(default_factory=dict)


class StageOutcome:
    """
    Mutable handle yielded by track_stage().

    The block may downgrade a successful stage to "empty" (e.g. zero chunks
    retrieved) and attach counts to the event.
    """

    def __init__(self) -> None:
        self.outcome = OUTCOME_SUCCESS
        self.detail: dict = {}

    def mark_empty(self) -> None:
        self.outcome = OUTCOME_EMPTY


# ---------------------------------------------------------------------------
# Protocol Definition
# ---------------------------------------------------------------------------


class EventSink(Protocol):
    """Anything that can receive stage events."""

    def emit(self, event: StageEvent) -> None:
        ...


# ---------------------------------------------------------------------------
# Implementations
# ---------------------------------------------------------------------------


class LoggingEventSink:
    """Writes each stage event as a log line with key=value fields."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._log = log or logger

    def emit(self, event: StageEvent) -> None:
        level = logging.WARNING if event.outcome == OUTCOME_ERROR else logging.INFO
        extras = " ".join(f"{k}={v}" for k, v in sorted(event.detail.items()))
        self._log.log(
            level,
            "stage pipeline=%s stage=%s outcome=%s duration_ms=%.1f %s",
            event.pipeline,
            event.stage,
            event.outcome,
            event.duration_ms,
            extras,
        )


# Prometheus collectors are process-global; registering them twice raises.
STAGE_LATENCY = Histogram(
    "chatdocs_stage_duration_seconds",
    "Latency per pipeline stage",
    ["pipeline", "stage", "outcome"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1, 2, 5, 10, 30),
)

STAGE_EVENTS = Counter(
    "chatdocs_stage_events_total",
    "Pipeline stage completions by outcome",
    ["pipeline", "stage", "outcome"],
)


class PrometheusEventSink:
    """Feeds stage events into the process-wide Prometheus registry."""

    def emit(self, event: StageEvent) -> None:
        labels = (event.pipeline, event.stage, event.outcome)
        STAGE_LATENCY.labels(*labels).observe(event.duration_ms / 1000)
        STAGE_EVENTS.labels(*labels).inc()


class CompositeEventSink:
    """Forwards every event to each wrapped sink in order."""

    def __init__(self, *sinks: EventSink) -> None:
        self._sinks = list(sinks)

    def emit(self, event: StageEvent) -> None:
        for sink in self._sinks:
            sink.emit(event)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


@contextmanager
def track_stage(
    sink: EventSink,
    pipeline: str,
    stage: str,
) -> Iterator[StageOutcome]:
    """
    Time the wrapped block and emit a StageEvent when it exits.

    Exceptions are recorded with outcome "error" and re-raised unchanged.

    Usage:
        with track_stage(events, "query", "retrieve") as stage:
            docs = await store.similarity_search(question, top_k)
            stage.detail["results"] = len(docs)
            if not docs:
                stage.mark_empty()
    """
    outcome = StageOutcome()
    start = time.perf_counter()
    try:
        yield outcome
    except BaseException as exc:
        outcome.outcome = OUTCOME_ERROR
        outcome.detail["error"] = type(exc).__name__
        raise
    finally:
        sink.emit(StageEvent(
            pipeline=pipeline,
            stage=stage,
            duration_ms=(time.perf_counter() - start) * 1000,
            outcome=outcome.outcome,
            detail=dict(outcome.detail),
        ))
