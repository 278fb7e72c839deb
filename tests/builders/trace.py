"""
TraceBuilder - Fluent builder for a trace and its observations.

Usage:
    trace = (TraceBuilder("trace-1")
        .with_name("chat")
        .add(ObservationBuilder("a").named("agent").at(0, 100))
        .add(ObservationBuilder("b").under("a").at(10)))

    trace.build_trace()         # TraceInfo
    trace.build_observations()  # list[Observation]
    trace.build_json()          # {"trace": {...}, "observations": [...]}
"""

from __future__ import annotations

from typing import Any

from trace_inspector.models import Observation, TraceInfo

from .observation import BASE_TIME, ObservationBuilder


class TraceBuilder:
    """Fluent builder for creating trace test data."""

    def __init__(self, trace_id: str = "trace-1"):
        self._id = trace_id
        self._name: str | None = "test-trace"
        self._latency: float | None = None
        self._root_observation_type: str | None = None
        self._observations: list[ObservationBuilder | Observation] = []

    def with_name(self, name: str | None) -> TraceBuilder:
        self._name = name
        return self

    def with_latency(self, seconds: float) -> TraceBuilder:
        self._latency = seconds
        return self

    def events_rooted(self, root_observation_type: str = "AGENT") -> TraceBuilder:
        """Mark the trace as events-rooted (no TRACE wrapper node)."""
        self._root_observation_type = root_observation_type
        return self

    def add(self, *observations: ObservationBuilder | Observation) -> TraceBuilder:
        self._observations.extend(observations)
        return self

    def build_trace(self) -> TraceInfo:
        return TraceInfo(
            id=self._id,
            timestamp=BASE_TIME,
            name=self._name,
            latency=self._latency,
            root_observation_type=self._root_observation_type,
        )

    def build_observations(self) -> list[Observation]:
        return [
            o.in_trace(self._id).build() if isinstance(o, ObservationBuilder) else o
            for o in self._observations
        ]

    def build_json(self) -> dict[str, Any]:
        """Build a request body for the tree endpoint."""
        trace: dict[str, Any] = {
            "id": self._id,
            "timestamp": BASE_TIME.isoformat(),
            "name": self._name,
            "latency": self._latency,
        }
        if self._root_observation_type:
            trace["rootObservationType"] = self._root_observation_type
        return {
            "trace": trace,
            "observations": [
                o.in_trace(self._id).build_json()
                for o in self._observations
                if isinstance(o, ObservationBuilder)
            ],
        }
