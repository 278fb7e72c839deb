"""
Test Data Builders - Fluent API for creating trace test data.

Builder pattern provides chainable methods for constructing observations and
traces with sensible defaults that can be overridden.

Usage:
    from tests.builders import ObservationBuilder, TraceBuilder

    # One observation, 250ms after the base time
    obs = ObservationBuilder("obs-1").named("agent").at(250).build()

    # A whole trace
    trace = (TraceBuilder("trace-1")
        .add(ObservationBuilder("root").named("root").at(0))
        .add(ObservationBuilder("child").under("root").at(10).with_cost(total="0.5"))
        )
    tree = build_trace_ui_data(trace.build_trace(), trace.build_observations())
"""

from .observation import BASE_TIME, ObservationBuilder
from .trace import TraceBuilder

__all__ = ["BASE_TIME", "ObservationBuilder", "TraceBuilder"]
