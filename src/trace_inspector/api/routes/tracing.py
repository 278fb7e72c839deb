"""
Tracing Routes - Tree, graph and I/O source endpoints.

Each endpoint takes an already-fetched trace as JSON, runs one builder and
returns the result in the standard ``{"success": ..., "data": ...}`` envelope.

Status codes:
- 400: malformed body (PayloadError)
- 413: more observations than settings.max_observations
- 500: unexpected failure
"""

import traceback
from typing import Any

from flask import Blueprint, jsonify, request

from ...models import ObservationLevel
from ...tracing import (
    build_graph_from_step_data,
    build_kernel_observation_io_source_map,
    build_trace_ui_data,
    transform_langgraph_to_generalized,
)
from ...tracing.serialization import (
    graph_result_to_dict,
    io_sources_to_dict,
    observations_from_list,
    trace_from_dict,
    trace_ui_data_to_dict,
)
from ...utils.logger import debug, error, log_context
from ...utils.settings import get_settings

tracing_bp = Blueprint("tracing", __name__)

GRAPH_FORMATS = ("langgraph", "generalized")


class PayloadError(ValueError):
    """Request body is missing fields or carries malformed values."""


class TraceTooLargeError(Exception):
    """More observations than the configured limit."""


# =============================================================================
# Helper Functions
# =============================================================================


def _json_body() -> dict:
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise PayloadError("Request body must be a JSON object")
    return body


def _parse_observations(body: dict) -> list:
    raw = body.get("observations")
    if raw is None:
        raise PayloadError("Missing 'observations'")
    if not isinstance(raw, list):
        raise PayloadError("'observations' must be a list")

    limit = get_settings().max_observations
    if len(raw) > limit:
        raise TraceTooLargeError(
            f"Trace too large: {len(raw)} observations (limit {limit})"
        )

    try:
        return observations_from_list(raw)
    except ValueError as e:
        raise PayloadError(str(e)) from e


def _parse_min_level(value: Any) -> ObservationLevel | None:
    if value is None:
        default = get_settings().default_min_level
        return ObservationLevel(default) if default else None
    try:
        return ObservationLevel(value)
    except ValueError:
        raise PayloadError(f"Invalid minLevel: {value!r}") from None


def _run(label: str, handler):
    """Run a handler and map failures onto the standard error envelope."""
    with log_context(auto_request_id=True):
        try:
            return jsonify({"success": True, "data": handler(_json_body())})
        except PayloadError as e:
            debug(f"[API] Rejected {label} request: {e}")
            return jsonify({"success": False, "error": str(e)}), 400
        except TraceTooLargeError as e:
            debug(f"[API] Rejected {label} request: {e}")
            return jsonify({"success": False, "error": str(e)}), 413
        except Exception as e:
            error(f"[API] Error building {label}: {e}")
            error(traceback.format_exc())
            return jsonify({"success": False, "error": str(e)}), 500


# =============================================================================
# Routes
# =============================================================================


def _tree(body: dict) -> dict:
    if "trace" not in body:
        raise PayloadError("Missing 'trace'")
    try:
        trace = trace_from_dict(body["trace"])
    except ValueError as e:
        raise PayloadError(str(e)) from e
    observations = _parse_observations(body)
    min_level = _parse_min_level(body.get("minLevel"))

    data = build_trace_ui_data(trace, observations, min_level)
    return trace_ui_data_to_dict(data)


def _graph(body: dict) -> dict:
    observations = _parse_observations(body)
    graph_format = body.get("format", "langgraph")
    if graph_format not in GRAPH_FORMATS:
        raise PayloadError(f"Invalid format: {graph_format!r}")

    if graph_format == "langgraph":
        observations = transform_langgraph_to_generalized(observations)
    return graph_result_to_dict(build_graph_from_step_data(observations))


def _io_sources(body: dict) -> dict:
    observations = _parse_observations(body)
    return io_sources_to_dict(build_kernel_observation_io_source_map(observations))


@tracing_bp.route("/api/tracing/tree", methods=["POST"])
def get_trace_tree():
    """Build the cost-aggregated trace tree.

    Body: ``{"trace": {...}, "observations": [...], "minLevel": "WARNING"}``
    """
    return _run("trace tree", _tree)


@tracing_bp.route("/api/tracing/graph", methods=["POST"])
def get_trace_graph():
    """Build the execution graph.

    Body: ``{"observations": [...], "format": "langgraph" | "generalized"}``
    """
    return _run("trace graph", _graph)


@tracing_bp.route("/api/tracing/io-sources", methods=["POST"])
def get_io_sources():
    """Pair kernel observations with the observations carrying their I/O."""
    return _run("io sources", _io_sources)
