"""
JSON conversion for trace records and builder outputs.

Input dicts use camelCase keys (snake_case is accepted too). Outputs are
camelCase, decimals are rendered as strings and datetimes as ISO 8601 so no
precision is lost in transport.

The tree is emitted flat: ``roots`` lists root ids and every node carries
``childIds``. Serializing never recurses, whatever the tree depth.
"""

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from ..models import (
    GraphParseResult,
    Observation,
    ObservationIoSource,
    ObservationLevel,
    TraceInfo,
    TraceUiData,
    TreeNode,
)
from ..utils.datetime import parse_timestamp


def _get(data: dict, camel: str, snake: Optional[str] = None) -> Any:
    if camel in data:
        return data[camel]
    if snake is not None:
        return data.get(snake)
    return None


def _iso(dt: Optional[datetime]) -> Optional[str]:
    return dt.isoformat() if dt else None


def _level(level: Optional[str]) -> Optional[str]:
    return ObservationLevel(level).value if level else None


def _decimal(value: Any, field_name: str) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    try:
        # str() keeps float inputs from dragging binary noise into the decimal
        return Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Invalid decimal for {field_name}: {value!r}") from None


def _decimal_str(value: Optional[Decimal]) -> Optional[str]:
    return str(value) if value is not None else None


def _number(value: Any, field_name: str) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"Invalid number for {field_name}: {value!r}")
    return value


def _timestamp(
    value: Any, field_name: str, required: bool = False
) -> Optional[datetime]:
    try:
        dt = parse_timestamp(value)
    except (TypeError, ValueError, OverflowError, OSError):
        raise ValueError(f"Invalid timestamp for {field_name}: {value!r}") from None
    if dt is None and required:
        raise ValueError(f"Missing {field_name}")
    return dt


def observation_from_dict(data: dict) -> Observation:
    """Build an Observation from a JSON object.

    Raises:
        ValueError: If required fields are missing or a value is malformed
    """
    if not isinstance(data, dict):
        raise ValueError("Observation must be an object")

    obs_id = data.get("id")
    if not obs_id or not isinstance(obs_id, str):
        raise ValueError("Observation id must be a non-empty string")

    step = data.get("step")
    if step is not None and (isinstance(step, bool) or not isinstance(step, int)):
        raise ValueError(f"Invalid step for observation {obs_id}: {step!r}")

    obs_type = data.get("type") or _get(data, "observationType", "observation_type")

    level = data.get("level") or ObservationLevel.DEFAULT
    try:
        level = ObservationLevel(level)
    except ValueError:
        raise ValueError(f"Invalid level for observation {obs_id}: {level!r}") from None

    return Observation(
        id=obs_id,
        name=data.get("name"),
        type=obs_type or "SPAN",
        node=data.get("node"),
        step=step,
        parent_observation_id=_get(
            data, "parentObservationId", "parent_observation_id"
        ),
        start_time=_timestamp(
            _get(data, "startTime", "start_time"), "startTime", required=True
        ),
        end_time=_timestamp(_get(data, "endTime", "end_time"), "endTime"),
        level=level,
        status_message=_get(data, "statusMessage", "status_message"),
        trace_id=_get(data, "traceId", "trace_id"),
        total_cost=_decimal(_get(data, "totalCost", "total_cost"), "totalCost"),
        input_cost=_decimal(_get(data, "inputCost", "input_cost"), "inputCost"),
        output_cost=_decimal(_get(data, "outputCost", "output_cost"), "outputCost"),
        input_usage=_number(_get(data, "inputUsage", "input_usage"), "inputUsage"),
        output_usage=_number(
            _get(data, "outputUsage", "output_usage"), "outputUsage"
        ),
        total_usage=_number(_get(data, "totalUsage", "total_usage"), "totalUsage"),
    )


def observations_from_list(items: Any) -> list[Observation]:
    if not isinstance(items, list):
        raise ValueError("observations must be a list")
    return [observation_from_dict(item) for item in items]


def trace_from_dict(data: dict) -> TraceInfo:
    """Build a TraceInfo from a JSON object.

    Raises:
        ValueError: If id or timestamp is missing or malformed
    """
    if not isinstance(data, dict):
        raise ValueError("Trace must be an object")

    trace_id = data.get("id")
    if not trace_id or not isinstance(trace_id, str):
        raise ValueError("Trace id must be a non-empty string")

    return TraceInfo(
        id=trace_id,
        timestamp=_timestamp(data.get("timestamp"), "timestamp", required=True),
        name=data.get("name"),
        latency=_number(data.get("latency"), "latency"),
        root_observation_type=_get(
            data, "rootObservationType", "root_observation_type"
        ),
        root_observation_id=_get(data, "rootObservationId", "root_observation_id"),
    )


def observation_to_dict(obs: Observation) -> dict:
    return {
        "id": obs.id,
        "name": obs.name,
        "type": obs.type,
        "node": obs.node,
        "step": obs.step,
        "parentObservationId": obs.parent_observation_id,
        "startTime": _iso(obs.start_time),
        "endTime": _iso(obs.end_time),
        "level": _level(obs.level),
        "statusMessage": obs.status_message,
        "traceId": obs.trace_id,
        "totalCost": _decimal_str(obs.total_cost),
        "inputCost": _decimal_str(obs.input_cost),
        "outputCost": _decimal_str(obs.output_cost),
        "inputUsage": obs.input_usage,
        "outputUsage": obs.output_usage,
        "totalUsage": obs.total_usage,
    }


def tree_node_to_dict(node: TreeNode) -> dict:
    """Serialize one node; children are referenced by id only."""
    return {
        "id": node.id,
        "type": node.type,
        "name": node.name,
        "startTime": _iso(node.start_time),
        "endTime": _iso(node.end_time),
        "level": _level(node.level),
        "childIds": [child.id for child in node.children],
        "depth": node.depth,
        "childrenDepth": node.children_depth,
        "startTimeSinceTrace": node.start_time_since_trace,
        "startTimeSinceParentStart": node.start_time_since_parent_start,
        "totalCost": _decimal_str(node.total_cost),
        "calculatedInputCost": _decimal_str(node.calculated_input_cost),
        "calculatedOutputCost": _decimal_str(node.calculated_output_cost),
        "calculatedTotalCost": _decimal_str(node.calculated_total_cost),
        "inputUsage": node.input_usage,
        "outputUsage": node.output_usage,
        "totalUsage": node.total_usage,
        "parentObservationId": node.parent_observation_id,
        "traceId": node.trace_id,
        "latency": node.latency,
    }


def trace_ui_data_to_dict(data: TraceUiData) -> dict:
    return {
        "roots": [root.id for root in data.roots],
        "nodes": {
            node_id: tree_node_to_dict(node)
            for node_id, node in data.node_map.items()
        },
        "searchItems": [
            {
                "id": item.node.id,
                "observationId": item.observation_id,
                "parentTotalCost": _decimal_str(item.parent_total_cost),
                "parentTotalDuration": item.parent_total_duration,
            }
            for item in data.search_items
        ],
        "hiddenObservationsCount": data.hidden_observations_count,
    }


def graph_result_to_dict(result: GraphParseResult) -> dict:
    return {
        "graph": {
            "nodes": [
                {
                    "id": node.id,
                    "label": node.label,
                    "type": node.type,
                    "title": node.title,
                    "level": _level(node.level),
                }
                for node in result.graph.nodes
            ],
            "edges": [{"from": e.from_, "to": e.to} for e in result.graph.edges],
        },
        "nodeToObservationsMap": {
            name: list(ids) for name, ids in result.node_to_observations_map.items()
        },
    }


def io_sources_to_dict(sources: dict[str, ObservationIoSource]) -> dict:
    return {
        kernel_id: {
            "observationId": source.observation_id,
            "startTime": _iso(source.start_time),
        }
        for kernel_id, source in sources.items()
    }
