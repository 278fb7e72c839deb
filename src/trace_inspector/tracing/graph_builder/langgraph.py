"""
LangGraph trace generalization.

LangGraph records the flow-graph node of each step in ``node``. Before those
observations can feed build_graph_from_step_data they are reduced to the
generalized shape: unlabeled observations are dropped, legacy tool-result
names are rewritten and the synthetic start/end system nodes are ensured.
"""

import dataclasses
from datetime import datetime, timezone

from ...models import END_NODE_NAME, START_NODE_NAME, SYSTEM_NODE_TYPE, Observation
from ..node_names import normalize_tool_result_node_name

# LangGraph and the generalized graph share the same system node names
LANGGRAPH_START_NODE_NAME = START_NODE_NAME
LANGGRAPH_END_NODE_NAME = END_NODE_NAME


def _system_observation(name: str, step: int, at: datetime) -> Observation:
    return Observation(
        id=name,
        name=name,
        node=name,
        step=step,
        start_time=at,
        end_time=at,
        type=SYSTEM_NODE_TYPE,
    )


def transform_langgraph_to_generalized(
    observations: list[Observation],
) -> list[Observation]:
    """Convert LangGraph observations into the generalized graph input.

    Args:
        observations: Raw LangGraph observations

    Returns:
        New observation list; inputs are not modified. A start node at step 0
        and an end node at max step + 1 are appended when missing, timed at
        the earliest and latest observation start.
    """
    transformed = []
    for obs in observations:
        if not obs.node or not obs.node.strip():
            continue

        # The flow label doubles as the display name
        node = normalize_tool_result_node_name(obs.node) or obs.node
        copy = dataclasses.replace(obs, node=node, name=node)

        if obs.node == LANGGRAPH_START_NODE_NAME:
            copy.id = copy.name = START_NODE_NAME
        elif obs.node == LANGGRAPH_END_NODE_NAME:
            copy.id = copy.name = END_NODE_NAME
        transformed.append(copy)

    starts = [o.start_time for o in observations]
    earliest = min(starts) if starts else datetime.now(timezone.utc)
    latest = max(starts) if starts else earliest

    names = {o.name for o in transformed}
    if START_NODE_NAME not in names:
        transformed.append(_system_observation(START_NODE_NAME, 0, earliest))
    if END_NODE_NAME not in names:
        max_step = max((o.step or 0 for o in transformed), default=0)
        transformed.append(_system_observation(END_NODE_NAME, max_step + 1, latest))

    return transformed
