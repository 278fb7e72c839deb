"""
Execution graph builder.

Turns a flat list of stepped observations into a small directed graph:
1. Bucket observations by step and by node label
2. Give each ``session.failure`` observation its own numbered node
3. Prune parser container nodes
4. Normalize parser names and merge nodes that normalize alike
5. Generate edges from turn chains, or from steps when no turns exist
"""

from itertools import chain
from typing import Optional

from ...models import (
    END_NODE_NAME,
    PARSER_NODE_TYPE,
    START_NODE_NAME,
    SYSTEM_NODE_TYPE,
    UNKNOWN_NODE_TYPE,
    GraphCanvasData,
    GraphEdge,
    GraphNode,
    GraphParseResult,
    Observation,
    ObservationLevel,
)
from ...utils.datetime import to_epoch_ms
from ...utils.logger import debug
from ..classification import (
    FAILURE_OBSERVATION_NAME,
    NodeKind,
    classify_node_name,
    is_failure_observation_name,
    is_kernel_observation_name,
)
from ..node_names import (
    PARSER_NODE_PREFIX,
    format_parser_node_name,
    is_parser_container_node_name,
    is_session_turn_node_name,
    match_tool_result_ui_node,
    normalize_parser_node_name_for_graph,
)
from ..turn_windows import TurnCursor, build_turn_windows
from .context import ChronoEntry, EdgeSet, GraphContext
from .steps import build_step_edges
from .turns import build_turn_chain_edges


SYSTEM_NODE_NAMES = frozenset({START_NODE_NAME, END_NODE_NAME})


def _chronological_key(obs: Observation) -> tuple[float, str]:
    return (to_epoch_ms(obs.start_time), obs.id)


def _normalize(raw_name: str) -> str:
    return normalize_parser_node_name_for_graph(raw_name) or raw_name


def assign_failure_node_names(ordered: list[Observation]) -> dict[str, str]:
    """Number failure observations in chronological order.

    Args:
        ordered: Observations sorted by (start time, id)

    Returns:
        Dict of observation id -> ``session.failure.<n>`` (1-based)
    """
    failures = [o for o in ordered if is_failure_observation_name(o.name)]
    return {
        obs.id: f"{FAILURE_OBSERVATION_NAME}.{idx}"
        for idx, obs in enumerate(failures, start=1)
    }


def _level_rank(level: Optional[str]) -> int:
    if level is None:
        return -1
    try:
        return ObservationLevel(level).rank
    except ValueError:
        return -1


def _first_status_message(
    observations: list[Observation], level: ObservationLevel
) -> Optional[str]:
    for obs in observations:
        if obs.level == level and obs.status_message:
            return obs.status_message
    return None


def _build_graph_node(
    node_name: str, raw_name: Optional[str], observations: list[Observation]
) -> GraphNode:
    if node_name in SYSTEM_NODE_NAMES:
        return GraphNode(id=node_name, label=node_name, type=SYSTEM_NODE_TYPE)

    is_parser = node_name.startswith(PARSER_NODE_PREFIX)

    level = None
    if observations:
        most_severe = max(observations, key=lambda o: _level_rank(o.level))
        if _level_rank(most_severe.level) >= 0:
            level = ObservationLevel(most_severe.level)

    title = _first_status_message(observations, ObservationLevel.ERROR) or (
        _first_status_message(observations, ObservationLevel.WARNING)
    )

    if is_parser:
        return GraphNode(
            id=node_name,
            label=format_parser_node_name(raw_name) or node_name,
            type=PARSER_NODE_TYPE,
            title=title or raw_name,
            level=level,
        )

    first = observations[0] if observations else None
    return GraphNode(
        id=node_name,
        label=node_name,
        type=(first.type if first else None) or UNKNOWN_NODE_TYPE,
        title=title,
        level=level,
    )


def compute_forced_parents(context: GraphContext) -> dict[str, str]:
    """Parent links the step layout would otherwise miss.

    - non-parser nodes inside a turn window hang under the turn marker
    - ``parser.<tool>.<n>`` hangs under ``<tool>.<n>``
    - structured output hangs under the latest kernel node

    Returns:
        Dict of child node name -> parent node name
    """
    forced: dict[str, str] = {}
    latest_kernel: Optional[str] = None
    cursor = TurnCursor(context.turns)

    for entry in context.chrono:
        name = entry.node_name
        kind = classify_node_name(name, entry.observation_name)
        turn = cursor.advance(entry.start_ms)

        if (
            turn
            and name != turn.key
            and not kind.is_parser
            and context.node_exists(turn.key)
            and context.node_exists(name)
            and name not in forced
        ):
            forced[name] = turn.key

        if kind is NodeKind.PARSER_TOOL_RESULT:
            parent = match_tool_result_ui_node(name)
            if context.node_exists(name) and context.node_exists(parent):
                forced[name] = parent

        is_kernel = is_kernel_observation_name(entry.observation_name)
        if is_kernel and context.node_exists(name):
            latest_kernel = name

        if (
            kind is NodeKind.PARSER_STRUCTURED_OUTPUT
            and latest_kernel
            and context.node_exists(name)
        ):
            forced[name] = latest_kernel

    return forced


def build_graph_from_step_data(observations: list[Observation]) -> GraphParseResult:
    """Build the execution graph of one trace.

    Args:
        observations: Observations in any order; ``node`` and ``step`` drive
            the layout, observations without a node are ignored

    Returns:
        GraphParseResult with nodes, deduplicated edges and the normalized
        node name -> observation ids index
    """
    if not observations:
        return GraphParseResult(graph=GraphCanvasData(), node_to_observations_map={})

    ordered = sorted(observations, key=_chronological_key)
    failure_names = assign_failure_node_names(ordered)

    def raw_node_name(obs: Observation) -> Optional[str]:
        return failure_names.get(obs.id) or obs.node

    # Dicts with None values keep first-seen order for determinism
    step_to_raw: dict[int, dict[str, None]] = {}
    raw_to_observations: dict[str, list[str]] = {}
    for obs in ordered:
        raw = raw_node_name(obs)
        if raw is None:
            continue
        if obs.step is not None:
            step_to_raw.setdefault(obs.step, {})[raw] = None
        if raw not in SYSTEM_NODE_NAMES:
            raw_to_observations.setdefault(raw, []).append(obs.id)

    stepped_raw = chain.from_iterable(step_to_raw.values())
    pruned = {
        raw
        for raw in chain(stepped_raw, raw_to_observations)
        if is_parser_container_node_name(raw, keep_structured_output=True)
    }
    for step in list(step_to_raw):
        for raw in pruned.intersection(step_to_raw[step]):
            del step_to_raw[step][raw]
        if not step_to_raw[step]:
            del step_to_raw[step]
    for raw in pruned:
        raw_to_observations.pop(raw, None)

    normalized_to_raw: dict[str, str] = {}
    min_step: dict[str, int] = {}
    for step in sorted(step_to_raw):
        for raw in step_to_raw[step]:
            normalized = _normalize(raw)
            min_step.setdefault(normalized, step)
            normalized_to_raw.setdefault(normalized, raw)

    step_nodes: dict[int, list[str]] = {}
    for normalized, step in min_step.items():
        step_nodes.setdefault(step, []).append(normalized)

    node_observations: dict[str, list[str]] = {}
    for raw, ids in raw_to_observations.items():
        normalized = _normalize(raw)
        node_observations.setdefault(normalized, []).extend(ids)
        normalized_to_raw.setdefault(normalized, raw)

    by_id: dict[str, Observation] = {}
    for obs in ordered:
        by_id.setdefault(obs.id, obs)

    node_names = list(
        dict.fromkeys([START_NODE_NAME, *node_observations, END_NODE_NAME])
    )
    nodes = [
        _build_graph_node(
            name,
            normalized_to_raw.get(name),
            [by_id[i] for i in node_observations.get(name, []) if i in by_id],
        )
        for name in node_names
    ]

    chrono = [
        ChronoEntry(
            observation_name=obs.name,
            node_name=_normalize(raw_node_name(obs)),
            start_ms=to_epoch_ms(obs.start_time),
        )
        for obs in ordered
        if obs.step is not None
        and raw_node_name(obs) is not None
        and raw_node_name(obs) not in pruned
    ]
    turns = build_turn_windows(
        (e.start_ms, e.node_name)
        for e in chrono
        if is_session_turn_node_name(e.node_name)
    )
    context = GraphContext(
        node_observations=node_observations,
        step_nodes=step_nodes,
        chrono=chrono,
        turns=turns,
    )

    edges = EdgeSet()
    if turns:
        build_turn_chain_edges(context, edges)
    else:
        build_step_edges(context, compute_forced_parents(context), edges)

    debug(
        f"[GraphBuilder] Built graph: {len(nodes)} nodes, {len(edges)} edges, "
        f"{len(turns)} turns, {len(pruned)} pruned containers"
    )
    return GraphParseResult(
        graph=GraphCanvasData(
            nodes=nodes, edges=[GraphEdge(from_=f, to=t) for f, t in edges]
        ),
        node_to_observations_map=node_observations,
    )
