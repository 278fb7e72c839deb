"""
Trace tree construction (phases 2-4).

Builds the aggregated TreeNode hierarchy from prepared observations:
- dependency registry with BFS depths and child-count in-degrees
- bottom-up Kahn processing so every parent sees finished children
- TRACE wrapper, root ordering and the pre-order search list

Every traversal uses an explicit queue or stack; deep traces never touch
the interpreter's recursion limit.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from ...models import (
    TRACE_NODE_TYPE,
    Observation,
    ObservationLevel,
    SearchItem,
    TraceInfo,
    TraceUiData,
    TreeNode,
)
from ...utils.datetime import to_epoch_ms
from ...utils.logger import debug
from ..node_names import ui_node_name
from .filtering import filter_and_prepare_observations
from .helpers import own_cost, sum_costs


@dataclass
class _ProcessingNode:
    """Mutable bookkeeping for one observation while the tree is built."""

    observation: Observation
    children_ids: list[str] = field(default_factory=list)
    in_degree: int = 0
    depth: int = 0
    tree_node: Optional[TreeNode] = None


def _build_dependency_graph(
    observations: list[Observation],
) -> tuple[dict[str, _ProcessingNode], list[str]]:
    """Phase 2: registry, depths and leaves.

    Args:
        observations: Prepared observations in chronological order

    Returns:
        Tuple of (registry keyed by id, leaf ids)
    """
    registry: dict[str, _ProcessingNode] = {}
    for obs in observations:
        registry[obs.id] = _ProcessingNode(observation=obs)

    # Children keep chronological order because observations are pre-sorted
    for obs in observations:
        parent = registry.get(obs.parent_observation_id or "")
        if parent is not None:
            parent.children_ids.append(obs.id)

    root_ids = [
        node_id
        for node_id, node in registry.items()
        if node.observation.parent_observation_id not in registry
    ]

    queue = list(root_ids)
    idx = 0
    while idx < len(queue):
        current = registry[queue[idx]]
        idx += 1
        for child_id in current.children_ids:
            registry[child_id].depth = current.depth + 1
            queue.append(child_id)

    leaf_ids = []
    for node_id, node in registry.items():
        node.in_degree = len(node.children_ids)
        if node.in_degree == 0:
            leaf_ids.append(node_id)

    return registry, leaf_ids


def _build_tree_nodes_bottom_up(
    registry: dict[str, _ProcessingNode],
    leaf_ids: list[str],
    node_map: dict[str, TreeNode],
    trace_start_ms: float,
) -> list[str]:
    """Phase 3: finalize nodes leaves-first and return the root ids."""
    queue = list(leaf_ids)
    idx = 0
    root_ids: list[str] = []

    while idx < len(queue):
        current_id = queue[idx]
        idx += 1
        current = registry[current_id]
        obs = current.observation

        children = [
            registry[child_id].tree_node
            for child_id in current.children_ids
            if registry[child_id].tree_node is not None
        ]

        total_cost = sum_costs([own_cost(obs)] + [c.total_cost for c in children])

        start_ms = to_epoch_ms(obs.start_time)
        parent = registry.get(obs.parent_observation_id or "")
        since_parent = None
        if parent is not None:
            since_parent = start_ms - to_epoch_ms(parent.observation.start_time)

        children_depth = (
            max(c.children_depth for c in children) + 1 if children else 0
        )

        tree_node = TreeNode(
            id=obs.id,
            type=obs.type,
            name=ui_node_name(obs.name),
            start_time=obs.start_time,
            end_time=obs.end_time,
            level=obs.level,
            children=children,
            input_usage=obs.input_usage,
            output_usage=obs.output_usage,
            total_usage=obs.total_usage,
            calculated_input_cost=obs.input_cost,
            calculated_output_cost=obs.output_cost,
            calculated_total_cost=obs.total_cost,
            parent_observation_id=obs.parent_observation_id,
            trace_id=obs.trace_id,
            total_cost=total_cost,
            start_time_since_trace=start_ms - trace_start_ms,
            start_time_since_parent_start=since_parent,
            depth=current.depth,
            children_depth=children_depth,
        )
        current.tree_node = tree_node
        node_map[current_id] = tree_node

        if parent is not None:
            parent.in_degree -= 1
            if parent.in_degree == 0:
                queue.append(obs.parent_observation_id)
        else:
            root_ids.append(current_id)

    return root_ids


def _make_trace_node(trace: TraceInfo, roots: list[TreeNode]) -> TreeNode:
    return TreeNode(
        id=f"trace-{trace.id}",
        type=TRACE_NODE_TYPE,
        name=trace.name or "",
        start_time=trace.timestamp,
        end_time=None,
        children=roots,
        latency=trace.latency,
        total_cost=sum_costs(r.total_cost for r in roots),
        start_time_since_trace=0,
        start_time_since_parent_start=None,
        # Children of the wrapper start at depth 0
        depth=-1,
        children_depth=max(r.children_depth for r in roots) + 1 if roots else 0,
    )


def _build_trace_tree(
    trace: TraceInfo,
    observations: list[Observation],
    min_level: Optional[ObservationLevel],
) -> tuple[list[TreeNode], int, dict[str, TreeNode]]:
    prepared, hidden_count = filter_and_prepare_observations(observations, min_level)
    events_rooted = bool(trace.root_observation_type)

    if not prepared:
        if events_rooted:
            return [], hidden_count, {}
        empty = _make_trace_node(trace, [])
        return [empty], hidden_count, {empty.id: empty}

    registry, leaf_ids = _build_dependency_graph(prepared)

    node_map: dict[str, TreeNode] = {}
    root_ids = _build_tree_nodes_bottom_up(
        registry, leaf_ids, node_map, to_epoch_ms(trace.timestamp)
    )

    roots = [registry[r].tree_node for r in root_ids if registry[r].tree_node]
    roots.sort(key=lambda n: (to_epoch_ms(n.start_time), n.id))

    if events_rooted:
        return roots, hidden_count, node_map

    trace_node = _make_trace_node(trace, roots)
    node_map[trace_node.id] = trace_node
    return [trace_node], hidden_count, node_map


def _root_duration_ms(node: TreeNode) -> float:
    if node.latency:
        return node.latency * 1000
    if node.end_time is not None:
        return to_epoch_ms(node.end_time) - to_epoch_ms(node.start_time)
    return 0


def _build_search_items(roots: list[TreeNode]) -> list[SearchItem]:
    """Pre-order flattening with the cross-root maxima for heatmap scaling."""
    root_total_cost: Optional[Decimal] = sum_costs(r.total_cost for r in roots)
    root_duration = max(_root_duration_ms(r) for r in roots)

    items: list[SearchItem] = []
    stack = list(reversed(roots))
    while stack:
        node = stack.pop()
        items.append(
            SearchItem(
                node=node,
                parent_total_cost=root_total_cost,
                parent_total_duration=root_duration,
                observation_id=None if node.type == TRACE_NODE_TYPE else node.id,
            )
        )
        stack.extend(reversed(node.children))
    return items


def build_trace_ui_data(
    trace: TraceInfo,
    observations: list[Observation],
    min_level: Optional[ObservationLevel] = None,
) -> TraceUiData:
    """Build the aggregated tree view of one trace.

    Args:
        trace: Trace record; root_observation_type set means events-rooted
            (observations are returned as roots, no TRACE wrapper)
        observations: Observations of the trace in any order
        min_level: Hide observations below this severity

    Returns:
        TraceUiData with roots, id lookup, pre-order search items and the
        number of observations hidden by the level filter
    """
    if min_level is not None:
        min_level = ObservationLevel(min_level)

    roots, hidden_count, node_map = _build_trace_tree(trace, observations, min_level)

    search_items = _build_search_items(roots) if roots else []

    debug(
        f"[TreeBuilder] Built tree for trace {trace.id}: "
        f"{len(node_map)} nodes, {len(roots)} roots, {hidden_count} hidden"
    )
    return TraceUiData(
        roots=roots,
        node_map=node_map,
        search_items=search_items,
        hidden_observations_count=hidden_count,
    )
