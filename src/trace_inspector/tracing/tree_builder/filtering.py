"""
Phase 1 of tree building: filter observations and reconcile parents.

Steps, in order:
1. Drop parser container observations (always hidden from trace views).
2. Drop observations below the minimum level (counted as hidden).
3. Re-parent survivors whose parent was dropped onto the nearest surviving
   ancestor of the original parent chain.
4. Apply UI-only heuristics in chronological order:
   - turn containment: parentless observations inside a ``session.turn.<n>``
     window go under that turn (a window ends where the next turn starts)
   - ``parser.<tool>.<n>`` tool results go under the latest ``<tool>.<n>``
   - ``parser.pre_<tool>.<n>`` markers become the parent of the next TOOL
     observation displayed as ``<tool>.<n>``
5. Break any parent cycle the heuristics introduced.

The caller's observations are never mutated; this phase works on copies.
"""

import dataclasses
from typing import Optional

from ...models import Observation, ObservationLevel
from ...utils.datetime import to_epoch_ms
from ...utils.logger import warn
from ..classification import NodeKind, classify_node_name
from ..node_names import (
    is_parser_container_node_name,
    is_session_turn_node_name,
    match_tool_pre_ui_node,
    match_tool_result_ui_node,
    ui_node_name,
)
from ..turn_windows import TurnCursor, TurnWindow, build_turn_windows
from .helpers import chronological_key, get_observation_levels


TOOL_OBSERVATION_TYPE = "TOOL"


def filter_and_prepare_observations(
    observations: list[Observation],
    min_level: Optional[ObservationLevel] = None,
) -> tuple[list[Observation], int]:
    """Filter, re-parent and chronologically sort observations.

    Args:
        observations: Raw observations of one trace (any order)
        min_level: Severity threshold; lower levels are hidden

    Returns:
        Tuple of (prepared observations sorted by start time,
        hidden_observations_count)
    """
    if not observations:
        return [], 0

    without_containers = [
        o for o in observations if not is_parser_container_node_name(o.name)
    ]

    allowed_levels = set(get_observation_levels(min_level))
    kept = [
        dataclasses.replace(o)
        for o in without_containers
        if o.level in allowed_levels
    ]
    hidden_count = len(without_containers) - len(kept)

    parent_by_id = {o.id: o.parent_observation_id for o in observations}
    kept_ids = {o.id for o in kept}
    for obs in kept:
        obs.parent_observation_id = _nearest_kept_ancestor(
            obs.parent_observation_id, parent_by_id, kept_ids
        )

    chronological = _drop_duplicate_ids(sorted(kept, key=chronological_key))
    _apply_ui_reparenting(chronological)
    _break_parent_cycles(chronological)

    return chronological, hidden_count


def _drop_duplicate_ids(chronological: list[Observation]) -> list[Observation]:
    """Keep the earliest observation per id."""
    seen: set[str] = set()
    unique = []
    for obs in chronological:
        if obs.id in seen:
            continue
        seen.add(obs.id)
        unique.append(obs)
    if len(unique) != len(chronological):
        warn(
            f"[TreeBuilder] Dropped {len(chronological) - len(unique)} "
            "observations with duplicate ids"
        )
    return unique


def _nearest_kept_ancestor(
    parent_id: Optional[str],
    parent_by_id: dict[str, Optional[str]],
    kept_ids: set[str],
) -> Optional[str]:
    """Walk up the original parent chain until a kept observation is found."""
    visited: set[str] = set()
    while parent_id and parent_id not in kept_ids:
        if parent_id in visited:
            return None
        visited.add(parent_id)
        parent_id = parent_by_id.get(parent_id)
    return parent_id or None


def _turn_windows(chronological: list[Observation]) -> list[TurnWindow]:
    return build_turn_windows(
        (to_epoch_ms(o.start_time), o.id)
        for o in chronological
        if is_session_turn_node_name(o.name)
    )


def _apply_ui_reparenting(chronological: list[Observation]) -> None:
    cursor = TurnCursor(_turn_windows(chronological))

    latest_id_by_name: dict[str, str] = {}
    latest_pre_id_by_tool_node: dict[str, str] = {}

    for obs in chronological:
        ui_name = ui_node_name(obs.name)
        kind = classify_node_name(ui_name, obs.name)

        turn = cursor.advance(to_epoch_ms(obs.start_time))
        if turn and obs.id != turn.key and obs.parent_observation_id is None:
            obs.parent_observation_id = turn.key

        if kind is NodeKind.PARSER_TOOL_RESULT:
            tool_node_id = latest_id_by_name.get(match_tool_result_ui_node(ui_name))
            if tool_node_id and tool_node_id != obs.id:
                obs.parent_observation_id = tool_node_id

        if kind is NodeKind.PARSER_TOOL_PRE:
            latest_pre_id_by_tool_node[match_tool_pre_ui_node(ui_name)] = obs.id
        if obs.type == TOOL_OBSERVATION_TYPE:
            pre_id = latest_pre_id_by_tool_node.get(ui_name)
            if pre_id and pre_id != obs.id:
                obs.parent_observation_id = pre_id

        if obs.name is not None:
            latest_id_by_name[obs.name] = obs.id


def _break_parent_cycles(observations: list[Observation]) -> None:
    """Detach the link that closes a parent cycle so every node stays reachable.

    Walks are processed in chronological order; the observation whose parent
    pointer re-enters the current walk becomes a root.
    """
    by_id = {o.id: o for o in observations}
    state: dict[str, int] = {}  # walk number that first visited the node

    for walk, start in enumerate(observations):
        node: Optional[Observation] = start
        while node is not None and node.id not in state:
            state[node.id] = walk
            parent_id = node.parent_observation_id
            if parent_id is None:
                break
            parent = by_id.get(parent_id)
            if parent is None:
                node.parent_observation_id = None
                break
            if state.get(parent.id) == walk:
                node.parent_observation_id = None
                break
            node = parent
