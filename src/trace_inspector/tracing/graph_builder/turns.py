"""
Turn-chain edge generation.

Used when ``session.turn.<n>`` markers exist. Produces a readable graph:
- one linear chain of non-parser nodes per turn, ordered by first occurrence
- the tail of each turn links to the next turn's marker
- parser leaves hang off their semantic parent and never join a chain
- only the globally last chain node links to the end node
"""

from dataclasses import dataclass
from typing import Optional

from ...models import END_NODE_NAME, START_NODE_NAME
from ..classification import (
    TRACE_START_NODE_NAME,
    NodeKind,
    classify_node_name,
    is_kernel_observation_name,
)
from ..node_names import match_tool_call_ui_node, match_tool_result_ui_node
from ..turn_windows import TurnCursor, find_turn_window
from .context import EdgeSet, GraphContext


@dataclass
class TurnChain:
    turn_node: str
    chain: list[str]


def _collect_turn_members(
    context: GraphContext,
) -> tuple[dict[str, dict[str, float]], dict[str, str]]:
    """Walk observations once, grouping chain candidates and kernels by turn.

    Returns:
        Tuple of (turn -> {node name: first start ms},
        turn -> latest kernel node name)
    """
    members: dict[str, dict[str, float]] = {
        turn.key: {turn.key: turn.start} for turn in context.turns
    }
    latest_kernel_by_turn: dict[str, str] = {}

    cursor = TurnCursor(context.turns)
    for entry in context.chrono:
        turn = cursor.advance(entry.start_ms)
        if turn is None:
            continue

        if is_kernel_observation_name(entry.observation_name):
            latest_kernel_by_turn[turn.key] = entry.node_name

        kind = classify_node_name(entry.node_name, entry.observation_name)
        if not kind.is_parser and context.node_exists(entry.node_name):
            members[turn.key].setdefault(entry.node_name, entry.start_ms)

    return members, latest_kernel_by_turn


def build_turn_chains(
    members: dict[str, dict[str, float]], turn_keys: list[str]
) -> list[TurnChain]:
    chains = []
    for turn_key in turn_keys:
        first_seen = members.get(turn_key)
        if first_seen is None:
            continue
        # sorted() is stable, so equal start times keep observation order
        chain = sorted(first_seen, key=lambda name: first_seen[name])
        if turn_key in chain:
            chain = [turn_key] + [n for n in chain if n != turn_key]
        chains.append(TurnChain(turn_node=turn_key, chain=chain))
    return chains


def _parser_parent(
    node_name: str,
    context: GraphContext,
    first_start: dict[str, float],
    latest_kernel_by_turn: dict[str, str],
) -> Optional[str]:
    kind = classify_node_name(node_name)

    if kind is NodeKind.PARSER_TOOL_RESULT:
        return match_tool_result_ui_node(node_name)
    if kind is NodeKind.PARSER_TOOL_CALL:
        return match_tool_call_ui_node(node_name)
    if kind is NodeKind.PARSER_STRUCTURED_OUTPUT:
        start = first_start.get(node_name)
        turn = find_turn_window(context.turns, start) if start is not None else None
        return latest_kernel_by_turn.get(turn.key) if turn else None
    return None


def build_turn_chain_edges(context: GraphContext, edges: EdgeSet) -> None:
    members, latest_kernel_by_turn = _collect_turn_members(context)
    chains = build_turn_chains(members, [t.key for t in context.turns])

    for turn_chain in chains:
        chain = turn_chain.chain
        for from_, to in zip(chain, chain[1:]):
            edges.add(from_, to)

    for prev, nxt in zip(chains, chains[1:]):
        if prev.chain:
            edges.add(prev.chain[-1], nxt.turn_node)

    first_start: dict[str, float] = {}
    for entry in context.chrono:
        first_start.setdefault(entry.node_name, entry.start_ms)

    for node_name in context.node_observations:
        if not classify_node_name(node_name).is_parser:
            continue
        parent = _parser_parent(node_name, context, first_start, latest_kernel_by_turn)
        if context.node_exists(parent):
            edges.add(parent, node_name)

    first_main = next((c.chain[0] for c in chains if c.chain), None)
    trace_start = (
        TRACE_START_NODE_NAME if context.node_exists(TRACE_START_NODE_NAME) else None
    )
    anchor = trace_start or first_main
    if anchor:
        edges.add(START_NODE_NAME, anchor)
    if trace_start and first_main and trace_start != first_main:
        edges.add(trace_start, first_main)

    last_main = next((c.chain[-1] for c in reversed(chains) if c.chain), None)
    if last_main:
        edges.add(last_main, END_NODE_NAME)
        edges.discard_into(END_NODE_NAME, keep_from=last_main)
