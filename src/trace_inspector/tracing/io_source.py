"""
Kernel I/O source pairing.

A kernel observation's input/output is recorded on the structured-output
parser observation that follows it. Views keep the kernel node but read its
I/O from the paired observation.
"""

from typing import Optional

from ..models import Observation, ObservationIoSource
from ..utils.datetime import to_epoch_ms
from .classification import is_kernel_observation_name
from .node_names import (
    is_session_turn_node_name,
    is_structured_output_ui_node,
    normalize_parser_node_name_for_graph,
)
from .turn_windows import TurnCursor, build_turn_windows


def is_structured_output_observation_name(name: Optional[str]) -> bool:
    if not name:
        return False
    return is_structured_output_ui_node(normalize_parser_node_name_for_graph(name))


def build_kernel_observation_io_source_map(
    observations: list[Observation],
) -> dict[str, ObservationIoSource]:
    """Map kernel observation ids to the observation carrying their I/O.

    Each structured output pairs with the latest kernel of its turn window,
    or the latest kernel overall when the turn has none. A later structured
    output for the same kernel replaces an earlier one.

    Args:
        observations: Observations of one trace in any order

    Returns:
        Dict of kernel observation id -> ObservationIoSource
    """
    chronological = sorted(
        observations, key=lambda o: (to_epoch_ms(o.start_time), o.id)
    )
    cursor = TurnCursor(
        build_turn_windows(
            (to_epoch_ms(o.start_time), o.id)
            for o in chronological
            if is_session_turn_node_name(o.name)
        )
    )

    latest_kernel_by_turn: dict[str, str] = {}
    latest_kernel: Optional[str] = None
    sources: dict[str, ObservationIoSource] = {}

    for obs in chronological:
        turn = cursor.advance(to_epoch_ms(obs.start_time))

        if is_kernel_observation_name(obs.name):
            latest_kernel = obs.id
            if turn:
                latest_kernel_by_turn[turn.key] = obs.id
            continue

        if not is_structured_output_observation_name(obs.name):
            continue

        kernel_id = (latest_kernel_by_turn.get(turn.key) if turn else None) or (
            latest_kernel
        )
        if not kernel_id or kernel_id == obs.id:
            continue

        sources[kernel_id] = ObservationIoSource(
            observation_id=obs.id, start_time=obs.start_time
        )

    return sources
