"""
Node classification for trace views.

Maps a normalized node name (and optionally the observation name behind it)
to a single NodeKind tag. The tree and graph builders branch on the tag
instead of re-matching name patterns at every decision point.
"""

from enum import Enum
from typing import Optional

from ..models import END_NODE_NAME, START_NODE_NAME
from .node_names import (
    PARSER_NODE_PREFIX,
    is_parser_container_node_name,
    is_session_turn_node_name,
    is_structured_output_ui_node,
    match_tool_call_ui_node,
    match_tool_pre_ui_node,
    match_tool_result_ui_node,
)


KERNEL_NAME_MARKER = " - kernel."
FAILURE_OBSERVATION_NAME = "session.failure"
TRACE_START_NODE_NAME = "session.trace.start"


class NodeKind(str, Enum):
    START = "start"
    END = "end"
    TRACE_START = "trace_start"
    TURN = "turn"
    FAILURE = "failure"
    KERNEL = "kernel"
    PARSER_CONTAINER = "parser_container"
    PARSER_TOOL_RESULT = "parser_tool_result"
    PARSER_TOOL_CALL = "parser_tool_call"
    PARSER_TOOL_PRE = "parser_tool_pre"
    PARSER_STRUCTURED_OUTPUT = "parser_structured_output"
    PARSER_OTHER = "parser_other"
    REGULAR = "regular"

    @property
    def is_parser(self) -> bool:
        return self.value.startswith("parser_")


def is_kernel_observation_name(observation_name: Optional[str]) -> bool:
    """Kernel observations are named ``<topic> - kernel.<step>``."""
    return isinstance(observation_name, str) and KERNEL_NAME_MARKER in observation_name


def is_failure_observation_name(observation_name: Optional[str]) -> bool:
    return observation_name == FAILURE_OBSERVATION_NAME


def is_failure_node_name(node_name: Optional[str]) -> bool:
    """Match disambiguated failure nodes (``session.failure.<n>``)."""
    if not node_name or not node_name.startswith(FAILURE_OBSERVATION_NAME + "."):
        return False
    return node_name[len(FAILURE_OBSERVATION_NAME) + 1 :].isdigit()


def classify_node_name(
    node_name: Optional[str], observation_name: Optional[str] = None
) -> NodeKind:
    """Classify a normalized node name.

    Args:
        node_name: Normalized node name (graph id or tree display name)
        observation_name: Name of the observation behind the node; kernel
            markers live in the observation name, not in the node label.

    Returns:
        The NodeKind tag. Unknown names are REGULAR.
    """
    if not node_name:
        return NodeKind.REGULAR
    if node_name == START_NODE_NAME:
        return NodeKind.START
    if node_name == END_NODE_NAME:
        return NodeKind.END
    if node_name == TRACE_START_NODE_NAME:
        return NodeKind.TRACE_START
    if is_session_turn_node_name(node_name):
        return NodeKind.TURN
    if is_failure_observation_name(node_name) or is_failure_node_name(node_name):
        return NodeKind.FAILURE

    if node_name.startswith(PARSER_NODE_PREFIX):
        # Order matters: parser.pre_<tool>.<n> also fits the tool-result shape
        if match_tool_pre_ui_node(node_name):
            return NodeKind.PARSER_TOOL_PRE
        if match_tool_result_ui_node(node_name):
            return NodeKind.PARSER_TOOL_RESULT
        if match_tool_call_ui_node(node_name):
            return NodeKind.PARSER_TOOL_CALL
        if is_structured_output_ui_node(node_name):
            return NodeKind.PARSER_STRUCTURED_OUTPUT
        if is_parser_container_node_name(node_name):
            return NodeKind.PARSER_CONTAINER
        return NodeKind.PARSER_OTHER

    if is_kernel_observation_name(observation_name) or is_kernel_observation_name(
        node_name
    ):
        return NodeKind.KERNEL
    return NodeKind.REGULAR
