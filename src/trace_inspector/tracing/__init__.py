"""
Trace view builders.

Structure:
- node_names.py: Parser node name parsing, normalization and labels
- classification.py: NodeKind tagging of normalized node names
- turn_windows.py: session.turn window detection
- tree_builder/: Cost-aggregated hierarchical tree
- graph_builder/: Normalized execution graph
- io_source.py: Kernel to structured-output I/O pairing
- serialization.py: JSON conversion
"""

from .classification import NodeKind, classify_node_name
from .graph_builder import (
    build_graph_from_step_data,
    transform_langgraph_to_generalized,
)
from .io_source import build_kernel_observation_io_source_map
from .node_names import (
    format_parser_node_name,
    is_parser_container_node_name,
    is_parser_node_name,
    normalize_parser_node_name_for_graph,
    normalize_tool_result_node_name,
    parse_parser_node_name,
)
from .tree_builder import build_trace_ui_data

__all__ = [
    # Builders
    "build_trace_ui_data",
    "build_graph_from_step_data",
    "transform_langgraph_to_generalized",
    "build_kernel_observation_io_source_map",
    # Node names
    "parse_parser_node_name",
    "is_parser_node_name",
    "is_parser_container_node_name",
    "normalize_tool_result_node_name",
    "normalize_parser_node_name_for_graph",
    "format_parser_node_name",
    # Classification
    "NodeKind",
    "classify_node_name",
]
