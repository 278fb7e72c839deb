"""
Execution graph builder.

Structure:
- builder.py: Bucketing, pruning, normalization and graph nodes
- context.py: Shared build state and the invariant-enforcing EdgeSet
- turns.py: Turn-chain edges (traces with session.turn markers)
- steps.py: Step-based bipartite edges (fallback)
- langgraph.py: LangGraph to generalized observation conversion
"""

from .builder import (
    assign_failure_node_names,
    build_graph_from_step_data,
    compute_forced_parents,
)
from .context import EdgeSet
from .langgraph import transform_langgraph_to_generalized
from .steps import generate_step_edges

__all__ = [
    "build_graph_from_step_data",
    "transform_langgraph_to_generalized",
    # Building blocks
    "assign_failure_node_names",
    "compute_forced_parents",
    "generate_step_edges",
    "EdgeSet",
]
