"""
Trace tree builder.

Structure:
- filtering.py: Level filter, container pruning and parent reconciliation
- builder.py: Dependency graph, bottom-up aggregation and output assembly
- helpers.py: Level ranges, sort keys and cost arithmetic
"""

from .builder import build_trace_ui_data
from .filtering import filter_and_prepare_observations
from .helpers import get_observation_levels, own_cost

__all__ = [
    "build_trace_ui_data",
    "filter_and_prepare_observations",
    "get_observation_levels",
    "own_cost",
]
