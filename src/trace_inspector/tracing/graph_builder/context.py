"""
Shared state for one graph build.

GraphContext is assembled once by the builder after bucketing, pruning and
normalization; the turn-chain and step-based edge strategies only read it.
"""

from dataclasses import dataclass, field
from typing import Optional

from ...models import END_NODE_NAME, START_NODE_NAME
from ..node_names import PARSER_NODE_PREFIX
from ..turn_windows import TurnWindow


@dataclass(frozen=True)
class ChronoEntry:
    """One stepped observation, reduced to what edge heuristics need."""

    observation_name: Optional[str]
    node_name: str  # normalized
    start_ms: float


@dataclass
class GraphContext:
    # normalized node name -> observation ids, insertion order is node order
    node_observations: dict[str, list[str]]
    # step -> normalized node names first seen at that step
    step_nodes: dict[int, list[str]]
    chrono: list[ChronoEntry]
    turns: list[TurnWindow] = field(default_factory=list)

    def node_exists(self, node_name: Optional[str]) -> bool:
        return bool(node_name) and node_name in self.node_observations


class EdgeSet:
    """Ordered, deduplicated edge collection enforcing the rendering invariants.

    Rejected edges:
    - self loops
    - edges into the start node
    - edges out of the end node
    - edges out of parser nodes (parser nodes are leaves)
    """

    def __init__(self):
        self._edges: dict[tuple[str, str], None] = {}

    def add(self, from_: Optional[str], to: Optional[str]) -> bool:
        if not from_ or not to or from_ == to:
            return False
        if to == START_NODE_NAME or from_ == END_NODE_NAME:
            return False
        if from_.startswith(PARSER_NODE_PREFIX):
            return False
        self._edges[(from_, to)] = None
        return True

    def discard_into(self, to: str, *, keep_from: str) -> None:
        """Remove every edge into ``to`` except the one from ``keep_from``."""
        for key in [k for k in self._edges if k[1] == to and k[0] != keep_from]:
            del self._edges[key]

    def __contains__(self, edge: tuple[str, str]) -> bool:
        return edge in self._edges

    def __iter__(self):
        return iter(self._edges)

    def __len__(self) -> int:
        return len(self._edges)
