"""
Trace data models.

Input records (Observation, TraceInfo) and the two derived views:
the aggregated tree (TreeNode, SearchItem, TraceUiData) and the
execution graph (GraphNode, GraphEdge, GraphCanvasData, GraphParseResult).
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional


# Synthetic graph nodes
START_NODE_NAME = "__start__"
END_NODE_NAME = "__end__"
SYSTEM_NODE_TYPE = "LANGGRAPH_SYSTEM"
PARSER_NODE_TYPE = "PARSER"
UNKNOWN_NODE_TYPE = "UNKNOWN"
TRACE_NODE_TYPE = "TRACE"


class ObservationLevel(str, Enum):
    """Observation severity, ordered DEBUG < DEFAULT < WARNING < ERROR."""

    DEBUG = "DEBUG"
    DEFAULT = "DEFAULT"
    WARNING = "WARNING"
    ERROR = "ERROR"

    @property
    def rank(self) -> int:
        return ASCENDING_LEVELS.index(self)


ASCENDING_LEVELS = [
    ObservationLevel.DEBUG,
    ObservationLevel.DEFAULT,
    ObservationLevel.WARNING,
    ObservationLevel.ERROR,
]


@dataclass
class Observation:
    """One recorded execution unit (span, call, generation) of a trace."""

    id: str
    start_time: datetime
    name: Optional[str] = None
    type: str = "SPAN"
    node: Optional[str] = None  # flow-graph label, distinct from name
    step: Optional[int] = None
    parent_observation_id: Optional[str] = None
    end_time: Optional[datetime] = None
    level: ObservationLevel = ObservationLevel.DEFAULT
    status_message: Optional[str] = None
    trace_id: Optional[str] = None
    total_cost: Optional[Decimal] = None
    input_cost: Optional[Decimal] = None
    output_cost: Optional[Decimal] = None
    input_usage: Optional[float] = None
    output_usage: Optional[float] = None
    total_usage: Optional[float] = None


@dataclass
class TraceInfo:
    """Trace-level record the tree is rooted on."""

    id: str
    timestamp: datetime
    name: Optional[str] = None
    latency: Optional[float] = None  # seconds
    # Events-based traces: observations become roots directly
    root_observation_type: Optional[str] = None
    root_observation_id: Optional[str] = None


@dataclass(frozen=True, eq=False)
class TreeNode:
    """A node of the aggregated trace tree.

    total_cost is this node's own cost plus the costs of all descendants;
    the calculated_* fields keep the raw per-observation values.
    """

    id: str
    type: str
    name: str
    start_time: datetime
    end_time: Optional[datetime]
    depth: int
    children_depth: int
    start_time_since_trace: float  # ms
    start_time_since_parent_start: Optional[float] = None  # ms
    children: list["TreeNode"] = field(default_factory=list)
    level: Optional[ObservationLevel] = None
    total_cost: Optional[Decimal] = None
    input_usage: Optional[float] = None
    output_usage: Optional[float] = None
    total_usage: Optional[float] = None
    calculated_input_cost: Optional[Decimal] = None
    calculated_output_cost: Optional[Decimal] = None
    calculated_total_cost: Optional[Decimal] = None
    parent_observation_id: Optional[str] = None
    trace_id: Optional[str] = None
    latency: Optional[float] = None  # seconds, TRACE nodes only


@dataclass(frozen=True)
class SearchItem:
    """Flattened pre-order entry used for search and heatmap scaling."""

    node: TreeNode
    parent_total_cost: Optional[Decimal]
    parent_total_duration: Optional[float]  # ms
    observation_id: Optional[str]


@dataclass
class TraceUiData:
    """Output of the tree builder."""

    roots: list[TreeNode]
    node_map: dict[str, TreeNode]
    search_items: list[SearchItem]
    hidden_observations_count: int


@dataclass(frozen=True)
class ParsedNodeName:
    """Turn index and suffix segments of a parser node name."""

    turn: int
    suffix_segments: tuple[str, ...] = ()


@dataclass
class GraphNode:
    """A node of the execution graph, keyed by normalized node name."""

    id: str
    label: str
    type: str
    title: Optional[str] = None
    level: Optional[ObservationLevel] = None


@dataclass(frozen=True)
class GraphEdge:
    """Directed edge between two graph node ids."""

    from_: str
    to: str


@dataclass
class GraphCanvasData:
    nodes: list[GraphNode] = field(default_factory=list)
    edges: list[GraphEdge] = field(default_factory=list)


@dataclass
class GraphParseResult:
    """Output of the graph builder."""

    graph: GraphCanvasData
    node_to_observations_map: dict[str, list[str]]


@dataclass(frozen=True)
class ObservationIoSource:
    """Observation whose input/output is shown for a kernel node."""

    observation_id: str
    start_time: datetime
