"""
Step-based edge generation, used when the trace has no turn markers.

Every node at step k connects to every node at step k+1; the last step
connects to the end node. Forced parent links computed during bucketing are
added on top.
"""

from ...models import END_NODE_NAME
from .context import EdgeSet, GraphContext


def generate_step_edges(step_nodes: dict[int, list[str]]) -> list[tuple[str, str]]:
    """Bipartite join between consecutive steps, last step into the end node."""
    steps = sorted(step_nodes)
    edges = []
    for idx, step in enumerate(steps):
        is_last = idx == len(steps) - 1
        targets = [END_NODE_NAME] if is_last else step_nodes[steps[idx + 1]]
        for current in step_nodes[step]:
            if current == END_NODE_NAME:
                continue
            for target in targets:
                if current != target:
                    edges.append((current, target))
    return edges


def build_step_edges(
    context: GraphContext, forced_parents: dict[str, str], edges: EdgeSet
) -> None:
    for from_, to in generate_step_edges(context.step_nodes):
        edges.add(from_, to)
    for child, parent in forced_parents.items():
        edges.add(parent, child)
