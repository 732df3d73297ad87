"""
Rank scheduling for heavy mode runs.

Agents are grouped by their order value; groups run in ascending order.
Because every edge goes to a strictly higher order, this sequence is a
valid topological order without any separate cycle check.
"""

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Tuple

from .graph import AgentGraph
from .workflow_types import AgentNode


@dataclass(frozen=True)
class RankGroup:
    """All agents sharing one order value."""
    order: int
    nodes: Tuple[AgentNode, ...]

    def __repr__(self) -> str:
        names = ", ".join(node.name for node in self.nodes)
        return f"Order {self.order}: {len(self.nodes)} agents ({names})"


def schedule_ranks(graph: AgentGraph) -> List[RankGroup]:
    """
    Partition the graph into rank groups.

    Args:
        graph: Agent snapshot to schedule

    Returns:
        One RankGroup per distinct order, ascending. Orders need not be
        contiguous. Within a group, agents keep snapshot order. An empty
        graph yields an empty list.
    """
    by_order: Dict[int, List[AgentNode]] = defaultdict(list)
    for node in graph:
        by_order[node.order].append(node)

    return [RankGroup(order=order, nodes=tuple(by_order[order])) for order in sorted(by_order)]
