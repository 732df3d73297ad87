"""
Agent graph snapshot for heavy mode.

An AgentGraph is an immutable snapshot of agent definitions plus their
connections. Queries never mutate it; edit operations return a new snapshot.
The only acyclicity guard is the order invariant: an edge A -> B exists
only while A.order < B.order.
"""

import logging
import time
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from .workflow_types import AgentNode, InvalidGraphEdge

logger = logging.getLogger(__name__)

NEW_AGENT_NAME = "New Agent"
NEW_AGENT_INSTRUCTION = "Define the role and focus for this agent."


class AgentGraph:
    """Read-only view over a snapshot of agent nodes."""

    def __init__(self, nodes: Iterable[AgentNode] = ()):
        """
        Build a snapshot.

        Args:
            nodes: Agent definitions in display order

        Raises:
            ValueError: If two nodes share an id
        """
        self._nodes: Tuple[AgentNode, ...] = tuple(nodes)
        self._by_id: Dict[str, AgentNode] = {}
        for node in self._nodes:
            if node.id in self._by_id:
                raise ValueError(f"Duplicate agent id '{node.id}'")
            self._by_id[node.id] = node

    def __iter__(self) -> Iterator[AgentNode]:
        return iter(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._by_id

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AgentGraph):
            return NotImplemented
        return self._nodes == other._nodes

    def __repr__(self) -> str:
        return f"AgentGraph({len(self._nodes)} agents)"

    @property
    def nodes(self) -> Tuple[AgentNode, ...]:
        return self._nodes

    def get(self, node_id: str) -> Optional[AgentNode]:
        return self._by_id.get(node_id)

    def parents(self, node_id: str) -> List[AgentNode]:
        """Nodes with an edge into node_id, in snapshot order."""
        return [node for node in self._nodes if node_id in node.connections]

    def terminal_nodes(self) -> List[AgentNode]:
        """Nodes with no outgoing edges, in snapshot order."""
        return [node for node in self._nodes if node.is_terminal]

    def edges(self) -> List[Tuple[str, str]]:
        return [(node.id, target) for node in self._nodes for target in node.connections]

    @staticmethod
    def is_valid_edge(source: AgentNode, target: AgentNode) -> bool:
        return source.order < target.order

    def sanitized(self) -> "AgentGraph":
        """
        Drop every edge that points backward or sideways in rank, or to an
        agent that is not part of this snapshot.

        Returns:
            A new snapshot, or self when every edge is valid
        """
        cleaned: List[AgentNode] = []
        dropped = 0

        for node in self._nodes:
            kept = []
            for target_id in node.connections:
                target = self._by_id.get(target_id)
                if target is None:
                    error = InvalidGraphEdge(node.id, target_id, "unknown target")
                elif not self.is_valid_edge(node, target):
                    error = InvalidGraphEdge(
                        node.id, target_id,
                        f"order {node.order} is not below order {target.order}"
                    )
                else:
                    kept.append(target_id)
                    continue
                logger.warning(f"Dropping edge: {error}")
                dropped += 1

            if len(kept) == len(node.connections):
                cleaned.append(node)
            else:
                cleaned.append(node.with_changes(connections=kept))

        if not dropped:
            return self
        return AgentGraph(cleaned)

    # ------------------------------------------------------------------
    # Edit operations (each returns a new snapshot)
    # ------------------------------------------------------------------

    def with_connection(self, source_id: str, target_id: str) -> "AgentGraph":
        """
        Add an edge source -> target.

        Raises:
            InvalidGraphEdge: If either agent is missing or the edge does
                not go to a strictly higher order
        """
        source = self._by_id.get(source_id)
        target = self._by_id.get(target_id)
        if source is None or target is None:
            raise InvalidGraphEdge(source_id, target_id, "unknown agent")
        if not self.is_valid_edge(source, target):
            raise InvalidGraphEdge(
                source_id, target_id,
                f"order {source.order} is not below order {target.order}"
            )
        if target_id in source.connections:
            return self
        return self._replace(source.with_changes(connections=source.connections + (target_id,)))

    def without_connection(self, source_id: str, target_id: str) -> "AgentGraph":
        source = self._by_id.get(source_id)
        if source is None or target_id not in source.connections:
            return self
        remaining = [c for c in source.connections if c != target_id]
        return self._replace(source.with_changes(connections=remaining))

    def with_agent(self, node: Optional[AgentNode] = None) -> "AgentGraph":
        """
        Append an agent.

        Without an explicit node, a placeholder agent is created at order 1
        and connected to every agent currently at order 2.
        """
        if node is None:
            node = AgentNode(
                id=_new_agent_id(self._by_id),
                name=NEW_AGENT_NAME,
                system_instruction=NEW_AGENT_INSTRUCTION,
                order=1,
                connections=tuple(n.id for n in self._nodes if n.order == 2),
            )
        return AgentGraph(self._nodes + (node,))

    def without_agent(self, node_id: str) -> "AgentGraph":
        """
        Remove an agent and every connection pointing at it.

        A graph is never left empty: removing the last agent leaves a fresh
        placeholder agent in its place.
        """
        remaining = []
        for node in self._nodes:
            if node.id == node_id:
                continue
            if node_id in node.connections:
                node = node.with_changes(
                    connections=[c for c in node.connections if c != node_id]
                )
            remaining.append(node)

        if not remaining:
            remaining.append(AgentNode(
                id=_new_agent_id(self._by_id),
                name=NEW_AGENT_NAME,
                system_instruction=NEW_AGENT_INSTRUCTION,
            ))
        return AgentGraph(remaining)

    def with_updated(self, node_id: str, **changes) -> "AgentGraph":
        """
        Replace fields of one agent; the id itself cannot change.

        Edges into or out of the agent that no longer go to a strictly
        higher order after the change are removed.

        Raises:
            KeyError: If the agent does not exist
            ValueError: If order drops below 1 or context_messages below 0
        """
        node = self._by_id.get(node_id)
        if node is None:
            raise KeyError(node_id)
        changes.pop("id", None)
        updated = node.with_changes(**changes)

        nodes = []
        for current in self._nodes:
            if current.id == node_id:
                current = updated
            kept = []
            for target_id in current.connections:
                target = updated if target_id == node_id else self._by_id.get(target_id)
                touches_updated = node_id in (current.id, target_id)
                if touches_updated and target is not None and not self.is_valid_edge(current, target):
                    logger.warning(
                        f"Dropping edge: {InvalidGraphEdge(current.id, target_id, 'order changed')}"
                    )
                    continue
                kept.append(target_id)
            if len(kept) != len(current.connections):
                current = current.with_changes(connections=kept)
            nodes.append(current)
        return AgentGraph(nodes)

    def _replace(self, updated: AgentNode) -> "AgentGraph":
        return AgentGraph(updated if n.id == updated.id else n for n in self._nodes)


def _new_agent_id(taken) -> str:
    stamp = int(time.time() * 1000)
    while f"agent-{stamp}" in taken:
        stamp += 1
    return f"agent-{stamp}"
