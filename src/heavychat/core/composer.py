"""
Prompt composition for heavy mode agents.

An agent without finished parents sees the raw user query. Any other agent
sees the query restated together with each parent's full output.
"""

from typing import Dict, List, Sequence

from .graph import AgentGraph
from .workflow_types import AgentNode, AgentResponse, ChatTurn


def compose_input(
    user_query: str,
    node: AgentNode,
    graph: AgentGraph,
    outputs: Dict[str, AgentResponse]
) -> str:
    """
    Build the new user turn for one agent.

    Args:
        user_query: The original query of this run
        node: Agent whose input is being built
        graph: Snapshot used to look up parents
        outputs: Outputs recorded so far, keyed by agent id

    Returns:
        The raw query when no parent has produced output, otherwise a
        structured prompt listing every parent's output in parent order
    """
    parent_results = [
        outputs[parent.id] for parent in graph.parents(node.id) if parent.id in outputs
    ]
    if not parent_results:
        return user_query

    previous_results = "\n\n".join(
        f"{result.agent_name}'s Output:\n\"{result.text}\"" for result in parent_results
    )
    return (
        f"The original user query was: \"{user_query}\".\n\n"
        f"Based on your role, analyze the following inputs from other agents:\n\n"
        f"{previous_results}\n\n"
        f"Now, perform your task."
    )


def select_history(history: Sequence[ChatTurn], context_messages: int) -> List[ChatTurn]:
    """Last `context_messages` turns of history, or all of it for 0."""
    if context_messages > 0:
        return list(history[-context_messages:])
    return list(history)
