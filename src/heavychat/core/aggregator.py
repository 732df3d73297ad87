"""
Final answer aggregation for heavy mode runs.
"""

from typing import Dict, List, Sequence, Tuple

from .workflow_types import AgentNode, AgentResponse

NO_FINAL_OUTPUT_TEXT = "No final output was generated by designated final agents."


def aggregate_results(
    outputs: Dict[str, AgentResponse],
    terminal_nodes: Sequence[AgentNode],
    responses: Sequence[AgentResponse]
) -> Tuple[str, List[AgentResponse]]:
    """
    Merge terminal agents' outputs into the final response.

    Args:
        outputs: Recorded outputs keyed by agent id
        terminal_nodes: Agents without outgoing connections, in discovery order
        responses: Every agent response of the run, in execution order

    Returns:
        Tuple of (final_text, agent_responses). A single terminal output is
        returned verbatim; several are joined as sections headed by the
        agent name; none yields NO_FINAL_OUTPUT_TEXT.
    """
    final_outputs = [outputs[node.id] for node in terminal_nodes if node.id in outputs]

    if not final_outputs:
        final_text = NO_FINAL_OUTPUT_TEXT
    elif len(final_outputs) == 1:
        final_text = final_outputs[0].text
    else:
        final_text = "\n\n".join(
            f"--- {output.agent_name} ---\n{output.text}" for output in final_outputs
        )

    return final_text, list(responses)
