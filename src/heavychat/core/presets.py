"""
Agent preset files.

A preset is a JSON array of agent objects as written by the graph editor:

    [{"id": "default-1", "name": "Analyst", "systemInstruction": "...",
      "contextMessages": 0, "model": "flash", "order": 1,
      "connections": ["default-4"], "position": {"x": 50, "y": 20}}]

Imports are atomic: one malformed element rejects the whole file.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Union

from .graph import AgentGraph
from .workflow_types import AgentNode, InvalidPresetFormat, ModelTier

logger = logging.getLogger(__name__)


def _as_int(value: Any, default: int, minimum: int) -> int:
    """Integer coercion the way the settings form does it."""
    if isinstance(value, bool):
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number >= minimum else default


def _as_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def node_from_dict(data: Dict[str, Any]) -> AgentNode:
    """Build an AgentNode from one validated preset element."""
    try:
        model = ModelTier(data.get("model", ModelTier.FLASH.value))
    except ValueError:
        model = ModelTier.FLASH

    position = data.get("position") or {}
    if not isinstance(position, dict):
        position = {}

    connections = data.get("connections") or []
    if not isinstance(connections, list):
        raise InvalidPresetFormat(f"Agent '{data['id']}': connections must be a list")

    return AgentNode(
        id=str(data["id"]),
        name=str(data["name"]),
        system_instruction=str(data["systemInstruction"]),
        context_messages=_as_int(data.get("contextMessages", 0), 0, 0),
        model=model,
        order=_as_int(data.get("order", 1), 1, 1),
        connections=tuple(dict.fromkeys(str(c) for c in connections)),
        position=(_as_float(position.get("x")), _as_float(position.get("y"))),
    )


def node_to_dict(node: AgentNode) -> Dict[str, Any]:
    return {
        "id": node.id,
        "name": node.name,
        "systemInstruction": node.system_instruction,
        "contextMessages": node.context_messages,
        "model": node.model.value,
        "order": node.order,
        "connections": list(node.connections),
        "position": {"x": node.position[0], "y": node.position[1]},
    }


def parse_preset(data: Union[str, bytes, List[Any]]) -> AgentGraph:
    """
    Validate preset data and build a graph snapshot.

    Args:
        data: JSON text or an already decoded list

    Returns:
        AgentGraph in file order. Connections that do not go to a strictly
        higher order, or that name an unknown agent, are dropped with a warning

    Raises:
        InvalidPresetFormat: If the data is not a JSON array of agents that
            all carry a non-empty id and name and a systemInstruction, or
            if ids repeat
    """
    if isinstance(data, (str, bytes)):
        try:
            data = json.loads(data)
        except json.JSONDecodeError as e:
            raise InvalidPresetFormat(f"Preset is not valid JSON: {e}") from e

    if not isinstance(data, list):
        raise InvalidPresetFormat("Preset must be a JSON array of agents")

    for index, item in enumerate(data):
        if not isinstance(item, dict):
            raise InvalidPresetFormat(f"Element {index} is not an object")
        if not item.get("id") or not item.get("name") or item.get("systemInstruction") is None:
            raise InvalidPresetFormat(
                f"Element {index} needs a non-empty id and name and a systemInstruction"
            )

    nodes = [node_from_dict(item) for item in data]
    try:
        graph = AgentGraph(nodes)
    except ValueError as e:
        raise InvalidPresetFormat(str(e)) from e
    return graph.sanitized()


def load_preset(path: Union[str, Path]) -> AgentGraph:
    """
    Load a preset file.

    Raises:
        InvalidPresetFormat: If the file is unreadable or malformed
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise InvalidPresetFormat(f"Cannot read preset {path}: {e}") from e

    graph = parse_preset(text)
    logger.info(f"Loaded preset with {len(graph)} agents from {path}")
    return graph


def save_preset(graph: AgentGraph, path: Union[str, Path]) -> Path:
    """
    Write a graph as a preset file.

    Raises:
        ValueError: If the graph has no agents
    """
    if len(graph) == 0:
        raise ValueError("There are no agents to save.")

    path = Path(path)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump([node_to_dict(node) for node in graph], f, indent=2)
    logger.info(f"Saved preset with {len(graph)} agents to {path}")
    return path


def default_agents() -> AgentGraph:
    """Built-in graph: three order-1 specialists feeding one synthesizer."""
    return AgentGraph([
        AgentNode(
            id="default-1",
            name="Analyst",
            system_instruction=(
                "You are a meticulous analyst. Break down the user query into its core "
                "components. Provide a data-driven, logical, and factual response. "
                "Avoid speculation and focus on verifiable information."
            ),
            model=ModelTier.FLASH,
            order=1,
            connections=("default-4",),
            position=(50.0, 20.0),
        ),
        AgentNode(
            id="default-2",
            name="Creative",
            system_instruction=(
                "You are an innovative thinker. Brainstorm creative approaches, analogies, "
                "and out-of-the-box ideas related to the user query. Don't be afraid to "
                "be imaginative."
            ),
            model=ModelTier.FLASH,
            order=1,
            connections=("default-4",),
            position=(50.0, 340.0),
        ),
        AgentNode(
            id="default-3",
            name="Critic",
            system_instruction=(
                "You are a skeptical critic. Identify potential flaws, risks, "
                "counterarguments, and unintended consequences related to the user's "
                "query and potential solutions. Your goal is to challenge assumptions."
            ),
            model=ModelTier.FLASH,
            order=1,
            connections=("default-4",),
            position=(50.0, 660.0),
        ),
        AgentNode(
            id="default-4",
            name="Synthesizer",
            system_instruction=(
                "You are a master synthesizer. Your task is to review the inputs from "
                "multiple specialist agents. Integrate their perspectives to construct a "
                "single, final, well-rounded, and balanced response for the user. Address "
                "the user's original query directly, incorporating the strengths of each "
                "agent's contribution."
            ),
            model=ModelTier.FLASH,
            order=2,
            connections=(),
            position=(450.0, 340.0),
        ),
    ])
