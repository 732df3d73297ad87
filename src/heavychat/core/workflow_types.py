"""
Type definitions for heavy mode agent orchestration.

This module defines the core data structures used throughout the engine,
including agent nodes, conversation turns, run results and the error types
raised by graph editing, preset loading and generation.
"""

from dataclasses import dataclass, field, replace
from typing import Optional, List, Dict, Any, Tuple
from enum import Enum


class ModelTier(str, Enum):
    """Capability level of the model an agent runs on."""
    FLASH = "flash"
    PRO = "pro"


class RunState(Enum):
    """Lifecycle states of a single heavy mode run."""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class AgentNode:
    """
    A configured participant in the agent graph.

    Attributes:
        id: Opaque unique identifier, stable across edits
        name: Display label (not required to be unique)
        system_instruction: Role definition passed verbatim to the model
        context_messages: History turns visible to the agent (0 = all)
        model: Model tier used for this agent
        order: Execution rank, agents with equal order run together
        connections: Ids of the agents that receive this agent's output
        position: Editor-only display coordinate
    """
    id: str
    name: str
    system_instruction: str
    context_messages: int = 0
    model: ModelTier = ModelTier.FLASH
    order: int = 1
    connections: Tuple[str, ...] = ()
    position: Tuple[float, float] = (0.0, 0.0)

    def __post_init__(self):
        if self.order < 1:
            raise ValueError(f"Agent '{self.id}': order must be at least 1, got {self.order}")
        if self.context_messages < 0:
            raise ValueError(
                f"Agent '{self.id}': context_messages cannot be negative, got {self.context_messages}"
            )

    @property
    def is_terminal(self) -> bool:
        """A node without outgoing connections contributes to the final answer."""
        return not self.connections

    def with_changes(self, **changes: Any) -> "AgentNode":
        """Return a copy of this node with the given fields replaced."""
        if "connections" in changes:
            changes["connections"] = tuple(dict.fromkeys(changes["connections"]))
        if "model" in changes:
            changes["model"] = ModelTier(changes["model"])
        return replace(self, **changes)


@dataclass(frozen=True)
class ChatTurn:
    """One turn of prior conversation handed to a generation call."""
    role: str  # "user" or "model"
    text: str


@dataclass(frozen=True)
class AgentResponse:
    """Output produced by one agent during a run."""
    agent_id: str
    agent_name: str
    text: str


@dataclass
class ChatMessage:
    """
    A message in the chat transcript.

    Attributes:
        role: "user" or "model"
        text: Message text (the final answer for heavy mode replies)
        agent: Label of the responder ("Gemini", "Multi-Agent Response", "System")
        agent_responses: Per-agent outputs behind a heavy mode reply
    """
    role: str
    text: str
    agent: Optional[str] = None
    agent_responses: List[AgentResponse] = field(default_factory=list)

    def to_turn(self) -> ChatTurn:
        return ChatTurn(role=self.role, text=self.text)


@dataclass
class Configuration:
    """
    Configuration for heavy mode behavior.

    Attributes:
        enabled: Whether new sessions start in heavy mode
        max_concurrent_agents: Upper bound on simultaneous generation calls
        preset_path: Agent preset loaded at startup (None = built-in agents)
        light_model: Model tier used in light mode
        light_system_instruction: System instruction used in light mode
    """
    enabled: bool = False
    max_concurrent_agents: int = 10
    preset_path: Optional[str] = None
    light_model: ModelTier = ModelTier.PRO
    light_system_instruction: str = (
        "You are a helpful and friendly AI assistant. Provide clear, concise, "
        "and accurate responses to the user's query."
    )

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "Configuration":
        """Create configuration from dictionary."""
        values = {k: v for k, v in config_dict.items() if k in cls.__dataclass_fields__}
        if "light_model" in values:
            values["light_model"] = ModelTier(values["light_model"])
        return cls(**values)


@dataclass
class RunResult:
    """
    Outcome of one heavy mode run.

    A completed run carries the final text and every agent's response. A
    failed run carries the error and no output at all.
    """
    state: RunState
    final_text: Optional[str] = None
    agent_responses: List[AgentResponse] = field(default_factory=list)
    error: Optional["GenerationError"] = None
    ranks_executed: List[int] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.state == RunState.COMPLETED

    def __repr__(self) -> str:
        return f"RunResult({self.state.value}: {len(self.agent_responses)} responses)"


class HeavyChatError(Exception):
    """Base class for engine errors."""


class InvalidGraphEdge(HeavyChatError):
    """An edge that would break the strictly increasing order invariant."""

    def __init__(self, source_id: str, target_id: str, reason: str):
        self.source_id = source_id
        self.target_id = target_id
        self.reason = reason
        super().__init__(f"Invalid edge {source_id} -> {target_id}: {reason}")


class GenerationError(HeavyChatError):
    """A generation call for one agent failed."""

    def __init__(self, agent_id: str, agent_name: str, cause: BaseException):
        self.agent_id = agent_id
        self.agent_name = agent_name
        self.cause = cause
        super().__init__(f"Agent '{agent_name}' ({agent_id}) failed: {cause}")


class InvalidPresetFormat(HeavyChatError):
    """Malformed agent preset data; the whole import is rejected."""
