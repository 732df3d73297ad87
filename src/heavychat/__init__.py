"""
heavychat - multi-agent chat client

Answers a chat query either with a single model call (light mode) or by
running it through a small graph of specialized agents whose outputs are
merged into one final answer (heavy mode).

This package provides:
- Agent graph snapshots with order-monotonic edges
- Rank scheduling and concurrent per-rank execution
- Prompt composition from upstream agent outputs
- Final answer aggregation over terminal agents
- Preset import/export and an interactive chat session
"""

from .core import (
    AgentGraph,
    AgentNode,
    AgentResponse,
    ChatTurn,
    Configuration,
    ExecutionCoordinator,
    GenerationError,
    InvalidPresetFormat,
    ModelTier,
    RunResult,
    RunState,
    default_agents,
    load_preset,
    run_heavy_mode,
    save_preset,
)
from .session import ChatSession

__version__ = "1.0.0"

__all__ = [
    "AgentGraph",
    "AgentNode",
    "AgentResponse",
    "ChatSession",
    "ChatTurn",
    "Configuration",
    "ExecutionCoordinator",
    "GenerationError",
    "InvalidPresetFormat",
    "ModelTier",
    "RunResult",
    "RunState",
    "default_agents",
    "load_preset",
    "run_heavy_mode",
    "save_preset",
]
