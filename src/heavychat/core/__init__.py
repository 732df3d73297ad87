"""
Heavy mode agent orchestration engine.
"""

from .workflow_types import (
    AgentNode, AgentResponse, ChatMessage, ChatTurn, Configuration, ModelTier,
    RunResult, RunState, HeavyChatError, GenerationError, InvalidGraphEdge,
    InvalidPresetFormat,
)
from .graph import AgentGraph
from .scheduler import RankGroup, schedule_ranks
from .composer import compose_input, select_history
from .aggregator import aggregate_results, NO_FINAL_OUTPUT_TEXT
from .coordinator import ExecutionCoordinator, run_heavy_mode
from .llm_client import BaseLLMClient, LLMConfig, create_llm_client
from .config_manager import ConfigurationManager, load_configuration
from .presets import default_agents, load_preset, parse_preset, save_preset

__all__ = [
    # Types
    'AgentNode',
    'AgentResponse',
    'ChatMessage',
    'ChatTurn',
    'Configuration',
    'ModelTier',
    'RunResult',
    'RunState',

    # Errors
    'HeavyChatError',
    'GenerationError',
    'InvalidGraphEdge',
    'InvalidPresetFormat',

    # Engine
    'AgentGraph',
    'RankGroup',
    'schedule_ranks',
    'compose_input',
    'select_history',
    'aggregate_results',
    'NO_FINAL_OUTPUT_TEXT',
    'ExecutionCoordinator',
    'run_heavy_mode',

    # LLM
    'BaseLLMClient',
    'LLMConfig',
    'create_llm_client',

    # Config
    'ConfigurationManager',
    'load_configuration',

    # Presets
    'default_agents',
    'load_preset',
    'parse_preset',
    'save_preset',
]
