"""
Shared fixtures for heavychat tests.

ScriptedLLMClient stands in for a real backend: it answers by system
instruction, can be told to fail for chosen agents, and records every call
together with how many calls were in flight at once.
"""

import asyncio
from typing import Dict, List, Optional, Sequence, Union

import pytest

from heavychat.core import AgentNode, BaseLLMClient, ChatTurn, LLMConfig, ModelTier


class ScriptedLLMClient(BaseLLMClient):
    """In-memory generation capability keyed by system instruction."""

    def __init__(
        self,
        responses: Optional[Dict[str, Union[str, Exception]]] = None,
        delays: Optional[Dict[str, float]] = None
    ):
        super().__init__(LLMConfig(backend="local"))
        self.responses = responses or {}
        self.delays = delays or {}
        self.calls: List[dict] = []
        self.events: List[tuple] = []
        self.active = 0
        self.max_active = 0

    def model_name(self, model_tier: ModelTier) -> str:
        return f"scripted-{model_tier.value}"

    async def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        history: Optional[Sequence[ChatTurn]] = None,
        model_tier: ModelTier = ModelTier.FLASH,
        **kwargs
    ) -> str:
        self.calls.append({
            "prompt": prompt,
            "system_prompt": system_prompt,
            "history": list(history or []),
            "model_tier": model_tier,
        })
        self.events.append(("start", system_prompt))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delays.get(system_prompt, 0.01))
        finally:
            self.active -= 1
        self.events.append(("end", system_prompt))

        response = self.responses.get(system_prompt, f"{system_prompt} output")
        if isinstance(response, Exception):
            raise response
        return response

    def calls_for(self, system_prompt: str) -> List[dict]:
        return [call for call in self.calls if call["system_prompt"] == system_prompt]


def make_node(node_id: str, order: int = 1, connections=(), **fields) -> AgentNode:
    """Agent whose name is the upper-cased id and whose instruction is 'role-<id>'."""
    fields.setdefault("name", node_id.upper())
    fields.setdefault("system_instruction", f"role-{node_id}")
    return AgentNode(id=node_id, order=order, connections=tuple(connections), **fields)


@pytest.fixture
def llm_client():
    return ScriptedLLMClient()
