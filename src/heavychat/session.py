"""
Chat session for heavychat.

A ChatSession owns the transcript and the active agent graph, and answers
each user message in light mode (one model call) or heavy mode (a full
agent graph run). Submissions are serialized: one run at a time.
"""

import asyncio
import logging
from pathlib import Path
from typing import List, Optional, Union

from .core import (
    AgentGraph,
    BaseLLMClient,
    ChatMessage,
    ChatTurn,
    Configuration,
    InvalidPresetFormat,
    default_agents,
    load_preset,
    run_heavy_mode,
    save_preset,
)

logger = logging.getLogger(__name__)

ERROR_MESSAGE = "Sorry, I encountered an error. Please try again."
LIGHT_AGENT_LABEL = "Gemini"
HEAVY_AGENT_LABEL = "Multi-Agent Response"
SYSTEM_AGENT_LABEL = "System"


class ChatSession:
    """
    Conversation state plus the agent configuration used in heavy mode.

    Attributes:
        llm_client: Generation capability shared by both modes
        config: Heavy/light mode settings
        agents: Active agent graph snapshot
        messages: Full transcript, including system error notices
        heavy_mode: Whether the next message runs through the agent graph
    """

    def __init__(
        self,
        llm_client: BaseLLMClient,
        config: Optional[Configuration] = None,
        agents: Optional[AgentGraph] = None
    ):
        self.llm_client = llm_client
        self.config = config or Configuration()
        self.agents = agents if agents is not None else default_agents()
        self.messages: List[ChatMessage] = []
        self.heavy_mode = self.config.enabled
        self._lock: Optional[asyncio.Lock] = None
        self._lock_loop: Optional[asyncio.AbstractEventLoop] = None

    @property
    def history(self) -> List[ChatTurn]:
        """Turns handed to the model; system error notices are left out."""
        return [m.to_turn() for m in self.messages if m.agent != SYSTEM_AGENT_LABEL]

    def _send_lock(self) -> asyncio.Lock:
        """Lock serializing sends, recreated when the session moves to another event loop."""
        loop = asyncio.get_running_loop()
        if self._lock is None or self._lock_loop is not loop:
            self._lock = asyncio.Lock()
            self._lock_loop = loop
        return self._lock

    def set_heavy_mode(self, enabled: bool) -> None:
        self.heavy_mode = enabled
        logger.info(f"Heavy mode {'enabled' if enabled else 'disabled'}")

    async def send(self, user_input: str) -> Optional[ChatMessage]:
        """
        Answer one user message.

        Args:
            user_input: Text typed by the user

        Returns:
            The reply appended to the transcript, or None for blank input
        """
        if not user_input.strip():
            return None

        async with self._send_lock():
            prior_turns = self.history
            self.messages.append(ChatMessage(role="user", text=user_input))

            if self.heavy_mode:
                reply = await self._send_heavy(user_input, prior_turns)
            else:
                reply = await self._send_light(user_input, prior_turns)

            self.messages.append(reply)
            return reply

    async def _send_heavy(self, user_input: str, prior_turns: List[ChatTurn]) -> ChatMessage:
        result = await run_heavy_mode(
            user_input, prior_turns, self.agents, self.llm_client, self.config
        )

        if not result.succeeded:
            logger.error(f"Error sending message to agents: {result.error}")
            return ChatMessage(role="model", text=ERROR_MESSAGE, agent=SYSTEM_AGENT_LABEL)

        return ChatMessage(
            role="model",
            text=result.final_text,
            agent=HEAVY_AGENT_LABEL,
            agent_responses=result.agent_responses,
        )

    async def _send_light(self, user_input: str, prior_turns: List[ChatTurn]) -> ChatMessage:
        try:
            text = await self.llm_client.generate(
                prompt=user_input,
                system_prompt=self.config.light_system_instruction,
                history=prior_turns,
                model_tier=self.config.light_model,
            )
        except Exception as e:
            logger.error(f"Error sending message: {e}")
            return ChatMessage(role="model", text=ERROR_MESSAGE, agent=SYSTEM_AGENT_LABEL)

        return ChatMessage(role="model", text=text, agent=LIGHT_AGENT_LABEL)

    def update_agents(self, agents: AgentGraph) -> None:
        self.agents = agents
        logger.info(f"Agent configuration updated ({len(agents)} agents)")

    def load_preset(self, path: Union[str, Path]) -> AgentGraph:
        """
        Replace the agent graph with a preset file.

        Raises:
            InvalidPresetFormat: If the file is rejected; the current agents
                stay active
        """
        try:
            agents = load_preset(path)
        except InvalidPresetFormat as e:
            logger.error(f"Failed to load preset: {e}")
            raise
        self.update_agents(agents)
        return agents

    def save_preset(self, path: Union[str, Path]) -> Path:
        return save_preset(self.agents, path)
