"""
LLM Client Abstraction Layer

This module provides the generation capability used by heavy mode agents
and light mode chat, with interchangeable backends:
- Google Gemini API (default)
- Local LLM servers (OpenAI-compatible APIs like vLLM, llama.cpp, Ollama)
- OpenAI cloud

Every backend accepts a system instruction, the prior conversation turns
and a model tier, and returns the generated text or raises.
"""

import os
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Dict, Any, Optional, List, Sequence
from dataclasses import dataclass

import google.generativeai as genai
from openai import AsyncOpenAI

from .workflow_types import ChatTurn, ModelTier

logger = logging.getLogger(__name__)


@dataclass
class LLMConfig:
    """Configuration for LLM backend."""
    backend: str = "gemini"  # "gemini", "local", "openai"

    # Gemini settings
    gemini_api_key: Optional[str] = None
    gemini_flash_model: str = "gemini-2.5-flash"
    gemini_pro_model: str = "gemini-2.5-pro"

    # Local LLM settings
    local_api_base: str = "http://localhost:8000/v1"
    local_model: str = "local-model"
    local_pro_model: Optional[str] = None  # Falls back to local_model
    local_api_key: Optional[str] = None  # Some local servers require API keys

    # OpenAI settings (for cloud OpenAI or compatible)
    openai_api_key: Optional[str] = None
    openai_api_base: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    openai_pro_model: str = "gpt-4o"

    # Generation settings
    temperature: float = 0.7
    max_tokens: int = 4096
    top_p: float = 0.9

    # Timeout settings
    timeout_seconds: float = 120.0

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "LLMConfig":
        """Create configuration from dictionary, ignoring unknown keys."""
        return cls(**{k: v for k, v in config_dict.items() if k in cls.__dataclass_fields__})


class BaseLLMClient(ABC):
    """Abstract base class for LLM clients."""

    def __init__(self, config: LLMConfig):
        """
        Initialize LLM client.

        Args:
            config: LLM configuration
        """
        self.config = config

    @abstractmethod
    def model_name(self, model_tier: ModelTier) -> str:
        """Concrete model identifier for a tier."""

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        history: Optional[Sequence[ChatTurn]] = None,
        model_tier: ModelTier = ModelTier.FLASH,
        **kwargs
    ) -> str:
        """
        Generate text from the LLM.

        Args:
            prompt: Text of the new user turn
            system_prompt: Optional system instruction
            history: Prior conversation turns, oldest first
            model_tier: Capability level to run on
            **kwargs: Additional generation parameters

        Returns:
            Generated text
        """


class LocalLLMClient(BaseLLMClient):
    """
    Client for local LLM servers using OpenAI-compatible API.

    Compatible with:
    - vLLM (with --api-key or without)
    - llama.cpp server
    - Ollama (via OpenAI compatibility)
    - LocalAI
    - Any OpenAI-compatible endpoint, including OpenAI itself
    """

    def __init__(self, config: LLMConfig):
        super().__init__(config)

        client_kwargs = {
            "base_url": config.local_api_base,
            "api_key": config.local_api_key or "dummy-key",  # Some servers require any key
            "timeout": config.timeout_seconds
        }

        self.async_client = AsyncOpenAI(**client_kwargs)

        logger.info(f"Initialized LocalLLMClient for {config.local_api_base}")
        logger.info(f"Using models: {self.model_name(ModelTier.FLASH)} / {self.model_name(ModelTier.PRO)}")

    def model_name(self, model_tier: ModelTier) -> str:
        if model_tier == ModelTier.PRO and self.config.local_pro_model:
            return self.config.local_pro_model
        return self.config.local_model

    def _build_request(
        self,
        prompt: str,
        system_prompt: Optional[str],
        history: Optional[Sequence[ChatTurn]],
        model_tier: ModelTier,
        kwargs: Dict[str, Any]
    ) -> Dict[str, Any]:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        for turn in history or ():
            role = "assistant" if turn.role == "model" else "user"
            messages.append({"role": role, "content": turn.text})
        messages.append({"role": "user", "content": prompt})

        request_kwargs = {
            "model": self.model_name(model_tier),
            "messages": messages,
            "temperature": kwargs.get("temperature", self.config.temperature),
            "max_tokens": kwargs.get("max_tokens", self.config.max_tokens),
            "top_p": kwargs.get("top_p", self.config.top_p),
        }

        return request_kwargs

    async def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        history: Optional[Sequence[ChatTurn]] = None,
        model_tier: ModelTier = ModelTier.FLASH,
        **kwargs
    ) -> str:
        request_kwargs = self._build_request(prompt, system_prompt, history, model_tier, kwargs)

        try:
            logger.debug(f"Sending request to {self.config.local_api_base} ({request_kwargs['model']})")

            response = await self.async_client.chat.completions.create(**request_kwargs)

            result = response.choices[0].message.content or ""
            logger.debug(f"Received response: {len(result)} characters")

            return result

        except Exception as e:
            logger.error(f"Local LLM generation failed: {e}")
            raise


class GeminiLLMClient(BaseLLMClient):
    """Client for Google Gemini API."""

    def __init__(self, config: LLMConfig):
        super().__init__(config)

        api_key = config.gemini_api_key or os.getenv("GEMINI_API_KEY")
        if not api_key:
            raise RuntimeError("GEMINI_API_KEY not found in config or environment")

        genai.configure(api_key=api_key)

        logger.info(
            f"Initialized GeminiLLMClient with models: "
            f"{config.gemini_flash_model} / {config.gemini_pro_model}"
        )

    def model_name(self, model_tier: ModelTier) -> str:
        if model_tier == ModelTier.PRO:
            return self.config.gemini_pro_model
        return self.config.gemini_flash_model

    def _build_model(
        self,
        system_prompt: Optional[str],
        model_tier: ModelTier,
        kwargs: Dict[str, Any]
    ) -> "genai.GenerativeModel":
        gen_config = genai.types.GenerationConfig(
            temperature=kwargs.get("temperature", self.config.temperature),
            max_output_tokens=kwargs.get("max_tokens", self.config.max_tokens),
            top_p=kwargs.get("top_p", self.config.top_p),
        )

        model_kwargs = {
            "generation_config": gen_config
        }
        if system_prompt:
            model_kwargs["system_instruction"] = system_prompt

        return genai.GenerativeModel(self.model_name(model_tier), **model_kwargs)

    @staticmethod
    def _build_contents(prompt: str, history: Optional[Sequence[ChatTurn]]) -> List[Dict[str, Any]]:
        contents = [{"role": turn.role, "parts": [turn.text]} for turn in history or ()]
        contents.append({"role": "user", "parts": [prompt]})
        return contents

    async def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        history: Optional[Sequence[ChatTurn]] = None,
        model_tier: ModelTier = ModelTier.FLASH,
        **kwargs
    ) -> str:
        model = self._build_model(system_prompt, model_tier, kwargs)
        contents = self._build_contents(prompt, history)

        try:
            # Run in thread pool to not block async event loop
            loop = asyncio.get_running_loop()
            response = await loop.run_in_executor(
                None,
                lambda: model.generate_content(
                    contents,
                    request_options={"timeout": self.config.timeout_seconds}
                )
            )

            return response.text

        except Exception as e:
            logger.error(f"Gemini generation failed: {e}")
            raise


def create_llm_client(config: Optional[LLMConfig] = None) -> BaseLLMClient:
    """
    Factory function to create appropriate LLM client based on configuration.

    Args:
        config: LLM configuration (if None, loads from environment/defaults)

    Returns:
        Appropriate LLM client instance

    Raises:
        ValueError: If backend is not supported
    """
    if config is None:
        config = LLMConfig(
            backend=os.getenv("LLM_BACKEND", "gemini"),
            local_api_base=os.getenv("LOCAL_LLM_API_BASE", "http://localhost:8000/v1"),
            local_model=os.getenv("LOCAL_LLM_MODEL", "local-model"),
            local_api_key=os.getenv("LOCAL_LLM_API_KEY"),
            gemini_api_key=os.getenv("GEMINI_API_KEY"),
        )

    backend = config.backend.lower()

    if backend == "gemini":
        return GeminiLLMClient(config)
    elif backend == "local":
        return LocalLLMClient(config)
    elif backend == "openai":
        # Use LocalLLMClient with OpenAI settings
        config.local_api_base = config.openai_api_base or "https://api.openai.com/v1"
        config.local_model = config.openai_model
        config.local_pro_model = config.openai_pro_model
        config.local_api_key = config.openai_api_key or os.getenv("OPENAI_API_KEY")
        return LocalLLMClient(config)
    else:
        raise ValueError(f"Unsupported LLM backend: {backend}")

