"""
Unit Tests for the LLM client layer (no network access)
"""

import pytest

from heavychat.core import BaseLLMClient, ChatTurn, LLMConfig, ModelTier, create_llm_client
from heavychat.core.llm_client import GeminiLLMClient, LocalLLMClient


HISTORY = [ChatTurn("user", "Hi"), ChatTurn("model", "Hello!")]


class TestLocalLLMClient:
    """Tests for the OpenAI-compatible client"""

    def test_request_maps_history_and_system_prompt(self):
        client = LocalLLMClient(LLMConfig(backend="local", local_model="small"))

        request = client._build_request("Next?", "Be brief.", HISTORY, ModelTier.FLASH, {})

        assert request["model"] == "small"
        assert request["messages"] == [
            {"role": "system", "content": "Be brief."},
            {"role": "user", "content": "Hi"},
            {"role": "assistant", "content": "Hello!"},
            {"role": "user", "content": "Next?"},
        ]
        assert "response_format" not in request

    def test_generation_overrides(self):
        client = LocalLLMClient(LLMConfig(backend="local"))

        request = client._build_request("q", None, None, ModelTier.FLASH, {"temperature": 0.1})

        assert request["temperature"] == 0.1
        assert request["messages"] == [{"role": "user", "content": "q"}]

    def test_pro_tier_falls_back_to_local_model(self):
        client = LocalLLMClient(LLMConfig(backend="local", local_model="small"))
        assert client.model_name(ModelTier.PRO) == "small"

        client = LocalLLMClient(LLMConfig(backend="local", local_model="small", local_pro_model="big"))
        assert client.model_name(ModelTier.PRO) == "big"


class TestGeminiLLMClient:
    """Tests for the Gemini client helpers"""

    def test_contents_use_gemini_roles(self):
        contents = GeminiLLMClient._build_contents("Next?", HISTORY)

        assert contents == [
            {"role": "user", "parts": ["Hi"]},
            {"role": "model", "parts": ["Hello!"]},
            {"role": "user", "parts": ["Next?"]},
        ]

    def test_missing_api_key(self, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)

        with pytest.raises(RuntimeError):
            GeminiLLMClient(LLMConfig(backend="gemini"))


class TestFactory:
    """Tests for create_llm_client"""

    def test_openai_backend_uses_openai_models(self):
        client = create_llm_client(LLMConfig(backend="openai", openai_api_key="sk-test"))

        assert isinstance(client, LocalLLMClient)
        assert client.model_name(ModelTier.FLASH) == "gpt-4o-mini"
        assert client.model_name(ModelTier.PRO) == "gpt-4o"
        assert client.config.local_api_base == "https://api.openai.com/v1"

    def test_unsupported_backend(self):
        with pytest.raises(ValueError):
            create_llm_client(LLMConfig(backend="carrier-pigeon"))

    def test_client_needs_only_generate_and_model_name(self):
        class EchoClient(BaseLLMClient):
            def model_name(self, model_tier):
                return "echo"

            async def generate(self, prompt, system_prompt=None, history=None,
                               model_tier=ModelTier.FLASH, **kwargs):
                return prompt

        assert EchoClient(LLMConfig()).model_name(ModelTier.PRO) == "echo"
