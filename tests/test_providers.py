"""Tests for the providers module."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from sales_agent.providers import SUPPORTED_PROVIDERS, create_chat_model, resolve_api_key


class TestCreateChatModel:
    """Tests for create_chat_model factory."""

    def test_supported_providers(self):
        assert SUPPORTED_PROVIDERS == ("anthropic", "openai")

    def test_unsupported_provider_raises(self):
        with pytest.raises(ValueError, match="Unsupported provider"):
            create_chat_model("google", "gemini-pro", "key")

    def test_missing_api_key_raises(self):
        with pytest.raises(ValueError, match="set ANTHROPIC_API_KEY or LLM_API_KEY"):
            create_chat_model("anthropic", "claude-sonnet-4-20250514", "")

    @patch("sales_agent.providers.init_chat_model")
    def test_anthropic_provider(self, mock_init):
        mock_init.return_value = MagicMock()
        result = create_chat_model(
            "  Anthropic ", "claude-sonnet-4-20250514", "sk-ant-test",
            max_tokens=1024, timeout=60.0,
        )
        mock_init.assert_called_once_with(
            model="claude-sonnet-4-20250514",
            model_provider="anthropic",
            api_key="sk-ant-test",
            streaming=True,
            max_tokens=1024,
            timeout=60.0,
        )
        assert result is mock_init.return_value

    @patch("sales_agent.providers.init_chat_model")
    def test_openai_with_endpoint(self, mock_init):
        create_chat_model("openai", "gpt-4o", "sk-test", endpoint_url="https://proxy.local/v1")
        kwargs = mock_init.call_args.kwargs
        assert kwargs["model_provider"] == "openai"
        assert kwargs["base_url"] == "https://proxy.local/v1"
        assert "max_tokens" not in kwargs
        assert "timeout" not in kwargs


class TestResolveApiKey:
    def test_uses_provider_variable(self):
        env = {"ANTHROPIC_API_KEY": "sk-ant", "OPENAI_API_KEY": "sk-oai", "LLM_API_KEY": "sk-any"}
        assert resolve_api_key("anthropic", env) == "sk-ant"
        assert resolve_api_key("OpenAI", env) == "sk-oai"

    def test_other_provider_key_is_ignored(self):
        assert resolve_api_key("openai", {"ANTHROPIC_API_KEY": "sk-ant"}) == ""
        assert resolve_api_key("anthropic", {"OPENAI_API_KEY": "sk-oai"}) == ""

    def test_generic_fallback(self):
        env = {"ANTHROPIC_API_KEY": "", "LLM_API_KEY": "sk-any"}
        assert resolve_api_key("anthropic", env) == "sk-any"
        assert resolve_api_key("mistral", env) == "sk-any"
