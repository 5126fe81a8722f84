"""Chat model construction for the sales agent."""

from __future__ import annotations

import os
from typing import Any, Mapping

from langchain.chat_models import init_chat_model
from langchain_core.language_models.chat_models import BaseChatModel

# Provider name -> environment variable holding its key. LLM_API_KEY is the
# fallback for any provider.
PROVIDER_API_KEY_ENV = {
    "anthropic": "ANTHROPIC_API_KEY",
    "openai": "OPENAI_API_KEY",
}
SUPPORTED_PROVIDERS = tuple(PROVIDER_API_KEY_ENV)
GENERIC_API_KEY_ENV = "LLM_API_KEY"


def resolve_api_key(provider: str, env: Mapping[str, str] | None = None) -> str:
    """Pick the API key for *provider*; never another provider's key."""
    env = os.environ if env is None else env
    key_env = PROVIDER_API_KEY_ENV.get(provider.lower().strip())
    if key_env and env.get(key_env):
        return env[key_env]
    return env.get(GENERIC_API_KEY_ENV, "")


def create_chat_model(
    provider: str,
    model: str,
    api_key: str,
    *,
    endpoint_url: str | None = None,
    max_tokens: int | None = None,
    timeout: float | None = None,
    **kwargs: Any,
) -> BaseChatModel:
    """Build a streaming chat model.

    Raises ValueError for an unknown provider or an empty key, so callers can
    report a configuration problem before any request reaches the backend.
    """
    provider = provider.lower().strip()
    if provider not in SUPPORTED_PROVIDERS:
        raise ValueError(
            f"Unsupported provider: {provider!r}. "
            f"Supported: {', '.join(SUPPORTED_PROVIDERS)}"
        )
    if not api_key:
        raise ValueError(
            f"No API key configured for provider {provider!r} "
            f"(set {PROVIDER_API_KEY_ENV[provider]} or {GENERIC_API_KEY_ENV})"
        )

    params: dict[str, Any] = {"api_key": api_key, "streaming": True, **kwargs}
    if max_tokens is not None:
        params["max_tokens"] = max_tokens
    if timeout is not None:
        params["timeout"] = timeout
    if endpoint_url:
        params["base_url"] = endpoint_url

    return init_chat_model(model=model, model_provider=provider, **params)
