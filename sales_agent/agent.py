"""LangChain sales agent with a streaming tool-use loop."""

from __future__ import annotations

import logging
import os
from typing import Any, Sequence

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import (
    AIMessage,
    BaseMessage,
    HumanMessage,
    SystemMessage,
    ToolMessage,
)

from . import events
from .models import ChatMessage, SalesChatRequest
from .prompts.assembler import assemble_system_prompt
from .providers import create_chat_model, resolve_api_key
from .publisher import OutputPublisher
from .streaming import (
    StreamDecoder,
    TextDelta,
    ToolCall,
    ToolCallAccumulator,
    ToolCallStart,
)
from .tools.registry import (
    SalesTool,
    ToolContext,
    ToolExecutionCoordinator,
    ToolRegistry,
    ToolResult,
)

logger = logging.getLogger("sales-chat-agent")

DEFAULT_PROVIDER = "anthropic"
DEFAULT_MODEL = "claude-sonnet-4-20250514"
DEFAULT_MAX_TOKENS = 1024
DEFAULT_LLM_TIMEOUT_SECONDS = 60.0
DEFAULT_MAX_TOOL_TURNS = 5


def _env_number(name: str, default: Any, cast: type) -> Any:
    raw = (os.getenv(name, "") or "").strip()
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError:
        logger.warning("Invalid %s=%r, defaulting to %s", name, raw, default)
        return default


def _load_max_tool_turns() -> int:
    """Load the tool round bound from the environment; at least one round."""
    turns = _env_number("MAX_TOOL_TURNS", DEFAULT_MAX_TOOL_TURNS, int)
    if turns < 1:
        logger.warning("MAX_TOOL_TURNS=%d is below 1; using 1", turns)
        return 1
    return turns


MAX_TOOL_TURNS = _load_max_tool_turns()


class AgentConfig:
    """Model settings, read from the environment unless given explicitly."""

    def __init__(self, **overrides: Any) -> None:
        self.provider: str = overrides.get("provider") or os.getenv("LLM_PROVIDER", DEFAULT_PROVIDER)
        self.model: str = overrides.get("model") or os.getenv("LLM_MODEL", DEFAULT_MODEL)
        self.api_key: str = overrides.get("api_key") or resolve_api_key(self.provider)
        self.endpoint_url: str | None = (
            overrides.get("endpoint_url") or os.getenv("LLM_ENDPOINT_URL") or None
        )
        self.max_tokens: int = overrides.get("max_tokens") or _env_number(
            "LLM_MAX_TOKENS", DEFAULT_MAX_TOKENS, int
        )
        self.timeout: float = overrides.get("timeout") or _env_number(
            "LLM_TIMEOUT_SECONDS", DEFAULT_LLM_TIMEOUT_SECONDS, float
        )
        self.max_tool_turns: int = overrides.get("max_tool_turns") or MAX_TOOL_TURNS


def build_message_history(messages: Sequence[ChatMessage]) -> list[BaseMessage]:
    """Convert the client's transcript to LangChain message objects."""
    history: list[BaseMessage] = []
    for message in messages:
        if message.role == "user":
            history.append(HumanMessage(content=message.content))
        elif message.role == "assistant":
            history.append(AIMessage(content=message.content))
    return history


class SalesChatAgent:
    """Holds the tool-bound chat model and the tool registry.

    Everything that changes during a conversation (transcript, accumulator,
    tool context) is created per ``run`` call, so one agent can serve
    concurrent requests.
    """

    def __init__(
        self,
        config: AgentConfig,
        tools: Sequence[SalesTool] = (),
        *,
        tool_timeout: float | None = None,
    ) -> None:
        self.config = config
        self.registry = ToolRegistry(tools)
        if tool_timeout is None:
            self.coordinator = ToolExecutionCoordinator(self.registry)
        else:
            self.coordinator = ToolExecutionCoordinator(self.registry, tool_timeout)
        try:
            llm: BaseChatModel = create_chat_model(
                provider=config.provider,
                model=config.model,
                api_key=config.api_key,
                endpoint_url=config.endpoint_url,
                max_tokens=config.max_tokens,
                timeout=config.timeout,
            )
        except ValueError as exc:
            raise RuntimeError(f"Chat model is not configured: {exc}") from exc
        self.llm = llm.bind_tools(self.registry.tools) if len(self.registry) else llm

    async def run(self, request: SalesChatRequest, publisher: OutputPublisher) -> None:
        """Drive one request to completion, publishing events as they happen.

        Ends with exactly one terminal event: ``done`` on success, ``error``
        otherwise. Never raises, except for cancellation.
        """
        context = ToolContext(
            publisher=publisher,
            timezone=request.timezone,
            lead_info=request.lead_info,
            selected_slot_id=request.selected_slot_id,
        )
        messages: list[BaseMessage] = [
            SystemMessage(content=assemble_system_prompt(request.timezone)),
            *build_message_history(request.messages),
        ]
        try:
            await self._loop(messages, context)
        except Exception:
            logger.exception("Sales chat failed")
            publisher.publish(events.error())
        finally:
            logger.info(
                "Sales chat finished (delivered=%d, dropped=%d)",
                publisher.delivered,
                publisher.dropped,
            )

    async def _loop(self, messages: list[BaseMessage], context: ToolContext) -> None:
        publisher = context.publisher
        tool_rounds = 0
        while True:
            logger.info("Model turn %d", tool_rounds + 1)
            text, calls = await self._stream_turn(messages, publisher)

            if not calls:
                publisher.publish(events.done())
                return

            if tool_rounds >= self.config.max_tool_turns:
                logger.error(
                    "Model requested tools after %d rounds; stopping", tool_rounds
                )
                publisher.publish(events.error(
                    f"Agent exceeded maximum of {self.config.max_tool_turns} tool rounds"
                ))
                return

            results = await self.coordinator.execute_all(calls, context)
            messages.extend(_continuation_messages(text, calls, results))
            tool_rounds += 1

    async def _stream_turn(
        self,
        messages: list[BaseMessage],
        publisher: OutputPublisher,
    ) -> tuple[str, list[ToolCall]]:
        """Stream one model turn; return its text and its finalized tool calls."""
        decoder = StreamDecoder()
        accumulator = ToolCallAccumulator()
        text_parts: list[str] = []

        async for event in decoder.decode(self.llm.astream(messages)):
            if isinstance(event, TextDelta):
                text_parts.append(event.text)
                publisher.publish(events.text_delta(event.text))
                continue
            if isinstance(event, ToolCallStart) and event.name:
                publisher.publish(events.tool_use_start(event.name))
            accumulator.feed(event)

        return "".join(text_parts), list(accumulator.finalized)


def _continuation_messages(
    text: str,
    calls: Sequence[ToolCall],
    results: Sequence[ToolResult],
) -> list[BaseMessage]:
    """The assistant turn as sent, then one ToolMessage per result."""
    continuation: list[BaseMessage] = [
        AIMessage(content=text, tool_calls=[call.as_langchain() for call in calls]),
    ]
    for result in results:
        continuation.append(ToolMessage(
            content=result.content,
            tool_call_id=result.call_id,
            status="error" if result.is_error else "success",
        ))
    return continuation
