"""Fake model stream and publisher helpers shared by the tests."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any
from unittest.mock import MagicMock

from langchain_core.messages import AIMessageChunk, ToolCallChunk

from sales_agent.agent import AgentConfig

# Monday 2024-01-15 14:00 UTC (09:00 ET)
FIXED_NOW = datetime(2024, 1, 15, 14, 0, tzinfo=timezone.utc)


def make_config(**overrides) -> AgentConfig:
    """Create an AgentConfig with sensible test defaults."""
    return AgentConfig(**{
        "provider": "anthropic",
        "model": "claude-sonnet-4-20250514",
        "api_key": "test-key",
        **overrides,
    })


def tool_call_chunk(
    name: str, args: dict, tc_id: str = "tc-1", index: int = 0
) -> AIMessageChunk:
    """Create an AIMessageChunk containing a single complete tool call."""
    return AIMessageChunk(
        content="",
        tool_call_chunks=[
            ToolCallChunk(name=name, args=json.dumps(args), id=tc_id, index=index),
        ],
    )


def tool_call_start_chunk(name: str, tc_id: str, index: int = 0) -> AIMessageChunk:
    return AIMessageChunk(
        content="",
        tool_call_chunks=[ToolCallChunk(name=name, args="", id=tc_id, index=index)],
    )


def args_chunk(partial: str, index: int = 0) -> AIMessageChunk:
    """A continuation chunk carrying only an argument fragment."""
    return AIMessageChunk(
        content="",
        tool_call_chunks=[ToolCallChunk(name=None, args=partial, id=None, index=index)],
    )


def text_chunk(text: str) -> AIMessageChunk:
    return AIMessageChunk(content=text, tool_call_chunks=[])


def make_fake_astream(*iterations):
    """Build a fake astream that yields different chunks per call.

    Each positional arg is a list of AIMessageChunk for one model turn. The
    messages passed on each call are recorded on ``fake_astream.calls``.
    """
    calls: list[list[Any]] = []

    async def fake_astream(messages):
        calls.append(list(messages))
        idx = len(calls) - 1
        chunks = iterations[idx] if idx < len(iterations) else [text_chunk("")]
        for c in chunks:
            yield c

    fake_astream.calls = calls
    return fake_astream


def setup_mock_llm(mock_create, fake_astream):
    """Wire up mock_create to return a mock LLM with the given astream."""
    mock_llm = MagicMock()
    mock_llm.astream = fake_astream
    mock_llm.bind_tools = MagicMock(return_value=mock_llm)
    mock_create.return_value = mock_llm
    return mock_llm


class RecordingSink:
    """Publisher sink that keeps every SSE frame and decodes it back."""

    def __init__(self) -> None:
        self.frames: list[str] = []

    def __call__(self, frame: str) -> None:
        self.frames.append(frame)

    @property
    def events(self) -> list[dict[str, Any]]:
        out = []
        for frame in self.frames:
            assert frame.startswith("data: ") and frame.endswith("\n\n")
            out.append(json.loads(frame[len("data: "):-2]))
        return out

    @property
    def types(self) -> list[str]:
        return [e["type"] for e in self.events]

    def of_type(self, event_type: str) -> list[dict[str, Any]]:
        return [e for e in self.events if e["type"] == event_type]
