"""Decoding of incremental model output into normalized stream events."""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Union

from langchain_core.messages import AIMessageChunk

logger = logging.getLogger("sales-chat-agent")

_REPLACEMENT_CHAR = "\ufffd"


@dataclass(frozen=True)
class TextDelta:
    text: str


@dataclass(frozen=True)
class ToolCallStart:
    id: str
    name: str


@dataclass(frozen=True)
class ToolCallArgumentFragment:
    id: str
    partial: str


@dataclass(frozen=True)
class ToolCallEnd:
    id: str


@dataclass(frozen=True)
class TurnEnd:
    pass


StreamEvent = Union[TextDelta, ToolCallStart, ToolCallArgumentFragment, ToolCallEnd, TurnEnd]


@dataclass
class ToolCall:
    id: str
    name: str
    arguments: dict[str, Any] = field(default_factory=dict)

    def as_langchain(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "args": self.arguments}


def sanitize_delta(text: str) -> str:
    """Strip U+FFFD replacement characters from streaming deltas."""
    if _REPLACEMENT_CHAR not in text:
        return text
    logger.warning("Stripped %d U+FFFD from delta: %r",
                   text.count(_REPLACEMENT_CHAR), text[:200])
    return text.replace(_REPLACEMENT_CHAR, "")


def _get(obj: Any, key: str, default: Any = None) -> Any:
    """Get attribute or dict key."""
    if isinstance(obj, dict):
        return obj.get(key, default)
    return getattr(obj, key, default)


def _text_deltas(content: Any) -> list[str]:
    if isinstance(content, str):
        return [content] if content else []
    if not isinstance(content, list):
        return []
    texts: list[str] = []
    for block in content:
        if isinstance(block, str):
            texts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            text = str(block.get("text", ""))
            if text:
                texts.append(text)
    return texts


class StreamDecoder:
    """Turns a feed of ``AIMessageChunk`` into ordered ``StreamEvent``s.

    Tool-call chunks are grouped by block index. Providers stream tool blocks
    one after another, so the first chunk of a new index closes whichever
    block was open before it. Exhausting the feed closes anything still open
    and then yields ``TurnEnd``. Errors raised by the feed propagate unchanged.
    """

    def __init__(self) -> None:
        self._open: dict[int, str] = {}
        self._closed: set[int] = set()

    async def decode(self, chunks: AsyncIterator[Any]) -> AsyncIterator[StreamEvent]:
        self._open = {}
        self._closed = set()
        async for chunk in chunks:
            if not isinstance(chunk, AIMessageChunk):
                continue

            for raw in _text_deltas(chunk.content):
                text = sanitize_delta(raw)
                if text:
                    yield TextDelta(text)

            for tc_chunk in chunk.tool_call_chunks or []:
                for event in self._feed_tool_chunk(tc_chunk):
                    yield event

        for event in self._close_open():
            yield event
        yield TurnEnd()

    def _feed_tool_chunk(self, tc_chunk: Any) -> list[StreamEvent]:
        events: list[StreamEvent] = []
        idx = _get(tc_chunk, "index")
        if idx is None:
            idx = 0

        if idx in self._closed:
            logger.warning("Dropping tool call chunk for closed block index %s", idx)
            return events

        if idx not in self._open:
            events.extend(self._close_open())
            call_id = _get(tc_chunk, "id") or f"toolu_{uuid.uuid4().hex[:24]}"
            self._open[idx] = call_id
            events.append(ToolCallStart(call_id, _get(tc_chunk, "name") or ""))

        args = _get(tc_chunk, "args")
        if args:
            events.append(ToolCallArgumentFragment(self._open[idx], str(args)))
        return events

    def _close_open(self) -> list[StreamEvent]:
        events: list[StreamEvent] = [ToolCallEnd(call_id) for call_id in self._open.values()]
        self._closed.update(self._open)
        self._open = {}
        return events


def parse_arguments(raw: str) -> dict[str, Any]:
    """Parse concatenated argument text, falling back to an empty object."""
    if not raw.strip():
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Malformed tool arguments, using empty object: %r", raw[:200])
        return {}
    if not isinstance(parsed, dict):
        logger.warning("Tool arguments are not an object, using empty object: %r", raw[:200])
        return {}
    return parsed


class ToolCallAccumulator:
    """Buffers argument fragments per call id until the call ends."""

    def __init__(self) -> None:
        self._names: dict[str, str] = {}
        self._buffers: dict[str, str] = {}
        self.finalized: list[ToolCall] = []

    def feed(self, event: StreamEvent) -> ToolCall | None:
        """Consume one decoder event; return the finalized call on ``ToolCallEnd``."""
        if isinstance(event, ToolCallStart):
            self._names[event.id] = event.name
            self._buffers[event.id] = ""
        elif isinstance(event, ToolCallArgumentFragment):
            self._buffers[event.id] = self._buffers.get(event.id, "") + event.partial
        elif isinstance(event, ToolCallEnd):
            return self._finish(event.id)
        return None

    def _finish(self, call_id: str) -> ToolCall | None:
        name = self._names.pop(call_id, "")
        raw = self._buffers.pop(call_id, "")
        if not name:
            # Ghost entry from an index gap; nothing to execute.
            logger.warning("Discarding tool call %s without a name", call_id)
            return None
        call = ToolCall(id=call_id, name=name, arguments=parse_arguments(raw))
        self.finalized.append(call)
        return call
