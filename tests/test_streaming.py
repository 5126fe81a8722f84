"""Tests for stream decoding and tool call accumulation."""

from __future__ import annotations

from langchain_core.messages import AIMessageChunk, HumanMessage

from sales_agent.streaming import (
    StreamDecoder,
    TextDelta,
    ToolCall,
    ToolCallAccumulator,
    ToolCallArgumentFragment,
    ToolCallEnd,
    ToolCallStart,
    TurnEnd,
    parse_arguments,
    sanitize_delta,
)

from .helpers import args_chunk, text_chunk, tool_call_chunk, tool_call_start_chunk


async def _aiter(items):
    for item in items:
        yield item


async def _decode(chunks):
    return [event async for event in StreamDecoder().decode(_aiter(chunks))]


class TestSanitizeDelta:
    def test_plain_text_unchanged(self):
        assert sanitize_delta("hello") == "hello"

    def test_strips_replacement_chars(self):
        assert sanitize_delta("a\ufffdb\ufffd") == "ab"


class TestStreamDecoder:
    async def test_text_only_turn(self):
        events = await _decode([text_chunk("Hi"), text_chunk(" there")])
        assert events == [TextDelta("Hi"), TextDelta(" there"), TurnEnd()]

    async def test_empty_feed_still_ends_turn(self):
        assert await _decode([]) == [TurnEnd()]

    async def test_list_content_text_blocks(self):
        chunk = AIMessageChunk(content=[
            {"type": "text", "text": "Hello", "index": 0},
            {"type": "thinking", "thinking": "hmm", "index": 1},
        ])
        events = await _decode([chunk])
        assert events == [TextDelta("Hello"), TurnEnd()]

    async def test_ignores_non_chunk_items(self):
        events = await _decode([HumanMessage(content="x"), text_chunk("ok")])
        assert events == [TextDelta("ok"), TurnEnd()]

    async def test_fragmented_tool_call(self):
        events = await _decode([
            tool_call_start_chunk("get_available_slots", "toolu_1"),
            args_chunk('{"time_pref'),
            args_chunk('erence": "morning"}'),
        ])
        assert events == [
            ToolCallStart("toolu_1", "get_available_slots"),
            ToolCallArgumentFragment("toolu_1", '{"time_pref'),
            ToolCallArgumentFragment("toolu_1", 'erence": "morning"}'),
            ToolCallEnd("toolu_1"),
            TurnEnd(),
        ]

    async def test_new_index_closes_previous_block(self):
        events = await _decode([
            tool_call_chunk("collect_lead_info", {"fields_needed": ["name"]}, "t1", index=1),
            tool_call_chunk("get_available_slots", {}, "t2", index=2),
        ])
        kinds = [type(e).__name__ for e in events]
        assert kinds == [
            "ToolCallStart", "ToolCallArgumentFragment", "ToolCallEnd",
            "ToolCallStart", "ToolCallArgumentFragment", "ToolCallEnd",
            "TurnEnd",
        ]
        assert events[2] == ToolCallEnd("t1")
        assert events[5] == ToolCallEnd("t2")

    async def test_text_before_tool_call_keeps_order(self):
        events = await _decode([
            text_chunk("Let me check."),
            tool_call_chunk("get_available_slots", {}, "t1", index=1),
        ])
        assert events[0] == TextDelta("Let me check.")
        assert events[1] == ToolCallStart("t1", "get_available_slots")

    async def test_missing_id_is_generated(self):
        chunk = AIMessageChunk(
            content="",
            tool_call_chunks=[{"name": "book_demo", "args": "{}", "id": None, "index": 0}],
        )
        events = await _decode([chunk])
        start = events[0]
        assert isinstance(start, ToolCallStart)
        assert start.id.startswith("toolu_")
        assert events[2] == ToolCallEnd(start.id)

    async def test_feed_error_propagates(self):
        async def broken():
            yield text_chunk("partial")
            raise ConnectionError("stream reset")

        decoder = StreamDecoder()
        seen = []
        try:
            async for event in decoder.decode(broken()):
                seen.append(event)
        except ConnectionError as exc:
            assert "stream reset" in str(exc)
        else:
            raise AssertionError("expected ConnectionError")
        assert seen == [TextDelta("partial")]


class TestParseArguments:
    def test_empty_gives_empty_object(self):
        assert parse_arguments("") == {}
        assert parse_arguments("   ") == {}

    def test_invalid_json_gives_empty_object(self, caplog):
        assert parse_arguments('{"slot_id": ') == {}
        assert "Malformed tool arguments" in caplog.text

    def test_non_object_gives_empty_object(self):
        assert parse_arguments("[1, 2]") == {}
        assert parse_arguments('"text"') == {}

    def test_object(self):
        assert parse_arguments('{"a": 1}') == {"a": 1}


class TestToolCallAccumulator:
    def test_finalizes_on_end(self):
        acc = ToolCallAccumulator()
        assert acc.feed(ToolCallStart("t1", "get_available_slots")) is None
        assert acc.feed(ToolCallArgumentFragment("t1", '{"time_pref')) is None
        assert acc.feed(ToolCallArgumentFragment("t1", 'erence": "morning"}')) is None
        call = acc.feed(ToolCallEnd("t1"))
        assert call == ToolCall("t1", "get_available_slots", {"time_preference": "morning"})
        assert acc.finalized == [call]

    def test_no_fragments_gives_empty_arguments(self):
        acc = ToolCallAccumulator()
        acc.feed(ToolCallStart("t1", "get_available_slots"))
        call = acc.feed(ToolCallEnd("t1"))
        assert call.arguments == {}

    def test_malformed_arguments_become_empty(self):
        acc = ToolCallAccumulator()
        acc.feed(ToolCallStart("t1", "book_demo"))
        acc.feed(ToolCallArgumentFragment("t1", '{"slot_id": '))
        call = acc.feed(ToolCallEnd("t1"))
        assert call.name == "book_demo"
        assert call.arguments == {}

    def test_ghost_call_without_name_is_dropped(self):
        acc = ToolCallAccumulator()
        acc.feed(ToolCallStart("ghost", ""))
        assert acc.feed(ToolCallEnd("ghost")) is None
        assert acc.finalized == []

    def test_interleaved_calls_keep_emission_order(self):
        acc = ToolCallAccumulator()
        for event in [
            ToolCallStart("a", "collect_lead_info"),
            ToolCallArgumentFragment("a", '{"fields_needed": ["email"]}'),
            ToolCallEnd("a"),
            ToolCallStart("b", "get_available_slots"),
            ToolCallEnd("b"),
        ]:
            acc.feed(event)
        assert [c.id for c in acc.finalized] == ["a", "b"]

    def test_as_langchain(self):
        call = ToolCall("t1", "book_demo", {"slot_id": "x"})
        assert call.as_langchain() == {"id": "t1", "name": "book_demo", "args": {"slot_id": "x"}}
