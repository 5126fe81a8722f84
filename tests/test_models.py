"""Tests for request models, lead merging and outbound events."""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from sales_agent import events
from sales_agent.models import (
    BookingResult,
    ChatMessage,
    LeadInfo,
    SalesChatRequest,
    merge_lead_info,
)
from sales_agent.publisher import ConnectionSignal, OutputPublisher


class TestSalesChatRequest:
    def test_camel_case_body(self):
        req = SalesChatRequest.model_validate({
            "messages": [{"role": "user", "content": "hi"}],
            "leadInfo": {"name": "Jane", "companySize": "11-50"},
            "selectedSlotId": "2024-01-15T19:00:00.000Z",
        })
        assert req.timezone == "America/New_York"
        assert req.lead_info.company_size == "11-50"
        assert req.selected_slot_id == "2024-01-15T19:00:00.000Z"

    def test_requires_at_least_one_message(self):
        with pytest.raises(ValidationError):
            SalesChatRequest.model_validate({"messages": []})

    def test_rejects_more_than_fifty_messages(self):
        messages = [{"role": "user", "content": "x"}] * 51
        with pytest.raises(ValidationError):
            SalesChatRequest.model_validate({"messages": messages})

    def test_content_length_bounds(self):
        with pytest.raises(ValidationError):
            ChatMessage(role="user", content="")
        with pytest.raises(ValidationError):
            ChatMessage(role="user", content="x" * 5001)
        with pytest.raises(ValidationError):
            ChatMessage(role="system", content="hi")


class TestMergeLeadInfo:
    def test_tool_fields_win(self):
        merged = merge_lead_info(
            {"name": "Jane", "email": "new@acme.com", "company": ""},
            LeadInfo(name="Old", email="old@acme.com", company="Acme"),
        )
        assert merged.name == "Jane"
        assert merged.email == "new@acme.com"
        assert merged.company == "Acme"
        assert merged.missing_required() == []

    def test_accepts_camel_aliases_and_wraps_interests(self):
        merged = merge_lead_info(
            {"companySize": "51-200", "budget_range": "100k+", "interests": "AI"},
            None,
        )
        assert merged.company_size == "51-200"
        assert merged.budget_range == "100k+"
        assert merged.interests == ["AI"]

    def test_invalid_choice_falls_back_to_stored(self):
        merged = merge_lead_info(
            {"company_size": "huge"},
            LeadInfo(company_size="1-10"),
        )
        assert merged.company_size == "1-10"

    def test_missing_required(self):
        merged = merge_lead_info({"name": " ", "email": "a@b.com"}, None)
        assert merged.missing_required() == ["name", "company"]

    def test_non_dict_tool_fields(self):
        assert merge_lead_info("jane", None) == LeadInfo()


class TestOutboundEvents:
    def test_sse_framing(self):
        frame = events.text_delta("Hi").to_sse()
        assert frame == 'data: {"type": "text_delta", "content": "Hi"}\n\n'

    def test_done_has_no_payload(self):
        assert json.loads(events.done().to_json()) == {"type": "done"}

    def test_booking_confirmed_omits_unset_fields(self):
        event = events.booking_confirmed(BookingResult(success=True, event_id="e1"))
        assert json.loads(event.to_json()) == {
            "type": "booking_confirmed",
            "booking": {"success": True, "eventId": "e1"},
        }

    def test_error_defaults_to_generic_message(self):
        assert events.error().data == {"message": "An error occurred. Please try again."}


class TestOutputPublisher:
    def test_writes_in_order_until_disconnect(self):
        frames: list[str] = []
        signal = ConnectionSignal()
        publisher = OutputPublisher(frames.append, signal)

        assert publisher.publish(events.text_delta("a")) is True
        assert publisher.publish(events.tool_use_start("book_demo")) is True
        signal.disconnect()
        assert publisher.connected is False
        assert publisher.publish(events.done()) is False

        assert [json.loads(f[6:])["type"] for f in frames] == ["text_delta", "tool_use_start"]
        assert publisher.delivered == 2
        assert publisher.dropped == 1

    def test_disconnect_is_idempotent(self):
        signal = ConnectionSignal()
        signal.disconnect()
        signal.disconnect()
        assert signal.connected is False
