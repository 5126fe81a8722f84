"""Client-facing events pushed over the server-sent-event stream."""

from __future__ import annotations

import json
from typing import Any, Iterable

from .models import BookingResult, LeadFormField, TimeSlot

TEXT_DELTA = "text_delta"
TOOL_USE_START = "tool_use_start"
AVAILABLE_SLOTS = "available_slots"
LEAD_FORM_REQUEST = "lead_form_request"
BOOKING_CONFIRMED = "booking_confirmed"
ERROR = "error"
DONE = "done"

GENERIC_ERROR_MESSAGE = "An error occurred. Please try again."


class OutboundEvent:
    """An event written to the connected client."""

    def __init__(self, event_type: str, data: dict[str, Any] | None = None) -> None:
        self.type = event_type
        self.data = data or {}

    def to_json(self) -> str:
        return json.dumps({"type": self.type, **self.data})

    def to_sse(self) -> str:
        return f"data: {self.to_json()}\n\n"

    def __repr__(self) -> str:
        return f"OutboundEvent({self.type!r}, {self.data!r})"


def text_delta(content: str) -> OutboundEvent:
    return OutboundEvent(TEXT_DELTA, {"content": content})


def tool_use_start(name: str) -> OutboundEvent:
    return OutboundEvent(TOOL_USE_START, {"name": name})


def available_slots(slots: Iterable[TimeSlot]) -> OutboundEvent:
    return OutboundEvent(AVAILABLE_SLOTS, {"slots": [s.to_wire() for s in slots]})


def lead_form_request(fields: Iterable[LeadFormField], context: str | None = None) -> OutboundEvent:
    data: dict[str, Any] = {"fields": [f.to_wire() for f in fields]}
    if context:
        data["context"] = context
    return OutboundEvent(LEAD_FORM_REQUEST, data)


def booking_confirmed(booking: BookingResult) -> OutboundEvent:
    return OutboundEvent(BOOKING_CONFIRMED, {"booking": booking.to_wire()})


def error(message: str = GENERIC_ERROR_MESSAGE) -> OutboundEvent:
    return OutboundEvent(ERROR, {"message": message})


def done() -> OutboundEvent:
    return OutboundEvent(DONE)
