from __future__ import annotations

from typing import Any, Type

from pydantic import BaseModel, Field

from .. import events
from ..models import TimePreference, TimeSlot
from .registry import SalesTool, ToolContext
from .result_schema import make_tool_success

SUMMARY_SLOT_COUNT = 5


class GetAvailableSlotsInput(BaseModel):
    preferred_date: str | None = Field(
        default=None,
        description="Optional preferred date in YYYY-MM-DD format",
    )
    time_preference: TimePreference | None = Field(
        default=None,
        description="Preferred time of day for the meeting",
    )


def summarize_slots(slots: list[TimeSlot]) -> str:
    if not slots:
        return (
            "No available slots found for the requested time period. "
            "Please ask if they would like to try a different date range."
        )
    preview = ", ".join(
        f"{s.display_date} at {s.display_time}" for s in slots[:SUMMARY_SLOT_COUNT]
    )
    return (
        f"Found {len(slots)} available slots. First few options: {preview}. "
        "The user can now select a time from the displayed options."
    )


class GetAvailableSlotsTool(SalesTool):
    """Look up open demo slots and show them to the visitor."""

    name: str = "get_available_slots"
    description: str = (
        "Get available demo time slots for the next 7 days. Call this ONLY when user "
        "FIRST asks to schedule. Do NOT call this if user has already selected a slot "
        "(e.g. \"I'd like to book the 3:00 PM slot\")."
    )
    args_schema: Type[BaseModel] = GetAvailableSlotsInput
    optional_fields: tuple[str, ...] = ("preferred_date", "time_preference")
    calendar: Any = None

    async def execute(self, args: dict[str, Any], context: ToolContext) -> dict[str, Any]:
        preferred_date = args.get("preferred_date")
        time_preference = args.get("time_preference")
        if time_preference not in ("morning", "afternoon", "any"):
            time_preference = "any"

        slots = await self.calendar.get_available_slots(
            preferred_date=preferred_date if isinstance(preferred_date, str) else None,
            time_preference=time_preference,
            timezone=context.timezone,
        )
        context.push(events.available_slots(slots))
        return make_tool_success(
            kind=self.name,
            text=summarize_slots(slots),
            data={"slot_count": len(slots)},
        )
