"""Demo availability and booking."""

from __future__ import annotations

import logging
import random
import string
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Protocol
from zoneinfo import ZoneInfo

from ..models import DEFAULT_TIMEZONE, BookingResult, LeadInfo, TimeSlot

logger = logging.getLogger("sales-chat-agent")

# Business hours are always Eastern Time regardless of the visitor's zone.
BUSINESS_TIMEZONE = ZoneInfo("America/New_York")
BUSINESS_START_HOUR = 8
BUSINESS_END_HOUR = 17
MIDDAY_HOUR = 12
SLOT_DURATION = timedelta(minutes=30)
DAYS_AHEAD = 7
MAX_SLOTS = 20

PENDING_PREFIX = "[PENDING] "
UTC = timezone.utc


class CalendarService(Protocol):
    async def get_available_slots(
        self,
        *,
        preferred_date: str | None = None,
        time_preference: str = "any",
        timezone: str = DEFAULT_TIMEZONE,
    ) -> list[TimeSlot]:
        ...

    async def book_demo(
        self,
        *,
        slot_id: str,
        lead_info: LeadInfo,
        meeting_notes: str | None = None,
        timezone: str = DEFAULT_TIMEZONE,
    ) -> BookingResult:
        ...

    async def confirm_demo(self, event_id: str) -> dict[str, Any]:
        ...

    async def get_event(self, event_id: str) -> "CalendarEvent | None":
        ...

    async def get_pending_events(self) -> "list[CalendarEvent]":
        ...

    async def delete_event(self, event_id: str) -> bool:
        ...


def format_iso(moment: datetime) -> str:
    """UTC ISO-8601 with millisecond precision and a ``Z`` suffix."""
    utc = moment.astimezone(UTC)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def parse_iso(value: str) -> datetime | None:
    """Parse an ISO-8601 instant; naive values are taken as UTC."""
    text = (value or "").strip()
    if not text:
        return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _display_time(moment: datetime) -> str:
    local = moment.astimezone(BUSINESS_TIMEZONE)
    hour = local.hour % 12 or 12
    suffix = "AM" if local.hour < 12 else "PM"
    return f"{hour}:{local.minute:02d} {suffix} ET"


def _display_date(moment: datetime) -> str:
    local = moment.astimezone(BUSINESS_TIMEZONE)
    return f"{local:%A}, {local:%B} {local.day}"


def describe_start(moment: datetime) -> str:
    return f"{_display_date(moment)} at {_display_time(moment)}"


def make_slot(start: datetime) -> TimeSlot:
    end = start + SLOT_DURATION
    return TimeSlot(
        id=format_iso(start),
        start=format_iso(start),
        end=format_iso(end),
        display_time=_display_time(start),
        display_date=_display_date(start),
    )


def _hours_for(time_preference: str | None) -> tuple[int, int]:
    if time_preference == "morning":
        return BUSINESS_START_HOUR, MIDDAY_HOUR
    if time_preference == "afternoon":
        return MIDDAY_HOUR, BUSINESS_END_HOUR
    return BUSINESS_START_HOUR, BUSINESS_END_HOUR


def _search_start(preferred_date: str | None, now: datetime) -> datetime:
    if not preferred_date:
        return now
    try:
        day = date.fromisoformat(preferred_date.strip()[:10])
    except ValueError:
        logger.warning("Ignoring unparseable preferred_date %r", preferred_date)
        return now
    start = datetime(day.year, day.month, day.day, tzinfo=BUSINESS_TIMEZONE)
    return max(start, now)


def generate_slots(
    *,
    now: datetime,
    preferred_date: str | None = None,
    time_preference: str | None = "any",
    busy: list[tuple[datetime, datetime]] | None = None,
    days_ahead: int = DAYS_AHEAD,
    limit: int = MAX_SLOTS,
) -> list[TimeSlot]:
    """Free weekday slots inside business hours, starting after *now*."""
    busy = busy or []
    first_hour, last_hour = _hours_for(time_preference)
    first_day = _search_start(preferred_date, now).astimezone(BUSINESS_TIMEZONE).date()

    step = int(SLOT_DURATION.total_seconds() // 60)
    slots: list[TimeSlot] = []
    for offset in range(days_ahead):
        day = first_day + timedelta(days=offset)
        if day.weekday() >= 5:
            continue
        for hour in range(first_hour, last_hour):
            for minute in range(0, 60, step):
                start = datetime(day.year, day.month, day.day, hour, minute, tzinfo=BUSINESS_TIMEZONE)
                if start <= now:
                    continue
                end = start + SLOT_DURATION
                if any(start < b_end and end > b_start for b_start, b_end in busy):
                    continue
                slots.append(make_slot(start))
                if len(slots) >= limit:
                    return slots
    return slots


@dataclass
class CalendarEvent:
    event_id: str
    summary: str
    description: str
    start: datetime
    end: datetime
    meet_link: str
    lead_email: str
    timezone: str = DEFAULT_TIMEZONE
    status: str = "pending"
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    confirmed_at: datetime | None = None


def build_event_description(lead_info: LeadInfo, meeting_notes: str | None) -> str:
    lines: list[str] = [
        f"Demo with {lead_info.name} from {lead_info.company}",
        "",
        "--- Lead Information ---",
        f"Name: {lead_info.name}",
        f"Email: {lead_info.email}",
        f"Company: {lead_info.company}",
    ]
    if lead_info.phone:
        lines.append(f"Phone: {lead_info.phone}")
    if lead_info.company_size:
        lines.append(f"Company Size: {lead_info.company_size}")
    if lead_info.interests:
        lines.append(f"Interests: {', '.join(lead_info.interests)}")
    if lead_info.budget_range:
        lines.append(f"Budget Range: {lead_info.budget_range}")
    if meeting_notes:
        lines.extend(["", f"--- Notes ---\n{meeting_notes}"])
    return "\n".join(lines)


def _meet_code() -> str:
    letters = string.ascii_lowercase
    parts = (3, 4, 3)
    return "-".join("".join(random.choices(letters, k=n)) for n in parts)


class LocalCalendarService:
    """In-process calendar holding demo events for the lifetime of the server.

    Bookings are created pending and must be confirmed through the emailed
    link. A slot that overlaps any existing event cannot be booked again.
    """

    def __init__(
        self,
        *,
        calendar_id: str = "",
        meet_base_url: str = "https://meet.google.com",
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self.calendar_id = calendar_id
        self.meet_base_url = meet_base_url.rstrip("/")
        self._now = now or (lambda: datetime.now(UTC))
        self._events: dict[str, CalendarEvent] = {}

    @property
    def events(self) -> list[CalendarEvent]:
        return list(self._events.values())

    def _busy(self) -> list[tuple[datetime, datetime]]:
        return [(e.start, e.end) for e in self._events.values()]

    async def get_available_slots(
        self,
        *,
        preferred_date: str | None = None,
        time_preference: str = "any",
        timezone: str = DEFAULT_TIMEZONE,
    ) -> list[TimeSlot]:
        logger.info(
            "Getting available slots (preferred_date=%s, time_preference=%s, timezone=%s)",
            preferred_date, time_preference, timezone,
        )
        return generate_slots(
            now=self._now(),
            preferred_date=preferred_date,
            time_preference=time_preference,
            busy=self._busy(),
        )

    async def book_demo(
        self,
        *,
        slot_id: str,
        lead_info: LeadInfo,
        meeting_notes: str | None = None,
        timezone: str = DEFAULT_TIMEZONE,
    ) -> BookingResult:
        logger.info("Attempting to book demo (slot_id=%s, lead_email=%s)", slot_id, lead_info.email)

        start = parse_iso(slot_id)
        if start is None:
            logger.warning("Rejecting booking with invalid slot id %r", slot_id)
            return BookingResult(
                success=False,
                error="The selected time slot is invalid. Please pick one of the offered times.",
            )
        if start <= self._now():
            return BookingResult(
                success=False,
                error="The selected time slot has already passed. Please pick a later time.",
            )
        end = start + SLOT_DURATION
        if any(start < b_end and end > b_start for b_start, b_end in self._busy()):
            logger.info("Slot %s is already taken", slot_id)
            return BookingResult(
                success=False,
                error="That time slot is no longer available. Please choose another time.",
            )

        event = CalendarEvent(
            event_id=uuid.uuid4().hex,
            summary=f"{PENDING_PREFIX}Demo: {lead_info.company} - tenxdev.ai",
            description=build_event_description(lead_info, meeting_notes),
            start=start,
            end=end,
            meet_link=f"{self.meet_base_url}/{_meet_code()}",
            lead_email=lead_info.email,
            timezone=timezone,
            created_at=self._now(),
        )
        self._events[event.event_id] = event
        logger.info("Demo booked successfully (event_id=%s, lead_email=%s)",
                    event.event_id, lead_info.email)

        return BookingResult(
            success=True,
            event_id=event.event_id,
            meet_link=event.meet_link,
            start_time=format_iso(start),
            end_time=format_iso(end),
        )

    async def confirm_demo(self, event_id: str) -> dict[str, Any]:
        """Drop the pending marker from an event."""
        event = self._events.get(event_id)
        if event is None:
            return {"success": False, "error": "Demo not found"}
        if event.status != "pending":
            return {"success": True, "alreadyConfirmed": True}
        event.summary = event.summary.replace(PENDING_PREFIX, "", 1)
        event.status = "confirmed"
        event.confirmed_at = self._now()
        logger.info("Demo confirmed successfully (event_id=%s)", event_id)
        return {"success": True}

    async def get_event(self, event_id: str) -> CalendarEvent | None:
        return self._events.get(event_id)

    async def get_pending_events(self) -> list[CalendarEvent]:
        """Events still waiting for the lead to confirm."""
        return [e for e in self._events.values() if e.status == "pending"]

    async def delete_event(self, event_id: str) -> bool:
        event = self._events.pop(event_id, None)
        if event is None:
            logger.warning("Cannot delete unknown calendar event (event_id=%s)", event_id)
            return False
        logger.info("Calendar event deleted (event_id=%s)", event_id)
        return True
