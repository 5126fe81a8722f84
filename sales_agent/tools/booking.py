from __future__ import annotations

import logging
from typing import Any, Type

from pydantic import BaseModel, Field

from .. import events
from ..models import (
    REQUIRED_LEAD_FIELDS,
    BookingResult,
    BudgetRange,
    CompanySize,
    LeadInfo,
    merge_lead_info,
)
from ..services.notifier import format_booking_notification
from .lead_form import unsubmitted_fields
from .registry import SalesTool, ToolContext, is_missing
from .result_schema import make_tool_error, make_tool_success

logger = logging.getLogger("sales-chat-agent")

CONTACT_EMAIL = "hello@tenxdev.ai"


class BookDemoLeadInfo(BaseModel):
    name: str = Field(description="Full name of the contact")
    email: str = Field(description="Email address")
    company: str = Field(description="Company name")
    phone: str | None = Field(default=None, description="Phone number (optional)")
    company_size: CompanySize | None = Field(
        default=None,
        description="Number of employees",
    )
    interests: list[str] | None = Field(
        default=None,
        description="Services or topics they are interested in",
    )
    budget_range: BudgetRange | None = Field(
        default=None,
        description="Approximate project budget",
    )


class BookDemoInput(BaseModel):
    slot_id: str = Field(
        description="The ID of the selected time slot from get_available_slots",
    )
    lead_info: BookDemoLeadInfo
    meeting_notes: str | None = Field(
        default=None,
        description=(
            "REQUIRED: Summary of the conversation - what the prospect wants to discuss, "
            "their project details, challenges, and any specific questions they mentioned. "
            "This goes in the calendar event description."
        ),
    )


class BookDemoTool(SalesTool):
    """Book a demo on the calendar, then email the lead and notify the team.

    Within one request a successful booking is remembered on the context;
    repeated calls report that booking instead of creating another.
    """

    name: str = "book_demo"
    description: str = (
        "Book a demo meeting. Only call this when you have: 1) All required lead "
        "information (name, email, company), and 2) The user has selected a specific "
        "time slot."
    )
    args_schema: Type[BaseModel] = BookDemoInput
    side_effects: tuple[str, ...] = ("calendar_booking", "email", "team_notification")
    required_fields: tuple[str, ...] = ("slot_id", *(f"lead_info.{f}" for f in REQUIRED_LEAD_FIELDS))
    optional_fields: tuple[str, ...] = (
        "meeting_notes",
        "lead_info.phone",
        "lead_info.company_size",
        "lead_info.interests",
        "lead_info.budget_range",
    )
    calendar: Any = None
    mailer: Any = None
    notifier: Any = None

    def _lead_info(self, args: dict[str, Any], context: ToolContext) -> LeadInfo:
        return merge_lead_info(args.get("lead_info"), context.lead_info)

    def _slot_id(self, args: dict[str, Any], context: ToolContext) -> str:
        # The client's selection is authoritative over what the model echoes back.
        slot_id = context.selected_slot_id or args.get("slot_id")
        return slot_id if isinstance(slot_id, str) else ""

    def validate_args(self, args: dict[str, Any], context: ToolContext) -> list[str]:
        if context.booking is not None and context.booking.success:
            return []
        missing = list(self._lead_info(args, context).missing_required())
        if is_missing(self._slot_id(args, context)):
            missing.append("slot_id")
        return missing

    def describe_missing(self, missing: list[str]) -> str:
        hint = "Please use collect_lead_info first." if set(missing) - {"slot_id"} else (
            "Please ask the user to pick one of the available slots."
        )
        return f"Cannot book demo: Missing required fields ({', '.join(missing)}). {hint}"

    async def execute(self, args: dict[str, Any], context: ToolContext) -> dict[str, Any]:
        if context.booking is not None and context.booking.success:
            logger.info("Skipping duplicate book_demo call (event_id=%s)", context.booking.event_id)
            return make_tool_success(
                kind=self.name,
                text=(
                    "The demo is already booked for "
                    f"{context.booking.start_time}. Do not book it again."
                ),
                data={"booking": context.booking.to_wire(), "duplicate": True},
            )

        # A form shown earlier in this request cannot have been submitted yet.
        awaiting = unsubmitted_fields(context.requested_fields, context.lead_info)
        if awaiting:
            logger.info("Refusing book_demo while lead form is pending: %s", awaiting)
            return make_tool_error(
                kind=self.name,
                error="lead form pending",
                text=(
                    "Cannot book demo yet: a form was just shown to collect "
                    f"{', '.join(awaiting)}. Wait for the user to submit the form "
                    "before booking."
                ),
                data={"awaiting_fields": awaiting},
            )

        lead_info = self._lead_info(args, context)
        slot_id = self._slot_id(args, context)
        meeting_notes = args.get("meeting_notes")
        if not isinstance(meeting_notes, str):
            meeting_notes = None
        logger.info(
            "Determining slot ID for booking (selected=%s, model=%s, using=%s)",
            context.selected_slot_id, args.get("slot_id"), slot_id,
        )

        booking: BookingResult = await self.calendar.book_demo(
            slot_id=slot_id,
            lead_info=lead_info,
            meeting_notes=meeting_notes,
            timezone=context.timezone,
        )

        if not booking.success:
            context.push(events.error(booking.error or "Failed to book demo"))
            return make_tool_error(
                kind=self.name,
                error=booking.error or "booking failed",
                text=(
                    f"Failed to book demo: {booking.error}. Please apologize and offer to "
                    f"try again or suggest contacting us directly at {CONTACT_EMAIL}."
                ),
                data={"booking": booking.to_wire()},
            )

        context.booking = booking
        context.push(events.booking_confirmed(booking))
        await self._send_confirmation(lead_info, booking)
        await self._notify_team(lead_info, booking, meeting_notes)

        return make_tool_success(
            kind=self.name,
            text=(
                f"Demo successfully booked! A Google Meet link ({booking.meet_link}) has been "
                f"created and a confirmation email sent to {lead_info.email}. "
                f"The meeting is scheduled for {booking.start_time}."
            ),
            data={"booking": booking.to_wire()},
        )

    async def _send_confirmation(self, lead_info: LeadInfo, booking: BookingResult) -> None:
        if self.mailer is None:
            return
        try:
            await self.mailer.send_demo_confirmation(
                to=lead_info.email,
                name=lead_info.name,
                company=lead_info.company,
                meet_link=booking.meet_link or "",
                start_time=booking.start_time or "",
                end_time=booking.end_time or "",
                event_id=booking.event_id or "",
            )
        except Exception:
            logger.exception("Failed to send demo confirmation email")

    async def _notify_team(
        self,
        lead_info: LeadInfo,
        booking: BookingResult,
        meeting_notes: str | None,
    ) -> None:
        if self.notifier is None:
            return
        try:
            await self.notifier.send_message(
                format_booking_notification(lead_info, booking, meeting_notes)
            )
        except Exception:
            logger.exception("Failed to send team notification")
