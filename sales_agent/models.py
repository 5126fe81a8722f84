"""Request and domain models shared by the engine, tools and services."""

from __future__ import annotations

from typing import Any, Literal, get_args

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_TIMEZONE = "America/New_York"

CompanySize = Literal["1-10", "11-50", "51-200", "201-1000", "1000+"]
BudgetRange = Literal["<10k", "10k-50k", "50k-100k", "100k+", "not_sure"]
TimePreference = Literal["morning", "afternoon", "any"]

REQUIRED_LEAD_FIELDS = ("name", "email", "company")


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str = Field(min_length=1, max_length=5000)


class LeadInfo(BaseModel):
    """Contact details for a prospect.

    Every field is optional here because the client sends partial state while
    the conversation is still collecting details. Use ``missing_required`` to
    check whether a booking can go ahead.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str = ""
    email: str = ""
    company: str = ""
    phone: str | None = None
    company_size: CompanySize | None = Field(default=None, alias="companySize")
    interests: list[str] | None = None
    budget_range: BudgetRange | None = Field(default=None, alias="budgetRange")

    def missing_required(self) -> list[str]:
        return [f for f in REQUIRED_LEAD_FIELDS if not str(getattr(self, f) or "").strip()]


_CHOICES: dict[str, tuple[str, ...]] = {
    "company_size": get_args(CompanySize),
    "budget_range": get_args(BudgetRange),
}


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, list):
        return not value
    return False


def merge_lead_info(tool_fields: dict[str, Any] | None, stored: LeadInfo | None) -> LeadInfo:
    """Merge lead fields from a tool call with client-supplied state.

    The tool call wins; the stored value is used only where the tool call's
    field is absent or empty.
    """
    tool_fields = tool_fields if isinstance(tool_fields, dict) else {}
    stored = stored or LeadInfo()
    merged: dict[str, Any] = {}
    for field_name, field in LeadInfo.model_fields.items():
        value = tool_fields.get(field_name)
        if _is_blank(value) and field.alias:
            value = tool_fields.get(field.alias)
        if field_name == "interests" and isinstance(value, str):
            value = [value]
        choices = _CHOICES.get(field_name)
        if choices is not None and value not in choices:
            value = None
        if _is_blank(value):
            value = getattr(stored, field_name)
        if value is not None:
            merged[field_name] = value
    return LeadInfo.model_validate(merged)


class SalesChatRequest(BaseModel):
    """Body of ``POST /api/v1/sales-chat``."""

    model_config = ConfigDict(populate_by_name=True)

    messages: list[ChatMessage] = Field(min_length=1, max_length=50)
    lead_info: LeadInfo | None = Field(default=None, alias="leadInfo")
    timezone: str = DEFAULT_TIMEZONE
    selected_slot_id: str | None = Field(default=None, alias="selectedSlotId")


class TimeSlot(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    start: str
    end: str
    display_time: str = Field(alias="displayTime")
    display_date: str = Field(alias="displayDate")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class BookingResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    event_id: str | None = Field(default=None, alias="eventId")
    meet_link: str | None = Field(default=None, alias="meetLink")
    start_time: str | None = Field(default=None, alias="startTime")
    end_time: str | None = Field(default=None, alias="endTime")
    error: str | None = None

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class FieldOption(BaseModel):
    value: str
    label: str


class LeadFormField(BaseModel):
    name: str
    label: str
    type: Literal["text", "email", "tel", "select"]
    required: bool
    options: list[FieldOption] | None = None

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)
