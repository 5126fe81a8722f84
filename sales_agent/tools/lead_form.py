from __future__ import annotations

from typing import Any, Literal, Type

from pydantic import BaseModel, Field

from .. import events
from ..models import FieldOption, LeadFormField, LeadInfo
from .registry import SalesTool, ToolContext, is_missing
from .result_schema import make_tool_success

LeadFieldName = Literal[
    "name",
    "email",
    "company",
    "phone",
    "company_size",
    "interests",
    "budget_range",
]

LEAD_FORM_FIELDS: dict[str, LeadFormField] = {
    "name": LeadFormField(name="name", label="Your Name", type="text", required=True),
    "email": LeadFormField(name="email", label="Email Address", type="email", required=True),
    "company": LeadFormField(name="company", label="Company Name", type="text", required=True),
    "phone": LeadFormField(name="phone", label="Phone Number", type="tel", required=False),
    "companySize": LeadFormField(
        name="companySize",
        label="Company Size",
        type="select",
        required=False,
        options=[
            FieldOption(value="1-10", label="1-10 employees"),
            FieldOption(value="11-50", label="11-50 employees"),
            FieldOption(value="51-200", label="51-200 employees"),
            FieldOption(value="201-1000", label="201-1000 employees"),
            FieldOption(value="1000+", label="1000+ employees"),
        ],
    ),
    "interests": LeadFormField(
        name="interests",
        label="What are you interested in?",
        type="text",
        required=False,
    ),
    "budgetRange": LeadFormField(
        name="budgetRange",
        label="Project Budget",
        type="select",
        required=False,
        options=[
            FieldOption(value="<10k", label="Under $10k"),
            FieldOption(value="10k-50k", label="$10k - $50k"),
            FieldOption(value="50k-100k", label="$50k - $100k"),
            FieldOption(value="100k+", label="$100k+"),
            FieldOption(value="not_sure", label="Not sure yet"),
        ],
    ),
}

# The model asks with snake_case names; the form speaks camelCase.
_FIELD_ALIASES = {
    "company_size": "companySize",
    "budget_range": "budgetRange",
}
_LEAD_ATTRS = {camel: snake for snake, camel in _FIELD_ALIASES.items()}


def unsubmitted_fields(requested: list[str], lead_info: LeadInfo | None) -> list[str]:
    """Form fields shown to the user that the client has not sent back yet."""
    pending: list[str] = []
    for name in requested:
        value = getattr(lead_info, _LEAD_ATTRS.get(name, name), None) if lead_info else None
        if is_missing(value) and name not in pending:
            pending.append(name)
    return pending


def resolve_form_fields(names: list[Any]) -> list[LeadFormField]:
    """Map requested names to form descriptors, skipping unknown and repeated ones."""
    fields: list[LeadFormField] = []
    seen: set[str] = set()
    for raw in names:
        key = _FIELD_ALIASES.get(str(raw), str(raw))
        descriptor = LEAD_FORM_FIELDS.get(key)
        if descriptor is None or key in seen:
            continue
        seen.add(key)
        fields.append(descriptor)
    return fields


class CollectLeadInfoInput(BaseModel):
    fields_needed: list[LeadFieldName] = Field(
        description="Which fields to collect from the user",
    )
    context: str | None = Field(
        default=None,
        description="Brief explanation of why we need this information (shown to user)",
    )


class CollectLeadInfoTool(SalesTool):
    """Ask the client to render a lead form."""

    name: str = "collect_lead_info"
    description: str = (
        "Request the frontend to display a form for collecting specific lead information "
        "fields. Use this when you need to gather contact details in a structured way."
    )
    args_schema: Type[BaseModel] = CollectLeadInfoInput
    required_fields: tuple[str, ...] = ("fields_needed",)
    optional_fields: tuple[str, ...] = ("context",)

    def validate_args(self, args: dict[str, Any], context: ToolContext) -> list[str]:
        missing = super().validate_args(args, context)
        if not missing and not isinstance(args.get("fields_needed"), list):
            missing.append("fields_needed")
        return missing

    async def execute(self, args: dict[str, Any], context: ToolContext) -> dict[str, Any]:
        requested = [str(n) for n in args.get("fields_needed") or []]
        fields = resolve_form_fields(requested)
        form_context = args.get("context")
        context.requested_fields.extend(f.name for f in fields)

        context.push(events.lead_form_request(
            fields,
            form_context if isinstance(form_context, str) else None,
        ))
        return make_tool_success(
            kind=self.name,
            text=(
                f"Form displayed to collect: {', '.join(requested)}. "
                "Wait for the user to submit the form before proceeding."
            ),
            data={"fields": [f.name for f in fields]},
        )
