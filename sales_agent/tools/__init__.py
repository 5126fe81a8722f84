"""Tools the sales agent can call."""

from __future__ import annotations

from typing import Any

from .booking import BookDemoTool
from .capabilities import annotate_sales_tools
from .lead_form import CollectLeadInfoTool
from .registry import (
    SalesTool,
    ToolContext,
    ToolExecutionCoordinator,
    ToolRegistry,
    ToolResult,
)
from .slots import GetAvailableSlotsTool


def create_sales_tools(
    calendar: Any,
    *,
    mailer: Any = None,
    notifier: Any = None,
) -> list[SalesTool]:
    """Create instances of all sales tools wired to the given services."""
    tools: list[SalesTool] = [
        GetAvailableSlotsTool(calendar=calendar),
        CollectLeadInfoTool(),
        BookDemoTool(calendar=calendar, mailer=mailer, notifier=notifier),
    ]
    annotate_sales_tools(tools)
    return tools


__all__ = [
    "BookDemoTool",
    "CollectLeadInfoTool",
    "GetAvailableSlotsTool",
    "SalesTool",
    "ToolContext",
    "ToolExecutionCoordinator",
    "ToolRegistry",
    "ToolResult",
    "create_sales_tools",
]
