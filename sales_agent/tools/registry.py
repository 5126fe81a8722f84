"""Tool handler interface, registry and sequential execution."""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Iterator, Sequence

from langchain_core.tools import BaseTool

from .. import events
from ..events import OutboundEvent
from ..models import DEFAULT_TIMEZONE, BookingResult, LeadInfo
from ..publisher import OutputPublisher
from ..streaming import ToolCall
from .capabilities import tool_is_read_only
from .result_schema import result_text

logger = logging.getLogger("sales-chat-agent")

DEFAULT_TOOL_TIMEOUT_SECONDS = 30.0


def _load_tool_timeout() -> float:
    """Timeout for side-effect-free handlers; 0 or negative disables it."""
    raw = (os.getenv("TOOL_TIMEOUT_SECONDS", "") or "").strip()
    if not raw:
        return DEFAULT_TOOL_TIMEOUT_SECONDS
    try:
        return float(raw)
    except ValueError:
        logger.warning(
            "Invalid TOOL_TIMEOUT_SECONDS=%r, defaulting to %s",
            raw,
            DEFAULT_TOOL_TIMEOUT_SECONDS,
        )
        return DEFAULT_TOOL_TIMEOUT_SECONDS


TOOL_TIMEOUT_SECONDS = _load_tool_timeout()


@dataclass
class ToolContext:
    """Per-request state shared by the tool calls of one conversation run.

    Calls run in emission order, so a later call in the same turn sees what
    an earlier one recorded here (requested form fields, a completed booking).
    """

    publisher: OutputPublisher
    timezone: str = DEFAULT_TIMEZONE
    lead_info: LeadInfo | None = None
    selected_slot_id: str | None = None
    requested_fields: list[str] = field(default_factory=list)
    booking: BookingResult | None = None

    def push(self, event: OutboundEvent) -> bool:
        return self.publisher.publish(event)


@dataclass(frozen=True)
class ToolResult:
    call_id: str
    content: str
    is_error: bool = False


def is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (str, list, dict)):
        return not value
    return False


class SalesTool(BaseTool):
    """Base class for handlers the model can call.

    Subclasses declare their input fields and side effects, and implement
    ``execute``. ``args_schema`` still drives the JSON schema the model sees
    via ``bind_tools``; execution goes through ``validate_args``/``execute`` so
    missing fields are reported back to the model instead of raising.
    """

    side_effects: tuple[str, ...] = ()
    required_fields: tuple[str, ...] = ()
    optional_fields: tuple[str, ...] = ()

    def validate_args(self, args: dict[str, Any], context: ToolContext) -> list[str]:
        """Return the names of required fields that are missing."""
        return [f for f in self.required_fields if is_missing(args.get(f))]

    def describe_missing(self, missing: list[str]) -> str:
        return f"Cannot run {self.name}: missing required fields ({', '.join(missing)})."

    async def execute(self, args: dict[str, Any], context: ToolContext) -> dict[str, Any]:
        raise NotImplementedError

    def _run(self, *args: Any, **kwargs: Any) -> Any:
        raise NotImplementedError(
            f"{type(self).__name__} does not support synchronous execution. Use execute()."
        )


class ToolRegistry:
    """Maps tool names to handlers."""

    def __init__(self, tools: Sequence[SalesTool] = ()) -> None:
        self._tools: dict[str, SalesTool] = {}
        for tool in tools:
            self.register(tool)

    def register(self, tool: SalesTool) -> None:
        if tool.name in self._tools:
            raise ValueError(f"Tool already registered: {tool.name!r}")
        self._tools[tool.name] = tool

    def get(self, name: str) -> SalesTool | None:
        return self._tools.get(name)

    @property
    def tools(self) -> list[SalesTool]:
        return list(self._tools.values())

    def names(self) -> list[str]:
        return list(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __iter__(self) -> Iterator[SalesTool]:
        return iter(self.tools)

    def __len__(self) -> int:
        return len(self._tools)


class ToolExecutionCoordinator:
    """Runs the tool calls of one model turn, one at a time, in order.

    Connection contract: the client's liveness only decides whether events
    reach the client. Handlers that declare side effects (calendar booking,
    email) are always run to completion, with no timeout and no check of the
    connection, so a closed browser tab never leaves a booking half-made.
    Side-effect-free handlers run under ``tool_timeout``.
    """

    def __init__(self, registry: ToolRegistry, tool_timeout: float = TOOL_TIMEOUT_SECONDS) -> None:
        self.registry = registry
        self.tool_timeout = tool_timeout

    async def execute_all(self, calls: Sequence[ToolCall], context: ToolContext) -> list[ToolResult]:
        """Return exactly one result per call, in call order."""
        results: list[ToolResult] = []
        for call in calls:
            results.append(await self.execute(call, context))
        return results

    async def execute(self, call: ToolCall, context: ToolContext) -> ToolResult:
        tool = self.registry.get(call.name)
        if tool is None:
            logger.warning("Model requested unknown tool: %s", call.name)
            return ToolResult(call.id, f"Unknown tool: {call.name}", is_error=True)

        missing = tool.validate_args(call.arguments, context)
        if missing:
            logger.info("Tool %s missing required fields: %s", call.name, missing)
            return ToolResult(call.id, tool.describe_missing(missing), is_error=True)

        try:
            if tool_is_read_only(tool) and self.tool_timeout > 0:
                raw = await asyncio.wait_for(
                    tool.execute(call.arguments, context), timeout=self.tool_timeout
                )
            else:
                raw = await tool.execute(call.arguments, context)
        except asyncio.CancelledError:
            raise
        except asyncio.TimeoutError:
            logger.error("Tool %s timed out after %ss", call.name, self.tool_timeout)
            context.push(events.error(f"{call.name} took too long. Please try again."))
            return ToolResult(
                call.id,
                f"Tool {call.name} failed: timed out after {self.tool_timeout:g} seconds",
                is_error=True,
            )
        except Exception as exc:
            logger.exception("Tool execution failed: %s", call.name)
            context.push(events.error(f"Failed to run {call.name}. Please try again."))
            message = str(exc) or type(exc).__name__
            return ToolResult(call.id, f"Tool {call.name} failed: {message}", is_error=True)

        is_error = isinstance(raw, dict) and not bool(raw.get("success", True))
        return ToolResult(call.id, result_text(raw), is_error=is_error)
