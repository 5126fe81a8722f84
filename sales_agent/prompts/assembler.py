"""Runtime system prompt assembler."""

from __future__ import annotations

import logging
from datetime import datetime, timezone as dt_timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..models import DEFAULT_TIMEZONE
from .base import SALES_AGENT_SYSTEM_PROMPT

logger = logging.getLogger("sales-chat-agent")


def _resolve_zone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, OSError):
        logger.warning("Unknown timezone %r, using %s", name, DEFAULT_TIMEZONE)
        return ZoneInfo(DEFAULT_TIMEZONE)


def format_current_time(timezone: str, now: datetime | None = None) -> str:
    """Render e.g. ``Monday, January 15, 2024 at 2:05 PM EST`` in ``timezone``."""
    now = now or datetime.now(dt_timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=dt_timezone.utc)
    local = now.astimezone(_resolve_zone(timezone))
    hour = local.hour % 12 or 12
    return (
        f"{local:%A}, {local:%B} {local.day}, {local.year} at "
        f"{hour}:{local:%M} {local:%p} {local:%Z}"
    )


def assemble_system_prompt(
    timezone: str = DEFAULT_TIMEZONE,
    now: datetime | None = None,
    base_prompt: str | None = None,
) -> str:
    """Append the visitor's current date/time to the base prompt."""
    prompt = base_prompt if base_prompt is not None else SALES_AGENT_SYSTEM_PROMPT
    return f"{prompt}\n\nCurrent date/time: {format_current_time(timezone, now)}"
