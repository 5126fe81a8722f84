"""Removal of demo bookings that were never confirmed."""

from __future__ import annotations

import asyncio
import logging
import os
from datetime import datetime, timedelta, timezone

from .calendar import CalendarService

logger = logging.getLogger("sales-chat-agent")

PENDING_TIMEOUT = timedelta(hours=1)
DEFAULT_CLEANUP_INTERVAL_SECONDS = 300.0


def load_cleanup_interval() -> float:
    """Seconds between cleanup runs; 0 disables the periodic task."""
    raw = (os.getenv("PENDING_CLEANUP_INTERVAL_SECONDS", "") or "").strip()
    if not raw:
        return DEFAULT_CLEANUP_INTERVAL_SECONDS
    try:
        return max(float(raw), 0.0)
    except ValueError:
        logger.warning(
            "Invalid PENDING_CLEANUP_INTERVAL_SECONDS=%r, defaulting to %s",
            raw,
            DEFAULT_CLEANUP_INTERVAL_SECONDS,
        )
        return DEFAULT_CLEANUP_INTERVAL_SECONDS


async def cleanup_pending_demos(
    calendar: CalendarService,
    *,
    max_age: timedelta = PENDING_TIMEOUT,
    now: datetime | None = None,
) -> int:
    """Delete pending demos created more than *max_age* ago.

    Frees the slots of bookings whose confirmation link was never used.
    Returns the number of deleted events.
    """
    logger.info("Starting pending demos cleanup job")
    pending = await calendar.get_pending_events()
    logger.info("Found %d pending demo events", len(pending))

    current = now or datetime.now(timezone.utc)
    deleted = 0
    for event in pending:
        age = current - event.created_at
        if age <= max_age:
            continue
        logger.info(
            "Deleting expired pending demo (event_id=%s, summary=%s, age_minutes=%d)",
            event.event_id, event.summary, round(age.total_seconds() / 60),
        )
        if await calendar.delete_event(event.event_id):
            deleted += 1

    logger.info("Pending demos cleanup completed (deleted=%d)", deleted)
    return deleted


async def run_pending_cleanup(
    calendar: CalendarService,
    interval: float,
    *,
    max_age: timedelta = PENDING_TIMEOUT,
) -> None:
    """Run the cleanup every *interval* seconds until cancelled."""
    while True:
        try:
            await cleanup_pending_demos(calendar, max_age=max_age)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Error during pending demos cleanup")
        await asyncio.sleep(interval)
