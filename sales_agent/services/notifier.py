"""Team notifications over the Telegram Bot API."""

from __future__ import annotations

import html
import logging
import os
from typing import Any, Protocol

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..models import BookingResult, LeadInfo
from .calendar import BUSINESS_TIMEZONE, parse_iso

logger = logging.getLogger("sales-chat-agent")

TELEGRAM_API_BASE = "https://api.telegram.org"
MAX_SEND_ATTEMPTS = 3


class TeamNotifier(Protocol):
    async def send_message(self, text: str) -> bool:
        ...


def format_booking_notification(
    lead_info: LeadInfo,
    booking: BookingResult,
    meeting_notes: str | None = None,
) -> str:
    """HTML-formatted summary of a new booking for the team chat."""
    esc = html.escape
    start = parse_iso(booking.start_time or "")
    when = (
        start.astimezone(BUSINESS_TIMEZONE).strftime("%a %b %d, %Y %I:%M %p %Z")
        if start
        else "Unknown"
    )
    lines = [
        "<b>New Demo Booked!</b>",
        "",
        f"<b>Name:</b> {esc(lead_info.name)}",
        f"<b>Email:</b> {esc(lead_info.email)}",
        f"<b>Company:</b> {esc(lead_info.company)}",
        f"<b>Time:</b> {when}",
        f"<b>Meet Link:</b> {esc(booking.meet_link or 'N/A')}",
    ]
    if lead_info.company_size:
        lines.append(f"<b>Size:</b> {esc(lead_info.company_size)}")
    if lead_info.budget_range:
        lines.append(f"<b>Budget:</b> {esc(lead_info.budget_range)}")
    if meeting_notes:
        lines.extend(["", "<b>Notes:</b>", esc(meeting_notes)])
    return "\n".join(lines)


class TelegramNotifier:
    def __init__(
        self,
        bot_token: str = "",
        chat_id: str = "",
        *,
        api_base: str = TELEGRAM_API_BASE,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.bot_token = bot_token
        self.chat_id = chat_id
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_env(cls) -> "TelegramNotifier":
        return cls(
            bot_token=os.environ.get("TELEGRAM_BOT_TOKEN", ""),
            chat_id=os.environ.get("TELEGRAM_CHAT_ID", ""),
        )

    @property
    def configured(self) -> bool:
        return bool(self.bot_token and self.chat_id)

    async def send_message(self, text: str) -> bool:
        if not self.configured:
            logger.warning("Telegram not configured, skipping message")
            return True

        try:
            data = await self._post({"chat_id": self.chat_id, "text": text, "parse_mode": "HTML"})
        except (httpx.HTTPError, ValueError):
            logger.exception("Telegram send error")
            return False

        if not data.get("ok"):
            logger.error("Telegram send failed: %s", data.get("description"))
            return False
        logger.info("Telegram message sent (message_id=%s)", (data.get("result") or {}).get("message_id"))
        return True

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(MAX_SEND_ATTEMPTS),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        reraise=True,
    )
    async def _post(self, payload: dict[str, Any]) -> dict[str, Any]:
        url = f"{self.api_base}/bot{self.bot_token}/sendMessage"
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            transport=self._transport,
        ) as client:
            response = await client.post(url, json=payload)
        return response.json()
