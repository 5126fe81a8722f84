"""Outbound email for demo confirmations."""

from __future__ import annotations

import asyncio
import html
import logging
import os
import smtplib
from email.message import EmailMessage
from typing import Protocol

from .calendar import BUSINESS_TIMEZONE, parse_iso
from .confirmation import ConfirmationLinks

logger = logging.getLogger("sales-chat-agent")

DEFAULT_FROM_EMAIL = '"tenxdev demo" <hello@tenxdev.ai>'
DEFAULT_SMTP_PORT = 587


class EmailSender(Protocol):
    async def send_demo_confirmation(
        self,
        *,
        to: str,
        name: str,
        company: str,
        meet_link: str,
        start_time: str,
        end_time: str,
        event_id: str,
    ) -> bool:
        ...


def _format_time(hour: int, minute: int) -> str:
    return f"{hour % 12 or 12}:{minute:02d} {'AM' if hour < 12 else 'PM'}"


class SmtpEmailSender:
    """Sends mail through an SMTP relay with STARTTLS.

    When no host is configured the sender logs and reports success so local
    runs can book demos without mail credentials.
    """

    def __init__(
        self,
        *,
        host: str = "",
        port: int = DEFAULT_SMTP_PORT,
        username: str = "",
        password: str = "",
        from_email: str = DEFAULT_FROM_EMAIL,
        confirmation_links: ConfirmationLinks | None = None,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.from_email = from_email
        self.confirmation_links = confirmation_links

    @classmethod
    def from_env(cls) -> "SmtpEmailSender":
        raw_port = os.environ.get("SMTP_PORT", "") or str(DEFAULT_SMTP_PORT)
        try:
            port = int(raw_port)
        except ValueError:
            logger.warning("Invalid SMTP_PORT=%r, defaulting to %d", raw_port, DEFAULT_SMTP_PORT)
            port = DEFAULT_SMTP_PORT
        return cls(
            host=os.environ.get("SMTP_HOST", ""),
            port=port,
            username=os.environ.get("SMTP_USERNAME", ""),
            password=os.environ.get("SMTP_PASSWORD", ""),
            from_email=os.environ.get("EMAIL_FROM", DEFAULT_FROM_EMAIL),
            confirmation_links=ConfirmationLinks.from_env(),
        )

    @property
    def configured(self) -> bool:
        return bool(self.host)

    def build_demo_confirmation(
        self,
        *,
        to: str,
        name: str,
        company: str,
        meet_link: str,
        start_time: str,
        end_time: str,
        event_id: str,
    ) -> EmailMessage | None:
        start = parse_iso(start_time)
        end = parse_iso(end_time)
        if start is None or end is None:
            logger.error("Invalid date for demo confirmation email (start=%r, end=%r)",
                         start_time, end_time)
            return None

        local_start = start.astimezone(BUSINESS_TIMEZONE)
        local_end = end.astimezone(BUSINESS_TIMEZONE)
        date_str = f"{local_start:%A}, {local_start:%B} {local_start.day}, {local_start.year}"
        time_str = (
            f"{_format_time(local_start.hour, local_start.minute)} - "
            f"{_format_time(local_end.hour, local_end.minute)} {local_end.tzname()}"
        )
        confirm_url = (
            self.confirmation_links.confirmation_url(event_id, to)
            if self.confirmation_links
            else ""
        )

        text_lines = [
            f"Hi {name},",
            "",
            f"Thanks for scheduling a demo with tenxdev.ai! We're excited to show you how we can "
            f"help {company} build software faster with AI.",
            "",
            f"Date: {date_str}",
            f"Time: {time_str}",
        ]
        if meet_link:
            text_lines.append(f"Meeting link: {meet_link}")
        if confirm_url:
            text_lines.extend(["", f"Please confirm your demo: {confirm_url}"])
        text_lines.extend(["", "The tenxdev.ai team"])

        html_parts = [
            "<h2>Please Confirm Your Demo</h2>",
            f"<p>Hi {html.escape(name)},</p>",
            "<p>Thanks for scheduling a demo with tenxdev.ai! We're excited to show you how "
            f"we can help {html.escape(company)} build software faster with AI.</p>",
            f"<p><strong>Date:</strong> {date_str}<br><strong>Time:</strong> {time_str}</p>",
        ]
        if meet_link:
            html_parts.append(f'<p><a href="{html.escape(meet_link)}">Join the meeting</a></p>')
        if confirm_url:
            html_parts.append(f'<p><a href="{html.escape(confirm_url)}">Confirm my demo</a></p>')

        message = EmailMessage()
        message["To"] = to
        message["From"] = self.from_email
        message["Subject"] = f"Action Required: Confirm Your Demo with tenxdev.ai - {date_str}"
        message.set_content("\n".join(text_lines))
        message.add_alternative("\n".join(html_parts), subtype="html")
        return message

    async def send_demo_confirmation(
        self,
        *,
        to: str,
        name: str,
        company: str,
        meet_link: str,
        start_time: str,
        end_time: str,
        event_id: str,
    ) -> bool:
        logger.info("Attempting to send demo confirmation email (to=%s, event_id=%s)", to, event_id)
        if not self.configured:
            logger.warning("SMTP not configured, skipping demo confirmation")
            return True
        if not event_id:
            logger.error("Cannot send demo confirmation to %s: event id is missing", to)
            return False

        message = self.build_demo_confirmation(
            to=to,
            name=name,
            company=company,
            meet_link=meet_link,
            start_time=start_time,
            end_time=end_time,
            event_id=event_id,
        )
        if message is None:
            return False

        await asyncio.to_thread(self._deliver, message)
        logger.info("Demo confirmation email sent (to=%s)", to)
        return True

    def _deliver(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=30) as smtp:
            smtp.starttls()
            if self.username:
                smtp.login(self.username, self.password)
            smtp.send_message(message)
