"""External collaborators used by the sales tools."""

from .calendar import CalendarService, LocalCalendarService
from .confirmation import ConfirmationLinks, ConfirmationTokenError
from .mailer import EmailSender, SmtpEmailSender
from .notifier import TeamNotifier, TelegramNotifier

__all__ = [
    "CalendarService",
    "ConfirmationLinks",
    "ConfirmationTokenError",
    "EmailSender",
    "LocalCalendarService",
    "SmtpEmailSender",
    "TeamNotifier",
    "TelegramNotifier",
]
