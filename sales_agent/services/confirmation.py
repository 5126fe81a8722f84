"""Signed demo confirmation links."""

from __future__ import annotations

import logging
import os
from datetime import datetime, timedelta, timezone
from typing import Any
from urllib.parse import quote

import jwt

logger = logging.getLogger("sales-chat-agent")

JWT_ALGORITHM = "HS256"
TOKEN_EXPIRY = timedelta(hours=1)
DEFAULT_API_BASE_URL = "https://api.tenxdev.ai"


class ConfirmationTokenError(Exception):
    """Raised when a confirmation token cannot be accepted."""

    def __init__(self, code: str) -> None:
        super().__init__(code)
        self.code = code


class ConfirmationLinks:
    def __init__(
        self,
        secret: str,
        *,
        base_url: str = DEFAULT_API_BASE_URL,
        expiry: timedelta = TOKEN_EXPIRY,
    ) -> None:
        self.secret = secret
        self.base_url = base_url.rstrip("/")
        self.expiry = expiry

    @classmethod
    def from_env(cls) -> "ConfirmationLinks | None":
        secret = os.environ.get("JWT_SECRET", "")
        if not secret:
            return None
        return cls(secret, base_url=os.environ.get("API_BASE_URL", DEFAULT_API_BASE_URL))

    def generate_token(self, event_id: str, email: str) -> str:
        payload = {
            "eventId": event_id,
            "email": email,
            "exp": datetime.now(timezone.utc) + self.expiry,
        }
        return jwt.encode(payload, self.secret, algorithm=JWT_ALGORITHM)

    def verify_token(self, token: str) -> dict[str, Any]:
        try:
            return jwt.decode(token, self.secret, algorithms=[JWT_ALGORITHM])
        except jwt.ExpiredSignatureError as exc:
            logger.warning("Confirmation token expired")
            raise ConfirmationTokenError("TOKEN_EXPIRED") from exc
        except jwt.InvalidTokenError as exc:
            logger.warning("Invalid confirmation token")
            raise ConfirmationTokenError("TOKEN_INVALID") from exc

    def confirmation_url(self, event_id: str, email: str) -> str:
        token = self.generate_token(event_id, email)
        return f"{self.base_url}/api/v1/demo-confirm?token={quote(token, safe='')}"
