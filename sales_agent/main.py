"""HTTP entry point for the sales chat agent."""

from __future__ import annotations

import asyncio
import logging
import os
import sys
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable

import uvicorn
from fastapi import FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, StreamingResponse

from . import events, pages
from .agent import AgentConfig, SalesChatAgent
from .models import SalesChatRequest
from .publisher import ConnectionSignal, OutputPublisher
from .services import (
    CalendarService,
    ConfirmationLinks,
    ConfirmationTokenError,
    EmailSender,
    LocalCalendarService,
    SmtpEmailSender,
    TeamNotifier,
    TelegramNotifier,
)
from .services.calendar import describe_start
from .services.cleanup import load_cleanup_interval, run_pending_cleanup
from .tools import create_sales_tools

logger = logging.getLogger("sales-chat-agent")

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}
DEFAULT_CORS_ORIGIN = "http://localhost:3000"

# Engine tasks outlive their response stream; keep references so they are
# not garbage-collected mid-booking.
_background_tasks: set[asyncio.Task[None]] = set()


class SalesApp:
    """Long-lived collaborators shared by all requests.

    The chat agent is created on first use so a missing API key surfaces as
    an ``error`` event instead of preventing the server from starting.
    """

    def __init__(
        self,
        *,
        calendar: CalendarService,
        mailer: EmailSender | None = None,
        notifier: TeamNotifier | None = None,
        confirmation_links: ConfirmationLinks | None = None,
        agent_factory: Callable[[], SalesChatAgent] | None = None,
        cleanup_interval: float = 0.0,
    ) -> None:
        self.calendar = calendar
        self.mailer = mailer
        self.notifier = notifier
        self.confirmation_links = confirmation_links
        self.cleanup_interval = cleanup_interval
        self._agent_factory = agent_factory or self._default_agent
        self._agent: SalesChatAgent | None = None

    @classmethod
    def from_env(cls) -> "SalesApp":
        calendar_id = os.environ.get("GOOGLE_CALENDAR_ID", "")
        if calendar_id:
            logger.info("GOOGLE_CALENDAR_ID=%s set; bookings use the local calendar", calendar_id)
        links = ConfirmationLinks.from_env()
        if links is None:
            logger.warning("JWT_SECRET not set; confirmation emails will have no confirm link")
        return cls(
            calendar=LocalCalendarService(calendar_id=calendar_id),
            mailer=SmtpEmailSender.from_env(),
            notifier=TelegramNotifier.from_env(),
            confirmation_links=links,
            cleanup_interval=load_cleanup_interval(),
        )

    def _default_agent(self) -> SalesChatAgent:
        tools = create_sales_tools(self.calendar, mailer=self.mailer, notifier=self.notifier)
        return SalesChatAgent(AgentConfig(), tools)

    def get_agent(self) -> SalesChatAgent:
        if self._agent is None:
            self._agent = self._agent_factory()
        return self._agent


async def _run_engine(
    sales: SalesApp,
    request: SalesChatRequest,
    publisher: OutputPublisher,
    queue: asyncio.Queue[str | None],
) -> None:
    try:
        try:
            agent = sales.get_agent()
        except Exception:
            logger.exception("Failed to create sales chat agent")
            publisher.publish(events.error())
            return
        await agent.run(request, publisher)
    finally:
        queue.put_nowait(None)


async def _stream(
    queue: asyncio.Queue[str | None],
    signal: ConnectionSignal,
) -> AsyncIterator[str]:
    try:
        while True:
            frame = await queue.get()
            if frame is None:
                break
            yield frame
    finally:
        # Stops writes only; the engine keeps running to completion.
        signal.disconnect()


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    sales: SalesApp = app.state.sales
    cleanup: asyncio.Task[None] | None = None
    if sales.cleanup_interval > 0:
        logger.info("Pending demo cleanup every %ss", sales.cleanup_interval)
        cleanup = asyncio.create_task(
            run_pending_cleanup(sales.calendar, sales.cleanup_interval)
        )
    yield
    if cleanup is not None:
        cleanup.cancel()
        try:
            await cleanup
        except asyncio.CancelledError:
            pass


def create_app(sales: SalesApp | None = None) -> FastAPI:
    sales = sales or SalesApp.from_env()
    app = FastAPI(title="Sales Chat Agent", version="0.1.0", lifespan=_lifespan)
    app.state.sales = sales

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[os.environ.get("CORS_ORIGIN", DEFAULT_CORS_ORIGIN)],
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/v1/sales-chat")
    async def sales_chat(body: SalesChatRequest) -> StreamingResponse:
        logger.info(
            "Sales chat request (messages=%d, timezone=%s, selected_slot=%s)",
            len(body.messages), body.timezone, body.selected_slot_id,
        )
        queue: asyncio.Queue[str | None] = asyncio.Queue()
        signal = ConnectionSignal()
        publisher = OutputPublisher(queue.put_nowait, signal)

        task = asyncio.create_task(_run_engine(sales, body, publisher, queue))
        _background_tasks.add(task)
        task.add_done_callback(_background_tasks.discard)

        return StreamingResponse(
            _stream(queue, signal),
            media_type="text/event-stream",
            headers=SSE_HEADERS,
        )

    @app.get("/api/v1/demo-confirm", response_class=HTMLResponse)
    async def demo_confirm(token: str | None = Query(default=None)) -> HTMLResponse:
        if not token:
            logger.warning("Demo confirm request without token")
            return HTMLResponse(pages.error_page(), status_code=400)
        if sales.confirmation_links is None:
            logger.error("Demo confirm request but JWT_SECRET is not configured")
            return HTMLResponse(pages.error_page(), status_code=500)

        try:
            claims = sales.confirmation_links.verify_token(token)
        except ConfirmationTokenError as exc:
            if exc.code == "TOKEN_EXPIRED":
                return HTMLResponse(pages.expired_page(), status_code=410)
            return HTMLResponse(pages.error_page(), status_code=400)

        event_id = str(claims.get("eventId", ""))
        logger.info("Processing demo confirmation (event_id=%s)", event_id)
        result = await sales.calendar.confirm_demo(event_id)
        if not result.get("success"):
            logger.error("Failed to confirm demo (event_id=%s): %s", event_id, result.get("error"))
            return HTMLResponse(pages.error_page(), status_code=500)
        if result.get("alreadyConfirmed"):
            return HTMLResponse(pages.already_confirmed_page())

        event = await sales.calendar.get_event(event_id)
        when = describe_start(event.start) if event is not None else "your scheduled time"
        return HTMLResponse(pages.confirmed_page(when))

    return app


def main() -> None:
    """Entry point: configure logging and serve the app with uvicorn."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stdout,
    )
    host = os.environ.get("HOST", "0.0.0.0")
    try:
        port = int(os.environ.get("PORT", "3001"))
    except ValueError:
        logger.warning("Invalid PORT=%r, defaulting to 3001", os.environ.get("PORT"))
        port = 3001
    uvicorn.run(create_app(), host=host, port=port)


if __name__ == "__main__":
    main()
