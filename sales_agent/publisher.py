"""Outbound event publishing gated by client liveness."""

from __future__ import annotations

import logging
import threading
from typing import Callable

from .events import OutboundEvent

logger = logging.getLogger("sales-chat-agent")


class ConnectionSignal:
    """Cancellation token tripped when the client transport goes away.

    Passed explicitly to whoever needs to know about liveness. Tripping it is
    idempotent and safe from any thread.
    """

    def __init__(self) -> None:
        self._closed = threading.Event()

    def disconnect(self) -> None:
        if not self._closed.is_set():
            logger.debug("Client disconnected from sales chat stream")
        self._closed.set()

    @property
    def connected(self) -> bool:
        return not self._closed.is_set()


class OutputPublisher:
    """Writes events to the client in the order they are produced.

    Once the connection signal is tripped every write becomes a no-op, but
    ``publish`` keeps accepting events so producers (including side-effecting
    tools) are never blocked or aborted by a closed client.
    """

    def __init__(self, sink: Callable[[str], None], signal: ConnectionSignal) -> None:
        self._sink = sink
        self.signal = signal
        self.delivered = 0
        self.dropped = 0

    @property
    def connected(self) -> bool:
        return self.signal.connected

    def publish(self, event: OutboundEvent) -> bool:
        """Write *event* if the client is still connected.

        Returns True when the event was handed to the sink.
        """
        if not self.signal.connected:
            self.dropped += 1
            return False
        self._sink(event.to_sse())
        self.delivered += 1
        return True
