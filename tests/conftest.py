"""Shared fixtures for sales agent tests."""

from __future__ import annotations

import pytest

from sales_agent.publisher import ConnectionSignal, OutputPublisher
from sales_agent.services.calendar import LocalCalendarService
from sales_agent.tools.registry import ToolContext

from .helpers import FIXED_NOW, RecordingSink


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def signal() -> ConnectionSignal:
    return ConnectionSignal()


@pytest.fixture
def publisher(sink, signal) -> OutputPublisher:
    return OutputPublisher(sink, signal)


@pytest.fixture
def context(publisher) -> ToolContext:
    return ToolContext(publisher=publisher)


@pytest.fixture
def calendar() -> LocalCalendarService:
    return LocalCalendarService(now=lambda: FIXED_NOW)
