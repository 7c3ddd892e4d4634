"""Shared test fixtures and configuration.

Sets up fake environment variables so src.config doesn't sys.exit(),
and provides fresh in-memory stores, a pinned clock and an engine.
"""

import os

# Patch env vars BEFORE any src imports
os.environ.setdefault("TELEGRAM_BOT_TOKEN", "fake-token-for-tests")
os.environ["LLM_API_KEY"] = ""
os.environ.setdefault("LLM_PROVIDER", "openai")

from datetime import datetime
from unittest.mock import AsyncMock, MagicMock
from zoneinfo import ZoneInfo

import pytest

TOKYO = ZoneInfo("Asia/Tokyo")


class FixedClock:
    """Callable clock whose current instant tests can move."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock():
    # Monday 2026-10-19, 12:00 in Tokyo
    return FixedClock(datetime(2026, 10, 19, 12, 0, tzinfo=TOKYO))


@pytest.fixture
def profiles():
    from src.data.store import ProfileStore
    return ProfileStore()


@pytest.fixture
def sessions():
    from src.data.store import SessionStore
    return SessionStore()


@pytest.fixture
def responder():
    mock = MagicMock()
    mock.respond = AsyncMock(return_value="AI reply")
    return mock


@pytest.fixture
def engine(profiles, sessions, responder, clock):
    from src.core.conversation import ConversationEngine
    return ConversationEngine(profiles, sessions, responder, clock=clock)


@pytest.fixture
def notifier():
    mock = MagicMock()
    mock.send_message = AsyncMock()
    return mock
