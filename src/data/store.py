"""
Task Mentor — In-memory stores.

ProfileStore owns every UserProfile; SessionStore owns the transient
ConversationState of each identity. Neither is persisted: a restart starts
from an empty table, and the rest of the code only reaches the data through
the accessors below.

All mutations of one identity's profile happen while holding that identity's
lock (see ProfileStore.lock), so an inbound report and a scheduler sweep can
never interleave field-by-field, whether the caller is the asyncio loop or a
worker thread.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator

from src.data.models import ConversationState, UserProfile

logger = logging.getLogger(__name__)


class ProfileStore:
    """Memory-resident table of UserProfile keyed by chat identity."""

    def __init__(self) -> None:
        self._profiles: dict[str, UserProfile] = {}
        self._locks: dict[str, threading.RLock] = {}
        self._guard = threading.Lock()

    def get_or_create(self, user_id: str) -> UserProfile:
        """Return the profile for *user_id*, creating it with defaults on first contact."""
        with self._guard:
            profile = self._profiles.get(user_id)
            if profile is None:
                profile = UserProfile(id=user_id)
                self._profiles[user_id] = profile
                logger.info("Created profile for user %s", user_id)
            return profile

    def get(self, user_id: str) -> UserProfile | None:
        return self._profiles.get(user_id)

    def remove(self, user_id: str) -> bool:
        """Drop the profile entirely. Returns False if it did not exist."""
        with self._guard:
            removed = self._profiles.pop(user_id, None)
            self._locks.pop(user_id, None)
        if removed is not None:
            logger.info("Removed profile for user %s", user_id)
        return removed is not None

    def lock(self, user_id: str) -> threading.RLock:
        """Per-identity mutex; hold it for any read-modify-write of a profile.

        Never hold it across an ``await``.
        """
        with self._guard:
            lock = self._locks.get(user_id)
            if lock is None:
                lock = threading.RLock()
                self._locks[user_id] = lock
            return lock

    def list_ids(self) -> list[str]:
        """Snapshot of known identities, safe to iterate while profiles change."""
        with self._guard:
            return list(self._profiles)

    def __iter__(self) -> Iterator[UserProfile]:
        for user_id in self.list_ids():
            profile = self._profiles.get(user_id)
            if profile is not None:
                yield profile

    def __len__(self) -> int:
        return len(self._profiles)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._profiles


class SessionStore:
    """Transient per-identity conversation state. Missing entry means NORMAL."""

    def __init__(self) -> None:
        self._states: dict[str, ConversationState | str] = {}

    def get_state(self, user_id: str) -> ConversationState | str:
        """Return the stored state. A value that is not a known state is returned as-is."""
        return self._states.get(user_id, ConversationState.NORMAL)

    def set_state(self, user_id: str, state: ConversationState) -> None:
        if state == ConversationState.NORMAL:
            self.clear_state(user_id)
            return
        self._states[user_id] = state
        logger.debug("User %s state -> %s", user_id, state.value)

    def clear_state(self, user_id: str) -> None:
        if self._states.pop(user_id, None) is not None:
            logger.debug("User %s state cleared", user_id)
