"""
Task Mentor — Notification Scheduler.

Once per minute the periodic driver (the Telegram JobQueue in production)
calls NotificationScheduler.run_tick(). For each profile, independently,
the tick compares the user's local "HH:MM" with their settings:

- morning:  time == morning_time and no commit today -> morning prompt
- evening:  time == evening_time, day open -> evening prompt
- weekly:   day == weekly_review_day and time == weekly_review_time
            -> aggregate-and-reset, then send the review
- deadline: time == deadline_time, day open
            -> pending tasks become misses, day is closed (no message)

Matching is exact-minute equality: a late or skipped tick never catches up,
and a minute that was already evaluated is skipped.
Sends are fire-and-forget tasks, so a slow chat API for one user never holds
up the evaluation of the next; a failed send is logged and the state change
that triggered it stands.

Only the morning check is day-scoped: last_morning_commit_at counts when it
falls on the user's current local date. The day is "open" while the latest
commit has no report (or sweep) stamped after it, so an evening or deadline
time past midnight still closes the previous day. A scheduled weekly review
also records last_weekly_review_at so it runs at most once per local date.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Sequence

from src.core import messages
from src.core.clock import (
    Clock,
    InvalidTimezoneError,
    day_abbrev,
    format_hhmm,
    same_local_day,
    to_local,
    utc_now,
)
from src.core.task_cycle import deadline_sweep, weekly_aggregate

if TYPE_CHECKING:
    from src.data.models import UserProfile
    from src.data.store import ProfileStore
    from src.ports.notification_port import NotificationPort, QuickAction

logger = logging.getLogger(__name__)


class Trigger(Enum):
    MORNING = "morning"
    EVENING = "evening"
    WEEKLY = "weekly"
    DEADLINE = "deadline"


@dataclass
class Notification:
    """One trigger that fired for one user during a tick."""

    user_id: str
    trigger: Trigger
    text: str | None = None          # None when nothing is sent (deadline sweep)


def _has_open_day(profile: UserProfile) -> bool:
    """A commit exists and no report (or sweep) has closed it since."""
    commit = profile.last_morning_commit_at
    report = profile.last_evening_report_at
    if commit is None:
        return False
    return report is None or report < commit


def _minute_of(now: datetime) -> datetime:
    return now.replace(second=0, microsecond=0)


class NotificationScheduler:
    """Per-tick evaluation of every profile against its local schedule."""

    def __init__(
        self,
        profiles: ProfileStore,
        notifier: NotificationPort,
        clock: Clock = utc_now,
    ) -> None:
        self._profiles = profiles
        self._notifier = notifier
        self._clock = clock
        self._pending: set[asyncio.Task] = set()
        self._last_minute: datetime | None = None

    async def run_tick(self, now: datetime | None = None) -> list[Notification]:
        """Evaluate all profiles for the minute containing *now* (default: the clock).

        A minute is evaluated at most once, however often the driver ticks.
        Returns what fired, for logging and tests. Sends are scheduled, not awaited.
        """
        now = now or self._clock()
        minute = _minute_of(now)
        if minute == self._last_minute:
            logger.debug("Tick %s: minute already evaluated", now.isoformat())
            return []
        self._last_minute = minute
        fired: list[Notification] = []

        for user_id in self._profiles.list_ids():
            with self._profiles.lock(user_id):
                profile = self._profiles.get(user_id)
                if profile is None:
                    continue
                try:
                    fired.extend(self._evaluate(profile, now))
                except InvalidTimezoneError as exc:
                    logger.warning("Skipping user %s this tick: %s", user_id, exc)

        for note in fired:
            if note.text is not None:
                quick = (
                    messages.DEFAULT_QUICK_ACTIONS
                    if note.trigger in (Trigger.MORNING, Trigger.EVENING)
                    else None
                )
                self._dispatch_send(note.user_id, note.text, quick)

        if fired:
            logger.info(
                "Tick %s: %d notification(s) fired", now.isoformat(), len(fired),
            )
        return fired

    def _evaluate(self, profile: UserProfile, now: datetime) -> list[Notification]:
        settings = profile.settings
        local = to_local(now, settings.timezone)
        hhmm = format_hhmm(local)
        committed_today = same_local_day(profile.last_morning_commit_at, local)
        day_open = _has_open_day(profile)
        fired: list[Notification] = []

        if hhmm == settings.morning_time and not committed_today:
            fired.append(Notification(
                profile.id, Trigger.MORNING,
                messages.tone_message(settings.tone, "morning"),
            ))

        if hhmm == settings.evening_time and day_open:
            fired.append(Notification(
                profile.id, Trigger.EVENING,
                messages.tone_message(settings.tone, "evening"),
            ))

        if (
            day_abbrev(local) == settings.weekly_review_day
            and hhmm == settings.weekly_review_time
            and not same_local_day(profile.last_weekly_review_at, local)
        ):
            review = weekly_aggregate(profile)
            profile.last_weekly_review_at = local
            fired.append(Notification(profile.id, Trigger.WEEKLY, review.message))

        if hhmm == settings.deadline_time and day_open:
            deadline_sweep(profile, now)
            fired.append(Notification(profile.id, Trigger.DEADLINE))

        return fired

    # -------------------------------------------------------------------
    # Fire-and-forget sends
    # -------------------------------------------------------------------

    def _dispatch_send(
        self,
        user_id: str,
        text: str,
        quick_actions: Sequence[QuickAction] | None,
    ) -> None:
        task = asyncio.create_task(self._safe_send(user_id, text, quick_actions))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _safe_send(
        self,
        user_id: str,
        text: str,
        quick_actions: Sequence[QuickAction] | None,
    ) -> None:
        try:
            await self._notifier.send_message(user_id, text, quick_actions)
            logger.info("Notification sent to user %s", user_id)
        except Exception as exc:
            logger.error("Failed to send notification to %s: %s", user_id, exc)

    async def drain(self) -> None:
        """Wait for in-flight sends. For shutdown and tests only; never for correctness."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
