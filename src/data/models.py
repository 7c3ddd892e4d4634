"""
Task Mentor — Data Models.

The Memory pillar: one UserProfile per chat identity, holding settings,
today's committed tasks and the running weekly counters. Everything here is
memory-resident and is lost when the process restarts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

MAX_TASKS = 3


class Tone(str, Enum):
    """Reply-phrasing style chosen by the user."""

    MILD = "mild"
    SHARP = "sharp"
    DOS = "dos"


class TaskStatus(str, Enum):
    PENDING = "pending"
    DONE = "done"
    MISS = "miss"


class ConversationState(str, Enum):
    """Which settings sub-dialog (if any) is waiting for the user's next text."""

    NORMAL = "normal"
    AWAITING_MORNING_TIME = "awaiting_morning_time"
    AWAITING_EVENING_TIME = "awaiting_evening_time"
    AWAITING_WEEKLY_TIME = "awaiting_weekly_time"
    AWAITING_TONE = "awaiting_tone"
    AWAITING_DEADLINE_TIME = "awaiting_deadline_time"
    AWAITING_TIMEZONE = "awaiting_timezone"


DEFAULT_ALIGNMENT = 0.5


@dataclass
class UserSettings:
    """Per-user schedule and tone. Times are wall-clock "HH:MM" strings."""

    morning_time: str = "07:30"
    evening_time: str = "21:30"
    weekly_review_time: str = "19:00"
    weekly_review_day: str = "Sun"
    deadline_time: str = "23:00"
    timezone: str = "Asia/Tokyo"
    tone: Tone = Tone.MILD


@dataclass
class TaskEntry:
    """One of today's (at most three) committed tasks."""

    slot: int                        # 1..3, shown to the user as A/B/C
    description: str
    status: TaskStatus = TaskStatus.PENDING
    reason: str | None = None        # only meaningful when status is MISS

    @property
    def letter(self) -> str:
        return "ABC"[self.slot - 1]


@dataclass
class WeeklyStats:
    """Counters accumulated by evening reports until the weekly aggregate."""

    total_tasks: int = 0
    completed_tasks: int = 0
    missed_tasks: int = 0
    alignment: float = DEFAULT_ALIGNMENT


@dataclass
class UserProfile:
    """Everything the mentor knows about one chat identity."""

    id: str
    settings: UserSettings = field(default_factory=UserSettings)
    current_tasks: list[TaskEntry] = field(default_factory=list)
    last_morning_commit_at: datetime | None = None   # aware, user's local zone
    last_evening_report_at: datetime | None = None   # aware, user's local zone
    last_weekly_review_at: datetime | None = None    # set by scheduled reviews only
    weekly_stats: WeeklyStats = field(default_factory=WeeklyStats)

    def context_snapshot(self) -> dict:
        """Fixed-shape view handed to the default responder."""
        return {
            "currentTasks": [
                {
                    "slot": t.letter,
                    "description": t.description,
                    "status": t.status.value,
                    "reason": t.reason,
                }
                for t in self.current_tasks
            ],
            "weeklyStats": {
                "totalTasks": self.weekly_stats.total_tasks,
                "completedTasks": self.weekly_stats.completed_tasks,
                "missedTasks": self.weekly_stats.missed_tasks,
                "alignment": self.weekly_stats.alignment,
            },
            "settings": {
                "morningTime": self.settings.morning_time,
                "eveningTime": self.settings.evening_time,
                "weeklyReviewTime": self.settings.weekly_review_time,
                "weeklyReviewDay": self.settings.weekly_review_day,
                "deadlineTime": self.settings.deadline_time,
                "timezone": self.settings.timezone,
                "tone": self.settings.tone.value,
            },
            "lastMorningCommitAt": _iso(self.last_morning_commit_at),
            "lastEveningReportAt": _iso(self.last_evening_report_at),
        }


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None
