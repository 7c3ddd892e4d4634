"""Task cycle — morning commit, evening report, weekly aggregate, deadline sweep.

Pure business logic over a UserProfile: no I/O, no locking. Callers hold the
profile's lock from ProfileStore.lock() while calling into this module.

Every function that stamps a time converts ``now`` to the user's zone
*before* touching the profile, so an InvalidTimezoneError leaves the profile
exactly as it was.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime

from src.core import messages
from src.core.clock import to_local
from src.core.parser import (
    EVENING_MARKER,
    MORNING_MARKER,
    is_valid_task_count,
    parse_report,
    parse_task_list,
    strip_marker,
)
from src.data.models import (
    DEFAULT_ALIGNMENT,
    TaskEntry,
    TaskStatus,
    UserProfile,
    WeeklyStats,
)

logger = logging.getLogger(__name__)

DEADLINE_REASON = "deadline exceeded"


@dataclass
class CommitResult:
    accepted: bool
    message: str
    tasks: list[TaskEntry] = field(default_factory=list)


@dataclass
class ReportResult:
    accepted: bool
    message: str
    completed: int = 0
    missed: int = 0
    total: int = 0


@dataclass
class WeeklyReview:
    completion_rate: int
    alignment: float
    message: str


def commit_tasks(profile: UserProfile, text: str, now: datetime) -> CommitResult:
    """Replace today's tasks with the 1..3 items of an ``am:`` message."""
    items = parse_task_list(strip_marker(text, MORNING_MARKER))
    if not is_valid_task_count(items):
        logger.info("User %s: commit rejected (%d tasks)", profile.id, len(items))
        return CommitResult(accepted=False, message=messages.COMMIT_REJECTED)

    stamp = to_local(now, profile.settings.timezone)
    profile.current_tasks = [
        TaskEntry(slot=index, description=item)
        for index, item in enumerate(items, start=1)
    ]
    profile.last_morning_commit_at = stamp
    logger.info("User %s committed %d tasks", profile.id, len(items))
    return CommitResult(
        accepted=True,
        message=messages.commit_confirmation(profile.current_tasks),
        tasks=list(profile.current_tasks),
    )


def report_results(profile: UserProfile, text: str, now: datetime) -> ReportResult:
    """Apply a ``pm:`` message to today's pending tasks and accumulate weekly counters.

    Pairs that don't parse, or name a slot without a task, are ignored.
    Tasks without a matching pair stay pending but still count toward the total.
    """
    if not profile.current_tasks:
        return ReportResult(accepted=False, message=messages.REPORT_NEEDS_COMMIT)

    body = strip_marker(text, EVENING_MARKER).strip()
    if not body:
        return ReportResult(accepted=False, message=messages.REPORT_BAD_FORMAT)

    stamp = to_local(now, profile.settings.timezone)
    results = parse_report(body)

    for task in profile.current_tasks:
        item = results.get(task.slot)
        if item is None or task.status != TaskStatus.PENDING:
            continue
        task.status = item.status
        task.reason = item.reason

    profile.last_evening_report_at = stamp

    total = len(profile.current_tasks)
    completed = sum(1 for t in profile.current_tasks if t.status == TaskStatus.DONE)
    missed = sum(1 for t in profile.current_tasks if t.status == TaskStatus.MISS)

    stats = profile.weekly_stats
    stats.total_tasks += total
    stats.completed_tasks += completed
    stats.missed_tasks += missed

    logger.info(
        "User %s reported %d/%d done, %d missed", profile.id, completed, total, missed,
    )
    return ReportResult(
        accepted=True,
        message=messages.report_summary(completed, total),
        completed=completed,
        missed=missed,
        total=total,
    )


def weekly_aggregate(profile: UserProfile) -> WeeklyReview:
    """Summarise the week, then reset the counters and clear today's tasks.

    The reset happens on every call, so a second call in a row reports 0%.
    """
    stats = profile.weekly_stats
    if stats.total_tasks > 0:
        # half-up: 12.5 reads as 13
        completion_rate = math.floor(100 * stats.completed_tasks / stats.total_tasks + 0.5)
    else:
        completion_rate = 0
    alignment = stats.alignment

    profile.weekly_stats = WeeklyStats(alignment=DEFAULT_ALIGNMENT)
    profile.current_tasks = []

    logger.info(
        "User %s weekly review: %d%% completion, alignment %s",
        profile.id, completion_rate, alignment,
    )
    return WeeklyReview(
        completion_rate=completion_rate,
        alignment=alignment,
        message=messages.tone_message(
            profile.settings.tone, "weekly",
            completion_rate=completion_rate, alignment=alignment,
        ),
    )


def deadline_sweep(profile: UserProfile, now: datetime) -> int:
    """Close an unreported day: pending tasks become misses.

    Stamps the evening report time but deliberately leaves weekly_stats
    untouched; only an explicit report feeds the weekly counters.
    Returns the number of tasks forced to miss.
    """
    stamp = to_local(now, profile.settings.timezone)
    swept = 0
    for task in profile.current_tasks:
        if task.status == TaskStatus.PENDING:
            task.status = TaskStatus.MISS
            task.reason = DEADLINE_REASON
            swept += 1
    profile.last_evening_report_at = stamp
    logger.info("User %s deadline sweep: %d tasks marked missed", profile.id, swept)
    return swept
