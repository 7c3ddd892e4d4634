"""Tests for src.core.task_cycle — commit, report, weekly aggregate, deadline sweep."""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from src.core import messages
from src.core.clock import InvalidTimezoneError
from src.core.task_cycle import (
    DEADLINE_REASON,
    commit_tasks,
    deadline_sweep,
    report_results,
    weekly_aggregate,
)
from src.data.models import TaskEntry, TaskStatus, Tone, UserProfile, WeeklyStats

TOKYO = ZoneInfo("Asia/Tokyo")
NOW = datetime(2026, 10, 19, 8, 0, tzinfo=TOKYO)


def _committed(*descriptions: str) -> UserProfile:
    profile = UserProfile(id="u1")
    commit_tasks(profile, "am: " + ", ".join(descriptions), NOW)
    return profile


# ---------------------------------------------------------------------------
# Morning commit
# ---------------------------------------------------------------------------


class TestCommitTasks:
    @pytest.mark.parametrize(
        "tasks",
        [["Write report"], ["Gym", "Read"], ["A thing", "B thing", "C thing"]],
    )
    def test_stores_pending_entries_in_order(self, tasks):
        profile = UserProfile(id="u1")
        result = commit_tasks(profile, "am: " + ", ".join(tasks), NOW)

        assert result.accepted is True
        assert [t.description for t in profile.current_tasks] == tasks
        assert [t.slot for t in profile.current_tasks] == list(range(1, len(tasks) + 1))
        assert all(t.status == TaskStatus.PENDING and t.reason is None for t in profile.current_tasks)

    def test_stamps_commit_time_in_user_zone(self):
        profile = UserProfile(id="u1")
        utc_now = datetime(2026, 10, 18, 23, 0, tzinfo=timezone.utc)
        commit_tasks(profile, "am: Gym", utc_now)
        assert profile.last_morning_commit_at == utc_now
        assert profile.last_morning_commit_at.utcoffset().total_seconds() == 9 * 3600

    def test_confirmation_lists_tasks(self):
        profile = UserProfile(id="u1")
        result = commit_tasks(profile, "am: Gym, Read", NOW)
        assert "A. Gym" in result.message
        assert "B. Read" in result.message

    @pytest.mark.parametrize("text", ["am:", "am:  , ,", "am: a, b, c, d"])
    def test_rejects_bad_counts_without_mutation(self, text):
        profile = _committed("Old task")
        before = list(profile.current_tasks)
        stamp = profile.last_morning_commit_at

        result = commit_tasks(profile, text, datetime(2026, 10, 19, 9, 0, tzinfo=TOKYO))

        assert result.accepted is False
        assert result.message == messages.COMMIT_REJECTED
        assert profile.current_tasks == before
        assert profile.last_morning_commit_at == stamp

    def test_replaces_previous_tasks_outright(self):
        profile = _committed("One", "Two", "Three")
        profile.current_tasks[0].status = TaskStatus.DONE
        commit_tasks(profile, "am: Fresh", NOW)
        assert [t.description for t in profile.current_tasks] == ["Fresh"]
        assert profile.current_tasks[0].status == TaskStatus.PENDING

    def test_invalid_timezone_leaves_profile_untouched(self):
        profile = UserProfile(id="u1")
        profile.settings.timezone = "Not/AZone"
        with pytest.raises(InvalidTimezoneError):
            commit_tasks(profile, "am: Gym", NOW)
        assert profile.current_tasks == []
        assert profile.last_morning_commit_at is None


# ---------------------------------------------------------------------------
# Evening report
# ---------------------------------------------------------------------------


class TestReportResults:
    def test_requires_commit_first(self):
        profile = UserProfile(id="u1")
        result = report_results(profile, "pm: A=done", NOW)
        assert result.accepted is False
        assert result.message == messages.REPORT_NEEDS_COMMIT
        assert profile.weekly_stats == WeeklyStats()
        assert profile.last_evening_report_at is None

    def test_full_report(self):
        profile = _committed("Write", "Gym", "Read")
        result = report_results(profile, "pm: A=done, B=miss(overslept), C=done", NOW)

        assert result.accepted is True
        assert [t.status for t in profile.current_tasks] == [
            TaskStatus.DONE, TaskStatus.MISS, TaskStatus.DONE,
        ]
        assert [t.reason for t in profile.current_tasks] == [None, "overslept", None]
        assert profile.weekly_stats.total_tasks == 3
        assert profile.weekly_stats.completed_tasks == 2
        assert profile.weekly_stats.missed_tasks == 1
        assert profile.last_evening_report_at is not None
        assert "2/3" in result.message

    def test_unparseable_pair_is_ignored(self):
        profile = _committed("Write", "Gym", "Read")
        result = report_results(profile, "pm: D=done, A=done", NOW)

        assert result.accepted is True
        assert [t.status for t in profile.current_tasks] == [
            TaskStatus.DONE, TaskStatus.PENDING, TaskStatus.PENDING,
        ]

    def test_unreported_tasks_count_toward_total_only(self):
        profile = _committed("Write", "Gym", "Read")
        report_results(profile, "pm: B=done", NOW)
        stats = profile.weekly_stats
        assert (stats.total_tasks, stats.completed_tasks, stats.missed_tasks) == (3, 1, 0)

    def test_slot_beyond_committed_tasks_is_ignored(self):
        profile = _committed("Only one")
        report_results(profile, "pm: A=done, C=miss(nope)", NOW)
        assert len(profile.current_tasks) == 1
        assert profile.weekly_stats.total_tasks == 1
        assert profile.weekly_stats.missed_tasks == 0

    def test_only_pending_tasks_are_overwritten(self):
        profile = _committed("Write", "Gym")
        report_results(profile, "pm: A=done", NOW)
        report_results(profile, "pm: A=miss(oops), B=done", NOW)
        assert profile.current_tasks[0].status == TaskStatus.DONE
        assert profile.current_tasks[1].status == TaskStatus.DONE

    def test_repeated_reports_accumulate(self):
        profile = _committed("Write", "Gym")
        report_results(profile, "pm: A=done", NOW)
        report_results(profile, "pm: B=done", NOW)
        assert profile.weekly_stats.total_tasks == 4
        assert profile.weekly_stats.completed_tasks == 3

    def test_empty_body_is_a_format_error(self):
        profile = _committed("Write")
        result = report_results(profile, "pm:   ", NOW)
        assert result.accepted is False
        assert result.message == messages.REPORT_BAD_FORMAT
        assert profile.last_evening_report_at is None
        assert profile.weekly_stats.total_tasks == 0


# ---------------------------------------------------------------------------
# Weekly aggregate
# ---------------------------------------------------------------------------


class TestWeeklyAggregate:
    def test_reports_then_resets(self):
        profile = _committed("Write", "Gym", "Read")
        report_results(profile, "pm: A=done, B=miss(overslept), C=done", NOW)

        first = weekly_aggregate(profile)
        assert first.completion_rate == 67
        assert first.alignment == 0.5
        assert "67%" in first.message
        assert profile.weekly_stats == WeeklyStats()
        assert profile.current_tasks == []

        second = weekly_aggregate(profile)
        assert second.completion_rate == 0
        assert "0%" in second.message
        assert profile.current_tasks == []

    def test_zero_tasks_is_zero_percent(self):
        assert weekly_aggregate(UserProfile(id="u1")).completion_rate == 0

    def test_rounds_half_up(self):
        profile = UserProfile(id="u1")
        profile.weekly_stats = WeeklyStats(total_tasks=8, completed_tasks=1)
        assert weekly_aggregate(profile).completion_rate == 13

    def test_alignment_is_read_then_reset(self):
        profile = UserProfile(id="u1")
        profile.weekly_stats.alignment = 0.9
        review = weekly_aggregate(profile)
        assert review.alignment == 0.9
        assert profile.weekly_stats.alignment == 0.5

    def test_uses_profile_tone(self):
        profile = UserProfile(id="u1")
        profile.settings.tone = Tone.DOS
        review = weekly_aggregate(profile)
        assert review.message == messages.tone_message(
            Tone.DOS, "weekly", completion_rate=0, alignment=0.5,
        )


# ---------------------------------------------------------------------------
# Deadline sweep
# ---------------------------------------------------------------------------


class TestDeadlineSweep:
    def test_pending_become_misses_without_touching_stats(self):
        profile = UserProfile(id="u1")
        profile.current_tasks = [
            TaskEntry(slot=1, description="a"),
            TaskEntry(slot=2, description="b", status=TaskStatus.DONE),
            TaskEntry(slot=3, description="c"),
        ]
        swept = deadline_sweep(profile, NOW)

        assert swept == 2
        assert [t.status for t in profile.current_tasks] == [
            TaskStatus.MISS, TaskStatus.DONE, TaskStatus.MISS,
        ]
        assert [t.reason for t in profile.current_tasks] == [DEADLINE_REASON, None, DEADLINE_REASON]
        assert profile.last_evening_report_at == NOW
        assert profile.weekly_stats == WeeklyStats()

    def test_no_tasks_still_closes_the_day(self):
        profile = UserProfile(id="u1")
        assert deadline_sweep(profile, NOW) == 0
        assert profile.last_evening_report_at is not None
