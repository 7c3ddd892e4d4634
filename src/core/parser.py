"""
Task Mentor — Input grammars.

Small explicit parsers for everything the mentor reads from free text.
None of them raise on bad input: they return None / an empty result and the
caller decides which retry message to send.

Grammars (whitespace around tokens is ignored unless stated otherwise):

    commit   := "am:" item ("," item)*          1..3 non-empty items
    report   := "pm:" pair ("," pair)*
    pair     := slot "=" status [ "(" reason ")" ]
    slot     := "A" | "B" | "C" | "1" | "2" | "3"   (case-insensitive)
    status   := "done" | "miss"                       (case-insensitive)
    time     := H ":" MM | HH ":" MM                  00:00 .. 23:59
    day      := "Mon" | "Tue" | ... | "Sun"           (case-insensitive)
    command  := "/" name (" " arg)*
"""

from __future__ import annotations

import logging
import re

from pydantic import BaseModel

from src.core.clock import DAY_ABBREVIATIONS
from src.data.models import MAX_TASKS, TaskStatus, Tone

logger = logging.getLogger(__name__)

MORNING_MARKER = "am:"
EVENING_MARKER = "pm:"
COMMAND_PREFIX = "/"
WEEKLY_TRIGGER = "weekly"

_TIME_RE = re.compile(r"^([01]?[0-9]|2[0-3]):([0-5][0-9])$")
_PAIR_RE = re.compile(
    r"^([A-C1-3])\s*=\s*(done|miss)(?:\s*\((.+)\))?$",
    re.IGNORECASE,
)
_SLOT_NUMBERS = {"A": 1, "B": 2, "C": 3, "1": 1, "2": 2, "3": 3}


class ReportItem(BaseModel):
    """One parsed ``<slot>=<status>(reason)`` pair."""

    slot: int
    status: TaskStatus
    reason: str | None = None


class SlashCommand(BaseModel):
    """A ``/name arg arg`` command split into its tokens."""

    name: str
    args: list[str] = []


# ---------------------------------------------------------------------------
# Markers
# ---------------------------------------------------------------------------


def has_marker(text: str, marker: str) -> bool:
    return text[: len(marker)].lower() == marker


def strip_marker(text: str, marker: str) -> str:
    return text[len(marker):] if has_marker(text, marker) else text


def is_command(text: str) -> bool:
    return text.startswith(COMMAND_PREFIX)


def is_weekly_trigger(text: str) -> bool:
    return text.strip().lower() == WEEKLY_TRIGGER


# ---------------------------------------------------------------------------
# Morning commit
# ---------------------------------------------------------------------------


def parse_task_list(body: str) -> list[str]:
    """Split a comma-separated task list, trimming and dropping empty items.

    The count is not checked here; see is_valid_task_count().
    """
    return [item.strip() for item in body.split(",") if item.strip()]


def is_valid_task_count(tasks: list[str]) -> bool:
    return 1 <= len(tasks) <= MAX_TASKS


# ---------------------------------------------------------------------------
# Evening report
# ---------------------------------------------------------------------------


def parse_report_pair(raw: str) -> ReportItem | None:
    match = _PAIR_RE.match(raw.strip())
    if match is None:
        return None
    slot_token, status_token, reason = match.groups()
    status = TaskStatus(status_token.lower())
    if status != TaskStatus.MISS:
        reason = None
    elif reason is not None:
        reason = reason.strip() or None
    return ReportItem(slot=_SLOT_NUMBERS[slot_token.upper()], status=status, reason=reason)


def parse_report(body: str) -> dict[int, ReportItem]:
    """Parse every pair; malformed pairs are skipped. A later pair for the same slot wins."""
    results: dict[int, ReportItem] = {}
    for raw in body.split(","):
        if not raw.strip():
            continue
        item = parse_report_pair(raw)
        if item is None:
            logger.debug("Ignoring unparseable report pair %r", raw)
            continue
        results[item.slot] = item
    return results


# ---------------------------------------------------------------------------
# Settings values
# ---------------------------------------------------------------------------


def parse_time(text: str) -> str | None:
    """Validate a 24-hour time and return it zero-padded ("7:05" -> "07:05")."""
    match = _TIME_RE.match(text.strip())
    if match is None:
        return None
    hour, minute = match.groups()
    return f"{int(hour):02d}:{minute}"


def parse_tone(text: str) -> Tone | None:
    try:
        return Tone(text.strip().lower())
    except ValueError:
        return None


def parse_day(text: str) -> str | None:
    """Normalise a weekday abbreviation to the form the clock produces ("sun" -> "Sun")."""
    candidate = text.strip().capitalize()
    return candidate if candidate in DAY_ABBREVIATIONS else None


def parse_command(text: str) -> SlashCommand:
    tokens = text.strip().split()
    if not tokens:
        return SlashCommand(name=COMMAND_PREFIX)
    return SlashCommand(name=tokens[0].lower(), args=tokens[1:])
