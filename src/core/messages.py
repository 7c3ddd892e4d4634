"""
Task Mentor — Reply texts.

Every user-facing string lives here so the state machine and the scheduler
only decide *which* message to send. Tone-dependent templates fall back to
the mild wording when a tone has no entry.
"""

from __future__ import annotations

import random

from src.data.models import TaskEntry, Tone
from src.ports.notification_port import QuickAction

COMMAND_CHEAT_SHEET = (
    "Commands:\n"
    "• am: Task A, Task B, Task C\n"
    "• pm: A=done, B=done, C=miss(reason)\n"
    "• /settings to change settings\n"
    "• /help for help"
)

COMMIT_EXAMPLE = "Example: am: Task A, Task B, Task C"
REPORT_EXAMPLE = "Example: pm: A=done, B=done, C=miss(reason)"

# ---------------------------------------------------------------------------
# Tone templates
# ---------------------------------------------------------------------------

_TONE_TEMPLATES: dict[Tone, dict[str, str]] = {
    Tone.MILD: {
        "morning": (
            "Good morning! What are your three tasks for today?\n\n"
            f"{COMMIT_EXAMPLE}"
        ),
        "evening": (
            "Good work today! How did it go?\n\n"
            f"{REPORT_EXAMPLE}"
        ),
        "weekly": (
            "Here is your weekly review!\n\n"
            "Completion rate: {completion_rate}%\n"
            "Alignment: {alignment}\n\n"
            "Let's keep it up next week!"
        ),
        "help": (
            "Commands:\n"
            "• am: Task A, Task B, Task C\n"
            "• pm: A=done, B=done, C=miss(reason)\n"
            "• /tone mild|sharp|dos\n"
            "• /time am HH:MM\n"
            "• /time pm HH:MM\n"
            "• /time weekly <day> HH:MM\n"
            "• /deadline HH:MM\n"
            "• /tz <IANA zone>\n"
            "• /weekly\n"
            "• /settings\n"
            "• /help"
        ),
    },
    Tone.SHARP: {
        "morning": "Morning. Your three for today?\n\nam: Task A, Task B, Task C",
        "evening": "Results?\n\npm: A=done, B=done, C=miss(reason)",
        "weekly": (
            "This week's numbers\n\n"
            "Completion rate: {completion_rate}%\n"
            "Alignment: {alignment}\n\n"
            "Next week needs to be better."
        ),
        "help": (
            "Commands:\n"
            "am: commit tasks\n"
            "pm: report results\n"
            "/tone: change tone\n"
            "/time: set reminder times\n"
            "/deadline: set deadline\n"
            "/tz: timezone\n"
            "/weekly: review now\n"
            "/help: this list"
        ),
    },
    Tone.DOS: {
        "morning": "Get up. Decide your three for today.\n\nam: Task A, Task B, Task C",
        "evening": "Report.\n\npm: A=done, B=done, C=miss(reason)",
        "weekly": (
            "This week's result\n\n"
            "Completion rate: {completion_rate}%\n"
            "Alignment: {alignment}\n\n"
            "Improve next week. No excuses."
        ),
        "help": (
            "Command list:\n"
            "am: commit tasks\n"
            "pm: report results\n"
            "/tone: change tone\n"
            "/time: set reminder times\n"
            "/deadline: set deadline\n"
            "/tz: timezone\n"
            "/weekly: review now\n"
            "/help: this list"
        ),
    },
}

_FALLBACK_LINES: dict[Tone, list[str]] = {
    Tone.MILD: [
        "Hi! Is there anything I can help you with?",
        "If you want to talk about managing your tasks, just ask.",
        "Have you decided on today's tasks? Try declaring them with am:.",
    ],
    Tone.SHARP: [
        "What is it? Get to the point.",
        "Tasks decided? Declare them with am:.",
        "Time is finite. What do you want?",
    ],
    Tone.DOS: [
        "State your business.",
        "Decide your tasks. Declare them with am:.",
        "Decide your next move.",
    ],
}


def tone_message(tone: Tone, kind: str, **data: object) -> str:
    """Render the *kind* template ("morning", "evening", "weekly", "help") for *tone*."""
    templates = _TONE_TEMPLATES.get(tone, _TONE_TEMPLATES[Tone.MILD])
    template = templates.get(kind, _TONE_TEMPLATES[Tone.MILD][kind])
    return template.format(**data) if data else template


def fallback_response(tone: Tone, rng: random.Random | None = None) -> str:
    lines = _FALLBACK_LINES.get(tone, _FALLBACK_LINES[Tone.MILD])
    line = (rng or random).choice(lines)
    return f"{line}\n\n{COMMAND_CHEAT_SHEET}"


# ---------------------------------------------------------------------------
# Fixed texts
# ---------------------------------------------------------------------------

WELCOME = (
    "🎉 Welcome to Task Mentor!\n\n"
    "Commit in the morning, settle up at night, audit your life once a week.\n\n"
    "Start by declaring today's tasks:\n\n"
    "am: Task A, Task B, Task C\n\n"
    "Change your settings any time with /settings.\n\n"
    "Let's do this! 💪"
)

COMMIT_REJECTED = f"Please enter between 1 and 3 tasks.\n\n{COMMIT_EXAMPLE}"
REPORT_NEEDS_COMMIT = f"Declare your tasks in the morning first.\n\n{COMMIT_EXAMPLE}"
REPORT_BAD_FORMAT = f"Please report in the correct format.\n\n{REPORT_EXAMPLE}"
UNKNOWN_COMMAND = "Unknown command. Send /help to see the command list."
UNKNOWN_ACTION = "Unknown action."
STATE_RESET = "Your settings dialog was reset."
TONE_OPTIONS = "Available tones: mild, sharp, dos"
SETTINGS_MENU = "Settings menu opened. Choose what you want to change."
BAD_TIMEZONE = (
    "Your timezone '{timezone}' is not recognised, so I can't tell what time it is for you.\n"
    "Set a valid one, e.g. /tz Asia/Tokyo"
)

TIME_RETRY = "Please enter a valid time (e.g. {example})"

USAGE_TIME = "Usage: /time am 07:30, /time pm 21:30, /time weekly Sun 19:00"
USAGE_DEADLINE = "Usage: /deadline 23:30"
USAGE_TZ = "Usage: /tz Asia/Tokyo"


def commit_confirmation(tasks: list[TaskEntry]) -> str:
    lines = "\n".join(f"{t.letter}. {t.description}" for t in tasks)
    return f"Got it. Today's tasks are recorded.\n\n{lines}\n\nReport your results tonight."


def report_summary(completed: int, total: int) -> str:
    return f"Report received.\n\nCompleted: {completed}/{total} tasks\n\nGood work today!"


def morning_time_set(value: str) -> str:
    return f"Morning reminder set to {value}."


def evening_time_set(value: str) -> str:
    return f"Evening reminder set to {value}."


def weekly_time_set(value: str, day: str | None = None) -> str:
    when = f"{day} {value}" if day else value
    return f"Weekly review set to {when}."


def deadline_set(value: str) -> str:
    return f"Deadline set to {value}."


def timezone_set(value: str) -> str:
    return f"Timezone set to {value}."


def tone_set(tone: Tone) -> str:
    return f"Tone changed to {tone.value}."


# ---------------------------------------------------------------------------
# Quick actions
# ---------------------------------------------------------------------------

DEFAULT_QUICK_ACTIONS: tuple[QuickAction, ...] = (
    QuickAction(label="am", text="am: "),
    QuickAction(label="pm", text="pm: "),
    QuickAction(label="Settings", text="/settings"),
)

SETTINGS_MENU_ACTIONS: tuple[QuickAction, ...] = (
    QuickAction(label="Morning time", data="open:am"),
    QuickAction(label="Evening time", data="open:pm"),
    QuickAction(label="Weekly review time", data="open:weekly"),
    QuickAction(label="Tone", data="open:tone"),
    QuickAction(label="Deadline", data="open:deadline"),
    QuickAction(label="Timezone", data="open:tz"),
)
