"""
Task Mentor — Conversational State Machine.

UI-agnostic service that turns one inbound event into a Reply. Each inbound
adapter (Telegram today) calls ConversationEngine and renders the Reply in
its own way.

A text message is resolved in this order, first match wins:

1. an open settings sub-dialog (ConversationState != NORMAL) consumes it,
   slash commands included;
2. ``am:``  -> morning commit;
3. ``pm:``  -> evening report;
4. ``/...`` -> command dispatch;
5. ``weekly`` -> on-demand weekly review;
6. anything else -> the pluggable DefaultResponder.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable

from src.core import messages
from src.core.clock import Clock, InvalidTimezoneError, utc_now
from src.core.parser import (
    EVENING_MARKER,
    MORNING_MARKER,
    SlashCommand,
    has_marker,
    is_command,
    is_weekly_trigger,
    parse_command,
    parse_day,
    parse_time,
    parse_tone,
)
from src.core.task_cycle import commit_tasks, report_results, weekly_aggregate
from src.data.models import ConversationState, UserProfile, UserSettings
from src.ports.notification_port import QuickAction

if TYPE_CHECKING:
    from src.core.responder import DefaultResponder
    from src.data.store import ProfileStore, SessionStore

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Response types
# ---------------------------------------------------------------------------


class ReplyKind(Enum):
    TEXT = "text"
    MENU = "menu"


@dataclass
class Reply:
    text: str
    quick_actions: tuple[QuickAction, ...] = messages.DEFAULT_QUICK_ACTIONS
    kind: ReplyKind = ReplyKind.TEXT


def _text(message: str) -> Reply:
    return Reply(text=message)


# ---------------------------------------------------------------------------
# Settings sub-dialogs
# ---------------------------------------------------------------------------

_TIME_DIALOGS: dict[ConversationState, tuple[str, str, Callable[[str], str]]] = {
    # state: (settings attribute, example shown on retry, confirmation)
    ConversationState.AWAITING_MORNING_TIME: ("morning_time", "07:30", messages.morning_time_set),
    ConversationState.AWAITING_EVENING_TIME: ("evening_time", "21:30", messages.evening_time_set),
    ConversationState.AWAITING_WEEKLY_TIME: ("weekly_review_time", "19:00", messages.weekly_time_set),
    ConversationState.AWAITING_DEADLINE_TIME: ("deadline_time", "23:00", messages.deadline_set),
}

MENU_SELECTIONS: dict[str, tuple[ConversationState, str]] = {
    "open:am": (
        ConversationState.AWAITING_MORNING_TIME,
        "Send your morning reminder time as HH:MM (e.g. 07:30)",
    ),
    "open:pm": (
        ConversationState.AWAITING_EVENING_TIME,
        "Send your evening reminder time as HH:MM (e.g. 21:30)",
    ),
    "open:weekly": (
        ConversationState.AWAITING_WEEKLY_TIME,
        "Send your weekly review time as HH:MM (e.g. 19:00)",
    ),
    "open:tone": (
        ConversationState.AWAITING_TONE,
        "Choose a tone: mild / sharp / dos",
    ),
    "open:deadline": (
        ConversationState.AWAITING_DEADLINE_TIME,
        "Send your deadline as HH:MM (e.g. 23:00)",
    ),
    "open:tz": (
        ConversationState.AWAITING_TIMEZONE,
        "Send your timezone (e.g. Asia/Tokyo)",
    ),
}


class ConversationEngine:
    """Resolves inbound events against the profile and session stores.

    All profile mutations happen under ProfileStore.lock(user_id); the only
    ``await`` (the default responder) runs after the lock is released.
    """

    def __init__(
        self,
        profiles: ProfileStore,
        sessions: SessionStore,
        responder: DefaultResponder,
        clock: Clock = utc_now,
    ) -> None:
        self._profiles = profiles
        self._sessions = sessions
        self._responder = responder
        self._clock = clock

    # -------------------------------------------------------------------
    # Inbound entry points
    # -------------------------------------------------------------------

    async def handle_text(self, user_id: str, text: str) -> Reply:
        """Resolve one text message into a Reply, mutating state as needed."""
        text = text.strip()

        state = self._sessions.get_state(user_id)
        if state != ConversationState.NORMAL:
            with self._profiles.lock(user_id):
                return self._resolve_sub_dialog(user_id, state, text)

        with self._profiles.lock(user_id):
            profile = self._profiles.get_or_create(user_id)
            try:
                if has_marker(text, MORNING_MARKER):
                    return _text(commit_tasks(profile, text, self._clock()).message)
                if has_marker(text, EVENING_MARKER):
                    return _text(report_results(profile, text, self._clock()).message)
            except InvalidTimezoneError as exc:
                logger.warning("User %s: %s", user_id, exc)
                return _text(messages.BAD_TIMEZONE.format(timezone=exc.tz_name))

            if is_command(text):
                return self._dispatch(profile, parse_command(text))
            if is_weekly_trigger(text):
                return _text(weekly_aggregate(profile).message)

            context = profile.context_snapshot()
            tone = profile.settings.tone

        try:
            answer = await self._responder.respond(user_id, text, context)
        except Exception as exc:
            logger.error("Default responder failed for user %s: %s", user_id, exc)
            answer = messages.fallback_response(tone)
        return _text(answer)

    def handle_follow(self, user_id: str) -> Reply:
        self._profiles.get_or_create(user_id)
        logger.info("User %s followed", user_id)
        return _text(messages.WELCOME)

    def handle_unfollow(self, user_id: str) -> None:
        with self._profiles.lock(user_id):
            self._profiles.remove(user_id)
            self._sessions.clear_state(user_id)
        logger.info("User %s unfollowed", user_id)

    def handle_menu_selection(self, user_id: str, key: str) -> Reply:
        """Open the sub-dialog behind a settings-menu option."""
        selection = MENU_SELECTIONS.get(key)
        if selection is None:
            logger.warning("User %s sent unknown menu key %r", user_id, key)
            return _text(messages.UNKNOWN_ACTION)
        state, prompt = selection
        self._sessions.set_state(user_id, state)
        return _text(prompt)

    # -------------------------------------------------------------------
    # Sub-dialog resolver
    # -------------------------------------------------------------------

    def _resolve_sub_dialog(
        self, user_id: str, state: ConversationState | str, text: str,
    ) -> Reply:
        if state in _TIME_DIALOGS:
            attribute, example, confirm = _TIME_DIALOGS[state]
            value = parse_time(text)
            if value is None:
                return _text(messages.TIME_RETRY.format(example=example))
            settings = self._profiles.get_or_create(user_id).settings
            setattr(settings, attribute, value)
            self._sessions.clear_state(user_id)
            return _text(confirm(value))

        if state == ConversationState.AWAITING_TONE:
            tone = parse_tone(text)
            if tone is None:
                return _text(messages.TONE_OPTIONS)
            self._profiles.get_or_create(user_id).settings.tone = tone
            self._sessions.clear_state(user_id)
            return _text(messages.tone_set(tone))

        if state == ConversationState.AWAITING_TIMEZONE:
            self._profiles.get_or_create(user_id).settings.timezone = text
            self._sessions.clear_state(user_id)
            return _text(messages.timezone_set(text))

        logger.warning("User %s had unknown conversation state %r; resetting", user_id, state)
        self._sessions.clear_state(user_id)
        return _text(messages.STATE_RESET)

    # -------------------------------------------------------------------
    # Command dispatch
    # -------------------------------------------------------------------

    def _dispatch(self, profile: UserProfile, command: SlashCommand) -> Reply:
        handler = self._commands().get(command.name)
        if handler is None:
            self._sessions.clear_state(profile.id)
            return _text(messages.UNKNOWN_COMMAND)
        return handler(profile, command.args)

    def _commands(self) -> dict[str, Callable[[UserProfile, list[str]], Reply]]:
        return {
            "/tone": self._cmd_tone,
            "/time": self._cmd_time,
            "/deadline": self._cmd_deadline,
            "/tz": self._cmd_tz,
            "/help": self._cmd_help,
            "/settings": self._cmd_settings,
            "/weekly": self._cmd_weekly,
        }

    def _applied(self, profile: UserProfile, message: str) -> Reply:
        self._sessions.clear_state(profile.id)
        return _text(message)

    def _cmd_tone(self, profile: UserProfile, args: list[str]) -> Reply:
        tone = parse_tone(args[0]) if args else None
        if tone is None:
            return _text(messages.TONE_OPTIONS)
        profile.settings.tone = tone
        return self._applied(profile, messages.tone_set(tone))

    def _cmd_time(self, profile: UserProfile, args: list[str]) -> Reply:
        settings: UserSettings = profile.settings
        which = args[0].lower() if args else ""

        if which in ("am", "pm") and len(args) >= 2:
            value = parse_time(args[1])
            if value is None:
                return _text(messages.USAGE_TIME)
            if which == "am":
                settings.morning_time = value
                return self._applied(profile, messages.morning_time_set(value))
            settings.evening_time = value
            return self._applied(profile, messages.evening_time_set(value))

        if which == "weekly" and len(args) >= 3:
            day, value = parse_day(args[1]), parse_time(args[2])
            if day is None or value is None:
                return _text(messages.USAGE_TIME)
            settings.weekly_review_day = day
            settings.weekly_review_time = value
            return self._applied(profile, messages.weekly_time_set(value, day))

        return _text(messages.USAGE_TIME)

    def _cmd_deadline(self, profile: UserProfile, args: list[str]) -> Reply:
        value = parse_time(args[0]) if args else None
        if value is None:
            return _text(messages.USAGE_DEADLINE)
        profile.settings.deadline_time = value
        return self._applied(profile, messages.deadline_set(value))

    def _cmd_tz(self, profile: UserProfile, args: list[str]) -> Reply:
        if not args:
            return _text(messages.USAGE_TZ)
        profile.settings.timezone = args[0]
        return self._applied(profile, messages.timezone_set(args[0]))

    def _cmd_help(self, profile: UserProfile, args: list[str]) -> Reply:
        return _text(messages.tone_message(profile.settings.tone, "help"))

    def _cmd_settings(self, profile: UserProfile, args: list[str]) -> Reply:
        return Reply(
            text=messages.SETTINGS_MENU,
            quick_actions=messages.SETTINGS_MENU_ACTIONS,
            kind=ReplyKind.MENU,
        )

    def _cmd_weekly(self, profile: UserProfile, args: list[str]) -> Reply:
        return _text(weekly_aggregate(profile).message)
