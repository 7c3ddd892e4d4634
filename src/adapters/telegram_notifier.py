"""Telegram notification adapter — implements NotificationPort and ReplyHandle.

Quick actions are rendered as keyboards: menu selections become inline
buttons (callback_data carries the selection key), plain suggestions become
a reply keyboard whose button text is sent back as a normal message.
"""

from __future__ import annotations

import logging
from typing import Sequence

from telegram import (
    Bot,
    InlineKeyboardButton,
    InlineKeyboardMarkup,
    Message,
    ReplyKeyboardMarkup,
)

from src.ports.notification_port import QuickAction

logger = logging.getLogger(__name__)


def build_reply_markup(
    quick_actions: Sequence[QuickAction] | None,
) -> InlineKeyboardMarkup | ReplyKeyboardMarkup | None:
    """Translate quick actions into a Telegram keyboard (None if there are none)."""
    if not quick_actions:
        return None

    if any(action.is_selection for action in quick_actions):
        buttons = [
            [InlineKeyboardButton(action.label, callback_data=action.data)]
            for action in quick_actions
            if action.is_selection
        ]
        return InlineKeyboardMarkup(buttons)

    row = [(action.text or action.label).strip() or action.label for action in quick_actions]
    return ReplyKeyboardMarkup([row], resize_keyboard=True)


class TelegramNotifier:
    """Telegram implementation of NotificationPort."""

    def __init__(self, bot: Bot) -> None:
        self._bot = bot

    async def send_message(
        self,
        user_id: str,
        text: str,
        quick_actions: Sequence[QuickAction] | None = None,
    ) -> None:
        await self._bot.send_message(
            chat_id=user_id,
            text=text,
            reply_markup=build_reply_markup(quick_actions),
        )


class TelegramReplyHandle:
    """ReplyHandle bound to the Telegram message that triggered an event."""

    def __init__(self, message: Message) -> None:
        self._message = message

    async def reply(
        self,
        text: str,
        quick_actions: Sequence[QuickAction] | None = None,
    ) -> None:
        await self._message.reply_text(text, reply_markup=build_reply_markup(quick_actions))
