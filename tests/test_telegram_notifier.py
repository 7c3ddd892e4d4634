"""Tests for src.adapters.telegram_notifier — keyboards, sends and replies."""

import pytest
from unittest.mock import AsyncMock, MagicMock

from telegram import InlineKeyboardMarkup, ReplyKeyboardMarkup

from src.adapters.telegram_notifier import (
    TelegramNotifier,
    TelegramReplyHandle,
    build_reply_markup,
)
from src.core import messages


class TestBuildReplyMarkup:
    def test_none_for_no_actions(self):
        assert build_reply_markup(None) is None
        assert build_reply_markup(()) is None

    def test_text_actions_become_reply_keyboard(self):
        markup = build_reply_markup(messages.DEFAULT_QUICK_ACTIONS)
        assert isinstance(markup, ReplyKeyboardMarkup)
        labels = [button.text for button in markup.keyboard[0]]
        assert labels == ["am:", "pm:", "/settings"]

    def test_selection_actions_become_inline_buttons(self):
        markup = build_reply_markup(messages.SETTINGS_MENU_ACTIONS)
        assert isinstance(markup, InlineKeyboardMarkup)
        data = [row[0].callback_data for row in markup.inline_keyboard]
        assert data == [a.data for a in messages.SETTINGS_MENU_ACTIONS]


class TestTelegramNotifier:
    @pytest.mark.asyncio
    async def test_send_message(self):
        bot = MagicMock()
        bot.send_message = AsyncMock()
        await TelegramNotifier(bot).send_message("12345", "hello")
        bot.send_message.assert_awaited_once_with(chat_id="12345", text="hello", reply_markup=None)

    @pytest.mark.asyncio
    async def test_send_message_with_actions(self):
        bot = MagicMock()
        bot.send_message = AsyncMock()
        await TelegramNotifier(bot).send_message("1", "morning", messages.DEFAULT_QUICK_ACTIONS)
        assert isinstance(bot.send_message.call_args.kwargs["reply_markup"], ReplyKeyboardMarkup)


class TestTelegramReplyHandle:
    @pytest.mark.asyncio
    async def test_reply_uses_triggering_message(self):
        message = MagicMock()
        message.reply_text = AsyncMock()
        await TelegramReplyHandle(message).reply("done", messages.SETTINGS_MENU_ACTIONS)
        args, kwargs = message.reply_text.call_args
        assert args == ("done",)
        assert isinstance(kwargs["reply_markup"], InlineKeyboardMarkup)
