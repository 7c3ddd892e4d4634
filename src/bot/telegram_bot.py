"""
Task Mentor — Telegram Bot.

Telegram is the inbound event source and the outbound sink. This module only
translates platform updates into inbound events:

- /start                       -> Follow
- any other text (incl. /cmd)  -> TextMessage
- inline button tap            -> MenuSelection
- user blocks / leaves the bot -> Unfollow

and registers the once-a-minute job that drives NotificationScheduler.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING

from telegram import ChatMember, Update
from telegram.ext import (
    Application,
    ApplicationBuilder,
    CallbackQueryHandler,
    ChatMemberHandler,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

from src.adapters.telegram_notifier import TelegramNotifier, TelegramReplyHandle
from src.config import settings
from src.core.conversation import ConversationEngine
from src.core.events import EventDispatcher, Follow, MenuSelection, TextMessage, Unfollow
from src.core.scheduler import NotificationScheduler
from src.data.store import ProfileStore, SessionStore

if TYPE_CHECKING:
    from src.core.responder import DefaultResponder
    from src.ports.notification_port import NotificationPort

logger = logging.getLogger(__name__)

_GONE_STATUSES = (ChatMember.BANNED, ChatMember.LEFT)


def _user_id(update: Update) -> str | None:
    user = update.effective_user
    return str(user.id) if user is not None else None


# ---------------------------------------------------------------------------
# Update handlers
# ---------------------------------------------------------------------------


async def cmd_start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start — the Telegram equivalent of a follow."""
    user_id = _user_id(update)
    if user_id is None or update.effective_message is None:
        return
    dispatcher: EventDispatcher = context.bot_data["dispatcher"]
    await dispatcher.dispatch(Follow(user_id, TelegramReplyHandle(update.effective_message)))


async def handle_text(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle every text message, commands included."""
    message = update.effective_message
    user_id = _user_id(update)
    if user_id is None or message is None or message.text is None:
        return
    dispatcher: EventDispatcher = context.bot_data["dispatcher"]
    await dispatcher.dispatch(TextMessage(user_id, message.text, TelegramReplyHandle(message)))


async def handle_menu_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle an inline settings-menu button tap."""
    query = update.callback_query
    user_id = _user_id(update)
    if query is None or user_id is None:
        return
    await query.answer()
    if query.message is None:
        logger.warning("Menu selection from %s without a message to reply to", user_id)
        return
    dispatcher: EventDispatcher = context.bot_data["dispatcher"]
    await dispatcher.dispatch(
        MenuSelection(user_id, query.data or "", TelegramReplyHandle(query.message))
    )


async def handle_my_chat_member(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Treat blocking the bot (or leaving its chat) as an unfollow."""
    change = update.my_chat_member
    if change is None:
        return
    if change.new_chat_member.status in _GONE_STATUSES:
        dispatcher: EventDispatcher = context.bot_data["dispatcher"]
        await dispatcher.dispatch(Unfollow(str(change.from_user.id)))


# ---------------------------------------------------------------------------
# App builder
# ---------------------------------------------------------------------------


def build_app(
    notifier: NotificationPort | None = None,
    responder: DefaultResponder | None = None,
) -> Application:
    """Build the Telegram Application and wire stores, engine and scheduler.

    Args:
        notifier: Outbound sink. Defaults to TelegramNotifier on the app's bot.
        responder: Default responder. Defaults to LLM-backed if configured.
    """
    app = ApplicationBuilder().token(settings.TELEGRAM_BOT_TOKEN).build()

    if notifier is None:
        notifier = TelegramNotifier(app.bot)

    if responder is None:
        from src.core.responder import create_default_responder
        responder = create_default_responder()

    profiles = ProfileStore()
    sessions = SessionStore()
    engine = ConversationEngine(profiles, sessions, responder)
    scheduler = NotificationScheduler(profiles, notifier)

    app.bot_data["profiles"] = profiles
    app.bot_data["dispatcher"] = EventDispatcher(engine)
    app.bot_data["scheduler"] = scheduler

    app.add_handler(CommandHandler("start", cmd_start))
    app.add_handler(MessageHandler(filters.TEXT, handle_text))
    app.add_handler(CallbackQueryHandler(handle_menu_callback))
    app.add_handler(ChatMemberHandler(handle_my_chat_member, ChatMemberHandler.MY_CHAT_MEMBER))

    _setup_notification_tick(app, scheduler)

    logger.info("Telegram bot application built with %d handlers", len(app.handlers[0]))
    return app


def _seconds_until_next_minute(now: datetime | None = None) -> float:
    now = now or datetime.now()
    return 60 - now.second - now.microsecond / 1_000_000


def _setup_notification_tick(app: Application, scheduler: NotificationScheduler) -> None:
    """Register the repeating job that runs one scheduler tick per minute."""

    async def _tick_callback(context: ContextTypes.DEFAULT_TYPE) -> None:
        await scheduler.run_tick()

    app.job_queue.run_repeating(
        _tick_callback,
        interval=settings.TICK_INTERVAL_SECONDS,
        first=_seconds_until_next_minute(),
        name="notification_tick",
    )
    logger.info("Notification tick scheduled every %ds", settings.TICK_INTERVAL_SECONDS)


def main() -> None:
    """Entry point: build the app and start polling."""
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        force=True,
    )
    logger.info("Starting Task Mentor bot...")
    app = build_app()
    app.run_polling(allowed_updates=Update.ALL_TYPES)


if __name__ == "__main__":
    main()
