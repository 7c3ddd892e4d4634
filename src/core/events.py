"""Inbound events and their dispatch onto the conversation engine.

The inbound adapter (Telegram) translates platform updates into one of the
four event types below and hands them to EventDispatcher.dispatch(). The
reply handle travels through untouched and is only used to answer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from src.core.conversation import ConversationEngine, Reply
    from src.ports.notification_port import ReplyHandle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TextMessage:
    user_id: str
    text: str
    reply_handle: ReplyHandle


@dataclass(frozen=True)
class Follow:
    user_id: str
    reply_handle: ReplyHandle


@dataclass(frozen=True)
class Unfollow:
    user_id: str


@dataclass(frozen=True)
class MenuSelection:
    user_id: str
    key: str
    reply_handle: ReplyHandle


InboundEvent = Union[TextMessage, Follow, Unfollow, MenuSelection]


class EventDispatcher:
    """Maps each inbound event kind to its ConversationEngine handler."""

    def __init__(self, engine: ConversationEngine) -> None:
        self._engine = engine

    async def dispatch(self, event: InboundEvent) -> Reply | None:
        """Handle one event and send the reply. Returns the reply (None for unfollow)."""
        if isinstance(event, TextMessage):
            logger.debug("Text from %s: %s", event.user_id, event.text[:80])
            reply = await self._engine.handle_text(event.user_id, event.text)
        elif isinstance(event, Follow):
            reply = self._engine.handle_follow(event.user_id)
        elif isinstance(event, MenuSelection):
            reply = self._engine.handle_menu_selection(event.user_id, event.key)
        elif isinstance(event, Unfollow):
            self._engine.handle_unfollow(event.user_id)
            return None
        else:
            logger.warning("Unsupported inbound event: %r", event)
            return None

        await self._send_reply(event.reply_handle, event.user_id, reply)
        return reply

    async def _send_reply(self, handle: ReplyHandle, user_id: str, reply: Reply) -> None:
        try:
            await handle.reply(reply.text, reply.quick_actions or None)
        except Exception as exc:
            logger.error("Failed to reply to %s: %s", user_id, exc)
