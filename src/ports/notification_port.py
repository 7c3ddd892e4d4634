"""Notification port — abstract interfaces for talking back to users.

Core modules depend on these protocols, never on a specific messaging
provider. Both calls are fire-and-forget from the core's point of view:
callers log failures and never roll state back because of them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence


@dataclass(frozen=True)
class QuickAction:
    """A tappable suggestion attached to an outgoing message.

    Exactly one of ``text`` (sent back as a normal message when tapped) or
    ``data`` (delivered as a menu selection) is set.
    """

    label: str
    text: str | None = None
    data: str | None = None

    @property
    def is_selection(self) -> bool:
        return self.data is not None


class NotificationPort(Protocol):
    """Push a message to a user outside of any inbound event."""

    async def send_message(
        self,
        user_id: str,
        text: str,
        quick_actions: Sequence[QuickAction] | None = None,
    ) -> None: ...


class ReplyHandle(Protocol):
    """Opaque handle for answering one inbound event. The core never inspects it."""

    async def reply(
        self,
        text: str,
        quick_actions: Sequence[QuickAction] | None = None,
    ) -> None: ...
