"""Default responder — answers any text the state machine doesn't recognise.

The conversation engine only knows the DefaultResponder protocol: it hands
over the raw message plus a fixed-shape context snapshot and sends back
whatever text comes out. Two implementations live here:

- CannedResponder: a random tone-specific nudge plus the command cheat sheet.
- LLMResponder: asks the configured LLM in the mentor persona and falls back
  to the canned text if the call fails.
"""

from __future__ import annotations

import json
import logging
import random
from typing import Protocol

from src.core import messages
from src.core.llm import complete
from src.data.models import Tone

logger = logging.getLogger(__name__)


class DefaultResponder(Protocol):
    async def respond(self, user_id: str, text: str, context: dict) -> str: ...


def _tone_of(context: dict) -> Tone:
    raw = context.get("settings", {}).get("tone", Tone.MILD.value)
    try:
        return Tone(raw)
    except ValueError:
        return Tone.MILD


class CannedResponder:
    """No-LLM responder."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng

    async def respond(self, user_id: str, text: str, context: dict) -> str:
        return messages.fallback_response(_tone_of(context), self._rng)


_TONE_STYLES = {
    Tone.MILD: "facts + a suggestion + encouragement",
    Tone.SHARP: "facts + point out contradictions + options (short sentences, no pleasantries)",
    Tone.DOS: "facts + an uncompromising standard + force a commitment to the next single step",
}

_SYSTEM_PROMPT = """\
You are "Task Mentor", a no-nonsense chat-based task mentor.

Persona:
- Commit in the morning, settle up at night, audit life once a week.
- Your mission is to crush procrastination.
- Your tone is "{tone}": {style}.

Features the user can use:
- Morning commit: declare up to 3 tasks for today ("am: A, B, C").
- Evening report: report each result ("pm: A=done, B=miss(reason)").
- Weekly review: the week is aggregated automatically and reviewed bluntly.

Current situation (JSON):
{context}

Rules:
- Never attack or insult the user.
- Always give constructive, practical advice.
- Stay focused on task management.
- Help the user grow.

Reply appropriately to the user's message."""


def build_system_prompt(context: dict) -> str:
    tone = _tone_of(context)
    return _SYSTEM_PROMPT.format(
        tone=tone.value,
        style=_TONE_STYLES[tone],
        context=json.dumps(context, ensure_ascii=False, indent=2),
    )


class LLMResponder:
    """Mentor-persona replies from the configured LLM provider."""

    def __init__(self, fallback: DefaultResponder | None = None) -> None:
        self._fallback = fallback or CannedResponder()

    async def respond(self, user_id: str, text: str, context: dict) -> str:
        try:
            reply = await complete(system=build_system_prompt(context), user_message=text)
        except Exception as exc:
            logger.warning("LLM reply failed for user %s: %s", user_id, exc)
            return await self._fallback.respond(user_id, text, context)

        reply = reply.strip()
        if not reply:
            logger.warning("LLM returned an empty reply for user %s", user_id)
            return await self._fallback.respond(user_id, text, context)
        return reply


def create_default_responder() -> DefaultResponder:
    """LLMResponder when an API key is configured, CannedResponder otherwise."""
    from src.core.llm import is_configured

    if is_configured():
        return LLMResponder()
    logger.info("LLM_API_KEY not set — using canned fallback replies")
    return CannedResponder()
