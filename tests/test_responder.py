"""Tests for src.core.responder — canned and LLM-backed default responders."""

import json
import random

import pytest
from unittest.mock import AsyncMock, patch

from src.core import messages
from src.core.responder import (
    CannedResponder,
    LLMResponder,
    build_system_prompt,
    create_default_responder,
)
from src.data.models import Tone, UserProfile


def _context(tone: Tone = Tone.MILD) -> dict:
    profile = UserProfile(id="u1")
    profile.settings.tone = tone
    return profile.context_snapshot()


class TestCannedResponder:
    @pytest.mark.asyncio
    async def test_includes_cheat_sheet(self):
        reply = await CannedResponder(rng=random.Random(1)).respond("u1", "hi", _context())
        assert reply.endswith(messages.COMMAND_CHEAT_SHEET)

    @pytest.mark.asyncio
    async def test_follows_tone(self):
        rng = random.Random(7)
        reply = await CannedResponder(rng=rng).respond("u1", "hi", _context(Tone.DOS))
        expected = messages.fallback_response(Tone.DOS, random.Random(7))
        assert reply == expected

    @pytest.mark.asyncio
    async def test_unknown_tone_falls_back_to_mild(self):
        context = _context()
        context["settings"]["tone"] = "weird"
        reply = await CannedResponder(rng=random.Random(3)).respond("u1", "hi", context)
        assert reply == messages.fallback_response(Tone.MILD, random.Random(3))


class TestSystemPrompt:
    def test_embeds_tone_and_context(self):
        context = _context(Tone.SHARP)
        prompt = build_system_prompt(context)
        assert '"sharp"' in prompt
        assert json.dumps(context, ensure_ascii=False, indent=2) in prompt


class TestLLMResponder:
    @pytest.mark.asyncio
    async def test_returns_llm_text(self):
        with patch("src.core.responder.complete", AsyncMock(return_value="  Do the first task now.  ")) as mock:
            reply = await LLMResponder().respond("u1", "help me", _context())
        assert reply == "Do the first task now."
        assert mock.call_args.kwargs["user_message"] == "help me"

    @pytest.mark.asyncio
    async def test_llm_error_uses_fallback(self):
        fallback = AsyncMock()
        fallback.respond = AsyncMock(return_value="canned")
        with patch("src.core.responder.complete", AsyncMock(side_effect=RuntimeError("quota"))):
            reply = await LLMResponder(fallback=fallback).respond("u1", "hi", _context())
        assert reply == "canned"

    @pytest.mark.asyncio
    async def test_empty_llm_reply_uses_fallback(self):
        fallback = AsyncMock()
        fallback.respond = AsyncMock(return_value="canned")
        with patch("src.core.responder.complete", AsyncMock(return_value="   ")):
            reply = await LLMResponder(fallback=fallback).respond("u1", "hi", _context())
        assert reply == "canned"


class TestCreateDefaultResponder:
    def test_canned_without_key(self):
        with patch("src.core.llm.is_configured", return_value=False):
            assert isinstance(create_default_responder(), CannedResponder)

    def test_llm_with_key(self):
        with patch("src.core.llm.is_configured", return_value=True):
            assert isinstance(create_default_responder(), LLMResponder)
