"""
Task Mentor — LLM Provider Abstraction.

Single public coroutine `complete()` routed to the provider named by the
LLM_PROVIDER setting (openai by default; anthropic, gemini and cohere are
also supported). The provider SDK is imported only when first used.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Request:
    api_key: str
    model: str
    system: str
    user_message: str
    max_tokens: int
    temperature: float


_ProviderFn = Callable[[_Request], Awaitable[str]]


class LLMNotConfiguredError(RuntimeError):
    """Raised when complete() is called without an API key."""


# ---------------------------------------------------------------------------
# Provider implementations
# ---------------------------------------------------------------------------


async def _complete_openai(req: _Request) -> str:
    from openai import AsyncOpenAI

    client = AsyncOpenAI(api_key=req.api_key)
    response = await client.chat.completions.create(
        model=req.model,
        max_tokens=req.max_tokens,
        temperature=req.temperature,
        messages=[
            {"role": "system", "content": req.system},
            {"role": "user", "content": req.user_message},
        ],
    )
    return response.choices[0].message.content or ""


async def _complete_anthropic(req: _Request) -> str:
    import anthropic

    client = anthropic.AsyncAnthropic(api_key=req.api_key)
    response = await client.messages.create(
        model=req.model,
        max_tokens=req.max_tokens,
        temperature=req.temperature,
        system=req.system,
        messages=[{"role": "user", "content": req.user_message}],
    )
    return response.content[0].text


async def _complete_gemini(req: _Request) -> str:
    import google.generativeai as genai

    genai.configure(api_key=req.api_key)
    model = genai.GenerativeModel(model_name=req.model, system_instruction=req.system)
    response = await model.generate_content_async(
        req.user_message,
        generation_config=genai.types.GenerationConfig(
            max_output_tokens=req.max_tokens,
            temperature=req.temperature,
        ),
    )
    return response.text


async def _complete_cohere(req: _Request) -> str:
    import cohere

    client = cohere.AsyncClientV2(api_key=req.api_key)
    response = await client.chat(
        model=req.model,
        max_tokens=req.max_tokens,
        temperature=req.temperature,
        messages=[
            {"role": "system", "content": req.system},
            {"role": "user", "content": req.user_message},
        ],
    )
    return response.message.content[0].text


_PROVIDERS: dict[str, tuple[_ProviderFn, str]] = {
    "openai":    (_complete_openai,    "gpt-4o-mini"),
    "anthropic": (_complete_anthropic, "claude-haiku-4-5-20251001"),
    "gemini":    (_complete_gemini,    "gemini-2.0-flash"),
    "cohere":    (_complete_cohere,    "command-a-03-2025"),
}


def is_configured() -> bool:
    """True when an API key is set, i.e. complete() can be attempted."""
    from src.config import settings

    return bool(settings.LLM_API_KEY)


def _resolve_provider() -> tuple[_ProviderFn, str]:
    from src.config import settings

    name = settings.LLM_PROVIDER.lower()
    if name not in _PROVIDERS:
        raise ValueError(
            f"Unknown LLM_PROVIDER={name!r}. Supported: {', '.join(_PROVIDERS)}"
        )
    fn, default_model = _PROVIDERS[name]
    return fn, settings.LLM_MODEL or default_model


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def complete(
    system: str,
    user_message: str,
    max_tokens: int | None = None,
    temperature: float | None = None,
) -> str:
    """Send a prompt to the configured provider and return the reply text.

    Raises on API errors — callers decide how to degrade.
    """
    from src.config import settings

    if not settings.LLM_API_KEY:
        raise LLMNotConfiguredError("LLM_API_KEY is not set")

    fn, model = _resolve_provider()
    logger.debug("LLM call via %s (%s)", settings.LLM_PROVIDER, model)
    return await fn(_Request(
        api_key=settings.LLM_API_KEY,
        model=model,
        system=system,
        user_message=user_message,
        max_tokens=max_tokens if max_tokens is not None else settings.LLM_MAX_TOKENS,
        temperature=temperature if temperature is not None else settings.LLM_TEMPERATURE,
    ))
