"""
Remote fallback client for questions the local catalog cannot answer.

Uses huggingface_hub.InferenceClient against an OpenAI-compatible
chat-completions endpoint (OpenAI by default, via base_url).

Key design decisions:
- One fresh InferenceClient per call (lightweight, avoids stale state).
- Single attempt, no retries: a failed call is terminal for that turn.
- complete() never raises. Failures become one of three fixed messages, and the
  returned outcome tells a rate-limit apart from any other failure.
- No API key → no network call at all.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from huggingface_hub import InferenceClient

import config
from chatbot.errors import (
    NoCredentialConfigured,
    RemoteFallbackError,
    RemoteRateLimited,
    RemoteUnavailable,
)
from chatbot.prompt_builder import build_messages

logger = logging.getLogger(__name__)

NO_CREDENTIAL_MSG = (
    "I'm sorry, I couldn't find an exact answer to your question. "
    "Please ask about our products, order tracking, payment methods, or return policy!"
)
UNAVAILABLE_MSG = (
    "I'm sorry, I couldn't find an exact answer to your question and our AI assistant "
    "is currently unavailable. Please ask about our products, order tracking, "
    "payment methods, or return policy!"
)
RATE_LIMIT_MSG = (
    "We're getting a lot of questions right now! Please wait a moment and try again. "
    "(OpenAI rate limit reached)"
)

RATE_LIMIT_STATUS = 429


class FallbackOutcome(str, Enum):
    ANSWERED = "answered"
    RATE_LIMITED = "rate_limited"
    UNAVAILABLE = "unavailable"
    NO_CREDENTIAL = "no_credential"


@dataclass(frozen=True)
class FallbackResult:
    text: str
    outcome: FallbackOutcome

    @property
    def degraded(self) -> bool:
        return self.outcome is not FallbackOutcome.ANSWERED


_DEGRADED: dict[type, tuple[str, FallbackOutcome]] = {
    NoCredentialConfigured: (NO_CREDENTIAL_MSG, FallbackOutcome.NO_CREDENTIAL),
    RemoteRateLimited: (RATE_LIMIT_MSG, FallbackOutcome.RATE_LIMITED),
    RemoteUnavailable: (UNAVAILABLE_MSG, FallbackOutcome.UNAVAILABLE),
}


def _status_of(exc: Exception) -> int:
    resp = getattr(exc, "response", None)
    # requests.Response is falsy for 4xx/5xx, so compare against None explicitly.
    if resp is None:
        return 0
    return getattr(resp, "status_code", 0) or 0


class RemoteFallbackClient:
    """Single-shot chat completion with failures folded into user-facing text."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = config.LLM_BASE_URL,
        model: str = config.LLM_MODEL,
        max_tokens: int = config.LLM_MAX_TOKENS,
        temperature: float = config.LLM_TEMPERATURE,
        timeout: Optional[float] = config.LLM_TIMEOUT_SECONDS,
        client_factory: Optional[Callable[..., InferenceClient]] = None,
    ) -> None:
        self.api_key = api_key or None
        self.base_url = base_url
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self._client_factory = client_factory or InferenceClient

    @classmethod
    def from_config(cls) -> "RemoteFallbackClient":
        return cls(api_key=config.OPENAI_API_KEY)

    @property
    def configured(self) -> bool:
        return self.api_key is not None

    def _make_client(self) -> InferenceClient:
        return self._client_factory(base_url=self.base_url, api_key=self.api_key, timeout=self.timeout)

    def _request(self, utterance: str) -> str:
        """One chat-completion call. Raises a RemoteFallbackError subclass on failure."""
        if not self.configured:
            raise NoCredentialConfigured("No API key configured; skipping remote fallback")

        try:
            client = self._make_client()
            response = client.chat.completions.create(
                model=self.model,
                messages=build_messages(utterance),
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except Exception as exc:
            status = _status_of(exc)
            if status == RATE_LIMIT_STATUS:
                raise RemoteRateLimited(status) from exc
            raise RemoteUnavailable(f"{type(exc).__name__}: {exc}", status=status or None) from exc

        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError, KeyError, TypeError) as exc:
            raise RemoteUnavailable(f"Malformed completion payload: {exc}") from exc
        if not content:
            raise RemoteUnavailable("Completion payload carried no text")
        return content

    def complete(self, utterance: str) -> FallbackResult:
        """Return the model's answer, or a degraded message. Never raises."""
        try:
            text = self._request(utterance)
        except RemoteFallbackError as exc:
            message, outcome = _DEGRADED[type(exc)]
            if outcome is FallbackOutcome.NO_CREDENTIAL:
                logger.info("Remote fallback skipped: no credential configured")
            elif outcome is FallbackOutcome.RATE_LIMITED:
                logger.warning("Remote fallback rate-limited (HTTP %s)", exc.status)
            else:
                logger.error("Remote fallback failed: %s", exc)
            return FallbackResult(message, outcome)

        logger.info("Remote fallback answered (%d chars)", len(text))
        return FallbackResult(text, FallbackOutcome.ANSWERED)
