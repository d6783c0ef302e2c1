"""Shared fixtures: built-in catalog, fake chat-completion clients, zero-delay engines."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from chatbot.chat_handler import ChatEngine, ResolutionPipeline
from chatbot.conversation import ConversationStore
from chatbot.llm import RemoteFallbackClient
from knowledge_base import KnowledgeBase


class FakeHTTPError(Exception):
    """Mimics the HTTP errors raised by InferenceClient (carries .response.status_code)."""

    def __init__(self, status: int) -> None:
        super().__init__(f"HTTP {status}")
        self.response = SimpleNamespace(status_code=status)


def completion(text):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=text))])


def fake_factory(*, returns=None, raises=None):
    """Build a client_factory whose client returns *returns* or raises *raises*."""
    client = MagicMock()
    if raises is not None:
        client.chat.completions.create.side_effect = raises
    else:
        client.chat.completions.create.return_value = returns
    return MagicMock(return_value=client)


@pytest.fixture
def kb() -> KnowledgeBase:
    return KnowledgeBase.default()


@pytest.fixture
def offline_fallback() -> RemoteFallbackClient:
    return RemoteFallbackClient(api_key=None)


@pytest.fixture
def store() -> ConversationStore:
    return ConversationStore(session_timeout=60, max_turns=50)


@pytest.fixture
def pipeline(kb, offline_fallback) -> ResolutionPipeline:
    return ResolutionPipeline(kb, offline_fallback, thinking_delay=0)


@pytest.fixture
def engine(pipeline, store) -> ChatEngine:
    return ChatEngine(pipeline, store)
