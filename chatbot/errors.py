"""
Error taxonomy for the resolution engine.

Only CatalogError (startup) and UnknownShortcutError (caller mistake) ever
escape to callers. The remote-fallback errors are raised and caught inside
chatbot.llm and turned into user-facing messages; EmptyInput is swallowed by
the pipeline. A local miss is not an error at all, just a None from the
resolver.
"""

from __future__ import annotations

from typing import Optional


class ChatbotError(Exception):
    """Base class for engine errors."""


class CatalogError(ChatbotError):
    """The product/policy catalog is unreadable or violates its invariants."""


class EmptyInput(ChatbotError):
    """The utterance was empty after trimming."""


class UnknownShortcutError(ChatbotError):
    def __init__(self, action_id: str) -> None:
        super().__init__(f"Unknown shortcut action: {action_id!r}")
        self.action_id = action_id


class RemoteFallbackError(ChatbotError):
    """A remote completion attempt failed."""


class NoCredentialConfigured(RemoteFallbackError):
    pass


class RemoteRateLimited(RemoteFallbackError):
    def __init__(self, status: int = 429) -> None:
        super().__init__(f"Remote completion rate-limited (HTTP {status})")
        self.status = status


class RemoteUnavailable(RemoteFallbackError):
    def __init__(self, reason: str, status: Optional[int] = None) -> None:
        super().__init__(reason)
        self.status = status
