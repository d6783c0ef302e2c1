"""
In-memory conversation store keyed by session_id.

- Each conversation owns its ConversationContext and transcript; nothing is
  shared between sessions.
- Each conversation carries an asyncio.Lock so only one resolution runs
  against its context at a time.
- Sessions expire after SESSION_TIMEOUT_SECONDS of inactivity.
- MAX_TRANSCRIPT_TURNS most-recent question/answer pairs are retained.
- Thread-safe with a Lock around the session map.
"""

from __future__ import annotations

import asyncio
import threading
import time
from dataclasses import dataclass, field

import config
from models import ChatTurn, ConversationContext


@dataclass
class Conversation:
    context: ConversationContext = field(default_factory=ConversationContext)
    transcript: list[ChatTurn] = field(default_factory=list)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)
    last_active: float = field(default_factory=time.time)

    def touch(self) -> None:
        self.last_active = time.time()


class ConversationStore:
    """Thread-safe in-memory store for per-session context and transcript."""

    def __init__(
        self,
        session_timeout: int = config.SESSION_TIMEOUT_SECONDS,
        max_turns: int = config.MAX_TRANSCRIPT_TURNS,
    ) -> None:
        self._sessions: dict[str, Conversation] = {}
        self._lock = threading.Lock()
        self.session_timeout = session_timeout
        self.max_turns = max_turns

    def open(self, session_id: str) -> Conversation:
        """Return the conversation for *session_id*, creating an empty one if unknown."""
        with self._lock:
            conversation = self._sessions.get(session_id)
            if conversation is None:
                conversation = Conversation()
                self._sessions[session_id] = conversation
            conversation.touch()
            return conversation

    def __contains__(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._sessions

    def get_context(self, session_id: str) -> ConversationContext:
        """Return the context for *session_id* (empty context if unknown)."""
        with self._lock:
            conversation = self._sessions.get(session_id)
            return conversation.context if conversation else ConversationContext()

    def set_context(self, session_id: str, context: ConversationContext) -> None:
        self.open(session_id).context = context

    def transcript(self, session_id: str) -> list[ChatTurn]:
        """Return a copy of the transcript for *session_id* (empty list if unknown)."""
        with self._lock:
            conversation = self._sessions.get(session_id)
            return list(conversation.transcript) if conversation else []

    def add(self, session_id: str, turn: ChatTurn) -> None:
        """Append a turn, trimming history to the last max_turns question/answer pairs."""
        conversation = self.open(session_id)
        with self._lock:
            conversation.transcript.append(turn)
            max_msgs = self.max_turns * 2
            if len(conversation.transcript) > max_msgs:
                conversation.transcript = conversation.transcript[-max_msgs:]

    def reset(self, session_id: str) -> None:
        """Clear context and transcript but keep the session (and its lock) alive."""
        conversation = self.open(session_id)
        with self._lock:
            conversation.context = ConversationContext()
            conversation.transcript = []

    def clear(self, session_id: str) -> None:
        """Delete the session entirely."""
        with self._lock:
            self._sessions.pop(session_id, None)

    def cleanup_expired(self) -> int:
        """Remove idle sessions whose lock is free. Returns count removed."""
        cutoff = time.time() - self.session_timeout
        with self._lock:
            expired = [
                sid
                for sid, c in self._sessions.items()
                if c.last_active < cutoff and not c.lock.locked()
            ]
            for sid in expired:
                del self._sessions[sid]
        return len(expired)


# Module-level singleton shared across the whole server process.
conversation_store = ConversationStore()
