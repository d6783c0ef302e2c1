"""
Chat handler - the resolution pipeline and the per-conversation engine.

For each user utterance:
  1. Reject empty input (no transcript entry, no answer).
  2. Update the conversation context from keywords (always, hit or miss).
  3. Try the local knowledge base.
  4. On a miss, call the remote fallback once (in a worker thread so the
     event loop is not blocked); its text, real or degraded, is the answer.
  5. Pause for the configured "thinking" delay, then deliver.

State trace per request:
    IDLE → RESOLVING → (LOCAL_HIT | REMOTE_CALLING) → DELIVERED

Shortcut actions are a separate fixed table: three return canned text and
never touch the resolver or the fallback; "specs" routes its question through
the full pipeline.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import config
from chatbot.context import update_context
from chatbot.conversation import ConversationStore, conversation_store
from chatbot.errors import EmptyInput, UnknownShortcutError
from chatbot.llm import FallbackOutcome, FallbackResult, RemoteFallbackClient
from chatbot.resolver import resolve
from knowledge_base import KnowledgeBase, get_knowledge_base
from models import ChatTurn, ConversationContext, Topic

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    IDLE = "idle"
    RESOLVING = "resolving"
    LOCAL_HIT = "local_hit"
    REMOTE_CALLING = "remote_calling"
    DELIVERED = "delivered"


class AnswerSource(str, Enum):
    LOCAL = "local"
    REMOTE = "remote"
    SHORTCUT = "shortcut"


@dataclass(frozen=True)
class Resolution:
    question: str
    answer: str
    context: ConversationContext
    source: AnswerSource
    outcome: Optional[FallbackOutcome] = None
    states: tuple[PipelineState, ...] = ()

    def to_dict(self) -> dict:
        return {
            "response": self.answer,
            "source": self.source.value,
            "fallback": self.outcome.value if self.outcome else None,
            "context": self.context.to_dict(),
        }


# ---------------------------------------------------------------------------
# Shortcut table
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Shortcut:
    action_id: str
    question: str
    answer: Optional[str]       # None → run the question through the pipeline


SHORTCUTS: dict[str, Shortcut] = {
    "specs": Shortcut(
        "specs",
        "What are the specifications of your latest products?",
        None,
    ),
    "order": Shortcut(
        "order",
        "How can I track my order?",
        "You can track your order by logging into your account on our website and visiting "
        "the 'My Orders' section. You will find real-time updates and tracking links for your "
        "shipments. If you need further assistance, please provide your order number.",
    ),
    "return": Shortcut(
        "return",
        "What is your return policy?",
        "Our return policy allows you to return unused items in their original packaging "
        "within 30 days of delivery. To initiate a return, go to your order history and select "
        "the item you wish to return, or contact our support team for help.",
    ),
    "payment": Shortcut(
        "payment",
        "What payment methods do you accept?",
        "We accept UPI, debit/credit cards, net banking, and popular wallets like Paytm and "
        "PhonePe. All transactions are secured and encrypted for your safety. If you have "
        "questions about a specific payment method, please ask!",
    ),
}


def get_shortcut(action_id: str) -> Shortcut:
    try:
        return SHORTCUTS[action_id]
    except KeyError:
        raise UnknownShortcutError(action_id) from None


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


class ResolutionPipeline:
    """Local knowledge base first, remote fallback on a miss, then timed delivery."""

    def __init__(
        self,
        kb: KnowledgeBase,
        fallback: RemoteFallbackClient,
        thinking_delay: float = config.THINKING_DELAY_SECONDS,
    ) -> None:
        self.kb = kb
        self.fallback = fallback
        self.thinking_delay = thinking_delay

    # -- steps ---------------------------------------------------------------

    def _resolve_locally(
        self, utterance: str, context: ConversationContext
    ) -> tuple[Optional[str], ConversationContext]:
        if not utterance.strip():
            raise EmptyInput()
        return resolve(utterance, self.kb), update_context(utterance, context)

    def _local_hit(self, utterance: str, answer: str, context: ConversationContext) -> Resolution:
        logger.info("Local answer for %r", utterance[:80])
        return Resolution(
            question=utterance,
            answer=answer,
            context=context,
            source=AnswerSource.LOCAL,
            states=(PipelineState.IDLE, PipelineState.RESOLVING, PipelineState.LOCAL_HIT, PipelineState.DELIVERED),
        )

    def _remote(self, utterance: str, result: FallbackResult, context: ConversationContext) -> Resolution:
        logger.info("Remote fallback for %r → %s", utterance[:80], result.outcome.value)
        return Resolution(
            question=utterance,
            answer=result.text,
            context=context,
            source=AnswerSource.REMOTE,
            outcome=result.outcome,
            states=(
                PipelineState.IDLE,
                PipelineState.RESOLVING,
                PipelineState.REMOTE_CALLING,
                PipelineState.DELIVERED,
            ),
        )

    async def _think(self) -> None:
        if self.thinking_delay > 0:
            await asyncio.sleep(self.thinking_delay)

    # -- public API ----------------------------------------------------------

    def resolve_turn(self, utterance: str, context: ConversationContext) -> Optional[Resolution]:
        """
        Synchronous resolution without the delivery delay.

        Returns None for empty input. The remote call, if any, blocks the
        calling thread.
        """
        try:
            answer, new_context = self._resolve_locally(utterance, context)
        except EmptyInput:
            return None
        if answer is not None:
            return self._local_hit(utterance, answer, new_context)
        return self._remote(utterance, self.fallback.complete(utterance), new_context)

    async def run(self, utterance: str, context: ConversationContext) -> Optional[Resolution]:
        """Full pipeline: resolve (remote call off the event loop), then pause before delivery."""
        try:
            answer, new_context = self._resolve_locally(utterance, context)
        except EmptyInput:
            logger.debug("Ignoring empty utterance")
            return None
        if answer is not None:
            resolution = self._local_hit(utterance, answer, new_context)
        else:
            result = await asyncio.to_thread(self.fallback.complete, utterance)
            resolution = self._remote(utterance, result, new_context)
        await self._think()
        return resolution

    async def run_shortcut(self, shortcut: Shortcut, context: ConversationContext) -> Resolution:
        """Answer a shortcut action; canned ones skip resolver and fallback entirely."""
        context = context.with_updates(last_topic=Topic(shortcut.action_id))
        if shortcut.answer is None:
            resolution = await self.run(shortcut.question, context)
            if resolution is None:
                raise EmptyInput(f"Shortcut {shortcut.action_id!r} has no question to resolve")
            return resolution
        await self._think()
        return Resolution(
            question=shortcut.question,
            answer=shortcut.answer,
            context=context,
            source=AnswerSource.SHORTCUT,
            states=(PipelineState.IDLE, PipelineState.DELIVERED),
        )


# ---------------------------------------------------------------------------
# Engine: pipeline + per-session state
# ---------------------------------------------------------------------------


class ChatEngine:
    """
    Inbound operations for the presentation layer.

    The conversation store is the transcript sink: the question is appended
    as soon as a turn starts and the answer once it is delivered.
    """

    def __init__(self, pipeline: ResolutionPipeline, store: ConversationStore) -> None:
        self.pipeline = pipeline
        self.store = store

    async def submit_utterance(self, session_id: str, text: str) -> Optional[Resolution]:
        """Run one turn. Returns None (and records nothing) for empty input."""
        if not text.strip():
            logger.debug("[%s] empty utterance ignored", session_id)
            return None

        conversation = self.store.open(session_id)
        async with conversation.lock:
            self.store.add(session_id, ChatTurn.question(text))
            resolution = await self.pipeline.run(text, conversation.context)
            self._deliver(session_id, resolution)
        return resolution

    async def invoke_shortcut(self, session_id: str, action_id: str) -> Resolution:
        """Run a shortcut action. Raises UnknownShortcutError for an unknown action id."""
        shortcut = get_shortcut(action_id)
        conversation = self.store.open(session_id)
        async with conversation.lock:
            self.store.add(session_id, ChatTurn.question(shortcut.question))
            resolution = await self.pipeline.run_shortcut(shortcut, conversation.context)
            self._deliver(session_id, resolution)
        return resolution

    async def reset_conversation(self, session_id: str) -> None:
        """Clear context and transcript once any in-flight turn has been delivered."""
        conversation = self.store.open(session_id)
        async with conversation.lock:
            self.store.reset(session_id)
        logger.info("[%s] conversation reset", session_id)

    def _deliver(self, session_id: str, resolution: Resolution) -> None:
        self.store.set_context(session_id, resolution.context)
        self.store.add(session_id, ChatTurn.answer(resolution.answer))
        logger.info(
            "[%s] delivered %s answer (context=%s)",
            session_id,
            resolution.source.value,
            resolution.context.to_dict(),
        )


def build_engine(
    kb: Optional[KnowledgeBase] = None,
    fallback: Optional[RemoteFallbackClient] = None,
    store: Optional[ConversationStore] = None,
    thinking_delay: float = config.THINKING_DELAY_SECONDS,
) -> ChatEngine:
    """Wire an engine from config defaults; any collaborator can be swapped in."""
    pipeline = ResolutionPipeline(
        kb or get_knowledge_base(),
        fallback or RemoteFallbackClient.from_config(),
        thinking_delay=thinking_delay,
    )
    return ChatEngine(pipeline, store if store is not None else conversation_store)
