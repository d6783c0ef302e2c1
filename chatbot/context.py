"""
Conversation context tracking.

update_context() inspects an utterance for keyword families and returns the
next ConversationContext. A family that is not mentioned keeps its prior
value, so repeating a keyword is idempotent and silence never clears state.
Context is only recorded; nothing in matching reads it back.
"""

from __future__ import annotations

from models import ConversationContext, ProductType, Topic

# Families are checked in order; within a family the first matching row wins.
PRODUCT_KEYWORDS: list[tuple[tuple[str, ...], ProductType]] = [
    (("iphone", "samsung"), ProductType.SMARTPHONES),
    (("macbook", "dell"), ProductType.LAPTOPS),
]

TOPIC_KEYWORDS: list[tuple[tuple[str, ...], Topic]] = [
    (("return", "refund"), Topic.RETURN_POLICY),
    (("payment", "pay"), Topic.PAYMENT_METHODS),
    (("warranty",), Topic.WARRANTY),
]


def _first_match(lowered: str, table):
    for keywords, value in table:
        if any(k in lowered for k in keywords):
            return value
    return None


def update_context(utterance: str, context: ConversationContext) -> ConversationContext:
    """Return *context* updated from the keywords found in *utterance*."""
    lowered = utterance.lower()
    return context.with_updates(
        last_topic=_first_match(lowered, TOPIC_KEYWORDS),
        product_type=_first_match(lowered, PRODUCT_KEYWORDS),
    )
