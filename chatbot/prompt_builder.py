"""
Builds the messages list for the remote fallback model:

  1. System prompt  - support-agent persona
  2. User message   - the current utterance, and nothing else

No knowledge-base excerpts or conversation history are sent; the model is
only consulted after the local catalog has already missed.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# System prompt
# ---------------------------------------------------------------------------

SYSTEM_PROMPT = (
    "You are a helpful customer support agent for an electronics company. "
    "Answer the user's question as best as you can."
)


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


def build_messages(user_message: str) -> list[dict]:
    """
    Return the complete messages list ready to send to the model.

    Structure:
        [system: SYSTEM_PROMPT]
        [user: user_message]
    """
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": user_message},
    ]
