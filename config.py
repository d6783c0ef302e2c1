"""Central configuration: LLM fallback credentials, delivery timing, session limits, catalog source, HTTP service."""

from __future__ import annotations

import os
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _optional_float(name: str) -> Optional[float]:
    raw = os.getenv(name, "").strip()
    return float(raw) if raw else None


# ---------------------------------------------------------------------------
# Remote fallback (OpenAI-compatible chat completions)
# ---------------------------------------------------------------------------

# Read once at import. Empty / unset means local-only answering.
OPENAI_API_KEY: Optional[str] = os.getenv("OPENAI_API_KEY") or None

LLM_BASE_URL: str = os.getenv("LLM_BASE_URL", "https://api.openai.com/v1")
LLM_MODEL: str = os.getenv("LLM_MODEL", "gpt-3.5-turbo")
LLM_MAX_TOKENS: int = int(os.getenv("LLM_MAX_TOKENS", "256"))
LLM_TEMPERATURE: float = float(os.getenv("LLM_TEMPERATURE", "0.2"))

# None → transport default.
LLM_TIMEOUT_SECONDS: Optional[float] = _optional_float("LLM_TIMEOUT_SECONDS")

# ---------------------------------------------------------------------------
# Delivery / session config
# ---------------------------------------------------------------------------

# Pause before an answer becomes visible, applied to local and remote answers alike.
THINKING_DELAY_SECONDS: float = float(os.getenv("THINKING_DELAY_SECONDS", "0.6"))

SESSION_TIMEOUT_SECONDS: int = int(os.getenv("SESSION_TIMEOUT_SECONDS", str(30 * 60)))
MAX_TRANSCRIPT_TURNS: int = int(os.getenv("MAX_TRANSCRIPT_TURNS", "50"))

# Longest accepted user message, on both the JSON and the SSE chat endpoints.
MAX_MESSAGE_LENGTH: int = int(os.getenv("MAX_MESSAGE_LENGTH", "500"))

# ---------------------------------------------------------------------------
# Knowledge base
# ---------------------------------------------------------------------------

# Optional JSON catalog; the built-in catalog is used when unset.
CATALOG_PATH: Optional[str] = os.getenv("CATALOG_PATH") or None


def credential_configured() -> bool:
    return bool(OPENAI_API_KEY)


# ---------------------------------------------------------------------------
# HTTP service
# ---------------------------------------------------------------------------

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

# Comma-separated; restrict in production.
CHATBOT_CORS_ORIGINS: list[str] = [
    o.strip() for o in os.getenv("CHATBOT_CORS_ORIGINS", "*").split(",") if o.strip()
]
