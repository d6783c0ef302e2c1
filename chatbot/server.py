"""
ProductBot FastAPI server.

Endpoints
---------
POST /api/chat            - submit an utterance, full response JSON
GET  /api/chat/stream     - SSE: "thinking" event, then the "answer" event
POST /api/chat/shortcut   - run a quick-action button (specs/order/return/payment)
POST /api/chat/reset      - clear a session's context and transcript ("Home")
GET  /api/chat/history    - transcript + context for a session
GET  /api/health          - health check (catalog + credential)

Run
---
    uvicorn chatbot.server:app --host 0.0.0.0 --port 8000 --reload
"""

from __future__ import annotations

import asyncio
import json
import logging
import uuid
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv

# Load .env before any other local imports so all env vars are available.
load_dotenv()

import config  # noqa: E402
from fastapi import Depends, FastAPI, HTTPException, Query  # noqa: E402
from fastapi.middleware.cors import CORSMiddleware  # noqa: E402
from pydantic import BaseModel, Field  # noqa: E402
from sse_starlette.sse import EventSourceResponse  # noqa: E402

from chatbot.chat_handler import ChatEngine, build_engine  # noqa: E402
from chatbot.conversation import conversation_store  # noqa: E402
from chatbot.errors import UnknownShortcutError  # noqa: E402
from knowledge_base import get_knowledge_base  # noqa: E402

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
)
logger = logging.getLogger(__name__)

_engine: Optional[ChatEngine] = None


def get_engine() -> ChatEngine:
    """Return the process-wide engine, building it on first use."""
    global _engine
    if _engine is None:
        _engine = build_engine()
    return _engine


# ---------------------------------------------------------------------------
# Lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


async def _session_cleanup_loop() -> None:
    """Purge expired sessions every 5 minutes."""
    while True:
        await asyncio.sleep(5 * 60)
        n = conversation_store.cleanup_expired()
        if n:
            logger.info("Cleaned up %d expired session(s)", n)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("ProductBot server starting…")

    # Fail fast on a broken catalog rather than on the first question.
    kb = get_knowledge_base()
    logger.info("Knowledge base ready: %d products, %d policies", len(kb.all_products()), len(kb.policies()))

    if not config.credential_configured():
        logger.warning("OPENAI_API_KEY not set - answering from the local catalog only")

    cleanup_task = asyncio.create_task(_session_cleanup_loop())

    yield  # ← server runs here

    cleanup_task.cancel()
    logger.info("ProductBot server stopped")


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------

app = FastAPI(
    title="ProductBot API",
    description="Customer support assistant for TechPro products and policies",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS - restrict origins in production via the CHATBOT_CORS_ORIGINS env var.
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CHATBOT_CORS_ORIGINS,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Request / Response models
# ---------------------------------------------------------------------------


class ChatRequest(BaseModel):
    message: str = Field(..., max_length=config.MAX_MESSAGE_LENGTH)
    session_id: Optional[str] = None


class ShortcutRequest(BaseModel):
    action: str
    session_id: Optional[str] = None


class ResetRequest(BaseModel):
    session_id: str


# ---------------------------------------------------------------------------
# Routes - API
# ---------------------------------------------------------------------------


@app.post("/api/chat")
async def chat_endpoint(body: ChatRequest, engine: ChatEngine = Depends(get_engine)):
    """
    Submit one utterance and return the delivered answer.

    An empty message is ignored: response is null and nothing is recorded.
    """
    session_id = body.session_id or str(uuid.uuid4())
    resolution = await engine.submit_utterance(session_id, body.message)
    if resolution is None:
        return {"response": None, "session_id": session_id}
    return {**resolution.to_dict(), "session_id": session_id}


@app.get("/api/chat/stream")
async def chat_stream(
    message: str = Query(..., max_length=config.MAX_MESSAGE_LENGTH, description="User message"),
    session_id: Optional[str] = Query(None, description="Session ID (omit to start new session)"),
    engine: ChatEngine = Depends(get_engine),
):
    """
    SSE chat endpoint.

    Events:
        thinking  {"session_id": "<id>"}                      - answer is being prepared
        answer    {"response": "...", "source": ..., ...}     - final event
    An empty message produces a single answer event with response=null.
    """
    sid = session_id or str(uuid.uuid4())

    async def _generator():
        if not message.strip():
            yield {"event": "answer", "data": json.dumps({"response": None, "session_id": sid})}
            return
        yield {"event": "thinking", "data": json.dumps({"session_id": sid})}
        try:
            resolution = await engine.submit_utterance(sid, message)
            payload = {**resolution.to_dict(), "session_id": sid}
        except Exception as exc:
            logger.error("SSE stream error: %s", exc)
            payload = {"response": None, "session_id": sid, "error": str(exc)}
        yield {"event": "answer", "data": json.dumps(payload, ensure_ascii=False)}

    return EventSourceResponse(_generator())


@app.post("/api/chat/shortcut")
async def shortcut_endpoint(body: ShortcutRequest, engine: ChatEngine = Depends(get_engine)):
    """Answer one of the quick-action buttons."""
    session_id = body.session_id or str(uuid.uuid4())
    try:
        resolution = await engine.invoke_shortcut(session_id, body.action)
    except UnknownShortcutError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return {**resolution.to_dict(), "question": resolution.question, "session_id": session_id}


@app.post("/api/chat/reset")
async def reset_session(body: ResetRequest, engine: ChatEngine = Depends(get_engine)):
    """Clear context and transcript for the given session."""
    await engine.reset_conversation(body.session_id)
    return {"status": "ok", "session_id": body.session_id}


@app.get("/api/chat/history")
async def history(session_id: str = Query(...), engine: ChatEngine = Depends(get_engine)):
    store = engine.store
    return {
        "session_id": session_id,
        "transcript": [turn.to_dict() for turn in store.transcript(session_id)],
        "context": store.get_context(session_id).to_dict(),
    }


@app.get("/api/health")
async def health(engine: ChatEngine = Depends(get_engine)):
    """Health check - a missing credential is a supported mode, not a failure."""
    return {
        "status": "ok",
        "products": len(engine.pipeline.kb.all_products()),
        "policies": len(engine.pipeline.kb.policies()),
        "llm_configured": engine.pipeline.fallback.configured,
    }
