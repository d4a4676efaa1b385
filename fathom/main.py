"""Fathom — FastAPI application entry point."""

from __future__ import annotations

import logging
import traceback

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, ConfigDict, Field

from fathom.backends.firecrawl import FirecrawlSearch
from fathom.backends.openai import OpenAIChat
from fathom.config import settings
from fathom.errors import (
    FathomError,
    MissingGenerationCredential,
    MissingQuery,
    MissingSearchCredential,
)
from fathom.models.event import DATA_STREAM_VERSION
from fathom.models.turn import Message, Turn
from fathom.orchestrator.pipeline import Orchestrator

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Fathom",
    description="Cited web-search answers streamed with follow-up questions",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Request models ---


class ChatMessage(BaseModel):
    role: str
    content: str = ""


class SearchRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    messages: list[ChatMessage] = Field(default_factory=list)
    query: str | None = None
    firecrawl_api_key: str | None = Field(default=None, alias="firecrawlApiKey")
    openai_api_key: str | None = Field(default=None, alias="openaiApiKey")


# --- Wiring ---


def create_orchestrator(firecrawl_api_key: str, openai_api_key: str) -> Orchestrator:
    """Build an orchestrator for one request's credentials."""
    return Orchestrator(
        search=FirecrawlSearch(api_key=firecrawl_api_key),
        generator=OpenAIChat(api_key=openai_api_key),
    )


def _error_response(exc: FathomError, status_code: int) -> JSONResponse:
    return JSONResponse({"error": str(exc)}, status_code=status_code)


# --- Routes ---


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/api/check-env")
async def check_env():
    """Report which server-side provider keys are configured."""
    return {
        "hasFirecrawlKey": bool(settings.firecrawl_api_key),
        "hasOpenAIKey": bool(settings.openai_api_key),
    }


@app.post("/api/search")
async def search(req: SearchRequest):
    """Answer the latest message with a streamed, cited response.

    The body is an AI data stream: answer text parts interleaved with
    ``status``, ``sources``, ``symbol``, ``follow_up_questions``,
    ``complete`` and ``error`` data parts.
    """
    messages = [Message(role=m.role, content=m.content) for m in req.messages]
    turn = Turn.from_messages(messages, req.query)
    if turn is None:
        return _error_response(MissingQuery(), 400)

    firecrawl_api_key = req.firecrawl_api_key or settings.firecrawl_api_key
    openai_api_key = req.openai_api_key or settings.openai_api_key
    if not firecrawl_api_key:
        return _error_response(MissingSearchCredential(), 500)
    if not openai_api_key:
        return _error_response(MissingGenerationCredential(), 500)

    try:
        orchestrator = create_orchestrator(firecrawl_api_key, openai_api_key)
        return StreamingResponse(
            orchestrator.stream(turn),
            media_type="text/plain; charset=utf-8",
            headers={
                "x-vercel-ai-data-stream": DATA_STREAM_VERSION,
                "Cache-Control": "no-cache",
                "X-Accel-Buffering": "no",
            },
        )
    except Exception as exc:
        logger.exception("Search API error")
        return JSONResponse(
            {
                "error": "Search failed",
                "message": str(exc) or type(exc).__name__,
                "details": traceback.format_exc(),
            },
            status_code=500,
        )


# --- Entry point ---


def main() -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
