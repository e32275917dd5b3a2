"""
Dashboard HTTP routes.

Each route builds its feature object around the shared backend and
returns the normalized result as JSON. Model failures are returned
inline (is_error=True, HTTP 200), never as 5xx.

Routes:
  POST /chat                 → ChatResponse
  POST /news/summary         → NewsSummary
  POST /portfolio/analyze    → PortfolioAnalysis
"""

import logging
from typing import Optional
from uuid import uuid4

from fastapi import APIRouter, HTTPException, Request

from tracing import TraceMetadata
from dashboard.chat import ChatAssistant
from dashboard.news import NewsSummarizer
from dashboard.portfolio import PortfolioAnalyzer
from dashboard.schemas import (
    ChatRequest,
    ChatResponse,
    NewsSummary,
    NewsSummaryRequest,
    PortfolioAnalysis,
    PortfolioRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["dashboard"])


def _trace_metadata(feature: str, session_id: Optional[str] = None) -> TraceMetadata:
    return TraceMetadata(trace_id=str(uuid4()), feature=feature, session_id=session_id)


@router.post("/chat", response_model=ChatResponse)
async def chat(body: ChatRequest, request: Request) -> ChatResponse:
    """Send a chat message; history is kept per session_id in a bounded store."""
    session_id = body.session_id or str(uuid4())
    assistant = request.app.state.chat_sessions.get_or_create(
        session_id,
        lambda: ChatAssistant(request.app.state.backend, tracer=request.app.state.tracer),
    )

    reply = await assistant.send(
        body.message,
        trace_metadata=_trace_metadata("chat", session_id=session_id),
    )
    return ChatResponse(
        session_id=session_id,
        reply=reply,
        history_length=len(assistant.history),
    )


@router.get("/chat/{session_id}/history")
async def chat_history(session_id: str, request: Request):
    assistant = request.app.state.chat_sessions.get(session_id)
    if assistant is None:
        raise HTTPException(status_code=404, detail="Unknown chat session")
    return {"session_id": session_id, "history": assistant.history}


@router.post("/news/summary", response_model=NewsSummary)
async def news_summary(body: NewsSummaryRequest, request: Request) -> NewsSummary:
    summarizer = NewsSummarizer(request.app.state.backend, tracer=request.app.state.tracer)
    return await summarizer.summarize(
        body.ticker,
        body.name,
        trace_metadata=_trace_metadata("news_summary"),
    )


@router.post("/portfolio/analyze", response_model=PortfolioAnalysis)
async def portfolio_analyze(body: PortfolioRequest, request: Request) -> PortfolioAnalysis:
    analyzer = PortfolioAnalyzer(request.app.state.backend, tracer=request.app.state.tracer)
    return await analyzer.analyze(
        body.holdings,
        trace_metadata=_trace_metadata("portfolio_analysis"),
    )
