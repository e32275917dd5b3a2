"""Pydantic models shared by the dashboard features and their routes."""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from inference import Citation


class ConversationTurn(BaseModel):
    """One chat message. History is owned by the chat feature, never the core."""

    speaker: Literal["user", "assistant"]
    text: str
    citations: List[Citation] = Field(default_factory=list)
    is_error: bool = False


class Holding(BaseModel):
    ticker: str = Field(..., min_length=1, max_length=10)
    allocation_pct: float = Field(..., ge=0, le=100)


class NewsSummary(BaseModel):
    ticker: str
    text: str
    citations: List[Citation] = Field(default_factory=list)
    is_error: bool = False


class PortfolioAnalysis(BaseModel):
    text: str
    citations: List[Citation] = Field(default_factory=list)
    is_error: bool = False


# ──────────────────────────────────────────────────────────────
# HTTP request / response bodies
# ──────────────────────────────────────────────────────────────


class ChatRequest(BaseModel):
    message: str
    session_id: Optional[str] = None


class ChatResponse(BaseModel):
    session_id: str
    reply: Optional[ConversationTurn] = None
    history_length: int


class NewsSummaryRequest(BaseModel):
    ticker: str = Field(..., min_length=1, max_length=10)
    name: str = Field(..., min_length=1)


class PortfolioRequest(BaseModel):
    holdings: List[Holding] = Field(..., min_length=1)
