"""Dashboard features that consume the completion backend."""

from dashboard.schemas import (
    ConversationTurn,
    Holding,
    NewsSummary,
    PortfolioAnalysis,
)
from dashboard.chat import ChatAssistant, GREETING
from dashboard.news import NewsSummarizer, NEWS_ERROR_TEXT
from dashboard.portfolio import PortfolioAnalyzer, ANALYST_INSTRUCTION, analysis_error_text

__all__ = [
    "ConversationTurn",
    "Holding",
    "NewsSummary",
    "PortfolioAnalysis",
    "ChatAssistant",
    "GREETING",
    "NewsSummarizer",
    "NEWS_ERROR_TEXT",
    "PortfolioAnalyzer",
    "ANALYST_INSTRUCTION",
    "analysis_error_text",
]
