"""
Portfolio risk analysis.

The holdings come from the caller; this module only turns them into a
prompt and maps the backend outcome to something the UI can show inline.
"""

import json
import logging
from typing import List, Optional

from inference import CancellationToken, CompletionBackend, CompletionRequest
from tracing import TraceMetadata, Tracer
from dashboard.schemas import Holding, PortfolioAnalysis

logger = logging.getLogger(__name__)

ANALYST_INSTRUCTION = (
    "You are a senior financial risk analyst. Analyze the provided portfolio for "
    "diversification issues, and output a concise summary followed by three concrete, "
    "actionable, and generalized asset recommendations (not specific stocks/tickers) "
    "to improve the risk profile. Format your response clearly using markdown headings "
    "for each section (Summary and Recommendations)."
)


def analysis_error_text(message: str) -> str:
    return f"Error generating analysis: {message}. Please try again."


def portfolio_prompt(holdings: List[Holding]) -> str:
    data = json.dumps([
        {"ticker": h.ticker.upper(), "allocation": f"{h.allocation_pct:g}%"}
        for h in holdings
    ])
    return (
        "Analyze the following mock portfolio for diversification risks. "
        f"It is heavily concentrated. Portfolio: {data}"
    )


class PortfolioAnalyzer:
    def __init__(self, backend: CompletionBackend, tracer: Optional[Tracer] = None):
        self.backend = backend
        self.tracer = tracer

    async def analyze(
        self,
        holdings: List[Holding],
        cancel_token: Optional[CancellationToken] = None,
        trace_metadata: Optional[TraceMetadata] = None,
    ) -> Optional[PortfolioAnalysis]:
        """
        Ask the analyst persona for a diversification review.

        Failures come back as a PortfolioAnalysis with is_error=True and the
        backend's failure string inside analysis_error_text. Cancelled calls return None.
        """
        request = CompletionRequest(
            prompt_text=portfolio_prompt(holdings),
            system_instruction=ANALYST_INSTRUCTION,
            grounding_enabled=True,
        )
        outcome = await self.backend.complete(
            request,
            cancel_token=cancel_token,
            tracer=self.tracer,
            trace_metadata=trace_metadata,
        )

        if outcome.status == "cancelled":
            return None
        if not outcome.ok:
            logger.info(f"Portfolio analysis failed after {outcome.attempts} attempt(s)")
            return PortfolioAnalysis(text=analysis_error_text(outcome.message), is_error=True)

        return PortfolioAnalysis(text=outcome.result.text, citations=outcome.result.citations)
