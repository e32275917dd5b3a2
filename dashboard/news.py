import logging
from typing import Optional

from inference import CancellationToken, CompletionBackend, CompletionRequest
from tracing import TraceMetadata, Tracer
from dashboard.schemas import NewsSummary

logger = logging.getLogger(__name__)

NEWS_ERROR_TEXT = "Could not fetch news summary."


def news_prompt(ticker: str, name: str) -> str:
    return (
        "Provide a single, very concise, one-sentence summary of the latest market "
        f"news and current sentiment for {ticker} ({name})."
    )


class NewsSummarizer:
    """Per-stock grounded news blurb. Stateless; safe to fan out concurrently."""

    def __init__(self, backend: CompletionBackend, tracer: Optional[Tracer] = None):
        self.backend = backend
        self.tracer = tracer

    async def summarize(
        self,
        ticker: str,
        name: str,
        cancel_token: Optional[CancellationToken] = None,
        trace_metadata: Optional[TraceMetadata] = None,
    ) -> Optional[NewsSummary]:
        """Returns None only when the call was cancelled."""
        ticker = ticker.upper()
        request = CompletionRequest(prompt_text=news_prompt(ticker, name))
        outcome = await self.backend.complete(
            request,
            cancel_token=cancel_token,
            tracer=self.tracer,
            trace_metadata=trace_metadata,
        )

        if outcome.status == "cancelled":
            return None
        if not outcome.ok:
            logger.info(f"News summary for {ticker} failed: {outcome.message}")
            return NewsSummary(ticker=ticker, text=NEWS_ERROR_TEXT, is_error=True)

        return NewsSummary(
            ticker=ticker,
            text=outcome.result.text,
            citations=outcome.result.citations,
        )
