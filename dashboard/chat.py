"""
Conversational assistant.

Keeps its own turn history; every call to the completion backend is
independent and carries only the latest user message. Input is refused
while a reply is pending, so replies always follow their own question.
"""

import logging
from typing import List, Optional

from inference import CancellationToken, CompletionBackend, CompletionResult
from tracing import TraceMetadata, Tracer
from dashboard.schemas import ConversationTurn

logger = logging.getLogger(__name__)

GREETING = (
    "Hello! I am Wisbee, your financial assistant. "
    "How can I help you with your dashboard or market questions today?"
)


class ChatAssistant:
    """One chat panel's worth of conversation."""

    def __init__(self, backend: CompletionBackend, tracer: Optional[Tracer] = None):
        self.backend = backend
        self.tracer = tracer
        self.history: List[ConversationTurn] = [
            ConversationTurn(speaker="assistant", text=GREETING)
        ]
        self._loading = False

    @property
    def is_loading(self) -> bool:
        return self._loading

    async def send(
        self,
        message: str,
        cancel_token: Optional[CancellationToken] = None,
        trace_metadata: Optional[TraceMetadata] = None,
    ) -> Optional[ConversationTurn]:
        """
        Post a user message and wait for the assistant's reply.

        Returns the assistant turn appended to history, or None when the
        message is blank, a previous reply is still loading, or the call
        was cancelled.
        """
        text = (message or "").strip()
        if not text or self._loading:
            return None

        self._loading = True
        try:
            self.history.append(ConversationTurn(speaker="user", text=text))
            replies: List[ConversationTurn] = []

            def on_success(result: CompletionResult) -> None:
                replies.append(ConversationTurn(
                    speaker="assistant",
                    text=result.text,
                    citations=result.citations,
                ))

            def on_failure(error: str) -> None:
                replies.append(ConversationTurn(speaker="assistant", text=error, is_error=True))

            await self.backend.execute(
                text,
                on_success,
                on_failure,
                cancel_token=cancel_token,
                tracer=self.tracer,
                trace_metadata=trace_metadata,
            )
        finally:
            self._loading = False

        if not replies:
            logger.debug("Chat reply discarded after cancellation")
            return None

        reply = replies[0]
        self.history.append(reply)
        return reply
