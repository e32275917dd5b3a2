from typing import Any, Optional

from .base import CompletionBackend
from .cancellation import CancellationToken
from .types import CompletionOutcome, CompletionRequest, CompletionResult, failure_message


class StubCompletionBackend(CompletionBackend):
    """
    Deterministic fake model for testing and CI.

    Never touches the network. Prompts starting with "fail:" resolve to
    the generic failure so callers can exercise their error rendering.
    """

    async def complete(
        self,
        request: CompletionRequest,
        cancel_token: Optional[CancellationToken] = None,
        tracer: Optional[Any] = None,
        trace_metadata: Optional[Any] = None,
    ) -> CompletionOutcome:
        if cancel_token is not None and cancel_token.cancelled:
            return CompletionOutcome(status="cancelled", metadata={"backend": "stub"})

        if request.prompt_text.startswith("fail:"):
            return CompletionOutcome(
                status="failure",
                message=failure_message(1),
                error_kind="non_retryable",
                last_failure="http_error",
                attempts=1,
                metadata={"backend": "stub"},
            )

        return CompletionOutcome(
            status="success",
            result=CompletionResult(text=f"[stub] {request.prompt_text}"),
            attempts=1,
            metadata={"backend": "stub"},
        )
