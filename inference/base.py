from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from pydantic import ValidationError

from .cancellation import CancellationToken
from .types import CompletionRequest, CompletionOutcome, CompletionResult

EMPTY_PROMPT_MESSAGE = "Error: Prompt must not be empty."


class CompletionBackend(ABC):
    """
    Abstract completion boundary.
    Dashboard callers must depend ONLY on this interface.
    """

    @abstractmethod
    async def complete(
        self,
        request: CompletionRequest,
        cancel_token: Optional[CancellationToken] = None,
        tracer: Optional[Any] = None,
        trace_metadata: Optional[Any] = None,
    ) -> CompletionOutcome:
        """Run one completion. Must never raise."""
        raise NotImplementedError

    async def execute(
        self,
        prompt_text: str,
        on_success: Callable[[CompletionResult], None],
        on_failure: Callable[[str], None],
        system_instruction: Optional[str] = None,
        grounding_enabled: bool = True,
        cancel_token: Optional[CancellationToken] = None,
        tracer: Optional[Any] = None,
        trace_metadata: Optional[Any] = None,
    ) -> None:
        """
        Callback form of ``complete``.

        Exactly one of ``on_success`` / ``on_failure`` fires, once.
        Cancelled calls fire neither.
        """
        try:
            request = CompletionRequest(
                prompt_text=prompt_text or "",
                system_instruction=system_instruction,
                grounding_enabled=grounding_enabled,
            )
        except ValidationError:
            on_failure(EMPTY_PROMPT_MESSAGE)
            return

        outcome = await self.complete(
            request,
            cancel_token=cancel_token,
            tracer=tracer,
            trace_metadata=trace_metadata,
        )

        if outcome.status == "success":
            on_success(outcome.result)
        elif outcome.status == "failure":
            on_failure(outcome.message)
