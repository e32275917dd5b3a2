"""
Model boundary layer for text completion.

Dashboard features (chat, news summaries, portfolio analysis) depend on
``CompletionBackend`` only, so the backend can be swapped for tests.

Supported backends:
- ResilientCompletionClient: Gemini generateContent with retry/backoff
- StubCompletionBackend: Deterministic fake model (default for CI/tests)

Example usage:
    from inference import ResilientCompletionClient, CompletionRequest

    client = ResilientCompletionClient(api_key="...")
    outcome = await client.complete(CompletionRequest(prompt_text="What moved NVDA today?"))
    if outcome.ok:
        print(outcome.result.text)
"""

from .types import (
    DEFAULT_SYSTEM_INSTRUCTION,
    Citation,
    CompletionOutcome,
    CompletionRequest,
    CompletionResult,
    RetryPolicy,
    failure_message,
)
from .cancellation import CancellationToken
from .base import CompletionBackend, EMPTY_PROMPT_MESSAGE
from .gemini import ResilientCompletionClient, build_payload, parse_candidate
from .stub import StubCompletionBackend
from .factory import create_backend

__all__ = [
    "DEFAULT_SYSTEM_INSTRUCTION",
    "EMPTY_PROMPT_MESSAGE",
    "Citation",
    "CompletionOutcome",
    "CompletionRequest",
    "CompletionResult",
    "RetryPolicy",
    "failure_message",
    "CancellationToken",
    "CompletionBackend",
    "ResilientCompletionClient",
    "build_payload",
    "parse_candidate",
    "StubCompletionBackend",
    "create_backend",
]
