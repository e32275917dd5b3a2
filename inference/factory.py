"""
Backend selection from configuration.

LLM_BACKEND:
- "gemini" (default): ResilientCompletionClient
- "stub": StubCompletionBackend, no network
"""

import logging

from .base import CompletionBackend
from .gemini import ResilientCompletionClient
from .stub import StubCompletionBackend
from .types import RetryPolicy

logger = logging.getLogger(__name__)


def create_backend(config) -> CompletionBackend:
    """
    Build the completion backend described by ``config``.

    ``config`` is anything exposing the ``Config`` attributes (the class
    itself in production, a SimpleNamespace in tests). Unknown backend
    names fall back to gemini.
    """
    backend = (getattr(config, "LLM_BACKEND", "gemini") or "gemini").lower().strip()

    if backend == "stub":
        logger.info("Using stub completion backend")
        return StubCompletionBackend()

    if backend != "gemini":
        logger.warning(f"Unknown LLM_BACKEND '{backend}', using gemini")

    if not config.GEMINI_API_KEY:
        logger.warning("GEMINI_API_KEY is not set; requests will be rejected upstream")

    return ResilientCompletionClient(
        api_key=config.GEMINI_API_KEY,
        model=config.GEMINI_MODEL,
        base_url=config.GEMINI_BASE_URL,
        retry_policy=RetryPolicy(
            max_attempts=config.LLM_MAX_ATTEMPTS,
            base_delay_ms=config.LLM_BASE_DELAY_MS,
        ),
        timeout=config.LLM_TIMEOUT_S,
    )
