"""
Gemini generateContent backend with retry and response normalization.

Every dashboard feature that needs model text goes through
``ResilientCompletionClient``: the chat assistant, the per-stock news
summaries and the portfolio analyzer.

Retry protocol (one call):

  Outcome                                   Action
  ────────────────────────────────────────  ──────────────────────────────
  transport error (no response)             retry
  2xx, primary candidate has text           success, stop
  2xx, malformed / empty body               retry
  429                                       retry unless last attempt
  any other error status                    fail now, no retries

Backoff before retry n (n from 0) is 2**n * base_delay_ms, no jitter:
1s, 2s, 4s, 8s, 16s with the default policy.

Invariants:
- Never raises. Every call resolves to a CompletionOutcome
- No state shared between calls: attempt counter is a local, one
  httpx.AsyncClient per call
- ``tools`` is absent from the payload when grounding is off
- Citations keep attribution order and need both uri and title
- API key travels as a query parameter and is never logged
- Trace events: llm_request_sent, llm_retry_scheduled,
  llm_response_received, llm_call_failed, llm_call_cancelled
"""

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, List, Optional

import httpx

from .base import CompletionBackend
from .cancellation import CancellationToken
from .types import (
    Citation,
    CompletionOutcome,
    CompletionRequest,
    CompletionResult,
    RetryPolicy,
    failure_message,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-2.5-flash-preview-09-2025"


# ──────────────────────────────────────────────────────────────
# PAYLOAD / RESPONSE SHAPES
# ──────────────────────────────────────────────────────────────


def build_payload(request: CompletionRequest) -> dict:
    """Request body for one attempt."""
    payload = {
        "contents": [{"parts": [{"text": request.prompt_text}]}],
        "systemInstruction": {"parts": [{"text": request.system_instruction}]},
    }
    if request.grounding_enabled:
        payload["tools"] = [{"google_search": {}}]
    return payload


def parse_candidate(body: Any, grounding_enabled: bool) -> Optional[CompletionResult]:
    """
    Normalize a generateContent body into a CompletionResult.

    Returns None when the body is malformed: no candidates, no content
    parts, or empty text in the first part.

    Response shape:
        {
          "candidates": [{
            "content": {"parts": [{"text": "..."}]},
            "groundingMetadata": {
              "groundingAttributions": [{"web": {"uri": "...", "title": "..."}}],
              "groundingChunks":       [{"web": {"uri": "...", "title": "..."}}]
            }
          }]
        }
    """
    if not isinstance(body, dict):
        return None

    candidates = body.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return None
    candidate = candidates[0]
    if not isinstance(candidate, dict):
        return None

    content = candidate.get("content")
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list) or not parts or not isinstance(parts[0], dict):
        return None

    text = parts[0].get("text")
    if not isinstance(text, str) or not text:
        return None

    citations: List[Citation] = []
    if grounding_enabled:
        citations = _extract_citations(candidate.get("groundingMetadata"))

    return CompletionResult(text=text, citations=citations)


def _extract_citations(metadata: Any) -> List[Citation]:
    """
    Map grounding entries to citations, in order.

    ``groundingAttributions`` is used when present; otherwise the newer
    ``groundingChunks`` list carries the same web references.
    Entries missing uri or title are dropped.
    """
    if not isinstance(metadata, dict):
        return []

    entries = metadata.get("groundingAttributions")
    if entries is None:
        entries = metadata.get("groundingChunks")
    if not isinstance(entries, list):
        return []

    out: List[Citation] = []
    for entry in entries:
        web = entry.get("web") if isinstance(entry, dict) else None
        if not isinstance(web, dict):
            continue
        uri = web.get("uri")
        title = web.get("title")
        if isinstance(uri, str) and uri and isinstance(title, str) and title:
            out.append(Citation(uri=uri, title=title))
    return out


# ──────────────────────────────────────────────────────────────
# CLIENT
# ──────────────────────────────────────────────────────────────


class ResilientCompletionClient(CompletionBackend):
    """
    Gemini text client with hardened retries.

    Usage:
        client = ResilientCompletionClient(api_key="...")
        outcome = await client.complete(CompletionRequest(prompt_text="Hi"))

        # or, callback style
        await client.execute("Hi", on_success=render, on_failure=show_error)

    The client object holds only configuration, so one instance can serve
    any number of concurrent calls.
    """

    def __init__(
        self,
        api_key: str = "",
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        retry_policy: Optional[RetryPolicy] = None,
        timeout: Optional[float] = 30.0,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        self._api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.retry_policy = retry_policy or RetryPolicy()
        self.timeout = timeout
        # unit-test hook: replaces asyncio.sleep for backoff waits
        self._sleep = sleep or asyncio.sleep

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    # ──────────────────────────────────────────────────────────
    # ASYNC PRIMARY INTERFACE
    # ──────────────────────────────────────────────────────────

    async def complete(
        self,
        request: CompletionRequest,
        cancel_token: Optional[CancellationToken] = None,
        tracer: Optional[Any] = None,
        trace_metadata: Optional[Any] = None,
    ) -> CompletionOutcome:
        """
        Run the retry protocol for one request.

        Returns CompletionOutcome with status "success", "failure" or
        "cancelled". The failure message is the same generic string
        whatever went wrong; ``error_kind`` and ``last_failure`` carry the
        detail for callers that want it.
        """
        max_attempts = self.retry_policy.max_attempts
        payload = build_payload(request)
        attempt = 0
        last_failure = None

        while attempt < max_attempts:
            if cancel_token is not None and cancel_token.cancelled:
                return self._cancelled(attempt, tracer, trace_metadata)

            self._emit_event(tracer, "llm_request_sent", {
                "model": self.model,
                "attempt": attempt + 1,
                "grounding": request.grounding_enabled,
            }, trace_metadata)

            status_code = None
            result = None
            try:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(
                        self.endpoint,
                        params={"key": self._api_key},
                        json=payload,
                        headers={"Content-Type": "application/json"},
                    )
                status_code = response.status_code
                if 200 <= status_code < 300:
                    result = parse_candidate(self._read_json(response),
                                             request.grounding_enabled)

            except httpx.TransportError as e:
                last_failure = "network_error"
                logger.warning(f"Attempt {attempt + 1}/{max_attempts} transport error: "
                               f"{type(e).__name__}")

            except Exception as e:
                last_failure = "network_error"
                logger.warning(f"Attempt {attempt + 1}/{max_attempts} unexpected error: "
                               f"{type(e).__name__}")

            if cancel_token is not None and cancel_token.cancelled:
                return self._cancelled(attempt + 1, tracer, trace_metadata)

            if result is not None:
                self._emit_event(tracer, "llm_response_received", {
                    "attempt": attempt + 1,
                    "citations": len(result.citations),
                }, trace_metadata)
                logger.debug(f"Completion succeeded on attempt {attempt + 1}")
                return CompletionOutcome(
                    status="success",
                    result=result,
                    attempts=attempt + 1,
                    metadata={"backend": "gemini", "model": self.model},
                )

            if status_code is not None:
                if 200 <= status_code < 300:
                    last_failure = "malformed_response"
                    logger.warning(f"Attempt {attempt + 1}/{max_attempts} "
                                   f"returned a malformed body")
                elif status_code == 429:
                    last_failure = "rate_limited"
                    logger.warning(f"Attempt {attempt + 1}/{max_attempts} rate limited")
                else:
                    return self._failed(
                        attempts=attempt + 1,
                        error_kind="non_retryable",
                        last_failure="http_error",
                        status_code=status_code,
                        tracer=tracer,
                        trace_metadata=trace_metadata,
                    )

            if attempt == max_attempts - 1:
                break

            delay = self.retry_policy.delay_for(attempt)
            self._emit_event(tracer, "llm_retry_scheduled", {
                "attempt": attempt + 1,
                "reason": last_failure,
                "delay_s": delay,
            }, trace_metadata)

            if await self._wait(delay, cancel_token):
                return self._cancelled(attempt + 1, tracer, trace_metadata)
            attempt += 1

        return self._failed(
            attempts=max_attempts,
            error_kind="exhausted",
            last_failure=last_failure,
            tracer=tracer,
            trace_metadata=trace_metadata,
        )

    # ──────────────────────────────────────────────────────────
    # HELPERS
    # ──────────────────────────────────────────────────────────

    @staticmethod
    def _read_json(response: httpx.Response) -> Any:
        """Decode the body; undecodable bodies count as malformed."""
        try:
            return response.json()
        except (json.JSONDecodeError, ValueError):
            return None

    async def _wait(self, delay: float, cancel_token: Optional[CancellationToken]) -> bool:
        """Sleep for the backoff delay. Returns True if cancelled meanwhile."""
        if cancel_token is None:
            await self._sleep(delay)
            return False

        sleeper = asyncio.ensure_future(self._sleep(delay))
        watcher = asyncio.ensure_future(cancel_token.wait())
        try:
            await asyncio.wait({sleeper, watcher}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (sleeper, watcher):
                if not task.done():
                    task.cancel()
        return cancel_token.cancelled

    def _failed(
        self,
        attempts: int,
        error_kind: str,
        last_failure: Optional[str],
        tracer: Optional[Any],
        trace_metadata: Optional[Any],
        status_code: Optional[int] = None,
    ) -> CompletionOutcome:
        metadata = {"backend": "gemini", "model": self.model}
        if status_code is not None:
            metadata["status_code"] = status_code

        self._emit_event(tracer, "llm_call_failed", {
            "attempts": attempts,
            "error_kind": error_kind,
            "last_failure": last_failure,
            **({"status_code": status_code} if status_code is not None else {}),
        }, trace_metadata)
        logger.error(f"Completion failed after {attempts} attempt(s): "
                     f"{error_kind} ({last_failure})")

        return CompletionOutcome(
            status="failure",
            message=failure_message(attempts),
            error_kind=error_kind,
            last_failure=last_failure,
            attempts=attempts,
            metadata=metadata,
        )

    def _cancelled(
        self,
        attempts: int,
        tracer: Optional[Any],
        trace_metadata: Optional[Any],
    ) -> CompletionOutcome:
        logger.debug(f"Completion cancelled after {attempts} attempt(s)")
        self._emit_event(tracer, "llm_call_cancelled", {"attempts": attempts},
                         trace_metadata)
        return CompletionOutcome(
            status="cancelled",
            attempts=attempts,
            metadata={"backend": "gemini", "model": self.model},
        )

    @staticmethod
    def _emit_event(
        tracer: Optional[Any],
        event_name: str,
        metadata: dict,
        trace_metadata: Optional[Any],
    ) -> None:
        """Safely emit a trace event. Never raises."""
        if tracer is None or trace_metadata is None:
            return
        try:
            tracer.record_event(event_name, metadata, trace_metadata)
        except Exception:
            pass
