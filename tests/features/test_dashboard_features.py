"""
tests/features/test_dashboard_features.py

Tests for the three completion callers.

Verifies:
✔ Chat keeps history locally and sends only the latest message
✔ Chat renders failures inline as an assistant turn
✔ Blank chat input makes no call
✔ News summary prompt, grounding and error text
✔ Portfolio analyzer uses the analyst persona and inline failure text
✔ Cancelled calls leave no trace in caller state
✔ Overlapping chat sends never attach a reply to the wrong question
✔ Chat calls carry tracer and trace metadata to the backend
"""

import asyncio
import json
from typing import List
from unittest.mock import MagicMock

import pytest

from tracing import TraceMetadata
from inference import (
    DEFAULT_SYSTEM_INSTRUCTION,
    CancellationToken,
    Citation,
    CompletionBackend,
    CompletionOutcome,
    CompletionRequest,
    CompletionResult,
)
from dashboard import (
    ANALYST_INSTRUCTION,
    GREETING,
    NEWS_ERROR_TEXT,
    ChatAssistant,
    Holding,
    NewsSummarizer,
    PortfolioAnalyzer,
)


class ScriptedBackend(CompletionBackend):
    """Returns queued outcomes and records every request."""

    def __init__(self, outcomes: List[CompletionOutcome]):
        self.outcomes = list(outcomes)
        self.requests: List[CompletionRequest] = []

    async def complete(self, request, cancel_token=None, tracer=None, trace_metadata=None):
        if cancel_token is not None and cancel_token.cancelled:
            return CompletionOutcome(status="cancelled")
        self.requests.append(request)
        return self.outcomes.pop(0)


def success(text, citations=()):
    return CompletionOutcome(
        status="success",
        result=CompletionResult(text=text, citations=list(citations)),
        attempts=1,
    )


def failure():
    return CompletionOutcome(
        status="failure",
        message="Error: Could not get a response after 5 attempts.",
        error_kind="exhausted",
        attempts=5,
    )


SOURCE = Citation(uri="https://news.example/aapl", title="Apple news")


class TestChatAssistant:
    @pytest.mark.asyncio
    async def test_starts_with_greeting(self):
        chat = ChatAssistant(ScriptedBackend([]))
        assert len(chat.history) == 1
        assert chat.history[0].speaker == "assistant"
        assert chat.history[0].text == GREETING
        assert GREETING == (
            "Hello! I am Wisbee, your financial assistant. "
            "How can I help you with your dashboard or market questions today?"
        )

    @pytest.mark.asyncio
    async def test_reply_appended_with_citations(self):
        backend = ScriptedBackend([success("Diversify.", [SOURCE])])
        chat = ChatAssistant(backend)

        reply = await chat.send("  What should I do?  ")

        assert reply.text == "Diversify."
        assert reply.citations == [SOURCE]
        assert [t.speaker for t in chat.history] == ["assistant", "user", "assistant"]
        assert chat.history[1].text == "What should I do?"

        request = backend.requests[0]
        assert request.prompt_text == "What should I do?"
        assert request.system_instruction == DEFAULT_SYSTEM_INSTRUCTION
        assert request.grounding_enabled is True

    @pytest.mark.asyncio
    async def test_each_call_carries_only_latest_message(self):
        backend = ScriptedBackend([success("one"), success("two")])
        chat = ChatAssistant(backend)

        await chat.send("first")
        await chat.send("second")

        assert [r.prompt_text for r in backend.requests] == ["first", "second"]
        assert len(chat.history) == 5

    @pytest.mark.asyncio
    async def test_failure_rendered_inline(self):
        chat = ChatAssistant(ScriptedBackend([failure()]))
        reply = await chat.send("hello")

        assert reply.is_error is True
        assert "5 attempts" in reply.text
        assert chat.history[-1] is reply

    @pytest.mark.asyncio
    async def test_blank_message_ignored(self):
        backend = ScriptedBackend([])
        chat = ChatAssistant(backend)

        assert await chat.send("   ") is None
        assert backend.requests == []
        assert len(chat.history) == 1

    @pytest.mark.asyncio
    async def test_cancelled_reply_not_appended(self):
        token = CancellationToken()
        token.cancel()
        chat = ChatAssistant(ScriptedBackend([]))

        assert await chat.send("hello", cancel_token=token) is None
        assert [t.speaker for t in chat.history] == ["assistant", "user"]


class GatedBackend(CompletionBackend):
    """Holds every call until ``release`` is set; echoes the prompt."""

    def __init__(self):
        self.release = asyncio.Event()
        self.calls = []

    async def complete(self, request, cancel_token=None, tracer=None, trace_metadata=None):
        self.calls.append((request.prompt_text, tracer, trace_metadata))
        await asyncio.sleep(0)
        await self.release.wait()
        return success(f"re:{request.prompt_text}")


class TestChatOverlapAndTracing:
    @pytest.mark.asyncio
    async def test_second_send_refused_while_first_is_loading(self):
        backend = GatedBackend()
        chat = ChatAssistant(backend)

        first = asyncio.ensure_future(chat.send("first"))
        await asyncio.sleep(0)
        assert chat.is_loading is True

        assert await chat.send("second") is None

        backend.release.set()
        reply = await first

        assert reply.text == "re:first"
        assert chat.is_loading is False
        assert [(t.speaker, t.text) for t in chat.history[1:]] == [
            ("user", "first"),
            ("assistant", "re:first"),
        ]
        assert [c[0] for c in backend.calls] == ["first"]

    @pytest.mark.asyncio
    async def test_gathered_sends_keep_question_reply_order(self):
        backend = GatedBackend()
        backend.release.set()
        chat = ChatAssistant(backend)

        replies = await asyncio.gather(chat.send("first"), chat.send("second"))

        assert replies[1] is None
        speakers = [t.speaker for t in chat.history]
        assert speakers == ["assistant", "user", "assistant"]
        assert chat.history[-1].text == "re:first"

    @pytest.mark.asyncio
    async def test_send_allowed_again_after_reply(self):
        backend = GatedBackend()
        backend.release.set()
        chat = ChatAssistant(backend)

        await chat.send("one")
        reply = await chat.send("two")

        assert reply.text == "re:two"

    @pytest.mark.asyncio
    async def test_tracer_and_metadata_reach_backend(self):
        backend = GatedBackend()
        backend.release.set()
        tracer = MagicMock()
        meta = TraceMetadata(trace_id="chat-trace", feature="chat", session_id="s1")
        chat = ChatAssistant(backend, tracer=tracer)

        await chat.send("hello", trace_metadata=meta)

        assert backend.calls == [("hello", tracer, meta)]


class TestNewsSummarizer:
    @pytest.mark.asyncio
    async def test_prompt_and_result(self):
        backend = ScriptedBackend([success("Apple rose on earnings.", [SOURCE])])
        summary = await NewsSummarizer(backend).summarize("aapl", "Apple Inc.")

        assert summary.ticker == "AAPL"
        assert summary.text == "Apple rose on earnings."
        assert summary.citations == [SOURCE]
        assert summary.is_error is False

        request = backend.requests[0]
        assert "for AAPL (Apple Inc.)" in request.prompt_text
        assert request.prompt_text.startswith("Provide a single, very concise, one-sentence summary")
        assert request.grounding_enabled is True

    @pytest.mark.asyncio
    async def test_failure_uses_inline_error_text(self):
        summary = await NewsSummarizer(ScriptedBackend([failure()])).summarize("TSLA", "Tesla")
        assert summary.is_error is True
        assert summary.text == NEWS_ERROR_TEXT
        assert summary.citations == []

    @pytest.mark.asyncio
    async def test_cancelled_returns_none(self):
        token = CancellationToken()
        token.cancel()
        result = await NewsSummarizer(ScriptedBackend([])).summarize(
            "NVDA", "NVIDIA", cancel_token=token
        )
        assert result is None


class TestPortfolioAnalyzer:
    HOLDINGS = [
        Holding(ticker="nvda", allocation_pct=60),
        Holding(ticker="AAPL", allocation_pct=25.5),
        Holding(ticker="BND", allocation_pct=14.5),
    ]

    @pytest.mark.asyncio
    async def test_uses_analyst_persona(self):
        backend = ScriptedBackend([success("## Summary\nToo much NVDA.")])
        analysis = await PortfolioAnalyzer(backend).analyze(self.HOLDINGS)

        assert analysis.text.startswith("## Summary")
        assert analysis.is_error is False

        request = backend.requests[0]
        assert request.system_instruction == ANALYST_INSTRUCTION
        assert request.grounding_enabled is True
        prefix = "Analyze the following mock portfolio for diversification risks."
        assert request.prompt_text.startswith(prefix)

        data = json.loads(request.prompt_text.split("Portfolio: ", 1)[1])
        assert data == [
            {"ticker": "NVDA", "allocation": "60%"},
            {"ticker": "AAPL", "allocation": "25.5%"},
            {"ticker": "BND", "allocation": "14.5%"},
        ]

    @pytest.mark.asyncio
    async def test_failure_text_shown_inline(self):
        analysis = await PortfolioAnalyzer(ScriptedBackend([failure()])).analyze(self.HOLDINGS)
        assert analysis.is_error is True
        assert analysis.text == (
            "Error generating analysis: "
            "Error: Could not get a response after 5 attempts. Please try again."
        )
