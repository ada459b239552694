"""Tests for the summarization orchestrator and its retrying invoker.

A scripted FakeProvider stands in for the model; the pool and invoker use
the FakeClock's sleep so backoff waits are instant and recorded.
"""

import asyncio
import json

import pytest

from chunkwise.core.errors import (
    AllChunksFailedError,
    EmptyContentError,
    InvalidRequestError,
    LLMError,
    MetaSummaryError,
    OverloadedError,
    RateLimitError,
)
from chunkwise.core.providers import CompletionRequest
from chunkwise.core.resilience import SlidingWindowRateLimiter
from chunkwise.core.summarization import (
    AggregationStrategy,
    ContentType,
    EventType,
    RetryingInvoker,
    SummarizeEvent,
    SummaryMode,
)
from chunkwise.core.summarization.constants import SMALL_CONTENT_MODEL
from tests.fakes import FakeProvider, make_orchestrator

TWO_CHUNKS = "a" * 100 + "\n\n" + "b" * 100
FOUR_CHUNKS = "".join(ch * 100 + "\n\n" for ch in "abcd")
META_MARKER = "Here are the individual summaries"


def by_letter(request):
    """Reply '<letter> summary' based on which chunk the prompt carries."""
    if META_MARKER in request.user_prompt:
        return "META"
    for letter in "abcd":
        if letter * 100 in request.user_prompt:
            return f"{letter.upper()} summary"
    return "summary"


class Recorder:
    def __init__(self):
        self.events = []

    def __call__(self, event):
        self.events.append(event)

    def of(self, event_type):
        return [e for e in self.events if e.event == event_type]

    @property
    def names(self):
        return [e.event for e in self.events]


class TestRetryingInvoker:
    """Tests for RetryingInvoker."""

    REQUEST = CompletionRequest(
        system_prompt="s",
        user_prompt="u",
        model="m",
        max_tokens=10,
        temperature=0.0,
    )

    @pytest.mark.asyncio
    async def test_returns_summary(self, fake_clock):
        invoker = RetryingInvoker(FakeProvider(lambda r: "done"), sleep_func=fake_clock.sleep)
        summary = await invoker.invoke(self.REQUEST, chunk_index=3)
        assert summary.text == "done"
        assert summary.model == "m"
        assert summary.source_chunk_index == 3

    @pytest.mark.asyncio
    async def test_retries_overloaded_with_backoff(self, fake_clock):
        """Two 529s then success: delays of 2s and 4s."""
        replies = [OverloadedError(), OverloadedError(), "ok"]
        provider = FakeProvider(lambda r: replies.pop(0))
        invoker = RetryingInvoker(provider, max_retries=3, sleep_func=fake_clock.sleep)

        summary = await invoker.invoke(self.REQUEST)

        assert summary.text == "ok"
        assert len(provider.requests) == 3
        assert fake_clock.sleeps == [2.0, 4.0]

    @pytest.mark.asyncio
    async def test_every_attempt_takes_a_rate_limit_slot(self, fake_clock):
        """Retries are throttled like first attempts."""
        replies = [RateLimitError(), "ok"]
        limiter = SlidingWindowRateLimiter(10, clock=fake_clock, sleep_func=fake_clock.sleep)
        invoker = RetryingInvoker(FakeProvider(lambda r: replies.pop(0)), limiter, sleep_func=fake_clock.sleep)

        await invoker.invoke(self.REQUEST)
        assert limiter.status().used == 2

    @pytest.mark.asyncio
    async def test_terminal_error_single_attempt(self, fake_clock):
        provider = FakeProvider(lambda r: InvalidRequestError("bad"))
        invoker = RetryingInvoker(provider, max_retries=3, sleep_func=fake_clock.sleep)

        with pytest.raises(InvalidRequestError):
            await invoker.invoke(self.REQUEST)
        assert len(provider.requests) == 1


class TestDirectPath:
    """Inputs at or below small_content_threshold use a single call."""

    @pytest.mark.asyncio
    async def test_small_input_single_call(self, test_config, fake_clock):
        provider = FakeProvider(lambda r: "short summary")
        orchestrator = make_orchestrator(test_config, provider, fake_clock)

        result = await orchestrator.summarize("A short document.")

        assert result.summary == "short summary"
        assert result.aggregation == AggregationStrategy.DIRECT
        assert result.chunk_count == 0
        assert len(provider.requests) == 1
        assert provider.requests[0].model == SMALL_CONTENT_MODEL
        await orchestrator.aclose()

    @pytest.mark.asyncio
    async def test_adaptive_selection_disabled(self, test_config, fake_clock):
        test_config.adaptive_model_selection = False
        provider = FakeProvider()
        orchestrator = make_orchestrator(test_config, provider, fake_clock)

        await orchestrator.summarize("A short document.")
        assert provider.requests[0].model == test_config.model

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", ["", "   \n\t "])
    async def test_empty_input_rejected(self, test_config, fake_clock, text):
        provider = FakeProvider()
        orchestrator = make_orchestrator(test_config, provider, fake_clock)
        recorder = Recorder()

        with pytest.raises(EmptyContentError):
            await orchestrator.summarize(text, on_event=recorder)

        assert provider.requests == []
        assert recorder.names == [EventType.ERROR, EventType.COMPLETE]

    @pytest.mark.asyncio
    async def test_mode_selects_prompt_guidance(self, test_config, fake_clock):
        provider = FakeProvider()
        orchestrator = make_orchestrator(test_config, provider, fake_clock)

        result = await orchestrator.summarize("Plain words only.", SummaryMode.CODE)

        assert result.content_type == ContentType.CODE
        assert "appears to be code" in provider.requests[0].user_prompt

    @pytest.mark.asyncio
    async def test_rate_limited_direct_call(self, test_config, fake_clock):
        """A terminal rate-limit failure surfaces with a retry_after event."""
        provider = FakeProvider(lambda r: RateLimitError(retry_after=30))
        orchestrator = make_orchestrator(test_config, provider, fake_clock)
        recorder = Recorder()

        with pytest.raises(RateLimitError):
            await orchestrator.summarize("Short text.", on_event=recorder)

        error = recorder.of(EventType.ERROR)[0]
        assert error.retry_after == 30
        assert recorder.names[-1] == EventType.COMPLETE


class TestChunkedPath:
    """Inputs above small_content_threshold are chunked."""

    @pytest.mark.asyncio
    async def test_single_chunk(self, test_config, fake_clock):
        """Chunking into one piece returns that piece's summary as-is."""
        orchestrator = make_orchestrator(test_config, FakeProvider(by_letter), fake_clock)
        result = await orchestrator.summarize("a" * 180)

        assert result.aggregation == AggregationStrategy.SINGLE
        assert result.summary == "A summary"
        assert result.chunk_count == 1

    @pytest.mark.asyncio
    async def test_few_chunks_concatenated_in_order(self, test_config, fake_clock):
        orchestrator = make_orchestrator(test_config, FakeProvider(by_letter), fake_clock)
        result = await orchestrator.summarize(TWO_CHUNKS)

        assert result.aggregation == AggregationStrategy.CONCATENATED
        assert result.summary == "## Part 1\n\nA summary\n\n## Part 2\n\nB summary"
        assert result.chunk_count == 2
        assert result.processed_chunks == 2
        assert result.failed_chunks == []

    @pytest.mark.asyncio
    async def test_parts_follow_chunk_order_not_completion_order(self, test_config, fake_clock):
        """A slow first chunk still lands under Part 1."""

        class SlowFirstChunk(FakeProvider):
            async def complete(self, request):
                if "a" * 100 in request.user_prompt:
                    await asyncio.sleep(0.02)
                return await super().complete(request)

        orchestrator = make_orchestrator(test_config, SlowFirstChunk(by_letter), fake_clock)
        recorder = Recorder()

        result = await orchestrator.summarize(TWO_CHUNKS, on_event=recorder)

        assert [e.chunk_index for e in recorder.of(EventType.CHUNK)] == [1, 0]
        assert result.aggregation == AggregationStrategy.CONCATENATED
        assert result.summary == "## Part 1\n\nA summary\n\n## Part 2\n\nB summary"

    @pytest.mark.asyncio
    async def test_many_chunks_meta_summarized(self, test_config, fake_clock):
        provider = FakeProvider(by_letter)
        orchestrator = make_orchestrator(test_config, provider, fake_clock)
        recorder = Recorder()

        result = await orchestrator.summarize(FOUR_CHUNKS, on_event=recorder)

        assert result.aggregation == AggregationStrategy.META_SUMMARY
        assert result.summary == "META"
        assert result.chunk_count == 4
        assert len(provider.requests) == 5

        meta_request = next(r for r in provider.requests if META_MARKER in r.user_prompt)
        assert meta_request.model == test_config.meta_model
        assert meta_request.max_tokens == test_config.meta_max_tokens
        assert "## Section 1 of 4\n\nA summary" in meta_request.user_prompt
        assert "## Section 4 of 4\n\nD summary" in meta_request.user_prompt

    @pytest.mark.asyncio
    async def test_progress_events(self, test_config, fake_clock):
        orchestrator = make_orchestrator(test_config, FakeProvider(by_letter), fake_clock)
        recorder = Recorder()

        await orchestrator.summarize(FOUR_CHUNKS, on_event=recorder)

        assert recorder.names[0] == EventType.PROCESSING
        assert recorder.names[-2:] == [EventType.RESULT, EventType.COMPLETE]
        chunk_progress = [e.percent for e in recorder.of(EventType.PROGRESS) if e.stage == "chunks"]
        assert chunk_progress == [25, 50, 75, 100]
        assert len(recorder.of(EventType.CHUNK)) == 4
        assert any(e.stage == "finalizing" for e in recorder.of(EventType.PROGRESS))
        result_event = recorder.of(EventType.RESULT)[0]
        assert result_event.summary == "META"
        assert result_event.data["aggregation"] == "meta_summary"

    @pytest.mark.asyncio
    async def test_async_event_callback(self, test_config, fake_clock):
        seen = []

        async def on_event(event):
            seen.append(event.event)

        orchestrator = make_orchestrator(test_config, FakeProvider(by_letter), fake_clock)
        await orchestrator.summarize(TWO_CHUNKS, on_event=on_event)
        assert seen[-1] == EventType.COMPLETE

    @pytest.mark.asyncio
    async def test_failed_chunk_gets_placeholder(self, test_config, fake_clock):
        def responder(request):
            if "b" * 100 in request.user_prompt:
                return InvalidRequestError("too long")
            return by_letter(request)

        orchestrator = make_orchestrator(test_config, FakeProvider(responder), fake_clock)
        recorder = Recorder()
        result = await orchestrator.summarize(TWO_CHUNKS, on_event=recorder)

        assert result.aggregation == AggregationStrategy.CONCATENATED
        assert result.summary == (
            "## Part 1\n\nA summary\n\n## Part 2\n\n_[Part 2 could not be summarized: too long]_"
        )
        assert result.failed_chunks == [1]
        assert result.warnings
        assert recorder.of(EventType.WARNING)

    @pytest.mark.asyncio
    async def test_meta_input_excludes_failed_chunks(self, test_config, fake_clock):
        def responder(request):
            if "c" * 100 in request.user_prompt and META_MARKER not in request.user_prompt:
                return InvalidRequestError("bad chunk")
            return by_letter(request)

        provider = FakeProvider(responder)
        orchestrator = make_orchestrator(test_config, provider, fake_clock)
        result = await orchestrator.summarize(FOUR_CHUNKS)

        assert result.aggregation == AggregationStrategy.META_SUMMARY
        assert result.failed_chunks == [2]
        meta_request = next(r for r in provider.requests if META_MARKER in r.user_prompt)
        assert "## Section 3 of 3" in meta_request.user_prompt
        assert "could not be summarized" not in meta_request.user_prompt

    @pytest.mark.asyncio
    async def test_all_chunks_failed(self, test_config, fake_clock):
        provider = FakeProvider(lambda r: RateLimitError(retry_after=30))
        orchestrator = make_orchestrator(test_config, provider, fake_clock)
        recorder = Recorder()

        with pytest.raises(AllChunksFailedError) as exc_info:
            await orchestrator.summarize(TWO_CHUNKS, on_event=recorder)

        assert [index for index, _ in exc_info.value.errors] == [0, 1]
        error = recorder.of(EventType.ERROR)[0]
        assert error.retry_after == 30
        assert recorder.names[-1] == EventType.COMPLETE

    @pytest.mark.asyncio
    async def test_pool_retries_transient_chunk_failure(self, test_config, fake_clock):
        """A chunk that fails transiently gets a pool-level retry."""
        test_config.chunk_task_retries = 1
        failures = {"b": 1}

        def responder(request):
            if "b" * 100 in request.user_prompt and failures["b"]:
                failures["b"] -= 1
                return OverloadedError()
            return by_letter(request)

        orchestrator = make_orchestrator(test_config, FakeProvider(responder), fake_clock)
        result = await orchestrator.summarize(TWO_CHUNKS)

        assert result.failed_chunks == []
        assert "B summary" in result.summary
        assert fake_clock.sleeps == [test_config.retry_base_delay]

    @pytest.mark.asyncio
    async def test_meta_failure_falls_back_to_merge(self, test_config, fake_clock):
        def responder(request):
            if META_MARKER in request.user_prompt:
                return LLMError("meta exploded")
            return "## Key Takeaways\n- " + by_letter(request)

        orchestrator = make_orchestrator(test_config, FakeProvider(responder), fake_clock)
        result = await orchestrator.summarize(FOUR_CHUNKS)

        assert result.aggregation == AggregationStrategy.MERGED
        assert "- A summary" in result.summary
        assert "- D summary" in result.summary
        assert any("Meta-summary failed" in w for w in result.warnings)

    @pytest.mark.asyncio
    async def test_meta_failure_without_fallback(self, test_config, fake_clock):
        test_config.meta_summary_fallback = False

        def responder(request):
            if META_MARKER in request.user_prompt:
                return LLMError("meta exploded")
            return by_letter(request)

        orchestrator = make_orchestrator(test_config, FakeProvider(responder), fake_clock)
        with pytest.raises(MetaSummaryError):
            await orchestrator.summarize(FOUR_CHUNKS)

    @pytest.mark.asyncio
    async def test_chunks_over_cap_are_dropped(self, test_config, fake_clock):
        test_config.max_chunks_total = 2
        provider = FakeProvider(by_letter)
        orchestrator = make_orchestrator(test_config, provider, fake_clock)
        recorder = Recorder()

        result = await orchestrator.summarize(FOUR_CHUNKS, on_event=recorder)

        assert result.chunk_count == 4
        assert result.processed_chunks == 2
        assert result.dropped_chunks == 2
        assert result.aggregation == AggregationStrategy.CONCATENATED
        assert "C summary" not in result.summary
        assert len(provider.requests) == 2
        assert any("2 dropped" in e.message for e in recorder.of(EventType.WARNING))


class TestStream:
    """Tests for the async event stream."""

    @pytest.mark.asyncio
    async def test_stream_yields_events_until_complete(self, test_config, fake_clock):
        orchestrator = make_orchestrator(test_config, FakeProvider(by_letter), fake_clock)

        events = [event async for event in orchestrator.stream(TWO_CHUNKS)]

        assert events[0].event == EventType.PROCESSING
        assert events[-1].event == EventType.COMPLETE
        assert any(e.event == EventType.RESULT for e in events)

    @pytest.mark.asyncio
    async def test_stream_reports_failure_as_event(self, test_config, fake_clock):
        orchestrator = make_orchestrator(test_config, FakeProvider(), fake_clock)

        events = [event async for event in orchestrator.stream("")]

        assert [e.event for e in events] == [EventType.ERROR, EventType.COMPLETE]


class TestSummarizeEvent:
    """Tests for event serialization."""

    def test_sse_framing(self):
        event = SummarizeEvent.progress(1, 4, chunk_index=0)
        frame = event.to_sse()
        assert frame.startswith("event: progress\ndata: ")
        assert frame.endswith("\n\n")
        payload = json.loads(frame.split("data: ", 1)[1])
        assert payload == {"stage": "chunks", "chunk_index": 0, "total_chunks": 4, "percent": 25}

    def test_error_event_flags(self):
        event = SummarizeEvent.error("busy", is_overloaded=True)
        assert event.is_overloaded is True
        assert event.retry_after is None
