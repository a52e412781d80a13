"""
Unit tests for the generation client and proposal orchestration.
"""

import asyncio
import json

import httpx
import pytest

from job_catalog.ai_engine import AIEngine, GenerationError
from job_catalog.config import AIConfig, Credentials
from job_catalog.models import JobRecord, ProposalState
from job_catalog.proposal import ProposalOrchestrator, prompt_context


def completion(text):
    return {"choices": [{"message": {"role": "assistant", "content": text}}]}


def make_engine(handler, api_key="sk-test"):
    return AIEngine(
        ai_config=AIConfig(),
        credentials=Credentials(SUPABASE_URL="", SUPABASE_KEY="", OPENAI_API_KEY=api_key),
        transport=httpx.MockTransport(handler),
    )


class TestAIEngine:
    """Tests for the chat-completions call."""

    def test_request_shape(self):
        """Should post model, messages and sampling settings with bearer auth."""
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=completion("Hello"))

        text = asyncio.run(make_engine(handler).generate("system", "user"))

        assert text == "Hello"
        assert seen["url"] == "https://api.openai.com/v1/chat/completions"
        assert seen["auth"] == "Bearer sk-test"
        assert seen["body"]["model"] == "gpt-4o-mini"
        assert seen["body"]["temperature"] == 0.7
        assert seen["body"]["max_tokens"] == 1000
        assert [m["role"] for m in seen["body"]["messages"]] == ["system", "user"]

    def test_missing_key(self):
        """Should fail without calling out when no key is configured."""
        def handler(request):
            raise AssertionError("no request expected")

        with pytest.raises(GenerationError) as exc:
            asyncio.run(make_engine(handler, api_key="").generate("s", "u"))
        assert exc.value.message == "OpenAI API key not configured"
        assert exc.value.status_code == 500

    def test_upstream_message(self):
        """Should surface the upstream error message and status."""
        def handler(request):
            return httpx.Response(429, json={"error": {"message": "Rate limit reached"}})

        with pytest.raises(GenerationError) as exc:
            asyncio.run(make_engine(handler).generate("s", "u"))
        assert exc.value.message == "Rate limit reached"
        assert exc.value.status_code == 429

    def test_generic_message(self):
        """Should fall back to the generic failure message."""
        def handler(request):
            return httpx.Response(500, text="oops")

        with pytest.raises(GenerationError, match="Failed to generate proposal"):
            asyncio.run(make_engine(handler).generate("s", "u"))

    def test_malformed_body(self):
        """Should treat a response without choices as a failure."""
        def handler(request):
            return httpx.Response(200, json={"choices": []})

        with pytest.raises(GenerationError) as exc:
            asyncio.run(make_engine(handler).generate("s", "u"))
        assert exc.value.status_code == 502

    def test_transport_error(self):
        """Should wrap connection failures."""
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(GenerationError) as exc:
            asyncio.run(make_engine(handler).generate("s", "u"))
        assert exc.value.status_code == 502


class TestPrompt:
    """Tests for prompt building."""

    def test_missing_fields_are_na(self):
        """Should render every missing field as N/A."""
        orchestrator = ProposalOrchestrator(make_engine(lambda r: httpx.Response(200)))
        prompt = orchestrator.build_prompt(JobRecord(id=1))

        assert "Title: N/A" in prompt
        assert "Budget: N/A" in prompt
        assert "Skills Required: N/A" in prompt
        assert "Client Location: N/A" in prompt

    def test_fields_rendered(self, sample_record_data):
        """Should embed normalized skills and the budget with its type."""
        orchestrator = ProposalOrchestrator(make_engine(lambda r: httpx.Response(200)))
        prompt = orchestrator.build_prompt(JobRecord(**sample_record_data))

        assert "Title: Build a React dashboard" in prompt
        assert "Budget: $1,200 Fixed" in prompt
        assert "Skills Required: React, Node.js" in prompt
        assert prompt.endswith("Write a compelling proposal that stands out:")

    def test_budget_type_without_amount(self):
        """Should keep the budget type next to a missing amount."""
        assert prompt_context(JobRecord(budget_type="Hourly"))["budget"] == "N/A Hourly"


class TestProposalOrchestrator:
    """Tests for the proposal request lifecycle."""

    def test_success(self, sample_record_data):
        """Should move from idle to success with the generated text."""
        orchestrator = ProposalOrchestrator(make_engine(lambda r: httpx.Response(200, json=completion("Dear client"))))
        assert orchestrator.state == ProposalState.IDLE

        outcome = asyncio.run(orchestrator.request(JobRecord(**sample_record_data)))

        assert outcome.state == ProposalState.SUCCESS
        assert outcome.text == "Dear client"
        assert outcome.job_id == 7
        assert outcome.generated_at is not None

    def test_error(self):
        """Should record the upstream message without retrying."""
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(401, json={"error": {"message": "Incorrect API key provided"}})

        orchestrator = ProposalOrchestrator(make_engine(handler))
        outcome = asyncio.run(orchestrator.request(JobRecord(id=3)))

        assert outcome.state == ProposalState.ERROR
        assert outcome.error == "Incorrect API key provided"
        assert outcome.status_code == 401
        assert len(calls) == 1

    def test_new_request_discards_previous_result(self):
        """Should clear an earlier error when a new request starts."""
        responses = iter([
            httpx.Response(500, text="down"),
            httpx.Response(200, json=completion("Second try")),
        ])
        orchestrator = ProposalOrchestrator(make_engine(lambda r: next(responses)))

        async def scenario():
            first = await orchestrator.request(JobRecord(id=1))
            second = await orchestrator.request(JobRecord(id=2))
            return first, second

        first, second = asyncio.run(scenario())
        assert first.state == ProposalState.ERROR
        assert second.state == ProposalState.SUCCESS
        assert second.error is None

    def test_superseded_request_is_cancelled(self):
        """Should cancel the in-flight request when another job is requested."""

        class SlowFirstEngine:
            ai_config = AIConfig()

            def __init__(self):
                self.cancelled = False
                self.started = None

            async def generate(self, system_prompt, user_prompt, temperature=None):
                if "Title: First" in user_prompt:
                    self.started.set()
                    try:
                        await asyncio.sleep(10)
                    except asyncio.CancelledError:
                        self.cancelled = True
                        raise
                return "draft for second"

        engine = SlowFirstEngine()
        orchestrator = ProposalOrchestrator(engine, ai_config=AIConfig())

        async def scenario():
            engine.started = asyncio.Event()
            first = asyncio.create_task(orchestrator.request(JobRecord(id=1, title="First")))
            await engine.started.wait()
            second = await orchestrator.request(JobRecord(id=2, title="Second"))
            return await first, second

        first, second = asyncio.run(scenario())
        assert engine.cancelled
        assert first.job_id == 2
        assert second.state == ProposalState.SUCCESS
        assert second.text == "draft for second"
        assert orchestrator.outcome.job_id == 2

    def test_reset(self):
        """Should return to idle."""
        orchestrator = ProposalOrchestrator(make_engine(lambda r: httpx.Response(200, json=completion("x"))))
        asyncio.run(orchestrator.request(JobRecord(id=1)))
        orchestrator.reset()
        assert orchestrator.state == ProposalState.IDLE
