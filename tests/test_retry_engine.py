"""
Tests for the structured-call retry engine and response decoding.

Run with: pytest tests/test_retry_engine.py -v
"""

import asyncio
from datetime import datetime, timedelta

import pytest

from conftest import ScriptedModelClient, SlowModelClient, run
from task_orchestrator.core.decoding import AttemptOutcome
from task_orchestrator.core.retry_engine import (
    PromptPair,
    StructuredCallEngine,
    next_state,
)
from task_orchestrator.models import EngineState, OutcomeKind, SERVICE_AGENT_RESPONSE_SCHEMA
from task_orchestrator.sub_agents.service_agent import ServiceAgentDecoder
from task_orchestrator.utils.exceptions import (
    ExhaustedRetriesError,
    ParseError,
    SchemaError,
    TransportError,
)

VALID = {"command": "create-document", "prompt": "Create the document"}


def _engine(client, max_retries=3, **kwargs):
    return StructuredCallEngine(
        client=client,
        decoder=ServiceAgentDecoder("firestore", ["create-document", "delete-path"]),
        response_schema=SERVICE_AGENT_RESPONSE_SCHEMA,
        max_retries=max_retries,
        label="TestCall",
        **kwargs
    )


def _prompts(retry):
    user_prompt = "select a command"
    if retry is not None:
        user_prompt += f"\nretry {retry.attempt}: {' | '.join(retry.validation_errors)}"
    return PromptPair("system", user_prompt)


class TestStateTransitions:
    """The pure transition function of the engine state machine."""

    def test_success_is_terminal(self):
        outcome = AttemptOutcome.ok(VALID, raw_text="{}", parsed={})
        assert next_state(1, 3, outcome) == EngineState.SUCCEEDED
        assert EngineState.SUCCEEDED.is_terminal

    def test_failure_before_budget_retries(self):
        outcome = AttemptOutcome.failure(ParseError("bad"))
        assert next_state(1, 3, outcome) == EngineState.RETRYING
        assert next_state(2, 3, outcome) == EngineState.RETRYING
        assert not EngineState.RETRYING.is_terminal

    def test_failure_on_last_attempt_exhausts(self):
        outcome = AttemptOutcome.failure(SchemaError("bad"))
        assert next_state(3, 3, outcome) == EngineState.EXHAUSTED
        assert next_state(1, 1, outcome) == EngineState.EXHAUSTED


class TestDecoding:
    """Each decoder stage maps to its own outcome kind."""

    def setup_method(self):
        self.decoder = ServiceAgentDecoder("firestore", ["create-document"])

    def test_non_json_is_parse_failure(self):
        outcome = self.decoder.decode("not json")

        assert outcome.kind == OutcomeKind.PARSE_FAILURE
        assert outcome.errors[0].startswith("Failed to parse AI response as JSON")
        assert outcome.response_for_retry == "not json"

    def test_empty_response_is_parse_failure(self):
        outcome = self.decoder.decode("   ")
        assert outcome.kind == OutcomeKind.PARSE_FAILURE
        assert outcome.errors == ["Empty response from AI model"]

    def test_missing_field_is_schema_failure(self):
        outcome = self.decoder.decode('{"command": "create-document"}')

        assert outcome.kind == OutcomeKind.SCHEMA_FAILURE
        assert "Missing required field 'prompt'" in outcome.errors
        assert outcome.response_for_retry == {"command": "create-document"}

    def test_unknown_command_is_semantic_failure(self):
        outcome = self.decoder.decode('{"command": "drop-table", "prompt": "x"}')

        assert outcome.kind == OutcomeKind.SEMANTIC_FAILURE
        assert "Invalid command 'drop-table'" in outcome.errors[0]
        assert outcome.error.valid_alternatives == ["create-document"]

    def test_valid_response(self):
        outcome = self.decoder.decode('{"command": "create-document", "prompt": "x", "reasoning": "fits"}')

        assert outcome.succeeded
        assert outcome.value.command == "create-document"
        assert outcome.value.reasoning == "fits"


class TestStructuredCallEngine:
    """Engine runs against scripted model clients."""

    def test_first_attempt_success(self):
        client = ScriptedModelClient(VALID)

        result = run(_engine(client).run(_prompts))

        assert result.attempts == 1
        assert not result.retried
        assert result.value.command == "create-document"
        assert result.user_prompt == "select a command"
        assert client.call_count == 1

    def test_request_carries_schema_and_temperature(self):
        client = ScriptedModelClient(VALID)

        run(_engine(client, temperature=0.1, model="gemini-test").run(_prompts))
        request = client.requests[0]

        assert request.response_schema == SERVICE_AGENT_RESPONSE_SCHEMA
        assert request.temperature == 0.1
        assert request.model == "gemini-test"
        assert request.to_dict()["generationConfig"]["responseMimeType"] == "application/json"
        assert request.to_dict()["systemInstruction"] == "system"

    def test_retry_prompt_carries_previous_errors(self):
        client = ScriptedModelClient("{broken", VALID)

        result = run(_engine(client).run(_prompts))

        assert result.attempts == 2
        assert result.retried
        retry_prompt = client.requests[1].user_prompt
        assert "retry 2" in retry_prompt
        assert "Failed to parse AI response as JSON" in retry_prompt

    def test_exhaustion_reports_attempts_and_last_errors(self):
        client = ScriptedModelClient({"command": "create-document"})

        with pytest.raises(ExhaustedRetriesError) as exc_info:
            run(_engine(client, max_retries=2).run(_prompts))

        error = exc_info.value
        assert client.call_count == 2
        assert error.attempts == 2
        assert "[TestCall] Failed after 2 attempts" in str(error)
        assert "Missing required field 'prompt'" in error.last_errors

    def test_transport_error_is_retried(self):
        client = ScriptedModelClient(ConnectionError("connection reset"), VALID)

        result = run(_engine(client).run(_prompts))

        assert result.attempts == 2
        assert "AI call failed: ConnectionError: connection reset" in client.requests[1].user_prompt

    def test_timeout_is_an_ordinary_attempt_failure(self):
        client = SlowModelClient(delay=5.0)

        with pytest.raises(ExhaustedRetriesError) as exc_info:
            run(_engine(client, max_retries=2, timeout=0.01).run(_prompts))

        assert client.calls == 2
        assert "AI call timeout after 0.01s" in str(exc_info.value)

    def test_timed_out_call_is_cancelled(self):
        client = SlowModelClient(delay=5.0)

        with pytest.raises(ExhaustedRetriesError):
            run(_engine(client, max_retries=2, timeout=0.01).run(_prompts))

        assert client.cancelled == client.calls == 2

    def test_history_only_recorded_with_tracing(self):
        responses = ("nope", {"command": "bad", "prompt": "x"}, VALID)

        untraced = run(_engine(ScriptedModelClient(*responses)).run(_prompts))
        traced = run(_engine(ScriptedModelClient(*responses), enable_tracing=True).run(_prompts))

        assert untraced.retry_history == []
        assert [record.attempt for record in traced.retry_history] == [1, 2]
        first = traced.retry_history[0].to_dict()
        assert first["aiResponse"] == "nope"
        assert first["validationErrors"][0].startswith("Failed to parse")
        assert datetime.fromisoformat(first["timestamp"]).utcoffset() == timedelta(0)

    def test_concurrent_runs_keep_their_own_prompts(self):
        client = ScriptedModelClient(VALID)
        engine = _engine(client)

        async def both():
            return await asyncio.gather(
                engine.run(lambda retry: PromptPair("system", "first")),
                engine.run(lambda retry: PromptPair("system", "second")),
            )

        first, second = run(both())

        assert (first.user_prompt, second.user_prompt) == ("first", "second")
        assert sorted(request.user_prompt for request in client.requests) == ["first", "second"]

    def test_invalid_budget(self):
        with pytest.raises(ValueError):
            _engine(ScriptedModelClient(VALID), max_retries=0)

    def test_transport_error_outcome_kind(self):
        outcome = AttemptOutcome.failure(TransportError("down", timed_out=True))

        assert outcome.kind == OutcomeKind.TRANSPORT_FAILURE
        assert outcome.error.timed_out is True
        assert outcome.response_for_retry is None
