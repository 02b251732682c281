"""
Tests for the Service Agent (Phase 2): command selection for one service.

Run with: pytest tests/test_service_agent.py -v
"""

import pytest

from conftest import ScriptedModelClient, run
from task_orchestrator.core.identity import to_command_phase
from task_orchestrator.core.job_context import InMemoryJobContext
from task_orchestrator.sub_agents import ServiceAgent
from task_orchestrator.utils.exceptions import ExhaustedRetriesError, InputValidationError

TASK_ID = "job-1-create-restaurant-service"
SELECTION = {
    "command": "create-document",
    "prompt": "Create document at firestore/default/data/restaurants/r1 with name 'Luigi'",
    "reasoning": "A single document is created",
}


def _task(depends_on=None, **input_overrides):
    task_input = {
        "id": TASK_ID,
        "service": "firestore",
        "prompt": "Create a restaurant document named Luigi",
        "dependsOn": list(depends_on or []),
    }
    task_input.update(input_overrides)
    task = {"id": TASK_ID, "service": "ai", "command": "service-agent", "input": task_input}
    if depends_on:
        task["dependsOn"] = list(depends_on)
    return task


class TestServiceAgentInput:
    """Bad input fails immediately, without calling the model."""

    @pytest.mark.parametrize("field_name", ["id", "service", "prompt"])
    def test_missing_field_fails_without_model_call(self, catalog, context, field_name):
        client = ScriptedModelClient(SELECTION)
        task = _task()
        del task["input"][field_name]

        with pytest.raises(InputValidationError) as exc_info:
            run(ServiceAgent(catalog, client).handle(task, context))

        assert field_name in exc_info.value.parameters
        assert client.call_count == 0

    def test_blank_prompt_is_missing(self, catalog, context):
        client = ScriptedModelClient(SELECTION)

        with pytest.raises(InputValidationError):
            run(ServiceAgent(catalog, client).handle(_task(prompt="   "), context))

        assert client.call_count == 0

    def test_unknown_service_fails_without_model_call(self, catalog, context):
        client = ScriptedModelClient(SELECTION)

        with pytest.raises(InputValidationError) as exc_info:
            run(ServiceAgent(catalog, client).handle(_task(service="billing"), context))

        assert "billing" in str(exc_info.value)
        assert client.call_count == 0

    def test_invalid_max_retries(self, catalog, context):
        client = ScriptedModelClient(SELECTION)

        with pytest.raises(InputValidationError):
            run(ServiceAgent(catalog, client).handle(_task(maxRetries=0), context))

        assert client.call_count == 0

    @pytest.mark.parametrize("depends_on", ["a-service", ["a-service", 7], [""], {"a-service": True}])
    def test_depends_on_must_be_list_of_ids(self, catalog, context, depends_on):
        client = ScriptedModelClient(SELECTION)

        with pytest.raises(InputValidationError) as exc_info:
            run(ServiceAgent(catalog, client).handle(_task(dependsOn=depends_on), context))

        assert exc_info.value.parameters == ["dependsOn"]
        assert client.call_count == 0

    def test_absent_depends_on_is_allowed(self, catalog, context):
        task = _task()
        del task["input"]["dependsOn"]

        result = run(ServiceAgent(catalog, ScriptedModelClient(SELECTION)).handle(task, context))

        assert "dependsOn" not in result["childTasks"][0]


class TestServiceAgentSelection:
    """Successful selection produces exactly one command-agent task."""

    def test_single_child_with_rewritten_id(self, catalog, context):
        client = ScriptedModelClient(SELECTION)

        result = run(ServiceAgent(catalog, client).handle(_task(), context))

        assert result["output"] == {}
        assert len(result["childTasks"]) == 1
        child = result["childTasks"][0]
        assert child["id"] == to_command_phase(TASK_ID) == "job-1-create-restaurant-command"
        assert child["service"] == "ai"
        assert child["command"] == "command-agent"
        assert child["input"]["id"] == child["id"]
        assert child["input"]["service"] == "firestore"
        assert child["input"]["command"] == "create-document"
        assert child["input"]["prompt"] == SELECTION["prompt"]

    def test_task_without_service_suffix(self, catalog, context):
        client = ScriptedModelClient(SELECTION)
        task = _task()
        task["id"] = "manual-task"

        result = run(ServiceAgent(catalog, client).handle(task, context))

        assert result["childTasks"][0]["id"] == "manual-task-command"

    def test_dependencies_are_rewritten_per_id(self, catalog, context):
        client = ScriptedModelClient(SELECTION)
        task = _task(depends_on=["job-1-create-owner-service", "external-import"])

        child = run(ServiceAgent(catalog, client).handle(task, context))["childTasks"][0]

        assert child["dependsOn"] == ["job-1-create-owner-command", "external-import"]
        assert child["input"]["dependsOn"] == ["job-1-create-owner-command", "external-import"]

    def test_no_dependencies_omits_key(self, catalog, context):
        client = ScriptedModelClient(SELECTION)

        child = run(ServiceAgent(catalog, client).handle(_task(), context))["childTasks"][0]

        assert "dependsOn" not in child
        assert child["input"]["dependsOn"] == []

    def test_only_service_commands_are_shown(self, catalog, context):
        client = ScriptedModelClient(SELECTION)

        run(ServiceAgent(catalog, client).handle(_task(), context))
        system_instruction = client.requests[0].system_instruction

        assert "### create-document" in system_instruction
        assert "### list-collections" in system_instruction
        assert "### create-user" not in system_instruction
        assert "set-user-claims" not in system_instruction
        assert "documentPath" in system_instruction
        assert "firestore/{database}/data" not in system_instruction

    def test_default_and_explicit_model(self, catalog, context):
        client = ScriptedModelClient(SELECTION)
        agent = ServiceAgent(catalog, client)

        run(agent.handle(_task(), context))
        run(agent.handle(_task(model="gemini-2.0-flash"), context))

        assert client.requests[0].model == "gemini-2.5-flash"
        assert client.requests[1].model == "gemini-2.0-flash"


class TestServiceAgentRetries:
    """Retry behaviour seen through the agent."""

    def test_invalid_command_exhausts_budget(self, catalog, context):
        client = ScriptedModelClient({"command": "drop-database", "prompt": "drop it"})

        with pytest.raises(ExhaustedRetriesError) as exc_info:
            run(ServiceAgent(catalog, client).handle(_task(maxRetries=3), context))

        message = str(exc_info.value)
        assert client.call_count == 3
        assert "Invalid command" in message
        assert "create-document" in message
        assert "list-collections" in message

    def test_malformed_then_valid_response(self, catalog, tracing_context):
        client = ScriptedModelClient(
            "{command: create-document",
            {"command": "create-document", "prompt": "Create the restaurant document", "dependsOn": []},
        )

        result = run(ServiceAgent(catalog, client).handle(_task(), tracing_context))

        assert client.call_count == 2
        assert result["trace"]["retriesUsed"] == 2
        assert len(result["trace"]["retryHistory"]) == 1
        assert result["childTasks"][0]["input"]["command"] == "create-document"

    def test_retry_prompt_replays_errors(self, catalog, context):
        client = ScriptedModelClient({"command": "drop-database", "prompt": "x"}, SELECTION)

        run(ServiceAgent(catalog, client).handle(_task(), context))
        retry_prompt = client.requests[1].user_prompt

        assert retry_prompt.startswith("RETRY 2 - Previous command selection failed validation.")
        assert "drop-database" in retry_prompt
        assert "1. Invalid command 'drop-database' for service 'firestore'" in retry_prompt

    def test_missing_fields_until_exhausted(self, catalog, context):
        client = ScriptedModelClient({"reasoning": "no idea"})

        with pytest.raises(ExhaustedRetriesError) as exc_info:
            run(ServiceAgent(catalog, client).handle(_task(maxRetries=2), context))

        assert "Failed after 2 attempts" in str(exc_info.value)
        assert client.call_count == 2


class TestServiceAgentDependencies:
    """Dependency outputs come from the scheduler-tracked dependsOn."""

    def test_propagated_dependencies_are_resolved(self, catalog):
        context = InMemoryJobContext(outputs={
            "job-1-create-owner-run": {"result": {"uid": "u-123"}, "debug": "ignored"},
            "job-1-import-run": {"path": "gs://bucket/file.csv"},
        })
        task = _task(depends_on=["job-1-create-owner-service"])
        # The scheduler adds propagated ids the input never mentioned
        task["dependsOn"] = ["job-1-create-owner-service", "job-1-create-owner-run", "job-1-import-run", "ghost"]
        client = ScriptedModelClient(SELECTION)
        agent = ServiceAgent(catalog, client)

        outputs = agent.gather_dependency_outputs(task, context)
        run(agent.handle(task, context))

        assert outputs == {
            "job-1-create-owner-run": {"uid": "u-123"},
            "job-1-import-run": {"path": "gs://bucket/file.csv"},
        }
        user_prompt = client.requests[0].user_prompt
        assert "Dependency Outputs:" in user_prompt
        assert "u-123" in user_prompt
        assert "ignored" not in user_prompt

    def test_no_dependency_section_without_outputs(self, catalog, context):
        client = ScriptedModelClient(SELECTION)

        run(ServiceAgent(catalog, client).handle(_task(), context))

        assert "Dependency Outputs" not in client.requests[0].user_prompt


class TestServiceAgentTrace:
    """The trace key exists only with tracing enabled."""

    def test_no_trace_without_tracing(self, catalog, context):
        result = run(ServiceAgent(catalog, ScriptedModelClient(SELECTION)).handle(_task(), context))
        assert "trace" not in result

    def test_trace_with_tracing(self, catalog, tracing_context):
        result = run(ServiceAgent(catalog, ScriptedModelClient(SELECTION)).handle(_task(), tracing_context))
        trace = result["trace"]

        assert trace["childTaskIds"] == [child["id"] for child in result["childTasks"]]
        assert trace["selectedCommand"] == "create-document"
        assert trace["refinedPrompt"] == SELECTION["prompt"]
        assert trace["reasoning"] == SELECTION["reasoning"]
        assert "create-document" in trace["systemInstruction"]
        assert TASK_ID in trace["userPrompt"]
        assert '"command": "create-document"' in trace["aiResponse"]
        assert "retriesUsed" not in trace
        assert "retryHistory" not in trace
