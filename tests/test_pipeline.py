"""
Tests for the AgentPipeline dispatcher, including a full three-phase run.

Run with: pytest tests/test_pipeline.py -v
"""

import logging

import pytest

from conftest import ScriptedModelClient, run
from task_orchestrator import AgentPipeline, PipelineConfig
from task_orchestrator.catalog import CommandCatalog, build_default_registry
from task_orchestrator.sub_agents import CommandAgent, OrchestratorAgent, ServiceAgent
from task_orchestrator.utils.exceptions import ExhaustedRetriesError, InvalidOperationError
from task_orchestrator.utils.comprehensive_logger import ComprehensiveLogger
from task_orchestrator.utils.logger import get_logger, set_log_level

PLAN = {
    "subtasks": [
        {"id": "create-admin", "service": "authentication", "prompt": "Create admin user", "dependsOn": []},
    ],
    "reasoning": "One user",
}
SELECTION = {"command": "create-user", "prompt": "Create user with email 'admin@example.com' and password 'adminPass123'"}
PARAMS = {"userRecord": {"email": "admin@example.com", "password": "adminPass123"}}


def _pipeline(*responses, **config_overrides):
    return AgentPipeline(
        CommandCatalog(build_default_registry()),
        ScriptedModelClient(*responses),
        PipelineConfig(**config_overrides),
    )


class TestRouting:
    """Tasks are routed by ai/<command>."""

    def test_supported_commands(self):
        pipeline = _pipeline(PLAN)
        assert pipeline.supported_commands == ["command-agent", "orchestrator-agent", "service-agent"]

    def test_agents_by_command(self):
        pipeline = _pipeline(PLAN)

        assert isinstance(pipeline.get_agent("ai", "orchestrator-agent"), OrchestratorAgent)
        assert isinstance(pipeline.get_agent("ai", "service-agent"), ServiceAgent)
        assert isinstance(pipeline.get_agent("ai", "command-agent"), CommandAgent)

    @pytest.mark.parametrize("service,command", [
        ("firestore", "orchestrator-agent"),
        ("ai", "gemini-prompt"),
        ("", ""),
    ])
    def test_unknown_operation(self, service, command):
        pipeline = _pipeline(PLAN)

        with pytest.raises(InvalidOperationError) as exc_info:
            run(pipeline.process_task({"id": "t", "service": service, "command": command, "input": {}},
                                      pipeline.create_context()))

        assert "ai/orchestrator-agent" in str(exc_info.value)
        assert pipeline.client.call_count == 0

    def test_catalog_is_initialized_on_construction(self):
        pipeline = _pipeline(PLAN)
        assert pipeline.catalog.initialized is True


class TestContext:

    def test_context_carries_config_flags(self):
        pipeline = _pipeline(PLAN, enable_tracing=True, verbose=True, max_depth=4)

        context = pipeline.create_context(outputs={"a": {"result": 1}})

        assert context.enable_tracing is True
        assert context.verbose is True
        assert context.max_depth == 4
        assert context.get_task_output("a") == {"result": 1}

    def test_default_model_overrides_agents(self):
        pipeline = AgentPipeline(
            CommandCatalog(build_default_registry()),
            ScriptedModelClient(PLAN),
            default_model="claude-sonnet-4-20250514",
        )

        pipeline.run_task({"id": "job-1", "service": "ai", "command": "orchestrator-agent",
                           "input": {"prompt": "Create admin user"}})

        assert pipeline.client.requests[0].model == "claude-sonnet-4-20250514"


class TestThreePhaseRun:
    """orchestrator -> service -> command, driven by hand the way the scheduler would."""

    def test_full_chain(self):
        pipeline = _pipeline(PLAN, SELECTION, PARAMS)
        context = pipeline.create_context()

        phase1 = pipeline.run_task({
            "id": "job-1", "service": "ai", "command": "orchestrator-agent",
            "input": {"prompt": "Create admin user admin@example.com"}, "depth": 0,
        }, context)
        service_task = phase1["childTasks"][0]

        phase2 = pipeline.run_task(service_task, context)
        command_task = phase2["childTasks"][0]

        phase3 = pipeline.run_task(command_task, context)
        run_task = phase3["childTasks"][0]

        assert service_task["id"] == "job-1-create-admin-service"
        assert command_task["id"] == "job-1-create-admin-command"
        assert command_task["input"]["command"] == "create-user"
        assert run_task == {
            "id": "job-1-create-admin-run",
            "service": "authentication",
            "command": "create-user",
            "input": PARAMS,
        }
        assert pipeline.client.call_count == 3
        assert [r.model for r in pipeline.client.requests] == [
            "gemini-2.5-pro", "gemini-2.5-flash", "gemini-2.5-flash"
        ]

    def test_config_retry_budget_applies(self):
        pipeline = _pipeline({"command": "nope", "prompt": "x"}, max_retries=2)
        task = {
            "id": "job-1-a-service", "service": "ai", "command": "service-agent",
            "input": {"id": "job-1-a-service", "service": "authentication", "prompt": "Create admin"},
        }

        with pytest.raises(ExhaustedRetriesError) as exc_info:
            pipeline.run_task(task)

        assert "Failed after 2 attempts" in str(exc_info.value)
        assert pipeline.client.call_count == 2


class TestLogLevel:

    @pytest.fixture(autouse=True)
    def _restore_level(self):
        previous = ComprehensiveLogger._settings.level
        yield
        set_log_level(previous)

    def test_config_level_applies_to_existing_loggers(self):
        pipeline_logger = get_logger("task_orchestrator.core.pipeline")

        _pipeline(PLAN, log_level="error")

        assert pipeline_logger.logger.level == logging.ERROR
        assert all(handler.level == logging.ERROR for handler in pipeline_logger.logger.handlers)

    def test_config_level_applies_to_new_loggers(self):
        _pipeline(PLAN, log_level="debug")

        assert get_logger("tests.pipeline.created_later").logger.level == logging.DEBUG

    def test_unset_level_leaves_logging_alone(self):
        pipeline_logger = get_logger("task_orchestrator.core.pipeline")
        before = pipeline_logger.logger.level

        _pipeline(PLAN)

        assert pipeline_logger.logger.level == before
