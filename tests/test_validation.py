"""
Tests for response validation helpers.

Run with: pytest tests/test_validation.py -v
"""

from task_orchestrator.models.messages import OrchestratorResponse, PlannedSubtask, ServiceAgentResponse
from task_orchestrator.utils.validation import (
    check_orchestrator_structure,
    check_service_agent_structure,
    detect_circular_dependencies,
    validate_command_parameters,
    validate_orchestrator_output,
    validate_service_agent_response,
)

SERVICES = ["authentication", "firestore", "storage"]


def _plan(*subtasks):
    return OrchestratorResponse(
        subtasks=tuple(
            PlannedSubtask(id=task_id, service=service, prompt="do it", depends_on=tuple(deps))
            for task_id, service, deps in subtasks
        ),
        reasoning="",
    )


class TestCircularDependencies:

    def test_acyclic_graph(self):
        assert detect_circular_dependencies({"a": [], "b": ["a"], "c": ["a", "b"]}) == []

    def test_two_node_cycle(self):
        errors = detect_circular_dependencies({"a": ["b"], "b": ["a"]})
        assert errors == ["Circular dependency detected: a → b → a"]

    def test_longer_cycle_is_reported_once(self):
        errors = detect_circular_dependencies({"a": ["c"], "b": ["a"], "c": ["b"]})
        assert len(errors) == 1
        assert errors[0].startswith("Circular dependency detected: a → c → b → a")

    def test_unknown_ids_are_ignored(self):
        assert detect_circular_dependencies({"a": ["elsewhere"]}) == []


class TestOrchestratorValidation:

    def test_valid_plan(self):
        result = validate_orchestrator_output(
            _plan(("user", "authentication", []), ("doc", "firestore", ["user"])), 10, SERVICES
        )
        assert result
        assert str(result) == "Validation passed"

    def test_empty_plan(self):
        result = validate_orchestrator_output(_plan(), 10, SERVICES)
        assert result.errors == ["Subtasks array is empty"]

    def test_all_errors_are_collected(self):
        result = validate_orchestrator_output(
            _plan(
                ("a", "billing", ["a"]),
                ("a", "firestore", []),
                ("b", "storage", ["ghost"]),
            ),
            2,
            SERVICES,
        )
        errors = result.errors

        assert not result
        assert "Task count (3) exceeds maximum (2)" in errors
        assert "Duplicate task IDs found: a" in errors
        assert any("Invalid service 'billing'" in e and "Available services: authentication" in e for e in errors)
        assert "Subtask 0 (a): Task cannot depend on itself" in errors
        assert "Subtask 2 (b): Depends on non-existent task 'ghost'" in errors

    def test_self_dependency_is_not_also_a_cycle(self):
        result = validate_orchestrator_output(_plan(("a", "firestore", ["a"])), 10, SERVICES)
        assert not any(e.startswith("Circular dependency") for e in result.errors)

    def test_structure_errors(self):
        result = check_orchestrator_structure({"subtasks": [{"id": "a", "service": 3, "prompt": "p"}], "reasoning": 1})

        assert "Subtask 0: field 'service' must be a string" in result.errors
        assert "Subtask 0: dependsOn must be an array of strings" in result.errors
        assert "Field 'reasoning' must be a string" in result.errors

    def test_structure_rejects_non_object(self):
        result = check_orchestrator_structure([])
        assert result.errors == ["Response must be a JSON object with a 'subtasks' array"]


class TestServiceAgentValidation:

    def test_structure(self):
        assert check_service_agent_structure({"command": "a", "prompt": "b"})
        result = check_service_agent_structure({"command": 1})
        assert result.errors == ["Field 'command' must be a string", "Missing required field 'prompt'"]

    def test_blank_fields(self):
        result = validate_service_agent_response(
            ServiceAgentResponse(command=" ", prompt=""), "firestore", ["create-document"]
        )
        assert result.errors == ["Command is empty", "Prompt is empty"]


class TestCommandParameterValidation:

    SCHEMA = {
        "type": "object",
        "properties": {
            "path": {"type": "string", "pattern": "^gs://"},
            "limit": {"type": "integer", "minimum": 1},
        },
        "required": ["path"],
        "additionalProperties": False,
    }

    def test_valid_parameters(self):
        assert validate_command_parameters({"path": "gs://bucket/a", "limit": 5}, self.SCHEMA)

    def test_errors_carry_instance_paths(self):
        result = validate_command_parameters({"path": "bucket/a", "limit": 0}, self.SCHEMA)

        assert result.errors == [
            "/limit 0 is less than the minimum of 1",
            "/path 'bucket/a' does not match '^gs://'",
        ]

    def test_root_errors_use_slash(self):
        result = validate_command_parameters({}, self.SCHEMA)
        assert result.errors == ["/ 'path' is a required property"]
