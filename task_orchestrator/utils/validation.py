"""
Validation Utilities for structured model responses

Each phase response goes through two kinds of checks:
- structural (required fields and JSON types), reported as SchemaError
- semantic (against the catalog or a command's input schema), reported as SemanticError

The functions here return ValidationResult objects; the phase decoders
turn failed results into the matching attempt error.
"""

from typing import Any, Dict, Iterable, List, Optional, Sequence

from jsonschema import Draft7Validator

from ..models.messages import OrchestratorResponse, ServiceAgentResponse


# ============================================================================
# VALIDATION RESULTS
# ============================================================================

class ValidationResult:
    """Result of a validation check."""

    def __init__(self, valid: bool, errors: Optional[List[str]] = None):
        self.valid = valid
        self.errors = errors or []

    @classmethod
    def from_errors(cls, errors: List[str]) -> "ValidationResult":
        return cls(valid=not errors, errors=errors)

    def __bool__(self) -> bool:
        return self.valid

    def __str__(self) -> str:
        if self.valid:
            return "Validation passed"
        return f"Validation failed: {'; '.join(self.errors)}"


def _is_blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


# ============================================================================
# PHASE 2: SERVICE AGENT
# ============================================================================

def check_service_agent_structure(response: Any) -> ValidationResult:
    """Response must be an object with string `command` and `prompt`."""
    if not isinstance(response, dict):
        return ValidationResult(False, ["Response must be a JSON object with 'command' and 'prompt'"])

    errors = []
    for field_name in ("command", "prompt"):
        if field_name not in response:
            errors.append(f"Missing required field '{field_name}'")
        elif not isinstance(response[field_name], str):
            errors.append(f"Field '{field_name}' must be a string")

    reasoning = response.get("reasoning")
    if reasoning is not None and not isinstance(reasoning, str):
        errors.append("Field 'reasoning' must be a string")

    return ValidationResult.from_errors(errors)


def validate_service_agent_response(
    response: ServiceAgentResponse,
    service: str,
    available_commands: Sequence[str]
) -> ValidationResult:
    """Selected command must exist for the service; the refined prompt must not be empty."""
    errors = []

    if _is_blank(response.command):
        errors.append("Command is empty")
    elif response.command not in available_commands:
        errors.append(
            f"Invalid command '{response.command}' for service '{service}'. "
            f"Available commands: {', '.join(available_commands)}"
        )

    if _is_blank(response.prompt):
        errors.append("Prompt is empty")

    return ValidationResult.from_errors(errors)


# ============================================================================
# PHASE 1: ORCHESTRATOR
# ============================================================================

def check_orchestrator_structure(response: Any) -> ValidationResult:
    """Response must hold a `subtasks` array of well-typed objects; `reasoning` is optional."""
    if not isinstance(response, dict):
        return ValidationResult(False, ["Response must be a JSON object with a 'subtasks' array"])

    errors = []
    subtasks = response.get("subtasks")
    if not isinstance(subtasks, list):
        errors.append("Field 'subtasks' must be an array")
    else:
        for index, subtask in enumerate(subtasks):
            if not isinstance(subtask, dict):
                errors.append(f"Subtask {index}: must be an object")
                continue
            for field_name in ("id", "service", "prompt"):
                if not isinstance(subtask.get(field_name), str):
                    errors.append(f"Subtask {index}: field '{field_name}' must be a string")
            depends_on = subtask.get("dependsOn")
            if not isinstance(depends_on, list) or not all(isinstance(d, str) for d in depends_on):
                errors.append(f"Subtask {index}: dependsOn must be an array of strings")

    reasoning = response.get("reasoning")
    if reasoning is not None and not isinstance(reasoning, str):
        errors.append("Field 'reasoning' must be a string")

    return ValidationResult.from_errors(errors)


def detect_circular_dependencies(dependencies: Dict[str, Sequence[str]]) -> List[str]:
    """
    Find dependency cycles with a depth-first search.

    Args:
        dependencies: task id -> ids it depends on

    Returns:
        One "Circular dependency detected: a → b → a" message per cycle found
    """
    errors: List[str] = []
    visited = set()
    on_stack: List[str] = []

    def visit(task_id: str) -> None:
        if task_id in on_stack:
            cycle = on_stack[on_stack.index(task_id):] + [task_id]
            errors.append(f"Circular dependency detected: {' → '.join(cycle)}")
            return
        if task_id in visited or task_id not in dependencies:
            return

        visited.add(task_id)
        on_stack.append(task_id)
        for dep_id in dependencies[task_id]:
            visit(dep_id)
        on_stack.pop()

    for task_id in dependencies:
        visit(task_id)

    return errors


def validate_orchestrator_output(
    output: OrchestratorResponse,
    max_tasks: int,
    valid_services: Iterable[str]
) -> ValidationResult:
    """Check the proposed task graph: size, ids, services, prompts, dependencies, cycles."""
    errors: List[str] = []
    services = set(valid_services)
    subtasks = output.subtasks

    if not subtasks:
        errors.append("Subtasks array is empty")
    if len(subtasks) > max_tasks:
        errors.append(f"Task count ({len(subtasks)}) exceeds maximum ({max_tasks})")

    task_ids = set()
    duplicates = []
    for subtask in subtasks:
        if subtask.id in task_ids and subtask.id not in duplicates:
            duplicates.append(subtask.id)
        task_ids.add(subtask.id)
    if duplicates:
        errors.append(f"Duplicate task IDs found: {', '.join(duplicates)}")

    for index, subtask in enumerate(subtasks):
        prefix = f"Subtask {index} ({subtask.id})"

        if _is_blank(subtask.id):
            errors.append(f"{prefix}: ID is empty")
        if subtask.service not in services:
            errors.append(
                f"{prefix}: Invalid service '{subtask.service}'. "
                f"Available services: {', '.join(sorted(services))}"
            )
        if _is_blank(subtask.prompt):
            errors.append(f"{prefix}: Prompt is empty")
        if subtask.id in subtask.depends_on:
            errors.append(f"{prefix}: Task cannot depend on itself")
        for dep_id in subtask.depends_on:
            if dep_id not in task_ids:
                errors.append(f"{prefix}: Depends on non-existent task '{dep_id}'")

    # Self-dependencies are already reported above
    graph = {
        subtask.id: [d for d in subtask.depends_on if d != subtask.id]
        for subtask in subtasks
    }
    errors.extend(detect_circular_dependencies(graph))

    return ValidationResult.from_errors(errors)


# ============================================================================
# PHASE 3: COMMAND PARAMETERS
# ============================================================================

def validate_command_parameters(params: Any, input_schema: Dict[str, Any]) -> ValidationResult:
    """
    Validate generated parameters against a command's JSON input schema.

    Errors are rendered as "<instance path> <message>", with "/" for the root.
    """
    validator = Draft7Validator(input_schema)
    errors = []
    for error in sorted(validator.iter_errors(params), key=lambda e: [str(part) for part in e.absolute_path]):
        path = "/" + "/".join(str(part) for part in error.absolute_path)
        errors.append(f"{path} {error.message}")
    return ValidationResult.from_errors(errors)
