"""
Command Agent (Phase 3 of 3)

Builds the concrete input parameters for a command chosen by the
service agent. The command's full JSON input schema is looked up in the
catalog, sent to the model as the response schema, and used to validate
what comes back. The result is the executable task itself.
"""

from typing import Any, Dict, List, Optional

from .base_agent import BasePhaseAgent
from ..catalog.command_catalog import CommandSchemaInfo
from ..core.decoding import ResponseDecoder
from ..core.identity import rewrite_dependencies, to_run_phase
from ..core.job_context import JobContext
from ..core.retry_engine import PromptPair, RetryContext
from ..models.enums import TaskPhase
from ..models.messages import CommandParameters, PhaseResult
from ..models.task import ChildTask, Task
from ..utils.exceptions import InputValidationError, SchemaError, SemanticError
from ..utils.prompt_builder import PromptBuilder
from ..utils.validation import validate_command_parameters


class CommandParametersDecoder(ResponseDecoder[CommandParameters]):
    """Decodes a parameter object and validates it against the command's input schema."""

    def __init__(self, schema_info: CommandSchemaInfo):
        self.schema_info = schema_info

    def check_structure(self, parsed: Any) -> CommandParameters:
        if not isinstance(parsed, dict):
            raise SchemaError(
                f"Parameters for {self.schema_info.service}/{self.schema_info.command} "
                f"must be a JSON object, got {type(parsed).__name__}"
            )
        return CommandParameters(params=parsed)

    def check_semantics(self, value: CommandParameters) -> None:
        result = validate_command_parameters(value.params, self.schema_info.input_schema)
        if not result:
            raise SemanticError(
                result.errors,
                valid_alternatives=list(self.schema_info.required_params) + list(self.schema_info.optional_params)
            )


class CommandAgent(BasePhaseAgent):
    """
    Phase 3 agent: schema-driven parameter construction.

    Input: {id, service, command, prompt, dependsOn?, maxRetries?, model?}
    Output: {output: {}, trace?, childTasks: [<service>/<command> task]}
    """

    agent_name = "CommandAgent"
    default_model = "gemini-2.5-flash"

    async def handle(self, task: Task, context: JobContext) -> PhaseResult:
        task_input = self._task_input(task)
        self._require_fields(task_input, ("id", "service", "command", "prompt"))
        self._check_depends_on(task_input)
        max_retries = self._resolve_max_retries(task_input)
        model = self._resolve_model(task_input)
        service = task_input["service"]
        command = task_input["command"]

        if not self.catalog.is_valid_command(service, command):
            available = [info.command for info in self.catalog.get_service_commands(service)]
            raise InputValidationError(
                "command",
                f"Invalid command '{command}' for service '{service}'. "
                f"Available commands: {', '.join(available) or 'none'}",
                received=command
            )
        schema_info = self.catalog.get_command_schema(service, command)

        self._log(context, f"Constructing parameters for {service}/{command} (task {task['id']})")
        self._log(context, f"Model: {model}, max retries: {max_retries}")

        dependency_outputs = self.gather_dependency_outputs(task, context)
        system_instruction = PromptBuilder.build_command_agent_system_instruction(schema_info)

        def build_prompts(retry: Optional[RetryContext]) -> PromptPair:
            return PromptPair(
                system_instruction,
                PromptBuilder.build_command_agent_user_prompt(task_input["prompt"], dependency_outputs, retry),
            )

        engine = self._engine(
            CommandParametersDecoder(schema_info),
            schema_info.input_schema,
            max_retries,
            model,
            context,
        )
        result = await engine.run(build_prompts)
        parameters: CommandParameters = result.value

        self._log(context, f"Parameters for {service}/{command} validated on attempt {result.attempts}")

        child_task = self._run_task(task, task_input, parameters)
        self._log(context, f"Returning {service}/{command} child task: {child_task['id']}")

        def build_trace() -> Dict[str, Any]:
            trace: Dict[str, Any] = {
                "input": task_input,
                "constructedParameters": parameters.params,
                "childTaskIds": [child_task["id"]],
            }
            trace.update(self._call_trace(result))
            return trace

        return self._build_result([child_task], context, build_trace)

    @staticmethod
    def _run_task(task: Task, task_input: Dict[str, Any], parameters: CommandParameters) -> ChildTask:
        run_id = to_run_phase(task["id"])
        dependencies: List[str] = rewrite_dependencies(
            task_input.get("dependsOn") or [],
            TaskPhase.COMMAND,
            TaskPhase.RUN,
        )

        child: ChildTask = {
            "id": run_id,
            "service": task_input["service"],
            "command": task_input["command"],
            "input": dict(parameters.params),
        }
        if dependencies:
            child["dependsOn"] = dependencies
        return child
