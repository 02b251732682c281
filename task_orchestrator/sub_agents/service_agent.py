"""
Service Agent (Phase 2 of 3)

Picks one command of a given service for a subtask planned by the
orchestrator, and refines the subtask prompt for the command agent.

Flow:
1. Receives {id, service, prompt, dependsOn} from the orchestrator
2. The model sees the commands of that service only (names, descriptions,
   parameter names; no schemas)
3. The selection is validated against the catalog, retrying with the
   errors fed back to the model
4. Returns a single ai/command-agent child task for the selected command
"""

from typing import Any, Dict, List, Optional, Sequence

from .base_agent import BasePhaseAgent
from ..core.decoding import ResponseDecoder
from ..core.identity import rewrite_dependencies, to_command_phase
from ..core.job_context import JobContext
from ..core.retry_engine import PromptPair, RetryContext
from ..models.enums import TaskPhase
from ..models.messages import PhaseResult, ServiceAgentResponse
from ..models.schemas import SERVICE_AGENT_RESPONSE_SCHEMA
from ..models.task import ChildTask, Task
from ..utils.exceptions import InputValidationError, SchemaError, SemanticError
from ..utils.prompt_builder import PromptBuilder
from ..utils.validation import check_service_agent_structure, validate_service_agent_response


class ServiceAgentDecoder(ResponseDecoder[ServiceAgentResponse]):
    """Decodes a command selection and checks it against one service's commands."""

    def __init__(self, service: str, available_commands: Sequence[str]):
        self.service = service
        self.available_commands = list(available_commands)

    def check_structure(self, parsed: Any) -> ServiceAgentResponse:
        result = check_service_agent_structure(parsed)
        if not result:
            raise SchemaError(result.errors)
        return ServiceAgentResponse(
            command=parsed["command"],
            prompt=parsed["prompt"],
            reasoning=parsed.get("reasoning"),
        )

    def check_semantics(self, value: ServiceAgentResponse) -> None:
        result = validate_service_agent_response(value, self.service, self.available_commands)
        if not result:
            raise SemanticError(result.errors, valid_alternatives=self.available_commands)


class ServiceAgent(BasePhaseAgent):
    """
    Phase 2 agent: service-scoped command selection.

    Input: {id, service, prompt, dependsOn?, maxRetries?, model?}
    Output: {output: {}, trace?, childTasks: [ai/command-agent task]}
    """

    agent_name = "ServiceAgent"
    default_model = "gemini-2.5-flash"

    async def handle(self, task: Task, context: JobContext) -> PhaseResult:
        task_input = self._task_input(task)
        self._require_fields(task_input, ("id", "service", "prompt"))
        self._check_depends_on(task_input)
        max_retries = self._resolve_max_retries(task_input)
        model = self._resolve_model(task_input)
        service = task_input["service"]

        self.catalog.initialize_catalogs()
        commands = self.catalog.get_service_commands(service)
        if not commands:
            raise InputValidationError(
                "service",
                f"Service '{service}' has no commands. "
                f"Available services: {', '.join(s.name for s in self.catalog.list_services())}",
                received=service
            )
        command_names = [info.command for info in commands]

        self._log(context, f"Processing task {task['id']} for service: {service}")
        self._log(context, f"Model: {model}, max retries: {max_retries}")

        dependency_outputs = self.gather_dependency_outputs(task, context)
        system_instruction = PromptBuilder.build_service_agent_system_instruction(service, commands)
        prompt_input = {
            key: task_input[key]
            for key in ("id", "service", "prompt", "dependsOn")
            if key in task_input
        }

        def build_prompts(retry: Optional[RetryContext]) -> PromptPair:
            return PromptPair(
                system_instruction,
                PromptBuilder.build_service_agent_user_prompt(prompt_input, dependency_outputs, retry),
            )

        engine = self._engine(
            ServiceAgentDecoder(service, command_names),
            SERVICE_AGENT_RESPONSE_SCHEMA,
            max_retries,
            model,
            context,
        )
        result = await engine.run(build_prompts)
        selection: ServiceAgentResponse = result.value

        self._log(context, f"Selected command {service}/{selection.command} on attempt {result.attempts}")
        if selection.reasoning:
            self._log(context, f"Reasoning: {selection.reasoning}")

        child_task = self._command_agent_task(task, task_input, selection)
        self._log(context, f"Returning ai/command-agent child task: {child_task['id']}")

        def build_trace() -> Dict[str, Any]:
            trace: Dict[str, Any] = {
                "selectedCommand": selection.command,
                "refinedPrompt": selection.prompt,
                "childTaskIds": [child_task["id"]],
            }
            if selection.reasoning:
                trace["reasoning"] = selection.reasoning
            trace.update(self._call_trace(result))
            return trace

        return self._build_result([child_task], context, build_trace)

    @staticmethod
    def _command_agent_task(
        task: Task,
        task_input: Dict[str, Any],
        selection: ServiceAgentResponse
    ) -> ChildTask:
        """The single next-phase task; its id and dependencies move into the -command namespace."""
        command_id = to_command_phase(task["id"])
        dependencies: List[str] = rewrite_dependencies(
            task_input.get("dependsOn") or [],
            TaskPhase.SERVICE,
            TaskPhase.COMMAND,
        )

        child: ChildTask = {
            "id": command_id,
            "service": "ai",
            "command": "command-agent",
            "input": {
                "id": command_id,
                "service": task_input["service"],
                "command": selection.command,
                "prompt": selection.prompt,
                "dependsOn": dependencies,
            },
        }
        if dependencies:
            child["dependsOn"] = dependencies
        return child
