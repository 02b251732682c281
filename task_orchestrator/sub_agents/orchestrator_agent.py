"""
Orchestrator Agent (Phase 1 of 3)

Decomposes a free-form request into service-level subtasks:
1. The model sees the service descriptions and command names only
2. It proposes subtasks with ids, services, prompts and dependencies
3. The proposed graph is validated (services, ids, dependencies, cycles)
4. Each subtask becomes an ai/service-agent child task, scoped under
   the orchestrating task's id

Command selection (Phase 2) and parameter construction (Phase 3) run
later as separate tasks in the scheduler's job graph.
"""

from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .base_agent import BasePhaseAgent
from ..core.decoding import ResponseDecoder
from ..core.identity import scope_child_tasks, to_service_phase
from ..core.job_context import JobContext
from ..core.retry_engine import PromptPair, RetryContext
from ..models.messages import OrchestratorResponse, PhaseResult, PlannedSubtask
from ..models.schemas import build_orchestrator_response_schema
from ..models.task import ChildTask, Task
from ..utils.exceptions import InputValidationError, SchemaError, SemanticError
from ..utils.prompt_builder import PromptBuilder
from ..utils.validation import check_orchestrator_structure, validate_orchestrator_output


class OrchestratorDecoder(ResponseDecoder[OrchestratorResponse]):
    """Decodes a proposed task graph and validates it against the known services."""

    def __init__(self, max_tasks: int, valid_services: Sequence[str]):
        self.max_tasks = max_tasks
        self.valid_services = sorted(valid_services)

    def check_structure(self, parsed: Any) -> OrchestratorResponse:
        result = check_orchestrator_structure(parsed)
        if not result:
            raise SchemaError(result.errors)
        return OrchestratorResponse(
            subtasks=tuple(
                PlannedSubtask(
                    id=subtask["id"],
                    service=subtask["service"],
                    prompt=subtask["prompt"],
                    depends_on=tuple(subtask["dependsOn"]),
                )
                for subtask in parsed["subtasks"]
            ),
            reasoning=parsed.get("reasoning") or "",
        )

    def check_semantics(self, value: OrchestratorResponse) -> None:
        result = validate_orchestrator_output(value, self.max_tasks, self.valid_services)
        if not result:
            raise SemanticError(result.errors, valid_alternatives=self.valid_services)


class OrchestratorAgent(BasePhaseAgent):
    """
    Phase 1 agent: request decomposition.

    Input: {prompt, context?, maxChildTasks?, maxDepth?, maxRetries?, model?, temperature?}
    Output: {output: {}, trace?, childTasks: [ai/service-agent tasks]}
    """

    agent_name = "OrchestratorAgent"
    default_model = "gemini-2.5-pro"

    async def handle(self, task: Task, context: JobContext) -> PhaseResult:
        task_input = self._task_input(task)
        self._require_fields(task_input, ("prompt",))
        max_retries = self._resolve_max_retries(task_input)
        model = self._resolve_model(task_input)
        max_child_tasks = self._positive_int(task_input, "maxChildTasks", self.config.max_child_tasks)
        max_depth = self._positive_int(
            task_input,
            "maxDepth",
            context.max_depth if context.max_depth is not None else self.config.max_depth
        )
        temperature = self._resolve_temperature(task_input)

        # Fail before spending tokens on a plan whose children could not be spawned
        current_depth = task.get("depth") or 0
        if current_depth >= max_depth:
            raise InputValidationError(
                "depth",
                f"Cannot orchestrate at depth {current_depth}: maximum depth is {max_depth}. "
                f"Child tasks would be at depth {current_depth + 1}, which exceeds the limit.",
                received=current_depth
            )

        self._log(context, f"Starting orchestration for task {task['id']}")
        self._log(
            context,
            f"Model: {model}, temperature: {temperature}, max child tasks: {max_child_tasks}, "
            f"max depth: {max_depth}, max retries: {max_retries}"
        )

        services = self.catalog.list_services()
        service_names = [service.name for service in services]
        commands_by_service = {
            name: [info.command for info in self.catalog.get_service_commands(name)]
            for name in service_names
        }

        system_instruction = PromptBuilder.build_orchestrator_system_instruction(
            services, commands_by_service, max_child_tasks
        )
        request_context = task_input.get("context")

        def build_prompts(retry: Optional[RetryContext]) -> PromptPair:
            return PromptPair(
                system_instruction,
                PromptBuilder.build_orchestrator_user_prompt(task_input["prompt"], request_context, retry),
            )

        engine = self._engine(
            OrchestratorDecoder(max_child_tasks, service_names),
            build_orchestrator_response_schema(service_names),
            max_retries,
            model,
            context,
            temperature=temperature,
        )
        result = await engine.run(build_prompts)
        plan: OrchestratorResponse = result.value

        self._log(context, f"Planned {len(plan.subtasks)} subtask(s) on attempt {result.attempts}")
        for index, subtask in enumerate(plan.subtasks, start=1):
            depends = f" (depends on: {', '.join(subtask.depends_on)})" if subtask.depends_on else ""
            self._log(context, f"  {index}. [{subtask.id}] service:{subtask.service}{depends}")

        child_tasks = scope_child_tasks(task["id"], self._service_agent_tasks(plan.subtasks)).children
        child_ids = [child["id"] for child in child_tasks]
        self._log(context, f"Returning {len(child_tasks)} ai/service-agent child task(s)")

        def build_trace() -> Dict[str, Any]:
            trace: Dict[str, Any] = {
                "reasoning": plan.reasoning,
                "childTaskIds": child_ids,
                "retriesUsed": result.attempts,
                "validationReport": {
                    "isValid": True,
                    "errors": [],
                    "warnings": [],
                    "tasksValidated": len(child_tasks),
                    "timestamp": datetime.now().isoformat(),
                },
            }
            trace.update(self._call_trace(result))
            return trace

        return self._build_result(child_tasks, context, build_trace)

    @staticmethod
    def _service_agent_tasks(subtasks: Sequence[PlannedSubtask]) -> List[ChildTask]:
        """One ai/service-agent task per subtask, ids and dependencies in the -service namespace."""
        children: List[ChildTask] = []
        for subtask in subtasks:
            service_id = to_service_phase(subtask.id)
            dependencies = [to_service_phase(dep_id) for dep_id in subtask.depends_on]
            child: ChildTask = {
                "id": service_id,
                "service": "ai",
                "command": "service-agent",
                "input": {
                    "id": service_id,
                    "service": subtask.service,
                    "prompt": subtask.prompt,
                    "dependsOn": dependencies,
                },
            }
            if dependencies:
                child["dependsOn"] = dependencies
            children.append(child)
        return children

    @staticmethod
    def _positive_int(task_input: Mapping[str, Any], key: str, default: int) -> int:
        value = task_input.get(key)
        if value is None:
            return default
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise InputValidationError(key, f"{key} must be a positive integer", received=value)
        return value

    def _resolve_temperature(self, task_input: Mapping[str, Any]) -> float:
        value = task_input.get("temperature")
        if value is None:
            return self.config.temperature
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not 0 <= value <= 2:
            raise InputValidationError("temperature", "temperature must be a number between 0 and 2", received=value)
        return float(value)
