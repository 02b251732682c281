"""
Base class for the phase agents.

A phase agent reads one task, runs a structured model call through the
retry engine and hands child tasks back to the scheduler. Everything the
three phases share lives here: input checks, dependency output lookup,
engine construction, and assembly of the phase result.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from ..catalog.command_catalog import CommandCatalog
from ..config.agent_config import PipelineConfig
from ..core.decoding import ResponseDecoder
from ..core.job_context import JobContext, resolve_dependency_outputs
from ..core.retry_engine import StructuredCallEngine, StructuredCallResult
from ..models.messages import PhaseResult
from ..models.task import ChildTask, Task
from ..utils.exceptions import InputValidationError
from ..utils.llm_client import StructuredModelClient
from ..utils.logger import get_logger

logger = get_logger(__name__)


class BasePhaseAgent(ABC):
    """
    Shared plumbing for the orchestrator, service and command agents.

    Args:
        catalog: Command catalog used for prompts and validation
        client: Model client issuing the structured calls
        config: Pipeline settings (temperature, timeout, default retry budget)
        default_model: Model used when a task input names none; defaults to
            the agent's own default_model
    """

    agent_name = "PhaseAgent"
    default_model = "gemini-2.5-flash"

    def __init__(
        self,
        catalog: CommandCatalog,
        client: StructuredModelClient,
        config: Optional[PipelineConfig] = None,
        default_model: Optional[str] = None
    ):
        self.catalog = catalog
        self.client = client
        self.config = config or PipelineConfig()
        if default_model:
            self.default_model = default_model

    @abstractmethod
    async def handle(self, task: Task, context: JobContext) -> PhaseResult:
        """Run the phase for one task and return its child tasks."""

    # ------------------------------------------------------------------
    # Input handling
    # ------------------------------------------------------------------

    def _log(self, context: JobContext, message: str) -> None:
        if context.verbose:
            logger.info(f"[{self.agent_name}] {message}")
        else:
            logger.debug(f"[{self.agent_name}] {message}")

    def _task_input(self, task: Task) -> Dict[str, Any]:
        task_input = task.get("input")
        if not isinstance(task_input, dict):
            raise InputValidationError("input", "Invalid input: task input must be an object", received=task_input)
        return task_input

    def _require_fields(self, task_input: Mapping[str, Any], fields: Sequence[str]) -> None:
        """Raise InputValidationError naming every field that is missing or blank."""
        missing = [
            name for name in fields
            if not isinstance(task_input.get(name), str) or not task_input[name].strip()
        ]
        if missing:
            raise InputValidationError(
                missing,
                f"Invalid input: {', '.join(fields)} are required (missing: {', '.join(missing)})"
            )

    def _check_depends_on(self, task_input: Mapping[str, Any]) -> None:
        """input.dependsOn, when given, must be a list of non-empty strings."""
        depends_on = task_input.get("dependsOn")
        if depends_on is None:
            return
        if not isinstance(depends_on, list) or not all(
            isinstance(dep_id, str) and dep_id for dep_id in depends_on
        ):
            raise InputValidationError(
                "dependsOn",
                "Invalid input: dependsOn must be an array of task id strings",
                received=depends_on
            )

    def _resolve_max_retries(self, task_input: Mapping[str, Any]) -> int:
        value = task_input.get("maxRetries")
        if value is None:
            return self.config.max_retries
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise InputValidationError("maxRetries", "maxRetries must be a positive integer", received=value)
        return value

    def _resolve_model(self, task_input: Mapping[str, Any]) -> str:
        return task_input.get("model") or self.default_model

    def gather_dependency_outputs(self, task: Task, context: JobContext) -> Dict[str, Any]:
        """Outputs of the task's effective dependencies, as tracked by the scheduler."""
        outputs = resolve_dependency_outputs(task, context)
        if task.get("dependsOn"):
            self._log(
                context,
                f"Dependencies (with propagation): {', '.join(task['dependsOn'])}; "
                f"{len(outputs)} with recorded output"
            )
        return outputs

    # ------------------------------------------------------------------
    # Engine and result
    # ------------------------------------------------------------------

    def _engine(
        self,
        decoder: ResponseDecoder,
        response_schema: Dict[str, Any],
        max_retries: int,
        model: str,
        context: JobContext,
        temperature: Optional[float] = None,
    ) -> StructuredCallEngine:
        return StructuredCallEngine(
            client=self.client,
            decoder=decoder,
            response_schema=response_schema,
            max_retries=max_retries,
            timeout=self.config.call_timeout,
            temperature=self.config.temperature if temperature is None else temperature,
            model=model,
            enable_tracing=context.enable_tracing,
            verbose=context.verbose,
            label=self.agent_name,
        )

    @staticmethod
    def _call_trace(result: StructuredCallResult) -> Dict[str, Any]:
        """Prompts, raw response and retry details of a finished structured call."""
        trace: Dict[str, Any] = {
            "systemInstruction": result.system_instruction,
            "userPrompt": result.user_prompt,
            "aiResponse": result.raw_response_text,
        }
        if result.retried:
            trace["retriesUsed"] = result.attempts
        if result.retry_history:
            trace["retryHistory"] = [record.to_dict() for record in result.retry_history]
        return trace

    def _build_result(
        self,
        child_tasks: List[ChildTask],
        context: JobContext,
        build_trace: Callable[[], Dict[str, Any]]
    ) -> PhaseResult:
        """
        Assemble the phase result.

        The trace is only built when tracing is enabled; otherwise the key is
        left out entirely.
        """
        result: PhaseResult = {"output": {}, "childTasks": child_tasks}
        if context.enable_tracing:
            result["trace"] = build_trace()
        return result
