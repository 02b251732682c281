"""
Pipeline module - Routes scheduler tasks to the phase agents

The scheduler hands over tasks addressed to the `ai` service; this module
picks the phase agent for the command and returns the agent's result.

Example:
    >>> from task_orchestrator import AgentPipeline
    >>>
    >>> pipeline = AgentPipeline.from_env()
    >>> context = pipeline.create_context()
    >>> result = pipeline.run_task({
    ...     "id": "job-1",
    ...     "service": "ai",
    ...     "command": "orchestrator-agent",
    ...     "input": {"prompt": "Create user admin@example.com"},
    ... }, context)
    >>> [child["id"] for child in result["childTasks"]]
"""

import asyncio
from typing import Any, Dict, List, Optional

from ..catalog.command_catalog import CommandCatalog
from ..catalog.registry import build_default_registry
from ..config.agent_config import LLMConfig, LLMProvider, PipelineConfig, RateLimitConfig
from ..config.env_config import EnvConfig
from ..models.messages import PhaseResult
from ..models.task import Task
from ..sub_agents import BasePhaseAgent, CommandAgent, OrchestratorAgent, ServiceAgent
from ..utils.exceptions import InvalidOperationError
from ..utils.llm_client import LLMClient, StructuredModelClient
from ..utils.logger import get_logger, set_log_level
from ..utils.rate_limiter import global_rate_limiter
from .job_context import InMemoryJobContext, JobContext

logger = get_logger(__name__)

AI_SERVICE = "ai"


class AgentPipeline:
    """
    Dispatcher for the three phase agents.

    Args:
        catalog: Command catalog shared by all phases
        client: Structured model client shared by all phases
        config: Pipeline settings
        default_model: Overrides every agent's default model when set
    """

    def __init__(
        self,
        catalog: CommandCatalog,
        client: StructuredModelClient,
        config: Optional[PipelineConfig] = None,
        default_model: Optional[str] = None,
    ):
        self.catalog = catalog
        self.client = client
        self.config = config or PipelineConfig()
        if self.config.log_level:
            set_log_level(self.config.log_level)

        self.catalog.initialize_catalogs()

        self.agents: Dict[str, BasePhaseAgent] = {
            "orchestrator-agent": OrchestratorAgent(catalog, client, self.config, default_model),
            "service-agent": ServiceAgent(catalog, client, self.config, default_model),
            "command-agent": CommandAgent(catalog, client, self.config, default_model),
        }

    @classmethod
    def from_env(cls, env_file: Optional[str] = None, prefix: str = "AGENT_") -> "AgentPipeline":
        """
        Build a pipeline from environment variables (and a .env file, if present).

        Reads PipelineConfig, LLMConfig and RateLimitConfig, configures the
        process-wide rate limiter and uses the default handler registry.
        Non-Google providers use the configured model as every agent's default,
        since the built-in defaults are Gemini models.
        """
        EnvConfig.load_env_file(env_file)

        config = PipelineConfig.from_env(prefix=prefix)
        llm_config = LLMConfig.from_env(prefix=prefix)
        global_rate_limiter.configure_from(RateLimitConfig.from_env())

        catalog = CommandCatalog(build_default_registry())
        client = LLMClient(llm_config, rate_limiter=global_rate_limiter)

        default_model = None
        if llm_config.provider != LLMProvider.GOOGLE.value:
            default_model = llm_config.model_name

        logger.info(
            f"Agent pipeline configured: provider={llm_config.provider}, "
            f"max_retries={config.max_retries}, timeout={config.call_timeout}s"
        )
        return cls(catalog, client, config, default_model=default_model)

    @property
    def supported_commands(self) -> List[str]:
        return sorted(self.agents)

    def create_context(
        self,
        outputs: Optional[Dict[str, Any]] = None,
    ) -> InMemoryJobContext:
        """In-memory job context carrying this pipeline's tracing, verbosity and depth settings."""
        return InMemoryJobContext(
            outputs=outputs,
            enable_tracing=self.config.enable_tracing,
            verbose=self.config.verbose,
            max_depth=self.config.max_depth,
        )

    def get_agent(self, service: str, command: str) -> BasePhaseAgent:
        agent = self.agents.get(command) if service == AI_SERVICE else None
        if agent is None:
            raise InvalidOperationError(
                service,
                command,
                supported=[f"{AI_SERVICE}/{name}" for name in self.supported_commands]
            )
        return agent

    async def process_task(self, task: Task, context: JobContext) -> PhaseResult:
        """
        Run the phase agent addressed by the task's service and command.

        Raises:
            InvalidOperationError: no phase agent serves the task's service/command
            InputValidationError: the task input is unusable (no model call made)
            ExhaustedRetriesError: every attempt of the structured call failed
        """
        agent = self.get_agent(task.get("service", ""), task.get("command", ""))
        logger.debug(f"Dispatching task {task.get('id')} to {agent.agent_name}")
        return await agent.handle(task, context)

    def run_task(self, task: Task, context: Optional[JobContext] = None) -> PhaseResult:
        """Synchronous wrapper around process_task for scripts and tests."""
        return asyncio.run(self.process_task(task, context or self.create_context()))
