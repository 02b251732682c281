"""
Task Orchestrator - Multi-phase AI agent pipeline for task decomposition

Turns a free-form natural-language request into a dependency-ordered graph
of concrete service operations, using a generative model constrained to
structured (JSON schema) output. Three phase agents run as ordinary tasks
in an external scheduler's job graph:

- Phase 1, ai/orchestrator-agent: request -> service-level subtasks
- Phase 2, ai/service-agent: subtask -> one command of its service
- Phase 3, ai/command-agent: command -> schema-valid handler parameters

Every model call goes through a retry engine that validates the response
and feeds validation errors back to the model until it succeeds or the
attempt budget is exhausted.

Installation:
pip install langgraph langchain-core google-genai python-dotenv jsonschema

Configuration:
    Create a .env file with your LLM provider configuration:

    GOOGLE_API_KEY=...
    AGENT_LLM_PROVIDER=google
    AGENT_LLM_MODEL=gemini-2.5-flash

Example:
    >>> from task_orchestrator import AgentPipeline
    >>>
    >>> pipeline = AgentPipeline.from_env()
    >>> result = pipeline.run_task({
    ...     "id": "job-1",
    ...     "service": "ai",
    ...     "command": "orchestrator-agent",
    ...     "input": {"prompt": "Create user admin@example.com, then export the users collection"},
    ... })
    >>> for child in result["childTasks"]:
    ...     print(child["id"], child.get("dependsOn", []))
"""

__version__ = "1.0.0"
__all__ = [
    'AgentPipeline',
    'OrchestratorAgent',
    'ServiceAgent',
    'CommandAgent',
    'CommandCatalog',
    'build_default_registry',
    'JobContext',
    'InMemoryJobContext',
    'StructuredCallEngine',
    'PipelineConfig',
    'LLMConfig',
    'EnvConfig',
    'LLMClient',
    'Task',
    'TaskStatus',
]

from task_orchestrator.config import PipelineConfig, LLMConfig, EnvConfig
from task_orchestrator.models import Task, TaskStatus
from task_orchestrator.catalog import CommandCatalog, build_default_registry
from task_orchestrator.core import JobContext, InMemoryJobContext, StructuredCallEngine
from task_orchestrator.utils.llm_client import LLMClient
from task_orchestrator.sub_agents import OrchestratorAgent, ServiceAgent, CommandAgent
from task_orchestrator.core.pipeline import AgentPipeline
