"""
Models module - Data structures and enums for the Task Orchestrator
"""

from .enums import TaskStatus, TaskPhase, EngineState, OutcomeKind
from .task import Task, ChildTask
from .messages import (
    OrchestratorAgentInput,
    ServiceAgentInput,
    CommandAgentInput,
    PhaseResult,
    ServiceAgentResponse,
    PlannedSubtask,
    OrchestratorResponse,
    CommandParameters,
)
from .schemas import SERVICE_AGENT_RESPONSE_SCHEMA, build_orchestrator_response_schema

__all__ = [
    'TaskStatus',
    'TaskPhase',
    'EngineState',
    'OutcomeKind',
    'Task',
    'ChildTask',
    'OrchestratorAgentInput',
    'ServiceAgentInput',
    'CommandAgentInput',
    'PhaseResult',
    'ServiceAgentResponse',
    'PlannedSubtask',
    'OrchestratorResponse',
    'CommandParameters',
    'SERVICE_AGENT_RESPONSE_SCHEMA',
    'build_orchestrator_response_schema',
]
