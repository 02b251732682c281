"""
Core module - Retry engine, response decoding, task identity and job context

The pipeline dispatcher lives in `task_orchestrator.core.pipeline`; it is
not imported here because it depends on the phase agents.
"""

from .decoding import AttemptOutcome, ResponseDecoder
from .retry_engine import (
    PromptPair,
    RetryContext,
    RetryAttemptRecord,
    StructuredCallResult,
    StructuredCallEngine,
    next_state,
)
from .identity import (
    rewrite_task_id,
    rewrite_dependency_id,
    rewrite_dependencies,
    to_service_phase,
    to_command_phase,
    to_run_phase,
    scope_child_tasks,
    ScopedChildren,
)
from .job_context import JobContext, InMemoryJobContext, resolve_dependency_outputs

__all__ = [
    'AttemptOutcome',
    'ResponseDecoder',
    'PromptPair',
    'RetryContext',
    'RetryAttemptRecord',
    'StructuredCallResult',
    'StructuredCallEngine',
    'next_state',
    'rewrite_task_id',
    'rewrite_dependency_id',
    'rewrite_dependencies',
    'to_service_phase',
    'to_command_phase',
    'to_run_phase',
    'scope_child_tasks',
    'ScopedChildren',
    'JobContext',
    'InMemoryJobContext',
    'resolve_dependency_outputs',
]
