"""
Job Context - the scheduler's view of one pipeline run, as seen by a phase agent.

Phase agents only read from it: dependency outputs and two flags. The
scheduler owns writes; InMemoryJobContext exists for local runs and tests.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from ..models.task import Task


class JobContext(ABC):
    """Read-only collaborator for one pipeline run."""

    def __init__(self, enable_tracing: bool = False, verbose: bool = False, max_depth: Optional[int] = None):
        self.enable_tracing = enable_tracing
        self.verbose = verbose
        self.max_depth = max_depth

    @abstractmethod
    def get_task_output(self, task_id: str) -> Optional[Any]:
        """Recorded output of a finished task, or None if there is none."""


class InMemoryJobContext(JobContext):
    """Job context backed by a dict of task outputs."""

    def __init__(
        self,
        outputs: Optional[Dict[str, Any]] = None,
        enable_tracing: bool = False,
        verbose: bool = False,
        max_depth: Optional[int] = None,
    ):
        super().__init__(enable_tracing=enable_tracing, verbose=verbose, max_depth=max_depth)
        self._outputs: Dict[str, Any] = dict(outputs or {})

    def get_task_output(self, task_id: str) -> Optional[Any]:
        return self._outputs.get(task_id)


def resolve_dependency_outputs(task: Task, context: JobContext) -> Dict[str, Any]:
    """
    Collect the outputs of everything the task depends on.

    Walks the task's effective dependsOn (as propagated by the scheduler,
    which may include ids the phase input never mentioned). A dict output
    with a non-null "result" field contributes that field; anything else
    contributes the whole output. Dependencies with no recorded output are
    skipped.
    """
    outputs: Dict[str, Any] = {}
    for dep_id in task.get("dependsOn") or []:
        output = context.get_task_output(dep_id)
        if output is None:
            continue
        if isinstance(output, dict) and output.get("result") is not None:
            outputs[dep_id] = output["result"]
        else:
            outputs[dep_id] = output
    return outputs
