"""
Task identity rewriting between pipeline phases.

Every phase owns an id namespace marked by a suffix:

    <id>-service   tasks handled by the service agent
    <id>-command   tasks handled by the command agent
    <id>-run       executable command tasks

The scheduler wires dependencies by exact string match, so every producer
of a child id or dependency entry must go through these functions.

A task's own id is always moved into the next namespace (suffix replaced,
or appended when missing). A dependency entry is only rewritten when it
carries the source suffix; anything else passes through unchanged.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Sequence

from ..models.enums import TaskPhase


def rewrite_task_id(task_id: str, source: TaskPhase, target: TaskPhase) -> str:
    """Move a task's own id from the source namespace into the target namespace."""
    if task_id.endswith(source.suffix):
        return task_id[: -len(source.suffix)] + target.suffix
    return task_id + target.suffix


def rewrite_dependency_id(dep_id: str, source: TaskPhase, target: TaskPhase) -> str:
    """Rewrite one dependency entry, only if it lives in the source namespace."""
    if dep_id.endswith(source.suffix):
        return dep_id[: -len(source.suffix)] + target.suffix
    return dep_id


def rewrite_dependencies(dep_ids: Iterable[str], source: TaskPhase, target: TaskPhase) -> List[str]:
    return [rewrite_dependency_id(dep_id, source, target) for dep_id in dep_ids]


def to_service_phase(subtask_id: str) -> str:
    """Id of the service-agent task spawned for an orchestrator subtask."""
    return f"{subtask_id}{TaskPhase.SERVICE.suffix}"


def to_command_phase(task_id: str) -> str:
    """'x-service' -> 'x-command'; 'x-other' -> 'x-other-command'."""
    return rewrite_task_id(task_id, TaskPhase.SERVICE, TaskPhase.COMMAND)


def to_run_phase(task_id: str) -> str:
    """'x-command' -> 'x-run'; 'x-other' -> 'x-other-run'."""
    return rewrite_task_id(task_id, TaskPhase.COMMAND, TaskPhase.RUN)


@dataclass
class ScopedChildren:
    children: List[Dict[str, Any]]
    id_map: Dict[str, str]


def scope_child_tasks(parent_id: str, children: Sequence[Dict[str, Any]]) -> ScopedChildren:
    """
    Prefix sibling ids with the parent id and point dependencies at the scoped ids.

    Children without an id get a positional one. A dependency that names a
    sibling is remapped to the sibling's scoped id; any other dependency is
    kept as-is. `input.id` and `input.dependsOn` are updated alongside so the
    next phase sees the same ids the scheduler does.
    """
    scoped_ids = [
        f"{parent_id}-{child['id']}" if child.get("id") else f"{parent_id}-{index}"
        for index, child in enumerate(children)
    ]
    id_map = {
        child["id"]: scoped_id
        for child, scoped_id in zip(children, scoped_ids)
        if child.get("id")
    }

    scoped: List[Dict[str, Any]] = []
    for child, scoped_id in zip(children, scoped_ids):
        depends_on = [id_map.get(dep_id, dep_id) for dep_id in child.get("dependsOn") or []]

        scoped_child = {key: value for key, value in child.items() if key != "dependsOn"}
        scoped_child["id"] = scoped_id
        if depends_on:
            scoped_child["dependsOn"] = depends_on

        if isinstance(child.get("input"), dict):
            scoped_input = dict(child["input"])
            scoped_input["id"] = scoped_id
            scoped_input["dependsOn"] = depends_on
            scoped_child["input"] = scoped_input

        scoped.append(scoped_child)

    return ScopedChildren(children=scoped, id_map=id_map)
