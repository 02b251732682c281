"""
Task module - Scheduler task structure as seen by the phase agents

Keys follow the scheduler's wire format (camelCase), so values built here
can be handed back to the scheduler unchanged.
"""

from typing import Any, Dict, List, TypedDict, NotRequired

from .enums import TaskStatus


class Task(TypedDict):
    """A unit of work owned by the external scheduler"""
    id: str
    service: str
    command: str
    input: Dict[str, Any]
    dependsOn: NotRequired[List[str]]
    depth: NotRequired[int]
    status: NotRequired[TaskStatus]
    output: NotRequired[Any]


class ChildTask(TypedDict):
    """A next-phase task emitted by a phase agent"""
    id: str
    service: str
    command: str
    input: Dict[str, Any]
    dependsOn: NotRequired[List[str]]
