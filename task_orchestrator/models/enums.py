"""
Enums module - Task status, pipeline phases and engine states
"""

from enum import Enum


class TaskStatus(str, Enum):
    """Lifecycle of a task as tracked by the scheduler"""
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class TaskPhase(str, Enum):
    """Id namespaces of the decomposition pipeline, named by their suffix"""
    SERVICE = "service"
    COMMAND = "command"
    RUN = "run"

    @property
    def suffix(self) -> str:
        return f"-{self.value}"


class EngineState(str, Enum):
    """States of the structured-call retry engine"""
    ATTEMPTING = "attempting"
    RETRYING = "retrying"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"

    @property
    def is_terminal(self) -> bool:
        return self in (EngineState.SUCCEEDED, EngineState.EXHAUSTED)


class OutcomeKind(str, Enum):
    """Tag of a single attempt's outcome"""
    OK = "ok"
    TRANSPORT_FAILURE = "transport_failure"
    PARSE_FAILURE = "parse_failure"
    SCHEMA_FAILURE = "schema_failure"
    SEMANTIC_FAILURE = "semantic_failure"
