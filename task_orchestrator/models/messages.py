"""
Phase Message Formats

Wire shapes exchanged between the scheduler and the phase agents, plus the
typed shapes the model's structured responses are decoded into.

Key Principles:
- Scheduler-facing dicts are TypedDicts with camelCase keys
- Decoded model responses are frozen dataclasses with snake_case fields
- A phase result carries a trace only when tracing is enabled
"""

from dataclasses import dataclass, field
from typing import TypedDict, Optional, Any, Dict, List, Tuple, NotRequired

from .task import ChildTask


# ============================================================================
# PHASE INPUTS
# ============================================================================

class OrchestratorAgentInput(TypedDict):
    """Phase 1 input: a free-form request to decompose"""
    prompt: str
    context: NotRequired[Dict[str, Any]]
    maxChildTasks: NotRequired[int]
    maxDepth: NotRequired[int]
    maxRetries: NotRequired[int]
    model: NotRequired[str]
    temperature: NotRequired[float]


class ServiceAgentInput(TypedDict):
    """Phase 2 input: one subtask bound to a service"""
    id: str
    service: str
    prompt: str
    dependsOn: NotRequired[List[str]]
    maxRetries: NotRequired[int]
    model: NotRequired[str]


class CommandAgentInput(TypedDict):
    """Phase 3 input: one subtask bound to a service command"""
    id: str
    service: str
    command: str
    prompt: str
    dependsOn: NotRequired[List[str]]
    maxRetries: NotRequired[int]
    model: NotRequired[str]


# ============================================================================
# PHASE OUTPUT
# ============================================================================

class PhaseResult(TypedDict):
    """
    What a phase agent hands back to the scheduler.

    `output` is always empty: phase agents only spawn work.
    `trace` is absent (not empty) when tracing is disabled.
    """
    output: Dict[str, Any]
    trace: NotRequired[Dict[str, Any]]
    childTasks: List[ChildTask]


# ============================================================================
# DECODED MODEL RESPONSES
# ============================================================================

@dataclass(frozen=True)
class ServiceAgentResponse:
    """Phase 2 structured response: the selected command and a refined prompt"""
    command: str
    prompt: str
    reasoning: Optional[str] = None


@dataclass(frozen=True)
class PlannedSubtask:
    """One subtask proposed by the orchestrator"""
    id: str
    service: str
    prompt: str
    depends_on: Tuple[str, ...] = ()


@dataclass(frozen=True)
class OrchestratorResponse:
    """Phase 1 structured response: the proposed task graph"""
    subtasks: Tuple[PlannedSubtask, ...]
    reasoning: str = ""


@dataclass(frozen=True)
class CommandParameters:
    """Phase 3 structured response: parameters for the selected handler"""
    params: Dict[str, Any] = field(default_factory=dict)
