"""
Phase agents of the three-phase decomposition pipeline.

- OrchestratorAgent (Phase 1): request -> service-level subtasks
- ServiceAgent (Phase 2): subtask -> command of one service
- CommandAgent (Phase 3): command -> schema-valid handler parameters
"""

from .base_agent import BasePhaseAgent
from .orchestrator_agent import OrchestratorAgent, OrchestratorDecoder
from .service_agent import ServiceAgent, ServiceAgentDecoder
from .command_agent import CommandAgent, CommandParametersDecoder

__all__ = [
    "BasePhaseAgent",
    "OrchestratorAgent",
    "OrchestratorDecoder",
    "ServiceAgent",
    "ServiceAgentDecoder",
    "CommandAgent",
    "CommandParametersDecoder",
]
