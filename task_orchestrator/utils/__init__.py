"""
Utilities module - Exceptions, logging and model access helpers

Only the dependency-free pieces are re-exported here. Import the prompt
builder, validators and model client from their own modules.
"""

from .logger import get_logger, set_log_level
from .comprehensive_logger import ComprehensiveLogger, LogSettings, TaskLogger
from .exceptions import (
    TaskOrchestratorError,
    ConfigurationError,
    MissingDependencyError,
    InputValidationError,
    InvalidOperationError,
    RetryableAttemptError,
    TransportError,
    ParseError,
    SchemaError,
    SemanticError,
    ExhaustedRetriesError,
    LLMError,
)

__all__ = [
    'get_logger',
    'set_log_level',
    'ComprehensiveLogger',
    'TaskLogger',
    'LogSettings',
    'TaskOrchestratorError',
    'ConfigurationError',
    'MissingDependencyError',
    'InputValidationError',
    'InvalidOperationError',
    'RetryableAttemptError',
    'TransportError',
    'ParseError',
    'SchemaError',
    'SemanticError',
    'ExhaustedRetriesError',
    'LLMError',
]
