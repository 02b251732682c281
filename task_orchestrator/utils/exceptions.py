"""
Standardized Exception Hierarchy for the Task Orchestrator

Exception Categories:
- Configuration Errors: missing registry, invalid settings, missing SDKs
- Validation Errors: phase input that can never succeed (fatal, no model call)
- Attempt Errors: failures of a single structured model call (retryable)
- Execution Errors: terminal failures surfaced to the scheduler

Attempt errors never escape the retry engine. They are folded into the
next attempt's prompt and, once the attempt budget is spent, summarized
by ExhaustedRetriesError.

Usage:
    from task_orchestrator.utils.exceptions import (
        InputValidationError,
        SemanticError,
        ExhaustedRetriesError,
    )

    if not task_input.get("prompt"):
        raise InputValidationError("prompt", "prompt is required")
"""

from typing import Optional, Any, Dict, List, Sequence, Union


# ============================================================================
# Base Exception
# ============================================================================

class TaskOrchestratorError(Exception):
    """
    Base exception for all Task Orchestrator errors.

    All custom exceptions inherit from this class to enable
    centralized error handling and logging.
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize base exception.

        Args:
            message: Human-readable error message
            error_code: Optional error code for categorization
            details: Optional dictionary with additional error context
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details
        }

    def __str__(self) -> str:
        """String representation of the error."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# ============================================================================
# Configuration and Initialization Errors
# ============================================================================

class ConfigurationError(TaskOrchestratorError):
    """Raised when there's an issue with configuration or settings."""

    def __init__(
        self,
        setting_name: str,
        message: str,
        expected_value: Optional[Any] = None,
        actual_value: Optional[Any] = None
    ):
        details = {"setting_name": setting_name}
        if expected_value is not None:
            details["expected_value"] = str(expected_value)
        if actual_value is not None:
            details["actual_value"] = str(actual_value)

        super().__init__(
            message=f"Configuration error for '{setting_name}': {message}",
            error_code="CONFIG_ERROR",
            details=details
        )
        self.setting_name = setting_name


class MissingDependencyError(TaskOrchestratorError):
    """Raised when an optional provider SDK is not installed."""

    def __init__(
        self,
        package_name: str,
        install_command: Optional[str] = None,
        purpose: Optional[str] = None
    ):
        message = f"Required package '{package_name}' is not installed"
        if purpose:
            message += f" (needed for {purpose})"
        if install_command:
            message += f"\nInstall with: {install_command}"

        super().__init__(
            message=message,
            error_code="MISSING_DEPENDENCY",
            details={
                "package_name": package_name,
                "install_command": install_command,
                "purpose": purpose
            }
        )
        self.package_name = package_name


# ============================================================================
# Input Validation Errors
# ============================================================================

class InputValidationError(TaskOrchestratorError):
    """
    Raised when a phase input is missing or malformed.

    Fatal and immediate: the phase agent raises it before any model call.
    """

    def __init__(
        self,
        parameter: Union[str, Sequence[str]],
        message: str,
        received: Optional[Any] = None
    ):
        parameters = [parameter] if isinstance(parameter, str) else list(parameter)
        details: Dict[str, Any] = {"parameters": parameters}
        if received is not None:
            details["received"] = str(received)

        super().__init__(
            message=message,
            error_code="INPUT_VALIDATION_ERROR",
            details=details
        )
        self.parameters = parameters


class InvalidOperationError(TaskOrchestratorError):
    """Raised when a task is routed to a service/command this pipeline does not serve."""

    def __init__(self, service: str, command: str, supported: Optional[List[str]] = None):
        message = f"No phase agent handles '{service}/{command}'"
        if supported:
            message += f". Supported: {', '.join(supported)}"
        super().__init__(
            message=message,
            error_code="INVALID_OPERATION",
            details={"service": service, "command": command}
        )
        self.service = service
        self.command = command


# ============================================================================
# Attempt Errors (retryable)
# ============================================================================

class RetryableAttemptError(TaskOrchestratorError):
    """
    Base class for failures of a single structured model call.

    Carries the individual error strings that are echoed back to the
    model on the next attempt.
    """

    def __init__(self, errors: Union[str, Sequence[str]], error_code: Optional[str] = None):
        self.errors: List[str] = [errors] if isinstance(errors, str) else list(errors)
        super().__init__(
            message="; ".join(self.errors),
            error_code=error_code
        )


class TransportError(RetryableAttemptError):
    """Model call failed or timed out."""

    def __init__(self, errors: Union[str, Sequence[str]], timed_out: bool = False):
        super().__init__(errors, error_code="TRANSPORT_ERROR")
        self.timed_out = timed_out


class ParseError(RetryableAttemptError):
    """Model response was not valid JSON."""

    def __init__(self, errors: Union[str, Sequence[str]]):
        super().__init__(errors, error_code="PARSE_ERROR")


class SchemaError(RetryableAttemptError):
    """Model response parsed, but required fields or types are wrong."""

    def __init__(self, errors: Union[str, Sequence[str]]):
        super().__init__(errors, error_code="SCHEMA_ERROR")


class SemanticError(RetryableAttemptError):
    """Model response is well-formed but refers to things that do not exist."""

    def __init__(
        self,
        errors: Union[str, Sequence[str]],
        valid_alternatives: Optional[Sequence[str]] = None
    ):
        super().__init__(errors, error_code="SEMANTIC_ERROR")
        self.valid_alternatives = list(valid_alternatives or [])


# ============================================================================
# Execution Errors (terminal)
# ============================================================================

class ExhaustedRetriesError(TaskOrchestratorError):
    """Raised when every attempt of a structured model call has failed."""

    def __init__(self, label: str, attempts: int, last_errors: Sequence[str]):
        self.label = label
        self.attempts = attempts
        self.last_errors = list(last_errors)
        super().__init__(
            message=(
                f"[{label}] Failed after {attempts} attempts. "
                f"Last error: {'; '.join(self.last_errors)}"
            ),
            error_code="EXHAUSTED_RETRIES"
        )


class LLMError(TaskOrchestratorError):
    """Raised by the model client when a provider returns an unusable response."""

    def __init__(self, provider: str, message: str, model: Optional[str] = None):
        super().__init__(
            message=f"[{provider}] {message}",
            error_code="LLM_ERROR",
            details={"provider": provider, "model": model}
        )
        self.provider = provider


__all__ = [
    "TaskOrchestratorError",
    "ConfigurationError",
    "MissingDependencyError",
    "InputValidationError",
    "InvalidOperationError",
    "RetryableAttemptError",
    "TransportError",
    "ParseError",
    "SchemaError",
    "SemanticError",
    "ExhaustedRetriesError",
    "LLMError",
]
