"""
Pipeline configuration - Settings for the phase agents and the model client
"""

from dataclasses import dataclass
from typing import Optional, Dict, Any
import os
from enum import Enum

from .env_config import EnvConfig


class LLMProvider(str, Enum):
    """Supported LLM providers"""
    GOOGLE = "google"
    ANTHROPIC = "anthropic"


class LLMBackend(str, Enum):
    """How the Google provider is reached"""
    NATIVE = "native"
    LANGCHAIN = "langchain"


@dataclass
class LLMConfig:
    """
    Configuration for LLM provider and model.

    Attributes:
        provider: LLM provider (google, anthropic)
        model_name: Default model identifier, used when a phase input names none
        api_key: API key for the provider (reads from LLM_API_KEY env if not provided)
        backend: native google-genai SDK or the LangChain wrapper (google only)
        use_vertex_ai: Reach Gemini through Vertex AI instead of an API key
        project: Google Cloud project for Vertex AI
        location: Google Cloud region for Vertex AI
    """

    provider: str = "google"
    model_name: str = "gemini-2.5-flash"
    api_key: Optional[str] = None
    backend: str = "native"
    use_vertex_ai: bool = False
    project: Optional[str] = None
    location: str = "us-central1"

    def __post_init__(self):
        """Validate and set up LLM configuration."""
        valid_providers = [p.value for p in LLMProvider]
        if self.provider not in valid_providers:
            raise ValueError(f"Provider must be one of {valid_providers}, got {self.provider}")

        valid_backends = [b.value for b in LLMBackend]
        if self.backend not in valid_backends:
            raise ValueError(f"Backend must be one of {valid_backends}, got {self.backend}")

        if self.use_vertex_ai:
            if self.provider != LLMProvider.GOOGLE.value:
                raise ValueError("Vertex AI is only available for the google provider")
            self.project = self.project or os.getenv("GOOGLE_CLOUD_PROJECT")
            if not self.project:
                raise ValueError(
                    "Vertex AI needs a project. Set it via config or GOOGLE_CLOUD_PROJECT"
                )
            return

        if not self.api_key:
            # Try generic LLM_API_KEY first, then provider-specific
            env_var = self._get_env_var_for_provider()
            self.api_key = os.getenv('LLM_API_KEY') or os.getenv(env_var)

            if not self.api_key:
                raise ValueError(
                    f"API key not provided and LLM_API_KEY or {env_var} environment variable not set. "
                    f"Set it via config or environment: export LLM_API_KEY=your-key"
                )

    def _get_env_var_for_provider(self) -> str:
        """Get environment variable name for provider (fallback only)."""
        env_vars = {
            "anthropic": "ANTHROPIC_API_KEY",
            "google": "GOOGLE_API_KEY",
        }
        return env_vars.get(self.provider, f"{self.provider.upper()}_API_KEY")

    @classmethod
    def from_env(cls, prefix: str = "AGENT_") -> "LLMConfig":
        """Create LLM config from environment variables."""
        return cls(
            provider=os.getenv(f"{prefix}LLM_PROVIDER", "google"),
            model_name=os.getenv(f"{prefix}LLM_MODEL", "gemini-2.5-flash"),
            backend=os.getenv(f"{prefix}LLM_BACKEND", "native"),
            use_vertex_ai=EnvConfig.get_bool(f"{prefix}USE_VERTEX_AI", False),
            location=os.getenv("GOOGLE_CLOUD_LOCATION", "us-central1"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, excluding API key for security."""
        return {
            "provider": self.provider,
            "model_name": self.model_name,
            "backend": self.backend,
            "use_vertex_ai": self.use_vertex_ai,
            "project": self.project,
            "location": self.location,
        }


@dataclass
class RateLimitConfig:
    """
    Configuration for LLM rate limiting.

    Attributes:
        requests_per_minute: Maximum requests per minute (0 = unlimited)
        requests_per_second: Maximum requests per second (0 = unlimited, overrides RPM)
        min_request_delay: Minimum delay between requests in seconds (0 = no delay)
    """
    requests_per_minute: int = 60
    requests_per_second: int = 0
    min_request_delay: float = 0.0

    def __post_init__(self):
        """Validate rate limit configuration."""
        if self.requests_per_minute < 0:
            raise ValueError("requests_per_minute cannot be negative")
        if self.requests_per_second < 0:
            raise ValueError("requests_per_second cannot be negative")
        if self.min_request_delay < 0:
            raise ValueError("min_request_delay cannot be negative")

    @classmethod
    def from_env(cls) -> "RateLimitConfig":
        """Create rate limit config from environment variables."""
        return cls(
            requests_per_minute=EnvConfig.get_int('LLM_RATE_LIMIT_RPM', 60),
            requests_per_second=EnvConfig.get_int('LLM_RATE_LIMIT_RPS', 0),
            min_request_delay=EnvConfig.get_float('LLM_MIN_REQUEST_DELAY', 0.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "requests_per_minute": self.requests_per_minute,
            "requests_per_second": self.requests_per_second,
            "min_request_delay": self.min_request_delay,
        }


@dataclass
class PipelineConfig:
    """
    Settings shared by every phase agent.

    Attributes:
        temperature: Sampling temperature for structured calls (kept low for deterministic selection)
        call_timeout: Seconds a single model call may take before the attempt fails
        max_retries: Attempt budget when a phase input does not specify maxRetries
        max_child_tasks: Upper bound on subtasks the orchestrator may plan
        max_depth: Deepest task depth the orchestrator may plan from
        verbose: Log every attempt failure at INFO instead of DEBUG
        enable_tracing: Attach trace payloads to phase results
        log_level: Level applied to every package logger; None keeps AGENT_LOG_LEVEL
    """

    temperature: float = 0.2
    call_timeout: float = 60.0
    max_retries: int = 3
    max_child_tasks: int = 100
    max_depth: int = 10
    verbose: bool = False
    enable_tracing: bool = False
    log_level: Optional[str] = None

    def __post_init__(self):
        """Validate configuration."""
        if not 0 <= self.temperature <= 2:
            raise ValueError(f"Temperature must be between 0 and 2, got {self.temperature}")

        if self.call_timeout <= 0:
            raise ValueError("call_timeout must be positive")

        if self.max_retries < 1:
            raise ValueError("max_retries must be at least 1")

        if self.max_child_tasks < 1:
            raise ValueError("max_child_tasks must be at least 1")

        if self.max_depth < 1:
            raise ValueError("max_depth must be at least 1")

        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.log_level is not None:
            if self.log_level.upper() not in valid_levels:
                raise ValueError(f"log_level must be one of {valid_levels}")
            self.log_level = self.log_level.upper()

    @classmethod
    def from_env(cls, prefix: str = "AGENT_") -> "PipelineConfig":
        """
        Create configuration from environment variables.

        Environment variables:
            {prefix}TEMPERATURE: Sampling temperature
            {prefix}CALL_TIMEOUT: Seconds per model call
            {prefix}MAX_RETRIES: Default attempt budget
            {prefix}MAX_CHILD_TASKS: Orchestrator subtask limit
            {prefix}MAX_DEPTH: Orchestrator depth limit
            {prefix}VERBOSE: Verbose attempt logging
            {prefix}ENABLE_TRACING: Attach trace payloads
            {prefix}LOG_LEVEL: Logging level

        Args:
            prefix: Prefix for environment variables

        Returns:
            PipelineConfig instance
        """
        return cls(
            temperature=EnvConfig.get_float(f"{prefix}TEMPERATURE", 0.2),
            call_timeout=EnvConfig.get_float(f"{prefix}CALL_TIMEOUT", 60.0),
            max_retries=EnvConfig.get_int(f"{prefix}MAX_RETRIES", 3),
            max_child_tasks=EnvConfig.get_int(f"{prefix}MAX_CHILD_TASKS", 100),
            max_depth=EnvConfig.get_int(f"{prefix}MAX_DEPTH", 10),
            verbose=EnvConfig.get_bool(f"{prefix}VERBOSE", False),
            enable_tracing=EnvConfig.get_bool(f"{prefix}ENABLE_TRACING", False),
            log_level=os.getenv(f"{prefix}LOG_LEVEL") or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "temperature": self.temperature,
            "call_timeout": self.call_timeout,
            "max_retries": self.max_retries,
            "max_child_tasks": self.max_child_tasks,
            "max_depth": self.max_depth,
            "verbose": self.verbose,
            "enable_tracing": self.enable_tracing,
            "log_level": self.log_level,
        }
