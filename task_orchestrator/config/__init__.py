"""
Configuration module - Settings and configuration management
"""

from .agent_config import PipelineConfig, LLMConfig, LLMProvider, LLMBackend, RateLimitConfig
from .env_config import EnvConfig

__all__ = [
    'PipelineConfig',
    'LLMConfig',
    'LLMProvider',
    'LLMBackend',
    'RateLimitConfig',
    'EnvConfig',
]
