"""
Core module for Agent Tools.

This module contains configuration and the exception hierarchy.
"""

from agent_tools.core.config import Settings, get_settings
from agent_tools.core.exceptions import (
    AgentToolsException,
    AuthenticationError,
    ErrorCode,
    ProviderError,
    RateLimitError,
    SchemaTranslationError,
    ToolExecutionError,
    ToolTimeoutError,
    ToolRegistrationError,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Exceptions
    "ErrorCode",
    "AgentToolsException",
    "ProviderError",
    "AuthenticationError",
    "RateLimitError",
    "ToolExecutionError",
    "ToolTimeoutError",
    "ToolRegistrationError",
    "SchemaTranslationError",
]
