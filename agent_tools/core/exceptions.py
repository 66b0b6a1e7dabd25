"""
Custom exceptions for Agent Tools.

This module provides a hierarchy of custom exceptions. All exceptions inherit
from AgentToolsException and carry an error code for consistent handling and
logging.

Note that the tool executor and the function-calling orchestrator never let
these escape to their callers: tool failures become failed call responses and
model failures trigger the tool-free fallback.
"""

from enum import Enum
from typing import Any


# =============================================================================
# Error Codes Enum
# =============================================================================


class ErrorCode(str, Enum):
    """
    Error codes for Agent Tools exceptions.

    These codes provide a consistent way to identify error types in logging.
    """

    AGENT_TOOLS_ERROR = "AGENT_TOOLS_ERROR"
    PROVIDER_ERROR = "PROVIDER_ERROR"
    AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"
    RATE_LIMIT_ERROR = "RATE_LIMIT_ERROR"
    TOOL_EXECUTION_ERROR = "TOOL_EXECUTION_ERROR"
    TOOL_TIMEOUT_ERROR = "TOOL_TIMEOUT_ERROR"
    TOOL_REGISTRATION_ERROR = "TOOL_REGISTRATION_ERROR"
    SCHEMA_TRANSLATION_ERROR = "SCHEMA_TRANSLATION_ERROR"


# =============================================================================
# Base Exception
# =============================================================================


class AgentToolsException(Exception):
    """
    Base exception for all Agent Tools errors.

    Attributes:
        message: Human-readable error message.
        error_code: Machine-readable error code from ErrorCode enum.
    """

    def __init__(
        self,
        message: str,
        error_code: str = ErrorCode.AGENT_TOOLS_ERROR,
        **kwargs: Any,
    ) -> None:
        """
        Initialize the exception.

        Args:
            message: Human-readable error message.
            error_code: Machine-readable error code.
            **kwargs: Additional attributes to set on the exception.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code

        for key, value in kwargs.items():
            setattr(self, key, value)


# =============================================================================
# Model Provider Errors
# =============================================================================


class ProviderError(AgentToolsException):
    """
    Exception for generative model provider issues.

    Raised when communication with the model service fails, including
    API errors, timeouts and malformed responses.

    Attributes:
        provider: Name of the provider (e.g., "gemini").
        status_code: HTTP status code from the provider API (if applicable).
    """

    def __init__(
        self,
        message: str,
        provider: str,
        status_code: int | None = None,
        error_code: str = ErrorCode.PROVIDER_ERROR,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code, **kwargs)
        self.provider = provider
        self.status_code = status_code


class AuthenticationError(ProviderError):
    """Raised when the provider rejects the API credentials (never retried)."""

    def __init__(
        self,
        message: str,
        provider: str,
        status_code: int | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            message,
            provider=provider,
            status_code=status_code,
            error_code=ErrorCode.AUTHENTICATION_ERROR,
            **kwargs,
        )


class RateLimitError(ProviderError):
    """
    Raised when the provider reports that the rate limit was exceeded.

    Attributes:
        retry_after: Seconds until the rate limit resets (if reported).
    """

    def __init__(
        self,
        message: str,
        provider: str,
        retry_after: int | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            message,
            provider=provider,
            status_code=429,
            error_code=ErrorCode.RATE_LIMIT_ERROR,
            **kwargs,
        )
        self.retry_after = retry_after


# =============================================================================
# Tool Errors
# =============================================================================


class ToolExecutionError(AgentToolsException):
    """
    Exception for tool execution failures.

    Tool handlers may raise this to signal a failure with a clean message;
    the executor converts it into a failed call response.

    Attributes:
        tool_name: Name of the tool that failed.
    """

    def __init__(
        self,
        message: str,
        tool_name: str,
        error_code: str = ErrorCode.TOOL_EXECUTION_ERROR,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code, **kwargs)
        self.tool_name = tool_name


class ToolTimeoutError(ToolExecutionError):
    """
    Exception raised when a handler exceeds the executor's timeout.

    Attributes:
        timeout: The timeout that was exceeded, in seconds.
    """

    def __init__(self, tool_name: str, timeout: float, **kwargs: Any) -> None:
        super().__init__(
            f"Tool execution timeout after {timeout}s",
            tool_name=tool_name,
            error_code=ErrorCode.TOOL_TIMEOUT_ERROR,
            timeout=timeout,
            **kwargs,
        )


class ToolRegistrationError(AgentToolsException):
    """
    Exception raised when a tool cannot be registered.

    Attributes:
        tool_name: Name of the tool being registered.
    """

    def __init__(
        self,
        message: str,
        tool_name: str,
        error_code: str = ErrorCode.TOOL_REGISTRATION_ERROR,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code, **kwargs)
        self.tool_name = tool_name


class SchemaTranslationError(ToolRegistrationError):
    """Raised when a tool's argument schema cannot be translated at all."""

    def __init__(self, message: str, tool_name: str, **kwargs: Any) -> None:
        super().__init__(
            message,
            tool_name=tool_name,
            error_code=ErrorCode.SCHEMA_TRANSLATION_ERROR,
            **kwargs,
        )
