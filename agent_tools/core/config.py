"""
Core configuration module for Agent Tools.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the AGENT_TOOLS_ prefix.

Reference:
- Sinha pp. 193-195 - Pydantic BaseSettings pattern
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings


DEFAULT_SYSTEM_PROMPT = "You are a helpful AI assistant."


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All fields use the AGENT_TOOLS_ prefix for environment variables.
    Example: AGENT_TOOLS_MAX_TOOL_ITERATIONS=3
    """

    # =========================================================================
    # Service Configuration
    # =========================================================================
    service_name: str = Field(
        default="agent-tools",
        description="Name of the service for logging and identification",
    )
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    # =========================================================================
    # Generative Model (Gemini) Configuration
    # Pattern: SecretStr for sensitive values
    # SecretStr masks values in logs/repr, use .get_secret_value() to access
    # =========================================================================
    gemini_api_key: SecretStr = Field(
        default=SecretStr(""),
        description="Google AI API key for Gemini models",
    )
    gemini_model: str = Field(
        default="gemini-2.5-flash",
        description="Gemini model used for generation and function calling",
    )
    gemini_api_base: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Base URL of the Gemini REST API",
    )
    model_timeout_seconds: float = Field(
        default=30.0,
        ge=1.0,
        le=300.0,
        description="Timeout in seconds for a single model request",
    )
    model_max_retries: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Maximum attempts for a model request before giving up",
    )
    model_retry_delay_seconds: float = Field(
        default=1.0,
        ge=0.0,
        le=60.0,
        description="Initial delay between model retries (exponential backoff)",
    )

    # =========================================================================
    # Function Calling Configuration
    # =========================================================================
    max_tool_iterations: int = Field(
        default=5,
        ge=1,
        le=20,
        description="Maximum model/tool round-trips per conversational turn",
    )
    default_temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for function-calling requests",
    )
    fallback_enabled: bool = Field(
        default=True,
        description="Fall back to tool-free generation when orchestration fails",
    )
    tool_timeout_seconds: Optional[float] = Field(
        default=30.0,
        description="Timeout for a single tool handler call (None or 0 disables)",
    )
    default_system_prompt: str = Field(
        default=DEFAULT_SYSTEM_PROMPT,
        description="System prompt used when the caller supplies none",
    )

    # =========================================================================
    # Knowledge Service Configuration
    # =========================================================================
    knowledge_service_url: str = Field(
        default="http://localhost:8081",
        description="URL of the knowledge service used by the knowledge tools",
    )
    knowledge_service_timeout_seconds: float = Field(
        default=30.0,
        ge=1.0,
        le=300.0,
        description="Timeout in seconds for knowledge service calls",
    )
    knowledge_search_default_limit: int = Field(
        default=5,
        ge=1,
        le=10,
        description="Default number of results returned by search_knowledge",
    )
    knowledge_list_max_limit: int = Field(
        default=50,
        ge=1,
        description="Upper bound on entries returned by list_agent_knowledge",
    )

    model_config = {
        "env_prefix": "AGENT_TOOLS_",
        "case_sensitive": False,
        "extra": "ignore",
        "protected_namespaces": ("settings_",),
    }

    # =========================================================================
    # Field Validators
    # =========================================================================
    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalise the log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        level = v.upper()
        if level not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return level

    @field_validator("gemini_api_base", "knowledge_service_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate URL scheme and strip the trailing slash."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("URL must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("tool_timeout_seconds")
    @classmethod
    def validate_tool_timeout(cls, v: Optional[float]) -> Optional[float]:
        """Treat a non-positive tool timeout as disabled."""
        if v is not None and v <= 0:
            return None
        return v


# =============================================================================
# Settings Singleton
# =============================================================================


@lru_cache
def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Uses functools.lru_cache to ensure only one Settings instance is created.

    Returns:
        Settings: The application settings instance.
    """
    return Settings()
