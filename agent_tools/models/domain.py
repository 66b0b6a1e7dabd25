"""
Domain Models - Tools, Calls, Results

This module contains the domain models for the function-calling system:
tool categories and permission levels, the per-request execution context,
calls requested by the model, tool results, normalized call responses and
the orchestration result returned to callers.

Pattern: Domain models as value objects (Percival & Gregory pp. 59-65)
Pattern: Pydantic for validation at boundaries (Sinha pp. 193-195)

Note: The tool interface itself lives in agent_tools.tools.base and the
model-facing declarations in agent_tools.models.declarations.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


# =============================================================================
# Enumerations
# =============================================================================


class ToolCategory(str, Enum):
    """Functional grouping of tools."""

    KNOWLEDGE = "knowledge"
    BUSINESS = "business"
    ACTIONS = "actions"
    INTEGRATION = "integration"


class ToolPermission(str, Enum):
    """
    Permission level a tool requires.

    - PUBLIC: anyone can use
    - AUTHENTICATED: requires a user id in the execution context
    - ADMIN: admin only (currently any authenticated user)
    - CUSTOM: tool-specific logic, allowed by default
    """

    PUBLIC = "public"
    AUTHENTICATED = "authenticated"
    ADMIN = "admin"
    CUSTOM = "custom"


# =============================================================================
# ToolExecutionContext
# =============================================================================


class ToolExecutionContext(BaseModel):
    """
    Identity and scope passed into every tool invocation.

    Immutable per request. Tool handlers use it to scope their own lookups
    (tenant, agent, user) and the executor uses it for permission checks.

    Attributes:
        agent_id: The agent handling the conversation.
        user_id: The end user, if authenticated.
        tenant_id: The owning tenant.
        session_id: Conversation session, if any.
        metadata: Free-form caller metadata.
    """

    agent_id: str = Field(..., description="Agent identifier")
    user_id: Optional[str] = Field(default=None, description="Authenticated user")
    tenant_id: str = Field(..., description="Tenant identifier")
    session_id: Optional[str] = Field(default=None, description="Session identifier")
    metadata: Optional[dict[str, Any]] = Field(
        default=None, description="Additional caller metadata"
    )

    model_config = {"frozen": True}


# =============================================================================
# FunctionCall (requested call)
# =============================================================================


class FunctionCall(BaseModel):
    """
    A request from the model to invoke a tool.

    Pattern: Command pattern (encapsulates a request as an object)

    Example:
        >>> call = FunctionCall(name="search_knowledge", args={"query": "returns"})
    """

    name: str = Field(..., description="Name of the tool to execute")
    args: dict[str, Any] = Field(default_factory=dict, description="Tool arguments")


# =============================================================================
# ToolResult
# =============================================================================


class ToolResultMetadata(BaseModel):
    """Timing and provenance of a tool result."""

    execution_time: Optional[int] = Field(
        default=None, description="Handler execution time in milliseconds"
    )
    source: Optional[str] = Field(default=None, description="Where the data came from")
    cached: bool = Field(default=False, description="Whether the data was cached")


class ToolResult(BaseModel):
    """
    Result returned by a tool handler.

    Attributes:
        success: Whether the tool succeeded.
        data: Tool output (any JSON-serializable value).
        error: Error message when success is False.
        metadata: Timing and provenance.
    """

    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None
    metadata: Optional[ToolResultMetadata] = None


# =============================================================================
# FunctionResponse (call response)
# =============================================================================


class FunctionResponsePayload(BaseModel):
    """The outcome part of a call response, as sent back to the model."""

    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None


class FunctionResponse(BaseModel):
    """
    Normalized wrapping of a tool outcome for one requested call.

    Always produced by the executor, including for unknown tools, permission
    failures and handler exceptions.
    """

    name: str = Field(..., description="Tool name from the requested call")
    response: FunctionResponsePayload

    @classmethod
    def failure(cls, name: str, error: str) -> "FunctionResponse":
        """Build a failed response."""
        return cls(name=name, response=FunctionResponsePayload(success=False, error=error))

    @classmethod
    def from_tool_result(cls, name: str, result: ToolResult) -> "FunctionResponse":
        """Build a response from a handler's ToolResult (metadata is dropped)."""
        return cls(
            name=name,
            response=FunctionResponsePayload(
                success=result.success, data=result.data, error=result.error
            ),
        )

    @property
    def success(self) -> bool:
        """Whether the call succeeded."""
        return self.response.success


# =============================================================================
# FunctionCallingResult (orchestration result)
# =============================================================================


class ToolResultSummary(BaseModel):
    """One executed call as reported to the caller."""

    tool_name: str
    success: bool
    data: Optional[Any] = None


class FunctionCallingResult(BaseModel):
    """
    Final artifact of one conversational turn.

    Invariant: ``tools_called == len(tool_results)`` and both count every
    requested call executed across all iterations.
    """

    response: str = Field(..., description="Final text answer")
    tools_called: int = Field(default=0, ge=0, description="Calls executed")
    execution_time_ms: int = Field(default=0, ge=0, description="Wall time of the turn")
    tool_results: list[ToolResultSummary] = Field(default_factory=list)
