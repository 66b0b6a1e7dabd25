"""Models Package - domain, declaration and generation models."""

from agent_tools.models.declarations import (
    FunctionDeclaration,
    FunctionParameters,
    PropertySchema,
)
from agent_tools.models.domain import (
    FunctionCall,
    FunctionCallingResult,
    FunctionResponse,
    FunctionResponsePayload,
    ToolCategory,
    ToolExecutionContext,
    ToolPermission,
    ToolResult,
    ToolResultMetadata,
    ToolResultSummary,
)
from agent_tools.models.generation import (
    Content,
    GenerationOptions,
    ModelToolResponse,
    Part,
)

__all__ = [
    # Declarations
    "FunctionDeclaration",
    "FunctionParameters",
    "PropertySchema",
    # Domain
    "ToolCategory",
    "ToolPermission",
    "ToolExecutionContext",
    "FunctionCall",
    "ToolResult",
    "ToolResultMetadata",
    "FunctionResponse",
    "FunctionResponsePayload",
    "ToolResultSummary",
    "FunctionCallingResult",
    # Generation
    "Content",
    "Part",
    "GenerationOptions",
    "ModelToolResponse",
]
