"""Services Package - function-calling orchestration."""

from agent_tools.services.function_calling import (
    TOOL_INSTRUCTIONS,
    FunctionCallingService,
    OrchestrationState,
)

__all__ = [
    "FunctionCallingService",
    "OrchestrationState",
    "TOOL_INSTRUCTIONS",
]
