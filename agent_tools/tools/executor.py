"""
Tool Executor

This module implements the executor that turns calls requested by the model
into call responses: tool lookup, permission checks, handler invocation,
timeouts and error wrapping.

Pattern: Command Executor (executes requested calls as commands)
Pattern: Dependency Injection (registry is injected)
Pattern: Fail-soft error wrapping (every call yields a FunctionResponse)

Nothing raised by a tool handler escapes this module: failures become
``success=False`` responses the model can read and react to. Task
cancellation is the one exception and always propagates.
"""

import asyncio
import time
from collections.abc import Iterable
from typing import Any, NamedTuple, Optional

from agent_tools.core.exceptions import ToolExecutionError, ToolTimeoutError
from agent_tools.models.domain import (
    FunctionCall,
    FunctionResponse,
    ToolExecutionContext,
    ToolPermission,
    ToolResult,
)
from agent_tools.observability.logging import elapsed_ms, get_logger
from agent_tools.tools.base import Tool
from agent_tools.tools.registry import ToolRegistry

logger = get_logger(__name__)

EXECUTION_FAILED = "Tool execution failed"


class PermissionResult(NamedTuple):
    """Outcome of a permission check."""

    allowed: bool
    reason: Optional[str] = None


class ToolExecutor:
    """
    Executor for running registered tools.

    Looks tools up in the injected registry, checks the caller's permission,
    runs the handler and normalises whatever happens into a FunctionResponse.

    Attributes:
        registry: The ToolRegistry to look up tools from.
        timeout: Per-call handler timeout in seconds (None disables).

    Example:
        >>> executor = ToolExecutor(registry, timeout=30.0)
        >>> response = await executor.execute_function_call(
        ...     FunctionCall(name="search_knowledge", args={"query": "returns"}),
        ...     context,
        ... )
        >>> response.response.success
        True
    """

    def __init__(self, registry: ToolRegistry, timeout: Optional[float] = None) -> None:
        """
        Args:
            registry: The ToolRegistry to use for tool lookup.
            timeout: Maximum handler execution time in seconds.
        """
        self.registry = registry
        self.timeout = timeout

    # =========================================================================
    # Single Call
    # =========================================================================

    async def execute_function_call(
        self, call: FunctionCall, context: ToolExecutionContext
    ) -> FunctionResponse:
        """
        Execute one requested call.

        Args:
            call: Tool name and raw arguments from the model.
            context: Identity and scope of the current request.

        Returns:
            FunctionResponse named after the call. Unknown tools, disabled
            tools, denied permissions, handler exceptions and timeouts all
            produce ``success=False`` with an error message.
        """
        started_at = time.perf_counter()
        name = call.name

        tool = self.registry.get_tool(name)
        if tool is None:
            return self._rejected(name, f"Tool not found: {name}", started_at)
        if not tool.enabled:
            return self._rejected(name, f"Tool is disabled: {name}", started_at)

        permission = self.check_permission(tool, context)
        if not permission.allowed:
            return self._rejected(
                name, permission.reason or "Permission denied", started_at
            )

        try:
            output = await self._run_handler(tool, call.args, context)
            result = self._normalize(output)
        except Exception as e:
            return self._failed(name, str(e) or EXECUTION_FAILED, started_at)

        logger.info(
            "tool_executed",
            tool_name=name,
            success=result.success,
            execution_time_ms=elapsed_ms(started_at),
        )
        return FunctionResponse.from_tool_result(name, result)

    async def _run_handler(
        self, tool: Tool, args: dict[str, Any], context: ToolExecutionContext
    ) -> Any:
        """
        Await the handler, under the configured timeout if any.

        Raises:
            ToolTimeoutError: If the handler outlives ``timeout``. A
                TimeoutError raised by the handler itself keeps its message.
        """
        if self.timeout is None:
            return await tool.handler(args, context)
        try:
            return await asyncio.wait_for(
                self._call_handler(tool, args, context), timeout=self.timeout
            )
        except asyncio.TimeoutError as e:
            raise ToolTimeoutError(tool.name, self.timeout) from e

    @staticmethod
    async def _call_handler(
        tool: Tool, args: dict[str, Any], context: ToolExecutionContext
    ) -> Any:
        try:
            return await tool.handler(args, context)
        except asyncio.TimeoutError as e:
            raise ToolExecutionError(str(e) or EXECUTION_FAILED, tool_name=tool.name) from e

    @staticmethod
    def _normalize(output: Any) -> ToolResult:
        """
        Coerce a handler's return value into a ToolResult.

        Dicts carrying a ``success`` key are validated as ToolResult (a
        mismatch raises and fails the call); any other value is treated as
        successful data.
        """
        if isinstance(output, ToolResult):
            return output
        if isinstance(output, dict) and "success" in output:
            return ToolResult.model_validate(output)
        return ToolResult(success=True, data=output)

    def _rejected(self, name: str, error: str, started_at: float) -> FunctionResponse:
        logger.info(
            "tool_executed",
            tool_name=name,
            success=False,
            error=error,
            execution_time_ms=elapsed_ms(started_at),
        )
        return FunctionResponse.failure(name, error)

    def _failed(self, name: str, error: str, started_at: float) -> FunctionResponse:
        logger.error(
            "tool_execution_failed",
            tool_name=name,
            error=error,
            execution_time_ms=elapsed_ms(started_at),
        )
        return FunctionResponse.failure(name, error)

    # =========================================================================
    # Batch Execution
    # =========================================================================

    async def execute_function_calls(
        self, calls: Iterable[FunctionCall], context: ToolExecutionContext
    ) -> list[FunctionResponse]:
        """
        Execute several requested calls concurrently.

        All calls run in parallel using asyncio.gather. Responses are returned
        in the same order as ``calls``; a failing call does not affect the
        others.
        """
        calls = list(calls)
        if not calls:
            return []
        responses = await asyncio.gather(
            *(self.execute_function_call(call, context) for call in calls)
        )
        return list(responses)

    # =========================================================================
    # Permissions
    # =========================================================================

    def check_permission(
        self, tool: Tool, context: ToolExecutionContext
    ) -> PermissionResult:
        """
        Check whether the caller may run ``tool``.

        ADMIN currently accepts any authenticated user; there is no role
        model to check against yet.
        """
        permission = tool.permission
        if permission == ToolPermission.PUBLIC:
            return PermissionResult(True)
        if permission == ToolPermission.AUTHENTICATED:
            if context.user_id:
                return PermissionResult(True)
            return PermissionResult(False, "Authentication required")
        if permission == ToolPermission.ADMIN:
            if context.user_id:
                return PermissionResult(True)
            return PermissionResult(False, "Admin access required")
        if permission == ToolPermission.CUSTOM:
            return PermissionResult(True)
        return PermissionResult(False, "Unknown permission level")

    def get_available_tools(
        self,
        context: ToolExecutionContext,
        enabled_tool_names: Optional[list[str]] = None,
    ) -> list[Tool]:
        """
        Tools the caller could run right now.

        Agent-scoped when ``enabled_tool_names`` is non-empty, otherwise all
        enabled tools; both filtered by check_permission().
        """
        if enabled_tool_names:
            tools = self.registry.get_tools_for_agent(enabled_tool_names)
        else:
            tools = self.registry.get_enabled_tools()
        return [tool for tool in tools if self.check_permission(tool, context).allowed]
