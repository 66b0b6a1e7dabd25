"""
Tool Interface

This module defines the abstract Tool every capability implements, a
FunctionTool adapter for plain coroutines, and helpers for building
ToolResults with timing metadata.

Pattern: ABC for interface contracts (one concrete class per capability)
Pattern: Pydantic model as the argument schema (validated before invoke)

A tool's ``args_model`` is the single source of truth for its arguments: the
schema translator reflects it into the model-facing declaration, and
``handler`` validates raw model arguments against it before ``invoke`` runs.
"""

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, ClassVar, Optional

from pydantic import BaseModel

from agent_tools.models.domain import (
    ToolCategory,
    ToolExecutionContext,
    ToolPermission,
    ToolResult,
    ToolResultMetadata,
)
from agent_tools.observability.logging import elapsed_ms


class Tool(ABC):
    """
    A named, schema-described, permission-gated capability.

    Subclasses set the class attributes and implement ``invoke``.

    Attributes:
        name: Unique tool identifier (registry key).
        description: What the tool does, shown to the model.
        category: Functional grouping.
        permission: Permission level required to run the tool.
        enabled: Whether the tool may be offered and executed.
        args_model: Pydantic model describing the tool arguments.

    Example:
        >>> class EchoArgs(BaseModel):
        ...     text: str = Field(..., description="Text to echo")
        ...
        >>> class EchoTool(Tool):
        ...     name = "echo"
        ...     description = "Echo the given text"
        ...     args_model = EchoArgs
        ...
        ...     async def invoke(self, args, context):
        ...         return ToolResult(success=True, data={"text": args.text})
    """

    name: ClassVar[str]
    description: ClassVar[str]
    category: ClassVar[ToolCategory] = ToolCategory.KNOWLEDGE
    permission: ClassVar[ToolPermission] = ToolPermission.PUBLIC
    args_model: ClassVar[type[BaseModel]]
    enabled: bool = True

    def __init__(self, enabled: Optional[bool] = None) -> None:
        """
        Args:
            enabled: Override the class-level enabled flag.
        """
        if enabled is not None:
            self.enabled = enabled

    def parse_arguments(self, raw_args: Optional[dict[str, Any]]) -> BaseModel:
        """
        Validate raw model arguments against ``args_model``.

        Raises:
            pydantic.ValidationError: If the arguments do not match.
        """
        return self.args_model.model_validate(raw_args or {})

    async def handler(
        self, raw_args: Optional[dict[str, Any]], context: ToolExecutionContext
    ) -> ToolResult:
        """
        Entry point used by the executor: validate, then invoke.

        Validation errors propagate to the caller like any other failure.
        """
        args = self.parse_arguments(raw_args)
        return await self.invoke(args, context)

    @abstractmethod
    async def invoke(self, args: Any, context: ToolExecutionContext) -> ToolResult:
        """
        Run the tool.

        Args:
            args: Validated ``args_model`` instance.
            context: Identity and scope of the current request.

        Returns:
            ToolResult describing the outcome.
        """
        ...

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(name={self.name!r}, "
            f"permission={self.permission.value!r}, enabled={self.enabled!r})"
        )


ToolFunction = Callable[[Any, ToolExecutionContext], Awaitable[ToolResult]]


class FunctionTool(Tool):
    """
    Tool backed by a plain coroutine function.

    Useful for ad hoc tools and tests where a dedicated subclass would be noise.

    Example:
        >>> async def lookup(args: LookupArgs, context) -> ToolResult:
        ...     return ToolResult(success=True, data={"id": args.id})
        ...
        >>> tool = FunctionTool(
        ...     name="lookup",
        ...     description="Look up a record",
        ...     args_model=LookupArgs,
        ...     func=lookup,
        ... )
    """

    def __init__(
        self,
        name: str,
        description: str,
        args_model: type[BaseModel],
        func: ToolFunction,
        category: ToolCategory = ToolCategory.ACTIONS,
        permission: ToolPermission = ToolPermission.PUBLIC,
        enabled: bool = True,
    ) -> None:
        super().__init__(enabled=enabled)
        # Instance attributes shadow the ClassVar declarations on Tool.
        self.name = name  # type: ignore[misc]
        self.description = description  # type: ignore[misc]
        self.args_model = args_model  # type: ignore[misc]
        self.category = category  # type: ignore[misc]
        self.permission = permission  # type: ignore[misc]
        self._func = func

    async def invoke(self, args: Any, context: ToolExecutionContext) -> ToolResult:
        return await self._func(args, context)


# =============================================================================
# Result Helpers
# =============================================================================


def success_result(
    data: Any,
    started_at: float,
    source: str,
    cached: bool = False,
) -> ToolResult:
    """
    Build a successful ToolResult.

    Args:
        data: Tool output.
        started_at: ``time.perf_counter()`` reading taken when the tool started.
        source: Where the data came from (e.g. "vector_search").
        cached: Whether the data was served from a cache.
    """
    return ToolResult(
        success=True,
        data=data,
        metadata=ToolResultMetadata(
            execution_time=elapsed_ms(started_at), source=source, cached=cached
        ),
    )


def error_result(error: Any, started_at: float) -> ToolResult:
    """
    Build a failed ToolResult from an exception or message.

    Exceptions with an empty message become "Unknown error".
    """
    message = str(error) if error is not None else ""
    return ToolResult(
        success=False,
        error=message or "Unknown error",
        metadata=ToolResultMetadata(execution_time=elapsed_ms(started_at)),
    )
