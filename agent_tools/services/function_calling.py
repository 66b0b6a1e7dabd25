"""
Function-Calling Service

This module implements the orchestration loop that lets a conversational
agent call tools mid-conversation: request a completion with the available
function declarations, execute the calls the model asks for, feed the results
back, and repeat until the model answers or the iteration cap is hit.

Pattern: Service Layer (orchestrates registry, executor and model provider)
Pattern: Dependency Injection (all collaborators passed in)
Pattern: Graceful degradation (tool-free generation when orchestration fails)

States of one turn:
    NO_TOOLS_FALLBACK       no declarations apply, tool-free generation
    AWAITING_MODEL          initial request with declarations in flight
    EXECUTING_TOOLS         requested calls running concurrently
    CONTINUING              follow-up request with call responses in flight
    COMPLETE                the model produced its answer
    MAX_ITERATIONS_REACHED  the cap was hit while the model still wanted tools
    ERROR_FALLBACK          something failed, tool-free generation instead

chat_with_tools() never raises to its caller except on task cancellation.
"""

import time
import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Protocol

from agent_tools.core.config import Settings, get_settings
from agent_tools.core.exceptions import ProviderError
from agent_tools.models.declarations import FunctionDeclaration
from agent_tools.models.domain import (
    FunctionCall,
    FunctionCallingResult,
    FunctionResponse,
    ToolExecutionContext,
    ToolResultSummary,
)
from agent_tools.models.generation import Content, GenerationOptions, ModelToolResponse
from agent_tools.observability.logging import (
    correlation_id_context,
    elapsed_ms,
    get_logger,
)
from agent_tools.providers.base import ModelProvider
from agent_tools.tools.executor import ToolExecutor
from agent_tools.tools.registry import ToolRegistry

logger = get_logger(__name__)


class Closeable(Protocol):
    """Anything holding a network resource released by ``close()``."""

    async def close(self) -> None: ...


TOOL_INSTRUCTIONS = """
IMPORTANT INSTRUCTIONS:
1. You have access to tools that can retrieve information from the user's knowledge base.
2. When the user asks a question that might be answered by the knowledge base, you MUST use the search_knowledge tool first.
3. If you find relevant information using these tools, you MUST answer based on that information.
4. Do NOT answer from your own memory - always search the knowledge base first for factual questions."""

EMPTY_RESPONSE_MESSAGE = "Sorry, I couldn't generate a response."
MAX_ITERATIONS_MESSAGE = (
    "I apologize, but I've reached the maximum number of tool calls. "
    "Please try rephrasing your question."
)
ERROR_MESSAGE = "I'm sorry, I encountered an error processing your request."


class OrchestrationState(str, Enum):
    """Where a chat_with_tools() turn is, or how it ended."""

    NO_TOOLS_FALLBACK = "no_tools_fallback"
    AWAITING_MODEL = "awaiting_model"
    EXECUTING_TOOLS = "executing_tools"
    CONTINUING = "continuing"
    COMPLETE = "complete"
    MAX_ITERATIONS_REACHED = "max_iterations_reached"
    ERROR_FALLBACK = "error_fallback"


def build_prompt(system_prompt: str, message: str) -> str:
    """Initial function-calling prompt: system prompt, tool instructions, user message."""
    return f"{system_prompt}{TOOL_INSTRUCTIONS}\n\nUser: {message}"


def build_fallback_prompt(system_prompt: str, message: str) -> str:
    """Prompt for tool-free generation."""
    return f"{system_prompt}\n\nUser: {message}"


@dataclass
class _Turn:
    """Per-call accumulator; survives failures so partial progress is reported."""

    state: OrchestrationState = OrchestrationState.AWAITING_MODEL
    iterations: int = 0
    tools_called: int = 0
    tool_results: list[ToolResultSummary] = field(default_factory=list)

    def record(self, calls: list[FunctionCall], responses: list[FunctionResponse]) -> None:
        self.tools_called += len(calls)
        for call, response in zip(calls, responses):
            self.tool_results.append(
                ToolResultSummary(
                    tool_name=call.name,
                    success=response.success,
                    data=response.response.model_dump(),
                )
            )


class FunctionCallingService:
    """
    Orchestrates model requests and tool execution for one conversational turn.

    Attributes:
        _registry: Source of function declarations.
        _executor: Runs requested calls.
        _provider: Generative model adapter.
        _settings: Defaults for prompt, iteration cap, temperature, fallback.
        _resources: Collaborators released by aclose() (the provider, the
            knowledge backend), typically the ones deps built.

    Example:
        >>> service = FunctionCallingService(registry, executor, provider)
        >>> result = await service.chat_with_tools(
        ...     "What is the refund policy?",
        ...     ToolExecutionContext(agent_id="a1", tenant_id="t1"),
        ...     enabled_tools=["search_knowledge"],
        ... )
        >>> result.tools_called
        1
    """

    def __init__(
        self,
        registry: ToolRegistry,
        executor: ToolExecutor,
        provider: ModelProvider,
        settings: Optional[Settings] = None,
        resources: Iterable[Closeable] = (),
    ) -> None:
        self._registry = registry
        self._executor = executor
        self._provider = provider
        self._settings = settings or get_settings()
        self._resources = list(resources)

    async def aclose(self) -> None:
        """Close the owned resources, in the order they were given."""
        for resource in self._resources:
            await resource.close()
        self._resources = []

    async def __aenter__(self) -> "FunctionCallingService":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()

    async def chat_with_tools(
        self,
        message: str,
        context: ToolExecutionContext,
        system_prompt: Optional[str] = None,
        enabled_tools: Optional[list[str]] = None,
        max_iterations: Optional[int] = None,
    ) -> FunctionCallingResult:
        """
        Answer ``message``, calling tools as the model requests.

        Args:
            message: The user's message.
            context: Identity and scope passed to every tool.
            system_prompt: Agent system prompt (default from settings).
            enabled_tools: Tool names the agent may use; None offers every
                enabled tool, an empty list offers none.
            max_iterations: Cap on model/tool round-trips (default from settings).
                Values below 1 allow no tool round-trip; a direct answer is still
                returned.

        Returns:
            FunctionCallingResult with the answer and every executed call.
        """
        started_at = time.perf_counter()
        if system_prompt is None:
            system_prompt = self._settings.default_system_prompt
        if max_iterations is None:
            max_iterations = self._settings.max_tool_iterations
        max_iterations = max(max_iterations, 0)

        turn = _Turn()
        correlation_id = context.session_id or f"fc-{uuid.uuid4().hex[:16]}"

        with correlation_id_context(correlation_id):
            try:
                response = await self._run(
                    turn, message, context, system_prompt, enabled_tools, max_iterations
                )
            except Exception as e:
                logger.error(
                    "chat_with_tools_failed",
                    agent_id=context.agent_id,
                    state=turn.state.value,
                    error=str(e),
                    error_type=type(e).__name__,
                    tools_called=turn.tools_called,
                )
                turn.state = OrchestrationState.ERROR_FALLBACK
                response = await self._fallback(system_prompt, message)

            logger.info(
                "chat_with_tools_completed",
                agent_id=context.agent_id,
                state=turn.state.value,
                tools_called=turn.tools_called,
                iterations=turn.iterations,
                execution_time_ms=elapsed_ms(started_at),
            )

        return FunctionCallingResult(
            response=response,
            tools_called=turn.tools_called,
            execution_time_ms=elapsed_ms(started_at),
            tool_results=turn.tool_results,
        )

    # =========================================================================
    # Orchestration Loop
    # =========================================================================

    async def _run(
        self,
        turn: _Turn,
        message: str,
        context: ToolExecutionContext,
        system_prompt: str,
        enabled_tools: Optional[list[str]],
        max_iterations: int,
    ) -> str:
        declarations = self._declarations(enabled_tools)
        if not declarations:
            turn.state = OrchestrationState.NO_TOOLS_FALLBACK
            return await self._generate_without_tools(system_prompt, message)

        prompt = build_prompt(system_prompt, message)
        transcript = [Content.user_text(prompt)]
        options = self._options()

        turn.state = OrchestrationState.AWAITING_MODEL
        current = self._require(
            await self._provider.generate_with_tools(prompt, declarations, options)
        )

        for iteration in range(max_iterations):
            if not current.wants_tools:
                turn.state = OrchestrationState.COMPLETE
                return current.text or EMPTY_RESPONSE_MESSAGE

            calls = current.function_calls
            turn.state = OrchestrationState.EXECUTING_TOOLS
            turn.iterations = iteration + 1
            logger.info(
                "tool_calls_requested",
                tool_count=len(calls),
                tools=[call.name for call in calls],
                iteration=iteration + 1,
            )
            responses = await self._executor.execute_function_calls(calls, context)
            turn.record(calls, responses)

            transcript.append(Content.model_calls(calls))
            transcript.append(Content.function_responses(responses))

            turn.state = OrchestrationState.CONTINUING
            current = self._require(
                await self._provider.continue_with_results(
                    transcript, responses, declarations, options
                )
            )

        if not current.wants_tools:
            turn.state = OrchestrationState.COMPLETE
            return current.text or EMPTY_RESPONSE_MESSAGE

        turn.state = OrchestrationState.MAX_ITERATIONS_REACHED
        logger.warning(
            "max_iterations_reached",
            agent_id=context.agent_id,
            max_iterations=max_iterations,
            tools_called=turn.tools_called,
        )
        return MAX_ITERATIONS_MESSAGE

    def _declarations(self, enabled_tools: Optional[list[str]]) -> list[FunctionDeclaration]:
        if enabled_tools is not None:
            return self._registry.get_function_declarations_for_agent(enabled_tools)
        return self._registry.get_enabled_function_declarations()

    def _options(self) -> GenerationOptions:
        return GenerationOptions(
            use_case="rag", temperature=self._settings.default_temperature
        )

    def _require(self, response: Optional[ModelToolResponse]) -> ModelToolResponse:
        if response is None:
            raise ProviderError("Failed to get AI response", provider=self._provider.name)
        return response

    # =========================================================================
    # Tool-free Generation
    # =========================================================================

    async def _generate_without_tools(self, system_prompt: str, message: str) -> str:
        chunks = [
            chunk
            async for chunk in self._provider.generate(
                build_fallback_prompt(system_prompt, message),
                GenerationOptions(use_case="rag"),
            )
        ]
        return "".join(chunks) or EMPTY_RESPONSE_MESSAGE

    async def _fallback(self, system_prompt: str, message: str) -> str:
        """Tool-free answer after a failure, or the fixed error message."""
        if not self._settings.fallback_enabled:
            return ERROR_MESSAGE
        try:
            return await self._generate_without_tools(system_prompt, message)
        except Exception as e:
            logger.error("fallback_generation_failed", error=str(e))
            return ERROR_MESSAGE
