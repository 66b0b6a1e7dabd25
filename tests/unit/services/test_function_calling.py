"""
Tests for FunctionCallingService - agent_tools/services/function_calling.py

The model is a scripted FakeProvider; tools are in-process FunctionTools.
The final state of each turn is read from the "chat_with_tools_completed"
log record.

Test Categories:
- TestPrompts: prompt construction
- TestDirectAnswer: COMPLETE without tool calls
- TestToolLoop: EXECUTING_TOOLS / CONTINUING / COMPLETE
- TestIterationCap: MAX_ITERATIONS_REACHED
- TestNoTools: NO_TOOLS_FALLBACK
- TestErrorFallback: ERROR_FALLBACK and fallback settings
- TestCorrelation: correlation ids on log records
"""

import io
import json

import pytest

from agent_tools.core.exceptions import ProviderError
from agent_tools.models.domain import FunctionCall, ToolPermission
from agent_tools.observability.logging import configure_logging
from agent_tools.providers.fake import FakeProvider
from agent_tools.services.function_calling import (
    EMPTY_RESPONSE_MESSAGE,
    ERROR_MESSAGE,
    MAX_ITERATIONS_MESSAGE,
    TOOL_INSTRUCTIONS,
    FunctionCallingService,
    OrchestrationState,
    build_fallback_prompt,
    build_prompt,
)
from agent_tools.tools.executor import ToolExecutor
from agent_tools.tools.registry import ToolRegistry


@pytest.fixture
def log_stream() -> io.StringIO:
    stream = io.StringIO()
    configure_logging(level="DEBUG", stream=stream, force=True)
    return stream


def _events(stream: io.StringIO, name: str) -> list[dict]:
    records = [json.loads(line) for line in stream.getvalue().splitlines() if line.strip()]
    return [record for record in records if record["event"] == name]


def _final_state(stream: io.StringIO) -> str:
    (record,) = _events(stream, "chat_with_tools_completed")
    return record["state"]


@pytest.fixture
def make_service(registry, test_settings):
    def _make(provider, settings=None, tool_registry=None):
        if tool_registry is None:
            tool_registry = registry
        return FunctionCallingService(
            registry=tool_registry,
            executor=ToolExecutor(tool_registry, timeout=1.0),
            provider=provider,
            settings=settings or test_settings,
        )

    return _make


def lookup(query: str = "refunds") -> FunctionCall:
    return FunctionCall(name="lookup", args={"query": query})


# =============================================================================
# Prompts
# =============================================================================


class TestPrompts:
    def test_build_prompt(self) -> None:
        prompt = build_prompt("You are a support bot.", "Where is my order?")

        assert prompt == (
            "You are a support bot." + TOOL_INSTRUCTIONS + "\n\nUser: Where is my order?"
        )
        assert "search_knowledge" in TOOL_INSTRUCTIONS

    def test_build_fallback_prompt(self) -> None:
        assert build_fallback_prompt("S", "M") == "S\n\nUser: M"

    @pytest.mark.asyncio
    async def test_initial_request(self, make_service, context, test_settings) -> None:
        provider = FakeProvider()
        service = make_service(provider)

        await service.chat_with_tools("Hi", context, system_prompt="Be brief.")

        (prompt, declarations), = provider.tool_calls
        assert prompt == build_prompt("Be brief.", "Hi")
        assert [d.name for d in declarations] == ["lookup", "weather"]
        options = provider.tool_options[0]
        assert options.use_case == "rag"
        assert options.temperature == test_settings.default_temperature

    @pytest.mark.asyncio
    async def test_default_system_prompt(self, make_service, context, test_settings) -> None:
        provider = FakeProvider()

        await make_service(provider).chat_with_tools("Hi", context)

        assert provider.tool_calls[0][0].startswith(test_settings.default_system_prompt)


# =============================================================================
# Direct answer
# =============================================================================


class TestDirectAnswer:
    @pytest.mark.asyncio
    async def test_answer_without_tools(self, make_service, context, log_stream) -> None:
        provider = FakeProvider(script=[FakeProvider.answer("Hello!")])

        result = await make_service(provider).chat_with_tools("Hi", context)

        assert result.response == "Hello!"
        assert result.tools_called == 0
        assert result.tool_results == []
        assert result.execution_time_ms >= 0
        assert provider.continue_calls == []
        assert _final_state(log_stream) == OrchestrationState.COMPLETE.value

    @pytest.mark.asyncio
    async def test_empty_text_answer(self, make_service, context) -> None:
        provider = FakeProvider(script=[FakeProvider.answer(None)])

        result = await make_service(provider).chat_with_tools("Hi", context)

        assert result.response == EMPTY_RESPONSE_MESSAGE


# =============================================================================
# Tool loop
# =============================================================================


class TestToolLoop:
    @pytest.mark.asyncio
    async def test_single_round_trip(
        self, make_service, registry, context, log_stream
    ) -> None:
        provider = FakeProvider(
            script=[FakeProvider.calls(lookup()), FakeProvider.answer("Refunds take 5 days.")]
        )

        result = await make_service(provider).chat_with_tools("Refunds?", context)

        assert result.response == "Refunds take 5 days."
        assert result.tools_called == 1
        (summary,) = result.tool_results
        assert summary.tool_name == "lookup"
        assert summary.success is True
        assert summary.data == {
            "success": True,
            "data": {"tool": "lookup", "args": {"query": "refunds", "limit": None}},
            "error": None,
        }
        assert len(registry.get_tool("lookup").invocations) == 1
        assert _final_state(log_stream) == OrchestrationState.COMPLETE.value

    @pytest.mark.asyncio
    async def test_continuation_carries_transcript(self, make_service, context) -> None:
        provider = FakeProvider(script=[FakeProvider.calls(lookup())])

        await make_service(provider).chat_with_tools("Refunds?", context)

        (transcript, responses, declarations), = provider.continue_calls
        assert [turn.role for turn in transcript] == ["user", "model", "function"]
        assert transcript[1].parts[0].function_call == lookup()
        assert transcript[2].parts[0].function_response == responses[0]
        assert [d.name for d in declarations] == ["lookup", "weather"]
        assert provider.tool_options[-1].use_case == "rag"

    @pytest.mark.asyncio
    async def test_parallel_calls_recorded_in_order(self, make_service, context) -> None:
        weather = FunctionCall(name="weather", args={"query": "Paris"})
        provider = FakeProvider(
            script=[FakeProvider.calls(lookup(), weather), FakeProvider.answer("Done")]
        )

        result = await make_service(provider).chat_with_tools("Both", context)

        assert result.tools_called == 2
        assert [r.tool_name for r in result.tool_results] == ["lookup", "weather"]

    @pytest.mark.asyncio
    async def test_failed_calls_are_reported_and_fed_back(self, make_service, context) -> None:
        provider = FakeProvider(
            script=[
                FakeProvider.calls(FunctionCall(name="unknown_tool", args={})),
                FakeProvider.answer("I could not find that."),
            ]
        )

        result = await make_service(provider).chat_with_tools("?", context)

        assert result.response == "I could not find that."
        assert result.tools_called == 1
        assert result.tool_results[0].success is False
        assert result.tool_results[0].data["error"] == "Tool not found: unknown_tool"
        (_, responses, _), = provider.continue_calls
        assert responses[0].response.error == "Tool not found: unknown_tool"

    @pytest.mark.asyncio
    async def test_permission_failure_reported(
        self, make_service, tool_factory, anonymous_context
    ) -> None:
        registry = ToolRegistry(
            [tool_factory("private", permission=ToolPermission.AUTHENTICATED)]
        )
        provider = FakeProvider(
            script=[
                FakeProvider.calls(FunctionCall(name="private", args={"query": "x"})),
                FakeProvider.answer("Please log in."),
            ]
        )

        result = await make_service(provider, tool_registry=registry).chat_with_tools(
            "?", anonymous_context
        )

        assert result.response == "Please log in."
        assert result.tool_results[0].data["error"] == "Authentication required"

    @pytest.mark.asyncio
    async def test_multiple_iterations(self, make_service, context, log_stream) -> None:
        provider = FakeProvider(
            script=[
                FakeProvider.calls(lookup("a")),
                FakeProvider.calls(lookup("b")),
                FakeProvider.answer("Combined answer"),
            ]
        )

        result = await make_service(provider).chat_with_tools("?", context)

        assert result.response == "Combined answer"
        assert result.tools_called == 2
        assert len(provider.continue_calls) == 2
        transcript = provider.continue_calls[-1][0]
        assert [t.role for t in transcript] == [
            "user",
            "model",
            "function",
            "model",
            "function",
        ]
        assert len(_events(log_stream, "tool_calls_requested")) == 2

    @pytest.mark.asyncio
    async def test_continuation_with_empty_text(self, make_service, context) -> None:
        provider = FakeProvider(script=[FakeProvider.calls(lookup()), FakeProvider.answer("")])

        result = await make_service(provider).chat_with_tools("?", context)

        assert result.response == EMPTY_RESPONSE_MESSAGE
        assert result.tools_called == 1


# =============================================================================
# Iteration cap
# =============================================================================


class TestIterationCap:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("max_iterations", [1, 2, 3])
    async def test_cap_reached(
        self, make_service, context, log_stream, max_iterations
    ) -> None:
        provider = FakeProvider(
            script=[FakeProvider.calls(lookup(str(i))) for i in range(10)]
        )

        result = await make_service(provider).chat_with_tools(
            "?", context, max_iterations=max_iterations
        )

        assert result.response == MAX_ITERATIONS_MESSAGE
        assert result.tools_called == max_iterations
        assert len(result.tool_results) == max_iterations
        assert len(provider.continue_calls) == max_iterations
        assert _final_state(log_stream) == OrchestrationState.MAX_ITERATIONS_REACHED.value
        assert len(_events(log_stream, "max_iterations_reached")) == 1

    @pytest.mark.asyncio
    async def test_cap_from_settings(self, make_service, context, test_settings) -> None:
        settings = test_settings.model_copy(update={"max_tool_iterations": 2})
        provider = FakeProvider(script=[FakeProvider.calls(lookup()) for _ in range(5)])

        result = await make_service(provider, settings=settings).chat_with_tools("?", context)

        assert result.response == MAX_ITERATIONS_MESSAGE
        assert result.tools_called == 2

    @pytest.mark.asyncio
    async def test_answer_on_last_iteration_is_complete(self, make_service, context) -> None:
        provider = FakeProvider(
            script=[FakeProvider.calls(lookup()), FakeProvider.answer("Just in time")]
        )

        result = await make_service(provider).chat_with_tools(
            "?", context, max_iterations=1
        )

        assert result.response == "Just in time"
        assert result.tools_called == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("max_iterations", [0, -3])
    async def test_direct_answer_kept_without_round_trips(
        self, make_service, context, log_stream, max_iterations
    ) -> None:
        provider = FakeProvider(script=[FakeProvider.answer("Direct answer")])

        result = await make_service(provider).chat_with_tools(
            "hi", context, max_iterations=max_iterations
        )

        assert result.response == "Direct answer"
        assert result.tools_called == 0
        assert _final_state(log_stream) == OrchestrationState.COMPLETE.value

    @pytest.mark.asyncio
    async def test_zero_cap_with_tool_request(self, make_service, context, registry) -> None:
        provider = FakeProvider(script=[FakeProvider.calls(lookup())])

        result = await make_service(provider).chat_with_tools("?", context, max_iterations=0)

        assert result.response == MAX_ITERATIONS_MESSAGE
        assert result.tools_called == 0
        assert registry.get_tool("lookup").invocations == []


# =============================================================================
# No tools
# =============================================================================


class TestNoTools:
    @pytest.mark.asyncio
    async def test_empty_enabled_tools(self, make_service, context, log_stream) -> None:
        provider = FakeProvider(response_content="Plain answer")

        result = await make_service(provider).chat_with_tools(
            "Hi", context, system_prompt="S", enabled_tools=[]
        )

        assert result.response == "Plain answer"
        assert result.tools_called == 0
        assert provider.tool_calls == []
        assert provider.generate_calls == [build_fallback_prompt("S", "Hi")]
        assert provider.generate_options[0].use_case == "rag"
        assert _final_state(log_stream) == OrchestrationState.NO_TOOLS_FALLBACK.value

    @pytest.mark.asyncio
    async def test_only_unknown_or_disabled_tools(self, make_service, context) -> None:
        provider = FakeProvider(response_content="Plain answer")

        result = await make_service(provider).chat_with_tools(
            "Hi", context, enabled_tools=["retired", "missing"]
        )

        assert result.response == "Plain answer"
        assert provider.tool_calls == []

    @pytest.mark.asyncio
    async def test_empty_registry(self, make_service, context) -> None:
        provider = FakeProvider(response_content="Plain answer")

        result = await make_service(provider, tool_registry=ToolRegistry()).chat_with_tools(
            "Hi", context
        )

        assert result.response == "Plain answer"

    @pytest.mark.asyncio
    async def test_empty_generation(self, make_service, context) -> None:
        provider = FakeProvider(response_content="")

        result = await make_service(provider).chat_with_tools("Hi", context, enabled_tools=[])

        assert result.response == EMPTY_RESPONSE_MESSAGE

    @pytest.mark.asyncio
    async def test_agent_subset_offered(self, make_service, context) -> None:
        provider = FakeProvider()

        await make_service(provider).chat_with_tools(
            "Hi", context, enabled_tools=["weather"]
        )

        assert [d.name for d in provider.tool_calls[0][1]] == ["weather"]


# =============================================================================
# Error fallback
# =============================================================================


class TestErrorFallback:
    @pytest.mark.asyncio
    async def test_initial_request_failure(self, make_service, context, log_stream) -> None:
        provider = FakeProvider(
            script=[ProviderError("model down", provider="fake")],
            response_content="Fallback answer",
        )

        result = await make_service(provider).chat_with_tools("Hi", context, system_prompt="S")

        assert result.response == "Fallback answer"
        assert result.tools_called == 0
        assert provider.generate_calls == [build_fallback_prompt("S", "Hi")]
        assert _final_state(log_stream) == OrchestrationState.ERROR_FALLBACK.value
        (failure,) = _events(log_stream, "chat_with_tools_failed")
        assert failure["error"] == "model down"
        assert failure["state"] == OrchestrationState.AWAITING_MODEL.value

    @pytest.mark.asyncio
    async def test_continuation_failure_keeps_tool_results(
        self, make_service, context, log_stream
    ) -> None:
        provider = FakeProvider(
            script=[FakeProvider.calls(lookup()), ProviderError("timeout", provider="fake")],
            response_content="Fallback answer",
        )

        result = await make_service(provider).chat_with_tools("Hi", context)

        assert result.response == "Fallback answer"
        assert result.tools_called == 1
        assert result.tool_results[0].tool_name == "lookup"
        (failure,) = _events(log_stream, "chat_with_tools_failed")
        assert failure["state"] == OrchestrationState.CONTINUING.value

    @pytest.mark.asyncio
    async def test_none_response_triggers_fallback(self, make_service, context) -> None:
        provider = FakeProvider(script=[None], response_content="Fallback answer")  # type: ignore[list-item]

        result = await make_service(provider).chat_with_tools("Hi", context)

        assert result.response == "Fallback answer"

    @pytest.mark.asyncio
    async def test_fallback_disabled(self, make_service, context, test_settings) -> None:
        settings = test_settings.model_copy(update={"fallback_enabled": False})
        provider = FakeProvider(script=[ProviderError("down", provider="fake")])

        result = await make_service(provider, settings=settings).chat_with_tools("Hi", context)

        assert result.response == ERROR_MESSAGE
        assert provider.generate_calls == []

    @pytest.mark.asyncio
    async def test_fallback_generation_also_fails(
        self, make_service, context, log_stream
    ) -> None:
        provider = FakeProvider(
            script=[ProviderError("down", provider="fake")],
            error_on_generate=ProviderError("still down", provider="fake"),
        )

        result = await make_service(provider).chat_with_tools("Hi", context)

        assert result.response == ERROR_MESSAGE
        assert len(_events(log_stream, "fallback_generation_failed")) == 1

    @pytest.mark.asyncio
    async def test_no_tools_generation_failure_is_contained(
        self, make_service, context, log_stream
    ) -> None:
        provider = FakeProvider(error_on_generate=RuntimeError("stream broke"))

        result = await make_service(provider).chat_with_tools("Hi", context, enabled_tools=[])

        assert result.response == ERROR_MESSAGE
        assert _final_state(log_stream) == OrchestrationState.ERROR_FALLBACK.value

    @pytest.mark.asyncio
    async def test_tool_exception_does_not_trigger_fallback(
        self, make_service, tool_factory, context
    ) -> None:
        registry = ToolRegistry([tool_factory("lookup", error=RuntimeError("db gone"))])
        provider = FakeProvider(
            script=[FakeProvider.calls(lookup()), FakeProvider.answer("Sorry, lookup failed.")]
        )

        result = await make_service(provider, tool_registry=registry).chat_with_tools(
            "?", context
        )

        assert result.response == "Sorry, lookup failed."
        assert provider.generate_calls == []
        assert result.tool_results[0].data["error"] == "db gone"


# =============================================================================
# Correlation
# =============================================================================


class TestCorrelation:
    @pytest.mark.asyncio
    async def test_session_id_is_correlation_id(self, make_service, context, log_stream) -> None:
        provider = FakeProvider(script=[FakeProvider.calls(lookup())])

        await make_service(provider).chat_with_tools("?", context)

        for name in ("tool_calls_requested", "tool_executed", "chat_with_tools_completed"):
            for record in _events(log_stream, name):
                assert record["correlation_id"] == "session-1"

    @pytest.mark.asyncio
    async def test_generated_correlation_id(
        self, make_service, anonymous_context, log_stream
    ) -> None:
        await make_service(FakeProvider()).chat_with_tools("?", anonymous_context)

        (record,) = _events(log_stream, "chat_with_tools_completed")
        assert record["correlation_id"].startswith("fc-")
        assert len(record["correlation_id"]) == len("fc-") + 16
