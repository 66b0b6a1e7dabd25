"""
Fake Model Provider - Test Double Implementation

This module provides a FakeProvider that implements the real ModelProvider
interface without making network calls.

This is NOT mocking - it's a proper implementation of the interface for
testing. The FakeProvider can also be used for:
- Local development without API keys
- Integration testing without network calls
- Demo/sandbox environments
"""

from collections.abc import AsyncIterator
from typing import Any, Optional, Union

from agent_tools.models.declarations import FunctionDeclaration
from agent_tools.models.domain import FunctionCall, FunctionResponse
from agent_tools.models.generation import Content, GenerationOptions, ModelToolResponse
from agent_tools.providers.base import ModelProvider

ScriptStep = Union[ModelToolResponse, Exception]


class FakeProvider(ModelProvider):
    """
    Scripted model provider for testing and local development.

    ``script`` is consumed in order by generate_with_tools() and
    continue_with_results(). A step is either the ModelToolResponse to return
    or an exception to raise. Once the script runs out, every function-calling
    request answers ``response_content`` as a complete response.

    Attributes:
        name: Provider identifier
        response_content: Text returned once the script is exhausted and
            streamed by generate()
        error_on_generate: Optional exception to raise from generate()
        generate_calls: Prompts passed to generate()
        tool_calls: (prompt, declarations) passed to generate_with_tools()
        continue_calls: (transcript, responses, declarations) passed to
            continue_with_results()

    Example:
        >>> provider = FakeProvider(
        ...     script=[FakeProvider.calls(FunctionCall(name="search_knowledge",
        ...                                             args={"query": "refunds"}))],
        ...     response_content="Refunds take 5 days.",
        ... )
    """

    def __init__(
        self,
        name: str = "fake",
        script: Optional[list[ScriptStep]] = None,
        response_content: str = "Fake response for testing",
        error_on_generate: Optional[Exception] = None,
    ) -> None:
        self.name = name
        self.script: list[ScriptStep] = list(script or [])
        self.response_content = response_content
        self.error_on_generate = error_on_generate

        # Track calls for test assertions
        self.generate_calls: list[str] = []
        self.generate_options: list[Optional[GenerationOptions]] = []
        self.tool_calls: list[tuple[str, list[FunctionDeclaration]]] = []
        self.continue_calls: list[
            tuple[list[Content], list[FunctionResponse], list[FunctionDeclaration]]
        ] = []
        self.tool_options: list[Optional[GenerationOptions]] = []

    # =========================================================================
    # Script Helpers
    # =========================================================================

    @staticmethod
    def calls(*function_calls: FunctionCall) -> ModelToolResponse:
        """Step requesting the given calls."""
        return ModelToolResponse(is_complete=False, function_calls=list(function_calls))

    @staticmethod
    def answer(text: Optional[str]) -> ModelToolResponse:
        """Step returning a final answer."""
        return ModelToolResponse(is_complete=True, text=text)

    # =========================================================================
    # ModelProvider
    # =========================================================================

    async def generate(
        self, prompt: str, options: Optional[GenerationOptions] = None
    ) -> AsyncIterator[str]:
        """Stream ``response_content`` word by word."""
        self.generate_calls.append(prompt)
        self.generate_options.append(options)
        if self.error_on_generate is not None:
            raise self.error_on_generate

        for index, word in enumerate(self.response_content.split(" ")):
            yield word if index == 0 else f" {word}"

    async def generate_with_tools(
        self,
        prompt: str,
        declarations: list[FunctionDeclaration],
        options: Optional[GenerationOptions] = None,
    ) -> ModelToolResponse:
        self.tool_calls.append((prompt, list(declarations)))
        self.tool_options.append(options)
        return self._next_step()

    async def continue_with_results(
        self,
        transcript: list[Content],
        responses: list[FunctionResponse],
        declarations: list[FunctionDeclaration],
        options: Optional[GenerationOptions] = None,
    ) -> ModelToolResponse:
        self.continue_calls.append((list(transcript), list(responses), list(declarations)))
        self.tool_options.append(options)
        return self._next_step()

    def _next_step(self) -> Any:
        if not self.script:
            return self.answer(self.response_content)
        step = self.script.pop(0)
        if isinstance(step, Exception):
            raise step
        return step
