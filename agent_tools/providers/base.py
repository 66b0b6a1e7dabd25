"""
Model Provider Interface

This module defines the abstract base class for generative model adapters
used by the function-calling orchestrator.

Design Pattern:
- Ports and Adapters (Hexagonal Architecture)
- ModelProvider serves as the "port" (interface)
- GeminiProvider and FakeProvider serve as "adapters"
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import Optional

from agent_tools.models.declarations import FunctionDeclaration
from agent_tools.models.domain import FunctionResponse
from agent_tools.models.generation import Content, GenerationOptions, ModelToolResponse


class ModelProvider(ABC):
    """
    Abstract base class for generative model adapters.

    Methods:
        generate: Tool-free streaming generation
        generate_with_tools: First request of a function-calling turn
        continue_with_results: Follow-up request carrying call responses

    Example:
        >>> class EchoProvider(ModelProvider):
        ...     async def generate(self, prompt, options=None):
        ...         yield prompt
        ...
        ...     async def generate_with_tools(self, prompt, declarations, options=None):
        ...         return ModelToolResponse(is_complete=True, text=prompt)
        ...
        ...     async def continue_with_results(
        ...         self, transcript, responses, declarations, options=None
        ...     ):
        ...         return ModelToolResponse(is_complete=True, text="done")
    """

    name: str = "provider"

    @abstractmethod
    def generate(
        self, prompt: str, options: Optional[GenerationOptions] = None
    ) -> AsyncIterator[str]:
        """
        Generate text without tools, as a stream of chunks.

        Implementations are async generators.

        Raises:
            ProviderError: If the provider API returns an error
            RateLimitError: If rate limits are exceeded
            AuthenticationError: If API credentials are invalid

        Example:
            >>> text = "".join([chunk async for chunk in provider.generate(prompt)])
        """
        ...

    @abstractmethod
    async def generate_with_tools(
        self,
        prompt: str,
        declarations: list[FunctionDeclaration],
        options: Optional[GenerationOptions] = None,
    ) -> ModelToolResponse:
        """
        Send a prompt with the available function declarations.

        Returns:
            ModelToolResponse: Either a final answer or the calls to execute.

        Raises:
            ProviderError: If the provider API returns an error
        """
        ...

    @abstractmethod
    async def continue_with_results(
        self,
        transcript: list[Content],
        responses: list[FunctionResponse],
        declarations: list[FunctionDeclaration],
        options: Optional[GenerationOptions] = None,
    ) -> ModelToolResponse:
        """
        Continue a function-calling conversation after tools ran.

        Args:
            transcript: Full conversation so far, ending with the function
                turn that holds ``responses``.
            responses: Call responses of the latest iteration.
            declarations: Same declarations as the initial request.
            options: Generation options.

        Returns:
            ModelToolResponse: A final answer or further calls.

        Raises:
            ProviderError: If the provider API returns an error
        """
        ...

    async def close(self) -> None:
        """Release network resources. No-op by default."""
        return None
