"""
Gemini Provider - Google Generative AI Adapter

This module implements the ModelProvider port over the Gemini REST API
(v1beta), including the tool handling that maps function declarations,
function calls and the function-calling transcript to Gemini's wire format.

Reference:
- Google Generative AI API Docs: https://ai.google.dev/api

Design Patterns:
- Ports and Adapters: GeminiProvider implements ModelProvider
- Adapter: Transforms provider-neutral models to Gemini format
- Retry with Exponential Backoff: Handles transient errors
"""

import asyncio
import json
import logging
import os
from collections.abc import AsyncIterator
from typing import Any, Optional

import httpx

from agent_tools.clients.http import create_http_client
from agent_tools.core.exceptions import (
    AuthenticationError,
    ProviderError,
    RateLimitError,
)
from agent_tools.models.declarations import FunctionDeclaration
from agent_tools.models.domain import FunctionCall, FunctionResponse
from agent_tools.models.generation import (
    Content,
    GenerationOptions,
    ModelToolResponse,
    Part,
)
from agent_tools.providers.base import ModelProvider

logger = logging.getLogger(__name__)

PROVIDER_NAME = "gemini"
DEFAULT_MODEL = "gemini-2.5-flash"
GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta"


# =============================================================================
# Gemini Tool Handler
# =============================================================================


class GeminiToolHandler:
    """
    Handler for transforming function-calling data to and from Gemini format.

    This class provides methods to:
    - Transform function declarations to Gemini ``tools``
    - Parse ``functionCall`` parts into FunctionCalls
    - Extract text from candidates
    - Map the transcript to Gemini ``contents``

    Pattern: Adapter pattern for format transformation

    Example:
        >>> handler = GeminiToolHandler()
        >>> tools = handler.transform_declarations(declarations)
        >>> calls = handler.parse_function_calls(response["candidates"])
    """

    def transform_declarations(
        self, declarations: list[FunctionDeclaration]
    ) -> list[dict[str, Any]]:
        """
        Transform declarations to the Gemini tools block.

        Returns:
            Gemini tools format:
                [{"functionDeclarations": [...]}]
        """
        return [
            {
                "functionDeclarations": [
                    declaration.to_schema_dict() for declaration in declarations
                ]
            }
        ]

    def parse_function_calls(self, candidates: list[dict[str, Any]]) -> list[FunctionCall]:
        """
        Parse ``functionCall`` parts from Gemini candidates, in order.
        """
        calls: list[FunctionCall] = []
        for part in self._iter_parts(candidates):
            if "functionCall" in part:
                function_call = part["functionCall"] or {}
                calls.append(
                    FunctionCall(
                        name=function_call.get("name", ""),
                        args=function_call.get("args") or {},
                    )
                )
        return calls

    def extract_text_content(self, candidates: list[dict[str, Any]]) -> str:
        """
        Extract text content from Gemini candidates.

        Returns:
            Concatenated text content from text parts.
        """
        return "".join(
            part["text"]
            for part in self._iter_parts(candidates)
            if isinstance(part.get("text"), str)
        )

    def transcript_to_contents(self, transcript: list[Content]) -> list[dict[str, Any]]:
        """
        Map the transcript to Gemini contents.

        Gemini format:
            [{"role": "user", "parts": [{"text": "..."}]},
             {"role": "model", "parts": [{"functionCall": {...}}]},
             {"role": "function", "parts": [{"functionResponse": {...}}]}]
        """
        return [
            {"role": turn.role, "parts": [self._part_to_dict(part) for part in turn.parts]}
            for turn in transcript
        ]

    def _part_to_dict(self, part: Part) -> dict[str, Any]:
        if part.function_call is not None:
            return {
                "functionCall": {
                    "name": part.function_call.name,
                    "args": part.function_call.args,
                }
            }
        if part.function_response is not None:
            return {
                "functionResponse": {
                    "name": part.function_response.name,
                    "response": part.function_response.response.model_dump(
                        mode="json", exclude_none=True
                    ),
                }
            }
        return {"text": part.text}

    @staticmethod
    def _iter_parts(candidates: list[dict[str, Any]]) -> list[dict[str, Any]]:
        # Only the first candidate is considered; candidateCount is never raised.
        if not candidates:
            return []
        content = candidates[0].get("content") or {}
        return [part for part in content.get("parts") or [] if isinstance(part, dict)]


# =============================================================================
# Gemini Provider
# =============================================================================


class GeminiProvider(ModelProvider):
    """
    Google Gemini provider adapter.

    Implements the ModelProvider interface for Gemini models over httpx,
    with retry logic for transient errors.

    Pattern: Ports and Adapters (Hexagonal Architecture)
    Pattern: Retry with Exponential Backoff

    Example:
        >>> provider = GeminiProvider(api_key="AIza...")
        >>> response = await provider.generate_with_tools(prompt, declarations)
        >>> response.function_calls
        [FunctionCall(name='search_knowledge', args={'query': 'refunds'})]
    """

    name = PROVIDER_NAME

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        api_base: Optional[str] = None,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        timeout_seconds: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """
        Initialize Gemini provider.

        Args:
            api_key: Google AI API key. Falls back to GEMINI_API_KEY env var.
            model: Model used for every request.
            api_base: API base URL (default: Google's API).
            max_retries: Maximum attempts per request (default: 3).
            retry_delay: Initial retry delay in seconds (default: 1.0).
            timeout_seconds: Per-request timeout.
            http_client: Optional pre-configured HTTP client (for testing).
        """
        self._api_key = api_key or os.getenv("GEMINI_API_KEY", "")
        if not self._api_key:
            logger.warning("No Gemini API key provided. Set AGENT_TOOLS_GEMINI_API_KEY.")

        self.model = model
        self._api_base = (api_base or GEMINI_API_BASE).rstrip("/")
        self._max_retries = max(1, max_retries)
        self._retry_delay = retry_delay
        self._tool_handler = GeminiToolHandler()
        if http_client is not None:
            self._client = http_client
            self._owns_client = False
        else:
            self._client = create_http_client(timeout_seconds=timeout_seconds)
            self._owns_client = True

    async def close(self) -> None:
        """Close the HTTP client if owned by this instance."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "GeminiProvider":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    # =========================================================================
    # ModelProvider
    # =========================================================================

    async def generate(
        self, prompt: str, options: Optional[GenerationOptions] = None
    ) -> AsyncIterator[str]:
        """
        Stream a tool-free completion.

        Yields:
            Text chunks as they arrive.

        Raises:
            ProviderError: On API errors.
            RateLimitError: On rate limit errors.
            AuthenticationError: On auth errors.
        """
        payload = self._build_payload([Content.user_text(prompt)], None, options)
        url = self._url("streamGenerateContent")

        try:
            async with self._client.stream(
                "POST", url, params={"alt": "sse"}, json=payload, headers=self._headers()
            ) as response:
                if response.status_code != 200:
                    error_text = await response.aread()
                    self._handle_error_response(
                        response.status_code,
                        error_text.decode(errors="replace"),
                        response.headers.get("retry-after"),
                    )

                async for line in response.aiter_lines():
                    text = self._process_stream_line(line)
                    if text:
                        yield text
        except httpx.HTTPError as e:
            raise ProviderError(f"Gemini stream failed: {e}", provider=PROVIDER_NAME) from e

    async def generate_with_tools(
        self,
        prompt: str,
        declarations: list[FunctionDeclaration],
        options: Optional[GenerationOptions] = None,
    ) -> ModelToolResponse:
        """
        Send the initial prompt with the function declarations.

        Raises:
            ProviderError: On API errors or a response without candidates.
        """
        payload = self._build_payload([Content.user_text(prompt)], declarations, options)
        response_data = await self._execute_with_retry(self._url("generateContent"), payload)
        return self._to_tool_response(response_data)

    async def continue_with_results(
        self,
        transcript: list[Content],
        responses: list[FunctionResponse],
        declarations: list[FunctionDeclaration],
        options: Optional[GenerationOptions] = None,
    ) -> ModelToolResponse:
        """
        Continue the conversation with the latest call responses.

        ``responses`` are appended as a function turn when the transcript does
        not already end with one.
        """
        turns = list(transcript)
        if responses and (not turns or turns[-1].role != "function"):
            turns.append(Content.function_responses(responses))

        payload = self._build_payload(turns, declarations, options)
        response_data = await self._execute_with_retry(self._url("generateContent"), payload)
        return self._to_tool_response(response_data)

    # =========================================================================
    # Helper Methods
    # =========================================================================

    def _url(self, method: str) -> str:
        return f"{self._api_base}/models/{self.model}:{method}"

    def _headers(self) -> dict[str, str]:
        return {"Content-Type": "application/json", "x-goog-api-key": self._api_key}

    def _build_payload(
        self,
        transcript: list[Content],
        declarations: Optional[list[FunctionDeclaration]],
        options: Optional[GenerationOptions],
    ) -> dict[str, Any]:
        """
        Build the request body.

        Empty ``tools`` and ``generationConfig`` blocks are omitted.
        """
        payload: dict[str, Any] = {
            "contents": self._tool_handler.transcript_to_contents(transcript),
        }
        if declarations:
            payload["tools"] = self._tool_handler.transform_declarations(declarations)
        if options is not None:
            generation_config = options.to_generation_config()
            if generation_config:
                payload["generationConfig"] = generation_config
        return payload

    def _to_tool_response(self, response_data: dict[str, Any]) -> ModelToolResponse:
        """
        Transform a generateContent response into a ModelToolResponse.

        Raises:
            ProviderError: If the response carries no candidates (e.g. the
                prompt was blocked).
        """
        candidates = response_data.get("candidates") or []
        if not candidates:
            block_reason = (response_data.get("promptFeedback") or {}).get("blockReason")
            raise ProviderError(
                f"Gemini returned no candidates (blockReason={block_reason})",
                provider=PROVIDER_NAME,
            )

        calls = self._tool_handler.parse_function_calls(candidates)
        text = self._tool_handler.extract_text_content(candidates)
        return ModelToolResponse(
            is_complete=not calls,
            text=text or None,
            function_calls=calls,
        )

    def _process_stream_line(self, line: str) -> Optional[str]:
        """
        Process a single SSE line from the stream.

        Returns:
            Text found in the chunk, or None to skip.
        """
        if not line or not line.startswith("data:"):
            return None

        data_str = line[len("data:"):].strip()
        if not data_str or data_str == "[DONE]":
            return None

        try:
            chunk_data = json.loads(data_str)
        except json.JSONDecodeError:
            logger.warning(f"Failed to parse streaming chunk: {data_str[:100]}")
            return None
        return self._tool_handler.extract_text_content(chunk_data.get("candidates") or [])

    # =========================================================================
    # Retry Logic with Exponential Backoff
    # =========================================================================

    async def _execute_with_retry(
        self,
        url: str,
        payload: dict[str, Any],
    ) -> dict[str, Any]:
        """
        Execute HTTP request with retry logic and exponential backoff.

        Authentication errors and client errors other than 429 (quota,
        invalid argument, permission) are raised immediately.

        Raises:
            RateLimitError: When retries are exhausted on rate limits.
            AuthenticationError: Immediately on auth errors (no retry).
            ProviderError: On other errors.
        """
        last_error: Optional[ProviderError] = None

        for attempt in range(self._max_retries):
            try:
                response = await self._client.post(url, json=payload, headers=self._headers())
                if response.status_code == 200:
                    return response.json()
                self._handle_error_response(
                    response.status_code,
                    response.text,
                    response.headers.get("retry-after"),
                )
            except AuthenticationError:
                raise
            except ProviderError as e:
                if not self._is_retryable(e):
                    raise
                last_error = e
            except (httpx.HTTPError, ValueError) as e:
                last_error = ProviderError(str(e) or type(e).__name__, provider=PROVIDER_NAME)

            if attempt < self._max_retries - 1:
                delay = self._retry_delay * (2**attempt)
                logger.warning(
                    f"Gemini request failed (attempt {attempt + 1}/{self._max_retries}), "
                    f"retrying in {delay}s: {last_error}"
                )
                await asyncio.sleep(delay)

        if isinstance(last_error, RateLimitError):
            raise last_error
        raise ProviderError(
            f"Request failed after {self._max_retries} attempts: {last_error}",
            provider=PROVIDER_NAME,
            status_code=last_error.status_code if last_error else None,
        )

    @staticmethod
    def _is_retryable(error: ProviderError) -> bool:
        """Rate limits, server errors and transport errors are retried."""
        status = error.status_code
        return status is None or status == 429 or status >= 500

    def _handle_error_response(
        self, status_code: int, error_text: str, retry_after: Optional[str] = None
    ) -> None:
        """
        Handle HTTP error responses from the Gemini API.

        Raises:
            AuthenticationError: For 401/403 errors.
            RateLimitError: For 429 errors.
            ProviderError: For other errors.
        """
        if status_code in (401, 403):
            raise AuthenticationError(
                f"Authentication failed: {error_text}",
                provider=PROVIDER_NAME,
                status_code=status_code,
            )

        if status_code == 429:
            raise RateLimitError(
                f"Rate limit exceeded: {error_text}",
                provider=PROVIDER_NAME,
                retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
            )

        raise ProviderError(
            f"Gemini API error ({status_code}): {error_text}",
            provider=PROVIDER_NAME,
            status_code=status_code,
        )
