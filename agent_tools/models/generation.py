"""
Generation Models - Transcript, Options, Model Responses

This module contains the models exchanged with the generative model service:
the conversation transcript built during function calling, generation
options, and the model's reply to a function-calling request.

Pattern: Provider-neutral models; adapters translate to wire formats
"""

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from agent_tools.models.domain import FunctionCall, FunctionResponse


# =============================================================================
# Transcript
# =============================================================================


class Part(BaseModel):
    """
    One part of a transcript turn.

    Exactly one of ``text``, ``function_call`` or ``function_response`` is set.
    """

    text: Optional[str] = None
    function_call: Optional[FunctionCall] = None
    function_response: Optional[FunctionResponse] = None

    @model_validator(mode="after")
    def check_single_kind(self) -> "Part":
        """Ensure exactly one kind of content is present."""
        present = [
            value
            for value in (self.text, self.function_call, self.function_response)
            if value is not None
        ]
        if len(present) != 1:
            raise ValueError(
                "Part must have exactly one of text, function_call, function_response"
            )
        return self


class Content(BaseModel):
    """
    One turn of the function-calling transcript.

    Roles:
        user: the initial prompt
        model: function calls requested by the model
        function: the call responses fed back to the model
    """

    role: Literal["user", "model", "function"]
    parts: list[Part] = Field(default_factory=list)

    @classmethod
    def user_text(cls, text: str) -> "Content":
        """Build a user turn holding a single text part."""
        return cls(role="user", parts=[Part(text=text)])

    @classmethod
    def model_calls(cls, calls: list[FunctionCall]) -> "Content":
        """Build a model turn holding the requested calls."""
        return cls(role="model", parts=[Part(function_call=call) for call in calls])

    @classmethod
    def function_responses(cls, responses: list[FunctionResponse]) -> "Content":
        """Build a function turn holding the call responses."""
        return cls(
            role="function",
            parts=[Part(function_response=response) for response in responses],
        )


# =============================================================================
# Generation Options
# =============================================================================


class GenerationOptions(BaseModel):
    """
    Options for a model request.

    ``use_case`` is informational for adapters (e.g. for logging or model
    selection); sampling values are only sent when set.
    """

    use_case: Literal["rag", "simple", "complex", "attributed"] = "simple"
    temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0)
    max_output_tokens: Optional[int] = Field(default=None, ge=1)
    top_p: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    top_k: Optional[int] = Field(default=None, ge=1)

    def to_generation_config(self) -> dict[str, Any]:
        """Gemini ``generationConfig`` with only the values that are set."""
        config: dict[str, Any] = {}
        if self.temperature is not None:
            config["temperature"] = self.temperature
        if self.max_output_tokens is not None:
            config["maxOutputTokens"] = self.max_output_tokens
        if self.top_p is not None:
            config["topP"] = self.top_p
        if self.top_k is not None:
            config["topK"] = self.top_k
        return config


# =============================================================================
# Model Tool Response
# =============================================================================


class ModelToolResponse(BaseModel):
    """
    The model's reply to a function-calling request.

    Attributes:
        is_complete: True when the model produced a final answer.
        text: Text produced by the model, if any.
        function_calls: Calls the model wants executed.
    """

    is_complete: bool
    text: Optional[str] = None
    function_calls: list[FunctionCall] = Field(default_factory=list)

    @property
    def wants_tools(self) -> bool:
        """True when the model asked for at least one call and is not done."""
        return not self.is_complete and len(self.function_calls) > 0
