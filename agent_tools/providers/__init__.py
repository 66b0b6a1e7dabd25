"""
Providers Package - Generative Model Adapters

ModelProvider is the port the function-calling orchestrator talks to;
GeminiProvider and FakeProvider are its adapters.
"""

from agent_tools.providers.base import ModelProvider
from agent_tools.providers.fake import FakeProvider
from agent_tools.providers.gemini import GeminiProvider, GeminiToolHandler

__all__ = [
    "ModelProvider",
    "GeminiProvider",
    "GeminiToolHandler",
    "FakeProvider",
]
