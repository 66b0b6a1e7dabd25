"""
Dependency Wiring

This module builds the process-wide object graph explicitly: settings,
knowledge backend, tool registry, tool executor, model provider and the
function-calling service. Nothing here is a module-level singleton; callers
hold on to what they build and tests pass their own collaborators.

Pattern: Factory functions for dependency injection
"""

import logging
from typing import Optional

from agent_tools.clients.knowledge import KnowledgeBackend, KnowledgeServiceClient
from agent_tools.core.config import Settings, get_settings
from agent_tools.observability.logging import configure_logging
from agent_tools.providers.base import ModelProvider
from agent_tools.providers.gemini import GeminiProvider
from agent_tools.services.function_calling import Closeable, FunctionCallingService
from agent_tools.tools.builtin.knowledge import knowledge_tools
from agent_tools.tools.executor import ToolExecutor
from agent_tools.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


def build_knowledge_backend(settings: Settings) -> KnowledgeBackend:
    """HTTP knowledge backend pointed at ``settings.knowledge_service_url``."""
    return KnowledgeServiceClient(
        base_url=settings.knowledge_service_url,
        timeout_seconds=settings.knowledge_service_timeout_seconds,
    )


def build_tool_registry(
    knowledge_backend: KnowledgeBackend, settings: Optional[Settings] = None
) -> ToolRegistry:
    """
    Registry holding the built-in tools.

    Args:
        knowledge_backend: Backend the knowledge tools query.
        settings: Knowledge tool limits (defaults apply when omitted).
    """
    registry = ToolRegistry(knowledge_tools(knowledge_backend, settings))
    logger.info(f"Tool registry built with {len(registry)} tools")
    return registry


def build_model_provider(settings: Settings) -> ModelProvider:
    """Gemini provider configured from settings."""
    return GeminiProvider(
        api_key=settings.gemini_api_key.get_secret_value(),
        model=settings.gemini_model,
        api_base=settings.gemini_api_base,
        max_retries=settings.model_max_retries,
        retry_delay=settings.model_retry_delay_seconds,
        timeout_seconds=settings.model_timeout_seconds,
    )


def build_function_calling_service(
    settings: Optional[Settings] = None,
    knowledge_backend: Optional[KnowledgeBackend] = None,
    provider: Optional[ModelProvider] = None,
) -> FunctionCallingService:
    """
    Wire a FunctionCallingService and everything it depends on.

    Configures logging at ``settings.log_level``. Collaborators built here
    (not passed in) are closed by the service's ``aclose()``.

    Args:
        settings: Application settings (default: get_settings()).
        knowledge_backend: Knowledge backend (default: HTTP client from settings).
        provider: Model provider (default: Gemini from settings).

    Example:
        >>> service = build_function_calling_service()
        >>> result = await service.chat_with_tools("Hi", context)
        >>> await service.aclose()
    """
    settings = settings or get_settings()
    configure_logging(level=settings.log_level, force=True)

    owned: list[Closeable] = []
    if provider is None:
        provider = build_model_provider(settings)
        owned.append(provider)
    backend = knowledge_backend
    if backend is None:
        backend = build_knowledge_backend(settings)
        owned.append(backend)

    registry = build_tool_registry(backend, settings)
    executor = ToolExecutor(registry, timeout=settings.tool_timeout_seconds)
    return FunctionCallingService(
        registry=registry,
        executor=executor,
        provider=provider,
        settings=settings,
        resources=owned,
    )
