"""
Pytest configuration for the test suite.

This configuration sets up:
- Test markers for categorization
- Settings and execution-context fixtures
- Sample tools and a populated ToolRegistry
- A scripted FakeProvider and an in-memory knowledge backend
"""

import asyncio
from typing import Any, Optional

import pytest
from pydantic import BaseModel, Field

from agent_tools.clients.knowledge import (
    KnowledgeBackend,
    KnowledgeEntry,
    KnowledgeMatch,
    KnowledgePage,
)
from agent_tools.core.config import Settings
from agent_tools.models.domain import (
    ToolCategory,
    ToolExecutionContext,
    ToolPermission,
    ToolResult,
)
from agent_tools.observability.logging import configure_logging, reset_logging
from agent_tools.providers.fake import FakeProvider
from agent_tools.tools.base import FunctionTool
from agent_tools.tools.executor import ToolExecutor
from agent_tools.tools.registry import ToolRegistry


# =============================================================================
# Test Markers
# =============================================================================


def pytest_configure(config):
    """
    Register custom markers for test categorization.

    - unit: Low gear tests for individual components
    - integration: High gear tests wiring several components together
    - slow: Tests that take a long time to run
    """
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: Integration tests for service interactions")
    config.addinivalue_line("markers", "slow: Tests that take a long time to run")


@pytest.fixture(autouse=True)
def _reset_logging():
    """Each test starts from the default logging configuration."""
    reset_logging()
    configure_logging(level="DEBUG", force=True)
    yield
    reset_logging()


# =============================================================================
# Settings and Context
# =============================================================================


@pytest.fixture
def test_settings() -> Settings:
    """
    Settings configured for testing.

    Fast retries and a short tool timeout; no real API key.
    """
    return Settings(
        service_name="agent-tools-test",
        environment="development",
        gemini_api_key="test-gemini-key",
        model_retry_delay_seconds=0.0,
        max_tool_iterations=5,
        tool_timeout_seconds=1.0,
        knowledge_service_url="http://knowledge.test",
    )


@pytest.fixture
def context() -> ToolExecutionContext:
    """Authenticated execution context."""
    return ToolExecutionContext(
        agent_id="agent-1",
        user_id="user-1",
        tenant_id="tenant-1",
        session_id="session-1",
    )


@pytest.fixture
def anonymous_context() -> ToolExecutionContext:
    """Execution context without a user."""
    return ToolExecutionContext(agent_id="agent-1", tenant_id="tenant-1")


# =============================================================================
# Sample Tools
# =============================================================================


class LookupArgs(BaseModel):
    query: str = Field(..., description="What to look up")
    limit: Optional[int] = Field(default=None, description="Maximum results")


class EmptyArgs(BaseModel):
    pass


def make_tool(
    name: str,
    result: Any = None,
    permission: ToolPermission = ToolPermission.PUBLIC,
    enabled: bool = True,
    category: ToolCategory = ToolCategory.ACTIONS,
    args_model: type[BaseModel] = LookupArgs,
    delay: float = 0.0,
    error: Optional[Exception] = None,
) -> FunctionTool:
    """
    Build a FunctionTool that records its invocations.

    The tool returns ``result`` (default: a successful ToolResult echoing the
    arguments) after ``delay`` seconds, or raises ``error``.
    """
    invocations: list[tuple[BaseModel, ToolExecutionContext]] = []

    async def func(args: BaseModel, ctx: ToolExecutionContext) -> Any:
        invocations.append((args, ctx))
        if delay:
            await asyncio.sleep(delay)
        if error is not None:
            raise error
        if result is not None:
            return result
        return ToolResult(success=True, data={"tool": name, "args": args.model_dump()})

    tool = FunctionTool(
        name=name,
        description=f"The {name} tool",
        args_model=args_model,
        func=func,
        category=category,
        permission=permission,
        enabled=enabled,
    )
    tool.invocations = invocations  # type: ignore[attr-defined]
    return tool


@pytest.fixture
def tool_factory():
    """Expose make_tool() to tests."""
    return make_tool


@pytest.fixture
def registry() -> ToolRegistry:
    """Registry with two enabled tools and one disabled tool."""
    return ToolRegistry(
        [
            make_tool("lookup"),
            make_tool("weather", category=ToolCategory.INTEGRATION),
            make_tool("retired", enabled=False),
        ]
    )


@pytest.fixture
def executor(registry: ToolRegistry) -> ToolExecutor:
    return ToolExecutor(registry, timeout=1.0)


@pytest.fixture
def fake_provider() -> FakeProvider:
    """FakeProvider with an empty script (answers immediately)."""
    return FakeProvider(response_content="Final answer")


# =============================================================================
# Knowledge Backend
# =============================================================================


class InMemoryKnowledgeBackend(KnowledgeBackend):
    """
    KnowledgeBackend holding entries in memory.

    Records every call in ``calls`` as (method, kwargs).
    """

    def __init__(
        self,
        matches: Optional[list[KnowledgeMatch]] = None,
        entries: Optional[list[KnowledgeEntry]] = None,
        error: Optional[Exception] = None,
    ) -> None:
        self.matches = matches or []
        self.entries = {entry.id: entry for entry in entries or []}
        self.error = error
        self.calls: list[tuple[str, dict[str, Any]]] = []

    async def search(self, query, user_id, tenant_id, limit, filters=None):
        self.calls.append(
            (
                "search",
                {
                    "query": query,
                    "user_id": user_id,
                    "tenant_id": tenant_id,
                    "limit": limit,
                    "filters": filters,
                },
            )
        )
        if self.error:
            raise self.error
        return self.matches[:limit]

    async def get_by_id(self, knowledge_id, user_id, tenant_id):
        self.calls.append(("get_by_id", {"knowledge_id": knowledge_id}))
        if self.error:
            raise self.error
        return self.entries.get(knowledge_id)

    async def list_entries(self, user_id, tenant_id, agent_id, limit, page):
        self.calls.append(
            ("list_entries", {"agent_id": agent_id, "limit": limit, "page": page})
        )
        if self.error:
            raise self.error
        entries = list(self.entries.values())
        start = (page - 1) * limit
        return KnowledgePage(
            entries=entries[start : start + limit],
            pagination={"page": page, "limit": limit, "total": len(entries)},
        )


@pytest.fixture
def knowledge_backend() -> InMemoryKnowledgeBackend:
    """Backend with two search matches and one entry."""
    return InMemoryKnowledgeBackend(
        matches=[
            KnowledgeMatch(
                id="m1",
                score=0.91234,
                metadata={"content": "Refunds take 5 days.", "title": "Refunds", "source": "faq.md"},
            ),
            KnowledgeMatch(id="m2", score=0.5, metadata={}),
        ],
        entries=[
            KnowledgeEntry(
                id="6f1c2a4e-8a53-4c5e-9d0b-2f7c1e0a9b11",
                title="Refund policy",
                file_name="refunds.pdf",
                file_type="application/pdf",
                file_url="https://files.test/refunds.pdf",
                created_at="2024-01-01T00:00:00Z",
                metadata={"pages": 3},
            )
        ],
    )


@pytest.fixture
def knowledge_backend_factory():
    """Expose InMemoryKnowledgeBackend to tests that need custom contents."""
    return InMemoryKnowledgeBackend
