"""
Knowledge Tools

This module implements the built-in tools that let agents search and read
their knowledge base:

- search_knowledge: semantic search scoped to the caller
- get_knowledge_by_id: full details of one entry
- list_agent_knowledge: paginated list of the agent's entries

Pattern: Service Proxy (each tool delegates to the injected KnowledgeBackend)
Pattern: Fail-soft tools (backend failures become failed ToolResults)
"""

import logging
import time
import uuid
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from agent_tools.clients.knowledge import KnowledgeBackend, KnowledgeEntry
from agent_tools.core.config import Settings
from agent_tools.models.domain import (
    ToolCategory,
    ToolExecutionContext,
    ToolPermission,
    ToolResult,
)
from agent_tools.tools.base import Tool, error_result, success_result

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_LIMIT = 5
MAX_LIST_LIMIT = 50

SEARCH_SOURCE = "vector_search"
DATABASE_SOURCE = "knowledge_database"


# =============================================================================
# Argument Models
# =============================================================================


class SearchKnowledgeArgs(BaseModel):
    query: str = Field(..., min_length=1, description="Search query for knowledge base")
    limit: Optional[int] = Field(
        default=None, ge=1, le=10, description="Maximum number of results (1-10)"
    )
    filters: Optional[dict[str, Any]] = Field(
        default=None, description="Optional filters for search"
    )


class GetKnowledgeByIdArgs(BaseModel):
    knowledge_id: str = Field(..., description="Knowledge entry ID")

    @field_validator("knowledge_id")
    @classmethod
    def validate_uuid(cls, v: str) -> str:
        """Knowledge ids are UUIDs; normalise to canonical form."""
        try:
            return str(uuid.UUID(v))
        except ValueError as e:
            raise ValueError("knowledge_id must be a valid UUID") from e


class ListAgentKnowledgeArgs(BaseModel):
    limit: int = Field(default=10, ge=1, description="Number of entries to return (max 50)")
    page: int = Field(default=1, ge=1, description="Page number for pagination")


# =============================================================================
# Base
# =============================================================================


class KnowledgeTool(Tool):
    """Shared wiring for tools backed by a KnowledgeBackend."""

    category = ToolCategory.KNOWLEDGE
    permission = ToolPermission.PUBLIC

    def __init__(self, backend: KnowledgeBackend, enabled: Optional[bool] = None) -> None:
        super().__init__(enabled=enabled)
        self.backend = backend


# =============================================================================
# search_knowledge
# =============================================================================


class SearchKnowledgeTool(KnowledgeTool):
    """Semantic search in the agent's knowledge base."""

    name = "search_knowledge"
    description = (
        "Search the knowledge base using semantic search. Returns relevant "
        "documents, FAQs, or information that matches the query. Use this when "
        "you need to find specific information to answer customer questions."
    )
    args_model = SearchKnowledgeArgs

    def __init__(
        self,
        backend: KnowledgeBackend,
        default_limit: int = DEFAULT_SEARCH_LIMIT,
        enabled: Optional[bool] = None,
    ) -> None:
        super().__init__(backend, enabled=enabled)
        self.default_limit = default_limit

    async def invoke(
        self, args: SearchKnowledgeArgs, context: ToolExecutionContext
    ) -> ToolResult:
        started_at = time.perf_counter()
        try:
            matches = await self.backend.search(
                args.query,
                context.user_id,
                context.tenant_id,
                args.limit or self.default_limit,
                args.filters,
            )
        except Exception as e:
            logger.error(f"search_knowledge failed for agent {context.agent_id}: {e}")
            return error_result(e, started_at)

        results = [
            {
                "rank": index,
                "content": match.metadata.get("content") or "",
                "title": match.metadata.get("title") or f"Result {index}",
                "score": round(match.score or 0.0, 2),
                "source": match.metadata.get("source") or "knowledge_base",
            }
            for index, match in enumerate(matches, start=1)
        ]
        logger.info(
            f"search_knowledge returned {len(results)} results for agent {context.agent_id}"
        )
        return success_result(
            {"results": results, "total_results": len(results), "query": args.query},
            started_at,
            SEARCH_SOURCE,
        )


# =============================================================================
# get_knowledge_by_id
# =============================================================================


class GetKnowledgeByIdTool(KnowledgeTool):
    """Full details of one knowledge entry."""

    name = "get_knowledge_by_id"
    description = (
        "Get a specific knowledge entry by its ID. Use this when you need the "
        "full details of a particular knowledge item."
    )
    args_model = GetKnowledgeByIdArgs

    async def invoke(
        self, args: GetKnowledgeByIdArgs, context: ToolExecutionContext
    ) -> ToolResult:
        started_at = time.perf_counter()
        try:
            entry = await self.backend.get_by_id(
                args.knowledge_id, context.user_id, context.tenant_id
            )
        except Exception as e:
            logger.error(f"get_knowledge_by_id failed for agent {context.agent_id}: {e}")
            return error_result(e, started_at)

        if entry is None:
            return error_result("Knowledge entry not found", started_at)

        return success_result(
            entry.model_dump(
                include={
                    "id",
                    "title",
                    "file_name",
                    "file_type",
                    "file_url",
                    "created_at",
                    "metadata",
                }
            ),
            started_at,
            DATABASE_SOURCE,
        )


# =============================================================================
# list_agent_knowledge
# =============================================================================


def _summarize(entry: KnowledgeEntry) -> dict[str, Any]:
    return entry.model_dump(include={"id", "title", "file_name", "file_type", "created_at"})


class ListAgentKnowledgeTool(KnowledgeTool):
    """Paginated list of the entries available to the agent."""

    name = "list_agent_knowledge"
    description = (
        "List all knowledge entries available to this agent. Use this to see "
        "what information the agent has access to."
    )
    args_model = ListAgentKnowledgeArgs

    def __init__(
        self,
        backend: KnowledgeBackend,
        max_limit: int = MAX_LIST_LIMIT,
        enabled: Optional[bool] = None,
    ) -> None:
        super().__init__(backend, enabled=enabled)
        self.max_limit = max_limit

    async def invoke(
        self, args: ListAgentKnowledgeArgs, context: ToolExecutionContext
    ) -> ToolResult:
        started_at = time.perf_counter()
        try:
            page = await self.backend.list_entries(
                context.user_id,
                context.tenant_id,
                context.agent_id,
                min(args.limit, self.max_limit),
                args.page,
            )
        except Exception as e:
            logger.error(f"list_agent_knowledge failed for agent {context.agent_id}: {e}")
            return error_result(e, started_at)

        return success_result(
            {
                "knowledge_entries": [_summarize(entry) for entry in page.entries],
                "pagination": page.pagination,
            },
            started_at,
            DATABASE_SOURCE,
        )


def knowledge_tools(
    backend: KnowledgeBackend, settings: Optional[Settings] = None
) -> list[Tool]:
    """
    Build the knowledge tools over one backend.

    Args:
        backend: Knowledge store the tools query.
        settings: Source of the search default and list cap (defaults apply
            when omitted).
    """
    default_limit = DEFAULT_SEARCH_LIMIT
    max_limit = MAX_LIST_LIMIT
    if settings is not None:
        default_limit = settings.knowledge_search_default_limit
        max_limit = settings.knowledge_list_max_limit
    return [
        SearchKnowledgeTool(backend, default_limit=default_limit),
        GetKnowledgeByIdTool(backend),
        ListAgentKnowledgeTool(backend, max_limit=max_limit),
    ]
