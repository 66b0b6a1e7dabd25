"""
Knowledge Service Client

This module provides the knowledge backend used by the built-in knowledge
tools: an abstract KnowledgeBackend port and an httpx adapter for a REST
knowledge service that owns embeddings, vector search and knowledge records.

Pattern: Port and adapter (tools depend on KnowledgeBackend only)
Pattern: Client adapter for microservice communication

Wire contract (JSON):
    POST /search             {query, user_id, tenant_id, limit, filters?}
                             -> {"results": [{id, score, metadata}]}
    GET  /knowledge/{id}     ?user_id&tenant_id -> entry (404 when absent)
    GET  /knowledge          ?user_id&tenant_id&agent_id&limit&page
                             -> {"knowledge": [entry], "pagination": {...}}
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx
from pydantic import BaseModel, Field

from agent_tools.clients.http import create_http_client
from agent_tools.core.exceptions import AgentToolsException


class KnowledgeServiceError(AgentToolsException):
    """Exception for knowledge service errors."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message, error_code="KNOWLEDGE_SERVICE_ERROR")
        self.status_code = status_code


# =============================================================================
# Response Models
# =============================================================================


class KnowledgeMatch(BaseModel):
    """A single semantic search hit.

    Attributes:
        id: Identifier of the matched vector/chunk
        score: Similarity score
        metadata: Stored metadata (content, title, source, ...)
    """

    id: Optional[str] = Field(default=None, description="Match identifier")
    score: float = Field(default=0.0, description="Similarity score")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Match metadata")


class KnowledgeEntry(BaseModel):
    """A knowledge record."""

    id: str
    title: Optional[str] = None
    file_name: Optional[str] = None
    file_type: Optional[str] = None
    file_url: Optional[str] = None
    created_at: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class KnowledgePage(BaseModel):
    """One page of knowledge records with the service's pagination block."""

    entries: list[KnowledgeEntry] = Field(default_factory=list)
    pagination: dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# KnowledgeBackend Port
# =============================================================================


class KnowledgeBackend(ABC):
    """
    Abstract knowledge store used by the knowledge tools.

    Every lookup is scoped to the requesting user and tenant.
    """

    @abstractmethod
    async def search(
        self,
        query: str,
        user_id: Optional[str],
        tenant_id: str,
        limit: int,
        filters: Optional[dict[str, Any]] = None,
    ) -> list[KnowledgeMatch]:
        """Semantic search, best match first."""
        ...

    @abstractmethod
    async def get_by_id(
        self, knowledge_id: str, user_id: Optional[str], tenant_id: str
    ) -> Optional[KnowledgeEntry]:
        """Fetch one entry, or None when it does not exist."""
        ...

    @abstractmethod
    async def list_entries(
        self,
        user_id: Optional[str],
        tenant_id: str,
        agent_id: str,
        limit: int,
        page: int,
    ) -> KnowledgePage:
        """List the entries available to an agent."""
        ...

    async def close(self) -> None:
        """Release network resources. No-op by default."""
        return None


# =============================================================================
# KnowledgeServiceClient
# =============================================================================


class KnowledgeServiceClient(KnowledgeBackend):
    """
    HTTP client for the knowledge service.

    Example:
        >>> client = KnowledgeServiceClient(base_url="http://localhost:8081")
        >>> matches = await client.search("refund policy", "user-1", "tenant-1", 5)
        >>> matches[0].metadata["title"]
        'Refunds'
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout_seconds: float = 30.0,
    ) -> None:
        """
        Initialize KnowledgeServiceClient.

        Args:
            base_url: Base URL of the knowledge service
            http_client: Optional pre-configured HTTP client (for testing)
            timeout_seconds: Request timeout in seconds
        """
        if http_client is not None:
            self._client = http_client
            self._owns_client = False
        else:
            self._client = create_http_client(
                base_url=base_url or "http://localhost:8081",
                timeout_seconds=timeout_seconds,
            )
            self._owns_client = True

    async def close(self) -> None:
        """Close the HTTP client if owned by this instance."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "KnowledgeServiceClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    # =========================================================================
    # KnowledgeBackend
    # =========================================================================

    async def search(
        self,
        query: str,
        user_id: Optional[str],
        tenant_id: str,
        limit: int,
        filters: Optional[dict[str, Any]] = None,
    ) -> list[KnowledgeMatch]:
        """
        Semantic search over the caller's knowledge.

        Raises:
            KnowledgeServiceError: If the service is unavailable or returns an error
        """
        payload: dict[str, Any] = {
            "query": query,
            "user_id": user_id,
            "tenant_id": tenant_id,
            "limit": limit,
        }
        if filters:
            payload["filters"] = filters

        data = await self._request("POST", "/search", "Knowledge search", json=payload)
        return [KnowledgeMatch.model_validate(item) for item in data.get("results", [])]

    async def get_by_id(
        self, knowledge_id: str, user_id: Optional[str], tenant_id: str
    ) -> Optional[KnowledgeEntry]:
        """
        Fetch one knowledge entry.

        Returns:
            The entry, or None when the service answers 404.

        Raises:
            KnowledgeServiceError: For any other failure
        """
        try:
            data = await self._request(
                "GET",
                f"/knowledge/{knowledge_id}",
                "Get knowledge",
                params=self._scope_params(user_id, tenant_id),
            )
        except KnowledgeServiceError as e:
            if e.status_code == 404:
                return None
            raise
        return KnowledgeEntry.model_validate(data)

    async def list_entries(
        self,
        user_id: Optional[str],
        tenant_id: str,
        agent_id: str,
        limit: int,
        page: int,
    ) -> KnowledgePage:
        """
        List the entries available to an agent.

        Raises:
            KnowledgeServiceError: If the service is unavailable or returns an error
        """
        params = self._scope_params(user_id, tenant_id)
        params.update({"agent_id": agent_id, "limit": limit, "page": page})
        data = await self._request("GET", "/knowledge", "List knowledge", params=params)
        return KnowledgePage(
            entries=[KnowledgeEntry.model_validate(item) for item in data.get("knowledge", [])],
            pagination=data.get("pagination", {}),
        )

    # =========================================================================
    # Internals
    # =========================================================================

    @staticmethod
    def _scope_params(user_id: Optional[str], tenant_id: str) -> dict[str, Any]:
        params: dict[str, Any] = {"tenant_id": tenant_id}
        if user_id:
            params["user_id"] = user_id
        return params

    async def _request(
        self, method: str, path: str, operation: str, **kwargs: Any
    ) -> dict[str, Any]:
        """Send a request and decode the JSON body, mapping failures."""
        try:
            response = await self._client.request(method, path, **kwargs)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            raise KnowledgeServiceError(
                f"{operation} error: {e}", status_code=e.response.status_code
            ) from e
        except httpx.ConnectError as e:
            raise KnowledgeServiceError(f"Knowledge service unavailable: {e}") from e
        except httpx.TimeoutException as e:
            raise KnowledgeServiceError(f"{operation} request timed out: {e}") from e
        except (httpx.HTTPError, ValueError) as e:
            raise KnowledgeServiceError(f"{operation} failed: {e}") from e
