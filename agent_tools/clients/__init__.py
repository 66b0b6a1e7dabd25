"""Clients Package - HTTP factory and the knowledge service client."""

from agent_tools.clients.http import create_http_client
from agent_tools.clients.knowledge import (
    KnowledgeBackend,
    KnowledgeEntry,
    KnowledgeMatch,
    KnowledgePage,
    KnowledgeServiceClient,
    KnowledgeServiceError,
)

__all__ = [
    "create_http_client",
    "KnowledgeBackend",
    "KnowledgeEntry",
    "KnowledgeMatch",
    "KnowledgePage",
    "KnowledgeServiceClient",
    "KnowledgeServiceError",
]
