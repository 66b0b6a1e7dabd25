"""
Built-in Tools Package

Tools shipped with the service. The knowledge tools proxy to a
KnowledgeBackend (see agent_tools.clients.knowledge).
"""

from agent_tools.tools.builtin.knowledge import (
    GetKnowledgeByIdTool,
    ListAgentKnowledgeTool,
    SearchKnowledgeTool,
    knowledge_tools,
)

__all__ = [
    "SearchKnowledgeTool",
    "GetKnowledgeByIdTool",
    "ListAgentKnowledgeTool",
    "knowledge_tools",
]
