"""
Tool Registry

This module implements the registry holding every tool available to agents,
together with the function declaration derived from each tool's argument
schema.

Pattern: Service Registry (tool inventory keyed by name)
Pattern: Dependency Injection (constructed explicitly and passed to consumers)

The registry stores one entry per tool name:
1. The Tool instance (with handler) for execution
2. Its FunctionDeclaration for the generative model

Entries are populated at construction or startup and only read afterwards,
so concurrent readers need no locking.
"""

import logging
from collections.abc import Iterable
from typing import NamedTuple, Optional

from agent_tools.models.declarations import FunctionDeclaration
from agent_tools.models.domain import ToolCategory
from agent_tools.tools.base import Tool
from agent_tools.tools.schema import SchemaTranslator

logger = logging.getLogger(__name__)


class RegisteredTool(NamedTuple):
    """A tool paired with its translated declaration."""

    tool: Tool
    declaration: FunctionDeclaration


class ToolRegistry:
    """
    Registry for managing available tools.

    Each registered tool is translated once into a FunctionDeclaration and
    stored by name. Agent-scoped lookups preserve the caller's order and drop
    unknown or disabled names silently.

    Attributes:
        _entries: Dictionary mapping tool names to RegisteredTool entries.
        _translator: Translator used to build declarations.

    Example:
        >>> registry = ToolRegistry([SearchKnowledgeTool(backend)])
        >>> registry.get_function_declarations_for_agent(["search_knowledge"])
        [FunctionDeclaration(name='search_knowledge', ...)]
    """

    def __init__(
        self,
        tools: Optional[Iterable[Tool]] = None,
        translator: Optional[SchemaTranslator] = None,
    ) -> None:
        """
        Initialize the registry.

        Args:
            tools: Tools to register immediately.
            translator: Schema translator (default: SchemaTranslator()).
        """
        self._translator = translator or SchemaTranslator()
        self._entries: dict[str, RegisteredTool] = {}
        if tools:
            self.register(tools)

    # =========================================================================
    # Registration
    # =========================================================================

    def register(self, tools: Iterable[Tool]) -> None:
        """
        Register tools and build their declarations.

        A tool whose name is already registered replaces the previous entry
        (last write wins).

        Args:
            tools: Tools to register.

        Raises:
            SchemaTranslationError: If a tool's argument schema is not a
                pydantic model.
        """
        for tool in tools:
            declaration = self._translator.to_function_declaration(
                tool.name, tool.description, tool.args_model
            )
            if tool.name in self._entries:
                logger.warning(f"Tool '{tool.name}' already registered, replacing it")
            self._entries[tool.name] = RegisteredTool(tool, declaration)
            logger.debug(f"Registered tool: {tool.name}")

    def unregister(self, name: str) -> None:
        """
        Remove a tool from the registry.

        Note:
            Does not raise an error if the tool doesn't exist.
        """
        if self._entries.pop(name, None) is not None:
            logger.debug(f"Unregistered tool: {name}")

    # =========================================================================
    # Lookup
    # =========================================================================

    def get_tool(self, name: str) -> Optional[Tool]:
        """Get a tool by name, or None if it is not registered."""
        entry = self._entries.get(name)
        return entry.tool if entry else None

    def get_function_declaration(self, name: str) -> Optional[FunctionDeclaration]:
        """Get a tool's declaration by name, or None if it is not registered."""
        entry = self._entries.get(name)
        return entry.declaration if entry else None

    def has_tool(self, name: str) -> bool:
        """Check if a tool is registered (enabled or not)."""
        return name in self._entries

    def get_all_tool_names(self) -> list[str]:
        """Names of all registered tools, in registration order."""
        return list(self._entries)

    # =========================================================================
    # Filtered Views
    # =========================================================================

    def get_enabled_tools(self) -> list[Tool]:
        """All enabled tools, in registration order."""
        return [entry.tool for entry in self._entries.values() if entry.tool.enabled]

    def get_enabled_function_declarations(self) -> list[FunctionDeclaration]:
        """Declarations of all enabled tools, in registration order."""
        return [
            entry.declaration
            for entry in self._entries.values()
            if entry.tool.enabled
        ]

    def get_tools_for_agent(self, tool_names: Iterable[str]) -> list[Tool]:
        """
        Tools an agent has enabled.

        Preserves the order of ``tool_names``; unknown and disabled names are
        dropped.
        """
        return [entry.tool for entry in self._agent_entries(tool_names)]

    def get_function_declarations_for_agent(
        self, tool_names: Iterable[str]
    ) -> list[FunctionDeclaration]:
        """
        Declarations for the tools an agent has enabled.

        Same filtering and ordering as get_tools_for_agent().
        """
        return [entry.declaration for entry in self._agent_entries(tool_names)]

    def get_tools_by_category(self, category: ToolCategory) -> list[Tool]:
        """Enabled tools in the given category."""
        return [
            tool for tool in self.get_enabled_tools() if tool.category == category
        ]

    def _agent_entries(self, tool_names: Iterable[str]) -> list[RegisteredTool]:
        entries = []
        for name in tool_names:
            entry = self._entries.get(name)
            if entry is not None and entry.tool.enabled:
                entries.append(entry)
        return entries

    # =========================================================================
    # Container Protocol
    # =========================================================================

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._entries
