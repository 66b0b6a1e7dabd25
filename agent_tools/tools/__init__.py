"""
Tools Package - Tool Interface, Registry and Execution

This package provides the Tool interface, the schema translator that derives
function declarations from argument models, the registry holding available
tools and the executor that runs requested calls.
"""

from agent_tools.tools.base import FunctionTool, Tool, error_result, success_result
from agent_tools.tools.executor import PermissionResult, ToolExecutor
from agent_tools.tools.registry import ToolRegistry
from agent_tools.tools.schema import SchemaTranslator, build_function_declaration

__all__ = [
    "Tool",
    "FunctionTool",
    "success_result",
    "error_result",
    "SchemaTranslator",
    "build_function_declaration",
    "ToolRegistry",
    "ToolExecutor",
    "PermissionResult",
]
