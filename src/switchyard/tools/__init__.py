"""Agent tool interfaces and utilities."""

from ..types.tools import AgentTool
from .decorator import DecoratedFunctionTool, tool
from .handoff import (
    HANDOFF_TOOL_PREFIX,
    HandoffTool,
    create_handoff_tool,
    handoff_acknowledgement,
    handoff_target,
    handoff_tool_name,
    is_handoff_tool_name,
)
from .registry import ToolRegistry

__all__ = [
    "HANDOFF_TOOL_PREFIX",
    "AgentTool",
    "DecoratedFunctionTool",
    "HandoffTool",
    "ToolRegistry",
    "create_handoff_tool",
    "handoff_acknowledgement",
    "handoff_target",
    "handoff_tool_name",
    "is_handoff_tool_name",
    "tool",
]
