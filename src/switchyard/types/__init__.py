"""SDK type definitions."""

from .content import ContentBlock, Message, Messages, Role
from .exceptions import (
    CheckpointError,
    GraphExecutionError,
    GraphRecursionError,
    GraphRoutingError,
    GraphValidationError,
    NodeExecutionError,
)
from .tools import AgentTool, ToolResult, ToolResultContent, ToolSpec, ToolUse

__all__ = [
    "AgentTool",
    "CheckpointError",
    "ContentBlock",
    "GraphExecutionError",
    "GraphRecursionError",
    "GraphRoutingError",
    "GraphValidationError",
    "Message",
    "Messages",
    "NodeExecutionError",
    "Role",
    "ToolResult",
    "ToolResultContent",
    "ToolSpec",
    "ToolUse",
]
