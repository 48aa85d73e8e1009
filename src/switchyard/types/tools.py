"""Tool-related type definitions.

These types describe the contract between a model that requests tool invocations and the graph node that
executes them.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Literal

from typing_extensions import NotRequired, TypedDict

logger = logging.getLogger(__name__)

JSONSchema = dict[str, Any]
"""Type alias for JSON Schema dictionaries."""


class ToolSpec(TypedDict):
    """Specification for a tool that can be offered to a model.

    Attributes:
        name: The unique name of the tool.
        description: A human-readable description of what the tool does.
        inputSchema: JSON Schema defining the expected input parameters, wrapped under a "json" key.
    """

    name: str
    description: str
    inputSchema: dict[Literal["json"], JSONSchema]


class ToolUse(TypedDict):
    """A request from the model to invoke a specific tool.

    Attributes:
        toolUseId: Unique identifier for this invocation, echoed back in the matching result.
        name: The name of the tool to invoke.
        input: The arguments for the tool.
    """

    toolUseId: str
    name: str
    input: Any


class ToolResultContent(TypedDict, total=False):
    """Content returned by a tool execution.

    Attributes:
        text: Text output.
        json: JSON-serializable output.
    """

    text: str
    json: Any


ToolResultStatus = Literal["success", "error"]


class ToolResult(TypedDict):
    """Result of a tool execution.

    Attributes:
        toolUseId: The id of the invocation this result answers.
        status: Whether the execution succeeded.
        content: List of result content returned by the tool.
    """

    toolUseId: str
    status: ToolResultStatus
    content: list[ToolResultContent]
    name: NotRequired[str]


class AgentTool(ABC):
    """Abstract base class for all tools a graph can invoke."""

    @property
    @abstractmethod
    def tool_name(self) -> str:
        """The unique name of the tool used for identification and invocation."""
        pass

    @property
    @abstractmethod
    def tool_spec(self) -> ToolSpec:
        """Tool specification offered to the model."""
        pass

    @property
    def tool_type(self) -> str:
        """The type of the tool implementation."""
        return "custom"

    @abstractmethod
    async def call(self, tool_input: Any) -> Any:
        """Invoke the tool with the arguments requested by the model.

        Args:
            tool_input: The tool arguments.

        Returns:
            The raw tool output. Strings become text content, other values become JSON content.

        Raises:
            Exception: Any failure. Callers convert it into an error tool result.
        """
        pass

    def __repr__(self) -> str:
        """Readable representation of the tool."""
        return f"{type(self).__name__}(tool_name={self.tool_name!r})"
