"""Tool registry.

Maps tool names to `AgentTool` instances and dispatches invocations to them.
"""

import logging
from typing import Any, Callable, Iterable, Iterator, Optional, Union

from ..types.tools import AgentTool, ToolSpec
from ._validator import check_tool_name_validity
from .decorator import tool

logger = logging.getLogger(__name__)

ToolLike = Union[AgentTool, Callable[..., Any]]


class ToolRegistry:
    """Central registry for the tools a graph can invoke."""

    def __init__(self, tools: Iterable[ToolLike] = ()) -> None:
        """Initialize the registry.

        Args:
            tools: Tools or plain functions to register. Functions are wrapped with `@tool`.
        """
        self.registry: dict[str, AgentTool] = {}
        for item in tools:
            self.register(item)

    def register(self, item: ToolLike) -> AgentTool:
        """Register a tool.

        Args:
            item: An `AgentTool`, or a plain function that gets wrapped with `@tool`.

        Returns:
            The registered tool.

        Raises:
            ValueError: If the name is invalid or already registered.
        """
        agent_tool = item if isinstance(item, AgentTool) else tool(item)

        is_valid, message = check_tool_name_validity(agent_tool.tool_name)
        if not is_valid:
            raise ValueError(message)
        if agent_tool.tool_name in self.registry:
            raise ValueError(f"Tool name '{agent_tool.tool_name}' already exists")

        logger.debug("tool_name=<%s>, tool_type=<%s> | registering tool", agent_tool.tool_name, agent_tool.tool_type)
        self.registry[agent_tool.tool_name] = agent_tool
        return agent_tool

    def lookup(self, name: str) -> Optional[AgentTool]:
        """Return the tool registered under a name, or None."""
        return self.registry.get(name)

    async def invoke(self, agent_tool: AgentTool, tool_input: Any) -> Any:
        """Invoke a registered tool with model-supplied arguments.

        Raises:
            Exception: Whatever the tool raises.
        """
        logger.debug("tool_name=<%s> | invoking tool", agent_tool.tool_name)
        return await agent_tool.call(tool_input)

    def get_all_tool_specs(self) -> list[ToolSpec]:
        """Return the specs of all registered tools, in registration order."""
        return [agent_tool.tool_spec for agent_tool in self.registry.values()]

    @property
    def tool_names(self) -> list[str]:
        """Names of all registered tools, in registration order."""
        return list(self.registry)

    def __contains__(self, name: object) -> bool:
        """Check whether a tool name is registered."""
        return name in self.registry

    def __iter__(self) -> Iterator[AgentTool]:
        """Iterate over the registered tools."""
        return iter(self.registry.values())

    def __len__(self) -> int:
        """Number of registered tools."""
        return len(self.registry)
