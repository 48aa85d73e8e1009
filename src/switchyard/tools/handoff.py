"""Handoff tools for transferring control between agents.

A handoff tool is an ordinary tool spec whose name carries a reserved prefix, `transfer_to_<agent>`. Models call
it like any other tool; the tool node acknowledges the call without dispatching it, and the graph's routing reads
the name to decide which agent runs next.
"""

import logging
from typing import Any, Optional

from typing_extensions import override

from ..types.tools import AgentTool, ToolSpec

logger = logging.getLogger(__name__)

HANDOFF_TOOL_PREFIX = "transfer_to_"


def handoff_tool_name(agent_name: str) -> str:
    """Return the reserved tool name that transfers control to an agent."""
    return f"{HANDOFF_TOOL_PREFIX}{agent_name}"


def handoff_target(tool_name: str) -> Optional[str]:
    """Return the agent a handoff tool name points to, or None for ordinary tools."""
    if tool_name.startswith(HANDOFF_TOOL_PREFIX) and len(tool_name) > len(HANDOFF_TOOL_PREFIX):
        return tool_name[len(HANDOFF_TOOL_PREFIX) :]
    return None


def is_handoff_tool_name(tool_name: str) -> bool:
    """Check whether a tool name uses the reserved handoff prefix."""
    return handoff_target(tool_name) is not None


def handoff_acknowledgement(agent_name: str) -> str:
    """Return the tool result text recorded for a transfer."""
    return f"Transferring to agent '{agent_name}'."


class HandoffTool(AgentTool):
    """Parameterless tool whose only effect is naming the agent to transfer to."""

    def __init__(self, agent_name: str, description: Optional[str] = None) -> None:
        """Initialize the tool.

        Args:
            agent_name: Name of the agent that receives control.
            description: Description offered to the model.
        """
        self.agent_name = agent_name
        self._tool_spec: ToolSpec = {
            "name": handoff_tool_name(agent_name),
            "description": description or f"Transfer the conversation to the '{agent_name}' agent.",
            "inputSchema": {"json": {"type": "object", "properties": {}}},
        }

    @property
    @override
    def tool_name(self) -> str:
        return self._tool_spec["name"]

    @property
    @override
    def tool_spec(self) -> ToolSpec:
        return self._tool_spec

    @property
    @override
    def tool_type(self) -> str:
        return "handoff"

    @override
    async def call(self, tool_input: Any) -> str:
        """Return the transfer acknowledgement."""
        return handoff_acknowledgement(self.agent_name)


def create_handoff_tool(agent_name: str, description: Optional[str] = None) -> HandoffTool:
    """Create a tool that transfers control to the named agent.

    Args:
        agent_name: Name of the target agent.
        description: Custom description offered to the model.

    Returns:
        A tool named `transfer_to_<agent_name>`.
    """
    return HandoffTool(agent_name, description)
