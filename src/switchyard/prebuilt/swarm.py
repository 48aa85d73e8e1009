"""Swarm pattern: peer agents hand the conversation to each other.

Every agent can transfer to every other agent through `transfer_to_<agent>` tools. All tool calls go through one
shared "tools" node; afterwards control moves to the transfer target, or back to the agent that made the calls.
The thread remembers the active agent, so the next invocation starts with whoever spoke last.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from typing_extensions import NotRequired, override

from ..graph.builder import DEFAULT_RECURSION_LIMIT, StateGraph
from ..graph.checkpoint import Checkpointer
from ..graph.compiled import CompiledGraph
from ..graph.edges import END
from ..graph.node import Continue, NodeOutcome
from ..graph.state import MessagesState, State
from ..graph.tool_node import ToolNode, tools_condition
from ..hooks.registry import HookProvider
from ..models.model import Model
from ..store.base import BaseStore
from ..tools.handoff import create_handoff_tool, handoff_target, is_handoff_tool_name
from ..tools.registry import ToolLike, ToolRegistry
from ..types.content import get_tool_uses, last_message
from ..types.exceptions import GraphValidationError
from .agent import ChatModelNode

logger = logging.getLogger(__name__)

TOOLS_NODE = "tools"


class SwarmState(MessagesState):
    """Transcript plus the name of the agent currently holding the conversation."""

    active_agent: NotRequired[str]


@dataclass
class SwarmAgent:
    """Definition of one swarm peer.

    Attributes:
        name: Unique agent name, also its node name.
        model: Model driving the agent.
        tools: The agent's own tools. Handoff tools to its peers are added automatically.
        system_prompt: System prompt of the agent.
        description: Description of the agent offered to peers in their handoff tools.
    """

    name: str
    model: Model
    tools: Sequence[ToolLike] = field(default_factory=tuple)
    system_prompt: Optional[str] = None
    description: Optional[str] = None


class SwarmAgentNode(ChatModelNode):
    """Model node that records itself as the active agent."""

    @override
    async def process(self, state: State) -> NodeOutcome:
        """Call the model and mark this agent active."""
        outcome = await super().process(state)
        return Continue({**outcome.delta, "active_agent": self.name})  # type: ignore[union-attr]


def route_after_tools(state: State, agent_names: Sequence[str]) -> str:
    """Return the transfer target of the latest tool-calling turn, or the agent that made the calls."""
    message = last_message(state.get("messages") or [], role="assistant")

    for tool_use in get_tool_uses(message):
        target = handoff_target(tool_use["name"])
        if target in agent_names:
            logger.debug("target=<%s> | handing off", target)
            return target

    return state.get("active_agent") or (message or {}).get("name") or agent_names[0]


def _merge_tools(shared: ToolRegistry, agent_name: str, own: ToolRegistry) -> None:
    for agent_tool in own:
        if is_handoff_tool_name(agent_tool.tool_name):
            raise GraphValidationError(
                f"Tool '{agent_tool.tool_name}' of agent '{agent_name}' uses the reserved handoff prefix"
            )
        existing = shared.lookup(agent_tool.tool_name)
        if existing is None:
            shared.register(agent_tool)
        elif existing.tool_spec != agent_tool.tool_spec:
            raise GraphValidationError(
                f"Tool '{agent_tool.tool_name}' of agent '{agent_name}' conflicts with a tool of another agent"
            )


def create_swarm(
    agents: Sequence[SwarmAgent],
    *,
    default_active_agent: Optional[str] = None,
    checkpointer: Optional[Checkpointer] = None,
    store: Optional[BaseStore] = None,
    interrupt_before: Iterable[str] = (),
    interrupt_after: Iterable[str] = (),
    hooks: Optional[list[HookProvider]] = None,
    max_concurrency: Optional[int] = None,
    name: str = "swarm",
    recursion_limit: int = DEFAULT_RECURSION_LIMIT,
) -> CompiledGraph:
    """Build a swarm of peer agents.

    Args:
        agents: The peers. The first one is active by default.
        default_active_agent: Agent that starts a thread with no active agent yet.
        checkpointer: Persists thread checkpoints, including the active agent.
        store: Shared key-value store.
        interrupt_before: Nodes to pause ahead of.
        interrupt_after: Nodes to pause after.
        hooks: Hook providers receiving lifecycle events.
        max_concurrency: Upper bound on simultaneous tool invocations.
        name: Graph name used in logs and traces.
        recursion_limit: Default cap on node invocations per call.

    Raises:
        GraphValidationError: If the swarm is empty, names repeat, a name is reserved, or tools conflict.
    """
    if not agents:
        raise GraphValidationError("swarm requires at least one agent")

    agent_names = [agent.name for agent in agents]
    duplicates = sorted(agent_name for agent_name, count in Counter(agent_names).items() if count > 1)
    if duplicates:
        raise GraphValidationError(f"Duplicate swarm agent names: {duplicates}")
    if TOOLS_NODE in agent_names:
        raise GraphValidationError(f"Agent name '{TOOLS_NODE}' is reserved by the swarm graph")

    default_active_agent = default_active_agent or agent_names[0]
    if default_active_agent not in agent_names:
        raise GraphValidationError(f"Default active agent '{default_active_agent}' is not part of the swarm")

    builder = StateGraph(SwarmState)
    shared_tools = ToolRegistry()

    for agent in agents:
        own_tools = ToolRegistry(agent.tools)
        _merge_tools(shared_tools, agent.name, own_tools)

        for peer in agents:
            if peer.name != agent.name:
                own_tools.register(create_handoff_tool(peer.name, peer.description))

        builder.add_node(
            agent.name,
            SwarmAgentNode(agent.model, own_tools, system_prompt=agent.system_prompt, name=agent.name),
        )
        builder.add_conditional_edges(agent.name, tools_condition, {"tools": TOOLS_NODE, END: END})

    builder.add_node(TOOLS_NODE, ToolNode(shared_tools, max_concurrency=max_concurrency))

    def entry_condition(state: State) -> str:
        return state.get("active_agent") or default_active_agent

    def tools_route(state: State) -> str:
        return route_after_tools(state, agent_names)

    builder.set_conditional_entry_point(entry_condition, agent_names)
    builder.add_conditional_edges(TOOLS_NODE, tools_route, agent_names)

    return builder.compile(
        checkpointer,
        store=store,
        interrupt_before=interrupt_before,
        interrupt_after=interrupt_after,
        hooks=hooks,
        name=name,
        recursion_limit=recursion_limit,
    )
