"""Supervisor pattern: one coordinating model delegates work to named sub-agents.

Graph layout:
    ```
    supervisor --(transfer_to_<agent>)--> handoff --> <agent> --> supervisor
    supervisor --(no transfer to a known agent)--> END
    ```
"""

import logging
from typing import Iterable, Mapping, Optional, Union

from ..graph.builder import DEFAULT_RECURSION_LIMIT, StateGraph
from ..graph.checkpoint import Checkpointer
from ..graph.compiled import CompiledGraph
from ..graph.edges import END
from ..graph.node import Node, NodeFunc
from ..graph.state import MessagesState, State
from ..graph.tool_node import ToolNode
from ..hooks.registry import HookProvider
from ..models.model import Model
from ..store.base import BaseStore
from ..tools.handoff import create_handoff_tool, handoff_target
from ..types.content import get_tool_uses, last_message
from ..types.exceptions import GraphValidationError
from .agent import ChatModelNode

logger = logging.getLogger(__name__)

SUPERVISOR_NODE = "supervisor"
HANDOFF_NODE = "handoff"

DEFAULT_SUPERVISOR_PROMPT = (
    "You are a supervisor managing these agents: {agents}. "
    "Use the transfer tools to delegate tasks to the appropriate agent. "
    "When the task is complete, respond directly to the user."
)


def has_transfer(state: State, agent_names: Iterable[str]) -> bool:
    """Check whether the latest assistant turn transfers to one of the agents."""
    names = set(agent_names)
    message = last_message(state.get("messages") or [], role="assistant")
    return any(handoff_target(tool_use["name"]) in names for tool_use in get_tool_uses(message))


def route_handoff(state: State, agent_names: Iterable[str]) -> str:
    """Return the agent named by the first transfer call of the latest assistant turn, or the supervisor."""
    names = set(agent_names)
    message = last_message(state.get("messages") or [], role="assistant")

    for tool_use in get_tool_uses(message):
        target = handoff_target(tool_use["name"])
        if target in names:
            return target
        if target is not None:
            logger.warning("target=<%s> | skipping transfer to unknown agent", target)

    return SUPERVISOR_NODE


def create_supervisor(
    model: Model,
    agents: Mapping[str, Union[CompiledGraph, Node, NodeFunc]],
    *,
    system_prompt: Optional[str] = None,
    checkpointer: Optional[Checkpointer] = None,
    store: Optional[BaseStore] = None,
    interrupt_before: Iterable[str] = (),
    interrupt_after: Iterable[str] = (),
    hooks: Optional[list[HookProvider]] = None,
    name: str = "supervisor",
    recursion_limit: int = DEFAULT_RECURSION_LIMIT,
) -> CompiledGraph:
    """Build a supervisor graph.

    The supervisor model is offered one `transfer_to_<agent>` tool per sub-agent. A transfer runs that agent on
    the shared transcript, then hands control back to the supervisor. The run ends on the first supervisor turn
    without a transfer to a known agent, whatever other tool calls it makes.

    Args:
        model: The supervisor's model.
        agents: Sub-agents by name. Compiled graphs run as sub-graphs.
        system_prompt: Supervisor prompt. Defaults to a prompt listing the agents.
        checkpointer: Persists thread checkpoints.
        store: Shared key-value store.
        interrupt_before: Nodes to pause ahead of.
        interrupt_after: Nodes to pause after.
        hooks: Hook providers receiving lifecycle events.
        name: Graph name used in logs and traces.
        recursion_limit: Default cap on node invocations per call.

    Raises:
        GraphValidationError: If there are no agents or an agent uses a reserved node name.
    """
    if not agents:
        raise GraphValidationError("supervisor requires at least one agent")

    reserved = sorted({SUPERVISOR_NODE, HANDOFF_NODE} & set(agents))
    if reserved:
        raise GraphValidationError(f"Agent names {reserved} are reserved by the supervisor graph")

    agent_names = list(agents)
    prompt = system_prompt or DEFAULT_SUPERVISOR_PROMPT.format(agents=", ".join(agent_names))
    handoff_tools = [create_handoff_tool(agent_name) for agent_name in agent_names]

    builder = StateGraph(MessagesState)
    builder.add_node(SUPERVISOR_NODE, ChatModelNode(model, handoff_tools, system_prompt=prompt, name=SUPERVISOR_NODE))
    builder.add_node(HANDOFF_NODE, ToolNode(name=HANDOFF_NODE))
    builder.set_entry_point(SUPERVISOR_NODE)

    def supervisor_condition(state: State) -> str:
        if has_transfer(state, agent_names):
            return HANDOFF_NODE
        logger.debug("node=<%s> | no transfer in the latest turn, ending the run", SUPERVISOR_NODE)
        return END

    def handoff_condition(state: State) -> str:
        return route_handoff(state, agent_names)

    builder.add_conditional_edges(SUPERVISOR_NODE, supervisor_condition, [HANDOFF_NODE, END])
    builder.add_conditional_edges(HANDOFF_NODE, handoff_condition, [*agent_names, SUPERVISOR_NODE])

    for agent_name, agent in agents.items():
        builder.add_node(agent_name, agent)
        builder.add_edge(agent_name, SUPERVISOR_NODE)

    return builder.compile(
        checkpointer,
        store=store,
        interrupt_before=interrupt_before,
        interrupt_after=interrupt_after,
        hooks=hooks,
        name=name,
        recursion_limit=recursion_limit,
    )
