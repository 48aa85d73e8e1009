"""Model-calling node and the prebuilt tool-calling agent loop."""

import logging
from typing import Iterable, Optional, Sequence, Union

from typing_extensions import override

from ..graph.builder import DEFAULT_RECURSION_LIMIT, StateGraph
from ..graph.checkpoint import Checkpointer
from ..graph.compiled import CompiledGraph
from ..graph.context import get_run_context
from ..graph.edges import END
from ..graph.node import Continue, Node, NodeOutcome
from ..graph.state import MessagesState, State
from ..graph.tool_node import ToolNode, tools_condition
from ..hooks.events import LlmCalledEvent
from ..hooks.registry import HookProvider
from ..models.model import Model
from ..store.base import BaseStore
from ..tools.registry import ToolLike, ToolRegistry
from ..types.content import Message

logger = logging.getLogger(__name__)


class ChatModelNode(Node):
    """Sends the transcript to a model and appends the reply.

    The reply may request tool invocations. Running them is left to a `ToolNode`.
    """

    def __init__(
        self,
        model: Model,
        tools: Union[ToolRegistry, Iterable[ToolLike]] = (),
        *,
        system_prompt: Optional[str] = None,
        name: Optional[str] = None,
        messages_key: str = "messages",
    ) -> None:
        """Initialize the node.

        Args:
            model: The model to call.
            tools: Tools offered to the model.
            system_prompt: System prompt sent with every call.
            name: Agent name stamped on the replies.
            messages_key: State field holding the transcript.
        """
        self.model = model
        self.registry = tools if isinstance(tools, ToolRegistry) else ToolRegistry(tools)
        self.system_prompt = system_prompt
        self.name = name
        self.messages_key = messages_key

    @override
    async def process(self, state: State) -> NodeOutcome:
        """Call the model with the transcript and append its reply."""
        messages: list[Message] = state.get(self.messages_key) or []
        tool_specs = self.registry.get_all_tool_specs()

        logger.debug(
            "agent=<%s>, message_count=<%s>, tool_count=<%s> | calling model",
            self.name,
            len(messages),
            len(tool_specs),
        )
        response = await self.model.complete(messages, tool_specs or None, self.system_prompt)

        message = response["message"]
        if self.name:
            message = {**message, "name": self.name}

        context = get_run_context()
        if context is not None:
            await context.hooks.invoke_callbacks_async(
                LlmCalledEvent(
                    source=context.graph,
                    run_id=context.run_id,
                    node=context.node,
                    message_count=len(messages),
                    usage=response.get("usage"),
                )
            )

        return Continue({self.messages_key: [message]})

    def __repr__(self) -> str:
        """Readable representation of the node."""
        return f"ChatModelNode(name={self.name!r}, tools={self.registry.tool_names!r})"


def create_agent(
    model: Model,
    tools: Sequence[ToolLike] = (),
    *,
    system_prompt: Optional[str] = None,
    checkpointer: Optional[Checkpointer] = None,
    store: Optional[BaseStore] = None,
    interrupt_before: Iterable[str] = (),
    interrupt_after: Iterable[str] = (),
    hooks: Optional[list[HookProvider]] = None,
    name: str = "agent",
    max_concurrency: Optional[int] = None,
    recursion_limit: int = DEFAULT_RECURSION_LIMIT,
) -> CompiledGraph:
    """Build a tool-calling agent loop.

    The graph has an "agent" node calling the model and, when tools are given, a "tools" node running them:
    agent -> tools -> agent until the model answers without requesting tools.

    Args:
        model: The model driving the agent.
        tools: Tools the agent may call.
        system_prompt: System prompt of the agent.
        checkpointer: Persists thread checkpoints.
        store: Shared key-value store.
        interrupt_before: Nodes ("agent", "tools") to pause ahead of.
        interrupt_after: Nodes to pause after.
        hooks: Hook providers receiving lifecycle events.
        name: Graph name used in logs and traces.
        max_concurrency: Upper bound on simultaneous tool invocations.
        recursion_limit: Default cap on node invocations per call.

    Returns:
        The compiled agent graph over `MessagesState`.
    """
    registry = ToolRegistry(tools)

    builder = StateGraph(MessagesState)
    builder.add_node("agent", ChatModelNode(model, registry, system_prompt=system_prompt))
    builder.set_entry_point("agent")

    if len(registry):
        builder.add_node("tools", ToolNode(registry, max_concurrency=max_concurrency))
        builder.add_conditional_edges("agent", tools_condition, {"tools": "tools", END: END})
        builder.add_edge("tools", "agent")
    else:
        builder.set_finish_point("agent")

    return builder.compile(
        checkpointer,
        store=store,
        interrupt_before=interrupt_before,
        interrupt_after=interrupt_after,
        hooks=hooks,
        name=name,
        recursion_limit=recursion_limit,
    )


create_react_agent = create_agent
