"""Graph node that executes the tool invocations requested by the latest assistant message."""

import asyncio
import json
import logging
from typing import Any, Iterable, Optional, Union

from typing_extensions import override

from ..hooks.events import ToolCalledEvent
from ..telemetry.tracer import get_tracer
from ..tools.handoff import handoff_acknowledgement, handoff_target
from ..tools.registry import ToolLike, ToolRegistry
from ..types.content import Message, get_tool_uses, pending_tool_uses, tool_result_message
from ..types.tools import ToolResult, ToolResultContent, ToolUse
from .context import get_run_context
from .edges import END
from .node import Continue, Node, NodeOutcome
from .state import State

logger = logging.getLogger(__name__)


def format_tool_output(output: Any) -> list[ToolResultContent]:
    """Convert a raw tool return value into tool result content."""
    if isinstance(output, str):
        return [{"text": output}]
    if output is None:
        return [{"text": ""}]

    try:
        json.dumps(output)
    except (TypeError, ValueError):
        return [{"text": str(output)}]
    return [{"json": output}]


class ToolNode(Node):
    """Executes the pending tool invocations of the latest assistant message.

    Invocations run concurrently, optionally bounded by `max_concurrency`. Results are appended to the transcript
    in the order the model requested them, whatever order they finish in. Unknown tools and tools that raise
    produce error results instead of failing the run. Calls to handoff tools (`transfer_to_<agent>`) are
    acknowledged without dispatch so routing can act on them.
    """

    def __init__(
        self,
        tools: Union[ToolRegistry, Iterable[ToolLike]] = (),
        *,
        name: str = "tools",
        max_concurrency: Optional[int] = None,
        messages_key: str = "messages",
    ) -> None:
        """Initialize the node.

        Args:
            tools: Registry or tools to dispatch to.
            name: Node name reported on events and spans.
            max_concurrency: Upper bound on simultaneous invocations. None means unbounded.
            messages_key: State field holding the transcript.
        """
        if max_concurrency is not None and max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")

        self.registry = tools if isinstance(tools, ToolRegistry) else ToolRegistry(tools)
        self.name = name
        self.max_concurrency = max_concurrency
        self.messages_key = messages_key
        self._tracer = get_tracer()

    @override
    async def process(self, state: State) -> NodeOutcome:
        """Run the pending tools and append one tool message per invocation.

        Raises:
            ValueError: If the state has no messages.
        """
        messages: list[Message] = state.get(self.messages_key) or []
        if not messages:
            raise ValueError(f"node=<{self.name}> | tool node requires at least one message in state")

        tool_uses = pending_tool_uses(messages)
        if not tool_uses:
            logger.debug("node=<%s> | no pending tool invocations", self.name)
            return Continue()

        semaphore = asyncio.Semaphore(self.max_concurrency) if self.max_concurrency else None
        logger.debug(
            "node=<%s>, tool_count=<%s>, max_concurrency=<%s> | executing tools",
            self.name,
            len(tool_uses),
            self.max_concurrency,
        )
        results = await asyncio.gather(*(self._run_tool(tool_use, semaphore) for tool_use in tool_uses))

        return Continue(
            {
                self.messages_key: [
                    tool_result_message(result["toolUseId"], result["content"], result["status"]) for result in results
                ]
            }
        )

    async def _run_tool(self, tool_use: ToolUse, semaphore: Optional[asyncio.Semaphore]) -> ToolResult:
        if semaphore is None:
            return await self._execute(tool_use)
        async with semaphore:
            return await self._execute(tool_use)

    async def _execute(self, tool_use: ToolUse) -> ToolResult:
        tool_name = tool_use["name"]
        tool_use_id = tool_use["toolUseId"]
        span = self._tracer.start_tool_call_span(tool_use)

        target = handoff_target(tool_name)
        if target is not None:
            result: ToolResult = {
                "toolUseId": tool_use_id,
                "status": "success",
                "content": [{"text": handoff_acknowledgement(target)}],
            }
        else:
            agent_tool = self.registry.lookup(tool_name)
            if agent_tool is None:
                logger.warning("tool_name=<%s> | unknown tool requested", tool_name)
                result = {
                    "toolUseId": tool_use_id,
                    "status": "error",
                    "content": [{"text": f"Unknown tool: {tool_name}"}],
                }
            else:
                try:
                    output = await self.registry.invoke(agent_tool, tool_use.get("input"))
                    result = {"toolUseId": tool_use_id, "status": "success", "content": format_tool_output(output)}
                except Exception as e:
                    logger.exception("tool_name=<%s> | failed to run tool", tool_name)
                    result = {"toolUseId": tool_use_id, "status": "error", "content": [{"text": f"Error: {e}"}]}

        self._tracer.end_tool_call_span(span, result)

        context = get_run_context()
        if context is not None:
            await context.hooks.invoke_callbacks_async(
                ToolCalledEvent(
                    source=context.graph,
                    run_id=context.run_id,
                    node=context.node,
                    tool_name=tool_name,
                    tool_use_id=tool_use_id,
                    status=result["status"],
                )
            )

        return result


def tools_condition(state: State, messages_key: str = "messages") -> str:
    """Route to "tools" when the last message requests tool invocations, otherwise to `END`."""
    messages = state.get(messages_key) or []
    if messages and messages[-1]["role"] == "assistant" and get_tool_uses(messages[-1]):
        return "tools"
    return END
