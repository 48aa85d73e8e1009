"""Lifecycle events emitted while a compiled graph runs.

Order within one invocation:

- `RunStartedEvent` once.
- `RunStepEvent` after every node invocation. `LlmCalledEvent` and `ToolCalledEvent` are emitted from inside
  model and tool nodes while they run.
- `RunFinishedEvent` when the invocation completes or pauses on an interrupt, or `RunFailedEvent` when it raises.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional

from typing_extensions import override

from ..types.tools import ToolResultStatus
from .registry import BaseHookEvent

if TYPE_CHECKING:
    from ..graph.compiled import CompiledGraph, GraphResult
    from ..models.model import Usage


@dataclass
class RunEvent(BaseHookEvent):
    """Base class for events of a single graph invocation.

    Attributes:
        source: The graph being run.
        run_id: Identifier of the invocation.
    """

    source: "CompiledGraph"
    run_id: str


@dataclass
class RunStartedEvent(RunEvent):
    """Event triggered before the first node of an invocation runs.

    Attributes:
        thread_id: Thread being run, if checkpointed.
        input: State supplied by the caller.
    """

    thread_id: Optional[str] = None
    input: Optional[dict[str, Any]] = None


@dataclass
class RunStepEvent(RunEvent):
    """Event triggered after a node was invoked and its outcome applied.

    Attributes:
        step: Step number of the node invocation.
        node: Name of the node.
        next_node: Where control goes next. None when the node interrupted without a resolved route.
    """

    step: int = 0
    node: str = ""
    next_node: Optional[str] = None


@dataclass
class LlmCalledEvent(RunEvent):
    """Event triggered after a node received a model response.

    Attributes:
        node: Name of the calling node.
        message_count: Number of messages sent to the model.
        usage: Token usage reported by the model.
    """

    node: str = ""
    message_count: int = 0
    usage: Optional["Usage"] = None


@dataclass
class ToolCalledEvent(RunEvent):
    """Event triggered after a tool invocation produced its result.

    Attributes:
        node: Name of the tool node.
        tool_name: Name of the invoked tool.
        tool_use_id: Id of the invocation.
        status: Result status, "error" for unknown tools and raised exceptions.
    """

    node: str = ""
    tool_name: str = ""
    tool_use_id: str = ""
    status: ToolResultStatus = "success"


@dataclass
class RunFinishedEvent(RunEvent):
    """Event triggered when an invocation completed or paused.

    Note: This event uses reverse callback ordering.

    Attributes:
        result: The result returned to the caller.
    """

    result: Optional["GraphResult"] = None

    @property
    @override
    def should_reverse_callbacks(self) -> bool:
        """True to invoke callbacks in reverse order."""
        return True


@dataclass
class RunFailedEvent(RunEvent):
    """Event triggered when an invocation raised.

    Note: This event uses reverse callback ordering.

    Attributes:
        exception: The error propagated to the caller.
    """

    exception: Optional[BaseException] = None

    @property
    @override
    def should_reverse_callbacks(self) -> bool:
        """True to invoke callbacks in reverse order."""
        return True
