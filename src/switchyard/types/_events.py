"""Events yielded by `CompiledGraph.stream_async`.

Each event is a dict with a "type" key, so callers can consume the stream without importing these classes.
"""

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..graph.compiled import GraphResult
    from ..interrupt import Interrupt


class TypedEvent(dict):
    """Base class for all typed stream events."""

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        """Initialize the typed event with optional data.

        Args:
            data: Optional dictionary of event data to initialize with
        """
        super().__init__(data or {})

    def as_dict(self) -> dict:
        """Convert this event to a raw dictionary for emitting purposes."""
        return {**self}


class GraphNodeStartEvent(TypedEvent):
    """Event emitted when a node begins processing."""

    def __init__(self, node: str, step: int) -> None:
        """Initialize with node information.

        Args:
            node: Name of the node.
            step: Step number of the invocation.
        """
        super().__init__({"type": "graph_node_start", "node": node, "step": step})


class GraphNodeStopEvent(TypedEvent):
    """Event emitted when a node's outcome has been applied."""

    def __init__(self, node: str, step: int, outcome: str, delta: dict[str, Any], next_node: str | None) -> None:
        """Initialize with stop information.

        Args:
            node: Name of the node.
            step: Step number of the invocation.
            outcome: Outcome kind: "continue", "goto", "end" or "interrupt".
            delta: The update the node produced.
            next_node: Where control goes next, None if unresolved.
        """
        super().__init__(
            {
                "type": "graph_node_stop",
                "node": node,
                "step": step,
                "outcome": outcome,
                "delta": delta,
                "next_node": next_node,
            }
        )


class GraphInterruptEvent(TypedEvent):
    """Event emitted when the run pauses."""

    def __init__(self, interrupt: "Interrupt") -> None:
        """Initialize with the interrupt.

        Args:
            interrupt: The pending interrupt.
        """
        super().__init__({"type": "graph_interrupt", "interrupt": interrupt})


class GraphResultEvent(TypedEvent):
    """Final event of a stream, carrying the run result."""

    def __init__(self, result: "GraphResult") -> None:
        """Initialize with the result.

        Args:
            result: The final result of the invocation.
        """
        super().__init__({"type": "graph_result", "result": result})


class GraphValuesEvent(TypedEvent):
    """Event carrying the full state after a node's outcome was applied."""

    def __init__(self, node: str, step: int, state: dict[str, Any]) -> None:
        """Initialize with the state.

        Args:
            node: Name of the node.
            step: Step number of the invocation.
            state: The merged state.
        """
        super().__init__({"type": "graph_values", "node": node, "step": step, "state": state})


class GraphUpdatesEvent(TypedEvent):
    """Event carrying the update a node produced."""

    def __init__(self, node: str, step: int, update: dict[str, Any]) -> None:
        """Initialize with the update.

        Args:
            node: Name of the node.
            step: Step number of the invocation.
            update: The node's delta, before reducers were applied.
        """
        super().__init__({"type": "graph_updates", "node": node, "step": step, "update": update})


class GraphMessagesEvent(TypedEvent):
    """Event carrying the assistant messages a node added."""

    def __init__(self, node: str, step: int, messages: list[dict[str, Any]]) -> None:
        """Initialize with the messages.

        Args:
            node: Name of the node.
            step: Step number of the invocation.
            messages: Assistant messages from the node's update, in order.
        """
        super().__init__({"type": "graph_messages", "node": node, "step": step, "messages": messages})
