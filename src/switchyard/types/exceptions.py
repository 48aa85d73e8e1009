"""Exception-related type definitions for the SDK."""

from typing import Optional


class GraphValidationError(ValueError):
    """Raised when a graph definition is structurally invalid.

    Surfaced while building or compiling a graph, before any node runs.
    """

    pass


class GraphExecutionError(Exception):
    """Base class for failures raised while a compiled graph is running."""

    pass


class NodeExecutionError(GraphExecutionError):
    """Raised when a node fails while processing the state.

    The failing node's exception is kept as `original_exception` and chained as the cause.
    """

    def __init__(self, node: str, step: int, original_exception: Exception) -> None:
        """Initialize exception.

        Args:
            node: Name of the node that failed.
            step: Step number of the failed invocation.
            original_exception: The exception raised by the node.
        """
        self.node = node
        self.step = step
        self.original_exception = original_exception
        super().__init__(f"node=<{node}>, step=<{step}> | {original_exception}")


class GraphRoutingError(GraphExecutionError):
    """Raised when the next node cannot be resolved or does not exist."""

    def __init__(self, message: str, node: Optional[str] = None, target: Optional[str] = None) -> None:
        """Initialize exception.

        Args:
            message: Description of the routing failure.
            node: Node whose outgoing route failed.
            target: The unresolvable target, when known.
        """
        self.node = node
        self.target = target
        super().__init__(message)


class GraphRecursionError(GraphExecutionError):
    """Raised when a single invocation runs more steps than its recursion limit allows."""

    def __init__(self, recursion_limit: int) -> None:
        """Initialize exception.

        Args:
            recursion_limit: The limit that was exceeded.
        """
        self.recursion_limit = recursion_limit
        super().__init__(f"max iterations ({recursion_limit}) exceeded")


class CheckpointError(GraphExecutionError):
    """Raised when a checkpoint cannot be saved or loaded."""

    pass
