"""Graph nodes and the outcomes they return.

A node reads the current state and answers with exactly one outcome:

- `Continue`: merge a delta, then follow the edge table.
- `Goto`: merge a delta, then jump straight to a named node (or `END`).
- `End`: merge a delta, then finish the run.
- `Interrupt`: pause the run and surface a value to the caller.
"""

import asyncio
import inspect
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, Union

from .state import State

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Continue:
    """Merge `delta` and route through the edge table."""

    delta: State = field(default_factory=dict)


@dataclass(frozen=True)
class Goto:
    """Merge `delta` and route directly to `target`, bypassing the edge table."""

    target: str
    delta: State = field(default_factory=dict)


@dataclass(frozen=True)
class End:
    """Merge `delta` and terminate the run."""

    delta: State = field(default_factory=dict)


@dataclass(frozen=True)
class Interrupt:
    """Pause the run without changing the state and hand `value` to the caller."""

    value: Any = None


NodeOutcome = Union[Continue, Goto, End, Interrupt]

NodeFunc = Callable[[State], Union[NodeOutcome, State, None, Awaitable[Union[NodeOutcome, State, None]]]]


class Node(ABC):
    """A unit of work in a graph."""

    @abstractmethod
    async def process(self, state: State) -> NodeOutcome:
        """Process the current state.

        Args:
            state: A private copy of the current state.

        Returns:
            The outcome that decides how the state changes and where control goes next.
        """
        pass


class FunctionNode(Node):
    """A node backed by a plain function.

    The function may be sync or async. Besides an outcome it may return a dict, treated as `Continue(dict)`, or
    None, treated as `Continue()`. Sync functions run on a worker thread so they don't block the event loop.
    """

    def __init__(self, func: NodeFunc, name: Optional[str] = None) -> None:
        """Initialize the node.

        Args:
            func: The function to call with the state.
            name: Display name. Defaults to the function name.
        """
        self.func = func
        self.name = name or getattr(func, "__name__", type(func).__name__)

    async def process(self, state: State) -> NodeOutcome:
        """Call the function and normalize its return value."""
        if inspect.iscoroutinefunction(self.func):
            result = await self.func(state)
        else:
            result = await asyncio.to_thread(self.func, state)
            if inspect.isawaitable(result):
                result = await result

        return coerce_outcome(self.name, result)

    def __repr__(self) -> str:
        """Readable representation of the node."""
        return f"FunctionNode(name={self.name!r})"


def coerce_outcome(name: str, result: Any) -> NodeOutcome:
    """Normalize a node return value into an outcome.

    Raises:
        TypeError: If the value is neither an outcome, a dict, nor None.
    """
    if isinstance(result, (Continue, Goto, End, Interrupt)):
        return result
    if result is None:
        return Continue()
    if isinstance(result, dict):
        return Continue(result)

    raise TypeError(f"node=<{name}> | node returned unsupported type <{type(result).__name__}>")


def as_node(node: Union[Node, NodeFunc, Any], name: Optional[str] = None) -> Node:
    """Coerce a node, compiled graph, or callable into a `Node`.

    Args:
        node: The value to coerce.
        name: Name used when the value must be wrapped.

    Raises:
        TypeError: If the value cannot act as a node.
    """
    if isinstance(node, Node):
        return node

    # Imported lazily, the prebuilt package depends on this module.
    from .compiled import CompiledGraph

    if isinstance(node, CompiledGraph):
        from ..prebuilt.subgraph import SubgraphNode

        return SubgraphNode(node, name=name)
    if callable(node):
        return FunctionNode(node, name=name)

    raise TypeError(f"node=<{name}> | expected a Node, CompiledGraph, or callable, got <{type(node).__name__}>")
