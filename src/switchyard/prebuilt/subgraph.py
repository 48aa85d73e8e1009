"""Run a compiled graph as a single node of another graph."""

import logging
from typing import TYPE_CHECKING, Optional

from typing_extensions import override

from ..graph.node import Continue, Interrupt, Node, NodeOutcome
from ..graph.state import State
from ..types.exceptions import GraphValidationError

if TYPE_CHECKING:
    from ..graph.compiled import CompiledGraph

logger = logging.getLogger(__name__)


class SubgraphNode(Node):
    """Invokes a compiled graph with the parent's state and returns what it changed.

    The sub-graph runs without a thread, so it cannot have a checkpointer. Its final state is diffed against the
    input using the sub-graph's reducers, so appended messages come back as new messages only. An interrupt
    raised inside the sub-graph becomes an `Interrupt` outcome of this node.
    """

    def __init__(self, graph: "CompiledGraph", name: Optional[str] = None) -> None:
        """Initialize the node.

        Args:
            graph: The graph to run.
            name: Display name. Defaults to the graph name.

        Raises:
            GraphValidationError: If the graph has a checkpointer.
        """
        if graph.checkpointer is not None:
            raise GraphValidationError(f"Sub-graph '{graph.name}' cannot have a checkpointer")

        self.graph = graph
        self.name = name or graph.name

    @override
    async def process(self, state: State) -> NodeOutcome:
        """Run the sub-graph to completion and return its state changes."""
        logger.debug("subgraph=<%s> | invoking sub-graph", self.name)
        result = await self.graph.invoke_async(state)

        if result.interrupted:
            assert result.interrupt is not None
            logger.debug("subgraph=<%s>, node=<%s> | sub-graph interrupted", self.name, result.interrupt.node)
            return Interrupt(result.interrupt.to_dict())

        return Continue(self.graph.schema.diff(state, result.state))

    def __repr__(self) -> str:
        """Readable representation of the node."""
        return f"SubgraphNode(name={self.name!r})"
