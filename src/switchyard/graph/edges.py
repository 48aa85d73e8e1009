"""Edge table mapping each node to the node that runs after it."""

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Sequence, Union

from ..types.exceptions import GraphRoutingError, GraphValidationError
from .state import State

logger = logging.getLogger(__name__)

START = "__start__"
"""Virtual source node. `add_edge(START, name)` marks the entry point."""

END = "__end__"
"""Terminal pseudo-node. Routing to it finishes the run."""

RESERVED_NAMES = frozenset({START, END})

Selector = Callable[[State], Any]
PathMap = Union[Mapping[Any, str], Sequence[str]]


@dataclass
class ConditionalEdge:
    """A state-dependent route out of a node.

    Attributes:
        source: Node the route leaves from.
        selector: Function of the state returning a label, or a node name when there is no path map.
        path_map: Optional translation from labels to node names.
    """

    source: str
    selector: Selector
    path_map: Optional[dict[Any, str]] = None

    @property
    def targets(self) -> Optional[set[str]]:
        """All nodes the route can reach, or None when they are only known at runtime."""
        return set(self.path_map.values()) if self.path_map is not None else None

    async def resolve(self, state: State) -> str:
        """Evaluate the selector against the state and return the target node name.

        Raises:
            GraphRoutingError: If the selector fails or returns a label missing from the path map.
        """
        try:
            label = self.selector(state)
            if inspect.isawaitable(label):
                label = await label
        except Exception as e:
            raise GraphRoutingError(f"node=<{self.source}> | route selector failed: {e}", node=self.source) from e

        if self.path_map is None:
            if not isinstance(label, str):
                raise GraphRoutingError(
                    f"node=<{self.source}>, label=<{label}> | route selector must return a node name",
                    node=self.source,
                )
            return label

        if label not in self.path_map:
            raise GraphRoutingError(
                f"node=<{self.source}>, label=<{label}> | route label is not in the path map", node=self.source
            )
        return self.path_map[label]


def normalize_path_map(path_map: Optional[PathMap]) -> Optional[dict[Any, str]]:
    """Turn a path map given as a sequence of node names into an identity mapping."""
    if path_map is None:
        return None
    if isinstance(path_map, Mapping):
        return dict(path_map)
    return {name: name for name in path_map}


class EdgeTable:
    """Outgoing routes of every node.

    A node has at most one unconditional edge and at most one conditional edge. The conditional edge takes
    precedence. A node with neither routes to `END`.
    """

    def __init__(self) -> None:
        """Initialize an empty table."""
        self.edges: dict[str, str] = {}
        self.conditional_edges: dict[str, ConditionalEdge] = {}

    def copy(self) -> "EdgeTable":
        """Return a table with the same routes that later edits to this one don't affect."""
        table = EdgeTable()
        table.edges = dict(self.edges)
        table.conditional_edges = dict(self.conditional_edges)
        return table

    def add_edge(self, source: str, target: str) -> None:
        """Register an unconditional edge.

        Raises:
            GraphValidationError: If the source already has an unconditional edge.
        """
        if source in self.edges:
            raise GraphValidationError(
                f"Node '{source}' already has an edge to '{self.edges[source]}', cannot add a second edge to '{target}'"
            )
        self.edges[source] = target

    def add_conditional_edge(self, edge: ConditionalEdge) -> None:
        """Register a conditional edge.

        Raises:
            GraphValidationError: If the source already has a conditional edge.
        """
        if edge.source in self.conditional_edges:
            raise GraphValidationError(f"Node '{edge.source}' already has a conditional edge")
        self.conditional_edges[edge.source] = edge

    def static_targets(self, source: str) -> tuple[set[str], bool]:
        """Return the statically known targets of a node and whether that set is complete."""
        targets: set[str] = set()
        complete = True
        if source in self.edges:
            targets.add(self.edges[source])
        if source in self.conditional_edges:
            conditional = self.conditional_edges[source].targets
            if conditional is None:
                complete = False
            else:
                targets |= conditional
        return targets, complete

    async def resolve(self, source: str, state: State) -> str:
        """Resolve the node that follows `source` given the state after it ran."""
        if source in self.conditional_edges:
            target = await self.conditional_edges[source].resolve(state)
            logger.debug("node=<%s>, target=<%s> | resolved conditional edge", source, target)
            return target

        if source in self.edges:
            return self.edges[source]

        logger.debug("node=<%s> | no outgoing edge, routing to end", source)
        return END
