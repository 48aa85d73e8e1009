"""Builder for state graphs.

Nodes and edges are registered on a `StateGraph`, then `compile()` validates the structure and returns an
executable `CompiledGraph`.

Example:
    ```python
    builder = StateGraph(MessagesState)
    builder.add_node("agent", agent_node)
    builder.add_node("tools", ToolNode([search]))
    builder.set_entry_point("agent")
    builder.add_conditional_edges("agent", tools_condition, ["tools", END])
    builder.add_edge("tools", "agent")
    graph = builder.compile(checkpointer=InMemoryCheckpointer())
    ```
"""

import logging
from collections import deque
from typing import TYPE_CHECKING, Iterable, Optional, Sequence, Union

from ..hooks.registry import HookProvider
from ..types.exceptions import GraphValidationError
from .cache import CachePolicy
from .checkpoint import Checkpointer
from .edges import END, RESERVED_NAMES, START, ConditionalEdge, EdgeTable, PathMap, Selector, normalize_path_map
from .node import Node, NodeFunc, as_node
from .state import StateSchema

if TYPE_CHECKING:
    from ..store.base import BaseStore
    from .compiled import CompiledGraph

logger = logging.getLogger(__name__)

DEFAULT_RECURSION_LIMIT = 100


class StateGraph:
    """Collects the nodes and edges of a graph over a shared state."""

    def __init__(self, state_schema: Optional[type] = None) -> None:
        """Initialize an empty graph.

        Args:
            state_schema: `TypedDict` describing the state and its reducers. None overwrites every field on merge.
        """
        self.state_schema = state_schema
        self.schema = StateSchema.from_type(state_schema)
        self.nodes: dict[str, Node] = {}
        self.destinations: dict[str, tuple[str, ...]] = {}
        self.cache_policies: dict[str, CachePolicy] = {}
        self.edge_table = EdgeTable()
        self.entry_point: Optional[str] = None
        self.conditional_entry: Optional[ConditionalEdge] = None

    def add_node(
        self,
        name: str,
        node: Union[Node, NodeFunc, "CompiledGraph"],
        *,
        destinations: Sequence[str] = (),
        cache_policy: Optional[CachePolicy] = None,
    ) -> "StateGraph":
        """Register a node.

        Args:
            name: Unique node name.
            node: A `Node`, a compiled graph to run as a sub-graph, or a function of the state.
            destinations: Nodes this node may jump to with `Goto`. Used for reachability checks and drawing.
            cache_policy: Reuse the node's outcome for an identical state within the policy's time-to-live.

        Raises:
            GraphValidationError: If the name is empty, reserved, or already taken.
        """
        if not name:
            raise GraphValidationError("Node name cannot be empty")
        if name in RESERVED_NAMES:
            raise GraphValidationError(f"Node name '{name}' is reserved")
        if name in self.nodes:
            raise GraphValidationError(f"Node '{name}' already exists")

        self.nodes[name] = as_node(node, name=name)
        self.destinations[name] = tuple(destinations)
        if cache_policy is not None:
            self.cache_policies[name] = cache_policy
        logger.debug("node=<%s>, node_type=<%s> | added node", name, type(self.nodes[name]).__name__)
        return self

    def add_edge(self, source: str, target: str) -> "StateGraph":
        """Register an unconditional edge. `add_edge(START, name)` sets the entry point.

        Raises:
            GraphValidationError: If the source already has an unconditional edge or is `END`.
        """
        if source == START:
            return self.set_entry_point(target)
        if source == END:
            raise GraphValidationError("END cannot have outgoing edges")

        self.edge_table.add_edge(source, target)
        return self

    def add_conditional_edges(
        self, source: str, selector: Selector, path_map: Optional[PathMap] = None
    ) -> "StateGraph":
        """Register a state-dependent route out of a node.

        Args:
            source: Node the route leaves from, or `START` for a conditional entry point.
            selector: Function of the state returning a label, or a node name when there is no path map.
            path_map: Mapping from labels to node names, or a list of node names the selector may return.

        Raises:
            GraphValidationError: If the source already has a conditional edge.
        """
        if source == START:
            return self.set_conditional_entry_point(selector, path_map)
        if source == END:
            raise GraphValidationError("END cannot have outgoing edges")

        self.edge_table.add_conditional_edge(ConditionalEdge(source, selector, normalize_path_map(path_map)))
        return self

    def set_entry_point(self, name: str) -> "StateGraph":
        """Set the node that runs first.

        Raises:
            GraphValidationError: If an entry point is already set.
        """
        if self.entry_point is not None or self.conditional_entry is not None:
            raise GraphValidationError("Graph entry point is already set")
        self.entry_point = name
        return self

    def set_conditional_entry_point(self, selector: Selector, path_map: Optional[PathMap] = None) -> "StateGraph":
        """Choose the first node from the initial state.

        Raises:
            GraphValidationError: If an entry point is already set.
        """
        if self.entry_point is not None or self.conditional_entry is not None:
            raise GraphValidationError("Graph entry point is already set")
        self.conditional_entry = ConditionalEdge(START, selector, normalize_path_map(path_map))
        return self

    def set_finish_point(self, name: str) -> "StateGraph":
        """Route a node to `END`."""
        return self.add_edge(name, END)

    def compile(
        self,
        checkpointer: Optional[Checkpointer] = None,
        *,
        store: Optional["BaseStore"] = None,
        interrupt_before: Iterable[str] = (),
        interrupt_after: Iterable[str] = (),
        hooks: Optional[list[HookProvider]] = None,
        name: str = "graph",
        recursion_limit: int = DEFAULT_RECURSION_LIMIT,
    ) -> "CompiledGraph":
        """Validate the graph and return an executable version of it.

        Args:
            checkpointer: Persists thread checkpoints. Required for interrupts to be resumable.
            store: Shared key-value store exposed to nodes through the run context.
            interrupt_before: Nodes to pause ahead of.
            interrupt_after: Nodes to pause after.
            hooks: Hook providers receiving lifecycle events.
            name: Graph name used in logs and traces.
            recursion_limit: Default cap on node invocations per call.

        Raises:
            GraphValidationError: If the graph is structurally invalid.
        """
        from .compiled import CompiledGraph

        interrupt_before = tuple(interrupt_before)
        interrupt_after = tuple(interrupt_after)
        self._validate(interrupt_before, interrupt_after)

        if recursion_limit < 1:
            raise GraphValidationError("recursion_limit must be at least 1")
        if (interrupt_before or interrupt_after) and checkpointer is None:
            logger.warning("interrupt rules are configured without a checkpointer, interrupted runs cannot resume")

        return CompiledGraph(
            name=name,
            schema=self.schema,
            nodes=dict(self.nodes),
            destinations=dict(self.destinations),
            cache_policies=dict(self.cache_policies),
            edge_table=self.edge_table.copy(),
            entry_point=self.entry_point,
            conditional_entry=self.conditional_entry,
            checkpointer=checkpointer,
            store=store,
            interrupt_before=frozenset(interrupt_before),
            interrupt_after=frozenset(interrupt_after),
            hooks=hooks,
            recursion_limit=recursion_limit,
        )

    def _require_target(self, source: str, target: str, kind: str) -> None:
        if target != END and target not in self.nodes:
            raise GraphValidationError(f"{kind} from '{source}' targets unknown node '{target}'")

    def _validate(self, interrupt_before: Sequence[str], interrupt_after: Sequence[str]) -> None:
        if not self.nodes:
            raise GraphValidationError("Graph must contain at least one node")

        if self.entry_point is None and self.conditional_entry is None:
            raise GraphValidationError("Graph must have an entry point")
        if self.entry_point is not None and self.entry_point not in self.nodes:
            raise GraphValidationError(f"Entry point '{self.entry_point}' not found")
        if self.conditional_entry is not None:
            for target in self.conditional_entry.targets or ():
                self._require_target(START, target, "Conditional entry point")

        for source, target in self.edge_table.edges.items():
            if source not in self.nodes:
                raise GraphValidationError(f"Edge source '{source}' not found")
            self._require_target(source, target, "Edge")

        for source, edge in self.edge_table.conditional_edges.items():
            if source not in self.nodes:
                raise GraphValidationError(f"Conditional edge source '{source}' not found")
            for target in edge.targets or ():
                self._require_target(source, target, "Conditional edge")

        for source, targets in self.destinations.items():
            for target in targets:
                self._require_target(source, target, "Destination")

        for rule, names in (("interrupt_before", interrupt_before), ("interrupt_after", interrupt_after)):
            unknown = sorted(set(names) - set(self.nodes))
            if unknown:
                raise GraphValidationError(f"{rule} references unknown nodes: {unknown}")

        self._validate_reachability()

    def _validate_reachability(self) -> None:
        if self.entry_point is not None:
            frontier = deque([self.entry_point])
        else:
            assert self.conditional_entry is not None
            targets = self.conditional_entry.targets
            if targets is None:
                logger.debug("conditional entry point has no path map, skipping reachability check")
                return
            frontier = deque(target for target in targets if target != END)

        reachable: set[str] = set()
        while frontier:
            name = frontier.popleft()
            if name in reachable or name == END:
                continue
            reachable.add(name)

            targets, complete = self.edge_table.static_targets(name)
            if not complete:
                logger.debug("node=<%s> | conditional edge has no path map, skipping reachability check", name)
                return
            frontier.extend(targets | set(self.destinations.get(name, ())))

        orphans = sorted(set(self.nodes) - reachable)
        if orphans:
            raise GraphValidationError(f"Nodes not reachable from the entry point: {orphans}")

    def __repr__(self) -> str:
        """Readable representation of the builder."""
        return f"StateGraph(nodes={list(self.nodes)!r})"
