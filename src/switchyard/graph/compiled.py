"""Executable graphs.

A `CompiledGraph` runs one node at a time over a shared state:

1. Pick the node to run: the entry point, or the checkpointed next node when resuming a thread.
2. Pause ahead of nodes configured with `interrupt_before`.
3. Run the node on a copy of the state and merge its delta.
4. Resolve where control goes: the `Goto` target, `END` for `End`, otherwise the edge table.
5. Pause after nodes configured with `interrupt_after`.
6. Save a checkpoint when the graph has a checkpointer, then repeat until `END`.
"""

import copy
import logging
import threading
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, AsyncIterator, Mapping, Optional, Sequence, Union

import opentelemetry.trace as trace_api

from .._async import run_async
from .._exception_notes import add_exception_note
from ..hooks.events import RunFailedEvent, RunFinishedEvent, RunStartedEvent, RunStepEvent
from ..hooks.registry import HookProvider, HookRegistry
from ..interrupt import Interrupt
from ..telemetry.tracer import get_tracer
from ..types._events import (
    GraphInterruptEvent,
    GraphMessagesEvent,
    GraphNodeStartEvent,
    GraphNodeStopEvent,
    GraphResultEvent,
    GraphUpdatesEvent,
    GraphValuesEvent,
    TypedEvent,
)
from ..types.exceptions import CheckpointError, GraphRecursionError, GraphRoutingError, NodeExecutionError
from ..types.graph import STREAM_MODES, RunConfig, StreamMode
from . import visualization
from .cache import CachePolicy, NodeCache
from .checkpoint import Checkpoint, Checkpointer
from .context import RunContext, reset_run_context, set_run_context
from .edges import END, ConditionalEdge, EdgeTable
from .node import Continue, End, Goto, Node, NodeOutcome, coerce_outcome
from .node import Interrupt as InterruptOutcome
from .state import State, StateSchema

if TYPE_CHECKING:
    from ..store.base import BaseStore

logger = logging.getLogger(__name__)


class Status(Enum):
    """Final status of a graph invocation."""

    COMPLETED = "completed"
    INTERRUPTED = "interrupted"


@dataclass
class GraphResult:
    """Result of a graph invocation.

    Attributes:
        status: Whether the run reached `END` or paused.
        state: The state when the run stopped.
        step: Steps completed on the thread so far.
        run_id: Identifier of the invocation.
        thread_id: Thread the run belongs to, if any.
        next_node: Node that runs on resume. `END` when completed, None after an explicit node interrupt.
        interrupt: The pending interrupt, if paused.
        execution_order: Nodes invoked during this call, in order.
    """

    status: Status
    state: State
    step: int
    run_id: str
    thread_id: Optional[str] = None
    next_node: Optional[str] = None
    interrupt: Optional[Interrupt] = None
    execution_order: list[str] = field(default_factory=list)

    @property
    def interrupted(self) -> bool:
        """True if the run paused on an interrupt."""
        return self.status == Status.INTERRUPTED

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-compatible dict."""
        return {
            "status": self.status.value,
            "state": self.state,
            "step": self.step,
            "run_id": self.run_id,
            "thread_id": self.thread_id,
            "next_node": self.next_node,
            "interrupt": self.interrupt.to_dict() if self.interrupt else None,
            "execution_order": list(self.execution_order),
        }


@dataclass
class StateSnapshot:
    """A thread's state as recorded by one checkpoint.

    Attributes:
        state: The recorded state.
        next_node: Node that runs on resume.
        step: Steps completed when the snapshot was taken.
        source: Node or caller action that produced the snapshot.
        interrupt: The pending interrupt, if the thread is paused.
        checkpoint_id: Identifier of the checkpoint.
        created_at: ISO format timestamp of the checkpoint.
        metadata: Run metadata recorded with the checkpoint.
    """

    state: State
    next_node: Optional[str]
    step: int
    source: str
    interrupt: Optional[Interrupt] = None
    checkpoint_id: Optional[str] = None
    created_at: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_checkpoint(cls, checkpoint: Checkpoint) -> "StateSnapshot":
        """Build a snapshot from a checkpoint."""
        return cls(
            state=checkpoint.state,
            next_node=checkpoint.next_node,
            step=checkpoint.step,
            source=checkpoint.source,
            interrupt=checkpoint.interrupt,
            checkpoint_id=checkpoint.checkpoint_id,
            created_at=checkpoint.created_at,
            metadata=checkpoint.metadata,
        )


def _normalize_stream_modes(stream_mode: Union[StreamMode, Sequence[StreamMode], None]) -> tuple[StreamMode, ...]:
    if stream_mode is None:
        return ()
    modes = (stream_mode,) if isinstance(stream_mode, str) else tuple(stream_mode)
    unknown = [mode for mode in modes if mode not in STREAM_MODES]
    if unknown:
        raise ValueError(f"stream_mode=<{unknown}> | unknown stream mode, expected one of {list(STREAM_MODES)}")
    return tuple(dict.fromkeys(modes))


@dataclass
class _Run:
    """Bookkeeping of one invocation."""

    run_id: str
    thread_id: Optional[str]
    recursion_limit: int
    metadata: dict[str, Any]
    stream_modes: tuple[StreamMode, ...] = ()
    state: State = field(default_factory=dict)
    step: int = 0
    execution_order: list[str] = field(default_factory=list)


class CompiledGraph:
    """A validated graph that can be invoked, streamed, inspected and resumed.

    Created by `StateGraph.compile()`. One instance may run distinct threads concurrently but never the same
    thread twice at once.
    """

    def __init__(
        self,
        *,
        name: str,
        schema: StateSchema,
        nodes: dict[str, Node],
        destinations: dict[str, tuple[str, ...]],
        cache_policies: dict[str, CachePolicy],
        edge_table: EdgeTable,
        entry_point: Optional[str],
        conditional_entry: Optional[ConditionalEdge],
        checkpointer: Optional[Checkpointer],
        store: Optional["BaseStore"],
        interrupt_before: frozenset[str],
        interrupt_after: frozenset[str],
        hooks: Optional[list[HookProvider]],
        recursion_limit: int,
    ) -> None:
        """Initialize the graph. Use `StateGraph.compile()` rather than calling this directly."""
        self.name = name
        self.schema = schema
        self.nodes = nodes
        self.destinations = destinations
        self.cache_policies = cache_policies
        self.edge_table = edge_table
        self.entry_point = entry_point
        self.conditional_entry = conditional_entry
        self.checkpointer = checkpointer
        self.store = store
        self.interrupt_before = interrupt_before
        self.interrupt_after = interrupt_after
        self.recursion_limit = recursion_limit

        self.hooks = HookRegistry()
        for hook in hooks or []:
            self.hooks.add_hook(hook)

        self._cache = NodeCache()
        self._tracer = get_tracer()
        self._active_threads: set[str] = set()
        self._threads_lock = threading.Lock()

    def invoke(self, input: Optional[Mapping[str, Any]] = None, config: Optional[RunConfig] = None) -> GraphResult:
        """Run the graph synchronously.

        Args:
            input: State to merge into the thread's state. None or empty resumes a paused thread unchanged.
            config: Thread and limit settings for this call.

        Returns:
            The result of the run.
        """
        return run_async(lambda: self.invoke_async(input, config))

    async def invoke_async(
        self, input: Optional[Mapping[str, Any]] = None, config: Optional[RunConfig] = None
    ) -> GraphResult:
        """Run the graph until it reaches `END` or pauses on an interrupt.

        Args:
            input: State to merge into the thread's state. None or empty resumes a paused thread unchanged.
            config: Thread and limit settings for this call.

        Returns:
            The result of the run.

        Raises:
            NodeExecutionError: A node raised.
            GraphRoutingError: The next node could not be resolved.
            GraphRecursionError: The run exceeded its recursion limit.
            CheckpointError: A checkpoint could not be loaded or saved.
        """
        final_event = None
        async for event in self.stream_async(input, config):
            if event.get("type") == "graph_result":
                final_event = event

        if final_event is None:
            raise RuntimeError("graph stream ended without a result")
        return final_event["result"]

    async def stream_async(
        self,
        input: Optional[Mapping[str, Any]] = None,
        config: Optional[RunConfig] = None,
        *,
        stream_mode: Union[StreamMode, Sequence[StreamMode], None] = None,
    ) -> AsyncIterator[dict[str, Any]]:
        """Run the graph and yield an event for every step.

        Args:
            input: State to merge into the thread's state.
            config: Thread and limit settings for this call.
            stream_mode: Extra per-step views to yield after each node's outcome is applied, one mode or several:
                "values" for the full state, "updates" for the node's delta, "messages" for the assistant
                messages the node added.

        Yields:
            Dictionary events, such as:
            - graph_node_start: A node begins processing
            - graph_node_stop: A node's outcome was applied
            - graph_values, graph_updates, graph_messages: Views selected by `stream_mode`
            - graph_interrupt: The run paused
            - graph_result: Final result, always the last event

        Raises:
            ValueError: If a stream mode is unknown, or a checkpointed graph is run without a thread_id.
        """
        stream_modes = _normalize_stream_modes(stream_mode)
        config = config or {}
        thread_id = config.get("thread_id")
        if self.checkpointer is not None and not thread_id:
            raise ValueError("thread_id is required when the graph has a checkpointer")

        run = _Run(
            run_id=config.get("run_id") or str(uuid.uuid4()),
            thread_id=thread_id,
            recursion_limit=config.get("recursion_limit", self.recursion_limit),
            metadata=dict(config.get("metadata") or {}),
            stream_modes=stream_modes,
        )

        self._claim_thread(thread_id)
        try:
            await self.hooks.invoke_callbacks_async(
                RunStartedEvent(source=self, run_id=run.run_id, thread_id=thread_id, input=dict(input or {}))
            )
            logger.debug(
                "graph=<%s>, run_id=<%s>, thread_id=<%s>, recursion_limit=<%s> | starting graph execution",
                self.name,
                run.run_id,
                thread_id,
                run.recursion_limit,
            )

            span = self._tracer.start_graph_span(self.name, run.run_id, thread_id)
            result: Optional[GraphResult] = None
            try:
                with trace_api.use_span(
                    span, end_on_exit=False, record_exception=False, set_status_on_exception=False
                ):
                    async for event in self._execute(run, input):
                        if isinstance(event, GraphResultEvent):
                            result = event["result"]
                        yield event.as_dict()
            except Exception as e:
                logger.exception("run_id=<%s> | graph execution failed", run.run_id)
                self._tracer.end_span_with_error(span, str(e), e)
                await self.hooks.invoke_callbacks_async(RunFailedEvent(source=self, run_id=run.run_id, exception=e))
                raise

            assert result is not None
            self._tracer.end_graph_span(span, result.status.value, result.step, result.next_node)
            logger.debug("run_id=<%s>, status=<%s> | graph execution completed", run.run_id, result.status.value)
            await self.hooks.invoke_callbacks_async(RunFinishedEvent(source=self, run_id=run.run_id, result=result))
        finally:
            self._release_thread(thread_id)

    async def _execute(self, run: _Run, input: Optional[Mapping[str, Any]]) -> AsyncIterator[TypedEvent]:
        current, skip_interrupt_before = await self._prepare(run, dict(input or {}))

        while current != END:
            if current not in self.nodes:
                raise GraphRoutingError(f"node=<{current}> | node not found", target=current)

            if current in self.interrupt_before and current != skip_interrupt_before:
                interrupt = Interrupt.create(current, "before", run.step + 1)
                logger.debug("node=<%s> | interrupting before node", current)
                await self._save(run, next_node=current, source=self._last_source(run), interrupt=interrupt)
                yield GraphInterruptEvent(interrupt)
                yield GraphResultEvent(self._build_result(run, Status.INTERRUPTED, current, interrupt))
                return
            skip_interrupt_before = None

            if len(run.execution_order) >= run.recursion_limit:
                raise GraphRecursionError(run.recursion_limit)

            run.step += 1
            run.execution_order.append(current)
            yield GraphNodeStartEvent(current, run.step)

            outcome = await self._execute_node(run, current)

            if isinstance(outcome, InterruptOutcome):
                interrupt = Interrupt.create(current, "node", run.step, outcome.value)
                logger.debug("node=<%s> | node requested interrupt", current)
                await self._save(run, next_node=None, source=current, interrupt=interrupt)
                await self._step_completed(run, current, None)
                yield GraphNodeStopEvent(current, run.step, "interrupt", {}, None)
                yield GraphInterruptEvent(interrupt)
                yield GraphResultEvent(self._build_result(run, Status.INTERRUPTED, None, interrupt))
                return

            run.state = self.schema.merge(run.state, outcome.delta)
            next_node = await self._next_node(current, outcome, run.state)

            interrupt = None
            if current in self.interrupt_after:
                interrupt = Interrupt.create(current, "after", run.step)
                logger.debug("node=<%s>, next_node=<%s> | interrupting after node", current, next_node)

            await self._save(run, next_node=next_node, source=current, interrupt=interrupt)
            await self._step_completed(run, current, next_node)
            yield GraphNodeStopEvent(current, run.step, type(outcome).__name__.lower(), outcome.delta, next_node)
            for event in self._stream_views(run, current, outcome):
                yield event

            if interrupt is not None:
                yield GraphInterruptEvent(interrupt)
                yield GraphResultEvent(self._build_result(run, Status.INTERRUPTED, next_node, interrupt))
                return

            current = next_node

        yield GraphResultEvent(self._build_result(run, Status.COMPLETED, END, None))

    async def _prepare(self, run: _Run, input: State) -> tuple[str, Optional[str]]:
        """Load the thread and decide where the run starts.

        Returns:
            The first node to run and the node whose `interrupt_before` rule has already fired, if any.
        """
        checkpoint = await self._load(run.thread_id)

        if checkpoint is None:
            run.state = self.schema.merge({}, input)
            current = await self._resolve_entry(run.state)
            await self._save(run, next_node=current, source="input", interrupt=None)
            return current, None

        run.state = self.schema.merge(checkpoint.state, input)
        run.step = checkpoint.step
        pending = checkpoint.interrupt

        if checkpoint.next_node is None:
            if pending is None:
                raise CheckpointError(f"thread_id=<{run.thread_id}> | checkpoint has no resumable position")
            # explicit node interrupts resume past the interrupting node
            current = await self._next_node(pending.node, Continue(), run.state)
            logger.debug("thread_id=<%s>, node=<%s> | resuming after node interrupt", run.thread_id, pending.node)
            if current == END:
                await self._save(run, next_node=END, source=pending.node, interrupt=None)
            return current, None

        if checkpoint.next_node == END:
            if pending is not None:
                # interrupted after the last node, resuming only completes the run
                await self._save(run, next_node=END, source=pending.node, interrupt=None)
                return END, None

            current = await self._resolve_entry(run.state)
            logger.debug("thread_id=<%s> | previous run completed, starting new run", run.thread_id)
            await self._save(run, next_node=current, source="input", interrupt=None)
            return current, None

        logger.debug("thread_id=<%s>, next_node=<%s> | resuming thread", run.thread_id, checkpoint.next_node)
        skip = pending.node if pending is not None and pending.kind == "before" else None
        return checkpoint.next_node, skip

    def _stream_views(self, run: _Run, node: str, outcome: Union[Continue, Goto, End]) -> list[TypedEvent]:
        events: list[TypedEvent] = []
        for mode in run.stream_modes:
            if mode == "values":
                events.append(GraphValuesEvent(node, run.step, copy.deepcopy(run.state)))
            elif mode == "updates":
                events.append(GraphUpdatesEvent(node, run.step, copy.deepcopy(outcome.delta)))
            else:
                added = outcome.delta.get("messages") or []
                messages = [message for message in added if message.get("role") == "assistant"]
                if messages:
                    events.append(GraphMessagesEvent(node, run.step, copy.deepcopy(messages)))
        return events

    async def _resolve_entry(self, state: State) -> str:
        if self.entry_point is not None:
            return self.entry_point
        assert self.conditional_entry is not None
        return await self.conditional_entry.resolve(state)

    async def _next_node(self, current: str, outcome: NodeOutcome, state: State) -> str:
        if isinstance(outcome, Goto):
            target = outcome.target
        elif isinstance(outcome, End):
            target = END
        else:
            target = await self.edge_table.resolve(current, state)

        if target != END and target not in self.nodes:
            raise GraphRoutingError(
                f"node=<{current}>, target=<{target}> | route targets unknown node", node=current, target=target
            )
        return target

    async def _execute_node(self, run: _Run, name: str) -> NodeOutcome:
        node = self.nodes[name]
        policy = self.cache_policies.get(name)
        if policy is not None:
            cached = self._cache.get(name, run.state)
            if cached is not None:
                logger.debug("node=<%s>, step=<%s> | reusing cached outcome", name, run.step)
                return cached

        logger.debug("node=<%s>, step=<%s> | executing node", name, run.step)

        span = self._tracer.start_node_span(name, run.step)
        token = set_run_context(
            RunContext(
                graph=self,
                run_id=run.run_id,
                node=name,
                step=run.step,
                hooks=self.hooks,
                thread_id=run.thread_id,
                store=self.store,
                metadata=run.metadata,
            )
        )
        try:
            outcome = coerce_outcome(name, await node.process(copy.deepcopy(run.state)))
        except Exception as e:
            self._tracer.end_span_with_error(span, str(e), e)
            add_exception_note(e, f"node=<{name}>, step=<{run.step}> | raised while processing")
            raise NodeExecutionError(name, run.step, e) from e
        finally:
            reset_run_context(token)

        self._tracer.end_node_span(span, type(outcome).__name__.lower(), getattr(outcome, "target", None))
        if policy is not None and not isinstance(outcome, InterruptOutcome):
            self._cache.put(name, run.state, outcome, policy)
        return outcome

    async def _step_completed(self, run: _Run, node: str, next_node: Optional[str]) -> None:
        await self.hooks.invoke_callbacks_async(
            RunStepEvent(source=self, run_id=run.run_id, step=run.step, node=node, next_node=next_node)
        )

    def _last_source(self, run: _Run) -> str:
        return run.execution_order[-1] if run.execution_order else "input"

    def _build_result(
        self, run: _Run, status: Status, next_node: Optional[str], interrupt: Optional[Interrupt]
    ) -> GraphResult:
        return GraphResult(
            status=status,
            state=copy.deepcopy(run.state),
            step=run.step,
            run_id=run.run_id,
            thread_id=run.thread_id,
            next_node=next_node,
            interrupt=interrupt,
            execution_order=list(run.execution_order),
        )

    async def _load(self, thread_id: Optional[str]) -> Optional[Checkpoint]:
        if self.checkpointer is None or thread_id is None:
            return None
        try:
            return await self.checkpointer.get_latest(thread_id)
        except Exception as e:
            raise CheckpointError(f"thread_id=<{thread_id}> | failed to load checkpoint") from e

    async def _save(
        self, run: _Run, *, next_node: Optional[str], source: str, interrupt: Optional[Interrupt]
    ) -> None:
        if self.checkpointer is None or run.thread_id is None:
            return

        checkpoint = Checkpoint(
            thread_id=run.thread_id,
            step=run.step,
            state=copy.deepcopy(run.state),
            next_node=next_node,
            source=source,
            interrupt=interrupt,
            metadata={**run.metadata, "run_id": run.run_id},
        )
        try:
            await self.checkpointer.put(checkpoint)
        except Exception as e:
            raise CheckpointError(f"thread_id=<{run.thread_id}>, step=<{run.step}> | failed to save checkpoint") from e

    def _claim_thread(self, thread_id: Optional[str]) -> None:
        if thread_id is None:
            return
        with self._threads_lock:
            if thread_id in self._active_threads:
                raise RuntimeError(f"thread_id=<{thread_id}> | thread is already running")
            self._active_threads.add(thread_id)

    def _release_thread(self, thread_id: Optional[str]) -> None:
        if thread_id is None:
            return
        with self._threads_lock:
            self._active_threads.discard(thread_id)

    def _require_checkpointer(self) -> Checkpointer:
        if self.checkpointer is None:
            raise ValueError(f"graph=<{self.name}> | graph has no checkpointer")
        return self.checkpointer

    async def get_state_async(self, thread_id: str) -> Optional[StateSnapshot]:
        """Return the latest snapshot of a thread, or None if the thread has no checkpoint.

        Raises:
            ValueError: If the graph has no checkpointer.
        """
        self._require_checkpointer()
        checkpoint = await self._load(thread_id)
        return StateSnapshot.from_checkpoint(checkpoint) if checkpoint else None

    def get_state(self, thread_id: str) -> Optional[StateSnapshot]:
        """Synchronous version of `get_state_async`."""
        return run_async(lambda: self.get_state_async(thread_id))

    async def update_state_async(self, thread_id: str, values: Mapping[str, Any]) -> StateSnapshot:
        """Merge values into a thread's latest state and persist the result.

        The new checkpoint keeps the resume position, the pending interrupt and the step counter of the previous
        one, so a paused run picks up the edited state when resumed.

        Raises:
            ValueError: If the graph has no checkpointer or the thread has no checkpoint.
        """
        checkpointer = self._require_checkpointer()
        latest = await self._load(thread_id)
        if latest is None:
            raise ValueError(f"thread_id=<{thread_id}> | thread has no checkpoint to update")

        checkpoint = Checkpoint(
            thread_id=thread_id,
            step=latest.step,
            state=self.schema.merge(latest.state, values),
            next_node=latest.next_node,
            source="update",
            interrupt=latest.interrupt,
            metadata=latest.metadata,
        )
        try:
            await checkpointer.put(checkpoint)
        except Exception as e:
            raise CheckpointError(f"thread_id=<{thread_id}> | failed to save checkpoint") from e

        logger.debug("thread_id=<%s>, fields=<%s> | updated thread state", thread_id, sorted(values))
        return StateSnapshot.from_checkpoint(checkpoint)

    def update_state(self, thread_id: str, values: Mapping[str, Any]) -> StateSnapshot:
        """Synchronous version of `update_state_async`."""
        return run_async(lambda: self.update_state_async(thread_id, values))

    async def get_state_history_async(self, thread_id: str) -> list[StateSnapshot]:
        """Return every snapshot of a thread, oldest first.

        Raises:
            ValueError: If the graph has no checkpointer.
        """
        checkpointer = self._require_checkpointer()
        try:
            checkpoints = await checkpointer.list(thread_id)
        except Exception as e:
            raise CheckpointError(f"thread_id=<{thread_id}> | failed to list checkpoints") from e
        return [StateSnapshot.from_checkpoint(checkpoint) for checkpoint in checkpoints]

    def get_state_history(self, thread_id: str) -> list[StateSnapshot]:
        """Synchronous version of `get_state_history_async`."""
        return run_async(lambda: self.get_state_history_async(thread_id))

    def draw_mermaid(self) -> str:
        """Render the graph as a Mermaid flowchart."""
        return visualization.draw_mermaid(self)

    def draw_ascii(self) -> str:
        """Render the graph as a plain text summary."""
        return visualization.draw_ascii(self)

    def draw_dot(self) -> str:
        """Render the graph in Graphviz DOT format."""
        return visualization.draw_dot(self)

    def __repr__(self) -> str:
        """Readable representation of the graph."""
        return f"CompiledGraph(name={self.name!r}, nodes={list(self.nodes)!r})"
