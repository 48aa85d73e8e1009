"""Per-step execution context visible to nodes and tools.

The executor sets the context before each node runs. Nodes keep the plain `process(state)` signature and reach
the shared store, hook registry and run identifiers through `get_run_context()`.
"""

import contextvars
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from ..hooks.registry import HookRegistry
    from ..store.base import BaseStore
    from .compiled import CompiledGraph


@dataclass
class RunContext:
    """Identifies the node invocation currently in progress.

    Attributes:
        graph: The graph being run.
        run_id: Identifier of the invocation.
        node: Name of the node being processed.
        step: Step number of this node invocation.
        hooks: Registry receiving lifecycle events.
        thread_id: Conversation thread, when the run is checkpointed.
        store: Shared key-value store configured on the graph.
        metadata: Caller-supplied run metadata.
    """

    graph: "CompiledGraph"
    run_id: str
    node: str
    step: int
    hooks: "HookRegistry"
    thread_id: Optional[str] = None
    store: Optional["BaseStore"] = None
    metadata: dict[str, Any] = field(default_factory=dict)


_run_context: contextvars.ContextVar[Optional[RunContext]] = contextvars.ContextVar(
    "switchyard_run_context", default=None
)


def get_run_context() -> Optional[RunContext]:
    """Return the context of the node invocation in progress, or None outside a graph run."""
    return _run_context.get()


def set_run_context(context: Optional[RunContext]) -> contextvars.Token:
    """Set the context for the current task and return a token to restore the previous one."""
    return _run_context.set(context)


def reset_run_context(token: contextvars.Token) -> None:
    """Restore the context that was active before `set_run_context`."""
    _run_context.reset(token)
