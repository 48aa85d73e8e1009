"""Run configuration types for compiled graphs."""

from typing import Any, Literal

from typing_extensions import TypedDict

StreamMode = Literal["values", "updates", "messages"]
"""Per-step view yielded by `CompiledGraph.stream_async`."""

STREAM_MODES: tuple[StreamMode, ...] = ("values", "updates", "messages")


class RunConfig(TypedDict, total=False):
    """Per-invocation configuration for a compiled graph.

    Attributes:
        thread_id: Identifier of the conversation thread whose checkpoints are loaded and saved.
            Required when the graph has a checkpointer.
        recursion_limit: Maximum node invocations for this call. Overrides the graph default.
        run_id: Identifier reported on lifecycle events. Generated when absent.
        metadata: Free-form values copied onto every checkpoint written by this run.
    """

    thread_id: str
    recursion_limit: int
    run_id: str
    metadata: dict[str, Any]
