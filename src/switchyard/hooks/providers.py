"""Ready-made hook providers."""

import logging
from typing import Any, Optional, Sequence, Type

from .events import (
    LlmCalledEvent,
    RunEvent,
    RunFailedEvent,
    RunFinishedEvent,
    RunStartedEvent,
    RunStepEvent,
    ToolCalledEvent,
)
from .registry import HookProvider, HookRegistry

logger = logging.getLogger(__name__)

ALL_RUN_EVENTS: tuple[Type[RunEvent], ...] = (
    RunStartedEvent,
    RunStepEvent,
    LlmCalledEvent,
    ToolCalledEvent,
    RunFinishedEvent,
    RunFailedEvent,
)


class LoggingHookProvider(HookProvider):
    """Writes every lifecycle event to a logger."""

    def __init__(self, log: Optional[logging.Logger] = None, level: int = logging.INFO) -> None:
        """Initialize the provider.

        Args:
            log: Logger to write to. Defaults to this module's logger.
            level: Level for regular events. Failures are always logged at ERROR.
        """
        self.log = log or logger
        self.level = level

    def register_hooks(self, registry: HookRegistry, **kwargs: Any) -> None:
        """Register a callback for every lifecycle event."""
        registry.add_callback(RunStartedEvent, self.on_run_started)
        registry.add_callback(RunStepEvent, self.on_run_step)
        registry.add_callback(LlmCalledEvent, self.on_llm_called)
        registry.add_callback(ToolCalledEvent, self.on_tool_called)
        registry.add_callback(RunFinishedEvent, self.on_run_finished)
        registry.add_callback(RunFailedEvent, self.on_run_failed)

    def on_run_started(self, event: RunStartedEvent) -> None:
        """Log the start of a run."""
        self.log.log(self.level, "run_id=<%s>, thread_id=<%s> | run started", event.run_id, event.thread_id)

    def on_run_step(self, event: RunStepEvent) -> None:
        """Log a completed step."""
        self.log.log(
            self.level,
            "run_id=<%s>, step=<%s>, node=<%s>, next_node=<%s> | step completed",
            event.run_id,
            event.step,
            event.node,
            event.next_node,
        )

    def on_llm_called(self, event: LlmCalledEvent) -> None:
        """Log a model call."""
        self.log.log(
            self.level,
            "run_id=<%s>, node=<%s>, message_count=<%s> | model called",
            event.run_id,
            event.node,
            event.message_count,
        )

    def on_tool_called(self, event: ToolCalledEvent) -> None:
        """Log a tool invocation."""
        self.log.log(
            self.level,
            "run_id=<%s>, tool_name=<%s>, tool_use_id=<%s>, status=<%s> | tool called",
            event.run_id,
            event.tool_name,
            event.tool_use_id,
            event.status,
        )

    def on_run_finished(self, event: RunFinishedEvent) -> None:
        """Log the end of a run."""
        status = event.result.status.value if event.result else None
        self.log.log(self.level, "run_id=<%s>, status=<%s> | run finished", event.run_id, status)

    def on_run_failed(self, event: RunFailedEvent) -> None:
        """Log a failed run."""
        self.log.error("run_id=<%s>, error=<%s> | run failed", event.run_id, event.exception)


class RecordingHookProvider(HookProvider):
    """Keeps every received lifecycle event in memory, in delivery order."""

    def __init__(self, event_types: Sequence[Type[RunEvent]] = ALL_RUN_EVENTS) -> None:
        """Initialize the provider.

        Args:
            event_types: Event types to record. Defaults to all lifecycle events.
        """
        self.event_types = tuple(event_types)
        self.events: list[RunEvent] = []

    @property
    def event_types_received(self) -> list[Type[RunEvent]]:
        """Types of the recorded events, in order."""
        return [type(event) for event in self.events]

    def register_hooks(self, registry: HookRegistry, **kwargs: Any) -> None:
        """Register the recorder for each configured event type."""
        for event_type in self.event_types:
            registry.add_callback(event_type, self.record)

    def record(self, event: RunEvent) -> None:
        """Store an event."""
        self.events.append(event)

    def clear(self) -> None:
        """Forget all recorded events."""
        self.events.clear()
