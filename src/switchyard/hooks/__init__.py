"""Typed hook system for observing graph runs.

Example:
    ```python
    from switchyard.hooks import HookProvider, HookRegistry, RunStepEvent

    class StepPrinter(HookProvider):
        def register_hooks(self, registry: HookRegistry, **kwargs) -> None:
            registry.add_callback(RunStepEvent, lambda event: print(event.node))
    ```
"""

from .events import (
    LlmCalledEvent,
    RunEvent,
    RunFailedEvent,
    RunFinishedEvent,
    RunStartedEvent,
    RunStepEvent,
    ToolCalledEvent,
)
from .providers import ALL_RUN_EVENTS, LoggingHookProvider, RecordingHookProvider
from .registry import BaseHookEvent, HookCallback, HookProvider, HookRegistry

__all__ = [
    "ALL_RUN_EVENTS",
    "BaseHookEvent",
    "HookCallback",
    "HookProvider",
    "HookRegistry",
    "LlmCalledEvent",
    "LoggingHookProvider",
    "RecordingHookProvider",
    "RunEvent",
    "RunFailedEvent",
    "RunFinishedEvent",
    "RunStartedEvent",
    "RunStepEvent",
    "ToolCalledEvent",
]
