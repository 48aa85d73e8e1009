"""Hook registry for observing graph runs.

Callbacks are registered per event type, either one at a time through `add_callback` or in groups through a
`HookProvider`. Delivery is best-effort: a failing callback is logged, the remaining callbacks for that event are
skipped, and the run carries on.
"""

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Generator, Generic, Protocol, Type, TypeVar, Union, runtime_checkable

logger = logging.getLogger(__name__)


@dataclass
class BaseHookEvent:
    """Base class for all hook events."""

    @property
    def should_reverse_callbacks(self) -> bool:
        """Determine if callbacks for this event should be invoked in reverse order.

        Returns:
            False by default. Override to return True for events that close a scope opened by an earlier event,
            so providers unwind in the reverse order they were set up.
        """
        return False


TEvent = TypeVar("TEvent", bound=BaseHookEvent, contravariant=True)
TInvokeEvent = TypeVar("TInvokeEvent", bound=BaseHookEvent)


@runtime_checkable
class HookProvider(Protocol):
    """Protocol for objects that register a related group of callbacks.

    Example:
        ```python
        class StepCounter(HookProvider):
            def register_hooks(self, registry: HookRegistry, **kwargs: Any) -> None:
                registry.add_callback(RunStepEvent, self.count)
        ```
    """

    def register_hooks(self, registry: "HookRegistry", **kwargs: Any) -> None:
        """Register callback functions for specific event types.

        Args:
            registry: The hook registry to register callbacks with.
            **kwargs: Additional keyword arguments for future extensibility.
        """
        ...


class HookCallback(Protocol, Generic[TEvent]):
    """Protocol for callback functions that handle hook events."""

    def __call__(self, event: TEvent) -> Union[None, Awaitable[None]]:
        """Handle a hook event."""
        ...


class HookRegistry:
    """Registry of callbacks keyed by event type."""

    def __init__(self) -> None:
        """Initialize an empty hook registry."""
        self._registered_callbacks: dict[Type, list[HookCallback]] = {}

    def add_callback(self, event_type: Type[TEvent], callback: HookCallback[TEvent]) -> None:
        """Register a callback for an event type.

        Args:
            event_type: The class of events the callback handles.
            callback: Sync or async function called with the event.
        """
        callbacks = self._registered_callbacks.setdefault(event_type, [])
        callbacks.append(callback)

    def add_hook(self, hook: HookProvider) -> None:
        """Register all callbacks of a hook provider."""
        hook.register_hooks(self)

    def has_callbacks(self) -> bool:
        """Check if the registry has any registered callbacks."""
        return bool(self._registered_callbacks)

    def get_callbacks_for(self, event: TEvent) -> Generator[HookCallback[TEvent], None, None]:
        """Yield the callbacks registered for the event's type and its base classes.

        Callbacks are yielded in registration order, or in reverse when the event asks for it.
        """
        event_type = type(event)

        callbacks: list[HookCallback] = []
        for registered_type in event_type.__mro__:
            callbacks.extend(self._registered_callbacks.get(registered_type, []))

        if event.should_reverse_callbacks:
            yield from reversed(callbacks)
        else:
            yield from callbacks

    async def invoke_callbacks_async(self, event: TInvokeEvent) -> TInvokeEvent:
        """Deliver an event to its callbacks, awaiting async ones.

        A callback that raises stops delivery of this event to later callbacks. The error is logged and not
        propagated.

        Args:
            event: The event to dispatch.

        Returns:
            The event, after callbacks had the chance to inspect it.
        """
        for callback in self.get_callbacks_for(event):
            try:
                result = callback(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(
                    "event=<%s>, callback=<%s> | hook callback failed, skipping remaining callbacks",
                    type(event).__name__,
                    getattr(callback, "__name__", repr(callback)),
                )
                break

        return event
