"""Workflow state and per-field reducers.

A state is a plain JSON-compatible dict. Its schema is a `TypedDict` whose fields may carry a reducer through
`typing.Annotated`; the reducer decides how a node's partial update (the delta) is folded into the current value.
Fields without a reducer are overwritten.

Example:
    ```python
    class ResearchState(TypedDict):
        messages: Annotated[list[Message], append]
        topic: str
    ```
"""

import logging
from typing import Any, Callable, Mapping, Optional

from typing_extensions import Annotated, NotRequired, Required, TypedDict, get_args, get_origin, get_type_hints

from ..types.content import Message

logger = logging.getLogger(__name__)

State = dict[str, Any]
"""A workflow state value."""

Reducer = Callable[[Any, Any], Any]
"""Folds an update into the current value of a field: `reducer(current, update) -> new value`."""


def override(current: Any, update: Any) -> Any:
    """Replace the current value with the update."""
    return update


def append(current: Any, update: Any) -> list[Any]:
    """Append the update to the current list.

    A list or tuple update is appended element by element, in order. Nothing is collapsed or de-duplicated, so
    two consecutive messages from the same role stay two messages.
    """
    merged = list(current) if current is not None else []
    if isinstance(update, (list, tuple)):
        merged.extend(update)
    else:
        merged.append(update)
    return merged


class MessagesState(TypedDict):
    """State holding a conversation transcript that grows by appending."""

    messages: Annotated[list[Message], append]


class StateSchema:
    """The reducers of a state type and the merge operation built from them."""

    def __init__(self, reducers: Optional[Mapping[str, Reducer]] = None, fields: Optional[set[str]] = None) -> None:
        """Initialize the schema.

        Args:
            reducers: Reducer per field. Fields not listed are overwritten on merge.
            fields: Names of all declared fields, used for diagnostics only.
        """
        self.reducers: dict[str, Reducer] = dict(reducers or {})
        self.fields: set[str] = set(fields or ()) | set(self.reducers)

    @classmethod
    def from_type(cls, state_type: Optional[type]) -> "StateSchema":
        """Build a schema from a `TypedDict` class, reading reducers from `Annotated` metadata.

        Args:
            state_type: The state class. `None` or `dict` yields a schema where every field is overwritten.

        Returns:
            The schema for the state type.
        """
        if state_type is None or state_type is dict:
            return cls()

        reducers: dict[str, Reducer] = {}
        hints = get_type_hints(state_type, include_extras=True)
        for name, hint in hints.items():
            if get_origin(hint) in (Required, NotRequired):
                hint = get_args(hint)[0]
            if get_origin(hint) is Annotated:
                for metadata in reversed(hint.__metadata__):
                    if callable(metadata):
                        reducers[name] = metadata
                        break

        logger.debug("state_type=<%s>, reducers=<%s> | built state schema", state_type.__name__, sorted(reducers))
        return cls(reducers, set(hints))

    def reducer_for(self, field: str) -> Reducer:
        """Return the reducer applied to a field."""
        return self.reducers.get(field, override)

    def merge(self, current: Mapping[str, Any], delta: Optional[Mapping[str, Any]]) -> State:
        """Fold a delta into a state.

        Neither argument is modified. Fields are visited in the delta's order, so merging the same delta into the
        same state always produces the same result.

        Args:
            current: The current state.
            delta: Partial update produced by a node or supplied by a caller. Empty or None leaves the state as is.

        Returns:
            The merged state.
        """
        merged = dict(current)
        if not delta:
            return merged

        for field, update in delta.items():
            merged[field] = self.reducer_for(field)(merged.get(field), update)
        return merged

    def diff(self, before: Mapping[str, Any], after: Mapping[str, Any]) -> State:
        """Compute the delta that turns `before` into `after` when merged.

        Append fields contribute only their new suffix when `after` extends `before`; every other changed field
        contributes its full new value. Fields missing from `after` are ignored.
        """
        delta: State = {}
        for field, value in after.items():
            if field in before and before[field] == value:
                continue

            previous = before.get(field)
            if (
                self.reducer_for(field) is append
                and isinstance(previous, list)
                and isinstance(value, list)
                and value[: len(previous)] == previous
            ):
                delta[field] = value[len(previous) :]
            else:
                delta[field] = value
        return delta
