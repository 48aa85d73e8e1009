"""Human-in-the-loop interrupts for graph workflows.

A run pauses in one of three ways: an `interrupt_before` rule fires ahead of a node, an `interrupt_after` rule
fires once a node has produced its outcome, or a node returns an explicit `Interrupt` outcome. In every case the
executor persists a checkpoint and hands an `Interrupt` record back to the caller. Invoking the graph again on
the same thread resumes the run.
"""

from dataclasses import asdict, dataclass
from typing import Any, Literal

InterruptKind = Literal["before", "after", "node"]


@dataclass
class Interrupt:
    """Represents a pause in graph execution awaiting external input.

    Attributes:
        id: Unique identifier.
        node: Name of the node the interrupt is attached to.
        kind: "before" or "after" for configured interrupt rules, "node" for an explicit node outcome.
        value: Payload supplied by the node for explicit interrupts.
    """

    id: str
    node: str
    kind: InterruptKind
    value: Any = None

    @classmethod
    def create(cls, node: str, kind: InterruptKind, step: int, value: Any = None) -> "Interrupt":
        """Create an interrupt with a deterministic id for the given node and step."""
        return cls(id=f"v1:{kind}:{node}:{step}", node=node, kind=kind, value=value)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dict for checkpoint persistence."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Interrupt":
        """Rehydrate an interrupt from its persisted form."""
        return cls(id=data["id"], node=data["node"], kind=data["kind"], value=data.get("value"))
