"""OpenTelemetry integration.

This module provides tracing for graph runs: one span per invocation and one child span per node step and tool
call. Spans go to whatever tracer provider the application configured globally.
"""

import json
import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional

import opentelemetry.trace as trace_api
from opentelemetry.instrumentation.threading import ThreadingInstrumentor
from opentelemetry.trace import Span, StatusCode
from opentelemetry.util.types import AttributeValue

from ..types.tools import ToolResult, ToolUse

logger = logging.getLogger(__name__)


class JSONEncoder(json.JSONEncoder):
    """Custom JSON encoder that handles non-serializable types."""

    def encode(self, obj: Any) -> str:
        """Recursively encode objects, preserving structure and only replacing unserializable values.

        Args:
            obj: The object to encode

        Returns:
            JSON string representation of the object
        """
        return super().encode(self._process_value(obj))

    def _process_value(self, value: Any) -> Any:
        if isinstance(value, (datetime, date)):
            return value.isoformat()
        elif isinstance(value, dict):
            return {k: self._process_value(v) for k, v in value.items()}
        elif isinstance(value, (list, tuple)):
            return [self._process_value(item) for item in value]
        else:
            try:
                json.dumps(value)
                return value
            except (TypeError, OverflowError, ValueError):
                return "<replaced>"


class Tracer:
    """Handles OpenTelemetry tracing for graph runs."""

    def __init__(self) -> None:
        """Initialize the tracer."""
        self.service_name = __name__
        self.tracer_provider: trace_api.TracerProvider = trace_api.get_tracer_provider()
        self.tracer = self.tracer_provider.get_tracer(self.service_name)
        ThreadingInstrumentor().instrument()

    def _start_span(
        self,
        span_name: str,
        parent_span: Optional[Span] = None,
        attributes: Optional[Dict[str, AttributeValue]] = None,
        span_kind: trace_api.SpanKind = trace_api.SpanKind.INTERNAL,
    ) -> Span:
        if not parent_span:
            parent_span = trace_api.get_current_span()

        context = None
        if parent_span and parent_span.is_recording() and parent_span != trace_api.INVALID_SPAN:
            context = trace_api.set_span_in_context(parent_span)

        span = self.tracer.start_span(name=span_name, context=context, kind=span_kind)
        span.set_attribute("switchyard.event.start_time", datetime.now(timezone.utc).isoformat())

        if attributes:
            self._set_attributes(span, attributes)

        return span

    def _set_attributes(self, span: Span, attributes: Dict[str, AttributeValue]) -> None:
        if not span:
            return

        for key, value in attributes.items():
            span.set_attribute(key, value)

    def _end_span(
        self,
        span: Span,
        attributes: Optional[Dict[str, AttributeValue]] = None,
        error: Optional[BaseException] = None,
    ) -> None:
        """End a span, recording attributes and the error status if any.

        Args:
            span: The span to end
            attributes: Optional attributes to set before ending the span
            error: Optional exception if an error occurred
        """
        if not span:
            return

        try:
            span.set_attribute("switchyard.event.end_time", datetime.now(timezone.utc).isoformat())

            if attributes:
                self._set_attributes(span, attributes)

            if error:
                span.set_status(StatusCode.ERROR, str(error))
                span.record_exception(error)
            else:
                span.set_status(StatusCode.OK)
        except Exception as e:
            logger.warning("error=<%s> | error while ending span", e, exc_info=True)
        finally:
            span.end()

    def end_span_with_error(self, span: Span, error_message: str, exception: Optional[BaseException] = None) -> None:
        """End a span with error status.

        Args:
            span: The span to end.
            error_message: Error message to set in the span status.
            exception: Optional exception to record in the span.
        """
        if not span:
            return

        error = exception or Exception(error_message)
        self._end_span(span, error=error)

    def start_graph_span(self, graph_name: str, run_id: str, thread_id: Optional[str] = None) -> Span:
        """Start the span covering one graph invocation."""
        attributes: Dict[str, AttributeValue] = {
            "switchyard.operation.name": "invoke_graph",
            "switchyard.graph.name": graph_name,
            "switchyard.run.id": run_id,
        }
        if thread_id:
            attributes["switchyard.thread.id"] = thread_id

        return self._start_span(
            f"invoke_graph {graph_name}", attributes=attributes, span_kind=trace_api.SpanKind.CLIENT
        )

    def end_graph_span(self, span: Span, status: str, step: int, next_node: Optional[str] = None) -> None:
        """End a graph span with the final run status."""
        attributes: Dict[str, AttributeValue] = {"switchyard.run.status": status, "switchyard.run.step": step}
        if next_node:
            attributes["switchyard.run.next_node"] = next_node
        self._end_span(span, attributes)

    def start_node_span(self, node: str, step: int, parent_span: Optional[Span] = None) -> Span:
        """Start the span covering one node invocation."""
        attributes: Dict[str, AttributeValue] = {
            "switchyard.operation.name": "execute_node",
            "switchyard.node.name": node,
            "switchyard.node.step": step,
        }
        return self._start_span(f"execute_node {node}", parent_span, attributes)

    def end_node_span(self, span: Span, outcome: str, next_node: Optional[str] = None) -> None:
        """End a node span with the kind of outcome the node returned."""
        attributes: Dict[str, AttributeValue] = {"switchyard.node.outcome": outcome}
        if next_node:
            attributes["switchyard.node.next_node"] = next_node
        self._end_span(span, attributes)

    def start_tool_call_span(self, tool_use: ToolUse, parent_span: Optional[Span] = None) -> Span:
        """Start the span covering one tool invocation."""
        attributes: Dict[str, AttributeValue] = {
            "switchyard.operation.name": "execute_tool",
            "switchyard.tool.name": tool_use["name"],
            "switchyard.tool.call.id": tool_use["toolUseId"],
            "switchyard.tool.call.arguments": serialize(tool_use["input"]),
        }
        return self._start_span(f"execute_tool {tool_use['name']}", parent_span, attributes)

    def end_tool_call_span(self, span: Span, tool_result: ToolResult) -> None:
        """End a tool span with the tool result."""
        attributes: Dict[str, AttributeValue] = {
            "switchyard.tool.status": tool_result["status"],
            "switchyard.tool.call.result": serialize(tool_result["content"]),
        }
        self._end_span(span, attributes)


# Singleton instance for global access
_tracer_instance = None


def get_tracer() -> Tracer:
    """Get or create the global tracer.

    Returns:
        The global tracer instance.
    """
    global _tracer_instance

    if not _tracer_instance:
        _tracer_instance = Tracer()

    return _tracer_instance


def serialize(obj: Any) -> str:
    """Serialize an object to JSON with consistent settings.

    Args:
        obj: The object to serialize

    Returns:
        JSON string representation of the object
    """
    return json.dumps(obj, ensure_ascii=False, cls=JSONEncoder)
