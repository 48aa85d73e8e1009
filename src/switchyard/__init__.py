"""A graph-based orchestration core for tool-using, multi-agent LLM workflows."""

from . import graph, hooks, models, prebuilt, store, telemetry, tools, types
from .graph import END, START, CompiledGraph, InMemoryCheckpointer, MessagesState, StateGraph, ToolNode
from .prebuilt import create_agent, create_supervisor, create_swarm
from .tools.decorator import tool

__all__ = [
    "END",
    "START",
    "CompiledGraph",
    "InMemoryCheckpointer",
    "MessagesState",
    "StateGraph",
    "ToolNode",
    "create_agent",
    "create_supervisor",
    "create_swarm",
    "graph",
    "hooks",
    "models",
    "prebuilt",
    "store",
    "telemetry",
    "tool",
    "tools",
    "types",
]
