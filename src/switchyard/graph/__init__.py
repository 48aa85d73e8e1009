"""State graphs: nodes over a shared state, routed by an edge table, with checkpointed threads."""

from .builder import DEFAULT_RECURSION_LIMIT, StateGraph
from .cache import CachePolicy
from .checkpoint import Checkpoint, Checkpointer, InMemoryCheckpointer
from .compiled import CompiledGraph, GraphResult, StateSnapshot, Status
from .context import RunContext, get_run_context
from .edges import END, START, ConditionalEdge, EdgeTable
from .file_checkpointer import FileCheckpointer
from .node import Continue, End, FunctionNode, Goto, Interrupt, Node, NodeOutcome, as_node
from .state import MessagesState, Reducer, State, StateSchema, append, override
from .tool_node import ToolNode, tools_condition

__all__ = [
    "DEFAULT_RECURSION_LIMIT",
    "END",
    "START",
    "CachePolicy",
    "Checkpoint",
    "Checkpointer",
    "CompiledGraph",
    "ConditionalEdge",
    "Continue",
    "EdgeTable",
    "End",
    "FileCheckpointer",
    "FunctionNode",
    "Goto",
    "GraphResult",
    "InMemoryCheckpointer",
    "Interrupt",
    "MessagesState",
    "Node",
    "NodeOutcome",
    "Reducer",
    "RunContext",
    "State",
    "StateGraph",
    "StateSchema",
    "StateSnapshot",
    "Status",
    "ToolNode",
    "append",
    "as_node",
    "get_run_context",
    "override",
    "tools_condition",
]
