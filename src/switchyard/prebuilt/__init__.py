"""Prebuilt agent graphs and multi-agent patterns."""

from .agent import ChatModelNode, create_agent, create_react_agent
from .subgraph import SubgraphNode
from .supervisor import DEFAULT_SUPERVISOR_PROMPT, create_supervisor
from .swarm import SwarmAgent, SwarmAgentNode, SwarmState, create_swarm

__all__ = [
    "DEFAULT_SUPERVISOR_PROMPT",
    "ChatModelNode",
    "SubgraphNode",
    "SwarmAgent",
    "SwarmAgentNode",
    "SwarmState",
    "create_agent",
    "create_react_agent",
    "create_supervisor",
    "create_swarm",
]
