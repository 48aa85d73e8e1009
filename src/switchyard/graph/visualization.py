"""Text renderings of a compiled graph's structure.

Node lists and edges are sorted so renderings are stable across runs.
"""

from typing import TYPE_CHECKING

from .edges import END, START, ConditionalEdge

if TYPE_CHECKING:
    from .compiled import CompiledGraph


def _conditional_edges(graph: "CompiledGraph") -> list[ConditionalEdge]:
    edges = list(graph.edge_table.conditional_edges.values())
    if graph.conditional_entry is not None:
        edges.append(graph.conditional_entry)
    return sorted(edges, key=lambda edge: edge.source)


def draw_mermaid(graph: "CompiledGraph") -> str:
    """Render the graph as a Mermaid flowchart.

    Start and end render as rounded nodes, fixed edges as solid arrows, conditional routes and `Goto`
    destinations as dashed arrows labelled with their route label.
    """
    lines = ["graph TD", f'    {START}(["{START}"])']
    lines.extend(f'    {name}["{name}"]' for name in sorted(graph.nodes))
    lines.append(f'    {END}(["{END}"])')

    if graph.entry_point is not None:
        lines.append(f"    {START} --> {graph.entry_point}")

    for source, target in sorted(graph.edge_table.edges.items()):
        lines.append(f"    {source} --> {target}")

    for edge in _conditional_edges(graph):
        if edge.path_map is None:
            lines.append(f"    %% {edge.source} has conditional edge (path_map not provided)")
            continue
        for label, target in sorted(edge.path_map.items(), key=lambda item: str(item[0])):
            lines.append(f"    {edge.source} -.-> |{label}| {target}")

    for source, targets in sorted(graph.destinations.items()):
        for target in sorted(targets):
            lines.append(f"    {source} -.-> {target}")

    return "\n".join(lines)


def draw_ascii(graph: "CompiledGraph") -> str:
    """Render the graph as a plain text summary."""
    lines = ["Graph:", f"  Nodes: {', '.join(sorted(graph.nodes))}"]

    if graph.entry_point is not None:
        lines.append(f"  Entry: {START} -> {graph.entry_point}")
    else:
        path_map = graph.conditional_entry.path_map if graph.conditional_entry else None
        targets = sorted(set(path_map.values())) if path_map else ["???"]
        lines.append(f"  Entry: {START} -> {' | '.join(targets)}  [conditional]")

    lines.append("  Edges:")
    for source, target in sorted(graph.edge_table.edges.items()):
        lines.append(f"    {source} -> {target}")

    for edge in sorted(graph.edge_table.conditional_edges.values(), key=lambda edge: edge.source):
        if edge.path_map is None:
            lines.append(f"    {edge.source} -> ???  [conditional]")
        else:
            lines.append(f"    {edge.source} -> {' | '.join(sorted(set(edge.path_map.values())))}  [conditional]")

    for source, targets in sorted(graph.destinations.items()):
        if targets:
            lines.append(f"    {source} -> {' | '.join(sorted(targets))}  [goto]")

    return "\n".join(lines)


def draw_dot(graph: "CompiledGraph") -> str:
    """Render the graph in Graphviz DOT format."""
    lines = ["digraph G {", "    rankdir=TD;", f'    "{START}" [shape=oval];']
    lines.extend(f'    "{name}" [shape=box];' for name in sorted(graph.nodes))
    lines.append(f'    "{END}" [shape=oval];')

    if graph.entry_point is not None:
        lines.append(f'    "{START}" -> "{graph.entry_point}" [style=solid];')

    for source, target in sorted(graph.edge_table.edges.items()):
        lines.append(f'    "{source}" -> "{target}" [style=solid];')

    for edge in _conditional_edges(graph):
        for label, target in sorted((edge.path_map or {}).items(), key=lambda item: str(item[0])):
            lines.append(f'    "{edge.source}" -> "{target}" [style=dashed, label="{label}"];')

    lines.append("}")
    return "\n".join(lines)
