"""Structural checks of graph documents, independent of computation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from ._graph import DependencyGraph
from ._models import NodeKind

if TYPE_CHECKING:
    from ._models import GraphData


@dataclass(frozen=True, slots=True)
class GraphProblem:
    """A structural problem found in a graph.

    Attributes:
        location: Slash-separated ids of the custom nodes enclosing the
            problem, empty for the top-level graph.
        message: Description of the problem.

    """

    location: str
    message: str

    def __str__(self) -> str:
        if self.location:
            return f"{self.location}: {self.message}"
        return self.message


def find_graph_problems(graph: GraphData, location: str = "") -> list[GraphProblem]:
    """Find dangling edges and cycles, recursing into custom node internal graphs.

    Dangling edges are ignored by the engine, so they are reported here but
    do not make a graph uncomputable. A cycle does.
    """
    problems: list[GraphProblem] = []
    node_ids = {node.id for node in graph.nodes}

    for edge in graph.edges:
        missing = [end for end in (edge.source, edge.target) if end not in node_ids]
        if missing:
            problems.append(
                GraphProblem(location, f"Edge '{edge.id}' references unknown node(s): {', '.join(missing)}"),
            )

    dependency_graph = DependencyGraph.from_graph(graph.nodes, graph.edges)
    if dependency_graph.has_cycle():
        cyclic = sorted(dependency_graph.cyclic_nodes())
        problems.append(GraphProblem(location, f"Cycle detected through: {', '.join(cyclic)}"))

    for node in graph.nodes:
        if node.kind == NodeKind.CUSTOM and node.custom is not None:
            inner = f"{location}/{node.id}" if location else node.id
            problems.extend(find_graph_problems(node.custom.internal_graph, inner))

    return problems
