"""Generic dependency graph abstraction."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ._algorithms import topological_sort

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from econgraph._models import Edge, Node


@dataclass(frozen=True, slots=True)
class DependencyGraph[T]:
    """A directed graph representing dependencies between nodes.

    This is a pure, immutable data structure with query methods. Node and
    edge order is preserved from construction, so traversals are
    deterministic. Parallel edges are kept: a node that feeds another twice
    appears twice in its successors.

    The graph represents "depends on" relationships:
    - predecessors[b] = (a,) means "b depends on a"
    - successors[a] = (b,) means "a is depended on by b"

    Attributes:
        _predecessors: Mapping from node to its direct dependencies.
        _successors: Mapping from node to nodes that depend on it.

    """

    _predecessors: dict[T, tuple[T, ...]] = field(default_factory=dict)
    _successors: dict[T, tuple[T, ...]] = field(default_factory=dict)

    @classmethod
    def from_edges(cls, nodes: Iterable[T], edges: Iterable[tuple[T, T]]) -> DependencyGraph[T]:
        """Build a graph from a node list and a list of (source, target) edges.

        An edge (a, b) means "b depends on a" (a -> b in the DAG). Edges with
        an endpoint missing from ``nodes`` are ignored.

        Example:
            >>> graph = DependencyGraph.from_edges(["a", "b", "c"], [("a", "b"), ("b", "c"), ("b", "x")])
            >>> graph.predecessors("b")
            ('a',)

        """
        predecessors: dict[T, list[T]] = {node: [] for node in nodes}
        successors: dict[T, list[T]] = {node: [] for node in predecessors}

        for src, dst in edges:
            if src not in predecessors or dst not in predecessors:
                continue
            predecessors[dst].append(src)
            successors[src].append(dst)

        return cls(
            _predecessors={k: tuple(v) for k, v in predecessors.items()},
            _successors={k: tuple(v) for k, v in successors.items()},
        )

    @classmethod
    def from_graph(cls, nodes: Sequence[Node], edges: Sequence[Edge]) -> DependencyGraph[str]:
        """Build a graph of node ids from model nodes and edges."""
        return DependencyGraph.from_edges(
            [node.id for node in nodes],
            [(edge.source, edge.target) for edge in edges],
        )

    @property
    def nodes(self) -> tuple[T, ...]:
        """All nodes in the graph, in construction order."""
        return tuple(self._predecessors)

    def predecessors(self, node: T) -> tuple[T, ...]:
        """Get direct dependencies of a node, one entry per incoming edge."""
        return self._predecessors.get(node, ())

    def successors(self, node: T) -> tuple[T, ...]:
        """Get direct dependents of a node, one entry per outgoing edge."""
        return self._successors.get(node, ())

    def roots(self) -> tuple[T, ...]:
        """Get nodes with no predecessors (input/source nodes)."""
        return tuple(n for n in self.nodes if not self._predecessors[n])

    def leaves(self) -> tuple[T, ...]:
        """Get nodes with no successors (output/sink nodes)."""
        return tuple(n for n in self.nodes if not self._successors[n])

    def ancestors(self, node: T) -> frozenset[T]:
        """Get all transitive dependencies of a node.

        Args:
            node: The node to query.

        Returns:
            Set of all nodes that this node transitively depends on.

        """
        visited: set[T] = set()
        stack = list(self.predecessors(node))
        while stack:
            current = stack.pop()
            if current not in visited:
                visited.add(current)
                stack.extend(self.predecessors(current))
        return frozenset(visited)

    def topological_order(self) -> list[T]:
        """Return nodes in topological order (dependencies before dependents).

        Raises:
            ValueError: If the graph contains a cycle.

        """
        return topological_sort(self._successors)

    def has_cycle(self) -> bool:
        """Check if the graph contains a cycle."""
        try:
            self.topological_order()
        except ValueError:
            return True
        return False

    def cyclic_nodes(self) -> frozenset[T]:
        """Get the nodes lying on a cycle.

        A node is on a cycle when it is among its own ancestors.
        """
        return frozenset(n for n in self.nodes if n in self.ancestors(n))

    def __len__(self) -> int:
        """Return the number of nodes in the graph."""
        return len(self._predecessors)

    def __contains__(self, node: T) -> bool:
        """Check if a node is in the graph."""
        return node in self._predecessors
