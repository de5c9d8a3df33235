"""Graph algorithms for dependency graph operations."""

from collections import deque
from collections.abc import Hashable, Mapping, Sequence


def topological_sort[T: Hashable](successors: Mapping[T, Sequence[T]]) -> list[T]:
    """Sort a graph topologically (dependencies before dependents).

    Kahn's algorithm with a FIFO queue. Nodes with no predecessors are seeded
    in mapping order, so the result is deterministic for a given input order.
    A successor listed twice (two parallel edges) counts twice.

    Args:
        successors: Mapping from node to the nodes that depend on it.
            An edge (a -> b) means "b depends on a".

    Returns:
        List of nodes in topological order.

    Raises:
        ValueError: If the graph contains a cycle (self-loops included).

    Example:
        >>> topological_sort({"a": ["b"], "b": ["c"], "c": []})
        ['a', 'b', 'c']

    """
    indegree: dict[T, int] = {}
    for node, deps in successors.items():
        indegree.setdefault(node, 0)
        for dep in deps:
            indegree[dep] = indegree.get(dep, 0) + 1

    queue = deque(node for node, deg in indegree.items() if deg == 0)
    order: list[T] = []

    while queue:
        node = queue.popleft()
        order.append(node)
        for successor in successors.get(node, ()):
            indegree[successor] -= 1
            if indegree[successor] == 0:
                queue.append(successor)

    if len(order) != len(indegree):
        msg = "Cycle detected in graph"
        raise ValueError(msg)

    return order
