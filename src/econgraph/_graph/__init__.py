"""Dependency graph over node ids.

This module contains:
- DependencyGraph[T]: An immutable, insertion-ordered directed graph
- topological_sort: Kahn's algorithm for ordering nodes by dependencies
"""

from ._algorithms import topological_sort
from ._dependency_graph import DependencyGraph

__all__ = ["DependencyGraph", "topological_sort"]
